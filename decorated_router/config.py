"""
Config system - Layered configuration for router assembly and serving.

Sources are merged with precedence (later overrides earlier):
defaults < config files (JSON/YAML) < .env file < environment < overrides
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import dotenv_values

from .faults import ConfigInvalidFault
from .http.router import RouterOptions

ENV_PREFIX = "DR_"


@dataclass
class RouterSettings:
    """Typed view over the merged configuration."""
    debug: bool = False
    log_level: str = "WARNING"
    case_sensitive: bool = False
    strict_slashes: bool = False
    merge_params: bool = False
    host: str = "127.0.0.1"
    port: int = 8000

    def router_options(self) -> RouterOptions:
        """Options for the application router."""
        return RouterOptions(
            case_sensitive=self.case_sensitive,
            strict_slashes=self.strict_slashes,
            merge_params=self.merge_params,
        )


class ConfigLoader:
    """
    Loads and merges configuration from multiple sources.

    Environment keys are upper-case with the ``DR_`` prefix; a double
    underscore nests (``DR_SERVER__PORT`` -> ``server.port``).
    """

    def __init__(self, env_prefix: str = ENV_PREFIX):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        paths: Optional[list[str]] = None,
        env_prefix: str = ENV_PREFIX,
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
        environ: Optional[Dict[str, str]] = None,
    ) -> "ConfigLoader":
        """
        Load configuration from every source.

        Args:
            paths: Config files (.json, .yaml, .yml)
            env_prefix: Prefix for environment variables
            env_file: Path to .env file
            overrides: Manual overrides (highest precedence)
            environ: Environment mapping (``os.environ`` when omitted)

        Returns:
            Configured ConfigLoader instance
        """
        loader = cls(env_prefix=env_prefix)

        for path in paths or ():
            loader._load_file(Path(path))

        if env_file:
            loader._load_env_file(env_file)

        loader._load_from_env(os.environ if environ is None else environ)

        if overrides:
            loader._merge_dict(loader.config_data, overrides)

        return loader

    def _load_file(self, path: Path):
        if not path.exists():
            return
        if path.suffix == ".json":
            with open(path) as f:
                data = json.load(f)
        elif path.suffix in (".yaml", ".yml"):
            with open(path) as f:
                data = yaml.safe_load(f)
        else:
            raise ConfigInvalidFault(str(path), "unsupported config file type")
        if data:
            self._merge_dict(self.config_data, data)

    def _load_env_file(self, path: str):
        """Load prefixed keys from a .env file."""
        if not Path(path).exists():
            return
        for key, value in dotenv_values(path).items():
            if key.startswith(self.env_prefix) and value is not None:
                self._set_nested(key, value)

    def _load_from_env(self, environ):
        for key, value in environ.items():
            if key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _set_nested(self, key: str, value: str):
        """Convert DR_SERVER__PORT to nested dict."""
        key = key[len(self.env_prefix):]
        parts = key.lower().split("__")

        current = self.config_data
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        current[parts[-1]] = self._parse_value(value)

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        if value.startswith(("{", "[")):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass

        return value

    def _merge_dict(self, target: dict, source: dict):
        """Deep merge source into target."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._merge_dict(target[key], value)
            else:
                target[key] = value

    def get(self, path: str, default: Any = None) -> Any:
        """Get config value by dot-separated path."""
        current = self.config_data
        for part in path.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current

    def settings(self) -> RouterSettings:
        """
        Build validated RouterSettings.

        Raises:
            ConfigInvalidFault: a value has the wrong type
        """
        values: Dict[str, Any] = {}
        for f in fields(RouterSettings):
            if f.name not in self.config_data:
                continue
            value = self.config_data[f.name]
            expected = type(f.default)
            if expected is bool and not isinstance(value, bool):
                raise ConfigInvalidFault(f.name, f"expected a boolean, got {value!r}")
            if expected is int and (isinstance(value, bool) or not isinstance(value, int)):
                raise ConfigInvalidFault(f.name, f"expected an integer, got {value!r}")
            if expected is str:
                value = str(value)
            values[f.name] = value

        settings = RouterSettings(**values)
        if logging.getLevelName(settings.log_level.upper()) not in range(0, 60):
            raise ConfigInvalidFault("log_level", f"unknown level {settings.log_level!r}")
        return settings


def configure_logging(level: str = "WARNING") -> logging.Logger:
    """Set the level of the package logger namespace."""
    package_logger = logging.getLogger("decorated_router")
    package_logger.setLevel(level.upper())
    return package_logger
