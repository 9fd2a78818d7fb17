"""
Faults - Domain-specific fault types.

Provides concrete fault classes for each domain:
- CONFIG faults
- ROUTING faults (router tree assembly)
"""

from typing import Any, Optional

from .core import Fault, FaultDomain, Severity


# ============================================================================
# CONFIG Faults
# ============================================================================

class ConfigFault(Fault):
    """Base class for configuration faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        severity: Severity = Severity.FATAL,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.CONFIG,
            severity=severity,
            retryable=False,
            public=False,
            metadata=metadata,
        )


class ConfigInvalidFault(ConfigFault):
    """Configuration value is invalid."""

    def __init__(self, key: str, reason: str, **kwargs):
        super().__init__(
            code="CONFIG_INVALID",
            message=f"Configuration key '{key}' is invalid: {reason}",
            metadata={"key": key, "reason": reason, **kwargs.get("metadata", {})},
        )


# ============================================================================
# ROUTING Faults
# ============================================================================

class RoutingTreeFault(Fault):
    """
    Base class for faults raised while assembling the router tree.

    These are startup-time configuration defects: assembly stops at the
    first one and nothing is retried.
    """

    def __init__(
        self,
        code: str,
        message: str,
        *,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.ROUTING,
            severity=Severity.FATAL,
            retryable=False,
            public=False,
            metadata=metadata,
        )


def _name(obj: Any) -> str:
    return getattr(obj, "__qualname__", None) or getattr(obj, "name", None) or str(obj)


class ParentControllerFault(RoutingTreeFault):
    """
    A @Parent target has no assembled router.

    Raised when the parent was never declared a controller, or was
    declared but had no routes.
    """

    def __init__(self, child: Any, parent: Any):
        self.child = child
        self.parent = parent
        super().__init__(
            code="PARENT_CONTROLLER_UNRESOLVED",
            message=(
                f"Parent controller {_name(parent)} of {_name(child)} "
                f"is not a registered controller with routes"
            ),
            metadata={"child": _name(child), "parent": _name(parent)},
        )


class UnregisteredControllerFault(RoutingTreeFault):
    """A class decorated with @Parent has no assembled router of its own."""

    def __init__(self, child: Any):
        self.child = child
        super().__init__(
            code="CONTROLLER_UNREGISTERED",
            message=f"Controller {_name(child)} is not a registered controller with routes",
            metadata={"child": _name(child)},
        )
