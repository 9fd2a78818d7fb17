"""
Faults - Structured fault handling for decorated-router.

Faults are typed exceptions carrying a stable code, a domain and a
severity. Router tree assembly raises them for malformed scope
hierarchies; configuration loading raises them for invalid settings.

Core exports:
- Fault: Base fault class
- FaultDomain: Domain enumeration
- Severity: Severity levels
"""

from .core import (
    Fault,
    FaultDomain,
    Severity,
)

from .domains import (
    ConfigFault,
    ConfigInvalidFault,
    RoutingTreeFault,
    ParentControllerFault,
    UnregisteredControllerFault,
)

__all__ = [
    # Core types
    "Fault",
    "FaultDomain",
    "Severity",

    # Domain faults
    "ConfigFault",
    "ConfigInvalidFault",
    "RoutingTreeFault",
    "ParentControllerFault",
    "UnregisteredControllerFault",
]
