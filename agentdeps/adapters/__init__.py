"""Adapters — the dependency layer between probes and the host.

Public re-exports for convenient access.
"""

from agentdeps.adapters.base import Dependencies, LinkNotFoundError, QueryError
from agentdeps.adapters.mock import MockDependencies
from agentdeps.adapters.network import NetworkInterface
from agentdeps.adapters.system import SystemDependencies, new_dependencies

__all__ = [
    "Dependencies",
    "LinkNotFoundError",
    "MockDependencies",
    "NetworkInterface",
    "QueryError",
    "SystemDependencies",
    "new_dependencies",
]
