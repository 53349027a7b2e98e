"""
Domain models — Pydantic types for the dependency layer.

All models are re-exported here for convenient access:

    from agentdeps.core.models import DryRunConfig, ExecutionResult, Route
"""

from agentdeps.core.models.config import AgentConfig, DryRunConfig, LoggingConfig
from agentdeps.core.models.execution import EXIT_CODE_NOT_RUN, ExecutionResult
from agentdeps.core.models.hardware import (
    BlockInfo,
    ChassisInfo,
    Disk,
    GPUInfo,
    GraphicsCard,
    HardwareOptions,
    MemoryInfo,
    Partition,
    PCIDevice,
    PCIInfo,
    ProductInfo,
)
from agentdeps.core.models.network import AddressFamily, InterfaceInfo, Link, Route

__all__ = [
    "EXIT_CODE_NOT_RUN",
    "AddressFamily",
    "AgentConfig",
    "BlockInfo",
    "ChassisInfo",
    "Disk",
    "DryRunConfig",
    "ExecutionResult",
    "GPUInfo",
    "GraphicsCard",
    "HardwareOptions",
    "InterfaceInfo",
    "Link",
    "LoggingConfig",
    "MemoryInfo",
    "PCIDevice",
    "PCIInfo",
    "Partition",
    "ProductInfo",
    "Route",
]
