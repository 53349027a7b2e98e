"""
Network models — interface snapshots, kernel links, and routes.
"""

from __future__ import annotations

import socket
from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field


class AddressFamily(IntEnum):
    """Route family filter, same values as the kernel netlink families."""

    ALL = 0
    V4 = socket.AF_INET
    V6 = socket.AF_INET6


class InterfaceInfo(BaseModel):
    """Point-in-time description of one OS network interface."""

    model_config = ConfigDict(frozen=True)

    name: str
    index: int = 0
    mtu: int = 0
    hardware_addr: str = ""
    flags: list[str] = Field(default_factory=list)      # up, broadcast, loopback, ...
    addresses: list[str] = Field(default_factory=list)  # CIDR notation


class Link(BaseModel):
    """Kernel link handle, resolved by interface name."""

    model_config = ConfigDict(frozen=True)

    name: str
    index: int
    mtu: int = 0
    hardware_addr: str = ""
    oper_state: str = "unknown"
    flags: int = 0  # raw IFF_* bits


class Route(BaseModel):
    """One kernel routing table entry."""

    model_config = ConfigDict(frozen=True)

    family: AddressFamily
    interface: str
    link_index: int = 0
    dst: str | None = None      # None = default route
    gateway: str | None = None
    metric: int = 0
    flags: int = 0

    @property
    def is_default(self) -> bool:
        return self.dst is None
