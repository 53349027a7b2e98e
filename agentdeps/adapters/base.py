"""
Dependency layer base — the capability contract between probes and the host.

This defines the abstract interface every dependency implementation must
provide. Probes only talk to the host through this interface, never
directly to subprocess, the filesystem, psutil, or sysfs.

Two implementations exist:
    - SystemDependencies (adapters/system.py): the real host
    - MockDependencies (adapters/mock.py): in-memory canned data for tests

Failure contract:
    - execute / execute_privileged NEVER raise. Failures are data in
      the ExecutionResult.
    - Filesystem reads raise the native OSError subclasses.
    - Hostname, network, and hardware queries raise QueryError.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from agentdeps.core.models.execution import ExecutionResult
from agentdeps.core.models.hardware import (
    BlockInfo,
    ChassisInfo,
    GPUInfo,
    HardwareOptions,
    MemoryInfo,
    PCIInfo,
    ProductInfo,
)
from agentdeps.core.models.network import AddressFamily, Link, Route

if TYPE_CHECKING:
    from agentdeps.adapters.network import NetworkInterface


class QueryError(Exception):
    """Raised when a host query (identity, network, hardware) cannot complete."""


class LinkNotFoundError(QueryError):
    """Raised when no kernel link exists with the requested name."""

    def __init__(self, name: str):
        super().__init__(f"Link not found: {name}")
        self.name = name


class Dependencies(ABC):
    """Abstract capability surface consumed by every probe.

    To create a new implementation:
        1. Subclass Dependencies
        2. Implement every abstract method
        3. Hand the instance to the probe
    """

    # ── Execution ───────────────────────────────────────────────────

    @abstractmethod
    def execute(self, command: str, *args: str) -> ExecutionResult:
        """Run a program to completion and capture stdout, stderr, exit code."""

    @abstractmethod
    def execute_privileged(self, command: str, *args: str) -> ExecutionResult:
        """Same as execute, but elevated into the host namespaces."""

    # ── Filesystem ──────────────────────────────────────────────────

    @abstractmethod
    def read_file(self, path: str) -> bytes:
        """Full contents of a file."""

    @abstractmethod
    def stat(self, path: str) -> os.stat_result:
        """Stat a path, following symlinks."""

    @abstractmethod
    def read_dir(self, path: str) -> list[str]:
        """Sorted entry names of a directory."""

    @abstractmethod
    def abs_path(self, path: str) -> str:
        """Absolute form of a path."""

    @abstractmethod
    def eval_symlinks(self, path: str) -> str:
        """Path with every symlink resolved."""

    # ── Identity ────────────────────────────────────────────────────

    @abstractmethod
    def hostname(self) -> str:
        """The machine hostname (or the forced one under dry-run)."""

    # ── Network ─────────────────────────────────────────────────────

    @abstractmethod
    def interfaces(self) -> list[NetworkInterface]:
        """Fresh snapshot of every network interface visible right now."""

    @abstractmethod
    def link_by_name(self, name: str) -> Link:
        """Resolve the kernel link for an interface name.

        Raises:
            LinkNotFoundError: if the interface does not exist.
        """

    @abstractmethod
    def route_list(self, link: Link | None, family: AddressFamily) -> list[Route]:
        """Routes through *link* (all links if None) for *family*."""

    # ── Hardware ────────────────────────────────────────────────────

    @abstractmethod
    def block(self, options: HardwareOptions | None = None) -> BlockInfo:
        """Block devices and their partitions."""

    @abstractmethod
    def product(self, options: HardwareOptions | None = None) -> ProductInfo:
        """DMI product information."""

    @abstractmethod
    def gpu(self, options: HardwareOptions | None = None) -> GPUInfo:
        """Graphics cards."""

    @abstractmethod
    def memory(self, options: HardwareOptions | None = None) -> MemoryInfo:
        """Physical and usable memory."""

    @abstractmethod
    def chassis(self, options: HardwareOptions | None = None) -> ChassisInfo:
        """DMI chassis information."""

    @abstractmethod
    def pci(self, options: HardwareOptions | None = None) -> PCIInfo:
        """Devices on the PCI bus."""

    @property
    @abstractmethod
    def chroot_root(self) -> str:
        """Alternate root hardware queries resolve against ("" = live root)."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} chroot_root={self.chroot_root!r}>"
