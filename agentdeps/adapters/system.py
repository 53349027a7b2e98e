"""
System dependencies — the production implementation of the capability interface.

Construction only stores the two inputs (dry-run configuration and the
hardware chroot root). Every method touches the host at call time, so
building one is cheap and tests can swap in MockDependencies without
changing any probe.
"""

from __future__ import annotations

import logging
import os
import socket

from agentdeps.adapters import hardware, network
from agentdeps.adapters.base import Dependencies, QueryError
from agentdeps.adapters.network import NetworkInterface
from agentdeps.adapters.shell import command, filesystem
from agentdeps.core.models.config import DryRunConfig
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

logger = logging.getLogger(__name__)


class SystemDependencies(Dependencies):
    """Talks to the real host: subprocess, filesystem, psutil, sysfs, procfs."""

    def __init__(self, dry_run_config: DryRunConfig | None = None, chroot_root: str = ""):
        self._dry_run_config = dry_run_config or DryRunConfig()
        self._chroot_root = chroot_root

    @property
    def chroot_root(self) -> str:
        return self._chroot_root

    @property
    def dry_run_config(self) -> DryRunConfig:
        return self._dry_run_config

    # ── Execution ───────────────────────────────────────────────────

    def execute(self, command_name: str, *args: str) -> ExecutionResult:
        return command.execute(command_name, *args)

    def execute_privileged(self, command_name: str, *args: str) -> ExecutionResult:
        return command.execute_privileged(command_name, *args)

    # ── Filesystem ──────────────────────────────────────────────────

    def read_file(self, path: str) -> bytes:
        return filesystem.read_file(path)

    def stat(self, path: str) -> os.stat_result:
        return filesystem.stat(path)

    def read_dir(self, path: str) -> list[str]:
        return filesystem.read_dir(path)

    def abs_path(self, path: str) -> str:
        return filesystem.abs_path(path)

    def eval_symlinks(self, path: str) -> str:
        return filesystem.eval_symlinks(path)

    # ── Identity ────────────────────────────────────────────────────

    def hostname(self) -> str:
        """Forced hostname under dry-run (the OS is not consulted), else the OS one."""
        if self._dry_run_config.enabled:
            return self._dry_run_config.forced_hostname
        try:
            return socket.gethostname()
        except OSError as e:
            raise QueryError(f"Cannot read hostname: {e}") from e

    # ── Network ─────────────────────────────────────────────────────

    def interfaces(self) -> list[NetworkInterface]:
        return [NetworkInterface(info, self) for info in network.list_interface_infos()]

    def link_by_name(self, name: str) -> Link:
        return network.link_by_name(name)

    def route_list(self, link: Link | None, family: AddressFamily) -> list[Route]:
        return network.route_list(link, family)

    # ── Hardware ────────────────────────────────────────────────────

    def _hardware_root(self, options: HardwareOptions | None) -> str:
        """An explicit option wins; otherwise the construction-time root."""
        if options is not None and options.chroot is not None:
            return options.chroot or "/"
        return self._chroot_root or "/"

    def block(self, options: HardwareOptions | None = None) -> BlockInfo:
        return hardware.block_info(self._hardware_root(options))

    def product(self, options: HardwareOptions | None = None) -> ProductInfo:
        return hardware.product_info(self._hardware_root(options))

    def gpu(self, options: HardwareOptions | None = None) -> GPUInfo:
        return hardware.gpu_info(self._hardware_root(options))

    def memory(self, options: HardwareOptions | None = None) -> MemoryInfo:
        return hardware.memory_info(self._hardware_root(options))

    def chassis(self, options: HardwareOptions | None = None) -> ChassisInfo:
        return hardware.chassis_info(self._hardware_root(options))

    def pci(self, options: HardwareOptions | None = None) -> PCIInfo:
        return hardware.pci_info(self._hardware_root(options))


def new_dependencies(dry_run_config: DryRunConfig, chroot_root: str = "") -> Dependencies:
    """Build the dependency layer for one process invocation."""
    logger.debug(
        "Dependencies: dry_run=%s chroot_root=%r", dry_run_config.enabled, chroot_root
    )
    return SystemDependencies(dry_run_config=dry_run_config, chroot_root=chroot_root)
