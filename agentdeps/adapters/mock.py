"""
Mock dependencies — in-memory test double for the capability interface.

Used by tests (and anything that wants to run a probe without a host)
to simulate the dependency layer. Every query returns canned data;
every call is recorded so tests can assert on what a probe asked for.
"""

from __future__ import annotations

import os
from typing import Any

from agentdeps.adapters.base import Dependencies, LinkNotFoundError
from agentdeps.adapters.network import NetworkInterface
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
from agentdeps.core.models.network import AddressFamily, InterfaceInfo, Link, Route


class MockDependencies(Dependencies):
    """Canned-data implementation of Dependencies.

    By default commands succeed with empty output, the filesystem is
    empty, and hardware queries return empty info models. Configure
    responses with the ``set_*`` / ``add_*`` helpers.
    """

    def __init__(
        self,
        hostname: str = "mock-host",
        chroot_root: str = "",
        default_result: ExecutionResult | None = None,
    ):
        self._hostname = hostname
        self._chroot_root = chroot_root
        self._default_result = default_result or ExecutionResult.success()
        self._results: dict[tuple[str, ...], ExecutionResult] = {}
        self._files: dict[str, bytes] = {}
        self._symlinks: dict[str, str] = {}
        self._interfaces: list[InterfaceInfo] = []
        self._routes: list[Route] = []
        self._hardware: dict[str, Any] = {
            "block": BlockInfo(),
            "product": ProductInfo(),
            "gpu": GPUInfo(),
            "memory": MemoryInfo(),
            "chassis": ChassisInfo(),
            "pci": PCIInfo(),
        }
        self._failures: dict[str, Exception] = {}
        self._call_log: list[tuple[str, tuple[Any, ...]]] = []

    @property
    def call_log(self) -> list[tuple[str, tuple[Any, ...]]]:
        """Every (method, args) pair this mock has received."""
        return self._call_log

    def calls(self, method: str) -> list[tuple[Any, ...]]:
        """Arguments of every call to *method*."""
        return [args for name, args in self._call_log if name == method]

    @property
    def chroot_root(self) -> str:
        return self._chroot_root

    # ── Configuration ───────────────────────────────────────────────

    def set_result(self, argv: list[str] | tuple[str, ...], result: ExecutionResult) -> None:
        """Return *result* when exactly *argv* is executed."""
        self._results[tuple(argv)] = result

    def set_file(self, path: str, content: bytes | str) -> None:
        self._files[path] = content.encode() if isinstance(content, str) else content

    def set_symlink(self, path: str, target: str) -> None:
        self._symlinks[path] = target

    def add_interface(self, info: InterfaceInfo) -> None:
        self._interfaces.append(info)

    def remove_interface(self, name: str) -> None:
        """Make an interface vanish, as if it was unplugged."""
        self._interfaces = [i for i in self._interfaces if i.name != name]

    def add_route(self, route: Route) -> None:
        self._routes.append(route)

    def set_hardware(self, domain: str, info: Any) -> None:
        """Set the info model returned by a hardware query (block, pci, ...)."""
        if domain not in self._hardware:
            raise ValueError(f"Unknown hardware domain: {domain}")
        self._hardware[domain] = info

    def set_failure(self, method: str, error: Exception) -> None:
        """Make *method* raise *error* on every call."""
        self._failures[method] = error

    def reset(self) -> None:
        """Clear the call log and configured failures."""
        self._call_log.clear()
        self._failures.clear()

    def _record(self, method: str, *args: Any) -> None:
        self._call_log.append((method, args))
        if method in self._failures:
            raise self._failures[method]

    # ── Execution ───────────────────────────────────────────────────

    def execute(self, command: str, *args: str) -> ExecutionResult:
        self._record("execute", command, *args)
        return self._results.get((command, *args), self._default_result)

    def execute_privileged(self, command: str, *args: str) -> ExecutionResult:
        self._record("execute_privileged", command, *args)
        return self._results.get((command, *args), self._default_result)

    # ── Filesystem ──────────────────────────────────────────────────

    def read_file(self, path: str) -> bytes:
        self._record("read_file", path)
        if path not in self._files:
            raise FileNotFoundError(2, "No such file or directory", path)
        return self._files[path]

    def stat(self, path: str) -> os.stat_result:
        self._record("stat", path)
        if path in self._files:
            size = len(self._files[path])
            return os.stat_result((0o100644, 0, 0, 1, 0, 0, size, 0, 0, 0))
        if any(p.startswith(path.rstrip("/") + "/") for p in self._files):
            return os.stat_result((0o040755, 0, 0, 2, 0, 0, 0, 0, 0, 0))
        raise FileNotFoundError(2, "No such file or directory", path)

    def read_dir(self, path: str) -> list[str]:
        self._record("read_dir", path)
        prefix = path.rstrip("/") + "/"
        names = {p[len(prefix):].split("/", 1)[0] for p in self._files if p.startswith(prefix)}
        if not names:
            raise FileNotFoundError(2, "No such file or directory", path)
        return sorted(names)

    def abs_path(self, path: str) -> str:
        self._record("abs_path", path)
        return os.path.normpath(os.path.join("/", path))

    def eval_symlinks(self, path: str) -> str:
        self._record("eval_symlinks", path)
        if path in self._symlinks:
            return self._symlinks[path]
        if path in self._files:
            return path
        raise FileNotFoundError(2, "No such file or directory", path)

    # ── Identity ────────────────────────────────────────────────────

    def hostname(self) -> str:
        self._record("hostname")
        return self._hostname

    # ── Network ─────────────────────────────────────────────────────

    def interfaces(self) -> list[NetworkInterface]:
        self._record("interfaces")
        return [NetworkInterface(info, self) for info in self._interfaces]

    def link_by_name(self, name: str) -> Link:
        self._record("link_by_name", name)
        for info in self._interfaces:
            if info.name == name:
                return Link(name=name, index=info.index, mtu=info.mtu, hardware_addr=info.hardware_addr)
        raise LinkNotFoundError(name)

    def route_list(self, link: Link | None, family: AddressFamily) -> list[Route]:
        self._record("route_list", link, family)
        return [
            r
            for r in self._routes
            if (link is None or r.interface == link.name)
            and (family == AddressFamily.ALL or r.family == family)
        ]

    # ── Hardware ────────────────────────────────────────────────────

    def _query(self, domain: str, options: HardwareOptions | None) -> Any:
        self._record(domain, options)
        return self._hardware[domain]

    def block(self, options: HardwareOptions | None = None) -> BlockInfo:
        return self._query("block", options)

    def product(self, options: HardwareOptions | None = None) -> ProductInfo:
        return self._query("product", options)

    def gpu(self, options: HardwareOptions | None = None) -> GPUInfo:
        return self._query("gpu", options)

    def memory(self, options: HardwareOptions | None = None) -> MemoryInfo:
        return self._query("memory", options)

    def chassis(self, options: HardwareOptions | None = None) -> ChassisInfo:
        return self._query("chassis", options)

    def pci(self, options: HardwareOptions | None = None) -> PCIInfo:
        return self._query("pci", options)
