"""
Network facade — interfaces, kernel links, and routes.

Interfaces are enumerated with psutil on every call (never cached) and
wrapped in NetworkInterface, which keeps a back-reference to the
dependency layer that produced it. Route lookups go back through that
layer: resolve the link by name, then list its routes.

Links come from /sys/class/net/<name>, routes from /proc/net/route
(IPv4) and /proc/net/ipv6_route (IPv6).
"""

from __future__ import annotations

import ipaddress
import logging
import os
import socket
import struct
from typing import TYPE_CHECKING

import psutil

from agentdeps.adapters.base import LinkNotFoundError, QueryError
from agentdeps.core.models.network import AddressFamily, InterfaceInfo, Link, Route

if TYPE_CHECKING:
    from agentdeps.adapters.base import Dependencies

logger = logging.getLogger(__name__)

SYS_CLASS_NET = "/sys/class/net"
PROC_NET = "/proc/net"

# Route flags (linux/route.h, linux/ipv6_route.h)
RTF_UP = 0x0001
RTF_GATEWAY = 0x0002
RTF_CACHE = 0x01000000
RTF_ANYCAST = 0x00100000
RTF_LOCAL = 0x80000000

_IPV6_SKIP_FLAGS = RTF_CACHE | RTF_ANYCAST | RTF_LOCAL
_IPV6_MULTICAST = ipaddress.IPv6Network("ff00::/8")


# ── Interface wrapper ───────────────────────────────────────────────


class NetworkInterface:
    """One network interface plus a handle back to its dependency layer.

    The back-reference is non-owning and only used to re-issue queries
    (routes, sysfs lookups). A NetworkInterface must not outlive the
    layer that produced it, and it is a snapshot: enumerate again to
    see changes.
    """

    def __init__(self, info: InterfaceInfo, dependencies: Dependencies):
        self._info = info
        self._dependencies = dependencies

    @property
    def info(self) -> InterfaceInfo:
        return self._info

    @property
    def name(self) -> str:
        return self._info.name

    @property
    def index(self) -> int:
        return self._info.index

    @property
    def mtu(self) -> int:
        return self._info.mtu

    @property
    def hardware_addr(self) -> str:
        return self._info.hardware_addr

    @property
    def flags(self) -> list[str]:
        return list(self._info.flags)

    def addrs(self) -> list[str]:
        """Addresses in CIDR notation."""
        return list(self._info.addresses)

    def routes(self, family: AddressFamily = AddressFamily.ALL) -> list[Route]:
        """Routes through this interface for *family*.

        Raises:
            LinkNotFoundError: if the interface vanished since enumeration.
        """
        link = self._dependencies.link_by_name(self.name)
        return self._dependencies.route_list(link, family)

    def is_physical(self) -> bool:
        """True when the sysfs entry points at a real device, not /virtual/."""
        try:
            target = self._dependencies.eval_symlinks(f"{SYS_CLASS_NET}/{self.name}")
        except OSError:
            return False
        return "/virtual/" not in target

    def is_bonding(self) -> bool:
        return self._exists(f"{SYS_CLASS_NET}/{self.name}/bonding")

    def is_vlan(self) -> bool:
        return self._exists(f"{PROC_NET}/vlan/{self.name}")

    def speed_mbps(self) -> int:
        """Negotiated link speed, or -1 when the kernel does not report one."""
        try:
            raw = self._dependencies.read_file(f"{SYS_CLASS_NET}/{self.name}/speed")
            return int(raw.decode().strip())
        except (OSError, ValueError):
            return -1

    def interface_type(self) -> str:
        """One of ``bond``, ``vlan``, ``physical``, ``virtual``."""
        if self.is_bonding():
            return "bond"
        if self.is_vlan():
            return "vlan"
        if self.is_physical():
            return "physical"
        return "virtual"

    def _exists(self, path: str) -> bool:
        try:
            self._dependencies.stat(path)
        except OSError:
            return False
        return True

    def __repr__(self) -> str:
        return f"<NetworkInterface name={self.name!r} index={self.index}>"


# ── Enumeration ─────────────────────────────────────────────────────


def _prefix_len(netmask: str) -> int:
    return bin(int(ipaddress.ip_address(netmask))).count("1")


def _to_cidr(address: str, netmask: str | None) -> str:
    address = address.split("%", 1)[0]  # drop IPv6 zone
    if not netmask:
        return address
    try:
        return f"{address}/{_prefix_len(netmask)}"
    except ValueError:
        return address


def list_interface_infos() -> list[InterfaceInfo]:
    """Snapshot every interface the process can see, ordered by index.

    Raises:
        QueryError: if the interface table cannot be read.
    """
    try:
        all_addrs = psutil.net_if_addrs()
        all_stats = psutil.net_if_stats()
    except (OSError, psutil.Error) as e:
        raise QueryError(f"Cannot enumerate network interfaces: {e}") from e

    infos: list[InterfaceInfo] = []
    for name, addrs in all_addrs.items():
        hardware_addr = ""
        addresses: list[str] = []
        for addr in addrs:
            if addr.family == psutil.AF_LINK:
                hardware_addr = addr.address
            elif addr.family in (socket.AF_INET, socket.AF_INET6):
                addresses.append(_to_cidr(addr.address, addr.netmask))

        stats = all_stats.get(name)
        try:
            index = socket.if_nametoindex(name)
        except OSError:
            index = 0  # gone already; routes() will report it

        infos.append(
            InterfaceInfo(
                name=name,
                index=index,
                mtu=stats.mtu if stats else 0,
                hardware_addr=hardware_addr,
                flags=[f for f in stats.flags.split(",") if f] if stats else [],
                addresses=addresses,
            )
        )

    infos.sort(key=lambda i: i.index)
    logger.debug("Enumerated %d interfaces", len(infos))
    return infos


# ── Links ───────────────────────────────────────────────────────────


def _read_attr(path: str) -> str | None:
    try:
        with open(path, encoding="utf-8") as f:
            return f.read().strip()
    except OSError:
        return None


def link_by_name(name: str, sys_class_net: str = SYS_CLASS_NET) -> Link:
    """Resolve the kernel link for interface *name* from sysfs.

    Raises:
        LinkNotFoundError: if no such interface exists.
    """
    base = os.path.join(sys_class_net, name)
    if not name or "/" in name or not os.path.isdir(base):
        raise LinkNotFoundError(name)

    index = _read_attr(os.path.join(base, "ifindex"))
    if index is None:
        raise LinkNotFoundError(name)

    mtu = _read_attr(os.path.join(base, "mtu"))
    flags = _read_attr(os.path.join(base, "flags"))
    return Link(
        name=name,
        index=int(index),
        mtu=int(mtu) if mtu else 0,
        hardware_addr=_read_attr(os.path.join(base, "address")) or "",
        oper_state=_read_attr(os.path.join(base, "operstate")) or "unknown",
        flags=int(flags, 16) if flags else 0,
    )


def _ifindex(name: str, sys_class_net: str) -> int:
    value = _read_attr(os.path.join(sys_class_net, name, "ifindex"))
    return int(value) if value else 0


# ── Routes ──────────────────────────────────────────────────────────


def _hex_to_ipv4(value: str) -> str:
    """Address in /proc/net/route hex form (host byte order) to dotted quad."""
    return socket.inet_ntoa(struct.pack("=L", int(value, 16)))


def parse_ipv4_routes(text: str) -> list[Route]:
    """Parse the contents of /proc/net/route."""
    routes: list[Route] = []
    for line in text.splitlines()[1:]:
        fields = line.split()
        if len(fields) < 8:
            continue
        iface, dest, gateway, flags, _refcnt, _use, metric, mask = fields[:8]
        dst_ip, mask_ip = _hex_to_ipv4(dest), _hex_to_ipv4(mask)
        prefix = _prefix_len(mask_ip)
        gw = int(gateway, 16)
        routes.append(
            Route(
                family=AddressFamily.V4,
                interface=iface,
                dst=None if prefix == 0 and dst_ip == "0.0.0.0" else f"{dst_ip}/{prefix}",
                gateway=_hex_to_ipv4(gateway) if gw else None,
                metric=int(metric),
                flags=int(flags, 16),
            )
        )
    return routes


def parse_ipv6_routes(text: str) -> list[Route]:
    """Parse the contents of /proc/net/ipv6_route.

    Local, cached, anycast, and multicast entries are skipped so the
    result matches the main routing table.
    """
    routes: list[Route] = []
    for line in text.splitlines():
        fields = line.split()
        if len(fields) < 10:
            continue
        dest, plen, _src, _splen, gateway, metric, _refcnt, _use, flags, iface = fields[:10]
        flag_bits = int(flags, 16)
        if flag_bits & _IPV6_SKIP_FLAGS:
            continue

        dst_ip = ipaddress.IPv6Address(bytes.fromhex(dest))
        prefix = int(plen, 16)
        dst_net = ipaddress.IPv6Network(f"{dst_ip}/{prefix}", strict=False)
        if dst_net.subnet_of(_IPV6_MULTICAST):
            continue

        gw_ip = ipaddress.IPv6Address(bytes.fromhex(gateway))
        routes.append(
            Route(
                family=AddressFamily.V6,
                interface=iface,
                dst=None if prefix == 0 and int(dst_ip) == 0 else str(dst_net),
                gateway=str(gw_ip) if int(gw_ip) else None,
                metric=int(metric, 16),
                flags=flag_bits,
            )
        )
    return routes


def _read_route_table(path: str) -> str:
    try:
        with open(path, encoding="utf-8") as f:
            return f.read()
    except FileNotFoundError:
        return ""  # address family disabled in this kernel
    except OSError as e:
        raise QueryError(f"Cannot read routing table {path}: {e}") from e


def route_list(
    link: Link | None,
    family: AddressFamily,
    proc_net: str = PROC_NET,
    sys_class_net: str = SYS_CLASS_NET,
) -> list[Route]:
    """List routes through *link* (every link if None) for *family*.

    A family with no routes yields an empty list.
    """
    routes: list[Route] = []
    if family in (AddressFamily.ALL, AddressFamily.V4):
        routes.extend(parse_ipv4_routes(_read_route_table(os.path.join(proc_net, "route"))))
    if family in (AddressFamily.ALL, AddressFamily.V6):
        routes.extend(parse_ipv6_routes(_read_route_table(os.path.join(proc_net, "ipv6_route"))))

    if link is not None:
        return [r.model_copy(update={"link_index": link.index}) for r in routes if r.interface == link.name]

    indexes: dict[str, int] = {}
    result = []
    for r in routes:
        if r.interface not in indexes:
            indexes[r.interface] = _ifindex(r.interface, sys_class_net)
        result.append(r.model_copy(update={"link_index": indexes[r.interface]}))
    return result
