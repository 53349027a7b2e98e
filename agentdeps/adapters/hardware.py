"""
Hardware facade — block, product, chassis, memory, PCI, and GPU inventory.

Everything is read from sysfs/procfs (and udev's database for disk
identity) under a filesystem root. The root is ``/`` for the live host,
or a chroot path to inspect a mounted image instead. Every path is
resolved under that root; nothing escapes it.

Missing attribute files are normal (VMs have no DMI serial, NVMe disks
have no vendor file, ...) and are reported as "unknown". A root that
does not exist raises QueryError, as does an unreadable /proc/meminfo.
"""

from __future__ import annotations

import logging
import os
import re

from agentdeps.adapters.base import QueryError
from agentdeps.adapters.pci_ids import PCIDatabase, load_pci_database
from agentdeps.core.models.hardware import (
    UNKNOWN,
    BlockInfo,
    ChassisInfo,
    Disk,
    GPUInfo,
    GraphicsCard,
    MemoryInfo,
    Partition,
    PCIDevice,
    PCIInfo,
    ProductInfo,
)

logger = logging.getLogger(__name__)

SECTOR_SIZE = 512

# SMBIOS 3.x chassis types
CHASSIS_TYPES = {
    "1": "Other",
    "2": "Unknown",
    "3": "Desktop",
    "4": "Low profile desktop",
    "5": "Pizza box",
    "6": "Mini tower",
    "7": "Tower",
    "8": "Portable",
    "9": "Laptop",
    "10": "Notebook",
    "11": "Hand held",
    "12": "Docking station",
    "13": "All in one",
    "14": "Sub notebook",
    "15": "Space-saving",
    "16": "Lunch box",
    "17": "Main server chassis",
    "18": "Expansion chassis",
    "19": "Sub chassis",
    "20": "Bus expansion chassis",
    "21": "Peripheral chassis",
    "22": "RAID chassis",
    "23": "Rack mount chassis",
    "24": "Sealed-case PC",
    "25": "Multi-system chassis",
    "26": "Compact PCI",
    "27": "Advanced TCA",
    "28": "Blade",
    "29": "Blade enclosure",
    "30": "Tablet",
    "31": "Convertible",
    "32": "Detachable",
    "33": "IoT gateway",
    "34": "Embedded PC",
    "35": "Mini PC",
    "36": "Stick PC",
}

# Kernel name prefix → storage controller
_CONTROLLERS = (
    ("nvme", "NVMe"),
    ("mmcblk", "MMC"),
    ("loop", "loop"),
    ("sd", "SCSI"),
    ("sr", "SCSI"),
    ("hd", "IDE"),
    ("vd", "virtio"),
    ("xvd", "Xen"),
)

_CARD_RE = re.compile(r"^card(\d+)$")


# ── Path helpers ────────────────────────────────────────────────────


def _path(root: str, path: str) -> str:
    """Resolve absolute *path* under *root*."""
    if not root or root == "/":
        return path
    return os.path.join(root, path.lstrip("/"))


def _check_root(root: str) -> None:
    if root and not os.path.isdir(root):
        raise QueryError(f"Hardware root does not exist: {root}")


def _read(path: str, default: str = UNKNOWN) -> str:
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            value = f.read().strip()
    except OSError:
        return default
    return value or default


def _read_int(path: str, default: int = 0, base: int = 10) -> int:
    raw = _read(path, "")
    try:
        return int(raw, base)
    except ValueError:
        return default


def _listdir(path: str) -> list[str]:
    try:
        return sorted(os.listdir(path))
    except OSError:
        return []


def _link_name(path: str) -> str:
    """Basename of a symlink target, or "" if *path* is not a link."""
    try:
        return os.path.basename(os.readlink(path))
    except OSError:
        return ""


def _hex_id(raw: str) -> str:
    if raw == UNKNOWN:
        return raw
    return raw.lower().removeprefix("0x")


# ── Block ───────────────────────────────────────────────────────────


def _udev_properties(root: str, dev: str) -> dict[str, str]:
    """``E:KEY=VALUE`` lines from /run/udev/data/b<major>:<minor>."""
    props: dict[str, str] = {}
    if dev == UNKNOWN:
        return props
    try:
        with open(_path(root, f"/run/udev/data/b{dev}"), encoding="utf-8", errors="replace") as f:
            for line in f:
                if line.startswith("E:") and "=" in line:
                    key, _, value = line[2:].rstrip("\n").partition("=")
                    props[key] = value
    except OSError:
        pass
    return props


def _mounts(root: str) -> dict[str, tuple[str, str]]:
    """Device path → (mount point, fs type) from /proc/mounts."""
    result: dict[str, tuple[str, str]] = {}
    try:
        with open(_path(root, "/proc/mounts"), encoding="utf-8", errors="replace") as f:
            for line in f:
                fields = line.split()
                if len(fields) >= 3 and fields[0] not in result:
                    result[fields[0]] = (fields[1], fields[2])
    except OSError:
        pass
    return result


def _controller(name: str) -> str:
    for prefix, controller in _CONTROLLERS:
        if name.startswith(prefix):
            return controller
    return UNKNOWN


def _drive_type(name: str, sys_dir: str) -> str:
    if name.startswith("sr"):
        return "ODD"
    if name.startswith("fd"):
        return "FDD"
    rotational = _read(os.path.join(sys_dir, "queue", "rotational"), "")
    if rotational == "1":
        return "HDD"
    if rotational == "0":
        return "SSD"
    return UNKNOWN


def _disk(root: str, name: str, mounts: dict[str, tuple[str, str]]) -> Disk:
    sys_dir = _path(root, f"/sys/block/{name}")
    udev = _udev_properties(root, _read(os.path.join(sys_dir, "dev")))

    partitions = []
    for entry in _listdir(sys_dir):
        part_dir = os.path.join(sys_dir, entry)
        if not os.path.exists(os.path.join(part_dir, "partition")):
            continue
        mount_point, fs_type = mounts.get(f"/dev/{entry}", ("", ""))
        partitions.append(
            Partition(
                name=entry,
                disk=name,
                size_bytes=_read_int(os.path.join(part_dir, "size")) * SECTOR_SIZE,
                mount_point=mount_point,
                fs_type=fs_type,
                read_only=_read(os.path.join(part_dir, "ro"), "0") == "1",
            )
        )

    device_dir = os.path.join(sys_dir, "device")
    return Disk(
        name=name,
        size_bytes=_read_int(os.path.join(sys_dir, "size")) * SECTOR_SIZE,
        physical_block_size_bytes=_read_int(os.path.join(sys_dir, "queue", "physical_block_size")),
        drive_type=_drive_type(name, sys_dir),
        storage_controller=_controller(name),
        is_removable=_read(os.path.join(sys_dir, "removable"), "0") == "1",
        bus_path=udev.get("ID_PATH", UNKNOWN),
        vendor=udev.get("ID_VENDOR") or _read(os.path.join(device_dir, "vendor")),
        model=udev.get("ID_MODEL") or _read(os.path.join(device_dir, "model")),
        serial_number=(
            udev.get("ID_SCSI_SERIAL")
            or udev.get("ID_SERIAL_SHORT")
            or _read(os.path.join(device_dir, "serial"))
        ),
        wwn=udev.get("ID_WWN") or _read(os.path.join(device_dir, "wwid")),
        partitions=partitions,
    )


def block_info(root: str = "/") -> BlockInfo:
    """Disks under /sys/block with their partitions.

    RAM disks and empty loop devices are skipped.
    """
    _check_root(root)
    mounts = _mounts(root)
    disks = []
    for name in _listdir(_path(root, "/sys/block")):
        if name.startswith(("ram", "zram")):
            continue
        disk = _disk(root, name, mounts)
        if name.startswith("loop") and disk.size_bytes == 0:
            continue
        disks.append(disk)

    logger.debug("Found %d disks under %s", len(disks), root)
    return BlockInfo(
        total_physical_bytes=sum(d.size_bytes for d in disks),
        disks=disks,
    )


# ── DMI ─────────────────────────────────────────────────────────────


def _dmi(root: str, attr: str) -> str:
    return _read(_path(root, f"/sys/class/dmi/id/{attr}"))


def product_info(root: str = "/") -> ProductInfo:
    """System product identity from DMI."""
    _check_root(root)
    return ProductInfo(
        name=_dmi(root, "product_name"),
        family=_dmi(root, "product_family"),
        serial_number=_dmi(root, "product_serial"),
        uuid=_dmi(root, "product_uuid"),
        sku=_dmi(root, "product_sku"),
        vendor=_dmi(root, "sys_vendor"),
        version=_dmi(root, "product_version"),
    )


def chassis_info(root: str = "/") -> ChassisInfo:
    """Chassis identity from DMI, with the SMBIOS type decoded."""
    _check_root(root)
    chassis_type = _dmi(root, "chassis_type")
    return ChassisInfo(
        asset_tag=_dmi(root, "chassis_asset_tag"),
        serial_number=_dmi(root, "chassis_serial"),
        type=chassis_type,
        type_description=CHASSIS_TYPES.get(chassis_type, UNKNOWN),
        vendor=_dmi(root, "chassis_vendor"),
        version=_dmi(root, "chassis_version"),
    )


# ── Memory ──────────────────────────────────────────────────────────


def _physical_memory(root: str) -> int:
    """Online memory blocks × block size, or 0 if sysfs has no memory blocks."""
    mem_dir = _path(root, "/sys/devices/system/memory")
    block_size = _read_int(os.path.join(mem_dir, "block_size_bytes"), base=16)
    if not block_size:
        return 0
    online = sum(
        1
        for entry in _listdir(mem_dir)
        if entry.startswith("memory") and _read(os.path.join(mem_dir, entry, "online"), "") == "1"
    )
    return online * block_size


def memory_info(root: str = "/") -> MemoryInfo:
    """Usable memory from /proc/meminfo, physical from sysfs memory blocks.

    Raises:
        QueryError: if /proc/meminfo cannot be read or has no MemTotal.
    """
    _check_root(root)
    meminfo = _path(root, "/proc/meminfo")
    try:
        with open(meminfo, encoding="utf-8") as f:
            text = f.read()
    except OSError as e:
        raise QueryError(f"Cannot read {meminfo}: {e}") from e

    match = re.search(r"^MemTotal:\s+(\d+)\s*kB", text, re.MULTILINE)
    if not match:
        raise QueryError(f"No MemTotal in {meminfo}")
    usable = int(match.group(1)) * 1024

    page_sizes = []
    for entry in _listdir(_path(root, "/sys/kernel/mm/hugepages")):
        size = re.fullmatch(r"hugepages-(\d+)kB", entry)
        if size:
            page_sizes.append(int(size.group(1)) * 1024)

    return MemoryInfo(
        total_physical_bytes=_physical_memory(root) or usable,
        total_usable_bytes=usable,
        supported_page_sizes=sorted(page_sizes),
    )


# ── PCI ─────────────────────────────────────────────────────────────


def _pci_device(dev_dir: str, address: str, db: PCIDatabase) -> PCIDevice:
    vendor_id = _hex_id(_read(os.path.join(dev_dir, "vendor")))
    product_id = _hex_id(_read(os.path.join(dev_dir, "device")))
    class_code = _hex_id(_read(os.path.join(dev_dir, "class")))
    class_id = class_code[:2] if class_code != UNKNOWN else UNKNOWN
    subclass_id = class_code[2:4] if class_code != UNKNOWN else UNKNOWN

    return PCIDevice(
        address=address,
        vendor_id=vendor_id,
        vendor_name=db.vendor_name(vendor_id) or UNKNOWN,
        product_id=product_id,
        product_name=db.product_name(vendor_id, product_id) or UNKNOWN,
        subsystem_vendor_id=_hex_id(_read(os.path.join(dev_dir, "subsystem_vendor"))),
        subsystem_id=_hex_id(_read(os.path.join(dev_dir, "subsystem_device"))),
        class_id=class_id,
        class_name=db.class_name(class_id) or UNKNOWN,
        subclass_id=subclass_id,
        subclass_name=db.subclass_name(class_id, subclass_id) or UNKNOWN,
        revision=_hex_id(_read(os.path.join(dev_dir, "revision"))),
        driver=_link_name(os.path.join(dev_dir, "driver")),
    )


def pci_info(root: str = "/", db: PCIDatabase | None = None) -> PCIInfo:
    """Every device under /sys/bus/pci/devices."""
    _check_root(root)
    if db is None:
        db = load_pci_database(root)
    devices_dir = _path(root, "/sys/bus/pci/devices")
    return PCIInfo(
        devices=[
            _pci_device(os.path.join(devices_dir, address), address, db)
            for address in _listdir(devices_dir)
        ]
    )


# ── GPU ─────────────────────────────────────────────────────────────


def gpu_info(root: str = "/") -> GPUInfo:
    """DRM cards (/sys/class/drm/cardN) matched to their PCI devices."""
    _check_root(root)
    drm_dir = _path(root, "/sys/class/drm")
    cards = []
    pci: PCIInfo | None = None

    for entry in _listdir(drm_dir):
        match = _CARD_RE.match(entry)
        if not match:
            continue  # connectors like card0-HDMI-A-1, renderD128
        address = _link_name(os.path.join(drm_dir, entry, "device"))
        if not address:
            continue
        if pci is None:
            pci = pci_info(root)
        cards.append(
            GraphicsCard(
                index=int(match.group(1)),
                address=address,
                device_info=pci.get_device(address),
            )
        )

    cards.sort(key=lambda c: c.index)
    return GPUInfo(graphics_cards=cards)
