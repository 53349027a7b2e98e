"""
Tests for the hardware facade — sysfs/procfs inventory under a chroot.
"""

import os
import textwrap
from pathlib import Path

import pytest

from agentdeps.adapters.base import QueryError
from agentdeps.adapters.hardware import (
    block_info,
    chassis_info,
    gpu_info,
    memory_info,
    pci_info,
    product_info,
)
from agentdeps.adapters.pci_ids import load_pci_database, parse_pci_ids
from agentdeps.adapters.system import SystemDependencies
from agentdeps.core.models.config import DryRunConfig
from agentdeps.core.models.hardware import UNKNOWN, HardwareOptions

PCI_IDS = textwrap.dedent("""\
    # pci.ids excerpt
    1af4  Red Hat, Inc.
    \t1000  Virtio network device
    \t\t1af4 0001  Virtio network device
    1234  Technical Corp.
    \t1111  QEMU Virtual Video Controller
    C 02  Network controller
    \t00  Ethernet controller
    C 03  Display controller
    \t00  VGA compatible controller
    \t\t00  VGA controller
""")


def _write(root: Path, path: str, content: str) -> None:
    target = root / path.lstrip("/")
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content)


def _symlink(root: Path, path: str, target: str) -> None:
    link = root / path.lstrip("/")
    link.parent.mkdir(parents=True, exist_ok=True)
    os.symlink(target, link)


def _pci_device(root: Path, address: str, vendor: str, device: str, klass: str, driver: str) -> None:
    base = f"/sys/bus/pci/devices/{address}"
    _write(root, f"{base}/vendor", f"0x{vendor}\n")
    _write(root, f"{base}/device", f"0x{device}\n")
    _write(root, f"{base}/class", f"0x{klass}\n")
    _write(root, f"{base}/subsystem_vendor", "0x1af4\n")
    _write(root, f"{base}/subsystem_device", "0x0001\n")
    _write(root, f"{base}/revision", "0x02\n")
    _symlink(root, f"{base}/driver", f"../../../bus/pci/drivers/{driver}")


@pytest.fixture
def host_root(tmp_path: Path) -> Path:
    """A minimal fake host filesystem."""
    root = tmp_path / "host"

    # Block: one virtio disk with two partitions, an empty loop, a ram disk
    _write(root, "/sys/block/vda/size", "41943040\n")  # 20 GiB
    _write(root, "/sys/block/vda/dev", "252:0\n")
    _write(root, "/sys/block/vda/removable", "0\n")
    _write(root, "/sys/block/vda/queue/rotational", "1\n")
    _write(root, "/sys/block/vda/queue/physical_block_size", "512\n")
    _write(root, "/sys/block/vda/device/vendor", "0x1af4\n")
    _write(root, "/sys/block/vda/vda1/partition", "1\n")
    _write(root, "/sys/block/vda/vda1/size", "2048\n")
    _write(root, "/sys/block/vda/vda1/ro", "0\n")
    _write(root, "/sys/block/vda/vda2/partition", "2\n")
    _write(root, "/sys/block/vda/vda2/size", "41938944\n")
    _write(root, "/sys/block/vda/vda2/ro", "0\n")
    _write(root, "/sys/block/loop0/size", "0\n")
    _write(root, "/sys/block/ram0/size", "8192\n")
    _write(root, "/sys/block/nvme0n1/size", "2000409264\n")
    _write(root, "/sys/block/nvme0n1/dev", "259:0\n")
    _write(root, "/sys/block/nvme0n1/queue/rotational", "0\n")
    _write(root, "/sys/block/nvme0n1/device/model", "Samsung SSD 970\n")
    _write(root, "/sys/block/nvme0n1/device/serial", "S4EWNX0N\n")
    _write(
        root,
        "/run/udev/data/b259:0",
        "S:disk/by-id/nvme-eui.0025\nE:ID_PATH=pci-0000:03:00.0-nvme-1\nE:ID_WWN=eui.0025388b\n",
    )
    _write(root, "/proc/mounts", "/dev/vda2 / xfs rw,relatime 0 0\nproc /proc proc rw 0 0\n")

    # DMI
    for attr, value in {
        "product_name": "KVM",
        "product_family": "Virtual Machine",
        "product_serial": "ABC123",
        "product_uuid": "5b3e9b2a-0000-4000-8000-000000000001",
        "sys_vendor": "Red Hat",
        "product_version": "RHEL 9",
        "chassis_type": "17",
        "chassis_vendor": "QEMU",
        "chassis_serial": "CH-1",
        "chassis_asset_tag": "asset-7",
    }.items():
        _write(root, f"/sys/class/dmi/id/{attr}", f"{value}\n")

    # Memory: 4 GiB usable, 2 online 2 GiB blocks + 1 offline
    _write(root, "/proc/meminfo", "MemTotal:        4000000 kB\nMemFree:  1000 kB\n")
    _write(root, "/sys/devices/system/memory/block_size_bytes", "80000000\n")
    _write(root, "/sys/devices/system/memory/memory0/online", "1\n")
    _write(root, "/sys/devices/system/memory/memory1/online", "1\n")
    _write(root, "/sys/devices/system/memory/memory2/online", "0\n")
    (root / "sys/kernel/mm/hugepages/hugepages-2048kB").mkdir(parents=True)
    (root / "sys/kernel/mm/hugepages/hugepages-1048576kB").mkdir(parents=True)

    # PCI + GPU
    _pci_device(root, "0000:00:02.0", "1234", "1111", "030000", "bochs-drm")
    _pci_device(root, "0000:00:03.0", "1af4", "1000", "020000", "virtio-pci")
    _write(root, "/usr/share/hwdata/pci.ids", PCI_IDS)
    _symlink(root, "/sys/class/drm/card0/device", "../../../0000:00:02.0")
    (root / "sys/class/drm/card0-Virtual-1").mkdir(parents=True)
    (root / "sys/class/drm/renderD128").mkdir(parents=True)

    return root


# ── pci.ids ──────────────────────────────────────────────────────────


class TestPCIDatabase:
    def test_vendors_and_products(self):
        db = parse_pci_ids(PCI_IDS)
        assert db.vendor_name("1af4") == "Red Hat, Inc."
        assert db.product_name("1af4", "1000") == "Virtio network device"
        assert db.product_name("1234", "1111") == "QEMU Virtual Video Controller"

    def test_classes(self):
        db = parse_pci_ids(PCI_IDS)
        assert db.class_name("03") == "Display controller"
        assert db.subclass_name("03", "00") == "VGA compatible controller"
        assert db.subclass_name("02", "00") == "Ethernet controller"

    def test_subsystem_lines_ignored(self):
        db = parse_pci_ids(PCI_IDS)
        assert ("1af4", "0001") not in db.products

    def test_missing_database_is_empty(self, tmp_path):
        db = load_pci_database(str(tmp_path))
        assert db.vendors == {}


# ── Block ────────────────────────────────────────────────────────────


class TestBlock:
    def test_disks(self, host_root):
        info = block_info(str(host_root))
        assert [d.name for d in info.disks] == ["nvme0n1", "vda"]

    def test_virtio_disk(self, host_root):
        vda = block_info(str(host_root)).disks[1]
        assert vda.size_bytes == 20 * 1024**3
        assert vda.drive_type == "HDD"
        assert vda.storage_controller == "virtio"
        assert vda.physical_block_size_bytes == 512
        assert vda.vendor == "0x1af4"
        assert vda.serial_number == UNKNOWN
        assert not vda.is_removable

    def test_partitions_and_mounts(self, host_root):
        vda = block_info(str(host_root)).disks[1]
        assert [p.name for p in vda.partitions] == ["vda1", "vda2"]
        root_part = vda.partitions[1]
        assert root_part.mount_point == "/"
        assert root_part.fs_type == "xfs"
        assert vda.partitions[0].mount_point == ""
        assert vda.partitions[0].size_bytes == 2048 * 512

    def test_udev_identity(self, host_root):
        nvme = block_info(str(host_root)).disks[0]
        assert nvme.storage_controller == "NVMe"
        assert nvme.drive_type == "SSD"
        assert nvme.bus_path == "pci-0000:03:00.0-nvme-1"
        assert nvme.wwn == "eui.0025388b"
        assert nvme.model == "Samsung SSD 970"
        assert nvme.serial_number == "S4EWNX0N"

    def test_total(self, host_root):
        info = block_info(str(host_root))
        assert info.total_physical_bytes == sum(d.size_bytes for d in info.disks)
        assert len(info.partitions) == 2

    def test_no_block_dir(self, tmp_path):
        assert block_info(str(tmp_path)).disks == []


# ── DMI ──────────────────────────────────────────────────────────────


class TestDMI:
    def test_product(self, host_root):
        product = product_info(str(host_root))
        assert product.name == "KVM"
        assert product.family == "Virtual Machine"
        assert product.vendor == "Red Hat"
        assert product.uuid.startswith("5b3e9b2a")
        assert product.sku == UNKNOWN

    def test_chassis(self, host_root):
        chassis = chassis_info(str(host_root))
        assert chassis.type == "17"
        assert chassis.type_description == "Main server chassis"
        assert chassis.vendor == "QEMU"
        assert chassis.asset_tag == "asset-7"
        assert chassis.version == UNKNOWN

    def test_missing_dmi_is_unknown(self, tmp_path):
        assert product_info(str(tmp_path)).name == UNKNOWN
        assert chassis_info(str(tmp_path)).type_description == UNKNOWN


# ── Memory ───────────────────────────────────────────────────────────


class TestMemory:
    def test_usable_and_physical(self, host_root):
        mem = memory_info(str(host_root))
        assert mem.total_usable_bytes == 4000000 * 1024
        assert mem.total_physical_bytes == 2 * 0x80000000

    def test_page_sizes(self, host_root):
        assert memory_info(str(host_root)).supported_page_sizes == [2 * 1024**2, 1024**3]

    def test_physical_falls_back_to_usable(self, tmp_path):
        _write(tmp_path, "/proc/meminfo", "MemTotal: 1024 kB\n")
        mem = memory_info(str(tmp_path))
        assert mem.total_physical_bytes == mem.total_usable_bytes == 1024 * 1024

    def test_missing_meminfo(self, tmp_path):
        with pytest.raises(QueryError, match="meminfo"):
            memory_info(str(tmp_path))

    def test_meminfo_without_total(self, tmp_path):
        _write(tmp_path, "/proc/meminfo", "MemFree: 12 kB\n")
        with pytest.raises(QueryError, match="MemTotal"):
            memory_info(str(tmp_path))


# ── PCI / GPU ────────────────────────────────────────────────────────


class TestPCI:
    def test_devices(self, host_root):
        info = pci_info(str(host_root))
        assert [d.address for d in info.devices] == ["0000:00:02.0", "0000:00:03.0"]

    def test_names_and_ids(self, host_root):
        nic = pci_info(str(host_root)).get_device("0000:00:03.0")
        assert nic is not None
        assert nic.vendor_id == "1af4"
        assert nic.vendor_name == "Red Hat, Inc."
        assert nic.product_name == "Virtio network device"
        assert nic.class_id == "02"
        assert nic.class_name == "Network controller"
        assert nic.subclass_name == "Ethernet controller"
        assert nic.revision == "02"
        assert nic.driver == "virtio-pci"

    def test_unknown_without_database(self, host_root):
        (host_root / "usr/share/hwdata/pci.ids").unlink()
        nic = pci_info(str(host_root)).get_device("0000:00:03.0")
        assert nic.vendor_id == "1af4"
        assert nic.vendor_name == UNKNOWN


class TestGPU:
    def test_cards(self, host_root):
        cards = gpu_info(str(host_root)).graphics_cards
        assert len(cards) == 1
        assert cards[0].index == 0
        assert cards[0].address == "0000:00:02.0"
        assert cards[0].device_info.product_name == "QEMU Virtual Video Controller"

    def test_no_drm(self, tmp_path):
        assert gpu_info(str(tmp_path)).graphics_cards == []


# ── Chroot through the dependency layer ──────────────────────────────


class TestChroot:
    def test_construction_root_applies_to_every_domain(self, host_root):
        deps = SystemDependencies(DryRunConfig(), chroot_root=str(host_root))
        assert deps.chroot_root == str(host_root)
        assert deps.product().name == "KVM"
        assert deps.chassis().vendor == "QEMU"
        assert deps.memory().total_usable_bytes == 4000000 * 1024
        assert len(deps.block().disks) == 2
        assert len(deps.pci().devices) == 2
        assert len(deps.gpu().graphics_cards) == 1

    def test_explicit_option_wins(self, host_root, tmp_path):
        other = tmp_path / "other"
        _write(other, "/sys/class/dmi/id/product_name", "Other Box\n")
        deps = SystemDependencies(DryRunConfig(), chroot_root=str(host_root))
        assert deps.product(HardwareOptions(chroot=str(other))).name == "Other Box"
        assert deps.product().name == "KVM"

    def test_missing_root(self, tmp_path):
        deps = SystemDependencies(DryRunConfig(), chroot_root=str(tmp_path / "nope"))
        for query in (deps.block, deps.product, deps.gpu, deps.memory, deps.chassis, deps.pci):
            with pytest.raises(QueryError, match="does not exist"):
                query()
