"""
Hardware inventory models.

One info model per inventory domain (block, product, chassis, memory,
PCI, GPU), plus the option bag every hardware query accepts.
Attribute files that cannot be read are reported as ``"unknown"`` (or
``0`` for sizes), the same way an inventory tool would.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN = "unknown"


class HardwareOptions(BaseModel):
    """Named modifiers for a hardware query."""

    model_config = ConfigDict(frozen=True)

    chroot: str | None = None  # alternate filesystem root; None = use the layer's


# ── Block devices ───────────────────────────────────────────────────


class Partition(BaseModel):
    name: str
    disk: str
    size_bytes: int = 0
    mount_point: str = ""
    fs_type: str = ""
    read_only: bool = False


class Disk(BaseModel):
    name: str
    size_bytes: int = 0
    physical_block_size_bytes: int = 0
    drive_type: str = UNKNOWN           # HDD, SSD, ODD, FDD
    storage_controller: str = UNKNOWN   # SCSI, NVMe, virtio, MMC, IDE, loop
    is_removable: bool = False
    bus_path: str = UNKNOWN
    vendor: str = UNKNOWN
    model: str = UNKNOWN
    serial_number: str = UNKNOWN
    wwn: str = UNKNOWN
    partitions: list[Partition] = Field(default_factory=list)


class BlockInfo(BaseModel):
    total_physical_bytes: int = 0
    disks: list[Disk] = Field(default_factory=list)

    @property
    def partitions(self) -> list[Partition]:
        return [p for d in self.disks for p in d.partitions]


# ── DMI ─────────────────────────────────────────────────────────────


class ProductInfo(BaseModel):
    name: str = UNKNOWN
    family: str = UNKNOWN
    serial_number: str = UNKNOWN
    uuid: str = UNKNOWN
    sku: str = UNKNOWN
    vendor: str = UNKNOWN
    version: str = UNKNOWN


class ChassisInfo(BaseModel):
    asset_tag: str = UNKNOWN
    serial_number: str = UNKNOWN
    type: str = UNKNOWN               # raw SMBIOS chassis type number
    type_description: str = UNKNOWN
    vendor: str = UNKNOWN
    version: str = UNKNOWN


# ── Memory ──────────────────────────────────────────────────────────


class MemoryInfo(BaseModel):
    total_physical_bytes: int = 0
    total_usable_bytes: int = 0
    supported_page_sizes: list[int] = Field(default_factory=list)


# ── PCI / GPU ───────────────────────────────────────────────────────


class PCIDevice(BaseModel):
    address: str                       # domain:bus:device.function
    vendor_id: str = UNKNOWN
    vendor_name: str = UNKNOWN
    product_id: str = UNKNOWN
    product_name: str = UNKNOWN
    subsystem_vendor_id: str = UNKNOWN
    subsystem_id: str = UNKNOWN
    class_id: str = UNKNOWN
    class_name: str = UNKNOWN
    subclass_id: str = UNKNOWN
    subclass_name: str = UNKNOWN
    revision: str = UNKNOWN
    driver: str = ""


class PCIInfo(BaseModel):
    devices: list[PCIDevice] = Field(default_factory=list)

    def get_device(self, address: str) -> PCIDevice | None:
        """Look up a device by its PCI address."""
        for device in self.devices:
            if device.address == address:
                return device
        return None


class GraphicsCard(BaseModel):
    index: int
    address: str
    device_info: PCIDevice | None = None


class GPUInfo(BaseModel):
    graphics_cards: list[GraphicsCard] = Field(default_factory=list)
