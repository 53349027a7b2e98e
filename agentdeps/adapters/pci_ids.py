"""
PCI ID database — vendor, product, and class names from ``pci.ids``.

The file ships with pciutils/hwdata. Its layout is indentation based::

    8086  Intel Corporation
    <TAB>1237  440FX - 82441FX PMC [Natoma]
    C 03  Display controller
    <TAB>00  VGA compatible controller

Subsystem lines (two tabs) and programming interfaces are ignored.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

PCI_IDS_PATHS = (
    "/usr/share/hwdata/pci.ids",
    "/usr/share/misc/pci.ids",
    "/usr/share/pci.ids",
)


@dataclass
class PCIDatabase:
    """Lookup tables parsed from pci.ids. All ids are lowercase hex."""

    vendors: dict[str, str] = field(default_factory=dict)
    products: dict[tuple[str, str], str] = field(default_factory=dict)
    classes: dict[str, str] = field(default_factory=dict)
    subclasses: dict[tuple[str, str], str] = field(default_factory=dict)

    def vendor_name(self, vendor_id: str) -> str | None:
        return self.vendors.get(vendor_id)

    def product_name(self, vendor_id: str, product_id: str) -> str | None:
        return self.products.get((vendor_id, product_id))

    def class_name(self, class_id: str) -> str | None:
        return self.classes.get(class_id)

    def subclass_name(self, class_id: str, subclass_id: str) -> str | None:
        return self.subclasses.get((class_id, subclass_id))


def parse_pci_ids(text: str) -> PCIDatabase:
    """Parse pci.ids content into a PCIDatabase."""
    db = PCIDatabase()
    vendor: str | None = None
    klass: str | None = None

    for line in text.splitlines():
        if not line or line.startswith("#"):
            continue
        if line.startswith("\t\t"):
            continue

        if line.startswith("\t"):
            ident, _, name = line.strip().partition(" ")
            name = name.strip()
            if klass is not None:
                db.subclasses[(klass, ident.lower())] = name
            elif vendor is not None:
                db.products[(vendor, ident.lower())] = name
            continue

        if line.startswith("C "):
            ident, _, name = line[2:].partition(" ")
            klass, vendor = ident.lower(), None
            db.classes[klass] = name.strip()
            continue

        ident, _, name = line.partition(" ")
        if len(ident) != 4:
            # Other top-level sections (device classes done, "X" lists, ...)
            vendor = klass = None
            continue
        vendor, klass = ident.lower(), None
        db.vendors[vendor] = name.strip()

    return db


def load_pci_database(root: str = "/") -> PCIDatabase:
    """Load the first pci.ids found under *root*; empty if none is installed."""
    for candidate in PCI_IDS_PATHS:
        path = os.path.join(root, candidate.lstrip("/"))
        try:
            with open(path, encoding="utf-8", errors="replace") as f:
                text = f.read()
        except OSError:
            continue
        logger.debug("Loaded PCI ID database from %s", path)
        return parse_pci_ids(text)

    logger.debug("No pci.ids found under %s, PCI names will be unknown", root)
    return PCIDatabase()
