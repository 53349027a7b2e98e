"""
Inventory probe — a JSON document of host facts.

Collected exclusively through the dependency layer, so the same probe
runs against the real host, a chroot, or MockDependencies. A section
whose query fails is reported as ``{"error": "..."}`` and the rest of
the document is still produced.

The target selects sections as a comma-separated list; empty means all.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any

from agentdeps.adapters.base import Dependencies, QueryError
from agentdeps.core.models.execution import ExecutionResult
from agentdeps.core.models.network import AddressFamily

PROBE_FAILURE_EXIT_CODE = 1


def _interfaces(deps: Dependencies, log: logging.Logger) -> list[dict[str, Any]]:
    result = []
    for iface in deps.interfaces():
        entry: dict[str, Any] = iface.info.model_dump()
        entry["type"] = iface.interface_type()
        entry["speed_mbps"] = iface.speed_mbps()
        try:
            entry["routes"] = [
                r.model_dump(mode="json") for r in iface.routes(AddressFamily.ALL)
            ]
        except QueryError as e:
            # Interface vanished after enumeration; siblings are unaffected
            log.info("Routes unavailable for %s: %s", iface.name, e)
            entry["routes"] = {"error": str(e)}
        result.append(entry)
    return result


SECTIONS: dict[str, Callable[[Dependencies, logging.Logger], Any]] = {
    "hostname": lambda deps, log: deps.hostname(),
    "interfaces": _interfaces,
    "block": lambda deps, log: deps.block().model_dump(),
    "memory": lambda deps, log: deps.memory().model_dump(),
    "product": lambda deps, log: deps.product().model_dump(),
    "chassis": lambda deps, log: deps.chassis().model_dump(),
    "pci": lambda deps, log: deps.pci().model_dump(),
    "gpu": lambda deps, log: deps.gpu().model_dump(),
}


def collect_inventory(
    request: str,
    executer: Dependencies,
    log: logging.Logger,
) -> ExecutionResult:
    """Run the probe. Unknown section names fail with exit code 1."""
    wanted = [s.strip() for s in request.split(",") if s.strip()] or list(SECTIONS)
    unknown = [s for s in wanted if s not in SECTIONS]
    if unknown:
        return ExecutionResult.failure(
            f"Unknown inventory sections: {', '.join(unknown)}. "
            f"Valid: {', '.join(SECTIONS)}\n",
            exit_code=PROBE_FAILURE_EXIT_CODE,
        )

    document: dict[str, Any] = {}
    for name in wanted:
        try:
            document[name] = SECTIONS[name](executer, log)
        except (QueryError, OSError) as e:
            log.warning("Inventory section %s failed: %s", name, e)
            document[name] = {"error": str(e)}

    return ExecutionResult.success(json.dumps(document, indent=2) + "\n")
