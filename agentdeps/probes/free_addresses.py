"""
Free-addresses probe — find unused IPv4 addresses in one or more subnets.

The request is a JSON list of IPv4 CIDRs (a bare CIDR is accepted too).
Each network is ARP/ping-swept with nmap through the dependency layer;
every host address that did not answer is reported as free::

    [{"network": "192.168.1.0/24", "free_addresses": ["192.168.1.5", ...]}]

Networks larger than /22 are refused to keep a sweep bounded.
"""

from __future__ import annotations

import ipaddress
import json
import logging
import xml.etree.ElementTree as ET

from pydantic import BaseModel, Field

from agentdeps.adapters.base import Dependencies
from agentdeps.core.models.execution import ExecutionResult

MIN_PREFIX_LENGTH = 22
PROBE_FAILURE_EXIT_CODE = 1


class FreeNetworkAddresses(BaseModel):
    network: str
    free_addresses: list[str] = Field(default_factory=list)


class ProbeError(Exception):
    """Raised inside the probe; turned into a failed ExecutionResult."""


def parse_request(request: str) -> list[ipaddress.IPv4Network]:
    """Parse the request string into IPv4 networks.

    Raises:
        ProbeError: on malformed JSON, non-IPv4 or oversized networks.
    """
    text = request.strip()
    if text.startswith("["):
        try:
            cidrs = json.loads(text)
        except json.JSONDecodeError as e:
            raise ProbeError(f"Invalid free addresses request: {e}") from e
        if not isinstance(cidrs, list) or not all(isinstance(c, str) for c in cidrs):
            raise ProbeError("Free addresses request must be a list of CIDR strings")
    else:
        cidrs = [text]

    networks = []
    for cidr in cidrs:
        try:
            network = ipaddress.ip_network(cidr, strict=False)
        except ValueError as e:
            raise ProbeError(f"Invalid network {cidr!r}: {e}") from e
        if not isinstance(network, ipaddress.IPv4Network):
            raise ProbeError(f"Only IPv4 networks are supported: {cidr}")
        if network.prefixlen < MIN_PREFIX_LENGTH:
            raise ProbeError(
                f"Network {cidr} is too large, prefix length must be at least {MIN_PREFIX_LENGTH}"
            )
        networks.append(network)
    return networks


def parse_up_hosts(xml_text: str) -> set[str]:
    """IPv4 addresses nmap reported as up in its ``-oX`` output.

    Raises:
        ProbeError: if the XML cannot be parsed.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise ProbeError(f"Cannot parse nmap output: {e}") from e

    up: set[str] = set()
    for host in root.iter("host"):
        status = host.find("status")
        if status is None or status.get("state") != "up":
            continue
        for address in host.findall("address"):
            if address.get("addrtype") == "ipv4" and address.get("addr"):
                up.add(address.get("addr", ""))
    return up


def scan_network(
    network: ipaddress.IPv4Network,
    executer: Dependencies,
    log: logging.Logger,
) -> FreeNetworkAddresses:
    """Sweep one network and return the addresses nobody answered on."""
    cidr = str(network)
    log.info("Scanning %s for free addresses", cidr)
    stdout, stderr, exit_code = executer.execute(
        "nmap", "-sn", "-PR", "-n", "-oX", "-", cidr
    ).as_tuple()
    if exit_code != 0:
        raise ProbeError(f"nmap failed for {cidr} (exit {exit_code}): {stderr.strip()}")

    up = parse_up_hosts(stdout)
    free = [str(host) for host in network.hosts() if str(host) not in up]
    log.debug("%s: %d up, %d free", cidr, len(up), len(free))
    return FreeNetworkAddresses(network=cidr, free_addresses=free)


def get_free_addresses(
    request: str,
    executer: Dependencies,
    log: logging.Logger,
) -> ExecutionResult:
    """Run the probe. Never raises: failures come back as exit code 1."""
    try:
        networks = parse_request(request)
        results = [scan_network(network, executer, log) for network in networks]
    except ProbeError as e:
        log.debug("Free addresses request failed: %s", e)
        return ExecutionResult.failure(f"{e}\n", exit_code=PROBE_FAILURE_EXIT_CODE)

    return ExecutionResult.success(json.dumps([r.model_dump() for r in results]))
