"""Normalization helpers for Dell interface names and VLAN lists."""

from __future__ import annotations

import re
from collections.abc import Iterable

from asm_provider.vendor.dell.mappings import (
    INTERFACE_LONG_NAMES,
    INTERFACE_SHORT_NAMES,
    NO_CLI_RANGE_MODELS,
)

_INTERFACE_RE = re.compile(r"^(?P<type>\S+)\s(?P<unit>\d+)/(?P<interface>\d+)$")
_UNIT_PORT_RE = re.compile(r"^\d+/\d+$")
_PORT_PREFIX_RE = re.compile(r"^(Te|Gi) ")


def parse_interface(interface: str) -> re.Match[str] | None:
    """Parse ``"Te 0/1"`` style names into ``type``, ``unit`` and ``interface`` groups."""
    return _INTERFACE_RE.match(interface)


def short_interface_name(interface: str) -> str:
    """Return *interface* with long prefixes replaced, ``TenGigabitEthernet 0/1`` -> ``Te 0/1``."""
    for long_name, short_name in INTERFACE_SHORT_NAMES.items():
        interface = interface.replace(long_name, short_name)
    return interface


def long_interface_name(interface: str) -> str:
    """Return *interface* with short prefixes expanded, ``Te 0/1`` -> ``TenGigabitEthernet 0/1``."""
    for short_name, long_name in INTERFACE_LONG_NAMES.items():
        interface = interface.replace(short_name + " ", long_name + " ")
    return interface


def port_number_from_name(name: str) -> str:
    """Strip the ``Te``/``Gi`` prefix from a port name, ``"Te 10"`` -> ``"10"``."""
    return _PORT_PREFIX_RE.sub("", name)


def ports_to_cli_ranges(ports: str, model: str = "") -> str:
    """Convert ``"0/1,0/2,1/4"`` into the CLI list form ``"0/1,2,1/4"``.

    Entries that are not of the ``unit/port`` form are dropped.  Some models
    do not accept the compact form and get *ports* back unchanged.
    """
    if model in NO_CLI_RANGE_MODELS:
        return ports
    units: dict[str, list[str]] = {}
    for port_def in ports.split(","):
        if not _UNIT_PORT_RE.match(port_def):
            continue
        unit, port = port_def.split("/")
        units.setdefault(unit, []).append(port)
    return ",".join("%s/%s" % (unit, ",".join(nums)) for unit, nums in units.items())


def join_vlans(vlans: Iterable[str | int]) -> str:
    """Return the sorted, de-duplicated, comma joined form of *vlans*.

    Sorting is lexical on the string form, matching how the resource types
    compare property values.
    """
    return ",".join(sorted({str(v) for v in vlans}))


def bool_str(value: bool) -> str:
    """Return ``"true"`` or ``"false"``, the boolean form resource properties accept."""
    return "true" if value else "false"
