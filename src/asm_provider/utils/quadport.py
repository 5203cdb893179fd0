"""Quad port (1x40G <-> 4x10G) interface grouping rules.

By convention 40G port ``Fo u/N`` splits into ``Te u/N`` .. ``Te u/N+3``
where ``N % 4 == 1``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from asm_provider.utils.normalize import parse_interface
from asm_provider.vendor.dell.mappings import QUAD_GROUP_COUNT, QUAD_GROUP_SIZE

_FORTY_GB_RE = re.compile(r"^fo", re.IGNORECASE)


def forty_gb_interface(interface: str) -> bool:
    """Return ``True`` when *interface* names a 40G port."""
    return bool(_FORTY_GB_RE.match(interface))


def _as_list(interfaces: Iterable[str] | str) -> list[str]:
    return [interfaces] if isinstance(interfaces, str) else list(interfaces)


def quadport_member_interfaces(interfaces: Iterable[str] | str) -> list[str]:
    """Expand every ``Fo`` port into its four ``Te`` members.

    Non ``Fo`` ports are kept verbatim; unparseable names are dropped.

    Returns:
        Sorted, de-duplicated member interface names.
    """
    members: set[str] = set()
    for interface in _as_list(interfaces):
        parsed = parse_interface(interface)
        if parsed is None:
            continue
        if parsed["type"] == "Fo":
            start = int(parsed["interface"])
            members.update(
                "Te %s/%s" % (parsed["unit"], n) for n in range(start, start + QUAD_GROUP_SIZE)
            )
        else:
            members.add(interface)
    return sorted(members)


def nonquadport_member_interfaces(
    interfaces: Iterable[str] | str,
    quad_port_interfaces: Iterable[str],
) -> list[str]:
    """Expand ``Fo`` ports only when the switch already reports them as quad grouped.

    Args:
        interfaces: Requested member interfaces.
        quad_port_interfaces: Port numbers the switch currently runs in quad mode.
    """
    grouped = {str(q) for q in quad_port_interfaces}
    members: set[str] = set()
    for interface in _as_list(interfaces):
        parsed = parse_interface(interface)
        if parsed is None:
            continue
        if parsed["type"] == "Fo" and parsed["interface"] in grouped:
            members.update(quadport_member_interfaces(interface))
        else:
            members.add(interface)
    return sorted(members)


def quadport_for_members(interfaces: Iterable[str] | str) -> list[str]:
    """Return the ``Fo`` ports the given 10G member ports belong to.

    ``Te 0/33`` .. ``Te 0/36`` all map to ``Fo 0/33``.
    """
    quads: set[str] = set()
    for interface in _as_list(interfaces):
        parsed = parse_interface(interface)
        if parsed is None:
            continue
        number = int(parsed["interface"])
        if number < 1 or number > QUAD_GROUP_COUNT * QUAD_GROUP_SIZE:
            continue
        start = ((number - 1) // QUAD_GROUP_SIZE) * QUAD_GROUP_SIZE + 1
        quads.add("Fo %s/%s" % (parsed["unit"], start))
    return sorted(quads)
