"""Build a :class:`SwitchFacts` snapshot from a NAPALM network driver."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from napalm.base.base import NetworkDriver

from asm_provider.model.facts import SwitchFacts

logger = logging.getLogger(__name__)


def _call(getter: Callable[[], Any], name: str, empty: Any) -> Any:
    try:
        return getter()
    except NotImplementedError:
        logger.debug("Driver does not implement %s, skipping", name)
        return empty


def facts_from_napalm(driver: NetworkDriver, extra: Mapping[str, Any] | None = None) -> SwitchFacts:
    """Collect the facts switch providers read from an open NAPALM driver.

    Getters the driver does not implement contribute nothing.

    Args:
        driver: An opened :class:`napalm.base.base.NetworkDriver`.
        extra: Facts merged over the collected ones, e.g. ``running_config``
            or ``quad_port_interfaces`` that NAPALM has no getter for.

    Returns:
        The fact snapshot.
    """
    facts: dict[str, Any] = {}

    device = _call(driver.get_facts, "get_facts", {})
    if device:
        facts["model"] = device.get("model", "")
        facts["hostname"] = device.get("hostname", "")
        facts["service_tag"] = device.get("serial_number", "")
        facts["os_version"] = device.get("os_version", "")

    interfaces = _call(driver.get_interfaces, "get_interfaces", {})
    if interfaces:
        facts["interfaces"] = sorted(interfaces)
    elif device:
        facts["interfaces"] = list(device.get("interface_list") or [])

    vlans = _call(driver.get_vlans, "get_vlans", {})
    if vlans:
        facts["vlan_information"] = {
            str(vlan_id): {"name": entry.get("name", ""), "interfaces": list(entry.get("interfaces") or [])}
            for vlan_id, entry in vlans.items()
        }

    mac_table = _call(driver.get_mac_address_table, "get_mac_address_table", [])
    if mac_table:
        facts["remote_device_info"] = [
            {"interface": entry.get("interface", ""), "remote_mac": str(entry.get("mac", "")).lower()}
            for entry in mac_table
            if entry.get("interface")
        ]

    facts.update(extra or {})
    logger.debug("Collected %d fact(s) from %s", len(facts), getattr(driver, "hostname", driver))
    return SwitchFacts(facts)
