"""Force10 blade I/O Aggregator creator.

IOAs take one combined ``ioa_interface`` resource per port carrying the
VLAN lists directly, plus a single switch wide ``ioa_mode`` resource.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, ClassVar

from asm_provider.client.errors import IomModeError, ResourceConflictError
from asm_provider.creator.force10_base import Force10Creator
from asm_provider.model.request import Action
from asm_provider.model.uplink import VltData
from asm_provider.utils.normalize import bool_str
from asm_provider.vendor.dell.mappings import DEFAULT_VLAN

logger = logging.getLogger(__name__)

_PE_FN_RE = re.compile(r"PE-FN")

_VLAN_LIST_PROPS = ("vlan_tagged", "vlan_untagged", "tagged_vlan", "untagged_vlan")


@dataclass
class _PortPlan:
    tagged: list[str] = field(default_factory=list)
    untagged: list[str] = field(default_factory=list)
    portchannel: str = ""
    mtu: str = ""


class Force10IoaCreator(Force10Creator):
    """Manage interface VLAN membership and I/O module mode on blade IOAs."""

    joins: ClassVar[dict[str, tuple[str, ...]]] = {
        "ioa_interface": _VLAN_LIST_PROPS,
        "force10_portchannel": _VLAN_LIST_PROPS,
    }

    @property
    def iom_mode(self) -> str | None:
        return self.facts.get("iom_mode")

    # ------------------------------------------------------------------
    # Mode
    # ------------------------------------------------------------------

    def configure_iom_mode(self, pmux: bool, ethernet_mode: bool, vlt_data: VltData | None = None) -> None:
        """Declare the ``ioa_mode`` resource for VLT, PMUX or full switch mode.

        VLT data wins over *pmux*.  PE-FN hardware uses ``fullswitch`` in
        place of either.  Nothing is declared when neither applies.

        Raises:
            ResourceConflictError: When an ``ioa_mode`` was already declared.
        """
        existing = self.resources.of_type("ioa_mode")
        if existing:
            raise ResourceConflictError("ioa_mode", next(iter(existing)), self.certname)

        if vlt_data is not None:
            mode = "fullswitch" if _PE_FN_RE.search(vlt_data.model) else "vlt"
            attributes: dict[str, Any] = {
                "iom_mode": mode,
                "ioa_ethernet_mode": "true",
                "ensure": "present",
                "port_channel": vlt_data.port_channel,
                "destination_ip": vlt_data.destination_ip,
                "unit_id": vlt_data.unit_id,
                "interface": vlt_data.interface,
            }
        elif pmux:
            mode = "fullswitch" if _PE_FN_RE.search(self.model) else "pmux"
            attributes = {
                "iom_mode": mode,
                "ensure": "present",
                "ioa_ethernet_mode": bool_str(ethernet_mode),
                "vlt": False,
            }
        else:
            return

        logger.info("Configuring %s in %s mode", self.certname, mode)
        self.declare("ioa_mode", mode, attributes)

    def validate_mode(self) -> None:
        """Reject port channels while the IOM runs in standalone mode.

        Raises:
            IomModeError: When teaming is requested on a standalone IOA.
        """
        if any(r.portchannel for r in self.requests) and self.iom_mode == "standalone":
            raise IomModeError(f"IOA {self.certname} cannot be in standalone mode for NIC teaming")

    def disable_autolag(self) -> None:
        self.resources.replace_type("ioa_autolag", {"ioa_autolag": {"ensure": "absent"}})

    # ------------------------------------------------------------------
    # Interfaces
    # ------------------------------------------------------------------

    def ioa_interface_resource(
        self, interface: str, tagged_vlans: list[str], untagged_vlans: list[str]
    ) -> None:
        """Declare an ``ioa_interface`` outside of the request log flow.

        Raises:
            ResourceConflictError: When the interface is already managed.
        """
        attributes: dict[str, Any] = {}
        if tagged_vlans:
            attributes["vlan_tagged"] = ",".join(str(v) for v in tagged_vlans)
        if untagged_vlans:
            attributes["vlan_untagged"] = ",".join(str(v) for v in untagged_vlans)
        attributes["switchport"] = True
        attributes["portmode"] = "hybrid"
        self.declare("ioa_interface", interface, attributes)

    def prepare(self, action: Action) -> bool:
        self.reset()
        self.validate_vlans()
        self.validate_mode()
        self.populate_interface_resources(action)
        return bool(self.resources)

    def populate_interface_resources(self, action: Action) -> None:
        """Declare the port channel (if any) and then the interface for every port used by *action*."""
        # ports keep the order of their first request of any action
        plans: dict[str, _PortPlan] = {}
        for interface in dict.fromkeys(r.interface for r in self.requests):
            configs = [r for r in self.requests_for(action) if r.interface == interface]
            if not configs:
                continue
            # the first request decides port channel and MTU
            plan = plans[interface] = _PortPlan(portchannel=configs[0].portchannel, mtu=configs[0].mtu)
            for request in configs:
                (plan.tagged if request.tagged else plan.untagged).append(request.vlan)

        for interface, plan in plans.items():
            if plan.portchannel:
                self._portchannel_resource(plan)
            self._interface_resource(interface, plan)

    def _interface_resource(self, name: str, plan: _PortPlan) -> None:
        attributes: dict[str, Any] = {"shutdown": "false", "mtu": plan.mtu}
        if plan.portchannel:
            attributes["portchannel"] = plan.portchannel
        else:
            attributes.update(
                {
                    "switchport": "true",
                    "portmode": "hybrid",
                    "vlan_tagged": list(plan.tagged),
                    "vlan_untagged": list(plan.untagged),
                }
            )
        self.declare("ioa_interface", name, attributes)

    def _portchannel_resource(self, plan: _PortPlan) -> None:
        self.declare(
            "force10_portchannel",
            plan.portchannel,
            {
                "switchport": "true",
                "portmode": "hybrid",
                "shutdown": "false",
                "tagged_vlan": list(plan.tagged),
                "untagged_vlan": list(plan.untagged),
                "ungroup": "true",
                "mtu": plan.mtu,
            },
        )

    def initialize_ports(self) -> None:
        """Reset every port of an Aggregator to VLAN 1 only.

        Declares the interface resources without applying them.  Other IOA
        models are left alone.
        """
        if "Aggregator" not in self.model:
            logger.debug("Skipping port initialization on %s (%s)", self.certname, self.model)
            return
        for port in self.port_names:
            self.configure_interface_vlan(port, DEFAULT_VLAN, False, True)
            self.configure_interface_vlan(port, DEFAULT_VLAN, True, True)
        self.populate_interface_resources("remove")
