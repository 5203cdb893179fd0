"""Dell PowerConnect rack switch creator."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, ClassVar

from asm_provider.creator.base import Creator
from asm_provider.model.request import Action
from asm_provider.model.resource import ResourceSet

logger = logging.getLogger(__name__)

_GENERAL_VLAN_PROPS = ("tagged_general_vlans", "untagged_general_vlans", "remove_general_vlans")


@dataclass
class _PortPlan:
    action: Action
    portchannel: str
    tagged: list[str] = field(default_factory=list)
    untagged: list[str] = field(default_factory=list)

    @property
    def vlans(self) -> list[str]:
        return self.tagged + self.untagged


class PowerconnectCreator(Creator):
    """Manage general mode VLAN membership on PowerConnect switches.

    Every port becomes one ``powerconnect_interface``.  Teamed ports are
    added to (or removed from) a ``powerconnect_portchannel`` that carries
    the VLANs instead.  VLANs are declared present and never removed.
    """

    joins: ClassVar[dict[str, tuple[str, ...]]] = {
        "powerconnect_vlan": _GENERAL_VLAN_PROPS,
        "powerconnect_interface": _GENERAL_VLAN_PROPS,
        "powerconnect_portchannel": _GENERAL_VLAN_PROPS,
    }

    def prepare(self, action: Action) -> bool:
        self.reset()
        self.validate_vlans()
        self.populate_resources(action)
        return bool(self.resources)

    def populate_resources(self, action: Action) -> None:
        """Declare the resources for every port used by *action*.

        Plain ports are declared before their VLANs.  Teamed ports declare
        the port channel, then the VLANs, then the member interface.
        """
        plans: dict[str, _PortPlan] = {}
        for interface in dict.fromkeys(r.interface for r in self.requests):
            configs = [r for r in self.requests_for(action) if r.interface == interface]
            if not configs:
                continue
            plan = plans[interface] = _PortPlan(action, configs[0].portchannel)
            for request in configs:
                (plan.tagged if request.tagged else plan.untagged).append(request.vlan)

        for interface, plan in plans.items():
            if plan.portchannel:
                self.populate_portchannel_resource(plan)
                self.vlan_resources(plan.vlans)
                self.interface_resource(interface, plan)
            else:
                self.interface_resource(interface, plan)
                self.vlan_resources(plan.vlans)

    def interface_resource(self, name: str, plan: _PortPlan) -> None:
        attributes: dict[str, Any] = {"shutdown": "false"}
        if not plan.portchannel:
            attributes.update(
                {
                    "switchport_mode": "general",
                    "portfast": "true",
                    "tagged_general_vlans": list(plan.tagged),
                    "untagged_general_vlans": list(plan.untagged),
                }
            )
        elif plan.action == "add":
            attributes["add_interface_to_portchannel"] = plan.portchannel
        else:
            attributes["remove_interface_from_portchannel"] = plan.portchannel
        self.declare("powerconnect_interface", name, attributes)

    def vlan_resources(self, vlans: list[str]) -> None:
        """Declare each VLAN present, ordered before the current sequence.

        A VLAN keeps the ``before`` it was first declared with; it is
        ``None`` when nothing was sequenced yet.
        """
        for vlan in vlans:
            resource, created = self.resources.declare_or_get(
                "powerconnect_vlan", vlan, {"ensure": "present"}
            )
            if not created:
                continue
            resource.before_style = "scalar"
            if self.sequence is not None:
                ResourceSet.add_before(resource, self.sequence)

    def populate_portchannel_resource(self, plan: _PortPlan) -> None:
        attributes: dict[str, Any] = {"shutdown": "false", "switchport_mode": "general"}
        if plan.action == "add":
            attributes["tagged_general_vlans"] = list(plan.tagged)
            attributes["untagged_general_vlans"] = list(plan.untagged)
        else:
            attributes["remove_general_vlans"] = plan.vlans
        # team members share one channel; the last member's VLANs win and
        # the channel keeps the place in the chain of its first member
        resource, created = self.resources.declare_or_get(
            "powerconnect_portchannel", plan.portchannel, attributes
        )
        if created:
            self.sequencer.chain(resource)
        else:
            resource.attributes = attributes
