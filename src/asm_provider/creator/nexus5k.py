"""Cisco Nexus 5000 rack switch creator."""

from __future__ import annotations

import logging
import re
from typing import Any, ClassVar

from asm_provider.client.errors import ASMError
from asm_provider.creator.base import Creator, SwitchInfo
from asm_provider.model.request import Action, VsanRequest, make_vsan_request
from asm_provider.model.resource import resource_ref

logger = logging.getLogger(__name__)

_FEX_INTERFACE_RE = re.compile(r"Eth(\d+)/(\d+)/(\d+)")
_DIGITS_RE = re.compile(r"\d+")


def fex_vfc_number(interface: str) -> int | None:
    """Return the vfc number of a FEX port (``Eth101/1/5`` is ``107``)."""
    match = _FEX_INTERFACE_RE.search(interface)
    if match is None:
        return None
    return sum(int(g) for g in match.groups())


class Nexus5kCreator(Creator):
    """Manage trunk VLANs and FCoE VSAN membership on Nexus 5k switches.

    Unlike the Dell creators nothing is chained through the sequencer.
    VLANs require the interface that first requested them and VSANs
    require their virtual Fibre Channel interface.
    """

    joins: ClassVar[dict[str, tuple[str, ...]]] = {
        "cisconexus5k_interface": ("*",),
        "cisconexus5k_vlan": ("*",),
        "cisconexus5k_vfc": ("*",),
    }

    def __init__(self, switch: SwitchInfo) -> None:
        super().__init__(switch)
        self.vsan_requests: list[VsanRequest] = []

    def configure_interface_vsan(self, interface: str, vsan: str | int, remove: bool = False) -> None:
        """Record that *interface* should (or should no longer) be a member of *vsan*.

        Raises:
            ValueError: If *interface* or *vsan* is empty.
        """
        self.vsan_requests.append(make_vsan_request(interface, vsan, remove))

    def prepare(self, action: Action) -> bool:
        self.reset()
        self.validate_vlans()
        self.populate_vlan_resources(action)
        self.populate_vsan_resources(action)
        return bool(self.resources)

    # ------------------------------------------------------------------
    # VLANs
    # ------------------------------------------------------------------

    def populate_vlan_resources(self, action: Action) -> None:
        requests = self.requests_for(action)
        for request in requests:
            tagged = [r.vlan for r in requests if r.interface == request.interface and r.tagged]
            untagged = [r.vlan for r in requests if r.interface == request.interface and not r.tagged]
            self.vlan_resource(request.interface, action, tagged, untagged)

    def vlan_resource(self, interface: str, action: Action, tagged: list[str], untagged: list[str]) -> None:
        """Declare the trunk interface and, when adding, every VLAN it carries."""
        attributes: dict[str, Any] = {
            "switchport_mode": "trunk",
            "shutdown": "false",
            "ensure": "present",
            "tagged_general_vlans": list(tagged),
            "untagged_general_vlans": list(untagged),
        }
        if action != "add":
            attributes["interfaceoperation"] = "remove"
        port, _ = self.resources.declare_or_get("cisconexus5k_interface", interface, attributes)

        if action != "add":
            return
        for vlan in tagged + untagged:
            resource, created = self.resources.declare_or_get(
                "cisconexus5k_vlan", vlan, {"ensure": "present"}
            )
            if created:
                self.resources.set_require(resource, port.ref)

    # ------------------------------------------------------------------
    # VSANs
    # ------------------------------------------------------------------

    def populate_vsan_resources(self, action: Action) -> None:
        """Declare one VSAN per zone used by *action* plus the vfc interfaces it binds.

        When a VSAN lists several interfaces the last one decides its
        membership.
        """
        requests = [r for r in self.vsan_requests if r.action == action]
        for vsan in sorted({r.vsan for r in requests}):
            membership = vfc = ""
            for request in (r for r in requests if r.vsan == vsan):
                number = fex_vfc_number(request.interface)
                if number is not None:
                    self.fex_feature_set()
                    self.fex_fcoe(number)
                    self.fex_vfc_resource(request.interface, number)
                    vfc = str(number)
                else:
                    digits = _DIGITS_RE.findall(request.interface)
                    if not digits:
                        raise ASMError("Cannot derive a vfc number from interface %s" % request.interface)
                    vfc = digits[-1]
                    self.vfc_resource(vfc, request.interface)
                membership = "vfc%s" % vfc
            self.vsan_resource(vsan, action, membership, vfc)

    def vfc_resource(self, vfc: str, interface: str) -> None:
        self.resources.declare_or_get(
            "cisconexus5k_vfc", vfc, {"bind_interface": interface, "shutdown": "false"}
        )

    def fex_feature_set(self) -> None:
        self.resources.declare_or_get(
            "cisconexus5k_featureset", "virtualization", {"feature": "virtualization"}
        )

    def fex_fcoe(self, vfc: int) -> None:
        fex, _ = self.resources.declare_or_get("cisconexus5k_fex", vfc, {"fcoe": "true"})
        self.resources.set_require(fex, resource_ref("cisconexus5k_featureset", "virtualization"))

    def fex_vfc_resource(self, interface: str, vfc: int) -> None:
        resource, _ = self.resources.declare_or_get(
            "cisconexus5k_vfc", vfc, {"bind_interface": interface.strip(), "shutdown": "false"}
        )
        self.resources.set_require(resource, resource_ref("cisconexus5k_fex", vfc))

    def vsan_resource(self, vsan: str, action: Action, membership: str, vfc: str) -> None:
        resource, created = self.resources.declare_or_get(
            "cisconexus5k_vsan",
            vsan,
            {"membership": membership, "membershipoperation": action},
        )
        if created:
            self.resources.set_require(resource, resource_ref("cisconexus5k_vfc", vfc))
