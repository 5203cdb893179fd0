"""Resource creation shared by the Force10 rack and blade switch creators."""

from __future__ import annotations

import copy
import logging
from typing import Any, ClassVar

from asm_provider.creator.base import Creator
from asm_provider.model.request import DEFAULT_MTU, Action, InterfaceRequest
from asm_provider.model.resource import ResourceSet, resource_ref
from asm_provider.model.uplink import VltData
from asm_provider.utils.normalize import (
    bool_str,
    join_vlans,
    port_number_from_name,
    ports_to_cli_ranges,
)
from asm_provider.vendor.dell.mappings import (
    FULL_PORT_COUNT,
    REDUCED_PORT_COUNT,
    VLAN_DESCRIPTION,
)

logger = logging.getLogger(__name__)

_FULL_PORT_MODELS = ("MXL", "Aggregator")


class Force10Creator(Creator):
    """Base for Force10 creators.

    Rack style creators (top of rack and MXL) manage one interface resource
    per port plus one VLAN resource per VLAN.  :attr:`vlan_type` and
    :attr:`portchannel_type` name the resource types those use.
    """

    vlan_type: ClassVar[str] = "force10_vlan"
    portchannel_type: ClassVar[str] = "mxl_portchannel"

    # ------------------------------------------------------------------
    # Direct resource declarations
    # ------------------------------------------------------------------

    def portchannel_resource(
        self,
        number: str | int,
        fcoe: bool = False,
        remove: bool = False,
        vlt_peer: bool = False,
        ungroup: bool = False,
        mtu: str = DEFAULT_MTU,
    ) -> None:
        """Declare an ``mxl_portchannel`` resource chained to the sequence.

        Raises:
            ResourceConflictError: When the port channel is already managed.
        """
        self.declare(
            "mxl_portchannel",
            number,
            {
                "ensure": "absent" if remove else "present",
                "switchport": "true",
                "portmode": "hybrid",
                "shutdown": "false",
                "mtu": mtu,
                "fip_snooping_fcf": bool_str(fcoe),
                "vltpeer": bool_str(vlt_peer),
                "ungroup": bool_str(ungroup),
            },
        )

    def ioa_interface_resource(
        self, interface: str, tagged_vlans: list[str], untagged_vlans: list[str]
    ) -> None:
        logger.warning("Creating ioa_interface resources is unsupported on %s", self.certname)

    def mxl_interface_resource(self, interface: str, port_channel: str | int | None = None) -> None:
        """Declare an ``mxl_interface`` resource, optionally placing it in *port_channel*."""
        attributes: dict[str, Any] = {"shutdown": "false"}
        if port_channel is not None:
            attributes["portchannel"] = str(port_channel)
        self.declare("mxl_interface", interface, attributes)

    def mxl_vlan_resource(
        self,
        vlan: str | int,
        name: str | None,
        description: str | None,
        port_channels: list[str] | None,
        remove: bool = False,
    ) -> None:
        """Declare an ``mxl_vlan`` resource.

        Args:
            vlan: VLAN ID.
            name: VLAN name, ignored when removing.
            description: VLAN description, ignored when removing.
            port_channels: Port channels that carry the VLAN tagged.
            remove: Declare the VLAN absent.
        """
        attributes: dict[str, Any] = {"ensure": "absent" if remove else "present"}
        if not remove:
            attributes.update({"vlan_name": name, "desc": description, "shutdown": "false"})
            if port_channels:
                attributes["tagged_portchannel"] = join_vlans(port_channels)
        self.declare("mxl_vlan", vlan, attributes)

    def configure_quadmode(
        self, interfaces: list[str] | None, enable: bool, reboot: bool = True
    ) -> None:
        logger.debug("Configuring quadmode is not supported on %s", self.certname)

    def configure_iom_mode(self, pmux: bool, ethernet_mode: bool, vlt_data: VltData | None = None) -> None:
        logger.debug("Configuring iom mode is not supported on %s", self.certname)

    def configure_force10_settings(self, settings: dict[str, Any]) -> None:
        """Pass *settings* through verbatim as one ``force10_settings`` resource."""
        self.resources.replace_type("force10_settings", {self.certname: copy.deepcopy(settings)})

    # ------------------------------------------------------------------
    # Port helpers
    # ------------------------------------------------------------------

    @property
    def port_count(self) -> int:
        if any(m in self.model for m in _FULL_PORT_MODELS):
            return FULL_PORT_COUNT
        return REDUCED_PORT_COUNT

    @property
    def port_names(self) -> list[str]:
        """Names of every 10G port on unit 0."""
        return ["Te 0/%d" % i for i in range(1, self.port_count + 1)]

    def port_number_from_name(self, name: str) -> str:
        return port_number_from_name(name)

    def ports_to_cli_ranges(self, ports: str) -> str:
        return ports_to_cli_ranges(ports, self.model)

    # ------------------------------------------------------------------
    # Rack style materialization
    # ------------------------------------------------------------------

    def populate_port_resources(self, action: Action) -> None:
        """Declare port channels, then one ``force10_interface`` per port used by *action*.

        Port channels are declared for every channel in the request log,
        whatever the action.  Port channel members carry a ``portchannel``
        attribute and do not advance the sequence.
        """
        channels: list[str] = []
        for request in self.requests:
            if request.portchannel and request.portchannel not in channels:
                channels.append(request.portchannel)
        for channel in channels:
            mtu = next(r.mtu for r in self.requests if r.portchannel == channel)
            self.portchannel_resource(channel, False, False, False, True, mtu)

        for request in self.requests_for(action):
            port, created = self.resources.declare_or_get(
                "force10_interface",
                request.interface,
                {
                    "shutdown": "false",
                    "mtu": request.mtu,
                    "protocol": "lldp",
                    "ensure": "present",
                    "tagged_vlan": [],
                    "untagged_vlan": [],
                },
            )
            if created:
                self.sequencer.chain(port, advance=False)

            if request.portchannel:
                port["portchannel"] = request.portchannel
                continue

            key = "tagged_vlan" if request.tagged else "untagged_vlan"
            port[key].append(request.vlan)
            port.attributes.update(
                {
                    "switchport": "true",
                    "portmode": "hybrid",
                    "portfast": "portfast",
                    "edge_port": "pvst,mstp,rstp",
                }
            )
            self.sequencer.advance(port)

    def populate_vlan_resources(self, action: Action) -> None:
        """Declare one VLAN resource per VLAN used by *action*.

        Nothing is declared for the remove pass, so VLANs (and VLAN 1 in
        particular) are never removed from the switch by server teardown.
        """
        if action == "remove":
            return
        vlan_info: dict[str, InterfaceRequest] = {}
        for request in self.requests_for(action):
            vlan_info[request.vlan] = request
        for vlan, request in vlan_info.items():
            self.vlan_resource(vlan, request)

    def vlan_resource(self, vlan: str, request: InterfaceRequest) -> None:
        """Declare (or extend) the VLAN resource for *vlan*.

        The VLAN is ordered before every interface requesting it and after
        every port channel those interfaces belong to.
        """
        resource, created = self.resources.declare_or_get(
            self.vlan_type,
            vlan,
            {"vlan_name": "VLAN_%s" % vlan, "desc": VLAN_DESCRIPTION},
        )
        if created:
            resource.before_style = "list"
            if request.portchannel:
                key = "tagged_portchannel" if request.tagged else "untagged_portchannel"
                resource[key] = request.portchannel

        for r in self.requests:
            if r.vlan != vlan:
                continue
            ResourceSet.add_before(resource, resource_ref("force10_interface", r.interface))
            if r.portchannel:
                ResourceSet.add_require(
                    resource, resource_ref(self.portchannel_type, r.portchannel), style="list"
                )
