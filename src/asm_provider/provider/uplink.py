"""Uplink, VLT and quad port configuration of Force10 blade I/O modules.

:class:`UplinkConfigurator` turns an immutable :class:`UplinkSettings`
into port channel, VLAN, quad mode and IOM mode resources on a
:class:`~asm_provider.provider.force10.Force10Provider`.  Values derived
once per cycle (the current IOM, its chassis siblings, the known networks)
live on an :class:`UplinkContext`.
"""

from __future__ import annotations

import dataclasses
import logging
import re
import warnings
from dataclasses import dataclass, field

from asm_provider.client.chassis import ChassisClient
from asm_provider.client.errors import ASMError, VltConfigurationError
from asm_provider.model.uplink import ChassisIom, Network, PortChannelDescriptor, Uplink, UplinkSettings, VltData
from asm_provider.provider.force10 import Force10Provider
from asm_provider.provider.family import SwitchFamily
from asm_provider.utils import quadport
from asm_provider.utils.normalize import long_interface_name
from asm_provider.utils.portchannel_diff import plan_portchannel_changes
from asm_provider.vendor.dell.mappings import DEFAULT_VLAN, FCOE_NETWORK_TYPE, PORTCHANNEL_RANGE

logger = logging.getLogger(__name__)

_FC_RE = re.compile(r"fc", re.IGNORECASE)
_FC_PREFIX_RE = re.compile(r"^fc", re.IGNORECASE)

_warn_stacklevel = 2


@dataclass
class UplinkContext:
    """Values derived once per configuration cycle.

    Attributes:
        networks: Networks known to the appliance.
        chassis_ioms: I/O modules of the switch's chassis; empty unless
            VLT needs them.
        iom: The chassis entry of the switch being configured.
    """

    networks: list[Network] = field(default_factory=list)
    chassis_ioms: list[ChassisIom] = field(default_factory=list)
    iom: ChassisIom | None = None

    def network_for_vlan(self, vlan_id: str | int) -> Network | None:
        wanted = int(vlan_id)
        return next((n for n in self.networks if n.vlan_id == wanted), None)


class UplinkConfigurator:
    """Configure uplinks of one Force10 I/O module.

    Args:
        switch: Provider of the switch being configured.
        settings: Requested uplink configuration.
        networks: Networks known to the appliance.
        chassis: Chassis inventory client, needed for VLT only.
    """

    def __init__(
        self,
        switch: Force10Provider,
        settings: UplinkSettings,
        networks: list[Network] | None = None,
        chassis: ChassisClient | None = None,
    ) -> None:
        self.switch = switch
        self.settings = settings
        self.networks = list(networks or [])
        self.chassis = chassis

    @classmethod
    def for_switch(
        cls,
        switch: Force10Provider,
        settings: UplinkSettings,
        networks: list[Network] | None = None,
    ) -> UplinkConfigurator:
        """Build a configurator, with a chassis client from the switch options when VLT is on."""
        chassis = ChassisClient.from_optional_args(switch.optional_args) if settings.vlt_mode else None
        return cls(switch, settings, networks, chassis)

    @property
    def certname(self) -> str:
        return self.switch.certname

    @property
    def uplinks(self) -> tuple[Uplink, ...] | None:
        return self.settings.uplinks

    def new_context(self) -> UplinkContext:
        """Build the context for one cycle, querying the chassis only for VLT."""
        context = UplinkContext(networks=list(self.networks))
        if self.settings.vlt_mode:
            if self.chassis is None:
                raise VltConfigurationError(f"No chassis inventory available to configure VLT on {self.certname}")
            service_tag = str(self.switch.facts.get("chassis_service_tag") or "")
            context.chassis_ioms = self.chassis.chassis_ioms(service_tag)
            management_ip = self.switch.facts.get("management_ip")
            context.iom = next((m for m in context.chassis_ioms if m.management_ip == management_ip), None)
        return context

    # ------------------------------------------------------------------
    # Orchestration
    # ------------------------------------------------------------------

    def configure_networking(self, context: UplinkContext | None = None) -> None:
        """Configure IOM mode, quad mode, port channels and VLANs, then apply.

        The IOM mode is applied on its own first.

        Raises:
            ASMError: When the switch is configured from a config file.
            VltConfigurationError: When VLT is requested without a reachable peer.
        """
        if self.settings.config_file:
            raise ASMError(
                f"Cannot configure networking when a config_file is set on {self.certname}"
            )
        context = context or self.new_context()

        logger.debug("Configuring iom_mode on %s", self.certname)
        vlt = self.vlt_data(context)
        self.switch.configure_iom_mode(self.pmux_mode(), self.ioa_ethernet_mode(context), vlt)

        self.configure_quadportmode()
        self.configure_port_channels(context)
        self.configure_vlans(context)
        self.initialize_ports()
        self.switch.process(skip_prepare=True)

    def vlt_data(self, context: UplinkContext) -> VltData | None:
        """Complete the requested VLT data with its derived peer values."""
        if not self.settings.vlt_mode or self.settings.vlt is None:
            return None
        unit_id, destination_ip = self.backup_link_ip_for_vlt(context)
        vlt = dataclasses.replace(
            self.settings.vlt,
            port_channel=str(self.vlt_port_channel()),
            unit_id=unit_id,
            destination_ip=destination_ip,
            model=self.switch.facts.model,
        )
        logger.debug("Port channel %s added to the vlt data on %s", vlt.port_channel, self.certname)
        return vlt

    def initialize_ports(self) -> None:
        try:
            self.switch.initialize_ports()
        except Exception as exc:
            logger.debug("Failed to initialize ports: %s: %s", type(exc).__name__, exc)

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------

    def pmux_mode(self) -> bool:
        """PMUX applies to IOAs with uplinks that are not in VLT mode."""
        if not self.uplinks:
            return False
        if self.settings.vlt_mode:
            return False
        return self.switch.family is SwitchFamily.BLADE_IOA

    def ioa_ethernet_mode(self, context: UplinkContext) -> bool:
        """Whether an FN 2210S IOA should run its FC ports as Ethernet.

        Raises:
            ASMError: When an uplink uses FC ports while carrying FCoE.
        """
        if not self.pmux_mode() or "2210" not in self.switch.model:
            return False
        uses_fc = False
        for uplink in self.uplinks or ():
            fc_interfaces = [p for p in uplink.port_members if _FC_PREFIX_RE.match(p)]
            if fc_interfaces and self.uplink_has_network_of_type(uplink, FCOE_NETWORK_TYPE, context):
                raise ASMError(
                    f"Invalid switch configuration for {self.certname}: FC interfaces "
                    f"{', '.join(fc_interfaces)} are in use by FCoE networks, cannot also "
                    f"use in uplinks for uplink {uplink.uplink_id}"
                )
            uses_fc = uses_fc or bool(fc_interfaces)
        return uses_fc

    def configure_quadportmode(self) -> None:
        if self.settings.quadportmode:
            if self.uplinks is not None:
                members: list[str] | None = [m for u in self.uplinks for m in u.port_members]
                logger.debug("Configuring quadmode on %s with members %s", self.certname, members)
            else:
                members = None
                logger.debug(
                    "Configuring quadmode on %s with members based on the quad_port_interfaces fact",
                    self.certname,
                )
            self.switch.configure_quadmode(members, True, True)
        else:
            logger.debug("Unconfiguring quadmode on %s", self.certname)
            self.switch.configure_quadmode(None, False, True)

    # ------------------------------------------------------------------
    # VLT
    # ------------------------------------------------------------------

    def vlt_port_channel(self) -> int:
        """Highest port channel number not used by any uplink."""
        used = {int(u.port_channel) for u in self.uplinks or ()}
        return max(n for n in PORTCHANNEL_RANGE if n not in used)

    def backup_link_ip_for_vlt(self, context: UplinkContext) -> tuple[str, str]:
        """Pick the VLT backup link peer among same model IOMs in adjacent slots.

        Returns:
            ``("1", ip)`` for the peer in the next slot, ``("0", ip)`` for
            the previous slot, whichever comes first by slot.

        Raises:
            VltConfigurationError: When no adjacent IOM has a management IP.
        """
        iom = context.iom
        if iom is not None:
            candidates = sorted(
                (m for m in context.chassis_ioms if m.model == iom.model),
                key=lambda m: m.slot,
            )
            for candidate in candidates:
                if not candidate.management_ip or candidate == iom:
                    continue
                if candidate.slot == iom.slot + 1:
                    return "1", candidate.management_ip
                if candidate.slot == iom.slot - 1:
                    return "0", candidate.management_ip
        raise VltConfigurationError(f"unable to find the device backuplinks for {self.certname}")

    # ------------------------------------------------------------------
    # Port channels
    # ------------------------------------------------------------------

    def member_interfaces(self, interfaces: list[str] | tuple[str, ...]) -> list[str]:
        """Expand 40G members into their 10G ports.

        With quad port mode on every ``Fo`` port is expanded; otherwise only
        ports the switch already runs quad grouped are.
        """
        if self.settings.quadportmode:
            return quadport.quadport_member_interfaces(interfaces)
        return quadport.nonquadport_member_interfaces(
            interfaces, self.switch.facts.quad_port_interfaces
        )

    def quadport_for_members(self, interfaces: list[str]) -> list[str]:
        return quadport.quadport_for_members(interfaces)

    def desired_port_channels(self, context: UplinkContext) -> dict[str, PortChannelDescriptor]:
        """Desired state of every uplink port channel, keyed by channel number."""
        channels: dict[str, PortChannelDescriptor] = {}
        for uplink in self.uplinks or ():
            fcoe = self.uplink_has_network_of_type(uplink, FCOE_NETWORK_TYPE, context)
            interfaces = self.member_interfaces(uplink.port_members)
            if not fcoe:
                interfaces = [_FC_RE.sub("Te", i) for i in interfaces]
            channels[uplink.port_channel] = PortChannelDescriptor(
                interfaces=sorted(long_interface_name(i) for i in interfaces),
                vlans=self.uplink_vlans(uplink, context),
                fcoe=fcoe,
            )
        return channels

    def configure_port_channels(self, context: UplinkContext) -> None:
        """Declare uplink port channels and their members, removing stale ones."""
        if self.uplinks is None:
            logger.debug(
                "Skipping port channel configuration on %s as no uplink configuration were provided",
                self.certname,
            )
            return

        logger.debug("Configuring port channels on %s", self.certname)
        desired = self.desired_port_channels(context)
        changes = plan_portchannel_changes(self.switch.portchannel_members, desired)

        for pc, members in changes.members.items():
            self.switch.portchannel_resource(pc, desired[pc].fcoe, False, self.settings.vlt_mode)
            for interface in members:
                logger.info("Adding interface %s to port channel %s on %s", interface, pc, self.certname)
                self.switch.mxl_interface_resource(interface, pc)
            for interface in changes.remove_members.get(pc, []):
                logger.info("Removing interface %s from port channel %s on %s", interface, pc, self.certname)
                self.switch.mxl_interface_resource(interface, "0")

        for pc in changes.remove_channels:
            logger.info("Removing unused port channel %s from %s", pc, self.certname)
            self.switch.portchannel_resource(pc, False, True)

    # ------------------------------------------------------------------
    # VLANs
    # ------------------------------------------------------------------

    def configure_vlans(self, context: UplinkContext) -> None:
        """Declare uplink VLANs and remove VLANs no uplink carries any more.

        Only MXL and PE-FN switches tag VLANs on port channels directly;
        other IOAs get an ``ioa_interface`` per port channel instead.  VLAN
        removal is MXL only and never touches VLAN 1.
        """
        logger.debug("Configuring vlans on %s", self.certname)
        model = self.switch.model
        desired = self.desired_port_channels(context)
        desired_vlans = sorted({v for settings in desired.values() for v in settings.vlans})
        current_vlans = list(self.switch.facts.vlan_information)

        for vlan in desired_vlans:
            port_channels = [pc for pc, settings in desired.items() if vlan in settings.vlans]
            logger.info(
                "Adding vlan %s with tagged port channels %s to %s", vlan, port_channels, self.certname
            )
            if "MXL" in model or "PE-FN" in model:
                tagged = port_channels
            else:
                tagged = []
            self.switch.mxl_vlan_resource(
                vlan, self.vlan_name(vlan, context), self.vlan_description(vlan, context), tagged
            )

        if "PE-FN" not in model:
            for pc in desired:
                self.switch.ioa_interface_resource("po %s" % pc, desired_vlans, [])
            logger.debug("Created IOA interface vlans for %s", self.certname)

        for vlan in current_vlans:
            if vlan in desired_vlans or vlan == DEFAULT_VLAN or "MXL" not in model:
                continue
            logger.info("Removing VLAN %s from %s", vlan, self.certname)
            self.switch.mxl_vlan_resource(vlan, "", "", [], True)

    def uplink_networks(self, uplink: Uplink, context: UplinkContext) -> list[Network]:
        """Networks carried by *uplink*; unknown network IDs are warned about and skipped."""
        networks = [n for n in context.networks if n.id in uplink.port_networks]
        known = {n.id for n in networks}
        unknown = [n for n in uplink.port_networks if n not in known]
        if unknown:
            warnings.warn(
                f"Uplink {uplink.uplink_id} on {self.certname} references unknown networks {unknown}",
                stacklevel=_warn_stacklevel,
            )
        return networks

    def uplink_vlans(self, uplink: Uplink, context: UplinkContext) -> list[str]:
        return [str(n.vlan_id) for n in self.uplink_networks(uplink, context)]

    def uplink_has_network_of_type(self, uplink: Uplink, network_type: str, context: UplinkContext) -> bool:
        wanted = network_type.lower()
        return any(n.type.lower() == wanted for n in self.uplink_networks(uplink, context))

    def vlan_name(self, vlan_id: str | int, context: UplinkContext) -> str | None:
        network = context.network_for_vlan(vlan_id)
        return network.name if network else None

    def vlan_description(self, vlan_id: str | int, context: UplinkContext) -> str | None:
        network = context.network_for_vlan(vlan_id)
        if network is None:
            return None
        return network.description or network.name
