"""Dell Force10 (FTOS) switch provider for rack, IOA and MXL switches."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from asm_provider.client.errors import ASMError
from asm_provider.model.request import DEFAULT_MTU
from asm_provider.model.server import ServerConfig, ServerInterface
from asm_provider.model.uplink import VltData
from asm_provider.provider.family import SwitchFamily
from asm_provider.provider.switch import SwitchProvider
from asm_provider.utils.normalize import long_interface_name
from asm_provider.vendor.dell.mappings import PORTCHANNEL_RANGE

logger = logging.getLogger(__name__)


class Force10Provider(SwitchProvider):
    """Provider for ``dell_ftos`` and ``dell_iom`` switches."""

    @property
    def rack_switch(self) -> bool:
        return self.family is SwitchFamily.FORCE10_RACK

    @property
    def blade_switch(self) -> bool:
        return self.family.blade

    @property
    def portchannel_members(self) -> dict[str, list[str]]:
        return self.facts.portchannel_members

    # ------------------------------------------------------------------
    # Direct resource declarations
    # ------------------------------------------------------------------

    def ioa_interface_resource(self, interface: str, tagged_vlans: list[str], untagged_vlans: list[str]) -> None:
        self.resource_creator.ioa_interface_resource(interface, tagged_vlans, untagged_vlans)

    def portchannel_resource(
        self,
        number: str | int,
        fcoe: bool = False,
        remove: bool = False,
        vlt_peer: bool = False,
        ungroup: bool = False,
        mtu: str = DEFAULT_MTU,
    ) -> None:
        self.resource_creator.portchannel_resource(number, fcoe, remove, vlt_peer, ungroup, mtu)

    def mxl_vlan_resource(
        self,
        vlan: str | int,
        name: str | None,
        description: str | None,
        port_channels: list[str] | None,
        remove: bool = False,
    ) -> None:
        self.resource_creator.mxl_vlan_resource(vlan, name, description, port_channels, remove)

    def mxl_interface_resource(self, interface: str, port_channel: str | int | None = None) -> None:
        self.resource_creator.mxl_interface_resource(
            interface.replace("TenGigabitEthernet", "Te"), port_channel
        )

    def configure_quadmode(self, interfaces: list[str] | None, enable: bool, reboot: bool = True) -> None:
        self.resource_creator.configure_quadmode(interfaces, enable, reboot)

    def initialize_ports(self) -> None:
        self.resource_creator.initialize_ports()

    def disable_autolag(self) -> None:
        self.resource_creator.disable_autolag()

    # ------------------------------------------------------------------
    # Immediately applied operations
    # ------------------------------------------------------------------

    def configure_iom_mode(self, pmux: bool, ethernet_mode: bool, vlt_data: VltData | None = None) -> None:
        """Declare the IOM mode and apply it together with anything already declared."""
        self.resource_creator.configure_iom_mode(pmux, ethernet_mode, vlt_data)
        self.process(skip_prepare=True)

    def configure_force10_settings(self, settings: Mapping[str, Any] | None) -> None:
        """Apply *settings* on a fresh creator.

        Raises:
            ASMError: When *settings* is missing or empty.
        """
        if not isinstance(settings, Mapping) or not settings:
            raise ASMError(f"Received invalid force10_settings for {self.certname}: {settings!r}")
        self.new_resource_creator().configure_force10_settings(dict(settings))
        self.process(skip_prepare=True)

    # ------------------------------------------------------------------
    # Teaming
    # ------------------------------------------------------------------

    def find_portchannel(self, server: ServerConfig, interface: ServerInterface) -> str:
        """Port channel for a teamed NIC.

        Reuses a channel whose only member is the NIC's port, else picks
        the lowest unused channel number.

        Raises:
            ASMError: When every channel number is in use.
        """
        port = self.find_mac(interface.mac_address) or ""
        port_full = long_interface_name(port)
        members = self.portchannel_members
        for channel, channel_members in members.items():
            if channel_members == [port_full]:
                return channel
        for number in PORTCHANNEL_RANGE:
            if str(number) not in members:
                return str(number)
        raise ASMError("No portchannels available for LACP config")
