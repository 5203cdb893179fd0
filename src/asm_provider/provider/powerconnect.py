"""Dell PowerConnect switch provider."""

from __future__ import annotations

from asm_provider.client.errors import ASMError
from asm_provider.model.server import ServerConfig, ServerInterface
from asm_provider.provider.switch import SwitchProvider
from asm_provider.vendor.dell.mappings import PORTCHANNEL_RANGE


class PowerconnectProvider(SwitchProvider):
    """Provider for ``dell_powerconnect`` rack switches."""

    def find_portchannel(self, server: ServerConfig, interface: ServerInterface) -> str:
        """Port channel for a teamed NIC, from the ``portchannelmap`` fact.

        Raises:
            ASMError: When every channel number is in use.
        """
        port = self.find_mac(interface.mac_address)
        channels: dict[str, list[str]] = dict(self.facts.get("portchannelmap") or {})
        for channel, members in channels.items():
            if list(members) == [port]:
                return channel.replace("Po", "")
        used = {channel.replace("Po", "") for channel in channels}
        for number in PORTCHANNEL_RANGE:
            if str(number) not in used:
                return str(number)
        raise ASMError("No portchannels available for LACP config")
