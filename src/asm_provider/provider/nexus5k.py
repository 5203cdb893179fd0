"""Cisco Nexus 5000 switch provider."""

from __future__ import annotations

import logging
import re
from typing import cast

from asm_provider.creator.nexus5k import Nexus5kCreator
from asm_provider.model.server import ServerConfig, ServerInterface
from asm_provider.provider.switch import SwitchProvider

logger = logging.getLogger(__name__)

_MAC_RE = re.compile(r"^[0-9a-f]{2}([-:])[0-9a-f]{2}(\1[0-9a-f]{2}){4}$")
_WWPN_RE = re.compile(r"^[0-9a-f]{2}([-:])[0-9a-f]{2}(\1[0-9a-f]{2}){6}$")


class Nexus5kProvider(SwitchProvider):
    """Provider for ``cisconexus5k`` rack switches.

    Ports are plain trunks; LACP teams are never configured.  FCoE servers
    additionally get their port bound into the VSANs of their volumes.
    """

    @property
    def resource_creator(self) -> Nexus5kCreator:
        return cast(Nexus5kCreator, super().resource_creator)

    def find_mac(self, mac: str) -> str | None:
        """Look up a MAC address, or a WWPN in the FLOGI table."""
        if _MAC_RE.match(mac.lower()):
            return super().find_mac(mac)
        if _WWPN_RE.match(mac.lower()):
            flogi = self.flogi(mac)
            return str(flogi[0]) if flogi else None
        return None

    def flogi(self, wwpn: str) -> list[str] | None:
        for entry in self.facts.get("flogi_info") or []:
            if len(entry) > 3 and entry[3] == wwpn.lower():
                return list(entry)
        return None

    def use_portchannel(self, server: ServerConfig, interface: ServerInterface) -> bool:
        return False

    def provision_server_networking(self, server: ServerConfig) -> None:
        for interface in server.interfaces:
            port = self.provision_server_interface(server, interface)
            if port is None:
                continue
            for vsan in server.vsans:
                logger.info("Configuring %s port %s using VSAN %s", self.certname, port, vsan)
                self.resource_creator.configure_interface_vsan(port, vsan, server.teardown)
