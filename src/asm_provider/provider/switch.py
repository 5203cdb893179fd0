"""Switch provider base: server port intent on top of a resource creator."""

from __future__ import annotations

import logging
from typing import Any

from asm_provider.client.apply import ApplyEngine, DeploymentFiles
from asm_provider.client.errors import ApplyError, UnsupportedOperationError
from asm_provider.creator.base import Creator, SwitchInfo
from asm_provider.creator.force10_ioa import Force10IoaCreator
from asm_provider.creator.force10_mxl import DEFAULT_TFTP_ROOT, Force10MxlCreator
from asm_provider.creator.force10_rack import Force10RackCreator
from asm_provider.creator.nexus5k import Nexus5kCreator
from asm_provider.creator.powerconnect import PowerconnectCreator
from asm_provider.model.facts import SwitchFacts
from asm_provider.model.request import DEFAULT_MTU
from asm_provider.model.server import ServerConfig, ServerInterface
from asm_provider.provider.family import SwitchFamily, classify_switch
from asm_provider.vendor.dell.mappings import DEFAULT_VLAN

logger = logging.getLogger(__name__)

_NO_TEAM_OS_TYPES = ("vmware_esxi", "windows")

_CREATORS: dict[SwitchFamily, type[Creator]] = {
    SwitchFamily.FORCE10_RACK: Force10RackCreator,
    SwitchFamily.BLADE_IOA: Force10IoaCreator,
    SwitchFamily.BLADE_MXL: Force10MxlCreator,
    SwitchFamily.POWERCONNECT: PowerconnectCreator,
    SwitchFamily.NEXUS5K: Nexus5kCreator,
}


class SwitchProvider:
    """Base switch provider.

    Owns one resource creator per apply cycle.  Intent methods record
    requests on the creator; :meth:`process` applies them and starts a new
    cycle with a fresh creator.

    Args:
        certname: Switch inventory reference ID, also its apply target.
        model: Switch model string.
        facts: Fact snapshot for the current cycle.
        apply_engine: Engine the serialized resources are handed to.
        optional_args: Optional provider configuration overrides.
            Supported keys:

            - ``run_type`` (str): apply engine run type (default ``"device"``).
            - ``deployment_dir`` (str): where generated files are saved
              (default ``"./deployments"``).
            - ``tftp_root`` (str): TFTP served directory (default
              ``"/var/lib/tftpboot"``).
            - ``appliance_ip`` (str): address switches reach the appliance
              on (default: the ``management_ip`` fact).
    """

    def __init__(
        self,
        certname: str,
        model: str = "",
        facts: SwitchFacts | dict[str, Any] | None = None,
        apply_engine: ApplyEngine | None = None,
        optional_args: dict[str, Any] | None = None,
    ) -> None:
        self.certname = certname
        self.model = model or ""
        self.facts = facts if isinstance(facts, SwitchFacts) else SwitchFacts(facts)
        self.apply_engine = apply_engine
        self.optional_args: dict[str, Any] = optional_args or {}
        self.run_type: str = str(self.optional_args.get("run_type", "device"))
        self.family = classify_switch(certname, self.model)
        self._creator: Creator | None = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.certname!r}, {self.model!r})"

    # ------------------------------------------------------------------
    # Creator lifecycle
    # ------------------------------------------------------------------

    @property
    def switch_info(self) -> SwitchInfo:
        return SwitchInfo(self.certname, self.model, self.facts)

    @property
    def resource_creator(self) -> Creator:
        if self._creator is None:
            self._creator = self.new_resource_creator()
        return self._creator

    def new_resource_creator(self) -> Creator:
        """Replace the current creator with a fresh one for this switch's family."""
        cls = _CREATORS[self.family]
        logger.debug("Configuring %s using %s", self.certname, cls.__name__)
        if cls is Force10MxlCreator:
            creator: Creator = Force10MxlCreator(
                self.switch_info,
                files=DeploymentFiles(self.optional_args.get("deployment_dir", "./deployments")),
                tftp_root=str(self.optional_args.get("tftp_root", DEFAULT_TFTP_ROOT)),
                appliance_ip=self.optional_args.get("appliance_ip"),
            )
        else:
            creator = cls(self.switch_info)
        self._creator = creator
        return creator

    def process(self, skip_prepare: bool = False) -> None:
        """Apply the recorded intent, removals first, then start a new cycle.

        With *skip_prepare* the directly declared resources are applied
        once as they are.

        Raises:
            ApplyError: When the apply engine fails.
        """
        if skip_prepare:
            self.apply()
        else:
            for action in ("remove", "add"):
                if self.resource_creator.prepare(action):
                    self.apply()
        self.new_resource_creator()

    def apply(self) -> None:
        """Hand the creator's serialized resources to the apply engine."""
        if self.apply_engine is None:
            raise ApplyError(self.certname, RuntimeError("no apply engine configured"))
        resources = self.resource_creator.to_puppet()
        logger.info("Applying %d resource type(s) to %s", len(resources), self.certname)
        try:
            self.apply_engine.process_generic(self.certname, resources, self.run_type, True, None, None)
        except Exception as exc:
            raise ApplyError(self.certname, exc) from exc

    # ------------------------------------------------------------------
    # Server ports
    # ------------------------------------------------------------------

    def find_mac(self, mac: str) -> str | None:
        return self.facts.find_mac(mac)

    def use_portchannel(self, server: ServerConfig, interface: ServerInterface) -> bool:
        """Whether *interface* is part of an LACP team on this switch."""
        if any(os_type in server.os_image_type for os_type in _NO_TEAM_OS_TYPES):
            return False
        team = server.team_for(interface.mac_address)
        return bool(team) and len(team) > 1

    def find_portchannel(self, server: ServerConfig, interface: ServerInterface) -> str:
        raise UnsupportedOperationError(f"LACP teaming not implemented for {type(self).__name__}")

    def provision_server_interface(self, server: ServerConfig, interface: ServerInterface) -> str | None:
        """Record VLAN requests for one server NIC.

        Ports carrying no untagged network get VLAN 1 as native VLAN.

        Returns:
            The switch port the NIC is connected to, or ``None`` when the
            NIC is not connected to this switch.
        """
        port = self.find_mac(interface.mac_address)
        if port is None:
            return None

        logger.info(
            "Configuring NIC %s / %s connected on %s port %s",
            server.certname, interface.fqdd, self.certname, port,
        )
        if self.use_portchannel(server, interface):
            portchannel = self.find_portchannel(server, interface)
            mtu = server.mtu or DEFAULT_MTU
        else:
            portchannel, mtu = "", DEFAULT_MTU

        creator = self.resource_creator
        untagged_seen = False
        for assignment in interface.networks:
            network = assignment.network
            if not assignment.configured:
                logger.info(
                    "Skipping un-configured network %s VLAN %s on NIC %s / %s",
                    network.name, network.vlan_id, server.certname, interface.fqdd,
                )
                continue
            untagged_seen = untagged_seen or not assignment.tagged
            logger.info(
                "Configuring NIC %s / %s on network %s %s VLAN %s",
                server.certname, interface.fqdd, network.name,
                "tagged" if assignment.tagged else "untagged", network.vlan_id,
            )
            creator.configure_interface_vlan(
                port, network.vlan_id, assignment.tagged, server.teardown, portchannel, mtu
            )

        if not untagged_seen:
            logger.info("Configuring native VLAN on NIC %s / %s", server.certname, interface.fqdd)
            creator.configure_interface_vlan(port, DEFAULT_VLAN, False, server.teardown)
        return port

    def provision_server_networking(self, server: ServerConfig) -> None:
        for interface in server.interfaces:
            self.provision_server_interface(server, interface)

    def teardown_server_networking(self, server: ServerConfig) -> None:
        """Reset every port of *server* to untagged VLAN 1 and no tagged VLANs."""
        for interface in server.interfaces:
            port = self.find_mac(interface.mac_address)
            if port is None:
                continue
            logger.info(
                "Resetting port %s / %s to untagged vlan 1 and no tagged vlans",
                server.certname, interface.fqdd,
            )
            self.resource_creator.configure_interface_vlan(port, DEFAULT_VLAN, False, True)

    def configure_server(self, server: ServerConfig, staged: bool = False) -> None:
        """Record (and unless *staged*, apply) the port intent for *server*."""
        if server.teardown:
            self.teardown_server_networking(server)
        else:
            self.provision_server_networking(server)
        if not staged:
            self.process()
