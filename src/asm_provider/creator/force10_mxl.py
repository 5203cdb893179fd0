"""Force10 blade MXL creator."""

from __future__ import annotations

import base64
import logging
import re
from typing import Any, ClassVar

from asm_provider.client.apply import DeploymentFiles
from asm_provider.client.errors import ResourceConflictError
from asm_provider.creator.base import SwitchInfo
from asm_provider.creator.force10_base import Force10Creator
from asm_provider.creator.mxl_config import SwitchConfigText, management_stanza
from asm_provider.model.request import Action
from asm_provider.model.uplink import VltData
from asm_provider.utils.quadport import forty_gb_interface
from asm_provider.vendor.dell.mappings import DEFAULT_VLAN

logger = logging.getLogger(__name__)

_CERT_IP_RE = re.compile(r"dell_iom-(\S+)")

DEFAULT_TFTP_ROOT = "/var/lib/tftpboot"


class Force10MxlCreator(Force10Creator):
    """Manage interface VLAN membership, quad mode and startup config on MXLs.

    Args:
        switch: The switch being configured.
        files: Store the rewritten startup configuration is saved to.
        tftp_root: Directory on the appliance served over TFTP.
        appliance_ip: Address the switch reaches the appliance on; defaults
            to the ``management_ip`` fact.
    """

    vlan_type: ClassVar[str] = "asm::mxl"
    portchannel_type: ClassVar[str] = "mxl_portchannel"
    joins: ClassVar[dict[str, tuple[str, ...]]] = {
        "force10_interface": ("tagged_vlan", "untagged_vlan"),
    }
    join_empty: ClassVar[bool] = False

    def __init__(
        self,
        switch: SwitchInfo,
        files: DeploymentFiles | None = None,
        tftp_root: str = DEFAULT_TFTP_ROOT,
        appliance_ip: str | None = None,
    ) -> None:
        super().__init__(switch)
        self.files = files or DeploymentFiles()
        self.tftp_root = tftp_root.rstrip("/")
        self.appliance_ip = appliance_ip or self.facts.get("management_ip")

    def prepare(self, action: Action) -> bool:
        self.reset()
        self.validate_vlans()
        self.populate_port_resources(action)
        self.populate_vlan_resources(action)
        return bool(self.resources)

    def configure_iom_mode(self, pmux: bool, ethernet_mode: bool, vlt_data: VltData | None = None) -> None:
        """Declare the ``vlt_settings`` mode resource; MXLs ignore PMUX.

        Raises:
            ResourceConflictError: When an ``ioa_mode`` was already declared.
        """
        existing = self.resources.of_type("ioa_mode")
        if existing:
            raise ResourceConflictError("ioa_mode", next(iter(existing)), self.certname)
        if vlt_data is None:
            return
        self.declare(
            "ioa_mode",
            "vlt_settings",
            {
                "ensure": "present",
                "port_channel": vlt_data.port_channel,
                "destination_ip": vlt_data.destination_ip,
                "unit_id": vlt_data.unit_id,
                "interface": vlt_data.interface,
            },
        )

    # ------------------------------------------------------------------
    # Quad mode
    # ------------------------------------------------------------------

    def configure_quadmode(
        self, interfaces: list[str] | None, enable: bool, reboot: bool = True
    ) -> None:
        """Declare ``mxl_quadmode`` resources for *interfaces*.

        Only 40G interfaces can be grouped, so when enabling any other
        interface is logged and skipped.  The last eligible interface is
        flagged to reboot the switch.

        Args:
            interfaces: Interface names; ``None`` uses the ``quad_port_interfaces`` fact.
            enable: Whether quad mode should be on or off.
            reboot: Whether the last interface requires a reboot.
        """
        if interfaces is None:
            interfaces = self.facts.quad_port_interfaces
        if not interfaces:
            logger.debug("Could not find any interfaces to configure quadmode on %s", self.certname)
            return

        eligible = [i for i in interfaces if not enable or forty_gb_interface(i)]
        for interface in interfaces:
            if interface not in eligible:
                logger.warning(
                    "Interface %s/%s requested to be configured for quad mode but its not a 40 gig interface, skipping",
                    self.certname,
                    interface,
                )

        for interface in eligible:
            attributes: dict[str, Any] = {"ensure": "present" if enable else "absent"}
            if reboot and interface == eligible[-1]:
                attributes["reboot_required"] = "true"
            self.declare("mxl_quadmode", interface, attributes)

    # ------------------------------------------------------------------
    # Startup configuration
    # ------------------------------------------------------------------

    def configure_force10_settings(self, settings: dict[str, Any]) -> None:
        """Boot the switch from the ``config_file`` in *settings*.

        The decoded file keeps the switch's own hostname (unless *settings*
        names one), management address, credentials and boot lines, in that
        order.  Without a ``config_file`` the settings pass through as one
        ``force10_settings`` resource.  Nothing is applied here.
        """
        if not settings.get("config_file"):
            super().configure_force10_settings(settings)
            return

        logger.debug("Configuring switch %s using force10_settings", self.certname)
        config = SwitchConfigText(base64.b64decode(settings["config_file"]).decode("utf-8"))
        self.replace_hostname(config, settings)
        self.replace_management_ethernet(config)
        self.replace_credentials(config)
        self.replace_boot(config)

        name = "%s_config_file.cfg" % self.certname
        path = self.files.save_file(config.render(), name)
        self.resources.replace_type(
            "force10_config",
            {
                "%s_apply_config_file" % self.certname: {
                    "startup_config": "true",
                    "force": "true",
                    "source_server": self.appliance_ip,
                    "source_file_path": path,
                    "copy_to_tftp": ["%s/%s" % (self.tftp_root, name)],
                }
            },
        )

    @property
    def management_ip(self) -> str | None:
        """Desired management address, taken from the ``dell_iom-<ip>`` certname."""
        match = _CERT_IP_RE.search(self.certname)
        return match.group(1) if match else None

    def replace_hostname(self, config: SwitchConfigText, settings: dict[str, Any]) -> None:
        hostname = settings.get("hostname") or self.facts.running_config.hostname()
        if hostname:
            config.set_hostname(hostname)

    def replace_management_ethernet(self, config: SwitchConfigText) -> None:
        """Carry the switch's management address into *config*.

        A static address is rewritten to the certname address, DHCP leaves
        no management stanza, and a switch without one gets a static stanza.
        """
        running = self.facts.running_config
        info = running.management_ip_information()
        cidr = info[1] if info else ""
        stanza = management_stanza(self.management_ip or "", cidr)

        if running.management_ip_static_configured():
            config.replace_stanza("interface ManagementEthernet", stanza)
        elif running.management_ip_dhcp_configured():
            config.remove_stanza("interface ManagementEthernet")
        else:
            config.insert_before_end(stanza[:-1])

    def replace_credentials(self, config: SwitchConfigText) -> None:
        config.remove_lines("username")
        for credential in self.facts.running_config.credentials():
            config.insert_before_end([credential])

    def replace_boot(self, config: SwitchConfigText) -> None:
        config.remove_lines("boot")
        boot = self.facts.running_config.boot()
        if boot:
            config.insert_before_end(boot)

    # ------------------------------------------------------------------
    # Ports
    # ------------------------------------------------------------------

    def initialize_ports(self) -> None:
        """Remove VLAN 1 from every port; resources are declared, not applied."""
        for port in self.port_names:
            self.configure_interface_vlan(port, DEFAULT_VLAN, False, True)
            self.configure_interface_vlan(port, DEFAULT_VLAN, True, True)
        self.populate_port_resources("remove")
