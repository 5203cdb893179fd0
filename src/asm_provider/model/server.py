"""Typed model for the servers whose switch ports and hosts are configured."""

from __future__ import annotations

from dataclasses import dataclass, field

from asm_provider.model.uplink import Network

DEFAULT_SERVER_MTU: str = "12000"


@dataclass(frozen=True)
class NetworkAssignment:
    """A network placed on a server NIC.

    Attributes:
        network: The network definition.
        tagged: Whether the VLAN is tagged on the switch port.
        configured: ``False`` when the network is not managed on the switch
            (for example an unmanaged PXE network); such networks are skipped.
    """

    network: Network
    tagged: bool = True
    configured: bool = True


@dataclass(frozen=True)
class ServerInterface:
    """One configured server NIC (its first partition).

    Attributes:
        fqdd: Dell device descriptor of the NIC partition, e.g. ``"NIC.Integrated.1-1-1"``.
        mac_address: MAC address used to locate the switch port.
        networks: Networks assigned to all partitions of the NIC.
    """

    fqdd: str
    mac_address: str
    networks: tuple[NetworkAssignment, ...] = ()


@dataclass
class ServerConfig:
    """Per-server inputs for switch port provisioning.

    Attributes:
        certname: Server certname.
        interfaces: Configured NICs.
        teardown: ``True`` when the server is being removed.
        os_image_type: OS image type; ESXi and Windows never use LACP teams.
        teams: MAC address groups that form NIC teams.
        mtu: MTU for teamed ports, from the server network parameters.
        vsans: VSANs of the active FC zonesets of the server's volumes,
            configured on Nexus switches for FCoE servers.
    """

    certname: str
    interfaces: list[ServerInterface] = field(default_factory=list)
    teardown: bool = False
    os_image_type: str = ""
    teams: list[list[str]] = field(default_factory=list)
    mtu: str = DEFAULT_SERVER_MTU
    vsans: list[str] = field(default_factory=list)

    def team_for(self, mac: str) -> list[str] | None:
        wanted = mac.lower()
        for team in self.teams:
            if wanted in (m.lower() for m in team):
                return team
        return None


@dataclass(frozen=True)
class EsxHost:
    """An ESXi host that belongs to a VMware cluster.

    Attributes:
        certname: Server certname, used as the apply target.
        hostname: Resolved ESXi hostname.
        management_network: Network carrying the management vmkernel.
        admin_password: Encrypted root password, may be empty in teardown.
        backup_vmnic: Management vmnic from the deployment template, used when
            the management VDS has a single live uplink.
        teardown: ``True`` when the server itself is being removed.
    """

    certname: str
    hostname: str
    management_network: Network | None = None
    admin_password: str = ""
    backup_vmnic: str | None = None
    teardown: bool = False
