"""Typed model for switch uplink intent and chassis I/O modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Network:
    """A network known to the appliance.

    Attributes:
        id: Network identifier referenced by uplinks and server NICs.
        name: Short network name, used as the VLAN name.
        vlan_id: 802.1Q VLAN identifier.
        type: Network type, e.g. ``"PRIVATE_LAN"`` or ``"STORAGE_FCOE_SAN"``.
        description: Free text description; falls back to *name* when empty.
    """

    id: str
    name: str
    vlan_id: int
    type: str = ""
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Network:
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            vlan_id=int(data["vlanId"]),
            type=str(data.get("type") or ""),
            description=str(data.get("description") or ""),
        )


@dataclass(frozen=True)
class Uplink:
    """One uplink port channel requested for a blade switch.

    Attributes:
        uplink_id: Uplink identifier used in error messages.
        port_channel: Port channel number as a string.
        port_members: Member interface names, e.g. ``["Fo 0/33", "Te 0/44"]``.
        port_networks: Identifiers of the networks carried on the uplink.
    """

    uplink_id: str
    port_channel: str
    port_members: tuple[str, ...] = ()
    port_networks: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Uplink:
        return cls(
            uplink_id=str(data.get("uplinkId") or ""),
            port_channel=str(data["portChannel"]),
            port_members=tuple(str(m).strip() for m in data.get("portMembers") or []),
            port_networks=tuple(str(n) for n in data.get("portNetworks") or []),
        )


@dataclass(frozen=True)
class VltData:
    """VLT peering data for an I/O module.

    ``port_channel``, ``unit_id``, ``destination_ip`` and ``model`` are
    derived per cycle; only ``port_members`` comes from the request.
    """

    port_members: tuple[str, ...] = ()
    port_channel: str = ""
    unit_id: str = ""
    destination_ip: str = ""
    model: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VltData:
        members = data.get("portMembers") or []
        if isinstance(members, str):
            members = [members]
        return cls(
            port_members=tuple(str(m).strip() for m in members),
            port_channel=str(data.get("portChannel") or ""),
            unit_id=str(data.get("unit-id") or ""),
            destination_ip=str(data.get("Destination_ip") or ""),
            model=str(data.get("model") or ""),
        )

    @property
    def interface(self) -> str:
        return ",".join(self.port_members)


@dataclass(frozen=True)
class UplinkSettings:
    """Immutable uplink configuration of one I/O module.

    Attributes:
        vlt_enabled: Whether the user enabled VLT for the switch.
        quadportmode: Whether 40G ports should be split into 4x10G.
        config_file: Base64 encoded configuration file, if the switch is
            configured from a file instead of from uplinks.
        uplinks: Requested uplinks; ``None`` when none were supplied.
        vlt: VLT data; ``None`` or an empty member list disables VLT mode.
    """

    vlt_enabled: bool = False
    quadportmode: bool = False
    config_file: str | None = None
    uplinks: tuple[Uplink, ...] | None = None
    vlt: VltData | None = None

    @property
    def vlt_mode(self) -> bool:
        return self.vlt is not None and bool(self.vlt.port_members)


@dataclass
class PortChannelDescriptor:
    """Desired state of one uplink port channel.

    Attributes:
        interfaces: Member interfaces in long form, sorted.
        vlans: VLAN IDs carried on the port channel.
        fcoe: ``True`` when the uplink carries an FCoE storage network.
    """

    interfaces: list[str] = field(default_factory=list)
    vlans: list[str] = field(default_factory=list)
    fcoe: bool = False


@dataclass(frozen=True)
class ChassisIom:
    """An I/O module as reported by the chassis inventory."""

    slot: int
    model: str
    management_ip: str | None = None
    service_tag: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChassisIom:
        return cls(
            slot=int(data["slot"]),
            model=str(data.get("model") or ""),
            management_ip=data.get("managementIP") or None,
            service_tag=str(data.get("serviceTag") or ""),
        )
