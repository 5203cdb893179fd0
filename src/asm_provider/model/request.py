"""Typed model for per-interface VLAN membership requests."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Action = Literal["add", "remove"]

DEFAULT_MTU: str = "12000"


@dataclass(frozen=True)
class InterfaceRequest:
    """One VLAN membership intent for one physical interface.

    Requests are appended to a creator's request log and only turned into
    resources when the creator is prepared for an action.

    Attributes:
        interface: Port identifier as reported by the switch (e.g. ``"Te 1/1"``).
        vlan: VLAN ID as a string.
        tagged: ``True`` when the VLAN is tagged on the port.
        portchannel: Port channel the port is (or will be) a member of,
            ``""`` when none.
        mtu: MTU to set on the port or its port channel.
        action: ``"add"`` for provisioning, ``"remove"`` for teardown.
    """

    interface: str
    vlan: str
    tagged: bool
    portchannel: str = ""
    mtu: str = DEFAULT_MTU
    action: Action = "add"


def make_request(
    interface: str,
    vlan: str | int,
    tagged: bool,
    remove: bool = False,
    portchannel: str | int | None = None,
    mtu: str = DEFAULT_MTU,
) -> InterfaceRequest:
    """Build an :class:`InterfaceRequest`, coercing identifiers to strings.

    Raises:
        ValueError: If *interface* is empty.
    """
    if not interface:
        raise ValueError(f"Interface not specified for vlan {vlan}")
    return InterfaceRequest(
        interface=str(interface),
        vlan=str(vlan),
        tagged=tagged,
        portchannel="" if portchannel is None else str(portchannel),
        mtu=mtu,
        action="remove" if remove else "add",
    )


@dataclass(frozen=True)
class VsanRequest:
    """One FCoE VSAN membership intent for one interface (Nexus only)."""

    interface: str
    vsan: str
    action: Action = "add"


def make_vsan_request(interface: str, vsan: str | int, remove: bool = False) -> VsanRequest:
    """Build a :class:`VsanRequest`.

    Raises:
        ValueError: If *interface* or *vsan* is empty.
    """
    if not interface:
        raise ValueError("Interface not specified for cisco vsan configuration")
    if vsan is None or str(vsan) == "":
        raise ValueError("Vsan zoneset not specified for cisco vsan configuration")
    return VsanRequest(str(interface), str(vsan), "remove" if remove else "add")
