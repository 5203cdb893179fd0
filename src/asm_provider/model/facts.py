"""Read-only switch fact snapshot and running-config helpers."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Iterator

logger = logging.getLogger(__name__)

_MGMT_DHCP_RE = re.compile(r"interface ManagementEthernet \d+/\d+.*?\s+ip address\s+dhcp")
_MGMT_STATIC_RE = re.compile(
    r"interface ManagementEthernet \d+/\d+.*?\s+ip address\s+(\d+\.\d+\.\d+\.\d+)/(\d+)"
)
_MGMT_ANY_RE = re.compile(r"interface ManagementEthernet.*?!", re.DOTALL)
_HOSTNAME_RE = re.compile(r"^\s*hostname\s+(\S+)", re.MULTILINE)
_BOOT_RE = re.compile(r"^\s*(boot.*?)\s*$", re.MULTILINE)
_USERNAME_RE = re.compile(r"^\s*(username.*?)\s*$", re.MULTILINE)


class SwitchFacts(Mapping[str, Any]):
    """Immutable snapshot of the facts known about one switch.

    Facts that some switch families report as JSON encoded strings (for
    example the S5000 per-interface VLAN details) are decoded on construction.

    Args:
        facts: Raw fact mapping as fetched from inventory.
    """

    def __init__(self, facts: Mapping[str, Any] | None = None) -> None:
        normalized = dict(facts or {})
        interfaces = normalized.get("interfaces")
        if isinstance(interfaces, list):
            normalized["interfaces"] = [_decode_interface(i) for i in interfaces]
        self._facts: Mapping[str, Any] = MappingProxyType(normalized)

    def __getitem__(self, key: str) -> Any:
        return self._facts[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._facts)

    def __len__(self) -> int:
        return len(self._facts)

    def __repr__(self) -> str:
        return f"SwitchFacts({dict(self._facts)!r})"

    # ------------------------------------------------------------------
    # Convenience accessors
    # ------------------------------------------------------------------

    @property
    def model(self) -> str:
        return str(self.get("model") or "")

    @property
    def interfaces(self) -> list[Any]:
        return list(self.get("interfaces") or [])

    @property
    def quad_port_interfaces(self) -> list[str]:
        return [str(i) for i in self.get("quad_port_interfaces") or []]

    @property
    def vlan_information(self) -> dict[str, Any]:
        return dict(self.get("vlan_information") or {})

    @property
    def portchannel_members(self) -> dict[str, list[str]]:
        """Return port channel members, normalizing the two fact shapes.

        Older inventories store ``{"1": ["Te 0/1"]}`` while newer ones store
        ``{"1": {"interfaces": ["Te 0/1"], ...}}``.
        """
        members: dict[str, list[str]] = {}
        for channel, value in (self.get("port_channel_members") or {}).items():
            if isinstance(value, Mapping):
                members[str(channel)] = list(value.get("interfaces") or [])
            else:
                members[str(channel)] = list(value or [])
        return members

    @property
    def running_config(self) -> RunningConfig:
        return RunningConfig(str(self.get("running_config") or ""))

    def find_mac(self, mac: str) -> str | None:
        """Return the switch port a remote MAC address was seen on, if any."""
        remote = self.get("remote_device_info")
        if not remote:
            return None
        wanted = mac.lower()
        if isinstance(remote, Mapping):
            for port, details in remote.items():
                if str(details.get("remote_mac", "")).lower() == wanted:
                    return str(port)
            return None
        for entry in remote:
            if str(entry.get("remote_mac", "")).lower() == wanted:
                return str(entry.get("interface"))
        return None


class RunningConfig:
    """Queries over the last stored running configuration text of a switch."""

    def __init__(self, text: str) -> None:
        self.text = text

    def management_ip_dhcp_configured(self) -> bool:
        return bool(_MGMT_DHCP_RE.search(self.text))

    def management_ip_static_configured(self) -> bool:
        return bool(_MGMT_STATIC_RE.search(self.text))

    def management_ip_configured(self) -> bool:
        return bool(_MGMT_ANY_RE.search(self.text))

    def management_ip_information(self) -> tuple[str, str] | None:
        """Return ``(ip, cidr)`` of a statically configured management port."""
        match = _MGMT_STATIC_RE.search(self.text)
        if match is None:
            return None
        return match.group(1), match.group(2)

    def hostname(self) -> str | None:
        match = _HOSTNAME_RE.search(self.text)
        return match.group(1) if match else None

    def boot(self) -> list[str]:
        return _BOOT_RE.findall(self.text)

    def credentials(self) -> list[str]:
        return _USERNAME_RE.findall(self.text)


def _decode_interface(interface: Any) -> Any:
    if isinstance(interface, str) and "untagged_vlans" in interface:
        try:
            return json.loads(interface)
        except ValueError:
            logger.debug("Could not decode interface fact %r, keeping it verbatim", interface)
    return interface
