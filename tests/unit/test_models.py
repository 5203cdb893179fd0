"""Unit tests for the fact, request, server and uplink models."""

from __future__ import annotations

import json

import pytest

from asm_provider.model.facts import RunningConfig, SwitchFacts
from asm_provider.model.request import make_request, make_vsan_request
from asm_provider.model.server import ServerConfig
from asm_provider.model.uplink import Network, Uplink, UplinkSettings, VltData

RUNNING_CONFIG = """\
hostname mxl-a1
!
username admin password 7 abc privilege 15
username ops password 7 def
!
interface ManagementEthernet 0/0
 ip address 172.17.9.50/16
 no shutdown
!
boot system stack-unit 0 primary system: A:
boot system stack-unit 0 secondary system: B:
end
"""

# ---------------------------------------------------------------------------
# SwitchFacts
# ---------------------------------------------------------------------------


class TestSwitchFacts:
    def test_portchannel_members_both_shapes(self) -> None:
        facts = SwitchFacts(
            {
                "port_channel_members": {
                    1: ["TenGigabitEthernet 0/1"],
                    "2": {"interfaces": ["TenGigabitEthernet 0/2"], "fcoe": False},
                    "3": None,
                }
            }
        )
        assert facts.portchannel_members == {
            "1": ["TenGigabitEthernet 0/1"],
            "2": ["TenGigabitEthernet 0/2"],
            "3": [],
        }

    def test_find_mac_in_mapping(self) -> None:
        facts = SwitchFacts({"remote_device_info": {"Te 0/4": {"remote_mac": "00:0A:F7:06:88:50"}}})
        assert facts.find_mac("00:0a:f7:06:88:50") == "Te 0/4"
        assert facts.find_mac("00:0a:f7:06:88:51") is None

    def test_find_mac_without_remote_info(self) -> None:
        assert SwitchFacts({}).find_mac("00:0a:f7:06:88:50") is None

    def test_json_interface_entries_decoded(self) -> None:
        encoded = json.dumps({"name": "Te 0/1", "untagged_vlans": ["18"]})
        facts = SwitchFacts({"interfaces": [encoded, "Te 0/2", "{untagged_vlans"]})
        assert facts.interfaces == [{"name": "Te 0/1", "untagged_vlans": ["18"]}, "Te 0/2", "{untagged_vlans"]

    def test_snapshot_is_read_only(self) -> None:
        facts = SwitchFacts({"model": "S4810"})
        with pytest.raises(TypeError):
            facts["model"] = "S5000"  # type: ignore[index]

    def test_defaults(self) -> None:
        facts = SwitchFacts(None)
        assert facts.model == ""
        assert facts.quad_port_interfaces == []
        assert facts.vlan_information == {}


class TestRunningConfig:
    def test_static_management(self) -> None:
        config = RunningConfig(RUNNING_CONFIG)
        assert config.management_ip_static_configured() is True
        assert config.management_ip_dhcp_configured() is False
        assert config.management_ip_information() == ("172.17.9.50", "16")

    def test_dhcp_management(self) -> None:
        config = RunningConfig("interface ManagementEthernet 0/0\n ip address dhcp\n!\n")
        assert config.management_ip_dhcp_configured() is True
        assert config.management_ip_information() is None
        assert config.management_ip_configured() is True

    def test_hostname_credentials_boot(self) -> None:
        config = RunningConfig(RUNNING_CONFIG)
        assert config.hostname() == "mxl-a1"
        assert config.credentials() == [
            "username admin password 7 abc privilege 15",
            "username ops password 7 def",
        ]
        assert config.boot() == [
            "boot system stack-unit 0 primary system: A:",
            "boot system stack-unit 0 secondary system: B:",
        ]

    def test_empty(self) -> None:
        config = RunningConfig("")
        assert config.hostname() is None
        assert config.management_ip_configured() is False


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


def test_make_request_coerces_to_strings() -> None:
    request = make_request("Te 1/1", 18, False, True, 5, "9000")
    assert (request.vlan, request.portchannel, request.mtu, request.action) == ("18", "5", "9000", "remove")


def test_make_request_without_portchannel() -> None:
    assert make_request("Te 1/1", "18", True).portchannel == ""


def test_make_request_requires_interface() -> None:
    with pytest.raises(ValueError, match="vlan 18"):
        make_request("", "18", True)


@pytest.mark.parametrize(("interface", "vsan"), [("", "100"), ("Eth1/5", ""), ("Eth1/5", None)])
def test_make_vsan_request_rejects_empty(interface: str, vsan: str | None) -> None:
    with pytest.raises(ValueError):
        make_vsan_request(interface, vsan)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Servers and uplinks
# ---------------------------------------------------------------------------


def test_team_for_is_case_insensitive() -> None:
    server = ServerConfig("server-1", teams=[["00:0A:F7:06:88:50", "00:0A:F7:06:88:52"]])
    assert server.team_for("00:0a:f7:06:88:52") == ["00:0A:F7:06:88:50", "00:0A:F7:06:88:52"]
    assert server.team_for("00:0a:f7:06:88:99") is None


def test_network_from_dict() -> None:
    network = Network.from_dict({"id": "n1", "name": "web", "vlanId": "20", "type": "PUBLIC_LAN", "description": None})
    assert network == Network("n1", "web", 20, "PUBLIC_LAN", "")


def test_uplink_from_dict() -> None:
    uplink = Uplink.from_dict(
        {"uplinkId": "u1", "portChannel": 3, "portMembers": [" Te 0/33 ", "Te 0/34"], "portNetworks": ["n1"]}
    )
    assert uplink == Uplink("u1", "3", ("Te 0/33", "Te 0/34"), ("n1",))


def test_vlt_data_from_dict_accepts_single_member() -> None:
    vlt = VltData.from_dict({"portMembers": "Fo 0/37"})
    assert vlt.port_members == ("Fo 0/37",)
    assert vlt.interface == "Fo 0/37"


def test_vlt_mode_needs_members() -> None:
    assert UplinkSettings(vlt=VltData()).vlt_mode is False
    assert UplinkSettings(vlt=VltData(("Fo 0/37",))).vlt_mode is True
    assert UplinkSettings().vlt_mode is False
