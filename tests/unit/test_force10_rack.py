"""Unit tests for the creator base and asm_provider.creator.force10_rack."""

from __future__ import annotations

import pytest

from asm_provider.client.errors import ResourceConflictError, UnsupportedOperationError, UntaggedVlanError
from asm_provider.creator.base import SwitchInfo
from asm_provider.creator.force10_rack import Force10RackCreator
from asm_provider.model.facts import SwitchFacts

CERT = "dell_ftos-172.17.9.10"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _creator(model: str = "S4810") -> Force10RackCreator:
    return Force10RackCreator(SwitchInfo(CERT, model, SwitchFacts({})))


# ---------------------------------------------------------------------------
# Request log
# ---------------------------------------------------------------------------


class TestRequests:
    def test_empty_interface_rejected(self) -> None:
        with pytest.raises(ValueError):
            _creator().configure_interface_vlan("", "10", True)

    def test_requests_are_appended_in_order(self) -> None:
        creator = _creator()
        creator.configure_interface_vlan("Te 0/1", 10, True)
        creator.configure_interface_vlan("Te 0/2", "20", False, True)
        assert [(r.interface, r.vlan, r.action) for r in creator.requests] == [
            ("Te 0/1", "10", "add"),
            ("Te 0/2", "20", "remove"),
        ]

    def test_requests_survive_prepare(self) -> None:
        creator = _creator()
        creator.configure_interface_vlan("Te 0/1", "10", True)
        creator.prepare("add")
        creator.prepare("add")
        assert len(creator.requests) == 1


class TestValidateVlans:
    def test_single_untagged_per_port_passes(self) -> None:
        creator = _creator()
        creator.configure_interface_vlan("Te 0/1", "18", False)
        creator.configure_interface_vlan("Te 0/1", "10", True)
        creator.configure_interface_vlan("Te 0/2", "18", False)
        creator.validate_vlans()

    def test_two_untagged_on_one_port_raises(self) -> None:
        creator = _creator()
        creator.configure_interface_vlan("Te 0/1", "18", False)
        creator.configure_interface_vlan("Te 0/1", "19", False)
        with pytest.raises(UntaggedVlanError):
            creator.validate_vlans()

    def test_prepare_validates(self) -> None:
        creator = _creator()
        creator.configure_interface_vlan("Te 0/1", "18", False)
        creator.configure_interface_vlan("Te 0/1", "19", False, True)
        with pytest.raises(UntaggedVlanError):
            creator.prepare("add")


# ---------------------------------------------------------------------------
# Materialization
# ---------------------------------------------------------------------------


class TestPrepare:
    def test_tagged_and_untagged_serialize_joined(self) -> None:
        creator = _creator()
        creator.configure_interface_vlan("Te 1/1", "11", True)
        creator.configure_interface_vlan("Te 1/1", "10", True)
        creator.configure_interface_vlan("Te 1/1", "18", False)
        assert creator.prepare("add") is True
        port = creator.to_puppet()["force10_interface"]["Te 1/1"]
        assert port["tagged_vlan"] == "10,11"
        assert port["untagged_vlan"] == "18"
        assert port["portmode"] == "hybrid"
        assert port["edge_port"] == "pvst,mstp,rstp"

    def test_vlans_created_before_interfaces(self) -> None:
        creator = _creator()
        creator.configure_interface_vlan("Te 1/1", "10", True)
        creator.configure_interface_vlan("Te 1/2", "10", True)
        creator.prepare("add")
        vlan = creator.to_puppet()["force10_vlan"]["10"]
        assert vlan["vlan_name"] == "VLAN_10"
        assert vlan["desc"] == "VLAN Created by ASM"
        assert vlan["before"] == ["Force10_interface[Te 1/1]", "Force10_interface[Te 1/2]"]

    def test_interfaces_require_previous_interface(self) -> None:
        creator = _creator()
        creator.configure_interface_vlan("Te 1/1", "10", True)
        creator.configure_interface_vlan("Te 1/2", "10", True)
        creator.prepare("add")
        ports = creator.to_puppet()["force10_interface"]
        assert "require" not in ports["Te 1/1"]
        assert ports["Te 1/2"]["require"] == "Force10_interface[Te 1/1]"

    def test_remove_pass_declares_no_vlans(self) -> None:
        creator = _creator()
        creator.configure_interface_vlan("Te 1/1", "1", False, True)
        assert creator.prepare("remove") is True
        out = creator.to_puppet()
        assert "force10_vlan" not in out
        assert out["force10_interface"]["Te 1/1"]["untagged_vlan"] == "1"

    def test_prepare_without_requests_produces_nothing(self) -> None:
        creator = _creator()
        creator.configure_interface_vlan("Te 1/1", "10", True)
        assert creator.prepare("remove") is False

    def test_portchannel_members_reference_channel(self) -> None:
        creator = _creator()
        creator.configure_interface_vlan("Te 1/1", "10", True, False, "12", "9000")
        creator.configure_interface_vlan("Te 1/2", "10", True, False, "12", "9000")
        creator.prepare("add")
        out = creator.to_puppet()
        channel = out["force10_portchannel"]["12"]
        assert channel["mtu"] == "9000"
        assert channel["ungroup"] == "true"
        assert out["force10_interface"]["Te 1/1"]["portchannel"] == "12"
        assert out["force10_interface"]["Te 1/1"]["require"] == "Force10_portchannel[12]"
        assert out["force10_vlan"]["10"]["tagged_portchannel"] == "12"
        assert out["force10_vlan"]["10"]["require"] == ["Force10_portchannel[12]"]

    def test_prepare_resets_declared_resources(self) -> None:
        creator = _creator()
        creator.configure_interface_vlan("Te 1/1", "10", True)
        creator.prepare("add")
        creator.prepare("add")
        assert list(creator.to_puppet()["force10_interface"]) == ["Te 1/1"]


class TestDirectResources:
    def test_duplicate_portchannel_raises(self) -> None:
        creator = _creator()
        creator.portchannel_resource("5")
        with pytest.raises(ResourceConflictError):
            creator.portchannel_resource(5)

    def test_mxl_interface_unsupported_on_rack(self) -> None:
        with pytest.raises(UnsupportedOperationError):
            _creator().mxl_interface_resource("Te 0/1", "1")

    def test_mxl_vlan_chains_on_sequence(self) -> None:
        creator = _creator()
        creator.mxl_vlan_resource("10", "web", "Web tier", ["1", "2"])
        creator.mxl_vlan_resource("11", None, None, None, remove=True)
        out = creator.to_puppet()["mxl_vlan"]
        assert out["10"]["tagged_portchannel"] == "1,2"
        assert out["11"] == {"ensure": "absent", "require": "Mxl_vlan[10]"}

    def test_force10_settings_pass_through(self) -> None:
        creator = _creator()
        creator.configure_force10_settings({"hostname": "tor-1"})
        assert creator.to_puppet()["force10_settings"] == {CERT: {"hostname": "tor-1"}}

    def test_quadmode_is_noop(self) -> None:
        creator = _creator()
        creator.configure_quadmode(["Fo 0/1"], True)
        assert not creator.resources

    def test_port_names_for_reduced_models(self) -> None:
        assert _creator("PE-FN-2210S").port_names[-1] == "Te 0/8"
        assert len(_creator("MXL-10/40GbE").port_names) == 32
