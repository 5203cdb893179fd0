"""Unit tests for asm_provider.provider.vmware."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from asm_provider.client.errors import ApplyError, VdsMigrationError
from asm_provider.model.server import EsxHost
from asm_provider.model.uplink import Network
from asm_provider.provider.vmware import VCENTER_TRANSPORT, VmwareClusterProvider, host_update_spec

CLUSTER_CERT = "vcenter-cluster-01"
MGMT = Network("net-mgmt", "mgmt", 28, "HYPERVISOR_MANAGEMENT")
STORAGE = Network("net-storage", "storage", 16, "STORAGE_ISCSI_SAN")

VDS_NAMES = {
    "vds_name:net-mgmt": "dvs-mgmt",
    "vds_name:net-storage::net-vmotion": "dvs-storage",
}

DVS_LIST = """\
dvs-mgmt
   Name: dvs-mgmt
   VDS ID: 50 1a 2b 3c
   Class: etherswitch
   Uplinks: vmnic5, vmnic4
   VMware Branded: true
   DVPort:
         Client: vmnic4
         DVPortgroup ID: dvportgroup-11
         Client: vmk0
         DVPortgroup ID: dvportgroup-12
dvs-storage
   Name: dvs-storage
   VDS ID: 50 1a 2b 3d
   Uplinks: vmnic2
   DVPort:
         Client: vmk2
         DVPortgroup ID: dvportgroup-21
"""

DVS_MGMT = """\
dvs-mgmt
   Name: dvs-mgmt
   Uplinks: vmnic5, vmnic4
"""

DVS_MGMT_SINGLE = """\
dvs-mgmt
   Name: dvs-mgmt
   Uplinks: vmnic4
"""

HOST1 = EsxHost("vmware_esxi-host1", "esx1.example", MGMT, "enc-pw")
HOST2 = EsxHost("vmware_esxi-host2", "esx2.example", MGMT, "")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _esxcli(single_uplink: bool = False) -> MagicMock:
    def run(command: list[str], endpoint: dict[str, str]) -> str:
        if "--vds-name" in command:
            return DVS_MGMT_SINGLE if single_uplink else DVS_MGMT
        return DVS_LIST

    return MagicMock(side_effect=run)


def _provider(engine: MagicMock | None = None, esxcli: MagicMock | None = None, **kwargs: object) -> VmwareClusterProvider:
    kwargs.setdefault("hosts", [HOST1, HOST2])
    kwargs.setdefault("vds_names", VDS_NAMES)
    return VmwareClusterProvider(
        CLUSTER_CERT, "dc1", "cluster1", engine or MagicMock(), esxcli, **kwargs  # type: ignore[arg-type]
    )


# ---------------------------------------------------------------------------
# Host inspection
# ---------------------------------------------------------------------------


class TestInspection:
    def test_vds_and_vmk_nics(self) -> None:
        esxcli = _esxcli()
        provider = _provider(esxcli=esxcli)
        assert provider.vds_vmk_nics(HOST1) == (["dvs-mgmt", "dvs-storage"], ["vmk0", "vmk2"])
        command, endpoint = esxcli.call_args.args
        assert command == ["network", "vswitch", "dvs", "vmware", "list"]
        assert endpoint == {"host": "esx1.example", "user": "root", "password": "enc-pw"}

    def test_uplinks_sorted(self) -> None:
        esxcli = _esxcli()
        assert _provider(esxcli=esxcli).vds_uplinks(HOST1, "dvs-mgmt") == ["vmnic4", "vmnic5"]
        assert esxcli.call_args.args[0][-2:] == ["--vds-name", "dvs-mgmt"]

    def test_esxcli_failure_yields_empty_output(self) -> None:
        provider = _provider(esxcli=MagicMock(side_effect=OSError("unreachable")))
        assert provider.vds_vmk_nics(HOST1) == ([], [])
        assert provider.vds_uplinks(HOST1, "dvs-mgmt") == []

    def test_without_esxcli(self) -> None:
        assert _provider().run_esxcli(HOST1, ["network"]) == ""

    def test_vds_name_requires_every_network(self) -> None:
        provider = _provider()
        vmotion = Network("net-vmotion", "vmotion", 17)
        assert provider.vds_name([STORAGE, vmotion]) == "dvs-storage"
        assert provider.vds_name([MGMT, STORAGE]) is None
        assert provider.management_vds_name(HOST1) == "dvs-mgmt"
        assert provider.management_vds_name(EsxHost("c", "h")) is None


# ---------------------------------------------------------------------------
# Resource hashes
# ---------------------------------------------------------------------------


class TestAsmHost:
    def test_remove_host_with_transport(self) -> None:
        out = _provider().asm_host_hash(HOST1, "absent", True)
        assert out["asm::host"] == {
            "vmware_esxi-host1": {
                "datacenter": "dc1",
                "cluster": "cluster1",
                "hostname": "esx1.example",
                "username": "root",
                "password": "enc-pw",
                "decrypt": True,
                "timeout": 90,
                "ensure": "absent",
            }
        }
        assert out["transport"]["vcenter"]["name"] == CLUSTER_CERT

    def test_empty_password_dropped(self) -> None:
        out = _provider(optional_args={"decrypt": False}).asm_host_hash(HOST2, "present")
        attrs = out["asm::host"]["vmware_esxi-host2"]
        assert "password" not in attrs
        assert attrs["decrypt"] is False
        assert "transport" not in out


class TestVdsHash:
    def test_full_eviction_chain(self) -> None:
        out = _provider(esxcli=_esxcli()).vds_hash(HOST1, True)

        assert out["vcenter::vmknic"]["esx1.example:vmk2"] == {"ensure": "absent", "transport": VCENTER_TRANSPORT}
        assert out["esx_maintmode"]["esx1.example"]["require"] == ["Vcenter::Vmknic[esx1.example:vmk2]"]

        dvswitch = out["vcenter::dvswitch"]
        assert dvswitch["/dc1/dvs-storage"] == {
            "ensure": "present",
            "transport": VCENTER_TRANSPORT,
            "spec": {"host": [{"host": "esx1.example", "operation": "remove"}]},
            "require": "Esx_maintmode[esx1.example]",
        }
        assert "/dc1/dvs-mgmt" not in dvswitch

        run1 = dvswitch["/dc1/dvs-mgmt:run1"]
        assert run1["require"] == "Vcenter::Dvswitch[/dc1/dvs-storage]"
        assert run1["spec"]["host"][0]["backing"]["pnicSpec"] == [
            {"pnicDevice": "vmnic4", "uplinkPortgroupKey": "dvs-mgmt-uplink-pg"}
        ]

        vswitch = out["esx_vswitch"]["esx1.example:vSwitch0"]
        assert vswitch["nics"] == ["vmnic5"]
        assert vswitch["nicorderpolicy"] == {"activenic": ["vmnic5"]}
        assert vswitch["require"] == "Vcenter::Dvswitch[/dc1/dvs-mgmt:run1]"

        portgroup = out["esx_portgroup"]["esx1.example:Management Network"]
        assert portgroup["vlanid"] == 28
        assert portgroup["path"] == "/dc1/cluster1/"
        assert portgroup["require"] == "Esx_vswitch[esx1.example:vSwitch0]"

        vmk0 = out["vcenter::vmknic"]["esx1.example:vmk0"]
        assert vmk0["ensure"] == "present"
        assert vmk0["hostVirtualNicSpec"] == {"portgroup": "Management Network", "vlanid": 28}
        assert vmk0["require"] == "Esx_portgroup[esx1.example:Management Network]"

        assert dvswitch["/dc1/dvs-mgmt:run2"]["require"] == "Vcenter::Vmknic[esx1.example:vmk0]"
        assert dvswitch["/dc1/dvs-mgmt:run2"]["spec"] == {"host": host_update_spec("esx1.example", "edit")}
        assert dvswitch["/dc1/dvs-mgmt:run3"]["require"] == "Vcenter::Dvswitch[/dc1/dvs-mgmt:run2]"
        assert dvswitch["/dc1/dvs-mgmt:run3"]["spec"] == {"host": host_update_spec("esx1.example", "remove")}

        assert out["transport"]["vcenter"]["provider"] == "device_file"

    def test_single_uplink_uses_deployment_backup(self) -> None:
        host = EsxHost("vmware_esxi-host3", "esx3.example", MGMT, "pw", backup_vmnic="vmnic1")
        out = _provider(esxcli=_esxcli(single_uplink=True)).vds_hash(host)
        assert out["esx_vswitch"]["esx3.example:vSwitch0"]["nics"] == ["vmnic1"]

    def test_single_uplink_without_backup_raises(self) -> None:
        with pytest.raises(VdsMigrationError):
            _provider(esxcli=_esxcli(single_uplink=True)).vds_hash(HOST1)

    def test_unreachable_host_only_enters_maintenance(self) -> None:
        out = _provider(esxcli=MagicMock(side_effect=OSError("unreachable"))).vds_hash(HOST1)
        assert out == {
            "esx_maintmode": {
                "esx1.example": {
                    "ensure": "present",
                    "evacuate_powered_off_vms": True,
                    "timeout": 0,
                    "transport": VCENTER_TRANSPORT,
                }
            }
        }


class TestVsanHash:
    def test_cluster_teardown_chain(self) -> None:
        out = _provider(vsan_enabled=True).vsan_hash()

        assert out["vc_vsan"][CLUSTER_CERT] == {
            "ensure": "present",
            "auto_claim": "false",
            "cluster": "cluster1",
            "datacenter": "dc1",
            "transport": VCENTER_TRANSPORT,
        }
        maint = out["esx_maintmode"]
        assert maint["esx1.example"]["require"] == "Vc_vsan[vcenter-cluster-01]"
        assert maint["esx1.example"]["vsan_action"] == "noAction"
        assert maint["esx2.example"]["require"] == "Esx_maintmode[esx1.example]"

        disk_init = out["vc_vsan_disk_initialize"][CLUSTER_CERT]
        assert disk_init["require"] == "Esx_maintmode[esx2.example]"
        assert "cleanup_hosts" not in disk_init

        restore = out["vc_vsan"]["vcenter-cluster-01restore"]
        assert restore["ensure"] == "absent"
        assert restore["require"] == "Vc_vsan_disk_initialize[vcenter-cluster-01]"
        assert "transport" in out

    def test_single_host_teardown(self) -> None:
        out = _provider().vsan_hash("esx9.example")
        assert list(out["esx_maintmode"]) == ["esx9.example"]
        assert "vsan_action" not in out["esx_maintmode"]["esx9.example"]
        assert out["vc_vsan_disk_initialize"][CLUSTER_CERT]["cleanup_hosts"] == ["esx9.example"]


# ---------------------------------------------------------------------------
# Eviction
# ---------------------------------------------------------------------------


class TestEviction:
    def test_evict_server(self) -> None:
        engine = MagicMock()
        _provider(engine).evict_server(HOST1)
        certname, resources, run_type, *rest = engine.process_generic.call_args.args
        assert certname == "vmware_esxi-host1"
        assert resources["asm::host"]["vmware_esxi-host1"]["ensure"] == "absent"
        assert run_type == "device"
        assert rest == [True, None, None]

    def test_evict_vds_skipped_for_standard_switching(self) -> None:
        engine = MagicMock()
        assert _provider(engine).evict_vds(HOST1) is False
        engine.process_generic.assert_not_called()

    def test_evict_vds_applies_to_host(self) -> None:
        engine = MagicMock()
        assert _provider(engine, _esxcli(), vds_enabled="distributed").evict_vds(HOST1) is True
        assert engine.process_generic.call_args.args[0] == "vmware_esxi-host1"

    def test_evict_vsan_disabled(self) -> None:
        engine = MagicMock()
        assert _provider(engine).evict_vsan() is False
        engine.process_generic.assert_not_called()

    def test_evict_vsan_for_host(self) -> None:
        engine = MagicMock()
        assert _provider(engine, vsan_enabled=True).evict_vsan(HOST2) is True
        certname, resources = engine.process_generic.call_args.args[:2]
        assert certname == "vmware_esxi-host2"
        assert resources["vc_vsan_disk_initialize"][CLUSTER_CERT]["cleanup_hosts"] == ["esx2.example"]

    def test_evict_vsan_retries_once(self, monkeypatch: pytest.MonkeyPatch) -> None:
        sleep = MagicMock()
        monkeypatch.setattr("asm_provider.provider.vmware.time.sleep", sleep)
        engine = MagicMock()
        engine.process_generic.side_effect = [RuntimeError("vsan busy"), None]
        provider = _provider(engine, vsan_enabled=True, optional_args={"vsan_retry_delay": 5})

        assert provider.evict_vsan() is True
        sleep.assert_called_once_with(5.0)
        assert engine.process_generic.call_count == 2

    def test_evict_vsan_second_failure_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("asm_provider.provider.vmware.time.sleep", MagicMock())
        engine = MagicMock()
        engine.process_generic.side_effect = RuntimeError("vsan busy")
        with pytest.raises(ApplyError):
            _provider(engine, vsan_enabled=True).evict_vsan()

    def test_missing_engine_raises(self) -> None:
        provider = VmwareClusterProvider(CLUSTER_CERT, "dc1", "cluster1")
        with pytest.raises(ApplyError):
            provider.evict_server(HOST1)


class TestPrepareForTeardown:
    def test_every_step_runs_and_failures_are_reported(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("asm_provider.provider.vmware.time.sleep", MagicMock())

        def process_generic(certname: str, *args: object) -> None:
            if certname == "vmware_esxi-host1":
                raise RuntimeError("host unreachable")

        engine = MagicMock()
        engine.process_generic.side_effect = process_generic
        provider = _provider(engine, vsan_enabled=True, vds_enabled="distributed")

        report = provider.prepare_for_teardown()

        assert [s.name for s in report.steps] == [
            "evict_vsan",
            "evict_vds:vmware_esxi-host1",
            "evict_vds:vmware_esxi-host2",
        ]
        assert [s.name for s in report.failed] == ["evict_vds:vmware_esxi-host1"]
        assert isinstance(report.failed[0].error, ApplyError)
        assert report.ok is False

    def test_nothing_to_do(self) -> None:
        report = _provider().prepare_for_teardown()
        assert report.steps == []
        assert report.ok is True
