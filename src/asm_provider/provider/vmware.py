"""VMware cluster teardown: VDS and VSAN eviction of ESXi hosts.

Eviction builds resource graphs in the same way switch creators do: a
:class:`~asm_provider.model.resource.ResourceSet` threaded through a
:class:`~asm_provider.model.resource.Sequencer`.  The management vmkernel
``vmk0`` is moved to a standard vSwitch before its host leaves the
management VDS.
"""

from __future__ import annotations

import functools
import logging
import re
import time
from collections.abc import Iterable
from typing import Any

from asm_provider.client.apply import ApplyEngine, EsxCli, Resources
from asm_provider.client.errors import ApplyError, VdsMigrationError
from asm_provider.model.resource import ResourceSet, Sequencer
from asm_provider.model.server import EsxHost
from asm_provider.model.teardown import TeardownReport, run_best_effort
from asm_provider.model.uplink import Network

logger = logging.getLogger(__name__)

ESXI_ADMIN_USER = "root"
DEFAULT_VSAN_RETRY_DELAY = 120
VCENTER_TRANSPORT = "Transport[vcenter]"
MANAGEMENT_PORTGROUP = "Management Network"
STANDARD_VSWITCH = "vSwitch0"

_VMK_CLIENT_RE = re.compile(r"^\s*Client:\s*(vmk\S+)", re.MULTILINE)
_VDS_NAME_RE = re.compile(r"^(\S+)", re.MULTILINE)
_UPLINKS_RE = re.compile(r"^\s*Uplinks:\s*(.*?)$", re.MULTILINE)


class VmwareClusterProvider:
    """Evict ESXi hosts from the VDS and VSAN configuration of a cluster.

    Args:
        certname: Cluster (vCenter) certname, also the transport name.
        datacenter: vCenter datacenter name.
        cluster: vCenter cluster name.
        apply_engine: Engine the resource sets are handed to.
        esxcli: Runs an ESXCLI command against a host endpoint.
        hosts: ESXi hosts of the cluster.
        vsan_enabled: Whether VSAN is enabled on the cluster.
        vds_enabled: ``"distributed"`` when the cluster uses VDS switching.
        vds_names: Existing VDS names keyed by ``"vds_name:<network ids>"``.
        optional_args: Optional provider configuration overrides.
            Supported keys:

            - ``run_type`` (str): apply engine run type (default ``"device"``).
            - ``vsan_retry_delay`` (int): seconds before retrying a failed
              cluster VSAN teardown (default ``120``).
            - ``decrypt`` (bool): whether host passwords are encrypted
              (default ``True``).
    """

    def __init__(
        self,
        certname: str,
        datacenter: str,
        cluster: str,
        apply_engine: ApplyEngine | None = None,
        esxcli: EsxCli | None = None,
        hosts: Iterable[EsxHost] = (),
        vsan_enabled: bool = False,
        vds_enabled: str = "standard",
        vds_names: dict[str, str] | None = None,
        optional_args: dict[str, Any] | None = None,
    ) -> None:
        self.certname = certname
        self.datacenter = datacenter
        self.cluster = cluster
        self.apply_engine = apply_engine
        self.esxcli = esxcli
        self.hosts = list(hosts)
        self.vsan_enabled = vsan_enabled
        self.vds_enabled = vds_enabled
        self.vds_names: dict[str, str] = dict(vds_names or {})
        self.optional_args: dict[str, Any] = optional_args or {}
        self.run_type: str = str(self.optional_args.get("run_type", "device"))
        self.vsan_retry_delay = float(self.optional_args.get("vsan_retry_delay", DEFAULT_VSAN_RETRY_DELAY))
        self.decrypt = bool(self.optional_args.get("decrypt", True))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.certname!r}, {self.datacenter!r}, {self.cluster!r})"

    # ------------------------------------------------------------------
    # Resource hashes
    # ------------------------------------------------------------------

    def transport_config(self, name: str | None = None) -> Resources:
        return {
            "transport": {
                "vcenter": {
                    "name": name or self.certname,
                    "options": {"insecure": True},
                    "provider": "device_file",
                }
            }
        }

    def asm_host_hash(self, host: EsxHost, ensure: str, include_transport: bool = False) -> Resources:
        """``asm::host`` resource adding *host* to or removing it from the cluster."""
        attrs: dict[str, Any] = {
            "datacenter": self.datacenter,
            "cluster": self.cluster,
            "hostname": host.hostname,
            "username": ESXI_ADMIN_USER,
            "password": host.admin_password or None,
            "decrypt": self.decrypt,
            "timeout": 90,
            "ensure": ensure,
        }
        resources: Resources = {"asm::host": {host.certname: {k: v for k, v in attrs.items() if v is not None}}}
        if include_transport:
            resources.update(self.transport_config())
        return resources

    def vds_hash(self, host: EsxHost, include_transport: bool = False) -> Resources:
        """Resources removing *host* from every VDS it is a member of.

        Order: vmknic removals, maintenance mode, removal from each
        non-management VDS, then the management vmkernel migration when
        ``vmk0`` lives on a VDS.

        Raises:
            VdsMigrationError: When ``vmk0`` must move but no backup vmnic is known.
        """
        switches, vmk_nics = self.vds_vmk_nics(host)
        resources = ResourceSet(host.certname)
        sequencer = Sequencer()

        vmknic_refs = []
        for vmk_nic in vmk_nics:
            if vmk_nic == "vmk0":
                continue
            vmknic = resources.declare(
                "vcenter::vmknic",
                f"{host.hostname}:{vmk_nic}",
                {"ensure": "absent", "transport": VCENTER_TRANSPORT},
            )
            sequencer.chain(vmknic)
            vmknic_refs.append(vmknic.ref)

        maintmode = resources.declare(
            "esx_maintmode",
            host.hostname,
            {
                "ensure": "present",
                "evacuate_powered_off_vms": True,
                "timeout": 0,
                "transport": VCENTER_TRANSPORT,
            },
        )
        for ref in vmknic_refs:
            ResourceSet.add_require(maintmode, ref, style="list")
        sequencer.advance(maintmode)

        management_vds = self.management_vds_name(host)
        logger.debug("Management vds name : %s", management_vds)
        for vds in switches:
            if vds == management_vds:
                continue
            dvswitch = resources.declare(
                "vcenter::dvswitch",
                f"/{self.datacenter}/{vds}",
                {
                    "ensure": "present",
                    "transport": VCENTER_TRANSPORT,
                    "spec": {"host": host_update_spec(host.hostname, "remove")},
                },
            )
            sequencer.chain(dvswitch)

        if "vmk0" in vmk_nics:
            self.management_vds_resources(resources, sequencer, host)

        out = resources.to_dict()
        if include_transport:
            out.update(self.transport_config())
        return out

    def management_vds_resources(self, resources: ResourceSet, sequencer: Sequencer, host: EsxHost) -> None:
        """Move ``vmk0`` to a standard vSwitch and take *host* off the management VDS.

        The live management uplink is moved first, then the vSwitch, port
        group and vmkernel are created on the backup vmnic before the host
        leaves the VDS.
        """
        network = host.management_network
        vds = self.management_vds_name(host) or ""
        uplinks = self.vds_uplinks(host, vds)
        backup_vmnic = self.management_backup_vmnic(host, uplinks)
        vlan_id = network.vlan_id if network is not None else None

        run1 = resources.declare(
            "vcenter::dvswitch",
            f"/{self.datacenter}/{vds}:run1",
            {
                "ensure": "present",
                "transport": VCENTER_TRANSPORT,
                "spec": {
                    "host": [
                        {
                            "host": host.hostname,
                            "operation": "edit",
                            "backing": {
                                "pnicSpec": [
                                    {
                                        "pnicDevice": uplinks[0] if uplinks else None,
                                        "uplinkPortgroupKey": f"{vds}-uplink-pg",
                                    }
                                ]
                            },
                        }
                    ]
                },
            },
        )
        sequencer.chain(run1)

        vswitch = resources.declare(
            "esx_vswitch",
            f"{host.hostname}:{STANDARD_VSWITCH}",
            {
                "path": f"/{self.datacenter}",
                "nics": [backup_vmnic],
                "nicorderpolicy": {"activenic": [backup_vmnic]},
                "transport": VCENTER_TRANSPORT,
            },
        )
        sequencer.chain(vswitch)

        portgroup = resources.declare(
            "esx_portgroup",
            f"{host.hostname}:{MANAGEMENT_PORTGROUP}",
            {
                "vswitch": STANDARD_VSWITCH,
                "path": f"/{self.datacenter}/{self.cluster}/",
                "vlanid": vlan_id,
                "transport": VCENTER_TRANSPORT,
            },
        )
        sequencer.chain(portgroup)

        vmk0 = resources.declare(
            "vcenter::vmknic",
            f"{host.hostname}:vmk0",
            {
                "ensure": "present",
                "hostVirtualNicSpec": {"portgroup": MANAGEMENT_PORTGROUP, "vlanid": vlan_id},
                "transport": VCENTER_TRANSPORT,
            },
        )
        sequencer.chain(vmk0)

        for run, operation in (("run2", "edit"), ("run3", "remove")):
            dvswitch = resources.declare(
                "vcenter::dvswitch",
                f"/{self.datacenter}/{vds}:{run}",
                {
                    "ensure": "present",
                    "transport": VCENTER_TRANSPORT,
                    "spec": {"host": host_update_spec(host.hostname, operation)},
                },
            )
            sequencer.chain(dvswitch)

    def management_backup_vmnic(self, host: EsxHost, uplinks: list[str]) -> str:
        """Second live uplink of the management VDS, else the deployment value.

        Raises:
            VdsMigrationError: When neither is available.
        """
        if len(uplinks) > 1:
            return uplinks[1]
        logger.info("Management backup vmnic not configured. Retrieve value from deployment input")
        if not host.backup_vmnic:
            raise VdsMigrationError(
                f"No backup vmnic available to migrate the management vmkernel of {host.hostname}"
            )
        return host.backup_vmnic

    def vsan_hash(self, hostname: str | None = None) -> Resources:
        """Resources tearing down VSAN for the whole cluster or one host.

        VSAN is disabled, hosts enter maintenance mode, disks are
        initialized, then a transient ``<cluster>restore`` VSAN resource is
        removed once the disks are released.
        """
        resources = ResourceSet(self.certname)
        sequencer = Sequencer()
        sequencer.advance(resources.declare("vc_vsan", self.certname, self.vc_vsan_attributes("present")))

        hostnames = [hostname] if hostname is not None else [h.hostname for h in self.hosts]
        for name in hostnames:
            attrs: dict[str, Any] = {
                "ensure": "present",
                "evacuate_powered_off_vms": True,
                "timeout": 0,
                "transport": VCENTER_TRANSPORT,
            }
            if self.vsan_enabled:
                attrs["vsan_action"] = "noAction"
            sequencer.chain(resources.declare("esx_maintmode", name, attrs))

        disk_init = resources.declare(
            "vc_vsan_disk_initialize",
            self.certname,
            {
                "ensure": "absent",
                "cluster": self.cluster,
                "datacenter": self.datacenter,
                "transport": VCENTER_TRANSPORT,
            },
        )
        if hostname is not None:
            disk_init["cleanup_hosts"] = [hostname]
        sequencer.chain(disk_init)

        restore = resources.declare("vc_vsan", f"{self.certname}restore", self.vc_vsan_attributes("absent"))
        ResourceSet.set_require(restore, disk_init.ref)

        out = resources.to_dict()
        out.update(self.transport_config())
        return out

    def vc_vsan_attributes(self, ensure: str) -> dict[str, Any]:
        return {
            "ensure": ensure,
            "auto_claim": "false",
            "cluster": self.cluster,
            "datacenter": self.datacenter,
            "transport": VCENTER_TRANSPORT,
        }

    # ------------------------------------------------------------------
    # Host inspection
    # ------------------------------------------------------------------

    def esx_endpoint(self, host: EsxHost) -> dict[str, str]:
        return {"host": host.hostname, "user": ESXI_ADMIN_USER, "password": host.admin_password}

    def run_esxcli(self, host: EsxHost, command: list[str]) -> str:
        """Run *command* on *host*; failures are logged and yield ``""``."""
        if self.esxcli is None:
            logger.debug("No ESXCLI runner configured, skipping '%s'", " ".join(command))
            return ""
        try:
            return self.esxcli(command, self.esx_endpoint(host)) or ""
        except Exception as exc:
            logger.debug(
                "Error while executing command '%s', this can be ignored when the server is not accessible: %s",
                " ".join(command), exc,
            )
            return ""

    def vds_vmk_nics(self, host: EsxHost) -> tuple[list[str], list[str]]:
        """Return the VDS names and VDS vmkernel clients of *host*."""
        output = self.run_esxcli(host, ["network", "vswitch", "dvs", "vmware", "list"])
        return _VDS_NAME_RE.findall(output), _VMK_CLIENT_RE.findall(output)

    def vds_uplinks(self, host: EsxHost, vds_name: str) -> list[str]:
        """Sorted uplink vmnics of *vds_name* on *host*."""
        output = self.run_esxcli(host, ["network", "vswitch", "dvs", "vmware", "list", "--vds-name", vds_name])
        match = _UPLINKS_RE.search(output)
        if match is None:
            return []
        return sorted(u.strip() for u in match.group(1).split(",") if u.strip())

    def vds_name(self, networks: Iterable[Network]) -> str | None:
        """Name of the VDS carrying every one of *networks*."""
        network_ids = [n.id for n in networks]
        for key, name in self.vds_names.items():
            if key.startswith("vds_name:") and all(i in key for i in network_ids):
                return name
        return None

    def management_vds_name(self, host: EsxHost) -> str | None:
        if host.management_network is None:
            return None
        return self.vds_name([host.management_network])

    # ------------------------------------------------------------------
    # Eviction
    # ------------------------------------------------------------------

    def apply(self, certname: str, resources: Resources) -> None:
        if self.apply_engine is None:
            raise ApplyError(certname, RuntimeError("no apply engine configured"))
        try:
            self.apply_engine.process_generic(certname, resources, self.run_type, True, None, None)
        except Exception as exc:
            raise ApplyError(certname, exc) from exc

    def evict_server(self, host: EsxHost) -> None:
        logger.debug("Removing server %s from the cluster %s", host.certname, self.certname)
        self.apply(host.certname, self.asm_host_hash(host, "absent", True))

    def evict_vds(self, host: EsxHost) -> bool:
        """Remove *host* from the cluster's distributed switches.

        Returns:
            ``False`` when the cluster does not use VDS switching.
        """
        if self.vds_enabled != "distributed":
            logger.info(
                "Skipping VDS eviction of server %s as VDS is not enabled (%s)", host.certname, self.vds_enabled
            )
            return False
        logger.info("Configuring VDS eviction of server %s as VDS is enabled (%s)", host.certname, self.vds_enabled)
        resources = self.vds_hash(host, True)
        logger.info("Removing server from VDS %s from the cluster %s", host.certname, self.certname)
        self.apply(host.certname, resources)
        return True

    def evict_vsan(self, host: EsxHost | None = None) -> bool:
        """Tear down VSAN for one host, or for the cluster with one retry.

        Returns:
            ``False`` when VSAN is not enabled.
        """
        if not self.vsan_enabled:
            return False
        if host is not None:
            logger.info("Configuring VSAN eviction of server %s as VSAN is enabled", host.certname)
            self.apply(host.certname, self.vsan_hash(host.hostname))
            return True

        logger.info("Configuring VSAN eviction of cluster %s as VSAN is enabled", self.certname)
        try:
            self.apply(self.certname, self.vsan_hash())
        except ApplyError as exc:
            logger.info(
                "Failure encountered during VSAN teardown of %s. Will retry after %s seconds: %s",
                self.certname, self.vsan_retry_delay, exc,
            )
            time.sleep(self.vsan_retry_delay)
            self.apply(self.certname, self.vsan_hash())
        return True

    def evict_related_servers(self) -> TeardownReport:
        steps = []
        for host in self.hosts:
            logger.info(
                "Removing server %s from VDS configuration of cluster %s that is being torn down",
                host.certname, self.certname,
            )
            steps.append((f"evict_vds:{host.certname}", functools.partial(self.evict_vds, host)))
        return run_best_effort(steps)

    def prepare_for_teardown(self) -> TeardownReport:
        """Best-effort VSAN and VDS eviction before the cluster is removed.

        Every step runs even when an earlier one fails; failures are
        reported rather than raised.
        """
        report = TeardownReport()
        if self.vsan_enabled:
            report.extend(run_best_effort([("evict_vsan", self.evict_vsan)]))
        if self.vds_enabled == "distributed":
            report.extend(self.evict_related_servers())
        return report


def host_update_spec(hostname: str, operation: str) -> list[dict[str, str]]:
    return [{"host": hostname, "operation": operation}]
