"""Common resource creator behaviour shared by every switch family.

A creator records per-interface VLAN requests and turns them into a
:class:`~asm_provider.model.resource.ResourceSet` for one action at a time.
The request log survives :meth:`Creator.prepare`; the resource set and the
sequencer do not.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, ClassVar

from asm_provider.client.errors import UnsupportedOperationError, UntaggedVlanError
from asm_provider.model.facts import SwitchFacts
from asm_provider.model.request import DEFAULT_MTU, Action, InterfaceRequest, make_request
from asm_provider.model.resource import Resource, ResourceSet, Sequencer
from asm_provider.model.uplink import VltData
from asm_provider.utils.render import render_resources

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SwitchInfo:
    """What a creator knows about the switch it builds resources for.

    Attributes:
        certname: Switch certname, also its inventory reference ID.
        model: Switch model string, e.g. ``"PowerEdge M I/O Aggregator"``.
        facts: Fact snapshot for the current cycle.
    """

    certname: str
    model: str = ""
    facts: SwitchFacts = field(default_factory=SwitchFacts)


class Creator:
    """Base resource creator.

    Subclasses implement :meth:`prepare` and set :attr:`joins` to the list
    valued properties :meth:`to_puppet` joins to comma separated strings.

    Args:
        switch: The switch being configured.
    """

    joins: ClassVar[dict[str, tuple[str, ...]]] = {}
    join_empty: ClassVar[bool] = True

    def __init__(self, switch: SwitchInfo) -> None:
        self.switch = switch
        self.requests: list[InterfaceRequest] = []
        self.resources = ResourceSet(switch.certname)
        self.sequencer = Sequencer()

    @property
    def certname(self) -> str:
        return self.switch.certname

    @property
    def model(self) -> str:
        return self.switch.model

    @property
    def facts(self) -> SwitchFacts:
        return self.switch.facts

    @property
    def sequence(self) -> str | None:
        return self.sequencer.current

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self, start_sequence: str | None = None) -> None:
        """Discard declared resources and seed the sequencer with *start_sequence*."""
        self.resources.clear()
        self.sequencer.reset(start_sequence)

    def configure_interface_vlan(
        self,
        interface: str,
        vlan: str | int,
        tagged: bool,
        remove: bool = False,
        portchannel: str | int | None = None,
        mtu: str = DEFAULT_MTU,
    ) -> None:
        """Record that *interface* should (or should no longer) carry *vlan*.

        Example::

            creator.configure_interface_vlan("Te 1/1", "10", True)
            creator.configure_interface_vlan("Te 1/1", "11", True)
            creator.configure_interface_vlan("Te 1/1", "18", False)
            creator.prepare("add")
            creator.to_puppet()

        Raises:
            ValueError: If *interface* is empty.
        """
        self.requests.append(make_request(interface, vlan, tagged, remove, portchannel, mtu))

    def requests_for(self, action: Action) -> list[InterfaceRequest]:
        return [r for r in self.requests if r.action == action]

    def validate_vlans(self) -> None:
        """Reject request logs with more than one untagged VLAN on a port.

        Raises:
            UntaggedVlanError: When any interface has two or more untagged requests.
        """
        errors = 0
        for interface in sorted({r.interface for r in self.requests}):
            untagged = sum(1 for r in self.requests if r.interface == interface and not r.tagged)
            if untagged > 1:
                logger.warning("attempt to configure %d untagged vlans on port %s", untagged, interface)
                errors += 1
        if errors:
            raise UntaggedVlanError(
                "can only have one untagged network but found multiple untagged vlan "
                f"requests for the same port on {self.certname}"
            )

    def prepare(self, action: Action) -> bool:
        """Materialize the resources for *action*.

        Returns:
            ``True`` when any resource was produced.
        """
        raise NotImplementedError

    def has_resource(self, resource_type: str, name: str | int) -> bool:
        return self.resources.has(resource_type, name)

    def to_puppet(self) -> dict[str, dict[str, dict[str, Any]]]:
        """Serialize the resource set for the apply engine."""
        return render_resources(self.resources, self.joins, skip_empty=not self.join_empty)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def declare(
        self,
        resource_type: str,
        name: str | int,
        attributes: dict[str, Any] | None = None,
        advance: bool = True,
    ) -> Resource:
        """Declare a resource chained to the current sequence pointer.

        Raises:
            ResourceConflictError: When the resource is already declared.
        """
        resource = self.resources.declare(resource_type, name, attributes)
        return self.sequencer.chain(resource, advance=advance)

    def unsupported(self, operation: str) -> UnsupportedOperationError:
        return UnsupportedOperationError(f"{operation} is not supported on {self.certname}")

    # ------------------------------------------------------------------
    # Vendor operations, unsupported unless a family overrides them
    # ------------------------------------------------------------------

    def portchannel_resource(
        self,
        number: str | int,
        fcoe: bool = False,
        remove: bool = False,
        vlt_peer: bool = False,
        ungroup: bool = False,
        mtu: str = DEFAULT_MTU,
    ) -> None:
        raise self.unsupported("Managing port channel resources")

    def configure_quadmode(
        self, interfaces: list[str] | None, enable: bool, reboot: bool = True
    ) -> None:
        raise self.unsupported("Configuring quadmode")

    def configure_iom_mode(self, pmux: bool, ethernet_mode: bool, vlt_data: VltData | None = None) -> None:
        raise self.unsupported("Configuring iom mode")

    def configure_force10_settings(self, settings: dict[str, Any]) -> None:
        raise self.unsupported("Configuring force10_settings")

    def ioa_interface_resource(
        self, interface: str, tagged_vlans: list[str], untagged_vlans: list[str]
    ) -> None:
        raise self.unsupported("Creating ioa_interface resources")

    def mxl_interface_resource(self, interface: str, port_channel: str | int | None = None) -> None:
        raise self.unsupported("Creating mxl_interface resources")

    def mxl_vlan_resource(
        self,
        vlan: str | int,
        name: str | None,
        description: str | None,
        port_channels: list[str] | None,
        remove: bool = False,
    ) -> None:
        raise self.unsupported("Creating mxl_vlan resources")

    def initialize_ports(self) -> None:
        raise self.unsupported("Initializing ports")

    def disable_autolag(self) -> None:
        raise self.unsupported("Disabling autolag")
