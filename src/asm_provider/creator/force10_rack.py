"""Force10 top of rack switch creator.

Every managed port gets a ``force10_interface`` resource and every VLAN a
``force10_vlan`` resource listing the interfaces it must be applied before.
"""

from __future__ import annotations

import logging
from typing import ClassVar

from asm_provider.client.errors import UnsupportedOperationError
from asm_provider.creator.force10_base import Force10Creator
from asm_provider.model.request import DEFAULT_MTU, Action
from asm_provider.utils.normalize import bool_str

logger = logging.getLogger(__name__)


class Force10RackCreator(Force10Creator):
    """Manage VLAN membership on Dell Force10 top of rack switches."""

    joins: ClassVar[dict[str, tuple[str, ...]]] = {
        "force10_interface": ("tagged_vlan", "untagged_vlan"),
    }
    vlan_type: ClassVar[str] = "force10_vlan"
    portchannel_type: ClassVar[str] = "force10_portchannel"

    def portchannel_resource(
        self,
        number: str | int,
        fcoe: bool = False,
        remove: bool = False,
        vlt_peer: bool = False,
        ungroup: bool = False,
        mtu: str = DEFAULT_MTU,
    ) -> None:
        """Declare a ``force10_portchannel``; *fcoe* and *vlt_peer* do not apply to rack switches."""
        self.declare(
            "force10_portchannel",
            number,
            {
                "ensure": "absent" if remove else "present",
                "portmode": "hybrid",
                "switchport": "true",
                "shutdown": "false",
                "mtu": mtu,
                "ungroup": bool_str(ungroup),
            },
        )

    def mxl_interface_resource(self, interface: str, port_channel: str | int | None = None) -> None:
        raise UnsupportedOperationError(
            "Managing MXL interfaces for Uplinks on TOR switches are not supported"
        )

    def prepare(self, action: Action) -> bool:
        self.reset()
        self.validate_vlans()
        self.populate_port_resources(action)
        self.populate_vlan_resources(action)
        logger.debug("Prepared %d resources for %s on %s", len(self.resources), action, self.certname)
        return bool(self.resources)
