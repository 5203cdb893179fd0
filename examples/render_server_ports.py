#!/usr/bin/env python3
"""Example: print the resources a server's switch port configuration produces.

Nothing is sent to a switch; the apply engine below prints every resource
set it receives as JSON.  Edit ``SERVER`` and ``FACTS`` to match a real
switch port.

Usage::

    python examples/render_server_ports.py

Environment variables:
    ASM_SWITCH_CERT   Switch certname (default: dell_ftos-172.17.9.10).
    ASM_SWITCH_MODEL  Switch model (default: S4810).
    TEARDOWN          Set to "1" to render the teardown instead (default: 0).
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from asm_provider.model.server import NetworkAssignment, ServerConfig, ServerInterface
from asm_provider.model.uplink import Network
from asm_provider.provider.collection import new_switch_provider

# ---------------------------------------------------------------------------
# Server and switch facts: only the NIC seen in remote_device_info is touched.
# ---------------------------------------------------------------------------
PXE = Network("net-pxe", "pxe", 18, "PXE")
WORKLOAD = Network("net-web", "web", 20, "PUBLIC_LAN")

SERVER = ServerConfig(
    "bladeserver-ABC1234",
    interfaces=[
        ServerInterface(
            "NIC.Integrated.1-1-1",
            "00:0A:F7:06:88:50",
            (NetworkAssignment(PXE, tagged=False), NetworkAssignment(WORKLOAD)),
        )
    ],
    teardown=os.environ.get("TEARDOWN", "0") == "1",
)

FACTS: dict[str, Any] = {
    "remote_device_info": {"Te 0/4": {"remote_mac": "00:0a:f7:06:88:50"}},
}


class PrintingEngine:
    """Apply engine that prints instead of applying."""

    def process_generic(self, certname: str, resources: dict[str, Any], run_type: str, *args: Any) -> None:
        print(f"=== {certname} ({run_type}) ===")
        print(json.dumps(resources, indent=2, sort_keys=True))


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    certname = os.environ.get("ASM_SWITCH_CERT", "dell_ftos-172.17.9.10")
    model = os.environ.get("ASM_SWITCH_MODEL", "S4810")

    switch = new_switch_provider(certname, model, FACTS, PrintingEngine())
    switch.configure_server(SERVER)


if __name__ == "__main__":
    main()
