"""Switch provider construction and fan-out across several switches."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from asm_provider.client.apply import ApplyEngine
from asm_provider.client.errors import SwitchConfigurationError
from asm_provider.model.facts import SwitchFacts
from asm_provider.model.server import ServerConfig
from asm_provider.provider.family import SwitchFamily, classify_switch
from asm_provider.provider.force10 import Force10Provider
from asm_provider.provider.nexus5k import Nexus5kProvider
from asm_provider.provider.powerconnect import PowerconnectProvider
from asm_provider.provider.switch import SwitchProvider

logger = logging.getLogger(__name__)

_PROVIDERS: dict[SwitchFamily, type[SwitchProvider]] = {
    SwitchFamily.FORCE10_RACK: Force10Provider,
    SwitchFamily.BLADE_IOA: Force10Provider,
    SwitchFamily.BLADE_MXL: Force10Provider,
    SwitchFamily.POWERCONNECT: PowerconnectProvider,
    SwitchFamily.NEXUS5K: Nexus5kProvider,
}


def new_switch_provider(
    certname: str,
    model: str = "",
    facts: SwitchFacts | dict[str, Any] | None = None,
    apply_engine: ApplyEngine | None = None,
    optional_args: dict[str, Any] | None = None,
) -> SwitchProvider:
    """Create the provider matching the switch family of *certname* / *model*.

    Raises:
        UnsupportedOperationError: When the switch cannot be classified.
    """
    cls = _PROVIDERS[classify_switch(certname, model)]
    return cls(certname, model, facts, apply_engine, optional_args)


class SwitchCollection:
    """The switches a deployment configures server ports on.

    Args:
        switches: Providers of the managed switches.
    """

    def __init__(self, switches: Iterable[SwitchProvider]) -> None:
        self.switches = list(switches)

    def __len__(self) -> int:
        return len(self.switches)

    def switch_by_certname(self, certname: str) -> SwitchProvider | None:
        return next((s for s in self.switches if s.certname == certname), None)

    def switch_for_mac(self, mac: str) -> SwitchProvider | None:
        """Return the first switch that has seen *mac* on one of its ports."""
        for switch in self.switches:
            if switch.find_mac(mac):
                return switch
        return None

    def configure_server_switches(self, servers: Iterable[ServerConfig], max_workers: int | None = None) -> None:
        """Record the port intent of every server, then apply all switches in parallel.

        Every switch runs to completion before errors are reported.

        Raises:
            SwitchConfigurationError: Naming every switch that failed to apply.
        """
        servers = list(servers)
        for switch in self.switches:
            for server in servers:
                switch.configure_server(server, staged=True)

        if not self.switches:
            return

        failed: dict[str, Exception] = {}
        with ThreadPoolExecutor(max_workers=max_workers or len(self.switches)) as executor:
            futures = {executor.submit(switch.process): switch for switch in self.switches}
            for future, switch in futures.items():
                try:
                    future.result()
                except Exception as exc:
                    logger.error("Failed to configure switch %s: %s", switch.certname, exc)
                    failed[switch.certname] = exc
        if failed:
            raise SwitchConfigurationError(failed)
