"""Port channel membership change-set planner.

Compares the current port channel membership reported by a switch against
the desired uplink port channels and produces a :class:`PortChannelChangeSet`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from asm_provider.model.uplink import PortChannelDescriptor

logger = logging.getLogger(__name__)


@dataclass
class PortChannelChangeSet:
    """Planned port channel changes.

    Attributes:
        members: Desired port channel to the interfaces to place in it.
        remove_members: Port channel to the interfaces to take out of it.
        remove_channels: Current port channels absent from the desired state.
    """

    members: dict[str, list[str]] = field(default_factory=dict)
    remove_members: dict[str, list[str]] = field(default_factory=dict)
    remove_channels: list[str] = field(default_factory=list)


def plan_portchannel_changes(
    current: dict[str, list[str]],
    desired: dict[str, PortChannelDescriptor],
) -> PortChannelChangeSet:
    """Compute port channel membership changes needed to reach *desired*.

    An interface that leaves one channel is not scheduled for removal when
    any desired channel claims it, so each physical port is managed once.

    Args:
        current: Port channel number to its current member interfaces.
        desired: Port channel number to its desired state.

    Returns:
        A :class:`PortChannelChangeSet`; channel order follows *desired*.
    """
    in_use = {i for settings in desired.values() for i in settings.interfaces}
    changes = PortChannelChangeSet()

    for pc, settings in desired.items():
        changes.members[pc] = list(settings.interfaces)
        if pc not in current:
            continue
        stale = [i for i in current[pc] if i not in settings.interfaces]
        removals = [i for i in stale if i not in in_use]
        for interface in stale:
            if interface in in_use:
                logger.debug(
                    "Keeping %s out of the removals for port channel %s, another channel claims it",
                    interface,
                    pc,
                )
        if removals:
            changes.remove_members[pc] = removals

    changes.remove_channels = [pc for pc in current if pc not in desired]
    return changes
