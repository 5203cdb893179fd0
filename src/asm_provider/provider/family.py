"""Switch family classification from inventory reference IDs and models."""

from __future__ import annotations

import enum
import logging
import re

from asm_provider.client.errors import UnsupportedOperationError

logger = logging.getLogger(__name__)

_FORCE10_REF_RE = re.compile(r"^(dell_ftos|dell_iom)")
_RACK_REF_RE = re.compile(r"^dell_ftos")
_POWERCONNECT_REF_RE = re.compile(r"^dell_powerconnect")
_NEXUS5K_REF_RE = re.compile(r"^cisconexus5k")
_IOA_MODEL_RE = re.compile(r"Aggregator|IOA|PE-FN")
_MXL_MODEL_RE = re.compile(r"MXL")


class SwitchFamily(enum.Enum):
    """One member per concrete resource creator."""

    FORCE10_RACK = "force10_rack"
    BLADE_IOA = "blade_ioa"
    BLADE_MXL = "blade_mxl"
    POWERCONNECT = "powerconnect"
    NEXUS5K = "nexus5k"

    @property
    def force10(self) -> bool:
        return self in (SwitchFamily.FORCE10_RACK, SwitchFamily.BLADE_IOA, SwitchFamily.BLADE_MXL)

    @property
    def blade(self) -> bool:
        return self in (SwitchFamily.BLADE_IOA, SwitchFamily.BLADE_MXL)


def classify_switch(ref_id: str, model: str | None) -> SwitchFamily:
    """Map an inventory reference ID and model string to a :class:`SwitchFamily`.

    Rules, first match wins:

    - ``^cisconexus5k`` reference: Nexus 5k.
    - ``^dell_powerconnect`` reference: Powerconnect.
    - ``^dell_ftos`` reference: Force10 top of rack.
    - ``^dell_iom`` reference with an ``Aggregator``, ``IOA`` or ``PE-FN``
      model: blade IOA.
    - ``^dell_iom`` reference with an ``MXL`` model: blade MXL.

    Raises:
        UnsupportedOperationError: When no rule matches.
    """
    model = model or ""
    if _NEXUS5K_REF_RE.match(ref_id):
        family = SwitchFamily.NEXUS5K
    elif _POWERCONNECT_REF_RE.match(ref_id):
        family = SwitchFamily.POWERCONNECT
    elif _RACK_REF_RE.match(ref_id):
        family = SwitchFamily.FORCE10_RACK
    elif _FORCE10_REF_RE.match(ref_id) and _IOA_MODEL_RE.search(model):
        family = SwitchFamily.BLADE_IOA
    elif _FORCE10_REF_RE.match(ref_id) and _MXL_MODEL_RE.search(model):
        family = SwitchFamily.BLADE_MXL
    else:
        raise UnsupportedOperationError(
            f"Do not know how to manage resources for switch {ref_id} with model {model}, "
            "no suitable resource creator could be found"
        )
    logger.debug("Classified %s (%s) as %s", ref_id, model, family.value)
    return family
