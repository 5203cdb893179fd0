"""Chassis inventory client used to find peer I/O modules."""

from __future__ import annotations

import logging
from typing import Any

from asm_provider.client.errors import ASMParseError
from asm_provider.client.http import ASMHTTP
from asm_provider.model.uplink import ChassisIom
from asm_provider.vendor.dell import endpoints

logger = logging.getLogger(__name__)


class ChassisClient:
    """Read chassis inventory from the chassis RA.

    Args:
        base_url: Chassis RA URL (default :data:`~asm_provider.vendor.dell.endpoints.DEFAULT_CHASSIS_RA_URL`).
        timeout_s: Request timeout in seconds.
        http: Pre-built HTTP wrapper, mainly for tests.
    """

    def __init__(
        self,
        base_url: str = endpoints.DEFAULT_CHASSIS_RA_URL,
        timeout_s: float = 30.0,
        http: ASMHTTP | None = None,
    ) -> None:
        self._http = http or ASMHTTP(base_url, timeout_s=timeout_s)

    @classmethod
    def from_optional_args(cls, optional_args: dict[str, Any] | None) -> ChassisClient:
        """Build a client from the ``chassis_ra_url`` and ``timeout`` provider options."""
        optional_args = optional_args or {}
        return cls(
            base_url=str(optional_args.get("chassis_ra_url", endpoints.DEFAULT_CHASSIS_RA_URL)),
            timeout_s=float(optional_args.get("timeout", 30.0)),
        )

    @property
    def base_url(self) -> str:
        return self._http.base_url

    def cmc_inventory(self, service_tag: str) -> dict[str, Any]:
        """Return the inventory of the chassis with *service_tag*.

        Raises:
            ASMParseError: When the response is not JSON or lists no chassis.
            ASMRequestError: On transport failure.
            ASMResponseError: On a non-2xx status.
        """
        data = self._http.get_json(
            endpoints.CHASSIS_BY_SERVICE_TAG,
            params={"filter": f"eq,serviceTag,{service_tag}"},
        )
        if not isinstance(data, list) or not data:
            raise ASMParseError(f"No chassis found with service tag {service_tag}")
        return data[0]

    def chassis_ioms(self, service_tag: str) -> list[ChassisIom]:
        """Return every I/O module of the chassis with *service_tag*."""
        ioms = self.cmc_inventory(service_tag).get("ioms") or []
        logger.debug("Chassis %s has %d I/O modules", service_tag, len(ioms))
        return [ChassisIom.from_dict(m) for m in ioms]

    def close(self) -> None:
        self._http.close()
