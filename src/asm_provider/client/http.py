"""Low-level HTTP client wrapper for the appliance REST endpoints."""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Any

import requests

from asm_provider.client.errors import ASMParseError, ASMRequestError, ASMResponseError

logger = logging.getLogger(__name__)

try:
    _VERSION: str = importlib.metadata.version("asm-provider")
except importlib.metadata.PackageNotFoundError:
    _VERSION = "0.0.0"

_USER_AGENT: str = f"asm-provider/{_VERSION}"


def _normalise_base_url(url: str) -> str:
    """Ensure the URL has a scheme and no trailing slash."""
    url = url.rstrip("/")
    if not url.startswith(("http://", "https://")):
        url = "http://" + url
    return url


class ASMHTTP:
    """Low-level HTTP wrapper around :class:`requests.Session`.

    Every request asks for JSON. Transport failures and non-2xx statuses
    surface as :mod:`.errors` types, and :meth:`get_json` reports bodies
    that do not decode as :class:`~.errors.ASMParseError`.

    Args:
        base_url: Service base URL, e.g. ``http://localhost:9080/AsmManager/Chassis``.
        timeout_s: Request timeout in seconds (default 30).
        verify_tls: Whether to verify TLS certificates (default True).
    """

    def __init__(
        self,
        base_url: str,
        timeout_s: float = 30.0,
        verify_tls: bool = True,
    ) -> None:
        self.base_url: str = _normalise_base_url(base_url)
        self.timeout_s: float = timeout_s
        self.verify_tls: bool = verify_tls
        self._session: requests.Session = requests.Session()
        self._session.headers.update({"User-Agent": _USER_AGENT, "Accept": "application/json"})

    def get(
        self,
        path: str,
        params: dict[str, str] | None = None,
    ) -> requests.Response:
        """Send an HTTP GET to *path* and return the response.

        Args:
            path: URL path relative to :attr:`base_url`.
            params: Optional query-string parameters.

        Raises:
            ASMRequestError: On any transport-level failure.
            ASMResponseError: On a non-2xx HTTP status code.
        """
        url = self.base_url + path
        logger.debug("GET %s params=%s", url, params)
        try:
            resp = self._session.get(
                url,
                params=params,
                timeout=self.timeout_s,
                verify=self.verify_tls,
            )
        except requests.exceptions.RequestException as exc:
            raise ASMRequestError(url, exc) from exc
        self._raise_for_status(resp)
        return resp

    def get_json(self, path: str, params: dict[str, str] | None = None) -> Any:
        """GET *path* and decode the JSON body.

        Raises:
            ASMParseError: When the body is not valid JSON.
            ASMRequestError: On any transport-level failure.
            ASMResponseError: On a non-2xx HTTP status code.
        """
        resp = self.get(path, params=params)
        try:
            return resp.json()
        except ValueError as exc:
            content_type = resp.headers.get("Content-Type", "")
            raise ASMParseError(f"{resp.url} returned non-JSON content ({content_type or 'no content type'})") from exc

    def close(self) -> None:
        """Close the underlying :class:`requests.Session`."""
        self._session.close()

    def __enter__(self) -> ASMHTTP:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @staticmethod
    def _raise_for_status(resp: requests.Response) -> None:
        if not resp.ok:
            raise ASMResponseError(resp.status_code, resp.url)
