"""Custom exceptions for the asm-provider resource builders and clients."""

from __future__ import annotations

from dataclasses import dataclass, field


class ASMError(Exception):
    """Base exception for all asm-provider errors."""


@dataclass
class ResourceConflictError(ASMError):
    """Raised when a resource is declared twice without an intervening reset.

    Attributes:
        resource_type: Declarative resource type, e.g. ``"force10_interface"``.
        name: Resource identifier within that type.
        certname: Certname of the device the resource belongs to.
    """

    resource_type: str
    name: str
    certname: str = ""

    def __post_init__(self) -> None:
        where = f" on {self.certname}" if self.certname else ""
        super().__init__(
            f"{self.resource_type}[{self.name}] is already being managed{where}"
        )


class UntaggedVlanError(ASMError):
    """Raised when one port receives more than one untagged VLAN request."""


class UnsupportedOperationError(ASMError):
    """Raised when a switch family cannot perform the requested operation."""


class IomModeError(ASMError):
    """Raised when the I/O module mode conflicts with the requested configuration."""


class VltConfigurationError(ASMError):
    """Raised when VLT is requested but peer data cannot be determined."""


class VdsMigrationError(ASMError):
    """Raised when the management vmkernel cannot be migrated off a VDS."""


class ApplyError(ASMError):
    """Raised when the apply engine fails to enforce a resource set."""

    def __init__(self, certname: str, cause: Exception) -> None:
        self.certname = certname
        self.cause = cause
        super().__init__(f"Applying resources to {certname!r} failed: {cause}")


@dataclass
class SwitchConfigurationError(ASMError):
    """Raised when one or more switches failed to apply their resources.

    Attributes:
        failed: Mapping of switch certname to the error it raised.
    """

    failed: dict[str, Exception] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(
            "Switch configuration failed for " + ", ".join(sorted(self.failed))
        )


class ASMRequestError(ASMError):
    """Raised when a network-level error occurs (connection refused, timeout, etc.)."""

    def __init__(self, url: str, cause: Exception) -> None:
        self.url = url
        self.cause = cause
        super().__init__(f"Request to {url!r} failed: {cause}")


class ASMResponseError(ASMError):
    """Raised when a REST endpoint returns a non-2xx HTTP status code."""

    def __init__(self, status_code: int, url: str) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(f"HTTP {status_code} for {url!r}")


class ASMParseError(ASMError):
    """Raised when a JSON payload or command output cannot be interpreted."""
