"""chain-auditor error-code hierarchy.

Every failure the verifier can *raise* is a concrete exception class with a
stable error code.  Integrity findings that the walk produces (forks, broken
links, count mismatches, cancellation) are *verdicts*, not exceptions; see
:mod:`chain_auditor.verify.verdicts`.

Hierarchy
---------
::

    ChainAuditError
    +-- StoreError            (CA-E1xx)
    +-- ChainIntegrityError   (CA-E2xx)
    +-- ConfigurationError    (CA-E3xx)

Usage
-----
Raise concrete subclasses directly::

    raise EmptyChain(details={"chain_key": "acme"})

Catch by category::

    try:
        ...
    except StoreError:
        # handles StoreUnavailable, EndpointNotFound
        ...
"""
from __future__ import annotations

from typing import Any

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

class ChainAuditError(Exception):
    """Base exception for all chain-auditor errors.

    Attributes
    ----------
    code : str
        Error code, e.g. ``"CA-E100"``.
    message : str
        Human-readable description.
    details : dict[str, Any]
        Machine-readable context specific to the error instance.
    resolution : str
        Suggested action for the operator.
    """

    code: str = "CA-E000"
    message: str = "Unknown chain-auditor error"
    resolution: str = ""

    def __init__(
        self,
        message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
        resolution: str | None = None,
    ) -> None:
        self.details: dict[str, Any] = details or {}
        if message is not None:
            self.message = message
        if resolution is not None:
            self.resolution = resolution
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialise the error for reports and CLI JSON output."""
        payload: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            payload["detail"] = self.details
        if self.resolution:
            payload["resolution"] = self.resolution
        return {"error": payload}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


# ===================================================================
# Category base classes
# ===================================================================

class StoreError(ChainAuditError):
    """CA-E1xx -- Failures reading from the backing chain store."""

    code = "CA-E1XX"


class ChainIntegrityError(ChainAuditError):
    """CA-E2xx -- The chain cannot be walked at all."""

    code = "CA-E2XX"


class ConfigurationError(ChainAuditError):
    """CA-E3xx -- Invalid verifier or store configuration."""

    code = "CA-E3XX"


# ===================================================================
# CA-E1xx  Store Errors
# ===================================================================

class StoreUnavailable(StoreError):
    """CA-E100 -- A store query failed (transport or query error)."""

    code = "CA-E100"
    message = "Chain store query failed"
    resolution = (
        "Check store connectivity and credentials, then re-run the "
        "verification.  Retries belong to the store configuration."
    )


class EndpointNotFound(StoreError):
    """CA-E101 -- The store reports records but returns no chain endpoint."""

    code = "CA-E101"
    message = "Store returned no genesis or head record for a non-empty chain"
    resolution = (
        "The store is inconsistent with its own count; re-run once "
        "concurrent writes have settled."
    )


# ===================================================================
# CA-E2xx  Chain Integrity Errors
# ===================================================================

class EmptyChain(ChainIntegrityError):
    """CA-E200 -- No records exist for the requested chain key."""

    code = "CA-E200"
    message = "Chain contains no records"
    resolution = "Verify the chain key is correct."


class DuplicateGenesis(ChainIntegrityError):
    """CA-E201 -- More than one record has an empty previous-hash."""

    code = "CA-E201"
    message = "Chain has more than one genesis record"
    resolution = (
        "Investigate the listed genesis candidates; at most one record "
        "may start the chain."
    )


class GenesisMissing(ChainIntegrityError):
    """CA-E202 -- The earliest record is not a genesis record."""

    code = "CA-E202"
    message = "Chain has no genesis record at its earliest position"
    resolution = (
        "The earliest record must carry an empty previous-hash; the "
        "start of the chain has been removed or rewritten."
    )


# ===================================================================
# CA-E3xx  Configuration Errors
# ===================================================================

class UnknownStoreProvider(ConfigurationError):
    """CA-E300 -- The configured store provider name is not recognised."""

    code = "CA-E300"
    message = "Unknown store provider"
    resolution = "Set the store provider to one of: memory, sql."


class InconsistentReads(ConfigurationError):
    """CA-E301 -- The store does not guarantee strongly consistent reads."""

    code = "CA-E301"
    message = "Chain store is not configured for consistent reads"
    resolution = (
        "Enable consistent reads on the store; stale reads can report "
        "a missing or wrong genesis."
    )


# ===================================================================
# Code -> class lookup
# ===================================================================

_CODE_MAP: dict[str, type[ChainAuditError]] = {
    cls.code: cls
    for cls in [
        # E1xx
        StoreUnavailable,
        EndpointNotFound,
        # E2xx
        EmptyChain,
        DuplicateGenesis,
        GenesisMissing,
        # E3xx
        UnknownStoreProvider,
        InconsistentReads,
    ]
}


def error_from_code(code: str, message: str | None = None) -> ChainAuditError:
    """Instantiate the correct exception class for an error code.

    Raises
    ------
    KeyError
        If *code* is not a recognised error code.
    """
    cls = _CODE_MAP[code]
    return cls(message) if message else cls()
