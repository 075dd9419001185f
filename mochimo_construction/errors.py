"""
Error taxonomy for the construction pipeline.

Every failure raised by this package derives from ConstructionError,
which carries a stable machine-readable ``error_code`` and a ``details``
dict for diagnostics. Transport failures (httpx.HTTPError, OSError, ...)
are NOT wrapped; they propagate to the caller unchanged.

Error codes:
    - ROSETTA_ERROR: node answered with a Rosetta error envelope.
    - MALFORMED_RESPONSE: a required response field is missing or mistyped.
    - MISSING_TX_HASH: submit succeeded but returned no transaction hash.
    - INVALID_STATE: pipeline transition called out of order.
    - NOT_FOUND: a single mempool lookup found nothing.
    - TIMEOUT: mempool monitor deadline elapsed.
    - INVALID_MEMO: strict memo encoding rejected the input.
"""

from __future__ import annotations

from typing import Any


class ConstructionError(Exception):
    """Base class for construction pipeline failures.

    Attributes:
        message: Human-readable description.
        error_code: Stable code for automation (see module docstring).
        details: Extra diagnostic fields. Never contains key material.
    """

    default_code = "CONSTRUCTION_ERROR"

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}


class RosettaApiError(ConstructionError):
    """The node replied with an error envelope (``code`` / ``message``).

    Never retried automatically, even when ``retriable`` is True.
    """

    default_code = "ROSETTA_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: int | None = None,
        retriable: bool = False,
        endpoint: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        merged: dict[str, Any] = {"code": code, "retriable": retriable}
        if endpoint is not None:
            merged["endpoint"] = endpoint
        if details:
            merged.update(details)
        super().__init__(f"Rosetta API Error: {message}", details=merged)
        self.code = code
        self.retriable = retriable
        self.endpoint = endpoint
        self.server_message = message


class MalformedResponseError(ConstructionError):
    default_code = "MALFORMED_RESPONSE"


class MissingTransactionHashError(ConstructionError):
    default_code = "MISSING_TX_HASH"

    def __init__(self, message: str = "No transaction hash in submit response", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class PipelineStateError(ConstructionError):
    default_code = "INVALID_STATE"


class TransactionNotFoundError(ConstructionError):
    default_code = "NOT_FOUND"


class MempoolTimeoutError(ConstructionError):
    """Raised only after the full monitoring window elapsed without a hit."""

    default_code = "TIMEOUT"

    def __init__(self, tx_hash: str, timeout_ms: int, attempts: int) -> None:
        super().__init__(
            f"Transaction {tx_hash} not found in mempool after {timeout_ms}ms",
            details={"tx_hash": tx_hash, "timeout_ms": timeout_ms, "attempts": attempts},
        )
        self.tx_hash = tx_hash
        self.timeout_ms = timeout_ms
        self.attempts = attempts


class InvalidMemoError(ConstructionError, ValueError):
    default_code = "INVALID_MEMO"
