"""
Transport protocol for Rosetta JSON POST calls.

Defines the seam where concrete HTTP implementations plug in. The
construction client depends on this protocol, not on httpx directly, so
the transport can be swapped without editing client logic.

Concrete implementations:
    - HttpxTransport (default, uses httpx.AsyncClient)
    - FakeTransport (tests, returns canned responses)

Rosetta nodes answer protocol errors with HTTP 500 and a JSON error
envelope (an object with a ``code`` key), so the transport returns such
bodies regardless of status code and leaves envelope parsing to the
client. Any other non-2xx response, or a body that is not a JSON object,
is a transport failure.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Protocol, runtime_checkable

import httpx


@runtime_checkable
class JsonTransport(Protocol):
    """Async transport for JSON POST requests."""

    async def post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Send a JSON request and return the parsed response.

        Args:
            url: Full endpoint URL.
            payload: JSON request body.

        Returns:
            Parsed JSON response as a dict.

        Raises:
            Exception: On transport-level failures (connection refused,
                timeout, TLS error, non-JSON body, etc.). These propagate
                to the caller unchanged.
        """
        ...


class HttpxTransport:
    """Default transport using httpx.AsyncClient.

    Args:
        timeout: Request timeout in seconds.
        headers: Extra headers merged into every request.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        headers: Dict[str, str] | None = None,
    ) -> None:
        self._timeout = timeout
        self._headers = headers or {}

    async def post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Send JSON request via httpx."""
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(
                url,
                json=payload,
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                    **self._headers,
                },
            )

        try:
            result = response.json()
        except json.JSONDecodeError:
            # Not an envelope we can interpret; surface the HTTP status.
            response.raise_for_status()
            raise

        if not isinstance(result, dict):
            response.raise_for_status()
            raise ValueError(
                f"response JSON was not an object (got {type(result).__name__})"
            )
        if response.is_error and "code" not in result:
            response.raise_for_status()
        return result
