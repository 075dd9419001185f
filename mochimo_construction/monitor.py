"""
Mempool monitor: waits for a submitted transaction to reach the mempool.

Polls ``get_mempool_transaction`` with an explicit deadline:

    1. Look the hash up.
    2. Success → return the record immediately (no further polling).
    3. Any lookup failure counts as "not yet present" and is logged at
       DEBUG. If elapsed >= timeout, raise MempoolTimeoutError.
       Otherwise sleep min(interval, time remaining) and go to 1.

The timeout error is therefore raised no earlier than ``timeout`` and no
later than ``timeout`` plus one lookup round trip. Between attempts the
coroutine yields to the event loop (``asyncio.sleep``); cancelling the
awaiting task stops the loop.

Clock and sleep are injectable for deterministic tests.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Awaitable, Callable, Protocol

from mochimo_construction.config import DEFAULT_MONITOR_INTERVAL_MS, DEFAULT_MONITOR_TIMEOUT_MS
from mochimo_construction.errors import MempoolTimeoutError

if TYPE_CHECKING:
    from mochimo_construction.models import MempoolTransaction


class MempoolLookup(Protocol):
    """Anything that can fetch one mempool transaction by hash."""

    async def get_mempool_transaction(self, tx_hash: str) -> MempoolTransaction: ...


class MempoolMonitor:
    """Deadline-bounded mempool poller.

    Args:
        lookup: Usually a ConstructionClient.
        clock: Monotonic clock in seconds. Default time.monotonic.
        sleep: Async sleep in seconds. Default asyncio.sleep.
        logger: Logger for per-attempt diagnostics.
    """

    def __init__(
        self,
        lookup: MempoolLookup,
        *,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._lookup = lookup
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._log = logger or logging.getLogger(__name__)

    async def wait(
        self,
        tx_hash: str,
        timeout_ms: int = DEFAULT_MONITOR_TIMEOUT_MS,
        interval_ms: int = DEFAULT_MONITOR_INTERVAL_MS,
    ) -> MempoolTransaction:
        """Wait until ``tx_hash`` is observed in the mempool.

        Args:
            tx_hash: Transaction hash returned by submit.
            timeout_ms: Total wall-clock budget in milliseconds.
            interval_ms: Delay between attempts in milliseconds.

        Returns:
            The first successful lookup result.

        Raises:
            ValueError: If timeout_ms or interval_ms is not positive.
            MempoolTimeoutError: If the deadline elapsed without a hit.
        """
        if timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be > 0, got: {timeout_ms}")
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be > 0, got: {interval_ms}")

        self._log.debug(
            "Monitoring mempool for transaction %s (timeout=%dms, interval=%dms)",
            tx_hash,
            timeout_ms,
            interval_ms,
        )

        timeout_s = timeout_ms / 1000.0
        interval_s = interval_ms / 1000.0
        deadline = self._clock() + timeout_s
        attempts = 0

        while True:
            attempts += 1
            try:
                result = await self._lookup.get_mempool_transaction(tx_hash)
            except Exception as exc:
                self._log.debug(
                    "Transaction %s not in mempool yet (attempt %d): %s",
                    tx_hash,
                    attempts,
                    exc,
                )
            else:
                self._log.info(
                    "Transaction %s observed in mempool after %d attempt(s)",
                    tx_hash,
                    attempts,
                )
                return result

            remaining = deadline - self._clock()
            if remaining <= 0:
                self._log.warning(
                    "Timed out waiting for transaction %s after %dms",
                    tx_hash,
                    timeout_ms,
                )
                raise MempoolTimeoutError(tx_hash, timeout_ms, attempts)

            await self._sleep(min(interval_s, remaining))
