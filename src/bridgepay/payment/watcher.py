"""CompletionWatcher - Polls the destination until bridged funds arrive."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable

from bridgepay.core.logging import get_logger
from bridgepay.core.types import Network
from bridgepay.payment.scanner import BalanceScanner
from bridgepay.resilience.retry import RetryPolicy

# Each poll is a single read
_SINGLE_READ = RetryPolicy.none()


class CompletionWatcher:
    """
    Waits for a destination balance to reach a threshold.

    Polls are strictly sequential with a fixed interval between the end of
    one poll and the start of the next. A failed poll counts as "not yet"
    and is not retried within the poll, so backoff never runs outside the
    injected clock. The clock and sleep are injectable so tests need not
    wait in real time.
    """

    def __init__(
        self,
        scanner: BalanceScanner,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._scanner = scanner
        self._clock = clock
        self._sleep = sleep
        self._logger = get_logger("watcher")

    async def wait_for_completion(
        self,
        token: str,
        destination: Network,
        required_amount: int,
        max_wait_seconds: float,
        poll_interval_ms: int,
    ) -> bool:
        """
        Poll until the balance on ``destination`` is at least ``required_amount``.

        Returns:
            True as soon as a poll observes enough funds, False once
            ``max_wait_seconds`` have elapsed without that
        """
        self._logger.info(
            f"Waiting up to {max_wait_seconds}s for {required_amount} on {destination.value}"
        )
        start = self._clock()
        attempt = 0

        while self._clock() - start < max_wait_seconds:
            attempt += 1
            try:
                balance = await self._scanner.check_balance(
                    token, destination, retry_policy=_SINGLE_READ
                )
                self._logger.debug(
                    f"Poll {attempt}: {balance.amount} / {required_amount} on {destination.value}"
                )
                if balance.amount >= required_amount:
                    self._logger.info(f"Funds arrived on {destination.value} after {attempt} polls")
                    return True
            except Exception as e:
                self._logger.warning(f"Poll {attempt} failed: {e}")

            await self._sleep(poll_interval_ms / 1000)

        self._logger.warning(f"Funds did not arrive on {destination.value} within {max_wait_seconds}s")
        return False
