"""Per-key request coalescing for cache misses.

When several requests miss the cache for the same key at once, only the
first (the leader) runs the expensive work. The others (followers) wait
for the leader and receive the same result or the same error. A key is
released as soon as the leader finishes, so a later miss on the same key
runs again; callers that can arrive late should re-check their cache
before doing the work.

Usage:
    flight = SingleFlight()
    descriptor = await flight.run(cache_key, lambda: synthesize_and_store(...))
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from ..errors import SynthesisError

logger = logging.getLogger(__name__)


@dataclass
class SingleFlightStats:
    """Statistics for a single-flight group."""

    in_flight: int
    leaders: int
    followers: int


class SingleFlight:
    """Coalesces concurrent calls that share a key.

    Must be used from a single event loop.
    """

    def __init__(self) -> None:
        self._calls: dict[str, asyncio.Future] = {}
        self._leaders = 0
        self._followers = 0

    def stats(self) -> SingleFlightStats:
        return SingleFlightStats(
            in_flight=len(self._calls),
            leaders=self._leaders,
            followers=self._followers,
        )

    def in_flight(self, key: str) -> bool:
        return key in self._calls

    async def run(self, key: str, fn: Callable[[], Awaitable[Any]]) -> Any:
        """Run fn for key, or join the call already running for key.

        Args:
            key: Coalescing key
            fn: Zero-argument coroutine factory, only called by the leader

        Returns:
            The leader's result

        Raises:
            Whatever the leader's fn raised. Followers of a cancelled leader
            get SynthesisError; the leader itself re-raises CancelledError.
        """
        existing = self._calls.get(key)
        if existing is not None:
            self._followers += 1
            logger.debug(f"Joining in-flight call for {key}")
            # shield: a cancelled follower must not cancel the shared call
            return await asyncio.shield(existing)

        future = asyncio.get_running_loop().create_future()
        self._calls[key] = future
        self._leaders += 1
        try:
            result = await fn()
        except asyncio.CancelledError:
            # Followers were not cancelled themselves; they get a typed failure
            future.set_exception(SynthesisError("Speech synthesis cancelled"))
            future.exception()
            raise
        except Exception as e:
            future.set_exception(e)
            # Mark retrieved so an unjoined failure is not reported twice
            future.exception()
            raise
        else:
            future.set_result(result)
            return result
        finally:
            self._calls.pop(key, None)
