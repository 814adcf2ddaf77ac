"""Per-identity token-bucket quota for the extraction pipeline.

Each identity owns a bucket of ``max_tokens`` tokens. An admitted call costs one
token regardless of how expensive the downstream work turns out to be. Tokens
refill lazily: on every check, whole refill intervals elapsed since the last
refill are converted into tokens (capped at capacity).
"""

import asyncio
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from pydantic import BaseModel

from ..errors import QuotaExceededError

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 10
DEFAULT_REFILL_INTERVAL_MS = 6000
DEFAULT_STALE_AFTER_MS = 60 * 60 * 1000
DEFAULT_SWEEP_INTERVAL_SECONDS = 60 * 60


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


@dataclass
class QuotaEntry:
    """Bucket state for one identity."""

    identity: str
    tokens: int
    last_refill: float


class QuotaDecision(BaseModel):
    """Outcome of a quota check.

    Attributes:
        allowed: Whether the call was admitted (and a token consumed)
        remaining: Tokens left after this check
        reset_hint_ms: Milliseconds until the next token is refilled
        limit: Bucket capacity
    """

    allowed: bool
    remaining: int
    reset_hint_ms: int
    limit: int

    def headers(self, now_epoch_ms: int | None = None) -> dict[str, str]:
        """Rate limit response headers for this decision."""
        if now_epoch_ms is None:
            now_epoch_ms = int(time.time() * 1000)
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(now_epoch_ms + self.reset_hint_ms),
        }


class QuotaStore:
    """Thread-safe map of identity -> QuotaEntry.

    The lock is exposed so a guard can run its read-modify-write under it.
    """

    def __init__(self):
        self.lock = threading.Lock()
        self._entries: dict[str, QuotaEntry] = {}

    def get(self, identity: str) -> QuotaEntry | None:
        return self._entries.get(identity)

    def put(self, entry: QuotaEntry) -> None:
        self._entries[entry.identity] = entry

    def remove_older_than(self, cutoff: float) -> int:
        """Drop entries whose last refill is before ``cutoff``. Returns the count removed."""
        with self.lock:
            stale = [k for k, e in self._entries.items() if e.last_refill < cutoff]
            for identity in stale:
                del self._entries[identity]
        return len(stale)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, identity: str) -> bool:
        return identity in self._entries


class QuotaGuard:
    """Admits or rejects pipeline invocations per identity."""

    def __init__(
        self,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        refill_interval_ms: int = DEFAULT_REFILL_INTERVAL_MS,
        stale_after_ms: int = DEFAULT_STALE_AFTER_MS,
        store: QuotaStore | None = None,
        clock: Callable[[], float] | None = None,
    ):
        """
        Initialize the guard.

        Args:
            max_tokens: Bucket capacity per identity
            refill_interval_ms: Milliseconds needed to refill one token
            stale_after_ms: Idle time after which the sweep drops a bucket
            store: Bucket store; a fresh in-memory store if omitted
            clock: Millisecond clock; monotonic time if omitted
        """
        if max_tokens < 1:
            raise ValueError("max_tokens must be at least 1")
        if refill_interval_ms < 1:
            raise ValueError("refill_interval_ms must be at least 1")
        self.max_tokens = max_tokens
        self.refill_interval_ms = refill_interval_ms
        self.stale_after_ms = stale_after_ms
        self.store = store if store is not None else QuotaStore()
        self._clock = clock or _monotonic_ms

    def _refill(self, identity: str, now: float) -> QuotaEntry:
        entry = self.store.get(identity)
        if entry is None:
            entry = QuotaEntry(identity=identity, tokens=self.max_tokens, last_refill=now)
            self.store.put(entry)
            return entry

        tokens_to_add = int((now - entry.last_refill) // self.refill_interval_ms)
        if tokens_to_add > 0:
            entry.tokens = min(self.max_tokens, entry.tokens + tokens_to_add)
            entry.last_refill = now
        return entry

    def _reset_hint(self, entry: QuotaEntry, now: float) -> int:
        return max(0, int(entry.last_refill + self.refill_interval_ms - now))

    def check(self, identity: str) -> QuotaDecision:
        """Consume one token for ``identity`` if available."""
        with self.store.lock:
            now = self._clock()
            entry = self._refill(identity, now)
            allowed = entry.tokens > 0
            if allowed:
                entry.tokens -= 1
            decision = QuotaDecision(
                allowed=allowed,
                remaining=entry.tokens,
                reset_hint_ms=self._reset_hint(entry, now),
                limit=self.max_tokens,
            )

        if not allowed:
            logger.info(
                "Quota exhausted for identity=%s, retry in %dms", identity, decision.reset_hint_ms
            )
        return decision

    def admit(self, identity: str) -> QuotaDecision:
        """Like check(), but raises QuotaExceededError on rejection."""
        decision = self.check(identity)
        if not decision.allowed:
            raise QuotaExceededError(
                retry_after_ms=decision.reset_hint_ms, limit=decision.limit, decision=decision
            )
        return decision

    def sweep(self) -> int:
        """Remove buckets idle for longer than ``stale_after_ms``."""
        removed = self.store.remove_older_than(self._clock() - self.stale_after_ms)
        if removed:
            logger.debug("Swept %d stale quota entries", removed)
        return removed

    async def run_sweeper(self, interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS) -> None:
        """Sweep stale buckets forever; cancel the task to stop."""
        while True:
            await asyncio.sleep(interval_seconds)
            self.sweep()
