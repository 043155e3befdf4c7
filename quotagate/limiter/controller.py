"""Sliding-window admission controller.

Each key keeps the timestamps of its admitted requests. A request is
admitted when fewer than `limit` of them fall inside the trailing window;
denied requests are not recorded, so they never use up quota.

The read-prune-append-write cycle runs as an optimistic transaction against
the store: read a versioned snapshot, decide, then compare-and-swap. A lost
race re-reads and decides again, so concurrent callers on the same key can
never admit more than `limit` requests between them.
"""

import logging
import math

from quotagate.limiter.clock import Clock, SystemClock
from quotagate.limiter.errors import CallerError, StorageUnavailable
from quotagate.limiter.models import AdmissionDecision
from quotagate.limiter.store import WindowStore
from quotagate.logging.audit import audit

FAILURE_MODES = ("open", "closed")


class AdmissionController:
    """Decides whether one more unit of work may proceed for a key."""

    def __init__(
        self,
        store: WindowStore,
        clock: Clock | None = None,
        failure_mode: str = "open",
        max_cas_attempts: int = 64,
    ):
        if failure_mode not in FAILURE_MODES:
            raise ValueError(f"Unknown failure mode: {failure_mode}")
        if max_cas_attempts < 1:
            raise ValueError("max_cas_attempts must be at least 1")
        self._store = store
        self._clock = clock or SystemClock()
        self._failure_mode = failure_mode
        self._max_cas_attempts = max_cas_attempts

    @property
    def store(self) -> WindowStore:
        return self._store

    @property
    def clock(self) -> Clock:
        return self._clock

    async def check_and_admit(self, key: str, limit: int, window_seconds: float) -> AdmissionDecision:
        """Admit or deny one request for `key`.

        Args:
            key: Identity the quota is tracked under (e.g. a user id).
            limit: Max admissions inside any trailing window. 0 denies everything.
            window_seconds: Length of the trailing window.

        Raises:
            CallerError: on an empty key, a negative limit, or a window that is not a positive finite number.
        """
        _validate(key, limit, window_seconds)

        if limit == 0:
            return AdmissionDecision(allowed=False, limit=0, remaining=0, reset_at=self._clock.now())

        try:
            return await self._admit(key, limit, window_seconds)
        except StorageUnavailable as e:
            return self._fallback(key, limit, window_seconds, e)

    async def _admit(self, key: str, limit: int, window_seconds: float) -> AdmissionDecision:
        for _ in range(self._max_cas_attempts):
            now = self._clock.now()
            entry = await self._store.get_or_create(key)
            live = entry.pruned(now, window_seconds)

            if len(live) >= limit:
                # min() rather than live[0]: a clock stepped backwards can leave
                # the list out of order
                return AdmissionDecision(
                    allowed=False,
                    limit=limit,
                    remaining=0,
                    reset_at=min(live) + window_seconds,
                )

            live.append(now)
            if await self._store.compare_and_swap(key, entry.version, live):
                return AdmissionDecision(
                    allowed=True,
                    limit=limit,
                    remaining=limit - len(live),
                    reset_at=now + window_seconds,
                )

        raise StorageUnavailable(
            f"Gave up after {self._max_cas_attempts} conflicting writes for one key"
        )

    def _fallback(
        self, key: str, limit: int, window_seconds: float, error: StorageUnavailable
    ) -> AdmissionDecision:
        """Turn a store failure into the configured fail-open / fail-closed decision."""
        now = self._clock.now()
        allowed = self._failure_mode == "open"

        audit(
            logging.ERROR,
            "Rate limit store unavailable",
            rate_key=key,
            failure_mode=self._failure_mode,
            admitted=allowed,
            error=str(error),
        )

        return AdmissionDecision(
            allowed=allowed,
            limit=limit,
            remaining=limit - 1 if allowed else 0,
            reset_at=now + window_seconds,
            degraded=True,
        )

    async def sweep(self, retention_seconds: float) -> int:
        """Prune every key against `retention_seconds` and drop keys left empty.

        Only entries with nothing left after pruning are removed, and removal
        is conditional on the entry still being empty, so a concurrent
        admission is never lost. Returns the number of keys removed.
        """
        if not _is_positive_number(retention_seconds):
            raise CallerError(f"retention_seconds must be a positive finite number, got {retention_seconds!r}")

        removed = 0
        for key in await self._store.keys():
            for _ in range(self._max_cas_attempts):
                now = self._clock.now()
                entry = await self._store.get_or_create(key)
                if entry.version is None:
                    break  # deleted under us
                live = entry.pruned(now, retention_seconds)
                if live != entry.timestamps:
                    if not await self._store.compare_and_swap(key, entry.version, live):
                        continue
                if not live and await self._store.delete_if_empty(key):
                    removed += 1
                break
        return removed

    async def reset(self, key: str) -> None:
        """Forget all admissions recorded for `key`."""
        if not isinstance(key, str) or not key:
            raise CallerError("key must be a non-empty string")
        await self._store.delete(key)


def _validate(key: str, limit: int, window_seconds: float) -> None:
    if not isinstance(key, str) or not key:
        raise CallerError("key must be a non-empty string")
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
        raise CallerError(f"limit must be a non-negative integer, got {limit!r}")
    if not _is_positive_number(window_seconds):
        raise CallerError(f"window_seconds must be a positive finite number, got {window_seconds!r}")


def _is_positive_number(value) -> bool:
    # NaN compares false against everything and would prune every timestamp
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0
