"""Window entry and admission decision models."""

import math
from dataclasses import dataclass, field


@dataclass
class RateWindowEntry:
    """Admitted-request timestamps for one key.

    `version` is a fresh random token written with every successful write
    and is what compare-and-swap checks against. Tokens are never reused,
    so a key that is deleted and recreated cannot match a stale snapshot.
    None means the key is not stored.
    """

    key: str
    timestamps: list[float] = field(default_factory=list)
    version: str | None = None

    def pruned(self, now: float, window_seconds: float) -> list[float]:
        """Timestamps still inside the trailing window ending at `now`."""
        return [t for t in self.timestamps if now - t < window_seconds]

    def count_in_window(self, now: float, window_seconds: float) -> int:
        return len(self.pruned(now, window_seconds))


@dataclass
class AdmissionDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float  # epoch seconds
    degraded: bool = False  # decided by failure mode, store was unavailable

    def retry_after(self, now: float) -> int:
        """Whole seconds until `reset_at`, rounded up. Suitable for Retry-After."""
        return max(0, math.ceil(self.reset_at - now))
