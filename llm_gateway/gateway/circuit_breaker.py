"""Circuit Breaker: time-windowed cooldown ledger keyed by provider id.

A provider whose call raised is excluded from selection for a fixed window:
  - set_cooldown(id): expires_at = now + window
  - is_in_cooldown(id): lazily drops the entry once expired
  - sweep(): drops entries that expired more than one window ago

State lives in memory only; a process restart clears it.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)

COOLDOWN_SECONDS = 60.0


class CircuitBreaker:
    """Per-provider cooldown ledger.

    Usage:
        cb = CircuitBreaker()

        if cb.is_in_cooldown("groq"):
            # skip this provider
            ...

        # After a failed call:
        cb.set_cooldown("groq")
    """

    def __init__(
        self,
        cooldown_seconds: float = COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._expires_at: dict[str, float] = {}
        self._last_sweep = clock()

    def is_in_cooldown(self, provider_id: str) -> bool:
        expires_at = self._expires_at.get(provider_id)
        if expires_at is None:
            return False
        if self._clock() >= expires_at:
            del self._expires_at[provider_id]
            return False
        return True

    def set_cooldown(self, provider_id: str) -> None:
        now = self._clock()
        self._expires_at[provider_id] = now + self.cooldown_seconds
        logger.warning("Provider %s in cooldown for %.0fs", provider_id, self.cooldown_seconds)
        if now - self._last_sweep >= self.cooldown_seconds:
            self.sweep()

    def remaining(self, provider_id: str) -> float:
        """Seconds left in the provider's cooldown (0 when available)."""
        if not self.is_in_cooldown(provider_id):
            return 0.0
        return max(0.0, self._expires_at[provider_id] - self._clock())

    def sweep(self) -> int:
        """Drop twice-expired entries. Returns the number removed."""
        now = self._clock()
        self._last_sweep = now
        stale = [pid for pid, expires_at in self._expires_at.items() if now >= expires_at + self.cooldown_seconds]
        for provider_id in stale:
            del self._expires_at[provider_id]
        return len(stale)

    def reset(self, provider_id: str | None = None) -> None:
        """Manually clear one provider's cooldown, or all of them."""
        if provider_id is None:
            self._expires_at.clear()
        else:
            self._expires_at.pop(provider_id, None)
        logger.info("Cooldown RESET for %s", provider_id or "all providers")

    def get_all_states(self) -> list[dict]:
        return [
            {"provider": provider_id, "in_cooldown": True, "remaining_seconds": round(self.remaining(provider_id), 1)}
            for provider_id in list(self._expires_at)
            if self.is_in_cooldown(provider_id)
        ]
