"""Per-user short cooldown that suppresses accidental double triggers."""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass
from time import monotonic
from typing import Callable, Protocol


class CooldownHandle(Protocol):
    """Cancellable reference to one scheduled removal."""

    def cancel(self) -> None:
        """Prevent the scheduled callback from running."""


class CooldownScheduler(Protocol):
    """Schedules delayed removal callbacks for cooldown entries."""

    def schedule(self, delay_seconds: float, callback: Callable[[], None]) -> CooldownHandle:
        """Run ``callback`` once after ``delay_seconds``."""


class LoopCooldownScheduler:
    """Scheduler backed by the running asyncio loop."""

    def schedule(self, delay_seconds: float, callback: Callable[[], None]) -> CooldownHandle:
        return asyncio.get_running_loop().call_later(delay_seconds, callback)


@dataclass(frozen=True)
class CooldownDecision:
    """Result of one check-and-reserve call."""

    allowed: bool
    remaining_ms: int = 0


@dataclass
class _CooldownEntry:
    reserved_at: float
    handle: CooldownHandle | None


class CooldownGuard:
    """In-memory TTL map of ``user_id -> last accepted trigger``.

    ``check_and_reserve`` never awaits, so on a single event loop the check
    and the reservation cannot interleave with another trigger.
    """

    def __init__(
        self,
        *,
        window_seconds: float,
        removal_grace_seconds: float = 0.05,
        clock: Callable[[], float] = monotonic,
        scheduler: CooldownScheduler | None = None,
    ) -> None:
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self._window_seconds = window_seconds
        self._removal_grace_seconds = max(0.0, removal_grace_seconds)
        self._clock = clock
        self._scheduler = scheduler or LoopCooldownScheduler()
        self._entries: dict[str, _CooldownEntry] = {}

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def check_and_reserve(self, user_id: str) -> CooldownDecision:
        """Reject a trigger inside the window; otherwise record it and allow."""
        now = self._clock()
        entry = self._entries.get(user_id)
        if entry is not None:
            elapsed = now - entry.reserved_at
            if elapsed < self._window_seconds:
                remaining = math.ceil((self._window_seconds - elapsed) * 1000)
                return CooldownDecision(allowed=False, remaining_ms=max(1, remaining))
            # Window elapsed but the removal has not fired yet.
            self._discard(user_id)

        handle = self._scheduler.schedule(
            self._window_seconds + self._removal_grace_seconds,
            lambda: self._expire(user_id, now),
        )
        self._entries[user_id] = _CooldownEntry(reserved_at=now, handle=handle)
        return CooldownDecision(allowed=True)

    def clear(self) -> None:
        """Cancel every pending removal and forget all entries."""
        for user_id in list(self._entries):
            self._discard(user_id)

    def _expire(self, user_id: str, reserved_at: float) -> None:
        """Scheduled removal; ignores entries re-reserved since scheduling."""
        entry = self._entries.get(user_id)
        if entry is not None and entry.reserved_at == reserved_at:
            del self._entries[user_id]

    def _discard(self, user_id: str) -> None:
        entry = self._entries.pop(user_id, None)
        if entry is not None and entry.handle is not None:
            entry.handle.cancel()
