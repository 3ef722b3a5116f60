"""Behavior tests for the per-user cooldown guard."""

from __future__ import annotations

import asyncio

import pytest

from services.action.registration_codes.cooldown import CooldownGuard
from services.action.registration_codes.tests.fakes import FakeClock, FakeScheduler


def _guard(clock: FakeClock, scheduler: FakeScheduler) -> CooldownGuard:
    return CooldownGuard(
        window_seconds=3.0,
        removal_grace_seconds=0.05,
        clock=clock,
        scheduler=scheduler,
    )


def test_first_trigger_is_allowed_and_schedules_removal() -> None:
    clock = FakeClock()
    scheduler = FakeScheduler()
    guard = _guard(clock, scheduler)

    decision = guard.check_and_reserve("u1")

    assert decision.allowed is True
    assert "u1" in guard
    assert len(scheduler.scheduled) == 1
    assert scheduler.scheduled[0][0] == pytest.approx(3.05)


def test_second_trigger_inside_window_is_rejected_without_mutation() -> None:
    clock = FakeClock()
    scheduler = FakeScheduler()
    guard = _guard(clock, scheduler)
    guard.check_and_reserve("u1")

    clock.advance(1.0)
    rejected = guard.check_and_reserve("u1")

    assert rejected.allowed is False
    assert rejected.remaining_ms == 2000
    assert len(scheduler.scheduled) == 1

    # The rejected call did not refresh the timestamp.
    clock.advance(2.0)
    assert guard.check_and_reserve("u1").allowed is True


def test_scheduled_removal_clears_entry() -> None:
    clock = FakeClock()
    scheduler = FakeScheduler()
    guard = _guard(clock, scheduler)
    guard.check_and_reserve("u1")

    clock.advance(3.05)
    scheduler.fire_all()

    assert "u1" not in guard
    assert guard.check_and_reserve("u1").allowed is True


def test_stale_entry_is_replaced_and_old_removal_cancelled() -> None:
    clock = FakeClock()
    scheduler = FakeScheduler()
    guard = _guard(clock, scheduler)
    guard.check_and_reserve("u1")
    first_handle = scheduler.scheduled[0][2]

    clock.advance(3.0)
    assert guard.check_and_reserve("u1").allowed is True

    assert first_handle.cancelled is True
    assert len(guard) == 1


def test_removal_scheduled_for_old_reservation_keeps_new_entry() -> None:
    clock = FakeClock()
    scheduler = FakeScheduler()
    guard = _guard(clock, scheduler)
    guard.check_and_reserve("u1")
    _delay, old_callback, _handle = scheduler.scheduled[0]

    clock.advance(4.0)
    guard.check_and_reserve("u1")
    old_callback()

    assert "u1" in guard


def test_users_do_not_share_cooldowns() -> None:
    guard = _guard(FakeClock(), FakeScheduler())

    assert guard.check_and_reserve("u1").allowed is True
    assert guard.check_and_reserve("u2").allowed is True
    assert guard.check_and_reserve("u1").allowed is False


def test_clear_cancels_pending_removals() -> None:
    scheduler = FakeScheduler()
    guard = _guard(FakeClock(), scheduler)
    guard.check_and_reserve("u1")
    guard.check_and_reserve("u2")

    guard.clear()

    assert len(guard) == 0
    assert all(handle.cancelled for _d, _c, handle in scheduler.scheduled)


def test_default_scheduler_removes_entry_on_event_loop() -> None:
    async def _run() -> bool:
        guard = CooldownGuard(window_seconds=0.01, removal_grace_seconds=0.0)
        guard.check_and_reserve("u1")
        await asyncio.sleep(0.05)
        return "u1" in guard

    assert asyncio.run(_run()) is False


def test_non_positive_window_is_rejected() -> None:
    with pytest.raises(ValueError):
        CooldownGuard(window_seconds=0)
