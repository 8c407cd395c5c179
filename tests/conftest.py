"""Shared test fixtures."""

from __future__ import annotations

import pytest

from orderbot.config import SchedulerSettings
from orderbot.domain import IN_PROGRESS
from orderbot.scheduler import Scheduler


@pytest.fixture()
def settings() -> SchedulerSettings:
    return SchedulerSettings(tick_interval_ms=1_000, processing_duration_ticks=10)


@pytest.fixture()
def sched(settings):
    """Scheduler with the clock left stopped; tests drive it via clock.tick()."""
    s = Scheduler(settings)
    yield s
    s.shutdown()


def _assert_invariants(orders, worker_ids=None) -> None:
    active = [o.assigned_worker for o in orders if o.status == IN_PROGRESS]
    assert len(active) == len(set(active)), "two active orders share a worker"
    for o in orders:
        if o.status == IN_PROGRESS:
            assert o.remaining is not None and o.remaining > 0
            assert o.assigned_worker is not None
            if worker_ids is not None:
                assert o.assigned_worker in worker_ids
        else:
            assert o.remaining is None


@pytest.fixture()
def assert_invariants():
    return _assert_invariants
