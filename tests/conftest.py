from __future__ import annotations

from typing import Callable

import pytest


class FakeScheduler:
    """Stand-in for Tk ``after``/``after_cancel`` driven by a virtual clock."""

    def __init__(self) -> None:
        self.now = 0
        self._next_id = 0
        self._callbacks: dict[int, tuple[int, Callable[[], None]]] = {}

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> int:
        self._next_id += 1
        self._callbacks[self._next_id] = (self.now + delay_ms, callback)
        return self._next_id

    def cancel(self, schedule_id: int) -> None:
        self._callbacks.pop(schedule_id, None)

    @property
    def pending(self) -> int:
        return len(self._callbacks)

    def advance(self, ms: int) -> None:
        end = self.now + ms
        while True:
            due = [(when, sid) for sid, (when, _) in self._callbacks.items() if when <= end]
            if not due:
                break
            when, schedule_id = min(due)
            _, callback = self._callbacks.pop(schedule_id)
            self.now = when
            callback()
        self.now = end


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def run_now() -> Callable[[Callable[[], None]], None]:
    """Runs background work inline so results wait only for the next poll."""

    def run(work: Callable[[], None]) -> None:
        work()

    return run
