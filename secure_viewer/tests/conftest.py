from __future__ import annotations

import os
from typing import Callable, List, Tuple

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


def pytest_runtest_setup(item):
    if item.get_closest_marker("pyqt_required"):
        if not os.getenv("PYQT_TESTS"):
            pytest.skip("PYQT_TESTS not set; skipping PyQt-dependent test")


class FakeClock:
    """after/after_cancel harness driven by an explicit millisecond clock."""

    def __init__(self) -> None:
        self.now_ms = 0
        self._seq = 0
        self.scheduled: List[Tuple[int, int, str, Callable[[], None]]] = []
        self.cancelled: List[str] = []

    def after(self, ms: int, cb: Callable[[], None]) -> str:
        self._seq += 1
        handle = f"h{self._seq}"
        self.scheduled.append((self.now_ms + ms, self._seq, handle, cb))
        return handle

    def cancel(self, handle: object) -> None:
        self.cancelled.append(handle)  # type: ignore[arg-type]
        self.scheduled = [entry for entry in self.scheduled if entry[2] != handle]

    def seconds(self) -> float:
        return self.now_ms / 1000.0

    @property
    def pending(self) -> int:
        return len(self.scheduled)

    def advance(self, ms: int) -> None:
        target = self.now_ms + ms
        while True:
            due = [entry for entry in self.scheduled if entry[0] <= target]
            if not due:
                break
            entry = min(due, key=lambda item: (item[0], item[1]))
            self.scheduled.remove(entry)
            self.now_ms = entry[0]
            entry[3]()
        self.now_ms = target


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
