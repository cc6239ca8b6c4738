from __future__ import annotations

from typing import Callable, Optional, Set

from PyQt6.QtCore import QObject, QTimer


class QtScheduler(QObject):
    """Provides ``after``/``after_cancel`` on top of single-shot QTimers."""

    def __init__(self, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._timers: Set[QTimer] = set()

    @property
    def pending(self) -> int:
        return len(self._timers)

    def after(self, delay_ms: int, callback: Callable[[], None]) -> QTimer:
        timer = QTimer(self)
        timer.setSingleShot(True)
        timer.setInterval(max(0, int(delay_ms)))

        def _fire() -> None:
            self._release(timer)
            callback()

        timer.timeout.connect(_fire)
        self._timers.add(timer)
        timer.start()
        return timer

    def after_cancel(self, handle: object) -> None:
        if isinstance(handle, QTimer) and handle in self._timers:
            handle.stop()
            self._release(handle)

    def cancel_all(self) -> None:
        for timer in list(self._timers):
            timer.stop()
            self._release(timer)

    def _release(self, timer: QTimer) -> None:
        self._timers.discard(timer)
        timer.deleteLater()
