from __future__ import annotations

import random
from enum import Enum
from typing import Callable, Optional

AfterFn = Callable[[int, Callable[[], None]], object]
AfterCancelFn = Callable[[object], None]
LoggerFn = Callable[..., None]

READY_THRESHOLD = 100.0


def _noop_log(message: str, *args: object) -> None:
    return None


class GatePhase(str, Enum):
    LOADING = "loading"
    PAUSED = "paused"
    PLAYING = "playing"


class PlaybackGate:
    """Simulated license acquisition followed by a paused/playing toggle.

    Readiness climbs by a random step every ``tick_ms`` until it reaches 100,
    after which the gate is ready for the rest of the mount. Obscuring only
    disables the toggle and presents a paused phase; it never resets readiness.
    """

    def __init__(
        self,
        *,
        after: AfterFn,
        after_cancel: AfterCancelFn,
        rng: Optional[random.Random] = None,
        tick_ms: int = 200,
        min_step: float = 1.0,
        max_step: float = 15.0,
        on_change: Optional[Callable[[], None]] = None,
        on_ready: Optional[Callable[[], None]] = None,
        logger: Optional[LoggerFn] = None,
    ) -> None:
        self._after = after
        self._after_cancel = after_cancel
        self._rng = rng or random.Random()
        self._tick_ms = max(1, int(tick_ms))
        self._min_step = max(0.01, float(min_step))
        self._max_step = max(self._min_step, float(max_step))
        self._on_change = on_change
        self._on_ready = on_ready
        self._logger = logger or _noop_log

        self._media_handle: Optional[str] = None
        self._readiness = 0.0
        self._ready = False
        self._playing = False
        self._obscured = False
        self._tick_handle: object | None = None

    @property
    def media_handle(self) -> Optional[str]:
        return self._media_handle

    @property
    def readiness(self) -> float:
        return self._readiness

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def controls_enabled(self) -> bool:
        return self._ready and not self._obscured

    @property
    def phase(self) -> GatePhase:
        if not self._ready:
            return GatePhase.LOADING
        if self._playing and not self._obscured:
            return GatePhase.PLAYING
        return GatePhase.PAUSED

    @property
    def max_ticks(self) -> int:
        """Upper bound on ticks needed to reach readiness."""
        whole, remainder = divmod(READY_THRESHOLD, self._min_step)
        return int(whole) + (1 if remainder else 0)

    def start(self, media_handle: str) -> None:
        self.stop()
        self._media_handle = media_handle
        self._readiness = 0.0
        self._ready = False
        self._playing = False
        self._log("Readiness simulation started for media=%s", media_handle)
        self._tick_handle = self._after(self._tick_ms, self._run_tick)
        self._notify()

    def stop(self) -> None:
        handle = self._tick_handle
        self._tick_handle = None
        if handle is not None:
            try:
                self._after_cancel(handle)
            except Exception:
                pass

    def set_obscured(self, obscured: bool) -> None:
        flag = bool(obscured)
        if flag == self._obscured:
            return
        self._obscured = flag
        self._notify()

    def toggle(self) -> bool:
        """Flip paused/playing; silently ignored while loading or obscured."""
        if not self.controls_enabled:
            self._log(
                "Play toggle ignored: ready=%s obscured=%s readiness=%.1f",
                self._ready,
                self._obscured,
                self._readiness,
            )
            return False
        self._playing = not self._playing
        self._log("Playback %s for media=%s", "playing" if self._playing else "paused", self._media_handle)
        self._notify()
        return True

    def _run_tick(self) -> None:
        self._tick_handle = None
        if self._ready:
            return
        step = self._min_step + self._rng.random() * (self._max_step - self._min_step)
        progress = self._readiness + step
        if progress >= READY_THRESHOLD:
            self._readiness = READY_THRESHOLD
            self._ready = True
            self._log("Readiness reached for media=%s", self._media_handle)
            self._notify()
            if self._on_ready is not None:
                try:
                    self._on_ready()
                except Exception as exc:
                    self._log("Ready callback failed: %s", exc)
            return
        self._readiness = progress
        self._tick_handle = self._after(self._tick_ms, self._run_tick)
        self._notify()

    def _notify(self) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change()
        except Exception as exc:
            self._log("Gate change callback failed: %s", exc)

    def _log(self, message: str, *args: object) -> None:
        try:
            self._logger(message, *args)
        except Exception:
            pass
