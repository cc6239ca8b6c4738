from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional, Tuple

from secure_viewer.identity import ViewerIdentity

AfterFn = Callable[[int, Callable[[], None]], object]
AfterCancelFn = Callable[[object], None]
LoggerFn = Callable[..., None]

POSITION_MIN = 10
POSITION_MAX = 90
OPACITY_MIN = 0.2
OPACITY_MAX = 0.5


def _noop_log(message: str, *args: object) -> None:
    return None


@dataclass(frozen=True)
class WatermarkPlacement:
    """Centre of the watermark as percentages of the surface, plus opacity."""

    top_percent: int
    left_percent: int
    opacity: float


def random_placement(rng: random.Random) -> WatermarkPlacement:
    top = rng.randrange(POSITION_MIN, POSITION_MAX)
    left = rng.randrange(POSITION_MIN, POSITION_MAX)
    opacity = OPACITY_MIN + rng.random() * (OPACITY_MAX - OPACITY_MIN)
    return WatermarkPlacement(top_percent=top, left_percent=left, opacity=opacity)


class WatermarkRenderer:
    """Keeps a forensic watermark moving across the surface on a fixed cadence."""

    def __init__(
        self,
        identity: ViewerIdentity,
        *,
        after: AfterFn,
        after_cancel: AfterCancelFn,
        rng: Optional[random.Random] = None,
        interval_ms: int = 45_000,
        transition_ms: int = 5_000,
        today: Callable[[], date] = date.today,
        on_move: Optional[Callable[[WatermarkPlacement], None]] = None,
        logger: Optional[LoggerFn] = None,
    ) -> None:
        self._identity = identity
        self._after = after
        self._after_cancel = after_cancel
        self._rng = rng or random.Random()
        self._interval_ms = max(1, int(interval_ms))
        self.transition_ms = max(0, int(transition_ms))
        self._today = today
        self._on_move = on_move
        self._logger = logger or _noop_log

        self._placement: Optional[WatermarkPlacement] = None
        self._interval_handle: object | None = None
        self._active = False

    @property
    def placement(self) -> Optional[WatermarkPlacement]:
        return self._placement

    @property
    def running(self) -> bool:
        return self._active

    def lines(self) -> Tuple[str, str, str, str]:
        identity = self._identity
        return (
            identity.watermark_label,
            identity.display_name,
            self._today().isoformat(),
            identity.id,
        )

    def start(self) -> None:
        self.stop()
        self._active = True
        self._move()
        if self._active:
            self._interval_handle = self._after(self._interval_ms, self._run_interval)

    def stop(self) -> None:
        self._active = False
        handle = self._interval_handle
        self._interval_handle = None
        if handle is not None:
            try:
                self._after_cancel(handle)
            except Exception:
                pass

    def _run_interval(self) -> None:
        self._interval_handle = None
        self._move()
        # on_move may have stopped the renderer (unmount during repaint).
        if self._active:
            self._interval_handle = self._after(self._interval_ms, self._run_interval)

    def _move(self) -> None:
        self._placement = random_placement(self._rng)
        self._log(
            "Watermark moved: top=%d%% left=%d%% opacity=%.2f",
            self._placement.top_percent,
            self._placement.left_percent,
            self._placement.opacity,
        )
        if self._on_move is not None:
            try:
                self._on_move(self._placement)
            except Exception as exc:
                self._log("Watermark move callback failed: %s", exc)

    def _log(self, message: str, *args: object) -> None:
        try:
            self._logger(message, *args)
        except Exception:
            pass
