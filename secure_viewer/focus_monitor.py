from __future__ import annotations

import time
from typing import Callable, Dict, List, Optional

from secure_viewer.environment import EnvironmentProbe, EventSource, MonitorSignal, Unsubscribe
from secure_viewer.obscurity import ObscureReason, ObscurityState
from secure_viewer.shortcuts import KeyChord, classify_chord

AfterFn = Callable[[int, Callable[[], None]], object]
AfterCancelFn = Callable[[object], None]
LoggerFn = Callable[..., None]
ViolationFn = Callable[[ObscureReason, Dict[str, object]], None]


def _noop_log(message: str, *args: object) -> None:
    return None


class FocusMonitor:
    """Derives the obscured state from focus, visibility, resize and shortcut signals.

    The most recent signal decides the state. Shortcut pulses are transient:
    they clear themselves after ``pulse_ms`` unless a later signal already
    decided the state. The resize rule is a devtools heuristic and will flag
    legitimately docked or snapped windows whose frame exceeds the threshold.
    """

    def __init__(
        self,
        probe: EnvironmentProbe,
        *,
        after: AfterFn,
        after_cancel: AfterCancelFn,
        on_change: Optional[Callable[[ObscurityState], None]] = None,
        on_violation: Optional[ViolationFn] = None,
        time_source: Callable[[], float] = time.monotonic,
        devtools_threshold_px: int = 160,
        pulse_ms: int = 2000,
        logger: Optional[LoggerFn] = None,
    ) -> None:
        self._probe = probe
        self._after = after
        self._after_cancel = after_cancel
        self._on_change = on_change
        self._on_violation = on_violation
        self._time = time_source
        self._threshold = max(0, int(devtools_threshold_px))
        self._pulse_ms = max(0, int(pulse_ms))
        self._logger = logger or _noop_log

        self._state = ObscurityState.clear(self._time())
        self._subscriptions: List[Unsubscribe] = []
        self._pulse_handle: object | None = None
        self._attached = False

    @property
    def state(self) -> ObscurityState:
        return self._state

    @property
    def attached(self) -> bool:
        return self._attached

    @property
    def pulse_pending(self) -> bool:
        return self._pulse_handle is not None

    # Lifecycle -------------------------------------------------------------

    def attach(self, source: EventSource) -> None:
        if self._attached:
            self._log("Monitor re-attached without detach; releasing previous subscriptions")
            self.detach()
        handlers = (
            (MonitorSignal.VISIBILITY, self.handle_visibility),
            (MonitorSignal.BLUR, self.handle_blur),
            (MonitorSignal.FOCUS, self.handle_focus),
            (MonitorSignal.RESIZE, self.handle_resize),
            (MonitorSignal.KEY, self.handle_key),
        )
        try:
            for signal, handler in handlers:
                self._subscriptions.append(source.subscribe(signal, handler))
        except Exception:
            self._release_subscriptions()
            raise
        self._attached = True
        self._apply_initial_state()

    def detach(self) -> None:
        self._cancel_pulse()
        self._release_subscriptions()
        self._attached = False

    # Signal handlers -------------------------------------------------------

    def handle_visibility(self, hidden: bool) -> None:
        if not self._attached:
            return
        if hidden:
            self._decide(True, ObscureReason.TAB_HIDDEN, source="visibility")
        else:
            self._decide(False, None, source="visibility")

    def handle_blur(self) -> None:
        if not self._attached:
            return
        self._decide(True, ObscureReason.WINDOW_BLUR, source="blur")

    def handle_focus(self) -> None:
        if not self._attached:
            return
        self._decide(False, None, source="focus")

    def handle_resize(self, outer_width: int, inner_width: int, outer_height: int, inner_height: int) -> None:
        if not self._attached:
            return
        width_gap = int(outer_width) - int(inner_width)
        height_gap = int(outer_height) - int(inner_height)
        if width_gap > self._threshold or height_gap > self._threshold:
            changed = self._decide(True, ObscureReason.DEVTOOLS_SUSPECTED, source="resize")
            if changed:
                self._report_violation(
                    ObscureReason.DEVTOOLS_SUSPECTED,
                    {"trigger": "resize", "width_gap": width_gap, "height_gap": height_gap},
                )
            return
        if self._probe_value("has_focus") is True:
            self._decide(False, None, source="resize")

    def handle_key(self, chord: KeyChord) -> bool:
        """Return True when the chord is protected and its default action must be suppressed."""
        if not self._attached:
            return False
        reason = classify_chord(chord)
        if reason is None:
            return False
        self._cancel_pulse()
        self._apply(True, reason, source=f"key:{chord.key}")
        self._pulse_handle = self._after(self._pulse_ms, self._end_pulse)
        self._report_violation(reason, {"trigger": "key", "key": chord.key})
        return True

    # Internal helpers ------------------------------------------------------

    def _apply_initial_state(self) -> None:
        hidden = self._probe_value("is_hidden")
        focused = self._probe_value("has_focus")
        if hidden is True or focused is False:
            self._apply(True, ObscureReason.INITIAL_UNFOCUSED, source="initial")
        else:
            self._apply(False, None, source="initial")

    def _decide(self, obscured: bool, reason: Optional[ObscureReason], *, source: str) -> bool:
        # A real signal supersedes any pending shortcut pulse.
        self._cancel_pulse()
        return self._apply(obscured, reason, source=source)

    def _end_pulse(self) -> None:
        self._pulse_handle = None
        if not self._attached:
            return
        self._apply(False, None, source="pulse-expired")

    def _apply(self, obscured: bool, reason: Optional[ObscureReason], *, source: str) -> bool:
        candidate = ObscurityState(obscured, reason if obscured else None, self._state.since)
        if candidate.same_as(self._state):
            return False
        self._state = ObscurityState(candidate.is_obscured, candidate.reason, self._time())
        self._log(
            "Obscurity changed: obscured=%s reason=%s source=%s",
            self._state.is_obscured,
            self._state.reason.value if self._state.reason else "none",
            source,
        )
        if self._on_change is not None:
            try:
                self._on_change(self._state)
            except Exception as exc:
                self._log("Obscurity change callback failed: %s", exc)
        return True

    def _report_violation(self, reason: ObscureReason, detail: Dict[str, object]) -> None:
        if self._on_violation is None:
            return
        try:
            self._on_violation(reason, detail)
        except Exception as exc:
            self._log("Violation callback failed: %s", exc)

    def _cancel_pulse(self) -> None:
        handle = self._pulse_handle
        self._pulse_handle = None
        if handle is not None:
            try:
                self._after_cancel(handle)
            except Exception:
                pass

    def _release_subscriptions(self) -> None:
        subscriptions = self._subscriptions
        self._subscriptions = []
        for unsubscribe in subscriptions:
            try:
                unsubscribe()
            except Exception as exc:
                self._log("Failed to release monitor subscription: %s", exc)

    def _probe_value(self, name: str) -> Optional[bool]:
        try:
            value = getattr(self._probe, name)()
        except Exception as exc:
            self._log("Environment probe %s unavailable: %s", name, exc)
            return None
        if value is None:
            return None
        return bool(value)

    def _log(self, message: str, *args: object) -> None:
        try:
            self._logger(message, *args)
        except Exception:
            pass
