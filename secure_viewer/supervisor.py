"""Security supervisor composing the monitor, playback gate and watermark."""
from __future__ import annotations

import random
import time
from contextlib import ExitStack
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, Optional, Tuple

from secure_viewer.audit import AuditAction, AuditTrail
from secure_viewer.environment import EnvironmentProbe, EventSource, NullEnvironment
from secure_viewer.focus_monitor import AfterCancelFn, AfterFn, FocusMonitor
from secure_viewer.identity import ViewerIdentity, require_identity
from secure_viewer.logging_utils import get_logger
from secure_viewer.obscurity import ObscureReason, ObscurityState
from secure_viewer.playback_gate import GatePhase, PlaybackGate
from secure_viewer.viewer_config import ViewerSettings
from secure_viewer.watermark import WatermarkPlacement, WatermarkRenderer

_LOGGER = get_logger("Supervisor")


@dataclass(frozen=True)
class ViewState:
    """Read-only snapshot of a viewing surface, used by hosts to render."""

    title: str
    media_handle: str
    mounted: bool
    obscurity: ObscurityState
    phase: GatePhase
    readiness: float
    controls_enabled: bool
    watermark_visible: bool
    placement: Optional[WatermarkPlacement]
    watermark_lines: Tuple[str, ...]

    @property
    def is_obscured(self) -> bool:
        return self.obscurity.is_obscured

    @property
    def reason(self) -> Optional[ObscureReason]:
        return self.obscurity.reason

    @property
    def message(self) -> str:
        return self.obscurity.message

    @property
    def is_ready(self) -> bool:
        return self.phase is not GatePhase.LOADING


class SecuritySupervisor:
    """Owns every subscription and timer of one mounted viewing surface."""

    def __init__(
        self,
        identity: ViewerIdentity,
        media_handle: str,
        title: str,
        *,
        source: EventSource,
        after: AfterFn,
        after_cancel: AfterCancelFn,
        probe: Optional[EnvironmentProbe] = None,
        settings: Optional[ViewerSettings] = None,
        rng: Optional[random.Random] = None,
        time_source: Callable[[], float] = time.monotonic,
        today: Callable[[], date] = date.today,
        audit: Optional[AuditTrail] = None,
        on_change: Optional[Callable[[ViewState], None]] = None,
    ) -> None:
        self._identity = require_identity(identity)
        if not media_handle:
            raise ValueError("media handle is required")
        self._media_handle = str(media_handle)
        self._title = title
        self._source = source
        self._settings = settings or ViewerSettings()
        self._on_change = on_change
        self._audit = audit if audit is not None else AuditTrail(capacity=self._settings.audit_capacity)
        rng = rng or random.Random()

        self._monitor = FocusMonitor(
            probe or NullEnvironment(),
            after=after,
            after_cancel=after_cancel,
            on_change=self._handle_obscurity,
            on_violation=self._handle_violation,
            time_source=time_source,
            devtools_threshold_px=self._settings.devtools_threshold_px,
            pulse_ms=self._settings.pulse_ms,
            logger=get_logger("Monitor").debug,
        )
        self._gate = PlaybackGate(
            after=after,
            after_cancel=after_cancel,
            rng=rng,
            tick_ms=self._settings.readiness_tick_ms,
            min_step=self._settings.readiness_min_step,
            max_step=self._settings.readiness_max_step,
            on_change=self._notify,
            on_ready=self._handle_ready,
            logger=get_logger("Gate").debug,
        )
        self._watermark = WatermarkRenderer(
            self._identity,
            after=after,
            after_cancel=after_cancel,
            rng=rng,
            interval_ms=self._settings.watermark_interval_ms,
            transition_ms=self._settings.watermark_transition_ms,
            today=today,
            on_move=lambda _placement: self._notify(),
            logger=get_logger("Watermark").debug,
        )
        self._stack: Optional[ExitStack] = None

    # Public API -----------------------------------------------------------

    @property
    def identity(self) -> ViewerIdentity:
        return self._identity

    @property
    def media_handle(self) -> str:
        return self._media_handle

    @property
    def mounted(self) -> bool:
        return self._stack is not None

    @property
    def audit(self) -> AuditTrail:
        return self._audit

    @property
    def watermark_transition_ms(self) -> int:
        return self._watermark.transition_ms

    def mount(self, media_handle: Optional[str] = None) -> None:
        """Acquire subscriptions and timers; a new media handle restarts loading."""
        if self._stack is not None:
            self.unmount()
        if media_handle:
            self._media_handle = str(media_handle)

        stack = ExitStack()
        try:
            self._monitor.attach(self._source)
            stack.callback(self._monitor.detach)
            self._gate.set_obscured(self._monitor.state.is_obscured)
            self._gate.start(self._media_handle)
            stack.callback(self._gate.stop)
            stack.callback(self._watermark.stop)
        except Exception:
            _LOGGER.warning("Mount failed for media=%s; releasing partial subscriptions", self._media_handle)
            stack.close()
            raise
        self._stack = stack
        _LOGGER.info("Viewing surface mounted: media=%s viewer=%s", self._media_handle, self._identity.id)
        self._record(AuditAction.VIEW_START, {"title": self._title})
        self._notify()

    def unmount(self) -> None:
        stack = self._stack
        if stack is None:
            return
        self._stack = None
        try:
            stack.close()
        finally:
            _LOGGER.info("Viewing surface unmounted: media=%s", self._media_handle)
            self._record(AuditAction.VIEW_STOP, {"readiness": round(self._gate.readiness, 1)})
            self._notify(force=True)

    def __enter__(self) -> "SecuritySupervisor":
        self.mount()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unmount()

    def click_play(self) -> bool:
        if self._stack is None:
            return False
        toggled = self._gate.toggle()
        if toggled:
            action = AuditAction.PLAYBACK_START if self._gate.phase is GatePhase.PLAYING else AuditAction.PLAYBACK_PAUSE
            self._record(action, {})
        return toggled

    def view(self) -> ViewState:
        ready = self._gate.is_ready
        watermark_visible = self._stack is not None and ready
        return ViewState(
            title=self._title,
            media_handle=self._media_handle,
            mounted=self._stack is not None,
            obscurity=self._monitor.state,
            phase=self._gate.phase,
            readiness=self._gate.readiness,
            controls_enabled=self._stack is not None and self._gate.controls_enabled,
            watermark_visible=watermark_visible,
            placement=self._watermark.placement if watermark_visible else None,
            watermark_lines=self._watermark.lines() if watermark_visible else (),
        )

    # Internal helpers ----------------------------------------------------

    def _handle_obscurity(self, state: ObscurityState) -> None:
        self._gate.set_obscured(state.is_obscured)
        self._notify()

    def _handle_ready(self) -> None:
        self._watermark.start()

    def _handle_violation(self, reason: ObscureReason, detail: Dict[str, object]) -> None:
        metadata: Dict[str, object] = {"reason": reason.value}
        metadata.update(detail)
        self._record(AuditAction.SECURITY_VIOLATION, metadata)

    def _record(self, action: AuditAction, metadata: Dict[str, object]) -> None:
        self._audit.record(
            action,
            viewer_id=self._identity.id,
            media_handle=self._media_handle,
            metadata=metadata,
        )

    def _notify(self, *, force: bool = False) -> None:
        if self._on_change is None or (self._stack is None and not force):
            return
        try:
            self._on_change(self.view())
        except Exception:
            _LOGGER.exception("View change callback failed")
