from __future__ import annotations

import random
from datetime import date

import pytest

from secure_viewer.audit import AuditAction, AuditTrail
from secure_viewer.environment import ManualEventSource, MonitorSignal, StaticEnvironment
from secure_viewer.identity import ViewerIdentity, ViewerIdentityError
from secure_viewer.obscurity import ObscureReason
from secure_viewer.playback_gate import GatePhase
from secure_viewer.shortcuts import KeyChord
from secure_viewer.supervisor import SecuritySupervisor
from secure_viewer.viewer_config import ViewerSettings

IDENTITY = ViewerIdentity(id="s1", display_name="john_doe", student_number="MM-2024-001")
READY_MS = 200 * 100


def _supervisor(clock, *, probe=None, source=None, views=None, **kwargs):
    source = source or ManualEventSource()
    views = views if views is not None else []
    supervisor = SecuritySupervisor(
        IDENTITY,
        "vid-42",
        "Limits and Continuity",
        source=source,
        probe=probe or StaticEnvironment(hidden=False, focused=True),
        after=clock.after,
        after_cancel=clock.cancel,
        rng=random.Random(5),
        time_source=clock.seconds,
        today=lambda: date(2024, 3, 9),
        on_change=views.append,
        **kwargs,
    )
    return supervisor, source, views


def test_scenario_hidden_visible_ready_play_blur(clock):
    supervisor, source, _views = _supervisor(clock)
    supervisor.mount()

    source.emit(MonitorSignal.VISIBILITY, True)
    view = supervisor.view()
    assert view.is_obscured is True
    assert view.reason is ObscureReason.TAB_HIDDEN
    assert view.message == "Content hidden while tab is inactive."

    source.emit(MonitorSignal.VISIBILITY, False)
    assert supervisor.view().is_obscured is False

    clock.advance(READY_MS)
    view = supervisor.view()
    assert view.phase is GatePhase.PAUSED
    assert view.readiness == 100.0
    assert view.watermark_visible is True

    assert supervisor.click_play() is True
    assert supervisor.view().phase is GatePhase.PLAYING

    source.emit(MonitorSignal.BLUR)
    view = supervisor.view()
    assert view.reason is ObscureReason.WINDOW_BLUR
    assert view.controls_enabled is False
    assert view.phase is GatePhase.PAUSED
    assert view.is_ready is True
    assert supervisor.click_play() is False


def test_watermark_hidden_until_ready_then_placed_immediately(clock):
    supervisor, _source, _views = _supervisor(clock)
    supervisor.mount()
    view = supervisor.view()
    assert view.watermark_visible is False
    assert view.placement is None
    assert view.watermark_lines == ()

    clock.advance(READY_MS)
    view = supervisor.view()
    assert view.placement is not None
    assert view.watermark_lines == ("MM-2024-001", "john_doe", "2024-03-09", "s1")


def test_watermark_stays_rendered_while_obscured(clock):
    supervisor, source, _views = _supervisor(clock)
    supervisor.mount()
    clock.advance(READY_MS)
    source.emit(MonitorSignal.BLUR)
    view = supervisor.view()
    assert view.is_obscured is True
    assert view.watermark_visible is True


def test_click_play_while_loading_is_ignored(clock):
    supervisor, _source, _views = _supervisor(clock)
    supervisor.mount()
    clock.advance(400)
    assert supervisor.click_play() is False
    assert supervisor.view().phase is GatePhase.LOADING


def test_unmount_releases_listeners_and_timers(clock):
    supervisor, source, views = _supervisor(clock)
    supervisor.mount()
    clock.advance(READY_MS)
    assert source.handler_count() > 0
    assert clock.pending > 0

    supervisor.unmount()
    assert source.handler_count() == 0
    assert clock.pending == 0

    before = supervisor.view()
    count = len(views)
    source.emit(MonitorSignal.BLUR)
    source.emit(MonitorSignal.KEY, KeyChord("PrintScreen"))
    clock.advance(120_000)
    assert supervisor.view() == before
    assert len(views) == count


def test_repeated_mounts_do_not_leak_handlers(clock):
    supervisor, source, _views = _supervisor(clock)
    for handle in ("vid-1", "vid-2", "vid-3"):
        supervisor.mount(handle)
        assert source.handler_count() == len(MonitorSignal)
    assert supervisor.media_handle == "vid-3"
    supervisor.unmount()
    assert source.handler_count() == 0


def test_remount_restarts_loading(clock):
    supervisor, _source, _views = _supervisor(clock)
    supervisor.mount()
    clock.advance(READY_MS)
    assert supervisor.view().is_ready is True

    supervisor.mount("vid-99")
    view = supervisor.view()
    assert view.phase is GatePhase.LOADING
    assert view.readiness == 0.0
    assert view.media_handle == "vid-99"
    assert view.watermark_visible is False


def test_context_manager_unmounts_on_error(clock):
    supervisor, source, _views = _supervisor(clock)
    with pytest.raises(RuntimeError):
        with supervisor:
            assert supervisor.mounted is True
            raise RuntimeError("host navigation failed")
    assert supervisor.mounted is False
    assert source.handler_count() == 0
    assert clock.pending == 0


def test_mount_failure_releases_partial_subscriptions(clock):
    class FlakySource(ManualEventSource):
        def subscribe(self, signal, handler):
            if signal is MonitorSignal.KEY:
                raise RuntimeError("keyboard hooks unavailable")
            return super().subscribe(signal, handler)

    source = FlakySource()
    supervisor, _source, _views = _supervisor(clock, source=source)
    with pytest.raises(RuntimeError):
        supervisor.mount()
    assert supervisor.mounted is False
    assert source.handler_count() == 0
    assert clock.pending == 0


def test_initially_unfocused_surface_mounts_obscured(clock):
    supervisor, source, _views = _supervisor(clock, probe=StaticEnvironment(hidden=False, focused=False))
    supervisor.mount()
    assert supervisor.view().reason is ObscureReason.INITIAL_UNFOCUSED
    source.emit(MonitorSignal.FOCUS)
    assert supervisor.view().is_obscured is False


def test_on_change_receives_snapshots_only_while_mounted(clock):
    supervisor, source, views = _supervisor(clock)
    source.emit(MonitorSignal.BLUR)
    assert views == []
    supervisor.mount()
    assert views and views[-1].mounted is True
    supervisor.unmount()
    assert views[-1].mounted is False


def test_audit_trail_records_lifecycle_playback_and_violations(clock):
    sunk = []
    audit = AuditTrail(capacity=50, sink=sunk.append, time_source=clock.seconds)
    supervisor, source, _views = _supervisor(clock, audit=audit)
    supervisor.mount()
    clock.advance(READY_MS)
    supervisor.click_play()
    supervisor.click_play()
    source.emit(MonitorSignal.KEY, KeyChord("i", ctrl=True, shift=True))
    supervisor.unmount()

    actions = [event.action for event in audit.events()]
    assert actions == [
        AuditAction.VIEW_START,
        AuditAction.PLAYBACK_START,
        AuditAction.PLAYBACK_PAUSE,
        AuditAction.SECURITY_VIOLATION,
        AuditAction.VIEW_STOP,
    ]
    violation = audit.events(AuditAction.SECURITY_VIOLATION)[0]
    assert violation.metadata["reason"] == "DEVTOOLS_SUSPECTED"
    assert violation.viewer_id == "s1"
    assert violation.media_handle == "vid-42"
    assert sunk == audit.events()


def test_settings_drive_component_timing(clock):
    settings = ViewerSettings(readiness_tick_ms=50, pulse_ms=500, watermark_interval_ms=10_000)
    supervisor, source, _views = _supervisor(clock, settings=settings)
    supervisor.mount()
    assert clock.scheduled[0][0] == 50
    source.emit(MonitorSignal.KEY, KeyChord("PrintScreen"))
    clock.advance(500)
    assert supervisor.view().is_obscured is False


def test_supervisor_rejects_missing_identity(clock):
    with pytest.raises(ViewerIdentityError):
        SecuritySupervisor(
            None,  # type: ignore[arg-type]
            "vid-1",
            "title",
            source=ManualEventSource(),
            after=clock.after,
            after_cancel=clock.cancel,
        )


def test_supervisor_rejects_empty_media_handle(clock):
    with pytest.raises(ValueError):
        SecuritySupervisor(
            IDENTITY,
            "",
            "title",
            source=ManualEventSource(),
            after=clock.after,
            after_cancel=clock.cancel,
        )


def test_injected_empty_audit_trail_is_used(clock):
    sunk = []
    audit = AuditTrail(sink=sunk.append, time_source=clock.seconds)
    assert len(audit) == 0
    supervisor, _source, _views = _supervisor(clock, audit=audit)
    assert supervisor.audit is audit
    supervisor.mount()
    assert [event.action for event in sunk] == [AuditAction.VIEW_START]
    assert len(audit) == 1
