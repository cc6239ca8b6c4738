"""Mountable PyQt6 viewing surface guarded by the security supervisor."""
from __future__ import annotations

import random
from typing import Optional

from PyQt6.QtCore import QEasingCurve, QParallelAnimationGroup, QPoint, QPropertyAnimation, QRect, Qt, pyqtSignal
from PyQt6.QtGui import QColor, QFont, QPainter
from PyQt6.QtWidgets import (
    QFrame,
    QGraphicsOpacityEffect,
    QLabel,
    QProgressBar,
    QVBoxLayout,
    QWidget,
)

from secure_viewer.audit import AuditSink, AuditTrail
from secure_viewer.identity import ViewerIdentity
from secure_viewer.logging_utils import get_logger
from secure_viewer.playback_gate import GatePhase
from secure_viewer.qt_environment import QtWindowEventSource, QtWindowProbe
from secure_viewer.qt_scheduler import QtScheduler
from secure_viewer.supervisor import SecuritySupervisor, ViewState
from secure_viewer.viewer_config import ViewerSettings
from secure_viewer.watermark import WatermarkPlacement

_LOGGER = get_logger("Qt")

_WATERMARK_SIZE = (260, 120)
_WATERMARK_ROTATION = -15.0


def _click_through(widget: QWidget) -> None:
    widget.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents, True)
    widget.setFocusPolicy(Qt.FocusPolicy.NoFocus)


class WatermarkOverlay(QWidget):
    """Painted (not selectable) identity text that glides between placements."""

    def __init__(self, parent: QWidget) -> None:
        super().__init__(parent)
        _click_through(self)
        self.resize(*_WATERMARK_SIZE)
        self._lines: tuple[str, ...] = ()
        self._placement: Optional[WatermarkPlacement] = None
        self._opacity_effect = QGraphicsOpacityEffect(self)
        self._opacity_effect.setOpacity(0.3)
        self.setGraphicsEffect(self._opacity_effect)
        self._animation: Optional[QParallelAnimationGroup] = None

    @property
    def placement(self) -> Optional[WatermarkPlacement]:
        return self._placement

    def set_lines(self, lines: tuple[str, ...]) -> None:
        if lines != self._lines:
            self._lines = lines
            self.update()

    def apply_placement(self, placement: WatermarkPlacement, *, transition_ms: int) -> None:
        if placement == self._placement:
            return
        animate = self._placement is not None and transition_ms > 0
        self._placement = placement
        target = self._target_pos(placement)
        self._stop_animation()
        if not animate:
            self.move(target)
            self._opacity_effect.setOpacity(placement.opacity)
            return
        group = QParallelAnimationGroup(self)
        move = QPropertyAnimation(self, b"pos", group)
        move.setDuration(transition_ms)
        move.setEndValue(target)
        move.setEasingCurve(QEasingCurve.Type.InOutSine)
        fade = QPropertyAnimation(self._opacity_effect, b"opacity", group)
        fade.setDuration(transition_ms)
        fade.setEndValue(placement.opacity)
        group.addAnimation(move)
        group.addAnimation(fade)
        group.start()
        self._animation = group

    def reposition(self) -> None:
        if self._placement is None:
            return
        self._stop_animation()
        self.move(self._target_pos(self._placement))

    def _stop_animation(self) -> None:
        if self._animation is not None:
            self._animation.stop()
            self._animation.deleteLater()
            self._animation = None

    def _target_pos(self, placement: WatermarkPlacement) -> QPoint:
        parent = self.parentWidget()
        width = parent.width() if parent is not None else 0
        height = parent.height() if parent is not None else 0
        centre_x = int(width * placement.left_percent / 100)
        centre_y = int(height * placement.top_percent / 100)
        return QPoint(centre_x - self.width() // 2, centre_y - self.height() // 2)

    def paintEvent(self, event) -> None:  # type: ignore[override]
        if not self._lines:
            return
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.TextAntialiasing)
        painter.translate(self.width() / 2, self.height() / 2)
        painter.rotate(_WATERMARK_ROTATION)
        sizes = (18, 12, 9, 7)
        alphas = (128, 77, 51, 26)
        y = -36
        for text, size, alpha in zip(self._lines, sizes, alphas):
            font = QFont()
            font.setPointSize(size)
            font.setBold(size == sizes[0])
            painter.setFont(font)
            painter.setPen(QColor(255, 255, 255, alpha))
            rect = QRect(-self.width() // 2, y, self.width(), size * 2)
            painter.drawText(rect, Qt.AlignmentFlag.AlignCenter, text)
            y += size * 2
        painter.end()


class PlaySurface(QFrame):
    """Mock video area; a left click requests a play/pause toggle."""

    clicked = pyqtSignal()

    def __init__(self, title: str, media_handle: str, parent: QWidget) -> None:
        super().__init__(parent)
        self.setStyleSheet("PlaySurface { background: #09090b; } QLabel { background: transparent; }")
        layout = QVBoxLayout(self)
        layout.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.title_label = QLabel(title, self)
        self.title_label.setStyleSheet("color: rgba(255,255,255,230); font-size: 22px; font-weight: bold;")
        self.title_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.stream_label = QLabel(self)
        self.stream_label.setStyleSheet("color: #71717a; font-family: monospace; font-size: 11px;")
        self.stream_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.play_indicator = QLabel("▶", self)
        self.play_indicator.setStyleSheet("color: white; font-size: 32px;")
        self.play_indicator.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.progress = QProgressBar(self)
        self.progress.setRange(0, 100)
        self.progress.setTextVisible(False)
        self.progress.setFixedHeight(4)
        for child in (self.title_label, self.stream_label, self.play_indicator):
            _click_through(child)
            layout.addWidget(child)
        layout.addStretch(1)
        layout.addWidget(self.progress)
        self.set_media_handle(media_handle)

    def set_media_handle(self, media_handle: str) -> None:
        self.stream_label.setText(f"Encrypted Stream ID: {media_handle}")

    def present(self, phase: GatePhase, controls_enabled: bool) -> None:
        playing = phase is GatePhase.PLAYING
        self.play_indicator.setVisible(not playing)
        self.progress.setValue(100 if playing else 35)
        cursor = Qt.CursorShape.PointingHandCursor if controls_enabled else Qt.CursorShape.ForbiddenCursor
        self.setCursor(cursor)

    def mousePressEvent(self, event) -> None:  # type: ignore[override]
        if event.button() == Qt.MouseButton.LeftButton:
            self.clicked.emit()
            event.accept()
            return
        super().mousePressEvent(event)


class LoadingOverlay(QFrame):
    def __init__(self, parent: QWidget) -> None:
        super().__init__(parent)
        self.setStyleSheet("LoadingOverlay { background: rgba(24,24,27,230); } QLabel { color: #60a5fa; }")
        layout = QVBoxLayout(self)
        layout.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.label = QLabel(self)
        self.label.setStyleSheet("font-family: monospace; font-size: 13px;")
        self.label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.bar = QProgressBar(self)
        self.bar.setRange(0, 100)
        self.bar.setTextVisible(False)
        self.bar.setFixedWidth(240)
        layout.addWidget(self.label)
        layout.addWidget(self.bar, alignment=Qt.AlignmentFlag.AlignCenter)
        self.set_progress(0.0)

    def set_progress(self, readiness: float) -> None:
        percent = int(round(readiness))
        self.label.setText(f"ACQUIRING DRM LICENSE... {percent}%")
        self.bar.setValue(percent)


class BlockOverlay(QFrame):
    """Opaque cover shown while content is obscured."""

    def __init__(self, parent: QWidget) -> None:
        super().__init__(parent)
        self.setStyleSheet("BlockOverlay { background: black; } QLabel { background: transparent; }")
        layout = QVBoxLayout(self)
        layout.setAlignment(Qt.AlignmentFlag.AlignCenter)
        heading = QLabel("Security Protocol Active", self)
        heading.setStyleSheet("color: white; font-size: 28px; font-weight: bold;")
        self.message_label = QLabel(self)
        self.message_label.setWordWrap(True)
        self.message_label.setStyleSheet("color: #9ca3af; font-size: 16px;")
        footer = QLabel("Protected by anti-piracy monitoring", self)
        footer.setStyleSheet("color: #4b5563; font-size: 12px;")
        for label in (heading, self.message_label, footer):
            label.setAlignment(Qt.AlignmentFlag.AlignCenter)
            layout.addWidget(label)

    def set_message(self, message: str) -> None:
        self.message_label.setText(message)


class SecureViewerWidget(QWidget):
    """Viewing surface for one media handle; mounts on show, unmounts on close."""

    def __init__(
        self,
        identity: ViewerIdentity,
        media_handle: str,
        title: str,
        *,
        settings: Optional[ViewerSettings] = None,
        audit_sink: Optional[AuditSink] = None,
        rng: Optional[random.Random] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._settings = settings or ViewerSettings()
        self._base_title = title
        self._alert_title_active = False
        self.setWindowTitle(title)
        self.setContextMenuPolicy(Qt.ContextMenuPolicy.PreventContextMenu)
        self.setMinimumSize(640, 360)
        self.setStyleSheet("SecureViewerWidget { background: black; }")

        self._scheduler = QtScheduler(self)
        self._event_source = QtWindowEventSource(self.window, parent=self)
        self._supervisor = SecuritySupervisor(
            identity,
            media_handle,
            title,
            source=self._event_source,
            probe=QtWindowProbe(self.window),
            after=self._scheduler.after,
            after_cancel=self._scheduler.after_cancel,
            settings=self._settings,
            rng=rng,
            audit=AuditTrail(capacity=self._settings.audit_capacity, sink=audit_sink),
            on_change=self._render,
        )

        self.play_surface = PlaySurface(title, media_handle, self)
        self.play_surface.clicked.connect(self._supervisor.click_play)
        self.loading_overlay = LoadingOverlay(self)
        self.watermark = WatermarkOverlay(self)
        self.badge = QLabel("DRM PROTECTED", self)
        self.badge.setStyleSheet(
            "color: #ef4444; background: rgba(239,68,68,25); border: 1px solid rgba(239,68,68,128);"
            " border-radius: 10px; padding: 2px 10px; font-size: 11px; font-weight: bold;"
        )
        _click_through(self.badge)
        self.block_overlay = BlockOverlay(self)
        self._render(self._supervisor.view())

    # Public API -----------------------------------------------------------

    @property
    def supervisor(self) -> SecuritySupervisor:
        return self._supervisor

    def mount(self, media_handle: Optional[str] = None) -> None:
        self._supervisor.mount(media_handle)
        self.play_surface.set_media_handle(self._supervisor.media_handle)

    def unmount(self) -> None:
        self._supervisor.unmount()
        self._scheduler.cancel_all()

    # Qt overrides --------------------------------------------------------

    def showEvent(self, event) -> None:  # type: ignore[override]
        super().showEvent(event)
        if not self._supervisor.mounted:
            self.mount()

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self.unmount()
        super().closeEvent(event)

    def resizeEvent(self, event) -> None:  # type: ignore[override]
        super().resizeEvent(event)
        full = self.rect()
        for child in (self.play_surface, self.loading_overlay, self.block_overlay):
            child.setGeometry(full)
        self.badge.adjustSize()
        self.badge.move(max(0, self.width() - self.badge.width() - 16), 16)
        self.watermark.reposition()

    # Rendering -----------------------------------------------------------

    def _render(self, view: ViewState) -> None:
        self.play_surface.setVisible(view.is_ready)
        self.play_surface.present(view.phase, view.controls_enabled)
        self.loading_overlay.setVisible(not view.is_ready)
        self.loading_overlay.set_progress(view.readiness)
        self.watermark.setVisible(view.watermark_visible)
        if view.watermark_visible and view.placement is not None:
            self.watermark.set_lines(view.watermark_lines)
            self.watermark.apply_placement(view.placement, transition_ms=self._supervisor.watermark_transition_ms)
        self.block_overlay.set_message(view.message)
        self.block_overlay.setVisible(view.is_obscured)
        self.watermark.raise_()
        self.badge.raise_()
        self.block_overlay.raise_()
        self._apply_window_title(view.is_obscured)

    def _apply_window_title(self, obscured: bool) -> None:
        if obscured == self._alert_title_active:
            return
        self._alert_title_active = obscured
        self.window().setWindowTitle(self._settings.alert_window_title if obscured else self._base_title)
        _LOGGER.debug("Window title alert %s", "raised" if obscured else "cleared")
