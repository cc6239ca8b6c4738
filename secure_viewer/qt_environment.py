"""Qt adapters feeding window and keyboard events to the focus monitor."""
from __future__ import annotations

import sys
from typing import Callable, Dict, List, Optional

from PyQt6.QtCore import QCoreApplication, QEvent, QObject, Qt
from PyQt6.QtGui import QGuiApplication, QKeyEvent
from PyQt6.QtWidgets import QWidget

from secure_viewer.environment import MonitorSignal, Unsubscribe
from secure_viewer.logging_utils import get_logger
from secure_viewer.shortcuts import KeyChord

_LOGGER = get_logger("Qt")

_NAMED_KEYS = {
    Qt.Key.Key_Print.value: "PrintScreen",
    Qt.Key.Key_SysReq.value: "Print",
    Qt.Key.Key_F12.value: "F12",
}

_PRINT_KEY = Qt.Key.Key_Print.value

# Shift+3/4/5 as reported on US and UK layouts.
_SHIFTED_DIGITS = {
    Qt.Key.Key_NumberSign.value: "3",
    Qt.Key.Key_sterling.value: "3",
    Qt.Key.Key_Dollar.value: "4",
    Qt.Key.Key_Percent.value: "5",
}

# macOS kVK_ANSI_3/4/5; positional, so independent of the keyboard layout.
_MAC_VIRTUAL_DIGITS = {0x14: "3", 0x15: "4", 0x17: "5"}

_HIDDEN_APP_STATES = (
    Qt.ApplicationState.ApplicationHidden,
    Qt.ApplicationState.ApplicationSuspended,
)


def chord_from_key_event(event: QKeyEvent, *, platform: Optional[str] = None) -> KeyChord:
    """Translate a Qt key event into a KeyChord.

    On macOS Qt reports Cmd as ``ControlModifier`` and Control as
    ``MetaModifier``; the chord uses browser naming, so the two are swapped
    back there. Shifted digits arrive as their symbols (``Key_Dollar`` for
    Shift+4 on US layouts) and are folded back to the digit.
    """
    platform = platform or sys.platform
    key = int(event.key())
    modifiers = event.modifiers()
    shift = bool(modifiers & Qt.KeyboardModifier.ShiftModifier)
    if key in _NAMED_KEYS:
        name = _NAMED_KEYS[key]
    elif Qt.Key.Key_A.value <= key <= Qt.Key.Key_Z.value or Qt.Key.Key_0.value <= key <= Qt.Key.Key_9.value:
        name = chr(key).lower()
    elif shift and key in _SHIFTED_DIGITS:
        name = _SHIFTED_DIGITS[key]
    else:
        name = event.text() or f"Key_{key:#x}"
    if platform == "darwin" and shift and event.nativeVirtualKey() in _MAC_VIRTUAL_DIGITS:
        name = _MAC_VIRTUAL_DIGITS[event.nativeVirtualKey()]

    control = bool(modifiers & Qt.KeyboardModifier.ControlModifier)
    meta = bool(modifiers & Qt.KeyboardModifier.MetaModifier)
    if platform == "darwin":
        control, meta = meta, control
    return KeyChord(
        key=name,
        ctrl=control,
        shift=shift,
        alt=bool(modifiers & Qt.KeyboardModifier.AltModifier),
        meta=meta,
    )


class QtWindowEventSource(QObject):
    """Application-level event filter scoped to one top-level window.

    The filter is installed on the first subscription and removed when the
    last subscription is released, so repeated mounts never stack filters.
    """

    def __init__(
        self,
        window_fn: Callable[[], QWidget],
        *,
        app: Optional[QCoreApplication] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._window_fn = window_fn
        self._app = app
        self._handlers: Dict[MonitorSignal, List[Callable[..., object]]] = {}
        self._installed_on: Optional[QCoreApplication] = None
        self._print_press_seen = False

    @property
    def installed(self) -> bool:
        return self._installed_on is not None

    def subscribe(self, signal: MonitorSignal, handler: Callable[..., object]) -> Unsubscribe:
        self._handlers.setdefault(signal, []).append(handler)
        self._install()

        def _unsubscribe() -> None:
            handlers = self._handlers.get(signal)
            if handlers and handler in handlers:
                handlers.remove(handler)
                if not handlers:
                    del self._handlers[signal]
            if not self._handlers:
                self._uninstall()

        return _unsubscribe

    def eventFilter(self, obj: QObject, event: QEvent) -> bool:  # type: ignore[override]
        etype = event.type()
        if etype == QEvent.Type.KeyPress:
            return self._handle_key(obj, event)  # type: ignore[arg-type]
        if etype == QEvent.Type.KeyRelease and int(event.key()) == _PRINT_KEY:  # type: ignore[attr-defined]
            # Windows delivers PrintScreen as a release with no matching press.
            if self._print_press_seen:
                self._print_press_seen = False
                event.accept()
                return True
            return self._handle_key(obj, event)  # type: ignore[arg-type]
        if etype == QEvent.Type.ApplicationStateChange and obj is self._installed_on:
            if QGuiApplication.applicationState() in _HIDDEN_APP_STATES:
                self._dispatch(MonitorSignal.VISIBILITY, True)
            return False
        if obj is not self._window_fn():
            return False
        if etype == QEvent.Type.WindowActivate:
            self._dispatch(MonitorSignal.FOCUS)
        elif etype == QEvent.Type.WindowDeactivate:
            self._dispatch(MonitorSignal.BLUR)
        elif etype == QEvent.Type.Hide:
            self._dispatch(MonitorSignal.VISIBILITY, True)
        elif etype == QEvent.Type.Show:
            self._dispatch(MonitorSignal.VISIBILITY, False)
        elif etype == QEvent.Type.WindowStateChange:
            window = self._window_fn()
            was_minimized = bool(event.oldState() & Qt.WindowState.WindowMinimized)  # type: ignore[attr-defined]
            is_minimized = window.isMinimized()
            if was_minimized != is_minimized:
                self._dispatch(MonitorSignal.VISIBILITY, is_minimized)
        elif etype == QEvent.Type.Resize:
            window = self._window_fn()
            frame = window.frameGeometry()
            inner = window.geometry()
            self._dispatch(MonitorSignal.RESIZE, frame.width(), inner.width(), frame.height(), inner.height())
        return False

    def _handle_key(self, obj: QObject, event: QKeyEvent) -> bool:
        if not isinstance(obj, QWidget) or obj.window() is not self._window_fn():
            return False
        if event.type() == QEvent.Type.KeyPress and int(event.key()) == _PRINT_KEY:
            self._print_press_seen = True
        chord = chord_from_key_event(event)
        suppressed = any(bool(result) for result in self._dispatch(MonitorSignal.KEY, chord))
        if suppressed:
            _LOGGER.debug("Suppressed protected key chord %s", chord)
            event.accept()
        return suppressed

    def _dispatch(self, signal: MonitorSignal, *args: object) -> List[object]:
        results = []
        for handler in list(self._handlers.get(signal, ())):
            try:
                results.append(handler(*args))
            except Exception:
                _LOGGER.exception("Monitor handler for %s failed", signal.value)
        return results

    def _install(self) -> None:
        if self._installed_on is not None:
            return
        app = self._app or QCoreApplication.instance()
        if app is None:
            _LOGGER.debug("No Qt application instance; window events unavailable")
            return
        app.installEventFilter(self)
        self._installed_on = app

    def _uninstall(self) -> None:
        app = self._installed_on
        self._installed_on = None
        if app is not None:
            app.removeEventFilter(self)


class QtWindowProbe:
    """Answers visibility/focus questions for the monitor's initial state."""

    def __init__(self, window_fn: Callable[[], QWidget]) -> None:
        self._window_fn = window_fn

    def is_hidden(self) -> Optional[bool]:
        if QCoreApplication.instance() is None:
            return None
        window = self._window_fn()
        if QGuiApplication.applicationState() in _HIDDEN_APP_STATES:
            return True
        return window.isMinimized() or not window.isVisible()

    def has_focus(self) -> Optional[bool]:
        if QCoreApplication.instance() is None:
            return None
        return self._window_fn().isActiveWindow()
