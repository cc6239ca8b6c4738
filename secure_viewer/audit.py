"""Bounded in-memory record of viewing and violation events."""
from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Deque, Dict, List, Mapping, Optional

from secure_viewer.logging_utils import get_logger

_LOGGER = get_logger("Audit")


class AuditAction(str, Enum):
    VIEW_START = "VIEW_START"
    VIEW_STOP = "VIEW_STOP"
    PLAYBACK_START = "PLAYBACK_START"
    PLAYBACK_PAUSE = "PLAYBACK_PAUSE"
    SECURITY_VIOLATION = "SECURITY_VIOLATION"


@dataclass(frozen=True)
class AuditEvent:
    action: AuditAction
    viewer_id: str
    media_handle: str
    timestamp: float
    metadata: Mapping[str, object] = field(default_factory=dict)


AuditSink = Callable[[AuditEvent], None]


class AuditTrail:
    """Keeps the most recent events and forwards each one to an optional sink."""

    def __init__(
        self,
        *,
        capacity: int = 256,
        sink: Optional[AuditSink] = None,
        time_source: Callable[[], float] = time.time,
        logger: logging.Logger = _LOGGER,
    ) -> None:
        self._events: Deque[AuditEvent] = deque(maxlen=max(1, int(capacity)))
        self._sink = sink
        self._time = time_source
        self._logger = logger

    def record(
        self,
        action: AuditAction,
        *,
        viewer_id: str,
        media_handle: str,
        metadata: Optional[Dict[str, object]] = None,
    ) -> AuditEvent:
        event = AuditEvent(
            action=action,
            viewer_id=viewer_id,
            media_handle=media_handle,
            timestamp=self._time(),
            metadata=dict(metadata or {}),
        )
        self._events.append(event)
        level = logging.WARNING if action is AuditAction.SECURITY_VIOLATION else logging.INFO
        self._logger.log(level, "Audit %s viewer=%s media=%s %s", action.value, viewer_id, media_handle, event.metadata)
        if self._sink is not None:
            try:
                self._sink(event)
            except Exception as exc:
                self._logger.warning("Audit sink rejected %s event: %s", action.value, exc)
        return event

    def events(self, action: Optional[AuditAction] = None) -> List[AuditEvent]:
        if action is None:
            return list(self._events)
        return [event for event in self._events if event.action is action]

    def __len__(self) -> int:
        return len(self._events)
