from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ObscureReason(str, Enum):
    TAB_HIDDEN = "TAB_HIDDEN"
    WINDOW_BLUR = "WINDOW_BLUR"
    DEVTOOLS_SUSPECTED = "DEVTOOLS_SUSPECTED"
    SCREENSHOT_ATTEMPT = "SCREENSHOT_ATTEMPT"
    INITIAL_UNFOCUSED = "INITIAL_UNFOCUSED"


REASON_MESSAGES = {
    ObscureReason.TAB_HIDDEN: "Content hidden while tab is inactive.",
    ObscureReason.WINDOW_BLUR: "Screen capture disabled. Please keep the window in focus.",
    ObscureReason.DEVTOOLS_SUSPECTED: "DevTools detected. Please close inspector tools to continue.",
    ObscureReason.SCREENSHOT_ATTEMPT: "Screenshots are disabled on this platform.",
    ObscureReason.INITIAL_UNFOCUSED: "Please focus the window to view content.",
}


@dataclass(frozen=True)
class ObscurityState:
    is_obscured: bool = False
    reason: Optional[ObscureReason] = None
    since: float = 0.0

    @classmethod
    def clear(cls, since: float = 0.0) -> "ObscurityState":
        return cls(False, None, since)

    @classmethod
    def obscured(cls, reason: ObscureReason, since: float = 0.0) -> "ObscurityState":
        return cls(True, reason, since)

    @property
    def message(self) -> str:
        if not self.is_obscured or self.reason is None:
            return ""
        return REASON_MESSAGES[self.reason]

    def same_as(self, other: "ObscurityState") -> bool:
        """Compare ignoring the timestamp."""
        return self.is_obscured == other.is_obscured and self.reason == other.reason
