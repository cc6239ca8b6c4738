"""Keyboard shortcuts that trigger a protective obscure pulse."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from secure_viewer.obscurity import ObscureReason


@dataclass(frozen=True)
class KeyChord:
    """Toolkit-neutral description of a key press.

    ``key`` is the key name in the form browsers report it: single characters
    for printable keys, otherwise names such as ``"PrintScreen"`` or ``"F12"``.
    """

    key: str
    ctrl: bool = False
    shift: bool = False
    alt: bool = False
    meta: bool = False

    @property
    def normalized_key(self) -> str:
        return self.key.lower() if len(self.key) == 1 else self.key

    @property
    def command(self) -> bool:
        # Ctrl on Windows/Linux, Cmd on macOS.
        return self.ctrl or self.meta


_SCREENSHOT_NAMED_KEYS = {"PrintScreen", "Print", "Snapshot"}
_MAC_SCREENSHOT_DIGITS = {"3", "4", "5"}
_DEVTOOLS_SHIFT_LETTERS = {"i", "c", "j"}


def classify_chord(chord: KeyChord) -> Optional[ObscureReason]:
    """Return the obscure reason for a protected chord, or None when the key is harmless."""
    key = chord.normalized_key
    if key in _SCREENSHOT_NAMED_KEYS:
        return ObscureReason.SCREENSHOT_ATTEMPT
    if chord.meta and chord.shift and key in _MAC_SCREENSHOT_DIGITS:
        return ObscureReason.SCREENSHOT_ATTEMPT
    if chord.meta and chord.shift and key == "s":
        return ObscureReason.SCREENSHOT_ATTEMPT
    if chord.command and not chord.shift and key == "p":
        return ObscureReason.SCREENSHOT_ATTEMPT
    if key == "F12":
        return ObscureReason.DEVTOOLS_SUSPECTED
    if chord.command and chord.shift and key in _DEVTOOLS_SHIFT_LETTERS:
        return ObscureReason.DEVTOOLS_SUSPECTED
    if chord.command and not chord.shift and key == "u":
        return ObscureReason.DEVTOOLS_SUSPECTED
    return None
