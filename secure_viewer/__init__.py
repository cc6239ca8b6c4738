"""Focus-gated lesson viewer with a moving forensic watermark.

The Qt-free core lives in this package's root modules; the PyQt6 surface is
imported from ``secure_viewer.viewer_widget`` only by hosts that need it.
"""

from secure_viewer.identity import ViewerIdentity, ViewerIdentityError
from secure_viewer.obscurity import ObscureReason, ObscurityState
from secure_viewer.playback_gate import GatePhase, PlaybackGate
from secure_viewer.supervisor import SecuritySupervisor, ViewState
from secure_viewer.version import __version__
from secure_viewer.watermark import WatermarkPlacement, WatermarkRenderer

__all__ = [
    "GatePhase",
    "ObscureReason",
    "ObscurityState",
    "PlaybackGate",
    "SecuritySupervisor",
    "ViewState",
    "ViewerIdentity",
    "ViewerIdentityError",
    "WatermarkPlacement",
    "WatermarkRenderer",
    "__version__",
]
