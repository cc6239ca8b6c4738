from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class ViewerIdentityError(ValueError):
    """Raised when a viewing surface is mounted without a usable identity."""


@dataclass(frozen=True)
class ViewerIdentity:
    """Account shown in the watermark; supplied by the session collaborator."""

    id: str
    display_name: str
    student_number: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id.strip():
            raise ViewerIdentityError("viewer identity requires a non-empty id")
        if not isinstance(self.display_name, str) or not self.display_name.strip():
            raise ViewerIdentityError("viewer identity requires a non-empty display name")

    @property
    def watermark_label(self) -> str:
        return self.student_number or "ADMIN"


def require_identity(identity: object) -> ViewerIdentity:
    if not isinstance(identity, ViewerIdentity):
        raise ViewerIdentityError(f"expected ViewerIdentity, got {type(identity).__name__}")
    return identity
