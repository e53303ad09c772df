"""Data models for discography listing entries."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..client.errors import DecodeError
from ..config import WEB_BASE

MASTER = "master"
RELEASE = "release"


@dataclass
class RawReleaseRef:
    """One entry from the artist releases listing, possibly a role duplicate."""

    id: int
    kind: str  # 'master' or 'release'
    title: str
    year: Optional[int] = None
    role: Optional[str] = None
    format_hint: Optional[str] = None  # e.g. "2×CD, Album"; releases only

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "RawReleaseRef":
        try:
            return cls(
                id=int(data["id"]),
                kind=data["type"],
                title=data["title"],
                year=data.get("year") or None,
                role=data.get("role") or None,
                format_hint=data.get("format") or None,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise DecodeError(f"malformed release listing entry: {e}") from e

    @property
    def key(self):
        return (self.kind, self.id)


@dataclass
class DedupedRelease:
    """A listing entry unique by (kind, id) with all its roles merged."""

    id: int
    kind: str
    title: str
    year: Optional[int] = None
    role: Optional[str] = None
    format_hint: Optional[str] = None

    @classmethod
    def from_ref(cls, ref: RawReleaseRef) -> "DedupedRelease":
        return cls(
            id=ref.id,
            kind=ref.kind,
            title=ref.title,
            year=ref.year,
            role=ref.role,
            format_hint=ref.format_hint,
        )

    @property
    def key(self):
        return (self.kind, self.id)

    @property
    def is_master(self) -> bool:
        return self.kind == MASTER

    @property
    def display_role(self) -> str:
        return self.role or "Main"

    @property
    def url(self) -> str:
        return f"{WEB_BASE}/{self.kind}/{self.id}"
