from .release import MASTER, RELEASE, DedupedRelease, RawReleaseRef
from .facts import (
    ArtistCredit,
    FilterCriteria,
    FilterTag,
    MatchedEntity,
    ResolvedFacts,
    format_artists,
    to_decimal,
)

__all__ = [
    "MASTER",
    "RELEASE",
    "ArtistCredit",
    "DedupedRelease",
    "FilterCriteria",
    "FilterTag",
    "MatchedEntity",
    "RawReleaseRef",
    "ResolvedFacts",
    "format_artists",
    "to_decimal",
]
