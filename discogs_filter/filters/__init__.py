from .deduplication import Deduplicator
from .format_filter import FilterEngine, matches
from .prefilter import BulkPreFilter, PreExclusion, inline_rejects, parse_inline_formats

__all__ = [
    "BulkPreFilter",
    "Deduplicator",
    "FilterEngine",
    "PreExclusion",
    "inline_rejects",
    "matches",
    "parse_inline_formats",
]
