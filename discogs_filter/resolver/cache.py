"""Per-run stores of resolved facts."""

from dataclasses import dataclass, field
from typing import Dict

from ..models import ResolvedFacts


@dataclass
class EntityCache:
    """
    Resolved facts keyed by id, one store per namespace.

    Master ids and release ids are unrelated number spaces, so they never
    share a store. Scoped to a single run.
    """

    masters: Dict[int, ResolvedFacts] = field(default_factory=dict)
    releases: Dict[int, ResolvedFacts] = field(default_factory=dict)
