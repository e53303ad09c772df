"""Format and price filtering of resolved releases."""

import logging
from typing import FrozenSet, Iterable, List, Tuple

from ..models import DedupedRelease, FilterCriteria, MatchedEntity, ResolvedFacts

logger = logging.getLogger(__name__)


def visible_formats(formats: Iterable[str], criteria: FilterCriteria) -> FrozenSet[str]:
    """Lower-case formats with every ignored format removed."""
    lowered = (f.lower() for f in formats)
    return frozenset(f for f in lowered if f not in criteria.ignore)


def format_violation(formats: Iterable[str], criteria: FilterCriteria) -> bool:
    """
    True when the formats contain something `not` or `only` rules out.

    Adding formats can never undo a violation, so a partial format set that
    violates already decides the outcome.
    """
    visible = visible_formats(formats, criteria)
    if visible & criteria.not_:
        return True
    return bool(criteria.only) and not visible <= criteria.only


def format_matches(formats: Iterable[str], criteria: FilterCriteria) -> bool:
    """Apply the has / not / only rules to a format set."""
    visible = visible_formats(formats, criteria)
    if not criteria.has <= visible:
        return False
    if visible & criteria.not_:
        return False
    if criteria.only:
        return bool(visible) and visible <= criteria.only
    return True


def price_matches(facts: ResolvedFacts, criteria: FilterCriteria) -> bool:
    """Require copies for sale at or under the limit. Missing data fails."""
    if criteria.price_limit is None:
        return True
    if not facts.num_for_sale or facts.lowest_price is None:
        return False
    return facts.lowest_price <= criteria.price_limit


def matches(facts: ResolvedFacts, criteria: FilterCriteria) -> bool:
    """Evaluate the full predicate for one entity."""
    return format_matches(facts.formats, criteria) and price_matches(facts, criteria)


class FilterEngine:
    """Filter resolved releases against the run's criteria."""

    def __init__(self, criteria: FilterCriteria):
        self.criteria = criteria

    def matches(self, facts: ResolvedFacts) -> bool:
        return matches(facts, self.criteria)

    def filter(
        self, resolved: List[Tuple[DedupedRelease, ResolvedFacts]]
    ) -> List[MatchedEntity]:
        """Keep the entities whose facts pass, preserving order."""
        matched = []
        for release, facts in resolved:
            if self.matches(facts):
                matched.append(MatchedEntity(release=release, facts=facts))
            else:
                logger.debug(
                    f"Filtered out: {release.title} "
                    f"(formats: {sorted(facts.formats)}, price: {facts.lowest_price})"
                )
        return matched
