"""Pre-filters that reject entities without their authoritative detail fetch."""

import logging
import re
from typing import FrozenSet, Iterable, List, Optional, Set

from ..client import ApiError, AuthError, DecodeError, RateLimitedClient
from ..client.catalog import iter_pages
from ..config import BULK_SEARCH_FORMATS, INLINE_FORMATS, catalog_format_name
from ..models import FilterCriteria
from .format_filter import visible_formats

logger = logging.getLogger(__name__)

# "2×CD", "2xFile", "3X Vinyl"
QUANTITY_PREFIX = re.compile(r"^\d*\s*[×xX]?\s*(?=\S)")


def parse_inline_formats(hint: Optional[str]) -> FrozenSet[str]:
    """
    Extract known major formats from a listing's inline format string.

    The string looks like "CD, Album", 'Vinyl, 12", 45 RPM' or
    "2×File, FLAC, Album". Segments that are not a known major format
    (descriptions, sizes, speeds) are ignored.
    """
    if not hint:
        return frozenset()

    found = set()
    for segment in re.split(r"[,+]", hint):
        segment = segment.strip()
        if segment[:1].isdigit():
            segment = QUANTITY_PREFIX.sub("", segment)
        name = INLINE_FORMATS.get(segment.strip().lower())
        if name:
            found.add(name)
    return frozenset(found)


def inline_rejects(hint: Optional[str], criteria: FilterCriteria) -> bool:
    """
    Decide from the inline hint alone whether a standalone release fails.

    A missing hint, or one with no recognisable format, gives no verdict
    and returns False so the release goes through full resolution.
    """
    if not criteria.has_format_filters:
        return False
    parsed = parse_inline_formats(hint)
    if not parsed:
        return False

    visible = visible_formats(parsed, criteria)
    if visible & criteria.not_:
        return True
    if not criteria.has <= visible:
        return True
    if criteria.only and visible and not visible <= criteria.only:
        return True
    return False


class PreExclusion:
    """
    Master ids that search has shown to carry a disqualifying format.

    Sound but incomplete: an id in this set is certainly disqualified, but
    search coverage is partial, so an id missing from it proves nothing.
    Only membership is offered; callers must resolve every other id through
    the authoritative version listing.
    """

    is_complete = False

    def __init__(self, excluded_ids: Iterable[int] = (), skipped_formats: Iterable[str] = ()):
        self._excluded = frozenset(excluded_ids)
        self.skipped_formats = tuple(skipped_formats)

    def __contains__(self, master_id: int) -> bool:
        return master_id in self._excluded

    def __len__(self) -> int:
        return len(self._excluded)

    def __repr__(self) -> str:
        return f"PreExclusion({len(self._excluded)} ids, incomplete)"


class BulkPreFilter:
    """Exclude masters in bulk using format-scoped catalog searches."""

    def __init__(self, client: RateLimitedClient):
        self.client = client

    def exclude_formats(self, criteria: FilterCriteria) -> List[str]:
        """Formats whose presence on a master disqualifies it."""
        formats: Set[str] = set()
        for name in criteria.not_ - criteria.ignore:
            formats.add(catalog_format_name(name))
        if criteria.only:
            for name in BULK_SEARCH_FORMATS:
                lowered = name.lower()
                if lowered not in criteria.only and lowered not in criteria.ignore:
                    formats.add(name)
        return sorted(formats)

    def pre_exclude(
        self,
        artist_name: str,
        criteria: FilterCriteria,
        known_master_ids: Iterable[int],
    ) -> PreExclusion:
        """
        Search for this artist's masters in each disqualifying format.

        Args:
            artist_name: Artist name as the catalog spells it
            criteria: The run's filter criteria
            known_master_ids: Masters from this artist's own listing; search
                hits outside it are other artists' and are dropped

        Returns:
            The ids that are certainly disqualified
        """
        known = set(known_master_ids)
        if not criteria.has_exclusions or not known:
            return PreExclusion()

        excluded: Set[int] = set()
        skipped = []
        for fmt in self.exclude_formats(criteria):
            try:
                ids = self._search_masters(artist_name, fmt)
            except AuthError:
                raise
            except ApiError as e:
                logger.warning(
                    f"Search for {fmt} failed ({e}), will check those masters individually"
                )
                skipped.append(fmt)
                continue
            hits = ids & known
            logger.debug(
                f"  search {fmt}: {len(ids)} results, {len(hits)} matched known masters"
            )
            excluded |= hits

        if excluded:
            logger.info(f"Search pre-excluded {len(excluded)}/{len(known)} masters")
        return PreExclusion(excluded, skipped)

    def _search_masters(self, artist_name: str, fmt: str) -> Set[int]:
        params = {"type": "master", "artist": artist_name, "format": fmt}
        ids = set()
        for data in iter_pages(self.client, "search-format", "/database/search", params):
            try:
                ids.update(int(result["id"]) for result in data.get("results", []))
            except (KeyError, TypeError, ValueError) as e:
                raise DecodeError(f"malformed search result: {e}") from e
        return ids
