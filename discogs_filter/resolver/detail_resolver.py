"""Resolve authoritative format and price facts for masters and releases."""

import logging
from typing import Any, Dict, Set

from ..client import ApiStats, DecodeError, RateLimitedClient
from ..client.catalog import iter_pages
from ..filters.format_filter import format_matches, format_violation
from ..models import (
    MASTER,
    ArtistCredit,
    DedupedRelease,
    FilterCriteria,
    ResolvedFacts,
    to_decimal,
)
from .cache import EntityCache

logger = logging.getLogger(__name__)


def _artists(data: Dict[str, Any]):
    return tuple(ArtistCredit.from_api(a) for a in data.get("artists") or [])


def _format_name(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"format name is {value!r}")
    return value


class DetailResolver:
    """
    Fetch format facts for one entity at a time, cheapest call first.

    Masters are checked format-first: the version listing is paged until
    the format verdict is settled, and the master detail record (price,
    credits, main release) is only fetched for masters that pass on format.
    Results are kept in an EntityCache for the rest of the run.
    """

    def __init__(
        self,
        client: RateLimitedClient,
        cache: EntityCache,
        criteria: FilterCriteria,
        stats: ApiStats,
        need_price: bool = False,
    ):
        self.client = client
        self.cache = cache
        self.criteria = criteria
        self.stats = stats
        self.need_price = need_price

    def resolve(self, release: DedupedRelease) -> ResolvedFacts:
        if release.kind == MASTER:
            return self.resolve_master(release.id)
        return self.resolve_release(release.id)

    def resolve_master(self, master_id: int) -> ResolvedFacts:
        cached = self.cache.masters.get(master_id)
        if cached is not None:
            self.stats.cache_hits += 1
            return cached

        facts = self._fetch_master(master_id)
        self.cache.masters[master_id] = facts
        return facts

    def resolve_release(self, release_id: int) -> ResolvedFacts:
        cached = self.cache.releases.get(release_id)
        if cached is not None:
            self.stats.cache_hits += 1
            return cached

        facts = self._fetch_release(release_id)
        self.cache.releases[release_id] = facts
        return facts

    def _fetch_master(self, master_id: int) -> ResolvedFacts:
        formats = frozenset(self._master_formats(master_id))

        if self.criteria.has_format_filters and not format_matches(formats, self.criteria):
            return ResolvedFacts(formats=formats)

        detail = self.client.get("master-detail", f"/masters/{master_id}")
        try:
            lowest_price = to_decimal(detail.get("lowest_price"))
            num_for_sale = detail.get("num_for_sale")
            artists = _artists(detail)
            main_release = detail.get("main_release")
        except AttributeError as e:
            raise DecodeError(f"malformed master {master_id}: {e}") from e

        facts = ResolvedFacts(
            formats=formats,
            lowest_price=lowest_price if self.need_price else None,
            num_for_sale=num_for_sale if self.need_price else None,
            artists=artists,
            release_id=main_release,
        )
        if self._over_price_limit(lowest_price, num_for_sale):
            self.stats.skipped_price += 1
        return facts

    def _master_formats(self, master_id: int) -> Set[str]:
        """
        Union the major formats of every version of a master.

        With `not` or `only` in play, paging stops as soon as the formats
        seen so far violate them; the partial set is final because more
        formats cannot turn a violation into a pass.
        """
        formats: Set[str] = set()
        early_exit = self.criteria.has_exclusions
        pages = iter_pages(self.client, "master-versions", f"/masters/{master_id}/versions", {})
        for data in pages:
            try:
                for version in data.get("versions", []):
                    names = version.get("major_formats") or []
                    formats.update(_format_name(name) for name in names)
            except (AttributeError, TypeError) as e:
                raise DecodeError(f"malformed versions of master {master_id}: {e}") from e

            if early_exit and format_violation(formats, self.criteria):
                self.stats.skipped_early_exit += 1
                logger.debug(f"  master {master_id}: excluded format found, stopped paging")
                break
        return formats

    def _fetch_release(self, release_id: int) -> ResolvedFacts:
        data = self.client.get("release-detail", f"/releases/{release_id}")
        try:
            formats = frozenset(_format_name(entry["name"]) for entry in data.get("formats") or [])
            lowest_price = to_decimal(data.get("lowest_price"))
            num_for_sale = data.get("num_for_sale")
            artists = _artists(data)
        except (AttributeError, KeyError, TypeError) as e:
            raise DecodeError(f"malformed release {release_id}: {e}") from e

        return ResolvedFacts(
            formats=formats,
            lowest_price=lowest_price if self.need_price else None,
            num_for_sale=num_for_sale if self.need_price else None,
            artists=artists,
            release_id=release_id,
        )

    def _over_price_limit(self, lowest_price, num_for_sale) -> bool:
        limit = self.criteria.price_limit
        if limit is None:
            return False
        if not num_for_sale or lowest_price is None:
            return True
        return lowest_price > limit
