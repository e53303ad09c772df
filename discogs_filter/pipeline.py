"""The fetch/filter pipeline: dedup, pre-filter, resolve, retry, filter."""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .client import ApiError, ApiStats, AuthError, RateLimitedClient
from .filters import BulkPreFilter, Deduplicator, FilterEngine, PreExclusion, inline_rejects
from .models import DedupedRelease, FilterCriteria, MatchedEntity, RawReleaseRef, ResolvedFacts
from .resolver import DetailResolver, EntityCache, RetryCoordinator, TransientPolicy

logger = logging.getLogger(__name__)


def _year_key(match: MatchedEntity) -> float:
    return match.release.year if match.release.year else float("inf")


@dataclass
class PipelineResult:
    """Everything a run produced, for rendering and write-back."""

    matched: List[MatchedEntity] = field(default_factory=list)
    resolved: List[Tuple[DedupedRelease, ResolvedFacts]] = field(default_factory=list)
    unique_count: int = 0
    dup_count: int = 0
    exclusion: PreExclusion = field(default_factory=PreExclusion)


class FormatFilterPipeline:
    """
    Resolve an artist's listing down to the releases that pass the criteria.

    Stages run strictly forward on a single thread:

    1. Dedup the listing by (kind, id)
    2. Bulk search pre-exclusion for masters, inline-hint pre-filter for
       standalone releases
    3. Per-entity resolution through the cache, queuing transient failures
    4. Retry rounds for the queue
    5. FilterEngine over everything resolved
    """

    def __init__(
        self,
        client: RateLimitedClient,
        criteria: FilterCriteria,
        stats: ApiStats,
        cache: Optional[EntityCache] = None,
        policy: Optional[TransientPolicy] = None,
        limit: int = 0,
    ):
        self.criteria = criteria
        self.stats = stats
        self.cache = cache if cache is not None else EntityCache()
        self.policy = policy or TransientPolicy()
        self.limit = limit
        self.deduplicator = Deduplicator()
        self.bulk_prefilter = BulkPreFilter(client)
        self.resolver = DetailResolver(
            client,
            self.cache,
            criteria,
            stats,
            need_price=criteria.price_limit is not None,
        )
        self.engine = FilterEngine(criteria)

    def run(self, artist_name: str, refs: List[RawReleaseRef]) -> PipelineResult:
        releases, dup_count = self.deduplicator.dedupe(refs)
        result = PipelineResult(unique_count=len(releases), dup_count=dup_count)
        if not releases:
            return result

        masters = [r for r in releases if r.is_master]
        logger.info(
            f"{len(masters)} masters + {len(releases) - len(masters)} standalone = "
            f"{len(releases)} unique releases ({dup_count} duplicates removed)"
        )

        if self.criteria.has_exclusions and masters:
            logger.info("Bulk pre-filtering masters via search...")
            result.exclusion = self.bulk_prefilter.pre_exclude(
                artist_name, self.criteria, [m.id for m in masters]
            )

        retry = RetryCoordinator(self.resolver.resolve, self.stats, self.policy)
        to_process = releases[: self.limit] if self.limit > 0 else releases
        for n, release in enumerate(to_process, start=1):
            logger.debug(f"  [{n}/{len(to_process)}] {release.title}")
            if self._pre_filtered(release, result.exclusion):
                continue
            facts = self._resolve_one(release, retry)
            if facts is not None:
                result.resolved.append((release, facts))

        result.resolved.extend(retry.drain())

        matched = self.engine.filter(result.resolved)
        result.matched = sorted(matched, key=_year_key)
        return result

    def _pre_filtered(self, release: DedupedRelease, exclusion: PreExclusion) -> bool:
        if release.is_master:
            if release.id in exclusion:
                self.stats.skipped_search += 1
                return True
            return False
        if inline_rejects(release.format_hint, self.criteria):
            self.stats.skipped_prefilter += 1
            return True
        return False

    def _resolve_one(
        self, release: DedupedRelease, retry: RetryCoordinator
    ) -> Optional[ResolvedFacts]:
        """Resolve one entity; only AuthError escapes this boundary."""
        try:
            return self.resolver.resolve(release)
        except AuthError:
            raise
        except ApiError as e:
            if self.policy.is_transient(e):
                retry.queue(release, e)
            else:
                logger.warning(
                    f"Skipping {release.kind} {release.id} ({release.title}): {e}"
                )
            return None
