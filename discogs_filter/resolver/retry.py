"""Retry queue for entities that failed with transient errors."""

import logging
from dataclasses import dataclass
from typing import Callable, List, Tuple

from ..client import ApiError, ApiStats, AuthError, NotFoundError, ServerError, TransportError
from ..config import MAX_ATTEMPTS
from ..models import DedupedRelease, ResolvedFacts

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransientPolicy:
    """
    Which errors are worth another attempt.

    Server errors and dropped connections always are. A 404 is treated as
    transient by default: the listing has just named the id, so a miss is
    usually replication lag. Turning this off makes deleted entities fail
    fast instead of using up every attempt.
    """

    retry_not_found: bool = True

    def is_transient(self, error: Exception) -> bool:
        if isinstance(error, (ServerError, TransportError)):
            return True
        return self.retry_not_found and isinstance(error, NotFoundError)


class RetryCoordinator:
    """Requeue transiently failing entities and retry them in rounds."""

    def __init__(
        self,
        resolve: Callable[[DedupedRelease], ResolvedFacts],
        stats: ApiStats,
        policy: TransientPolicy = TransientPolicy(),
        max_attempts: int = MAX_ATTEMPTS,
    ):
        self.resolve = resolve
        self.stats = stats
        self.policy = policy
        self.max_attempts = max_attempts
        self.pending: List[DedupedRelease] = []

    def queue(self, release: DedupedRelease, error: ApiError):
        """Queue an entity whose first attempt failed transiently."""
        logger.debug(
            f"[RETRY] queuing {release.kind} {release.id} ({release.title}) for retry: {error}"
        )
        self.stats.requeued += 1
        self.pending.append(release)

    def drain(self) -> List[Tuple[DedupedRelease, ResolvedFacts]]:
        """
        Retry every queued entity, one round per attempt number.

        Rounds run from attempt 2 up to max_attempts. An entity leaves the
        queue when it resolves, hits a non-transient error, or fails its
        last allowed attempt; the latter two are reported once each.
        AuthError is never caught here.

        Returns:
            (release, facts) for every entity that recovered, in retry order
        """
        recovered = []
        attempt = 2
        while self.pending and attempt <= self.max_attempts:
            logger.info(
                f"Retrying {len(self.pending)} item(s) "
                f"(attempt {attempt}/{self.max_attempts})..."
            )
            still_failing = []
            for release in self.pending:
                try:
                    facts = self.resolve(release)
                except AuthError:
                    raise
                except ApiError as e:
                    if self.policy.is_transient(e) and attempt < self.max_attempts:
                        still_failing.append(release)
                        continue
                    self._give_up(release, attempt, e)
                    continue
                self.stats.requeue_ok += 1
                recovered.append((release, facts))

            self.pending = still_failing
            attempt += 1
        return recovered

    def _give_up(self, release: DedupedRelease, attempt: int, error: ApiError):
        self.stats.requeue_fail += 1
        logger.warning(
            f"Giving up on {release.kind} {release.id} ({release.title}) "
            f"after {attempt} attempts: {error}"
        )
