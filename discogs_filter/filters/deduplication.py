"""Deduplication of role-duplicated discography entries."""

import logging
from typing import Dict, List, Tuple

from ..models import DedupedRelease, RawReleaseRef

logger = logging.getLogger(__name__)


class Deduplicator:
    """Collapse listing entries that share (kind, id), merging their roles."""

    def dedupe(
        self, refs: List[RawReleaseRef]
    ) -> Tuple[List[DedupedRelease], int]:
        """
        Remove duplicate (kind, id) entries.

        The artist releases endpoint returns the same master or release once
        per role (Main, Producer, Appearance...). The first occurrence is kept
        in place and later occurrences only contribute their role.

        Args:
            refs: Raw listing entries in listing order

        Returns:
            Tuple of (unique_releases, duplicate_count), with unique releases
            in first-seen order
        """
        index: Dict[Tuple[str, int], int] = {}
        unique: List[DedupedRelease] = []
        duplicates = 0

        for ref in refs:
            position = index.get(ref.key)
            if position is None:
                index[ref.key] = len(unique)
                unique.append(DedupedRelease.from_ref(ref))
                continue

            self._merge_role(unique[position], ref.role)
            duplicates += 1

        logger.info(
            f"Deduplication: {len(refs)} entries -> {len(unique)} unique, "
            f"{duplicates} duplicates removed"
        )
        return unique, duplicates

    def _merge_role(self, kept: DedupedRelease, role):
        """Append a duplicate's role unless the kept entry already names it."""
        if not role:
            return
        if not kept.role:
            kept.role = role
        elif role not in kept.role:
            kept.role = f"{kept.role}, {role}"
