"""Write matched releases back to the user's Discogs wantlist."""

import logging
from dataclasses import dataclass
from typing import Dict, List

from ..client import ApiError, AuthError, DecodeError, RateLimitedClient
from ..client.catalog import iter_pages
from ..models import FilterTag, MatchedEntity
from .notes import update_notes

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    added: int = 0
    skipped: int = 0


class WantlistSync:
    """Upsert matched releases into the wantlist with a tag in their notes."""

    def __init__(self, client: RateLimitedClient):
        self.client = client

    def fetch_username(self) -> str:
        data = self.client.get("identity", "/oauth/identity")
        try:
            return data["username"]
        except (KeyError, TypeError) as e:
            raise DecodeError(f"malformed identity response: {e}") from e

    def fetch_existing_notes(self, username: str) -> Dict[int, str]:
        """Map release id -> current notes for every wantlist item."""
        notes = {}
        path = f"/users/{username}/wants"
        for data in iter_pages(self.client, "wantlist", path, {}):
            try:
                for item in data.get("wants", []):
                    notes[int(item["id"])] = item.get("notes") or ""
            except (KeyError, TypeError, ValueError) as e:
                raise DecodeError(f"malformed wantlist page: {e}") from e
        return notes

    def sync(self, matched: List[MatchedEntity], tag: FilterTag) -> SyncReport:
        """
        Add or update each matched release on the wantlist.

        PUT creates the item if needed (and is a no-op otherwise); it ignores
        notes, so a POST follows to overwrite them with the merged tag block.
        Masters are added through their main release. Per-item failures are
        logged and counted as skipped.
        """
        report = SyncReport()
        username = self.fetch_username()
        logger.debug(f"  Authenticated as: {username}")

        logger.info("  Fetching existing wantlist...")
        existing = self.fetch_existing_notes(username)
        logger.debug(f"  Wantlist has {len(existing)} items")

        for n, match in enumerate(matched, start=1):
            release = match.release
            release_id = match.facts.release_id
            if release_id is None:
                logger.warning(
                    f"No release ID for '{release.title}', skipping wantlist add"
                )
                report.skipped += 1
                continue

            notes = update_notes(existing.get(release_id, ""), tag)
            path = f"/users/{username}/wants/{release_id}"
            logger.debug(f"  [{n}/{len(matched)}] {release.title}")
            try:
                self.client.mutate("PUT", "wantlist-put", path, {})
                self.client.mutate("POST", "wantlist-post", path, {"notes": notes})
            except AuthError:
                raise
            except ApiError as e:
                logger.warning(f"Failed to add '{release.title}' to wantlist: {e}")
                report.skipped += 1
                continue
            existing[release_id] = notes
            report.added += 1

        logger.info(f"  Wantlist: {report.added} added/updated, {report.skipped} skipped.")
        return report
