"""Artist lookup and discography listing endpoints."""

import logging
from typing import Any, Dict, Iterator, List

from ..config import ARTIST_SEARCH_PER_PAGE, PER_PAGE
from ..models import RawReleaseRef
from .discogs import RateLimitedClient
from .errors import DecodeError

logger = logging.getLogger(__name__)


def iter_pages(
    client: RateLimitedClient,
    label: str,
    path: str,
    params: Dict[str, Any],
) -> Iterator[Dict[str, Any]]:
    """Yield each page of a paginated endpoint, starting at page 1."""
    page = 1
    while True:
        data = client.get(label, path, {**params, "page": page, "per_page": PER_PAGE})
        try:
            pages = int(data["pagination"]["pages"])
        except (KeyError, TypeError, ValueError) as e:
            raise DecodeError(f"{label}: missing pagination: {e}") from e
        yield data
        if pages == 0 or page >= pages:
            return
        page += 1


def search_artists(client: RateLimitedClient, name: str) -> List[Dict[str, Any]]:
    """Search the database for artists matching a name."""
    data = client.get(
        "search",
        "/database/search",
        {"q": name, "type": "artist", "per_page": ARTIST_SEARCH_PER_PAGE},
    )
    return [r for r in data.get("results") or [] if isinstance(r, dict)]


def fetch_artist(client: RateLimitedClient, artist_id: int) -> Dict[str, Any]:
    return client.get("artist-detail", f"/artists/{artist_id}")


def fetch_artist_releases(client: RateLimitedClient, artist_id: int) -> List[RawReleaseRef]:
    """
    Fetch an artist's full release listing, oldest first.

    The listing repeats the same master or release once per role the
    artist played on it; see Deduplicator.
    """
    refs = []
    path = f"/artists/{artist_id}/releases"
    params = {"sort": "year", "sort_order": "asc"}
    for page_num, data in enumerate(
        iter_pages(client, "artist-releases", path, params), start=1
    ):
        entries = data.get("releases", [])
        refs.extend(RawReleaseRef.from_api(entry) for entry in entries)
        logger.debug(f"  listing page {page_num}/{data['pagination']['pages']}")
    return refs
