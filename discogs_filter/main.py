"""Main orchestrator for the Discogs format filter."""

import argparse
import logging
import sys
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Callable, List, Optional

from .client import ApiError, ApiStats, AuthError, RateLimitedClient
from .client.catalog import fetch_artist, fetch_artist_releases, search_artists
from .config import TOKEN_ENV_VAR, TOKEN_HELP_URL, load_token
from .models import FilterCriteria, FilterTag
from .output import OutputGenerator
from .pipeline import FormatFilterPipeline
from .wantlist import WantlistSync

logger = logging.getLogger(__name__)


class ArtistNotFound(Exception):
    """Raised when no artist can be picked for the given name."""

    pass


def _price(value: str) -> Decimal:
    try:
        price = Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid price: {value!r}")
    if not price.is_finite():
        raise argparse.ArgumentTypeError(f"invalid price: {value!r}")
    if price < 0:
        raise argparse.ArgumentTypeError("price limit must not be negative")
    return price


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="discogs-format-filter",
        description="Filter a Discogs artist's releases by media format presence/absence.",
        epilog=(
            "Common format names: Vinyl, CD, File, Cassette, DVD, Blu-ray, Box Set. "
            "Example: discogs-format-filter \"Artist Name\" --only vinyl --ignore cassette"
        ),
    )
    parser.add_argument("artist", nargs="?", help="Artist name to search for")
    parser.add_argument("--id", type=int, help="Discogs artist ID (bypasses name search)")
    parser.add_argument(
        "--has", action="append", default=[], metavar="FORMAT",
        help="Require this media format (repeatable, case-insensitive)",
    )
    parser.add_argument(
        "--not", dest="not_", action="append", default=[], metavar="FORMAT",
        help="Exclude this media format (repeatable, case-insensitive)",
    )
    parser.add_argument(
        "--only", action="append", default=[], metavar="FORMAT",
        help="Only these formats allowed; at least one must be present (repeatable)",
    )
    parser.add_argument(
        "--ignore", action="append", default=[], metavar="FORMAT",
        help="Ignore this format for filtering and display (repeatable)",
    )
    parser.add_argument(
        "--price-limit", type=_price, default=None, metavar="USD",
        help="Maximum lowest price; excludes releases above it or with nothing for sale",
    )
    parser.add_argument(
        "--limit", type=int, default=0,
        help="Maximum number of releases to process (0 = unlimited)",
    )
    parser.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Also write the results listing to this file",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Show detailed per-request API logging",
    )
    parser.add_argument(
        "--add-to-wantlist", action="store_true",
        help="Add matching releases to your Discogs wantlist with a tagged note",
    )
    return parser


def _artist_id(result) -> int:
    try:
        return int(result["id"])
    except (KeyError, TypeError, ValueError):
        raise ArtistNotFound(f"search result has no usable artist id: {result!r}")


def pick_artist(
    client: RateLimitedClient,
    name: str,
    read: Callable[[str], str] = input,
) -> int:
    """
    Resolve an artist name to an id, asking the user when it is ambiguous.

    Raises:
        ArtistNotFound: No hits, or the choice was not a listed number
    """
    logger.info(f'Searching for "{name}"...')
    results = search_artists(client, name)

    if not results:
        raise ArtistNotFound(f'No artists found for "{name}"')
    if len(results) == 1:
        artist_id = _artist_id(results[0])
        logger.info(f"Found: {results[0].get('title')} (id {artist_id})")
        return artist_id

    print("\nMultiple matches:\n", file=sys.stderr)
    for i, artist in enumerate(results, 1):
        uri = artist.get("uri") or ""
        print(f"  {i}: {artist.get('title')} (id {artist.get('id')})  {uri}", file=sys.stderr)
    print(file=sys.stderr)

    try:
        choice = read(f"Pick [1-{len(results)}]: ").strip()
    except EOFError:
        raise ArtistNotFound("no selection made")
    try:
        index = int(choice)
    except ValueError:
        raise ArtistNotFound("invalid number")
    if not 1 <= index <= len(results):
        raise ArtistNotFound("selection out of range")

    artist = results[index - 1]
    artist_id = _artist_id(artist)
    logger.info(f"Selected: {artist.get('title')} (id {artist_id})")
    return artist_id


def run(args: argparse.Namespace, client: RateLimitedClient, stats: ApiStats) -> int:
    logger.info("=" * 60)
    logger.info("Starting Discogs Format Filter")
    logger.info("=" * 60)

    criteria = FilterCriteria.build(
        has=args.has,
        not_=args.not_,
        only=args.only,
        ignore=args.ignore,
        price_limit=args.price_limit,
    )
    if not criteria.has_format_filters:
        logger.info("(no format filters; listing all releases with their formats)")

    # ========================================
    # Phase 1: Resolve artist
    # ========================================
    logger.info("Phase 1: Resolving artist...")
    logger.info("-" * 40)
    artist_id = args.id if args.id is not None else pick_artist(client, args.artist)
    artist = fetch_artist(client, artist_id)
    artist_name = artist.get("name", str(artist_id))
    logger.info(f"Artist: {artist_name} (id {artist_id})")
    logger.info(f"  {artist.get('uri') or '(no URL)'}")

    # ========================================
    # Phase 2: Fetch release listing
    # ========================================
    logger.info("")
    logger.info("Phase 2: Fetching release list...")
    logger.info("-" * 40)
    refs = fetch_artist_releases(client, artist_id)
    logger.info(f"Listing entries: {len(refs)}")

    # ========================================
    # Phase 3: Dedup, pre-filter, resolve, retry, filter
    # ========================================
    logger.info("")
    logger.info("Phase 3: Resolving formats...")
    logger.info("-" * 40)
    pipeline = FormatFilterPipeline(client, criteria, stats, limit=args.limit)
    result = pipeline.run(artist_name, refs)

    if result.unique_count == 0:
        print("No releases found.")
        _log_summary(stats, result.dup_count)
        return 0

    # ========================================
    # Phase 4: Output
    # ========================================
    output = OutputGenerator(criteria, args.output)
    print(output.generate(result.matched, len(result.resolved)))

    # ========================================
    # Phase 5: Wantlist write-back
    # ========================================
    if args.add_to_wantlist and result.matched:
        logger.info("")
        logger.info(f"Phase 5: Adding {len(result.matched)} item(s) to wantlist...")
        logger.info("-" * 40)
        tag = FilterTag(
            query=criteria.summary(),
            artist=artist_name,
            date=datetime.now().strftime("%Y-%m-%d"),
        )
        WantlistSync(client).sync(result.matched, tag)

    _log_summary(stats, result.dup_count)
    return 0


def _log_summary(stats: ApiStats, dedup_saved: int):
    logger.info("")
    for line in stats.summary_lines(dedup_saved):
        logger.info(line)


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.id is None and not args.artist:
        parser.error("provide an artist name or --id <ID>")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr),
        ],
    )

    token = load_token()
    if not token:
        logger.error(
            f"{TOKEN_ENV_VAR} not set. "
            f"Get a personal access token at {TOKEN_HELP_URL}"
        )
        sys.exit(1)

    stats = ApiStats()
    client = RateLimitedClient(token, stats, verbose=args.verbose)
    try:
        sys.exit(run(args, client, stats))
    except AuthError as e:
        logger.error(f"error: {e}")
        sys.exit(1)
    except (ApiError, ArtistNotFound) as e:
        logger.error(f"error: {e}")
        _log_summary(stats, 0)
        sys.exit(1)


if __name__ == "__main__":
    main()
