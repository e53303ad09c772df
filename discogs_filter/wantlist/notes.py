"""
Tag blocks embedded in free-text wantlist notes.

A wantlist item's notes are ordinary user text. This module keeps one
machine-readable block inside them:

    Bought the CD in 2019, want the LP.
    [format-filter]
    - query: only:vinyl
      artist: Some Artist
      date: '2026-10-18'
    [/format-filter]

The block holds a YAML list of tags. Round-trip law, for any user text that
does not contain the delimiters:

    parse(serialize(tags) + user_text) == (tags, user_text)
"""

import logging
import re
from dataclasses import asdict
from typing import List, Tuple

import yaml

from ..models import FilterTag

logger = logging.getLogger(__name__)

TAG_OPEN = "[format-filter]"
TAG_CLOSE = "[/format-filter]"

BLOCK_PATTERN = re.compile(
    r"\[format-filter\]\s*\n?(.*?)\n?\s*\[/format-filter\]", re.DOTALL
)


def serialize(tags: List[FilterTag]) -> str:
    """Render tags as a delimited YAML block (no trailing newline)."""
    body = yaml.safe_dump(
        [asdict(tag) for tag in tags],
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    ).strip()
    return f"{TAG_OPEN}\n{body}\n{TAG_CLOSE}"


def _load_block(text: str) -> List[FilterTag]:
    try:
        entries = yaml.safe_load(text)
    except yaml.YAMLError as e:
        logger.debug(f"Ignoring unreadable tag block: {e}")
        return []
    if not isinstance(entries, list):
        return []

    tags = []
    for entry in entries:
        try:
            tags.append(
                FilterTag(
                    query=str(entry["query"]),
                    artist=str(entry["artist"]),
                    date=str(entry["date"]),
                )
            )
        except (KeyError, TypeError) as e:
            logger.debug(f"Ignoring malformed tag entry {entry!r}: {e}")
    return tags


def parse(notes: str) -> Tuple[List[FilterTag], str]:
    """
    Split notes into their tags and the remaining user text.

    Every block is read, in order, and removed; the user text is returned
    exactly as it surrounds the blocks.
    """
    tags = []
    for match in BLOCK_PATTERN.finditer(notes):
        tags.extend(_load_block(match.group(1)))
    user_text = BLOCK_PATTERN.sub("", notes)
    return tags, user_text


def update_notes(existing: str, tag: FilterTag) -> str:
    """
    Merge a tag into existing notes.

    All blocks are coalesced into one, any tag with the same (query, artist)
    is replaced, the new tag goes last, and the block is placed after the
    user's own text.
    """
    tags, user_text = parse(existing or "")
    tags = [t for t in tags if t.identity != tag.identity]
    tags.append(tag)

    user_text = user_text.strip()
    block = serialize(tags)
    if not user_text:
        return block
    return f"{user_text}\n{block}"
