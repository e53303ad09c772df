"""Tests for Deduplicator."""

from discogs_filter.filters import Deduplicator
from discogs_filter.models import RawReleaseRef


def ref(id, kind="master", role=None, title=None):
    return RawReleaseRef(id=id, kind=kind, title=title or f"Title {id}", role=role)


def test_output_size_is_input_minus_duplicates():
    refs = [
        ref(1, role="Main"),
        ref(2, kind="release", role="Main"),
        ref(1, role="Producer"),
        ref(3, role="Main"),
        ref(1, role="Remix"),
        ref(2, kind="release", role="Appearance"),
    ]

    unique, dupes = Deduplicator().dedupe(refs)

    assert dupes == 3
    assert len(unique) == len(refs) - dupes


def test_first_seen_order_is_preserved():
    refs = [ref(3), ref(1), ref(3), ref(2), ref(1)]

    unique, _ = Deduplicator().dedupe(refs)

    assert [r.id for r in unique] == [3, 1, 2]


def test_roles_are_merged_without_repeats():
    refs = [
        ref(1, role="Main"),
        ref(1, role="Producer"),
        ref(1, role="Main"),
        ref(1, role="Producer"),
    ]

    unique, dupes = Deduplicator().dedupe(refs)

    assert dupes == 3
    assert unique[0].role == "Main, Producer"


def test_same_id_different_kind_is_not_a_duplicate():
    refs = [ref(7, kind="master"), ref(7, kind="release")]

    unique, dupes = Deduplicator().dedupe(refs)

    assert dupes == 0
    assert [r.key for r in unique] == [("master", 7), ("release", 7)]


def test_missing_roles():
    refs = [ref(1), ref(1, role="Remix"), ref(2, role="Main"), ref(2)]

    unique, _ = Deduplicator().dedupe(refs)

    assert unique[0].role == "Remix"
    assert unique[1].role == "Main"
    assert unique[1].display_role == "Main"


def test_empty_input():
    assert Deduplicator().dedupe([]) == ([], 0)
