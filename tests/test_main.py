"""Tests for the CLI glue: argument parsing, artist picking, output."""

from decimal import Decimal

import pytest

from conftest import FakeClient, paged
from discogs_filter.client import ApiStats
from discogs_filter.main import ArtistNotFound, build_parser, pick_artist, run
from discogs_filter.models import DedupedRelease, FilterCriteria, MatchedEntity, ResolvedFacts
from discogs_filter.output import OutputGenerator

ARTISTS = [
    {"id": 1, "title": "Artist", "uri": "/artist/1"},
    {"id": 2, "title": "Artist (2)", "uri": "/artist/2"},
]


class TestParser:
    def test_repeatable_filters(self):
        args = build_parser().parse_args(
            ["Name", "--has", "vinyl", "--not", "cd", "--not", "file", "--price-limit", "19.5"]
        )

        assert args.has == ["vinyl"]
        assert args.not_ == ["cd", "file"]
        assert args.price_limit == Decimal("19.5")

    @pytest.mark.parametrize("value", ["cheap", "nan", "NaN", "inf", "-Infinity", "-1"])
    def test_bad_price(self, value):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["Name", "--price-limit", value])


class TestPickArtist:
    def test_single_hit(self):
        client = FakeClient({"/database/search": {"results": ARTISTS[:1]}})

        assert pick_artist(client, "Artist", read=pytest.fail) == 1

    def test_numbered_choice(self):
        client = FakeClient({"/database/search": {"results": ARTISTS}})

        assert pick_artist(client, "Artist", read=lambda prompt: "2\n") == 2

    @pytest.mark.parametrize("answer", ["0", "3", "two"])
    def test_bad_choice(self, answer):
        client = FakeClient({"/database/search": {"results": ARTISTS}})

        with pytest.raises(ArtistNotFound):
            pick_artist(client, "Artist", read=lambda prompt: answer)

    def test_end_of_input(self):
        client = FakeClient({"/database/search": {"results": ARTISTS}})

        def closed_stdin(prompt):
            raise EOFError

        with pytest.raises(ArtistNotFound):
            pick_artist(client, "Artist", read=closed_stdin)

    def test_hit_without_id(self):
        client = FakeClient({"/database/search": {"results": [{"title": "Artist"}]}})

        with pytest.raises(ArtistNotFound):
            pick_artist(client, "Artist")

    def test_hits_without_titles_are_listed(self):
        client = FakeClient({"/database/search": {"results": [{"id": 1}, {"id": 2}]}})

        assert pick_artist(client, "Artist", read=lambda prompt: "1") == 1

    def test_no_hits(self):
        client = FakeClient({"/database/search": {"results": []}})

        with pytest.raises(ArtistNotFound):
            pick_artist(client, "Nobody")


def test_output_listing():
    criteria = FilterCriteria.build(only=["vinyl"], ignore=["cassette"], price_limit=Decimal("20"))
    matched = [
        MatchedEntity(
            release=DedupedRelease(id=7, kind="master", title="Album", year=1999, role="Main, Remix"),
            facts=ResolvedFacts(
                formats=frozenset({"Vinyl", "Cassette"}),
                lowest_price=Decimal("19.99"),
                num_for_sale=2,
            ),
        )
    ]

    text = OutputGenerator(criteria).generate(matched, total=4)

    assert "=== Releases only [vinyl] ignoring [cassette] under $20.00 ===" in text
    assert "  Album (1999) [Main, Remix]" in text
    assert "    Formats: Vinyl  |  $19.99 (2 for sale)" in text
    assert "    https://www.discogs.com/master/7" in text
    assert text.endswith("1 matching / 4 total.")


def test_output_written_to_file(tmp_path):
    output_file = tmp_path / "out" / "results.txt"

    OutputGenerator(FilterCriteria(), output_file).generate([], total=0)

    content = output_file.read_text(encoding="utf-8")
    assert "=== All releases ===" in content
    assert "(none)" in content


def test_run_with_artist_id_and_wantlist(capsys):
    client = FakeClient({
        "/artists/9": {"id": 9, "name": "Artist", "uri": "https://www.discogs.com/artist/9"},
        "/artists/9/releases": paged("releases", [[
            {"id": 5, "type": "release", "title": "Single", "year": 2001, "format": "Vinyl, 7\""},
        ]]),
        "/releases/5": {"formats": [{"name": "Vinyl"}], "artists": [{"name": "Artist"}]},
        "/oauth/identity": {"username": "digger"},
        "/users/digger/wants": paged("wants", []),
    })
    args = build_parser().parse_args(["--id", "9", "--has", "vinyl", "--add-to-wantlist"])

    assert run(args, client, ApiStats()) == 0

    out = capsys.readouterr().out
    assert "Single (2001)" in out
    assert "1 matching / 1 total." in out
    assert [m for m, _, _, _ in client.mutations] == ["PUT", "POST"]
    assert "has:vinyl" in client.mutations[1][3]["notes"]
