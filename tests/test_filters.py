"""Unit tests for song filtering, ordering, grouping and artwork filters."""

import pytest
from discog_explorer.analytics import get_person_stats
from discog_explorer.database import build_database
from discog_explorer.filters import (
    apply_filters,
    art_type_breakdown,
    filter_artwork,
    group_songs,
    search_haystack,
    sort_songs,
)
from discog_explorer.models import FilterSpec


def ids(songs):
    return [s.song_id for s in songs]


class TestNoOpLaws:
    def test_empty_spec_returns_everything_in_order(self, songs):
        assert ids(apply_filters(songs, {})) == ["s-001", "s-002", "s-003"]

    def test_none_spec(self, songs):
        assert ids(apply_filters(songs, None)) == ids(songs)

    def test_empty_years_is_no_op(self, songs):
        assert apply_filters(songs, {"years": []}) == apply_filters(songs, {})

    def test_null_fields_are_no_ops(self, songs):
        spec = {"years": None, "isExplicit": None, "keyQuality": "", "searchQuery": None}
        assert ids(apply_filters(songs, spec)) == ids(songs)

    def test_input_untouched(self, songs):
        before = list(songs)
        apply_filters(songs, {"years": [2023]})
        assert songs == before


class TestFieldFilters:
    def test_explicit(self, songs):
        assert ids(apply_filters(songs, {"isExplicit": True})) == ["s-002"]
        assert ids(apply_filters(songs, {"is_explicit": False})) == ["s-001", "s-003"]

    def test_years(self, songs):
        assert ids(apply_filters(songs, {"years": [2021]})) == ["s-001"]

    def test_releases(self, songs):
        assert ids(apply_filters(songs, {"releases": ["r-002"]})) == ["s-002", "s-003"]

    def test_categories(self, songs):
        assert ids(apply_filters(songs, {"categories": ["Philosophical"]})) == ["s-001", "s-003"]

    def test_perspectives(self, songs):
        assert ids(apply_filters(songs, {"perspectives": ["Third Person"]})) == ["s-002"]

    def test_keys(self, songs):
        assert ids(apply_filters(songs, {"keys": ["C", "Am"]})) == ["s-001", "s-002"]

    def test_published_and_video(self, songs):
        assert ids(apply_filters(songs, {"isPublished": True})) == ["s-001", "s-003"]
        assert ids(apply_filters(songs, {"hasVideo": True})) == ["s-001"]

    def test_has_featured(self, songs):
        assert ids(apply_filters(songs, {"hasFeatured": True})) == ["s-002"]
        assert ids(apply_filters(songs, {"hasFeatured": False})) == ["s-001", "s-003"]

    @pytest.mark.parametrize("quality, expected", [
        ("all", ["s-001", "s-002", "s-003"]),
        ("major", ["s-001"]),
        ("minor", ["s-002", "s-003"]),
    ])
    def test_key_quality(self, songs, quality, expected):
        assert ids(apply_filters(songs, {"keyQuality": quality})) == expected

    def test_people_any_match(self, songs):
        assert ids(apply_filters(songs, {"people": ["p-001"]})) == ["s-001", "s-002"]
        assert ids(apply_filters(songs, {"people": ["p-002", "p-005"]})) == ["s-002", "s-003"]

    def test_merged_person_id_matches_like_rollup(self, db):
        rollup = [s.song_id for s in get_person_stats(db, "p-003").songs]
        filtered = apply_filters(db.songs, {"people": ["p-003"]}, db.person_id_remap)
        assert ids(filtered) == rollup == ["s-001", "s-002"]

    def test_merged_person_id_without_remap(self, db):
        assert apply_filters(db.songs, {"people": ["p-003"]}) == []

    def test_art_only_person_matches_no_songs(self, songs):
        assert apply_filters(songs, {"people": ["p-004"]}) == []

    def test_filter_spec_instance(self, songs):
        spec = FilterSpec(years=[2023], key_quality="minor")
        assert ids(apply_filters(songs, spec)) == ["s-002", "s-003"]


class TestSearch:
    def test_title(self, songs):
        assert ids(apply_filters(songs, {"searchQuery": "broken"})) == ["s-002"]

    def test_release_title(self, songs):
        assert ids(apply_filters(songs, {"searchQuery": "GLASS HOUSE"})) == ["s-002", "s-003"]

    def test_credited_name_and_role(self, songs):
        assert ids(apply_filters(songs, {"searchQuery": "jo rivers"})) == ["s-003"]
        assert ids(apply_filters(songs, {"searchQuery": "featured vocals"})) == ["s-002"]
        assert ids(apply_filters(songs, {"searchQuery": "guitar"})) == ["s-003"]

    def test_year_and_bpm(self, songs):
        assert ids(apply_filters(songs, {"searchQuery": "2021"})) == ["s-001"]
        assert ids(apply_filters(songs, {"searchQuery": "92.5"})) == ["s-002"]

    def test_haystack_is_lowercase(self, db):
        haystack = search_haystack(db.indexes.songs["s-002"])
        assert haystack == haystack.lower()
        assert "social commentary" in haystack
        assert "album" in haystack

    def test_release_type_outside_enum(self, raw_payload):
        raw_payload["releases"][1]["release_type"] = "Mixtape"
        db = build_database(raw_payload)
        assert ids(apply_filters(db.songs, {"searchQuery": "mixtape"})) == ["s-002", "s-003"]

    def test_lyric_search(self, songs):
        assert ids(apply_filters(songs, {"lyricSearch": "GLASS"})) == ["s-002"]
        assert ids(apply_filters(songs, {"lyricSearch": "(a+b)"})) == ["s-002"]

    def test_lyric_search_skips_songs_without_lyrics(self, songs):
        assert "s-003" not in ids(apply_filters(songs, {"lyricSearch": "e"}))


class TestConjunction:
    @pytest.mark.parametrize("a, b", [
        ({"years": [2023]}, {"keyQuality": "minor"}),
        ({"categories": ["Philosophical"]}, {"isPublished": True}),
        ({"people": ["p-001"]}, {"searchQuery": "glass"}),
        ({"hasFeatured": False}, {"keys": ["F# minor"]}),
    ])
    def test_sequential_equals_merged(self, songs, a, b):
        assert apply_filters(apply_filters(songs, a), b) == apply_filters(songs, {**a, **b})

    def test_end_to_end_explicit(self, songs):
        result = apply_filters(songs, {"isExplicit": True, "years": [2021]})
        assert result == []


class TestOrdering:
    def test_word_count_descending(self, songs):
        assert ids(sort_songs(songs, "word_count")) == ["s-002", "s-001", "s-003"]

    def test_bpm_ascending(self, songs):
        assert ids(sort_songs(songs, "bpm")) == ["s-003", "s-002", "s-001"]

    def test_duration_descending(self, songs):
        assert ids(sort_songs(songs, "duration")) == ["s-002", "s-001", "s-003"]

    def test_release(self, songs):
        assert ids(sort_songs(songs, "release")) == ["s-001", "s-002", "s-003"]

    def test_unknown_order_keeps_input(self, songs):
        assert ids(sort_songs(list(reversed(songs)), "shuffle")) == ["s-003", "s-002", "s-001"]

    def test_sort_returns_copy(self, songs):
        before = ids(songs)
        sort_songs(songs, "bpm")
        assert ids(songs) == before


class TestGrouping:
    def test_year_groups_numeric(self, songs):
        groups = group_songs(list(reversed(songs)), "year")
        assert list(groups) == ["2021", "2023"]
        assert ids(groups["2023"]) == ["s-003", "s-002"]

    def test_key_quality_groups(self, songs):
        groups = group_songs(songs, "key_quality")
        assert ids(groups["Major"]) == ["s-001"]
        assert ids(groups["Minor"]) == ["s-002", "s-003"]

    def test_none(self, songs):
        assert list(group_songs(songs, "none")) == [""]


class TestArtworkFilters:
    def test_by_type(self, db):
        assert [a.art_id for a in filter_artwork(db.artwork, art_type="cover")] == ["a-1", "a-3"]

    def test_all_means_any(self, db):
        assert len(filter_artwork(db.artwork, art_type="all", person_id="all")) == 3

    def test_by_person(self, db):
        assert [a.art_id for a in filter_artwork(db.artwork, person_id="p-004")] == ["a-1", "a-3"]
        assert filter_artwork(db.artwork, person_id="p-001") == []

    def test_breakdown(self, db):
        assert art_type_breakdown(db.artwork) == {"cover": 2, "promo": 1}
