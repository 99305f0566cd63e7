"""Shared fixtures: a small spreadsheet-shaped payload with stringified cells."""

import copy

import pytest
from discog_explorer.database import build_database


RAW_PAYLOAD = {
    "songs": [
        {
            "song_id": "s-001", "title": "First Light", "release_id": "r-001",
            "release_date": "2021-03-01", "year": "2021",
            "is_published": "TRUE", "is_explicit": "false", "has_video": "yes",
            "lyrics_category_id": "lc-1", "perspective_id": "pv-1",
            "distributor_id": "d-1", "label_id": "",
            "duration_sec": "185", "bpm": "120", "key": "C",
        },
        {
            "song_id": "s-002", "title": "Broken Glass", "release_id": "r-002",
            "release_date": "2023-05-12", "year": "2023",
            "is_published": "false", "is_explicit": "true", "has_video": "0",
            "lyrics_category_id": "lc-2", "perspective_id": "pv-2",
            "distributor_id": "d-1", "label_id": "lb-1",
            "duration_sec": "240.5", "bpm": "92.5", "key": "Am",
        },
        {
            "song_id": "s-003", "title": "Night Drive", "release_id": "r-002",
            "release_date": None, "year": 2023,
            "is_published": "1", "is_explicit": "False", "has_video": None,
            "lyrics_category_id": "lc-1", "perspective_id": "pv-1",
            "duration_sec": "oops", "bpm": "", "key": "F# minor",
        },
    ],
    "releases": [
        {"release_id": "r-001", "title": "Dawn", "release_type": "Single",
         "release_date": "2021-03-01", "year": "2021", "is_published": "true"},
        {"release_id": "r-002", "title": "Glass House", "release_type": "album",
         "release_date": "2023-05-12", "year": "2023", "is_published": "true"},
    ],
    "people": [
        {"person_id": "p-001", "name": "Amir"},
        {"person_id": "p-002", "name": "Lena  Park"},
        {"person_id": "p-003", "name": "Amir B"},
        {"person_id": "p-004", "name": "Sam Ortiz"},
    ],
    "credit_roles": [
        {"credit_role_id": "cr-1", "name": "mixing", "category": "audio"},
        {"credit_role_id": "cr-2", "name": "mastering", "category": "audio"},
        {"credit_role_id": "cr-3", "name": "featured_vocals", "category": "performance"},
        {"credit_role_id": "cr-4", "name": "guitar", "category": ""},
        {"credit_role_id": "cr-5", "name": "photographer", "category": "visual"},
    ],
    "song_credits": [
        {"song_credit_id": "sc-1", "song_id": "s-001", "person_id": "p-001", "credit_role_id": "cr-1"},
        {"song_credit_id": "sc-2", "song_id": "s-001", "person_id": "p-001", "credit_role_id": "cr-2"},
        {"song_credit_id": "sc-3", "song_id": "s-002", "person_id": "p-002", "credit_role_id": "cr-3"},
        {"song_credit_id": "sc-4", "song_id": "s-002", "person_id": "p-003", "credit_role_id": "cr-1"},
        {"song_credit_id": "sc-5", "song_id": "s-003", "person_id": "", "person_name": "Jo Rivers",
         "credit_role_id": "cr-4", "credit_detail": "acoustic"},
    ],
    "lyrics": [
        {"song_id": "s-001", "lyrics_text": "Light, light in the morning light! Love me"},
        {"song_id": "s-002", "lyrics_text": "Glass breaks. Glass (a+b) glass"},
        {"song_id": "s-003", "lyrics_text": None},
    ],
    "song_stats": [
        {"song_id": "s-001", "word_count": "12", "unique_word_count": "8",
         "top_words_json": '[{"word": "light", "count": "3"}]',
         "featured_vocalist_count": "0", "has_featured_vocalist": "false"},
        {"song_id": "s-002", "word_count": "30", "unique_word_count": "5",
         "top_words_json": "not json", "featured_vocalist_count": "1",
         "has_featured_vocalist": "TRUE"},
        {"song_id": "s-003", "word_count": "0", "top_words_json": ""},
    ],
    "artwork": [
        {"art_id": "a-1", "image_url": "https://img.example/a1.jpg", "art_type_id": "at-1",
         "created_year": "2021"},
        {"art_id": "a-2", "image_url": "https://img.example/a2.jpg", "art_type_id": "at-2"},
        {"art_id": "a-3", "image_url": "https://img.example/a3.jpg", "art_type_id": "at-1",
         "created_year": "2023"},
    ],
    "release_art": [
        {"release_id": "r-001", "art_id": "a-2", "is_primary": "false"},
        {"release_id": "r-001", "art_id": "a-1", "is_primary": "true"},
        {"release_id": "r-002", "art_id": "a-3", "is_primary": "false"},
    ],
    "art_credits": [
        {"art_credit_id": "ac-1", "art_id": "a-1", "person_id": "p-004", "credit_role_id": "cr-5"},
        {"art_credit_id": "ac-2", "art_id": "a-3", "person_id": "p-004", "credit_role_id": "cr-5"},
    ],
    "art_types": [
        {"art_type_id": "at-1", "name": "cover"},
        {"art_type_id": "at-2", "name": "promo"},
    ],
    "distributors": [{"distributor_id": "d-1", "name": "DistroKid"}],
    "labels": [{"label_id": "lb-1", "name": "Night Records"}],
    "lyric_categories": [
        {"lyrics_category_id": "lc-1", "name": "Philosophical"},
        {"lyrics_category_id": "lc-2", "name": "Social Commentary"},
        {"lyrics_category_id": "lc-3", "name": "Love"},
    ],
    "perspectives": [
        {"perspective_id": "pv-1", "name": "First Person"},
        {"perspective_id": "pv-2", "name": "Third Person"},
    ],
}


@pytest.fixture
def raw_payload():
    """A fresh deep copy per test so nothing leaks between tests."""
    return copy.deepcopy(RAW_PAYLOAD)


@pytest.fixture
def db(raw_payload):
    return build_database(raw_payload)


@pytest.fixture
def songs(db):
    return db.songs
