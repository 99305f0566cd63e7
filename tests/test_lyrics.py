"""Unit tests for tokenization, word statistics and lyric search."""

import pytest
from discog_explorer.lyrics import (
    STOP_WORDS,
    compute_word_stats,
    get_top_words_across_all,
    search_lyrics,
    tokenize,
)
from discog_explorer.models import Lyrics, Song


def pairs(words):
    return [(w.word, w.count) for w in words]


class TestTokenize:
    def test_strips_punctuation_and_digits(self):
        assert tokenize("Hello, World! 123 rock-n-roll don't") == [
            "hello", "world", "rock-n-roll", "don't",
        ]

    def test_drops_single_characters(self):
        assert tokenize("a b c dd") == ["dd"]

    @pytest.mark.parametrize("value", [None, 42, "", "   "])
    def test_empty_or_non_string(self, value):
        assert tokenize(value) == []


class TestComputeWordStats:
    def test_empty(self):
        stats = compute_word_stats("")
        assert stats.word_count == 0
        assert stats.unique_word_count == 0
        assert stats.top_words == []

    def test_single_letter_tokens_dropped(self):
        assert compute_word_stats("a a a").word_count == 0

    def test_stopwords_excluded_from_unique_and_top(self):
        stats = compute_word_stats("the the the love love hate")
        assert "the" in STOP_WORDS
        assert stats.word_count == 6
        assert stats.unique_word_count == 2
        assert pairs(stats.top_words) == [("love", 2), ("hate", 1)]

    def test_ties_keep_first_seen_order(self):
        stats = compute_word_stats("river stone river stone ember")
        assert pairs(stats.top_words) == [("river", 2), ("stone", 2), ("ember", 1)]

    def test_top_ten_only(self):
        text = " ".join(f"word{chr(97 + i)}" for i in range(15))
        stats = compute_word_stats(text)
        assert stats.unique_word_count == 15
        assert len(stats.top_words) == 10


class TestTopWordsAcrossAll:
    def test_frequencies_summed_globally(self):
        entries = [
            Lyrics(song_id="1", lyrics_text="rain rain fire"),
            Lyrics(song_id="2", lyrics_text="fire fire smoke"),
        ]
        assert pairs(get_top_words_across_all(entries)) == [
            ("fire", 3), ("rain", 2), ("smoke", 1),
        ]

    def test_capped_at_twenty(self):
        entries = [Lyrics(song_id=str(i), lyrics_text=f"term{chr(97 + i)}") for i in range(25)]
        assert len(get_top_words_across_all(entries)) == 20

    def test_accepts_songs(self, songs):
        assert pairs(get_top_words_across_all(songs))[:2] == [("light", 3), ("glass", 3)]

    def test_empty(self):
        assert get_top_words_across_all([]) == []


class TestSearchLyrics:
    def test_blank_query(self, db):
        for query in ("", "   "):
            result = search_lyrics(db.songs, db.lyrics, query)
            assert result.matches == []
            assert result.total_occurrences == 0

    def test_case_insensitive_counts(self, db):
        result = search_lyrics(db.songs, db.lyrics, "LIGHT")
        assert [(m.song.song_id, m.count) for m in result.matches] == [("s-001", 3)]
        assert result.total_occurrences == 3

    def test_sorted_by_count(self, db):
        result = search_lyrics(db.songs, db.lyrics, "l")
        counts = [m.count for m in result.matches]
        assert counts == sorted(counts, reverse=True)
        assert result.total_occurrences == sum(counts)

    def test_query_is_literal(self):
        songs = [Song(song_id="x"), Song(song_id="y")]
        lyrics = [
            Lyrics(song_id="x", lyrics_text="aab aaab"),
            Lyrics(song_id="y", lyrics_text="sum a+b then A+B"),
        ]
        result = search_lyrics(songs, lyrics, "a+b")
        assert [(m.song.song_id, m.count) for m in result.matches] == [("y", 2)]

    def test_songs_without_lyrics_excluded(self, db):
        result = search_lyrics(db.songs, db.lyrics, "e")
        assert "s-003" not in [m.song.song_id for m in result.matches]

    def test_ties_keep_input_order(self):
        songs = [Song(song_id="1"), Song(song_id="2")]
        lyrics = [Lyrics(song_id="1", lyrics_text="echo"), Lyrics(song_id="2", lyrics_text="echo")]
        result = search_lyrics(songs, lyrics, "echo")
        assert [m.song.song_id for m in result.matches] == ["1", "2"]
