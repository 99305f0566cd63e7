"""
Lyric Text Analysis

Tokenization, stopword filtering, word-frequency ranking and literal
substring search over lyrics.

Tokenization is fixed: lowercase, drop every character that is not a-z,
an apostrophe, a hyphen or whitespace, split on whitespace and discard
tokens of one character. Raw word counts include stopwords; unique counts
and rankings do not.
"""

import re
from collections import Counter
from typing import Any, Iterable, List, Dict

from .models import (
    Lyrics,
    LyricMatch,
    LyricSearchResult,
    Song,
    WordCount,
    WordStats,
)


STOP_WORDS: frozenset = frozenset({
    "i", "me", "my", "mine", "myself",
    "you", "your", "yours", "yourself",
    "he", "him", "his", "she", "her", "hers",
    "we", "us", "our", "they", "them", "their",
    "it", "its",
    "a", "an", "the",
    "and", "but", "or", "so", "of", "to", "in", "on", "at", "by", "for", "with",
    "is", "am", "are", "was", "were", "be", "been", "being",
    "do", "does", "did", "done",
    "have", "has", "had", "having",
    "will", "would", "shall", "should", "can", "could", "may", "might", "must",
    "not", "no", "nor",
    "if", "then", "than", "that", "this", "these", "those",
    "up", "out", "down", "off", "over", "under",
    "from", "into", "about", "between", "through", "after", "before",
    "all", "each", "every", "both", "few", "some", "any", "most",
    "just", "like", "when", "what", "how", "where", "who", "which",
    "as", "more", "also", "here", "there", "very", "too",
    "oh", "ooh", "ah", "ahh", "na", "la", "dum", "mmm", "hmm", "yea", "yeah",
    "im", "i'm", "i've", "i'll", "i'd",
    "don't", "won't", "can't", "didn't", "doesn't", "isn't", "aren't", "wasn't", "weren't",
    "couldn't", "wouldn't", "shouldn't", "haven't", "hasn't", "hadn't",
    "it's", "that's", "there's", "here's", "what's", "who's",
    "you're", "you've", "you'll", "you'd",
    "he's", "he'd", "he'll", "she's", "she'd", "she'll",
    "we're", "we've", "we'll", "we'd",
    "they're", "they've", "they'll", "they'd",
    "got", "get", "go", "going", "gone", "come", "came",
    "know", "say", "said", "tell", "told",
    "see", "look", "make", "take", "give", "let",
    "now", "one", "two",
    "cause", "cuz", "'cause",
})

TOP_WORDS_PER_SONG = 10
TOP_WORDS_CORPUS = 20

_STRIP_PATTERN = re.compile(r"[^a-z'\s-]")


def tokenize(text: Any) -> List[str]:
    """Split lyrics into tokens. Non-string input yields no tokens."""
    if not isinstance(text, str) or not text.strip():
        return []
    cleaned = _STRIP_PATTERN.sub("", text.lower())
    return [w for w in cleaned.split() if len(w) > 1]


def _rank(freq: Counter, limit: int) -> List[WordCount]:
    # sorted() is stable, so equal counts keep first-encountered order.
    ranked = sorted(freq.items(), key=lambda item: item[1], reverse=True)
    return [WordCount(word=w, count=c) for w, c in ranked[:limit]]


def _content_frequencies(tokens: Iterable[str], freq: Counter) -> Counter:
    for token in tokens:
        if token not in STOP_WORDS:
            freq[token] += 1
    return freq


def compute_word_stats(text: Any) -> WordStats:
    """
    Word statistics for one lyric text.

    ``word_count`` counts every surviving token; ``unique_word_count`` and
    ``top_words`` (at most 10) only consider non-stopwords.
    """
    tokens = tokenize(text)
    if not tokens:
        return WordStats()

    freq = _content_frequencies(tokens, Counter())
    return WordStats(
        word_count=len(tokens),
        unique_word_count=len(freq),
        top_words=_rank(freq, TOP_WORDS_PER_SONG),
    )


def get_top_words_across_all(entries: Iterable[Any]) -> List[WordCount]:
    """
    Top 20 non-stopwords across many lyric entries.

    ``entries`` may hold ``Lyrics`` rows, ``Song`` objects or anything else
    exposing ``lyrics_text``. Frequencies are summed globally before ranking.
    """
    freq: Counter = Counter()
    for entry in entries:
        _content_frequencies(tokenize(getattr(entry, "lyrics_text", "")), freq)
    return _rank(freq, TOP_WORDS_CORPUS)


def search_lyrics(
    songs: Iterable[Song],
    lyrics: Iterable[Lyrics],
    query: str,
) -> LyricSearchResult:
    """
    Count literal, case-insensitive occurrences of ``query`` in each song's lyrics.

    The query is escaped before matching, so ``a+b`` only finds "a+b".
    Songs without occurrences are dropped; matches are ordered by count,
    highest first, ties keeping the input order.
    """
    if not isinstance(query, str) or not query.strip():
        return LyricSearchResult()

    pattern = re.compile(re.escape(query.strip().lower()), re.IGNORECASE)

    texts: Dict[str, str] = {}
    for entry in lyrics:
        texts.setdefault(entry.song_id, entry.lyrics_text)

    matches: List[LyricMatch] = []
    total = 0
    for song in songs:
        text = texts.get(song.song_id, "")
        if not isinstance(text, str) or not text:
            continue
        count = len(pattern.findall(text))
        if count:
            total += count
            matches.append(LyricMatch(song=song, count=count, lyrics_text=text))

    matches.sort(key=lambda m: m.count, reverse=True)
    return LyricSearchResult(matches=matches, total_occurrences=total)
