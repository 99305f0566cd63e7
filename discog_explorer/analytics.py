"""
Discography Analytics

Aggregates over the normalized graph: per-person rollups, yearly trend
series, the stats-panel summary, credit leaderboards and the song
connection graph. Every function is total: empty input gives zeroed or
empty results, never an exception.
"""

import math
from collections import Counter, defaultdict
from itertools import combinations
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from .database import Database
from .lyrics import get_top_words_across_all
from .models import (
    CategoryTrend,
    KeyQuality,
    LibrarySummary,
    PersonCount,
    PersonStats,
    RoleKind,
    Song,
    SongEdge,
    TrendMetric,
    TrendPoint,
)


def round_half_up(value: float) -> int:
    """Round .5 upwards, matching how the charts have always rounded."""
    return int(math.floor(value + 0.5))


def _mean(values: List[float]) -> int:
    return round_half_up(sum(values) / len(values)) if values else 0


# ---------------------------------------------------------------------------
# People
# ---------------------------------------------------------------------------

def get_person_stats(db: Database, person_id: str) -> PersonStats:
    """
    Roll up one person's credits.

    ``total_songs`` counts distinct songs, ``total_credits`` counts credit
    rows. ``role_breakdown`` maps role name to the distinct song ids credited
    under that role. Ids merged during name deduplication are accepted.
    """
    person_id = db.resolve_person_id(person_id)
    credits = [c for c in db.song_credits if c.person_id == person_id]

    song_ids: List[str] = []
    role_breakdown: Dict[str, List[str]] = {}
    for credit in credits:
        if credit.song_id not in song_ids:
            song_ids.append(credit.song_id)
        role_name = credit.role.name if credit.role else credit.credit_role_id
        bucket = role_breakdown.setdefault(role_name, [])
        if credit.song_id not in bucket:
            bucket.append(credit.song_id)

    songs = [db.indexes.songs[sid] for sid in song_ids if sid in db.indexes.songs]
    art_credits = [c for c in db.art_credits if c.person_id == person_id]

    return PersonStats(
        person=db.indexes.people.get(person_id),
        total_songs=len(song_ids),
        total_credits=len(credits),
        role_breakdown=role_breakdown,
        songs=songs,
        credits=credits,
        art_credits=art_credits,
    )


def get_role_leaderboard(db: Database, role: Any) -> List[PersonCount]:
    """People ranked by number of credits for one role kind (ties keep first-seen order)."""
    kind = role if isinstance(role, RoleKind) else RoleKind.from_name(str(role))
    counts: Dict[str, PersonCount] = {}
    for credit in db.song_credits:
        if credit.role is None or credit.role.kind is not kind or credit.person is None:
            continue
        entry = counts.get(credit.person_id)
        counts[credit.person_id] = PersonCount(
            person_id=credit.person_id,
            name=credit.person.name,
            count=(entry.count if entry else 0) + 1,
        )
    return sorted(counts.values(), key=lambda e: e.count, reverse=True)


# ---------------------------------------------------------------------------
# Trends
# ---------------------------------------------------------------------------

def _metric(metric: Any) -> TrendMetric:
    try:
        return TrendMetric(metric)
    except ValueError:
        logger.warning(f"Unknown trend metric {metric!r}, using song_count")
        return TrendMetric.SONG_COUNT


def _songs_by_year(songs: Iterable[Song]) -> Dict[int, List[Song]]:
    by_year: Dict[int, List[Song]] = defaultdict(list)
    for song in songs:
        by_year[song.year].append(song)
    return by_year


def _trend_value(songs: List[Song], metric: TrendMetric) -> int:
    if metric is TrendMetric.AVG_WORD_COUNT:
        return _mean([s.stats.word_count for s in songs])
    if metric is TrendMetric.AVG_DURATION:
        return _mean([s.duration_sec for s in songs])
    if metric is TrendMetric.AVG_BPM:
        return _mean([s.bpm for s in songs if s.bpm > 0])
    if metric is TrendMetric.FEATURED_COUNT:
        return sum(1 for s in songs if s.has_featured)
    if metric is TrendMetric.EXPLICIT_COUNT:
        return sum(1 for s in songs if s.is_explicit)
    return len(songs)


def get_trend_data(db: Database, metric: Any = TrendMetric.SONG_COUNT) -> List[TrendPoint]:
    """
    One point per year in ``db.meta.years``, ascending.

    Averages are rounded half-up and 0 for years without qualifying songs;
    bpm averages skip songs with unknown (0) bpm. Counts are raw, not
    percentages. Unknown metrics fall back to song_count.
    """
    kind = _metric(metric)
    by_year = _songs_by_year(db.songs)
    return [
        TrendPoint(year=year, value=_trend_value(by_year.get(year, []), kind))
        for year in db.meta.years
    ]


def get_category_trend_data(db: Database) -> CategoryTrend:
    """Per lyric category, the number of songs in each dataset year."""
    years = list(db.meta.years)
    counts: Counter = Counter((s.category_name, s.year) for s in db.songs)
    series = {
        category.name: [TrendPoint(year=year, value=counts[(category.name, year)]) for year in years]
        for category in db.lyric_categories
    }
    return CategoryTrend(years=years, series=series)


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------

def _most_common(counts: Dict[Any, int]) -> tuple:
    if not counts:
        return None, 0
    value, count = max(counts.items(), key=lambda item: item[1])
    return value, count


def _breakdown(values: Iterable[str]) -> Dict[str, int]:
    return dict(Counter(values))


def _extreme(songs: List[Song], key, largest: bool) -> Optional[str]:
    candidates = songs if largest else [s for s in songs if key(s) > 0]
    if not candidates:
        return None
    pick = max(candidates, key=key) if largest else min(candidates, key=key)
    return pick.song_id


def get_library_summary(db: Database, songs: Optional[Iterable[Song]] = None) -> LibrarySummary:
    """
    Stats-panel summary for ``songs`` (defaults to the whole library).

    Credit leaderboards always cover the whole library.
    """
    songs = list(db.songs if songs is None else songs)
    total = len(songs)
    if not total:
        return LibrarySummary()

    with_lyrics = [s for s in songs if s.lyrics_text.strip()]
    featured = sum(1 for s in songs if s.has_featured)
    total_words = sum(s.stats.word_count for s in songs)
    total_duration = sum(s.duration_sec for s in songs)
    bpms = [s.bpm for s in songs if s.bpm > 0]

    key_breakdown = _breakdown(s.key for s in songs if s.key)
    most_used_key, most_used_key_count = _most_common(key_breakdown)
    most_used_bpm, most_used_bpm_count = _most_common(_breakdown(bpms))

    return LibrarySummary(
        total=total,
        explicit=sum(1 for s in songs if s.is_explicit),
        has_video=sum(1 for s in songs if s.has_video),
        published=sum(1 for s in songs if s.is_published),
        has_featured=featured,
        no_featured=total - featured,
        total_words=total_words,
        avg_words=round_half_up(total_words / len(with_lyrics)) if with_lyrics else 0,
        total_duration=total_duration,
        avg_duration=round_half_up(total_duration / total),
        avg_bpm=_mean(bpms),
        category_breakdown=_breakdown(s.category_name or "Unknown" for s in songs),
        perspective_breakdown=_breakdown(s.perspective_name or "Unknown" for s in songs),
        key_breakdown=key_breakdown,
        major_count=sum(1 for s in songs if s.key_quality is KeyQuality.MAJOR),
        minor_count=sum(1 for s in songs if s.key_quality is KeyQuality.MINOR),
        most_used_key=most_used_key,
        most_used_key_count=most_used_key_count,
        most_used_bpm=most_used_bpm,
        most_used_bpm_count=most_used_bpm_count,
        top_vocalists=get_role_leaderboard(db, RoleKind.FEATURED_VOCALS),
        top_mixers=get_role_leaderboard(db, RoleKind.MIXING),
        top_masters=get_role_leaderboard(db, RoleKind.MASTERING),
        longest_song=_extreme(songs, lambda s: s.stats.word_count, largest=True),
        shortest_song=_extreme(songs, lambda s: s.stats.word_count, largest=False),
        longest_duration=_extreme(songs, lambda s: s.duration_sec, largest=True),
        shortest_duration=_extreme(songs, lambda s: s.duration_sec, largest=False),
        top_words=get_top_words_across_all(with_lyrics),
    )


# ---------------------------------------------------------------------------
# Connection graph
# ---------------------------------------------------------------------------

def build_connection_edges(songs: Iterable[Song]) -> List[SongEdge]:
    """
    Undirected edges between songs that share a credited person
    (``collaborator``), a key (``key``) or a lyric category (``category``).
    Each (pair, type) appears once.
    """
    songs = list(songs)
    groups: Dict[str, Dict[str, List[str]]] = {
        "collaborator": defaultdict(list),
        "key": defaultdict(list),
        "category": defaultdict(list),
    }
    for song in songs:
        for credit in song.credits:
            groups["collaborator"][credit.person_id].append(song.song_id)
        if song.key:
            groups["key"][song.key].append(song.song_id)
        if song.category_name:
            groups["category"][song.category_name].append(song.song_id)

    seen = set()
    edges: List[SongEdge] = []
    for edge_type, buckets in groups.items():
        for song_ids in buckets.values():
            for a, b in combinations(song_ids, 2):
                if a == b:
                    continue
                pair = (min(a, b), max(a, b), edge_type)
                if pair in seen:
                    continue
                seen.add(pair)
                edges.append(SongEdge(source=a, target=b, type=edge_type))
    return edges
