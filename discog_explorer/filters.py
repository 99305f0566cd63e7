"""
Song and Artwork Filtering

Pure predicates over the normalized graph. Filters never reorder, only
remove; sorting and grouping helpers return new lists and leave their
input untouched.
"""

from collections import Counter
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .models import Artwork, FilterSpec, KeyQuality, Song, format_number


SORT_ORDERS = ("chronological", "release", "word_count", "bpm", "duration")
GROUP_BY_OPTIONS = ("none", "year", "release", "category", "key_quality")


def search_haystack(song: Song) -> str:
    """Lowercased text the free-text song search matches against."""
    parts = [
        song.title,
        str(song.year) if song.year else "",
        song.key,
        format_number(song.bpm) if song.bpm else "",
        song.category_name,
        song.perspective_name,
        song.release.title if song.release else "",
        song.release.release_type_text if song.release else "",
    ]
    parts += [c.person.name if c.person else "" for c in song.credits]
    parts += [c.role.name.replace("_", " ") if c.role else "" for c in song.credits]
    return " ".join(parts).lower()


def matches_filters(song: Song, spec: FilterSpec) -> bool:
    """True when ``song`` satisfies every constraint set in ``spec``."""
    if spec.years and song.year not in spec.years:
        return False
    if spec.releases and song.release_id not in spec.releases:
        return False
    if spec.categories and song.category_name not in spec.categories:
        return False
    if spec.perspectives and song.perspective_name not in spec.perspectives:
        return False
    if spec.keys and song.key not in spec.keys:
        return False

    if spec.is_published is not None and song.is_published != spec.is_published:
        return False
    if spec.is_explicit is not None and song.is_explicit != spec.is_explicit:
        return False
    if spec.has_video is not None and song.has_video != spec.has_video:
        return False
    if spec.has_featured is not None and song.has_featured != spec.has_featured:
        return False

    if spec.key_quality != "all" and song.key_quality is not KeyQuality(spec.key_quality):
        return False

    if spec.people:
        wanted = set(spec.people)
        if not any(c.person_id in wanted for c in song.credits):
            return False

    if spec.search_query:
        if spec.search_query.lower() not in search_haystack(song):
            return False

    if spec.lyric_search:
        if not song.lyrics_text or spec.lyric_search.lower() not in song.lyrics_text.lower():
            return False

    return True


def apply_filters(
    songs: Iterable[Song],
    spec: Optional[Any] = None,
    person_id_remap: Optional[Mapping[str, str]] = None,
) -> List[Song]:
    """
    Narrow ``songs`` to those matching ``spec``, preserving input order.

    ``spec`` may be a ``FilterSpec``, a plain dict (snake_case or camelCase
    keys) or None for no constraints. Pass ``Database.person_id_remap`` so
    ids merged during name deduplication still match their person.
    """
    if spec is None:
        spec = FilterSpec()
    elif not isinstance(spec, FilterSpec):
        spec = FilterSpec.model_validate(spec)
    if person_id_remap and spec.people:
        people = [person_id_remap.get(pid, pid) for pid in spec.people]
        spec = spec.model_copy(update={"people": people})
    return [song for song in songs if matches_filters(song, spec)]


# ---------------------------------------------------------------------------
# Artwork
# ---------------------------------------------------------------------------

def filter_artwork(
    artwork: Iterable[Artwork],
    art_type: Optional[str] = None,
    person_id: Optional[str] = None,
) -> List[Artwork]:
    """Artwork of one type name and/or credited to one person ("all" or None = any)."""
    results = []
    for art in artwork:
        if art_type and art_type != "all" and art.art_type_name != art_type:
            continue
        if person_id and person_id != "all":
            if not any(c.person_id == person_id for c in art.credits):
                continue
        results.append(art)
    return results


def art_type_breakdown(artwork: Iterable[Artwork]) -> Dict[str, int]:
    return dict(Counter(art.art_type_name or "unknown" for art in artwork))


# ---------------------------------------------------------------------------
# Ordering and grouping
# ---------------------------------------------------------------------------

def sort_songs(songs: Iterable[Song], order: str = "chronological") -> List[Song]:
    """Return a sorted copy. Unknown orders keep the input order."""
    result = list(songs)
    if order == "chronological":
        result.sort(key=lambda s: (s.year, s.title.lower()))
    elif order == "release":
        result.sort(key=lambda s: (s.release_title.lower(), s.year))
    elif order == "word_count":
        result.sort(key=lambda s: s.stats.word_count, reverse=True)
    elif order == "bpm":
        result.sort(key=lambda s: s.bpm)
    elif order == "duration":
        result.sort(key=lambda s: s.duration_sec, reverse=True)
    return result


def _group_label(song: Song, group_by: str) -> str:
    if group_by == "year":
        return str(song.year) if song.year else "Unknown"
    if group_by == "release":
        return song.release_title or "Unknown"
    if group_by == "category":
        return song.category_name or "Unknown"
    if group_by == "key_quality":
        return "Minor" if song.key_quality is KeyQuality.MINOR else "Major"
    return ""


def group_songs(songs: Iterable[Song], group_by: str = "none") -> Dict[str, List[Song]]:
    """
    Bucket songs by a display attribute, keeping input order inside groups.

    Year groups are ordered numerically ("Unknown" last); other groups
    appear in first-seen order. ``none`` puts everything under "".
    """
    groups: Dict[str, List[Song]] = {}
    for song in songs:
        label = _group_label(song, group_by) if group_by in GROUP_BY_OPTIONS else ""
        groups.setdefault(label, []).append(song)

    if group_by == "year":
        ordered = sorted(
            groups.items(),
            key=lambda item: (not item[0].isdigit(), int(item[0]) if item[0].isdigit() else 0),
        )
        return dict(ordered)
    return groups
