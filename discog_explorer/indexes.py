"""
Index Layer

Id -> entity lookups built once per normalization pass. Rows whose id is
empty are skipped; when two rows share an id the later one wins.
"""

from typing import Callable, Dict, Iterable, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from .models import (
    Artwork,
    CreditRole,
    Lyrics,
    Person,
    Release,
    Song,
    SongStats,
    Taxonomy,
)

T = TypeVar("T")


def index_by(items: Iterable[T], key: Callable[[T], str]) -> Dict[str, T]:
    """Map ``key(item)`` to item, skipping items with an empty key."""
    index: Dict[str, T] = {}
    for item in items:
        item_id = key(item)
        if item_id:
            index[item_id] = item
    return index


class DatabaseIndexes(BaseModel):
    """Read-only lookups exposed alongside the graph."""

    model_config = ConfigDict(frozen=True)

    songs: Dict[str, Song] = Field(default_factory=dict)
    releases: Dict[str, Release] = Field(default_factory=dict)
    people: Dict[str, Person] = Field(default_factory=dict)
    credit_roles: Dict[str, CreditRole] = Field(default_factory=dict)
    lyric_categories: Dict[str, Taxonomy] = Field(default_factory=dict)
    perspectives: Dict[str, Taxonomy] = Field(default_factory=dict)
    stats: Dict[str, SongStats] = Field(default_factory=dict)
    lyrics: Dict[str, Lyrics] = Field(default_factory=dict)
    artwork: Dict[str, Artwork] = Field(default_factory=dict)
    art_types: Dict[str, Taxonomy] = Field(default_factory=dict)


def build_indexes(
    songs: Iterable[Song] = (),
    releases: Iterable[Release] = (),
    people: Iterable[Person] = (),
    credit_roles: Iterable[CreditRole] = (),
    lyric_categories: Iterable[Taxonomy] = (),
    perspectives: Iterable[Taxonomy] = (),
    stats: Iterable[SongStats] = (),
    lyrics: Iterable[Lyrics] = (),
    artwork: Iterable[Artwork] = (),
    art_types: Iterable[Taxonomy] = (),
) -> DatabaseIndexes:
    return DatabaseIndexes(
        songs=index_by(songs, lambda s: s.song_id),
        releases=index_by(releases, lambda r: r.release_id),
        people=index_by(people, lambda p: p.person_id),
        credit_roles=index_by(credit_roles, lambda r: r.credit_role_id),
        lyric_categories=index_by(lyric_categories, lambda c: c.id),
        perspectives=index_by(perspectives, lambda p: p.id),
        stats=index_by(stats, lambda s: s.song_id),
        lyrics=index_by(lyrics, lambda l: l.song_id),
        artwork=index_by(artwork, lambda a: a.art_id),
        art_types=index_by(art_types, lambda t: t.id),
    )
