"""
Discography Database Builder

Turns the flat spreadsheet payload into a cross-referenced, read-only
object graph plus id indexes. The whole graph is rebuilt from each payload
snapshot; there is no incremental update path.

Only a structurally broken payload (not a mapping, no ``songs`` list)
raises. Every field-level defect degrades to an empty/zero default.

Usage:
    db = build_database(raw_json)
    db.indexes.songs["s-001"].release.title
    db.meta.years
"""

from collections import defaultdict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .indexes import DatabaseIndexes, build_indexes
from .models import (
    ROLE_CATEGORIES,
    ArtCredit,
    Artwork,
    CreditRole,
    DatabaseMeta,
    KeyQuality,
    Lyrics,
    Person,
    RawPayload,
    Release,
    ReleaseArt,
    ReleaseType,
    RoleCategory,
    RoleKind,
    Song,
    SongCredit,
    SongStats,
    Taxonomy,
)


# Known spelling variants -> canonical person name (matched case-insensitively)
PERSON_ALIASES: Dict[str, str] = {
    "Amir B": "Amir",
}


class PayloadError(ValueError):
    """The raw payload is structurally unusable; the build is aborted."""


class Database(BaseModel):
    """The normalized graph. Treat as immutable; rebuild to refresh."""

    model_config = ConfigDict(frozen=True)

    songs: List[Song] = Field(default_factory=list)
    releases: List[Release] = Field(default_factory=list)
    people: List[Person] = Field(default_factory=list)
    song_credits: List[SongCredit] = Field(default_factory=list)
    credit_roles: List[CreditRole] = Field(default_factory=list)
    lyrics: List[Lyrics] = Field(default_factory=list)
    song_stats: List[SongStats] = Field(default_factory=list)
    artwork: List[Artwork] = Field(default_factory=list)
    release_art: List[ReleaseArt] = Field(default_factory=list)
    art_credits: List[ArtCredit] = Field(default_factory=list)
    art_types: List[Taxonomy] = Field(default_factory=list)
    distributors: List[Taxonomy] = Field(default_factory=list)
    labels: List[Taxonomy] = Field(default_factory=list)
    lyric_categories: List[Taxonomy] = Field(default_factory=list)
    perspectives: List[Taxonomy] = Field(default_factory=list)
    person_id_remap: Dict[str, str] = Field(default_factory=dict)
    indexes: DatabaseIndexes = Field(default_factory=DatabaseIndexes)
    meta: DatabaseMeta = Field(default_factory=DatabaseMeta)

    def resolve_person_id(self, person_id: str) -> str:
        """Map an id merged away during name deduplication onto its canonical id."""
        return self.person_id_remap.get(person_id, person_id)


# ---------------------------------------------------------------------------
# Person identity
# ---------------------------------------------------------------------------

class PersonRegistry:
    """
    Name-based person identity for a single build.

    The first person row carrying a canonical name owns the id; later rows
    with the same name are remapped onto it. Credits that only carry a name
    get a freshly minted ``p-NNN`` id that avoids every id already in use.
    """

    def __init__(
        self,
        aliases: Optional[Mapping[str, str]] = None,
        reserved_ids: Iterable[str] = (),
    ) -> None:
        source = PERSON_ALIASES if aliases is None else aliases
        self._aliases = {self._clean(k).lower(): self._clean(v) for k, v in source.items()}
        self._by_name: Dict[str, str] = {}
        self._people: Dict[str, Person] = {}
        self._used_ids = {pid for pid in reserved_ids if pid}
        self._counter = 0
        self.remap: Dict[str, str] = {}

    @staticmethod
    def _clean(name: str) -> str:
        return " ".join(name.split())

    def canonical_name(self, name: str) -> str:
        clean = self._clean(name)
        return self._aliases.get(clean.lower(), clean)

    def register(self, person_id: str, name: str) -> str:
        """Register a person row and return the id it resolves to."""
        if not person_id:
            return ""
        canonical = self.canonical_name(name)
        key = canonical.lower()
        existing = self._by_name.get(key) if key else None
        if existing and existing != person_id:
            self.remap[person_id] = existing
            logger.debug(f"Merged person {person_id} ({name!r}) into {existing}")
            return existing

        self._used_ids.add(person_id)
        self._people[person_id] = Person(person_id=person_id, name=canonical)
        if key:
            self._by_name[key] = person_id
        return person_id

    def resolve(self, person_id: str, person_name: str = "") -> str:
        """Resolve a credit's person reference by id, falling back to name."""
        if person_id:
            return self.remap.get(person_id, person_id)
        canonical = self.canonical_name(person_name)
        if not canonical:
            return ""
        existing = self._by_name.get(canonical.lower())
        if existing:
            return existing
        return self.register(self._mint_id(), canonical)

    def _mint_id(self) -> str:
        while True:
            self._counter += 1
            candidate = f"p-{self._counter:03d}"
            if candidate not in self._used_ids:
                return candidate

    @property
    def people(self) -> List[Person]:
        return list(self._people.values())

    def get(self, person_id: str) -> Optional[Person]:
        return self._people.get(person_id)


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------

def _range(values: Iterable[float]) -> Tuple[float, float]:
    present = [v for v in values if v]
    if not present:
        return (0, 0)
    return (min(present), max(present))


class DatabaseBuilder:
    """One normalization pass over a validated payload."""

    def __init__(
        self,
        payload: RawPayload,
        aliases: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.payload = payload
        reserved = [p.person_id for p in payload.people]
        reserved += [c.person_id for c in payload.song_credits]
        reserved += [c.person_id for c in payload.art_credits]
        self.registry = PersonRegistry(aliases=aliases, reserved_ids=reserved)

    def build(self) -> Database:
        p = self.payload

        roles = [self._role(r) for r in p.credit_roles]
        role_index = {r.credit_role_id: r for r in roles if r.credit_role_id}

        categories = [Taxonomy(id=c.lyrics_category_id, name=c.name) for c in p.lyric_categories]
        perspectives = [Taxonomy(id=x.perspective_id, name=x.name) for x in p.perspectives]
        art_types = [Taxonomy(id=t.art_type_id, name=t.name) for t in p.art_types]
        distributors = [Taxonomy(id=d.distributor_id, name=d.name) for d in p.distributors]
        labels = [Taxonomy(id=lb.label_id, name=lb.name) for lb in p.labels]
        category_names = self._names(categories)
        perspective_names = self._names(perspectives)
        art_type_names = self._names(art_types)
        distributor_names = self._names(distributors)
        label_names = self._names(labels)

        for row in p.people:
            self.registry.register(row.person_id, row.name)

        releases = [
            Release(
                release_id=r.release_id,
                title=r.title,
                release_type=ReleaseType.from_text(r.release_type),
                release_type_text=r.release_type,
                release_date=r.release_date,
                year=int(r.year),
                is_published=r.is_published,
                cover_art_id=r.cover_art_id,
            )
            for r in p.releases
        ]
        release_index = {r.release_id: r for r in releases if r.release_id}

        song_stats = [
            SongStats(
                song_id=s.song_id,
                word_count=int(s.word_count),
                unique_word_count=int(s.unique_word_count),
                top_words=s.top_words_json,
                featured_vocalist_count=int(s.featured_vocalist_count),
                has_featured_vocalist=s.has_featured_vocalist or s.featured_vocalist_count > 0,
            )
            for s in p.song_stats
        ]
        stats_index = {s.song_id: s for s in song_stats if s.song_id}

        lyrics = [Lyrics(song_id=row.song_id, lyrics_text=row.lyrics_text) for row in p.lyrics]
        lyrics_index = {row.song_id: row for row in lyrics if row.song_id}

        # Resolve every person reference before enriching so that people
        # minted from credit names are visible to all credits.
        song_credit_ids = [self.registry.resolve(c.person_id, c.person_name) for c in p.song_credits]
        art_credit_ids = [self.registry.resolve(c.person_id, c.person_name) for c in p.art_credits]

        song_credits = [
            SongCredit(
                song_credit_id=c.song_credit_id,
                song_id=c.song_id,
                person_id=pid,
                credit_role_id=c.credit_role_id,
                credit_detail=c.credit_detail,
                person=self.registry.get(pid),
                role=role_index.get(c.credit_role_id),
            )
            for c, pid in zip(p.song_credits, song_credit_ids)
        ]
        art_credits = [
            ArtCredit(
                art_credit_id=c.art_credit_id,
                art_id=c.art_id,
                person_id=pid,
                credit_role_id=c.credit_role_id,
                person=self.registry.get(pid),
                role=role_index.get(c.credit_role_id),
            )
            for c, pid in zip(p.art_credits, art_credit_ids)
        ]

        release_art = [
            ReleaseArt(release_id=ra.release_id, art_id=ra.art_id, is_primary=ra.is_primary)
            for ra in p.release_art
        ]
        artwork = self._artwork(art_credits, release_art, release_index, art_type_names)
        artwork_index = {a.art_id: a for a in artwork if a.art_id}
        covers = self._primary_artwork(release_art, artwork_index)

        credits_by_song: Dict[str, List[SongCredit]] = defaultdict(list)
        for credit in song_credits:
            credits_by_song[credit.song_id].append(credit)

        unresolved = 0
        songs: List[Song] = []
        for row in p.songs:
            release = release_index.get(row.release_id)
            if row.release_id and release is None:
                unresolved += 1
            stats = stats_index.get(row.song_id)
            lyric = lyrics_index.get(row.song_id)
            songs.append(Song(
                song_id=row.song_id,
                title=row.title,
                release_id=row.release_id,
                release_date=row.release_date,
                year=int(row.year),
                is_published=row.is_published,
                is_explicit=row.is_explicit,
                has_video=row.has_video,
                lyrics_category_id=row.lyrics_category_id,
                perspective_id=row.perspective_id,
                distributor_id=row.distributor_id,
                label_id=row.label_id,
                duration_sec=max(0.0, row.duration_sec),
                bpm=max(0.0, row.bpm),
                key=row.key,
                title_length=len(row.title),
                key_quality=KeyQuality.from_key(row.key),
                release=release,
                category_name=category_names.get(row.lyrics_category_id, ""),
                perspective_name=perspective_names.get(row.perspective_id, ""),
                distributor_name=distributor_names.get(row.distributor_id, ""),
                label_name=label_names.get(row.label_id, ""),
                stats=stats if stats is not None else SongStats(song_id=row.song_id),
                lyrics_text=lyric.lyrics_text if lyric is not None else "",
                credits=credits_by_song.get(row.song_id, []),
                cover_art=covers.get(row.release_id),
            ))
        if unresolved:
            logger.debug(f"{unresolved} songs reference a missing release")

        people = self.registry.people
        meta = DatabaseMeta(
            years=sorted({s.year for s in songs if s.year}),
            all_keys=sorted({s.key for s in songs if s.key}),
            bpm_range=_range(s.bpm for s in songs),
            word_count_range=_range(s.word_count for s in song_stats),
            duration_range=_range(s.duration_sec for s in songs),
            total_songs=len(songs),
        )
        indexes = build_indexes(
            songs=songs,
            releases=releases,
            people=people,
            credit_roles=roles,
            lyric_categories=categories,
            perspectives=perspectives,
            stats=song_stats,
            lyrics=lyrics,
            artwork=artwork,
            art_types=art_types,
        )

        logger.info(
            f"Database built: {len(songs)} songs, {len(releases)} releases, "
            f"{len(people)} people, {len(song_credits)} credits, {len(artwork)} artworks"
        )
        return Database(
            songs=songs,
            releases=releases,
            people=people,
            song_credits=song_credits,
            credit_roles=roles,
            lyrics=lyrics,
            song_stats=song_stats,
            artwork=artwork,
            release_art=release_art,
            art_credits=art_credits,
            art_types=art_types,
            distributors=distributors,
            labels=labels,
            lyric_categories=categories,
            perspectives=perspectives,
            person_id_remap=dict(self.registry.remap),
            indexes=indexes,
            meta=meta,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _names(rows: List[Taxonomy]) -> Dict[str, str]:
        return {row.id: row.name for row in rows if row.id}

    @staticmethod
    def _role(row) -> CreditRole:
        kind = RoleKind.from_name(row.name)
        try:
            category = RoleCategory(row.category.strip().lower())
        except ValueError:
            category = ROLE_CATEGORIES[kind]
        return CreditRole(
            credit_role_id=row.credit_role_id,
            name=row.name,
            kind=kind,
            category=category,
        )

    def _artwork(
        self,
        art_credits: List[ArtCredit],
        release_art: List[ReleaseArt],
        release_index: Dict[str, Release],
        art_type_names: Dict[str, str],
    ) -> List[Artwork]:
        credits_by_art: Dict[str, List[ArtCredit]] = defaultdict(list)
        for credit in art_credits:
            credits_by_art[credit.art_id].append(credit)

        first_release: Dict[str, str] = {}
        for link in release_art:
            first_release.setdefault(link.art_id, link.release_id)

        return [
            Artwork(
                art_id=row.art_id,
                image_url=row.image_url,
                description=row.description,
                art_type_id=row.art_type_id,
                art_type_name=art_type_names.get(row.art_type_id, ""),
                created_year=int(row.created_year),
                credits=credits_by_art.get(row.art_id, []),
                release=release_index.get(first_release.get(row.art_id, "")),
            )
            for row in self.payload.artwork
        ]

    @staticmethod
    def _primary_artwork(
        release_art: List[ReleaseArt],
        artwork_index: Dict[str, Artwork],
    ) -> Dict[str, Artwork]:
        """First is_primary link per release, else the first link seen."""
        chosen: Dict[str, Tuple[Artwork, bool]] = {}
        for link in release_art:
            art = artwork_index.get(link.art_id)
            if art is None:
                continue
            current = chosen.get(link.release_id)
            if current is None or (link.is_primary and not current[1]):
                chosen[link.release_id] = (art, link.is_primary)
        return {release_id: art for release_id, (art, _) in chosen.items()}


def build_database(
    raw: Any,
    aliases: Optional[Mapping[str, str]] = None,
) -> Database:
    """
    Build the normalized graph from a raw payload.

    Args:
        raw:     Mapping of collection name -> list of row dicts, or an
                 already validated ``RawPayload``.
        aliases: Optional person alias table; defaults to ``PERSON_ALIASES``.

    Raises:
        PayloadError: the payload is not a mapping or has no songs list.
    """
    if isinstance(raw, RawPayload):
        payload = raw
    else:
        if not isinstance(raw, Mapping):
            raise PayloadError("Payload must be a mapping of row collections")
        if raw.get("songs") is None:
            raise PayloadError("Payload has no songs collection")
        try:
            payload = RawPayload.model_validate(dict(raw))
        except ValidationError as e:
            raise PayloadError(f"Malformed payload: {e}") from e
    return DatabaseBuilder(payload, aliases=aliases).build()
