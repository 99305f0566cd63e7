"""
Data Models for the Discography Explorer

Three layers live here:

* Raw row models, one per source collection of the spreadsheet payload.
  Their ``mode="before"`` validators implement the coercion rules so the
  rest of the pipeline never sees stringified numbers or booleans.
* The normalized graph (songs, releases, people, credits, artwork) built
  by ``database.build_database``. Graph models are frozen.
* Query inputs and results (``FilterSpec``, word stats, trends, rollups).
"""

import json
import math
from enum import Enum
from typing import Optional, List, Dict, Any, Literal, ClassVar, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------

_TRUE_STRINGS = {"true", "yes", "1"}


def parse_bool(value: Any) -> bool:
    """'true'/'yes'/'1' (any case) are true; other strings are false."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    if value is None:
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


def parse_number(value: Any) -> float:
    """Numeric strings become numbers; anything unparseable becomes 0."""
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if value is None:
        return 0.0
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def parse_text(value: Any) -> str:
    """None becomes ''; integral floats drop their trailing '.0'."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def parse_top_words(value: Any) -> List["WordCount"]:
    """
    Decode the ``top_words_json`` column.

    Accepts a JSON string or an already-decoded list. Anything malformed
    (bad JSON, wrong shape, entries without a word) is dropped instead of
    raising, so one bad cell never aborts the build.
    """
    if isinstance(value, str):
        if not value.strip():
            return []
        try:
            value = json.loads(value)
        except (json.JSONDecodeError, ValueError):
            return []
    if not isinstance(value, list):
        return []

    words: List[WordCount] = []
    for entry in value:
        if not isinstance(entry, dict):
            continue
        word = parse_text(entry.get("word")).strip()
        if not word:
            continue
        words.append(WordCount(word=word, count=int(parse_number(entry.get("count")))))
    return words[:10]


def format_number(value: float) -> str:
    """Render 120.0 as '120' and 92.5 as '92.5'."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class RoleCategory(str, Enum):
    AUDIO = "audio"
    PERFORMANCE = "performance"
    VISUAL = "visual"


class RoleKind(str, Enum):
    """Closed taxonomy of credit roles. Unlisted names resolve to OTHER."""

    MIXING = "mixing"
    MASTERING = "mastering"
    PRODUCTION = "production"
    FEATURED_VOCALS = "featured_vocals"
    GUITAR = "guitar"
    BASS = "bass"
    SYNTHS = "synths"
    UKULELE = "ukulele"
    BACKING_VOCALS = "backing_vocals"
    PHOTOGRAPHER = "photographer"
    DESIGNER = "designer"
    ARTIST_3D = "3d_artist"
    DIGITAL_ARTIST = "digital_artist"
    GRAPHIC_DESIGNER = "graphic_designer"
    ILLUSTRATOR = "illustrator"
    OTHER = "other"

    @classmethod
    def from_name(cls, name: str) -> "RoleKind":
        normalized = name.strip().lower().replace(" ", "_")
        try:
            return cls(normalized)
        except ValueError:
            return cls.OTHER


ROLE_CATEGORIES: Dict[RoleKind, RoleCategory] = {
    RoleKind.MIXING: RoleCategory.AUDIO,
    RoleKind.MASTERING: RoleCategory.AUDIO,
    RoleKind.PRODUCTION: RoleCategory.AUDIO,
    RoleKind.FEATURED_VOCALS: RoleCategory.PERFORMANCE,
    RoleKind.GUITAR: RoleCategory.PERFORMANCE,
    RoleKind.BASS: RoleCategory.PERFORMANCE,
    RoleKind.SYNTHS: RoleCategory.PERFORMANCE,
    RoleKind.UKULELE: RoleCategory.PERFORMANCE,
    RoleKind.BACKING_VOCALS: RoleCategory.PERFORMANCE,
    RoleKind.PHOTOGRAPHER: RoleCategory.VISUAL,
    RoleKind.DESIGNER: RoleCategory.VISUAL,
    RoleKind.ARTIST_3D: RoleCategory.VISUAL,
    RoleKind.DIGITAL_ARTIST: RoleCategory.VISUAL,
    RoleKind.GRAPHIC_DESIGNER: RoleCategory.VISUAL,
    RoleKind.ILLUSTRATOR: RoleCategory.VISUAL,
    RoleKind.OTHER: RoleCategory.PERFORMANCE,
}


class KeyQuality(str, Enum):
    MAJOR = "major"
    MINOR = "minor"

    @classmethod
    def from_key(cls, key: str) -> "KeyQuality":
        """
        'contains minor' or 'ends with m' (case-insensitive) is minor.
        Everything else, including an empty key, is major.
        """
        lower = (key or "").lower()
        if "minor" in lower or lower.endswith("m"):
            return cls.MINOR
        return cls.MAJOR


class ReleaseType(str, Enum):
    SINGLE = "single"
    EP = "ep"
    ALBUM = "album"
    UNKNOWN = "unknown"

    @classmethod
    def from_text(cls, text: str) -> "ReleaseType":
        try:
            return cls(text.strip().lower())
        except ValueError:
            return cls.UNKNOWN


class TrendMetric(str, Enum):
    SONG_COUNT = "song_count"
    AVG_WORD_COUNT = "avg_word_count"
    AVG_DURATION = "avg_duration"
    AVG_BPM = "avg_bpm"
    FEATURED_COUNT = "featured_count"
    EXPLICIT_COUNT = "explicit_count"


# ---------------------------------------------------------------------------
# Shared value types
# ---------------------------------------------------------------------------

class GraphModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class WordCount(GraphModel):
    word: str
    count: int


# ---------------------------------------------------------------------------
# Raw payload rows
# ---------------------------------------------------------------------------

class RawRow(BaseModel):
    """Base for spreadsheet rows: extra columns are ignored."""

    model_config = ConfigDict(extra="ignore")

    # Columns named here get the matching coercion; PASSTHROUGH columns
    # are left to the subclass validators.
    BOOL_FIELDS: ClassVar[tuple] = ()
    NUMBER_FIELDS: ClassVar[tuple] = ()
    PASSTHROUGH: ClassVar[tuple] = ()

    @field_validator("*", mode="before")
    @classmethod
    def _coerce(cls, value: Any, info) -> Any:
        if info.field_name in cls.PASSTHROUGH:
            return value
        if info.field_name in cls.BOOL_FIELDS:
            return parse_bool(value)
        if info.field_name in cls.NUMBER_FIELDS:
            return parse_number(value)
        annotation = cls.model_fields[info.field_name].annotation
        if annotation is str:
            return parse_text(value)
        return value


class RawSong(RawRow):
    BOOL_FIELDS: ClassVar[tuple] = ("is_published", "is_explicit", "has_video")
    NUMBER_FIELDS: ClassVar[tuple] = ("year", "duration_sec", "bpm")

    song_id: str = ""
    title: str = ""
    release_id: str = ""
    release_date: str = ""
    year: float = 0
    is_published: bool = False
    is_explicit: bool = False
    has_video: bool = False
    lyrics_category_id: str = ""
    perspective_id: str = ""
    distributor_id: str = ""
    label_id: str = ""
    duration_sec: float = 0
    bpm: float = 0
    key: str = ""


class RawRelease(RawRow):
    BOOL_FIELDS: ClassVar[tuple] = ("is_published",)
    NUMBER_FIELDS: ClassVar[tuple] = ("year",)

    release_id: str = ""
    title: str = ""
    release_type: str = ""
    release_date: str = ""
    year: float = 0
    is_published: bool = False
    cover_art_id: str = ""


class RawPerson(RawRow):
    person_id: str = ""
    name: str = ""


class RawSongCredit(RawRow):
    song_credit_id: str = ""
    song_id: str = ""
    person_id: str = ""
    person_name: str = ""
    credit_role_id: str = ""
    credit_detail: str = ""


class RawCreditRole(RawRow):
    credit_role_id: str = ""
    name: str = ""
    category: str = ""


class RawLyrics(RawRow):
    PASSTHROUGH: ClassVar[tuple] = ("lyrics_text",)

    song_id: str = ""
    lyrics_text: str = ""

    @field_validator("lyrics_text", mode="before")
    @classmethod
    def _only_strings(cls, value: Any) -> str:
        # Non-string lyric cells are treated as absent text.
        return value if isinstance(value, str) else ""


class RawSongStats(RawRow):
    BOOL_FIELDS: ClassVar[tuple] = ("has_featured_vocalist",)
    NUMBER_FIELDS: ClassVar[tuple] = ("word_count", "unique_word_count", "featured_vocalist_count")

    song_id: str = ""
    word_count: float = 0
    unique_word_count: float = 0
    top_words_json: List[WordCount] = Field(default_factory=list)
    featured_vocalist_count: float = 0
    has_featured_vocalist: bool = False

    @field_validator("top_words_json", mode="before")
    @classmethod
    def _decode_top_words(cls, value: Any) -> List[WordCount]:
        return parse_top_words(value)


class RawArtwork(RawRow):
    NUMBER_FIELDS: ClassVar[tuple] = ("created_year",)

    art_id: str = ""
    image_url: str = ""
    description: str = ""
    art_type_id: str = ""
    created_year: float = 0


class RawReleaseArt(RawRow):
    BOOL_FIELDS: ClassVar[tuple] = ("is_primary",)

    release_id: str = ""
    art_id: str = ""
    is_primary: bool = False


class RawArtCredit(RawRow):
    art_credit_id: str = ""
    art_id: str = ""
    person_id: str = ""
    person_name: str = ""
    credit_role_id: str = ""


class RawArtType(RawRow):
    art_type_id: str = ""
    name: str = ""


class RawDistributor(RawRow):
    distributor_id: str = ""
    name: str = ""


class RawLabel(RawRow):
    label_id: str = ""
    name: str = ""


class RawLyricCategory(RawRow):
    lyrics_category_id: str = ""
    name: str = ""


class RawPerspective(RawRow):
    perspective_id: str = ""
    name: str = ""


class RawPayload(BaseModel):
    """The bag of named row collections delivered by the fetch layer."""

    model_config = ConfigDict(extra="ignore")

    songs: List[RawSong]
    releases: List[RawRelease] = Field(default_factory=list)
    people: List[RawPerson] = Field(default_factory=list)
    song_credits: List[RawSongCredit] = Field(default_factory=list)
    credit_roles: List[RawCreditRole] = Field(default_factory=list)
    lyrics: List[RawLyrics] = Field(default_factory=list)
    song_stats: List[RawSongStats] = Field(default_factory=list)
    artwork: List[RawArtwork] = Field(default_factory=list)
    release_art: List[RawReleaseArt] = Field(default_factory=list)
    art_credits: List[RawArtCredit] = Field(default_factory=list)
    art_types: List[RawArtType] = Field(default_factory=list)
    distributors: List[RawDistributor] = Field(default_factory=list)
    labels: List[RawLabel] = Field(default_factory=list)
    lyric_categories: List[RawLyricCategory] = Field(default_factory=list)
    perspectives: List[RawPerspective] = Field(default_factory=list)

    @field_validator("*", mode="before")
    @classmethod
    def _rows_only(cls, value: Any, info) -> Any:
        # Optional collections that are null or not lists become empty;
        # non-mapping rows inside a collection are skipped.
        if info.field_name == "songs":
            return value
        if not isinstance(value, list):
            return []
        return [row for row in value if isinstance(row, dict)]

    @field_validator("songs", mode="before")
    @classmethod
    def _song_rows_only(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [row for row in value if isinstance(row, dict)]
        return value


# ---------------------------------------------------------------------------
# Normalized graph
# ---------------------------------------------------------------------------

class CreditRole(GraphModel):
    credit_role_id: str
    name: str
    kind: RoleKind
    category: RoleCategory

    @property
    def display_name(self) -> str:
        return self.name.replace("_", " ")


class Person(GraphModel):
    person_id: str
    name: str


class Taxonomy(GraphModel):
    """Lyric categories, perspectives, art types, distributors, labels."""

    id: str
    name: str


class Release(GraphModel):
    release_id: str
    title: str = ""
    release_type: ReleaseType = ReleaseType.UNKNOWN
    # As written in the sheet, including types outside the enum
    release_type_text: str = ""
    release_date: str = ""
    year: int = 0
    is_published: bool = False
    cover_art_id: str = ""


class SongStats(GraphModel):
    song_id: str = ""
    word_count: int = 0
    unique_word_count: int = 0
    top_words: List[WordCount] = Field(default_factory=list)
    featured_vocalist_count: int = 0
    has_featured_vocalist: bool = False


class Lyrics(GraphModel):
    song_id: str
    lyrics_text: str = ""


class SongCredit(GraphModel):
    song_credit_id: str = ""
    song_id: str
    person_id: str
    credit_role_id: str
    credit_detail: str = ""
    person: Optional[Person] = None
    role: Optional[CreditRole] = None


class ArtCredit(GraphModel):
    art_credit_id: str = ""
    art_id: str
    person_id: str
    credit_role_id: str
    person: Optional[Person] = None
    role: Optional[CreditRole] = None


class ReleaseArt(GraphModel):
    release_id: str
    art_id: str
    is_primary: bool = False


class Artwork(GraphModel):
    art_id: str
    image_url: str = ""
    description: str = ""
    art_type_id: str = ""
    art_type_name: str = ""
    created_year: int = 0
    credits: List[ArtCredit] = Field(default_factory=list)
    release: Optional[Release] = None


class Song(GraphModel):
    """A song with every reference resolved."""

    song_id: str
    title: str = ""
    release_id: str = ""
    release_date: str = ""
    year: int = 0
    is_published: bool = False
    is_explicit: bool = False
    has_video: bool = False
    lyrics_category_id: str = ""
    perspective_id: str = ""
    distributor_id: str = ""
    label_id: str = ""
    duration_sec: float = 0
    bpm: float = 0
    key: str = ""
    title_length: int = 0
    key_quality: KeyQuality = KeyQuality.MAJOR

    release: Optional[Release] = None
    category_name: str = ""
    perspective_name: str = ""
    distributor_name: str = ""
    label_name: str = ""
    stats: SongStats = Field(default_factory=SongStats)
    lyrics_text: str = ""
    credits: List[SongCredit] = Field(default_factory=list)
    cover_art: Optional[Artwork] = None

    @property
    def release_title(self) -> str:
        return self.release.title if self.release else ""

    @property
    def is_independent(self) -> bool:
        return not self.label_id

    @property
    def has_featured(self) -> bool:
        """True when stats report a featured vocalist or a featured_vocals credit exists."""
        if self.stats.has_featured_vocalist or self.stats.featured_vocalist_count > 0:
            return True
        return any(
            c.role is not None and c.role.kind is RoleKind.FEATURED_VOCALS
            for c in self.credits
        )

    def duration_formatted(self) -> str:
        if self.duration_sec <= 0:
            return "--:--"
        minutes, seconds = divmod(int(round(self.duration_sec)), 60)
        return f"{minutes}:{seconds:02d}"


class DatabaseMeta(GraphModel):
    years: List[int] = Field(default_factory=list)
    all_keys: List[str] = Field(default_factory=list)
    bpm_range: Tuple[float, float] = (0.0, 0.0)
    word_count_range: Tuple[int, int] = (0, 0)
    duration_range: Tuple[float, float] = (0.0, 0.0)
    total_songs: int = 0


# ---------------------------------------------------------------------------
# Query inputs
# ---------------------------------------------------------------------------

class FilterSpec(BaseModel):
    """
    Composable song filter. Every field is optional; an empty list, None
    or "" means no constraint for that field. Fields combine with AND.

    Both snake_case and camelCase names are accepted (``isExplicit``).
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    years: List[int] = Field(default_factory=list)
    releases: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    perspectives: List[str] = Field(default_factory=list)
    keys: List[str] = Field(default_factory=list)
    is_published: Optional[bool] = None
    is_explicit: Optional[bool] = None
    has_video: Optional[bool] = None
    has_featured: Optional[bool] = None
    key_quality: Literal["all", "major", "minor"] = "all"
    people: List[str] = Field(default_factory=list)
    search_query: str = ""
    lyric_search: str = ""

    @field_validator("years", "releases", "categories", "perspectives", "keys", "people",
                     mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("key_quality", mode="before")
    @classmethod
    def _blank_is_all(cls, value: Any) -> Any:
        return value or "all"

    @field_validator("search_query", "lyric_search", mode="before")
    @classmethod
    def _none_is_blank(cls, value: Any) -> Any:
        return value or ""


# ---------------------------------------------------------------------------
# Query results
# ---------------------------------------------------------------------------

class WordStats(GraphModel):
    word_count: int = 0
    unique_word_count: int = 0
    top_words: List[WordCount] = Field(default_factory=list)


class LyricMatch(GraphModel):
    song: Song
    count: int
    lyrics_text: str


class LyricSearchResult(GraphModel):
    matches: List[LyricMatch] = Field(default_factory=list)
    total_occurrences: int = 0


class PersonStats(GraphModel):
    person: Optional[Person] = None
    total_songs: int = 0
    total_credits: int = 0
    role_breakdown: Dict[str, List[str]] = Field(default_factory=dict)
    songs: List[Song] = Field(default_factory=list)
    credits: List[SongCredit] = Field(default_factory=list)
    art_credits: List[ArtCredit] = Field(default_factory=list)


class TrendPoint(GraphModel):
    year: int
    value: int


class CategoryTrend(GraphModel):
    years: List[int] = Field(default_factory=list)
    series: Dict[str, List[TrendPoint]] = Field(default_factory=dict)


class PersonCount(GraphModel):
    person_id: str
    name: str
    count: int


class LibrarySummary(GraphModel):
    total: int = 0
    explicit: int = 0
    has_video: int = 0
    published: int = 0
    has_featured: int = 0
    no_featured: int = 0
    total_words: int = 0
    avg_words: int = 0
    total_duration: float = 0
    avg_duration: int = 0
    avg_bpm: int = 0
    category_breakdown: Dict[str, int] = Field(default_factory=dict)
    perspective_breakdown: Dict[str, int] = Field(default_factory=dict)
    key_breakdown: Dict[str, int] = Field(default_factory=dict)
    major_count: int = 0
    minor_count: int = 0
    most_used_key: Optional[str] = None
    most_used_key_count: int = 0
    most_used_bpm: Optional[float] = None
    most_used_bpm_count: int = 0
    top_vocalists: List[PersonCount] = Field(default_factory=list)
    top_mixers: List[PersonCount] = Field(default_factory=list)
    top_masters: List[PersonCount] = Field(default_factory=list)
    longest_song: Optional[str] = None
    shortest_song: Optional[str] = None
    longest_duration: Optional[str] = None
    shortest_duration: Optional[str] = None
    top_words: List[WordCount] = Field(default_factory=list)


class SongEdge(GraphModel):
    source: str
    target: str
    type: Literal["collaborator", "key", "category"]

