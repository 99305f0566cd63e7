"""
FastMCP Server for the Discography Explorer

Exposes song filtering, lyric search, trends and credit rollups over the
loaded discography as MCP tools.

The payload is read from the JSON file named by DISCOGRAPHY_PAYLOAD_PATH
on the first tool call.

Run over stdio:
  python -m discog_explorer.mcp_server

Run over HTTP (SSE):
  python -m discog_explorer.mcp_server --transport sse [--host 127.0.0.1] [--port 8000]
"""

import os
import signal
import sys
from typing import Optional, List, Dict, Any

from fastmcp import FastMCP
from loguru import logger

from .analytics import (
    get_category_trend_data,
    get_library_summary,
    get_person_stats,
    get_trend_data,
)
from .database import Database, PayloadError
from .filters import apply_filters
from .library import DiscographyLibrary
from .lyrics import get_top_words_across_all, search_lyrics
from .models import FilterSpec, RoleKind, Song, TrendMetric

# ---------------------------------------------------------------------------
# Global state
# ---------------------------------------------------------------------------

mcp = FastMCP("Discography Explorer")

library: Optional[DiscographyLibrary] = None


def _ensure_initialized() -> Database:
    """Lazy-load the payload on first tool call."""
    global library
    if library is not None and library.is_loaded:
        return library.database

    library = DiscographyLibrary.from_env()
    if library is None:
        raise RuntimeError("DISCOGRAPHY_PAYLOAD_PATH is not set")
    db = library.load_file()
    logger.info(f"MCP server ready with {db.meta.total_songs} songs")
    return db


def _song_summary(song: Song) -> Dict[str, Any]:
    return {
        "song_id": song.song_id,
        "title": song.title,
        "year": song.year,
        "release": song.release_title or "Unknown",
        "category": song.category_name,
        "perspective": song.perspective_name,
        "key": song.key,
        "key_quality": song.key_quality.value,
        "bpm": song.bpm,
        "duration": song.duration_formatted(),
        "is_explicit": song.is_explicit,
        "word_count": song.stats.word_count,
        "featured": [
            c.person.name for c in song.credits
            if c.person and c.role and c.role.kind is RoleKind.FEATURED_VOCALS
        ],
    }


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------

@mcp.tool()
async def get_library_meta() -> Dict[str, Any]:
    """
    Get the shape of the loaded discography.

    Returns:
        Years, keys, bpm/word count/duration ranges and entity totals.
    """
    try:
        db = _ensure_initialized()
    except (RuntimeError, FileNotFoundError, PayloadError) as e:
        return {"error": str(e)}
    return {
        **db.meta.model_dump(),
        "releases": len(db.releases),
        "people": len(db.people),
        "artwork": len(db.artwork),
        "categories": [c.name for c in db.lyric_categories],
        "perspectives": [p.name for p in db.perspectives],
    }


@mcp.tool()
async def search_songs(
    query: str = "",
    lyric_search: str = "",
    years: Optional[List[int]] = None,
    categories: Optional[List[str]] = None,
    people: Optional[List[str]] = None,
    is_explicit: Optional[bool] = None,
    has_featured: Optional[bool] = None,
    key_quality: str = "all",
    limit: int = 50,
) -> List[Dict[str, Any]]:
    """
    Filter songs. Every argument is optional and they combine with AND.

    Args:
        query: Free text matched against title, year, key, bpm, category,
            perspective, release and credited names/roles.
        lyric_search: Substring that must appear in the lyrics.
        years: Release years to include.
        categories: Lyric category names to include.
        people: Person ids; songs crediting any of them match.
        is_explicit: Only explicit (True) or clean (False) songs.
        has_featured: Only songs with (True) or without (False) a featured vocalist.
        key_quality: all, major or minor.
        limit: Maximum results (default 50).
    """
    try:
        db = _ensure_initialized()
    except (RuntimeError, FileNotFoundError, PayloadError) as e:
        return [{"error": str(e)}]

    spec = FilterSpec(
        search_query=query,
        lyric_search=lyric_search,
        years=years,
        categories=categories,
        people=people,
        is_explicit=is_explicit,
        has_featured=has_featured,
        key_quality=key_quality if key_quality in ("all", "major", "minor") else "all",
    )
    return [_song_summary(s) for s in apply_filters(db.songs, spec, db.person_id_remap)[:max(1, limit)]]


@mcp.tool()
async def get_song(song_id: str) -> Dict[str, Any]:
    """
    Get one song with credits, stats and lyrics.

    Args:
        song_id: Song id (e.g. 's-001').
    """
    try:
        db = _ensure_initialized()
    except (RuntimeError, FileNotFoundError, PayloadError) as e:
        return {"error": str(e)}
    song = db.indexes.songs.get(song_id)
    if song is None:
        return {"error": f"Song {song_id} not found"}
    return {
        **_song_summary(song),
        "credits": [
            {
                "person_id": c.person_id,
                "name": c.person.name if c.person else "",
                "role": c.role.display_name if c.role else c.credit_role_id,
                "detail": c.credit_detail,
            }
            for c in song.credits
        ],
        "top_words": [w.model_dump() for w in song.stats.top_words],
        "cover_art": song.cover_art.image_url if song.cover_art else None,
        "lyrics": song.lyrics_text,
    }


@mcp.tool()
async def get_person(person_id: str) -> Dict[str, Any]:
    """
    Get everything one person is credited on.

    Args:
        person_id: Person id (e.g. 'p-001').
    """
    try:
        db = _ensure_initialized()
    except (RuntimeError, FileNotFoundError, PayloadError) as e:
        return {"error": str(e)}
    stats = get_person_stats(db, person_id)
    if stats.person is None:
        return {"error": f"Person {person_id} not found"}
    return {
        "person": stats.person.model_dump(),
        "total_songs": stats.total_songs,
        "total_credits": stats.total_credits,
        "role_breakdown": stats.role_breakdown,
        "songs": [_song_summary(s) for s in stats.songs],
        "artwork_credits": len(stats.art_credits),
    }


@mcp.tool()
async def get_trend(metric: str = "song_count") -> Dict[str, Any]:
    """
    Year-over-year series for one metric.

    Args:
        metric: song_count, avg_word_count, avg_duration, avg_bpm,
            featured_count or explicit_count.
    """
    try:
        db = _ensure_initialized()
    except (RuntimeError, FileNotFoundError, PayloadError) as e:
        return {"error": str(e)}
    known = [m.value for m in TrendMetric]
    used = metric if metric in known else TrendMetric.SONG_COUNT.value
    return {
        "metric": used,
        "points": [p.model_dump() for p in get_trend_data(db, used)],
    }


@mcp.tool()
async def get_category_trend() -> Dict[str, Any]:
    """Songs per lyric category per year."""
    try:
        db = _ensure_initialized()
    except (RuntimeError, FileNotFoundError, PayloadError) as e:
        return {"error": str(e)}
    return get_category_trend_data(db).model_dump()


@mcp.tool()
async def search_lyric_text(query: str, limit: int = 20) -> Dict[str, Any]:
    """
    Count literal occurrences of a phrase across all lyrics.

    Args:
        query: Phrase to search for (case-insensitive, not a regex).
        limit: Maximum songs returned (default 20).
    """
    try:
        db = _ensure_initialized()
    except (RuntimeError, FileNotFoundError, PayloadError) as e:
        return {"error": str(e)}
    result = search_lyrics(db.songs, db.lyrics, query)
    return {
        "query": query,
        "total_occurrences": result.total_occurrences,
        "songs_matched": len(result.matches),
        "matches": [
            {"song_id": m.song.song_id, "title": m.song.title, "count": m.count}
            for m in result.matches[:max(1, limit)]
        ],
    }


@mcp.tool()
async def get_top_words(year: Optional[int] = None) -> List[Dict[str, Any]]:
    """
    Most frequent non-stopwords across the lyrics.

    Args:
        year: Restrict to songs from this year. Optional.
    """
    try:
        db = _ensure_initialized()
    except (RuntimeError, FileNotFoundError, PayloadError) as e:
        return [{"error": str(e)}]
    songs = apply_filters(db.songs, FilterSpec(years=[year] if year else []))
    return [w.model_dump() for w in get_top_words_across_all(songs)]


@mcp.tool()
async def get_summary() -> Dict[str, Any]:
    """Stats-panel summary of the whole discography."""
    try:
        db = _ensure_initialized()
    except (RuntimeError, FileNotFoundError, PayloadError) as e:
        return {"error": str(e)}
    return get_library_summary(db).model_dump()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main():
    """Run the MCP server."""
    import argparse

    def handle_shutdown(sig, frame):
        logger.info("Shutting down MCP server...")
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_shutdown)
    signal.signal(signal.SIGTERM, handle_shutdown)

    parser = argparse.ArgumentParser()
    parser.add_argument("--transport", default="stdio", choices=["stdio", "sse"])
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    # stdout belongs to the stdio transport
    logger.remove()
    logger.add(sys.stderr, level=os.environ.get("DISCOGRAPHY_LOG_LEVEL", "INFO"))

    logger.info("Starting Discography Explorer MCP server...")

    if args.transport == "sse":
        mcp.run(transport="sse", host=args.host, port=args.port)
    else:
        mcp.run()


if __name__ == "__main__":
    main()
