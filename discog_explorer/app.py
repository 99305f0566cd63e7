"""
FastAPI Web Application for the Discography Explorer

Endpoints:
  GET  /api/meta                  - Years, keys and value ranges
  POST /api/songs/filter          - Filter songs with a FilterSpec body
  POST /api/songs/edges           - Connection graph for the filtered songs
  GET  /api/songs/{song_id}       - One song with credits and lyrics
  GET  /api/people/{person_id}    - Person rollup
  GET  /api/trends/categories     - Songs per category per year
  GET  /api/trends/{metric}       - Year-over-year series
  GET  /api/lyrics/search         - Literal lyric search (?q=)
  GET  /api/lyrics/top-words      - Top words across all lyrics
  POST /api/stats                 - Summary for a FilterSpec body
  GET  /api/artwork               - Artwork gallery (?art_type=&person_id=)
  POST /api/reload                - Re-read the payload file
"""

import os
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from .analytics import (
    build_connection_edges,
    get_category_trend_data,
    get_library_summary,
    get_person_stats,
    get_trend_data,
)
from .database import Database, PayloadError
from .filters import apply_filters, art_type_breakdown, filter_artwork
from .library import DiscographyLibrary, LibraryNotLoadedError
from .lyrics import get_top_words_across_all, search_lyrics
from .models import FilterSpec

# ---------------------------------------------------------------------------
# Singletons
# ---------------------------------------------------------------------------

library = DiscographyLibrary()


def _db() -> Database:
    try:
        return library.database
    except LibraryNotLoadedError as e:
        raise HTTPException(status_code=503, detail=str(e))


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app_instance: FastAPI):
    configured = DiscographyLibrary.from_env()
    if configured is not None:
        library.payload_path = configured.payload_path
        try:
            library.load_file()
        except (FileNotFoundError, PayloadError) as e:
            logger.warning(f"Starting without data: {e}")
    yield


app = FastAPI(title="Discography Explorer", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@app.get("/api/meta")
async def meta():
    db = _db()
    return JSONResponse({
        **db.meta.model_dump(mode="json"),
        "categories": [c.name for c in db.lyric_categories],
        "perspectives": [p.name for p in db.perspectives],
        "releases": [
            {"release_id": r.release_id, "title": r.title, "year": r.year}
            for r in db.releases
        ],
        "people": [p.model_dump() for p in db.people],
    })


@app.post("/api/songs/filter")
async def filter_songs(spec: FilterSpec):
    db = _db()
    songs = apply_filters(db.songs, spec, db.person_id_remap)
    return JSONResponse({
        "count": len(songs),
        "songs": [s.model_dump(mode="json", exclude={"lyrics_text"}) for s in songs],
    })


@app.post("/api/songs/edges")
async def song_edges(spec: FilterSpec):
    db = _db()
    songs = apply_filters(db.songs, spec, db.person_id_remap)
    return JSONResponse([e.model_dump() for e in build_connection_edges(songs)])


@app.get("/api/songs/{song_id}")
async def song_detail(song_id: str):
    song = _db().indexes.songs.get(song_id)
    if song is None:
        raise HTTPException(status_code=404, detail="Song not found")
    return JSONResponse(song.model_dump(mode="json"))


@app.get("/api/people/{person_id}")
async def person_detail(person_id: str):
    stats = get_person_stats(_db(), person_id)
    if stats.person is None:
        raise HTTPException(status_code=404, detail="Person not found")
    return JSONResponse(stats.model_dump(mode="json", exclude={"songs": {"__all__": {"lyrics_text"}}}))


@app.get("/api/trends/categories")
async def category_trend():
    return JSONResponse(get_category_trend_data(_db()).model_dump())


@app.get("/api/trends/{metric}")
async def trend(metric: str):
    return JSONResponse([p.model_dump() for p in get_trend_data(_db(), metric)])


@app.get("/api/lyrics/search")
async def lyric_search(q: str = ""):
    db = _db()
    result = search_lyrics(db.songs, db.lyrics, q)
    return JSONResponse({
        "total_occurrences": result.total_occurrences,
        "matches": [
            {
                "song_id": m.song.song_id,
                "title": m.song.title,
                "count": m.count,
                "lyrics_text": m.lyrics_text,
            }
            for m in result.matches
        ],
    })


@app.get("/api/lyrics/top-words")
async def top_words():
    return JSONResponse([w.model_dump() for w in get_top_words_across_all(_db().lyrics)])


@app.post("/api/stats")
async def stats(spec: FilterSpec):
    db = _db()
    summary = get_library_summary(db, apply_filters(db.songs, spec, db.person_id_remap))
    return JSONResponse(summary.model_dump(mode="json"))


@app.get("/api/artwork")
async def artwork(art_type: Optional[str] = None, person_id: Optional[str] = None):
    db = _db()
    matched = filter_artwork(db.artwork, art_type=art_type, person_id=person_id)
    return JSONResponse({
        "count": len(matched),
        "total": len(db.artwork),
        "type_breakdown": art_type_breakdown(db.artwork),
        "artwork": [a.model_dump(mode="json") for a in matched],
    })


@app.post("/api/reload")
async def reload():
    if library.payload_path is None:
        raise HTTPException(status_code=400, detail="DISCOGRAPHY_PAYLOAD_PATH is not set")
    try:
        db = library.reload()
    except (FileNotFoundError, PayloadError) as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"success": True, "songs": db.meta.total_songs}


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main():
    logger.remove()
    logger.add(sys.stderr, level=os.environ.get("DISCOGRAPHY_LOG_LEVEL", "INFO"))

    port = int(os.environ.get("DISCOGRAPHY_PORT", "8888"))
    logger.info(f"Starting Discography Explorer on port {port}")
    uvicorn.run(
        "discog_explorer.app:app",
        host="0.0.0.0",
        port=port,
        reload=False,
    )


if __name__ == "__main__":
    main()
