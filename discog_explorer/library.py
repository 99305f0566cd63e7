"""
Discography Library

Holds the current database and swaps it atomically on refresh. A payload
that fails to build leaves the previous graph in place.

The JSON payload file is produced by the fetch layer. Set the
DISCOGRAPHY_PAYLOAD_PATH environment variable to point the servers at it,
and use DiscographyLibrary.from_env() to get an instance only when
configured.
"""

import json
import os
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from .database import Database, PayloadError, build_database


class LibraryNotLoadedError(RuntimeError):
    """Raised when the library is queried before any payload was loaded."""


def _configured_payload_path() -> Optional[Path]:
    """Return the payload path from env var, or None if not configured."""
    env_path = os.environ.get("DISCOGRAPHY_PAYLOAD_PATH")
    return Path(env_path) if env_path else None


class DiscographyLibrary:
    """Owner of the "current" graph."""

    def __init__(self, payload_path: Optional[Path] = None) -> None:
        self.payload_path = payload_path
        self._db: Optional[Database] = None

    @classmethod
    def from_env(cls) -> Optional["DiscographyLibrary"]:
        """Return a DiscographyLibrary if DISCOGRAPHY_PAYLOAD_PATH is set, else None."""
        path = _configured_payload_path()
        if path is None:
            logger.info("DISCOGRAPHY_PAYLOAD_PATH not set, no payload to load.")
            return None
        return cls(path)

    @property
    def is_loaded(self) -> bool:
        return self._db is not None

    @property
    def database(self) -> Database:
        if self._db is None:
            raise LibraryNotLoadedError("No discography payload has been loaded")
        return self._db

    def load(self, raw: Any) -> Database:
        """
        Build a graph from ``raw`` and make it current.

        On a structural payload error the previous graph is kept and the
        error is re-raised.
        """
        try:
            db = build_database(raw)
        except PayloadError as e:
            if self._db is not None:
                logger.error(f"Payload rejected, keeping previous database: {e}")
            else:
                logger.error(f"Payload rejected: {e}")
            raise
        self._db = db
        return db

    def load_file(self, path: Optional[Path] = None) -> Database:
        """Read a JSON payload from disk (defaults to ``payload_path``)."""
        path = Path(path) if path is not None else self.payload_path
        if path is None:
            raise FileNotFoundError("No payload path configured")
        if not path.exists():
            raise FileNotFoundError(f"Payload file not found at {path}")

        with path.open("r", encoding="utf-8") as fh:
            try:
                raw = json.load(fh)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                logger.error(f"Payload file {path} is not valid UTF-8 JSON: {e}")
                raise PayloadError(f"Payload file {path} is not valid UTF-8 JSON") from e

        logger.info(f"Loading discography payload from {path}")
        return self.load(raw)

    def reload(self) -> Database:
        return self.load_file()
