"""
Song sources.

Title lookup is accent- and case-insensitive. Resolution order for a name:
1. exact normalized title
2. title starting with the name
3. title containing every word of the name
4. title containing at least 70% of the words
5. first candidate from the broad (substring / per-word) match
"""
import json
import math
import unicodedata
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Union

from worship_assistant.core.config import get_settings
from worship_assistant.core.logging import get_logger
from worship_assistant.services.ai.schema import Song

logger = get_logger(__name__)

MIN_NAME_LENGTH = 2
WORD_MATCH_RATIO = 0.7


def normalize_for_search(text: str) -> str:
    """Lowercase, strip accents and surrounding whitespace."""
    decomposed = unicodedata.normalize("NFD", text.lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).strip()


class SongSource(Protocol):
    """Read access to the song catalog."""

    def list_songs(self, limit: Optional[int] = None) -> List[Song]:
        ...

    def find_by_title(self, name: str) -> Optional[Song]:
        ...


def _words(text: str) -> List[str]:
    return [word for word in text.split() if word]


def _matches_enough_words(title: str, words: List[str]) -> bool:
    if not words:
        return False
    matching = sum(1 for word in words if word in title)
    return matching >= math.ceil(len(words) * WORD_MATCH_RATIO)


class InMemorySongSource:
    """SongSource over a list held in memory, ordered by title."""

    def __init__(self, songs: Iterable[Song] = ()):
        self._songs: List[Song] = sorted(songs, key=lambda song: normalize_for_search(song.title))

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "InMemorySongSource":
        """
        Load a catalog from a JSON array of songs:
        [{"id": "...", "title": "...", "lyrics": [...], "chords": [...], "youtube_link": "..."}]
        """
        with open(path, "r", encoding="utf-8") as handle:
            payload = json.load(handle)
        if not isinstance(payload, list):
            raise ValueError(f"Song catalog {path} must contain a JSON array")
        songs = [Song.model_validate(item) for item in payload]
        logger.info("song_catalog_loaded", path=str(path), songs=len(songs))
        return cls(songs)

    def __len__(self) -> int:
        return len(self._songs)

    def list_songs(self, limit: Optional[int] = None) -> List[Song]:
        if limit is None:
            return list(self._songs)
        return self._songs[:max(limit, 0)]

    def _broad_candidates(self, normalized_name: str) -> List[Song]:
        candidates = [
            song for song in self._songs if normalized_name in normalize_for_search(song.title)
        ]
        if candidates:
            return candidates

        words = _words(normalized_name)
        if len(words) > 1:
            candidates = [
                song
                for song in self._songs
                if any(
                    word in normalize_for_search(song.title)
                    for word in words
                    if len(word) >= MIN_NAME_LENGTH
                )
            ]
            if candidates:
                return candidates

        return [
            song
            for song in self._songs
            if _matches_enough_words(normalize_for_search(song.title), words)
        ]

    def find_by_title(self, name: str) -> Optional[Song]:
        clean_name = (name or "").lstrip("@").strip().rstrip("?!.,;:").strip()
        if len(clean_name) < MIN_NAME_LENGTH:
            return None

        normalized_name = normalize_for_search(clean_name)
        candidates = self._broad_candidates(normalized_name)
        if not candidates:
            logger.info("song_not_found", name=clean_name)
            return None

        titled = [(normalize_for_search(song.title), song) for song in candidates]
        words = _words(normalized_name)

        for title, song in titled:
            if title == normalized_name:
                return song
        for title, song in titled:
            if title.startswith(normalized_name):
                return song
        if len(words) > 1:
            for title, song in titled:
                if all(word in title for word in words):
                    return song
            for title, song in titled:
                if _matches_enough_words(title, words):
                    return song

        logger.debug("song_best_effort_match", name=clean_name, title=candidates[0].title)
        return candidates[0]


_song_source: Optional[SongSource] = None


def get_song_source() -> SongSource:
    """Global singleton accessor; loads CATALOG_PATH when configured, else empty."""
    global _song_source
    if _song_source is None:
        settings = get_settings()
        if settings.catalog_path:
            _song_source = InMemorySongSource.from_json(settings.catalog_path)
        else:
            logger.warning("song_catalog_empty", message="CATALOG_PATH not set; catalog is empty.")
            _song_source = InMemorySongSource()
    return _song_source


def set_song_source(source: Optional[SongSource]) -> None:
    """Replace the global catalog (used at startup wiring and in tests)."""
    global _song_source
    _song_source = source
