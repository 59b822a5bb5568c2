import dataclasses
import logging
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping

from .data import Inserted, InsertResult, Renamed, Song, next_free_id
from .recommender import SimilarityGraph
from .trie import PrefixTrie

logger = logging.getLogger(__name__)


class SongNotFoundError(KeyError):
    def __init__(self, song_id: str):
        super().__init__(song_id)
        self.song_id = song_id

    def __str__(self) -> str:
        return f"song not found: {self.song_id}"


@dataclass(frozen=True)
class CatalogSnapshot:
    """Immutable view of the catalog plus the structures derived from it."""

    songs: tuple[Song, ...]
    by_id: Mapping[str, Song]
    graph: SimilarityGraph
    trie: PrefixTrie

    @classmethod
    def build(cls, songs: Iterable[Song]) -> "CatalogSnapshot":
        ordered = tuple(songs)
        return cls(
            songs=ordered,
            by_id=MappingProxyType({song.id: song for song in ordered}),
            graph=SimilarityGraph(ordered),
            trie=PrefixTrie([song.title for song in ordered]),
        )


class SongCatalog:
    """Authoritative in-memory song collection.

    Each successful mutation rebuilds the similarity graph and title trie from
    scratch and publishes them as a new snapshot. Readers grab `snapshot()`
    once per query and never see a partially rebuilt structure.
    """

    def __init__(self, songs: Iterable[Song] | None = None):
        self._songs: dict[str, Song] = {}
        self._write_lock = threading.Lock()
        self._snapshot = CatalogSnapshot.build(())
        if songs is not None:
            self.bulk_load(songs)

    def snapshot(self) -> CatalogSnapshot:
        return self._snapshot

    def _publish(self) -> None:
        self._snapshot = CatalogSnapshot.build(self._songs.values())

    def _insert(self, song: Song) -> InsertResult:
        if song.id not in self._songs:
            self._songs[song.id] = song
            return Inserted(song.id)
        new_id = next_free_id(self._songs)
        logger.warning("Duplicate song id %s; stored as %s", song.id, new_id)
        self._songs[new_id] = dataclasses.replace(song, id=new_id)
        return Renamed(song.id, new_id)

    def add(self, song: Song) -> InsertResult:
        with self._write_lock:
            result = self._insert(song)
            self._publish()
            return result

    def bulk_load(self, songs: Iterable[Song]) -> list[InsertResult]:
        with self._write_lock:
            results = [self._insert(song) for song in songs]
            if results:
                self._publish()
            return results

    def update(self, song: Song) -> bool:
        with self._write_lock:
            if song.id not in self._songs:
                return False
            self._songs[song.id] = song
            self._publish()
            return True

    def delete(self, song_id: str) -> bool:
        with self._write_lock:
            if self._songs.pop(song_id, None) is None:
                return False
            self._publish()
            return True

    def get(self, song_id: str) -> Song:
        song = self._snapshot.by_id.get(song_id)
        if song is None:
            raise SongNotFoundError(song_id)
        return song

    def find(self, song_id: str) -> Song | None:
        return self._snapshot.by_id.get(song_id)

    def songs(self) -> tuple[Song, ...]:
        return self._snapshot.songs

    def filter(self, title: str | None = None, genre: str | None = None) -> list[Song]:
        """Plain (non-concurrent) title/genre containment filter; both must match when given."""
        title = title.lower() if title else None
        genre = genre.lower() if genre else None
        return [
            song
            for song in self._snapshot.songs
            if (title is None or title in song.title.lower())
            and (genre is None or genre in song.genre.lower())
        ]

    def __contains__(self, song_id: str) -> bool:
        return song_id in self._snapshot.by_id

    def __len__(self) -> int:
        return len(self._snapshot.songs)
