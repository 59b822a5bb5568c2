import logging
from typing import Iterable

import numpy as np

from .data import Song

logger = logging.getLogger(__name__)

GENRE_WEIGHT = 0.6
ARTIST_WEIGHT = 0.3
YEAR_WEIGHT = 0.1
YEAR_WINDOW = 2


def similarity_score(a: Song, b: Song) -> float:
    """Additive metadata heuristic: same genre, same artist, release years within two."""
    score = 0.0
    if a.genre.lower() == b.genre.lower():
        score += GENRE_WEIGHT
    if a.artist.lower() == b.artist.lower():
        score += ARTIST_WEIGHT
    if abs(a.year - b.year) <= YEAR_WINDOW:
        score += YEAR_WEIGHT
    return score


def _encode(values: list[str]) -> np.ndarray:
    codes: dict[str, int] = {}
    return np.array([codes.setdefault(value, len(codes)) for value in values], dtype=np.int64)


class SimilarityGraph:
    """Weighted undirected song graph, rebuilt wholesale from a catalog snapshot.

    Neighbours with equal weight are ranked by their position in the snapshot
    the graph was built from, so radio queues are reproducible.
    """

    def __init__(self, songs: Iterable[Song] | None = None):
        self._songs: dict[str, Song] = {}
        self._position: dict[str, int] = {}
        self._adjacency: dict[str, dict[str, float]] = {}
        self._edge_count = 0
        if songs is not None:
            self.rebuild(songs)

    def rebuild(self, songs: Iterable[Song]) -> None:
        self._songs = {}
        for song in songs:
            self._songs.setdefault(song.id, song)
        ordered = list(self._songs.values())
        self._position = {song.id: idx for idx, song in enumerate(ordered)}
        self._adjacency = {song.id: {} for song in ordered}
        self._edge_count = 0

        n = len(ordered)
        if n > 1:
            genres = _encode([song.genre.lower() for song in ordered])
            artists = _encode([song.artist.lower() for song in ordered])
            years = np.array([song.year for song in ordered], dtype=np.int64)
            # Upper triangle, one row at a time.
            for i in range(n - 1):
                rest = slice(i + 1, n)
                row = (
                    GENRE_WEIGHT * (genres[rest] == genres[i])
                    + ARTIST_WEIGHT * (artists[rest] == artists[i])
                    + YEAR_WEIGHT * (np.abs(years[rest] - years[i]) <= YEAR_WINDOW)
                )
                a = ordered[i].id
                for offset in np.flatnonzero(row > 0):
                    b = ordered[i + 1 + int(offset)].id
                    weight = float(row[offset])
                    self._adjacency[a][b] = weight
                    self._adjacency[b][a] = weight
                    self._edge_count += 1
        logger.info("Rebuilt similarity graph: %d songs, %d edges", n, self._edge_count)

    def most_similar(self, origin: Song, limit: int) -> list[Song]:
        neighbours = self._adjacency.get(origin.id)
        if not neighbours or limit <= 0:
            return []
        ids = list(neighbours)
        weights = np.fromiter(neighbours.values(), dtype=float, count=len(ids))
        positions = np.array([self._position[song_id] for song_id in ids], dtype=np.int64)
        # lexsort uses the last key as primary: weight descending, then snapshot position.
        order = np.lexsort((positions, -weights))[:limit]
        return [self._songs[ids[idx]] for idx in order]

    def similar_to(self, song_id: str, limit: int) -> list[Song]:
        origin = self._songs.get(song_id)
        if origin is None:
            return []
        return self.most_similar(origin, limit)

    def radio(self, song_id: str, limit: int) -> list[Song]:
        """Seed song first, then its most similar neighbours."""
        origin = self._songs.get(song_id)
        if origin is None:
            return []
        return [origin] + self.most_similar(origin, limit)

    def weight(self, a: str, b: str) -> float:
        return self._adjacency.get(a, {}).get(b, 0.0)

    def neighbors(self, song_id: str) -> dict[str, float]:
        return dict(self._adjacency.get(song_id, {}))

    def get(self, song_id: str) -> Song | None:
        return self._songs.get(song_id)

    def songs(self) -> list[Song]:
        return list(self._songs.values())

    @property
    def edge_count(self) -> int:
        return self._edge_count

    def __contains__(self, song_id: str) -> bool:
        return song_id in self._songs

    def __len__(self) -> int:
        return len(self._songs)


def discovery_playlist(
    graph: SimilarityGraph,
    favorite_ids: Iterable[str],
    size: int,
    per_favorite: int = 10,
) -> list[Song]:
    """Rank-weighted vote across each favourite's nearest neighbours.

    The r-th kept neighbour of a favourite scores ``per_favorite - r + 1``;
    favourites themselves are never proposed.
    """
    if size <= 0:
        return []
    favorites = list(dict.fromkeys(favorite_ids))
    if not favorites:
        return graph.songs()[:size]
    favorite_set = set(favorites)

    scores: dict[str, float] = {}
    for favorite_id in favorites:
        rank = 1
        for candidate in graph.similar_to(favorite_id, per_favorite):
            if candidate.id in favorite_set:
                continue
            scores[candidate.id] = scores.get(candidate.id, 0.0) + (per_favorite - rank + 1)
            rank += 1

    if not scores:
        return [song for song in graph.songs() if song.id not in favorite_set][:size]
    ranked = sorted(scores, key=lambda song_id: scores[song_id], reverse=True)
    return [graph.get(song_id) for song_id in ranked[:size]]
