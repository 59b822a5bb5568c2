import logging
import os
from pathlib import Path
from typing import Iterable

from .catalog import SongCatalog
from .config import Settings
from .data import InsertResult, Song
from .recommender import discovery_playlist
from .search import ConcurrentSearchCoordinator, SearchCriteria, SearchTaskError
from .social import SocialGraph

logger = logging.getLogger(__name__)


def load_settings() -> Settings:
    override = os.environ.get("DISCOVERY_CONFIG")
    if override:
        return Settings(override)
    bundled = Path(__file__).resolve().parents[2] / "config.yaml"
    if bundled.exists():
        return Settings(bundled)
    return Settings.defaults()


class DiscoveryService:
    """Entry point the surrounding catalog and social services talk to.

    Recommendation, search and social queries never raise for unknown songs
    or users; they return empty results or False. Only `get_song` surfaces a
    missing entity, as SongNotFoundError.
    """

    def __init__(self, settings: Settings | None = None, songs: Iterable[Song] | None = None):
        self.settings = settings or load_settings()
        self.catalog = SongCatalog(songs)
        self.social = SocialGraph(suggestion_depth=self.settings.social.suggestion_depth)
        self.searcher = ConcurrentSearchCoordinator(
            max_workers=self.settings.search.max_workers,
            task_timeout=self.settings.search.task_timeout,
        )

    # catalog -----------------------------------------------------------------

    def add_song(self, song: Song) -> InsertResult:
        return self.catalog.add(song)

    def update_song(self, song: Song) -> bool:
        return self.catalog.update(song)

    def delete_song(self, song_id: str) -> bool:
        return self.catalog.delete(song_id)

    def bulk_load(self, songs: Iterable[Song]) -> list[InsertResult]:
        return self.catalog.bulk_load(songs)

    def get_song(self, song_id: str) -> Song:
        return self.catalog.get(song_id)

    # recommendations -----------------------------------------------------------

    def similar_songs(self, song_id: str, limit: int | None = None) -> list[Song]:
        limit = self.settings.similarity.default_limit if limit is None else limit
        return self.catalog.snapshot().graph.similar_to(song_id, limit)

    def radio(self, song_id: str, limit: int | None = None) -> list[Song]:
        limit = self.settings.similarity.radio_limit if limit is None else limit
        return self.catalog.snapshot().graph.radio(song_id, limit)

    def discovery_playlist(self, favorite_ids: Iterable[str], size: int | None = None) -> list[Song]:
        size = self.settings.discovery.playlist_size if size is None else size
        return discovery_playlist(
            self.catalog.snapshot().graph,
            favorite_ids,
            size,
            per_favorite=self.settings.discovery.per_favorite,
        )

    def autocomplete(self, prefix: str) -> list[str]:
        return sorted(self.catalog.snapshot().trie.search_by_prefix(prefix))

    def search(
        self,
        title: object = None,
        artist: object = None,
        genre: object = None,
        year_from: object = None,
        year_to: object = None,
        op: str | None = None,
    ) -> list[Song]:
        criteria = SearchCriteria.build(
            title, artist, genre, year_from, year_to, op if op is not None else self.settings.search.default_op
        )
        try:
            return self.searcher.run(self.catalog.songs(), criteria)
        except SearchTaskError as exc:
            logger.warning("Search degraded to empty result: %s", exc)
            return []

    # social ------------------------------------------------------------------

    def add_user(self, name: str) -> None:
        self.social.add_user(name)

    def remove_user(self, name: str) -> bool:
        return self.social.remove_user(name)

    def follow(self, origin: str, dest: str) -> bool:
        return self.social.follow(origin, dest)

    def unfollow(self, origin: str, dest: str) -> bool:
        return self.social.unfollow(origin, dest)

    def following(self, name: str) -> set[str]:
        return self.social.neighbors(name)

    def followers(self, name: str) -> set[str]:
        return self.social.followers(name)

    def suggest_users(self, name: str, limit: int | None = None) -> list[str]:
        limit = self.settings.social.suggestion_limit if limit is None else limit
        return self.social.suggest(name, limit)

    def load_follows(self, pairs: Iterable[tuple[str, str]]) -> int:
        return self.social.load_edges(pairs)

    def follow_edges(self) -> list[tuple[str, str]]:
        return self.social.edges()
