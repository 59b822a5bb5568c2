from .config import Settings
from .data import Song, Inserted, Renamed
from .trie import PrefixTrie
from .recommender import SimilarityGraph, similarity_score, discovery_playlist
from .social import SocialGraph
from .search import Combine, SearchCriteria, ConcurrentSearchCoordinator, SearchTaskError
from .catalog import SongCatalog, CatalogSnapshot, SongNotFoundError
from .service import DiscoveryService, load_settings

__all__ = [
    "Settings",
    "Song",
    "Inserted",
    "Renamed",
    "PrefixTrie",
    "SimilarityGraph",
    "similarity_score",
    "discovery_playlist",
    "SocialGraph",
    "Combine",
    "SearchCriteria",
    "ConcurrentSearchCoordinator",
    "SearchTaskError",
    "SongCatalog",
    "CatalogSnapshot",
    "SongNotFoundError",
    "DiscoveryService",
    "load_settings",
]
