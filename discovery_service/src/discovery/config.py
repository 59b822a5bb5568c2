from dataclasses import dataclass
from pathlib import Path
import yaml


@dataclass
class SearchConfig:
    max_workers: int = 4
    task_timeout: float | None = 5.0
    default_op: str = "OR"


@dataclass
class SimilarityConfig:
    default_limit: int = 10
    radio_limit: int = 10


@dataclass
class SocialConfig:
    suggestion_limit: int = 5
    suggestion_depth: int = 2


@dataclass
class DiscoveryConfig:
    per_favorite: int = 10
    playlist_size: int = 20


def _positive(section: str, key: str, value, allow_none: bool = False):
    if value is None and allow_none:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ValueError(f"{section}.{key} must be a positive number, got {value!r}")
    return value


def _positive_int(section: str, key: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"{section}.{key} must be a positive integer, got {value!r}")
    return value


def _section(raw: dict, name: str) -> dict:
    section = raw.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"config section '{name}' must be a mapping, got {type(section).__name__}")
    return section


class Settings:
    def __init__(self, config_path: str | Path | None = None, raw: dict | None = None):
        self.config_path = Path(config_path) if config_path is not None else None
        if raw is None:
            raw = yaml.safe_load(self.config_path.read_text()) if self.config_path else {}
        raw = raw or {}
        if not isinstance(raw, dict):
            raise ValueError(f"config must be a mapping at the top level, got {type(raw).__name__}")

        search = _section(raw, "search")
        self.search = SearchConfig(
            max_workers=_positive_int("search", "max_workers", search.get("max_workers", 4)),
            task_timeout=_positive("search", "task_timeout", search.get("task_timeout", 5.0), allow_none=True),
            default_op=str(search.get("default_op", "OR")).upper(),
        )
        similarity = _section(raw, "similarity")
        self.similarity = SimilarityConfig(
            default_limit=_positive_int("similarity", "default_limit", similarity.get("default_limit", 10)),
            radio_limit=_positive_int("similarity", "radio_limit", similarity.get("radio_limit", 10)),
        )
        social = _section(raw, "social")
        self.social = SocialConfig(
            suggestion_limit=_positive_int("social", "suggestion_limit", social.get("suggestion_limit", 5)),
            suggestion_depth=_positive_int("social", "suggestion_depth", social.get("suggestion_depth", 2)),
        )
        discovery = _section(raw, "discovery")
        self.discovery = DiscoveryConfig(
            per_favorite=_positive_int("discovery", "per_favorite", discovery.get("per_favorite", 10)),
            playlist_size=_positive_int("discovery", "playlist_size", discovery.get("playlist_size", 20)),
        )

    @classmethod
    def from_dict(cls, raw: dict) -> "Settings":
        return cls(raw=raw)

    @classmethod
    def defaults(cls) -> "Settings":
        return cls(raw={})
