from dataclasses import dataclass, field
from typing import Iterable


@dataclass(frozen=True)
class Song:
    """A catalog entry. Identity (equality and hashing) is the id alone."""

    id: str
    title: str = field(default="", compare=False)
    artist: str = field(default="", compare=False)
    genre: str = field(default="", compare=False)
    year: int = field(default=0, compare=False)
    duration: float = field(default=0.0, compare=False)


@dataclass(frozen=True)
class Inserted:
    id: str


@dataclass(frozen=True)
class Renamed:
    old_id: str
    new_id: str

    @property
    def id(self) -> str:
        return self.new_id


InsertResult = Inserted | Renamed


def next_free_id(existing: Iterable[str]) -> str:
    """Return one past the largest purely numeric id, or "1" when there is none."""
    numeric = [int(song_id) for song_id in existing if song_id.isascii() and song_id.isdigit()]
    return str(max(numeric, default=0) + 1)
