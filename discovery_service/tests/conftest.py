import sys
from pathlib import Path

import pytest

# Make the src layout importable for runs without an editable install.
SRC = Path(__file__).resolve().parents[1] / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from discovery import DiscoveryService, Settings, Song  # noqa: E402


@pytest.fixture
def songs() -> list[Song]:
    return [
        Song("1", "Love Story", "Taylor Swift", "Country", 2008, 3.9),
        Song("2", "You Belong With Me", "Taylor Swift", "Country", 2009, 3.8),
        Song("3", "Imagine", "John Lennon", "Rock", 1971, 3.1),
        Song("4", "Bohemian Rhapsody", "Queen", "Rock", 1975, 5.9),
        Song("5", "Don't Stop Me Now", "Queen", "Rock", 1978, 3.6),
        Song("6", "Love Me Do", "The Beatles", "Rock", 1963, 2.3),
        Song("7", "Shake It Off", "Taylor Swift", "Pop", 2014, 3.7),
    ]


@pytest.fixture
def settings() -> Settings:
    return Settings.defaults()


@pytest.fixture
def service(settings, songs):
    return DiscoveryService(settings, songs)
