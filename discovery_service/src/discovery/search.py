import logging
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence

import pandas as pd

from .data import Song

logger = logging.getLogger(__name__)

Predicate = Callable[[pd.DataFrame], frozenset]


class Combine(Enum):
    AND = "AND"
    OR = "OR"

    @classmethod
    def parse(cls, value: "Combine | str | None") -> "Combine":
        """AND only when asked for explicitly; anything else unions."""
        if isinstance(value, Combine):
            return value
        if isinstance(value, str) and value.strip().upper() == "AND":
            return cls.AND
        return cls.OR


class SearchTaskError(RuntimeError):
    def __init__(self, criterion: str, message: str):
        super().__init__(f"search task '{criterion}' failed: {message}")
        self.criterion = criterion


def _coerce_text(value: object) -> str | None:
    if not isinstance(value, str) or not value.strip():
        return None
    return value


def _coerce_year(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _contains(column: str, needle: str) -> Predicate:
    needle = needle.lower()

    def task(frame: pd.DataFrame) -> frozenset:
        mask = frame[column].str.lower().str.contains(needle, regex=False, na=False)
        return frozenset(frame.loc[mask, "id"])

    return task


def _year_between(year_from: int | None, year_to: int | None) -> Predicate:
    def task(frame: pd.DataFrame) -> frozenset:
        mask = pd.Series(True, index=frame.index)
        if year_from is not None:
            mask &= frame["year"] >= year_from
        if year_to is not None:
            mask &= frame["year"] <= year_to
        return frozenset(frame.loc[mask, "id"])

    return task


@dataclass(frozen=True)
class SearchCriteria:
    title: str | None = None
    artist: str | None = None
    genre: str | None = None
    year_from: int | None = None
    year_to: int | None = None
    op: Combine = Combine.OR

    @classmethod
    def build(
        cls,
        title: object = None,
        artist: object = None,
        genre: object = None,
        year_from: object = None,
        year_to: object = None,
        op: Combine | str | None = None,
    ) -> "SearchCriteria":
        """Normalise raw request values; anything unusable becomes "no constraint"."""
        return cls(
            title=_coerce_text(title),
            artist=_coerce_text(artist),
            genre=_coerce_text(genre),
            year_from=_coerce_year(year_from),
            year_to=_coerce_year(year_to),
            op=Combine.parse(op),
        )

    def tasks(self) -> list[tuple[str, Predicate]]:
        tasks: list[tuple[str, Predicate]] = []
        if self.title is not None:
            tasks.append(("title", _contains("title", self.title)))
        if self.artist is not None:
            tasks.append(("artist", _contains("artist", self.artist)))
        if self.genre is not None:
            tasks.append(("genre", _contains("genre", self.genre)))
        if self.year_from is not None or self.year_to is not None:
            tasks.append(("year", _year_between(self.year_from, self.year_to)))
        return tasks

    def is_empty(self) -> bool:
        return not self.tasks()


def songs_frame(songs: Sequence[Song]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "id": pd.Series([song.id for song in songs], dtype=object),
            "title": pd.Series([song.title for song in songs], dtype=object),
            "artist": pd.Series([song.artist for song in songs], dtype=object),
            "genre": pd.Series([song.genre for song in songs], dtype=object),
            "year": pd.Series([song.year for song in songs], dtype="int64"),
        }
    )


class ConcurrentSearchCoordinator:
    """Fan a multi-criteria query out to one pool task per criterion, then AND/OR the results.

    Every search gets its own pool of at most `max_workers` threads. Failure
    policy is fail-fast: if any task raises, or runs for longer than
    `task_timeout` seconds once started, the whole search raises
    SearchTaskError and no partial result is combined.
    """

    def __init__(self, max_workers: int = 4, task_timeout: float | None = 5.0):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.max_workers = max_workers
        self.task_timeout = task_timeout

    def search(
        self,
        songs: Sequence[Song],
        title: object = None,
        artist: object = None,
        genre: object = None,
        year_from: object = None,
        year_to: object = None,
        op: Combine | str | None = Combine.OR,
    ) -> list[Song]:
        criteria = SearchCriteria.build(title, artist, genre, year_from, year_to, op)
        return self.run(songs, criteria)

    def run(self, songs: Sequence[Song], criteria: SearchCriteria) -> list[Song]:
        snapshot = tuple(songs)
        tasks = criteria.tasks()
        if not tasks or not snapshot:
            return []
        frame = songs_frame(snapshot)

        # Each search owns its pool, so a stalled task never delays another search.
        executor = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(tasks)), thread_name_prefix="discovery-search"
        )
        started: dict[int, float] = {}
        try:
            futures = [
                (name, executor.submit(_timed, started, idx, task, frame))
                for idx, (name, task) in enumerate(tasks)
            ]
            partials = self._collect(futures, started)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        if criteria.op is Combine.AND:
            matched = frozenset.intersection(*partials)
        else:
            matched = frozenset.union(*partials)

        results: list[Song] = []
        seen: set[str] = set()
        for song in snapshot:
            if song.id in matched and song.id not in seen:
                seen.add(song.id)
                results.append(song)
        return results

    def _collect(self, futures: list[tuple[str, Future]], started: dict[int, float]) -> list[frozenset]:
        """Wait for every task; the timeout clock of a task starts when it begins running."""
        pending = {future for _, future in futures}
        while pending:
            timeout = self._next_wait(futures, pending, started)
            done, pending = wait(pending, timeout=timeout, return_when=FIRST_COMPLETED)
            for name, future in futures:
                if future in done and future.exception() is not None:
                    exc = future.exception()
                    logger.warning("Search task %r failed: %s", name, exc)
                    raise SearchTaskError(name, str(exc)) from exc
            if pending and self.task_timeout is not None:
                now = time.monotonic()
                stalled = [
                    name
                    for idx, (name, future) in enumerate(futures)
                    if future in pending and idx in started and now - started[idx] >= self.task_timeout
                ]
                if stalled:
                    logger.warning("Search tasks %s exceeded %.2fs", stalled, self.task_timeout)
                    raise SearchTaskError(stalled[0], f"timed out after {self.task_timeout}s")
        return [future.result() for _, future in futures]

    def _next_wait(self, futures, pending, started: dict[int, float]) -> float | None:
        if self.task_timeout is None:
            return None
        now = time.monotonic()
        remaining = [
            started[idx] + self.task_timeout - now
            for idx, (_, future) in enumerate(futures)
            if future in pending and idx in started
        ]
        if not remaining:
            return self.task_timeout
        return max(0.0, min(remaining))


def _timed(started: dict[int, float], idx: int, task: Predicate, frame: pd.DataFrame) -> frozenset:
    started[idx] = time.monotonic()
    return task(frame)
