import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from discovery.data import Song
from discovery.search import (
    Combine,
    ConcurrentSearchCoordinator,
    SearchCriteria,
    SearchTaskError,
)


@pytest.fixture
def coordinator():
    return ConcurrentSearchCoordinator(max_workers=4, task_timeout=5.0)


@pytest.fixture
def small_catalog():
    return [
        Song("1", title="Love Story"),
        Song("2", title="Imagine"),
        Song("3", artist="Queen"),
    ]


def _ids(songs):
    return [song.id for song in songs]


class _StubCriteria:
    def __init__(self, tasks, op=Combine.AND):
        self._tasks = tasks
        self.op = op

    def tasks(self):
        return self._tasks


def test_or_unions_criteria(coordinator, small_catalog):
    found = coordinator.search(small_catalog, title="love", artist="queen", op="OR")
    assert set(_ids(found)) == {"1", "3"}


def test_and_intersects_criteria(coordinator, small_catalog):
    assert coordinator.search(small_catalog, title="love", artist="queen", op="AND") == []


def test_no_criteria_returns_nothing(coordinator, songs):
    assert coordinator.search(songs) == []
    assert coordinator.search(songs, title="   ", artist="", year_from="abc") == []


def test_unknown_op_defaults_to_union(coordinator, small_catalog):
    found = coordinator.search(small_catalog, title="imagine", artist="queen", op="XOR")
    assert set(_ids(found)) == {"2", "3"}


def test_op_is_case_insensitive():
    assert Combine.parse("and") is Combine.AND
    assert Combine.parse(" AND ") is Combine.AND
    assert Combine.parse(None) is Combine.OR
    assert Combine.parse(Combine.AND) is Combine.AND


def test_text_criteria_are_case_insensitive_substrings(coordinator, songs):
    assert _ids(coordinator.search(songs, artist="SWIFT")) == ["1", "2", "7"]
    assert _ids(coordinator.search(songs, genre="roc")) == ["3", "4", "5", "6"]
    assert _ids(coordinator.search(songs, title="me")) == ["2", "5", "6"]


def test_year_range_is_inclusive_and_either_bound_optional(coordinator, songs):
    assert _ids(coordinator.search(songs, year_from=1971, year_to=1975)) == ["3", "4"]
    assert _ids(coordinator.search(songs, year_from=2009)) == ["2", "7"]
    assert _ids(coordinator.search(songs, year_to="1963")) == ["6"]
    assert coordinator.search(songs, year_from=2000, year_to=1990) == []


def test_and_across_three_criteria(coordinator, songs):
    found = coordinator.search(songs, artist="queen", genre="rock", year_from=1976, op="AND")
    assert _ids(found) == ["5"]


def test_results_follow_snapshot_order_without_duplicates(coordinator, songs):
    found = coordinator.search(songs, title="love", artist="taylor", op="OR")
    assert _ids(found) == ["1", "2", "6", "7"]


def test_criteria_build_normalises_malformed_values():
    criteria = SearchCriteria.build(title=42, artist="  ", genre="pop", year_from="19x", year_to=2000.0)
    assert criteria.title is None
    assert criteria.artist is None
    assert criteria.genre == "pop"
    assert criteria.year_from is None
    assert criteria.year_to == 2000
    assert [name for name, _ in criteria.tasks()] == ["genre", "year"]
    assert SearchCriteria.build().is_empty()


def test_tasks_run_on_the_worker_pool(coordinator, songs):
    seen = []

    def record(frame):
        seen.append(threading.current_thread().name)
        return frozenset(frame["id"])

    found = coordinator.run(songs, _StubCriteria([("title", record)]))
    assert len(found) == len(songs)
    assert seen and seen[0].startswith("discovery-search")


def test_failed_task_fails_the_whole_search(coordinator, songs):
    def ok(frame):
        return frozenset(frame["id"])

    def boom(frame):
        raise ValueError("bad predicate")

    with pytest.raises(SearchTaskError) as excinfo:
        coordinator.run(songs, _StubCriteria([("title", ok), ("artist", boom)], op=Combine.OR))
    assert excinfo.value.criterion == "artist"
    assert isinstance(excinfo.value.__cause__, ValueError)


def test_stalled_task_times_out(songs):
    release = threading.Event()

    def stuck(frame):
        release.wait(5)
        return frozenset()

    coordinator = ConcurrentSearchCoordinator(max_workers=2, task_timeout=0.05)
    try:
        with pytest.raises(SearchTaskError) as excinfo:
            coordinator.run(songs, _StubCriteria([("year", stuck)]))
        assert excinfo.value.criterion == "year"
    finally:
        release.set()


def test_invalid_pool_size():
    with pytest.raises(ValueError):
        ConcurrentSearchCoordinator(max_workers=0)


def _slow(delay):
    def task(frame):
        time.sleep(delay)
        return frozenset(frame["id"])

    return task


def test_search_after_a_stalled_one_is_unaffected(songs):
    release = threading.Event()

    def stuck(frame):
        release.wait(5)
        return frozenset()

    coordinator = ConcurrentSearchCoordinator(max_workers=1, task_timeout=0.3)
    try:
        with pytest.raises(SearchTaskError):
            coordinator.run(songs, _StubCriteria([("year", stuck)]))
        found = coordinator.search(songs, artist="queen")
        assert _ids(found) == ["4", "5"]
    finally:
        release.set()


def test_timeout_clock_starts_when_a_task_runs(songs):
    # Four 0.2s tasks on one worker take 0.8s overall but none runs past 0.3s.
    coordinator = ConcurrentSearchCoordinator(max_workers=1, task_timeout=0.3)
    tasks = [(name, _slow(0.2)) for name in ("title", "artist", "genre", "year")]
    found = coordinator.run(songs, _StubCriteria(tasks))
    assert len(found) == len(songs)


def test_concurrent_searches_do_not_starve_each_other(songs):
    coordinator = ConcurrentSearchCoordinator(max_workers=4, task_timeout=0.3)

    def one_search(_):
        tasks = [(name, _slow(0.2)) for name in ("title", "artist", "genre", "year")]
        return coordinator.run(songs, _StubCriteria(tasks))

    with ThreadPoolExecutor(max_workers=3) as callers:
        results = list(callers.map(one_search, range(3)))
    assert [len(found) for found in results] == [len(songs)] * 3
