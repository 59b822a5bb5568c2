import logging
import threading
from collections import deque
from typing import Iterable

logger = logging.getLogger(__name__)


class SocialGraph:
    """Directed follow graph over usernames.

    Every operation reports not-found and no-op outcomes through its return
    value; nothing here raises for an unknown user. All access goes through a
    single re-entrant lock and returned collections are copies.
    """

    def __init__(self, suggestion_depth: int = 2):
        self._following: dict[str, set[str]] = {}
        self._lock = threading.RLock()
        self.suggestion_depth = suggestion_depth

    def add_user(self, name: str) -> None:
        with self._lock:
            self._following.setdefault(name, set())

    def follow(self, origin: str, dest: str) -> bool:
        if origin == dest:
            return False
        with self._lock:
            if origin not in self._following or dest not in self._following:
                return False
            self._following[origin].add(dest)
            return True

    def unfollow(self, origin: str, dest: str) -> bool:
        if origin == dest:
            return False
        with self._lock:
            if origin not in self._following or dest not in self._following:
                return False
            targets = self._following[origin]
            if dest not in targets:
                return False
            targets.remove(dest)
            return True

    def neighbors(self, name: str) -> set[str]:
        with self._lock:
            return set(self._following.get(name, ()))

    def followers(self, name: str) -> set[str]:
        with self._lock:
            return {user for user, targets in self._following.items() if name in targets}

    def suggest(self, name: str, limit: int, depth: int | None = None) -> list[str]:
        """People-you-may-know: breadth-first over outgoing edges, nearest first.

        Candidates are users reachable within `depth` hops (default two) that
        `name` does not already follow. Neighbours are expanded in sorted
        order so the result is deterministic.
        """
        max_depth = self.suggestion_depth if depth is None else depth
        with self._lock:
            if name not in self._following or limit <= 0:
                return []
            direct = self._following[name]
            visited = {name}
            queue = deque([(name, 0)])
            suggestions: list[str] = []
            while queue and len(suggestions) < limit:
                current, hops = queue.popleft()
                if hops >= max_depth:
                    continue
                for neighbour in sorted(self._following.get(current, ())):
                    if neighbour in visited:
                        continue
                    visited.add(neighbour)
                    queue.append((neighbour, hops + 1))
                    if neighbour not in direct:
                        suggestions.append(neighbour)
                        if len(suggestions) >= limit:
                            break
            return suggestions

    def remove_user(self, name: str) -> bool:
        with self._lock:
            if name not in self._following:
                return False
            del self._following[name]
            for targets in self._following.values():
                targets.discard(name)
            return True

    def load_edges(self, pairs: Iterable[tuple[str, str]]) -> int:
        """Replay a persisted (origin, dest) edge list; returns edges created."""
        created = 0
        with self._lock:
            for origin, dest in pairs:
                origin, dest = origin.strip(), dest.strip()
                if not origin or not dest:
                    continue
                self.add_user(origin)
                self.add_user(dest)
                if dest not in self._following[origin] and self.follow(origin, dest):
                    created += 1
        logger.info("Loaded %d follow edges", created)
        return created

    def edges(self) -> list[tuple[str, str]]:
        with self._lock:
            return sorted(
                (origin, dest) for origin, targets in self._following.items() for dest in targets
            )

    def users(self) -> list[str]:
        with self._lock:
            return sorted(self._following)

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._following

    def __len__(self) -> int:
        with self._lock:
            return len(self._following)
