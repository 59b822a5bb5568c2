class TrieNode:
    __slots__ = ("children", "is_word")

    def __init__(self) -> None:
        self.children: dict[str, TrieNode] = {}
        self.is_word = False


class PrefixTrie:
    """Lower-cased prefix tree used for title autocompletion."""

    def __init__(self, words: list[str] | None = None):
        self._root = TrieNode()
        self._size = 0
        for word in words or []:
            self.insert(word)

    def insert(self, word: str) -> None:
        if not word:
            return
        node = self._root
        for ch in word.lower():
            node = node.children.setdefault(ch, TrieNode())
        if not node.is_word:
            node.is_word = True
            self._size += 1

    def search_by_prefix(self, prefix: str) -> list[str]:
        """Return every stored word starting with `prefix` (order follows child insertion)."""
        prefix = prefix.lower()
        node = self._root
        for ch in prefix:
            node = node.children.get(ch)
            if node is None:
                return []
        results: list[str] = []
        self._collect(node, prefix, results)
        return results

    def _collect(self, node: TrieNode, path: str, results: list[str]) -> None:
        # Pre-order depth-first walk; children pushed reversed so they pop in insertion order.
        stack = [(node, path)]
        while stack:
            current, current_path = stack.pop()
            if current.is_word:
                results.append(current_path)
            for ch, child in reversed(list(current.children.items())):
                stack.append((child, current_path + ch))

    def __contains__(self, word: str) -> bool:
        node = self._root
        for ch in word.lower():
            node = node.children.get(ch)
            if node is None:
                return False
        return node.is_word

    def __len__(self) -> int:
        return self._size
