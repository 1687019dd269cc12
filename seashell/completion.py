from dataclasses import dataclass, field
from typing import List


class TrieNode:
    def __init__(self):
        self.children = {}
        self.is_end_of_word = False


class Trie:
    """Case-insensitive prefix index; every word is stored casefolded."""

    def __init__(self):
        self.root = TrieNode()
        self._size = 0

    def insert(self, word):
        if not word or not word.strip():
            return
        node = self.root
        for char in word.casefold():
            if char not in node.children:
                node.children[char] = TrieNode()
            node = node.children[char]
        if not node.is_end_of_word:
            node.is_end_of_word = True
            self._size += 1

    def find_all_with_prefix(self, prefix, max_results=100) -> List[str]:
        """Sorted words starting with ``prefix``.

        A blank prefix matches nothing, so an empty command line never dumps
        every known command.
        """
        results = []
        if not prefix or not prefix.strip() or max_results <= 0:
            return results

        prefix = prefix.casefold()
        node = self.root
        for char in prefix:
            if char not in node.children:
                return results
            node = node.children[char]

        self._dfs(node, prefix, results, max_results)
        return results

    def _dfs(self, node, current_prefix, results, max_results):
        if len(results) >= max_results:
            return
        if node.is_end_of_word:
            results.append(current_prefix)
        for char in sorted(node.children.keys()):
            if len(results) >= max_results:
                break
            self._dfs(node.children[char], current_prefix + char, results, max_results)

    def first_match(self, prefix):
        matches = self.find_all_with_prefix(prefix, 1)
        return matches[0] if matches else None

    def clear(self):
        self.root = TrieNode()
        self._size = 0

    def __contains__(self, word):
        node = self.root
        for char in word.casefold():
            node = node.children.get(char)
            if node is None:
                return False
        return node.is_end_of_word

    def __len__(self):
        return self._size


@dataclass
class CompletionResult:
    matches: List[str] = field(default_factory=list)
    # True only for a single full match; the caller appends the separator
    is_complete: bool = False

    @property
    def is_partial(self) -> bool:
        return not self.is_complete and len(self.matches) == 1


def common_prefix_length(first, last) -> int:
    length = 0
    for a, b in zip(first, last):
        if a.casefold() != b.casefold():
            break
        length += 1
    return length


class Autocomplete:
    def __init__(self, max_results=100):
        self.trie = Trie()
        self.max_results = max_results

    def register(self, word):
        self.trie.insert(word)

    def register_many(self, words):
        for word in words:
            self.register(word)

    def register_path_executables(self, resolver):
        self.register_many(resolver.executables())

    def suggest(self, prefix) -> CompletionResult:
        matches = sorted(self.trie.find_all_with_prefix(prefix, self.max_results))
        if not matches:
            return CompletionResult()
        if len(matches) == 1:
            return CompletionResult(matches, is_complete=True)

        # only the sorted extremes are compared; every match shares their prefix
        common = common_prefix_length(matches[0], matches[-1])
        if common > len(prefix):
            return CompletionResult([matches[0][:common]])
        return CompletionResult(matches)

    def clear(self):
        self.trie.clear()
