from __future__ import annotations

from typing import Hashable, Iterable, TypeVar

T = TypeVar("T", bound=Hashable)


class DisjointSet:
    """Union-find over hashable items with iterative path compression."""

    def __init__(self, items: Iterable[T]) -> None:
        self._parent: dict[T, T] = {}
        for item in items:
            self._parent.setdefault(item, item)

    def __contains__(self, item: object) -> bool:
        return item in self._parent

    def __len__(self) -> int:
        return len(self._parent)

    def find(self, item: T) -> T:
        root = item
        while self._parent[root] != root:
            root = self._parent[root]

        while self._parent[item] != root:
            self._parent[item], item = root, self._parent[item]

        return root

    def union(self, a: T, b: T) -> T:
        root_a = self.find(a)
        root_b = self.find(b)
        if root_a != root_b:
            self._parent[root_b] = root_a
        return root_a

    def groups(self) -> list[list[T]]:
        """Members grouped by root, in first-seen order of both groups and members."""
        grouped: dict[T, list[T]] = {}
        for item in self._parent:
            grouped.setdefault(self.find(item), []).append(item)
        return list(grouped.values())
