"""An ordered list of strings, each with an optional sort key."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from functools import cmp_to_key

from secftpd.textbuf import compare

__all__ = ["StringList"]

_INITIAL_CAPACITY = 32
_MAX_CAPACITY = 10 * 1000 * 1000


@dataclass
class _Node:
    value: str
    sort_key: str = ""

    @property
    def effective_key(self) -> str:
        return self.sort_key if self.sort_key else self.value


class StringList:
    """A growable list of strings that sorts on per-entry keys.

    An entry whose sort key is empty sorts on its own text. Growth is
    bounded: the list refuses to grow past its hard capacity limit.
    """

    def __init__(self) -> None:
        self._nodes: list[_Node] = []
        self._capacity = 0

    def _reserve_one(self) -> None:
        if len(self._nodes) < self._capacity:
            return
        if self._capacity == 0:
            self._capacity = _INITIAL_CAPACITY
            return
        new_capacity = self._capacity * 2
        if new_capacity > _MAX_CAPACITY:
            raise MemoryError("excessive strlist")
        self._capacity = new_capacity

    def add(self, value: str, sort_key: str | None = None) -> None:
        """Append ``value``, sorting on ``sort_key`` when it is non-empty."""
        self._reserve_one()
        self._nodes.append(_Node(value, sort_key or ""))

    def sort(self, reverse: bool = False) -> None:
        """Sort entries in place by sort key (or text when the key is empty)."""
        key = cmp_to_key(compare)
        self._nodes.sort(key=lambda node: key(node.effective_key), reverse=reverse)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, value: object) -> bool:
        return any(node.value == value for node in self._nodes)

    def __getitem__(self, index: int) -> str:
        if not isinstance(index, int):
            raise TypeError("StringList indices must be integers")
        if index < 0 or index >= len(self._nodes):
            raise IndexError("index out of range in StringList")
        return self._nodes[index].value

    def __iter__(self) -> Iterator[str]:
        return (node.value for node in self._nodes)