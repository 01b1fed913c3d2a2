"""Small shared utilities: hash mixing, file reading, disjoint sets."""

from __future__ import annotations

import os
from pathlib import Path

_MASK64 = (1 << 64) - 1
_MURMUR_M = 0xC6A4A7935BD1E995
_MURMUR_R = 47


def hash_combine(seed: int, k: int) -> int:
    """Mix ``k`` into ``seed`` with 64-bit MurmurHash2 steps; return the new seed."""
    h = seed & _MASK64
    k &= _MASK64

    k = (k * _MURMUR_M) & _MASK64
    k ^= k >> _MURMUR_R
    k = (k * _MURMUR_M) & _MASK64

    h ^= k
    h = (h * _MURMUR_M) & _MASK64
    return (h + 0xE6546B64) & _MASK64


def read_file(path: str | os.PathLike[str]) -> bytes:
    """Return the whole content of the file at ``path`` as bytes."""
    return Path(path).read_bytes()


class DSU:
    """Disjoint-set union over the integers ``0 .. size-1``."""

    def __init__(self, size: int) -> None:
        self.parent = list(range(size))

    def find(self, x: int) -> int:
        """Return the representative of ``x``'s set, compressing the path."""
        parent = self.parent
        root = x
        while parent[root] != root:
            root = parent[root]
        while parent[x] != root:
            parent[x], x = root, parent[x]
        return root

    def unite(self, x: int, y: int) -> None:
        """Merge the sets of ``x`` and ``y``; ``y``'s root becomes the root."""
        self.parent[self.find(x)] = self.find(y)