# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Segment-indexed prefix trie with a streaming descent cursor.

Edges are labelled by path names and payload entries hang off nodes. Nodes
are only materialised on request, so the trie stays proportional to the
prefixes callers care about rather than to the path namespace.

A :class:`Descender` walks the trie one name of a target path at a time.
Each step classifies the position it reaches before the caller decides
whether to read, insert or update there, which lets a single pass both
discover how far an indexed prefix reaches and extend it::

    trie: SegmentTrie[dict[str, bool]] = SegmentTrie()
    descender = trie.descend(parse("/storage/music/live"))
    for kind in descender:
        if kind is SegmentKind.MISSING_DIRECTORY:
            descender.set({})
        elif kind is SegmentKind.MISSING_FILE:
            descender.set({"granted": True})

The trie itself is not synchronised. :attr:`SegmentTrie.lock` is offered to
callers that share one trie between threads; hold it for a whole descent
whenever that descent may call :meth:`Descender.set`.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from enum import Enum
from typing import Generic, TypeVar, override

from ..errors import DescenderStateError
from ..runtime.logging import get_logger
from ._path import PathValue

logger = get_logger(__name__)

T = TypeVar("T")

_NO_STEP_MESSAGE = "Descender has not consumed any name yet; call next() first."


class SegmentKind(Enum):
    """Classification of the position a descender has just reached."""

    DIRECTORY = "directory"
    MISSING_DIRECTORY = "missing_directory"
    FILE = "file"
    MISSING_FILE = "missing_file"

    @property
    def is_missing(self) -> bool:
        return self in {SegmentKind.MISSING_DIRECTORY, SegmentKind.MISSING_FILE}

    @property
    def is_final(self) -> bool:
        return self in {SegmentKind.FILE, SegmentKind.MISSING_FILE}


class SegmentNode(Generic[T]):
    """One materialised prefix position.

    Each node exclusively owns its children. ``entry`` is the caller's
    payload and may be replaced or mutated in place.
    """

    __slots__ = ("children", "entry")

    def __init__(self, entry: T | None = None) -> None:
        self.entry: T | None = entry
        self.children: dict[str, SegmentNode[T]] = {}

    @override
    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(entry={self.entry!r}, "
            f"children={sorted(self.children)!r})"
        )


class Descender(Generic[T]):
    """Cursor advancing through a trie along the names of one path.

    The cursor starts above the first name. Every call to :func:`next`
    consumes one name and returns its :class:`SegmentKind`; iteration stops
    once the final name has been consumed.
    """

    def __init__(self, root: SegmentNode[T], path: PathValue) -> None:
        self._root = root
        self._path = path
        self._names: tuple[str, ...] = () if path.is_empty else path.names
        # Nodes along the consumed prefix; ``None`` marks an absent position.
        self._chain: list[SegmentNode[T] | None] = [root]
        self._kind: SegmentKind | None = None

    def __iter__(self) -> Descender[T]:
        return self

    def __next__(self) -> SegmentKind:
        depth = len(self._chain) - 1
        if depth >= len(self._names):
            raise StopIteration
        current = self._chain[-1]
        node = None if current is None else current.children.get(self._names[depth])
        self._chain.append(node)
        final = depth + 1 == len(self._names)
        if node is None:
            kind = SegmentKind.MISSING_FILE if final else SegmentKind.MISSING_DIRECTORY
        else:
            kind = SegmentKind.FILE if final else SegmentKind.DIRECTORY
        self._kind = kind
        return kind

    def next(self) -> SegmentKind:
        """Advance one name; raise :class:`StopIteration` past the end."""

        return next(self)

    @property
    def has_next(self) -> bool:
        return len(self._chain) - 1 < len(self._names)

    @property
    def depth(self) -> int:
        """Number of names consumed so far."""

        return len(self._chain) - 1

    @property
    def kind(self) -> SegmentKind:
        kind = self._kind
        if kind is None:
            raise DescenderStateError(_NO_STEP_MESSAGE)
        return kind

    @property
    def segment(self) -> str:
        """The name consumed by the latest step."""

        self._require_step()
        return self._names[self.depth - 1]

    @property
    def path(self) -> PathValue:
        """The consumed prefix of the target path."""

        self._require_step()
        return PathValue(self._path.is_absolute, self._names[: self.depth])

    @property
    def parent(self) -> SegmentNode[T] | None:
        """The node one level above the current position.

        Always present unless the caller stepped over a missing directory
        without materialising it.
        """

        self._require_step()
        return self._chain[-2]

    @property
    def node(self) -> SegmentNode[T] | None:
        self._require_step()
        return self._chain[-1]

    @property
    def entry(self) -> T | None:
        """The entry at the current position, if the node exists."""

        node = self.node
        return None if node is None else node.entry

    def set(self, entry: T) -> SegmentNode[T]:
        """Attach ``entry`` at the current position.

        Missing nodes along the consumed prefix are materialised first, so
        skipped ancestors exist afterwards with no entry of their own.
        """

        self._require_step()
        node = self._root
        for index in range(1, len(self._chain)):
            child = self._chain[index]
            if child is None:
                child = SegmentNode()
                node.children[self._names[index - 1]] = child
                self._chain[index] = child
                logger.debug(
                    "Materialized trie node.",
                    event="trie.materialize",
                    context={"path": str(self._path), "depth": index},
                )
            node = child
        node.entry = entry
        return node

    def _require_step(self) -> None:
        if self._kind is None:
            raise DescenderStateError(_NO_STEP_MESSAGE)


def descend(root: SegmentNode[T], path: PathValue) -> Descender[T]:
    """Start a descent from ``root`` along the names of ``path``."""

    return Descender(root, path)


def shortest_covering(
    root: SegmentNode[T], path: PathValue, predicate: Callable[[T], bool]
) -> T | None:
    """Return the root-closest entry along ``path`` satisfying ``predicate``.

    Positions from the first name down to ``path`` itself are inspected; the
    walk stops at the first missing position since nothing lies below it.
    """

    descender = descend(root, path)
    for kind in descender:
        if kind.is_missing:
            break
        entry = descender.entry
        if entry is not None and predicate(entry):
            return entry
    return None


def longest_covering(
    root: SegmentNode[T], path: PathValue, predicate: Callable[[T], bool]
) -> T | None:
    """Return the deepest entry along ``path`` satisfying ``predicate``."""

    found: T | None = None
    descender = descend(root, path)
    for kind in descender:
        if kind.is_missing:
            break
        entry = descender.entry
        if entry is not None and predicate(entry):
            found = entry
    return found


class SegmentTrie(Generic[T]):
    """Owner of a root :class:`SegmentNode` plus convenience operations."""

    def __init__(self, root_entry: T | None = None) -> None:
        self._root: SegmentNode[T] = SegmentNode(root_entry)
        self._lock = threading.RLock()

    @property
    def root(self) -> SegmentNode[T]:
        return self._root

    @property
    def lock(self) -> threading.RLock:
        """Re-entrant lock for callers arbitrating shared access."""

        return self._lock

    def descend(self, path: PathValue) -> Descender[T]:
        return Descender(self._root, path)

    def find(self, path: PathValue) -> SegmentNode[T] | None:
        """Return the node at ``path`` without materialising anything."""

        node: SegmentNode[T] | None = self._root
        descender = self.descend(path)
        for kind in descender:
            if kind.is_missing:
                return None
            node = descender.node
        return node

    def get(self, path: PathValue) -> T | None:
        node = self.find(path)
        return None if node is None else node.entry

    def insert(self, path: PathValue, entry: T) -> SegmentNode[T]:
        """Attach ``entry`` at ``path``, materialising the nodes leading to it."""

        descender = self.descend(path)
        if not descender.has_next:
            self._root.entry = entry
            return self._root
        for _ in descender:
            pass
        return descender.set(entry)

    def items(self, *, absolute: bool = True) -> Iterator[tuple[PathValue, T]]:
        """Yield ``(path, entry)`` for every node holding an entry.

        Traversal is depth first with children in name order; paths are
        built with the requested absoluteness.
        """

        stack: list[tuple[tuple[str, ...], SegmentNode[T]]] = [((), self._root)]
        while stack:
            names, node = stack.pop()
            if node.entry is not None:
                yield PathValue(absolute, names), node.entry
            for name in sorted(node.children, reverse=True):
                stack.append(((*names, name), node.children[name]))

    def clear(self) -> None:
        """Drop every node below the root and the root's entry."""

        self._root = SegmentNode()

    def __len__(self) -> int:
        count = 0
        stack = [self._root]
        while stack:
            node = stack.pop()
            count += len(node.children)
            stack.extend(node.children.values())
        return count


__all__ = [
    "Descender",
    "SegmentKind",
    "SegmentNode",
    "SegmentTrie",
    "descend",
    "longest_covering",
    "shortest_covering",
]
