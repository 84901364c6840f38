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

"""Access-grant index over storage roots.

Storage backends often hold out-of-band grants (for example persisted tree
permissions handed out by a document provider) that cover whole subtrees of
the path namespace. :class:`GrantIndex` keeps them in a :class:`SegmentTrie`
and answers which grant governs a path in one descent.

The index is explicit, caller-owned state. Nothing is cached process-wide:
callers register stores and grants, and call :meth:`GrantIndex.invalidate`
when the platform reports that mounts or grants changed. The trie is rebuilt
lazily on the next query.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Final
from urllib.parse import quote, unquote, urlsplit

from ..dataclasses import FrozenDataclass
from ..errors import InvalidPathArgumentError
from ..runtime.logging import get_logger
from ._path import ROOT, PathValue
from ._trie import SegmentNode, SegmentTrie

logger = get_logger(__name__)

PRIMARY_STORE_KEY: Final[str] = "primary"
DOCUMENT_SEGMENT: Final[str] = "document"
TREE_SEGMENT: Final[str] = "tree"


@FrozenDataclass()
class FileStore:
    """A storage root the index can anchor grants to.

    Attributes:
        name: Provider-facing store name used in document ids.
        path: Absolute mount point of the store.
        uuid: Volume identifier, when the platform exposes one.
        primary: Whether this is the primary shared store.
    """

    name: str
    path: PathValue
    uuid: str | None = None
    primary: bool = False

    @property
    def key(self) -> str | None:
        """The key grants use to reference this store, if any."""

        if self.uuid is not None:
            return self.uuid
        return PRIMARY_STORE_KEY if self.primary else None


@FrozenDataclass()
class UriGrant:
    uri: str
    readable: bool = True
    writable: bool = True

    @property
    def read_write(self) -> bool:
        return self.readable and self.writable


@dataclass(slots=True)
class GrantEntry:
    """Mutable payload stored at each materialised trie position.

    ``unprotected`` marks subtrees that need no grant at all, such as an
    application's private data directory on each store.
    """

    path: PathValue
    store: FileStore | None
    grant: UriGrant | None = None
    unprotected: bool = False


class GrantIndex:
    """Resolve the grant covering a path across a set of stores.

    Example::

        sdcard = FileStore("1234-ABCD", parse("/storage/1234-ABCD"), uuid="1234-ABCD")
        index = GrantIndex([sdcard], private_directories=["Android/data/org.example"])
        tree = UriGrant("content://docs/tree/1234-ABCD%3AMusic")
        index.add_grant("1234-ABCD", "Music", tree)
        index.document_id(parse("/storage/1234-ABCD/Music/live/a.flac"))
        # '1234-ABCD:Music/live/a.flac'
    """

    def __init__(
        self,
        stores: Iterable[FileStore],
        *,
        private_directories: Iterable[str] = (),
    ) -> None:
        self._stores = tuple(stores)
        for store in self._stores:
            if not store.path.is_absolute:
                msg = f"Store {store.name!r} must be mounted at an absolute path."
                raise InvalidPathArgumentError(msg)
        self._stores_by_key = {
            store.key: store for store in self._stores if store.key is not None
        }
        self._private_directories = tuple(private_directories)
        self._grants: list[tuple[str, str, UriGrant]] = []
        self._trie: SegmentTrie[GrantEntry] | None = None
        self._lock = threading.RLock()

    @property
    def stores(self) -> tuple[FileStore, ...]:
        return self._stores

    def add_grant(self, store_key: str, relative: str, grant: UriGrant) -> None:
        """Register ``grant`` for ``relative`` below the store keyed ``store_key``."""

        with self._lock:
            self._grants.append((store_key, relative, grant))
            self._trie = None

    def release_grant(self, uri: str) -> bool:
        """Forget every grant issued for ``uri``; return whether any existed."""

        with self._lock:
            remaining = [item for item in self._grants if item[2].uri != uri]
            released = len(remaining) != len(self._grants)
            self._grants = remaining
            if released:
                self._trie = None
            return released

    def invalidate(self) -> None:
        """Drop the materialised trie; the next query rebuilds it."""

        with self._lock:
            self._trie = None
        logger.debug("Invalidated grant index.", event="grants.invalidate")

    def build(self) -> SegmentTrie[GrantEntry]:
        """Return the grant trie, building it first when invalidated."""

        with self._lock:
            if self._trie is None:
                self._trie = self._build()
            return self._trie

    def find_store(self, path: PathValue) -> FileStore | None:
        """Return the store whose mount point is the longest prefix of ``path``."""

        candidates = [store for store in self._stores if path.starts_with(store.path)]
        if not candidates:
            return None
        return max(candidates, key=lambda store: store.path.name_count)

    def covering_grant(self, path: PathValue) -> GrantEntry | None:
        """Return the entry whose read-write grant governs ``path``.

        The root-closest qualifying grant wins. ``None`` is returned when no
        grant covers the path or when the path lies inside an unprotected
        subtree, where no grant is needed.

        Raises:
            InvalidPathArgumentError: If ``path`` is relative.
        """

        if not path.is_absolute:
            msg = f"Path {str(path)!r} must be absolute."
            raise InvalidPathArgumentError(msg)
        with self._lock:
            shortest: GrantEntry | None = None
            descender = self.build().descend(path)
            for kind in descender:
                if kind.is_missing:
                    break
                entry = descender.entry
                if entry is None:
                    continue
                if entry.unprotected:
                    return None
                grant = entry.grant
                if shortest is None and grant is not None and grant.read_write:
                    shortest = entry
            return shortest

    def document_id(self, path: PathValue) -> str | None:
        """Return ``"<store name>:<store-relative path>"`` for a covered path.

        Paths on the primary store, uncovered paths and paths inside
        unprotected subtrees have no document id.
        """

        return _document_id(self.covering_grant(path), path)

    def document_uri(self, path: PathValue) -> str | None:
        """Return the document URI under the covering grant's tree URI."""

        entry = self.covering_grant(path)
        document_id = _document_id(entry, path)
        if entry is None or entry.grant is None or document_id is None:
            return None
        tree_uri = entry.grant.uri.rstrip("/")
        return f"{tree_uri}/{DOCUMENT_SEGMENT}/{quote(document_id, safe='')}"

    def path_of(self, uri: str) -> PathValue:
        """Map a tree or document URI back to the store path it names.

        Tree URIs end in ``tree/<store key>:<relative>``; document URIs append
        ``document/<store name>:<relative>`` to a tree URI. Segments are
        percent-decoded after splitting, so an encoded ``/`` inside an id
        separates names of the relative path.

        Raises:
            InvalidPathArgumentError: If ``uri`` has neither form, names an
                unknown store, or its document id belongs to another store.
        """

        segments = [unquote(part) for part in urlsplit(uri).path.split("/") if part]
        if len(segments) in {2, 4} and segments[0] == TREE_SEGMENT:
            key, separator, relative = segments[1].partition(":")
            if separator:
                store = self._stores_by_key.get(key)
                if store is None:
                    msg = f"No store is registered under {key!r} for {uri!r}."
                    raise InvalidPathArgumentError(msg)
                if len(segments) == 2:
                    return store.path.resolve(relative)
                name, separator, relative = segments[3].partition(":")
                if (
                    segments[2] == DOCUMENT_SEGMENT
                    and separator
                    and name == store.name
                ):
                    return store.path.resolve(relative)
        msg = f"{uri!r} is not a tree or document URI of a registered store."
        raise InvalidPathArgumentError(msg)

    def _build(self) -> SegmentTrie[GrantEntry]:
        trie: SegmentTrie[GrantEntry] = SegmentTrie(GrantEntry(ROOT, None))
        for store in self._stores:
            for directory in self._private_directories:
                target = store.path.resolve(directory)
                self._anchor(trie, target, store).unprotected = True

        anchored = 0
        for store_key, relative, grant in self._grants:
            store = self._stores_by_key.get(store_key)
            if store is None:
                logger.warning(
                    "Skipping grant for unknown store.",
                    event="grants.unknown_store",
                    context={"store": store_key, "uri": grant.uri},
                )
                continue
            target = store.path.resolve(relative)
            self._anchor(trie, target, store).grant = grant
            anchored += 1

        logger.debug(
            "Built grant index.",
            event="grants.build",
            context={
                "stores": len(self._stores),
                "grants": anchored,
                "nodes": len(trie),
            },
        )
        return trie

    @staticmethod
    def _anchor(
        trie: SegmentTrie[GrantEntry], target: PathValue, store: FileStore
    ) -> GrantEntry:
        """Walk to ``target``, creating entries for every missing position."""

        node: SegmentNode[GrantEntry] = trie.root
        descender = trie.descend(target)
        for _ in descender:
            current = descender.node
            if current is None or current.entry is None:
                current = descender.set(GrantEntry(descender.path, store))
            node = current
        entry = node.entry
        if entry is None:
            entry = node.entry = GrantEntry(target, store)
        return entry


def _document_id(entry: GrantEntry | None, path: PathValue) -> str | None:
    if entry is None or entry.store is None or entry.store.primary:
        return None
    return f"{entry.store.name}:{entry.store.path.relativize(path)}"


__all__ = [
    "DOCUMENT_SEGMENT",
    "PRIMARY_STORE_KEY",
    "TREE_SEGMENT",
    "FileStore",
    "GrantEntry",
    "GrantIndex",
    "UriGrant",
]
