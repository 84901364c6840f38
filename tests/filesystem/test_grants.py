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

"""Tests for the grant index."""

from __future__ import annotations

import logging

import pytest

from pathengine.errors import InvalidPathArgumentError
from pathengine.filesystem import (
    FileStore,
    GrantIndex,
    UriGrant,
    parse,
)

TREE_URI = "content://docs/tree/1234-ABCD%3AMusic"

pytestmark = pytest.mark.core


@pytest.fixture
def sdcard() -> FileStore:
    return FileStore("1234-ABCD", parse("/storage/1234-ABCD"), uuid="1234-ABCD")


@pytest.fixture
def primary() -> FileStore:
    return FileStore("primary", parse("/storage/emulated/0"), primary=True)


@pytest.fixture
def index(sdcard: FileStore, primary: FileStore) -> GrantIndex:
    index = GrantIndex(
        [primary, sdcard], private_directories=["Android/data/org.example"]
    )
    index.add_grant("1234-ABCD", "Music", UriGrant(TREE_URI))
    index.add_grant("primary", "Download", UriGrant("content://docs/tree/primary"))
    return index


class TestFileStore:
    def test_key(self, sdcard: FileStore, primary: FileStore) -> None:
        assert sdcard.key == "1234-ABCD"
        assert primary.key == "primary"
        assert FileStore("usb", parse("/mnt/usb")).key is None

    def test_relative_mount_is_rejected(self) -> None:
        with pytest.raises(InvalidPathArgumentError):
            GrantIndex([FileStore("bad", parse("mnt/bad"))])


class TestCoveringGrant:
    """Test grant resolution along a path."""

    def test_covered_path(self, index: GrantIndex) -> None:
        entry = index.covering_grant(parse("/storage/1234-ABCD/Music/live/a.flac"))
        assert entry is not None
        assert entry.grant is not None
        assert entry.grant.uri == TREE_URI
        assert entry.path == parse("/storage/1234-ABCD/Music")

    def test_grant_root_itself(self, index: GrantIndex) -> None:
        entry = index.covering_grant(parse("/storage/1234-ABCD/Music"))
        assert entry is not None

    def test_sibling_is_not_covered(self, index: GrantIndex) -> None:
        assert index.covering_grant(parse("/storage/1234-ABCD/Movies/x")) is None

    def test_unprotected_subtree(self, index: GrantIndex) -> None:
        index.add_grant("1234-ABCD", "", UriGrant("content://docs/tree/1234-ABCD%3A"))
        path = parse("/storage/1234-ABCD/Android/data/org.example/files/a")
        assert index.covering_grant(path) is None

    def test_root_closest_grant_wins(self, index: GrantIndex) -> None:
        index.add_grant("1234-ABCD", "Music/live", UriGrant("content://nested"))
        entry = index.covering_grant(parse("/storage/1234-ABCD/Music/live/a.flac"))
        assert entry is not None
        assert entry.grant is not None
        assert entry.grant.uri == TREE_URI

    def test_read_only_grant_does_not_cover(self, sdcard: FileStore) -> None:
        index = GrantIndex([sdcard])
        index.add_grant(
            "1234-ABCD", "Music", UriGrant("content://ro", writable=False)
        )
        assert index.covering_grant(parse("/storage/1234-ABCD/Music/a")) is None

    def test_relative_path_is_rejected(self, index: GrantIndex) -> None:
        with pytest.raises(InvalidPathArgumentError):
            index.covering_grant(parse("Music/a"))

    def test_unknown_store_is_skipped(
        self, sdcard: FileStore, caplog: pytest.LogCaptureFixture
    ) -> None:
        index = GrantIndex([sdcard])
        index.add_grant("FFFF-0000", "Music", UriGrant("content://gone"))
        with caplog.at_level(logging.WARNING, logger="pathengine.filesystem._grants"):
            assert index.covering_grant(parse("/storage/FFFF-0000/Music")) is None
        events = [getattr(record, "event", None) for record in caplog.records]
        assert "grants.unknown_store" in events


class TestLifecycle:
    """Test explicit invalidation and grant release."""

    def test_build_is_reused_until_invalidated(self, index: GrantIndex) -> None:
        first = index.build()
        assert index.build() is first
        index.invalidate()
        assert index.build() is not first

    def test_release_grant(self, index: GrantIndex) -> None:
        path = parse("/storage/1234-ABCD/Music/a.flac")
        assert index.covering_grant(path) is not None

        assert index.release_grant(TREE_URI)
        assert index.covering_grant(path) is None
        assert not index.release_grant(TREE_URI)

    def test_add_grant_rebuilds(self, index: GrantIndex) -> None:
        path = parse("/storage/1234-ABCD/Movies/a.mkv")
        assert index.covering_grant(path) is None
        index.add_grant("1234-ABCD", "Movies", UriGrant("content://movies"))
        assert index.covering_grant(path) is not None


class TestDocumentIds:
    """Test document id and URI derivation."""

    def test_document_id(self, index: GrantIndex) -> None:
        path = parse("/storage/1234-ABCD/Music/live/a.flac")
        assert index.document_id(path) == "1234-ABCD:Music/live/a.flac"

    def test_document_uri_is_quoted(self, index: GrantIndex) -> None:
        path = parse("/storage/1234-ABCD/Music/a b.flac")
        assert index.document_uri(path) == (
            f"{TREE_URI}/document/1234-ABCD%3AMusic%2Fa%20b.flac"
        )

    def test_primary_store_has_no_document_id(self, index: GrantIndex) -> None:
        path = parse("/storage/emulated/0/Download/a.pdf")
        assert index.covering_grant(path) is not None
        assert index.document_id(path) is None
        assert index.document_uri(path) is None

    def test_uncovered_path(self, index: GrantIndex) -> None:
        assert index.document_uri(parse("/storage/1234-ABCD/Movies")) is None


class TestPathOf:
    """Test mapping tree and document URIs back to store paths."""

    def test_tree_uri(self, index: GrantIndex) -> None:
        assert index.path_of(TREE_URI) == parse("/storage/1234-ABCD/Music")

    def test_tree_uri_of_store_root(self, index: GrantIndex) -> None:
        uri = "content://docs/tree/primary%3A"
        assert index.path_of(uri) == parse("/storage/emulated/0")

    def test_document_uri_maps_back(self, index: GrantIndex) -> None:
        path = parse("/storage/1234-ABCD/Music/a b.flac")
        uri = index.document_uri(path)
        assert uri is not None
        assert index.path_of(uri) == path

    @pytest.mark.parametrize(
        "uri",
        [
            "content://docs/tree/0000-0000%3AMusic",
            "content://docs/tree/0000-0000%3AMusic/document/0000-0000%3AMusic%2Fa",
        ],
    )
    def test_unknown_store(self, index: GrantIndex, uri: str) -> None:
        with pytest.raises(InvalidPathArgumentError, match="No store"):
            index.path_of(uri)

    @pytest.mark.parametrize(
        "uri",
        [
            "content://docs/document/1234-ABCD%3AMusic",
            "content://docs/tree/1234-ABCD",
            "content://docs/tree",
            f"{TREE_URI}/child/1234-ABCD%3AMusic%2Fa",
            f"{TREE_URI}/document/primary%3AMusic%2Fa",
            f"{TREE_URI}/document/Music%2Fa",
        ],
    )
    def test_malformed_uri(self, index: GrantIndex, uri: str) -> None:
        with pytest.raises(InvalidPathArgumentError, match="not a tree or document"):
            index.path_of(uri)


class TestFindStore:
    def test_longest_mount_wins(self, primary: FileStore) -> None:
        nested = FileStore("nested", parse("/storage/emulated/0/nested"), uuid="N")
        index = GrantIndex([primary, nested])
        assert index.find_store(parse("/storage/emulated/0/nested/a")) == nested
        assert index.find_store(parse("/storage/emulated/0/a")) == primary
        assert index.find_store(parse("/mnt")) is None
