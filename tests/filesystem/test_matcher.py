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

"""Tests for path matchers and directory filtering."""

from __future__ import annotations

import logging

import pytest

from pathengine.errors import (
    GlobSyntaxError,
    InvalidPathArgumentError,
    UnsupportedSyntaxError,
)
from pathengine.filesystem import filter_directory, get_path_matcher, parse

pytestmark = pytest.mark.core


class TestGetPathMatcher:
    """Test syntax:pattern matcher construction."""

    def test_glob_syntax(self) -> None:
        matcher = get_path_matcher("glob:*.java")
        assert matcher.syntax == "glob"
        assert matcher.pattern == "*.java"
        assert matcher.matches("Foo.java")
        assert not matcher.matches("src/Foo.java")

    def test_regex_syntax(self) -> None:
        matcher = get_path_matcher("regex:/data/[0-9]+")
        assert matcher.matches(parse("/data/2019"))
        assert not matcher.matches(parse("/data/2019/x"))

    def test_pattern_may_contain_colons(self) -> None:
        assert get_path_matcher("glob:a:b").matches("a:b")

    def test_missing_syntax(self) -> None:
        with pytest.raises(InvalidPathArgumentError):
            get_path_matcher("*.java")

    def test_unknown_syntax(self) -> None:
        with pytest.raises(UnsupportedSyntaxError):
            get_path_matcher("shell:*.java")

    def test_malformed_regex(self) -> None:
        with pytest.raises(GlobSyntaxError):
            get_path_matcher("regex:(unclosed")

    def test_malformed_glob(self) -> None:
        with pytest.raises(GlobSyntaxError):
            get_path_matcher("glob:[z-a]")


class TestFilterDirectory:
    """Test glob filtering of enumerated entry names."""

    def test_filters_by_file_name(self) -> None:
        directory = parse("/sdcard/Music")
        names = ["b.mp3", "cover.jpg", "a.mp3", "notes.txt"]

        matched = list(filter_directory(directory, names, "*.{mp3,jpg}"))

        assert [str(path) for path in matched] == [
            "/sdcard/Music/a.mp3",
            "/sdcard/Music/b.mp3",
            "/sdcard/Music/cover.jpg",
        ]

    def test_skips_empty_names(self) -> None:
        assert list(filter_directory(parse("/d"), ["", "x"], "*")) == [parse("/d/x")]

    def test_relative_directory(self) -> None:
        matched = filter_directory(parse("docs"), [".hidden", "readme"], ".*")
        assert list(matched) == [parse("docs/.hidden")]

    def test_only_direct_children_are_yielded(self) -> None:
        directory = parse("/d")
        names = ["b.txt", "a.txt", "c.md", "x/y.txt", "/etc/passwd.txt"]

        matched = list(filter_directory(directory, names, "*.txt"))

        assert [str(path) for path in matched] == ["/d/a.txt", "/d/b.txt"]
        assert all(path.parent == directory for path in matched)

    @pytest.mark.parametrize("name", [".", "..", "/", "//", "a/b", "/abs"])
    def test_non_child_names_are_skipped(self, name: str) -> None:
        assert list(filter_directory(parse("/d"), [name], "**")) == []

    def test_skipped_entries_are_logged(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.DEBUG, logger="pathengine.filesystem._matcher"):
            list(filter_directory(parse("/d"), ["../up.txt", "ok.txt"], "*.txt"))

        skipped = [
            getattr(record, "context", {}).get("name")
            for record in caplog.records
            if getattr(record, "event", None) == "matcher.skip_entry"
        ]
        assert skipped == ["../up.txt"]
