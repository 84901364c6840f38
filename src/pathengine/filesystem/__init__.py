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

"""Lexical path engine: path values, glob matchers and the segment trie.

Storage backends interpret user-supplied path text through this package
before touching storage::

    from pathengine.filesystem import compile_glob, parse

    base = parse("/storage/emulated/0")
    target = base.resolve("Music/../Podcasts/./today.mp3").normalize()
    assert compile_glob("**/*.mp3").matches(target)

The submodules are private; everything public is re-exported here.
"""

from __future__ import annotations

from ._glob import GLOB_CACHE_SIZE, GlobPattern, compile_glob, glob_to_regex
from ._grants import (
    DOCUMENT_SEGMENT,
    PRIMARY_STORE_KEY,
    TREE_SEGMENT,
    FileStore,
    GrantEntry,
    GrantIndex,
    UriGrant,
)
from ._matcher import MatcherSyntax, PathMatcher, filter_directory, get_path_matcher
from ._path import (
    CURRENT,
    EMPTY,
    PARENT,
    ROOT,
    SEPARATOR,
    PathValue,
    join,
    parse,
    sanitize,
)
from ._trie import (
    Descender,
    SegmentKind,
    SegmentNode,
    SegmentTrie,
    descend,
    longest_covering,
    shortest_covering,
)

__all__ = [
    "CURRENT",
    "DOCUMENT_SEGMENT",
    "EMPTY",
    "GLOB_CACHE_SIZE",
    "PARENT",
    "PRIMARY_STORE_KEY",
    "ROOT",
    "SEPARATOR",
    "TREE_SEGMENT",
    "Descender",
    "FileStore",
    "GlobPattern",
    "GrantEntry",
    "GrantIndex",
    "MatcherSyntax",
    "PathMatcher",
    "PathValue",
    "SegmentKind",
    "SegmentNode",
    "SegmentTrie",
    "UriGrant",
    "compile_glob",
    "descend",
    "filter_directory",
    "get_path_matcher",
    "glob_to_regex",
    "join",
    "longest_covering",
    "parse",
    "sanitize",
    "shortest_covering",
]
