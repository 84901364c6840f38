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

"""Portable Unix path engine shared by storage backends."""

from __future__ import annotations

from . import dbc, errors, filesystem, runtime
from .errors import (
    DescenderStateError,
    GlobSyntaxError,
    InvalidPathArgumentError,
    PathEngineError,
    UnsupportedSyntaxError,
)
from .filesystem import (
    GlobPattern,
    PathValue,
    SegmentKind,
    SegmentTrie,
    compile_glob,
    descend,
    join,
    parse,
)

__all__ = [
    "DescenderStateError",
    "GlobPattern",
    "GlobSyntaxError",
    "InvalidPathArgumentError",
    "PathEngineError",
    "PathValue",
    "SegmentKind",
    "SegmentTrie",
    "UnsupportedSyntaxError",
    "compile_glob",
    "dbc",
    "descend",
    "errors",
    "filesystem",
    "join",
    "parse",
    "runtime",
]
