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

"""Path matchers and directory-entry filtering.

A matcher string has the form ``syntax:pattern`` where ``syntax`` is
``glob`` or ``regex``. Directory filtering applies a glob to the file names
of the entries a backend enumerated, so storage adapters never need to
interpret glob text themselves.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import field
from typing import Final, Literal

from ..dataclasses import FrozenDataclass
from ..errors import GlobSyntaxError, InvalidPathArgumentError, UnsupportedSyntaxError
from ..runtime.logging import get_logger
from ._glob import compile_glob
from ._path import CURRENT, PARENT, PathValue, parse

logger = get_logger(__name__)

MatcherSyntax = Literal["glob", "regex"]

_SYNTAXES: Final[frozenset[str]] = frozenset({"glob", "regex"})


@FrozenDataclass()
class PathMatcher:
    """Matches paths by the canonical text of a :class:`PathValue`.

    Attributes:
        syntax: Either ``"glob"`` or ``"regex"``.
        pattern: The pattern text without its syntax prefix.
    """

    syntax: MatcherSyntax
    pattern: str
    _regex: re.Pattern[str] = field(repr=False, compare=False)

    def matches(self, path: PathValue | str) -> bool:
        return self._regex.fullmatch(str(path)) is not None


def get_path_matcher(syntax_and_pattern: str) -> PathMatcher:
    """Build a matcher from a ``syntax:pattern`` string.

    Raises:
        InvalidPathArgumentError: If the string lacks a ``:``.
        UnsupportedSyntaxError: If the syntax is neither glob nor regex.
        GlobSyntaxError: If the pattern fails to compile.

    Examples:
        >>> get_path_matcher("glob:*.java").matches("Foo.java")
        True
        >>> get_path_matcher("regex:[0-9]+").matches("2019")
        True
    """

    syntax, separator, pattern = syntax_and_pattern.partition(":")
    if not separator:
        msg = f"Matcher {syntax_and_pattern!r} must have the form 'syntax:pattern'."
        raise InvalidPathArgumentError(msg)
    if syntax not in _SYNTAXES:
        msg = f"Syntax {syntax!r} is not supported; use 'glob' or 'regex'."
        raise UnsupportedSyntaxError(msg)
    if syntax == "glob":
        return PathMatcher("glob", pattern, compile_glob(pattern).regex)
    try:
        regex = re.compile(pattern)
    except re.error as error:
        raise GlobSyntaxError(error.msg, pattern, error.pos) from error
    return PathMatcher("regex", pattern, regex)


def filter_directory(
    directory: PathValue,
    names: Iterable[str],
    pattern: str,
) -> Iterator[PathValue]:
    """Yield the children of ``directory`` whose file name matches ``pattern``.

    ``names`` are the raw entry names a backend enumerated. Only a single
    relative name other than ``.`` or ``..`` denotes a child. Other entries
    are skipped, so every yielded path has ``directory`` as its parent.
    Children are yielded in sorted order so listings are stable across
    backends.
    """

    glob = compile_glob(pattern)
    children: list[PathValue] = []
    for name in names:
        entry = parse(name)
        if not _is_child_name(entry):
            logger.debug(
                "Skipped entry that is not a direct child.",
                event="matcher.skip_entry",
                context={"directory": str(directory), "name": name},
            )
            continue
        if glob.matches(entry):
            children.append(directory.resolve(entry))
    yield from sorted(children)


def _is_child_name(entry: PathValue) -> bool:
    return (
        not entry.is_absolute
        and not entry.is_empty
        and entry.name_count == 1
        and entry.names[0] not in {CURRENT, PARENT}
    )


__all__ = [
    "MatcherSyntax",
    "PathMatcher",
    "filter_directory",
    "get_path_matcher",
]
