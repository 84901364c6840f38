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

"""Shell glob compilation.

Globs are translated into anchored regular expressions once and reused for
any number of matches. The grammar follows the Unix path conventions of the
rest of the package:

=========  ===========================================================
``*``      zero or more characters within one name (never ``/``)
``**``     zero or more characters, crossing ``/`` boundaries
``?``      exactly one character other than ``/``
``[...]``  character class; leading ``!`` negates, ``a-z`` is a range,
           ``-`` first or last is literal, ``\\`` escapes inside
``{a,b}``  alternation of sub-globs; groups do not nest
``\\x``    the character ``x`` literally
=========  ===========================================================

Matching is case-sensitive and always covers the whole candidate text.
"""

from __future__ import annotations

import re
from dataclasses import field
from functools import lru_cache
from typing import Final

from ..dataclasses import FrozenDataclass
from ..errors import GlobSyntaxError
from ..runtime.logging import get_logger
from ._path import SEPARATOR, PathValue

logger = get_logger(__name__)

GLOB_CACHE_SIZE: Final[int] = 256

_CLASS_SPECIALS: Final[frozenset[str]] = frozenset("\\]^-[&~|")


@FrozenDataclass()
class GlobPattern:
    """A compiled glob, immutable and safe to share between threads.

    Attributes:
        pattern: The glob text the matcher was compiled from.
        regex: The equivalent anchored regular expression.
    """

    pattern: str
    regex: re.Pattern[str] = field(compare=False, repr=False)

    def matches(self, candidate: PathValue | str) -> bool:
        """Return whether ``candidate`` (or its canonical text) matches fully."""

        return self.regex.fullmatch(str(candidate)) is not None


def glob_to_regex(pattern: str) -> str:
    """Translate ``pattern`` into regular expression source.

    Raises:
        GlobSyntaxError: For an unterminated class or group, a nested group,
            an inverted range, an explicit separator inside a class, or a
            trailing escape character.
    """

    parts: list[str] = []
    in_group = False
    index = 0
    length = len(pattern)
    while index < length:
        char = pattern[index]
        index += 1
        if char == "*":
            if index < length and pattern[index] == "*":
                index += 1
                parts.append(".*")
            else:
                parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        elif char == "[":
            translated, index = _translate_class(pattern, index)
            parts.append(translated)
        elif char == "{":
            if in_group:
                raise GlobSyntaxError("Cannot nest groups", pattern, index - 1)
            in_group = True
            parts.append("(?:")
        elif char == "}" and in_group:
            in_group = False
            parts.append(")")
        elif char == "," and in_group:
            parts.append("|")
        elif char == "\\":
            if index == length:
                raise GlobSyntaxError("No character to escape", pattern, index - 1)
            parts.append(re.escape(pattern[index]))
            index += 1
        else:
            parts.append(re.escape(char))
    if in_group:
        raise GlobSyntaxError("Missing '}'", pattern, length)
    return "".join(parts)


def _translate_class(pattern: str, index: int) -> tuple[str, int]:
    """Translate the class starting just after ``[``; return regex and next index."""

    start = index - 1
    length = len(pattern)
    negated = index < length and pattern[index] == "!"
    if negated:
        index += 1

    items: list[str] = []
    previous: str | None = None
    first = True
    while index < length:
        char = pattern[index]
        index += 1
        if char == "]" and not first:
            break
        first = False
        if char == SEPARATOR:
            raise GlobSyntaxError("Explicit separator in class", pattern, index - 1)
        if char == "\\":
            if index == length:
                raise GlobSyntaxError("Missing ']'", pattern, start)
            char = pattern[index]
            index += 1
        elif (
            char == "-"
            and previous is not None
            and index < length
            and pattern[index] != "]"
        ):
            range_start = index - 2
            upper = pattern[index]
            index += 1
            if upper == "\\" and index < length:
                upper = pattern[index]
                index += 1
            if upper < previous:
                raise GlobSyntaxError("Invalid range", pattern, range_start)
            items.append("-" + _class_char(upper))
            previous = None
            continue
        items.append(_class_char(char))
        previous = char
    else:
        raise GlobSyntaxError("Missing ']'", pattern, start)

    body = "".join(items)
    if negated:
        return f"[^/{body}]", index
    return f"(?!/)[{body}]", index


def _class_char(char: str) -> str:
    return "\\" + char if char in _CLASS_SPECIALS else char


@lru_cache(maxsize=GLOB_CACHE_SIZE)
def compile_glob(pattern: str) -> GlobPattern:
    """Compile ``pattern`` into a reusable :class:`GlobPattern`.

    Compiled patterns are cached, so recompiling the same text is cheap.

    Raises:
        GlobSyntaxError: If ``pattern`` is not a well-formed glob.

    Example:
        >>> compile_glob("*.{java,class}").matches("foo.class")
        True
    """

    regex = glob_to_regex(pattern)
    logger.debug(
        "Compiled glob pattern.",
        event="glob.compile",
        context={"pattern": pattern, "regex": regex},
    )
    return GlobPattern(pattern, re.compile(regex, re.DOTALL))


__all__ = [
    "GLOB_CACHE_SIZE",
    "GlobPattern",
    "compile_glob",
    "glob_to_regex",
]
