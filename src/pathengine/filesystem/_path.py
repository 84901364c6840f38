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

"""Lexical Unix path values and their algebra.

A :class:`PathValue` is an immutable pair of an absolute flag and an ordered
tuple of names. Nothing in this module touches storage: parsing, joining,
normalisation and relativisation are pure text transformations following
POSIX conventions (separator ``/``, ``.`` and ``..`` as ordinary names until
:meth:`PathValue.normalize`).

Two degenerate values exist:

- the absolute root ``/`` with zero names;
- the relative empty path ``""`` with exactly one empty name.

Examples:
    >>> str(parse("//foo///bar//"))
    '/foo/bar'
    >>> str(join("/", "////c"))
    '/c'
    >>> str(parse("/a/b").relativize(parse("/a/x")))
    '../x'
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Mapping
from typing import Final, override

from ..dataclasses import FrozenDataclass
from ..dbc import ensure, pure
from ..errors import InvalidPathArgumentError

SEPARATOR: Final[str] = "/"
CURRENT: Final[str] = "."
PARENT: Final[str] = ".."

_SEPARATOR_RUN: Final[re.Pattern[str]] = re.compile("/+")


@FrozenDataclass(order=True)
class PathValue:
    """Immutable lexical path.

    Field order defines the structural ordering: relative paths sort before
    absolute ones, then names compare lexicographically. Construct values
    with :func:`parse` or :func:`join`; the constructor is public for callers
    that already hold a name sequence and canonicalises it the same way.

    Attributes:
        is_absolute: Whether the path is anchored at the root.
        names: Lexical components between separators.
    """

    is_absolute: bool
    names: tuple[str, ...]

    @classmethod
    def __pre_init__(
        cls, *, is_absolute: bool, names: Iterable[str]
    ) -> Mapping[str, object]:
        resolved = tuple(names)
        if resolved == ("",):
            resolved = () if is_absolute else resolved
        elif not resolved and not is_absolute:
            resolved = ("",)
        else:
            for name in resolved:
                if not name or SEPARATOR in name:
                    msg = f"Invalid path name {name!r} in {resolved!r}."
                    raise InvalidPathArgumentError(msg)
        return {"is_absolute": bool(is_absolute), "names": resolved}

    @override
    def __str__(self) -> str:
        text = SEPARATOR.join(self.names)
        return SEPARATOR + text if self.is_absolute else text

    @override
    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r})"

    def __iter__(self) -> Iterator[PathValue]:
        """Yield each name as a single-name relative path."""

        for name in self.names:
            yield PathValue(False, (name,))

    @property
    def name_count(self) -> int:
        return len(self.names)

    @property
    def is_empty(self) -> bool:
        """``True`` for the degenerate relative path ``""``."""

        return not self.is_absolute and self.names == ("",)

    @property
    def root(self) -> PathValue | None:
        return ROOT if self.is_absolute else None

    @property
    def file_name(self) -> PathValue | None:
        """The last name as a relative path, or ``None`` for the root."""

        if not self.names:
            return None
        return PathValue(False, self.names[-1:])

    @property
    def parent(self) -> PathValue | None:
        """The path without its last name.

        ``None`` for the root, for the empty path and for any single-name
        relative path. A single-name absolute path has the root as parent.
        """

        if len(self.names) > 1:
            return PathValue(self.is_absolute, self.names[:-1])
        if self.is_absolute and self.names:
            return ROOT
        return None

    def get_name(self, index: int) -> PathValue:
        """Return the name at ``index`` as a single-name relative path.

        Raises:
            InvalidPathArgumentError: If ``index`` is outside
                ``[0, name_count)``.
        """

        if not 0 <= index < len(self.names):
            msg = f"Name index {index} out of range for {str(self)!r}."
            raise InvalidPathArgumentError(msg)
        return PathValue(False, (self.names[index],))

    def subpath(self, begin: int, end: int) -> PathValue:
        """Return the relative path made of names ``[begin, end)``.

        Raises:
            InvalidPathArgumentError: Unless ``0 <= begin < end <= name_count``.
        """

        if not 0 <= begin < end <= len(self.names):
            msg = f"Invalid subpath range [{begin}, {end}) for {str(self)!r}."
            raise InvalidPathArgumentError(msg)
        return PathValue(False, self.names[begin:end])

    def starts_with(self, other: PathValue | str) -> bool:
        """Return whether ``other`` is a literal name prefix of this path.

        Absoluteness must match; names are compared verbatim without
        normalisation, so ``"foo/bar"`` starts with ``"foo"`` but not with
        ``"fo"`` or ``""``.
        """

        prefix = _coerce(other)
        if prefix.is_absolute != self.is_absolute:
            return False
        count = len(prefix.names)
        return count <= len(self.names) and self.names[:count] == prefix.names

    def ends_with(self, other: PathValue | str) -> bool:
        """Return whether ``other`` is a literal name suffix of this path.

        An absolute ``other`` only matches the whole path. A relative
        ``other`` never consumes the root marker, so ``"/foo/bar"`` ends with
        ``"bar"`` and ``"foo/bar"`` but not with ``"/bar"``.
        """

        suffix = _coerce(other)
        if suffix.is_absolute:
            return suffix == self
        count = len(suffix.names)
        return count <= len(self.names) and self.names[-count:] == suffix.names

    def resolve(self, other: PathValue | str) -> PathValue:
        """Resolve ``other`` against this path.

        An absolute ``other`` is returned as is. Empty operands act as the
        identity on either side; otherwise the names of ``other`` are
        appended and this path's absoluteness is kept.
        """

        child = _coerce(other)
        if child.is_absolute or self.is_empty:
            return child
        if child.is_empty:
            return self
        return PathValue(self.is_absolute, self.names + child.names)

    def resolve_sibling(self, other: PathValue | str) -> PathValue:
        """Resolve ``other`` against this path's parent."""

        parent = self.parent
        if parent is None:
            return _coerce(other)
        return parent.resolve(other)

    @ensure(lambda self, result: result.is_absolute == self.is_absolute)
    def normalize(self) -> PathValue:
        """Remove ``.`` names and cancel ``name/..`` pairs.

        ``..`` never cancels another ``..`` nor crosses the left edge, so
        leading ``..`` runs survive: ``"../a/b/.."`` normalises to ``"../a"``
        and ``"a/.."`` to the empty path.
        """

        return PathValue(self.is_absolute, _normal_names(self.names))

    @ensure(lambda self, other, result: not result.is_absolute)
    def relativize(self, other: PathValue | str) -> PathValue:
        """Construct the relative path leading from this path to ``other``.

        Both operands are normalised first. The result holds one ``..`` for
        every name of this path beyond the common prefix, followed by the
        remaining names of ``other``.

        Raises:
            InvalidPathArgumentError: If exactly one operand is absolute.

        Example:
            >>> str(parse("/a/b/c/../..").relativize("/a/b/c/d"))
            'b/c/d'
        """

        target = _coerce(other)
        if target.is_absolute != self.is_absolute:
            msg = (
                f"Cannot relativize {str(target)!r} against {str(self)!r}: "
                "both paths must be absolute or both relative."
            )
            raise InvalidPathArgumentError(msg)
        base_names = _normal_names(self.names)
        target_names = _normal_names(target.names)
        common = 0
        for base_name, target_name in zip(base_names, target_names, strict=False):
            if base_name != target_name:
                break
            common += 1
        names = [PARENT] * (len(base_names) - common) + target_names[common:]
        return PathValue(False, names)


ROOT: Final[PathValue] = PathValue(True, ())
EMPTY: Final[PathValue] = PathValue(False, ("",))


def _normal_names(names: Iterable[str]) -> list[str]:
    stack: list[str] = []
    for name in names:
        if not name or name == CURRENT:
            continue
        if name == PARENT and stack and stack[-1] != PARENT:
            _ = stack.pop()
        else:
            stack.append(name)
    return stack


def _coerce(value: PathValue | str) -> PathValue:
    if isinstance(value, PathValue):
        return value
    return parse(value)


@pure
def sanitize(text: str) -> str:
    """Collapse separator runs and drop a trailing separator.

    The lone root ``"/"`` keeps its separator.

    Examples:
        >>> sanitize("//./foo//./")
        '/./foo/.'
        >>> sanitize("//////")
        '/'
    """

    collapsed = _SEPARATOR_RUN.sub(SEPARATOR, text)
    if len(collapsed) > 1 and collapsed.endswith(SEPARATOR):
        return collapsed[:-1]
    return collapsed


@pure
def parse(text: str) -> PathValue:
    """Parse raw text into a :class:`PathValue`.

    Any string is a valid path. ``""`` yields the empty path with a single
    empty name; ``"/"`` yields the root with no names.
    """

    sanitized = sanitize(text)
    if sanitized.startswith(SEPARATOR):
        body = sanitized[1:]
        return PathValue(True, body.split(SEPARATOR) if body else ())
    return PathValue(False, sanitized.split(SEPARATOR))


@pure
def join(*parts: str) -> PathValue:
    """Concatenate ``parts`` with separators and parse the result.

    The concatenation is purely textual: a later part starting with ``/``
    does not reset the path, its separators simply collapse into the
    previous ones. Empty parts contribute nothing.

    Examples:
        >>> str(join("/foo/", "/bar"))
        '/foo/bar'
        >>> str(join("", "/"))
        '/'
    """

    return parse(SEPARATOR.join(part for part in parts if part))


__all__ = [
    "CURRENT",
    "EMPTY",
    "PARENT",
    "ROOT",
    "SEPARATOR",
    "PathValue",
    "join",
    "parse",
    "sanitize",
]
