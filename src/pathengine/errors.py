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

"""Base exception hierarchy for :mod:`pathengine`."""

from __future__ import annotations

from typing import override


class PathEngineError(Exception):
    """Base class for all pathengine exceptions.

    Every operation of the path engine is pure and deterministic, so errors
    signal programmer or input mistakes rather than transient conditions.
    Retrying a failed call with the same arguments fails identically.

    Example:
        Catch any engine-specific error::

            try:
                pattern = compile_glob(user_text)
            except PathEngineError as e:
                logger.error("Rejected input: %s", e)

    Note:
        Subclasses also inherit from the builtin exception a caller would
        naturally expect (``ValueError``, ``RuntimeError``).
    """


class InvalidPathArgumentError(PathEngineError, ValueError):
    """Raised when a path operation receives an argument outside its domain.

    Common causes:
        - ``subpath`` or ``get_name`` indices outside ``[0, name_count)``
        - ``relativize`` between an absolute and a relative path
        - a name containing the ``/`` separator
        - a path matcher string without a ``syntax:`` prefix
    """


class GlobSyntaxError(PathEngineError, ValueError):
    """Raised when a glob (or matcher regex) cannot be compiled.

    Attributes:
        pattern: The pattern text that failed to compile.
        index: Offset into ``pattern`` where the problem was detected, or
            ``None`` when no single position is to blame.
    """

    def __init__(self, message: str, pattern: str, index: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.pattern = pattern
        self.index = index

    @override
    def __str__(self) -> str:
        if self.index is None:
            return f"{self.message}: {self.pattern!r}"
        return f"{self.message} at index {self.index}: {self.pattern!r}"


class UnsupportedSyntaxError(PathEngineError, ValueError):
    """Raised when a path matcher names a syntax other than ``glob`` or ``regex``."""


class DescenderStateError(PathEngineError, RuntimeError):
    """Raised when a trie descender is used outside its valid states.

    A descender must take at least one step before its position can be
    inspected or written.
    """


__all__ = [
    "DescenderStateError",
    "GlobSyntaxError",
    "InvalidPathArgumentError",
    "PathEngineError",
    "UnsupportedSyntaxError",
]
