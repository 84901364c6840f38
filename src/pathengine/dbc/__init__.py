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

"""Design by contract utilities for :mod:`pathengine`.

Contracts are inert unless ``PATHENGINE_DBC`` is set to a truthy value or
:func:`enable_dbc` / :func:`dbc_enabled` force them on. The test suite runs
with contracts enabled so the algebra's postconditions are exercised on
every call.
"""

from __future__ import annotations

import builtins
import copy
import logging
import os
import threading
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from functools import wraps
from typing import ParamSpec, TypeVar, cast

P = ParamSpec("P")
R = TypeVar("R")

ContractResult = bool | tuple[bool, str]
ContractCallable = Callable[..., ContractResult | object]

_ENV_FLAG = "PATHENGINE_DBC"
_forced_state: bool | None = None


def _coerce_flag(value: str | None) -> bool:
    if value is None:
        return False
    lowered = value.strip().lower()
    return lowered not in {"", "0", "false", "off", "no"}


def dbc_active() -> bool:
    """Return ``True`` when DbC checks should run."""

    if _forced_state is not None:
        return _forced_state
    return _coerce_flag(os.getenv(_ENV_FLAG))


def _qualname(target: object) -> str:
    return getattr(target, "__qualname__", repr(target))


def enable_dbc() -> None:
    """Force DbC enforcement on."""

    global _forced_state
    _forced_state = True


def disable_dbc() -> None:
    """Force DbC enforcement off."""

    global _forced_state
    _forced_state = False


@contextmanager
def dbc_enabled(*, active: bool = True) -> Iterator[None]:
    """Temporarily set the DbC flag inside a ``with`` block."""

    global _forced_state
    previous = _forced_state
    _forced_state = active
    try:
        yield
    finally:
        _forced_state = previous


def _contract_outcome(result: object) -> tuple[bool, str | None]:
    """Interpret a predicate result as ``(passed, detail)``."""

    if isinstance(result, tuple):
        items = cast(Sequence[object], result)
        if not items:
            raise TypeError("Contract callables must not return empty tuples")
        detail = str(items[1]) if len(items) > 1 else None
        return bool(items[0]), detail
    return result is not None and bool(result), None


def _check(
    kind: str,
    func: Callable[..., object],
    predicates: Sequence[ContractCallable],
    args: tuple[object, ...],
    kwargs: Mapping[str, object],
) -> None:
    for predicate in predicates:
        try:
            result = predicate(*args, **kwargs)
        except AssertionError:
            raise
        except Exception as error:
            msg = (
                f"{kind} contract for {_qualname(func)} raised "
                f"{type(error).__name__}: {error}"
            )
            raise AssertionError(msg) from error
        passed, detail = _contract_outcome(result)
        if passed:
            continue
        msg = (
            f"{kind} contract for {_qualname(func)} failed via "
            f"{getattr(predicate, '__name__', repr(predicate))}."
            f" Args={args!r} Kwargs={dict(kwargs)!r}"
        )
        raise AssertionError(f"{msg} Details: {detail}" if detail else msg)


def _contract(
    kind: str, predicates: tuple[ContractCallable, ...], *, after: bool
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    if not predicates:
        raise ValueError(f"@{kind} expects at least one predicate")

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapped(*args: P.args, **kwargs: P.kwargs) -> R:
            if not after and dbc_active():
                _check(kind, func, predicates, tuple(args), dict(kwargs))
            result = func(*args, **kwargs)
            if after and dbc_active():
                outcome = {**kwargs, "result": result}
                _check(kind, func, predicates, tuple(args), outcome)
            return result

        return wrapped

    return decorator


def require(
    *predicates: ContractCallable,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Check preconditions against the call arguments before invoking."""

    return _contract("require", predicates, after=False)


def ensure(*predicates: ContractCallable) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Check postconditions once the callable returns.

    Predicates receive the call arguments plus ``result=``. When the wrapped
    callable raises, the exception propagates and no predicate runs.
    """

    return _contract("ensure", predicates, after=True)


_SNAPSHOT_SENTINEL = object()

# Side-effecting entry points replaced while any pure call is running.
_GUARDED_TARGETS: tuple[tuple[object, str, str], ...] = (
    (builtins, "open", "builtins.open"),
    (logging.Logger, "_log", "logging"),
)

_pure_state = threading.local()
_patch_lock = threading.Lock()
_patch_depth = 0
_patched_originals: list[tuple[object, str, object]] = []


def _snapshot(value: object) -> object:
    try:
        return copy.deepcopy(value)
    except Exception:
        return _SNAPSHOT_SENTINEL


def _guard(original: Callable[..., object], target: str) -> Callable[..., object]:
    @wraps(original)
    def guarded(*args: object, **kwargs: object) -> object:
        func = getattr(_pure_state, "func", None)
        if func is not None:
            msg = f"pure contract for {_qualname(func)} forbids calling {target}"
            raise AssertionError(msg)
        return original(*args, **kwargs)

    return guarded


@contextmanager
def _pure_environment(func: Callable[..., object]) -> Iterator[None]:
    """Mark the current thread as pure and install the shared guards.

    Guards are installed by the first pure call in the process and removed
    by the last one to finish. Other threads keep calling through to the
    original implementations.
    """

    global _patch_depth
    with _patch_lock:
        if _patch_depth == 0:
            for owner, attribute, target in _GUARDED_TARGETS:
                original = getattr(owner, attribute)
                _patched_originals.append((owner, attribute, original))
                setattr(owner, attribute, _guard(original, target))
        _patch_depth += 1
    previous = getattr(_pure_state, "func", None)
    _pure_state.func = func
    try:
        yield
    finally:
        _pure_state.func = previous
        with _patch_lock:
            _patch_depth -= 1
            if _patch_depth == 0:
                for owner, attribute, original in _patched_originals:
                    setattr(owner, attribute, original)
                _patched_originals.clear()


def pure(func: Callable[P, R]) -> Callable[P, R]:  # noqa: UP047
    """Validate that the wrapped callable neither mutates inputs nor does I/O.

    While active, ``open`` and logging fail inside the calling thread, and
    positional and keyword arguments are compared against deep copies taken
    before the call.
    """

    @wraps(func)
    def wrapped(*args: P.args, **kwargs: P.kwargs) -> R:
        if not dbc_active():
            return func(*args, **kwargs)

        watched: list[tuple[str, object]] = [
            (f"positional argument {index}", value)
            for index, value in enumerate(args)
        ]
        watched.extend(
            (f"keyword argument '{key}'", value) for key, value in kwargs.items()
        )
        before = [_snapshot(value) for _, value in watched]

        with _pure_environment(func):
            result = func(*args, **kwargs)

        for (label, value), snapshot in zip(watched, before, strict=True):
            if snapshot is not _SNAPSHOT_SENTINEL and value != snapshot:
                msg = (
                    f"pure contract for {_qualname(func)} detected mutation of {label}"
                )
                raise AssertionError(msg)
        return result

    return wrapped


__all__ = [
    "ContractResult",
    "dbc_active",
    "dbc_enabled",
    "disable_dbc",
    "enable_dbc",
    "ensure",
    "pure",
    "require",
]
