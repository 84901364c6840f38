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

"""Frozen dataclass decorator with an input-canonicalising hook.

Value types across the package are immutable and slotted. Some of them must
canonicalise their inputs before the generated ``__init__`` stores them (a
path value rewrites its name tuple, for instance). Such classes define a
``__pre_init__`` classmethod that receives every init field as a keyword
argument and returns the mapping actually stored::

    @FrozenDataclass()
    class Mount:
        root: str

        @classmethod
        def __pre_init__(cls, *, root: str) -> dict[str, object]:
            return {"root": root.rstrip("/") or "/"}

Required fields the caller omitted reach the hook as
:data:`dataclasses.MISSING`, so the hook may derive them. Decorated classes
also gain ``update(**changes)``, which builds a modified copy through the
same hook.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import MISSING, Field, dataclass, fields
from inspect import Parameter, Signature
from typing import (
    Any,
    Final,
    Protocol,
    Self,
    TypedDict,
    TypeVar,
    Unpack,
    cast,
    dataclass_transform,
)

__all__ = ["FrozenDataclass"]

T = TypeVar("T")

_DEFAULT_OPTIONS: Final[dict[str, bool]] = {"frozen": True, "slots": True}

# Stand-in default for fields built by a ``default_factory``.
_FROM_FACTORY: Final = object()


class _Updatable(Protocol):
    def update(self, **changes: object) -> Self: ...


class DataclassOptions(TypedDict, total=False):
    init: bool
    repr: bool
    eq: bool
    order: bool
    unsafe_hash: bool
    frozen: bool
    match_args: bool
    kw_only: bool
    slots: bool


@dataclass_transform(frozen_default=True)
def FrozenDataclass(
    **options: Unpack[DataclassOptions],
) -> Callable[[type[T]], type[T]]:
    """Return a :func:`dataclasses.dataclass` decorator that is frozen and slotted.

    Any keyword accepted by :func:`dataclasses.dataclass` overrides the
    defaults, e.g. ``FrozenDataclass(order=True)``.
    """

    resolved = {**_DEFAULT_OPTIONS, **options}

    def decorator(cls: type[T]) -> type[T]:
        built = cast(Callable[[type[T]], type[T]], dataclass(**resolved))(cls)
        init_fields = tuple(item for item in fields(cast(Any, built)) if item.init)
        target = cast(Any, built)
        hook = getattr(target, "__pre_init__", None)
        if hook is not None:
            target.__init__ = _canonicalising_init(target, hook, init_fields)
        target.update = _update_method(target, init_fields)
        return built

    return decorator


def _signature(init_fields: tuple[Field[Any], ...]) -> Signature:
    parameters: list[Parameter] = []
    for item in init_fields:
        default: object = item.default
        if default is MISSING and item.default_factory is not MISSING:
            default = _FROM_FACTORY
        parameters.append(
            Parameter(item.name, Parameter.POSITIONAL_OR_KEYWORD, default=default)
        )
    return Signature(parameters)


def _canonicalising_init(
    cls: type[Any],
    hook: Callable[..., object],
    init_fields: tuple[Field[Any], ...],
) -> Callable[..., None]:
    generated_init = cls.__init__
    signature = _signature(init_fields)
    factories = {
        item.name: item.default_factory
        for item in init_fields
        if item.default_factory is not MISSING
    }
    names = frozenset(item.name for item in init_fields)

    def __init__(self: object, *args: object, **kwargs: object) -> None:
        try:
            bound = signature.bind(*args, **kwargs)
        except TypeError as error:
            raise TypeError(f"{cls.__name__}(): {error}") from None
        bound.apply_defaults()
        arguments = {
            name: factories[name]() if value is _FROM_FACTORY else value
            for name, value in bound.arguments.items()
        }

        shaped = hook(**arguments)
        if not isinstance(shaped, Mapping):
            raise TypeError(f"{cls.__name__}.__pre_init__() must return a mapping")
        values = cast(Mapping[str, object], shaped)
        extra = sorted(values.keys() - names)
        if extra:
            raise TypeError(
                f"{cls.__name__}.__pre_init__() returned unexpected fields: "
                + ", ".join(extra)
            )
        absent = sorted(
            name for name in names if values.get(name, MISSING) is MISSING
        )
        if absent:
            raise TypeError(
                f"{cls.__name__}.__pre_init__() is missing required fields: "
                + ", ".join(absent)
            )
        generated_init(self, **values)

    __init__.__qualname__ = f"{cls.__qualname__}.__init__"
    return __init__


def _update_method(
    cls: type[Any], init_fields: tuple[Field[Any], ...]
) -> Callable[..., _Updatable]:
    names = tuple(item.name for item in init_fields)

    def update(self: _Updatable, **changes: object) -> _Updatable:
        """Return a copy with ``changes`` applied, canonicalised like a new instance."""

        unknown = sorted(set(changes).difference(names))
        if unknown:
            raise TypeError(
                f"{cls.__name__}.update() got unexpected field(s): "
                + ", ".join(unknown)
            )
        current = {name: getattr(self, name) for name in names}
        return cast(_Updatable, type(self)(**(current | changes)))

    return update
