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

"""Structured logging helpers for :mod:`pathengine`.

Records emitted through :class:`StructuredLogger` carry two extra
attributes: ``event``, a dotted name such as ``trie.materialize``, and
``context``, a flat mapping of details. Handlers configured by
:func:`configure_logging` render both, either as text or as one JSON object
per line.
"""

from __future__ import annotations

import json
import logging
import logging.config
import os
from collections.abc import Mapping, MutableMapping
from datetime import UTC, datetime
from typing import Any, Final, cast, override

__all__ = [
    "StructuredLogger",
    "configure_logging",
    "get_logger",
]

_LOG_LEVEL_ENV: Final[str] = "PATHENGINE_LOG_LEVEL"
_LOG_FORMAT_ENV: Final[str] = "PATHENGINE_LOG_FORMAT"

_TEXT_FORMAT: Final[str] = "%(asctime)s %(levelname)-8s %(name)s %(message)s"


class StructuredLogger(logging.LoggerAdapter[logging.Logger]):
    """Logger adapter that attaches ``event`` and ``context`` to every record.

    Calls take the event name and per-call context as keywords::

        logger.debug("Built grant index.", event="grants.build", context={"grants": 2})

    Context bound with :meth:`bind` is merged underneath per-call context.
    A call without an event name raises :class:`TypeError`.
    """

    def __init__(
        self,
        logger: logging.Logger,
        *,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(logger, {**(context or {})})

    def bind(self, **context: object) -> StructuredLogger:
        """Return a sibling adapter with ``context`` added to the bound context."""

        return StructuredLogger(self.logger, context=self._bound() | context)

    def _bound(self) -> dict[str, object]:
        return dict(cast(Mapping[str, object], self.extra or {}))

    @override
    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        extra = kwargs.pop("extra", None) or {}
        if not isinstance(extra, Mapping):
            raise TypeError("extra must be a mapping when provided.")
        fields = dict(cast(Mapping[str, object], extra))
        event = kwargs.pop("event", None) or fields.pop("event", None)
        if not isinstance(event, str) or not event:
            raise TypeError("Structured logs require an 'event' field.")
        fields.pop("event", None)

        context = kwargs.pop("context", None)
        if context is None:
            context = {}
        elif not isinstance(context, Mapping):
            raise TypeError("context must be a mapping when provided.")

        merged = self._bound() | fields | dict(cast(Mapping[str, object], context))
        kwargs["extra"] = {"event": event, "context": merged}
        return msg, kwargs


def get_logger(
    name: str,
    *,
    context: Mapping[str, object] | None = None,
) -> StructuredLogger:
    """Return a :class:`StructuredLogger` for the stdlib logger ``name``."""

    return StructuredLogger(logging.getLogger(name), context=context)


def configure_logging(
    *,
    level: int | str | None = None,
    json_mode: bool | None = None,
    env: Mapping[str, str] | None = None,
    force: bool = False,
) -> None:
    """Install a stderr handler on the root logger.

    Library code never calls this; applications embedding the engine do.
    Unset arguments fall back to ``PATHENGINE_LOG_LEVEL`` and
    ``PATHENGINE_LOG_FORMAT`` (``json`` or ``text``) in ``env``, which
    defaults to the process environment. When the root logger already has
    handlers only its level changes, unless ``force`` is set.
    """

    source = os.environ if env is None else env
    if level is None:
        level = source.get(_LOG_LEVEL_ENV) or logging.INFO
    resolved_level = _coerce_level(level)
    if json_mode is None:
        json_mode = source.get(_LOG_FORMAT_ENV, "").strip().lower() == "json"

    root = logging.getLogger()
    if root.handlers and not force:
        root.setLevel(resolved_level)
        return

    formatter = "json" if json_mode else "text"
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "text": {"()": f"{__name__}._TextFormatter"},
                "json": {"()": f"{__name__}._JsonFormatter"},
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": formatter,
                }
            },
            "root": {"handlers": ["stderr"], "level": resolved_level},
        }
    )


class _TextFormatter(logging.Formatter):
    """Render ``event`` and ``context`` after the message as ``key=value`` pairs."""

    def __init__(self) -> None:
        super().__init__(_TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    @override
    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        event = getattr(record, "event", None)
        context = getattr(record, "context", None) or {}
        pairs = [f"event={event}"] if event is not None else []
        pairs.extend(f"{key}={value!r}" for key, value in sorted(context.items()))
        if not pairs:
            return line
        head, newline, tail = line.partition("\n")
        return f"{head} [{' '.join(pairs)}]{newline}{tail}"


class _JsonFormatter(logging.Formatter):
    """Render each record as one compact JSON object."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for attribute in ("event", "context"):
            value = getattr(record, attribute, None)
            if value:
                payload[attribute] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=repr, separators=(",", ":"))


def _coerce_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelNamesMapping().get(level.strip().upper())
    if resolved is None:
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved
