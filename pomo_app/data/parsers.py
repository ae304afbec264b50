"""
Parsers for user-supplied task parameters.

Durations accept compact unit strings (``25m``, ``1h30m``, ``90s``,
``1.5h``) or a bare number of seconds. Tags accept ``key=value`` pairs
or a bare ``key`` (empty value). Project definitions are JSON objects.
"""

import re
from collections.abc import Iterable
from typing import Any, Union

import orjson

from ..errors import InvalidDurationError, InvalidProjectError, InvalidTagError
from .models import Tags

_UNIT_SECONDS = {
    "h": 3600,
    "m": 60,
    "s": 1,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)([hms])")


def parse_duration(raw: Union[str, int]) -> int:
    """
    Parse a duration into whole seconds.

    Args:
        raw: Duration string such as ``25m`` or ``1h30m``, or an int

    Returns:
        Positive number of seconds

    Raises:
        InvalidDurationError: If the value is malformed or not positive
    """
    if isinstance(raw, bool):
        raise InvalidDurationError(f"Invalid duration: {raw!r}", raw_value=str(raw))

    if isinstance(raw, int):
        seconds = raw
    else:
        text = str(raw).strip().lower()
        if not text:
            raise InvalidDurationError("Duration must not be empty", raw_value=str(raw))

        if text.isdigit():
            seconds = int(text)
        else:
            position = 0
            total = 0.0
            for match in _DURATION_PART.finditer(text):
                if match.start() != position:
                    break
                total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
                position = match.end()

            if position != len(text):
                raise InvalidDurationError(f"Invalid duration: {raw!r}", raw_value=str(raw))
            seconds = int(total)

    if seconds <= 0:
        raise InvalidDurationError(
            f"Duration must be positive, got {raw!r}",
            raw_value=str(raw),
        )
    return seconds


def parse_tag(raw: str) -> tuple[str, str]:
    """
    Parse a single ``key=value`` or ``key`` tag argument.

    Raises:
        InvalidTagError: If the key is empty or more than one ``=`` appears
    """
    parts = raw.split("=")
    if len(parts) > 2:
        raise InvalidTagError(f"Invalid tag: {raw!r}", tag=raw)

    key = parts[0].strip()
    value = parts[1].strip() if len(parts) == 2 else ""
    if not key:
        raise InvalidTagError(f"Invalid tag: {raw!r}", tag=raw)
    return key, value


def parse_tags(raw_tags: Iterable[str]) -> Tags:
    """
    Parse tag arguments into a Tags mapping.

    Raises:
        InvalidTagError: For malformed or duplicate keys
    """
    return Tags(parse_tag(raw) for raw in raw_tags)


def parse_project_json(raw: str) -> dict[str, Any]:
    """
    Parse a project definition document such as
    ``{"title": "Thesis", "parent_id": 2}``.

    Returns:
        The decoded fields, not yet validated as a Project

    Raises:
        InvalidProjectError: If the document is not a JSON object
    """
    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise InvalidProjectError(f"Invalid project JSON: {e}") from e

    if not isinstance(data, dict):
        raise InvalidProjectError("Project definition must be a JSON object",
                                  value=type(data).__name__)
    return data
