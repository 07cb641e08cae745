"""Decode to-do list payloads returned by the API.

The API answers ``GET /api/todolist`` with a JSON array of objects, each
carrying a ``Title`` (or ``title``) string. :func:`decode_todo_list` validates
the whole payload up front and hands back a one-shot iterator, so a malformed
body fails before any item is reported.
"""

from __future__ import annotations

from typing import Iterator, Union

from pydantic import TypeAdapter, ValidationError

from todolist_daemon.exceptions import DecodeError
from todolist_daemon.models import TodoItem

_TODO_LIST = TypeAdapter(list[TodoItem])


def decode_todo_list(body: Union[str, bytes]) -> Iterator[TodoItem]:
    """Parse *body* into to-do items.

    Args:
        body: Raw response body.

    Returns:
        A single-pass iterator over the items, in payload order.

    Raises:
        DecodeError: If *body* is not valid JSON, not an array, or holds an
            element without a string title.
    """
    try:
        items = _TODO_LIST.validate_json(body)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ())) or "body"
        raise DecodeError(
            f"Malformed to-do list payload at {location}: {first.get('msg', exc)}"
        ) from exc
    return iter(items)
