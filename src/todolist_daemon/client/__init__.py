"""HTTP client module for todolist-daemon.

Provides the async to-do list API client and the payload decoder.

Classes / functions:
    :class:`TodoListClient` -- non-blocking client backed by :class:`httpx.AsyncClient`.
    :func:`decode_todo_list` -- parse a list payload into :class:`~todolist_daemon.models.TodoItem`.

Example::

    from todolist_daemon.client import TodoListClient, decode_todo_list

    async with TodoListClient(settings) as client:
        client.set_bearer(token)
        response = await client.get_todos()
        titles = [item.title for item in decode_todo_list(response.content)]
"""

from todolist_daemon.client.api_client import TODO_LIST_PATH, TodoListClient, build_verify
from todolist_daemon.client.decoder import decode_todo_list

__all__ = ["TODO_LIST_PATH", "TodoListClient", "build_verify", "decode_todo_list"]
