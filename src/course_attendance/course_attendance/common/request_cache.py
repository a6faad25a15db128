from __future__ import annotations

import threading
from typing import Callable, Hashable, TypeVar

from flask import g, has_app_context

T = TypeVar("T")


class RequestMemo:
    """Memo whose entries live only as long as the current request.

    Inside a Flask app context the store sits on ``flask.g`` and is dropped
    with the request. Outside one (scripts, tests) every thread keeps its own.
    """

    def __init__(self, name: str):
        self._attr = f"_course_attendance_memo_{name}_{id(self)}"
        self._local = threading.local()

    def _store(self) -> dict:
        if has_app_context():
            return g.setdefault(self._attr, {})
        store = getattr(self._local, "store", None)
        if store is None:
            store = self._local.store = {}
        return store

    def get_or_load(self, key: Hashable, loader: Callable[[], T]) -> T:
        store = self._store()
        if key not in store:
            value = loader()
            store[key] = value
            return value
        return store[key]

    def pop(self, key: Hashable) -> None:
        self._store().pop(key, None)

    def clear(self) -> None:
        self._store().clear()
