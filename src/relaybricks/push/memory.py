from __future__ import annotations

import copy
import itertools
from typing import Any, Dict, List, Optional, Tuple

from relaybricks.core.logger import get_logger
from relaybricks.push.store import ChildCallback

logger = get_logger(__name__)

ADDED = "added"
CHANGED = "changed"
REMOVED = "removed"


def _normalize(path: str) -> str:
    return "/".join(part for part in path.split("/") if part)


class InMemoryListenerHandle:
    def __init__(self, store: "InMemoryPushStore", key: Tuple[str, str], callback: ChildCallback):
        self._store = store
        self._key = key
        self.callback = callback
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def cancel(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._store._detach(self._key, self)


class InMemoryPushStore:
    """Process-local push store, keyed by slash-separated paths.

    Mirrors the realtime store behaviour the client relies on: a fresh
    child-added listener first receives every existing child, then new ones.
    """

    def __init__(self, initial: Optional[Dict[str, Dict[str, Any]]] = None):
        self._children: Dict[str, Dict[str, Any]] = {}
        self._listeners: Dict[Tuple[str, str], List[InMemoryListenerHandle]] = {}
        self._ids = itertools.count(1)
        for path, children in (initial or {}).items():
            self._children[_normalize(path)] = dict(children)

    def on_child_added(self, path: str, callback: ChildCallback) -> InMemoryListenerHandle:
        handle = self._attach(ADDED, path, callback)
        for value in list(self._children.get(_normalize(path), {}).values()):
            if handle.closed:
                break
            callback(copy.deepcopy(value))
        return handle

    def on_child_changed(self, path: str, callback: ChildCallback) -> InMemoryListenerHandle:
        return self._attach(CHANGED, path, callback)

    def on_child_removed(self, path: str, callback: ChildCallback) -> InMemoryListenerHandle:
        return self._attach(REMOVED, path, callback)

    async def get_values(self, path: str) -> List[Any]:
        return [copy.deepcopy(value) for value in self._children.get(_normalize(path), {}).values()]

    def set(self, path: str, key: str, value: Any) -> None:
        """Write a child; fires child-added for a new key, child-changed otherwise."""
        children = self._children.setdefault(_normalize(path), {})
        event = CHANGED if key in children else ADDED
        children[key] = value
        self._fire(event, path, value)

    def push(self, path: str, value: Any) -> str:
        """Append a child under a generated key and return the key."""
        key = f"{next(self._ids):08d}"
        self.set(path, key, value)
        return key

    def remove(self, path: str, key: str) -> None:
        children = self._children.get(_normalize(path), {})
        if key not in children:
            return
        value = children.pop(key)
        self._fire(REMOVED, path, value)

    def listener_count(self, path: Optional[str] = None) -> int:
        if path is None:
            return sum(len(handles) for handles in self._listeners.values())
        path = _normalize(path)
        return sum(len(handles) for (_, p), handles in self._listeners.items() if p == path)

    def _attach(self, event: str, path: str, callback: ChildCallback) -> InMemoryListenerHandle:
        key = (event, _normalize(path))
        handle = InMemoryListenerHandle(self, key, callback)
        self._listeners.setdefault(key, []).append(handle)
        logger.debug("Listening for child %s at %s", event, key[1])
        return handle

    def _detach(self, key: Tuple[str, str], handle: InMemoryListenerHandle) -> None:
        handles = self._listeners.get(key, [])
        if handle in handles:
            handles.remove(handle)
        if not handles:
            self._listeners.pop(key, None)

    def _fire(self, event: str, path: str, value: Any) -> None:
        for handle in list(self._listeners.get((event, _normalize(path)), [])):
            if not handle.closed:
                handle.callback(copy.deepcopy(value))
