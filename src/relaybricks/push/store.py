from __future__ import annotations

from typing import Any, Callable, List, Protocol

ChildCallback = Callable[[Any], None]


class ListenerHandle(Protocol):
    @property
    def closed(self) -> bool:
        ...

    def cancel(self) -> None:
        ...


class PushStore(Protocol):
    """Realtime store the backend writes query results and subscription updates to.

    Callbacks receive the raw JSON-like payload of a child node and are
    invoked on the event loop thread.
    """

    def on_child_added(self, path: str, callback: ChildCallback) -> ListenerHandle:
        ...

    def on_child_changed(self, path: str, callback: ChildCallback) -> ListenerHandle:
        ...

    def on_child_removed(self, path: str, callback: ChildCallback) -> ListenerHandle:
        ...

    async def get_values(self, path: str) -> List[Any]:
        ...
