from relaybricks.push.memory import InMemoryPushStore
from relaybricks.push.store import ListenerHandle, PushStore

__all__ = ["InMemoryPushStore", "ListenerHandle", "PushStore"]
