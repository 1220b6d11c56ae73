"""relaybricks.

Client library for a command/query backend that delivers results through a
realtime push store.

Requests go out over HTTP as typed messages; query results and subscription
updates come back as JSON-like children of push store paths and are turned
into messages by the type parser registry.
"""

from relaybricks.bootstrap import load_builtin_parsers
from relaybricks.client import Client
from relaybricks.core.contracts import AnyPacker, Type, TypedValue, TypeUrl
from relaybricks.fetch import Fetch
from relaybricks.query.filters import ColumnFilters, Targets
from relaybricks.subscriptions import EntitySubscription

__version__ = "0.1.0"

__all__ = [
    "AnyPacker",
    "Client",
    "ColumnFilters",
    "EntitySubscription",
    "Fetch",
    "Targets",
    "Type",
    "TypeUrl",
    "TypedValue",
    "load_builtin_parsers",
]

load_builtin_parsers()
