from relaybricks.messages.base import Message
from relaybricks.messages.client import (
    ColumnFilter,
    ColumnOperator,
    CompositeColumnFilter,
    CompositeOperator,
    EntityFilters,
    EntityId,
    EntityIdFilter,
    Query,
    QueryId,
    Subscription,
    SubscriptionId,
    Target,
    Topic,
    TopicId,
    WebQuery,
)
from relaybricks.messages.core import (
    Ack,
    ActorContext,
    Command,
    CommandContext,
    CommandId,
    Status,
    UserId,
    ZoneId,
    ZoneOffset,
)

__all__ = [
    "Message",
    "ColumnFilter",
    "ColumnOperator",
    "CompositeColumnFilter",
    "CompositeOperator",
    "EntityFilters",
    "EntityId",
    "EntityIdFilter",
    "Query",
    "QueryId",
    "Subscription",
    "SubscriptionId",
    "Target",
    "Topic",
    "TopicId",
    "WebQuery",
    "Ack",
    "ActorContext",
    "Command",
    "CommandContext",
    "CommandId",
    "Status",
    "UserId",
    "ZoneId",
    "ZoneOffset",
]
