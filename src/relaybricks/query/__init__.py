from relaybricks.query.builder import AbstractTargetBuilder, QueryBuilder, TopicBuilder
from relaybricks.query.factory import (
    ActorRequestFactory,
    CommandFactory,
    QueryFactory,
    TopicFactory,
)
from relaybricks.query.filters import ColumnFilters, Targets

__all__ = [
    "AbstractTargetBuilder",
    "ActorRequestFactory",
    "ColumnFilters",
    "CommandFactory",
    "QueryBuilder",
    "QueryFactory",
    "Targets",
    "TopicBuilder",
    "TopicFactory",
]
