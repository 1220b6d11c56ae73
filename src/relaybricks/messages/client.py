"""Read-side request messages: targets, filters, queries, topics and subscriptions."""

from __future__ import annotations

from enum import IntEnum
from typing import ClassVar, Optional, Tuple, Type, Union

from pydantic import model_validator

from relaybricks.messages.base import Message
from relaybricks.messages.core import ActorContext
from relaybricks.messages.well_known import Any, FieldMask


class EntityId(Message):
    id: Any


class EntityIdFilter(Message):
    ids: Tuple[EntityId, ...] = ()


class ColumnOperator(IntEnum):
    EQUAL = 1
    GREATER_THAN = 2
    LESS_THAN = 3
    GREATER_OR_EQUAL = 4
    LESS_OR_EQUAL = 5


class CompositeOperator(IntEnum):
    EITHER = 1
    ALL = 2


class ColumnFilter(Message):
    Operator: ClassVar[Type[ColumnOperator]] = ColumnOperator

    column_name: str
    value: Any
    operator: ColumnOperator = ColumnOperator.EQUAL


class CompositeColumnFilter(Message):
    Operator: ClassVar[Type[CompositeOperator]] = CompositeOperator

    filter: Tuple[Union[ColumnFilter, "CompositeColumnFilter"], ...] = ()
    operator: CompositeOperator = CompositeOperator.ALL


CompositeColumnFilter.model_rebuild()


class EntityFilters(Message):
    id_filter: Optional[EntityIdFilter] = None
    filter: Tuple[CompositeColumnFilter, ...] = ()


class Target(Message):
    """What to retrieve: a type plus either ``include_all`` or ``filters``."""

    type: str
    include_all: bool = False
    filters: Optional[EntityFilters] = None

    @model_validator(mode="after")
    def _validate_include_all_or_filters(self) -> "Target":
        if self.include_all == (self.filters is not None):
            raise ValueError("Target must set exactly one of include_all and filters")
        return self


class QueryId(Message):
    value: str


class Query(Message):
    id: QueryId
    target: Target
    field_mask: FieldMask = FieldMask()
    context: ActorContext


class TopicId(Message):
    value: str


class Topic(Message):
    id: TopicId
    target: Target
    field_mask: FieldMask = FieldMask()
    context: ActorContext


class SubscriptionId(Message):
    value: str


class Subscription(Message):
    id: SubscriptionId
    topic: Topic


class WebQuery(Message):
    """A query together with the way its results are to be delivered."""

    query: Query
    delivered_transactionally: bool = False
