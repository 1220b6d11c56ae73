from __future__ import annotations

import time
import uuid
from datetime import datetime
from typing import Optional, Sequence

from relaybricks.core.contracts import Type, TypedValue
from relaybricks.messages.client import Query, QueryId, Target, Topic, TopicId
from relaybricks.messages.core import (
    ActorContext,
    Command,
    CommandContext,
    CommandId,
    UserId,
    ZoneId,
    ZoneOffset,
)
from relaybricks.messages.well_known import FieldMask, Timestamp
from relaybricks.query.builder import QueryBuilder, RawId, TopicBuilder
from relaybricks.query.filters import EntityType, Targets


def _local_zone_offset() -> ZoneOffset:
    now = datetime.now().astimezone()
    offset = now.utcoffset()
    seconds = int(offset.total_seconds()) if offset is not None else 0
    return ZoneOffset(id=ZoneId(value=now.tzname() or "UTC"), amount_seconds=seconds)


class ActorRequestFactory:
    """Creates queries, topics and commands on behalf of one actor.

    Every request carries its own actor context, stamped at creation time.
    """

    def __init__(self, actor: str):
        if not actor:
            raise ValueError("actor must be a non-empty string")
        self._actor = UserId(value=actor)

    @property
    def actor(self) -> UserId:
        return self._actor

    def query(self) -> "QueryFactory":
        return QueryFactory(self)

    def topic(self) -> "TopicFactory":
        return TopicFactory(self)

    def command(self) -> "CommandFactory":
        return CommandFactory(self)

    def actor_context(self) -> ActorContext:
        return ActorContext(
            actor=self._actor,
            timestamp=Timestamp(seconds=int(time.time()), nanos=0),
            zone_offset=_local_zone_offset(),
        )


class QueryFactory:
    def __init__(self, request_factory: ActorRequestFactory):
        self._request_factory = request_factory

    def select(self, entity_type: EntityType) -> QueryBuilder:
        return QueryBuilder(entity_type, self)

    def all(self, entity_type: EntityType) -> Query:
        return self.new_query(Targets.include_all(entity_type))

    def by_ids(self, entity_type: EntityType, ids: Sequence[RawId]) -> Query:
        return self.select(entity_type).by_ids(ids).build()

    def new_query(self, target: Target, field_mask: Optional[FieldMask] = None) -> Query:
        return Query(
            id=QueryId(value=f"q-{uuid.uuid4()}"),
            target=target,
            field_mask=field_mask or FieldMask(),
            context=self._request_factory.actor_context(),
        )


class TopicFactory:
    def __init__(self, request_factory: ActorRequestFactory):
        self._request_factory = request_factory

    def select(self, entity_type: EntityType) -> TopicBuilder:
        return TopicBuilder(entity_type, self)

    def all(self, entity_type: EntityType) -> Topic:
        return self.new_topic(Targets.include_all(entity_type))

    def by_ids(self, entity_type: EntityType, ids: Sequence[RawId]) -> Topic:
        return self.select(entity_type).by_ids(ids).build()

    def new_topic(self, target: Target, field_mask: Optional[FieldMask] = None) -> Topic:
        return Topic(
            id=TopicId(value=f"t-{uuid.uuid4()}"),
            target=target,
            field_mask=field_mask or FieldMask(),
            context=self._request_factory.actor_context(),
        )


class CommandFactory:
    def __init__(self, request_factory: ActorRequestFactory):
        self._request_factory = request_factory

    def create(self, message: TypedValue) -> TypedValue[Command]:
        """Wrap a command message into a ``Command`` ready to be posted."""
        if not isinstance(message, TypedValue):
            raise TypeError(f"Command message must be a TypedValue, got {type(message).__name__}")
        command = Command(
            id=CommandId(uuid=str(uuid.uuid4())),
            message=message.to_any(),
            context=CommandContext(actor_context=self._request_factory.actor_context()),
        )
        return TypedValue(command, Type.COMMAND)
