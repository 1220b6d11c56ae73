"""
The client facade: one object to query, subscribe and send commands.

Example:
    >>> client = Client.from_config({"actor": "alice", "endpoint": {"base_url": "https://app"}}, store)
    >>> tasks = await client.fetch_all(TASK).at_once()
    >>> subscription = await client.subscribe_to(TASK)
    >>> subscription.item_added.subscribe(print)
"""

from __future__ import annotations

import inspect
from typing import Any, Callable, Dict, Optional, Union

import httpx
from pydantic import ValidationError

from relaybricks.bootstrap import load_builtin_parsers
from relaybricks.connectors.http.endpoint import Endpoint, HttpEndpoint
from relaybricks.core.contracts import TypedValue
from relaybricks.core.exceptions import (
    CommandProcessingError,
    CommandRejectionError,
    ProtocolError,
)
from relaybricks.core.logger import configure_logging, get_logger
from relaybricks.fetch import Fetch
from relaybricks.messages.base import Message
from relaybricks.messages.client import Query, Topic
from relaybricks.messages.core import Ack, Status
from relaybricks.models.client_config import ClientConfig
from relaybricks.push.store import PushStore
from relaybricks.query.builder import QueryBuilder, RawId
from relaybricks.query.factory import ActorRequestFactory, CommandFactory, QueryFactory, TopicFactory
from relaybricks.query.filters import EntityType
from relaybricks.subscriptions import EntitySubscription, SubscriptionKeeper, SubscriptionMultiplexer
from relaybricks.wiring.endpoint_wiring import build_endpoint_connection

logger = get_logger(__name__)

Callback = Callable[..., Any]


async def _invoke(callback: Callback, *args: Any) -> None:
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


def _parse_status(response: Any) -> Status:
    try:
        return Ack.model_validate(response).status
    except ValidationError as exc:
        raise ProtocolError(f"Unexpected command acknowledgment: {response!r}") from exc


class Client:
    def __init__(
        self,
        endpoint: Endpoint,
        push_store: PushStore,
        request_factory: ActorRequestFactory,
        keeper: Optional[SubscriptionKeeper] = None,
    ):
        load_builtin_parsers()
        self._endpoint = endpoint
        self._push_store = push_store
        self._request_factory = request_factory
        self._keeper = keeper
        self._multiplexer = SubscriptionMultiplexer(endpoint, push_store, keeper)

    @classmethod
    def from_config(
        cls,
        config: Union[ClientConfig, Dict[str, Any]],
        push_store: PushStore,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "Client":
        """Build a client talking to the HTTP endpoint described by ``config``.

        Accepts a validated ``ClientConfig`` or a plain dict.
        """
        if isinstance(config, dict):
            config = ClientConfig.from_dict(config)
        configure_logging(config.log_level)

        endpoint = HttpEndpoint(build_endpoint_connection(config.endpoint), client=http_client)
        keeper = SubscriptionKeeper(endpoint, config.keep_up_interval_seconds)
        logger.debug("Client for actor %r at %s", config.actor, config.endpoint.base_url)
        return cls(endpoint, push_store, ActorRequestFactory(config.actor), keeper)

    @property
    def endpoint(self) -> Endpoint:
        return self._endpoint

    def new_query(self) -> QueryFactory:
        return self._request_factory.query()

    def new_topic(self) -> TopicFactory:
        return self._request_factory.topic()

    def new_command(self) -> CommandFactory:
        return self._request_factory.command()

    def select(self, entity_type: EntityType) -> QueryBuilder:
        return self.new_query().select(entity_type)

    def fetch(self, query: Query) -> Fetch:
        return Fetch(query, self._endpoint, self._push_store)

    def fetch_all(self, entity_type: EntityType) -> Fetch:
        return self.fetch(self.new_query().all(entity_type))

    async def fetch_by_id(self, entity_type: EntityType, entity_id: RawId) -> Optional[Message]:
        """The entity with the given ID, or ``None`` when there is no such entity."""
        query = self.new_query().by_ids(entity_type, [entity_id])
        results = await self.fetch(query).one_by_one().to_list()
        return results[0] if results else None

    async def send_command(
        self,
        message: TypedValue,
        on_success: Callback,
        on_error: Optional[Callback] = None,
        on_rejection: Optional[Callback] = None,
    ) -> None:
        """Post a command and dispatch its acknowledgment to one of the callbacks.

        A failure with no matching callback is raised instead.
        """
        command = self.new_command().create(message)
        try:
            ack = await self._endpoint.command(command)
            status = _parse_status(ack)
        except Exception as exc:
            if on_error is None:
                raise
            await _invoke(on_error, exc)
            return

        if status.ok is not None:
            await _invoke(on_success)
        elif status.error is not None:
            error = CommandProcessingError(status.error)
            if on_error is None:
                raise error
            await _invoke(on_error, error)
        else:
            rejection = CommandRejectionError(status.rejection)
            if on_rejection is None:
                raise rejection
            await _invoke(on_rejection, rejection)

    async def subscribe(self, topic: Topic) -> EntitySubscription:
        return await self._multiplexer.subscribe(topic)

    async def subscribe_to(self, entity_type: EntityType) -> EntitySubscription:
        return await self.subscribe(self.new_topic().all(entity_type))

    def unsubscribe(self, subscription: EntitySubscription) -> None:
        subscription.unsubscribe()

    async def aclose(self) -> None:
        if self._keeper is not None:
            await self._keeper.stop()
        await self._endpoint.aclose()
