"""
Endpoints of the backend: where commands, queries and subscription requests go.

``Endpoint`` wraps each request into a typed message; concrete endpoints
only decide how a typed message reaches the backend.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from relaybricks.connectors.http.auth import build_auth_headers
from relaybricks.connectors.http.types import (
    COMMAND_PATH,
    QUERY_PATH,
    SUBSCRIPTION_CANCEL_PATH,
    SUBSCRIPTION_CREATE_PATH,
    SUBSCRIPTION_KEEP_UP_PATH,
    EndpointConnection,
    QueryStrategy,
)
from relaybricks.core.contracts import Type, TypedValue
from relaybricks.core.exceptions import (
    ClientRequestError,
    EndpointConnectionError,
    ResponseProcessingError,
    ServerProcessingError,
    UnexpectedStatusError,
)
from relaybricks.core.logger import get_logger, push_request_id, reset_request_id
from relaybricks.messages.client import Query, Subscription, Topic, WebQuery
from relaybricks.messages.core import Command

logger = get_logger(__name__)

Response = Dict[str, Any]


class Endpoint(ABC):
    async def command(self, command: TypedValue[Command]) -> Response:
        if not isinstance(command, TypedValue):
            command = TypedValue(command, Type.COMMAND)
        return await self._execute_command(command)

    async def query(self, query: Query, strategy: QueryStrategy) -> Response:
        web_query = WebQuery(query=query, delivered_transactionally=strategy.value)
        return await self._perform_query(TypedValue(web_query, Type.WEB_QUERY))

    async def subscribe_to(self, topic: Topic) -> Response:
        return await self._subscribe_to(TypedValue(topic, Type.TOPIC))

    async def keep_up_subscription(self, subscription: Subscription) -> Response:
        return await self._keep_up(TypedValue(subscription, Type.SUBSCRIPTION))

    async def cancel_subscription(self, subscription: Subscription) -> Response:
        return await self._cancel(TypedValue(subscription, Type.SUBSCRIPTION))

    async def aclose(self) -> None:
        return None

    @abstractmethod
    async def _execute_command(self, command: TypedValue[Command]) -> Response:
        ...

    @abstractmethod
    async def _perform_query(self, web_query: TypedValue[WebQuery]) -> Response:
        ...

    @abstractmethod
    async def _subscribe_to(self, topic: TypedValue[Topic]) -> Response:
        ...

    @abstractmethod
    async def _keep_up(self, subscription: TypedValue[Subscription]) -> Response:
        ...

    @abstractmethod
    async def _cancel(self, subscription: TypedValue[Subscription]) -> Response:
        ...


class HttpEndpoint(Endpoint):
    """Posts typed messages to the backend over HTTP.

    The body of every request is the base64 string of the message bytes.
    A ``2xx`` response body is decoded as JSON and returned; other outcomes
    raise an ``EndpointError`` subclass.
    """

    def __init__(
        self,
        connection: EndpointConnection,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.connection = connection

        headers = dict(connection.headers)
        headers.update(build_auth_headers(connection.auth))

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=connection.base_url,
            timeout=connection.timeout_seconds,
            headers=headers,
        )

    async def _execute_command(self, command: TypedValue[Command]) -> Response:
        return await self._post_message(COMMAND_PATH, command)

    async def _perform_query(self, web_query: TypedValue[WebQuery]) -> Response:
        return await self._post_message(QUERY_PATH, web_query)

    async def _subscribe_to(self, topic: TypedValue[Topic]) -> Response:
        return await self._post_message(SUBSCRIPTION_CREATE_PATH, topic)

    async def _keep_up(self, subscription: TypedValue[Subscription]) -> Response:
        return await self._post_message(SUBSCRIPTION_KEEP_UP_PATH, subscription)

    async def _cancel(self, subscription: TypedValue[Subscription]) -> Response:
        return await self._post_message(SUBSCRIPTION_CANCEL_PATH, subscription)

    async def _post_message(self, path: str, message: TypedValue) -> Response:
        token = push_request_id(uuid.uuid4().hex[:12])
        try:
            logger.debug("POST %s with %s", path, message.type_url)
            try:
                resp = await self._client.post(path, content=message.to_base64())
            except httpx.TransportError as exc:
                logger.debug("POST %s failed to connect: %s", path, exc)
                raise EndpointConnectionError(exc) from exc

            logger.debug("POST %s -> %s", path, resp.status_code)
            if 200 <= resp.status_code < 300:
                try:
                    return resp.json()
                except ValueError as exc:
                    raise ResponseProcessingError(exc) from exc
            if 400 <= resp.status_code < 500:
                raise ClientRequestError(resp)
            if resp.status_code >= 500:
                raise ServerProcessingError(resp)
            raise UnexpectedStatusError(resp)
        finally:
            reset_request_id(token)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
