"""
Fetching query results through the push store.

The backend answers a query with the push store path the results are written
to. In the one-by-one mode it also tells how many results to expect; the
fetch counts the arriving children and completes after the last one.
"""

from __future__ import annotations

import asyncio
import math
from enum import Enum
from typing import Any, List, Optional, Tuple

from relaybricks.connectors.http.endpoint import Endpoint
from relaybricks.connectors.http.types import QueryStrategy
from relaybricks.core.exceptions import ProtocolError
from relaybricks.core.logger import get_logger
from relaybricks.core.observable import Observable, Observer, Teardown
from relaybricks.messages.base import Message
from relaybricks.messages.client import Query
from relaybricks.parsers.converter import ObjectToMessage
from relaybricks.push.store import ListenerHandle, PushStore

logger = get_logger(__name__)


class CountdownState(Enum):
    AWAITING_COUNT = "awaiting_count"
    COUNTING = "counting"
    COMPLETE = "complete"


class Countdown:
    def __init__(self) -> None:
        self.state = CountdownState.AWAITING_COUNT
        self.expected: Optional[int] = None
        self.received = 0

    def start(self, expected: int) -> None:
        self.expected = expected
        self.state = CountdownState.COUNTING

    def record(self) -> None:
        self.received += 1

    @property
    def reached(self) -> bool:
        return self.state is CountdownState.COUNTING and self.received >= (self.expected or 0)

    def finish(self) -> None:
        self.state = CountdownState.COMPLETE


def _parse_path(response: Any) -> str:
    if not isinstance(response, dict):
        raise ProtocolError(f"Unexpected query acknowledgment: {response!r}")
    path = response.get("path")
    if not isinstance(path, str) or not path:
        raise ProtocolError("Query acknowledgment does not contain the `path`")
    return path


def _parse_count(response: dict) -> int:
    count = response.get("count")
    if count is None:
        return 0
    if isinstance(count, bool):
        raise ProtocolError(f"Unexpected format of `count`: {count!r}")
    # int64 values arrive as JSON strings.
    if isinstance(count, str):
        try:
            count = int(count.strip())
        except ValueError:
            raise ProtocolError(f"Unexpected format of `count`: {count!r}") from None
    elif isinstance(count, float):
        if not math.isfinite(count) or not count.is_integer():
            raise ProtocolError(f"Unexpected format of `count`: {count!r}")
        count = int(count)
    elif not isinstance(count, int):
        raise ProtocolError(f"Unexpected format of `count`: {count!r}")
    if count < 0:
        raise ProtocolError(f"`count` must not be negative, got {count}")
    return count


def parse_query_ack(response: Any) -> Tuple[str, int]:
    """Read ``path`` and ``count`` of a one-by-one query acknowledgment."""
    path = _parse_path(response)
    return path, _parse_count(response)


class Fetch:
    """Retrieves the results of one query, either all at once or one by one."""

    def __init__(self, query: Query, endpoint: Endpoint, push_store: PushStore):
        self._query = query
        self._endpoint = endpoint
        self._push_store = push_store

    @property
    def query(self) -> Query:
        return self._query

    @property
    def type_url(self) -> str:
        return self._query.target.type

    def _convert(self, value: Any) -> Message:
        return ObjectToMessage.convert(value, self.type_url)

    async def at_once(self) -> List[Message]:
        response = await self._endpoint.query(self._query, QueryStrategy.ALL_AT_ONCE)
        path = _parse_path(response)
        values = await self._push_store.get_values(path)
        logger.debug("Query %s returned %d item(s) at %s", self._query.id.value, len(values), path)
        return [self._convert(value) for value in values]

    def one_by_one(self) -> Observable[Message]:
        """A lazy observable of the results; the query is sent on subscription."""
        return Observable(self._subscribe_one_by_one)

    def _subscribe_one_by_one(self, observer: Observer[Message]) -> Teardown:
        query_id = self._query.id.value
        countdown = Countdown()
        handle: Optional[ListenerHandle] = None

        def release() -> None:
            nonlocal handle
            if handle is not None:
                released, handle = handle, None
                if not released.closed:
                    released.cancel()

        def complete() -> None:
            if countdown.state is CountdownState.COMPLETE:
                return
            countdown.finish()
            release()
            logger.debug("Query %s completed after %d item(s)", query_id, countdown.received)
            observer.complete()

        def fail(error: BaseException) -> None:
            if countdown.state is CountdownState.COMPLETE:
                return
            countdown.finish()
            release()
            observer.error(error)

        def on_child_added(value: Any) -> None:
            # Late children, including ones replayed while the listener registers.
            if countdown.state is not CountdownState.COUNTING:
                return
            try:
                message = self._convert(value)
            except Exception as exc:
                fail(exc)
                return
            countdown.record()
            observer.next(message)
            if countdown.reached:
                complete()

        async def run() -> None:
            nonlocal handle
            try:
                response = await self._endpoint.query(self._query, QueryStrategy.ONE_BY_ONE)
                path, count = parse_query_ack(response)
            except Exception as exc:
                fail(exc)
                return

            logger.debug("Query %s expects %d item(s) at %s", query_id, count, path)
            countdown.start(count)
            if countdown.reached:
                complete()
                return

            try:
                registered = self._push_store.on_child_added(path, on_child_added)
            except Exception as exc:
                fail(exc)
                return
            if countdown.state is CountdownState.COMPLETE:
                if not registered.closed:
                    registered.cancel()
            else:
                handle = registered

        task = asyncio.get_running_loop().create_task(run())

        def teardown() -> None:
            if not task.done() and task is not asyncio.current_task():
                task.cancel()
            countdown.finish()
            release()

        return teardown
