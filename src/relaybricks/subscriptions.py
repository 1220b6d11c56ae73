"""
Entity subscriptions on top of the push store.

The backend answers a topic with a push store path; the multiplexer attaches
child added/changed/removed listeners to it and broadcasts the converted
entities through three subjects, one per kind of change.
"""

from __future__ import annotations

import asyncio
from typing import Any, List, Optional, Sequence, Tuple

from relaybricks.connectors.http.endpoint import Endpoint
from relaybricks.core.exceptions import ProtocolError
from relaybricks.core.logger import get_logger
from relaybricks.core.observable import Observable, Subject
from relaybricks.messages.base import Message
from relaybricks.messages.client import Subscription, SubscriptionId, Topic
from relaybricks.parsers.converter import ObjectToMessage
from relaybricks.push.store import ListenerHandle, PushStore

logger = get_logger(__name__)

DEFAULT_KEEP_UP_INTERVAL_SECONDS = 120.0


class EntitySubscription:
    """An open subscription: three channels of entity changes and a way to close it."""

    def __init__(
        self,
        subscription: Subscription,
        handles: Sequence[ListenerHandle],
        channels: Tuple[Subject[Message], Subject[Message], Subject[Message]],
    ):
        self._subscription = subscription
        self._handles = list(handles)
        self._added, self._changed, self._removed = channels
        self._closed = False

    @property
    def item_added(self) -> Observable[Message]:
        return self._added

    @property
    def item_changed(self) -> Observable[Message]:
        return self._changed

    @property
    def item_removed(self) -> Observable[Message]:
        return self._removed

    @property
    def id(self) -> str:
        return self._subscription.id.value

    @property
    def closed(self) -> bool:
        return self._closed

    def internal(self) -> Subscription:
        return self._subscription

    def unsubscribe(self) -> None:
        """Stop listening and complete every channel. Calling it again does nothing."""
        if self._closed:
            return
        self._closed = True
        for handle in self._handles:
            if handle.closed:
                continue
            try:
                handle.cancel()
            except Exception as exc:
                logger.warning("Failed to release a listener of subscription %s: %s", self.id, exc)
        self._handles = []
        for channel in (self._added, self._changed, self._removed):
            channel.complete()
        logger.debug("Subscription %s closed", self.id)


class SubscriptionKeeper:
    """Keeps subscriptions alive on the backend and cancels the closed ones.

    Every ``keep_up_interval`` seconds each open subscription is kept up and
    each closed one is cancelled once, then forgotten.
    """

    def __init__(self, endpoint: Endpoint, keep_up_interval: float = DEFAULT_KEEP_UP_INTERVAL_SECONDS):
        if keep_up_interval <= 0:
            raise ValueError("keep_up_interval must be positive")
        self._endpoint = endpoint
        self._interval = keep_up_interval
        self._subscriptions: List[EntitySubscription] = []
        self._task: Optional["asyncio.Task[None]"] = None

    @property
    def subscriptions(self) -> List[EntitySubscription]:
        return list(self._subscriptions)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def add(self, subscription: EntitySubscription) -> None:
        self._subscriptions.append(subscription)
        if self.running:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return
        self.start()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.keep_up()

    async def keep_up(self) -> None:
        """One round: keep up the open subscriptions, cancel the closed ones."""
        for subscription in list(self._subscriptions):
            if subscription.closed:
                self._subscriptions.remove(subscription)
                await self._send(self._endpoint.cancel_subscription, subscription, "cancel")
            else:
                await self._send(self._endpoint.keep_up_subscription, subscription, "keep up")

    async def _send(self, request: Any, subscription: EntitySubscription, action: str) -> None:
        try:
            await request(subscription.internal())
        except Exception as exc:
            logger.warning("Failed to %s subscription %s: %s", action, subscription.id, exc)


def _subscription_path(response: Any) -> str:
    try:
        path = response["id"]["value"]
    except (KeyError, TypeError):
        raise ProtocolError(f"Subscription acknowledgment does not contain `id.value`: {response!r}") from None
    if not isinstance(path, str) or not path:
        raise ProtocolError(f"Unexpected subscription path: {path!r}")
    return path


class SubscriptionMultiplexer:
    def __init__(
        self,
        endpoint: Endpoint,
        push_store: PushStore,
        keeper: Optional[SubscriptionKeeper] = None,
    ):
        self._endpoint = endpoint
        self._push_store = push_store
        self._keeper = keeper

    async def subscribe(self, topic: Topic) -> EntitySubscription:
        response = await self._endpoint.subscribe_to(topic)
        path = _subscription_path(response)
        type_url = topic.target.type
        loop = asyncio.get_running_loop()

        channels: Tuple[Subject[Message], Subject[Message], Subject[Message]] = (
            Subject(),
            Subject(),
            Subject(),
        )

        def forward(channel: Subject[Message]):
            def deliver(value: Any) -> None:
                if channel.stopped:
                    return
                try:
                    message = ObjectToMessage.convert(value, type_url)
                except Exception as exc:
                    channel.error(exc)
                    return
                channel.next(message)

            # Delivered on the next loop iteration, so that the caller can
            # attach observers to the returned subscription first.
            return lambda value: loop.call_soon(deliver, value)

        added, changed, removed = channels
        handles: List[ListenerHandle] = []
        try:
            handles.append(self._push_store.on_child_added(path, forward(added)))
            handles.append(self._push_store.on_child_changed(path, forward(changed)))
            handles.append(self._push_store.on_child_removed(path, forward(removed)))
        except Exception:
            for handle in handles:
                if not handle.closed:
                    handle.cancel()
            raise

        internal = Subscription(id=SubscriptionId(value=path), topic=topic)
        entity_subscription = EntitySubscription(internal, handles, channels)
        logger.debug("Subscribed to %s at %s", type_url, path)

        if self._keeper is not None:
            self._keeper.add(entity_subscription)
        return entity_subscription
