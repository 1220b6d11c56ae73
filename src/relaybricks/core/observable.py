"""
A minimal push-based sequence for asyncio code.

An ``Observable`` wraps a subscribe function. Nothing happens until
``subscribe()`` is called; each call runs the subscribe function with a fresh
observer and returns a ``Subscription`` which tears the source down.

A ``Subject`` is a hot observable: values pushed into it are broadcast to all
current subscribers.
"""

from __future__ import annotations

import asyncio
from typing import (
    Any,
    Callable,
    Generic,
    List,
    Optional,
    TypeVar,
)

from relaybricks.core.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
U = TypeVar("U")

OnNext = Callable[[T], Any]
OnError = Callable[[BaseException], Any]
OnComplete = Callable[[], Any]
Teardown = Optional[Callable[[], Any]]


class Subscription:
    """Handle returned by ``Observable.subscribe``; ``unsubscribe`` runs teardown once."""

    def __init__(self, teardown: Teardown = None):
        self._teardown = teardown
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def add(self, teardown: Callable[[], Any]) -> None:
        """Attach teardown logic; runs right away if already closed."""
        if self._closed:
            teardown()
            return
        previous = self._teardown

        def _both() -> None:
            if previous is not None:
                previous()
            teardown()

        self._teardown = _both

    def unsubscribe(self) -> None:
        if self._closed:
            return
        self._closed = True
        teardown, self._teardown = self._teardown, None
        if teardown is not None:
            teardown()


def _report_unhandled(error: BaseException) -> None:
    logger.error("Unhandled error in observable: %s", error, exc_info=error)


class Observer(Generic[T]):
    """Delivers signals to the callbacks; stops after the first terminal signal."""

    def __init__(
        self,
        on_next: Optional[OnNext] = None,
        on_error: Optional[OnError] = None,
        on_complete: Optional[OnComplete] = None,
    ):
        self._on_next = on_next
        self._on_error = on_error
        self._on_complete = on_complete
        self._stopped = False
        self.subscription = Subscription()

    @property
    def stopped(self) -> bool:
        return self._stopped

    def next(self, value: T) -> None:
        if self._stopped:
            return
        if self._on_next is not None:
            self._on_next(value)

    def error(self, error: BaseException) -> None:
        if self._stopped:
            return
        self._stopped = True
        try:
            if self._on_error is not None:
                self._on_error(error)
            else:
                _report_unhandled(error)
        finally:
            self.subscription.unsubscribe()

    def complete(self) -> None:
        if self._stopped:
            return
        self._stopped = True
        try:
            if self._on_complete is not None:
                self._on_complete()
        finally:
            self.subscription.unsubscribe()


SubscribeFn = Callable[[Observer], Teardown]


class Observable(Generic[T]):
    def __init__(self, subscribe_fn: SubscribeFn):
        self._subscribe_fn = subscribe_fn

    def subscribe(
        self,
        on_next: Optional[OnNext] = None,
        on_error: Optional[OnError] = None,
        on_complete: Optional[OnComplete] = None,
    ) -> Subscription:
        observer: Observer[T] = Observer(on_next, on_error, on_complete)
        try:
            teardown = self._subscribe_fn(observer)
        except Exception as exc:
            observer.error(exc)
            return observer.subscription
        if teardown is not None:
            observer.subscription.add(teardown)
        return observer.subscription

    def map(self, fn: Callable[[T], U]) -> "Observable[U]":
        """Transform each value; an exception from ``fn`` goes to the error channel."""

        def _subscribe(observer: Observer) -> Teardown:
            def _on_next(value: T) -> None:
                try:
                    mapped = fn(value)
                except Exception as exc:
                    observer.error(exc)
                    return
                observer.next(mapped)

            upstream = self.subscribe(_on_next, observer.error, observer.complete)
            return upstream.unsubscribe

        return Observable(_subscribe)

    def __aiter__(self) -> "ObservableIterator[T]":
        return ObservableIterator(self)

    async def to_list(self) -> List[T]:
        """Collect every value until completion; errors are raised."""
        async with ObservableIterator(self) as values:
            return [value async for value in values]


class ObservableIterator(Generic[T]):
    """
    Async iterator over an observable's values.

    The source is subscribed on creation and released when the sequence
    terminates or ``aclose()`` is called. Leaving an ``async for`` early with
    ``break`` does not call ``aclose()``; wrap the iterator in ``async with``
    (or ``contextlib.aclosing``) to release the source when the block exits.
    """

    def __init__(self, source: Observable[T]) -> None:
        self._queue: "asyncio.Queue[tuple]" = asyncio.Queue()
        self._done = False
        self._subscription = source.subscribe(
            lambda value: self._queue.put_nowait(("next", value)),
            lambda error: self._queue.put_nowait(("error", error)),
            lambda: self._queue.put_nowait(("complete", None)),
        )

    @property
    def closed(self) -> bool:
        return self._done

    def __aiter__(self) -> "ObservableIterator[T]":
        return self

    async def __anext__(self) -> T:
        if self._done:
            raise StopAsyncIteration
        try:
            kind, payload = await self._queue.get()
        except BaseException:
            await self.aclose()
            raise
        if kind == "next":
            return payload
        await self.aclose()
        if kind == "error":
            raise payload
        raise StopAsyncIteration

    async def aclose(self) -> None:
        self._done = True
        self._subscription.unsubscribe()

    async def __aenter__(self) -> "ObservableIterator[T]":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


class Subject(Observable[T]):
    """Multicast observable fed through ``next``, ``error`` and ``complete``."""

    def __init__(self) -> None:
        super().__init__(self._attach)
        self._observers: List[Observer[T]] = []
        self._stopped = False
        self._error: Optional[BaseException] = None

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    def _attach(self, observer: Observer[T]) -> Teardown:
        if self._stopped:
            if self._error is not None:
                observer.error(self._error)
            else:
                observer.complete()
            return None
        self._observers.append(observer)

        def _detach() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _detach

    def next(self, value: T) -> None:
        if self._stopped:
            return
        for observer in list(self._observers):
            observer.next(value)

    def error(self, error: BaseException) -> None:
        if self._stopped:
            return
        self._stopped = True
        self._error = error
        observers, self._observers = self._observers, []
        if not observers:
            _report_unhandled(error)
        for observer in observers:
            observer.error(error)

    def complete(self) -> None:
        if self._stopped:
            return
        self._stopped = True
        observers, self._observers = self._observers, []
        for observer in observers:
            observer.complete()
