import logging

import pytest

from relaybricks.core.observable import Observable, Subject, Subscription


def _source(values, *, complete=True, teardowns=None):
    def subscribe(observer):
        for value in values:
            observer.next(value)
        if complete:
            observer.complete()
        if teardowns is not None:
            return lambda: teardowns.append("torn down")
        return None

    return Observable(subscribe)


def test_observable_is_lazy():
    calls = []
    observable = Observable(lambda observer: calls.append(observer))

    assert calls == []
    observable.subscribe()
    assert len(calls) == 1


def test_values_then_completion():
    received, completed = [], []

    _source([1, 2, 3]).subscribe(received.append, on_complete=lambda: completed.append(True))

    assert received == [1, 2, 3]
    assert completed == [True]


def test_terminal_signal_is_delivered_once():
    completed, errors, received = [], [], []

    def subscribe(observer):
        observer.complete()
        observer.complete()
        observer.error(RuntimeError("late"))
        observer.next("late")

    Observable(subscribe).subscribe(received.append, errors.append, lambda: completed.append(True))

    assert completed == [True]
    assert errors == []
    assert received == []


def test_teardown_runs_once_after_completion():
    teardowns = []
    subscription = _source([1], teardowns=teardowns).subscribe()

    assert subscription.closed
    subscription.unsubscribe()
    assert teardowns == ["torn down"]


def test_unsubscribe_is_idempotent():
    teardowns = []
    subscription = _source([], complete=False, teardowns=teardowns).subscribe()

    subscription.unsubscribe()
    subscription.unsubscribe()

    assert teardowns == ["torn down"]


def test_subscribe_function_failure_goes_to_error_channel():
    errors = []

    def subscribe(observer):
        raise RuntimeError("boom")

    Observable(subscribe).subscribe(on_error=errors.append)

    assert str(errors[0]) == "boom"


def test_map_transforms_values_and_reports_failures():
    received, errors = [], []

    _source([1, 2]).map(lambda x: x * 10).subscribe(received.append)
    _source([1, 0]).map(lambda x: 1 / x).subscribe(received.append, errors.append)

    assert received == [10, 20, 1.0]
    assert isinstance(errors[0], ZeroDivisionError)


def test_subscription_add_after_close_runs_immediately():
    calls = []
    subscription = Subscription()
    subscription.unsubscribe()

    subscription.add(lambda: calls.append("now"))

    assert calls == ["now"]


def test_unhandled_error_is_logged(caplog, monkeypatch):
    monkeypatch.setattr(logging.getLogger("relaybricks"), "propagate", True)

    def subscribe(observer):
        observer.error(RuntimeError("nobody listens"))

    with caplog.at_level(logging.ERROR, logger="relaybricks"):
        Observable(subscribe).subscribe()

    assert "nobody listens" in caplog.text


@pytest.mark.asyncio
async def test_to_list_collects_until_completion():
    assert await _source(["a", "b"]).to_list() == ["a", "b"]


@pytest.mark.asyncio
async def test_async_iteration_raises_errors():
    def subscribe(observer):
        observer.next(1)
        observer.error(ValueError("bad item"))

    received = []
    with pytest.raises(ValueError, match="bad item"):
        async for value in Observable(subscribe):
            received.append(value)

    assert received == [1]


@pytest.mark.asyncio
async def test_aclose_unsubscribes_iterator():
    teardowns = []
    observable = _source([1, 2, 3], complete=False, teardowns=teardowns)

    iterator = observable.__aiter__()
    assert await iterator.__anext__() == 1
    await iterator.aclose()

    assert teardowns == ["torn down"]
    assert iterator.closed
    with pytest.raises(StopAsyncIteration):
        await iterator.__anext__()


@pytest.mark.asyncio
async def test_break_inside_async_with_unsubscribes_on_exit():
    teardowns = []
    observable = _source([1, 2, 3], complete=False, teardowns=teardowns)

    received = []
    async with observable.__aiter__() as values:
        async for value in values:
            received.append(value)
            break
        assert teardowns == []

    assert received == [1]
    assert teardowns == ["torn down"]


def test_subject_broadcasts_to_every_subscriber():
    subject = Subject()
    first, second = [], []
    subject.subscribe(first.append)
    subject.subscribe(second.append)

    subject.next("x")

    assert first == ["x"]
    assert second == ["x"]


def test_subject_stops_delivering_to_unsubscribed_observer():
    subject = Subject()
    received = []
    subscription = subject.subscribe(received.append)

    subscription.unsubscribe()
    subject.next("x")

    assert received == []
    assert subject.observer_count == 0


def test_late_subscribers_get_terminal_signal():
    completed = Subject()
    completed.complete()
    failed = Subject()
    failed.subscribe(on_error=lambda error: None)
    failed.error(RuntimeError("gone"))

    done, errors = [], []
    completed.subscribe(on_complete=lambda: done.append(True))
    failed.subscribe(on_error=errors.append)

    assert done == [True]
    assert str(errors[0]) == "gone"


def test_subject_ignores_signals_after_termination():
    subject = Subject()
    received, done = [], []
    subject.subscribe(received.append, on_complete=lambda: done.append(True))

    subject.complete()
    subject.next("late")
    subject.complete()

    assert received == []
    assert done == [True]
