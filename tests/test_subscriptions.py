import asyncio
import logging

import pytest
from pydantic import ValidationError

from fakes import TASK, FailingPushStore, RecordingEndpoint, Task, register_task_parser, settle
from relaybricks.bootstrap import load_builtin_parsers
from relaybricks.core.exceptions import EndpointConnectionError, ProtocolError
from relaybricks.push.memory import InMemoryPushStore
from relaybricks.query.factory import ActorRequestFactory
from relaybricks.subscriptions import SubscriptionKeeper, SubscriptionMultiplexer


def setup_function() -> None:
    load_builtin_parsers(reload=True)
    register_task_parser()


def _topic():
    return ActorRequestFactory("alice").topic().all(TASK)


async def _subscribe(store, keeper=None, response=None):
    endpoint = RecordingEndpoint(subscribe=response or {"id": {"value": "s/1"}})
    multiplexer = SubscriptionMultiplexer(endpoint, store, keeper)
    return await multiplexer.subscribe(_topic()), endpoint


@pytest.mark.asyncio
async def test_changes_are_delivered_on_their_channels():
    store = InMemoryPushStore()
    subscription, endpoint = await _subscribe(store)
    added, changed, removed = [], [], []
    subscription.item_added.subscribe(added.append)
    subscription.item_changed.subscribe(changed.append)
    subscription.item_removed.subscribe(removed.append)

    store.set("s/1", "a", {"id": "a"})
    store.set("s/1", "a", {"id": "a", "done": True})
    store.remove("s/1", "a")
    await settle()

    assert added == [Task(id="a")]
    assert changed == [Task(id="a", done=True)]
    assert removed == [Task(id="a", done=True)]
    assert endpoint.sent("subscribe")[0].message.target.type == TASK.url.value


@pytest.mark.asyncio
async def test_existing_children_reach_observers_attached_after_subscribing():
    store = InMemoryPushStore({"s/1": {"a": {"id": "a"}}})
    subscription, _ = await _subscribe(store)
    added = []
    subscription.item_added.subscribe(added.append)

    await settle()

    assert added == [Task(id="a")]


@pytest.mark.asyncio
async def test_every_consumer_receives_each_change():
    store = InMemoryPushStore()
    subscription, _ = await _subscribe(store)
    first, second = [], []
    subscription.item_added.subscribe(first.append)
    subscription.item_added.subscribe(second.append)

    store.push("s/1", {"id": "a"})
    await settle()

    assert first == second == [Task(id="a")]


@pytest.mark.asyncio
async def test_subscription_exposes_backend_subscription():
    store = InMemoryPushStore()
    subscription, _ = await _subscribe(store)

    assert subscription.id == "s/1"
    assert subscription.internal().id.value == "s/1"
    assert subscription.internal().topic.target.type == TASK.url.value
    assert not subscription.closed


@pytest.mark.asyncio
async def test_unsubscribe_releases_listeners_and_completes_channels():
    store = InMemoryPushStore()
    subscription, _ = await _subscribe(store)
    added, completed = [], []
    subscription.item_added.subscribe(added.append, on_complete=lambda: completed.append("added"))
    subscription.item_removed.subscribe(on_complete=lambda: completed.append("removed"))

    subscription.unsubscribe()
    subscription.unsubscribe()
    store.push("s/1", {"id": "a"})
    await settle()

    assert subscription.closed
    assert store.listener_count() == 0
    assert added == []
    assert completed == ["added", "removed"]


@pytest.mark.asyncio
async def test_pending_deliveries_are_dropped_after_unsubscribe():
    store = InMemoryPushStore()
    subscription, _ = await _subscribe(store)
    added = []
    subscription.item_added.subscribe(added.append)

    store.push("s/1", {"id": "a"})
    subscription.unsubscribe()
    await settle()

    assert added == []


@pytest.mark.asyncio
async def test_conversion_failure_errors_only_its_channel():
    store = InMemoryPushStore()
    subscription, _ = await _subscribe(store)
    added_errors, changed = [], []
    subscription.item_added.subscribe(on_error=added_errors.append)
    subscription.item_changed.subscribe(changed.append)

    store.set("s/1", "a", {"title": "no id"})
    store.set("s/1", "a", {"id": "a"})
    await settle()

    assert isinstance(added_errors[0], ValidationError)
    assert changed == [Task(id="a")]


@pytest.mark.asyncio
async def test_missing_subscription_path_is_a_protocol_error():
    with pytest.raises(ProtocolError):
        await _subscribe(InMemoryPushStore(), response={"id": {}})


@pytest.mark.parametrize("event", ["added", "changed", "removed"])
@pytest.mark.asyncio
async def test_listener_registration_failure_releases_earlier_listeners(event):
    store = FailingPushStore(event)
    keeper = SubscriptionKeeper(RecordingEndpoint())

    with pytest.raises(ConnectionError):
        await _subscribe(store, keeper)

    assert store.listener_count("s/1") == 0
    assert keeper.subscriptions == []


@pytest.mark.asyncio
async def test_subscriptions_are_handed_to_the_keeper():
    endpoint = RecordingEndpoint()
    keeper = SubscriptionKeeper(endpoint, keep_up_interval=60)

    subscription, _ = await _subscribe(InMemoryPushStore(), keeper=keeper)

    assert keeper.subscriptions == [subscription]
    assert keeper.running
    await keeper.stop()
    assert not keeper.running


@pytest.mark.asyncio
async def test_keeper_keeps_up_open_and_cancels_closed_subscriptions_once():
    store = InMemoryPushStore()
    endpoint = RecordingEndpoint()
    keeper = SubscriptionKeeper(endpoint, keep_up_interval=60)
    open_one, _ = await _subscribe(store)
    closed_one, _ = await _subscribe(store, response={"id": {"value": "s/2"}})
    keeper.add(open_one)
    keeper.add(closed_one)
    closed_one.unsubscribe()

    await keeper.keep_up()
    await keeper.keep_up()
    await keeper.stop()

    assert [each.message.id.value for each in endpoint.sent("keep_up")] == ["s/1", "s/1"]
    assert [each.message.id.value for each in endpoint.sent("cancel")] == ["s/2"]
    assert keeper.subscriptions == [open_one]


@pytest.mark.asyncio
async def test_keeper_logs_failures_and_continues(caplog, monkeypatch):
    monkeypatch.setattr(logging.getLogger("relaybricks"), "propagate", True)
    endpoint = RecordingEndpoint(keep_up=EndpointConnectionError(OSError("backend down")))
    keeper = SubscriptionKeeper(endpoint, keep_up_interval=60)
    first, _ = await _subscribe(InMemoryPushStore())
    second, _ = await _subscribe(InMemoryPushStore(), response={"id": {"value": "s/2"}})
    keeper.add(first)
    keeper.add(second)

    with caplog.at_level(logging.WARNING, logger="relaybricks"):
        await keeper.keep_up()
    await keeper.stop()

    assert len(endpoint.sent("keep_up")) == 2
    assert "backend down" in caplog.text


@pytest.mark.asyncio
async def test_keeper_runs_periodically_until_stopped():
    endpoint = RecordingEndpoint()
    keeper = SubscriptionKeeper(endpoint, keep_up_interval=0.01)
    subscription, _ = await _subscribe(InMemoryPushStore())
    keeper.add(subscription)

    await asyncio.sleep(0.05)
    await keeper.stop()
    sent = len(endpoint.sent("keep_up"))
    await asyncio.sleep(0.03)

    assert sent >= 1
    assert len(endpoint.sent("keep_up")) == sent


def test_keeper_does_not_start_without_a_loop():
    keeper = SubscriptionKeeper(RecordingEndpoint())
    keeper.add(object())

    assert not keeper.running


def test_keeper_interval_must_be_positive():
    with pytest.raises(ValueError):
        SubscriptionKeeper(RecordingEndpoint(), keep_up_interval=0)
