"""
Example: querying, subscribing and sending commands with relaybricks.

The in-memory push store stands in for the realtime store the backend
writes to; in production pass an adapter for the real one.
"""

import asyncio

from relaybricks import Client, ColumnFilters, Type, TypedValue
from relaybricks.messages.base import Message
from relaybricks.parsers import ModelParser, TypeParsers
from relaybricks.push import InMemoryPushStore


class Task(Message):
    id: str
    title: str = ""
    done: bool = False


TASK = Type.of(Task, "type.example.org/todo.Task")
TypeParsers.register(ModelParser(Task), TASK.url)


async def main() -> None:
    client = Client.from_config(
        {
            "actor": "alice",
            "endpoint": {
                "base_url": "https://backend.example.org",
                "auth": {"kind": "bearer", "bearer_token": "<token>"},
            },
            "log_level": "DEBUG",
        },
        InMemoryPushStore(),
    )

    # =========================================================================
    # Queries
    # =========================================================================
    everything = await client.fetch_all(TASK).at_once()
    print(f"{len(everything)} task(s)")

    open_tasks = (
        client.select(TASK)
        .where([ColumnFilters.eq("done", False)])
        .with_mask(["id", "title"])
        .build()
    )
    async for task in client.fetch(open_tasks).one_by_one():
        print(f"open: {task.title}")

    # =========================================================================
    # Subscriptions
    # =========================================================================
    subscription = await client.subscribe_to(TASK)
    subscription.item_added.subscribe(lambda task: print(f"added: {task.id}"))
    subscription.item_removed.subscribe(lambda task: print(f"removed: {task.id}"))

    # =========================================================================
    # Commands
    # =========================================================================
    await client.send_command(
        TypedValue(Task(id="t-42", title="Ship it"), TASK),
        on_success=lambda: print("accepted"),
        on_error=lambda error: print(f"failed: {error}"),
        on_rejection=lambda rejection: print(f"rejected: {rejection}"),
    )

    client.unsubscribe(subscription)
    await client.aclose()


if __name__ == "__main__":
    asyncio.run(main())
