"""Actor, command and acknowledgement messages."""

from __future__ import annotations

from typing import Any as AnyType, Dict, Optional

from pydantic import ConfigDict, model_validator

from relaybricks.messages.base import Message
from relaybricks.messages.well_known import Any, Timestamp


class UserId(Message):
    value: str


class ZoneId(Message):
    value: str


class ZoneOffset(Message):
    """Offset of a time zone from UTC; positive east of Greenwich."""

    id: ZoneId
    amount_seconds: int


class ActorContext(Message):
    actor: UserId
    timestamp: Timestamp
    zone_offset: ZoneOffset


class CommandId(Message):
    uuid: str


class CommandContext(Message):
    actor_context: ActorContext


class Command(Message):
    id: CommandId
    message: Any
    context: CommandContext


class Status(Message):
    """Outcome of a request; exactly one of ``ok``, ``error``, ``rejection`` is present."""

    ok: Optional[Dict[str, AnyType]] = None
    error: Optional[Dict[str, AnyType]] = None
    rejection: Optional[Dict[str, AnyType]] = None

    @model_validator(mode="after")
    def _validate_single_outcome(self) -> "Status":
        present = [name for name in ("ok", "error", "rejection") if getattr(self, name) is not None]
        if len(present) != 1:
            raise ValueError(f"Status must carry exactly one of ok/error/rejection, got {present}")
        return self


class Ack(Message):
    """Acknowledgment of a command; fields it does not know are ignored."""

    model_config = ConfigDict(extra="ignore")

    status: Status
    message_id: Optional[Dict[str, AnyType]] = None
