"""Standard message types shared by every backend: wrappers, time, struct and Any."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import IntEnum
from typing import Dict, Optional, Tuple

from pydantic import Field

from relaybricks.messages.base import Message


# -----------------
# Primitive wrappers
# -----------------


class BoolValue(Message):
    value: bool = False


class BytesValue(Message):
    value: bytes = b""


class DoubleValue(Message):
    value: float = 0.0


class FloatValue(Message):
    value: float = 0.0


class Int32Value(Message):
    value: int = 0


class Int64Value(Message):
    value: int = 0


class UInt32Value(Message):
    value: int = Field(default=0, ge=0)


class UInt64Value(Message):
    value: int = Field(default=0, ge=0)


class StringValue(Message):
    value: str = ""


# -----------------
# Time
# -----------------


class Timestamp(Message):
    seconds: int = 0
    nanos: int = Field(default=0, ge=0, lt=1_000_000_000)

    @classmethod
    def from_datetime(cls, moment: datetime) -> "Timestamp":
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        delta = moment - datetime(1970, 1, 1, tzinfo=timezone.utc)
        seconds = delta.days * 86400 + delta.seconds
        return cls(seconds=seconds, nanos=delta.microseconds * 1000)

    def to_datetime(self) -> datetime:
        return datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(
            seconds=self.seconds, microseconds=self.nanos // 1000
        )


class Duration(Message):
    seconds: int = 0
    nanos: int = Field(default=0, gt=-1_000_000_000, lt=1_000_000_000)

    def total_seconds(self) -> float:
        return self.seconds + self.nanos / 1_000_000_000


class FieldMask(Message):
    paths: Tuple[str, ...] = ()


class Empty(Message):
    pass


# -----------------
# Struct
# -----------------


class NullValue(IntEnum):
    NULL_VALUE = 0


class Value(Message):
    """A dynamically typed value; exactly one of the fields is expected to be set."""

    null_value: Optional[NullValue] = None
    number_value: Optional[float] = None
    string_value: Optional[str] = None
    bool_value: Optional[bool] = None
    struct_value: Optional["Struct"] = None
    list_value: Optional["ListValue"] = None

    def kind(self) -> Optional[str]:
        for name in ("null_value", "number_value", "string_value", "bool_value", "struct_value", "list_value"):
            if getattr(self, name) is not None:
                return name
        return None


class ListValue(Message):
    values: Tuple[Value, ...] = ()


class Struct(Message):
    fields: Dict[str, Value] = Field(default_factory=dict)


Value.model_rebuild()
ListValue.model_rebuild()
Struct.model_rebuild()


# -----------------
# Any
# -----------------


class Any(Message):
    """A type-erased message: serialized bytes tagged with the URL of their type."""

    type_url: str = ""
    value: bytes = b""
