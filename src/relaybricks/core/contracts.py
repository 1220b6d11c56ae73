from __future__ import annotations

import base64
import math
from dataclasses import dataclass, field
from typing import ClassVar, Generic, Type as PyType, TypeVar, Union

from relaybricks.messages.base import Message
from relaybricks.messages.client import Subscription, Topic, WebQuery
from relaybricks.messages.core import Command
from relaybricks.messages.well_known import (
    Any,
    BoolValue,
    BytesValue,
    DoubleValue,
    Duration,
    Empty,
    FieldMask,
    FloatValue,
    Int32Value,
    Int64Value,
    ListValue,
    StringValue,
    Struct,
    Timestamp,
    UInt32Value,
    UInt64Value,
    Value,
)

M = TypeVar("M", bound=Message)


@dataclass(frozen=True)
class TypeUrl:
    """The URL of a message type: ``<prefix>/<name>``.

    The prefix is a namespace such as ``type.googleapis.com``; the name is the
    fully-qualified type name.
    """

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or "/" not in self.value:
            raise ValueError(f"Type URL must have the form '<prefix>/<name>', got {self.value!r}")

    @property
    def prefix(self) -> str:
        return self.value.split("/", 1)[0]

    @property
    def name(self) -> str:
        return self.value.split("/", 1)[1]

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Type(Generic[M]):
    """A message type: its Python class together with its type URL."""

    cls: PyType[M]
    url: TypeUrl

    STRING: ClassVar["Type[StringValue]"]
    INT32: ClassVar["Type[Int32Value]"]
    UINT32: ClassVar["Type[UInt32Value]"]
    INT64: ClassVar["Type[Int64Value]"]
    UINT64: ClassVar["Type[UInt64Value]"]
    BOOL: ClassVar["Type[BoolValue]"]
    DOUBLE: ClassVar["Type[DoubleValue]"]
    FLOAT: ClassVar["Type[FloatValue]"]
    BYTES: ClassVar["Type[BytesValue]"]
    TIMESTAMP: ClassVar["Type[Timestamp]"]
    DURATION: ClassVar["Type[Duration]"]
    FIELD_MASK: ClassVar["Type[FieldMask]"]
    EMPTY: ClassVar["Type[Empty]"]
    VALUE: ClassVar["Type[Value]"]
    LIST_VALUE: ClassVar["Type[ListValue]"]
    STRUCT: ClassVar["Type[Struct]"]
    ANY: ClassVar["Type[Any]"]
    WEB_QUERY: ClassVar["Type[WebQuery]"]
    TOPIC: ClassVar["Type[Topic]"]
    SUBSCRIPTION: ClassVar["Type[Subscription]"]
    COMMAND: ClassVar["Type[Command]"]

    @classmethod
    def of(cls, message_cls: PyType[M], url: Union[str, TypeUrl]) -> "Type[M]":
        if not isinstance(url, TypeUrl):
            url = TypeUrl(url)
        return cls(message_cls, url)


def well_known_type_url(name: str) -> str:
    return f"type.googleapis.com/google.protobuf.{name}"


Type.STRING = Type.of(StringValue, well_known_type_url("StringValue"))
Type.INT32 = Type.of(Int32Value, well_known_type_url("Int32Value"))
Type.UINT32 = Type.of(UInt32Value, well_known_type_url("UInt32Value"))
Type.INT64 = Type.of(Int64Value, well_known_type_url("Int64Value"))
Type.UINT64 = Type.of(UInt64Value, well_known_type_url("UInt64Value"))
Type.BOOL = Type.of(BoolValue, well_known_type_url("BoolValue"))
Type.DOUBLE = Type.of(DoubleValue, well_known_type_url("DoubleValue"))
Type.FLOAT = Type.of(FloatValue, well_known_type_url("FloatValue"))
Type.BYTES = Type.of(BytesValue, well_known_type_url("BytesValue"))
Type.TIMESTAMP = Type.of(Timestamp, well_known_type_url("Timestamp"))
Type.DURATION = Type.of(Duration, well_known_type_url("Duration"))
Type.FIELD_MASK = Type.of(FieldMask, well_known_type_url("FieldMask"))
Type.EMPTY = Type.of(Empty, well_known_type_url("Empty"))
Type.VALUE = Type.of(Value, well_known_type_url("Value"))
Type.LIST_VALUE = Type.of(ListValue, well_known_type_url("ListValue"))
Type.STRUCT = Type.of(Struct, well_known_type_url("Struct"))
Type.ANY = Type.of(Any, well_known_type_url("Any"))

Type.WEB_QUERY = Type.of(WebQuery, "type.spine.io/spine.web.WebQuery")
Type.TOPIC = Type.of(Topic, "type.spine.io/spine.client.Topic")
Type.SUBSCRIPTION = Type.of(Subscription, "type.spine.io/spine.client.Subscription")
Type.COMMAND = Type.of(Command, "type.spine.io/spine.core.Command")


@dataclass(frozen=True)
class TypedValue(Generic[M]):
    """A message together with its declared type; every cross-boundary value is one."""

    message: M
    type: Type[M] = field(repr=False)

    @property
    def type_url(self) -> TypeUrl:
        return self.type.url

    def to_any(self) -> Any:
        return AnyPacker.pack(self)

    def to_bytes(self) -> bytes:
        return self.message.to_bytes()

    def to_base64(self) -> str:
        return base64.b64encode(self.to_bytes()).decode("ascii")

    @staticmethod
    def string(value: str) -> "TypedValue[StringValue]":
        return TypedValue(StringValue(value=str(value)), Type.STRING)

    @staticmethod
    def int32(value: float) -> "TypedValue[Int32Value]":
        return TypedValue(Int32Value(value=math.floor(value)), Type.INT32)

    @staticmethod
    def uint32(value: float) -> "TypedValue[UInt32Value]":
        return TypedValue(UInt32Value(value=math.floor(value)), Type.UINT32)

    @staticmethod
    def int64(value: float) -> "TypedValue[Int64Value]":
        return TypedValue(Int64Value(value=math.floor(value)), Type.INT64)

    @staticmethod
    def uint64(value: float) -> "TypedValue[UInt64Value]":
        return TypedValue(UInt64Value(value=math.floor(value)), Type.UINT64)

    @staticmethod
    def float(value: float) -> "TypedValue[FloatValue]":
        return TypedValue(FloatValue(value=value), Type.FLOAT)

    @staticmethod
    def double(value: float) -> "TypedValue[DoubleValue]":
        return TypedValue(DoubleValue(value=value), Type.DOUBLE)

    @staticmethod
    def bool(value: bool) -> "TypedValue[BoolValue]":
        return TypedValue(BoolValue(value=value), Type.BOOL)


class AnyPacker:
    """Packs typed messages into ``Any`` and back."""

    def __init__(self) -> None:
        raise TypeError("AnyPacker is not supposed to be instantiated")

    @staticmethod
    def pack(typed: TypedValue) -> Any:
        return Any(type_url=typed.type_url.value, value=typed.to_bytes())

    @staticmethod
    def unpack(packed: Any, type_: Type[M]) -> M:
        if packed.type_url != type_.url.value:
            raise ValueError(f"Cannot unpack {packed.type_url!r} as {type_.url.value!r}")
        return type_.cls.from_bytes(packed.value)
