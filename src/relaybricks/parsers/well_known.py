"""
Parsers for the standard message types.

Raw objects follow the canonical JSON mapping of those types: wrappers are
plain JSON scalars, 64-bit integers may arrive as decimal strings, bytes as
base64 text, timestamps as RFC 3339 strings, durations as ``"1.5s"`` and
field masks as comma-separated paths.
"""

from __future__ import annotations

import base64
import re
from datetime import datetime
from typing import Any as RawObject, Tuple

from relaybricks.core.contracts import Type
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
    NullValue,
    StringValue,
    Struct,
    Timestamp,
    UInt32Value,
    UInt64Value,
    Value,
)
from relaybricks.parsers.base import ObjectParser
from relaybricks.parsers.registry import TypeParsers

ANY_TYPE_KEY = "@type"
ANY_VALUE_KEY = "value"

_TIMESTAMP_PATTERN = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(?P<fraction>\d{1,9}))?(?P<zone>Z|[+-]\d{2}:\d{2})$"
)
_DURATION_PATTERN = re.compile(r"^(?P<sign>-)?(?P<seconds>\d+)(?:\.(?P<fraction>\d{1,9}))?s$")


def _nanos(fraction: str | None) -> int:
    return int(fraction.ljust(9, "0")) if fraction else 0


class WellKnownParser(ObjectParser):
    # Types with a special JSON form are nested under "value" when packed into an Any.
    packed_under_value_key: bool = True


class BoolValueParser(WellKnownParser):
    def from_object(self, obj: RawObject) -> BoolValue:
        return BoolValue(value=obj)


class BytesValueParser(WellKnownParser):
    def from_object(self, obj: RawObject) -> BytesValue:
        if isinstance(obj, str):
            obj = base64.b64decode(obj)
        return BytesValue(value=obj)


class DoubleValueParser(WellKnownParser):
    def from_object(self, obj: RawObject) -> DoubleValue:
        return DoubleValue(value=float(obj))


class FloatValueParser(WellKnownParser):
    def from_object(self, obj: RawObject) -> FloatValue:
        return FloatValue(value=float(obj))


class Int32ValueParser(WellKnownParser):
    def from_object(self, obj: RawObject) -> Int32Value:
        return Int32Value(value=int(obj))


class Int64ValueParser(WellKnownParser):
    def from_object(self, obj: RawObject) -> Int64Value:
        return Int64Value(value=int(obj))


class UInt32ValueParser(WellKnownParser):
    def from_object(self, obj: RawObject) -> UInt32Value:
        return UInt32Value(value=int(obj))


class UInt64ValueParser(WellKnownParser):
    def from_object(self, obj: RawObject) -> UInt64Value:
        return UInt64Value(value=int(obj))


class StringValueParser(WellKnownParser):
    def from_object(self, obj: RawObject) -> StringValue:
        return StringValue(value=obj)


class ValueParser(WellKnownParser):
    def from_object(self, obj: RawObject) -> Value:
        if obj is None:
            return Value(null_value=NullValue.NULL_VALUE)
        # bool is checked before numbers: it is a subclass of int
        if isinstance(obj, bool):
            return Value(bool_value=obj)
        if isinstance(obj, (int, float)):
            return Value(number_value=obj)
        if isinstance(obj, str):
            return Value(string_value=obj)
        if isinstance(obj, list):
            return Value(list_value=ListValueParser().from_object(obj))
        if isinstance(obj, dict):
            return Value(struct_value=StructParser().from_object(obj))
        raise TypeError(f"Cannot convert {type(obj).__name__} to a Value")


class ListValueParser(WellKnownParser):
    def from_object(self, obj: RawObject) -> ListValue:
        parser = ValueParser()
        return ListValue(values=tuple(parser.from_object(item) for item in obj))


class StructParser(WellKnownParser):
    def from_object(self, obj: RawObject) -> Struct:
        parser = ValueParser()
        return Struct(fields={key: parser.from_object(item) for key, item in obj.items()})


class EmptyParser(ObjectParser):
    def from_object(self, obj: RawObject) -> Empty:
        return Empty()


class TimestampParser(WellKnownParser):
    def from_object(self, obj: RawObject) -> Timestamp:
        match = _TIMESTAMP_PATTERN.match(obj)
        if match is None:
            raise ValueError(f"Not an RFC 3339 timestamp: {obj!r}")
        zone = match["zone"]
        moment = datetime.fromisoformat(match["base"] + ("+00:00" if zone == "Z" else zone))
        seconds = Timestamp.from_datetime(moment).seconds
        return Timestamp(seconds=seconds, nanos=_nanos(match["fraction"]))


class DurationParser(WellKnownParser):
    def from_object(self, obj: RawObject) -> Duration:
        match = _DURATION_PATTERN.match(obj)
        if match is None:
            raise ValueError(f"Not a duration: {obj!r}")
        sign = -1 if match["sign"] else 1
        return Duration(seconds=sign * int(match["seconds"]), nanos=sign * _nanos(match["fraction"]))


class FieldMaskParser(WellKnownParser):
    def from_object(self, obj: RawObject) -> FieldMask:
        paths = tuple(path for path in obj.split(",") if path)
        return FieldMask(paths=paths)


class AnyParser(WellKnownParser):
    """Parses a packed value whose concrete type is named by its ``@type`` key.

    The concrete type is looked up in the registry again, parsed, serialized
    and wrapped with its type URL.
    """

    def from_object(self, obj: RawObject) -> Any:
        type_url = obj.get(ANY_TYPE_KEY) if isinstance(obj, dict) else None
        if not type_url:
            raise ValueError(f"Packed value has no {ANY_TYPE_KEY!r} key")
        parser = TypeParsers.parser_for(type_url)
        if getattr(parser, "packed_under_value_key", False):
            payload = obj.get(ANY_VALUE_KEY)
        else:
            payload = {k: v for k, v in obj.items() if k != ANY_TYPE_KEY}
        message = parser.parse(payload)
        return Any(type_url=type_url, value=message.to_bytes())


WELL_KNOWN_PARSERS: Tuple[Tuple[Type, ObjectParser], ...] = (
    (Type.BOOL, BoolValueParser()),
    (Type.BYTES, BytesValueParser()),
    (Type.DOUBLE, DoubleValueParser()),
    (Type.FLOAT, FloatValueParser()),
    (Type.INT32, Int32ValueParser()),
    (Type.INT64, Int64ValueParser()),
    (Type.STRING, StringValueParser()),
    (Type.UINT32, UInt32ValueParser()),
    (Type.UINT64, UInt64ValueParser()),
    (Type.LIST_VALUE, ListValueParser()),
    (Type.VALUE, ValueParser()),
    (Type.STRUCT, StructParser()),
    (Type.EMPTY, EmptyParser()),
    (Type.TIMESTAMP, TimestampParser()),
    (Type.DURATION, DurationParser()),
    (Type.FIELD_MASK, FieldMaskParser()),
    (Type.ANY, AnyParser()),
)
