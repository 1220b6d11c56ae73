from __future__ import annotations

from typing import Any, Union

from relaybricks.core.contracts import TypeUrl
from relaybricks.messages.base import Message
from relaybricks.parsers.registry import TypeParsers


class ObjectToMessage:
    """Converts raw push-channel objects into messages of a declared type."""

    def __init__(self) -> None:
        raise TypeError("ObjectToMessage is not supposed to be instantiated")

    @staticmethod
    def convert(obj: Any, type_url: Union[str, TypeUrl]) -> Message:
        return TypeParsers.parser_for(type_url).parse(obj)
