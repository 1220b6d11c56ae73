from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Generic, Type, TypeVar

from relaybricks.messages.base import Message

M = TypeVar("M", bound=Message)


class ObjectParser(ABC):
    """Converts a raw decoded-JSON object into a message.

    Raw objects follow the canonical JSON mapping of the message type, as
    stored by the backend in the push channel.
    """

    def parse(self, obj: Any) -> Message:
        return self.from_object(obj)

    @abstractmethod
    def from_object(self, obj: Any) -> Message:
        ...


class ModelParser(ObjectParser, Generic[M]):
    """Parser for application message classes, validated by pydantic.

    Keys beginning with ``@`` (such as the ``@type`` tag of a packed value)
    are metadata of the JSON mapping and are dropped before validation.
    """

    def __init__(self, message_cls: Type[M]):
        self.message_cls = message_cls

    def from_object(self, obj: Any) -> M:
        if isinstance(obj, dict):
            obj = {k: v for k, v in obj.items() if not k.startswith("@")}
        return self.message_cls.model_validate(obj)

    def __repr__(self) -> str:
        return f"ModelParser({self.message_cls.__name__})"
