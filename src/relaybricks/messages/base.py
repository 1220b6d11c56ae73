from __future__ import annotations

from typing import Type, TypeVar

from pydantic import BaseModel, ConfigDict

M = TypeVar("M", bound="Message")


class Message(BaseModel):
    """Base class of every message exchanged with the backend.

    Messages are immutable once built. Their binary form is the UTF-8 JSON
    produced by pydantic; ``bytes`` fields travel as base64 text.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        ser_json_bytes="base64",
        val_json_bytes="base64",
    )

    def to_bytes(self) -> bytes:
        return self.model_dump_json().encode("utf-8")

    @classmethod
    def from_bytes(cls: Type[M], data: bytes) -> M:
        return cls.model_validate_json(data)
