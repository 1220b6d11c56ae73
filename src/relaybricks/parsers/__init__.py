from relaybricks.parsers.base import ModelParser, ObjectParser
from relaybricks.parsers.converter import ObjectToMessage
from relaybricks.parsers.registry import TypeParsers, register_parser

__all__ = [
    "ModelParser",
    "ObjectParser",
    "ObjectToMessage",
    "TypeParsers",
    "register_parser",
]
