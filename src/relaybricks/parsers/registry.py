from __future__ import annotations

from typing import Callable, ClassVar, Dict, Optional, Type, Union

from relaybricks.core.contracts import TypeUrl
from relaybricks.core.exceptions import InvalidParserError, ParserNotFoundError
from relaybricks.core.logger import get_logger
from relaybricks.parsers.base import ObjectParser

logger = get_logger(__name__)

TypeUrlLike = Union[str, TypeUrl]


def _key(type_url: TypeUrlLike) -> str:
    return type_url.value if isinstance(type_url, TypeUrl) else str(type_url)


class TypeParsers:
    """Process-wide registry of parsers keyed by type URL.

    Registration is first-write-wins: well-known parsers are registered when
    the package is imported, and a repeated registration for a URL that
    already has a parser is ignored.
    """

    _registry: ClassVar[Dict[str, ObjectParser]] = {}

    def __init__(self) -> None:
        raise TypeError("TypeParsers is not supposed to be instantiated")

    @classmethod
    def register(cls, parser: ObjectParser, type_url: TypeUrlLike) -> None:
        if not isinstance(parser, ObjectParser):
            raise InvalidParserError(
                f"Unable to register {parser!r} for {_key(type_url)!r}: parsers must extend ObjectParser"
            )
        key = _key(type_url)
        if key in cls._registry:
            logger.debug("Parser for %s already registered; keeping %r", key, cls._registry[key])
            return
        cls._registry[key] = parser

    @classmethod
    def parser_for(cls, type_url: TypeUrlLike) -> ObjectParser:
        key = _key(type_url)
        try:
            return cls._registry[key]
        except KeyError as exc:
            raise ParserNotFoundError(key) from exc

    @classmethod
    def try_get(cls, type_url: TypeUrlLike) -> Optional[ObjectParser]:
        return cls._registry.get(_key(type_url))

    @classmethod
    def is_registered(cls, type_url: TypeUrlLike) -> bool:
        return _key(type_url) in cls._registry

    @classmethod
    def clear(cls) -> None:
        cls._registry.clear()


def register_parser(type_url: TypeUrlLike) -> Callable[[Type[ObjectParser]], Type[ObjectParser]]:
    """Class decorator registering an instance of the decorated parser."""

    def decorator(parser_class: Type[ObjectParser]) -> Type[ObjectParser]:
        TypeParsers.register(parser_class(), type_url)
        return parser_class

    return decorator
