"""
Fluent builders of query and topic targets.

Each of ``by_ids``, ``where`` and ``with_mask`` may be called at most once
per builder, in any order. A call with an empty list still counts: the field
becomes set, with nothing in it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Generic, List, Optional, Sequence, Tuple, TypeVar, Union

from relaybricks.core.contracts import TypedValue
from relaybricks.core.exceptions import (
    DuplicateBuilderCallError,
    InconsistentIdTypeError,
    MixedFilterKindError,
)
from relaybricks.messages.client import ColumnFilter, CompositeColumnFilter, Query, Target, Topic
from relaybricks.messages.well_known import FieldMask
from relaybricks.query.filters import ColumnFilters, EntityType, Targets, type_url_of

if TYPE_CHECKING:
    from relaybricks.query.factory import QueryFactory, TopicFactory

T = TypeVar("T")
R = TypeVar("R")

RawId = Union[str, int, float, TypedValue]


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset()


class OneShot(Generic[T]):
    """A builder field which goes from unset to set exactly once."""

    def __init__(self, method: str):
        self._method = method
        self._value: Union[T, _Unset] = UNSET

    @property
    def is_set(self) -> bool:
        return self._value is not UNSET

    @property
    def value(self) -> Optional[T]:
        return None if isinstance(self._value, _Unset) else self._value

    def ensure_unset(self) -> None:
        if self.is_set:
            raise DuplicateBuilderCallError(self._method)

    def set(self, value: T) -> None:
        self.ensure_unset()
        self._value = value


def _as_list(value: Any, method: str) -> List[Any]:
    if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
        raise TypeError(f"#{method}() expects a list, got {type(value).__name__}")
    return list(value)


def _id_kind(value: Any) -> str:
    if isinstance(value, TypedValue):
        return "typed"
    if isinstance(value, bool):
        raise TypeError(f"Unsupported entity ID: {value!r}")
    if isinstance(value, str):
        return "string"
    if isinstance(value, (int, float)):
        return "number"
    raise TypeError(f"Unsupported entity ID: {value!r}")


def _lift_ids(ids: Sequence[RawId]) -> Tuple[TypedValue, ...]:
    kinds = {_id_kind(each) for each in ids}
    if len(kinds) > 1:
        raise InconsistentIdTypeError(
            f"All IDs must be of one kind (strings, numbers or typed values), got {sorted(kinds)}"
        )
    if kinds == {"string"}:
        return tuple(TypedValue.string(each) for each in ids)
    if kinds == {"number"}:
        return tuple(TypedValue.int64(each) for each in ids)
    return tuple(ids)


def _fold_filters(predicates: Sequence[Any]) -> Tuple[CompositeColumnFilter, ...]:
    for each in predicates:
        if not isinstance(each, (ColumnFilter, CompositeColumnFilter)):
            raise TypeError(f"#where() expects column filters, got {each!r}")
    leaves = [each for each in predicates if isinstance(each, ColumnFilter)]
    if leaves and len(leaves) != len(predicates):
        raise MixedFilterKindError(
            "#where() accepts either ColumnFilter or CompositeColumnFilter values, not both"
        )
    if leaves:
        return (ColumnFilters.all_of(*leaves),)
    return tuple(predicates)


class AbstractTargetBuilder(ABC, Generic[R]):
    """Collects IDs, column filters and a field mask for one entity type."""

    def __init__(self, entity_type: EntityType):
        self._type_url = type_url_of(entity_type)
        self._ids: OneShot[Tuple[TypedValue, ...]] = OneShot("by_ids")
        self._filters: OneShot[Tuple[CompositeColumnFilter, ...]] = OneShot("where")
        self._mask: OneShot[Tuple[str, ...]] = OneShot("with_mask")

    @property
    def type_url(self) -> str:
        return self._type_url

    def by_ids(self, ids: Sequence[RawId]):
        """Restrict the target to entities with the given IDs.

        IDs are all strings, all numbers or all ``TypedValue`` instances;
        strings and numbers are wrapped as string and int64 values.
        """
        self._ids.ensure_unset()
        self._ids.set(_lift_ids(_as_list(ids, "by_ids")))
        return self

    def where(self, predicates: Sequence[Union[ColumnFilter, CompositeColumnFilter]]):
        """Restrict the target with column filters.

        Plain ``ColumnFilter`` values are joined under one ALL composite;
        ``CompositeColumnFilter`` values are used as they are.
        """
        self._filters.ensure_unset()
        self._filters.set(_fold_filters(_as_list(predicates, "where")))
        return self

    def with_mask(self, field_names: Sequence[str]):
        """Limit the fields of returned entities; an empty list keeps all fields."""
        self._mask.ensure_unset()
        names = _as_list(field_names, "with_mask")
        for name in names:
            if not isinstance(name, str):
                raise TypeError(f"#with_mask() expects field names, got {name!r}")
        self._mask.set(tuple(names))
        return self

    @property
    def mask_set(self) -> bool:
        return self._mask.is_set

    def get_target(self) -> Target:
        return Targets.compose(self._type_url, self._ids.value, self._filters.value)

    def get_mask(self) -> FieldMask:
        return FieldMask(paths=self._mask.value or ())

    @abstractmethod
    def build(self) -> R:
        ...


class QueryBuilder(AbstractTargetBuilder[Query]):
    def __init__(self, entity_type: EntityType, query_factory: "QueryFactory"):
        super().__init__(entity_type)
        self._factory = query_factory

    def build(self) -> Query:
        return self._factory.new_query(self.get_target(), self.get_mask())


class TopicBuilder(AbstractTargetBuilder[Topic]):
    def __init__(self, entity_type: EntityType, topic_factory: "TopicFactory"):
        super().__init__(entity_type)
        self._factory = topic_factory

    def build(self) -> Topic:
        return self._factory.new_topic(self.get_target(), self.get_mask())
