from __future__ import annotations

from typing import Optional, Sequence, Union

from relaybricks.core.contracts import Type, TypedValue, TypeUrl
from relaybricks.core.exceptions import MixedFilterKindError
from relaybricks.messages.client import (
    ColumnFilter,
    ColumnOperator,
    CompositeColumnFilter,
    CompositeOperator,
    EntityFilters,
    EntityId,
    EntityIdFilter,
    Target,
)

FilterValue = Union[TypedValue, str, int, float, bool]
EntityType = Union[Type, TypeUrl, str]


def type_url_of(entity_type: EntityType) -> str:
    if isinstance(entity_type, Type):
        return entity_type.url.value
    if isinstance(entity_type, TypeUrl):
        return entity_type.value
    return TypeUrl(entity_type).value


def _typed(value: FilterValue) -> TypedValue:
    if isinstance(value, TypedValue):
        return value
    if isinstance(value, bool):
        return TypedValue.bool(value)
    if isinstance(value, int):
        return TypedValue.int64(value)
    if isinstance(value, float):
        return TypedValue.double(value)
    if isinstance(value, str):
        return TypedValue.string(value)
    raise TypeError(f"Unsupported column filter value: {value!r}")


class ColumnFilters:
    """Factory of column filters and their compositions."""

    def __init__(self) -> None:
        raise TypeError("ColumnFilters is not supposed to be instantiated")

    @staticmethod
    def create(column: str, operator: ColumnOperator, value: FilterValue) -> ColumnFilter:
        return ColumnFilter(column_name=column, value=_typed(value).to_any(), operator=operator)

    @staticmethod
    def eq(column: str, value: FilterValue) -> ColumnFilter:
        return ColumnFilters.create(column, ColumnOperator.EQUAL, value)

    @staticmethod
    def lt(column: str, value: FilterValue) -> ColumnFilter:
        return ColumnFilters.create(column, ColumnOperator.LESS_THAN, value)

    @staticmethod
    def gt(column: str, value: FilterValue) -> ColumnFilter:
        return ColumnFilters.create(column, ColumnOperator.GREATER_THAN, value)

    @staticmethod
    def le(column: str, value: FilterValue) -> ColumnFilter:
        return ColumnFilters.create(column, ColumnOperator.LESS_OR_EQUAL, value)

    @staticmethod
    def ge(column: str, value: FilterValue) -> ColumnFilter:
        return ColumnFilters.create(column, ColumnOperator.GREATER_OR_EQUAL, value)

    @staticmethod
    def compose(
        filters: Sequence[Union[ColumnFilter, CompositeColumnFilter]],
        operator: CompositeOperator,
    ) -> CompositeColumnFilter:
        filters = tuple(filters)
        for each in filters:
            if not isinstance(each, (ColumnFilter, CompositeColumnFilter)):
                raise TypeError(f"Expected a column filter, got {each!r}")
        kinds = {type(each) for each in filters}
        if len(kinds) > 1:
            raise MixedFilterKindError(
                "A composite filter can not mix ColumnFilter and CompositeColumnFilter children"
            )
        return CompositeColumnFilter(filter=filters, operator=operator)

    @staticmethod
    def all_of(*filters: Union[ColumnFilter, CompositeColumnFilter]) -> CompositeColumnFilter:
        return ColumnFilters.compose(filters, CompositeOperator.ALL)

    @staticmethod
    def either(*filters: Union[ColumnFilter, CompositeColumnFilter]) -> CompositeColumnFilter:
        return ColumnFilters.compose(filters, CompositeOperator.EITHER)


class Targets:
    """Factory of query and topic targets."""

    def __init__(self) -> None:
        raise TypeError("Targets is not supposed to be instantiated")

    @staticmethod
    def compose(
        entity_type: EntityType,
        ids: Optional[Sequence[TypedValue]] = None,
        filters: Optional[Sequence[CompositeColumnFilter]] = None,
    ) -> Target:
        type_url = type_url_of(entity_type)
        if not ids and not filters:
            return Targets.include_all(type_url)

        id_filter = None
        if ids:
            id_filter = EntityIdFilter(ids=tuple(EntityId(id=each.to_any()) for each in ids))
        entity_filters = EntityFilters(id_filter=id_filter, filter=tuple(filters or ()))
        return Target(type=type_url, filters=entity_filters)

    @staticmethod
    def include_all(entity_type: EntityType) -> Target:
        return Target(type=type_url_of(entity_type), include_all=True)
