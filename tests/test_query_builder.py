import pytest

from fakes import TASK
from relaybricks.core.contracts import AnyPacker, Type, TypedValue
from relaybricks.core.exceptions import (
    DuplicateBuilderCallError,
    InconsistentIdTypeError,
    MixedFilterKindError,
)
from relaybricks.messages.client import CompositeColumnFilter
from relaybricks.messages.well_known import FieldMask
from relaybricks.query.factory import ActorRequestFactory
from relaybricks.query.filters import ColumnFilters


def _select():
    return ActorRequestFactory("alice").query().select(TASK)


def test_ids_and_mask_build_filtered_query():
    query = _select().by_ids(["a", "b"]).with_mask(["name"]).build()

    assert query.target.type == TASK.url.value
    assert query.target.include_all is False
    ids = [AnyPacker.unpack(each.id, Type.STRING).value for each in query.target.filters.id_filter.ids]
    assert ids == ["a", "b"]
    assert query.field_mask == FieldMask(paths=("name",))


def test_plain_select_includes_all():
    query = _select().build()

    assert query.target.include_all is True
    assert query.field_mask.paths == ()


def test_numeric_ids_are_wrapped_as_int64():
    query = _select().by_ids([1, 2.7]).build()

    values = [AnyPacker.unpack(each.id, Type.INT64).value for each in query.target.filters.id_filter.ids]
    assert values == [1, 2]


def test_typed_ids_are_kept():
    query = _select().by_ids([TypedValue.uint64(5)]).build()
    assert query.target.filters.id_filter.ids[0].id.type_url == Type.UINT64.url.value


@pytest.mark.parametrize("method, argument", [("by_ids", ["a"]), ("where", []), ("with_mask", ["x"])])
def test_setters_can_be_called_once(method, argument):
    builder = _select()
    getattr(builder, method)(argument)

    with pytest.raises(DuplicateBuilderCallError, match=f"#{method}\\(\\) can not be invoked more than once"):
        getattr(builder, method)(argument)


def test_empty_inputs_leave_target_and_mask_unchanged():
    builder = _select().by_ids([]).where([]).with_mask([])

    assert builder.get_target().include_all is True
    assert builder.get_mask() == FieldMask()
    assert builder.mask_set is True


def test_mask_set_is_false_until_with_mask():
    builder = _select()
    assert builder.mask_set is False


def test_mixed_id_kinds_are_rejected():
    with pytest.raises(InconsistentIdTypeError):
        _select().by_ids(["a", 1])


def test_failed_call_does_not_consume_the_setter():
    builder = _select()
    with pytest.raises(InconsistentIdTypeError):
        builder.by_ids(["a", TypedValue.string("b")])

    builder.by_ids(["a"])
    assert builder.get_target().include_all is False


@pytest.mark.parametrize("ids", [[None], [True], [{"id": 1}]])
def test_unsupported_ids_are_rejected(ids):
    with pytest.raises(TypeError):
        _select().by_ids(ids)


def test_setters_require_lists():
    with pytest.raises(TypeError):
        _select().by_ids("abc")
    with pytest.raises(TypeError):
        _select().with_mask("name")
    with pytest.raises(TypeError):
        _select().with_mask([1])


def test_where_with_leaves_builds_one_all_composite_in_order():
    first = ColumnFilters.eq("title", "x")
    second = ColumnFilters.gt("priority", 1)

    target = _select().where([first, second]).get_target()

    assert len(target.filters.filter) == 1
    composite = target.filters.filter[0]
    assert composite.operator == CompositeColumnFilter.Operator.ALL
    assert composite.filter == (first, second)


def test_where_with_composites_uses_them_as_is():
    either = ColumnFilters.either(ColumnFilters.eq("a", 1), ColumnFilters.eq("a", 2))
    both = ColumnFilters.all_of(ColumnFilters.lt("b", 5))

    target = _select().where([either, both]).get_target()

    assert target.filters.filter == (either, both)


def test_where_rejects_mixed_kinds():
    leaf = ColumnFilters.eq("a", 1)
    with pytest.raises(MixedFilterKindError):
        _select().where([leaf, ColumnFilters.all_of(leaf)])


def test_where_rejects_non_filters():
    with pytest.raises(TypeError):
        _select().where(["a == 1"])


def test_ids_and_filters_combine():
    target = _select().by_ids(["a"]).where([ColumnFilters.eq("done", False)]).get_target()

    assert len(target.filters.id_filter.ids) == 1
    assert len(target.filters.filter) == 1


def test_topic_builder_builds_topics():
    topic = ActorRequestFactory("alice").topic().select(TASK).by_ids(["a"]).build()

    assert topic.id.value.startswith("t-")
    assert topic.target.include_all is False
