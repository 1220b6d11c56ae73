import pytest

from fakes import TASK, Task, register_task_parser
from relaybricks.bootstrap import load_builtin_parsers
from relaybricks.core.contracts import AnyPacker, Type, TypedValue
from relaybricks.core.exceptions import InvalidParserError, ParserNotFoundError
from relaybricks.messages.well_known import Any, Empty, FieldMask, StringValue
from relaybricks.parsers import ModelParser, ObjectParser, ObjectToMessage, TypeParsers, register_parser


def setup_function() -> None:
    load_builtin_parsers(reload=True)


def test_well_known_types_are_registered_on_load():
    for type_ in (Type.STRING, Type.INT64, Type.BOOL, Type.TIMESTAMP, Type.ANY, Type.STRUCT):
        assert TypeParsers.is_registered(type_.url)


def test_parser_for_unknown_type_raises():
    with pytest.raises(ParserNotFoundError, match="type.example.org/Unknown") as info:
        TypeParsers.parser_for("type.example.org/Unknown")

    assert info.value.type_url == "type.example.org/Unknown"
    assert TypeParsers.try_get("type.example.org/Unknown") is None


def test_register_rejects_non_parser():
    with pytest.raises(InvalidParserError):
        TypeParsers.register(object(), TASK.url)


def test_first_registration_wins():
    first = ModelParser(Task)
    second = ModelParser(Task)

    TypeParsers.register(first, TASK.url)
    TypeParsers.register(second, TASK.url.value)

    assert TypeParsers.parser_for(TASK.url) is first


def test_register_parser_decorator_registers_an_instance():
    @register_parser("type.example.org/todo.Label")
    class LabelParser(ObjectParser):
        def from_object(self, obj):
            return StringValue(value=obj["name"])

    parser = TypeParsers.parser_for("type.example.org/todo.Label")
    assert isinstance(parser, LabelParser)
    assert parser.parse({"name": "urgent"}).value == "urgent"


def test_clear_and_reload():
    TypeParsers.clear()
    assert not TypeParsers.is_registered(Type.STRING.url)

    load_builtin_parsers(reload=True)
    assert TypeParsers.is_registered(Type.STRING.url)


def test_registry_is_not_instantiable():
    with pytest.raises(TypeError):
        TypeParsers()


def test_wrapper_parsers():
    assert ObjectToMessage.convert("hi", Type.STRING.url).value == "hi"
    assert ObjectToMessage.convert("9007199254740993", Type.INT64.url).value == 9007199254740993
    assert ObjectToMessage.convert(True, Type.BOOL.url).value is True
    assert ObjectToMessage.convert(1.5, Type.DOUBLE.url).value == 1.5
    assert ObjectToMessage.convert("aGk=", Type.BYTES.url).value == b"hi"


def test_timestamp_and_duration_parsers():
    timestamp = ObjectToMessage.convert("2020-01-01T00:00:01.5Z", Type.TIMESTAMP.url)
    assert timestamp.seconds == 1577836801
    assert timestamp.nanos == 500_000_000

    shifted = ObjectToMessage.convert("2020-01-01T02:00:00+02:00", Type.TIMESTAMP.url)
    assert shifted.seconds == 1577836800

    duration = ObjectToMessage.convert("-1.5s", Type.DURATION.url)
    assert duration.seconds == -1
    assert duration.nanos == -500_000_000

    with pytest.raises(ValueError):
        ObjectToMessage.convert("yesterday", Type.TIMESTAMP.url)


def test_field_mask_and_empty_parsers():
    assert ObjectToMessage.convert("name,owner.id", Type.FIELD_MASK.url) == FieldMask(
        paths=("name", "owner.id")
    )
    assert ObjectToMessage.convert({}, Type.EMPTY.url) == Empty()


def test_struct_parser_keeps_value_kinds():
    struct = ObjectToMessage.convert(
        {"flag": True, "count": 3, "name": "x", "tags": ["a"], "none": None},
        Type.STRUCT.url,
    )

    assert struct.fields["flag"].kind() == "bool_value"
    assert struct.fields["count"].number_value == 3.0
    assert struct.fields["name"].string_value == "x"
    assert struct.fields["tags"].list_value.values[0].string_value == "a"
    assert struct.fields["none"].kind() == "null_value"


def test_any_parser_with_well_known_payload():
    packed = ObjectToMessage.convert({"@type": Type.STRING.url.value, "value": "hello"}, Type.ANY.url)

    assert isinstance(packed, Any)
    assert packed.type_url == Type.STRING.url.value
    assert AnyPacker.unpack(packed, Type.STRING) == StringValue(value="hello")


def test_any_parser_with_application_payload():
    register_task_parser()

    packed = ObjectToMessage.convert(
        {"@type": TASK.url.value, "id": "t-1", "title": "Write tests"}, Type.ANY.url
    )

    assert AnyPacker.unpack(packed, TASK) == Task(id="t-1", title="Write tests")


def test_any_parser_requires_type_key():
    with pytest.raises(ValueError, match="@type"):
        ObjectToMessage.convert({"value": "hello"}, Type.ANY.url)


def test_any_parser_with_unregistered_type():
    with pytest.raises(ParserNotFoundError):
        ObjectToMessage.convert({"@type": "type.example.org/Nope"}, Type.ANY.url)


def test_model_parser_drops_metadata_keys():
    task = ModelParser(Task).parse({"@type": TASK.url.value, "id": "t-2"})
    assert task == Task(id="t-2")


def test_any_packer_rejects_mismatched_type():
    packed = TypedValue.string("x").to_any()
    with pytest.raises(ValueError):
        AnyPacker.unpack(packed, Type.INT32)
