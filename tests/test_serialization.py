from __future__ import annotations

import dataclasses
import enum
import importlib
import re
import typing as t

import pytest

from maybe_json import Maybe, NOTHING, to_maybe
from maybe_json import MaybeConverter, MaybeConverterFactory, register_maybe_converter
from maybe_json import ConvertOptions, ConvertError, from_data, into_data, from_jsons, into_json
from maybe_json.convert import make_converter, registered_converter_handlers
from maybe_json.converters import ScalarConverter
from maybe_json.errors import ErrorNode, ProductErrorNode, WrongTypeError


OPTS = ConvertOptions(converters=(MaybeConverterFactory(),), rename='snake', ensure_ascii=False)


@dataclasses.dataclass
class NormalObject:
    name: str
    age: int
    height: float
    sad: bool


@dataclasses.dataclass
class NullField:
    name: Maybe[str]
    age: Maybe[int]


@dataclasses.dataclass
class NormalObjectNestedMaybe:
    field: Maybe[NormalObject]


@dataclasses.dataclass
class NormalObjectNestedListMaybe:
    field: t.List[Maybe[NormalObject]]


@dataclasses.dataclass
class NormalObjectNestedMaybeListMaybe:
    field: Maybe[t.List[Maybe[NormalObject]]]


@dataclasses.dataclass
class WithDefault:
    name: str
    nickname: Maybe[str] = NOTHING


@dataclasses.dataclass
class CamelFields:
    first_name: Maybe[str]
    home_address: Maybe[str]


class Mood(enum.Enum):
    HAPPY = 'happy'
    SAD = 'sad'


@dataclasses.dataclass
class AnyHolder:
    payload: Maybe[t.Any]
    extra: t.Dict[str, t.Any]


@dataclasses.dataclass
class TreeNode:
    value: int
    child: Maybe[TreeNode] = NOTHING


JOAO = NormalObject("João", 20, 2.3, False)
JOAO_JSON = '{"name":"João","age":20,"height":2.3,"sad":false}'
MARTINS = NormalObject("Martins", 10, 1.2, True)
MARTINS_JSON = '{"name":"Martins","age":10,"height":1.2,"sad":true}'


@pytest.mark.parametrize(('ty', 'result'), [
    (Maybe[int], True),
    (Maybe[str], True),
    (Maybe[NormalObject], True),
    (Maybe[t.List[Maybe[int]]], True),
    (Maybe, False),
    (int, False),
    (t.List[int], False),
    (t.List[Maybe[int]], False),
    (t.Optional[int], False),
])
def test_can_convert(ty: t.Any, result: bool):
    assert MaybeConverterFactory().can_convert(ty) == result


def test_create_converter():
    factory = MaybeConverterFactory()
    conv = factory.create_converter(Maybe[int], OPTS)
    assert conv == MaybeConverter(int, options=OPTS)
    assert conv.inner == ScalarConverter(int, int, 'an int', 'ints', rejected=(bool,))

    nested = factory.create_converter(Maybe[t.List[Maybe[int]]], OPTS)
    assert nested.inner_ty == t.List[Maybe[int]]


@pytest.mark.parametrize('ty', [int, t.List[int], Maybe, t.Optional[int]])
def test_create_converter_raises(ty: t.Any):
    with pytest.raises(TypeError, match=re.escape(f"MaybeConverterFactory can't convert type '{ty}'")):
        MaybeConverterFactory().create_converter(ty, OPTS)


def test_make_converter_dispatch():
    assert make_converter(Maybe[int], OPTS) == MaybeConverter(int, options=OPTS)
    # Maybe is only handled through the factory
    with pytest.raises(TypeError, match="No converter for type"):
        make_converter(Maybe[int])
    with pytest.raises(TypeError, match="No converter for type"):
        make_converter(Maybe, OPTS)


def test_factory_equality():
    assert MaybeConverterFactory() == MaybeConverterFactory()
    assert hash(MaybeConverterFactory()) == hash(MaybeConverterFactory())
    assert OPTS == ConvertOptions(converters=(MaybeConverterFactory(),), rename='snake', ensure_ascii=False)


@pytest.mark.parametrize(('ty', 'plural', 'expected'), [
    (Maybe[int], False, 'an int or null'),
    (Maybe[int], True, 'ints or nulls'),
    (Maybe[t.List[str]], False, 'sequence of strings or null'),
    (Maybe[NormalObject], False, 'struct NormalObject or null'),
])
def test_maybe_expected(ty: t.Any, plural: bool, expected: str):
    assert make_converter(ty, OPTS).expected(plural) == expected


@pytest.mark.parametrize(('s', 'ty', 'result'), [
    ('5', Maybe[int], Maybe.some(5)),
    ('-12', Maybe[int], Maybe.some(-12)),
    ('2.5', Maybe[float], Maybe.some(2.5)),
    ('false', Maybe[bool], Maybe.some(False)),
    ('true', Maybe[bool], Maybe.some(True)),
    ('"João"', Maybe[str], Maybe.some('João')),
    ('""', Maybe[str], Maybe.some('')),
    ('null', Maybe[int], NOTHING),
    ('null', Maybe[float], NOTHING),
    ('null', Maybe[bool], NOTHING),
    ('null', Maybe[str], NOTHING),
    ('[1,null,3]', t.List[Maybe[int]], [Maybe.some(1), NOTHING, Maybe.some(3)]),
    ('{"a":null,"b":2}', t.Dict[str, Maybe[int]], {'a': NOTHING, 'b': Maybe.some(2)}),
])
def test_primitive_roundtrip(s: str, ty: t.Any, result: t.Any):
    val = from_jsons(s, ty, options=OPTS)
    assert val == result
    assert into_json(val, ty, options=OPTS) == s


def test_read_null():
    result = from_jsons('null', Maybe[int], options=OPTS)
    assert result == NOTHING
    assert not result.has_value


def test_write_nothing():
    assert into_json(NOTHING, options=OPTS) == 'null'
    assert into_json(Maybe[int](), Maybe[int], options=OPTS) == 'null'


def test_read_int_as_float():
    result = from_jsons('7', Maybe[float], options=OPTS)
    assert result == Maybe.some(7.0)
    assert type(result.value) is float


def test_nested_empty_maybe():
    # an inner empty value can't be told apart from an outer one
    assert into_json(Maybe.some(NOTHING), Maybe[Maybe[int]], options=OPTS) == 'null'
    assert from_jsons('null', Maybe[Maybe[int]], options=OPTS) == NOTHING
    assert from_jsons('5', Maybe[Maybe[int]], options=OPTS) == Maybe.some(Maybe.some(5))


@pytest.mark.parametrize(('obj', 's'), [
    (JOAO, JOAO_JSON),
    (to_maybe(JOAO), JOAO_JSON),
    (to_maybe(NormalObjectNestedMaybe(to_maybe(MARTINS))), '{"field":' + MARTINS_JSON + '}'),
    (to_maybe(NormalObjectNestedMaybe(NOTHING)), '{"field":null}'),
    (to_maybe(NullField(NOTHING, NOTHING)), '{"name":null,"age":null}'),
    (NormalObjectNestedMaybeListMaybe(NOTHING), '{"field":null}'),
    (NormalObjectNestedListMaybe([NOTHING, to_maybe(MARTINS)]), '{"field":[null,' + MARTINS_JSON + ']}'),
    (NormalObjectNestedMaybeListMaybe(to_maybe([to_maybe(JOAO), NOTHING])), '{"field":[' + JOAO_JSON + ',null]}'),
])
def test_record_roundtrip(obj: t.Any, s: str):
    assert into_json(obj, options=OPTS) == s

    ty = type(obj.value) if isinstance(obj, Maybe) else type(obj)
    expected = obj.value if isinstance(obj, Maybe) else obj
    assert from_jsons(s, ty, options=OPTS) == expected


def test_record_as_maybe():
    assert from_jsons(JOAO_JSON, Maybe[NormalObject], options=OPTS) == to_maybe(JOAO)
    assert from_jsons('null', Maybe[NormalObject], options=OPTS) == NOTHING


def test_ensure_ascii():
    opts = ConvertOptions(converters=(MaybeConverterFactory(),))
    assert into_json(Maybe.some('João'), options=opts) == '"Jo\\u00e3o"'
    assert into_json(Maybe.some('João'), options=OPTS) == '"João"'


def test_naming_policy_inside_maybe():
    opts = ConvertOptions(converters=(MaybeConverterFactory(),), rename='camel')
    obj = CamelFields(to_maybe('Ana'), NOTHING)
    s = '{"firstName":"Ana","homeAddress":null}'
    assert into_json(obj, options=opts) == s
    assert into_json(to_maybe(obj), options=opts) == s
    assert from_jsons(s, Maybe[CamelFields], options=opts) == to_maybe(obj)


def test_missing_maybe_field():
    with pytest.raises(ConvertError) as exc_info:
        from_jsons('{}', NullField, options=OPTS)
    assert exc_info.value.tree == ProductErrorNode('struct NullField', {}, {}, {'name', 'age'})

    assert from_jsons('{"name":"a"}', WithDefault, options=OPTS) == WithDefault('a', NOTHING)
    assert from_jsons('{"name":"a","nickname":"b"}', WithDefault, options=OPTS) == WithDefault('a', to_maybe('b'))


def test_extra_field():
    with pytest.raises(ConvertError) as exc_info:
        from_jsons('{"name":"a","other":null}', WithDefault, options=OPTS)
    assert exc_info.value.tree == ProductErrorNode('struct WithDefault', {}, {'name': 'a', 'other': None}, set(), {'other'})


@pytest.mark.parametrize(('ty', 'val', 'result'), [
    (Maybe[int], 's', WrongTypeError('an int', 's')),
    (Maybe[int], True, WrongTypeError('an int', True)),
    (Maybe[str], 5, WrongTypeError('a string', 5)),
    (Maybe[bool], 0, WrongTypeError('a bool', 0)),
    (t.List[Maybe[int]], [1, None, 's'],
     ProductErrorNode('sequence of ints or nulls', {2: WrongTypeError('an int', 's')}, [1, None, 's'])),
    (NormalObjectNestedMaybe, {'field': {'name': 5, 'age': 10, 'height': 1.2, 'sad': True}},
     ProductErrorNode('struct NormalObjectNestedMaybe', {
         'field': ProductErrorNode('struct NormalObject', {
             'name': WrongTypeError('a string', 5),
         }, {'name': 5, 'age': 10, 'height': 1.2, 'sad': True}),
     }, {'field': {'name': 5, 'age': 10, 'height': 1.2, 'sad': True}})),
])
def test_error_propagation(ty: t.Any, val: t.Any, result: ErrorNode):
    with pytest.raises(ConvertError) as exc_info:
        from_data(val, ty, options=OPTS)
    assert exc_info.value.tree == result


def test_error_matches_inner():
    # errors are exactly those of the inner type
    for val in ('s', 2.5, [1], {'a': 1}):
        with pytest.raises(ConvertError) as maybe_info:
            from_data(val, Maybe[int], options=OPTS)
        with pytest.raises(ConvertError) as inner_info:
            from_data(val, int, options=OPTS)
        assert maybe_info.value.tree == inner_info.value.tree


def test_error_print():
    with pytest.raises(ConvertError) as exc_info:
        from_jsons('"s"', Maybe[int], options=OPTS)
    assert str(exc_info.value) == "Expected an int, instead got `'s'` of type `str`"


def test_into_data_wrong_type():
    conv = make_converter(Maybe[int], OPTS)
    with pytest.raises(TypeError, match="Expected a 'Maybe', instead got 'int'"):
        conv.into_data(5)


def test_convert_already_wrapped():
    conv = make_converter(Maybe[int], OPTS)
    assert conv.convert(Maybe.some(5)) == Maybe.some(5)
    assert conv.convert(NOTHING) == NOTHING
    assert conv.collect_errors(Maybe.some(5)) is None
    assert conv.collect_errors(None) is None


def test_custom_handler():
    assert from_jsons('5', Maybe[int], custom=MaybeConverterFactory()) == Maybe.some(5)
    assert into_data(Maybe.some([1, 2]), custom=[MaybeConverterFactory()]) == [1, 2]
    assert into_data(NOTHING, custom=MaybeConverterFactory()) is None


def test_recursive_dataclass():
    s = '{"value":1,"child":{"value":2,"child":null}}'
    tree = TreeNode(1, to_maybe(TreeNode(2)))
    assert from_jsons(s, TreeNode, options=OPTS) == tree
    assert into_json(tree, options=OPTS) == s
    assert from_jsons('{"value":3}', TreeNode, options=OPTS) == TreeNode(3)


@pytest.fixture
def global_handlers(monkeypatch: pytest.MonkeyPatch):
    convert_module = importlib.import_module('maybe_json.convert')
    monkeypatch.setattr(convert_module, '_GLOBAL_HANDLERS', [])
    make_converter.cache_clear()
    yield
    make_converter.cache_clear()


def test_register_maybe_converter(global_handlers: None):
    with pytest.raises(TypeError, match="No converter for type"):
        from_jsons('5', Maybe[int])

    register_maybe_converter()
    register_maybe_converter()
    assert registered_converter_handlers() == (MaybeConverterFactory(),)

    assert from_jsons('5', Maybe[int]) == Maybe.some(5)
    assert from_jsons('null', Maybe[int]) == NOTHING
    assert into_json(Maybe.some(5)) == '5'
    assert into_json(NullField(to_maybe('a'), NOTHING)) == '{"name":"a","age":null}'


@pytest.mark.parametrize(('s', 'ty', 'result'), [
    ('"sad"', Maybe[Mood], Maybe.some(Mood.SAD)),
    ('null', Maybe[Mood], NOTHING),
    ('"b"', Maybe[t.Literal['a', 'b']], Maybe.some('b')),
    ('null', Maybe[t.Literal['a', 'b']], NOTHING),
    ('[null,"happy"]', t.List[Maybe[Mood]], [NOTHING, Maybe.some(Mood.HAPPY)]),
])
def test_enum_literal_roundtrip(s: str, ty: t.Any, result: t.Any):
    val = from_jsons(s, ty, options=OPTS)
    assert val == result
    assert into_json(val, ty, options=OPTS) == s


def test_enum_error():
    with pytest.raises(ConvertError) as exc_info:
        from_jsons('"angry"', Maybe[Mood], options=OPTS)
    assert exc_info.value.tree == WrongTypeError("member of enum 'Mood' ('happy' or 'sad')", 'angry')


@pytest.mark.parametrize(('obj', 'ty', 's'), [
    ([NOTHING, to_maybe(1)], None, '[null,1]'),
    ({'k': NOTHING, 'v': to_maybe('a')}, None, '{"k":null,"v":"a"}'),
    (to_maybe([to_maybe(2), NOTHING]), Maybe[t.Any], '[2,null]'),
    ((to_maybe(1),), t.Tuple[t.Any], '[1]'),
    (to_maybe(3), t.Union[int, str], '3'),
])
def test_maybe_in_untyped_positions(obj: t.Any, ty: t.Any, s: str):
    assert into_json(obj, ty, options=OPTS) == s


def test_options_in_untyped_fields():
    opts = ConvertOptions(converters=(MaybeConverterFactory(),), rename='camel')
    obj = AnyHolder(to_maybe(CamelFields(to_maybe('a'), NOTHING)), {'k': NOTHING})
    assert into_json(obj, options=opts) == \
        '{"payload":{"firstName":"a","homeAddress":null},"extra":{"k":null}}'


def test_union_order_not_shared():
    # union variants are tried left to right, for each order separately
    assert type(from_data(5, t.Union[float, int], options=OPTS)) is float
    result = from_data(5, Maybe[t.Union[int, float]], options=OPTS)
    assert result == Maybe.some(5)
    assert type(result.value) is int
    assert type(from_data(5, t.Union[float, int], options=OPTS)) is float
