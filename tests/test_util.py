import typing as t

import pytest

from maybe_json.util import flatten_union_args, pluralize, list_phrase, key_cache
from maybe_json.naming import rename_field, split_field_name


T = t.TypeVar('T')


@pytest.mark.parametrize(('input', 'output'), [
    ((int, float, str), (int, float, str)),
    ((t.Union[int, float], t.Union[float, str], T), (int, float, float, str, T)),
])
def test_flatten_union_args(input, output):
    assert tuple(flatten_union_args(input)) == output


@pytest.mark.parametrize(('input', 'conj', 'output'), [
    (('word',), None, 'word'),
    (('a', 'b'), 'xor', 'a xor b'),
    (('foo', 'bar', 'baz'), None, 'foo, bar, or baz'),
    (('foo', 'bar', 'baz'), 'and', 'foo, bar, and baz'),
])
def test_list_phrase(input, conj, output):
    if conj is not None:
        assert list_phrase(input, conj) == output
    else:
        assert list_phrase(input) == output


@pytest.mark.parametrize(('word', 'plural', 'article', 'output'), [
    ('int', True, None, 'ints'),
    ('int', False, None, 'int'),
    ('null value', False, 'a', 'a null value'),
    ('null value', True, 'a', 'null values'),
    ('value', 1, None, 'value'),
    ('value', 2, None, 'values'),
])
def test_pluralize(word, plural, article, output):
    assert pluralize(word, plural, article=article) == output


def test_key_cache():
    calls = []

    @key_cache(lambda x: None if isinstance(x, list) else x)
    def f(x):
        calls.append(x)
        return [x]

    assert f(1) is f(1)
    assert calls == [1]
    # uncacheable key
    assert f([2]) == f([2]) == [[2]]
    assert calls == [1, [2], [2]]

    f.cache_clear()
    f(1)
    assert calls == [1, [2], [2], 1]


@pytest.mark.parametrize(('name', 'output'), [
    ('field', ('field',)),
    ('field_name', ('field', 'name')),
    ('fieldName', ('field', 'Name')),
    ('HTTPServerName', ('HTTP', 'Server', 'Name')),
    ('kebab-case-name', ('kebab', 'case', 'name')),
    ('SCREAMING_NAME', ('SCREAMING', 'NAME')),
])
def test_split_field_name(name, output):
    assert split_field_name(name) == output


@pytest.mark.parametrize(('name', 'style', 'output'), [
    ('home_address', None, 'home_address'),
    ('home_address', 'snake', 'home_address'),
    ('home_address', 'camel', 'homeAddress'),
    ('home_address', 'pascal', 'HomeAddress'),
    ('home_address', 'kebab', 'home-address'),
    ('home_address', 'scream', 'HOME_ADDRESS'),
    ('name', 'camel', 'name'),
    ('homeAddress', 'snake', 'home_address'),
    ('HTTPServer', 'snake', 'http_server'),
])
def test_rename_field(name, style, output):
    assert rename_field(name, style) == output


def test_rename_field_raises():
    with pytest.raises(ValueError, match="Unknown rename style 'upper'"):
        rename_field('name', 'upper')  # type: ignore
    with pytest.raises(ValueError, match="Unable to interpret field '_private'"):
        rename_field('_private', 'camel')
