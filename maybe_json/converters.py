"""
Converter types, which do the recursive work of conversion in both directions.
"""

# pyright: reportUnknownMemberType=none

import abc
import dataclasses
import enum
import traceback
import typing as t
from typing_extensions import TypeGuard

from .convert import DataType, IntoConverter, ConvertOptions, make_converter, into_data, _DataType
from .naming import rename_field
from .util import list_phrase, pluralize, flatten_union_args
from .errors import ConvertError, ParseInterrupt, WrongTypeError
from .errors import ErrorNode, SumErrorNode, ProductErrorNode


T_co = t.TypeVar('T_co', covariant=True)
T = t.TypeVar('T')
_ProductErrorChildren = t.Dict[t.Union[int, str], ErrorNode]


def data_is_sequence(val: t.Any) -> TypeGuard[t.Sequence[t.Any]]:
    """Return whether `val` is a sequence-like data type."""
    return isinstance(val, t.Sequence) and not isinstance(val, (str, bytes, bytearray))


def data_is_mapping(val: t.Any) -> TypeGuard[t.Mapping[t.Any, t.Any]]:
    """Return whether `val` is a mapping-like data type."""
    return isinstance(val, t.Mapping)


def _traceback(e: BaseException) -> traceback.TracebackException:
    return traceback.TracebackException(type(e), e, e.__traceback__)


class Converter(abc.ABC, t.Generic[T_co]):
    """
    Base class for a converter to a given type ``T_co``.

    Converting is split into a fast path (``try_convert``), which bails out
    with ``ParseInterrupt``, and a slow path (``collect_errors``), which is only
    run after a failure to build a detailed error tree.
    """

    def convert(self, val: t.Any) -> T_co:
        """Convert ``val`` to ``T_co``. Raises a ``ConvertError`` on failure."""
        try:
            return self.try_convert(val)
        except ParseInterrupt:
            pass
        node = self.collect_errors(val)
        if node is None:
            raise RuntimeError("convert() raised but ``collect_errors`` returned ``None``."
                               " This is a bug of the ``Converter`` implementation.")
        raise ConvertError(node)

    def into_data(self, val: t.Any) -> DataType:
        """
        Convert ``val`` into a data interchange format.

        ``val`` *should* be of a type returned by this converter.
        """
        return into_data(val)

    @abc.abstractmethod
    def expected(self, plural: bool = False) -> str:
        """
        Return a description of the value(s) expected.

        Parameters:
          plural: Whether to pluralize the description
        """
        ...

    @abc.abstractmethod
    def try_convert(self, val: t.Any) -> T_co:
        """
        Attempt to convert ``val`` to ``T``.
        Should raise ``ParseInterrupt`` (and only ``ParseInterrupt``)
        when a given parsing path reaches a dead end.
        """
        ...

    @abc.abstractmethod
    def collect_errors(self, val: t.Any) -> t.Optional[ErrorNode]:
        """
        Return an error tree caused by converting ``val`` to ``T``.
        ``collect_errors`` should return ``None`` iff ``convert`` doesn't raise.
        """
        ...


@dataclasses.dataclass
class AnyConverter(Converter[t.Any]):
    """Converter for ``t.Any``. Passes values through untouched."""

    options: ConvertOptions = ConvertOptions()
    """Options to write values with, inferring their types"""

    def into_data(self, val: t.Any) -> DataType:
        return into_data(val, options=self.options)

    def try_convert(self, val: t.Any) -> t.Any:
        return val

    def expected(self, plural: bool = False) -> str:
        return pluralize("any value", plural)

    def collect_errors(self, val: t.Any) -> None:
        return None


@dataclasses.dataclass
class ScalarConverter(Converter[T]):
    """
    Converter for a scalar type, constructible from any of a list of allowed types.
    """

    ty: t.Type[T]
    """Type to convert into."""
    allowed: t.Union[type, t.Tuple[type, ...]]
    """Type or types accepted as input."""
    expect: t.Optional[str] = None
    """Singular form of expected value."""
    expect_plural: t.Optional[str] = None
    """Plural form of expected value."""
    rejected: t.Tuple[type, ...] = ()
    """Types refused even though they are subclasses of ``allowed``"""

    def __post_init__(self):
        self.expect = self.expect or self.ty.__name__
        self.expect_plural = self.expect_plural or self.expect

    def _accepts(self, val: t.Any) -> bool:
        return isinstance(val, self.allowed) and not isinstance(val, self.rejected)

    def into_data(self, val: t.Any) -> DataType:
        return val

    def expected(self, plural: bool = False) -> str:
        return t.cast(str, self.expect_plural if plural else self.expect)

    def try_convert(self, val: t.Any) -> T:
        if not self._accepts(val):
            raise ParseInterrupt()
        try:
            return self.ty(val)  # type: ignore
        except Exception:
            raise ParseInterrupt() from None

    def collect_errors(self, val: t.Any) -> t.Optional[WrongTypeError]:
        if not self._accepts(val):
            return WrongTypeError(self.expected(), val)
        try:
            self.ty(val)  # type: ignore
        except Exception as e:
            return WrongTypeError(self.expected(), val, _traceback(e))
        return None


@dataclasses.dataclass
class NoneConverter(Converter[None]):
    """Converter which accepts only ``None``."""

    def try_convert(self, val: t.Any) -> None:
        if val is None:
            return val
        raise ParseInterrupt()

    def into_data(self, val: t.Any) -> DataType:
        return None

    def expected(self, plural: bool = False) -> str:
        return pluralize("null value", plural, article='a')

    def collect_errors(self, val: t.Any) -> t.Optional[WrongTypeError]:
        if val is None:
            return None
        return WrongTypeError(self.expected(), val)


@dataclasses.dataclass
class LiteralConverter(Converter[T_co]):
    """Converter which accepts any of a list of literal values."""

    vals: t.Sequence[T_co]

    def try_convert(self, val: t.Any) -> T_co:
        if val in self.vals:
            return val
        raise ParseInterrupt()

    def expected(self, plural: bool = False) -> str:
        lits = list_phrase(tuple(map(repr, self.vals)))
        return f"({lits})" if plural else lits

    def collect_errors(self, val: t.Any) -> t.Optional[WrongTypeError]:
        if val in self.vals:
            return None
        return WrongTypeError(self.expected(), val)


@dataclasses.dataclass(init=False)
class UnionConverter(Converter[t.Any]):
    """
    Converter for an untagged union of types, tried left to right.
    """
    types: t.Tuple[IntoConverter, ...]
    converters: t.Tuple[Converter[t.Any], ...]
    options: ConvertOptions

    def __init__(self, types: t.Sequence[IntoConverter], *,
                 options: ConvertOptions = ConvertOptions()):
        self.options = options
        self.types = tuple(flatten_union_args(types))
        self.converters = tuple(make_converter(ty, options) for ty in self.types)

    def expected(self, plural: bool = False) -> str:
        return list_phrase(tuple(conv.expected(plural) for conv in self.converters))

    def into_data(self, val: t.Any) -> DataType:
        # no type information on which variant ``val`` is, so take the first
        # variant which accepts it (``try_convert`` is idempotent)
        for conv in self.converters:
            try:
                conv.try_convert(val)
            except ParseInterrupt:
                continue
            return conv.into_data(val)
        return into_data(val, options=self.options)

    def try_convert(self, val: t.Any) -> t.Any:
        for conv in self.converters:
            try:
                return conv.try_convert(val)
            except ParseInterrupt:
                pass
        raise ParseInterrupt()

    def collect_errors(self, val: t.Any) -> t.Optional[ErrorNode]:
        failed: t.List[ErrorNode] = []
        for conv in self.converters:
            node = conv.collect_errors(val)
            if node is None:
                return None
            failed.append(node)
        return SumErrorNode(failed)


@dataclasses.dataclass(init=False)
class TupleConverter(t.Generic[T], Converter[T]):
    """Converter for a fixed-length, heterogeneous tuple."""
    ty: t.Type[T]
    converters: t.Tuple[Converter[t.Any], ...]

    def __init__(self, ty: t.Type[T], types: t.Sequence[IntoConverter], *,
                 options: ConvertOptions = ConvertOptions()):
        self.ty = ty
        self.converters = tuple(make_converter(ty, options) for ty in types)

    def into_data(self, val: t.Any) -> DataType:
        return [conv.into_data(v) for (conv, v) in zip(self.converters, val)]

    def expected(self, plural: bool = False) -> str:
        return f"{pluralize('tuple', plural)} of length {len(self.converters)}"

    def try_convert(self, val: t.Any) -> T:
        if not data_is_sequence(val) or len(val) != len(self.converters):
            raise ParseInterrupt()
        return self.ty(conv.try_convert(v) for (conv, v) in zip(self.converters, val))  # type: ignore

    def collect_errors(self, val: t.Any) -> t.Union[None, ProductErrorNode, WrongTypeError]:
        if not data_is_sequence(val) or len(val) != len(self.converters):
            return WrongTypeError(self.expected(), val)
        children: _ProductErrorChildren = {}
        for (i, (conv, v)) in enumerate(zip(self.converters, val)):
            if (node := conv.collect_errors(v)) is not None:
                children[i] = node
        if children:
            return ProductErrorNode(self.expected(), children, val)
        return None


@dataclasses.dataclass(init=False)
class SequenceConverter(t.Generic[T], Converter[t.Sequence[T]]):
    """Converter for a homogeneous sequence."""
    ty: type
    """Type to convert into. Must be constructible from an iterator."""
    v_conv: Converter[T]
    """Converter for elements"""

    def __init__(self, ty: type, v: IntoConverter = t.Any, *,
                 options: ConvertOptions = ConvertOptions()):
        self.ty = ty
        self.v_conv = make_converter(v, options)

    def into_data(self, val: t.Any) -> DataType:
        return [self.v_conv.into_data(v) for v in val]

    def expected(self, plural: bool = False) -> str:
        return f"{pluralize('sequence', plural)} of {self.v_conv.expected(True)}"

    def try_convert(self, val: t.Any) -> t.Sequence[T]:
        if not data_is_sequence(val):
            raise ParseInterrupt()
        return self.ty(self.v_conv.try_convert(v) for v in val)

    def collect_errors(self, val: t.Any) -> t.Union[None, WrongTypeError, ProductErrorNode]:
        if not data_is_sequence(val):
            return WrongTypeError(self.expected(), val)
        children: _ProductErrorChildren = {}
        for (i, v) in enumerate(val):
            if (node := self.v_conv.collect_errors(v)) is not None:
                children[i] = node
        if children:
            return ProductErrorNode(self.expected(), children, val)
        return None


@dataclasses.dataclass(init=False)
class DictConverter(Converter[t.Mapping[t.Any, t.Any]]):
    """Converter for a homogeneous mapping."""
    ty: type
    k_conv: Converter[t.Any]
    v_conv: Converter[t.Any]

    def __init__(self, ty: type, k: IntoConverter = t.Any, v: IntoConverter = t.Any, *,
                 options: ConvertOptions = ConvertOptions()):
        self.ty = ty
        self.k_conv = make_converter(k, options)
        self.v_conv = make_converter(v, options)

    def into_data(self, val: t.Any) -> DataType:
        return {
            self.k_conv.into_data(k): self.v_conv.into_data(v)
            for (k, v) in t.cast(t.Mapping[t.Any, t.Any], val).items()
        }

    def expected(self, plural: bool = False) -> str:
        return f"{pluralize('mapping', plural)} of {self.k_conv.expected(True)} => {self.v_conv.expected(True)}"

    def try_convert(self, val: t.Any) -> t.Mapping[t.Any, t.Any]:
        if not data_is_mapping(val):
            raise ParseInterrupt()
        return self.ty(
            (self.k_conv.try_convert(k), self.v_conv.try_convert(v))
            for (k, v) in val.items()
        )

    def collect_errors(self, val: t.Any) -> t.Union[None, WrongTypeError, ProductErrorNode]:
        if not data_is_mapping(val):
            return WrongTypeError(self.expected(), val)
        children: _ProductErrorChildren = {}
        for (k, v) in val.items():
            if (node := self.k_conv.collect_errors(k)) is not None:
                children[str(k)] = node
            elif (node := self.v_conv.collect_errors(v)) is not None:
                children[str(k)] = node
        if children:
            return ProductErrorNode(self.expected(), children, val)
        return None


class DataclassConverter(Converter[T]):
    """
    Converter for a dataclass, stored as a mapping of field names to values.

    Field names are passed through the naming policy in ``options.rename``,
    both when reading and writing. Fields with defaults may be omitted on input.
    """

    def __init__(self, cls: t.Type[T], *, options: ConvertOptions = ConvertOptions()):
        self.cls = cls
        self.name = cls.__name__
        hints = t.get_type_hints(cls)

        self.fields: t.Tuple[dataclasses.Field, ...] = tuple(  # type: ignore
            f for f in dataclasses.fields(cls) if f.init  # type: ignore
        )
        self.out_names: t.Dict[str, str] = {
            f.name: rename_field(f.name, options.rename) for f in self.fields
        }
        self.field_map: t.Dict[str, str] = {v: k for (k, v) in self.out_names.items()}
        self.field_converters: t.Dict[str, Converter[t.Any]] = {
            f.name: make_converter(hints[f.name], options) for f in self.fields
        }
        self.required: t.FrozenSet[str] = frozenset(
            f.name for f in self.fields
            if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING
        )

    def __eq__(self, other: t.Any) -> bool:
        if self.__class__ != other.__class__:
            return False
        return (self.cls, self.out_names) == (other.cls, other.out_names)

    def __repr__(self) -> str:
        return f"DataclassConverter({self.cls.__qualname__})"

    def into_data(self, val: t.Any) -> DataType:
        if not isinstance(val, self.cls):
            raise TypeError(f"Expected an instance of '{self.name}', instead got '{type(val).__name__}'")
        return {
            self.out_names[f.name]: self.field_converters[f.name].into_data(getattr(val, f.name))
            for f in self.fields
        }

    def expected(self, plural: bool = False) -> str:
        return f"{pluralize('struct', plural)} {self.name}"

    def try_convert(self, val: t.Any) -> T:
        if isinstance(val, self.cls):
            return val
        if not data_is_mapping(val):
            raise ParseInterrupt()

        values: t.Dict[str, t.Any] = {}
        for (k, v) in val.items():
            try:
                name = self.field_map[k]
            except (KeyError, TypeError):
                raise ParseInterrupt() from None  # unknown field
            values[name] = self.field_converters[name].try_convert(v)

        if not self.required.issubset(values.keys()):
            raise ParseInterrupt()  # missing field
        try:
            return self.cls(**values)
        except Exception:  # error in __post_init__
            raise ParseInterrupt() from None

    def collect_errors(self, val: t.Any) -> t.Union[WrongTypeError, ProductErrorNode, None]:
        if isinstance(val, self.cls):
            return None
        if not data_is_mapping(val):
            return WrongTypeError(self.expected(), val)

        values: t.Dict[str, t.Any] = {}
        children: _ProductErrorChildren = {}
        extra: t.Set[str] = set()
        seen: t.Set[str] = set()
        for (k, v) in val.items():
            name = self.field_map.get(k) if isinstance(k, str) else None
            if name is None:
                extra.add(str(k))
                continue
            seen.add(name)
            # need the converted value to check construction below
            try:
                values[name] = self.field_converters[name].convert(v)
            except ConvertError as e:
                children[k] = e.tree

        missing = {self.out_names[name] for name in self.required - seen}
        if children or missing or extra:
            return ProductErrorNode(self.expected(), children, val, missing, extra)
        try:
            self.cls(**values)
        except Exception as e:
            return WrongTypeError(self.expected(), val, _traceback(e))
        return None


class EnumConverter(Converter[enum.Enum]):
    """Converter for an enum, stored as the value of its member."""

    def __init__(self, ty: t.Type[enum.Enum], *, options: ConvertOptions = ConvertOptions()):
        if issubclass(ty, enum.Flag):
            raise TypeError("Flag enums are not currently supported")
        self.ty: t.Type[enum.Enum] = ty
        self.options: ConvertOptions = options

        try:
            self.val_map = {member.value: member for member in ty.__members__.values()}
        except TypeError:
            raise TypeError("All enum members must be hashable") from None

        self.member_vals = tuple(self.val_map.keys())
        if not all(isinstance(val, _DataType) for val in self.member_vals):
            raise TypeError("All enum members must be data interchange types")

        # distinct member types, in order
        self.inner_ty: IntoConverter = t.Union[tuple(dict.fromkeys(map(type, self.member_vals)))]  # type: ignore
        self.inner_conv: Converter[t.Any] = make_converter(self.inner_ty, options)

    def __eq__(self, other: t.Any) -> bool:
        return self.__class__ == other.__class__ and self.ty == other.ty

    def __repr__(self) -> str:
        return f"EnumConverter({self.ty.__qualname__})"

    def into_data(self, val: t.Any) -> DataType:
        if isinstance(val, self.ty):
            return val.value
        return into_data(val, options=self.options)

    def expected(self, plural: bool = False) -> str:
        vs = list_phrase(tuple(map(repr, self.member_vals)))
        return f"{pluralize('member', plural)} of enum '{self.ty.__name__}' ({vs})"

    def try_convert(self, val: t.Any) -> enum.Enum:
        if isinstance(val, self.ty):
            return val
        val = self.inner_conv.try_convert(val)
        try:
            return self.val_map[val]
        except (KeyError, TypeError):
            raise ParseInterrupt() from None

    def collect_errors(self, val: t.Any) -> t.Optional[ErrorNode]:
        if isinstance(val, self.ty):
            return None
        try:
            conv_val = self.inner_conv.try_convert(val)
        except ParseInterrupt:
            return self.inner_conv.collect_errors(val)
        if conv_val in self.val_map:
            return None
        return WrongTypeError(self.expected(), val)


_BASIC_CONVERTERS: t.Dict[type, Converter[t.Any]] = {
    bool: ScalarConverter(bool, bool, 'a bool', 'bools'),
    int: ScalarConverter(int, int, 'an int', 'ints', rejected=(bool,)),
    float: ScalarConverter(float, (int, float), 'a float', 'floats', rejected=(bool,)),
    str: ScalarConverter(str, str, 'a string', 'strings'),
    type(None): NoneConverter(),
}
"""Built-in scalar converters"""


__all__ = [
    'Converter', 'AnyConverter', 'ScalarConverter', 'NoneConverter', 'LiteralConverter',
    'UnionConverter', 'TupleConverter', 'SequenceConverter', 'DictConverter',
    'DataclassConverter', 'EnumConverter',
]
