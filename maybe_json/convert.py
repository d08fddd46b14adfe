"""
High-level interface to `maybe_json`: options, converter dispatch, and conversion to and from data.
"""

# pyright: reportUnknownMemberType=none

from __future__ import annotations

import collections.abc
import dataclasses
import enum
import inspect
import logging
import typing as t
import warnings

from typing_extensions import Self, TypeAlias

from .errors import ConvertError
from .naming import RenameStyle
from .util import key_cache

if t.TYPE_CHECKING:
    from .converters import Converter


logger = logging.getLogger(__name__)

T = t.TypeVar('T')


DataType: TypeAlias = t.Union[str, int, bool, float, None, t.Mapping[str, 'DataType'], t.Sequence['DataType']]
"""Data interchange type, as produced by a JSON or YAML parser. [`into_data`][maybe_json.convert.into_data] converts to this."""

_ScalarType = (str, int, bool, float, type(None))
"""Scalar [`DataType`][maybe_json.convert.DataType]s for use in [`isinstance`][isinstance] checks."""
_DataType = (*_ScalarType, t.Mapping, t.Sequence)
"""[`DataType`][maybe_json.convert.DataType] for use in [`isinstance`][isinstance] checks."""

IntoConverter: TypeAlias = t.Union[t.Type[t.Any], t.Any]
"""Inputs supported by [`make_converter`][maybe_json.convert.make_converter]: types and type expressions."""


class ConverterHandler(t.Protocol):
    """
    Function which may be called to create a converter.

    Receives the base type, a tuple of its type arguments, and the keyword
    argument `options`, which must be passed through to any nested calls to
    `make_converter`.

    May return `NotImplemented`, in which case handling passes on to other handlers
    (and finally to the built-in converters).
    """

    def __call__(self, ty: type, args: t.Tuple[t.Any, ...], /, *,
                 options: ConvertOptions) -> Converter[t.Any]:
        ...


@t.runtime_checkable
class InferType(t.Protocol):
    """
    Protocol for values which know their own (parameterized) type.

    Used by [`into_data`][maybe_json.convert.into_data] when no type is given,
    for generic containers whose runtime class alone isn't enough.
    """

    def _infer_type(self) -> t.Any:
        ...


IntoConverterHandlers: TypeAlias = t.Union[ConverterHandler, t.Sequence[ConverterHandler], t.Mapping[type, 'Converter[t.Any]']]


@dataclasses.dataclass(frozen=True)
class ConvertOptions:
    """
    Options for a conversion.

    Options are passed down through every nested converter, and are part of
    the converter cache key, so they must stay hashable.
    """

    converters: t.Tuple[ConverterHandler, ...] = ()
    """Converter handlers consulted (in order) before the built-in converters."""
    rename: t.Optional[RenameStyle] = None
    """Naming policy applied to dataclass fields."""
    ensure_ascii: bool = True
    """Whether to escape non-ASCII characters when writing JSON."""

    @classmethod
    def make(cls, custom: t.Optional[IntoConverterHandlers] = None, *,
             rename: t.Optional[RenameStyle] = None,
             ensure_ascii: bool = True) -> Self:
        return cls(converters=cls._process(custom), rename=rename, ensure_ascii=ensure_ascii)

    @staticmethod
    def _process(handlers: t.Optional[IntoConverterHandlers]) -> t.Tuple[ConverterHandler, ...]:
        if handlers is None:
            return ()

        if isinstance(handlers, t.Mapping):
            conv_map = dict(handlers)

            def inner(ty: type, args: t.Tuple[t.Any, ...] = (), *, options: ConvertOptions):
                if ty in conv_map and len(args) == 0:
                    return conv_map[ty]
                return NotImplemented

            return (inner,)

        return tuple(handlers) if isinstance(handlers, t.Sequence) else (t.cast(ConverterHandler, handlers),)

    def with_converters(self, custom: IntoConverterHandlers) -> Self:
        """Return a copy of `self`, with `custom` consulted before the existing converters."""
        return dataclasses.replace(self, converters=(*self._process(custom), *self.converters))


def _resolve_options(custom: t.Optional[IntoConverterHandlers],
                     options: t.Optional[ConvertOptions]) -> ConvertOptions:
    if options is None:
        return ConvertOptions.make(custom)
    if custom is None:
        return options
    return options.with_converters(custom)


_GLOBAL_HANDLERS: t.List[ConverterHandler] = []

_ABSTRACT_MAPPING: t.Mapping[type, type] = t.cast(t.Mapping[type, type], {
    collections.abc.Sequence: tuple,
    collections.abc.MutableSequence: list,
    collections.abc.Set: frozenset,
    collections.abc.MutableSet: set,
    collections.abc.Mapping: dict,
    collections.abc.MutableMapping: dict,
})
"""Concrete types to construct for abstract collection types"""


def _type_key(ty: t.Any) -> t.Any:
    # typing compares unions as sets (`Union[int, float] == Union[float, int]`),
    # but union variants are tried in order
    args = t.get_args(ty)
    if not args:
        return (type(ty), ty)
    return (t.get_origin(ty), tuple(_type_key(arg) for arg in args))


def _make_converter_key_f(ty: IntoConverter, options: ConvertOptions = ConvertOptions()) -> t.Any:
    key = (_type_key(ty), options)
    try:
        hash(key)
    except TypeError:
        return None  # don't cache
    return key


@key_cache(_make_converter_key_f)
def make_converter(ty: IntoConverter, options: ConvertOptions = ConvertOptions()) -> Converter[t.Any]:
    """
    Make a [`Converter`][maybe_json.converters.Converter] for `ty`.

    Converter handlers (from `options`, then registered globally) are consulted
    first, then the built-in converters. Results are cached per `(ty, options)`.
    """

    from .converters import AnyConverter, UnionConverter, TupleConverter, SequenceConverter
    from .converters import DictConverter, DataclassConverter, LiteralConverter, EnumConverter, _BASIC_CONVERTERS

    if ty is t.Any:
        return AnyConverter(options)
    if isinstance(ty, t.TypeVar):
        var_ty: IntoConverter
        if ty.__bound__ is not None:
            var_ty = ty.__bound__
        elif len(ty.__constraints__):
            var_ty = t.Union[ty.__constraints__]  # type: ignore
        else:
            var_ty = t.Any

        warnings.warn(f"Unbound TypeVar '{ty}'. Will be interpreted as '{var_ty}'.")
        return make_converter(var_ty, options)
    if isinstance(ty, (t.ForwardRef, str)):
        raise TypeError(f"Unresolved forward reference '{ty}'")

    base = t.get_origin(ty) or ty
    args = t.get_args(ty)

    # metadata isn't interpreted
    if base is t.Annotated:
        return make_converter(args[0], options)
    if base is t.Union:
        return UnionConverter(args, options=options)
    if base is t.Literal:
        return LiteralConverter(args)

    if not isinstance(base, type):
        raise TypeError(f"Unsupported special type '{base}'")

    # passed and registered converter handlers
    for handler in (*options.converters, *_GLOBAL_HANDLERS):
        try:
            result = handler(base, args, options=options)
        except NotImplementedError:
            continue
        if result is not NotImplemented:
            return result

    if base in _BASIC_CONVERTERS:
        return _BASIC_CONVERTERS[base]

    if issubclass(base, enum.Enum):
        return EnumConverter(base, options=options)

    if dataclasses.is_dataclass(base):
        return DataclassConverter(base, options=options)

    if issubclass(base, tuple):
        # treat tuple[int, ...] as a sequence
        if len(args) > 0 and args[-1] is not Ellipsis or args == () and hasattr(ty, '__args__'):
            return TupleConverter(base, args, options=options)

    if issubclass(base, (collections.abc.Sequence, collections.abc.Set)) and not issubclass(base, (str, bytes)):
        new_base = _ABSTRACT_MAPPING.get(base, base)
        if inspect.isabstract(new_base):
            raise TypeError(f"No converter for abstract type '{ty}'")
        return SequenceConverter(new_base, args[0] if len(args) > 0 else t.Any, options=options)

    if issubclass(base, collections.abc.Mapping):
        new_base = _ABSTRACT_MAPPING.get(base, base)
        if inspect.isabstract(new_base):
            raise TypeError(f"No converter for abstract type '{ty}'")
        return DictConverter(
            new_base,
            args[0] if len(args) > 0 else t.Any,
            args[1] if len(args) > 1 else t.Any,
            options=options,
        )

    raise TypeError(f"No converter for type '{ty}'")


def register_converter_handler(handler: ConverterHandler) -> None:
    """
    Register a handler for [`make_converter`][maybe_json.convert.make_converter], for all conversions.

    Clears the converter cache, so the handler applies to types seen before.
    """
    logger.debug("Registering global converter handler %r", handler)
    _GLOBAL_HANDLERS.append(handler)
    make_converter.cache_clear()


def registered_converter_handlers() -> t.Tuple[ConverterHandler, ...]:
    """Return the handlers registered with [`register_converter_handler`][maybe_json.convert.register_converter_handler]."""
    return tuple(_GLOBAL_HANDLERS)


def infer_type(val: t.Any) -> t.Any:
    """Return the type to convert `val` as, when none is given."""
    if isinstance(val, InferType):
        return val._infer_type()
    return type(val)


def into_data(val: t.Any, ty: t.Optional[IntoConverter] = None, *,
              custom: t.Optional[IntoConverterHandlers] = None,
              options: t.Optional[ConvertOptions] = None) -> DataType:
    """
    Convert `val` of type `ty` into a data interchange format.

    If `ty` isn't given, it's inferred from `val`.
    """
    opts = _resolve_options(custom, options)
    if ty is None:
        if isinstance(val, _ScalarType) and not opts.converters:
            # no converter can change a bare scalar
            return val
        ty = infer_type(val)

    return make_converter(ty, opts).into_data(val)


def from_data(val: DataType, ty: t.Type[T], *,
              custom: t.Optional[IntoConverterHandlers] = None,
              options: t.Optional[ConvertOptions] = None) -> T:
    """
    Convert `val` from a data interchange format into type `ty`.

    Raises [`ConvertError`][maybe_json.errors.ConvertError] if `val` doesn't fit `ty`.
    """
    if not isinstance(val, _DataType):
        raise TypeError(f"Type {type(val)} is not a valid data interchange type.")

    converter = make_converter(ty, _resolve_options(custom, options))
    return converter.convert(val)


def convert(val: t.Any, ty: t.Type[T], *,
            custom: t.Optional[IntoConverterHandlers] = None,
            options: t.Optional[ConvertOptions] = None) -> T:
    """
    Convert `val` into type `ty`, passing through a data interchange format.
    """
    data = into_data(val, custom=custom, options=options)
    return from_data(data, ty, custom=custom, options=options)


__all__ = [
    'DataType', 'IntoConverter', 'ConverterHandler', 'ConvertOptions', 'ConvertError',
    'make_converter', 'register_converter_handler', 'registered_converter_handlers',
    'from_data', 'into_data', 'convert', 'infer_type',
]
