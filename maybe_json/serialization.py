"""
Conversion support for [`Maybe`][maybe_json.maybe.Maybe].

[`MaybeConverterFactory`][maybe_json.serialization.MaybeConverterFactory] is a converter
handler. Once passed in [`ConvertOptions`][maybe_json.convert.ConvertOptions] (or registered
globally), any `Maybe[T]` converts transparently: an empty value is `null`,
and a present value is whatever `T` converts to.
"""

from __future__ import annotations

import functools
import logging
import typing as t

from .convert import DataType, IntoConverter, ConvertOptions, make_converter
from .convert import register_converter_handler, registered_converter_handlers
from .converters import Converter
from .errors import ErrorNode
from .maybe import Maybe, NOTHING


logger = logging.getLogger(__name__)

T = t.TypeVar('T')


class MaybeConverter(Converter[Maybe[T]]):
    """
    Converter for `Maybe[T]`, for a single inner type `T`.

    All handling of `T` is delegated to the converter `make_converter(T, options)`,
    which is looked up on first use. This allows recursive types (a dataclass
    holding a `Maybe` of itself).
    """

    def __init__(self, inner: IntoConverter, *, options: ConvertOptions = ConvertOptions()):
        self.inner_ty: IntoConverter = inner
        self.options: ConvertOptions = options

    @functools.cached_property
    def inner(self) -> Converter[T]:
        return make_converter(self.inner_ty, self.options)

    def __eq__(self, other: t.Any) -> bool:
        if self.__class__ != other.__class__:
            return False
        return (self.inner_ty, self.options) == (other.inner_ty, other.options)

    def __hash__(self) -> int:
        return hash((self.__class__, self.inner_ty, self.options))

    def __repr__(self) -> str:
        return f"MaybeConverter({self.inner_ty!r})"

    def expected(self, plural: bool = False) -> str:
        null = 'nulls' if plural else 'null'
        return f"{self.inner.expected(plural)} or {null}"

    def into_data(self, val: t.Any) -> DataType:
        if not isinstance(val, Maybe):
            raise TypeError(f"Expected a 'Maybe', instead got '{type(val).__name__}'")
        val = t.cast(Maybe[t.Any], val)
        if not val.has_value:
            return None
        return self.inner.into_data(val.value)

    def try_convert(self, val: t.Any) -> Maybe[T]:
        if val is None:
            return NOTHING
        if isinstance(val, Maybe):
            # already converted
            if not val.has_value:
                return NOTHING
            val = t.cast(Maybe[t.Any], val).value
        return Maybe(self.inner.try_convert(val))

    def collect_errors(self, val: t.Any) -> t.Optional[ErrorNode]:
        if val is None:
            return None
        if isinstance(val, Maybe):
            if not val.has_value:
                return None
            val = t.cast(Maybe[t.Any], val).value
        return self.inner.collect_errors(val)


class MaybeConverterFactory:
    """
    Converter handler which builds a [`MaybeConverter`][maybe_json.serialization.MaybeConverter]
    for each instantiation `Maybe[T]`.

    Pass it in `ConvertOptions(converters=...)`, or register it for all
    conversions with [`register_maybe_converter`][maybe_json.serialization.register_maybe_converter].
    """

    def can_convert(self, ty: t.Any) -> bool:
        """Return whether `ty` is `Maybe` parameterized with a type argument."""
        return t.get_origin(ty) is Maybe and len(t.get_args(ty)) == 1

    def create_converter(self, ty: t.Any, options: ConvertOptions = ConvertOptions()) -> MaybeConverter[t.Any]:
        """
        Create a converter for `ty`, which must be `Maybe[T]` for some `T`.

        Raises `TypeError` for any other type.
        """
        if not self.can_convert(ty):
            raise TypeError(f"MaybeConverterFactory can't convert type '{ty}'")
        (inner,) = t.get_args(ty)
        logger.debug("Creating converter for '%s'", ty)
        return MaybeConverter(inner, options=options)

    def __call__(self, ty: type, args: t.Tuple[t.Any, ...], /, *,
                 options: ConvertOptions) -> t.Union[MaybeConverter[t.Any], t.Any]:
        if ty is not Maybe or len(args) != 1:
            return NotImplemented
        return self.create_converter(Maybe[args[0]], options)  # type: ignore

    def __eq__(self, other: t.Any) -> bool:
        return self.__class__ == other.__class__

    def __hash__(self) -> int:
        return hash(self.__class__)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


def register_maybe_converter() -> None:
    """
    Register a [`MaybeConverterFactory`][maybe_json.serialization.MaybeConverterFactory]
    for all conversions. Registering more than once has no effect.
    """
    if any(isinstance(handler, MaybeConverterFactory) for handler in registered_converter_handlers()):
        return
    register_converter_handler(MaybeConverterFactory())


__all__ = [
    'MaybeConverter', 'MaybeConverterFactory', 'register_maybe_converter',
]
