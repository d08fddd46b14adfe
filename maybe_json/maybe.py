"""
The optional value type, [`Maybe`][maybe_json.maybe.Maybe].
"""

from __future__ import annotations

import typing as t

from .errors import NoValueError


T = t.TypeVar('T')
U = t.TypeVar('U')


class Maybe(t.Generic[T]):
    """
    An immutable container holding either a value of type `T`, or nothing.

    Build instances with [`Maybe.some`][maybe_json.maybe.Maybe.some] (or
    [`to_maybe`][maybe_json.maybe.to_maybe]) and [`Maybe.nothing`][maybe_json.maybe.Maybe.nothing].
    Empty instances all compare equal to the shared [`NOTHING`][maybe_json.maybe.NOTHING].
    """
    __slots__ = ('_has_value', '_value')

    _has_value: bool
    _value: T

    def __init__(self, *args: T):
        if len(args) > 1:
            raise TypeError(f"Maybe takes at most one value, got {len(args)}")
        object.__setattr__(self, '_has_value', len(args) == 1)
        if args:
            object.__setattr__(self, '_value', args[0])

    @classmethod
    def some(cls, value: U) -> Maybe[U]:
        """Wrap `value` as a present value."""
        return t.cast(Maybe[U], cls(value))

    @classmethod
    def nothing(cls) -> Maybe[t.Any]:
        """Return the empty value."""
        return NOTHING

    @property
    def has_value(self) -> bool:
        """Whether this holds a value."""
        return self._has_value

    @property
    def value(self) -> T:
        """
        The held value.

        Raises [`NoValueError`][maybe_json.errors.NoValueError] if this is empty.
        """
        if not self._has_value:
            raise NoValueError()
        return self._value

    def value_or(self, default: U) -> t.Union[T, U]:
        """Return the held value, or `default` if empty."""
        return self._value if self._has_value else default

    def to_optional(self) -> t.Optional[T]:
        """Return the held value, or `None` if empty."""
        return self.value_or(None)

    def _infer_type(self) -> t.Any:
        from .convert import infer_type

        if not self._has_value:
            return Maybe[t.Any]
        return Maybe[infer_type(self._value)]  # type: ignore

    def __setattr__(self, name: str, value: t.Any) -> None:
        raise AttributeError(f"cannot assign to field '{name}' of immutable 'Maybe'")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"cannot delete field '{name}' of immutable 'Maybe'")

    def __copy__(self) -> Maybe[T]:
        return self

    def __deepcopy__(self, memo: t.Any) -> Maybe[T]:
        if not self._has_value:
            return self
        from copy import deepcopy
        return Maybe(deepcopy(self._value, memo))

    def __reduce__(self) -> t.Tuple[t.Any, ...]:
        if not self._has_value:
            return (Maybe.nothing, ())
        return (Maybe, (self._value,))

    def __eq__(self, other: t.Any) -> bool:
        if not isinstance(other, Maybe):
            return NotImplemented
        other = t.cast(Maybe[t.Any], other)
        if self._has_value != other._has_value:
            return False
        return not self._has_value or self._value == other._value

    def __hash__(self) -> int:
        if not self._has_value:
            return hash((Maybe, False))
        return hash((Maybe, True, self._value))

    def __repr__(self) -> str:
        if not self._has_value:
            return "Maybe.nothing()"
        return f"Maybe.some({self._value!r})"


NOTHING: Maybe[t.Any] = Maybe()
"""The shared empty [`Maybe`][maybe_json.maybe.Maybe]."""


def to_maybe(value: T) -> Maybe[T]:
    """Wrap `value` as a present [`Maybe`][maybe_json.maybe.Maybe]."""
    return Maybe(value)


__all__ = ['Maybe', 'NOTHING', 'to_maybe']
