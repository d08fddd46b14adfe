import functools
import typing as t
from threading import Lock

from typing_extensions import ParamSpec


T = t.TypeVar('T')
P = ParamSpec('P')


def pluralize(word: str, plural: t.Union[bool, int], suffix: str = 's', article: t.Optional[str] = None) -> str:
    """Pluralize `word` based on the value of `plural`."""
    if not isinstance(plural, bool):
        plural = plural != 1
    if plural:
        return word + suffix
    return f"{article} {word}" if article else word


def list_phrase(words: t.Sequence[str], conj: str = 'or') -> str:
    """
    Form an english list phrase from `words`, using the conjunction `conj`.
    """
    if len(words) <= 2:
        return f" {conj} ".join(words)
    return f"{', '.join(words[:-1])}, {conj} {words[-1]}"


def flatten_union_args(types: t.Iterable[T]) -> t.Iterator[T]:
    """Flatten nested unions into a single sequence of member types."""
    for ty in types:
        if t.get_origin(ty) is t.Union:
            yield from flatten_union_args(t.get_args(ty))
        else:
            yield ty


class KeyCache(t.Generic[P, T]):
    """
    Unbounded memoization keyed by `key_f(*args, **kwargs)`.

    A key of `None` bypasses the cache. Concurrent misses on the same key may
    call the wrapped function more than once; the first result stored wins.
    """

    def __init__(self, f: t.Callable[P, T], key_f: t.Callable[P, t.Any]):
        self.inner_f: t.Callable[P, T] = f
        self.key_f: t.Callable[P, t.Any] = key_f
        self.cache: t.Dict[t.Any, T] = {}
        self._lock = Lock()

    def __call__(self, *args: P.args, **kwargs: P.kwargs) -> T:
        key = self.key_f(*args, **kwargs)
        if key is None:
            return self.inner_f(*args, **kwargs)
        try:
            return self.cache[key]
        except KeyError:
            pass

        result = self.inner_f(*args, **kwargs)
        with self._lock:
            return self.cache.setdefault(key, result)

    def cache_clear(self) -> None:
        with self._lock:
            self.cache.clear()


def key_cache(key_f: t.Callable[P, t.Any]) -> t.Callable[[t.Callable[P, T]], KeyCache[P, T]]:
    def inner(f: t.Callable[P, T]) -> KeyCache[P, T]:
        return t.cast(KeyCache[P, T], functools.update_wrapper(KeyCache(f, key_f), f))

    return inner


__all__ = [
    'list_phrase', 'pluralize', 'flatten_union_args', 'key_cache',
]
