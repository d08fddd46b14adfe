"""
Field naming policies, applied to dataclass fields on the way into and out of data.
"""

from __future__ import annotations

import itertools
import re
import typing as t

from typing_extensions import TypeAlias


RenameStyle: TypeAlias = t.Literal['snake', 'camel', 'pascal', 'kebab', 'scream']
"""Supported field naming styles"""


_JOIN_FNS: t.Dict[str, t.Callable[[t.Sequence[str]], str]] = {
    'snake': lambda parts: '_'.join(part.lower() for part in parts),
    'scream': lambda parts: '_'.join(part.upper() for part in parts),
    'kebab': lambda parts: '-'.join(part.lower() for part in parts),
    'camel': lambda parts: parts[0].lower() + ''.join(part.title() for part in parts[1:]),
    'pascal': lambda parts: ''.join(part.title() for part in parts),
}

_WORD_RE = re.compile(r'[A-Z]+(?![a-z])|[A-Z]?[a-z0-9]+')


def split_field_name(name: str) -> t.Tuple[str, ...]:
    """
    Split `name` into its words.

    Words are separated by underscores, dashes, and case changes
    (``'HTTPServerName'`` splits into ``('HTTP', 'Server', 'Name')``).
    """
    chunks = re.split(r'[_-]', name)
    if not all(chunks):
        raise ValueError(f"Unable to interpret field '{name}' for automatic rename")

    def words(chunk: str) -> t.List[str]:
        if chunk.isupper() or chunk.islower():
            return [chunk]
        return _WORD_RE.findall(chunk)

    return tuple(itertools.chain.from_iterable(map(words, chunks)))


def rename_field(name: str, style: t.Optional[RenameStyle] = None) -> str:
    """
    Rename `name` to match `style`. Returns `name` unchanged if `style` is `None`.
    """
    if style is None:
        return name
    try:
        join = _JOIN_FNS[style]
    except KeyError:
        raise ValueError(f"Unknown rename style '{style}'") from None
    return join(split_field_name(name))


__all__ = ['RenameStyle', 'rename_field', 'split_field_name']
