"""Error types for ``maybe_json``."""

from __future__ import annotations

import abc
from io import StringIO
import sys
import traceback
import dataclasses
import typing as t


class ParseInterrupt(Exception):
    """
    Raised by [`Converter`][maybe_json.converters.Converter]s to signal that a conversion
    path has failed. Carries no details; those are gathered afterwards by ``collect_errors``.
    """
    ...


class NoValueError(ValueError):
    """
    Raised when reading the value of an empty [`Maybe`][maybe_json.maybe.Maybe].

    This is a programming error: check `has_value` first, or use `value_or`.
    """
    def __init__(self, msg: str = "Maybe has no value"):
        super().__init__(msg)


class ConvertError(Exception):
    """
    Conversion error.

    `self.tree` holds the full error tree; `str(self)` renders it for humans.
    """
    def __init__(self, tree: ErrorNode):
        self.tree: ErrorNode = tree

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.tree!r})"

    def __str__(self) -> str:
        return str(self.tree)


class ErrorNode(abc.ABC):
    """Node in a conversion error tree."""

    @abc.abstractmethod
    def print_error(self, indent: str = "", inside_sum: bool = False, file: t.TextIO = sys.stdout):
        """
        Write a description of this error to `file`.

        Parameters:
          indent: Prefix for every continuation line
          inside_sum: Set when printed as a variant of a [`SumErrorNode`][maybe_json.errors.SumErrorNode].
                      The received value is then left to the parent.
          file: Text stream to write to
        """
        ...

    def __str__(self) -> str:
        buf = StringIO()
        self.print_error(file=buf)
        return buf.getvalue().rstrip('\n')


def _format_cause(cause: t.Optional[traceback.TracebackException]) -> str:
    if cause is None:
        return 'None'
    return "".join(cause.format_exception_only()).strip()


@dataclasses.dataclass
class WrongTypeError(ErrorNode):
    expected: str
    """Description of the expected value"""
    actual: t.Any
    """Value actually received"""
    cause: t.Optional[traceback.TracebackException] = None
    """Traceback of the exception which caused this error, if any"""
    info: t.Optional[str] = None
    """Extra line of information"""

    def print_error(self, indent: str = "", inside_sum: bool = False, file: t.TextIO = sys.stdout):
        if inside_sum:
            print(self.expected, file=file)
        else:
            print(f"Expected {self.expected}, instead got `{self.actual!r}` of type `{type(self.actual).__name__}`", file=file)
        if self.info is not None:
            print(f"{indent}{self.info}", file=file)
        if self.cause is not None:
            print(f"{indent}Caused by: {_format_cause(self.cause)}", file=file)

    def __repr__(self) -> str:
        return (f"WrongTypeError(expected={self.expected!r}, actual={self.actual!r}, "
                f"cause={_format_cause(self.cause)!r}, info={self.info!r})")

    def __eq__(self, other: t.Any) -> bool:
        # tracebacks don't compare, so compare their rendering
        if self.__class__ != other.__class__:
            return False
        return (
            (self.expected, self.actual, self.info) == (other.expected, other.actual, other.info)
            and _format_cause(self.cause) == _format_cause(other.cause)
        )


@dataclasses.dataclass
class ProductErrorNode(ErrorNode):
    expected: str
    """Description of the expected value"""
    children: t.Dict[t.Union[int, str], ErrorNode]
    """Errors while converting members, keyed by field name or index"""
    actual: t.Any
    """Value actually received"""
    missing: t.AbstractSet[str] = dataclasses.field(default_factory=set)
    """Required fields not present"""
    extra: t.AbstractSet[str] = dataclasses.field(default_factory=set)
    """Unknown fields present"""

    def _fused(self) -> ProductErrorNode:
        # collapse chains of single-child nodes into dotted paths
        node = self
        while len(node.children) == 1 and not node.missing and not node.extra:
            (key, child) = next(iter(node.children.items()))
            if not isinstance(child, ProductErrorNode):
                break
            node = ProductErrorNode(
                node.expected,
                {f"{key}.{k}": v for (k, v) in child.children.items()},
                node.actual,
                {f"{key}.{f}" for f in child.missing},
                {f"{key}.{f}" for f in child.extra},
            )
        return node

    def print_error(self, indent: str = "", inside_sum: bool = False, file: t.TextIO = sys.stdout):
        node = self._fused()
        print(node.expected if inside_sum else f"Expected {node.expected}", file=file)
        for (key, child) in node.children.items():
            print(f"{indent}While parsing field '{key}':\n{indent}  ", end="", file=file)
            child.print_error(f"{indent}  ", file=file)
        for key in sorted(node.missing):
            print(f"{indent}  Missing required field '{key}'", file=file)
        for key in sorted(node.extra):
            print(f"{indent}  Unexpected field '{key}'", file=file)


@dataclasses.dataclass
class SumErrorNode(ErrorNode):
    children: t.List[ErrorNode]
    """Errors while converting as each variant, in order"""

    def _variants(self) -> t.Iterator[ErrorNode]:
        for child in self.children:
            if isinstance(child, SumErrorNode):
                yield from child._variants()
            else:
                yield child

    def print_error(self, indent: str = "", inside_sum: bool = False, file: t.TextIO = sys.stdout):
        print("Expected one of:", file=file)
        actual = None
        for child in self._variants():
            print(f"{indent}- ", end="", file=file)
            child.print_error(f"{indent}  ", inside_sum=True, file=file)
            actual = getattr(child, 'actual', actual)
        print(f"{indent}Instead got `{actual!r}` of type `{type(actual).__name__}`", file=file)


__all__ = [
    'ErrorNode', 'ProductErrorNode', 'SumErrorNode', 'WrongTypeError',
    'ConvertError', 'ParseInterrupt', 'NoValueError',
]
