from __future__ import annotations

from .maybe import Maybe, NOTHING, to_maybe
from .convert import DataType, ConvertOptions, from_data, into_data, convert
from .convert import make_converter, register_converter_handler
from .errors import ConvertError, NoValueError
from .naming import RenameStyle, rename_field
from .serialization import MaybeConverter, MaybeConverterFactory, register_maybe_converter
from .io import from_json, from_jsons, from_yaml, write_json, into_json, write_yaml


__all__ = [
    # optional value type
    'Maybe', 'NOTHING', 'to_maybe', 'NoValueError',
    # Maybe conversion
    'MaybeConverter', 'MaybeConverterFactory', 'register_maybe_converter',
    # datatypes, convert() interface
    'DataType', 'ConvertOptions', 'from_data', 'into_data', 'convert',
    'make_converter', 'register_converter_handler', 'ConvertError',
    'RenameStyle', 'rename_field',
    # I/O
    'from_json', 'from_jsons', 'from_yaml', 'write_json', 'into_json', 'write_yaml',
]
