from contextlib import contextmanager
from io import IOBase, StringIO, TextIOBase, TextIOWrapper, BufferedIOBase
from pathlib import Path
import typing as t

from typing_extensions import TypeAlias

from .convert import (
    from_data, into_data, IntoConverterHandlers,
    IntoConverter, ConvertOptions, _resolve_options,
)


T = t.TypeVar('T')
FileOrPath: TypeAlias = t.Union[str, Path, TextIOBase, t.TextIO]


def from_json(f: FileOrPath, ty: t.Type[T], *,
              custom: t.Optional[IntoConverterHandlers] = None,
              options: t.Optional[ConvertOptions] = None) -> T:
    """
    Load an object of type `ty` from a JSON file `f`

    Parameters:
        f: File-like or path-like to load from
        custom: Custom converters to use
        options: Conversion options
    """
    import json
    with open_file(f) as f:
        obj = json.load(f)
    return from_data(obj, ty, custom=custom, options=options)


def from_jsons(s: str, ty: t.Type[T], *,
               custom: t.Optional[IntoConverterHandlers] = None,
               options: t.Optional[ConvertOptions] = None) -> T:
    """
    Load an object of type `ty` from the JSON string `s`.

    Invalid JSON raises `json.JSONDecodeError` from the parser.
    """
    import json
    return from_data(json.loads(s), ty, custom=custom, options=options)


def from_yaml(f: FileOrPath, ty: t.Type[T], *,
              custom: t.Optional[IntoConverterHandlers] = None,
              options: t.Optional[ConvertOptions] = None) -> T:
    """
    Load an object of type `ty` from a YAML file `f`

    Parameters:
        f: File-like or path-like to load from
        custom: Custom converters to use
        options: Conversion options
    """
    import yaml
    try:
        from yaml import CSafeLoader as Loader
    except ImportError:
        from yaml import SafeLoader as Loader

    with open_file(f) as f:
        obj = t.cast(t.Any, yaml.load(f, Loader))  # type: ignore

    return from_data(obj, ty, custom=custom, options=options)


def write_json(obj: t.Any, f: FileOrPath, *,
               ty: t.Optional[IntoConverter] = None,
               indent: t.Union[str, int, None] = None,
               sort_keys: bool = False,
               custom: t.Optional[IntoConverterHandlers] = None,
               options: t.Optional[ConvertOptions] = None):
    """
    Write data to a JSON file `f`

    Parameters:
      obj: Object to write
      f: File-like or path-like to write to
      ty: Type of object. Inferred from `obj` if not given
      indent: Indent to format JSON with. Defaults to None (compact output)
      sort_keys: Whether to sort keys prior to serialization.
      custom: Custom converters to use
      options: Conversion options. `options.ensure_ascii` controls escaping
    """
    import json

    opts = _resolve_options(custom, options)
    with open_file(f, 'w') as f:
        json.dump(
            into_data(obj, ty, options=opts), f,
            indent=indent, sort_keys=sort_keys,
            ensure_ascii=opts.ensure_ascii,
            separators=(',', ':') if indent is None else None,
        )


def into_json(obj: t.Any, ty: t.Optional[IntoConverter] = None, *,
              indent: t.Union[str, int, None] = None,
              sort_keys: bool = False,
              custom: t.Optional[IntoConverterHandlers] = None,
              options: t.Optional[ConvertOptions] = None) -> str:
    """
    Write `obj` to a JSON string. See [`write_json`][maybe_json.io.write_json] for parameters.
    """
    buf = StringIO()
    write_json(obj, buf, ty=ty, indent=indent, sort_keys=sort_keys,
               custom=custom, options=options)
    return buf.getvalue()


def write_yaml(obj: t.Any, f: FileOrPath, *,
               ty: t.Optional[IntoConverter] = None,
               indent: t.Optional[int] = None,
               width: t.Optional[int] = None,
               explicit_start: bool = True,
               default_flow_style: t.Optional[bool] = None,
               sort_keys: bool = False,
               custom: t.Optional[IntoConverterHandlers] = None,
               options: t.Optional[ConvertOptions] = None):
    """
    Write data to a YAML file `f`

    Parameters:
      obj: Object to write
      f: File-like or path-like to write to
      ty: Type of object. Inferred from `obj` if not given
      indent: Number of spaces to indent blocks with
      width: Maximum width of file created
      explicit_start: Whether to include a YAML document start "---"
      default_flow_style: Whether to default to flow style or block style for collections.
      sort_keys: Whether to sort keys prior to serialization.
      custom: Custom converters to use
      options: Conversion options. Unicode is written unescaped unless `options.ensure_ascii`
    """
    import yaml
    try:
        from yaml import CSafeDumper as Dumper
    except ImportError:
        from yaml import SafeDumper as Dumper

    opts = _resolve_options(custom, options)
    with open_file(f, 'w') as f:
        yaml.dump(  # type: ignore
            into_data(obj, ty, options=opts), f, Dumper=Dumper,
            indent=indent, width=width, allow_unicode=not opts.ensure_ascii,
            explicit_start=explicit_start, default_flow_style=default_flow_style,
            sort_keys=sort_keys,
        )


def _validate_file(f: t.Union[t.IO[t.AnyStr], IOBase], mode: t.Literal['r', 'w']):
    if f.closed:
        raise IOError("Error: Provided file is closed.")

    if mode == 'r' and not f.readable():
        raise IOError("Error: Provided file not readable.")
    if mode == 'w' and not f.writable():
        raise IOError("Error: Provided file not writable.")


@contextmanager
def open_file(f: FileOrPath,
              mode: t.Literal['r', 'w'] = 'r',
              newline: t.Optional[str] = None,
              encoding: t.Optional[str] = 'utf-8') -> t.Iterator[TextIOBase]:
    """
    Open the given file for text I/O.

    Path-likes are opened (and closed afterwards) with the given settings.
    File-likes are checked to be readable/writable, and left open. Binary
    file-likes are wrapped for text I/O, and detached from the wrapper afterwards.

    Parameters:
      f: File to open
      mode: Mode file should be opened in
      newline: Newline mode file should be opened in
      encoding: Encoding file should be opened in
    """
    if not isinstance(f, (IOBase, t.TextIO)):
        with open(f, mode, newline=newline, encoding=encoding) as file:
            yield t.cast(TextIOBase, file)
        return

    _validate_file(t.cast(IOBase, f), mode)

    if not isinstance(f, (BufferedIOBase, t.BinaryIO)):
        yield t.cast(TextIOBase, f)  # don't close a file we didn't open
        return

    wrapper = TextIOWrapper(t.cast(t.BinaryIO, f), newline=newline, encoding=encoding)
    try:
        yield wrapper
    finally:
        if mode == 'w':
            wrapper.flush()
        # closing the wrapper would close `f`
        wrapper.detach()


__all__ = [
    'from_json', 'from_jsons', 'from_yaml',
    'write_json', 'into_json', 'write_yaml', 'open_file',
]
