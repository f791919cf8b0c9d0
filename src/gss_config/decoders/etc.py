"""Decoders for the served directory, headers, compression, and ports.

Contents
--------
* :func:`decode_root` – canonical path of an existing directory.
* :func:`decode_headers` – :class:`HeaderSet` from a YAML/JSON string or a map.
* :func:`decode_compression` – zlib level from a name or an integer.
* :func:`decode_port` – TCP port number from an integer or numeric string.
* :func:`canonical_header_name` / :func:`is_valid_header_name` – header name
  helpers used by the single insertion routine.

All decoders accept either a :data:`~gss_config.domain.raw.RawValue` or the
plain Python value it would be built from.
"""

from __future__ import annotations

import os
import re
import stat

import yaml

from .shapes import expect_string
from ..domain.config import Compression, HeaderSet, Port, Root
from ..domain.errors import InvalidFormat, ShapeError, ValidationError
from ..domain.raw import RawList, RawMap, Scalar, shape_name, to_raw

# RFC 7230 section 3.2.6 token characters.
_HEADER_NAME = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")

_COMPRESSION_NAMES = {
    "none": Compression.NONE,
    "default": Compression.DEFAULT,
    "speed": Compression.SPEED,
    "best": Compression.BEST,
}


def decode_root(value: object) -> Root:
    """Resolve *value* to the canonical path of an existing directory.

    Relative paths are resolved against the current working directory, symbolic
    links are followed, and ``.``/``..`` segments collapse.
    """

    path = expect_string(value, "root expects a string")
    try:
        resolved = os.path.realpath(os.path.abspath(path))
        mode = os.stat(resolved).st_mode
    except (OSError, ValueError) as exc:
        raise ValidationError(f"failed to stat root {path!r}: {exc}") from exc
    if not stat.S_ISDIR(mode):
        raise ValidationError(f"root is not a directory: {resolved}")
    return Root(resolved)


def decode_compression(value: object) -> Compression:
    """Return the compression level named or numbered by *value*.

    Names (``none``, ``default``, ``speed``, ``best``) are matched
    case-insensitively before numeric parsing. Numbers outside ``-1..9`` are
    rejected, never clamped.

    Examples
    --------
    >>> decode_compression("Best")
    Compression(9)
    >>> decode_compression(-1)
    Compression(-1)
    >>> decode_compression("100")
    Traceback (most recent call last):
    ...
    gss_config.domain.errors.ValidationError: unsupported compression level: 100 (valid range: -1 to 9)
    """

    raw = to_raw(value)
    if isinstance(raw, Scalar) and isinstance(raw.value, str):
        level = raw.value.strip().lower()
        if level in _COMPRESSION_NAMES:
            return Compression(_COMPRESSION_NAMES[level])
        try:
            number = int(level)
        except ValueError:
            raise ValidationError(f"unsupported compression level: {level}") from None
        return _compression_in_range(number)
    if isinstance(raw, Scalar) and isinstance(raw.value, int) and not isinstance(raw.value, bool):
        return _compression_in_range(raw.value)
    raise ShapeError("unsupported compression level type", expected="string or integer", actual=shape_name(raw))


def _compression_in_range(number: int) -> Compression:
    if not Compression.DEFAULT <= number <= Compression.BEST:
        raise ValidationError(
            f"unsupported compression level: {number} "
            f"(valid range: {Compression.DEFAULT} to {Compression.BEST})"
        )
    return Compression(number)


def decode_port(value: object) -> Port:
    """Return a TCP port from an integer or a numeric string.

    Examples
    --------
    >>> decode_port("8888")
    8888
    """

    raw = to_raw(value)
    if isinstance(raw, Scalar) and isinstance(raw.value, str):
        try:
            number = int(raw.value.strip())
        except ValueError:
            raise ValidationError(f"invalid port: {raw.value!r}") from None
    elif isinstance(raw, Scalar) and isinstance(raw.value, int) and not isinstance(raw.value, bool):
        number = raw.value
    else:
        raise ShapeError("port expects an integer", expected="integer or numeric string", actual=shape_name(raw))
    if not 0 <= number <= 65535:
        raise ValidationError(f"invalid port: {number} (valid range: 0 to 65535)")
    return Port(number)


def decode_headers(value: object) -> HeaderSet:
    """Decode HTTP response headers from any of the accepted shapes.

    Accepted shapes
    ---------------
    * a YAML or JSON document in a string (environment variables); ``null``
      and ``{}`` yield an empty set;
    * a map of name to string;
    * a map of name to list of strings;
    * a map mixing both value kinds.

    Every shape funnels through :func:`_add_header`, so equivalent data yields
    identical :class:`HeaderSet` instances.

    Examples
    --------
    >>> decode_headers("x-frame-options: DENY")
    HeaderSet({'X-Frame-Options': ('DENY',)})
    >>> decode_headers({"Cache-Control": ["no-cache", "no-store"]})["Cache-Control"]
    ('no-cache', 'no-store')
    """

    raw = to_raw(value)
    if isinstance(raw, Scalar) and isinstance(raw.value, str):
        return _headers_from_document(raw.value)
    if isinstance(raw, RawMap):
        return _headers_from_map(raw)
    raise ShapeError("unsupported headers type", expected="YAML string or map", actual=shape_name(raw))


def _headers_from_document(document: str) -> HeaderSet:
    try:
        parsed = yaml.safe_load(document)
    except yaml.YAMLError as exc:
        raise InvalidFormat(f"failed to parse headers YAML from string: {exc}") from exc
    if parsed is None:
        return HeaderSet()
    raw = to_raw(parsed)
    if not isinstance(raw, RawMap):
        raise ShapeError("headers document must be a mapping", expected="map", actual=shape_name(raw))
    return _headers_from_map(raw)


def _headers_from_map(raw: RawMap) -> HeaderSet:
    entries: dict[str, list[str]] = {}
    for name, item in raw.entries:
        if isinstance(item, Scalar) and isinstance(item.value, str):
            _add_header(entries, name, item.value)
        elif isinstance(item, RawList):
            for index, element in enumerate(item.items):
                if not (isinstance(element, Scalar) and isinstance(element.value, str)):
                    raise ShapeError(
                        f"invalid header value for key '{name}' at index {index}",
                        expected="string",
                        actual=shape_name(element),
                    )
                _add_header(entries, name, element.value)
        else:
            raise ShapeError(
                f"invalid header value for key '{name}'",
                expected="string or list of strings",
                actual=shape_name(item),
            )
    return HeaderSet((name, tuple(values)) for name, values in entries.items())


def _add_header(entries: dict[str, list[str]], name: str, value: str) -> None:
    """Validate one header entry and append it under its canonical name."""

    if not is_valid_header_name(name):
        raise ValidationError(f"invalid header key: {name!r}")
    if not value.strip():
        raise ValidationError(f"empty value for header '{name}'")
    entries.setdefault(canonical_header_name(name), []).append(value)


def is_valid_header_name(name: str) -> bool:
    """Return ``True`` when *name* is an RFC 7230 token.

    Examples
    --------
    >>> is_valid_header_name("X-Frame-Options"), is_valid_header_name("Invalid !")
    (True, False)
    """

    return bool(_HEADER_NAME.fullmatch(name))


def canonical_header_name(name: str) -> str:
    """Upper-case the first letter of each dash-separated word, lower-case the rest.

    Examples
    --------
    >>> canonical_header_name("x-content-TYPE-options")
    'X-Content-Type-Options'
    """

    return "-".join(part[:1].upper() + part[1:].lower() for part in name.split("-"))
