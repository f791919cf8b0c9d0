"""Shape helpers shared by the decoders.

Every decoder starts by narrowing a :data:`~gss_config.domain.raw.RawValue` to
the representation it understands. These helpers perform that narrowing and
raise :class:`~gss_config.domain.errors.ShapeError` with a consistent message
when the input has the wrong shape.
"""

from __future__ import annotations

from ..domain.errors import ShapeError
from ..domain.raw import RawList, RawValue, Scalar, shape_name, to_raw


def expect_string(value: object, message: str) -> str:
    """Return the string carried by *value* or raise :class:`ShapeError`.

    Examples
    --------
    >>> expect_string("TLS1.2", "TLS version expects a string")
    'TLS1.2'
    >>> expect_string(3, "TLS version expects a string")
    Traceback (most recent call last):
    ...
    gss_config.domain.errors.ShapeError: TLS version expects a string, expected string, got int
    """

    raw = to_raw(value)
    if isinstance(raw, Scalar) and isinstance(raw.value, str):
        return raw.value
    raise ShapeError(message, expected="string", actual=shape_name(raw))


def string_items(value: object, what: str) -> list[str]:
    """Return the entries of a comma-separated string or a list of strings.

    Entries are returned untouched; trimming and case folding are left to the
    caller because the rules differ per type.

    Examples
    --------
    >>> string_items("a, b", "items")
    ['a', ' b']
    >>> string_items(["a", "b"], "items")
    ['a', 'b']
    """

    raw: RawValue = to_raw(value)
    if isinstance(raw, Scalar) and isinstance(raw.value, str):
        return raw.value.split(",")
    if isinstance(raw, RawList):
        items: list[str] = []
        for index, item in enumerate(raw.items):
            if not (isinstance(item, Scalar) and isinstance(item.value, str)):
                raise ShapeError(
                    f"unsupported type for {what} at index {index}",
                    expected="string",
                    actual=shape_name(item),
                )
            items.append(item.value)
        return items
    raise ShapeError(f"unsupported type for {what}", expected="string or list of strings", actual=shape_name(raw))
