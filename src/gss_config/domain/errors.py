"""Domain-level exception hierarchy.

Purpose
-------
Expose the error taxonomy shared by the source adapters, the decoders, the
dispatcher, and the composition root. Assembly is fail-fast: the first error
raised anywhere aborts the build and reaches the caller as one of these types.

Contents
--------
* :class:`ConfigError` – umbrella base class for all configuration failures.
* :class:`InvalidFormat` – a source artifact could not be parsed.
* :class:`NotFound` – a named source does not exist.
* :class:`ShapeError` – a decoder received a representation it cannot read.
* :class:`ValidationError` – a value parsed but broke a domain rule.
* :class:`CryptoMaterialError` – PEM, X.509 or private-key parsing failed.
* :class:`FieldDecodeError` – any decode failure annotated with its field path.
"""

from __future__ import annotations


class ConfigError(Exception):
    """Base type for all exceptions emitted by ``gss_config``.

    Callers that only need to know whether a configuration could be built
    catch this single type.
    """


class InvalidFormat(ConfigError):
    """Raised when an input artifact cannot be parsed into structured data.

    Typical Sources
    ---------------
    The YAML file loader and the YAML-in-string header decoder.
    """


class NotFound(ConfigError):
    """Represents a missing resource that was explicitly requested."""


class ShapeError(ConfigError):
    """Raised when a decoder receives an input representation it cannot interpret.

    Attributes
    ----------
    expected:
        Human readable description of the accepted shapes.
    actual:
        Name of the representation that was supplied.
    """

    def __init__(self, message: str, *, expected: str, actual: str) -> None:
        super().__init__(f"{message}, expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class ValidationError(ConfigError):
    """Signifies that a syntactically valid value failed semantic checks.

    Range violations, regular-expression mismatches, duplicates, and unknown
    enumeration names all land here.
    """


class CryptoMaterialError(ValidationError):
    """Raised when certificate or private key material cannot be parsed.

    Attributes
    ----------
    stage:
        ``"inline"`` when the value itself carried PEM text, ``"file"`` when
        the value was treated as a path.
    """

    def __init__(self, message: str, *, stage: str) -> None:
        super().__init__(message)
        self.stage = stage


class FieldDecodeError(ConfigError):
    """Wrap a decode failure with the dotted path of the offending field.

    The original exception stays reachable through ``__cause__`` so callers
    can still branch on the specific failure class.
    """

    def __init__(self, field: str, error: Exception) -> None:
        super().__init__(f"{field}: {error}")
        self.field = field
        self.error = error
