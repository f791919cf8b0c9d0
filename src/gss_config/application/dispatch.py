"""Type-directed decode dispatch.

Purpose
-------
Turn the merged raw tree into a :class:`~gss_config.domain.config.Configuration`
by walking the static field table once and, for each field, asking the hook
chain registered for its target type to decode the raw value.

Contents
--------
* :class:`Decoded` / :data:`NOT_APPLICABLE` – the two outcomes of a hook.
* :class:`HookRegistry` – target type → ordered hook chain, with a structural
  fallback for ``bool``, ``int`` and ``str`` targets.
* :func:`default_registry` – the built-in hooks wrapping the decoders.
* :func:`decode_tree` – the single deterministic pass over the field table.

System Role
-----------
Called by :func:`gss_config.core.build_config` after the merge. The first hook
failure aborts the pass and surfaces as
:class:`~gss_config.domain.errors.FieldDecodeError` naming the dotted key.
"""

from __future__ import annotations

import ssl
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Iterable, Union

from ..decoders.acme import decode_challenge_path, decode_domains, decode_email, decode_url
from ..decoders.etc import decode_compression, decode_headers, decode_port, decode_root
from ..decoders.tls import (
    decode_certificate,
    decode_ciphers,
    decode_curves,
    decode_private_key,
    decode_tls_version,
)
from ..domain.config import (
    ACMEURL,
    ACMEChallengePath,
    ACMEConfig,
    ACMEDomains,
    ACMEEmail,
    Certificate,
    CipherSuiteSet,
    Compression,
    Configuration,
    CurveSet,
    HeaderSet,
    MetricsConfig,
    Port,
    PrivateKey,
    Root,
    TLSConfig,
)
from ..domain.errors import FieldDecodeError, ShapeError, ValidationError
from ..domain.raw import RawValue, Scalar, shape_name, to_raw
from ..observability import log_debug, log_error
from .schema import FIELDS, FieldSpec

_TRUE_WORDS = frozenset({"true", "1", "yes", "on"})
_FALSE_WORDS = frozenset({"false", "0", "no", "off"})


@dataclass(frozen=True, slots=True)
class Decoded:
    """A hook accepted the input and produced *value*."""

    value: Any


class NotApplicable:
    """A hook declined the input; the next hook in the chain is tried."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "NOT_APPLICABLE"


NOT_APPLICABLE = NotApplicable()

HookResult = Union[Decoded, NotApplicable]
DecodeHook = Callable[[Any, RawValue], HookResult]


class HookRegistry:
    """Ordered hook chains keyed by target type.

    Examples
    --------
    >>> registry = HookRegistry()
    >>> registry.register(str, lambda target, raw: Decoded("override"))
    >>> registry.decode(str, Scalar("value"))
    'override'
    >>> registry.decode(int, Scalar("42"))
    42
    """

    def __init__(self, hooks: Mapping[Any, Iterable[DecodeHook]] | None = None) -> None:
        self._hooks: dict[Any, list[DecodeHook]] = {}
        for target, chain in (hooks or {}).items():
            self._hooks[target] = list(chain)

    def register(self, target: Any, hook: DecodeHook) -> None:
        """Prepend *hook* to the chain for *target* so it runs before built-ins."""

        self._hooks.setdefault(target, []).insert(0, hook)

    def hooks_for(self, target: Any) -> tuple[DecodeHook, ...]:
        return tuple(self._hooks.get(target, ()))

    def copy(self) -> "HookRegistry":
        return HookRegistry(self._hooks)

    def decode(self, target: Any, raw: object) -> Any:
        """Return the first :class:`Decoded` value of the chain for *target*.

        When every hook declines, structural assignment applies. ``None`` means
        the input was null and the field keeps its default.
        """

        value = to_raw(raw)
        for hook in self._hooks.get(target, ()):
            result = hook(target, value)
            if isinstance(result, Decoded):
                return result.value
        return _structural(target, value)


def _structural(target: Any, raw: RawValue) -> Any:
    """Assign *raw* to plain ``bool``/``int``/``str`` targets."""

    if isinstance(raw, Scalar) and raw.is_null:
        return None
    name = getattr(target, "__name__", repr(target))
    if not isinstance(raw, Scalar):
        raise ShapeError(f"cannot decode {name}", expected="scalar", actual=shape_name(raw))
    value = raw.value
    if target is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in _TRUE_WORDS | _FALSE_WORDS:
            return value.strip().lower() in _TRUE_WORDS
        raise ValidationError(f"invalid boolean: {value!r}")
    if target is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                raise ValidationError(f"invalid integer: {value!r}") from None
        raise ShapeError("cannot decode int", expected="integer", actual=shape_name(raw))
    if target is str:
        if isinstance(value, str):
            return value
        raise ShapeError("cannot decode str", expected="string", actual=shape_name(raw))
    raise ShapeError(f"no decoder registered for {name}", expected="registered type", actual=shape_name(raw))


def _hook(decoder: Callable[[RawValue], Any]) -> DecodeHook:
    """Wrap *decoder* so it declines null input and leaves the default in place."""

    def hook(target: Any, raw: RawValue) -> HookResult:
        if isinstance(raw, Scalar) and raw.is_null:
            return NOT_APPLICABLE
        return Decoded(decoder(raw))

    hook.__name__ = f"hook_{decoder.__name__}"
    return hook


def default_registry() -> HookRegistry:
    """Return a fresh registry holding the built-in hooks."""

    return HookRegistry(
        {
            Root: [_hook(decode_root)],
            Port: [_hook(decode_port)],
            HeaderSet: [_hook(decode_headers)],
            Compression: [_hook(decode_compression)],
            Certificate: [_hook(decode_certificate)],
            PrivateKey: [_hook(decode_private_key)],
            ssl.TLSVersion: [_hook(decode_tls_version)],
            CurveSet: [_hook(decode_curves)],
            CipherSuiteSet: [_hook(decode_ciphers)],
            ACMEEmail: [_hook(decode_email)],
            ACMEURL: [_hook(decode_url)],
            ACMEDomains: [_hook(decode_domains)],
            ACMEChallengePath: [_hook(decode_challenge_path)],
        }
    )


_MISSING = object()


def decode_tree(
    merged: Mapping[str, object],
    registry: HookRegistry | None = None,
    *,
    fields: Iterable[FieldSpec] = FIELDS,
) -> Configuration:
    """Decode every field of *merged* and assemble the :class:`Configuration`.

    Fields absent from *merged* or decoding to ``None`` keep the dataclass
    default. Any exception raised by a hook is re-raised as
    :class:`FieldDecodeError` chained to the original error.

    Examples
    --------
    >>> config = decode_tree({"root": "/", "port": "8443", "metrics": {"enabled": "yes"}})
    >>> config.port, config.metrics.enabled
    (8443, True)
    """

    registry = registry if registry is not None else default_registry()
    sections: dict[tuple[str, ...], dict[str, Any]] = {(): {}, ("tls",): {}, ("tls", "acme"): {}, ("metrics",): {}}
    for spec in fields:
        raw = _lookup(merged, spec)
        if raw is _MISSING:
            continue
        try:
            value = registry.decode(spec.target, raw)
        except Exception as exc:
            log_error("field_invalid", field=spec.key, error=str(exc), error_type=type(exc).__name__)
            raise FieldDecodeError(spec.key, exc) from exc
        if value is None:
            continue
        log_debug("field_decoded", field=spec.key, type=type(value).__name__)
        sections[spec.attribute[:-1]][spec.attribute[-1]] = value

    top = sections[()]
    if "root" not in top:
        error = ValidationError("root is required")
        raise FieldDecodeError("root", error) from error
    tls = TLSConfig(**sections[("tls",)], acme=ACMEConfig(**sections[("tls", "acme")]))
    _check_version_bounds(tls)
    return Configuration(**top, tls=tls, metrics=MetricsConfig(**sections[("metrics",)]))


def _lookup(merged: Mapping[str, object], spec: FieldSpec) -> object:
    """Return the raw value stored under *spec*'s dotted key, or ``_MISSING``."""

    cursor: object = merged
    walked: list[str] = []
    for segment in spec.segments:
        if not isinstance(cursor, Mapping):
            error = ShapeError(f"{'.'.join(walked)} must be a mapping", expected="map", actual=shape_name(to_raw(cursor)))
            raise FieldDecodeError(".".join(walked), error) from error
        if segment not in cursor:
            return _MISSING
        cursor = cursor[segment]
        walked.append(segment)
    return cursor


def _check_version_bounds(tls: TLSConfig) -> None:
    if tls.max_version is not None and tls.max_version < tls.min_version:
        error = ValidationError(
            f"maximum TLS version {tls.max_version.name} is lower than minimum TLS version {tls.min_version.name}"
        )
        raise FieldDecodeError("tls.maxVersion", error) from error
