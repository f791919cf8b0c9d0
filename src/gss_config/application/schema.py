"""Static description of every configurable key.

Purpose
-------
Keep the list of keys, their target types, and their defaults in one table so
the source adapters, the dispatcher, and the example generator agree on the
same schema.

Contents
--------
* :class:`FieldSpec` – one configurable key: dotted name, decode target,
  attribute path on :class:`~gss_config.domain.config.Configuration`.
* :data:`FIELDS` – the table, in decode order.
* :func:`default_layer` – the hard-coded lowest-precedence layer.
* :func:`env_name` – environment variable name for a dotted key.
* :func:`normalize_keys` – rewrite file keys to their canonical spelling.

System Role
-----------
Pure data and pure functions; no I/O except :func:`os.getcwd` when the caller
does not pass an explicit working directory to :func:`default_layer`.
"""

from __future__ import annotations

import os
import ssl
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..domain.config import (
    ACMEURL,
    ACMEChallengePath,
    ACMEDomains,
    ACMEEmail,
    Certificate,
    CipherSuiteSet,
    Compression,
    CurveSet,
    HeaderSet,
    Port,
    PrivateKey,
    Root,
)
from ..observability import log_debug


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """One configurable key.

    ``attribute`` is the path of dataclass attributes the decoded value lands
    on, e.g. ``("tls", "acme", "challenge_path")`` for ``tls.acme.challengePath``.
    """

    key: str
    target: Any
    attribute: tuple[str, ...]

    @property
    def segments(self) -> tuple[str, ...]:
        return tuple(self.key.split("."))


FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("root", Root, ("root",)),
    FieldSpec("port", Port, ("port",)),
    FieldSpec("headers", HeaderSet, ("headers",)),
    FieldSpec("compression", Compression, ("compression",)),
    FieldSpec("tls.crt", Certificate, ("tls", "certificate")),
    FieldSpec("tls.key", PrivateKey, ("tls", "key")),
    FieldSpec("tls.ca", Certificate, ("tls", "ca")),
    FieldSpec("tls.minVersion", ssl.TLSVersion, ("tls", "min_version")),
    FieldSpec("tls.maxVersion", ssl.TLSVersion, ("tls", "max_version")),
    FieldSpec("tls.curves", CurveSet, ("tls", "curves")),
    FieldSpec("tls.ciphers", CipherSuiteSet, ("tls", "ciphers")),
    FieldSpec("tls.acme.enabled", bool, ("tls", "acme", "enabled")),
    FieldSpec("tls.acme.email", ACMEEmail, ("tls", "acme", "email")),
    FieldSpec("tls.acme.url", ACMEURL, ("tls", "acme", "url")),
    FieldSpec("tls.acme.domains", ACMEDomains, ("tls", "acme", "domains")),
    FieldSpec("tls.acme.challengePath", ACMEChallengePath, ("tls", "acme", "challenge_path")),
    FieldSpec("metrics.enabled", bool, ("metrics", "enabled")),
    FieldSpec("metrics.metricsPort", Port, ("metrics", "metrics_port")),
)

DEFAULT_CURVES: tuple[str, ...] = ("P-256", "P-384", "P-521")

DEFAULT_CIPHERS: tuple[str, ...] = (
    "TLS_AES_256_GCM_SHA384",
    "TLS_CHACHA20_POLY1305_SHA256",
    "TLS_ECDHE_ECDSA_WITH_AES_256_CBC_SHA",
    "TLS_ECDHE_ECDSA_WITH_AES_256_GCM_SHA384",
    "TLS_ECDHE_ECDSA_WITH_CHACHA20_POLY1305_SHA256",
    "TLS_ECDHE_RSA_WITH_AES_256_CBC_SHA",
    "TLS_ECDHE_RSA_WITH_AES_256_GCM_SHA384",
    "TLS_ECDHE_RSA_WITH_CHACHA20_POLY1305_SHA256",
    "TLS_RSA_WITH_AES_256_GCM_SHA384",
)

# Keys whose children are data, never schema keys.
_OPAQUE_KEYS = frozenset({"headers"})


def field_by_key(key: str) -> FieldSpec:
    """Return the :class:`FieldSpec` registered for dotted *key*.

    Examples
    --------
    >>> field_by_key("tls.minVersion").attribute
    ('tls', 'min_version')
    """

    for spec in FIELDS:
        if spec.key == key:
            return spec
    raise KeyError(key)


def default_layer(cwd: str | None = None) -> dict[str, object]:
    """Return the defaults layer as a nested raw tree.

    Examples
    --------
    >>> layer = default_layer("/srv")
    >>> layer["root"], layer["port"], layer["tls"]["minVersion"]
    ('/srv', 8080, 'TLS1.2')
    """

    return {
        "root": cwd if cwd is not None else os.getcwd(),
        "port": 8080,
        "headers": {},
        "compression": "speed",
        "tls": {
            "minVersion": "TLS1.2",
            "curves": list(DEFAULT_CURVES),
            "ciphers": list(DEFAULT_CIPHERS),
            "acme": {"enabled": False},
        },
        "metrics": {"enabled": False, "metricsPort": 9090},
    }


def env_name(key: str, prefix: str = "") -> str:
    """Return the environment variable consulted for dotted *key*.

    Examples
    --------
    >>> env_name("tls.minVersion", "GSS_")
    'GSS_TLS_MINVERSION'
    >>> env_name("port")
    'PORT'
    """

    return prefix + key.replace(".", "_").upper()


def normalize_keys(tree: Mapping[str, object], *, path: str | None = None) -> dict[str, object]:
    """Rewrite the keys of a parsed file to their canonical spelling.

    Keys are matched case-insensitively against :data:`FIELDS` and the branch
    names leading to them. Unknown keys are dropped and logged at debug level.
    The content of opaque keys such as ``headers`` is passed through untouched.
    A section left empty (``null``) is dropped so lower layers keep their values.

    Examples
    --------
    >>> normalize_keys({"TLS": {"minversion": "TLS1.3"}, "headers": {"x-a": "b"}})
    {'tls': {'minVersion': 'TLS1.3'}, 'headers': {'x-a': 'b'}}
    >>> normalize_keys({"port": 1, "tls": None, "metrics": None})
    {'port': 1}
    """

    return _normalize_branch(tree, (), path)


def _normalize_branch(tree: Mapping[str, object], segments: tuple[str, ...], path: str | None) -> dict[str, object]:
    known = _children(segments)
    result: dict[str, object] = {}
    for key, value in tree.items():
        canonical = known.get(str(key).lower())
        dotted = ".".join([*segments, str(key)])
        if canonical is None:
            log_debug("config_key_ignored", layer="file", path=path, key=dotted)
            continue
        child = (*segments, canonical)
        if value is None and canonical not in _OPAQUE_KEYS and _children(child):
            log_debug("config_section_empty", layer="file", path=path, key=dotted)
            continue
        if isinstance(value, Mapping) and canonical not in _OPAQUE_KEYS and _children(child):
            result[canonical] = _normalize_branch(value, child, path)
        else:
            result[canonical] = value
    return result


def _children(segments: tuple[str, ...]) -> dict[str, str]:
    """Map lower-cased names to canonical names one level below *segments*."""

    depth = len(segments)
    names: dict[str, str] = {}
    for spec in FIELDS:
        parts = spec.segments
        if len(parts) > depth and parts[:depth] == segments:
            names[parts[depth].lower()] = parts[depth]
    return names
