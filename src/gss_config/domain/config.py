"""Typed configuration value objects.

Purpose
-------
Anchor the immutable :class:`Configuration` handed to the static file server
together with every domain type a decode hook can produce. The module belongs
to the domain layer and performs no I/O.

Contents
--------
* Scalar domain types: :class:`Root`, :class:`Compression`,
  :class:`ACMEEmail`, :class:`ACMEURL`, :class:`ACMEChallengePath`.
* Enumerations: :class:`TLSCurve`, :class:`CipherSuite` (IANA identifiers with
  OpenSSL names) and :data:`TLS_VERSIONS` mapping names to
  :class:`ssl.TLSVersion`.
* Sequences: :class:`CurveSet`, :class:`CipherSuiteSet`, :class:`ACMEDomains`.
* :class:`HeaderSet` – immutable ordered multimap of HTTP response headers.
* :class:`Certificate` / :class:`PrivateKey` – parsed cryptographic material
  alongside the PEM block it came from.
* Aggregates: :class:`ACMEConfig`, :class:`TLSConfig`, :class:`MetricsConfig`,
  :class:`Configuration`.

System Role
-----------
:func:`gss_config.core.build_config` returns a :class:`Configuration`; nothing
in this module keeps a reference to the sources it was decoded from.
"""

from __future__ import annotations

import ssl
import zlib
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Union

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa

KeyTypes = Union[rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey, ed25519.Ed25519PrivateKey]


class Root(str):
    """Canonical absolute path of the directory the server publishes."""


class Port(int):
    """TCP port number in ``0..65535``."""


class Compression(int):
    """Response compression level accepted by :mod:`zlib` and :mod:`gzip`.

    The valid range is ``DEFAULT`` (-1) through ``BEST`` (9); ``NONE`` disables
    compression.
    """

    NONE = zlib.Z_NO_COMPRESSION
    DEFAULT = zlib.Z_DEFAULT_COMPRESSION
    SPEED = zlib.Z_BEST_SPEED
    BEST = zlib.Z_BEST_COMPRESSION

    def __repr__(self) -> str:
        return f"Compression({int(self)})"


class ACMEEmail(str):
    """Account e-mail used for ACME registration."""


class ACMEURL(str):
    """Directory URL of the ACME server."""


class ACMEChallengePath(str):
    """URL path under which HTTP-01 challenge tokens are served."""


class TLSCurve(IntEnum):
    """Named key-exchange groups (IANA TLS Supported Groups registry)."""

    P256 = 23
    P384 = 24
    P521 = 25
    X25519 = 29

    @property
    def label(self) -> str:
        """Display name as written in configuration files (``P-256``)."""

        return self.name if self is TLSCurve.X25519 else f"{self.name[0]}-{self.name[1:]}"

    @property
    def openssl_name(self) -> str:
        return _CURVE_OPENSSL_NAMES[self]


_CURVE_OPENSSL_NAMES = {
    TLSCurve.P256: "prime256v1",
    TLSCurve.P384: "secp384r1",
    TLSCurve.P521: "secp521r1",
    TLSCurve.X25519: "X25519",
}


class CipherSuite(IntEnum):
    """Cipher suites selectable by name (IANA TLS Cipher Suites registry)."""

    TLS_RSA_WITH_AES_128_CBC_SHA256 = 0x003C
    TLS_RSA_WITH_AES_128_GCM_SHA256 = 0x009C
    TLS_RSA_WITH_AES_256_GCM_SHA384 = 0x009D
    TLS_AES_128_GCM_SHA256 = 0x1301
    TLS_AES_256_GCM_SHA384 = 0x1302
    TLS_CHACHA20_POLY1305_SHA256 = 0x1303
    TLS_ECDHE_ECDSA_WITH_RC4_128_SHA = 0xC007
    TLS_ECDHE_ECDSA_WITH_AES_128_CBC_SHA = 0xC009
    TLS_ECDHE_ECDSA_WITH_AES_256_CBC_SHA = 0xC00A
    TLS_ECDHE_RSA_WITH_RC4_128_SHA = 0xC011
    TLS_ECDHE_RSA_WITH_3DES_EDE_CBC_SHA = 0xC012
    TLS_ECDHE_RSA_WITH_AES_128_CBC_SHA = 0xC013
    TLS_ECDHE_RSA_WITH_AES_256_CBC_SHA = 0xC014
    TLS_ECDHE_ECDSA_WITH_AES_128_CBC_SHA256 = 0xC023
    TLS_ECDHE_RSA_WITH_AES_128_CBC_SHA256 = 0xC027
    TLS_ECDHE_ECDSA_WITH_AES_128_GCM_SHA256 = 0xC02B
    TLS_ECDHE_ECDSA_WITH_AES_256_GCM_SHA384 = 0xC02C
    TLS_ECDHE_RSA_WITH_AES_128_GCM_SHA256 = 0xC02F
    TLS_ECDHE_RSA_WITH_AES_256_GCM_SHA384 = 0xC030
    TLS_ECDHE_RSA_WITH_CHACHA20_POLY1305_SHA256 = 0xCCA8
    TLS_ECDHE_ECDSA_WITH_CHACHA20_POLY1305_SHA256 = 0xCCA9

    @property
    def openssl_name(self) -> str:
        return _CIPHER_OPENSSL_NAMES[self]


_CIPHER_OPENSSL_NAMES = {
    CipherSuite.TLS_RSA_WITH_AES_128_CBC_SHA256: "AES128-SHA256",
    CipherSuite.TLS_RSA_WITH_AES_128_GCM_SHA256: "AES128-GCM-SHA256",
    CipherSuite.TLS_RSA_WITH_AES_256_GCM_SHA384: "AES256-GCM-SHA384",
    CipherSuite.TLS_AES_128_GCM_SHA256: "TLS_AES_128_GCM_SHA256",
    CipherSuite.TLS_AES_256_GCM_SHA384: "TLS_AES_256_GCM_SHA384",
    CipherSuite.TLS_CHACHA20_POLY1305_SHA256: "TLS_CHACHA20_POLY1305_SHA256",
    CipherSuite.TLS_ECDHE_ECDSA_WITH_RC4_128_SHA: "ECDHE-ECDSA-RC4-SHA",
    CipherSuite.TLS_ECDHE_ECDSA_WITH_AES_128_CBC_SHA: "ECDHE-ECDSA-AES128-SHA",
    CipherSuite.TLS_ECDHE_ECDSA_WITH_AES_256_CBC_SHA: "ECDHE-ECDSA-AES256-SHA",
    CipherSuite.TLS_ECDHE_RSA_WITH_RC4_128_SHA: "ECDHE-RSA-RC4-SHA",
    CipherSuite.TLS_ECDHE_RSA_WITH_3DES_EDE_CBC_SHA: "ECDHE-RSA-DES-CBC3-SHA",
    CipherSuite.TLS_ECDHE_RSA_WITH_AES_128_CBC_SHA: "ECDHE-RSA-AES128-SHA",
    CipherSuite.TLS_ECDHE_RSA_WITH_AES_256_CBC_SHA: "ECDHE-RSA-AES256-SHA",
    CipherSuite.TLS_ECDHE_ECDSA_WITH_AES_128_CBC_SHA256: "ECDHE-ECDSA-AES128-SHA256",
    CipherSuite.TLS_ECDHE_RSA_WITH_AES_128_CBC_SHA256: "ECDHE-RSA-AES128-SHA256",
    CipherSuite.TLS_ECDHE_ECDSA_WITH_AES_128_GCM_SHA256: "ECDHE-ECDSA-AES128-GCM-SHA256",
    CipherSuite.TLS_ECDHE_ECDSA_WITH_AES_256_GCM_SHA384: "ECDHE-ECDSA-AES256-GCM-SHA384",
    CipherSuite.TLS_ECDHE_RSA_WITH_AES_128_GCM_SHA256: "ECDHE-RSA-AES128-GCM-SHA256",
    CipherSuite.TLS_ECDHE_RSA_WITH_AES_256_GCM_SHA384: "ECDHE-RSA-AES256-GCM-SHA384",
    CipherSuite.TLS_ECDHE_RSA_WITH_CHACHA20_POLY1305_SHA256: "ECDHE-RSA-CHACHA20-POLY1305",
    CipherSuite.TLS_ECDHE_ECDSA_WITH_CHACHA20_POLY1305_SHA256: "ECDHE-ECDSA-CHACHA20-POLY1305",
}

CURVE_NAMES: Mapping[str, TLSCurve] = {
    "P-256": TLSCurve.P256,
    "P-384": TLSCurve.P384,
    "P-521": TLSCurve.P521,
    "X25519": TLSCurve.X25519,
    "ED25519": TLSCurve.X25519,
}
"""Supported curve names (upper case); ``ED25519`` is accepted as an alias of X25519."""

TLS_VERSIONS: Mapping[str, ssl.TLSVersion] = {
    "TLS1.0": ssl.TLSVersion.TLSv1,
    "TLS1.1": ssl.TLSVersion.TLSv1_1,
    "TLS1.2": ssl.TLSVersion.TLSv1_2,
    "TLS1.3": ssl.TLSVersion.TLSv1_3,
}
"""Supported protocol version names, matched case-insensitively."""


class CurveSet(tuple):
    """Ordered, duplicate-free tuple of :class:`TLSCurve` members."""

    def openssl_names(self) -> list[str]:
        return [curve.openssl_name for curve in self]


class CipherSuiteSet(tuple):
    """Ordered, duplicate-free tuple of :class:`CipherSuite` members."""

    def openssl_cipher_string(self) -> str:
        """Return the suites joined the way :meth:`ssl.SSLContext.set_ciphers` expects."""

        return ":".join(suite.openssl_name for suite in self)


class ACMEDomains(tuple):
    """Ordered, duplicate-free tuple of host names (optionally ``*.``-prefixed)."""


class HeaderSet(Mapping[str, tuple[str, ...]]):
    """Immutable, ordered multimap of HTTP header names to values.

    Instances are produced by :func:`gss_config.decoders.etc.decode_headers`;
    names are already canonicalised and validated there.

    Examples
    --------
    >>> headers = HeaderSet([("X-Frame-Options", ("DENY",))])
    >>> headers["X-Frame-Options"]
    ('DENY',)
    >>> list(headers.items_flat())
    [('X-Frame-Options', 'DENY')]
    """

    __slots__ = ("_items",)

    def __init__(self, items: Any = ()) -> None:
        object.__setattr__(self, "_items", tuple((name, tuple(values)) for name, values in items))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("HeaderSet is immutable")

    def __getitem__(self, name: str) -> tuple[str, ...]:
        for key, values in self._items:
            if key == name:
                return values
        raise KeyError(name)

    def __iter__(self) -> Iterator[str]:
        return (key for key, _ in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, HeaderSet):
            return self._items == other._items
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._items)

    def __repr__(self) -> str:
        return f"HeaderSet({dict(self._items)!r})"

    def items_flat(self) -> Iterator[tuple[str, str]]:
        """Yield ``(name, value)`` pairs in insertion order, one per value."""

        for name, values in self._items:
            for value in values:
                yield name, value


@dataclass(frozen=True, slots=True)
class Certificate:
    """A parsed X.509 certificate and the PEM block it was decoded from."""

    pem: bytes
    certificate: x509.Certificate

    def summary(self) -> dict[str, Any]:
        cert = self.certificate
        return {
            "subject": cert.subject.rfc4514_string(),
            "issuer": cert.issuer.rfc4514_string(),
            "serial": format(cert.serial_number, "x"),
            "not_valid_after": cert.not_valid_after_utc.isoformat(),
            "sha256": cert.fingerprint(hashes.SHA256()).hex(),
        }


@dataclass(frozen=True, slots=True)
class PrivateKey:
    """A parsed private key and the PEM block it was decoded from.

    ``label`` records the PEM type (``RSA PRIVATE KEY``, ``EC PRIVATE KEY`` or
    ``PRIVATE KEY``) that selected the parser.
    """

    pem: bytes
    label: str
    key: KeyTypes

    @property
    def algorithm(self) -> str:
        if isinstance(self.key, rsa.RSAPrivateKey):
            return f"RSA-{self.key.key_size}"
        if isinstance(self.key, ec.EllipticCurvePrivateKey):
            return f"EC-{self.key.curve.name}"
        return "Ed25519"

    def __repr__(self) -> str:
        return f"PrivateKey(label={self.label!r}, algorithm={self.algorithm!r})"


@dataclass(frozen=True, slots=True)
class ACMEConfig:
    enabled: bool = False
    email: ACMEEmail | None = None
    url: ACMEURL | None = None
    domains: ACMEDomains = field(default_factory=ACMEDomains)
    challenge_path: ACMEChallengePath | None = None


@dataclass(frozen=True, slots=True)
class TLSConfig:
    """TLS material and protocol parameters for the HTTPS listener."""

    certificate: Certificate | None = None
    key: PrivateKey | None = None
    ca: Certificate | None = None
    min_version: ssl.TLSVersion = ssl.TLSVersion.TLSv1_2
    max_version: ssl.TLSVersion | None = None
    curves: CurveSet = field(default_factory=CurveSet)
    ciphers: CipherSuiteSet = field(default_factory=CipherSuiteSet)
    acme: ACMEConfig = field(default_factory=ACMEConfig)

    @property
    def enabled(self) -> bool:
        """``True`` when both a certificate and a key are configured."""

        return self.certificate is not None and self.key is not None


@dataclass(frozen=True, slots=True)
class MetricsConfig:
    enabled: bool = False
    metrics_port: Port = Port(9090)


@dataclass(frozen=True, slots=True)
class Configuration:
    """Fully decoded, validated configuration of the static file server.

    Why
    ----
    The server needs a single read-only object it can share between threads
    without re-validating anything.

    What
    ----
    Aggregates the served directory, listener port, injected response headers,
    compression level, TLS settings, and metrics toggle. Values are immutable
    and hold no reference to the sources they were merged from.
    """

    root: Root
    port: Port = Port(8080)
    headers: HeaderSet = field(default_factory=HeaderSet)
    compression: Compression = Compression(Compression.SPEED)
    tls: TLSConfig = field(default_factory=TLSConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serialisable summary; key material is never included.

        Examples
        --------
        >>> Configuration(root=Root("/srv")).to_dict()["compression"]
        1
        """

        tls = self.tls
        return {
            "root": str(self.root),
            "port": self.port,
            "headers": {name: list(values) for name, values in self.headers.items()},
            "compression": int(self.compression),
            "tls": {
                "enabled": tls.enabled,
                "crt": tls.certificate.summary() if tls.certificate else None,
                "key": tls.key.algorithm if tls.key else None,
                "ca": tls.ca.summary() if tls.ca else None,
                "minVersion": _version_name(tls.min_version),
                "maxVersion": _version_name(tls.max_version),
                "curves": [curve.label for curve in tls.curves],
                "ciphers": [suite.name for suite in tls.ciphers],
                "acme": {
                    "enabled": tls.acme.enabled,
                    "email": tls.acme.email,
                    "url": tls.acme.url,
                    "domains": list(tls.acme.domains),
                    "challengePath": tls.acme.challenge_path,
                },
            },
            "metrics": {"enabled": self.metrics.enabled, "metricsPort": self.metrics.metrics_port},
        }


def _version_name(version: ssl.TLSVersion | None) -> str | None:
    if version is None:
        return None
    for name, member in TLS_VERSIONS.items():
        if member is version:
            return name
    return version.name
