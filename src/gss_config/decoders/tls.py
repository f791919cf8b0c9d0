"""Decoders for TLS material and protocol parameters.

Purpose
-------
Turn configuration strings into the objects the HTTPS listener needs:
certificates, private keys, protocol version bounds, key-exchange curves, and
cipher suites.

Contents
--------
* :func:`decode_certificate` – inline PEM first, then a file path.
* :func:`decode_private_key` – same two-stage strategy; the PEM label selects
  the parser (PKCS#1 RSA, SEC1 EC, PKCS#8 wrapping RSA/EC/Ed25519).
* :func:`decode_tls_version` – ``TLS1.0`` … ``TLS1.3`` to :class:`ssl.TLSVersion`.
* :func:`decode_curves` / :func:`decode_ciphers` – ordered, duplicate-free sets
  from a comma-separated string or a list.
* :func:`first_pem_block` – locate the first PEM block in a byte string.

Side Effects
------------
Certificate and key decoders read files when the value is not inline PEM. The
material itself is never logged.
"""

from __future__ import annotations

import base64
import binascii
import re
import ssl
from dataclasses import dataclass
from pathlib import Path

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa

from .shapes import expect_string, string_items
from ..domain.config import (
    CURVE_NAMES,
    TLS_VERSIONS,
    Certificate,
    CipherSuite,
    CipherSuiteSet,
    CurveSet,
    PrivateKey,
)
from ..domain.errors import CryptoMaterialError, ValidationError
from ..observability import log_debug

_PEM_BLOCK = re.compile(
    rb"-----BEGIN (?P<label>[A-Z0-9 ]+)-----\r?\n(?P<body>.*?)-----END (?P=label)-----",
    re.DOTALL,
)

_KEY_CLASSES = {
    "RSA PRIVATE KEY": (rsa.RSAPrivateKey,),
    "EC PRIVATE KEY": (ec.EllipticCurvePrivateKey,),
    "PRIVATE KEY": (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey, ed25519.Ed25519PrivateKey),
}


@dataclass(frozen=True, slots=True)
class PemBlock:
    """One armoured object: its label, DER payload, and normalised PEM text."""

    label: str
    der: bytes
    pem: bytes


def first_pem_block(data: bytes) -> PemBlock | None:
    """Return the first well-formed PEM block in *data*, or ``None``.

    Text outside the armour is ignored. A block whose body is not valid base64
    does not count as a block.

    Examples
    --------
    >>> first_pem_block(b"-----BEGIN DEMO-----\\nAAEC\\n-----END DEMO-----\\n").der
    b'\\x00\\x01\\x02'
    >>> first_pem_block(b"/etc/ssl/cert.pem") is None
    True
    """

    match = _PEM_BLOCK.search(data)
    if match is None:
        return None
    try:
        der = base64.b64decode(b"".join(match.group("body").split()), validate=True)
    except (binascii.Error, ValueError):
        return None
    return PemBlock(label=match.group("label").decode("ascii"), der=der, pem=match.group(0) + b"\n")


def decode_certificate(value: object) -> Certificate:
    """Decode an X.509 certificate given as inline PEM or as a file path.

    The string is first searched for a PEM block; when it holds one, that block
    must be a parseable ``CERTIFICATE``. Otherwise the string is read as a path
    and the file's first PEM block must be a parseable ``CERTIFICATE``.

    Raises
    ------
    CryptoMaterialError
        ``certificate file not found or unreadable`` when the path stage cannot
        read the file, ``invalid certificate content`` for anything that is not
        a valid certificate. ``stage`` names the failing stage.
    """

    text = expect_string(value, "certificate expects a string")
    block = first_pem_block(text.encode("utf-8"))
    if block is not None:
        return _parse_certificate(block, stage="inline", origin="inline PEM")

    data = _read_material(text, what="certificate")
    block = first_pem_block(data)
    if block is None:
        raise CryptoMaterialError(
            f"invalid certificate content: file {text} does not contain a valid PEM certificate",
            stage="file",
        )
    return _parse_certificate(block, stage="file", origin=f"file {text}")


def _parse_certificate(block: PemBlock, *, stage: str, origin: str) -> Certificate:
    if block.label != "CERTIFICATE":
        raise CryptoMaterialError(
            f"invalid certificate content: {origin} holds a {block.label!r} block, expected 'CERTIFICATE'",
            stage=stage,
        )
    try:
        certificate = x509.load_der_x509_certificate(block.der)
    except ValueError as exc:
        raise CryptoMaterialError(f"invalid certificate content: {origin}: {exc}", stage=stage) from exc
    log_debug("crypto_material_loaded", kind="certificate", stage=stage)
    return Certificate(pem=block.pem, certificate=certificate)


def decode_private_key(value: object) -> PrivateKey:
    """Decode a private key given as inline PEM or as a file path.

    Supported encodings
    -------------------
    * ``RSA PRIVATE KEY`` – PKCS#1 RSA.
    * ``EC PRIVATE KEY`` – SEC1 elliptic curve.
    * ``PRIVATE KEY`` – PKCS#8 wrapping RSA, EC, or Ed25519. Other wrapped
      algorithms are rejected.

    Encrypted keys are not supported.
    """

    text = expect_string(value, "private key expects a string")
    block = first_pem_block(text.encode("utf-8"))
    if block is not None:
        return _parse_private_key(block, stage="inline", origin="inline PEM")

    data = _read_material(text, what="private key")
    block = first_pem_block(data)
    if block is None:
        raise CryptoMaterialError(
            f"failed to parse private key: file {text} does not contain valid PEM data",
            stage="file",
        )
    return _parse_private_key(block, stage="file", origin=f"file {text}")


def _parse_private_key(block: PemBlock, *, stage: str, origin: str) -> PrivateKey:
    accepted = _KEY_CLASSES.get(block.label)
    if accepted is None:
        raise CryptoMaterialError(
            f"failed to parse private key: unsupported private key type {block.label!r} in {origin}",
            stage=stage,
        )
    try:
        key = serialization.load_pem_private_key(block.pem, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise CryptoMaterialError(f"failed to parse private key: {origin}: {exc}", stage=stage) from exc
    if not isinstance(key, accepted):
        raise CryptoMaterialError(
            f"failed to parse private key: unsupported key algorithm {type(key).__name__} "
            f"in {block.label!r} block of {origin}",
            stage=stage,
        )
    log_debug("crypto_material_loaded", kind="private_key", stage=stage, label=block.label)
    return PrivateKey(pem=block.pem, label=block.label, key=key)


def _read_material(path: str, *, what: str) -> bytes:
    try:
        return Path(path).read_bytes()
    except (OSError, ValueError) as exc:
        raise CryptoMaterialError(f"{what} file not found or unreadable: {exc}", stage="file") from exc


def decode_tls_version(value: object) -> ssl.TLSVersion:
    """Map ``TLS1.0`` … ``TLS1.3`` (any case) to :class:`ssl.TLSVersion`.

    Examples
    --------
    >>> decode_tls_version("tls1.3") is ssl.TLSVersion.TLSv1_3
    True
    """

    version = expect_string(value, "TLS version expects a string").strip().upper()
    try:
        return TLS_VERSIONS[version]
    except KeyError:
        raise ValidationError(f"unsupported TLS version: {version}") from None


def decode_curves(value: object) -> CurveSet:
    """Decode key-exchange curves; names are trimmed and case-insensitive.

    Examples
    --------
    >>> decode_curves("p-256, X25519").openssl_names()
    ['prime256v1', 'X25519']
    """

    curves = []
    for item in string_items(value, "TLS curves"):
        name = item.strip().upper()
        curve = CURVE_NAMES.get(name)
        if curve is None:
            raise ValidationError(f"unsupported TLS curve: {name}")
        if curve in curves:
            raise ValidationError(f"duplicate TLS curves: {name}")
        curves.append(curve)
    return CurveSet(curves)


def decode_ciphers(value: object) -> CipherSuiteSet:
    """Decode cipher suites; names must match the IANA spelling exactly.

    Examples
    --------
    >>> decode_ciphers("TLS_AES_128_GCM_SHA256").openssl_cipher_string()
    'TLS_AES_128_GCM_SHA256'
    """

    suites = []
    for name in string_items(value, "TLS ciphers"):
        suite = CipherSuite.__members__.get(name)
        if suite is None:
            raise ValidationError(f"unsupported TLS cipher suite: {name}")
        if suite in suites:
            raise ValidationError(f"duplicate TLS cipher suite: {name}")
        suites.append(suite)
    return CipherSuiteSet(suites)
