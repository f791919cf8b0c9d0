"""Shared fixtures: an isolated environment and freshly generated TLS material."""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa, x25519
from cryptography.x509.oid import NameOID

from gss_config.application.schema import FIELDS, env_name

_NO_ENCRYPTION = serialization.NoEncryption()


@dataclass(frozen=True)
class Material:
    """PEM text for one key and a certificate issued for it."""

    certificate: str
    pkcs1_or_sec1: str | None
    pkcs8: str


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove variables that would leak the host's configuration into tests."""

    monkeypatch.delenv("GSS_ENV_PREFIX", raising=False)
    monkeypatch.delenv("CONFIG_PATH", raising=False)
    for spec in FIELDS:
        monkeypatch.delenv(env_name(spec.key), raising=False)


def _self_signed(key, common_name: str) -> x509.Certificate:
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.datetime.now(datetime.timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
    )
    algorithm = None if isinstance(key, ed25519.Ed25519PrivateKey) else hashes.SHA256()
    return builder.sign(key, algorithm)


def _material(key, common_name: str, *, traditional: bool) -> Material:
    certificate = _self_signed(key, common_name).public_bytes(serialization.Encoding.PEM).decode("ascii")
    pkcs8 = key.private_bytes(
        serialization.Encoding.PEM, serialization.PrivateFormat.PKCS8, _NO_ENCRYPTION
    ).decode("ascii")
    legacy = None
    if traditional:
        legacy = key.private_bytes(
            serialization.Encoding.PEM, serialization.PrivateFormat.TraditionalOpenSSL, _NO_ENCRYPTION
        ).decode("ascii")
    return Material(certificate=certificate, pkcs1_or_sec1=legacy, pkcs8=pkcs8)


@pytest.fixture(scope="session")
def rsa_material() -> Material:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return _material(key, "rsa.gss.test", traditional=True)


@pytest.fixture(scope="session")
def ec_material() -> Material:
    key = ec.generate_private_key(ec.SECP256R1())
    return _material(key, "ec.gss.test", traditional=True)


@pytest.fixture(scope="session")
def ed25519_material() -> Material:
    key = ed25519.Ed25519PrivateKey.generate()
    return _material(key, "ed25519.gss.test", traditional=False)


@pytest.fixture(scope="session")
def x25519_pkcs8() -> str:
    key = x25519.X25519PrivateKey.generate()
    return key.private_bytes(
        serialization.Encoding.PEM, serialization.PrivateFormat.PKCS8, _NO_ENCRYPTION
    ).decode("ascii")


@pytest.fixture()
def tls_files(tmp_path: Path, rsa_material: Material) -> dict[str, Path]:
    """Write an RSA certificate and PKCS#1 key to disk and return their paths."""

    crt = tmp_path / "server.crt"
    key = tmp_path / "server.key"
    crt.write_text(rsa_material.certificate, encoding="ascii")
    key.write_text(rsa_material.pkcs1_or_sec1 or "", encoding="ascii")
    return {"crt": crt, "key": key}
