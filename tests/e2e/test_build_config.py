"""End-to-end assembly: defaults, YAML file and environment through the decoders."""

from __future__ import annotations

import logging
import os
import ssl
from pathlib import Path

import pytest

from gss_config import (
    NOT_APPLICABLE,
    Decoded,
    FieldDecodeError,
    LayerLoadError,
    build_config,
    default_registry,
    read_config_raw,
)
from gss_config.application.schema import DEFAULT_CIPHERS
from gss_config.domain.config import Compression, Root, TLSCurve
from gss_config.domain.errors import CryptoMaterialError, InvalidFormat, NotFound


def _write_config(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(body, encoding="utf-8")
    return path


def test_defaults_only(tmp_path: Path) -> None:
    config = build_config(environ={}, cwd=str(tmp_path))
    assert config.root == os.path.realpath(tmp_path)
    assert config.port == 8080
    assert config.compression == Compression.SPEED
    assert config.tls.min_version is ssl.TLSVersion.TLSv1_2
    assert config.tls.max_version is None
    assert tuple(config.tls.curves) == (TLSCurve.P256, TLSCurve.P384, TLSCurve.P521)
    assert [suite.name for suite in config.tls.ciphers] == list(DEFAULT_CIPHERS)
    assert config.tls.enabled is False
    assert config.tls.acme.enabled is False
    assert config.metrics.enabled is False
    assert config.metrics.metrics_port == 9090
    assert len(config.headers) == 0


def test_environment_beats_file(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "tls:\n  minVersion: TLS1.3\nport: 9000\n")
    environ = {
        "GSS_ENV_PREFIX": "prefix",
        "PREFIX_CONFIG_PATH": str(path),
        "PREFIX_TLS_MINVERSION": "TLS1.1",
    }
    config = build_config(environ=environ, cwd=str(tmp_path))
    assert config.tls.min_version is ssl.TLSVersion.TLSv1_1
    assert config.port == 9000


def test_bare_config_path_without_prefix(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "compression: best\n")
    config = build_config(environ={"CONFIG_PATH": str(path)}, cwd=str(tmp_path))
    assert config.compression == Compression.BEST


def test_prefixed_variables_ignore_bare_names(tmp_path: Path) -> None:
    environ = {"GSS_ENV_PREFIX": "gss", "PORT": "1", "GSS_PORT": "2"}
    assert build_config(environ=environ, cwd=str(tmp_path)).port == 2


def test_empty_environment_value_does_not_override(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "port: 9000\n")
    config = build_config(environ={"CONFIG_PATH": str(path), "PORT": ""}, cwd=str(tmp_path))
    assert config.port == 9000


def test_file_keys_are_case_insensitive(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "TLS:\n  minversion: TLS1.3\n  MaxVersion: TLS1.3\nMETRICS:\n  Enabled: true\n")
    config = build_config(environ={"CONFIG_PATH": str(path)}, cwd=str(tmp_path))
    assert config.tls.min_version is ssl.TLSVersion.TLSv1_3
    assert config.tls.max_version is ssl.TLSVersion.TLSv1_3
    assert config.metrics.enabled is True


def test_file_list_replaces_default_list(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "tls:\n  curves: [X25519]\n")
    config = build_config(environ={"CONFIG_PATH": str(path)}, cwd=str(tmp_path))
    assert tuple(config.tls.curves) == (TLSCurve.X25519,)


def test_environment_csv_replaces_file_list(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "tls:\n  curves: [X25519, P-256]\n")
    environ = {"CONFIG_PATH": str(path), "TLS_CURVES": "P-521"}
    config = build_config(environ=environ, cwd=str(tmp_path))
    assert tuple(config.tls.curves) == (TLSCurve.P521,)


def test_null_file_value_keeps_default(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "compression:\ntls:\n  minVersion:\n")
    config = build_config(environ={"CONFIG_PATH": str(path)}, cwd=str(tmp_path))
    assert config.compression == Compression.SPEED
    assert config.tls.min_version is ssl.TLSVersion.TLSv1_2


def test_headers_from_file_and_environment(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "headers:\n  x-frame-options: DENY\n  Cache-Control: [no-cache, no-store]\n")
    config = build_config(environ={"CONFIG_PATH": str(path)}, cwd=str(tmp_path))
    assert dict(config.headers) == {"X-Frame-Options": ("DENY",), "Cache-Control": ("no-cache", "no-store")}

    config = build_config(environ={"HEADERS": '{"X-Test": "a"}'}, cwd=str(tmp_path))
    assert dict(config.headers) == {"X-Test": ("a",)}


def test_tls_material_from_files(tmp_path: Path, tls_files) -> None:
    environ = {"TLS_CRT": str(tls_files["crt"]), "TLS_KEY": str(tls_files["key"])}
    config = build_config(environ=environ, cwd=str(tmp_path))
    assert config.tls.enabled is True
    assert config.tls.key.label == "RSA PRIVATE KEY"
    assert config.tls.certificate.summary()["subject"] == "CN=rsa.gss.test"


def test_tls_material_inline_in_yaml(tmp_path: Path, ec_material) -> None:
    indent = "    "
    crt = "".join(indent + line + "\n" for line in ec_material.certificate.splitlines())
    key = "".join(indent + line + "\n" for line in ec_material.pkcs1_or_sec1.splitlines())
    path = _write_config(tmp_path, f"tls:\n  crt: |\n{crt}  key: |\n{key}  ca: |\n{crt}")
    config = build_config(environ={"CONFIG_PATH": str(path)}, cwd=str(tmp_path))
    assert config.tls.key.label == "EC PRIVATE KEY"
    assert config.tls.ca.certificate == config.tls.certificate.certificate


def test_acme_settings(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path,
        "tls:\n"
        "  acme:\n"
        "    enabled: true\n"
        "    email: admin@example.com\n"
        "    url: https://acme-v02.api.letsencrypt.org/directory\n"
        "    domains: [example.com, '*.example.com']\n"
        "    challengePath: /.well-known/acme-challenge/\n",
    )
    config = build_config(environ={"CONFIG_PATH": str(path)}, cwd=str(tmp_path))
    acme = config.tls.acme
    assert acme.enabled is True
    assert acme.email == "admin@example.com"
    assert tuple(acme.domains) == ("example.com", "*.example.com")
    assert acme.challenge_path == "/.well-known/acme-challenge/"


def test_root_from_environment(tmp_path: Path) -> None:
    public = tmp_path / "public"
    public.mkdir()
    config = build_config(environ={"ROOT": str(public)}, cwd="/")
    assert config.root == Root(os.path.realpath(public))


def test_decode_failure_names_the_field(tmp_path: Path) -> None:
    with pytest.raises(FieldDecodeError) as info:
        build_config(environ={"METRICS_METRICSPORT": "ninety"}, cwd=str(tmp_path))
    assert info.value.field == "metrics.metricsPort"


def test_crypto_failure_is_chained(tmp_path: Path) -> None:
    with pytest.raises(FieldDecodeError) as info:
        build_config(environ={"TLS_CRT": str(tmp_path / "missing.crt")}, cwd=str(tmp_path))
    assert info.value.field == "tls.crt"
    assert isinstance(info.value.__cause__, CryptoMaterialError)
    assert "certificate file not found or unreadable" in str(info.value)


def test_default_root_must_exist(tmp_path: Path) -> None:
    with pytest.raises(FieldDecodeError) as info:
        build_config(environ={}, cwd=str(tmp_path / "gone"))
    assert info.value.field == "root"


def test_broken_yaml_is_fatal(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "tls: [unclosed\n")
    with pytest.raises(LayerLoadError) as info:
        build_config(environ={"CONFIG_PATH": str(path)}, cwd=str(tmp_path))
    assert isinstance(info.value.__cause__, InvalidFormat)


def test_missing_file_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(LayerLoadError) as info:
        build_config(environ={"CONFIG_PATH": str(tmp_path / "missing.yaml")}, cwd=str(tmp_path))
    assert isinstance(info.value.__cause__, NotFound)


def test_non_mapping_document_is_fatal(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "- port\n")
    with pytest.raises(LayerLoadError):
        build_config(environ={"CONFIG_PATH": str(path)}, cwd=str(tmp_path))


def test_empty_file_is_an_empty_layer(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "")
    assert build_config(environ={"CONFIG_PATH": str(path)}, cwd=str(tmp_path)).port == 8080


def test_custom_registry(tmp_path: Path) -> None:
    def loud(target, raw):
        return Decoded(Compression(Compression.BEST)) if getattr(raw, "value", None) == "loud" else NOT_APPLICABLE

    registry = default_registry()
    registry.register(Compression, loud)
    config = build_config(environ={"COMPRESSION": "loud"}, cwd=str(tmp_path), registry=registry)
    assert config.compression == Compression.BEST


def test_read_config_raw_reports_provenance(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "port: 9000\ncompression: best\n")
    data, meta = read_config_raw(environ={"CONFIG_PATH": str(path), "COMPRESSION": "none"}, cwd=str(tmp_path))
    assert data["port"] == 9000
    assert meta["port"] == {"layer": "file", "path": str(path), "key": "port"}
    assert meta["compression"]["layer"] == "env"
    assert meta["tls.minVersion"]["layer"] == "defaults"


def test_build_logs_configuration_built(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="gss_config")
    build_config(environ={}, cwd=str(tmp_path))
    messages = [record.getMessage() for record in caplog.records]
    assert "layer_loaded" in messages
    assert messages[-1] == "configuration_built"


def test_configuration_is_independent_of_sources(tmp_path: Path) -> None:
    environ = {"PORT": "9000"}
    config = build_config(environ=environ, cwd=str(tmp_path))
    environ["PORT"] = "1"
    assert config.port == 9000


def test_empty_sections_keep_defaults(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "port: 9000\ntls:\nmetrics:\n")
    config = build_config(environ={"CONFIG_PATH": str(path)}, cwd=str(tmp_path))
    assert config.port == 9000
    assert config.tls.min_version is ssl.TLSVersion.TLSv1_2
    assert tuple(config.tls.curves) == (TLSCurve.P256, TLSCurve.P384, TLSCurve.P521)
    assert config.metrics.metrics_port == 9090


def test_empty_nested_section_keeps_defaults(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "tls:\n  minVersion: TLS1.3\n  acme:\n")
    config = build_config(environ={"CONFIG_PATH": str(path)}, cwd=str(tmp_path))
    assert config.tls.min_version is ssl.TLSVersion.TLSv1_3
    assert config.tls.acme.enabled is False
