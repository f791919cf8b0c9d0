"""The generated examples must be accepted by the engine they document."""

from __future__ import annotations

from pathlib import Path

import yaml

from gss_config import build_config
from gss_config.application.schema import FIELDS, env_name
from gss_config.examples import generate_example


def _parse_env_file(path: Path) -> dict[str, str]:
    entries: dict[str, str] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        if not line or line.startswith("#"):
            continue
        name, _, value = line.partition("=")
        entries[name] = value
    return entries


def test_generate_example_writes_both_files(tmp_path: Path) -> None:
    written = generate_example(tmp_path / "out", prefix="GSS_")
    assert [path.name for path in written] == ["config.yaml", "config.env.example"]
    assert all(path.is_file() for path in written)


def test_generated_yaml_builds_a_configuration(tmp_path: Path) -> None:
    yaml_file, _ = generate_example(tmp_path)
    config = build_config(environ={"CONFIG_PATH": str(yaml_file)}, cwd=str(tmp_path))
    assert config.port == 8080
    assert config.headers["Cache-Control"] == ("no-cache", "no-store")
    assert yaml.safe_load(yaml_file.read_text(encoding="utf-8"))["metrics"]["metricsPort"] == 9090


def test_env_example_lists_every_key(tmp_path: Path) -> None:
    _, env_file = generate_example(tmp_path, prefix="APP_")
    entries = _parse_env_file(env_file)
    assert entries["GSS_ENV_PREFIX"] == "APP"
    text = env_file.read_text(encoding="utf-8")
    for spec in FIELDS:
        name = env_name(spec.key, "APP_")
        assert name in entries or f"# {name}=" in text


def test_env_example_values_decode(tmp_path: Path) -> None:
    _, env_file = generate_example(tmp_path)
    entries = _parse_env_file(env_file)
    assert not {"TLS_CRT", "TLS_KEY", "TLS_CA"} & entries.keys()
    entries["ROOT"] = str(tmp_path)
    config = build_config(environ=entries, cwd=str(tmp_path))
    assert tuple(config.tls.acme.domains) == ("example.com", "www.example.com")
    assert dict(config.headers) == {"X-Frame-Options": ("DENY",)}


def test_existing_files_are_kept_without_force(tmp_path: Path) -> None:
    target = tmp_path / "config.yaml"
    target.write_text("port: 1\n", encoding="utf-8")
    written = generate_example(tmp_path)
    assert [path.name for path in written] == ["config.env.example"]
    assert target.read_text(encoding="utf-8") == "port: 1\n"
    assert len(generate_example(tmp_path, force=True)) == 2
