"""Example configuration asset generation helpers.

Purpose
-------
Produce a commented ``config.yaml`` and a matching ``config.env.example`` that
document every key the engine understands, so operators start from a file the
decoders accept.

Contents
    - ``ExampleSpec``: dataclass capturing a relative path and text content.
    - ``generate_example``: public orchestration expressed through helper verbs.
    - ``_build_specs``: yields the two example documents.
    - ``_write_examples`` / ``_should_write`` / ``_ensure_parent``: tiny
      filesystem helpers.

System Role
-----------
Called by the ``gss-config example`` command. The YAML values mirror
:func:`gss_config.application.schema.default_layer`, and the variable names come
from :func:`gss_config.application.schema.env_name`, so the examples cannot
drift from the schema.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from ..application.schema import DEFAULT_CIPHERS, DEFAULT_CURVES, FIELDS, env_name

YAML_FILENAME = "config.yaml"
ENV_FILENAME = "config.env.example"

_ENV_SAMPLES = {
    "root": "/srv/www",
    "port": "8080",
    "headers": "{X-Frame-Options: DENY}",
    "compression": "speed",
    "tls.crt": "/etc/gss/tls/server.crt",
    "tls.key": "/etc/gss/tls/server.key",
    "tls.ca": "/etc/gss/tls/ca.crt",
    "tls.minVersion": "TLS1.2",
    "tls.maxVersion": "TLS1.3",
    "tls.curves": ",".join(DEFAULT_CURVES),
    "tls.ciphers": "TLS_AES_256_GCM_SHA384,TLS_CHACHA20_POLY1305_SHA256",
    "tls.acme.enabled": "false",
    "tls.acme.email": "admin@example.com",
    "tls.acme.url": "https://acme-v02.api.letsencrypt.org/directory",
    "tls.acme.domains": "example.com,www.example.com",
    "tls.acme.challengePath": "/.well-known/acme-challenge/",
    "metrics.enabled": "false",
    "metrics.metricsPort": "9090",
}

# Paths to key material exist only on a real host.
_COMMENTED_SAMPLES = frozenset({"tls.crt", "tls.key", "tls.ca"})


@dataclass(slots=True)
class ExampleSpec:
    """Describe a single example file to be written to disk.

    Attributes
    ----------
    relative_path:
        Path relative to the destination directory.
    content:
        File contents (UTF-8 text) including explanatory comments.
    """

    relative_path: Path
    content: str


def generate_example(destination: str | Path, *, prefix: str = "", force: bool = False) -> list[Path]:
    """Write ``config.yaml`` and ``config.env.example`` under *destination*.

    Parameters
    ----------
    destination:
        Directory that will receive the files; created when missing.
    prefix:
        Environment prefix used for the variable names (``GSS_`` yields
        ``GSS_TLS_MINVERSION``). An empty prefix produces bare names.
    force:
        When ``True`` existing files are overwritten; otherwise they are
        skipped.

    Returns
    -------
    list[Path]
        File paths written during this invocation.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> [path.name for path in generate_example(tmp.name, prefix='GSS_')]
    ['config.yaml', 'config.env.example']
    >>> tmp.cleanup()
    """

    dest = Path(destination)
    return _write_examples(dest, _build_specs(prefix), force)


def _write_examples(destination: Path, specs: Iterator[ExampleSpec], force: bool) -> list[Path]:
    """Write all ``specs`` under *destination* honouring the *force* flag."""

    written: list[Path] = []
    for spec in specs:
        path = destination / spec.relative_path
        if not _should_write(path, force):
            continue
        _ensure_parent(path)
        path.write_text(spec.content, encoding="utf-8")
        written.append(path)
    return written


def _should_write(path: Path, force: bool) -> bool:
    return force or not path.exists()


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _build_specs(prefix: str) -> Iterator[ExampleSpec]:
    """Yield the YAML and environment example documents.

    Examples
    --------
    >>> specs = list(_build_specs("GSS_"))
    >>> "GSS_TLS_MINVERSION=TLS1.2" in specs[1].content
    True
    """

    yield ExampleSpec(Path(YAML_FILENAME), _yaml_document(prefix))
    yield ExampleSpec(Path(ENV_FILENAME), _env_document(prefix))


def _yaml_document(prefix: str) -> str:
    curves = "".join(f"    - {curve}\n" for curve in DEFAULT_CURVES)
    ciphers = "".join(f"    - {cipher}\n" for cipher in DEFAULT_CIPHERS)
    return (
        f"# Load with {env_name('config_path', prefix)}=/path/to/{YAML_FILENAME}\n"
        "# Environment variables override every value below.\n"
        "\n"
        "# Directory to publish; defaults to the working directory.\n"
        "# root: /srv/www\n"
        "port: 8080\n"
        "# none, default, speed, best, or -1..9\n"
        "compression: speed\n"
        "headers:\n"
        "  X-Frame-Options: DENY\n"
        "  Cache-Control:\n"
        "    - no-cache\n"
        "    - no-store\n"
        "tls:\n"
        "  # Certificate and key: inline PEM or a file path.\n"
        "  # crt: /etc/gss/tls/server.crt\n"
        "  # key: /etc/gss/tls/server.key\n"
        "  # ca: /etc/gss/tls/ca.crt\n"
        "  minVersion: TLS1.2\n"
        "  # maxVersion: TLS1.3\n"
        "  curves:\n"
        f"{curves}"
        "  ciphers:\n"
        f"{ciphers}"
        "  acme:\n"
        "    enabled: false\n"
        "    # email: admin@example.com\n"
        "    # url: https://acme-v02.api.letsencrypt.org/directory\n"
        "    # domains: [example.com, www.example.com]\n"
        "    # challengePath: /.well-known/acme-challenge/\n"
        "metrics:\n"
        "  enabled: false\n"
        "  metricsPort: 9090\n"
    )


def _env_document(prefix: str) -> str:
    lines = ["# Copy the variables you need into the server's environment."]
    if prefix:
        lines.append(f"GSS_ENV_PREFIX={prefix.rstrip('_')}")
    lines.append(f"# {env_name('config_path', prefix)}=/etc/gss/{YAML_FILENAME}")
    for spec in FIELDS:
        marker = "# " if spec.key in _COMMENTED_SAMPLES else ""
        lines.append(f"{marker}{env_name(spec.key, prefix)}={_ENV_SAMPLES[spec.key]}")
    return "\n".join(lines) + "\n"
