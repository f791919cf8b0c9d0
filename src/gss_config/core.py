"""Composition root for ``gss_config``.

Purpose
-------
Provide the single entry point that orchestrates the defaults layer, the YAML
file, environment ingestion, merge policy enforcement and field decoding.

Contents
--------
* :class:`LayerLoadError` – error raised when the file layer fails to load.
* :func:`build_config` – high-level API returning a typed :class:`Configuration`.
* :func:`read_config_raw` – lower-level API returning the merged raw tree plus
  provenance.

System Role
-----------
This module connects the adapters (filesystem, environment) with the
dispatcher while emitting structured observability signals. It is the
canonical location for adjusting precedence rules or wiring new adapters.
Assembly runs once, synchronously, and either returns a complete
:class:`Configuration` or raises the first error.
"""

from __future__ import annotations

import os
from typing import Mapping

from .adapters.env.default import DefaultEnvLoader, config_path_variable, env_prefix
from .adapters.file_loaders.structured import YAMLFileLoader
from .application.dispatch import HookRegistry, decode_tree
from .application.merge import merge_layers
from .application.ports import EnvLoader, FileLoader
from .application.schema import FIELDS, default_layer, normalize_keys
from .domain.config import Configuration
from .domain.errors import ConfigError, InvalidFormat, NotFound
from .observability import bind_trace_id, log_debug, log_info, make_event


class LayerLoadError(ConfigError):
    """Raised when the configuration file cannot be materialised.

    Why
    ----
    The composition root surfaces adapter failures using the domain error
    taxonomy so callers can catch a single exception family.

    What
    -----
    Wraps :class:`InvalidFormat` or :class:`NotFound` with the file path.
    """


def build_config(
    *,
    environ: Mapping[str, str] | None = None,
    cwd: str | None = None,
    registry: HookRegistry | None = None,
    file_loader: FileLoader | None = None,
    env_loader: EnvLoader | None = None,
) -> Configuration:
    """Return the fully decoded, validated :class:`Configuration`.

    Why
    ----
    The server needs one immutable object describing how to run; every input
    problem must surface before it starts listening.

    What
    ----
    Delegates to :func:`read_config_raw` and hands the merged tree to
    :func:`~gss_config.application.dispatch.decode_tree`.

    Parameters
    ----------
    environ:
        Environment mapping; defaults to :data:`os.environ`.
    cwd:
        Directory used as the default ``root``; defaults to :func:`os.getcwd`.
    registry:
        Hook registry; defaults to the built-in hooks.

    Raises
    ------
    LayerLoadError
        The configured YAML file is missing, unreadable or malformed.
    FieldDecodeError
        A value failed to decode; ``field`` names its dotted key.

    Examples
    --------
    >>> config = build_config(environ={"PORT": "8443", "COMPRESSION": "best"}, cwd="/")
    >>> config.port, config.compression, config.tls.min_version.name
    (8443, Compression(9), 'TLSv1_2')
    """

    merged, _ = read_config_raw(environ=environ, cwd=cwd, file_loader=file_loader, env_loader=env_loader)
    config = decode_tree(merged, registry)
    log_info(
        "configuration_built",
        layer="final",
        path=None,
        tls_enabled=config.tls.enabled,
        acme_enabled=config.tls.acme.enabled,
        metrics_enabled=config.metrics.enabled,
    )
    return config


def read_config_raw(
    *,
    environ: Mapping[str, str] | None = None,
    cwd: str | None = None,
    file_loader: FileLoader | None = None,
    env_loader: EnvLoader | None = None,
) -> tuple[dict[str, object], dict[str, dict[str, object]]]:
    """Return the merged raw tree and its provenance metadata.

    Why
    ----
    Tooling sometimes needs the undecoded structure (for display, or to find
    which layer supplied a value) without running the decoders.

    What
    ----
    Collects the defaults, file and environment layers, merges them via
    :func:`merge_layers`, and returns ``(merged_data, provenance)``.

    Side Effects
    ------------
    - Calls :func:`bind_trace_id` with ``None`` to clear previous trace context.
    - Reads the YAML file when ``[<PREFIX>]CONFIG_PATH`` is set.
    - Emits structured log events for each layer.

    Examples
    --------
    >>> data, meta = read_config_raw(environ={"GSS_ENV_PREFIX": "gss", "GSS_PORT": "9000"}, cwd="/srv")
    >>> data["port"], meta["port"]["layer"], meta["root"]["layer"]
    ('9000', 'env', 'defaults')
    """

    bind_trace_id(None)
    source = _environ(environ)
    prefix = env_prefix(source)

    layers: list[tuple[str, Mapping[str, object], str | None]] = []
    defaults = default_layer(cwd)
    layers.append(("defaults", defaults, None))
    log_debug("layer_loaded", **make_event("defaults", None, {"keys": len(defaults)}))

    config_path = source.get(config_path_variable(prefix))
    if config_path:
        file_data = _load_file(config_path, file_loader or YAMLFileLoader())
        layers.append(("file", file_data, config_path))
        log_debug("layer_loaded", **make_event("file", config_path, {"keys": len(file_data)}))

    env_data = (env_loader or DefaultEnvLoader(environ=source)).load(prefix, [spec.key for spec in FIELDS])
    if env_data:
        layers.append(("env", env_data, None))
        log_debug("layer_loaded", **make_event("env", None, {"keys": len(env_data)}))

    merged = merge_layers(layers)
    log_debug("configuration_merged", layer="final", path=None, total_layers=len(layers))
    return merged


def _environ(environ: Mapping[str, str] | None) -> Mapping[str, str]:
    return os.environ if environ is None else environ


def _load_file(path: str, loader: FileLoader) -> dict[str, object]:
    """Load and normalise the YAML file at *path*; every failure is fatal.

    Examples
    --------
    >>> from pathlib import Path
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> file_path = Path(tmp.name) / "config.yaml"
    >>> _ = file_path.write_text("PORT: 9000\\nunknown: 1\\n", encoding="utf-8")
    >>> _load_file(str(file_path), YAMLFileLoader())
    {'port': 9000}
    >>> tmp.cleanup()
    """

    try:
        data = loader.load(path)
    except (InvalidFormat, NotFound) as exc:
        log_debug("layer_error", layer="file", path=path, error=str(exc))
        raise LayerLoadError(f"Failed to load configuration file {path}: {exc}") from exc
    return normalize_keys(data, path=path)


__all__ = [
    "Configuration",
    "ConfigError",
    "LayerLoadError",
    "build_config",
    "read_config_raw",
]
