"""Application-layer merge policy.

Purpose
-------
Convert the ordered source layers (defaults, YAML file, environment) into a
single raw tree while tracking which layer supplied each leaf. The module is
free of I/O and of any configuration-library state: merging is a pure function
from layers to ``(merged, provenance)``.

Contents
    - ``merge_layers``: public entry point driven by a simple loop.
    - ``_merge_layer`` / ``_merge_mapping``: recursive stanzas that keep
      precedence logic readable.
    - ``_set_scalar`` / ``_merge_branch`` / ``_clear_branch``: helpers that
      narrate how provenance is updated when values change.

System Role
-----------
Receives layer payloads from :mod:`gss_config.core`, applies precedence
(``defaults → file → env``) per leaf key, and hands the merged tree to the
dispatcher. Lists are leaves: a higher layer replaces a lower layer's list
wholesale, nothing is concatenated or de-duplicated across layers.
"""

from __future__ import annotations

from collections.abc import Mapping
from copy import deepcopy
from typing import Iterable


def merge_layers(
    layers: Iterable[tuple[str, Mapping[str, object], str | None]],
) -> tuple[dict[str, object], dict[str, dict[str, object]]]:
    """Merge configuration *layers* honouring precedence and provenance.

    Parameters
    ----------
    layers:
        Iterable of ``(layer_name, mapping, source_path)`` tuples ordered from
        lowest to highest precedence.

    Returns
    -------
    tuple[dict[str, object], dict[str, dict[str, object]]]
        ``(merged_data, provenance)`` where ``provenance`` maps dotted keys to
        ``{"layer", "path", "key"}``.

    Examples
    --------
    >>> merged, meta = merge_layers([
    ...     ("defaults", {"tls": {"minVersion": "TLS1.2"}}, None),
    ...     ("env", {"tls": {"minVersion": "TLS1.1"}}, None),
    ... ])
    >>> merged["tls"]["minVersion"], meta["tls.minVersion"]["layer"]
    ('TLS1.1', 'env')
    """

    merged: dict[str, object] = {}
    meta: dict[str, dict[str, object]] = {}

    for layer_name, data, path in layers:
        _merge_layer(merged, meta, data, layer_name, path)
    return merged, meta


def _merge_layer(
    target: dict[str, object],
    meta: dict[str, dict[str, object]],
    payload: Mapping[str, object],
    layer: str,
    path: str | None,
) -> None:
    """Merge a single *payload* into *target* while tracking provenance."""

    clone = deepcopy(dict(payload))
    _merge_mapping(target, meta, clone, layer, path, [])


def _merge_mapping(
    target: dict[str, object],
    meta: dict[str, dict[str, object]],
    incoming: Mapping[str, object],
    layer: str,
    path: str | None,
    segments: list[str],
) -> None:
    for key, value in incoming.items():
        dotted = _dotted_key(segments, key)
        if isinstance(value, Mapping):
            _merge_branch(target, meta, key, value, dotted, layer, path, segments)
        else:
            _set_scalar(target, meta, key, value, dotted, layer, path)


def _merge_branch(
    target: dict[str, object],
    meta: dict[str, dict[str, object]],
    key: str,
    value: Mapping[str, object],
    dotted: str,
    layer: str,
    path: str | None,
    segments: list[str],
) -> None:
    """Merge mapping ``value`` into ``target[key]`` and recurse."""

    existing = target.get(key)
    payload = dict(value)
    if not value:
        if isinstance(existing, Mapping):
            return
        _clear_branch(meta, dotted)
        target[key] = {}
        meta[dotted] = {"layer": layer, "path": path, "key": dotted}
        return

    if isinstance(existing, Mapping):
        container: dict[str, object] = dict(existing)
        meta.pop(dotted, None)
    else:
        _clear_branch(meta, dotted)
        container = {}

    target[key] = container
    _merge_mapping(container, meta, payload, layer, path, segments + [key])


def _set_scalar(
    target: dict[str, object],
    meta: dict[str, dict[str, object]],
    key: str,
    value: object,
    dotted: str,
    layer: str,
    path: str | None,
) -> None:
    """Assign a leaf value and update provenance for ``dotted``."""

    _clear_branch(meta, dotted)
    target[key] = value
    meta[dotted] = {"layer": layer, "path": path, "key": dotted}


def _clear_branch(meta: dict[str, dict[str, object]], prefix: str) -> None:
    """Remove provenance entries that belong to *prefix* or its descendants."""

    for meta_key in list(meta.keys()):
        if meta_key == prefix or meta_key.startswith(prefix + "."):
            meta.pop(meta_key, None)


def _dotted_key(segments: list[str], key: str) -> str:
    return ".".join([*segments, key]) if segments else key
