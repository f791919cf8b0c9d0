"""Environment variable adapter.

Purpose
-------
Translate process environment variables into the nested tree the merge layer
understands. It forms the highest precedence layer of ``gss_config``.

Key behaviours
--------------
* The prefix comes from ``GSS_ENV_PREFIX``; it is upper-cased and joined to the
  variable names with ``_``.
* Each dotted schema key maps to one variable: ``tls.minVersion`` is read from
  ``<PREFIX>TLS_MINVERSION``.
* Empty variables are treated as unset.
* Values stay strings; the decoders coerce them to their target types.
* Emits structured logging via :mod:`gss_config.observability`.
"""

from __future__ import annotations

import os
from typing import Iterable, Mapping

from ...application.schema import env_name
from ...observability import log_debug

PREFIX_VARIABLE = "GSS_ENV_PREFIX"


def env_prefix(environ: Mapping[str, str] | None = None) -> str:
    """Return the variable-name prefix selected by ``GSS_ENV_PREFIX``.

    Examples
    --------
    >>> env_prefix({"GSS_ENV_PREFIX": "gss"})
    'GSS_'
    >>> env_prefix({"GSS_ENV_PREFIX": "APP_"})
    'APP_'
    >>> env_prefix({})
    ''
    """

    source = os.environ if environ is None else environ
    prefix = source.get(PREFIX_VARIABLE, "").strip().upper()
    if prefix and not prefix.endswith("_"):
        prefix += "_"
    return prefix


def config_path_variable(prefix: str) -> str:
    """Return the name of the variable that points at the YAML file.

    Examples
    --------
    >>> config_path_variable("GSS_")
    'GSS_CONFIG_PATH'
    >>> config_path_variable("")
    'CONFIG_PATH'
    """

    return f"{prefix}CONFIG_PATH"


class DefaultEnvLoader:
    """Load the environment variables that belong to the configuration schema."""

    def __init__(self, *, environ: Mapping[str, str] | None = None) -> None:
        """Initialise the loader with a specific ``environ`` mapping for testability.

        Parameters
        ----------
        environ:
            Mapping to read from. Defaults to :data:`os.environ`.
        """

        self._environ = os.environ if environ is None else environ

    def load(self, prefix: str, keys: Iterable[str]) -> dict[str, object]:
        """Return a nested mapping holding the variables set for *keys*.

        Parameters
        ----------
        prefix:
            Upper-case prefix including its trailing ``_`` (may be empty).
        keys:
            Dotted schema keys in canonical spelling.

        Side Effects
        ------------
        Emits an ``env_variables_loaded`` debug event listing the keys found.
        Values are not logged.

        Examples
        --------
        >>> loader = DefaultEnvLoader(environ={"GSS_TLS_MINVERSION": "TLS1.3", "GSS_PORT": ""})
        >>> loader.load("GSS_", ["port", "tls.minVersion"])
        {'tls': {'minVersion': 'TLS1.3'}}
        """

        collected: dict[str, object] = {}
        found: list[str] = []
        for key in keys:
            value = self._environ.get(env_name(key, prefix))
            if not value:
                continue
            assign_nested(collected, key, value)
            found.append(key)
        log_debug("env_variables_loaded", layer="env", path=None, keys=found)
        return collected


def assign_nested(target: dict[str, object], key: str, value: object) -> None:
    """Assign ``value`` inside ``target`` using ``.`` as the nesting delimiter.

    Examples
    --------
    >>> data: dict[str, object] = {}
    >>> assign_nested(data, 'tls.acme.enabled', 'true')
    >>> data
    {'tls': {'acme': {'enabled': 'true'}}}
    """

    parts = key.split(".")
    cursor = target
    for part in parts[:-1]:
        child = cursor.setdefault(part, {})
        if not isinstance(child, dict):
            raise ValueError(f"Cannot override scalar with mapping for key {key}")
        cursor = child
    cursor[parts[-1]] = value
