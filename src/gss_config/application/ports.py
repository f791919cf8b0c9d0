"""Application-layer ports describing adapter responsibilities.

Purpose
-------
Define the structural contracts the source adapters satisfy so the composition
root can orchestrate the layers without depending on concrete implementations.

Contents
--------
* :class:`FileLoader` – parses the YAML configuration file.
* :class:`EnvLoader` – materialises the prefixed process environment.
* :class:`Merger` – combines layer payloads and produces provenance metadata.

System Role
-----------
:func:`gss_config.core.read_config_raw` accepts any object satisfying these
protocols, which keeps tests free to substitute in-memory fakes.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Protocol, Tuple


class FileLoader(Protocol):
    """Parse a structured configuration file into a mapping."""

    def load(self, path: str) -> Mapping[str, object]:
        """Read *path* and return a mapping or raise ``InvalidFormat``/``NotFound``."""


class EnvLoader(Protocol):
    """Translate process environment variables into a nested configuration tree.

    Why
    ----
    Environment variables are the highest-precedence layer; the loader decides
    which variables belong to the configuration and how they nest.
    """

    def load(self, prefix: str, keys: Iterable[str]) -> Mapping[str, object]:
        """Return the values of ``<prefix><KEY>`` variables for each dotted key."""


class Merger(Protocol):
    """Combine layers and produce both merged data and provenance metadata."""

    def __call__(
        self, layers: Iterable[tuple[str, Mapping[str, object], str | None]]
    ) -> Tuple[dict[str, object], dict[str, dict[str, object]]]:
        """Deterministically merge *layers* preserving precedence order."""
