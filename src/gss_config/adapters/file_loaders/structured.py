"""Structured configuration file loaders.

Purpose
-------
Convert the on-disk YAML document into a Python mapping that the merge layer
understands. The loader is a small wrapper around ``yaml.safe_load`` so error
handling and observability live in one place.

Contents
--------
* :class:`BaseFileLoader` – shared helpers for reading files and validating
  mapping outputs.
* :class:`YAMLFileLoader` – loader for the YAML configuration file.

System Role
-----------
Invoked by :func:`gss_config.core.read_config_raw` when ``CONFIG_PATH`` (or its
prefixed variant) names a file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping

import yaml

from ...domain.errors import InvalidFormat, NotFound
from ...observability import log_debug, log_error


class BaseFileLoader:
    """Common utilities shared by the structured file loaders."""

    def _read(self, path: str) -> bytes:
        """Read *path* as bytes, raising :class:`NotFound` when it is missing.

        Unreadable files (permissions, directories) raise
        :class:`InvalidFormat` so the caller sees one error family.

        Side Effects
        ------------
        Emits ``config_file_read`` debug events.

        Examples
        --------
        >>> from tempfile import NamedTemporaryFile
        >>> tmp = NamedTemporaryFile(delete=False)
        >>> _ = tmp.write(b"port: 8080")
        >>> tmp.close()
        >>> BaseFileLoader()._read(tmp.name)[:4]
        b'port'
        >>> Path(tmp.name).unlink()
        """

        file_path = Path(path)
        if not file_path.is_file():
            raise NotFound(f"Configuration file not found: {path}")
        try:
            payload = file_path.read_bytes()
        except OSError as exc:
            raise InvalidFormat(f"Configuration file {path} is unreadable: {exc}") from exc
        log_debug("config_file_read", path=path, layer="file", size=len(payload))
        return payload

    @staticmethod
    def _ensure_mapping(data: object, *, path: str) -> Mapping[str, object]:
        """Ensure *data* behaves like a mapping, otherwise raise ``InvalidFormat``.

        Examples
        --------
        >>> BaseFileLoader._ensure_mapping({"port": 1}, path="demo")
        {'port': 1}
        >>> BaseFileLoader._ensure_mapping(42, path="demo")
        Traceback (most recent call last):
        ...
        gss_config.domain.errors.InvalidFormat: File demo did not produce a mapping
        """

        if not isinstance(data, Mapping):
            raise InvalidFormat(f"File {path} did not produce a mapping")
        return data


class YAMLFileLoader(BaseFileLoader):
    """Load YAML documents with ``yaml.safe_load``."""

    def load(self, path: str) -> Mapping[str, object]:
        """Return mapping extracted from the YAML file at *path*.

        An empty document yields an empty mapping.

        Raises
        ------
        NotFound
            When *path* does not name a regular file.
        InvalidFormat
            When the file is unreadable, is not valid YAML, or its top level is
            not a mapping.

        Examples
        --------
        >>> from tempfile import NamedTemporaryFile
        >>> tmp = NamedTemporaryFile('w', delete=False, encoding='utf-8', suffix='.yaml')
        >>> _ = tmp.write('tls:\\n  minVersion: TLS1.3\\n')
        >>> tmp.close()
        >>> YAMLFileLoader().load(tmp.name)["tls"]
        {'minVersion': 'TLS1.3'}
        >>> Path(tmp.name).unlink()
        """

        try:
            data = yaml.safe_load(self._read(path))
        except yaml.YAMLError as exc:
            log_error("config_file_invalid", layer="file", path=path, format="yaml", error=str(exc))
            raise InvalidFormat(f"Invalid YAML in {path}: {exc}") from exc
        if data is None:
            data = {}
        result = self._ensure_mapping(data, path=path)
        log_debug("config_file_loaded", layer="file", path=path, format="yaml")
        return result
