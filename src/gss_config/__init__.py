"""Typed configuration decoding for the gss static file server.

``build_config`` merges defaults, an optional YAML file and the environment,
then decodes every key into an immutable :class:`Configuration`. The hook
registry and the raw merge are exported for callers that need to extend or
inspect the pipeline.
"""

from __future__ import annotations

from .application.dispatch import NOT_APPLICABLE, Decoded, HookRegistry, default_registry
from .core import LayerLoadError, build_config, read_config_raw
from .domain.config import Configuration
from .domain.errors import (
    ConfigError,
    CryptoMaterialError,
    FieldDecodeError,
    InvalidFormat,
    NotFound,
    ShapeError,
    ValidationError,
)
from .observability import bind_trace_id, get_logger

__all__ = [
    "Configuration",
    "ConfigError",
    "CryptoMaterialError",
    "Decoded",
    "FieldDecodeError",
    "HookRegistry",
    "InvalidFormat",
    "LayerLoadError",
    "NOT_APPLICABLE",
    "NotFound",
    "ShapeError",
    "ValidationError",
    "bind_trace_id",
    "build_config",
    "default_registry",
    "get_logger",
    "read_config_raw",
]
