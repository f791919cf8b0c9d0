"""Example configuration generator for ``gss_config``."""

from .generate import ExampleSpec, generate_example

__all__ = [
    "ExampleSpec",
    "generate_example",
]
