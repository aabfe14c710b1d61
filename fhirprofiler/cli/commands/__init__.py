"""CLI commands for fhirprofiler."""

from . import (
    apply,
    inspect,
    config_cmd,
)

__all__ = [
    "apply",
    "inspect",
    "config_cmd",
]
