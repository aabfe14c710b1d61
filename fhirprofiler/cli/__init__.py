"""Command-line interface for fhirprofiler."""

from .app import app

__all__ = ["app"]
