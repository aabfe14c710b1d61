"""Boundary errors.

These abort a run. Per-constraint problems are reported as Diagnostic
records instead (see core.models.diagnostics).
"""


class ProfilerError(Exception):
    """Base class for fatal fhirprofiler errors."""


class SchemaLoadError(ProfilerError):
    """The base schema could not be read or parsed."""


class ProfileLoadError(ProfilerError):
    """The profile could not be read or parsed."""


class SchemaWriteError(ProfilerError):
    """The output schema could not be serialized or written."""
