"""fhirprofiler: derive profile-specific Ecore schemas from FHIR profiles.

Typical use as a package:

    from fhirprofiler import load_schema, load_profile, apply_profile, save_schema

    base = load_schema("fhir.ecore")
    profile = load_profile("us-core-patient.json")
    result = apply_profile(base, profile.elements)
    save_schema(result.schema, "out.ecore")
"""

__version__ = "0.1.0"

from .core.errors import (
    ProfilerError,
    SchemaLoadError,
    ProfileLoadError,
    SchemaWriteError,
)
from .formats import load_schema, save_schema, dump_schema, load_profile
from .profiling import apply_profile, ProfileEngine

__all__ = [
    "__version__",
    "ProfilerError",
    "SchemaLoadError",
    "ProfileLoadError",
    "SchemaWriteError",
    "load_schema",
    "save_schema",
    "dump_schema",
    "load_profile",
    "apply_profile",
    "ProfileEngine",
]
