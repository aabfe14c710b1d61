"""All Pydantic models for fhirprofiler, organized by domain.

This package centralizes all model definitions:
- schema.py: Schema, classifiers, features, annotations
- profile.py: Profile constraints, slicing and binding specs
- diagnostics.py: Per-constraint diagnostics and run results
"""

# Schema models
from .schema import (
    UNBOUNDED,
    Annotation,
    FeatureDescriptor,
    ClassDescriptor,
    Schema,
)

# Profile models
from .profile import (
    UNBOUNDED_MAX,
    Discriminator,
    SlicingSpec,
    BindingSpec,
    Constraint,
    ConstraintList,
    ProfileSpec,
)

# Diagnostics
from .diagnostics import (
    Severity,
    DiagnosticCategory,
    Diagnostic,
    ProfilingResult,
)

__all__ = [
    # Schema
    "UNBOUNDED",
    "Annotation",
    "FeatureDescriptor",
    "ClassDescriptor",
    "Schema",
    # Profile
    "UNBOUNDED_MAX",
    "Discriminator",
    "SlicingSpec",
    "BindingSpec",
    "Constraint",
    "ConstraintList",
    "ProfileSpec",
    # Diagnostics
    "Severity",
    "DiagnosticCategory",
    "Diagnostic",
    "ProfilingResult",
]
