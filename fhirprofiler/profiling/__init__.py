"""Profile application: path resolution, output building, annotation.

Entry point: apply_profile(base, constraints) -> ProfilingResult
"""

from .annotations import (
    AnnotationNamespaces,
    DEFAULT_NAMESPACES,
    SLICING_SOURCE,
    DOMAIN_SOURCE,
    DOCUMENTATION_SOURCE,
)
from .builder import create_output_schema, ensure_class, copy_feature, attach_feature
from .engine import ProfileEngine, apply_profile
from .resolver import ResolvedPath, Skip, resolve

__all__ = [
    "AnnotationNamespaces",
    "DEFAULT_NAMESPACES",
    "SLICING_SOURCE",
    "DOMAIN_SOURCE",
    "DOCUMENTATION_SOURCE",
    "create_output_schema",
    "ensure_class",
    "copy_feature",
    "attach_feature",
    "ProfileEngine",
    "apply_profile",
    "ResolvedPath",
    "Skip",
    "resolve",
]
