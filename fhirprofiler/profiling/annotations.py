"""Constraint-to-annotation transformation.

Applies one profile constraint onto a copied output feature in four
independent steps:

1. Bounds: lower/upper multiplicity
2. Slicing: discriminators, rules, ordering, description
3. Must-support and binding (domain namespace)
4. Documentation (short text, falling back to the definition)

Each step is a no-op when the constraint leaves its inputs unset. The
slicing, domain and documentation steps write to different annotation
sources, so their order does not matter.
"""

import logging
import re
from dataclasses import dataclass

from ..core.models import (
    UNBOUNDED,
    UNBOUNDED_MAX,
    Constraint,
    Diagnostic,
    DiagnosticCategory,
    FeatureDescriptor,
    Severity,
)


logger = logging.getLogger(__name__)


SLICING_SOURCE = "http://hl7.org/fhir/slicing"
DOMAIN_SOURCE = "http://hl7.org/fhir"
DOCUMENTATION_SOURCE = "http://www.eclipse.org/emf/2002/GenModel"


@dataclass(frozen=True)
class AnnotationNamespaces:
    """Annotation sources written by the applier."""

    slicing: str = SLICING_SOURCE
    domain: str = DOMAIN_SOURCE
    documentation: str = DOCUMENTATION_SOURCE


DEFAULT_NAMESPACES = AnnotationNamespaces()

_NUMERAL = re.compile(r"[0-9]+")

MAX_UPPER_BOUND = 2**31 - 1
"""Largest bound an Ecore EInt can hold."""


# =============================================================================
# Bounds
# =============================================================================


def parse_upper_bound(value: str) -> int | None:
    """Parse a max cardinality string.

    ``"*"`` maps to UNBOUNDED. Returns None when the value is not a
    non-negative integer or does not fit in an EInt.
    """
    text = value.strip()
    if text == UNBOUNDED_MAX:
        return UNBOUNDED
    if not _NUMERAL.fullmatch(text):
        return None
    bound = int(text)
    if bound > MAX_UPPER_BOUND:
        return None
    return bound


def apply_bounds(
    constraint: Constraint, feature: FeatureDescriptor
) -> Diagnostic | None:
    """Set lower/upper bounds from the constraint.

    An unparsable max leaves the upper bound untouched and returns a
    diagnostic.
    """
    if constraint.min is not None:
        feature.lower_bound = constraint.min

    if constraint.max is None:
        return None

    upper = parse_upper_bound(constraint.max)
    if upper is None:
        logger.warning(
            "Invalid max cardinality %r on %s; keeping upper bound %s",
            constraint.max,
            constraint.path,
            feature.upper_bound,
        )
        return Diagnostic(
            severity=Severity.WARNING,
            category=DiagnosticCategory.INVALID_UPPER_BOUND,
            path=constraint.path,
            feature_name=feature.name,
            value=constraint.max,
            message=f"invalid max cardinality {constraint.max!r}; upper bound left unchanged",
        )

    feature.upper_bound = upper
    return None


# =============================================================================
# Slicing
# =============================================================================


def apply_slicing(
    constraint: Constraint,
    feature: FeatureDescriptor,
    namespaces: AnnotationNamespaces = DEFAULT_NAMESPACES,
) -> None:
    """Record slicing metadata on the slicing annotation.

    Keys are set last-write-wins; keys this call does not set are kept.
    """
    slicing = constraint.slicing
    if slicing is None:
        return

    details = feature.ensure_annotation(namespaces.slicing).details

    for i, discriminator in enumerate(slicing.discriminator):
        details[f"discriminator:{i}"] = f"{discriminator.type}:{discriminator.path}"

    if slicing.rules is not None:
        details["rules"] = slicing.rules
    if slicing.ordered is not None:
        details["ordered"] = "true" if slicing.ordered else "false"
    if slicing.description:
        details["description"] = slicing.description


# =============================================================================
# Must-support / binding
# =============================================================================


def apply_domain(
    constraint: Constraint,
    feature: FeatureDescriptor,
    namespaces: AnnotationNamespaces = DEFAULT_NAMESPACES,
) -> None:
    """Record mustSupport and binding details on the domain annotation."""
    details = feature.ensure_annotation(namespaces.domain).details

    # Absence means "not asserted"; there is no explicit false marker
    if constraint.must_support is True:
        details["mustSupport"] = "true"

    binding = constraint.binding
    if binding is not None:
        if binding.value_set is not None:
            details["binding.valueSet"] = binding.value_set
        if binding.strength is not None:
            details["binding.strength"] = str(binding.strength)


# =============================================================================
# Documentation
# =============================================================================


def documentation_for(constraint: Constraint) -> str | None:
    """Short text if present (even when empty), else the definition."""
    if constraint.short is not None:
        return constraint.short
    return constraint.definition


def apply_documentation(
    constraint: Constraint,
    feature: FeatureDescriptor,
    namespaces: AnnotationNamespaces = DEFAULT_NAMESPACES,
) -> None:
    doc = documentation_for(constraint)
    if doc is None:
        return
    feature.ensure_annotation(namespaces.documentation).details["documentation"] = doc


# =============================================================================
# Main Entry Point
# =============================================================================


def apply(
    constraint: Constraint,
    feature: FeatureDescriptor,
    namespaces: AnnotationNamespaces = DEFAULT_NAMESPACES,
) -> list[Diagnostic]:
    """Apply every annotation step and return any diagnostics."""
    diagnostics: list[Diagnostic] = []

    bounds_issue = apply_bounds(constraint, feature)
    if bounds_issue is not None:
        diagnostics.append(bounds_issue)

    apply_slicing(constraint, feature, namespaces)
    apply_domain(constraint, feature, namespaces)
    apply_documentation(constraint, feature, namespaces)

    return diagnostics
