"""Profile application engine.

Drives one pass over a constraint list against a base schema:

    Resolve -> Skip
    Resolve -> EnsureClass -> CopyFeature -> Annotate -> Done

A constraint that cannot be resolved is dropped with exactly one
diagnostic and leaves the output schema untouched. No per-constraint
problem aborts the run.
"""

import logging
from collections.abc import Iterable

from ..core.models import (
    Constraint,
    Diagnostic,
    DiagnosticCategory,
    ProfilingResult,
    Schema,
    Severity,
)
from . import annotations
from .annotations import DEFAULT_NAMESPACES, AnnotationNamespaces
from .builder import attach_feature, create_output_schema, ensure_class
from .resolver import ResolvedPath, Skip, resolve


logger = logging.getLogger(__name__)


class ProfileEngine:
    """Applies constraints to a base schema, building one output schema.

    Example:
        >>> engine = ProfileEngine(base)
        >>> for i, constraint in enumerate(profile.elements):
        ...     engine.process(constraint, i)
        >>> result = engine.result()
    """

    def __init__(
        self,
        base: Schema,
        namespaces: AnnotationNamespaces = DEFAULT_NAMESPACES,
    ):
        self.base = base
        self.namespaces = namespaces
        self.output = create_output_schema(base)
        self.diagnostics: list[Diagnostic] = []
        self.applied_count = 0
        self.skipped_count = 0

    def process(self, constraint: Constraint, index: int | None = None) -> bool:
        """Apply one constraint. Returns False if it was skipped."""
        resolution = resolve(constraint.path, self.base)

        if isinstance(resolution, Skip):
            self._record_skip(constraint, resolution, index)
            return False

        self._apply_resolved(constraint, resolution, index)
        return True

    def _apply_resolved(
        self, constraint: Constraint, resolution: ResolvedPath, index: int | None
    ) -> None:
        if resolution.ignored_segments:
            logger.debug(
                "Path %s collapsed to %s.%s (ignored: %s)",
                constraint.path,
                resolution.cls.name,
                resolution.feature.name,
                ".".join(resolution.ignored_segments),
            )

        out_cls = ensure_class(self.output, resolution.cls.name)
        feature = attach_feature(out_cls, resolution.feature)

        for issue in annotations.apply(constraint, feature, self.namespaces):
            self.diagnostics.append(
                issue.model_copy(update={"index": index, "class_name": out_cls.name})
            )

        self.applied_count += 1

    def _record_skip(
        self, constraint: Constraint, skip: Skip, index: int | None
    ) -> None:
        if skip.category == DiagnosticCategory.MALFORMED_PATH:
            # Root elements (e.g. "Patient") appear in every snapshot
            severity = Severity.INFO
            logger.info("Skipping %s: %s", constraint.path, skip.reason)
        elif skip.category == DiagnosticCategory.CLASS_NOT_FOUND:
            severity = Severity.WARNING
            logger.warning(
                "Could not find class %s in base schema (path %s)",
                skip.class_name,
                constraint.path,
            )
        else:
            severity = Severity.WARNING
            logger.warning(
                "Could not find feature %s in class %s (path %s)",
                skip.feature_name,
                skip.class_name,
                constraint.path,
            )

        self.diagnostics.append(
            Diagnostic(
                severity=severity,
                category=skip.category,
                path=constraint.path,
                message=skip.reason,
                index=index,
                class_name=skip.class_name,
                feature_name=skip.feature_name,
            )
        )
        self.skipped_count += 1

    def result(self) -> ProfilingResult:
        return ProfilingResult(
            schema=self.output,
            diagnostics=list(self.diagnostics),
            applied_count=self.applied_count,
            skipped_count=self.skipped_count,
        )


def apply_profile(
    base: Schema,
    constraints: Iterable[Constraint],
    namespaces: AnnotationNamespaces = DEFAULT_NAMESPACES,
) -> ProfilingResult:
    """Apply a constraint list to ``base`` and return the profiled schema.

    Args:
        base: The base schema; never mutated
        constraints: Constraints in snapshot order
        namespaces: Annotation sources to write

    Returns:
        ProfilingResult with the output schema and per-constraint diagnostics
    """
    engine = ProfileEngine(base, namespaces)
    logger.info("Start==> applying profile to schema %s", base.name)

    for i, constraint in enumerate(constraints):
        engine.process(constraint, i)

    result = engine.result()
    logger.info(
        "<==Finish: %d applied, %d skipped, %d classes in output",
        result.applied_count,
        result.skipped_count,
        len(result.schema.classifiers),
    )
    return result
