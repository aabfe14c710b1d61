"""Path resolution against the base schema.

Paths are addressed as ``Class.feature``. Only the first two segments are
used: ``Patient.contact.name`` resolves to ``Patient.contact`` and the rest
is reported back as ignored. Walking into nested types is not supported.
"""

from dataclasses import dataclass, field

from ..core.models import ClassDescriptor, DiagnosticCategory, FeatureDescriptor, Schema


REASON_MALFORMED = "root or malformed path"
REASON_CLASS_NOT_FOUND = "class not found in base schema"
REASON_FEATURE_NOT_FOUND = "feature not found"


@dataclass(frozen=True)
class ResolvedPath:
    """A path resolved to a base class and one of its features."""

    cls: ClassDescriptor
    feature: FeatureDescriptor
    ignored_segments: tuple[str, ...] = field(default=())


@dataclass(frozen=True)
class Skip:
    """A path that could not be resolved; the constraint is dropped."""

    reason: str
    category: DiagnosticCategory
    class_name: str | None = None
    feature_name: str | None = None


def split_path(path: str) -> tuple[str, str, tuple[str, ...]] | None:
    """Split a dotted path into (class, feature, remaining segments).

    Returns None for paths with fewer than two non-empty leading segments.
    """
    parts = path.split(".")
    if len(parts) < 2 or not parts[0] or not parts[1]:
        return None
    return parts[0], parts[1], tuple(parts[2:])


def resolve(path: str, base: Schema) -> ResolvedPath | Skip:
    """Resolve ``path`` to a (class, feature) pair in ``base``.

    Never raises for unresolvable paths and never mutates ``base``.
    """
    split = split_path(path)
    if split is None:
        return Skip(reason=REASON_MALFORMED, category=DiagnosticCategory.MALFORMED_PATH)

    class_name, feature_name, rest = split

    cls = base.lookup_class(class_name)
    if cls is None:
        return Skip(
            reason=REASON_CLASS_NOT_FOUND,
            category=DiagnosticCategory.CLASS_NOT_FOUND,
            class_name=class_name,
        )

    feature = base.find_feature(cls, feature_name)
    if feature is None:
        return Skip(
            reason=REASON_FEATURE_NOT_FOUND,
            category=DiagnosticCategory.FEATURE_NOT_FOUND,
            class_name=class_name,
            feature_name=feature_name,
        )

    return ResolvedPath(cls=cls, feature=feature, ignored_segments=rest)
