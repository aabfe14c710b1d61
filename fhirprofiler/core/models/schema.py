"""Schema models and YAML/JSON I/O for fhirprofiler.

A Schema is an in-memory Ecore package: a named collection of classifiers,
each carrying ordered structural features. The same shape is used for the
base schema (e.g. fhir.ecore) and for the profiled output schema.

This module contains:
- Annotation: namespaced detail map (EAnnotation)
- FeatureDescriptor: attribute or reference with bounds (EStructuralFeature)
- ClassDescriptor: classifier with features and super types (EClassifier)
- Schema: the package, with typed name-keyed accessors
"""

import json
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, model_validator


UNBOUNDED = -1
"""Upper bound marker for unbounded multiplicity (Ecore's -1)."""


# =============================================================================
# Annotations
# =============================================================================


class Annotation(BaseModel):
    """A namespaced annotation with ordered string details.

    ``references`` is the space-separated URI list of the EMF attribute of
    the same name, kept verbatim. Nested annotations are kept as-is.
    """

    source: str
    details: dict[str, str] = Field(default_factory=dict)
    references: str | None = None
    annotations: list["Annotation"] = Field(default_factory=list)


class AnnotatedModel(BaseModel):
    """Base for model elements that carry annotations."""

    annotations: list[Annotation] = Field(default_factory=list)

    def get_annotation(self, source: str) -> Annotation | None:
        """Get the annotation for a source, if present."""
        for annotation in self.annotations:
            if annotation.source == source:
                return annotation
        return None

    def ensure_annotation(self, source: str) -> Annotation:
        """Get the annotation for a source, creating it if missing.

        At most one annotation exists per source; repeated calls return the
        same instance so details are updated in place.
        """
        annotation = self.get_annotation(source)
        if annotation is None:
            annotation = Annotation(source=source)
            self.annotations.append(annotation)
        return annotation


# =============================================================================
# Features
# =============================================================================


class FeatureDescriptor(AnnotatedModel):
    """A structural feature of a class.

    ``type_ref`` is opaque and copied verbatim (e.g. ``#//HumanName``).
    ``properties`` keeps any other persisted attributes (``containment``,
    ``transient``, ...) so they survive a round trip.
    """

    name: str
    kind: Literal["attribute", "reference"] = "attribute"
    type_ref: str | None = None
    lower_bound: int = Field(default=0, ge=0)
    upper_bound: int = Field(default=1, ge=UNBOUNDED)
    properties: dict[str, str] = Field(default_factory=dict)

    @property
    def is_unbounded(self) -> bool:
        return self.upper_bound == UNBOUNDED

    @property
    def is_many(self) -> bool:
        return self.upper_bound == UNBOUNDED or self.upper_bound > 1

    def cardinality(self) -> str:
        """Render bounds FHIR-style, e.g. ``0..*``."""
        upper = "*" if self.is_unbounded else str(self.upper_bound)
        return f"{self.lower_bound}..{upper}"


# =============================================================================
# Classifiers
# =============================================================================


class ClassDescriptor(AnnotatedModel):
    """A classifier in a schema.

    Only ``kind == "class"`` is class-shaped; data types and enums are kept
    so lookups can tell them apart from missing names.
    """

    name: str
    kind: Literal["class", "datatype", "enum"] = "class"
    abstract: bool = False
    interface: bool = False
    super_types: list[str] = Field(default_factory=list)
    features: list[FeatureDescriptor] = Field(default_factory=list)
    properties: dict[str, str] = Field(default_factory=dict)

    @property
    def is_class(self) -> bool:
        return self.kind == "class"

    def get_feature(self, name: str) -> FeatureDescriptor | None:
        """Get an own (non-inherited) feature by name."""
        for feature in self.features:
            if feature.name == name:
                return feature
        return None

    def add_feature(self, feature: FeatureDescriptor) -> None:
        self.features.append(feature)


# =============================================================================
# Schema
# =============================================================================


class Schema(AnnotatedModel):
    """A named package of classifiers keyed by unique name."""

    name: str
    ns_uri: str | None = None
    ns_prefix: str | None = None
    classifiers: dict[str, ClassDescriptor] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _classifiers_from_list(cls, data):
        # Persisted documents list classifiers; keep their order as the key order
        if isinstance(data, dict) and isinstance(data.get("classifiers"), list):
            data = dict(data)
            keyed: dict[str, object] = {}
            for item in data["classifiers"]:
                if isinstance(item, ClassDescriptor):
                    name = item.name
                elif isinstance(item, dict) and isinstance(item.get("name"), str):
                    name = item["name"]
                else:
                    raise ValueError(f"Classifier entry without a name: {item!r}")
                if name in keyed:
                    raise ValueError(f"Duplicate classifier name: {name}")
                keyed[name] = item
            data["classifiers"] = keyed
        return data

    @model_validator(mode="after")
    def _check_classifier_keys(self) -> "Schema":
        for key, classifier in self.classifiers.items():
            if key != classifier.name:
                raise ValueError(
                    f"Classifier key {key!r} does not match its name {classifier.name!r}"
                )
        return self

    # ── Accessors ──

    def get_classifier(self, name: str) -> ClassDescriptor | None:
        """Get any classifier (class, data type, enum) by name."""
        return self.classifiers.get(name)

    def lookup_class(self, name: str) -> ClassDescriptor | None:
        """Get a class-shaped classifier by name, or None."""
        classifier = self.classifiers.get(name)
        if classifier is None or not classifier.is_class:
            return None
        return classifier

    def add_classifier(self, classifier: ClassDescriptor) -> None:
        if classifier.name in self.classifiers:
            raise ValueError(f"Duplicate classifier name: {classifier.name}")
        self.classifiers[classifier.name] = classifier

    def features_of(self, cls: ClassDescriptor) -> list[FeatureDescriptor]:
        """Own features followed by inherited ones, flattened.

        Super types are walked depth-first in declaration order. The first
        declaration of a feature name wins; cycles and unknown super types are
        ignored.
        """
        features: list[FeatureDescriptor] = []
        seen_names: set[str] = set()
        visited: set[str] = set()

        def _walk(current: ClassDescriptor) -> None:
            if current.name in visited:
                return
            visited.add(current.name)
            for feature in current.features:
                if feature.name not in seen_names:
                    seen_names.add(feature.name)
                    features.append(feature)
            for super_name in current.super_types:
                parent = self.classifiers.get(super_name)
                if parent is not None:
                    _walk(parent)

        _walk(cls)
        return features

    def find_feature(
        self, cls: ClassDescriptor, name: str
    ) -> FeatureDescriptor | None:
        """Find a feature of a class by name, including inherited ones."""
        for feature in self.features_of(cls):
            if feature.name == name:
                return feature
        return None

    def classes(self) -> list[ClassDescriptor]:
        """All class-shaped classifiers in insertion order."""
        return [c for c in self.classifiers.values() if c.is_class]

    def summary(self) -> str:
        """Get a text summary of the schema."""
        lines = [
            f"Schema: {self.name}" + (f" ({self.ns_uri})" if self.ns_uri else ""),
            f"Classifiers: {len(self.classifiers)}"
            f" ({len(self.classes())} classes)",
        ]
        for cls in self.classes():
            lines.append(f"  {cls.name} ({len(cls.features)} features)")
        return "\n".join(lines)

    # ── Serialization ──

    def to_document(self) -> dict:
        """Convert to a plain dict with classifiers listed in order."""
        data = self.model_dump(mode="json")
        data["classifiers"] = list(data["classifiers"].values())
        return data

    def dump_yaml(self) -> str:
        """Render schema as a YAML document."""
        return yaml.dump(
            self.to_document(),
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )

    def to_yaml(self, path: Path | str) -> None:
        """Save schema to YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            f.write(self.dump_yaml())

    @classmethod
    def from_yaml(cls, path: Path | str) -> "Schema":
        """Load schema from YAML file."""
        path = Path(path)

        with open(path) as f:
            data = yaml.safe_load(f)

        return cls.model_validate(data)

    def dump_json(self) -> str:
        """Render schema as a JSON document."""
        return json.dumps(self.to_document(), indent=2, ensure_ascii=False)

    def to_json(self, path: Path | str) -> None:
        """Save schema to JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            f.write(self.dump_json())

    @classmethod
    def from_json(cls, path: Path | str) -> "Schema":
        """Load schema from JSON file."""
        path = Path(path)

        with open(path) as f:
            data = json.load(f)

        return cls.model_validate(data)
