"""Output schema construction.

The output schema starts as the base schema's shell (name, namespace,
package annotations) with no classifiers. Classes are created on demand and
only ever grow by appending copied features.
"""

from ..core.models import ClassDescriptor, FeatureDescriptor, Schema


def create_output_schema(base: Schema) -> Schema:
    """Deep-clone the base schema's shell and drop every classifier."""
    shell = base.model_copy(update={"classifiers": {}})
    # model_copy(update=...) is shallow for the other fields
    return shell.model_copy(deep=True)


def ensure_class(output: Schema, name: str) -> ClassDescriptor:
    """Return the output class called ``name``, creating it if needed."""
    existing = output.get_classifier(name)
    if existing is not None:
        return existing
    cls = ClassDescriptor(name=name)
    output.add_classifier(cls)
    return cls


def copy_feature(base_feature: FeatureDescriptor) -> FeatureDescriptor:
    """Copy a base feature with no annotations and no shared state."""
    return base_feature.model_copy(update={"annotations": []}, deep=True)


def attach_feature(cls: ClassDescriptor, base_feature: FeatureDescriptor) -> FeatureDescriptor:
    """Copy ``base_feature`` onto ``cls`` and return the copy.

    Repeated paths are not de-duplicated; each call appends a new copy.
    """
    copied = copy_feature(base_feature)
    cls.add_feature(copied)
    return copied
