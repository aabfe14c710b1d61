"""FHIR StructureDefinition readers.

Turns a StructureDefinition (JSON or XML) into a ProfileSpec whose
``elements`` are the snapshot elements in document order. Only the fields
the profiler applies are read: path, id, min, max, mustSupport, short,
definition, slicing and binding.

Version differences handled:
- binding value set: ``valueSet`` (R4+), ``valueSetUri`` or
  ``valueSetReference.reference`` (STU3)
- slicing discriminator: object with type/path (STU3+), or a bare path
  string (DSTU2), read as a ``value`` discriminator
"""

from __future__ import annotations

import json
import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any

from ..core.models import ProfileSpec


logger = logging.getLogger(__name__)


FHIR_NS = "http://hl7.org/fhir"

RESOURCE_TYPE = "StructureDefinition"


class MissingSnapshotError(ValueError):
    """The StructureDefinition has no snapshot to apply."""


# =============================================================================
# Shared normalization
# =============================================================================


def _discriminator(raw: Any) -> dict[str, Any]:
    if isinstance(raw, str):
        return {"type": "value", "path": raw}
    if not isinstance(raw, dict):
        raise ValueError(f"Slicing discriminator must be an object or a path, found {raw!r}")
    return {"type": raw.get("type"), "path": raw.get("path")}


def _value_set(binding: dict[str, Any]) -> str | None:
    if binding.get("valueSet") is not None:
        return binding["valueSet"]
    if binding.get("valueSetUri") is not None:
        return binding["valueSetUri"]
    reference = binding.get("valueSetReference")
    if isinstance(reference, dict):
        return reference.get("reference")
    return None


def _constraint_data(element: dict[str, Any]) -> dict[str, Any]:
    """Map a FHIR ElementDefinition (JSON shape) onto Constraint fields."""
    data: dict[str, Any] = {
        "path": element.get("path"),
        "id": element.get("id"),
        "min": element.get("min"),
        "max": element.get("max"),
        "must_support": element.get("mustSupport"),
        "short": element.get("short"),
        "definition": element.get("definition"),
    }

    slicing = element.get("slicing")
    if isinstance(slicing, dict):
        discriminators = slicing.get("discriminator") or []
        if not isinstance(discriminators, list):
            raise ValueError(f"Slicing discriminator of {data['path']} must be a list")
        data["slicing"] = {
            "discriminator": [_discriminator(d) for d in discriminators],
            "rules": slicing.get("rules"),
            "ordered": slicing.get("ordered"),
            "description": slicing.get("description"),
        }

    binding = element.get("binding")
    if isinstance(binding, dict):
        data["binding"] = {
            "value_set": _value_set(binding),
            "strength": binding.get("strength"),
        }

    return data


def profile_from_dict(resource: dict[str, Any]) -> ProfileSpec:
    """Build a ProfileSpec from a StructureDefinition in JSON shape.

    Raises:
        ValueError: If the resource is not a StructureDefinition
        MissingSnapshotError: If there is no snapshot (differential-only)
        pydantic.ValidationError: If element values have the wrong types
    """
    resource_type = resource.get("resourceType")
    if resource_type != RESOURCE_TYPE:
        raise ValueError(f"Expected a {RESOURCE_TYPE}, found {resource_type!r}")

    snapshot = resource.get("snapshot")
    if not isinstance(snapshot, dict) or "element" not in snapshot:
        raise MissingSnapshotError(
            "StructureDefinition has no snapshot; differential-only profiles are not supported"
        )

    raw_elements = snapshot.get("element") or []
    if not isinstance(raw_elements, list):
        raise ValueError("snapshot.element must be a list of ElementDefinitions")
    for position, raw in enumerate(raw_elements):
        if not isinstance(raw, dict):
            raise ValueError(f"snapshot.element[{position}] is not an object: {raw!r}")

    elements = [_constraint_data(e) for e in raw_elements]
    logger.debug("Read %d snapshot elements", len(elements))

    return ProfileSpec.model_validate(
        {
            "url": resource.get("url"),
            "name": resource.get("name"),
            "type": resource.get("type"),
            "fhir_version": resource.get("fhirVersion"),
            "elements": elements,
        }
    )


# =============================================================================
# JSON
# =============================================================================


def read_profile_json(path: Path | str) -> ProfileSpec:
    """Load a StructureDefinition from a FHIR JSON file."""
    path = Path(path)

    with open(path) as f:
        resource = json.load(f)

    if not isinstance(resource, dict):
        raise ValueError(f"Expected a JSON object in {path}")
    return profile_from_dict(resource)


# =============================================================================
# XML
# =============================================================================


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _child(elem: ET.Element, name: str) -> ET.Element | None:
    for child in elem:
        if _local(child.tag) == name:
            return child
    return None


def _children(elem: ET.Element, name: str) -> list[ET.Element]:
    return [child for child in elem if _local(child.tag) == name]


def _value(elem: ET.Element, name: str) -> str | None:
    """The ``value`` attribute of a primitive child element."""
    child = _child(elem, name)
    if child is None:
        return None
    return child.get("value")


def _element_to_dict(elem: ET.Element) -> dict[str, Any]:
    """Convert an XML ElementDefinition to the JSON shape."""
    data: dict[str, Any] = {
        "path": _value(elem, "path"),
        "id": elem.get("id"),
        "min": _value(elem, "min"),
        "max": _value(elem, "max"),
        "mustSupport": _value(elem, "mustSupport"),
        "short": _value(elem, "short"),
        "definition": _value(elem, "definition"),
    }

    slicing = _child(elem, "slicing")
    if slicing is not None:
        discriminators: list[Any] = []
        for d in _children(slicing, "discriminator"):
            if d.get("value") is not None:
                discriminators.append(d.get("value"))
            else:
                discriminators.append({"type": _value(d, "type"), "path": _value(d, "path")})
        data["slicing"] = {
            "discriminator": discriminators,
            "rules": _value(slicing, "rules"),
            "ordered": _value(slicing, "ordered"),
            "description": _value(slicing, "description"),
        }

    binding = _child(elem, "binding")
    if binding is not None:
        binding_data: dict[str, Any] = {
            "strength": _value(binding, "strength"),
            "valueSet": _value(binding, "valueSet"),
            "valueSetUri": _value(binding, "valueSetUri"),
        }
        reference = _child(binding, "valueSetReference")
        if reference is not None:
            binding_data["valueSetReference"] = {"reference": _value(reference, "reference")}
        data["binding"] = binding_data

    return data


def profile_from_element(root: ET.Element) -> ProfileSpec:
    """Build a ProfileSpec from a parsed StructureDefinition XML root."""
    resource: dict[str, Any] = {
        "resourceType": _local(root.tag),
        "url": _value(root, "url"),
        "name": _value(root, "name"),
        "type": _value(root, "type"),
        "fhirVersion": _value(root, "fhirVersion"),
    }

    snapshot = _child(root, "snapshot")
    if snapshot is not None:
        resource["snapshot"] = {
            "element": [_element_to_dict(e) for e in _children(snapshot, "element")]
        }

    return profile_from_dict(resource)


def read_profile_xml(path: Path | str) -> ProfileSpec:
    """Load a StructureDefinition from a FHIR XML file."""
    path = Path(path)

    try:
        tree = ET.parse(path)
    except ET.ParseError as e:
        raise ValueError(f"Malformed XML in {path}: {e}") from e

    return profile_from_element(tree.getroot())
