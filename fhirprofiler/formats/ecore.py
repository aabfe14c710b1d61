"""Ecore XMI reader and writer.

Reads the subset of an EPackage document that the profiler models:
classifiers (EClass, EDataType, EEnum), structural features (EAttribute,
EReference) and annotations. Any other XML attribute on a classifier or
feature is kept verbatim in ``properties`` and written back unchanged.
Annotations keep their ``references`` attribute and nested annotations;
annotation ``contents`` (arbitrary contained objects) are dropped.

Output is an ``xmi:version="2.0"`` document that EMF tools load directly.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path

from ..core.models import (
    Annotation,
    ClassDescriptor,
    FeatureDescriptor,
    Schema,
)


logger = logging.getLogger(__name__)


XMI_NS = "http://www.omg.org/XMI"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
ECORE_NS = "http://www.eclipse.org/emf/2002/Ecore"

_XSI_TYPE = f"{{{XSI_NS}}}type"
_XMI_VERSION = f"{{{XMI_NS}}}version"

_CLASSIFIER_KINDS = {
    "EClass": "class",
    "EDataType": "datatype",
    "EEnum": "enum",
}
_CLASSIFIER_TYPES = {kind: xsi for xsi, kind in _CLASSIFIER_KINDS.items()}

_FEATURE_KINDS = {
    "EAttribute": "attribute",
    "EReference": "reference",
}
_FEATURE_TYPES = {kind: xsi for xsi, kind in _FEATURE_KINDS.items()}

_CLASSIFIER_ATTRS = {"name", "abstract", "interface", "eSuperTypes", _XSI_TYPE}
_FEATURE_ATTRS = {"name", "lowerBound", "upperBound", "eType", _XSI_TYPE}


ET.register_namespace("xmi", XMI_NS)
ET.register_namespace("xsi", XSI_NS)
ET.register_namespace("ecore", ECORE_NS)


# =============================================================================
# Reading
# =============================================================================


def _xsi_type(elem: ET.Element) -> str | None:
    """Local part of an ``xsi:type`` value, e.g. ``ecore:EClass`` -> ``EClass``."""
    value = elem.get(_XSI_TYPE)
    if value is None:
        return None
    return value.rsplit(":", 1)[-1]


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _parse_bool(value: str | None) -> bool:
    return value is not None and value.strip().lower() == "true"


def _parse_int(value: str | None, default: int, what: str) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ValueError(f"Invalid {what}: {value!r}") from e


def _type_name_from_ref(ref: str) -> str:
    """``#//DomainResource`` -> ``DomainResource``."""
    return ref.rsplit("/", 1)[-1]


def _read_annotation(elem: ET.Element) -> Annotation:
    details = {}
    for child in elem:
        tag = _local(child.tag)
        if tag == "details" and child.get("key") is not None:
            details[child.get("key")] = child.get("value", "")
        elif tag == "contents":
            logger.debug("Dropping contents of annotation %s", elem.get("source"))
    return Annotation(
        source=elem.get("source", ""),
        details=details,
        references=elem.get("references"),
        annotations=_read_annotations(elem),
    )


def _read_annotations(elem: ET.Element) -> list[Annotation]:
    return [_read_annotation(child) for child in elem if _local(child.tag) == "eAnnotations"]


def _read_feature(elem: ET.Element, owner: str) -> FeatureDescriptor:
    xsi_type = _xsi_type(elem)
    kind = _FEATURE_KINDS.get(xsi_type or "")
    if kind is None:
        raise ValueError(f"Unsupported feature type {xsi_type!r} in {owner}")

    type_ref = elem.get("eType")
    if type_ref is None:
        for child in elem:
            if _local(child.tag) == "eGenericType" and child.get("eClassifier"):
                type_ref = child.get("eClassifier")
                break

    name = elem.get("name", "")
    return FeatureDescriptor(
        name=name,
        kind=kind,
        type_ref=type_ref,
        lower_bound=_parse_int(elem.get("lowerBound"), 0, f"lowerBound on {owner}.{name}"),
        upper_bound=_parse_int(elem.get("upperBound"), 1, f"upperBound on {owner}.{name}"),
        annotations=_read_annotations(elem),
        properties={k: v for k, v in elem.attrib.items() if k not in _FEATURE_ATTRS},
    )


def _read_classifier(elem: ET.Element) -> ClassDescriptor | None:
    xsi_type = _xsi_type(elem)
    kind = _CLASSIFIER_KINDS.get(xsi_type or "")
    name = elem.get("name", "")
    if kind is None:
        logger.debug("Ignoring classifier %s of type %s", name, xsi_type)
        return None

    features = [
        _read_feature(child, name)
        for child in elem
        if _local(child.tag) == "eStructuralFeatures"
    ]
    super_types = [
        _type_name_from_ref(ref) for ref in elem.get("eSuperTypes", "").split()
    ]

    return ClassDescriptor(
        name=name,
        kind=kind,
        abstract=_parse_bool(elem.get("abstract")),
        interface=_parse_bool(elem.get("interface")),
        super_types=super_types,
        features=features,
        annotations=_read_annotations(elem),
        properties={k: v for k, v in elem.attrib.items() if k not in _CLASSIFIER_ATTRS},
    )


def schema_from_element(root: ET.Element) -> Schema:
    """Build a Schema from a parsed ``ecore:EPackage`` root element.

    Raises:
        ValueError: If the element is not an EPackage or is inconsistent
    """
    if _local(root.tag) != "EPackage":
        raise ValueError(f"Expected an EPackage root element, found {_local(root.tag)!r}")

    schema = Schema(
        name=root.get("name", ""),
        ns_uri=root.get("nsURI"),
        ns_prefix=root.get("nsPrefix"),
        annotations=_read_annotations(root),
    )

    for child in root:
        tag = _local(child.tag)
        if tag == "eClassifiers":
            classifier = _read_classifier(child)
            if classifier is not None:
                schema.add_classifier(classifier)
        elif tag == "eSubpackages":
            logger.debug("Ignoring subpackage %s", child.get("name"))

    return schema


def read_ecore(path: Path | str) -> Schema:
    """Parse an Ecore XMI file.

    Raises:
        FileNotFoundError: If file does not exist
        ValueError: If the XML is malformed or not an EPackage
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Ecore file does not exist: {path}")

    try:
        logger.debug("Parsing Ecore file: %s", path)
        tree = ET.parse(path)
    except ET.ParseError as e:
        raise ValueError(f"Malformed XML in {path}: {e}") from e

    return schema_from_element(tree.getroot())


def parse_ecore_string(xml_str: str | bytes) -> Schema:
    """Parse Ecore XMI from a string."""
    try:
        root = ET.fromstring(xml_str)
    except ET.ParseError as e:
        raise ValueError(f"Malformed XML string: {e}") from e
    return schema_from_element(root)


# =============================================================================
# Writing
# =============================================================================


def _write_annotations(parent: ET.Element, annotations: list[Annotation]) -> None:
    for annotation in annotations:
        attrib = {"source": annotation.source}
        if annotation.references is not None:
            attrib["references"] = annotation.references
        elem = ET.SubElement(parent, "eAnnotations", attrib)
        for key, value in annotation.details.items():
            ET.SubElement(elem, "details", {"key": key, "value": value})
        _write_annotations(elem, annotation.annotations)


def _write_feature(parent: ET.Element, feature: FeatureDescriptor) -> None:
    attrib = {
        _XSI_TYPE: f"ecore:{_FEATURE_TYPES[feature.kind]}",
        "name": feature.name,
    }
    if feature.lower_bound != 0:
        attrib["lowerBound"] = str(feature.lower_bound)
    if feature.upper_bound != 1:
        attrib["upperBound"] = str(feature.upper_bound)
    if feature.type_ref is not None:
        attrib["eType"] = feature.type_ref
    attrib.update(feature.properties)

    elem = ET.SubElement(parent, "eStructuralFeatures", attrib)
    _write_annotations(elem, feature.annotations)


def _write_classifier(parent: ET.Element, cls: ClassDescriptor) -> None:
    attrib = {
        _XSI_TYPE: f"ecore:{_CLASSIFIER_TYPES[cls.kind]}",
        "name": cls.name,
    }
    if cls.abstract:
        attrib["abstract"] = "true"
    if cls.interface:
        attrib["interface"] = "true"
    if cls.super_types:
        attrib["eSuperTypes"] = " ".join(f"#//{name}" for name in cls.super_types)
    attrib.update(cls.properties)

    elem = ET.SubElement(parent, "eClassifiers", attrib)
    _write_annotations(elem, cls.annotations)
    for feature in cls.features:
        _write_feature(elem, feature)


def schema_to_element(schema: Schema) -> ET.Element:
    attrib = {_XMI_VERSION: "2.0", "name": schema.name}
    if schema.ns_uri is not None:
        attrib["nsURI"] = schema.ns_uri
    if schema.ns_prefix is not None:
        attrib["nsPrefix"] = schema.ns_prefix

    root = ET.Element(f"{{{ECORE_NS}}}EPackage", attrib)
    _write_annotations(root, schema.annotations)
    for classifier in schema.classifiers.values():
        _write_classifier(root, classifier)
    return root


def dump_ecore(schema: Schema) -> bytes:
    """Serialize a Schema as Ecore XMI bytes (UTF-8, with declaration)."""
    root = schema_to_element(schema)
    ET.indent(root, space="  ")
    return ET.tostring(root, encoding="UTF-8", xml_declaration=True)


def write_ecore(schema: Schema, path: Path | str) -> None:
    """Write a Schema to an Ecore XMI file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(dump_ecore(schema))
