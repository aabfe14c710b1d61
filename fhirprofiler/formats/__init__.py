"""Loading and saving schemas and profiles.

Format is picked from the file suffix unless given explicitly:

    Schemas:  .ecore .xmi .xml -> Ecore XMI
              .yaml .yml       -> YAML
              .json            -> JSON
    Profiles: .json            -> FHIR JSON StructureDefinition
              .xml             -> FHIR XML StructureDefinition

All failures except a missing file are raised as the boundary errors in
core.errors.
"""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..core.errors import ProfileLoadError, SchemaLoadError, SchemaWriteError
from ..core.models import ProfileSpec, Schema
from .ecore import dump_ecore, read_ecore
from .structure_definition import read_profile_json, read_profile_xml


logger = logging.getLogger(__name__)


SCHEMA_FORMATS = {
    ".ecore": "ecore",
    ".xmi": "ecore",
    ".xml": "ecore",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".json": "json",
}

PROFILE_FORMATS = {
    ".json": "json",
    ".xml": "xml",
}


def schema_format_for(path: Path | str, fmt: str | None = None) -> str:
    """Resolve the schema format for a path (``fmt`` wins unless "auto")."""
    if fmt and fmt != "auto":
        if fmt not in set(SCHEMA_FORMATS.values()):
            raise ValueError(f"Unknown schema format: {fmt}")
        return fmt
    suffix = Path(path).suffix.lower()
    if suffix not in SCHEMA_FORMATS:
        raise ValueError(
            f"Cannot infer schema format from {suffix or 'missing'} suffix; "
            f"expected one of {', '.join(sorted(SCHEMA_FORMATS))}"
        )
    return SCHEMA_FORMATS[suffix]


def load_schema(path: Path | str, fmt: str | None = None) -> Schema:
    """Load a base schema.

    Raises:
        FileNotFoundError: If the file does not exist
        SchemaLoadError: If the file cannot be read or parsed
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Schema file not found: {path}")

    try:
        resolved = schema_format_for(path, fmt)
        logger.debug("Loading %s schema from %s", resolved, path)
        if resolved == "ecore":
            return read_ecore(path)
        if resolved == "yaml":
            return Schema.from_yaml(path)
        return Schema.from_json(path)
    except (OSError, ValueError, yaml.YAMLError, ValidationError) as e:
        raise SchemaLoadError(f"Failed to load schema {path}: {e}") from e


def dump_schema(schema: Schema, fmt: str = "ecore") -> bytes:
    """Serialize a schema to bytes in the given format."""
    if fmt == "ecore":
        return dump_ecore(schema)
    if fmt == "yaml":
        return schema.dump_yaml().encode("utf-8")
    if fmt == "json":
        return schema.dump_json().encode("utf-8")
    raise ValueError(f"Unknown schema format: {fmt}")


def save_schema(schema: Schema, path: Path | str, fmt: str | None = None) -> Path:
    """Write a schema to ``path``.

    Raises:
        SchemaWriteError: If serialization or writing fails
    """
    path = Path(path)
    try:
        payload = dump_schema(schema, schema_format_for(path, fmt))
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(payload)
    except (OSError, ValueError) as e:
        raise SchemaWriteError(f"Failed to write schema {path}: {e}") from e
    logger.debug("Wrote schema %s to %s", schema.name, path)
    return path


def load_profile(path: Path | str) -> ProfileSpec:
    """Load a profile (StructureDefinition snapshot).

    Raises:
        FileNotFoundError: If the file does not exist
        ProfileLoadError: If the file cannot be read or parsed
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Profile file not found: {path}")

    suffix = path.suffix.lower()
    try:
        if PROFILE_FORMATS.get(suffix) == "json":
            return read_profile_json(path)
        if PROFILE_FORMATS.get(suffix) == "xml":
            return read_profile_xml(path)
        raise ValueError(
            f"Cannot infer profile format from {suffix or 'missing'} suffix; "
            "expected .json or .xml"
        )
    except (OSError, ValueError, ValidationError) as e:
        raise ProfileLoadError(f"Failed to load profile {path}: {e}") from e


__all__ = [
    "SCHEMA_FORMATS",
    "PROFILE_FORMATS",
    "schema_format_for",
    "load_schema",
    "dump_schema",
    "save_schema",
    "load_profile",
]
