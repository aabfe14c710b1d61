"""Inspect command for viewing a schema's classes and features."""

from pathlib import Path

import typer

from ...core.errors import SchemaLoadError
from ...formats import load_schema
from ..app import app, console, get_json_mode
from ..utils import ExitCode, Output


def _annotation_summary(feature) -> str:
    parts = []
    for annotation in feature.annotations:
        for key, value in annotation.details.items():
            if key == "documentation":
                continue
            parts.append(f"{key}={value}")
    return ", ".join(parts)


@app.command("inspect")
def inspect_command(
    schema_file: Path = typer.Argument(..., help="Schema file (.ecore, .yaml, .json)"),
    class_name: str | None = typer.Option(
        None, "--class", "-c", help="Show features of one class"
    ),
):
    """Show the classes of a schema, or the features of one class.

    Examples:
        fhirprofiler inspect out.ecore
        fhirprofiler inspect out.ecore --class Patient
    """
    out = Output(console=console, json_mode=get_json_mode())

    try:
        schema = load_schema(schema_file)
    except FileNotFoundError as e:
        out.error(str(e), exit_code=ExitCode.FILE_NOT_FOUND)
        raise typer.Exit(out.finish())
    except SchemaLoadError as e:
        out.error(str(e), exit_code=ExitCode.SCHEMA_ERROR)
        raise typer.Exit(out.finish())

    out.success(
        f"Loaded schema {schema.name} ({len(schema.classifiers)} classifiers)",
        schema_name=schema.name,
        ns_uri=schema.ns_uri,
        classifier_count=len(schema.classifiers),
    )

    if class_name is None:
        rows = [
            [cls.name, cls.kind, str(len(cls.features)), " ".join(cls.super_types)]
            for cls in schema.classifiers.values()
        ]
        out.table("Classifiers", ["Name", "Kind", "Features", "Super types"], rows)
        raise typer.Exit(out.finish())

    cls = schema.lookup_class(class_name)
    if cls is None:
        out.error(f"Class not found: {class_name}")
        raise typer.Exit(out.finish())

    rows = [
        [
            feature.name,
            feature.kind,
            feature.type_ref or "",
            feature.cardinality(),
            _annotation_summary(feature),
        ]
        for feature in schema.features_of(cls)
    ]
    out.table(
        f"{cls.name} features",
        ["Name", "Kind", "Type", "Card.", "Annotations"],
        rows,
        data_key="features",
    )
    raise typer.Exit(out.finish())
