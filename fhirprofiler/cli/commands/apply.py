"""Apply command: profile a base schema and write the output schema."""

from pathlib import Path

import typer

from ...config import OUTPUT_FORMATS, get_config
from ...core.errors import ProfileLoadError, SchemaLoadError, SchemaWriteError
from ...formats import load_profile, load_schema, save_schema
from ...profiling import apply_profile
from ..app import app, console, get_json_mode, setup_logging
from ..utils import ExitCode, Output, format_diagnostics_for_json


@app.command("apply")
def apply_command(
    profile: Path = typer.Option(
        ..., "--profile", "-p", help="Path to the profile (StructureDefinition .json/.xml)"
    ),
    input: Path = typer.Option(
        ..., "--input", "-i", help="Path to the base schema (e.g. fhir.ecore)"
    ),
    output: Path = typer.Option(
        ..., "--output", "-o", help="Path to the output schema (e.g. out.ecore)"
    ),
    format: str | None = typer.Option(
        None,
        "--format",
        "-f",
        help="Output format: auto, ecore, yaml, json (default from config)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress"),
    debug: bool = typer.Option(False, "--debug", help="Log everything"),
):
    """Apply a profile's snapshot constraints to a base schema.

    Constraints that cannot be resolved are reported and skipped; the exit
    code is non-zero only when an input cannot be loaded or the output
    cannot be written.

    Example:
        fhirprofiler apply -p us-core-patient.json -i fhir.ecore -o patient.ecore
    """
    setup_logging(verbose=verbose, debug=debug)
    config = get_config()
    out = Output(console=console, json_mode=get_json_mode())

    output_format = format or config.output.format
    if output_format not in OUTPUT_FORMATS:
        out.error(
            f"Unknown output format: {output_format}",
            suggestion=f"Use one of: {', '.join(OUTPUT_FORMATS)}",
        )
        raise typer.Exit(out.finish())

    # Load inputs
    try:
        profile_spec = load_profile(profile)
    except FileNotFoundError as e:
        out.error(str(e), exit_code=ExitCode.FILE_NOT_FOUND)
        raise typer.Exit(out.finish())
    except ProfileLoadError as e:
        out.error(str(e), exit_code=ExitCode.PROFILE_ERROR)
        raise typer.Exit(out.finish())
    out.success(
        f"Loaded profile {profile_spec.name or profile} ({len(profile_spec.elements)} elements)",
        profile=str(profile),
        element_count=len(profile_spec.elements),
    )
    if verbose or debug:
        out.text(profile_spec.summary())

    try:
        base = load_schema(input)
    except FileNotFoundError as e:
        out.error(str(e), exit_code=ExitCode.FILE_NOT_FOUND)
        raise typer.Exit(out.finish())
    except SchemaLoadError as e:
        out.error(str(e), exit_code=ExitCode.SCHEMA_ERROR)
        raise typer.Exit(out.finish())
    out.success(
        f"Loaded schema {base.name} ({len(base.classifiers)} classifiers)",
        input=str(input),
        base_classifier_count=len(base.classifiers),
    )

    # Apply
    result = apply_profile(base, profile_spec.elements, config.annotation_namespaces())

    for diagnostic in result.warnings:
        out.warning(
            str(diagnostic),
            path=diagnostic.path,
            category=diagnostic.category.value,
        )

    # Write
    try:
        save_schema(result.schema, output, output_format)
    except SchemaWriteError as e:
        out.error(str(e), exit_code=ExitCode.WRITE_ERROR)
        raise typer.Exit(out.finish())

    out.set_data("result", format_diagnostics_for_json(result))
    out.success(
        f"Wrote {output}: {result.applied_count} applied, {result.skipped_count} skipped, "
        f"{len(result.schema.classifiers)} classes",
        output=str(output),
    )
    if verbose or debug:
        out.blank()
        out.text(result.schema.summary())

    raise typer.Exit(out.finish())
