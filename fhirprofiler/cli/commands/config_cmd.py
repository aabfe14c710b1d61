"""Config command for viewing and managing fhirprofiler configuration."""

import typer

from ..app import app, console
from ...config import (
    CONFIG_FILE,
    LOG_LEVELS,
    OUTPUT_FORMATS,
    get_config,
    reset_config,
)


VALID_KEYS = {
    "namespaces.slicing",
    "namespaces.domain",
    "namespaces.documentation",
    "output.format",
    "logging.level",
}

CHOICE_FIELDS = {
    "output.format": OUTPUT_FORMATS,
    "logging.level": LOG_LEVELS,
}


@app.command("config")
def config_command(
    action: str = typer.Argument(
        ...,
        help="Action: show, set, reset",
    ),
    key: str | None = typer.Argument(
        None,
        help="Config key (e.g. output.format, namespaces.domain)",
    ),
    value: str | None = typer.Argument(
        None,
        help="Value to set",
    ),
):
    """View or modify fhirprofiler configuration.

    Examples:
        fhirprofiler config show
        fhirprofiler config set output.format yaml
        fhirprofiler config set namespaces.domain http://hl7.org/fhir
        fhirprofiler config reset
    """
    if action == "show":
        _show_config()
    elif action == "set":
        if not key or value is None:
            console.print("[red]Usage:[/red] fhirprofiler config set <key> <value>")
            console.print()
            console.print("Available keys:")
            for k in sorted(VALID_KEYS):
                console.print(f"  {k}")
            raise typer.Exit(1)
        _set_config(key, value)
    elif action == "reset":
        _reset_config()
    else:
        console.print(f"[red]Unknown action:[/red] {action}")
        console.print("Valid actions: show, set, reset")
        raise typer.Exit(1)


def _show_config():
    """Display current resolved configuration."""
    config = get_config()

    console.print()
    console.print("[bold]fhirprofiler Configuration[/bold]")
    console.print("─" * 40)

    console.print()
    console.print("[bold cyan]Namespaces[/bold cyan] (annotation sources)")
    console.print(f"  slicing       = {config.namespaces.slicing}")
    console.print(f"  domain        = {config.namespaces.domain}")
    console.print(f"  documentation = {config.namespaces.documentation}")

    console.print()
    console.print("[bold cyan]Output[/bold cyan]")
    console.print(f"  format = {config.output.format}")

    console.print()
    console.print("[bold cyan]Logging[/bold cyan]")
    console.print(f"  level = {config.logging.level}")

    console.print()
    if CONFIG_FILE.exists():
        console.print(f"Config file: {CONFIG_FILE}")
    else:
        console.print(f"Config file: [dim]not created yet[/dim] ({CONFIG_FILE})")
    console.print()


def _set_config(key: str, value: str):
    """Set a config value and save."""
    if key not in VALID_KEYS:
        console.print(f"[red]Unknown key:[/red] {key}")
        console.print()
        console.print("Available keys:")
        for k in sorted(VALID_KEYS):
            console.print(f"  {k}")
        raise typer.Exit(1)

    choices = CHOICE_FIELDS.get(key)
    if key == "logging.level":
        value = value.upper()
    if choices and value not in choices:
        console.print(f"[red]Invalid value:[/red] {value}")
        console.print(f"Valid values: {', '.join(choices)}")
        raise typer.Exit(1)

    config = get_config()
    section_name, field_name = key.split(".", 1)
    setattr(getattr(config, section_name), field_name, value)

    config.save()
    reset_config()  # Clear cached singleton so next get_config() reloads

    console.print(f"[green]✓[/green] Set {key} = {value}")
    console.print(f"  Saved to {CONFIG_FILE}")


def _reset_config():
    """Reset config to defaults."""
    if CONFIG_FILE.exists():
        CONFIG_FILE.unlink()
        reset_config()
        console.print("[green]✓[/green] Config reset to defaults")
        console.print(f"  Removed {CONFIG_FILE}")
    else:
        console.print("Config already at defaults (no config file exists)")
