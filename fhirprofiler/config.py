"""Configuration management for fhirprofiler.

Three config sections:
- namespaces: annotation sources written onto profiled features
- output: default output schema format
- logging: default log level for the CLI

Config resolution order (highest priority first):
1. Programmatic (ProfilerConfig constructed in code / configure())
2. Environment variables (FHIRPROFILER_*; a .env file is loaded first)
3. Config file (~/.config/fhirprofiler/config.json, managed by `fhirprofiler config`)
4. Hardcoded defaults
"""

import json
import logging
import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv

from .profiling.annotations import (
    AnnotationNamespaces,
    DOCUMENTATION_SOURCE,
    DOMAIN_SOURCE,
    SLICING_SOURCE,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Config file location
# =============================================================================

CONFIG_DIR = Path.home() / ".config" / "fhirprofiler"
CONFIG_FILE = CONFIG_DIR / "config.json"

OUTPUT_FORMATS = ("auto", "ecore", "yaml", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


# =============================================================================
# Config dataclasses
# =============================================================================


@dataclass
class NamespacesConfig:
    """Annotation sources.

    - slicing: slicing discriminators/rules
    - domain: mustSupport and binding details
    - documentation: short/definition text
    """

    slicing: str = SLICING_SOURCE
    domain: str = DOMAIN_SOURCE
    documentation: str = DOCUMENTATION_SOURCE


@dataclass
class OutputConfig:
    """Output schema settings. "auto" picks the format from the file suffix."""

    format: str = "auto"


@dataclass
class LoggingConfig:
    level: str = "WARNING"


# =============================================================================
# Main config class
# =============================================================================


@dataclass
class ProfilerConfig:
    """Top-level fhirprofiler configuration.

    Examples:
        # Package use: no files needed
        config = ProfilerConfig(output=OutputConfig(format="yaml"))

        # CLI use: loads from ~/.config/fhirprofiler/config.json
        config = ProfilerConfig.load()
    """

    namespaces: NamespacesConfig = field(default_factory=NamespacesConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls) -> "ProfilerConfig":
        """Load config from file + env vars.

        Priority: env var values > config.json values > defaults.
        """
        config = cls()

        # Layer 1: Load from config file if it exists
        if CONFIG_FILE.exists():
            try:
                with open(CONFIG_FILE) as f:
                    data = json.load(f)
                _apply_dict(config, data)
            except (json.JSONDecodeError, OSError) as exc:
                logger.warning("Failed to load config from %s: %s", CONFIG_FILE, exc)

        # Layer 2: Env var overrides
        _ensure_dotenv()
        if val := os.environ.get("FHIRPROFILER_SLICING_SOURCE"):
            config.namespaces.slicing = val
        if val := os.environ.get("FHIRPROFILER_DOMAIN_SOURCE"):
            config.namespaces.domain = val
        if val := os.environ.get("FHIRPROFILER_DOCUMENTATION_SOURCE"):
            config.namespaces.documentation = val
        if val := os.environ.get("FHIRPROFILER_OUTPUT_FORMAT"):
            if val in OUTPUT_FORMATS:
                config.output.format = val
            else:
                logger.warning("Invalid FHIRPROFILER_OUTPUT_FORMAT=%r, ignoring", val)
        if val := os.environ.get("FHIRPROFILER_LOG_LEVEL"):
            if val.upper() in LOG_LEVELS:
                config.logging.level = val.upper()
            else:
                logger.warning("Invalid FHIRPROFILER_LOG_LEVEL=%r, ignoring", val)

        return config

    def save(self) -> None:
        """Save config to ~/.config/fhirprofiler/config.json."""
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        with open(CONFIG_FILE, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for display."""
        return {
            "namespaces": asdict(self.namespaces),
            "output": asdict(self.output),
            "logging": asdict(self.logging),
        }

    def annotation_namespaces(self) -> AnnotationNamespaces:
        """Namespaces in the form the profiling engine takes."""
        return AnnotationNamespaces(
            slicing=self.namespaces.slicing,
            domain=self.namespaces.domain,
            documentation=self.namespaces.documentation,
        )


# =============================================================================
# Config dict application
# =============================================================================


def _apply_dict(config: ProfilerConfig, data: dict) -> None:
    """Apply a dict of values onto a ProfilerConfig, ignoring unknown keys."""
    for section_name in ("namespaces", "output", "logging"):
        section_data = data.get(section_name)
        if not isinstance(section_data, dict):
            continue
        section = getattr(config, section_name)
        for k, v in section_data.items():
            if hasattr(section, k):
                setattr(section, k, v)


_dotenv_loaded = False


def _ensure_dotenv() -> None:
    """Load .env file into os.environ if not already loaded."""
    global _dotenv_loaded
    if not _dotenv_loaded:
        _dotenv_loaded = True
        dotenv_path = find_dotenv(usecwd=True)
        if dotenv_path:
            load_dotenv(dotenv_path=dotenv_path, override=False)


# =============================================================================
# Global config singleton
# =============================================================================

_config: ProfilerConfig | None = None


def get_config() -> ProfilerConfig:
    """Get the global ProfilerConfig instance.

    First call loads from file + env vars. Subsequent calls return cached instance.
    Use configure() to replace the global config programmatically.
    """
    global _config
    if _config is None:
        _config = ProfilerConfig.load()
    return _config


def configure(config: ProfilerConfig) -> None:
    """Set the global ProfilerConfig programmatically.

    Use this when fhirprofiler is used as a package:
        from fhirprofiler.config import configure, ProfilerConfig, OutputConfig
        configure(ProfilerConfig(output=OutputConfig(format="yaml")))
    """
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global config (forces reload on next get_config())."""
    global _config
    _config = None
