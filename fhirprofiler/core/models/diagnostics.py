"""Diagnostics produced while applying a profile.

Per-constraint problems never abort a run; they are collected as
Diagnostic records on the ProfilingResult.
"""

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, Field

from .schema import Schema


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class DiagnosticCategory(str, Enum):
    MALFORMED_PATH = "MALFORMED_PATH"
    CLASS_NOT_FOUND = "CLASS_NOT_FOUND"
    FEATURE_NOT_FOUND = "FEATURE_NOT_FOUND"
    INVALID_UPPER_BOUND = "INVALID_UPPER_BOUND"


class Diagnostic(BaseModel):
    """A single per-constraint issue."""

    severity: Severity
    category: DiagnosticCategory
    path: str
    message: str
    index: int | None = Field(default=None, description="Position in the constraint list")
    class_name: str | None = None
    feature_name: str | None = None
    value: str | None = None

    def __str__(self) -> str:
        location = f"[{self.index}] {self.path}" if self.index is not None else self.path
        return f"{location}: {self.message}"


@dataclass
class ProfilingResult:
    """Outcome of applying a constraint list to a base schema."""

    schema: Schema
    diagnostics: list[Diagnostic] = field(default_factory=list)
    applied_count: int = 0
    skipped_count: int = 0

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.WARNING]

    def by_category(self, category: DiagnosticCategory) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.category == category]
