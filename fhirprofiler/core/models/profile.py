"""Profile (constraint list) models.

A ProfileSpec is the loaded form of a FHIR StructureDefinition: a little
metadata plus the ordered snapshot elements, each of which is a Constraint
addressed by a dotted path such as ``Patient.name``.
"""

from pydantic import BaseModel, Field


UNBOUNDED_MAX = "*"
"""Literal max value meaning unbounded."""


class Discriminator(BaseModel):
    """Identifies which sub-value of an occurrence distinguishes slices."""

    type: str
    path: str


class SlicingSpec(BaseModel):
    """How a repeating element's occurrences are partitioned into slices."""

    discriminator: list[Discriminator] = Field(default_factory=list)
    rules: str | None = None  # "closed", "open", "openAtEnd"
    ordered: bool | None = None
    description: str | None = None


class BindingSpec(BaseModel):
    """Association of an element with a value set."""

    value_set: str | None = None
    strength: str | None = None  # "required", "extensible", "preferred", "example"


class Constraint(BaseModel):
    """One path-addressed element constraint from a profile snapshot.

    ``min``/``max`` are None when the element omits them; ``max`` stays a
    string so non-numeric values can be reported instead of guessed.
    """

    path: str
    id: str | None = None
    min: int | None = Field(default=None, ge=0)
    max: str | None = None
    slicing: SlicingSpec | None = None
    binding: BindingSpec | None = None
    must_support: bool | None = None
    short: str | None = None
    definition: str | None = None

    @property
    def segments(self) -> list[str]:
        return self.path.split(".")


ConstraintList = list[Constraint]


class ProfileSpec(BaseModel):
    """A loaded profile: metadata plus the snapshot constraint list."""

    url: str | None = None
    name: str | None = None
    type: str | None = None
    fhir_version: str | None = None
    elements: list[Constraint] = Field(default_factory=list)

    def summary(self) -> str:
        """Get a text summary of the profile."""
        label = self.name or self.url or "(unnamed profile)"
        lines = [f"Profile: {label}"]
        if self.type:
            lines.append(f"Type: {self.type}")
        lines.append(f"Elements: {len(self.elements)}")
        return "\n".join(lines)
