"""Tests for the profile application engine."""

import logging

from fhirprofiler.core.models import (
    UNBOUNDED,
    BindingSpec,
    Constraint,
    DiagnosticCategory,
    Severity,
)
from fhirprofiler.profiling import (
    DOCUMENTATION_SOURCE,
    DOMAIN_SOURCE,
    ProfileEngine,
    apply_profile,
)


class TestEndToEnd:
    """Scenario tests over a small base schema."""

    def test_patient_name_scenario(self, base_schema):
        constraints = [
            Constraint(
                path="Patient.name",
                min=1,
                max="1",
                must_support=True,
                short="Patient's name",
            )
        ]
        result = apply_profile(base_schema, constraints)

        patient = result.schema.lookup_class("Patient")
        assert patient is not None
        assert [f.name for f in patient.features] == ["name"]
        name = patient.features[0]
        assert (name.lower_bound, name.upper_bound) == (1, 1)
        assert name.get_annotation(DOMAIN_SOURCE).details == {"mustSupport": "true"}
        assert name.get_annotation(DOCUMENTATION_SOURCE).details == {
            "documentation": "Patient's name"
        }
        assert result.diagnostics == []
        assert result.applied_count == 1

    def test_unknown_class_is_skipped_and_rest_processed(self, base_schema):
        constraints = [
            Constraint(path="Unknown.field", min=0, max="1"),
            Constraint(path="Patient.gender", min=1, max="1"),
        ]
        result = apply_profile(base_schema, constraints)

        assert result.schema.get_classifier("Unknown") is None
        assert result.schema.lookup_class("Patient").get_feature("gender") is not None
        assert len(result.diagnostics) == 1
        diagnostic = result.diagnostics[0]
        assert diagnostic.category == DiagnosticCategory.CLASS_NOT_FOUND
        assert diagnostic.index == 0
        assert diagnostic.class_name == "Unknown"
        assert result.applied_count == 1
        assert result.skipped_count == 1

    def test_base_schema_is_not_mutated(self, base_schema):
        before = base_schema.model_copy(deep=True)
        apply_profile(
            base_schema,
            [Constraint(path="Patient.name", min=1, max="1", must_support=True, short="x")],
        )
        assert base_schema == before


class TestSkips:
    """Each unresolved constraint leaves the output untouched and adds one diagnostic."""

    def test_root_path_recorded_as_info(self, base_schema):
        result = apply_profile(base_schema, [Constraint(path="Patient")])
        assert result.schema.classifiers == {}
        assert len(result.diagnostics) == 1
        assert result.diagnostics[0].severity == Severity.INFO
        assert result.diagnostics[0].category == DiagnosticCategory.MALFORMED_PATH

    def test_unknown_feature_creates_no_class(self, base_schema):
        result = apply_profile(base_schema, [Constraint(path="Patient.birthDate", min=1)])
        assert result.schema.classifiers == {}
        assert [d.category for d in result.diagnostics] == [
            DiagnosticCategory.FEATURE_NOT_FOUND
        ]
        assert result.diagnostics[0].feature_name == "birthDate"

    def test_skips_logged(self, base_schema, caplog):
        with caplog.at_level(logging.WARNING, logger="fhirprofiler"):
            apply_profile(
                base_schema,
                [Constraint(path="Unknown.field"), Constraint(path="Patient.birthDate")],
            )
        assert "Could not find class Unknown" in caplog.text
        assert "Could not find feature birthDate in class Patient" in caplog.text


class TestOutputShape:
    """Tests for how the output schema is assembled."""

    def test_inherited_feature_copied_onto_resolved_class(self, base_schema):
        result = apply_profile(base_schema, [Constraint(path="Patient.id", min=1, max="1")])
        patient = result.schema.lookup_class("Patient")
        assert [f.name for f in patient.features] == ["id"]
        assert result.schema.get_classifier("Resource") is None

    def test_classes_in_first_seen_order(self, base_schema):
        result = apply_profile(
            base_schema,
            [
                Constraint(path="HumanName.family"),
                Constraint(path="Patient.name"),
                Constraint(path="HumanName.family"),
            ],
        )
        assert list(result.schema.classifiers) == ["HumanName", "Patient"]

    def test_repeated_path_appends_copies(self, base_schema):
        result = apply_profile(
            base_schema,
            [
                Constraint(path="Patient.identifier", min=0, max="*"),
                Constraint(path="Patient.identifier", id="Patient.identifier:mrn", min=1, max="1"),
            ],
        )
        features = result.schema.lookup_class("Patient").features
        assert [f.cardinality() for f in features] == ["0..*", "1..1"]

    def test_deeper_path_applies_to_second_segment(self, base_schema):
        result = apply_profile(
            base_schema, [Constraint(path="Patient.name.family", min=1, max="*")]
        )
        name = result.schema.lookup_class("Patient").get_feature("name")
        assert name.lower_bound == 1
        assert name.upper_bound == UNBOUNDED

    def test_invalid_max_keeps_base_upper_bound(self, base_schema):
        result = apply_profile(
            base_schema,
            [
                Constraint(path="Patient.name", min=1, max="several"),
                Constraint(path="Patient.gender", binding=BindingSpec(strength="required")),
            ],
        )
        name = result.schema.lookup_class("Patient").get_feature("name")
        assert name.lower_bound == 1
        assert name.upper_bound == UNBOUNDED
        assert len(result.diagnostics) == 1
        issue = result.diagnostics[0]
        assert issue.category == DiagnosticCategory.INVALID_UPPER_BOUND
        assert issue.index == 0
        assert issue.class_name == "Patient"
        assert result.applied_count == 2


class TestProfileEngine:
    """Tests for the class form of the engine."""

    def test_process_returns_whether_applied(self, base_schema):
        engine = ProfileEngine(base_schema)
        assert engine.process(Constraint(path="Patient.name")) is True
        assert engine.process(Constraint(path="Nope.name")) is False
        result = engine.result()
        assert result.applied_count == 1
        assert result.skipped_count == 1
        assert result.diagnostics[0].index is None

    def test_result_filters(self, base_schema):
        result = apply_profile(
            base_schema,
            [
                Constraint(path="Patient"),
                Constraint(path="Unknown.field"),
                Constraint(path="Patient.name", max="lots"),
            ],
        )
        assert [d.category for d in result.warnings] == [
            DiagnosticCategory.CLASS_NOT_FOUND,
            DiagnosticCategory.INVALID_UPPER_BOUND,
        ]
        assert len(result.by_category(DiagnosticCategory.MALFORMED_PATH)) == 1
        assert result.by_category(DiagnosticCategory.FEATURE_NOT_FOUND) == []
