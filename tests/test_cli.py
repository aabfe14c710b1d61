"""CLI smoke tests using typer's CliRunner."""

import json

from typer.testing import CliRunner

from fhirprofiler import __version__
from fhirprofiler.cli.app import app
from fhirprofiler.formats import load_schema
from fhirprofiler.profiling import DOMAIN_SOURCE

runner = CliRunner()


def _apply_args(profile, base, output, *extra):
    return ["apply", "-p", str(profile), "-i", str(base), "-o", str(output), *extra]


class TestApplyCommand:
    """Tests for the apply command."""

    def test_apply_writes_output(self, patient_profile_path, base_ecore_path, tmp_path):
        output = tmp_path / "out" / "patient.ecore"
        result = runner.invoke(app, _apply_args(patient_profile_path, base_ecore_path, output))

        assert result.exit_code == 0
        assert "Unknown.field" in result.output

        schema = load_schema(output)
        assert list(schema.classifiers) == ["Patient"]
        patient = schema.lookup_class("Patient")
        assert [f.name for f in patient.features] == ["identifier", "name", "gender"]
        name = patient.get_feature("name")
        assert name.cardinality() == "1..1"
        assert name.get_annotation(DOMAIN_SOURCE).details == {"mustSupport": "true"}

    def test_apply_explicit_format(self, patient_profile_path, base_ecore_path, tmp_path):
        output = tmp_path / "patient.out"
        result = runner.invoke(
            app,
            _apply_args(patient_profile_path, base_ecore_path, output, "--format", "yaml"),
        )
        assert result.exit_code == 0
        assert load_schema(output, "yaml").lookup_class("Patient") is not None

    def test_apply_verbose_prints_summaries(
        self, patient_profile_path, base_ecore_path, tmp_path
    ):
        output = tmp_path / "patient.ecore"
        result = runner.invoke(
            app, _apply_args(patient_profile_path, base_ecore_path, output, "--verbose")
        )
        assert result.exit_code == 0
        assert "Profile: TestPatient" in result.output
        assert "Patient (3 features)" in result.output

    def test_apply_format_from_config(
        self, patient_profile_path, base_ecore_path, tmp_path, monkeypatch
    ):
        monkeypatch.setenv("FHIRPROFILER_OUTPUT_FORMAT", "json")
        output = tmp_path / "patient.out"
        result = runner.invoke(app, _apply_args(patient_profile_path, base_ecore_path, output))
        assert result.exit_code == 0
        assert json.loads(output.read_text())["name"] == "fhir"

    def test_apply_json_output(
        self, patient_profile_path, base_ecore_path, tmp_path, monkeypatch
    ):
        monkeypatch.setenv("FHIRPROFILER_LOG_LEVEL", "ERROR")
        output = tmp_path / "patient.ecore"
        result = runner.invoke(
            app, ["--json", *_apply_args(patient_profile_path, base_ecore_path, output)]
        )

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["status"] == "success"
        assert data["exit_code"] == 0
        assert data["result"]["applied_count"] == 3
        assert data["result"]["skipped_count"] == 2
        assert data["result"]["class_count"] == 1
        assert data["result"]["category_counts"] == {
            "MALFORMED_PATH": 1,
            "CLASS_NOT_FOUND": 1,
        }
        # The root element is info-only and not reported as a warning
        assert [(w["path"], w["category"]) for w in data["warnings"]] == [
            ("Unknown.field", "CLASS_NOT_FOUND")
        ]

    def test_apply_missing_base(self, patient_profile_path, tmp_path):
        result = runner.invoke(
            app,
            _apply_args(patient_profile_path, tmp_path / "missing.ecore", tmp_path / "o.ecore"),
        )
        assert result.exit_code == 3

    def test_apply_missing_profile(self, base_ecore_path, tmp_path):
        result = runner.invoke(
            app,
            _apply_args(tmp_path / "missing.json", base_ecore_path, tmp_path / "o.ecore"),
        )
        assert result.exit_code == 3

    def test_apply_invalid_profile(self, base_ecore_path, tmp_path):
        profile = tmp_path / "profile.json"
        profile.write_text('{"resourceType": "StructureDefinition"}')
        result = runner.invoke(app, _apply_args(profile, base_ecore_path, tmp_path / "o.ecore"))
        assert result.exit_code == 5
        assert not (tmp_path / "o.ecore").exists()

    def test_apply_snapshot_elements_not_objects(self, base_ecore_path, tmp_path):
        profile = tmp_path / "profile.json"
        profile.write_text(
            '{"resourceType": "StructureDefinition", "snapshot": {"element": {"a": 1}}}'
        )
        result = runner.invoke(app, _apply_args(profile, base_ecore_path, tmp_path / "o.ecore"))
        assert result.exit_code == 5

    def test_apply_invalid_base(self, patient_profile_path, tmp_path):
        base = tmp_path / "fhir.ecore"
        base.write_text("<not-closed")
        result = runner.invoke(
            app, _apply_args(patient_profile_path, base, tmp_path / "o.ecore")
        )
        assert result.exit_code == 4

    def test_apply_unwritable_output(self, patient_profile_path, base_ecore_path, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        result = runner.invoke(
            app, _apply_args(patient_profile_path, base_ecore_path, blocker / "o.ecore")
        )
        assert result.exit_code == 6

    def test_apply_unknown_format(self, patient_profile_path, base_ecore_path, tmp_path):
        result = runner.invoke(
            app,
            _apply_args(
                patient_profile_path, base_ecore_path, tmp_path / "o.ecore", "-f", "xsd"
            ),
        )
        assert result.exit_code == 1
        assert "Unknown output format" in result.output


class TestInspectCommand:
    """Tests for the inspect command."""

    def test_inspect_lists_classifiers(self, base_ecore_path):
        result = runner.invoke(app, ["inspect", str(base_ecore_path)])
        assert result.exit_code == 0
        assert "DomainResource" in result.output
        assert "HumanName" in result.output

    def test_inspect_class_includes_inherited(self, base_ecore_path):
        result = runner.invoke(app, ["--json", "inspect", str(base_ecore_path), "-c", "Patient"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [row["Name"] for row in data["features"]] == [
            "identifier",
            "active",
            "name",
            "gender",
            "text",
            "id",
        ]
        assert data["features"][0]["Card."] == "0..*"

    def test_inspect_unknown_class(self, base_ecore_path):
        result = runner.invoke(app, ["inspect", str(base_ecore_path), "--class", "Nope"])
        assert result.exit_code == 1
        assert "Class not found" in result.output

    def test_inspect_missing_file(self, tmp_path):
        result = runner.invoke(app, ["inspect", str(tmp_path / "missing.ecore")])
        assert result.exit_code == 3


class TestConfigCommand:
    """Tests for the config command."""

    def test_config_show(self):
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "Namespaces" in result.output
        assert "Output" in result.output

    def test_config_set_and_reset(self):
        result = runner.invoke(app, ["config", "set", "output.format", "yaml"])
        assert result.exit_code == 0
        result = runner.invoke(app, ["config", "show"])
        assert "format = yaml" in result.output

        result = runner.invoke(app, ["config", "reset"])
        assert result.exit_code == 0
        result = runner.invoke(app, ["config", "show"])
        assert "format = auto" in result.output

    def test_config_set_invalid_key(self):
        result = runner.invoke(app, ["config", "set", "invalid.key", "value"])
        assert result.exit_code == 1
        assert "Unknown key" in result.output

    def test_config_set_invalid_choice(self):
        result = runner.invoke(app, ["config", "set", "logging.level", "loud"])
        assert result.exit_code == 1
        assert "Invalid value" in result.output

    def test_config_set_missing_args(self):
        result = runner.invoke(app, ["config", "set"])
        assert result.exit_code == 1

    def test_config_unknown_action(self):
        result = runner.invoke(app, ["config", "unknown_action"])
        assert result.exit_code == 1
        assert "Unknown action" in result.output


class TestGlobalOptions:
    def test_version_output(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"fhirprofiler {__version__}" in result.output

    def test_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "apply" in result.output

    def test_short_help(self):
        result = runner.invoke(app, ["-h"])
        assert result.exit_code == 0
        assert "apply" in result.output

    def test_subcommand_short_help(self):
        result = runner.invoke(app, ["apply", "-h"])
        assert result.exit_code == 0
        assert "--profile" in result.output
