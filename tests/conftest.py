"""Shared fixtures: a small FHIR-like base schema and profile documents."""

import copy
import json

import pytest

from fhirprofiler import config as config_module
from fhirprofiler.cli.commands import config_cmd
from fhirprofiler.core.models import (
    UNBOUNDED,
    ClassDescriptor,
    FeatureDescriptor,
    Schema,
)
from fhirprofiler.formats.ecore import write_ecore


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep tests away from the user's config file and env."""
    config_dir = tmp_path / "config"
    monkeypatch.setattr(config_module, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config_module, "CONFIG_FILE", config_dir / "config.json")
    monkeypatch.setattr(config_cmd, "CONFIG_FILE", config_dir / "config.json")
    for name in (
        "FHIRPROFILER_SLICING_SOURCE",
        "FHIRPROFILER_DOMAIN_SOURCE",
        "FHIRPROFILER_DOCUMENTATION_SOURCE",
        "FHIRPROFILER_OUTPUT_FORMAT",
        "FHIRPROFILER_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    config_module.reset_config()
    yield
    config_module.reset_config()


def make_base_schema() -> Schema:
    schema = Schema(name="fhir", ns_uri="http://hl7.org/fhir", ns_prefix="fhir")
    schema.ensure_annotation("http://www.eclipse.org/emf/2002/GenModel").details[
        "documentation"
    ] = "FHIR base"

    schema.add_classifier(
        ClassDescriptor(
            name="Resource",
            abstract=True,
            features=[
                FeatureDescriptor(
                    name="id",
                    kind="reference",
                    type_ref="#//Id",
                    properties={"containment": "true"},
                ),
            ],
        )
    )
    schema.add_classifier(
        ClassDescriptor(
            name="DomainResource",
            abstract=True,
            super_types=["Resource"],
            features=[
                FeatureDescriptor(
                    name="text",
                    kind="reference",
                    type_ref="#//Narrative",
                    properties={"containment": "true"},
                ),
            ],
        )
    )
    schema.add_classifier(
        ClassDescriptor(
            name="Patient",
            super_types=["DomainResource"],
            features=[
                FeatureDescriptor(
                    name="identifier",
                    kind="reference",
                    type_ref="#//Identifier",
                    upper_bound=UNBOUNDED,
                    properties={"containment": "true"},
                ),
                FeatureDescriptor(
                    name="active",
                    kind="reference",
                    type_ref="#//Boolean",
                    properties={"containment": "true"},
                ),
                FeatureDescriptor(
                    name="name",
                    kind="reference",
                    type_ref="#//HumanName",
                    upper_bound=UNBOUNDED,
                    properties={"containment": "true"},
                ),
                FeatureDescriptor(
                    name="gender",
                    kind="reference",
                    type_ref="#//AdministrativeGender",
                    properties={"containment": "true"},
                ),
            ],
        )
    )
    schema.add_classifier(
        ClassDescriptor(
            name="HumanName",
            features=[
                FeatureDescriptor(
                    name="family",
                    kind="reference",
                    type_ref="#//String",
                    properties={"containment": "true"},
                ),
            ],
        )
    )
    schema.add_classifier(
        ClassDescriptor(
            name="string",
            kind="datatype",
            properties={"instanceClassName": "java.lang.String"},
        )
    )
    return schema


@pytest.fixture
def base_schema() -> Schema:
    return make_base_schema()


@pytest.fixture
def base_ecore_path(tmp_path):
    path = tmp_path / "fhir.ecore"
    write_ecore(make_base_schema(), path)
    return path


PATIENT_PROFILE = {
    "resourceType": "StructureDefinition",
    "url": "http://example.org/StructureDefinition/test-patient",
    "name": "TestPatient",
    "type": "Patient",
    "fhirVersion": "4.0.1",
    "snapshot": {
        "element": [
            {"id": "Patient", "path": "Patient", "min": 0, "max": "*"},
            {
                "id": "Patient.identifier",
                "path": "Patient.identifier",
                "min": 1,
                "max": "*",
                "mustSupport": True,
                "slicing": {
                    "discriminator": [{"type": "value", "path": "system"}],
                    "rules": "open",
                    "ordered": False,
                },
            },
            {
                "id": "Patient.name",
                "path": "Patient.name",
                "short": "Patient's name",
                "definition": "A name associated with the patient.",
                "min": 1,
                "max": "1",
                "mustSupport": True,
            },
            {
                "id": "Patient.gender",
                "path": "Patient.gender",
                "min": 1,
                "max": "1",
                "binding": {
                    "strength": "required",
                    "valueSet": "http://hl7.org/fhir/ValueSet/administrative-gender",
                },
            },
            {"id": "Unknown.field", "path": "Unknown.field", "min": 0, "max": "1"},
        ]
    },
}


@pytest.fixture
def patient_profile_path(tmp_path):
    path = tmp_path / "test-patient.json"
    path.write_text(json.dumps(PATIENT_PROFILE))
    return path


@pytest.fixture
def patient_profile():
    return copy.deepcopy(PATIENT_PROFILE)
