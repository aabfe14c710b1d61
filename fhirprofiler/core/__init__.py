"""Core models and errors shared across fhirprofiler."""
