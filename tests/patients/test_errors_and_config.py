"""
Error envelope, status mapping and settings tests.
"""
import pytest

from patient_records.config.config import Settings
from patient_records.core.errors import (
    HTTP_STATUS_BY_KIND,
    ErrorKind,
    FieldError,
    ServiceError,
    ValidationError,
    conflict,
    entry_not_found,
    forbidden,
    internal,
    owner_not_found,
)


@pytest.mark.unit
class TestErrorKinds:
    def test_every_kind_has_a_status(self):
        assert set(HTTP_STATUS_BY_KIND) == set(ErrorKind)

    @pytest.mark.parametrize(
        "error, status_code",
        [
            (owner_not_found(), 404),
            (entry_not_found("lifestyle entry not found"), 404),
            (forbidden(), 403),
            (conflict("exists"), 409),
            (internal("db down"), 500),
            (ValidationError("INVALID_PATIENT_DATA"), 400),
        ],
    )
    def test_status_codes(self, error: ServiceError, status_code: int):
        assert error.status_code == status_code

    def test_internal_message_is_not_exposed(self):
        assert internal("password=hunter2 in dsn").to_response() == {
            "error": "An unexpected error occurred"
        }

    def test_validation_envelope(self):
        error = ValidationError(
            "INVALID_LIFESTYLE_DATA",
            details=[
                FieldError(
                    "lifestyle_factor",
                    "required",
                    "Field lifestyle_factor failed validation for tag required: is required",
                )
            ],
        )

        body = error.to_response()

        assert body["code"] == "INVALID_LIFESTYLE_DATA"
        assert body["details"][0]["field"] == "lifestyle_factor"
        assert body["error"].startswith("INVALID_LIFESTYLE_DATA: Validation errors occurred - ")


@pytest.mark.unit
class TestSettings:
    @pytest.mark.parametrize(
        "environment, expected",
        [("production", "INFO"), ("test", "WARNING"), ("development", "DEBUG")],
    )
    def test_log_level_follows_environment(self, environment, expected):
        config = Settings(ENVIRONMENT=environment, LOG_LEVEL=None)
        assert config.effective_log_level == expected

    def test_explicit_log_level_wins(self):
        config = Settings(ENVIRONMENT="production", LOG_LEVEL="debug")
        assert config.effective_log_level == "DEBUG"

    def test_environment_variables_are_read(self, monkeypatch):
        monkeypatch.setenv("API_PREFIX", "/v2")
        monkeypatch.setenv("ENFORCE_TOKEN_PERMISSIONS", "false")

        config = Settings()

        assert config.API_PREFIX == "/v2"
        assert config.ENFORCE_TOKEN_PERMISSIONS is False
