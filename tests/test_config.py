"""Settings parsing and Firebase credential selection."""

import pytest

from learnhub.auth.firebase_provider import load_credential
from learnhub.config import Settings


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings({})

        assert settings.ENVIRONMENT == "development"
        assert settings.is_development
        assert settings.MONGO_URL == "mongodb://localhost:27017"
        assert settings.MONGO_DB_NAME == "learnhub"
        assert settings.CORS_ORIGINS == ["*"]
        assert settings.ADMIN_EMAILS == set()
        assert settings.LOG_LEVEL == "DEBUG"

    def test_unknown_environment_falls_back_to_development(self) -> None:
        assert Settings({"ENVIRONMENT": "staging"}).ENVIRONMENT == "development"

    def test_production_hides_details(self) -> None:
        settings = Settings({"ENVIRONMENT": "Production"})

        assert settings.is_production
        assert settings.expose_error_details is False
        assert settings.detailed_health_checks is False
        assert settings.LOG_LEVEL == "INFO"

    def test_admin_emails_are_normalised(self) -> None:
        settings = Settings({"ADMIN_EMAILS": " Root@LearnHub.dev , ,ops@learnhub.dev"})

        assert settings.ADMIN_EMAILS == {"root@learnhub.dev", "ops@learnhub.dev"}

    def test_private_key_newlines_unescaped(self) -> None:
        settings = Settings({"FIREBASE_PRIVATE_KEY": "-----BEGIN-----\\nabc\\n-----END-----"})
        assert settings.FIREBASE_PRIVATE_KEY == "-----BEGIN-----\nabc\n-----END-----"

    def test_lists_split_on_commas(self) -> None:
        settings = Settings({
            "CORS_ORIGINS": "https://learnhub.dev, http://localhost:3000",
            "HEALTH_PING_URLS": "https://cdn.learnhub.dev/ping",
        })

        assert settings.CORS_ORIGINS == ["https://learnhub.dev", "http://localhost:3000"]
        assert settings.HEALTH_PING_URLS == ["https://cdn.learnhub.dev/ping"]


class TestLoadCredential:
    def test_nothing_configured(self) -> None:
        with pytest.raises(RuntimeError, match="Firebase credentials not found"):
            load_credential(Settings({}))

    def test_partial_individual_variables(self) -> None:
        with pytest.raises(RuntimeError):
            load_credential(Settings({"FIREBASE_PROJECT_ID": "learnhub"}))

    def test_invalid_base64(self) -> None:
        with pytest.raises(RuntimeError, match="FIREBASE_SERVICE_ACCOUNT_BASE64"):
            load_credential(Settings({"FIREBASE_SERVICE_ACCOUNT_BASE64": "bm90IGpzb24="}))

    def test_invalid_json(self) -> None:
        with pytest.raises(RuntimeError, match="FIREBASE_SERVICE_ACCOUNT JSON"):
            load_credential(Settings({"FIREBASE_SERVICE_ACCOUNT": "{not json"}))
