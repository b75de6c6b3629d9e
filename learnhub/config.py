"""
Learnhub Configuration
Environment detection, database and identity provider settings
"""

import os
from functools import lru_cache
from typing import List, Optional, Set


ENVIRONMENTS = ("development", "production", "test")


class Settings:
    """Validated configuration read once from the environment"""

    def __init__(self, environ: Optional[dict] = None):
        env = os.environ if environ is None else environ

        self.ENVIRONMENT = self._parse_environment(env.get("ENVIRONMENT"))

        # MongoDB
        self.MONGO_URL = env.get("MONGO_URL", "mongodb://localhost:27017")
        self.MONGO_DB_NAME = env.get("MONGO_DB_NAME", "learnhub")

        # Firebase service account, first match wins
        self.FIREBASE_SERVICE_ACCOUNT_PATH = env.get("FIREBASE_SERVICE_ACCOUNT_PATH")
        self.FIREBASE_SERVICE_ACCOUNT_BASE64 = env.get("FIREBASE_SERVICE_ACCOUNT_BASE64")
        self.FIREBASE_SERVICE_ACCOUNT = env.get("FIREBASE_SERVICE_ACCOUNT")
        self.FIREBASE_PROJECT_ID = env.get("FIREBASE_PROJECT_ID")
        private_key = env.get("FIREBASE_PRIVATE_KEY")
        self.FIREBASE_PRIVATE_KEY = private_key.replace("\\n", "\n") if private_key else None
        self.FIREBASE_CLIENT_EMAIL = env.get("FIREBASE_CLIENT_EMAIL")

        self.ADMIN_EMAILS = self._parse_admin_emails(env.get("ADMIN_EMAILS", ""))
        self.CORS_ORIGINS = self._split(env.get("CORS_ORIGINS", "*"))
        self.HEALTH_PING_URLS = self._split(env.get("HEALTH_PING_URLS", ""))
        self.HEALTH_PING_TIMEOUT_SECONDS = float(env.get("HEALTH_PING_TIMEOUT_SECONDS", "5"))
        self.LOG_LEVEL = env.get("LOG_LEVEL", "DEBUG" if self.is_development else "INFO").upper()

    @staticmethod
    def _parse_environment(value: Optional[str]) -> str:
        value = (value or "development").strip().lower()
        return value if value in ENVIRONMENTS else "development"

    @staticmethod
    def _parse_admin_emails(emails_str: str) -> Set[str]:
        """Parse comma-separated admin emails into a lower-cased set"""
        return {email.strip().lower() for email in emails_str.split(",") if email.strip()}

    @staticmethod
    def _split(value: str) -> List[str]:
        return [item.strip() for item in value.split(",") if item.strip()]

    # ==================== ENVIRONMENT FLAGS ====================

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def expose_error_details(self) -> bool:
        """Full error details in responses (development only)"""
        return self.is_development

    @property
    def detailed_health_checks(self) -> bool:
        return self.is_development


@lru_cache()
def get_settings() -> Settings:
    return Settings()
