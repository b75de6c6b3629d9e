"""
Firebase identity provider
Verifies Firebase ID tokens and manages provider-side accounts
"""

import asyncio
import base64
import json
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import firebase_admin
from firebase_admin import auth, credentials, exceptions

from learnhub.config import Settings

logger = logging.getLogger(__name__)


class IdentityProviderError(Exception):
    """Any failure reported by the identity provider"""

    def __init__(self, code: str, message: str = ""):
        super().__init__(message or code)
        self.code = code


@dataclass
class ProviderUser:
    uid: str
    email: Optional[str]
    display_name: Optional[str] = None
    email_verified: bool = False
    photo_url: Optional[str] = None


class IdentityProvider(Protocol):
    async def verify_token(self, token: str) -> dict: ...
    async def create_user(self, email: str, password: str, display_name: Optional[str] = None) -> ProviderUser: ...
    async def get_user(self, uid: str) -> ProviderUser: ...
    async def generate_password_reset_link(self, email: str) -> str: ...


# ==================== INITIALIZATION ====================

def load_credential(settings: Settings) -> credentials.Certificate:
    """
    Build the service account credential from the environment

    Tried in order: a service account file, a Base64-encoded JSON document,
    a raw JSON document, then the individual project/key/email variables.

    Raises:
        RuntimeError: If no usable credential is configured
    """
    if settings.FIREBASE_SERVICE_ACCOUNT_PATH:
        logger.info("Firebase credential loaded from service account file")
        return credentials.Certificate(settings.FIREBASE_SERVICE_ACCOUNT_PATH)

    if settings.FIREBASE_SERVICE_ACCOUNT_BASE64:
        try:
            decoded = base64.b64decode(settings.FIREBASE_SERVICE_ACCOUNT_BASE64).decode("utf-8")
            service_account = json.loads(decoded)
        except (ValueError, UnicodeDecodeError) as e:
            raise RuntimeError(f"Invalid FIREBASE_SERVICE_ACCOUNT_BASE64 format: {e}")
        logger.info("Firebase credential loaded from FIREBASE_SERVICE_ACCOUNT_BASE64")
        return credentials.Certificate(service_account)

    if settings.FIREBASE_SERVICE_ACCOUNT:
        try:
            service_account = json.loads(settings.FIREBASE_SERVICE_ACCOUNT)
        except ValueError as e:
            raise RuntimeError(f"Invalid FIREBASE_SERVICE_ACCOUNT JSON format: {e}")
        logger.info("Firebase credential loaded from FIREBASE_SERVICE_ACCOUNT")
        return credentials.Certificate(service_account)

    if not (settings.FIREBASE_PROJECT_ID and settings.FIREBASE_PRIVATE_KEY and settings.FIREBASE_CLIENT_EMAIL):
        raise RuntimeError(
            "Firebase credentials not found. Set one of: "
            "FIREBASE_SERVICE_ACCOUNT_PATH, FIREBASE_SERVICE_ACCOUNT_BASE64, "
            "FIREBASE_SERVICE_ACCOUNT, or FIREBASE_PROJECT_ID + FIREBASE_PRIVATE_KEY + FIREBASE_CLIENT_EMAIL"
        )

    logger.info("Firebase credential loaded from individual environment variables")
    return credentials.Certificate({
        "type": "service_account",
        "project_id": settings.FIREBASE_PROJECT_ID,
        "private_key": settings.FIREBASE_PRIVATE_KEY,
        "client_email": settings.FIREBASE_CLIENT_EMAIL,
        "token_uri": "https://oauth2.googleapis.com/token",
    })


def init_firebase(settings: Settings) -> firebase_admin.App:
    """
    Initialize the Firebase Admin SDK once per process
    Call this from the application lifespan
    """
    if firebase_admin._apps:
        logger.info("Firebase Admin SDK already initialized")
        return firebase_admin.get_app()

    app = firebase_admin.initialize_app(load_credential(settings))
    logger.info("Firebase Admin SDK initialized")
    return app


# ==================== PROVIDER ====================

def _to_provider_user(record: auth.UserRecord) -> ProviderUser:
    return ProviderUser(
        uid=record.uid,
        email=record.email,
        display_name=record.display_name,
        email_verified=record.email_verified,
        photo_url=record.photo_url,
    )


class FirebaseIdentityProvider:
    """
    IdentityProvider backed by firebase_admin.auth

    The SDK calls are blocking, so each one runs in a worker thread.
    """

    def __init__(self, app: Optional[firebase_admin.App] = None):
        self.app = app

    async def verify_token(self, token: str) -> dict:
        try:
            decoded = await asyncio.to_thread(auth.verify_id_token, token, self.app)
        except (ValueError, exceptions.FirebaseError) as e:
            logger.warning("Failed to verify ID token: %s", e)
            raise IdentityProviderError("invalid-token", str(e))

        return {
            "uid": decoded.get("uid") or decoded.get("sub"),
            "email": decoded.get("email"),
            "email_verified": decoded.get("email_verified", False),
            "name": decoded.get("name"),
            "picture": decoded.get("picture"),
        }

    async def create_user(self, email: str, password: str, display_name: Optional[str] = None) -> ProviderUser:
        try:
            record = await asyncio.to_thread(
                auth.create_user,
                email=email,
                password=password,
                display_name=display_name,
                email_verified=False,
                app=self.app,
            )
        except auth.EmailAlreadyExistsError as e:
            raise IdentityProviderError("email-already-exists", str(e))
        except ValueError as e:
            # SDK-side argument validation: malformed email, short password
            code = "invalid-email" if "email" in str(e).lower() else "weak-password"
            raise IdentityProviderError(code, str(e))
        except exceptions.FirebaseError as e:
            logger.error("Failed to create Firebase user: %s", e)
            raise IdentityProviderError(str(e.code), str(e))
        return _to_provider_user(record)

    async def get_user(self, uid: str) -> ProviderUser:
        try:
            record = await asyncio.to_thread(auth.get_user, uid, self.app)
        except (ValueError, exceptions.FirebaseError) as e:
            logger.error("Failed to get user by UID %s: %s", uid, e)
            raise IdentityProviderError("user-not-found", str(e))
        return _to_provider_user(record)

    async def generate_password_reset_link(self, email: str) -> str:
        try:
            return await asyncio.to_thread(auth.generate_password_reset_link, email, None, self.app)
        except (ValueError, exceptions.FirebaseError) as e:
            raise IdentityProviderError("reset-link-failed", str(e))
