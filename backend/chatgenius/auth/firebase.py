"""
Firebase Admin SDK initialization and configuration.
Initializes Firebase Admin SDK once per process: token verification for the
API and Realtime Database access for the message and profile stores.
"""
import json
import os
import logging
from typing import Optional
import firebase_admin
from firebase_admin import credentials, auth
from chatgenius.config import Settings

logger = logging.getLogger(__name__)


# Global Firebase app instance
_firebase_app: Optional[firebase_admin.App] = None


def initialize_firebase(settings: Settings) -> firebase_admin.App:
    """
    Initialize Firebase Admin SDK.

    Supports two methods for credentials:
    1. FIREBASE_CREDENTIALS_JSON as file path
    2. FIREBASE_CREDENTIALS_JSON as JSON string

    If neither is provided, uses default credentials (for local dev with gcloud).
    """
    global _firebase_app

    if _firebase_app is not None:
        return _firebase_app

    if not settings.firebase_project_id:
        raise ValueError("FIREBASE_PROJECT_ID must be set")

    if settings.firebase_credentials_json:
        credential_path = settings.firebase_credentials_json

        if os.path.exists(credential_path):
            cred = credentials.Certificate(credential_path)
            logger.info(f"Loaded Firebase credentials from file: {credential_path}")
        else:
            try:
                cred_dict = json.loads(settings.firebase_credentials_json)
            except json.JSONDecodeError:
                raise ValueError(
                    f"FIREBASE_CREDENTIALS_JSON must be a valid file path or JSON string. "
                    f"Tried: {credential_path}"
                )
            cred = credentials.Certificate(cred_dict)
            logger.info("Loaded Firebase credentials from JSON string")
    else:
        # Use default credentials (for local development with gcloud)
        cred = credentials.ApplicationDefault()

    options = {"projectId": settings.firebase_project_id}
    if settings.firebase_database_url:
        options["databaseURL"] = settings.firebase_database_url

    _firebase_app = firebase_admin.initialize_app(cred, options)
    return _firebase_app


def verify_firebase_token(token: str) -> dict:
    """
    Verify Firebase ID token and return decoded token claims.

    Args:
        token: Firebase JWT ID token string

    Returns:
        Decoded token claims dict with uid, email, custom claims, etc.

    Raises:
        ValueError: If token is invalid, expired, or revoked
    """
    if _firebase_app is None:
        raise RuntimeError("Firebase Admin SDK not initialized. Call initialize_firebase() first.")

    try:
        # Verifies signature, expiration, issuer and audience
        return auth.verify_id_token(token, app=_firebase_app)
    except ValueError:
        raise
    except Exception as e:
        raise ValueError(f"Token verification failed: {str(e)}")

