"""
Firebase Admin SDK initialization and configuration.
Initializes Firebase Admin SDK once at application startup.
Used for bearer-token verification and push notifications.
"""
import json
import os
import logging
from typing import Optional
import firebase_admin
from firebase_admin import credentials, auth
from ideaboard.config import settings

logger = logging.getLogger(__name__)


# Global Firebase app instance
_firebase_app: Optional[firebase_admin.App] = None


def initialize_firebase() -> None:
    """
    Initialize Firebase Admin SDK.

    FIREBASE_CREDENTIALS_JSON may be a file path or a JSON string.
    If it is not provided, uses default credentials (for local dev with gcloud).
    """
    global _firebase_app

    if _firebase_app is not None:
        return

    if not settings.firebase_project_id:
        raise ValueError("FIREBASE_PROJECT_ID must be set")

    if settings.firebase_credentials_json:
        credential_source = settings.firebase_credentials_json
        if os.path.exists(credential_source):
            cred = credentials.Certificate(credential_source)
            logger.info(f"Loaded Firebase credentials from file: {credential_source}")
        else:
            try:
                cred = credentials.Certificate(json.loads(credential_source))
                logger.info("Loaded Firebase credentials from JSON string")
            except json.JSONDecodeError:
                raise ValueError(
                    "FIREBASE_CREDENTIALS_JSON must be a valid file path or JSON string"
                )
    else:
        cred = credentials.ApplicationDefault()

    _firebase_app = firebase_admin.initialize_app(
        cred,
        {"projectId": settings.firebase_project_id}
    )


def verify_firebase_token(token: str) -> dict:
    """
    Verify Firebase ID token and return decoded token claims.

    Args:
        token: Firebase JWT ID token string

    Returns:
        Decoded token claims dict with uid, email, etc.

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


def get_firebase_app() -> Optional[firebase_admin.App]:
    """Get the initialized Firebase app instance."""
    return _firebase_app
