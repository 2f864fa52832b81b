"""
Firebase Authentication Service

Verifies the Firebase ID tokens the web client sends with each request.
"""
import os
import json
import logging
from typing import Optional, Tuple
from pathlib import Path

import firebase_admin
from firebase_admin import credentials, auth
from firebase_admin.auth import InvalidIdTokenError, ExpiredIdTokenError, RevokedIdTokenError

from fiber_friends.config import settings

logger = logging.getLogger(__name__)


def _load_credentials() -> Tuple[Optional[credentials.Base], Optional[str]]:
    """
    Resolve service account credentials.

    Order:
    1. FIREBASE_CREDENTIALS_JSON (inline JSON, for hosted deployments)
    2. FIREBASE_CREDENTIALS_PATH
    3. firebase-adminsdk.json in the project root
    4. GOOGLE_APPLICATION_CREDENTIALS (application default)

    Returns:
        (credential, source) - credential is None for application default,
        source is None when nothing was found.
    """
    json_creds = os.getenv("FIREBASE_CREDENTIALS_JSON")
    if json_creds:
        try:
            return credentials.Certificate(json.loads(json_creds)), "FIREBASE_CREDENTIALS_JSON"
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse FIREBASE_CREDENTIALS_JSON: {e}")

    cred_path = os.getenv("FIREBASE_CREDENTIALS_PATH")
    if cred_path and Path(cred_path).exists():
        return credentials.Certificate(cred_path), cred_path

    default_path = settings.FIREBASE_DEFAULT_CREDENTIALS
    if default_path.exists():
        return credentials.Certificate(str(default_path)), str(default_path)

    if os.getenv("GOOGLE_APPLICATION_CREDENTIALS"):
        return None, "GOOGLE_APPLICATION_CREDENTIALS"

    return None, None


class FirebaseAuth:
    """
    Firebase Admin SDK wrapper for token verification.
    """

    _initialized: bool = False

    @classmethod
    def initialize(cls) -> bool:
        """
        Initialize the Firebase Admin SDK once per process.

        Returns:
            True if initialized successfully, False otherwise.
        """
        if cls._initialized:
            return True

        try:
            cred, source = _load_credentials()
            if source is None:
                logger.warning("No Firebase credentials found. Auth will fail.")
                return False

            if cred is not None:
                firebase_admin.initialize_app(cred)
            else:
                firebase_admin.initialize_app()
            cls._initialized = True
            logger.info(f"Firebase initialized from {source}")
            return True

        except (ValueError, OSError) as e:
            logger.error(f"Failed to initialize Firebase: {e}")
            return False

    @classmethod
    def verify_token(cls, id_token: str) -> Optional[dict]:
        """
        Verify a Firebase ID token.

        Args:
            id_token: The Firebase ID token from the client.

        Returns:
            Decoded token claims, or None if the token is not acceptable.
        """
        if not cls.initialize():
            logger.error("Firebase not initialized, cannot verify token")
            return None

        try:
            return auth.verify_id_token(id_token)
        except ExpiredIdTokenError as e:
            logger.warning(f"Expired Firebase token: {e}")
        except RevokedIdTokenError as e:
            logger.warning(f"Revoked Firebase token: {e}")
        except InvalidIdTokenError as e:
            logger.warning(f"Invalid Firebase token: {e}")
        except ValueError as e:
            logger.warning(f"Malformed Firebase token: {e}")
        return None

    @classmethod
    def get_user_info(cls, id_token: str) -> Optional[dict]:
        """
        User identity from a Firebase ID token.

        Returns:
            Dict with uid, email, display_name, or None if invalid.
        """
        decoded = cls.verify_token(id_token)
        if not decoded:
            return None

        return {
            "uid": decoded.get("uid"),
            "email": decoded.get("email", ""),
            "display_name": decoded.get("name"),
        }


# Singleton instance for convenience
firebase_auth = FirebaseAuth()
