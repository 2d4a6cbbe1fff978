"""
Firebase initialization.
Single-source-of-truth Firestore client and Storage bucket for CivicPulse.
"""

from typing import Optional
import json
import logging
import os

import firebase_admin
from firebase_admin import credentials, firestore, initialize_app, storage

from civicpulse.core.settings import settings

logger = logging.getLogger(__name__)

db: Optional[firestore.Client] = None


def _firebase_options() -> dict:
    options = {}
    if settings.FIREBASE_PROJECT_ID:
        options["projectId"] = settings.FIREBASE_PROJECT_ID
    if settings.FIREBASE_STORAGE_BUCKET:
        options["storageBucket"] = settings.FIREBASE_STORAGE_BUCKET
    return options


def _load_certificate(cred_path: str) -> credentials.Certificate:
    """Validate the service account file before handing it to the SDK."""
    if not os.path.exists(cred_path):
        raise FileNotFoundError(
            f"Firebase credentials file not found: {cred_path}\n"
            f"Current working directory: {os.getcwd()}"
        )

    try:
        with open(cred_path, "r") as f:
            cred_data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Firebase credentials file is not valid JSON: {e}")

    required_fields = ["type", "project_id", "private_key", "client_email"]
    missing_fields = [field for field in required_fields if field not in cred_data]
    if missing_fields:
        raise ValueError(
            f"Firebase credentials file is missing required fields: {missing_fields}"
        )

    logger.info(f"[FIRESTORE] Credentials file validated: {cred_path} (project {cred_data.get('project_id')})")
    return credentials.Certificate(cred_path)


def initialize_firestore() -> firestore.Client:
    global db

    if db is not None:
        return db

    if settings.USE_MOCK_DB:
        from civicpulse.config.mock_firestore import MockFirestoreClient
        db = MockFirestoreClient()
        logger.info("[FIRESTORE] USING MOCK DATABASE")
        return db

    try:
        if not firebase_admin._apps:
            if settings.FIREBASE_CREDENTIALS_PATH:
                cred = _load_certificate(settings.FIREBASE_CREDENTIALS_PATH)
                initialize_app(cred, _firebase_options())
                logger.info("[FIRESTORE] Firebase Admin SDK initialized with service account")
            else:
                logger.info("[FIRESTORE] No credentials path set, using Application Default Credentials")
                initialize_app(options=_firebase_options())

        db = firestore.client()
        logger.info(f"[FIRESTORE] USING REAL FIRESTORE DATABASE (project: {settings.FIREBASE_PROJECT_ID or 'default'})")
        return db

    except FileNotFoundError as e:
        raise RuntimeError(
            f"Firestore initialization FAILED - Credentials file not found.\n{e}\n"
            f"SOLUTION: Check your .env file and ensure FIREBASE_CREDENTIALS_PATH points to a valid service account JSON file."
        )
    except ValueError as e:
        raise RuntimeError(
            f"Firestore initialization FAILED - Invalid credentials file.\n{e}\n"
            f"SOLUTION: Download a fresh service account key from Firebase Console."
        )
    except Exception as e:
        raise RuntimeError(
            f"Firestore initialization FAILED. Error: {e}\n"
            f"Please check your Firebase credentials and configuration."
        )


def get_db() -> firestore.Client:
    """
    Get the initialized Firestore client.

    Raises RuntimeError if Firestore has not been initialized.
    """
    if db is None:
        try:
            initialize_firestore()
        except Exception as e:
            raise RuntimeError(
                f"Firestore not initialized and initialization failed: {e}. "
                "Please check your Firebase credentials and configuration."
            )
    return db


def get_bucket():
    """Storage bucket for issue photos (requires FIREBASE_STORAGE_BUCKET)."""
    get_db()
    return storage.bucket(settings.FIREBASE_STORAGE_BUCKET)
