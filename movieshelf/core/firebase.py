import logging
from contextlib import contextmanager
from typing import Callable, Optional, TypeVar

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core.exceptions import GoogleAPIError

from .config import Settings
from .errors import StoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")

FIREBASE_APP_NAME = "movieshelf"


def init_firebase(settings: Settings) -> firebase_admin.App:
    """Create the Firebase app used for auth and Firestore.

    Falls back to application default credentials when no service account
    file is configured.
    """
    creds_path = settings.FIREBASE_CREDS_PATH_ABSOLUTE
    if creds_path is not None:
        cred = credentials.Certificate(str(creds_path))
    else:
        cred = credentials.ApplicationDefault()

    options = {"projectId": settings.FIREBASE_PROJECT_ID} if settings.FIREBASE_PROJECT_ID else None
    firebase_app = firebase_admin.initialize_app(cred, options, name=FIREBASE_APP_NAME)
    logger.info(f"Firebase app initialized (project: {settings.FIREBASE_PROJECT_ID or 'default'})")
    return firebase_app


def close_firebase(firebase_app: Optional[firebase_admin.App]) -> None:
    if firebase_app is not None:
        firebase_admin.delete_app(firebase_app)
        logger.info("Firebase app closed")


def firestore_client(firebase_app: firebase_admin.App):
    return firestore.client(app=firebase_app)


def run_in_transaction(db, callback: Callable[..., T]) -> T:
    """Run ``callback(transaction)`` inside a Firestore transaction, retrying on contention."""
    transaction = db.transaction()
    return firestore.transactional(callback)(transaction)


@contextmanager
def store_errors():
    """Re-raise Firestore API failures as StoreError, keeping the store's message."""
    try:
        yield
    except GoogleAPIError as e:
        raise StoreError(str(e)) from e
