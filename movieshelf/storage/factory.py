import logging
from typing import Optional

from ..collections.service import CollectionsService
from ..core.config import Settings
from ..favorites.service import FavoritesService
from .base import Storage
from .local import LocalStorage

logger = logging.getLogger(__name__)


class FirestoreStorage(Storage):
    name = "firestore"

    def __init__(self, db):
        self.db = db

    def collections(self, user_id: Optional[str]) -> CollectionsService:
        return CollectionsService(self.db, user_id)

    def favorites(self, user_id: Optional[str]) -> FavoritesService:
        return FavoritesService(self.db, user_id)


def build_storage(settings: Settings, db=None) -> Storage:
    """Pick the persistence backend named by ``STORAGE_BACKEND``."""
    if settings.use_local_storage:
        return LocalStorage(settings.LOCAL_STORAGE_PATH_ABSOLUTE)

    if settings.STORAGE_BACKEND.lower() != "firestore":
        raise ValueError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND}")
    if db is None:
        raise ValueError("Firestore storage requires a Firestore client")
    logger.info("Using Firestore storage")
    return FirestoreStorage(db)
