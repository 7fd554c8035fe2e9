import logging
from datetime import datetime, timezone
from typing import List, Optional

from google.cloud.firestore_v1.base_query import FieldFilter

from ..core.firebase import run_in_transaction, store_errors
from ..storage.base import AddOutcome, AddResult, FavoritesBackend, validate_movie_id
from .models import UserFavorite

logger = logging.getLogger(__name__)

USER_FAVORITES = 'user_favorites'


class FavoritesService(FavoritesBackend):
    """Firestore-backed favorites, scoped to one owner.

    Documents are keyed ``{user_id}_{movie_id}`` so the store itself keeps the
    pair unique.
    """

    def __init__(self, db, user_id: Optional[str]):
        self.db = db
        self.user_id = user_id

    def _ref(self, movie_id: int):
        return self.db.collection(USER_FAVORITES).document(f"{self.user_id}_{movie_id}")

    def _user_docs(self):
        return self.db.collection(USER_FAVORITES) \
            .where(filter=FieldFilter('user_id', '==', self.user_id)) \
            .stream()

    async def list_favorites(self) -> List[UserFavorite]:
        with store_errors():
            favorites = [UserFavorite(id=doc.id, **doc.to_dict()) for doc in self._user_docs()]
        favorites.sort(key=lambda favorite: favorite.created_at, reverse=True)
        return favorites

    async def get_favorite(self, movie_id: int) -> Optional[UserFavorite]:
        with store_errors():
            snapshot = self._ref(movie_id).get()
        if not snapshot.exists:
            return None
        return UserFavorite(id=snapshot.id, **snapshot.to_dict())

    async def add_favorite(self, movie_id: int) -> AddResult[UserFavorite]:
        validate_movie_id(movie_id)
        favorite_ref = self._ref(movie_id)

        def add_if_absent(transaction):
            snapshot = favorite_ref.get(transaction=transaction)
            if snapshot.exists:
                return AddOutcome.ALREADY_PRESENT, snapshot.to_dict()
            row = {
                'user_id': self.user_id,
                'movie_id': movie_id,
                'created_at': datetime.now(timezone.utc)
            }
            transaction.create(favorite_ref, row)
            return AddOutcome.CREATED, row

        with store_errors():
            outcome, row = run_in_transaction(self.db, add_if_absent)
        return AddResult(outcome, UserFavorite(id=favorite_ref.id, **row))

    async def remove_favorite(self, movie_id: int) -> None:
        validate_movie_id(movie_id)
        with store_errors():
            self._ref(movie_id).delete()

    async def toggle_favorite(self, movie_id: int) -> bool:
        validate_movie_id(movie_id)
        favorite_ref = self._ref(movie_id)

        def flip(transaction):
            snapshot = favorite_ref.get(transaction=transaction)
            if snapshot.exists:
                transaction.delete(favorite_ref)
                return False
            transaction.create(favorite_ref, {
                'user_id': self.user_id,
                'movie_id': movie_id,
                'created_at': datetime.now(timezone.utc)
            })
            return True

        with store_errors():
            return run_in_transaction(self.db, flip)

    async def clear_favorites(self) -> int:
        with store_errors():
            batch = self.db.batch()
            count = 0
            for doc in self._user_docs():
                batch.delete(doc.reference)
                count += 1
            batch.commit()

        logger.info(f"Cleared {count} favorites for user {self.user_id}")
        return count
