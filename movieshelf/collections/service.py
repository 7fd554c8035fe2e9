import logging
from datetime import datetime, timezone
from typing import List, Optional

from google.cloud.firestore_v1.base_query import FieldFilter

from ..core.errors import NotFoundError
from ..core.firebase import run_in_transaction, store_errors
from ..storage.base import (
    AddOutcome, AddResult, CollectionsBackend, clean_description, clean_name, validate_movie_id
)
from .models import Collection, CollectionCreate, CollectionMovie, CollectionUpdate, CollectionWithMovies

logger = logging.getLogger(__name__)

COLLECTIONS = 'collections'
COLLECTION_MOVIES = 'collection_movies'


def collection_movie_doc_id(collection_id: str, movie_id: int) -> str:
    return f"{collection_id}_{movie_id}"


class CollectionsService(CollectionsBackend):
    """Firestore-backed collections, scoped to one owner."""

    def __init__(self, db, user_id: Optional[str]):
        self.db = db
        self.user_id = user_id

    def _to_collection(self, doc) -> Collection:
        return Collection(id=doc.id, **doc.to_dict())

    def _owned_snapshot(self, collection_id: str):
        snapshot = self.db.collection(COLLECTIONS).document(collection_id).get()
        if not snapshot.exists or snapshot.to_dict().get('user_id') != self.user_id:
            return None
        return snapshot

    def _movie_ids(self, collection_id: str) -> List[int]:
        docs = self.db.collection(COLLECTION_MOVIES) \
            .where(filter=FieldFilter('collection_id', '==', collection_id)) \
            .stream()
        rows = sorted((doc.to_dict() for doc in docs), key=lambda row: row['added_at'])
        return [row['movie_id'] for row in rows]

    def _with_movies(self, collections: List[Collection]) -> List[CollectionWithMovies]:
        collections = sorted(collections, key=lambda c: c.created_at, reverse=True)
        return [
            CollectionWithMovies(**collection.model_dump(), movies=self._movie_ids(collection.id))
            for collection in collections
        ]

    async def list_collections(self) -> List[CollectionWithMovies]:
        with store_errors():
            docs = self.db.collection(COLLECTIONS) \
                .where(filter=FieldFilter('user_id', '==', self.user_id)) \
                .stream()
            return self._with_movies([self._to_collection(doc) for doc in docs])

    async def list_public_collections(self) -> List[CollectionWithMovies]:
        with store_errors():
            docs = self.db.collection(COLLECTIONS) \
                .where(filter=FieldFilter('is_public', '==', True)) \
                .stream()
            return self._with_movies([self._to_collection(doc) for doc in docs])

    async def get_collection(self, collection_id: str) -> Collection:
        with store_errors():
            snapshot = self._owned_snapshot(collection_id)
        if snapshot is None:
            raise NotFoundError("Collection not found")
        return self._to_collection(snapshot)

    async def create_collection(self, data: CollectionCreate) -> Collection:
        name = clean_name(data.name)
        now = datetime.now(timezone.utc)
        collection_data = {
            'user_id': self.user_id,
            'name': name,
            'description': clean_description(data.description),
            'is_public': bool(data.is_public),
            'created_at': now,
            'updated_at': now
        }

        with store_errors():
            collection_ref = self.db.collection(COLLECTIONS).document()
            collection_ref.set(collection_data)

        logger.info(f"User {self.user_id} created collection {collection_ref.id}")
        return Collection(id=collection_ref.id, **collection_data)

    async def update_collection(self, collection_id: str, updates: CollectionUpdate) -> Collection:
        update_data = {'updated_at': datetime.now(timezone.utc)}
        if updates.name is not None:
            update_data['name'] = clean_name(updates.name)
        if 'description' in updates.model_fields_set:
            update_data['description'] = clean_description(updates.description)
        if updates.is_public is not None:
            update_data['is_public'] = updates.is_public

        collection = await self.get_collection(collection_id)
        with store_errors():
            self.db.collection(COLLECTIONS).document(collection_id).update(update_data)

        return collection.model_copy(update=update_data)

    async def delete_collection(self, collection_id: str) -> bool:
        with store_errors():
            if self._owned_snapshot(collection_id) is None:
                return False

            # No store-level cascade, so movie rows go in the same batch
            batch = self.db.batch()
            movie_docs = self.db.collection(COLLECTION_MOVIES) \
                .where(filter=FieldFilter('collection_id', '==', collection_id)) \
                .stream()
            for doc in movie_docs:
                batch.delete(doc.reference)
            batch.delete(self.db.collection(COLLECTIONS).document(collection_id))
            batch.commit()

        logger.info(f"User {self.user_id} deleted collection {collection_id}")
        return True

    async def get_collection_movie_ids(self, collection_id: str) -> List[int]:
        await self.get_collection(collection_id)
        with store_errors():
            return self._movie_ids(collection_id)

    async def add_movie_to_collection(self, collection_id: str, movie_id: int) -> AddResult[CollectionMovie]:
        validate_movie_id(movie_id)
        await self.get_collection(collection_id)

        movie_ref = self.db.collection(COLLECTION_MOVIES).document(
            collection_movie_doc_id(collection_id, movie_id)
        )

        def add_if_absent(transaction):
            snapshot = movie_ref.get(transaction=transaction)
            if snapshot.exists:
                return AddOutcome.ALREADY_PRESENT, snapshot.to_dict()
            row = {
                'collection_id': collection_id,
                'movie_id': movie_id,
                'added_at': datetime.now(timezone.utc)
            }
            transaction.create(movie_ref, row)
            return AddOutcome.CREATED, row

        with store_errors():
            outcome, row = run_in_transaction(self.db, add_if_absent)
        return AddResult(outcome, CollectionMovie(id=movie_ref.id, **row))

    async def remove_movie_from_collection(self, collection_id: str, movie_id: int) -> None:
        validate_movie_id(movie_id)
        await self.get_collection(collection_id)
        with store_errors():
            self.db.collection(COLLECTION_MOVIES) \
                .document(collection_movie_doc_id(collection_id, movie_id)) \
                .delete()

    async def is_movie_in_collection(self, collection_id: str, movie_id: int) -> bool:
        try:
            await self.get_collection(collection_id)
        except NotFoundError:
            return False
        with store_errors():
            return self.db.collection(COLLECTION_MOVIES) \
                .document(collection_movie_doc_id(collection_id, movie_id)) \
                .get().exists
