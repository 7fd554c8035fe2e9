"""Persistence interface shared by the Firestore and local backends.

Services are built per owner identity by a ``Storage``; every operation is
implicitly scoped to that owner (the local backend has no owner concept and
ignores it).
"""
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from ..collections.models import Collection, CollectionCreate, CollectionUpdate, CollectionWithMovies
from ..core.errors import NotFoundError, ValidationError
from ..favorites.models import UserFavorite
from .sharing import decode_collection, encode_collection

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AddOutcome(str, Enum):
    CREATED = "created"
    ALREADY_PRESENT = "already_present"


class AddResult(Generic[T]):
    """Result of an idempotent add: the stored record and whether it was new."""

    def __init__(self, outcome: AddOutcome, record: T):
        self.outcome = outcome
        self.record = record

    @property
    def created(self) -> bool:
        return self.outcome == AddOutcome.CREATED

    def __repr__(self):
        return f"AddResult(outcome={self.outcome.value!r}, record={self.record!r})"


def validate_movie_id(movie_id) -> int:
    if isinstance(movie_id, bool) or not isinstance(movie_id, int) or movie_id <= 0:
        raise ValidationError("Invalid movie ID")
    return movie_id


def clean_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Collection name is required")
    return name.strip()


def clean_description(description) -> Optional[str]:
    if description is None:
        return None
    return description.strip() or None


class CollectionsBackend(ABC):

    @abstractmethod
    async def list_collections(self) -> List[CollectionWithMovies]:
        """Owner's collections with their movie ids, newest first."""

    @abstractmethod
    async def get_collection(self, collection_id: str) -> Collection:
        """Raises NotFoundError when no collection matches id and owner."""

    @abstractmethod
    async def create_collection(self, data: CollectionCreate) -> Collection: ...

    @abstractmethod
    async def update_collection(self, collection_id: str, updates: CollectionUpdate) -> Collection: ...

    @abstractmethod
    async def delete_collection(self, collection_id: str) -> bool:
        """Returns False when there was nothing to delete."""

    @abstractmethod
    async def get_collection_movie_ids(self, collection_id: str) -> List[int]: ...

    @abstractmethod
    async def add_movie_to_collection(self, collection_id: str, movie_id: int) -> AddResult: ...

    @abstractmethod
    async def remove_movie_from_collection(self, collection_id: str, movie_id: int) -> None: ...

    @abstractmethod
    async def is_movie_in_collection(self, collection_id: str, movie_id: int) -> bool: ...

    @abstractmethod
    async def list_public_collections(self) -> List[CollectionWithMovies]: ...

    async def get_collection_with_movies(self, collection_id: str) -> CollectionWithMovies:
        collection = await self.get_collection(collection_id)
        movies = await self.get_collection_movie_ids(collection_id)
        return CollectionWithMovies(**collection.model_dump(), movies=movies)

    async def toggle_collection_public(self, collection_id: str) -> Collection:
        collection = await self.get_collection(collection_id)
        return await self.update_collection(
            collection_id, CollectionUpdate(is_public=not collection.is_public)
        )

    async def export_collection(self, collection_id: str) -> Optional[str]:
        try:
            collection = await self.get_collection_with_movies(collection_id)
        except NotFoundError:
            return None
        return encode_collection(collection)

    async def import_collection(self, encoded: str) -> CollectionWithMovies:
        data = decode_collection(encoded)
        collection = await self.create_collection(CollectionCreate(
            name=f"{data['name']} (Imported)",
            description=data.get("description")
        ))
        for movie_id in data["movies"]:
            await self.add_movie_to_collection(collection.id, movie_id)
        logger.info(f"Imported collection {collection.id} with {len(data['movies'])} movies")
        return await self.get_collection_with_movies(collection.id)


class FavoritesBackend(ABC):

    @abstractmethod
    async def list_favorites(self) -> List[UserFavorite]:
        """Newest first."""

    @abstractmethod
    async def get_favorite(self, movie_id: int) -> Optional[UserFavorite]: ...

    @abstractmethod
    async def add_favorite(self, movie_id: int) -> AddResult[UserFavorite]: ...

    @abstractmethod
    async def remove_favorite(self, movie_id: int) -> None: ...

    @abstractmethod
    async def toggle_favorite(self, movie_id: int) -> bool:
        """Atomically flips the favorite state and returns the new one."""

    @abstractmethod
    async def clear_favorites(self) -> int: ...

    async def list_favorite_movie_ids(self) -> List[int]:
        return [favorite.movie_id for favorite in await self.list_favorites()]

    async def is_favorite(self, movie_id: int) -> bool:
        return await self.get_favorite(movie_id) is not None

    async def count_favorites(self) -> int:
        return len(await self.list_favorites())


class Storage(ABC):
    """Hands out owner-scoped services for one backend."""

    name = "abstract"

    @abstractmethod
    def collections(self, user_id: Optional[str]) -> CollectionsBackend: ...

    @abstractmethod
    def favorites(self, user_id: Optional[str]) -> FavoritesBackend: ...
