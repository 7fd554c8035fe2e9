"""Local key/value storage variant.

Keeps favorites and collections in one JSON file on this machine, the same
way a browser profile keeps them in local storage. There is no owner concept
and nothing here is synchronized with the remote store.
"""
import json
import logging
import random
import string
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..collections.models import Collection, CollectionCreate, CollectionMovie, CollectionUpdate, CollectionWithMovies
from ..core.errors import NotFoundError, StoreError
from ..favorites.models import UserFavorite
from .base import (
    AddOutcome, AddResult, CollectionsBackend, FavoritesBackend, Storage,
    clean_description, clean_name, validate_movie_id
)

logger = logging.getLogger(__name__)

FAVORITES_KEY = 'movie_favorites'
COLLECTIONS_KEY = 'movie_collections'
UNTIMED = datetime(1970, 1, 1, tzinfo=timezone.utc)


class LocalKeyValueStore:
    """String keys mapped to JSON values, persisted to a single file."""

    def __init__(self, path):
        self.path = Path(path)
        self.lock = threading.RLock()

    def _read_all(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open('r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StoreError(f"Failed to read local storage: {str(e)}") from e
        if not isinstance(data, dict):
            raise StoreError(f"Failed to read local storage: expected an object in {self.path}")
        return data

    def _write_all(self, data: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + '.tmp')
            with tmp_path.open('w', encoding='utf-8') as f:
                json.dump(data, f)
            tmp_path.replace(self.path)
        except OSError as e:
            raise StoreError(f"Failed to write local storage: {str(e)}") from e

    def get_item(self, key: str, default=None):
        with self.lock:
            return self._read_all().get(key, default)

    def get_list(self, key: str) -> List[Any]:
        """Value under ``key`` as a list; missing keys read as empty."""
        value = self.get_item(key, [])
        if not isinstance(value, list):
            raise StoreError(f"Failed to read local storage: {key} is not a list")
        return value

    def set_item(self, key: str, value) -> None:
        with self.lock:
            data = self._read_all()
            data[key] = value
            self._write_all(data)

    def remove_item(self, key: str) -> None:
        with self.lock:
            data = self._read_all()
            if data.pop(key, None) is not None:
                self._write_all(data)


def generate_local_id() -> str:
    """Client timestamp plus a random suffix; unique on this device only."""
    suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"{int(time.time() * 1000)}{suffix}"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class LocalCollectionsService(CollectionsBackend):

    def __init__(self, store: LocalKeyValueStore):
        self.store = store

    def _load(self) -> List[Dict[str, Any]]:
        collections = self.store.get_list(COLLECTIONS_KEY)
        if not all(isinstance(c, dict) and 'id' in c for c in collections):
            raise StoreError(f"Failed to read local storage: malformed entry in {COLLECTIONS_KEY}")
        return collections

    def _save(self, collections: List[Dict[str, Any]]) -> None:
        self.store.set_item(COLLECTIONS_KEY, collections)

    @staticmethod
    def _find(collections: List[Dict[str, Any]], collection_id: str) -> Optional[Dict[str, Any]]:
        return next((c for c in collections if c['id'] == collection_id), None)

    @staticmethod
    def _to_model(raw: Dict[str, Any]) -> CollectionWithMovies:
        # Entries written before updatedAt existed only carry createdAt
        try:
            return CollectionWithMovies(
                id=raw['id'],
                name=raw['name'],
                description=raw.get('description'),
                is_public=raw.get('isPublic', False),
                created_at=raw['createdAt'],
                updated_at=raw.get('updatedAt') or raw['createdAt'],
                movies=raw.get('movies', [])
            )
        except (KeyError, ValueError) as e:
            raise StoreError(f"Failed to read local storage: malformed collection ({str(e)})") from e

    def _get_raw(self, collections, collection_id: str) -> Dict[str, Any]:
        raw = self._find(collections, collection_id)
        if raw is None:
            raise NotFoundError("Collection not found")
        return raw

    async def list_collections(self) -> List[CollectionWithMovies]:
        collections = [self._to_model(raw) for raw in self._load()]
        return sorted(collections, key=lambda c: c.created_at, reverse=True)

    async def list_public_collections(self) -> List[CollectionWithMovies]:
        return [c for c in await self.list_collections() if c.is_public]

    async def get_collection(self, collection_id: str) -> Collection:
        return self._to_model(self._get_raw(self._load(), collection_id))

    async def get_collection_with_movies(self, collection_id: str) -> CollectionWithMovies:
        return self._to_model(self._get_raw(self._load(), collection_id))

    async def create_collection(self, data: CollectionCreate) -> Collection:
        name = clean_name(data.name)
        now = _now().isoformat()
        raw = {
            'id': generate_local_id(),
            'name': name,
            'description': clean_description(data.description),
            'movies': [],
            'createdAt': now,
            'updatedAt': now,
            'isPublic': bool(data.is_public)
        }
        with self.store.lock:
            collections = self._load()
            collections.append(raw)
            self._save(collections)
        return self._to_model(raw)

    async def update_collection(self, collection_id: str, updates: CollectionUpdate) -> Collection:
        changes = {'updatedAt': _now().isoformat()}
        if updates.name is not None:
            changes['name'] = clean_name(updates.name)
        if 'description' in updates.model_fields_set:
            changes['description'] = clean_description(updates.description)
        if updates.is_public is not None:
            changes['isPublic'] = updates.is_public

        with self.store.lock:
            collections = self._load()
            raw = self._get_raw(collections, collection_id)
            raw.update(changes)
            self._save(collections)
        return self._to_model(raw)

    async def delete_collection(self, collection_id: str) -> bool:
        with self.store.lock:
            collections = self._load()
            remaining = [c for c in collections if c['id'] != collection_id]
            if len(remaining) == len(collections):
                return False
            self._save(remaining)
        return True

    async def get_collection_movie_ids(self, collection_id: str) -> List[int]:
        return list(self._get_raw(self._load(), collection_id).get('movies', []))

    async def add_movie_to_collection(self, collection_id: str, movie_id: int) -> AddResult[CollectionMovie]:
        validate_movie_id(movie_id)
        with self.store.lock:
            collections = self._load()
            raw = self._get_raw(collections, collection_id)
            movies = raw.setdefault('movies', [])
            outcome = AddOutcome.ALREADY_PRESENT if movie_id in movies else AddOutcome.CREATED
            if outcome == AddOutcome.CREATED:
                movies.append(movie_id)
                self._save(collections)

        # Local entries keep no per-movie timestamp; the collection's creation time stands in
        record = CollectionMovie(
            id=f"{collection_id}_{movie_id}",
            collection_id=collection_id,
            movie_id=movie_id,
            added_at=raw['createdAt']
        )
        return AddResult(outcome, record)

    async def remove_movie_from_collection(self, collection_id: str, movie_id: int) -> None:
        validate_movie_id(movie_id)
        with self.store.lock:
            collections = self._load()
            raw = self._get_raw(collections, collection_id)
            movies = raw.get('movies', [])
            if movie_id in movies:
                raw['movies'] = [m for m in movies if m != movie_id]
                self._save(collections)

    async def is_movie_in_collection(self, collection_id: str, movie_id: int) -> bool:
        raw = self._find(self._load(), collection_id)
        return raw is not None and movie_id in raw.get('movies', [])


class LocalFavoritesService(FavoritesBackend):
    """Favorites as a JSON array of movie ids, oldest first on disk."""

    def __init__(self, store: LocalKeyValueStore):
        self.store = store

    def _load(self) -> List[int]:
        favorites = self.store.get_list(FAVORITES_KEY)
        if not all(isinstance(m, int) and not isinstance(m, bool) for m in favorites):
            raise StoreError(f"Failed to read local storage: malformed entry in {FAVORITES_KEY}")
        return favorites

    @staticmethod
    def _record(movie_id: int) -> UserFavorite:
        # Only ids are stored locally, so every record carries the same fixed created_at
        return UserFavorite(id=str(movie_id), movie_id=movie_id, created_at=UNTIMED)

    async def list_favorite_movie_ids(self) -> List[int]:
        return list(reversed(self._load()))

    async def list_favorites(self) -> List[UserFavorite]:
        return [self._record(movie_id) for movie_id in await self.list_favorite_movie_ids()]

    async def get_favorite(self, movie_id: int) -> Optional[UserFavorite]:
        if movie_id in self._load():
            return self._record(movie_id)
        return None

    async def add_favorite(self, movie_id: int) -> AddResult[UserFavorite]:
        validate_movie_id(movie_id)
        with self.store.lock:
            favorites = self._load()
            if movie_id in favorites:
                return AddResult(AddOutcome.ALREADY_PRESENT, self._record(movie_id))
            favorites.append(movie_id)
            self.store.set_item(FAVORITES_KEY, favorites)
        return AddResult(AddOutcome.CREATED, self._record(movie_id))

    async def remove_favorite(self, movie_id: int) -> None:
        validate_movie_id(movie_id)
        with self.store.lock:
            favorites = self._load()
            if movie_id in favorites:
                self.store.set_item(FAVORITES_KEY, [m for m in favorites if m != movie_id])

    async def toggle_favorite(self, movie_id: int) -> bool:
        validate_movie_id(movie_id)
        with self.store.lock:
            favorites = self._load()
            if movie_id in favorites:
                self.store.set_item(FAVORITES_KEY, [m for m in favorites if m != movie_id])
                return False
            favorites.append(movie_id)
            self.store.set_item(FAVORITES_KEY, favorites)
            return True

    async def count_favorites(self) -> int:
        return len(self._load())

    async def clear_favorites(self) -> int:
        with self.store.lock:
            count = len(self._load())
            self.store.remove_item(FAVORITES_KEY)
        return count


class LocalStorage(Storage):
    name = "local"

    def __init__(self, path):
        self.store = LocalKeyValueStore(path)
        logger.info(f"Using local storage at {self.store.path}")

    def collections(self, user_id: Optional[str]) -> LocalCollectionsService:
        return LocalCollectionsService(self.store)

    def favorites(self, user_id: Optional[str]) -> LocalFavoritesService:
        return LocalFavoritesService(self.store)
