"""HTTP client for the MovieShelf API.

Reads fall back to an empty/false default and writes report a boolean or
``None``; failures are logged and never raised to the caller.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..collections.models import CollectionOut
from ..core.config import settings
from ..movies.models import MovieBase

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


class ApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.token = token
        self._owns_client = http_client is None
        self.client = http_client or httpx.AsyncClient(timeout=10.0)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        if self._owns_client:
            await self.client.aclose()

    async def _request(self, method: str, endpoint: str, **kwargs) -> Dict[str, Any]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        response = await self.client.request(method, f"{self.base_url}{endpoint}", headers=headers, **kwargs)
        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.is_error:
            message = data.get("error") if isinstance(data, dict) else None
            raise ApiError(response.status_code, message or f"HTTP {response.status_code}")
        return data

    # Favorites

    async def get_favorites(self) -> List[int]:
        try:
            return (await self._request("GET", "/favorites"))["favorites"]
        except (httpx.HTTPError, ApiError, KeyError) as e:
            logger.error(f"Failed to get favorites: {str(e)}")
            return []

    async def add_to_favorites(self, movie_id: int) -> bool:
        try:
            await self._request("POST", "/favorites", json={"movieId": movie_id})
            return True
        except (httpx.HTTPError, ApiError) as e:
            logger.error(f"Failed to add to favorites: {str(e)}")
            return False

    async def remove_from_favorites(self, movie_id: int) -> bool:
        try:
            await self._request("DELETE", "/favorites", params={"movieId": movie_id})
            return True
        except (httpx.HTTPError, ApiError) as e:
            logger.error(f"Failed to remove from favorites: {str(e)}")
            return False

    async def is_favorite(self, movie_id: int) -> bool:
        try:
            return bool((await self._request("GET", f"/favorites/{movie_id}"))["isFavorite"])
        except (httpx.HTTPError, ApiError, KeyError) as e:
            logger.error(f"Failed to check favorite status: {str(e)}")
            return False

    async def toggle_favorite(self, movie_id: int) -> bool:
        """Check-then-invert over two requests. Not atomic across tabs or devices."""
        if await self.is_favorite(movie_id):
            await self.remove_from_favorites(movie_id)
            return False
        return await self.add_to_favorites(movie_id)

    # Collections

    async def get_collections(self) -> List[CollectionOut]:
        try:
            data = await self._request("GET", "/collections")
            return [CollectionOut.model_validate(c) for c in data["collections"]]
        except (httpx.HTTPError, ApiError, KeyError, ValueError) as e:
            logger.error(f"Failed to get collections: {str(e)}")
            return []

    async def get_public_collections(self) -> List[CollectionOut]:
        try:
            data = await self._request("GET", "/public/collections")
            return [CollectionOut.model_validate(c) for c in data["collections"]]
        except (httpx.HTTPError, ApiError, KeyError, ValueError) as e:
            logger.error(f"Failed to get public collections: {str(e)}")
            return []

    async def get_collection(self, collection_id: str) -> Optional[CollectionOut]:
        try:
            data = await self._request("GET", f"/collections/{collection_id}")
            return CollectionOut.model_validate(data["collection"])
        except (httpx.HTTPError, ApiError, KeyError, ValueError) as e:
            logger.error(f"Failed to get collection: {str(e)}")
            return None

    async def create_collection(
        self,
        name: str,
        description: Optional[str] = None,
        is_public: bool = False
    ) -> Optional[CollectionOut]:
        try:
            data = await self._request("POST", "/collections", json={
                "name": name,
                "description": description,
                "isPublic": is_public
            })
            return CollectionOut.model_validate(data["collection"])
        except (httpx.HTTPError, ApiError, KeyError, ValueError) as e:
            logger.error(f"Failed to create collection: {str(e)}")
            return None

    async def update_collection(self, collection_id: str, **updates) -> Optional[CollectionOut]:
        """Accepts any of ``name``, ``description``, ``is_public``."""
        body = {}
        if "name" in updates:
            body["name"] = updates["name"]
        if "description" in updates:
            body["description"] = updates["description"]
        if "is_public" in updates:
            body["isPublic"] = updates["is_public"]

        try:
            data = await self._request("PUT", f"/collections/{collection_id}", json=body)
            return CollectionOut.model_validate(data["collection"])
        except (httpx.HTTPError, ApiError, KeyError, ValueError) as e:
            logger.error(f"Failed to update collection: {str(e)}")
            return None

    async def delete_collection(self, collection_id: str) -> bool:
        try:
            await self._request("DELETE", f"/collections/{collection_id}")
            return True
        except (httpx.HTTPError, ApiError) as e:
            logger.error(f"Failed to delete collection: {str(e)}")
            return False

    async def add_movie_to_collection(self, collection_id: str, movie_id: int) -> bool:
        try:
            await self._request("POST", f"/collections/{collection_id}/movies", json={"movieId": movie_id})
            return True
        except (httpx.HTTPError, ApiError) as e:
            logger.error(f"Failed to add movie to collection: {str(e)}")
            return False

    async def remove_movie_from_collection(self, collection_id: str, movie_id: int) -> bool:
        try:
            await self._request("DELETE", f"/collections/{collection_id}/movies", params={"movieId": movie_id})
            return True
        except (httpx.HTTPError, ApiError) as e:
            logger.error(f"Failed to remove movie from collection: {str(e)}")
            return False

    async def is_movie_in_collection(self, collection_id: str, movie_id: int) -> bool:
        collection = await self.get_collection(collection_id)
        return collection is not None and movie_id in collection.movies

    async def export_collection(self, collection_id: str) -> Optional[str]:
        try:
            return (await self._request("GET", f"/collections/{collection_id}/export"))["data"]
        except (httpx.HTTPError, ApiError, KeyError) as e:
            logger.error(f"Failed to export collection: {str(e)}")
            return None

    async def import_collection(self, encoded: str) -> Optional[CollectionOut]:
        try:
            data = await self._request("POST", "/collections/import", json={"data": encoded})
            return CollectionOut.model_validate(data["collection"])
        except (httpx.HTTPError, ApiError, KeyError, ValueError) as e:
            logger.error(f"Failed to import collection: {str(e)}")
            return None

    # Movie metadata

    async def get_movies_from_ids(self, movie_ids: List[int]) -> List[MovieBase]:
        try:
            results = await asyncio.gather(*(self._request("GET", f"/movies/{movie_id}") for movie_id in movie_ids))
            return [MovieBase.model_validate(movie) for movie in results]
        except (httpx.HTTPError, ApiError, ValueError) as e:
            logger.error(f"Failed to get movies from IDs: {str(e)}")
            return []

    async def get_favorite_movies(self) -> List[MovieBase]:
        return await self.get_movies_from_ids(await self.get_favorites())

    async def get_collection_movies(self, collection_id: str) -> List[MovieBase]:
        collection = await self.get_collection(collection_id)
        if collection is None:
            return []
        return await self.get_movies_from_ids(collection.movies)
