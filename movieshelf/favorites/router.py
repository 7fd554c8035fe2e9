from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..core.auth import get_optional_user_id
from ..core.errors import ConflictError
from ..storage.base import FavoritesBackend, Storage
from ..storage.dependencies import get_favorites_service, get_storage
from .models import FavoriteOut, FavoriteRequest

router = APIRouter(prefix="/favorites", tags=["favorites"])


@router.get("")
async def list_favorites(favorites: FavoritesBackend = Depends(get_favorites_service)):
    return {"favorites": await favorites.list_favorite_movie_ids()}


@router.post("")
async def add_favorite(
    request: FavoriteRequest,
    favorites: FavoritesBackend = Depends(get_favorites_service)
):
    result = await favorites.add_favorite(request.movie_id)
    if not result.created:
        raise ConflictError("Movie already in favorites")
    return {"success": True, "favorite": FavoriteOut(**result.record.model_dump())}


@router.delete("")
async def remove_favorite(
    movie_id: int = Query(..., alias="movieId", gt=0),
    favorites: FavoritesBackend = Depends(get_favorites_service)
):
    await favorites.remove_favorite(movie_id)
    return {"success": True}


@router.get("/{movie_id}")
async def get_favorite_status(
    movie_id: int,
    user_id: Optional[str] = Depends(get_optional_user_id),
    storage: Storage = Depends(get_storage)
):
    """Anonymous callers get ``isFavorite: false`` rather than a 401"""
    if not user_id:
        return {"isFavorite": False}
    return {"isFavorite": await storage.favorites(user_id).is_favorite(movie_id)}
