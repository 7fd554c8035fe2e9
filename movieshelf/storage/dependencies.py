from fastapi import Depends, Request

from ..core.auth import get_current_user_id
from .base import CollectionsBackend, FavoritesBackend, Storage


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


async def get_collections_service(
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage)
) -> CollectionsBackend:
    return storage.collections(user_id)


async def get_favorites_service(
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage)
) -> FavoritesBackend:
    return storage.favorites(user_id)
