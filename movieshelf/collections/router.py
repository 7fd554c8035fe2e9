from fastapi import APIRouter, Depends, Query

from ..core.auth import get_current_user_id
from ..core.errors import ConflictError, NotFoundError
from ..storage.base import CollectionsBackend, Storage
from ..storage.dependencies import get_collections_service, get_storage
from .models import (
    AddMovieRequest, Collection, CollectionCreate, CollectionOut, CollectionUpdate,
    CreateCollectionRequest, ImportCollectionRequest, UpdateCollectionRequest
)

router = APIRouter(prefix="/collections", tags=["collections"])
public_router = APIRouter(prefix="/public", tags=["collections"])


async def require_owned_collection(
    collections: CollectionsBackend,
    collection_id: str,
    user_id: str
) -> Collection:
    """Fetch the caller's collection, or 404 whether it is missing or someone else's."""
    collection = await collections.get_collection(collection_id)
    if collection.user_id is not None and collection.user_id != user_id:
        raise NotFoundError("Collection not found")
    return collection


@router.get("")
async def list_collections(collections: CollectionsBackend = Depends(get_collections_service)):
    items = await collections.list_collections()
    return {"collections": [CollectionOut.from_collection(c) for c in items]}


@router.post("")
async def create_collection(
    request: CreateCollectionRequest,
    collections: CollectionsBackend = Depends(get_collections_service)
):
    collection = await collections.create_collection(CollectionCreate(
        name=request.name,
        description=request.description,
        is_public=request.is_public
    ))
    return {"collection": CollectionOut.from_collection(collection, movies=[])}


@router.post("/import")
async def import_collection(
    request: ImportCollectionRequest,
    collections: CollectionsBackend = Depends(get_collections_service)
):
    """Create a new collection from exported share data"""
    collection = await collections.import_collection(request.data)
    return {"collection": CollectionOut.from_collection(collection)}


@router.get("/{collection_id}")
async def get_collection(
    collection_id: str,
    user_id: str = Depends(get_current_user_id),
    collections: CollectionsBackend = Depends(get_collections_service)
):
    collection = await require_owned_collection(collections, collection_id, user_id)
    movies = await collections.get_collection_movie_ids(collection.id)
    return {"collection": CollectionOut.from_collection(collection, movies)}


@router.put("/{collection_id}")
async def update_collection(
    collection_id: str,
    request: UpdateCollectionRequest,
    user_id: str = Depends(get_current_user_id),
    collections: CollectionsBackend = Depends(get_collections_service)
):
    await require_owned_collection(collections, collection_id, user_id)
    updated = await collections.update_collection(
        collection_id, CollectionUpdate(**request.model_dump(exclude_unset=True))
    )
    movies = await collections.get_collection_movie_ids(collection_id)
    return {"collection": CollectionOut.from_collection(updated, movies)}


@router.delete("/{collection_id}")
async def delete_collection(
    collection_id: str,
    user_id: str = Depends(get_current_user_id),
    collections: CollectionsBackend = Depends(get_collections_service)
):
    await require_owned_collection(collections, collection_id, user_id)
    await collections.delete_collection(collection_id)
    return {"success": True}


@router.post("/{collection_id}/movies")
async def add_movie_to_collection(
    collection_id: str,
    request: AddMovieRequest,
    user_id: str = Depends(get_current_user_id),
    collections: CollectionsBackend = Depends(get_collections_service)
):
    await require_owned_collection(collections, collection_id, user_id)
    result = await collections.add_movie_to_collection(collection_id, request.movie_id)
    if not result.created:
        raise ConflictError("Movie already in collection")
    return {"success": True}


@router.delete("/{collection_id}/movies")
async def remove_movie_from_collection(
    collection_id: str,
    movie_id: int = Query(..., alias="movieId", gt=0),
    user_id: str = Depends(get_current_user_id),
    collections: CollectionsBackend = Depends(get_collections_service)
):
    await require_owned_collection(collections, collection_id, user_id)
    await collections.remove_movie_from_collection(collection_id, movie_id)
    return {"success": True}


@router.get("/{collection_id}/export")
async def export_collection(
    collection_id: str,
    user_id: str = Depends(get_current_user_id),
    collections: CollectionsBackend = Depends(get_collections_service)
):
    await require_owned_collection(collections, collection_id, user_id)
    return {"data": await collections.export_collection(collection_id)}


@public_router.get("/collections")
async def list_public_collections(storage: Storage = Depends(get_storage)):
    """Collections any user has marked public"""
    items = await storage.collections(None).list_public_collections()
    return {"collections": [CollectionOut.from_collection(c) for c in items]}
