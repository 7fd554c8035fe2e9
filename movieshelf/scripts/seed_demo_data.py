# movieshelf/scripts/seed_demo_data.py
import asyncio
import logging
import sys

from movieshelf.collections.models import CollectionCreate
from movieshelf.core.config import settings
from movieshelf.core.firebase import close_firebase, firestore_client, init_firebase
from movieshelf.core.logging import setup_logging
from movieshelf.storage.base import Storage
from movieshelf.storage.factory import build_storage

logger = logging.getLogger(__name__)

# Demo data per user: favorite movie ids and collections of movie ids
demo_data = {
    "favorites": [550, 13, 680, 155],
    "collections": [
        {
            "name": "Mind Benders",
            "description": "Movies that keep you thinking",
            "movies": [27205, 603, 157336]
        },
        {
            "name": "Weekend Classics",
            "description": None,
            "movies": [238, 240, 424]
        }
    ]
}


async def seed_user(storage: Storage, user_id: str):
    """Create demo favorites and collections for one user"""
    favorites = storage.favorites(user_id)
    for movie_id in demo_data["favorites"]:
        result = await favorites.add_favorite(movie_id)
        logger.info(f"Favorite {movie_id} for {user_id}: {result.outcome.value}")

    collections = storage.collections(user_id)
    for entry in demo_data["collections"]:
        collection = await collections.create_collection(
            CollectionCreate(name=entry["name"], description=entry["description"])
        )
        for movie_id in entry["movies"]:
            await collections.add_movie_to_collection(collection.id, movie_id)
        logger.info(f"Created collection {collection.name!r} ({collection.id}) for {user_id}")


def main(user_ids):
    setup_logging(settings)
    firebase_app = None
    if not settings.use_local_storage:
        firebase_app = init_firebase(settings)
    try:
        db = firestore_client(firebase_app) if firebase_app else None
        storage = build_storage(settings, db)
        for user_id in user_ids:
            asyncio.run(seed_user(storage, user_id))
    finally:
        close_firebase(firebase_app)


if __name__ == "__main__":
    main(sys.argv[1:] or ["demo-user"])
