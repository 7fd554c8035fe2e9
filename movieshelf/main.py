import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .collections.router import public_router as public_collections_router
from .collections.router import router as collections_router
from .core.auth import FirebaseAuthVerifier, LocalIdentityVerifier
from .core.config import Settings, settings as default_settings
from .core.errors import register_exception_handlers
from .core.firebase import close_firebase, firestore_client, init_firebase
from .core.logging import setup_logging
from .favorites.router import router as favorites_router
from .movies.router import router as movies_router
from .movies.service import TMDBClient
from .storage.factory import build_storage

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings)
        if settings.use_local_storage:
            # No Firebase at all in local mode; requests act as a single local user
            firebase_app = None
            app.state.auth_verifier = LocalIdentityVerifier(settings.LOCAL_USER_ID)
            app.state.storage = build_storage(settings)
        else:
            firebase_app = init_firebase(settings)
            app.state.auth_verifier = FirebaseAuthVerifier(firebase_app)
            app.state.storage = build_storage(settings, firestore_client(firebase_app))
        app.state.tmdb = TMDBClient(settings)
        logger.info(f"MovieShelf API started with {app.state.storage.name} storage")
        try:
            yield
        finally:
            await app.state.tmdb.aclose()
            close_firebase(firebase_app)
            logger.info("MovieShelf API stopped")

    app = FastAPI(title="MovieShelf API", lifespan=lifespan)
    app.state.settings = settings

    @app.get("/")
    def read_root():
        return {"message": "Welcome to the MovieShelf API"}

    register_exception_handlers(app)

    app.include_router(collections_router, prefix="/api")
    app.include_router(public_collections_router, prefix="/api")
    app.include_router(favorites_router, prefix="/api")
    app.include_router(movies_router, prefix="/api")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


app = create_app()
