from fastapi import APIRouter, Depends, Query, Request

from .service import TMDBClient

router = APIRouter(prefix="/movies", tags=["movies"])


def get_tmdb(request: Request) -> TMDBClient:
    return request.app.state.tmdb


@router.get("/popular")
async def popular_movies(page: int = Query(1, ge=1), tmdb: TMDBClient = Depends(get_tmdb)):
    return await tmdb.popular(page)

@router.get("/top-rated")
async def top_rated_movies(page: int = Query(1, ge=1), tmdb: TMDBClient = Depends(get_tmdb)):
    return await tmdb.top_rated(page)

@router.get("/now-playing")
async def now_playing_movies(page: int = Query(1, ge=1), tmdb: TMDBClient = Depends(get_tmdb)):
    return await tmdb.now_playing(page)

@router.get("/upcoming")
async def upcoming_movies(page: int = Query(1, ge=1), tmdb: TMDBClient = Depends(get_tmdb)):
    return await tmdb.upcoming(page)

@router.get("/search")
async def search_movies(
    query: str = Query(..., min_length=1),
    page: int = Query(1, ge=1),
    tmdb: TMDBClient = Depends(get_tmdb)
):
    """Search for movies by title"""
    return await tmdb.search(query, page)

@router.get("/genres")
async def list_genres(tmdb: TMDBClient = Depends(get_tmdb)):
    return {"genres": await tmdb.genres()}

@router.get("/genre/{genre_id}")
async def movies_by_genre(genre_id: int, page: int = Query(1, ge=1), tmdb: TMDBClient = Depends(get_tmdb)):
    return await tmdb.by_genre(genre_id, page)

@router.get("/{movie_id}")
async def movie_details(movie_id: int, tmdb: TMDBClient = Depends(get_tmdb)):
    return await tmdb.details(movie_id)
