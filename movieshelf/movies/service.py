import logging
import re
from typing import Dict, List, Optional

import httpx

from ..core.config import Settings

logger = logging.getLogger(__name__)

GENRES = [
    {"id": 28, "name": "Action"},
    {"id": 12, "name": "Adventure"},
    {"id": 16, "name": "Animation"},
    {"id": 35, "name": "Comedy"},
    {"id": 80, "name": "Crime"},
    {"id": 99, "name": "Documentary"},
    {"id": 18, "name": "Drama"},
    {"id": 10751, "name": "Family"},
    {"id": 14, "name": "Fantasy"},
    {"id": 36, "name": "History"},
    {"id": 27, "name": "Horror"},
    {"id": 10402, "name": "Music"},
    {"id": 9648, "name": "Mystery"},
    {"id": 10749, "name": "Romance"},
    {"id": 878, "name": "Science Fiction"},
    {"id": 10770, "name": "TV Movie"},
    {"id": 53, "name": "Thriller"},
    {"id": 10752, "name": "War"},
    {"id": 37, "name": "Western"}
]

POSTER_SIZE = "w500"
BACKDROP_SIZE = "w1280"
PROFILE_SIZE = "w185"

_MOVIE_DETAILS = re.compile(r"^/movie/(\d+)$")


def demo_movie(movie_id: int) -> Dict:
    return {
        "id": movie_id,
        "title": f"Demo Movie {movie_id}",
        "overview": "This is a demo movie. Set TMDB_TOKEN to see real data.",
        "poster_path": None,
        "backdrop_path": None,
        "release_date": "2024-01-01",
        "vote_average": 8.5,
        "vote_count": 1000,
        "runtime": 120,
        "genre_ids": [28, 12],
        "genres": [{"id": 28, "name": "Action"}, {"id": 12, "name": "Adventure"}]
    }


def mock_response(endpoint: str) -> Dict:
    """Stand-in payload shaped like the TMDB response for ``endpoint``"""
    if endpoint.startswith("/genre/movie/list"):
        return {"genres": GENRES}

    match = _MOVIE_DETAILS.match(endpoint)
    if match:
        return demo_movie(int(match.group(1)))

    return {
        "page": 1,
        "results": [demo_movie(index + 1) for index in range(20)],
        "total_pages": 1,
        "total_results": 20
    }


class TMDBClient:
    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self.base_url = settings.TMDB_BASE_URL
        self.image_base_url = settings.TMDB_IMAGE_BASE_URL
        self.token = settings.TMDB_TOKEN
        self.language = settings.TMDB_LANGUAGE
        self.client = http_client or httpx.AsyncClient(timeout=10.0)

    @property
    def demo_mode(self) -> bool:
        return not self.token

    async def aclose(self):
        await self.client.aclose()

    async def _fetch(self, endpoint: str, params: Optional[Dict] = None) -> Dict:
        if self.demo_mode:
            logger.info(f"No TMDB token configured, serving demo data for {endpoint}")
            return mock_response(endpoint)

        headers = {
            "Authorization": f"Bearer {self.token}",
            "accept": "application/json"
        }
        query = {"language": self.language}
        query.update(params or {})

        try:
            response = await self.client.get(f"{self.base_url}{endpoint}", headers=headers, params=query)
            if response.status_code == 401:
                logger.error("Invalid TMDB token, check TMDB_TOKEN")
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"TMDB API error for {endpoint}: {str(e)}")
            logger.info("Falling back to demo data")
            return mock_response(endpoint)

    async def popular(self, page: int = 1) -> Dict:
        return await self._fetch("/movie/popular", {"page": page})

    async def top_rated(self, page: int = 1) -> Dict:
        return await self._fetch("/movie/top_rated", {"page": page})

    async def now_playing(self, page: int = 1) -> Dict:
        return await self._fetch("/movie/now_playing", {"page": page})

    async def upcoming(self, page: int = 1) -> Dict:
        return await self._fetch("/movie/upcoming", {"page": page})

    async def details(self, movie_id: int) -> Dict:
        return await self._fetch(f"/movie/{movie_id}", {"append_to_response": "credits,videos,similar"})

    async def search(self, query: str, page: int = 1) -> Dict:
        return await self._fetch("/search/movie", {"query": query, "page": page, "include_adult": "false"})

    async def genres(self) -> List[Dict]:
        return (await self._fetch("/genre/movie/list"))["genres"]

    async def by_genre(self, genre_id: int, page: int = 1) -> Dict:
        return await self._fetch("/discover/movie", {
            "with_genres": genre_id,
            "page": page,
            "sort_by": "popularity.desc"
        })

    def image_url(self, path: Optional[str], size: str = POSTER_SIZE) -> Optional[str]:
        if not path:
            return None
        return f"{self.image_base_url}/{size}{path}"

    def poster_url(self, path: Optional[str]) -> Optional[str]:
        return self.image_url(path, POSTER_SIZE)

    def backdrop_url(self, path: Optional[str]) -> Optional[str]:
        return self.image_url(path, BACKDROP_SIZE)

    def profile_url(self, path: Optional[str]) -> Optional[str]:
        return self.image_url(path, PROFILE_SIZE)
