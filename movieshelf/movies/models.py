from pydantic import BaseModel
from typing import List, Optional

class MovieBase(BaseModel):
    id: int
    title: str
    overview: str = ""
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    vote_average: float = 0.0
    vote_count: int = 0
    genre_ids: List[int] = []
    release_date: str = ""
