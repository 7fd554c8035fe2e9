from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import datetime


class Collection(BaseModel):
    id: str
    user_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    is_public: bool = False
    created_at: datetime
    updated_at: datetime


class CollectionWithMovies(Collection):
    movies: List[int] = []

    @property
    def movie_count(self) -> int:
        return len(self.movies)


class CollectionMovie(BaseModel):
    id: str
    collection_id: str
    movie_id: int
    added_at: datetime


class CollectionCreate(BaseModel):
    name: str
    description: Optional[str] = None
    is_public: bool = False


class CollectionUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    is_public: Optional[bool] = None


# API boundary shapes (camelCase on the wire)

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CollectionOut(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    is_public: bool = False
    created_at: datetime
    updated_at: datetime
    movies: List[int] = []
    movie_count: int = 0

    @classmethod
    def from_collection(cls, collection: Collection, movies: Optional[List[int]] = None) -> "CollectionOut":
        if movies is None:
            movies = getattr(collection, "movies", [])
        return cls(
            id=collection.id,
            name=collection.name,
            description=collection.description,
            is_public=collection.is_public,
            created_at=collection.created_at,
            updated_at=collection.updated_at,
            movies=list(movies),
            movie_count=len(movies)
        )


class CreateCollectionRequest(CamelModel):
    name: str
    description: Optional[str] = None
    is_public: bool = False

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Collection name is required")
        return value.strip()


class UpdateCollectionRequest(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    is_public: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        if not value.strip():
            raise ValueError("Collection name is required")
        return value.strip()


class AddMovieRequest(CamelModel):
    movie_id: StrictInt = Field(..., gt=0)


class ImportCollectionRequest(BaseModel):
    data: str = Field(..., min_length=1)
