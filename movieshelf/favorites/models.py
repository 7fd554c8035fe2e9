from pydantic import BaseModel, ConfigDict, Field, StrictInt
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime


class UserFavorite(BaseModel):
    id: str
    user_id: Optional[str] = None
    movie_id: int
    created_at: datetime


class FavoriteOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    user_id: Optional[str] = None
    movie_id: int
    created_at: datetime


class FavoriteRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    movie_id: StrictInt = Field(..., gt=0)
