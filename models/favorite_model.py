from pydantic import BaseModel
from typing import List


class FavoriteIn(BaseModel):
    recipe_id: str


class FavoriteListOut(BaseModel):
    ok: bool = True
    recipe_ids: List[str] = []


class FavoriteToggleOut(BaseModel):
    ok: bool = True
    is_favorite: bool
