from pydantic import BaseModel, Field, validator
from typing import List, Optional, Literal
from datetime import datetime

Difficulty = Literal["Easy", "Medium", "Hard"]


class Nutrition(BaseModel):
    """Per-serving nutrition; a missing field does not count towards recommendations"""
    calories: Optional[float] = Field(default=None, ge=0)
    protein: Optional[float] = Field(default=None, ge=0)
    carbs: Optional[float] = Field(default=None, ge=0)
    fat: Optional[float] = Field(default=None, ge=0)


class RecipeIn(BaseModel):
    """Model for saving a generated or hand-entered recipe - Only user input fields"""
    name: str
    description: Optional[str] = ""
    ingredients: List[str] = []
    instructions: List[str] = []
    nutrition: Optional[Nutrition] = None
    cuisine: Optional[str] = None
    tags: List[str] = []
    difficulty: Difficulty = "Easy"
    time: Optional[str] = None
    servings: int = Field(default=1, ge=1, le=100)
    image_url: Optional[str] = None

    @validator('name')
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('name is required')
        if len(v) > 200:
            raise ValueError('Recipe name too long (max 200 characters)')
        return v

    @validator('ingredients')
    def validate_ingredients(cls, v):
        if len(v) > 50:
            raise ValueError('Too many ingredients (max 50)')
        # Clean up empty strings and whitespace
        return [ing.strip() for ing in v if ing and ing.strip()]

    @validator('tags')
    def validate_tags(cls, v):
        return [t.strip() for t in v if t and t.strip()]

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Margherita Pizza",
                "description": "Classic Neapolitan pizza",
                "ingredients": ["Pizza dough", "Tomato sauce", "Mozzarella", "Basil"],
                "instructions": ["Preheat oven to 250°C", "Top the dough", "Bake 8 minutes"],
                "nutrition": {"calories": 280, "protein": 12, "carbs": 36, "fat": 9},
                "cuisine": "Italian",
                "tags": ["Vegetarian"],
                "difficulty": "Medium",
                "time": "30 minutes",
                "servings": 2
            }
        }


class RecipeOut(BaseModel):
    """Response model for recipe data"""
    id: str
    name: str
    description: Optional[str] = ""
    ingredients: List[str] = []
    instructions: List[str] = []
    nutrition: Optional[Nutrition] = None
    cuisine: Optional[str] = None
    tags: List[str] = []
    difficulty: Optional[str] = None
    time: Optional[str] = None
    servings: Optional[int] = None
    image_url: Optional[str] = None
    avg_rating: float = 0.0
    ratings_count: int = 0
    created_at: Optional[datetime] = None


class RecipeListOut(BaseModel):
    ok: bool = True
    count: int
    recipes: List[RecipeOut]


class RecipeCheckOut(BaseModel):
    ok: bool = True
    is_saved: bool


def recipe_helper(d) -> RecipeOut:
    """Convert MongoDB document to RecipeOut with consistent field mapping"""
    nutrition = d.get("nutrition")
    return RecipeOut(
        id=str(d["_id"]),
        name=d.get("name", ""),
        description=d.get("description") or "",
        ingredients=d.get("ingredients") or [],
        instructions=d.get("instructions") or [],
        nutrition=Nutrition(**nutrition) if isinstance(nutrition, dict) else None,
        cuisine=d.get("cuisine"),
        tags=d.get("tags") or [],
        difficulty=d.get("difficulty"),
        time=d.get("time"),
        servings=d.get("servings"),
        image_url=d.get("image_url"),
        avg_rating=float(d.get("avg_rating") or 0.0),
        ratings_count=int(d.get("ratings_count") or 0),
        created_at=d.get("created_at"),
    )
