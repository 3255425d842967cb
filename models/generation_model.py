from pydantic import BaseModel, Field
from typing import List, Optional, Literal

from models.recipe_model import Difficulty, Nutrition


class IngredientIn(BaseModel):
    name: str
    category: Optional[str] = None
    quantity: Optional[str] = None
    unit: Optional[str] = None


class RecipeGenerationRequest(BaseModel):
    ingredients: List[IngredientIn] = Field(..., min_items=1)
    dietary_preferences: List[str] = []
    servings: int = Field(default=2, ge=1, le=20)
    cuisine: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    max_time: Optional[str] = None
    num_recipes: int = 4
    seed: Optional[int] = None
    creativity: Literal["low", "medium", "high"] = "medium"


class GeneratedRecipe(BaseModel):
    """Candidate recipe, not persisted until the user saves it"""
    name: str
    description: str = ""
    ingredients: List[str] = []
    instructions: List[str] = []
    nutrition: Nutrition = Field(default_factory=Nutrition)
    cuisine: str = "International"
    tags: List[str] = []
    difficulty: Difficulty = "Medium"
    time: str = "30 minutes"
    servings: int = 2


class RecipeGenerationResponse(BaseModel):
    recipes: List[GeneratedRecipe]
    total_generated: int
    generation_time: float
    source: Literal["gemini", "fallback"]


class ImageRecognitionRequest(BaseModel):
    image_data: str  # base64, with or without data URL prefix
    image_format: Literal["jpeg", "png", "webp"] = "jpeg"
    max_results: int = Field(default=20, ge=1, le=50)


class DetectedIngredient(BaseModel):
    name: str
    confidence: float
    category: str = "Other"
    quantity: Optional[str] = None
    unit: Optional[str] = None


class ImageRecognitionResponse(BaseModel):
    ingredients: List[DetectedIngredient]
    processing_time: float
    model_version: str


class AIStatusOut(BaseModel):
    available: bool
    model: Optional[str] = None
    message: str
