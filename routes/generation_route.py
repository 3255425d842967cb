"""
AI Routes - recipe generation and photo ingredient detection (Gemini)
"""
from fastapi import APIRouter, Depends

from gemini_service import (
    RecipeGenerationService,
    ImageRecognitionService,
    recipe_generation_service,
    image_recognition_service,
)
from models.generation_model import (
    RecipeGenerationRequest,
    RecipeGenerationResponse,
    ImageRecognitionRequest,
    ImageRecognitionResponse,
    AIStatusOut,
)

router = APIRouter()


def get_generation_service() -> RecipeGenerationService:
    return recipe_generation_service


def get_recognition_service() -> ImageRecognitionService:
    return image_recognition_service


@router.post("/generate-recipes", response_model=RecipeGenerationResponse)
async def generate_recipes(
    request: RecipeGenerationRequest,
    service: RecipeGenerationService = Depends(get_generation_service),
):
    return await service.generate_recipes(request)


@router.post("/recognize-ingredients", response_model=ImageRecognitionResponse)
async def recognize_ingredients(
    request: ImageRecognitionRequest,
    service: ImageRecognitionService = Depends(get_recognition_service),
):
    return await service.recognize_ingredients(request)


@router.get("/status", response_model=AIStatusOut)
async def ai_status(service: ImageRecognitionService = Depends(get_recognition_service)):
    if service.available:
        return AIStatusOut(available=True, model=service.model, message="AI-powered recognition is ready")
    return AIStatusOut(available=False, message="GEMINI_API_KEY not set; generation uses local suggestions")
