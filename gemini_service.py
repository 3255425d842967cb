"""
Gemini AI Service
Recipe generation from ingredients and ingredient detection from photos
"""
import base64
import binascii
import json
import logging
import os
import random
import re
import time
from typing import List, Dict, Any, Optional

from dotenv import load_dotenv
from fastapi import HTTPException
from google import genai
from google.genai import types

from models.generation_model import (
    RecipeGenerationRequest,
    RecipeGenerationResponse,
    GeneratedRecipe,
    ImageRecognitionRequest,
    ImageRecognitionResponse,
    DetectedIngredient,
)
from models.recipe_model import Nutrition

load_dotenv()

logger = logging.getLogger(__name__)

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

MAX_IMAGE_BYTES = 10 * 1024 * 1024  # 10MB
MAX_GENERATED_RECIPES = 6

CREATIVITY_TEMPERATURE = {"low": 0.4, "medium": 0.8, "high": 1.2}

DIFFICULTIES = ("Easy", "Medium", "Hard")

INGREDIENT_CATEGORIES = {
    "Vegetables": [
        "tomato", "onion", "garlic", "bell pepper", "chili", "ginger", "carrot", "potato",
        "spinach", "lettuce", "broccoli", "cauliflower", "cabbage", "eggplant", "okra",
        "zucchini", "pumpkin", "cucumber", "peas", "corn", "celery", "asparagus", "kale",
    ],
    "Fruits": [
        "apple", "banana", "orange", "lemon", "lime", "grape", "strawberry", "blueberry",
        "mango", "pineapple", "papaya", "watermelon", "pomegranate", "pear", "peach", "kiwi",
    ],
    "Meat": ["chicken", "beef", "pork", "lamb", "turkey", "duck", "goat", "bacon"],
    "Seafood": ["salmon", "tuna", "shrimp", "prawn", "crab", "lobster", "cod", "tilapia", "mackerel"],
    "Dairy": ["milk", "cheese", "yogurt", "butter", "cream", "paneer", "ghee", "mozzarella", "feta"],
    "Grains": ["rice", "pasta", "bread", "flour", "quinoa", "wheat", "oats", "barley", "noodle"],
    "Herbs & Spices": [
        "salt", "pepper", "oregano", "basil", "thyme", "rosemary", "coriander", "cilantro",
        "cumin", "turmeric", "paprika", "nutmeg", "clove", "cinnamon", "cardamom",
    ],
}


def categorize_ingredient(name: str) -> str:
    """Keyword lookup; first matching category wins"""
    lower_name = (name or "").lower()
    for category, keywords in INGREDIENT_CATEGORIES.items():
        for keyword in keywords:
            if keyword in lower_name:
                return category
    return "Other"


def parse_nutrition_value(value) -> Optional[float]:
    """'12g' -> 12.0, '350' -> 350.0, anything unparseable -> None"""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        match = re.search(r"\d+(?:\.\d+)?", value)
        if match:
            return float(match.group(0))
    return None


def _extract_json(text: str, opening: str, closing: str):
    pattern = re.escape(opening) + r"[\s\S]*" + re.escape(closing)
    match = re.search(pattern, text or "")
    if not match:
        raise ValueError("No JSON found in response")
    return json.loads(match.group(0))


# ============================================================================
# RECIPE GENERATION
# ============================================================================

class RecipeGenerationService:
    def __init__(self, api_key: Optional[str] = None, model: str = GEMINI_MODEL):
        self.model = model
        self.client = genai.Client(api_key=api_key) if api_key else None

    @property
    def available(self) -> bool:
        return self.client is not None

    async def generate_recipes(self, request: RecipeGenerationRequest) -> RecipeGenerationResponse:
        """Gemini first; any failure falls back to local suggestions"""
        start_time = time.perf_counter()

        if self.available:
            try:
                text = await self._call_gemini(request)
                recipes = self.process_response(_extract_json(text, "{", "}"), request)
                return RecipeGenerationResponse(
                    recipes=recipes,
                    total_generated=len(recipes),
                    generation_time=time.perf_counter() - start_time,
                    source="gemini",
                )
            except Exception as e:
                logger.error(f"Error generating recipes via Gemini, falling back to local suggestions: {e}")

        recipes = self.generate_fallback_recipes(request)
        return RecipeGenerationResponse(
            recipes=recipes,
            total_generated=len(recipes),
            generation_time=time.perf_counter() - start_time,
            source="fallback",
        )

    async def _call_gemini(self, request: RecipeGenerationRequest) -> str:
        config = types.GenerateContentConfig(
            temperature=CREATIVITY_TEMPERATURE[request.creativity],
            seed=request.seed,
            response_mime_type="application/json",
        )
        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=self.build_prompt(request),
            config=config,
        )
        return response.text or ""

    def build_prompt(self, request: RecipeGenerationRequest) -> str:
        ingredients_list = ", ".join(
            f"{ing.name} ({ing.quantity} {ing.unit or 'units'})" if ing.quantity else ing.name
            for ing in request.ingredients
        )
        dietary = ", ".join(request.dietary_preferences) or "No specific dietary restrictions"

        filters = ""
        if request.cuisine:
            filters += f"\nCuisine preference: {request.cuisine}"
        if request.difficulty:
            filters += f"\nDifficulty level: {request.difficulty}"
        if request.max_time:
            filters += f"\nMaximum cooking time: {request.max_time}"

        count = _clamp_count(request.num_recipes)

        return f"""You are a professional chef and nutritionist. Generate {count} distinct recipes using the provided ingredients as primaries. You may add 1-3 pantry staples (oil, salt, pepper, water, basic spices).

Available Ingredients: {ingredients_list}
Dietary Preferences: {dietary}
Servings: {request.servings}{filters}

Rules:
- Respect the dietary preferences
- Give 6-12 numbered steps with temperatures, timings and doneness cues
- Give nutrition per serving (calories, protein, carbs, fat)

Return ONLY valid JSON in this structure:
{{
  "recipes": [
    {{
      "name": "Recipe Name",
      "description": "Short description",
      "ingredients": [{{"name": "string", "quantity": "string", "unit": "string"}}],
      "instructions": ["1) ...", "2) ..."],
      "nutrition": {{"calories": "XXX", "protein": "XXg", "carbs": "XXg", "fat": "XXg"}},
      "difficulty": "Easy|Medium|Hard",
      "time": "35 minutes",
      "servings": {request.servings},
      "tags": ["Vegetarian"],
      "cuisine": "Cuisine"
    }}
  ]
}}"""

    def process_response(self, response: Dict[str, Any], request: RecipeGenerationRequest) -> List[GeneratedRecipe]:
        items = response.get("recipes") if isinstance(response, dict) else None
        if not isinstance(items, list) or not items:
            raise ValueError("Invalid response format from Gemini")

        recipes = []
        for index, data in enumerate(items[:_clamp_count(request.num_recipes)]):
            if not isinstance(data, dict):
                continue
            ingredients = []
            for ing in data.get("ingredients") or []:
                name = ing.get("name") if isinstance(ing, dict) else ing
                if isinstance(name, str) and name.strip():
                    ingredients.append(name.strip())

            nutrition = data.get("nutrition") or {}
            difficulty = data.get("difficulty")
            recipes.append(GeneratedRecipe(
                name=data.get("name") or f"Recipe {index + 1}",
                description=data.get("description") or "",
                ingredients=ingredients,
                instructions=[str(s) for s in data.get("instructions") or []],
                nutrition=Nutrition(**{
                    field: parse_nutrition_value(nutrition.get(field))
                    for field in ("calories", "protein", "carbs", "fat")
                }),
                cuisine=data.get("cuisine") or request.cuisine or "International",
                tags=data.get("tags") or list(request.dietary_preferences),
                difficulty=difficulty if difficulty in DIFFICULTIES else "Medium",
                time=data.get("time") or "30 minutes",
                servings=data.get("servings") or request.servings,
            ))

        if not recipes:
            raise ValueError("No usable recipes in Gemini response")
        return recipes

    def generate_fallback_recipes(self, request: RecipeGenerationRequest) -> List[GeneratedRecipe]:
        """Local suggestions built from the supplied ingredients; a fixed seed is reproducible"""
        rand = random.Random(request.seed)
        bases = ["Stir-Fry", "Pasta", "Soup", "Salad", "Skillet", "Bake"]
        times = ["15 minutes", "25 minutes", "35 minutes", "45 minutes", "1 h"]

        names = [ing.name for ing in request.ingredients]
        used = names[:max(2, min(6, len(names)))]

        recipes = []
        for idx in range(_clamp_count(request.num_recipes)):
            main = names[idx % len(names)] if names else "Mixed Veggies"
            recipes.append(GeneratedRecipe(
                name=f"{main} {rand.choice(bases)}",
                description=f"A quick {main.lower()} {rand.choice(['meal', 'dish', 'recipe'])} using your ingredients.",
                ingredients=list(used),
                instructions=[
                    "Prep all ingredients and heat pan/pot.",
                    "Sauté aromatics, then add main ingredients.",
                    "Season to taste and finish with garnish.",
                ],
                nutrition=Nutrition(
                    calories=300 + rand.randrange(150),
                    protein=8 + rand.randrange(15),
                    carbs=20 + rand.randrange(40),
                    fat=5 + rand.randrange(15),
                ),
                cuisine=request.cuisine or "International",
                tags=list(request.dietary_preferences),
                difficulty=request.difficulty or rand.choice(DIFFICULTIES),
                time=rand.choice(times),
                servings=request.servings,
            ))
        return recipes


def _clamp_count(num_recipes: int) -> int:
    return max(1, min(MAX_GENERATED_RECIPES, num_recipes))


# ============================================================================
# IMAGE RECOGNITION
# ============================================================================

RECOGNITION_PROMPT = """Analyze this image and identify ALL food ingredients visible.

Return ONLY a valid JSON array with this structure (no extra text, no markdown):
[
  {
    "name": "ingredient name",
    "confidence": 0.95,
    "category": "Vegetables|Fruits|Meat|Seafood|Dairy|Grains|Herbs & Spices|Other",
    "quantity": "estimated quantity if visible",
    "unit": "unit of measurement if visible"
  }
]

Distinguish visually similar items (e.g. chili vs tomato vs bell pepper) and use exact names."""


def decode_image(image_data: str) -> bytes:
    """Strip an optional data URL prefix and decode; raises HTTPException on bad input"""
    payload = image_data.split(",", 1)[1] if "," in image_data else image_data
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="Image is not valid base64")

    if not raw:
        raise HTTPException(status_code=400, detail="Image is empty")
    if len(raw) > MAX_IMAGE_BYTES:
        raise HTTPException(status_code=413, detail="Image too large. Max size is 10MB.")
    return raw


def parse_detected_ingredients(text: str, max_results: int) -> List[DetectedIngredient]:
    """JSON array from the model reply; unparseable replies yield no ingredients"""
    try:
        items = _extract_json(text, "[", "]")
    except ValueError as e:
        logger.warning(f"⚠️ Failed to parse Gemini ingredient response: {e}")
        return []

    detected = []
    for item in items if isinstance(items, list) else []:
        if not isinstance(item, dict):
            continue
        name = item.get("name")
        if not isinstance(name, str) or not name.strip():
            continue
        confidence = item.get("confidence")
        if not isinstance(confidence, (int, float)) or isinstance(confidence, bool):
            confidence = 0.8
        detected.append(DetectedIngredient(
            name=name.strip(),
            confidence=max(0.5, min(1.0, float(confidence))),
            category=item.get("category") or categorize_ingredient(name),
            quantity=str(item.get("quantity") or "1"),
            unit=str(item.get("unit") or "piece"),
        ))

    detected.sort(key=lambda d: d.confidence, reverse=True)
    return detected[:max_results]


class ImageRecognitionService:
    def __init__(self, api_key: Optional[str] = None, model: str = GEMINI_MODEL):
        self.model = model
        self.client = genai.Client(api_key=api_key) if api_key else None

    @property
    def available(self) -> bool:
        return self.client is not None

    async def recognize_ingredients(self, request: ImageRecognitionRequest) -> ImageRecognitionResponse:
        if not self.available:
            raise HTTPException(status_code=503, detail="Image recognition service not available")

        raw = decode_image(request.image_data)
        start_time = time.perf_counter()

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=[
                    types.Part.from_bytes(data=raw, mime_type=f"image/{request.image_format}"),
                    RECOGNITION_PROMPT,
                ],
            )
        except Exception as e:
            logger.error(f"❌ Gemini image recognition failed: {e}")
            raise HTTPException(status_code=502, detail="Image recognition failed")

        ingredients = parse_detected_ingredients(response.text or "", request.max_results)
        logger.info(f"🍅 Detected {len(ingredients)} ingredients")

        return ImageRecognitionResponse(
            ingredients=ingredients,
            processing_time=time.perf_counter() - start_time,
            model_version=self.model,
        )


recipe_generation_service = RecipeGenerationService(GEMINI_API_KEY)
image_recognition_service = ImageRecognitionService(GEMINI_API_KEY)
