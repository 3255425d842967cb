# models/recommendation_engine.py
from typing import List, Dict, Optional, Tuple, Iterable
from dataclasses import dataclass, field
import logging
import math

logger = logging.getLogger(__name__)

# Hand-picked weights, tune here without touching the scoring structure
DEFAULT_WEIGHTS = {
    "ingredient": 2.0,    # strongest taste signal
    "cuisine": 1.5,
    "difficulty": 1.2,    # users stick to a comfort level
    "tag": 1.3,           # dietary/style tags
    "nutrition": 0.5,     # per nutrition field
    "popularity": 0.5,    # prior from the recipe's own ratings
}

# Weight of a favorited-but-unrated recipe: midpoint of the 1-5 scale
FAVORITE_DEFAULT_WEIGHT = 3

DEFAULT_LIMIT = 12

NUTRITION_FIELDS = ("calories", "protein", "carbs", "fat")


@dataclass
class NutritionBand:
    min: float = math.inf
    max: float = -math.inf
    avg: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not (math.isfinite(self.min) and math.isfinite(self.max))


@dataclass
class PreferenceProfile:
    """Weighted summary of the recipes a user rated or favorited. Rebuilt per request."""
    ingredients: Dict[str, float] = field(default_factory=dict)
    cuisines: Dict[str, float] = field(default_factory=dict)
    difficulties: Dict[str, float] = field(default_factory=dict)
    tags: Dict[str, float] = field(default_factory=dict)
    nutrition: Dict[str, NutritionBand] = field(
        default_factory=lambda: {name: NutritionBand() for name in NUTRITION_FIELDS}
    )


# ===== PURE CORE =====

def recipe_key(recipe: Dict) -> str:
    return str(recipe.get("_id"))


def _number(value) -> Optional[float]:
    """Nutrition values are optional; anything non-numeric is treated as absent"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


def _accumulate(target: Dict[str, float], key: str, weight: float) -> None:
    target[key] = target.get(key, 0) + weight


def build_preference_profile(
    interacted_recipes: Iterable[Dict],
    ratings: Iterable[Dict],
) -> PreferenceProfile:
    """
    Fold the user's rated/favorited recipes into a PreferenceProfile.

    Each recipe contributes its rating value, or FAVORITE_DEFAULT_WEIGHT when
    it is only favorited. Missing cuisine/difficulty/tags/nutrition simply
    contribute nothing for that recipe.
    """
    rating_by_recipe = {str(r.get("recipe_id")): r.get("rating") for r in ratings}
    profile = PreferenceProfile()

    totals = {name: 0.0 for name in NUTRITION_FIELDS}
    with_nutrition = 0

    for recipe in interacted_recipes:
        rating = rating_by_recipe.get(recipe_key(recipe))
        weight = rating if rating is not None else FAVORITE_DEFAULT_WEIGHT

        # Duplicate ingredient names are counted twice
        for ingredient in recipe.get("ingredients") or []:
            _accumulate(profile.ingredients, ingredient, weight)

        cuisine = recipe.get("cuisine")
        if cuisine is not None:
            _accumulate(profile.cuisines, cuisine, weight)

        difficulty = recipe.get("difficulty")
        if difficulty is not None:
            _accumulate(profile.difficulties, difficulty, weight)

        for tag in recipe.get("tags") or []:
            _accumulate(profile.tags, tag, weight)

        nutrition = recipe.get("nutrition")
        if isinstance(nutrition, dict):
            for name in NUTRITION_FIELDS:
                value = _number(nutrition.get(name))
                if value is None:
                    continue
                band = profile.nutrition[name]
                band.min = min(band.min, value)
                band.max = max(band.max, value)
                totals[name] += value
            with_nutrition += 1

    if with_nutrition > 0:
        for name in NUTRITION_FIELDS:
            profile.nutrition[name].avg = totals[name] / with_nutrition

    return profile


def _nutrition_closeness(recipe: Dict, profile: PreferenceProfile) -> float:
    nutrition = recipe.get("nutrition")
    if not isinstance(nutrition, dict):
        return 0.0

    total = 0.0
    for name in NUTRITION_FIELDS:
        band = profile.nutrition[name]
        value = _number(nutrition.get(name))
        if value is None or band.avg <= 0 or band.is_empty:
            continue
        spread = band.max - band.min
        # Identical values across the history do not distinguish candidates
        if spread <= 0:
            continue
        total += 1 - abs(value - band.avg) / spread
    return total


def _popularity_prior(recipe: Dict) -> float:
    avg_rating = _number(recipe.get("avg_rating"))
    count = _number(recipe.get("ratings_count"))
    if not avg_rating or not count:
        return 0.0
    return (avg_rating / 5) * math.log(count + 1)


def calculate_recipe_score(
    recipe: Dict,
    profile: PreferenceProfile,
    weights: Optional[Dict[str, float]] = None,
) -> float:
    """Additive score of a candidate against the profile; higher is better"""
    w = {**DEFAULT_WEIGHTS, **(weights or {})}

    ingredient = sum(profile.ingredients.get(i, 0) for i in recipe.get("ingredients") or [])

    cuisine = 0.0
    if recipe.get("cuisine") is not None:
        cuisine = profile.cuisines.get(recipe["cuisine"], 0)

    difficulty = 0.0
    if recipe.get("difficulty") is not None:
        difficulty = profile.difficulties.get(recipe["difficulty"], 0)

    tag = sum(profile.tags.get(t, 0) for t in recipe.get("tags") or [])

    return (
        ingredient * w["ingredient"]
        + cuisine * w["cuisine"]
        + difficulty * w["difficulty"]
        + tag * w["tag"]
        + _nutrition_closeness(recipe, profile) * w["nutrition"]
        + _popularity_prior(recipe) * w["popularity"]
    )


def trending_order(recipes: Iterable[Dict]) -> List[Dict]:
    """Global popularity: avg_rating desc, ratings_count desc, id asc"""
    return sorted(
        recipes,
        key=lambda r: (
            -(_number(r.get("avg_rating")) or 0.0),
            -(_number(r.get("ratings_count")) or 0.0),
            recipe_key(r),
        ),
    )


def rank_candidates(
    candidates: Iterable[Dict],
    profile: PreferenceProfile,
    limit: int = DEFAULT_LIMIT,
    weights: Optional[Dict[str, float]] = None,
) -> List[Dict]:
    """Best-first by score; equal scores fall back to recipe id"""
    if limit < 1:
        return []
    scored = [(calculate_recipe_score(r, profile, weights), r) for r in candidates]
    scored.sort(key=lambda x: (-x[0], recipe_key(x[1])))
    return [recipe for _, recipe in scored[:limit]]


def recommend(
    interacted_recipes: List[Dict],
    ratings: List[Dict],
    candidate_recipes: List[Dict],
    limit: int = DEFAULT_LIMIT,
    weights: Optional[Dict[str, float]] = None,
) -> List[Dict]:
    """
    Rank candidate recipes for one user.

    - No ratings and no interacted recipes: cold start, pure trending order
    - Otherwise: profile from history, score every candidate not yet seen
    """
    if limit < 1:
        return []

    if not interacted_recipes and not ratings:
        return trending_order(candidate_recipes)[:limit]

    seen = {recipe_key(r) for r in interacted_recipes}
    seen.update(str(r.get("recipe_id")) for r in ratings)

    profile = build_preference_profile(interacted_recipes, ratings)
    unseen = [r for r in candidate_recipes if recipe_key(r) not in seen]
    return rank_candidates(unseen, profile, limit, weights)


# ===== DATA ACCESS =====

class RecipeRecommendationEngine:
    """
    Personalized feed over the recipes collection:
    - Personalized: preference profile from ratings + favorites
    - Trending: avg_rating DESC, ratings_count DESC (cold start)
    """

    def __init__(self, db, weights: Optional[Dict[str, float]] = None):
        self.db = db
        self.weights = {**DEFAULT_WEIGHTS, **(weights or {})}

    async def get_recommendations(
        self,
        user_id: str,
        limit: int = DEFAULT_LIMIT,
    ) -> Tuple[List[Dict], str]:
        """Returns (recipes, algorithm) where algorithm is 'trending' or 'preference_profile'"""
        user_ratings = await self.db.ratings.find({"user_id": user_id}).to_list(length=None)
        user_favorites = await self.db.favorites.find({"user_id": user_id}).to_list(length=None)

        interacted_ids = [r["recipe_id"] for r in user_ratings]
        interacted_ids += [f["recipe_id"] for f in user_favorites]

        # Fallback for new users
        if not interacted_ids:
            return await self.get_trending_recipes(limit), "trending"

        interacted_recipes = await self.db.recipes.find(
            {"_id": {"$in": interacted_ids}}
        ).to_list(length=None)

        # Full scan of not-yet-seen recipes
        candidates = await self.db.recipes.find(
            {"_id": {"$nin": interacted_ids}}
        ).to_list(length=None)

        logger.info(
            f"Scoring {len(candidates)} candidates for {user_id} "
            f"({len(user_ratings)} ratings, {len(user_favorites)} favorites)"
        )

        ranked = recommend(interacted_recipes, user_ratings, candidates, limit, self.weights)
        # Favorites of deleted recipes leave nothing to build a profile from
        algorithm = "preference_profile" if interacted_recipes or user_ratings else "trending"
        return ranked, algorithm

    async def get_trending_recipes(self, limit: int = DEFAULT_LIMIT) -> List[Dict]:
        if limit < 1:
            return []
        return await (
            self.db.recipes.find({})
            .sort([
                ("avg_rating", -1),
                ("ratings_count", -1),
                ("_id", 1),
            ])
            .limit(limit)
            .to_list(length=limit)
        )
