import asyncio
import math

import pytest
from bson import ObjectId

from models.recommendation_engine import (
    DEFAULT_WEIGHTS,
    FAVORITE_DEFAULT_WEIGHT,
    RecipeRecommendationEngine,
    build_preference_profile,
    calculate_recipe_score,
    rank_candidates,
    recommend,
    recipe_key,
    trending_order,
)


def recipe(**fields):
    fields.setdefault("_id", ObjectId())
    return fields


def rating(r, value, user_id="u1"):
    return {"user_id": user_id, "recipe_id": r["_id"], "rating": value}


# ===== Profile builder =====

def test_profile_accumulates_rating_weights():
    a = recipe(ingredients=["Garlic", "Onion"], cuisine="Italian", difficulty="Easy", tags=["Vegan"])
    b = recipe(ingredients=["Garlic"], cuisine="Italian", difficulty="Hard")

    profile = build_preference_profile([a, b], [rating(a, 5), rating(b, 2)])

    assert profile.ingredients == {"Garlic": 7, "Onion": 5}
    assert profile.cuisines == {"Italian": 7}
    assert profile.difficulties == {"Easy": 5, "Hard": 2}
    assert profile.tags == {"Vegan": 5}


def test_favorite_only_matches_rating_of_three():
    a = recipe(
        ingredients=["Tomato", "Basil"],
        cuisine="Italian",
        difficulty="Medium",
        tags=["Vegetarian"],
        nutrition={"calories": 280, "protein": 12, "carbs": 36, "fat": 9},
    )

    favorite_profile = build_preference_profile([a], [])
    rated_profile = build_preference_profile([a], [rating(a, 3)])

    assert FAVORITE_DEFAULT_WEIGHT == 3
    assert favorite_profile == rated_profile
    assert favorite_profile.ingredients == {"Tomato": 3, "Basil": 3}


def test_missing_optional_fields_contribute_nothing():
    a = recipe(name="Bare")

    profile = build_preference_profile([a], [rating(a, 4)])

    assert profile.ingredients == {}
    assert profile.cuisines == {}
    assert profile.difficulties == {}
    assert profile.tags == {}
    assert all(band.is_empty and band.avg == 0 for band in profile.nutrition.values())


def test_nutrition_band_min_max_avg():
    a = recipe(nutrition={"calories": 200, "protein": 10})
    b = recipe(nutrition={"calories": 400, "protein": 30})
    c = recipe()  # no nutrition record, not counted

    profile = build_preference_profile([a, b, c], [])

    calories = profile.nutrition["calories"]
    assert (calories.min, calories.max, calories.avg) == (200, 400, 300)
    assert profile.nutrition["protein"].avg == 20
    assert profile.nutrition["fat"].is_empty


# ===== Scorer =====

def test_single_shared_ingredient_scores_rating_times_weight():
    a = recipe(ingredients=["Saffron"])
    b = recipe(ingredients=["Saffron"])

    profile = build_preference_profile([a], [rating(a, 5)])

    assert calculate_recipe_score(b, profile) == 5 * DEFAULT_WEIGHTS["ingredient"]


def test_every_term_adds_up():
    a = recipe(ingredients=["Rice"], cuisine="Thai", difficulty="Easy", tags=["Spicy"])
    b = recipe(ingredients=["Rice"], cuisine="Thai", difficulty="Easy", tags=["Spicy"])

    profile = build_preference_profile([a], [rating(a, 4)])

    expected = 4 * (2.0 + 1.5 + 1.2 + 1.3)
    assert calculate_recipe_score(b, profile) == pytest.approx(expected)


def test_zero_range_nutrition_contributes_nothing():
    a = recipe(nutrition={"calories": 300})
    b = recipe(nutrition={"calories": 300})
    candidate = recipe(nutrition={"calories": 900})

    profile = build_preference_profile([a, b], [])
    score = calculate_recipe_score(candidate, profile)

    assert score == 0.0
    assert math.isfinite(score)


def test_empty_nutrition_bands_are_skipped():
    a = recipe(ingredients=["Egg"])
    candidate = recipe(nutrition={"calories": 300, "protein": 20, "carbs": 10, "fat": 5})

    profile = build_preference_profile([a], [])

    assert calculate_recipe_score(candidate, profile) == 0.0


def test_nutrition_closeness():
    a = recipe(nutrition={"calories": 200})
    b = recipe(nutrition={"calories": 400})
    on_average = recipe(nutrition={"calories": 300})
    at_edge = recipe(nutrition={"calories": 400})

    profile = build_preference_profile([a, b], [])

    assert calculate_recipe_score(on_average, profile) == pytest.approx(1.0 * 0.5)
    assert calculate_recipe_score(at_edge, profile) == pytest.approx(0.5 * 0.5)


def test_popularity_prior():
    profile = build_preference_profile([], [])
    popular = recipe(avg_rating=5.0, ratings_count=1)
    unrated = recipe(avg_rating=0.0, ratings_count=0)

    assert calculate_recipe_score(popular, profile) == pytest.approx(math.log(2) * 0.5)
    assert calculate_recipe_score(unrated, profile) == 0.0


def test_custom_weights():
    a = recipe(cuisine="Greek")
    b = recipe(cuisine="Greek")
    profile = build_preference_profile([a], [rating(a, 2)])

    weights = dict(DEFAULT_WEIGHTS, cuisine=10.0)
    assert calculate_recipe_score(b, profile, weights) == 20.0


# ===== Ranking =====

def test_cold_start_is_trending_order():
    low = recipe(ingredients=["Garlic"], avg_rating=3.0, ratings_count=50)
    top = recipe(avg_rating=4.8, ratings_count=10)
    top_more_votes = recipe(avg_rating=4.8, ratings_count=30)
    unrated = recipe(avg_rating=0.0, ratings_count=0)

    result = recommend([], [], [low, unrated, top, top_more_votes], limit=3)

    assert result == [top_more_votes, top, low]


def test_trending_ties_fall_back_to_id():
    first = recipe(_id=ObjectId("000000000000000000000001"), avg_rating=4.0, ratings_count=2)
    second = recipe(_id=ObjectId("000000000000000000000002"), avg_rating=4.0, ratings_count=2)

    assert trending_order([second, first]) == [first, second]


def test_interacted_and_rated_recipes_are_excluded():
    rated = recipe(ingredients=["Garlic"])
    favorited = recipe(ingredients=["Garlic"])
    fresh = recipe(ingredients=["Garlic"])

    result = recommend(
        [rated, favorited],
        [rating(rated, 5)],
        [rated, favorited, fresh],
    )

    assert result == [fresh]


def test_rating_of_deleted_recipe_still_excludes_it():
    ghost_id = ObjectId()
    candidate = recipe(_id=ghost_id)
    other = recipe()

    result = recommend([], [{"recipe_id": ghost_id, "rating": 4}], [candidate, other])

    assert [recipe_key(r) for r in result] == [str(other["_id"])]


def test_best_match_first():
    liked = recipe(ingredients=["Chicken", "Garlic"], cuisine="Chinese")
    strong = recipe(ingredients=["Chicken", "Garlic"], cuisine="Chinese")
    weak = recipe(ingredients=["Garlic"])
    unrelated = recipe(ingredients=["Chocolate"], avg_rating=5.0, ratings_count=3)

    result = recommend([liked], [rating(liked, 5)], [unrelated, weak, strong])

    assert result == [strong, weak, unrelated]


def test_ranking_is_stable():
    liked = recipe(ingredients=["Tomato"], tags=["Vegan"])
    candidates = [recipe(ingredients=["Tomato"] if i % 2 else [], tags=["Vegan"]) for i in range(10)]
    profile = build_preference_profile([liked], [rating(liked, 4)])

    first = rank_candidates(candidates, profile, limit=10)
    second = rank_candidates(list(reversed(candidates)), profile, limit=10)

    assert first == second
    equal_scores = [r for r in first if r["ingredients"]]
    assert [recipe_key(r) for r in equal_scores] == sorted(recipe_key(r) for r in equal_scores)


@pytest.mark.parametrize("n,limit", [(0, 5), (3, 5), (5, 5), (8, 5), (8, 1), (4, 0)])
def test_limit_respected(n, limit):
    liked = recipe(ingredients=["Tomato"])
    candidates = [recipe(ingredients=["Tomato"]) for _ in range(n)]

    assert len(recommend([], [], candidates, limit)) == min(n, limit)
    assert len(recommend([liked], [], candidates, limit)) == min(n, limit)


def test_scorer_does_not_mutate_inputs():
    liked = recipe(ingredients=["Tomato"], nutrition={"calories": 100})
    candidate = recipe(ingredients=["Tomato"], nutrition={"calories": 150})
    snapshot = (dict(liked), dict(candidate))

    recommend([liked], [rating(liked, 4)], [candidate])

    assert (liked, candidate) == snapshot


# ===== Engine over the database =====

def test_engine_cold_start_uses_trending(fake_db, add_recipe):
    low = add_recipe(avg_rating=2.0, ratings_count=4)
    high = add_recipe(avg_rating=4.5, ratings_count=2)

    recipes, algorithm = asyncio.run(RecipeRecommendationEngine(fake_db).get_recommendations("u1", 12))

    assert algorithm == "trending"
    assert [r["_id"] for r in recipes] == [high["_id"], low["_id"]]


def test_engine_excludes_ratings_and_favorites(fake_db, add_recipe):
    rated = add_recipe(ingredients=["Garlic"])
    favorited = add_recipe(ingredients=["Garlic"])
    match = add_recipe(ingredients=["Garlic"])
    other = add_recipe(ingredients=["Sugar"])
    fake_db.ratings.docs.append({"_id": ObjectId(), "user_id": "u1", "recipe_id": rated["_id"], "rating": 5})
    fake_db.favorites.docs.append({"_id": ObjectId(), "user_id": "u1", "recipe_id": favorited["_id"]})
    # Another user's history does not leak in
    fake_db.ratings.docs.append({"_id": ObjectId(), "user_id": "u2", "recipe_id": other["_id"], "rating": 5})

    recipes, algorithm = asyncio.run(RecipeRecommendationEngine(fake_db).get_recommendations("u1", 12))

    assert algorithm == "preference_profile"
    assert [r["_id"] for r in recipes] == [match["_id"], other["_id"]]


def test_partial_weights_fall_back_to_defaults():
    a = recipe(ingredients=["Feta"], cuisine="Greek")
    b = recipe(ingredients=["Feta"], cuisine="Greek")
    profile = build_preference_profile([a], [rating(a, 2)])

    assert calculate_recipe_score(b, profile, {"cuisine": 10.0}) == 2 * 2.0 + 2 * 10.0


def test_engine_favorites_of_deleted_recipes_report_trending(fake_db, add_recipe):
    low = add_recipe(avg_rating=1.0, ratings_count=1)
    high = add_recipe(avg_rating=5.0, ratings_count=1)
    fake_db.favorites.docs.append({"_id": ObjectId(), "user_id": "u1", "recipe_id": ObjectId()})

    recipes, algorithm = asyncio.run(RecipeRecommendationEngine(fake_db).get_recommendations("u1", 12))

    assert algorithm == "trending"
    assert [r["_id"] for r in recipes] == [high["_id"], low["_id"]]
