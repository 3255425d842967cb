"""
Recipe Routes - Saved recipe catalogue
All handlers live in utils.recipe_handlers
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional

from database.mongo import get_database
from models.recipe_model import RecipeIn, RecipeOut, RecipeListOut, RecipeCheckOut
from utils.recipe_handlers import (
    list_recipes_handler,
    create_recipe_handler,
    get_recipe_handler,
    check_recipe_handler,
    delete_recipe_handler,
)

router = APIRouter()


# ============= ROUTES (SPECIFIC FIRST, DYNAMIC LAST) =============

@router.get("/", response_model=RecipeListOut)
async def list_recipes(db=Depends(get_database)):
    return await list_recipes_handler(db)


@router.post("/", response_model=RecipeOut, status_code=201)
async def create_recipe(recipe: RecipeIn, db=Depends(get_database)):
    return await create_recipe_handler(db, recipe)


@router.delete("/")
async def delete_recipe(
    id: Optional[str] = Query(None, description="Recipe id to delete"),
    all: bool = Query(False, description="Delete every recipe"),
    db=Depends(get_database),
):
    return await delete_recipe_handler(db, recipe_id=id, delete_all=all)


@router.get("/check", response_model=RecipeCheckOut)
async def check_recipe(recipe_id: str, db=Depends(get_database)):
    return await check_recipe_handler(db, recipe_id)


@router.get("/{recipe_id}", response_model=RecipeOut)
async def get_recipe(recipe_id: str, db=Depends(get_database)):
    return await get_recipe_handler(db, recipe_id)
