from fastapi import APIRouter

from larder_recipes.app.api.routes import ingredients, recipes

api_router = APIRouter()
api_router.include_router(recipes.router)
api_router.include_router(ingredients.router)
