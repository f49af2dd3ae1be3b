from functools import lru_cache

from larder_recipes.app.services.llm_client import IngredientNormalizer, LlmIngredientNormalizer
from larder_recipes.app.services.storage.base import RecipeStore
from larder_recipes.app.services.storage.memory import InMemoryRecipeStore
from larder_recipes.app.services.url_parsing import fetch_page
from larder_recipes.app.services.url_recipe_parser import PageFetcher


@lru_cache
def _process_store() -> InMemoryRecipeStore:
    return InMemoryRecipeStore()


def get_recipe_store() -> RecipeStore:
    return _process_store()


def get_normalizer() -> IngredientNormalizer:
    return LlmIngredientNormalizer()


def get_page_fetcher() -> PageFetcher:
    return fetch_page
