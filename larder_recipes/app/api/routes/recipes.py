import logging

from fastapi import APIRouter, Depends, HTTPException, status

from larder_recipes.app.api.deps import get_normalizer, get_page_fetcher, get_recipe_store
from larder_recipes.app.core.errors import ExtractionFailed, FetchError, RecipeNotFound
from larder_recipes.app.schemas.recipe import (
    EXTRACTION_FAILED_MESSAGE,
    NORMALIZATION_UNAVAILABLE_MESSAGE,
    AiParseResponse,
    ScrapeRequest,
    ScrapeResponse,
)
from larder_recipes.app.services import ai_parsing, url_recipe_parser
from larder_recipes.app.services.llm_client import IngredientNormalizer
from larder_recipes.app.services.storage.base import RecipeStore
from larder_recipes.app.services.url_parsing import Recipe

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recipes", tags=["recipes"])


@router.post("/scrape", response_model=ScrapeResponse)
async def scrape_recipe_endpoint(
    payload: ScrapeRequest,
    store: RecipeStore = Depends(get_recipe_store),
    fetcher: url_recipe_parser.PageFetcher = Depends(get_page_fetcher),
):
    url = str(payload.url)
    if payload.html:
        html, final_url = payload.html, url
    else:
        try:
            page = await fetcher(url)
        except FetchError as exc:
            return ScrapeResponse(
                success=False,
                error_code=exc.error_code,
                error_message=str(exc),
                warnings=["blocked_by_site"] if exc.status_code in (401, 403) else [],
            )
        html, final_url = page.html, page.final_url or url

    try:
        recipe = url_recipe_parser.scrape_recipe(html, final_url)
    except ExtractionFailed:
        return ScrapeResponse(
            success=False,
            error_code="parse_failed",
            error_message=EXTRACTION_FAILED_MESSAGE,
        )

    if payload.save:
        recipe = store.create_recipe(recipe)
    return ScrapeResponse(success=True, recipe=recipe, parser_strategy=recipe.extraction_method)


@router.get("/{recipe_id}", response_model=Recipe)
def get_recipe(recipe_id: str, store: RecipeStore = Depends(get_recipe_store)):
    recipe = store.get_recipe(recipe_id)
    if recipe is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipe not found")
    return recipe


@router.post("/{recipe_id}/ai-parse", response_model=AiParseResponse)
async def ai_parse_recipe(
    recipe_id: str,
    store: RecipeStore = Depends(get_recipe_store),
    normalizer: IngredientNormalizer = Depends(get_normalizer),
):
    try:
        result = await ai_parsing.reconcile_and_persist(store, recipe_id, normalizer)
    except RecipeNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipe not found")

    return AiParseResponse(
        updated=result.updated,
        last_ai_parsing_version=result.last_ai_parsing_version,
        ai_parsing_status=result.ai_parsing_status,
        ingredients=result.ingredients,
        error=NORMALIZATION_UNAVAILABLE_MESSAGE if result.error else None,
    )
