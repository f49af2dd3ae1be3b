import logging

import httpx
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from larder_recipes.app.api.deps import get_normalizer
from larder_recipes.app.core.errors import NormalizationFailed
from larder_recipes.app.schemas.recipe import (
    NORMALIZATION_UNAVAILABLE_MESSAGE,
    LocalParseRequest,
    LocalParseResponse,
    ParseIngredientsRequest,
    ParseIngredientsResponse,
)
from larder_recipes.app.services.llm_client import (
    IngredientNormalizer,
    coerce_triple,
    get_ingredient_system_instruction,
)
from larder_recipes.app.services.url_parsing import build_ingredient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ingredients", tags=["ingredients"])


@router.post("/parse", response_model=ParseIngredientsResponse)
async def parse_ingredients(
    payload: ParseIngredientsRequest,
    normalizer: IngredientNormalizer = Depends(get_normalizer),
):
    lines = [text.strip() for text in payload.ingredient_texts]
    try:
        results = await normalizer.normalize(lines, get_ingredient_system_instruction())
        if len(results) != len(lines):
            raise NormalizationFailed(f"expected {len(lines)} results, got {len(results)}")
        triples = [coerce_triple(result) for result in results]
    except (NormalizationFailed, httpx.HTTPError) as exc:
        logger.warning("Ingredient normalization failed: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "error", "error": NORMALIZATION_UNAVAILABLE_MESSAGE},
        )
    return ParseIngredientsResponse(status="ok", ingredients=triples)


@router.post("/parse-local", response_model=LocalParseResponse)
def parse_ingredients_locally(payload: LocalParseRequest):
    ingredients = [build_ingredient(line) for line in payload.lines if line and line.strip()]
    return LocalParseResponse(ingredients=ingredients)
