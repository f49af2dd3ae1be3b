import logging
from typing import Awaitable, Callable, Optional, Tuple

from larder_recipes.app.core.errors import ExtractionFailed, FetchError
from larder_recipes.app.services.url_parsing import (
    ExtractionMethod,
    FetchedPage,
    ParseResult,
    Recipe,
    RecipeDraft,
    clean_parsed_ingredients,
    fetch_page,
    is_valid_recipe,
)
from larder_recipes.app.services.url_parsing.extractors import (
    extract_recipe_from_data_attributes,
    extract_recipe_from_json_ld,
    extract_recipe_from_wprm,
    extract_recipe_heuristic,
)

logger = logging.getLogger(__name__)

Extractor = Callable[[str, str], Optional[RecipeDraft]]
PageFetcher = Callable[[str], Awaitable[FetchedPage]]

# Fixed priority order; the first valid draft wins.
STRATEGIES: Tuple[Tuple[ExtractionMethod, Extractor], ...] = (
    (ExtractionMethod.JSON_LD, extract_recipe_from_json_ld),
    (ExtractionMethod.WPRM, extract_recipe_from_wprm),
    (ExtractionMethod.DATA_ATTRIBUTES, extract_recipe_from_data_attributes),
    (ExtractionMethod.HTML, extract_recipe_heuristic),
)


def _run_strategy(method: ExtractionMethod, extractor: Extractor, html: str, source_url: str) -> Optional[RecipeDraft]:
    try:
        return extractor(html, source_url)
    except Exception:  # noqa: BLE001
        logger.exception("Strategy %s crashed for %s; treating as no signal", method.value, source_url)
        return None


def scrape_recipe(html: str, source_url: str) -> Recipe:
    """Run the extraction cascade over raw HTML.

    Raises ExtractionFailed when no strategy yields a recipe with a title,
    at least one ingredient and at least one instruction.
    """
    for method, extractor in STRATEGIES:
        logger.info("Trying %s extraction for %s", method.value, source_url)
        draft = _run_strategy(method, extractor, html, source_url)
        if draft is None:
            continue
        draft.ingredients = clean_parsed_ingredients(draft.ingredients)
        if not is_valid_recipe(draft):
            logger.info("%s draft for %s failed validation", method.value, source_url)
            continue
        logger.info(
            "Extracted recipe via %s: title=%s, ingredients=%d, steps=%d",
            method.value,
            draft.title[:50],
            len(draft.ingredients),
            len(draft.instructions),
        )
        recipe = Recipe(**draft.model_dump(), extraction_method=method)
        if not recipe.source_url:
            recipe.source_url = source_url
        return recipe

    logger.warning("No extraction strategy produced a recipe for %s", source_url)
    raise ExtractionFailed(source_url)


async def parse_recipe_from_url(url: str, fetcher: Optional[PageFetcher] = None) -> ParseResult:
    """Fetch a page and scrape it, reporting failures as error codes instead of raising."""
    fetch = fetcher or fetch_page
    try:
        page = await fetch(url)
    except FetchError as exc:
        logger.warning("Failed to fetch %s (%s): %s", url, exc.error_code, exc)
        warnings = []
        if exc.status_code in (401, 403):
            warnings.append("blocked_by_site")
        return ParseResult(
            success=False,
            error_code=exc.error_code,
            error_message=str(exc),
            warnings=warnings,
        )

    try:
        recipe = scrape_recipe(page.html, page.final_url or url)
    except ExtractionFailed as exc:
        return ParseResult(
            success=False,
            error_code="parse_failed",
            error_message=str(exc),
        )
    return ParseResult(success=True, recipe=recipe, parser_strategy=recipe.extraction_method)
