"""URL recipe parsing package.

This package provides functionality for extracting recipes from HTML using
multiple strategies: schema.org JSON-LD, WP Recipe Maker markup, microdata and
data attributes, and heuristic HTML parsing.
"""

from larder_recipes.app.services.url_parsing.constants import AI_PARSING_VERSION
from larder_recipes.app.services.url_parsing.html_fetcher import (
    fetch_page,
    is_private_host,
    validate_url,
)
from larder_recipes.app.services.url_parsing.ingredient_parser import (
    ParsedLine,
    build_ingredient,
    clean_parsed_ingredients,
    extract_ingredients,
    parse_amount,
    parse_amount_range,
    parse_ingredient_line,
    singularize,
)
from larder_recipes.app.services.url_parsing.models import (
    AiParsingStatus,
    ExtractionMethod,
    FetchedPage,
    Ingredient,
    IngredientTriple,
    ParseResult,
    Recipe,
    RecipeDraft,
    effective_values,
    has_ai_fields,
    is_valid_recipe,
)
from larder_recipes.app.services.url_parsing.parsing_utils import (
    clean_list_item_text,
    clean_text,
    coerce_string_list,
    extract_image,
    parse_duration_from_text,
    parse_iso8601_duration,
    parse_minutes,
    parse_servings_from_text,
    parse_yield_count,
    strip_html,
)
from larder_recipes.app.services.url_parsing.units import (
    COUNT_UNITS,
    CanonicalUnit,
    resolve_unit_alias,
    unit_values,
)

__all__ = [
    # Constants
    "AI_PARSING_VERSION",
    # HTML fetching
    "fetch_page",
    "is_private_host",
    "validate_url",
    # Ingredient parsing
    "ParsedLine",
    "build_ingredient",
    "clean_parsed_ingredients",
    "extract_ingredients",
    "parse_amount",
    "parse_amount_range",
    "parse_ingredient_line",
    "singularize",
    # Models
    "AiParsingStatus",
    "ExtractionMethod",
    "FetchedPage",
    "Ingredient",
    "IngredientTriple",
    "ParseResult",
    "Recipe",
    "RecipeDraft",
    "effective_values",
    "has_ai_fields",
    "is_valid_recipe",
    # Parsing utilities
    "clean_list_item_text",
    "clean_text",
    "coerce_string_list",
    "extract_image",
    "parse_duration_from_text",
    "parse_iso8601_duration",
    "parse_minutes",
    "parse_servings_from_text",
    "parse_yield_count",
    "strip_html",
    # Units
    "COUNT_UNITS",
    "CanonicalUnit",
    "resolve_unit_alias",
    "unit_values",
]
