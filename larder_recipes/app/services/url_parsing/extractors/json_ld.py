"""Schema.org JSON-LD recipe extraction."""

import logging
import re
from typing import List, Optional

from larder_recipes.app.services.url_parsing.extractors.common import (
    iter_json_ld_recipes,
    make_soup,
)
from larder_recipes.app.services.url_parsing.ingredient_parser import extract_ingredients
from larder_recipes.app.services.url_parsing.models import RecipeDraft, is_valid_recipe
from larder_recipes.app.services.url_parsing.parsing_utils import (
    clean_list_item_text,
    coerce_string_list,
    extract_image,
    parse_minutes,
    parse_yield_count,
    strip_html,
)

logger = logging.getLogger(__name__)


def extract_instruction_text(instructions) -> List[str]:
    """Flatten recipeInstructions into ordered step strings.

    Accepts a single string (split on line breaks), a list of strings, or
    HowToStep / HowToSection objects with nested itemListElement. Section
    names are dropped.
    """
    steps: List[str] = []
    if isinstance(instructions, str):
        for line in re.split(r"(?:<br\s*/?>|\r?\n)+", instructions, flags=re.I):
            cleaned = clean_list_item_text(strip_html(line))
            if cleaned:
                steps.append(cleaned)
    elif isinstance(instructions, list):
        for entry in instructions:
            steps.extend(extract_instruction_text(entry))
    elif isinstance(instructions, dict):
        nested = instructions.get("itemListElement")
        if nested is not None:
            steps.extend(extract_instruction_text(nested))
        else:
            text_val = instructions.get("text") or instructions.get("name") or ""
            cleaned = clean_list_item_text(strip_html(text_val)) if isinstance(text_val, str) else ""
            if cleaned:
                steps.append(cleaned)
    return steps


def _draft_from_recipe_object(obj: dict, source_url: str) -> RecipeDraft:
    name = obj.get("name") or obj.get("headline") or ""
    description = obj.get("description")
    return RecipeDraft(
        title=strip_html(name) if isinstance(name, str) else "",
        description=strip_html(description) or None if isinstance(description, str) else None,
        image_url=extract_image(obj.get("image")),
        ingredients=extract_ingredients(obj.get("recipeIngredient") or obj.get("ingredients")),
        instructions=extract_instruction_text(obj.get("recipeInstructions")),
        servings=parse_yield_count(obj.get("recipeYield")),
        prep_time=parse_minutes(obj.get("prepTime")),
        cook_time=parse_minutes(obj.get("cookTime")),
        category=coerce_string_list(obj.get("recipeCategory")),
        cuisine=coerce_string_list(obj.get("recipeCuisine")),
        keywords=coerce_string_list(obj.get("keywords")),
        source_url=source_url,
    )


def extract_recipe_from_json_ld(html: str, source_url: str) -> Optional[RecipeDraft]:
    """Return the first JSON-LD Recipe object that yields a valid draft."""
    soup = make_soup(html)
    for idx, obj in enumerate(iter_json_ld_recipes(soup)):
        draft = _draft_from_recipe_object(obj, source_url)
        logger.info(
            "JSON-LD recipe candidate %d: title=%s, ingredients=%d, steps=%d",
            idx,
            draft.title[:50] or "None",
            len(draft.ingredients),
            len(draft.instructions),
        )
        if is_valid_recipe(draft):
            return draft
    return None
