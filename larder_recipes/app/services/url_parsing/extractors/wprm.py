"""Extraction for pages rendered by the WP Recipe Maker plugin."""

import logging
import re
from typing import List, Optional

from bs4 import BeautifulSoup

from larder_recipes.app.services.url_parsing.extractors.common import (
    extract_page_title,
    image_source,
    make_soup,
    supplement_from_json_ld,
)
from larder_recipes.app.services.url_parsing.ingredient_parser import parse_amount_range
from larder_recipes.app.services.url_parsing.models import (
    Ingredient,
    RecipeDraft,
    is_valid_recipe,
)
from larder_recipes.app.services.url_parsing.parsing_utils import (
    clean_list_item_text,
    clean_text,
    coerce_string_list,
    parse_yield_count,
)
from larder_recipes.app.services.url_parsing.units import resolve_unit_alias

logger = logging.getLogger(__name__)


def _text(node, selector: str) -> str:
    found = node.select_one(selector)
    return clean_text(found.get_text(" ", strip=True)) if found else ""


def _parse_wprm_ingredient(elem, section: Optional[str]) -> Optional[Ingredient]:
    amount_text = _text(elem, ".wprm-recipe-ingredient-amount")
    unit_text = _text(elem, ".wprm-recipe-ingredient-unit")
    name_text = _text(elem, ".wprm-recipe-ingredient-name")
    notes_text = _text(elem, ".wprm-recipe-ingredient-notes")

    original = " ".join(p for p in (amount_text, unit_text, name_text, notes_text) if p)
    if not original:
        original = clean_text(elem.get_text(" ", strip=True))
    if not original:
        return None

    amount, amount_max = parse_amount_range(amount_text) if amount_text else (None, None)
    unit = resolve_unit_alias(unit_text)
    name = name_text
    if unit_text and unit is None:
        name = clean_text(f"{unit_text} {name_text}")

    return Ingredient(
        original_text=original,
        amount=amount,
        amount_max=amount_max,
        unit=unit,
        name=name or original,
        section=section,
        optional=bool(re.search(r"\boptional\b", notes_text, re.I)),
        parse_confidence=1.0 if amount is not None or unit is not None else None,
    )


def _wprm_ingredients(container) -> List[Ingredient]:
    ingredients: List[Ingredient] = []
    groups = container.select(".wprm-recipe-ingredient-group")
    if groups:
        for group in groups:
            section = _text(group, ".wprm-recipe-ingredient-group-name") or None
            for elem in group.select(".wprm-recipe-ingredient"):
                ingredient = _parse_wprm_ingredient(elem, section)
                if ingredient:
                    ingredients.append(ingredient)
    else:
        for elem in container.select(".wprm-recipe-ingredient"):
            ingredient = _parse_wprm_ingredient(elem, None)
            if ingredient:
                ingredients.append(ingredient)
    return ingredients


def _wprm_minutes(container, field: str) -> Optional[int]:
    minutes = parse_yield_count(_text(container, f".wprm-recipe-{field}-minutes"))
    hours = parse_yield_count(_text(container, f".wprm-recipe-{field}-hours"))
    if minutes is None and hours is None:
        return None
    return (hours or 0) * 60 + (minutes or 0)


def _find_container(soup: BeautifulSoup):
    return soup.select_one(".wprm-recipe") or soup.select_one(".wprm-recipe-container")


def extract_recipe_from_wprm(html: str, source_url: str) -> Optional[RecipeDraft]:
    soup = make_soup(html)
    container = _find_container(soup)
    if container is None:
        return None

    instructions = []
    for elem in container.select(".wprm-recipe-instruction-text"):
        text = clean_list_item_text(elem.get_text(" ", strip=True))
        if text:
            instructions.append(text)

    draft = RecipeDraft(
        title=_text(container, ".wprm-recipe-name") or extract_page_title(soup),
        description=_text(container, ".wprm-recipe-summary") or None,
        image_url=image_source(container.select_one(".wprm-recipe-image img")),
        ingredients=_wprm_ingredients(container),
        instructions=instructions,
        servings=parse_yield_count(_text(container, ".wprm-recipe-servings")),
        prep_time=_wprm_minutes(container, "prep_time"),
        cook_time=_wprm_minutes(container, "cook_time"),
        category=coerce_string_list(_text(container, ".wprm-recipe-course")),
        cuisine=coerce_string_list(_text(container, ".wprm-recipe-cuisine")),
        keywords=coerce_string_list(_text(container, ".wprm-recipe-keyword")),
        source_url=source_url,
    )
    logger.info(
        "WPRM markup: title=%s, ingredients=%d, steps=%d",
        draft.title[:50] or "None",
        len(draft.ingredients),
        len(draft.instructions),
    )
    if not is_valid_recipe(draft):
        return None
    return supplement_from_json_ld(draft, soup)
