"""Extraction from hand-rolled microdata and data-ingredient-* attributes."""

import logging
import re
from typing import Dict, List, Optional

from bs4 import BeautifulSoup

from larder_recipes.app.services.url_parsing.extractors.common import (
    extract_meta_description,
    extract_og_image,
    extract_page_title,
    find_instruction_items,
    image_source,
    make_soup,
    supplement_from_page,
)
from larder_recipes.app.services.url_parsing.ingredient_parser import (
    build_ingredient,
    parse_amount_range,
)
from larder_recipes.app.services.url_parsing.models import (
    Ingredient,
    RecipeDraft,
    is_valid_recipe,
)
from larder_recipes.app.services.url_parsing.parsing_utils import (
    clean_list_item_text,
    clean_text,
    coerce_string_list,
    parse_minutes,
    parse_yield_count,
)
from larder_recipes.app.services.url_parsing.units import resolve_unit_alias

logger = logging.getLogger(__name__)


def _prop_elements(scope, name: str):
    return scope.select(f'[itemprop~="{name}"]')


def _prop_value(elem) -> str:
    """The value of a microdata property: content/datetime/src attributes, then text."""
    if elem is None:
        return ""
    for attr in ("content", "datetime"):
        if elem.get(attr):
            return clean_text(elem[attr])
    if elem.name == "img":
        return image_source(elem) or ""
    if elem.name in {"a", "link"} and elem.get("href"):
        return elem["href"].strip()
    return clean_text(elem.get_text(" ", strip=True))


def _first_prop(scope, name: str) -> str:
    elements = _prop_elements(scope, name)
    return _prop_value(elements[0]) if elements else ""


def _microdata_instructions(scope) -> List[str]:
    steps: List[str] = []
    for elem in _prop_elements(scope, "recipeInstructions"):
        children = elem.select('[itemprop~="text"]') or elem.find_all("li") or elem.find_all("p")
        if children:
            texts = [child.get_text(" ", strip=True) for child in children]
        else:
            texts = re.split(r"\r?\n+", elem.get_text("\n", strip=True))
        for text in texts:
            cleaned = clean_list_item_text(text)
            if cleaned:
                steps.append(cleaned)
    return steps


def _extract_microdata(soup: BeautifulSoup, source_url: str) -> Optional[RecipeDraft]:
    scope = soup.find(attrs={"itemtype": re.compile(r"schema\.org/Recipe", re.I)})
    if scope is None:
        scope = soup
    ingredient_elems = _prop_elements(scope, "recipeIngredient") or _prop_elements(scope, "ingredients")
    if not ingredient_elems:
        return None

    ingredients = [
        build_ingredient(_prop_value(elem))
        for elem in ingredient_elems
        if _prop_value(elem)
    ]
    image_elems = _prop_elements(scope, "image")
    return RecipeDraft(
        title=_first_prop(scope, "name") or extract_page_title(soup),
        description=_first_prop(scope, "description") or extract_meta_description(soup),
        image_url=(_prop_value(image_elems[0]) if image_elems else None) or extract_og_image(soup),
        ingredients=ingredients,
        instructions=_microdata_instructions(scope),
        servings=parse_yield_count(_first_prop(scope, "recipeYield")),
        prep_time=parse_minutes(_first_prop(scope, "prepTime")),
        cook_time=parse_minutes(_first_prop(scope, "cookTime")),
        category=coerce_string_list([_prop_value(e) for e in _prop_elements(scope, "recipeCategory")]),
        cuisine=coerce_string_list([_prop_value(e) for e in _prop_elements(scope, "recipeCuisine")]),
        keywords=coerce_string_list([_prop_value(e) for e in _prop_elements(scope, "keywords")]),
        source_url=source_url,
    )


def _section_map(soup: BeautifulSoup) -> Dict[int, str]:
    """Map id(ingredient element) -> section heading text."""
    sections: Dict[int, str] = {}
    for heading in soup.select(".mm-recipes-structured-ingredients__list-heading"):
        text = clean_text(heading.get_text(" ", strip=True))
        sibling = heading.find_next_sibling("ul")
        if text and sibling is not None:
            for ing in sibling.select("[data-ingredient-name]"):
                sections[id(ing)] = text

    for heading in soup.find_all(["h2", "h3", "h4", "strong"]):
        text = clean_text(heading.get_text(" ", strip=True))
        if not text:
            continue
        sibling = heading.find_next_sibling()
        for _ in range(5):
            if sibling is None:
                break
            if sibling.has_attr("data-ingredient-name"):
                sections.setdefault(id(sibling), text)
            for ing in sibling.select("[data-ingredient-name]"):
                sections.setdefault(id(ing), text)
            sibling = sibling.find_next_sibling()
    return sections


def _data_attribute_ingredients(soup: BeautifulSoup) -> List[Ingredient]:
    sections = _section_map(soup)
    ingredients: List[Ingredient] = []
    for elem in soup.select("[data-ingredient-name]"):
        name = clean_text(elem.get_text(" ", strip=True))
        if not name:
            continue
        parent = elem if elem.name in {"li", "p", "div"} else (elem.find_parent(["li", "p", "div"]) or elem)
        quantity_elem = parent.select_one("[data-ingredient-quantity]")
        unit_elem = parent.select_one("[data-ingredient-unit]")
        quantity = clean_text(quantity_elem.get_text(" ", strip=True)) if quantity_elem else ""
        unit_text = clean_text(unit_elem.get_text(" ", strip=True)) if unit_elem else ""

        amount, amount_max = parse_amount_range(quantity) if quantity else (None, None)
        unit = resolve_unit_alias(unit_text)
        if unit_text and unit is None:
            name = clean_text(f"{unit_text} {name}")
        original = " ".join(p for p in (quantity, unit_text, clean_text(elem.get_text(" ", strip=True))) if p)
        ingredients.append(
            Ingredient(
                original_text=original,
                amount=amount,
                amount_max=amount_max,
                unit=unit,
                name=name,
                section=sections.get(id(elem)),
                parse_confidence=1.0 if amount is not None or unit is not None else None,
            )
        )
    return ingredients


def _extract_data_attributes(soup: BeautifulSoup, source_url: str) -> Optional[RecipeDraft]:
    if not soup.select_one("[data-ingredient-name], [data-ingredient-quantity]"):
        return None
    return RecipeDraft(
        title=extract_page_title(soup),
        description=extract_meta_description(soup),
        image_url=extract_og_image(soup),
        ingredients=_data_attribute_ingredients(soup),
        instructions=find_instruction_items(soup),
        source_url=source_url,
    )


def extract_recipe_from_data_attributes(html: str, source_url: str) -> Optional[RecipeDraft]:
    """Microdata (itemprop) first, then the data-ingredient-* attribute convention."""
    soup = make_soup(html)
    for label, extractor in (
        ("microdata", _extract_microdata),
        ("data-ingredient attributes", _extract_data_attributes),
    ):
        draft = extractor(soup, source_url)
        if draft is None:
            continue
        logger.info(
            "%s: title=%s, ingredients=%d, steps=%d",
            label,
            draft.title[:50] or "None",
            len(draft.ingredients),
            len(draft.instructions),
        )
        if is_valid_recipe(draft):
            return supplement_from_page(draft, soup)
    return None
