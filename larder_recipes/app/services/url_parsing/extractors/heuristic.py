"""Heuristic recipe extraction from HTML structure."""

import logging
import re
from typing import Iterable, List, Optional, Sequence

from bs4 import BeautifulSoup

from larder_recipes.app.services.url_parsing.constants import (
    HTML_MIN_INGREDIENTS,
    HTML_MIN_INSTRUCTIONS,
    INGREDIENT_HEADINGS,
    INSTRUCTION_HEADINGS,
)
from larder_recipes.app.services.url_parsing.extractors.common import (
    extract_meta_description,
    extract_og_image,
    extract_page_title,
    find_instruction_items,
    make_soup,
    supplement_from_page,
)
from larder_recipes.app.services.url_parsing.ingredient_parser import build_ingredient
from larder_recipes.app.services.url_parsing.models import RecipeDraft, is_valid_recipe
from larder_recipes.app.services.url_parsing.parsing_utils import (
    clean_list_item_text,
    parse_servings_from_text,
)

logger = logging.getLogger(__name__)

HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6", "strong", "b"]
_MAX_HEADING_LENGTH = 60


def clean_soup_for_content(soup: BeautifulSoup) -> None:
    """Remove obvious boilerplate nodes before extracting candidate content."""
    for noisy in soup.find_all(["header", "footer", "nav", "aside", "form"]):
        noisy.decompose()
    for tag in soup.find_all(["style", "noscript"]):
        tag.decompose()


def _headings(soup: BeautifulSoup) -> List:
    found = soup.find_all(HEADING_TAGS)
    found.extend(soup.find_all(class_=re.compile(r"title|header", re.I)))
    return found


def _matching_headings(soup: BeautifulSoup, vocabulary: Iterable[str]) -> List:
    matches = []
    for heading in _headings(soup):
        text = heading.get_text(" ", strip=True).lower()
        if not text or len(text) > _MAX_HEADING_LENGTH:
            continue
        if any(term in text for term in vocabulary):
            matches.append(heading)
    return matches


def _list_items(lst) -> List[str]:
    items = [clean_list_item_text(li.get_text(" ", strip=True)) for li in lst.find_all("li")]
    return [item for item in items if item]


def _paragraphs_after(heading) -> List[str]:
    texts: List[str] = []
    for sibling in heading.find_next_siblings():
        if sibling.name in HEADING_TAGS:
            break
        paragraphs = [sibling] if sibling.name == "p" else sibling.find_all("p")
        for p in paragraphs:
            text = clean_list_item_text(p.get_text(" ", strip=True))
            if text:
                texts.append(text)
    return texts


def _score_ingredient_lists(soup: BeautifulSoup) -> List[str]:
    """Last resort: the list that looks most like quantities and units."""
    best_items: List[str] = []
    best_score = -1
    for lst in soup.find_all(["ul", "ol"]):
        items = _list_items(lst)
        if len(items) < HTML_MIN_INGREDIENTS:
            continue
        matches = sum(
            1
            for item in items
            if re.search(
                r"\d|\b(cup|tsp|tbsp|tablespoon|teaspoon|ounce|oz|gram|kg|ml|l)\b",
                item,
                flags=re.I,
            )
        )
        if matches < max(HTML_MIN_INGREDIENTS, len(items) // 2):
            continue
        score = matches * 2 + len(items)
        if score > best_score:
            best_score = score
            best_items = items
    return best_items


def find_ingredient_lines(soup: BeautifulSoup) -> List[str]:
    for heading in _matching_headings(soup, INGREDIENT_HEADINGS):
        lst = heading.find_next(["ul", "ol"])
        if lst is not None:
            items = _list_items(lst)
            if len(items) >= HTML_MIN_INGREDIENTS:
                return items

    items = [
        clean_list_item_text(li.get_text(" ", strip=True))
        for li in soup.select('li[class*="ingredient"], .ingredient')
    ]
    items = [item for item in items if item]
    if len(items) >= HTML_MIN_INGREDIENTS:
        return items
    return _score_ingredient_lists(soup)


def find_instruction_lines(soup: BeautifulSoup, ingredient_lines: Sequence[str] = ()) -> List[str]:
    for heading in _matching_headings(soup, INSTRUCTION_HEADINGS):
        lst = heading.find_next(["ol", "ul"])
        if lst is not None:
            items = _list_items(lst)
            if len(items) >= HTML_MIN_INSTRUCTIONS and items != list(ingredient_lines):
                return items
        paragraphs = _paragraphs_after(heading)
        if len(paragraphs) >= HTML_MIN_INSTRUCTIONS:
            return paragraphs
    steps = find_instruction_items(soup)
    if steps:
        return steps

    # Fallback: the first ordered list that is not the ingredient list
    for ol in soup.find_all("ol"):
        items = _list_items(ol)
        if items and items != list(ingredient_lines):
            return items
    return []


def extract_recipe_heuristic(html: str, source_url: str) -> Optional[RecipeDraft]:
    """Extract a recipe from headings followed by lists; lowest precision strategy."""
    soup = make_soup(html)
    clean_soup_for_content(soup)

    ingredient_lines = find_ingredient_lines(soup)
    instructions = find_instruction_lines(soup, ingredient_lines)
    logger.info(
        "Heuristic scan found %d ingredient lines and %d steps",
        len(ingredient_lines),
        len(instructions),
    )
    if len(ingredient_lines) < HTML_MIN_INGREDIENTS or len(instructions) < HTML_MIN_INSTRUCTIONS:
        return None

    draft = RecipeDraft(
        title=extract_page_title(soup),
        description=extract_meta_description(soup),
        image_url=extract_og_image(soup),
        ingredients=[build_ingredient(line) for line in ingredient_lines],
        instructions=instructions,
        source_url=source_url,
    )
    if not is_valid_recipe(draft):
        return None
    draft = supplement_from_page(draft, soup)
    if draft.servings is None and soup.body is not None:
        draft.servings = parse_servings_from_text(soup.body.get_text(" ", strip=True))
    return draft
