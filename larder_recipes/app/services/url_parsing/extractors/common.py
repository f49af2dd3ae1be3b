"""Helpers shared by the extraction strategies."""

import json
import logging
import re
from typing import Iterator, List, Optional

from bs4 import BeautifulSoup

from larder_recipes.app.core.errors import MalformedStructuredData
from larder_recipes.app.services.url_parsing.models import RecipeDraft
from larder_recipes.app.services.url_parsing.parsing_utils import (
    clean_list_item_text,
    clean_text,
    parse_duration_from_text,
    parse_minutes,
    parse_servings_from_text,
    parse_yield_count,
)

logger = logging.getLogger(__name__)

METADATA_SELECTORS = (
    '[class*="recipe-meta"]',
    '[class*="recipe-info"]',
    '[class*="recipe-details"]',
    ".recipe-yield",
    ".yield",
    ".servings",
    ".prep-time",
    ".cook-time",
)


def make_soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "lxml")


def _is_recipe_type(obj: dict) -> bool:
    obj_type = obj.get("@type")
    types = [obj_type] if isinstance(obj_type, str) else obj_type
    if not isinstance(types, list):
        return False
    return any(isinstance(t, str) and t.split("/")[-1].lower() == "recipe" for t in types)


def _load_block(index: int, script) -> Optional[object]:
    raw_json = script.string or script.get_text()
    if not raw_json or not raw_json.strip():
        return None
    try:
        return json.loads(raw_json)
    except json.JSONDecodeError as exc:
        raise MalformedStructuredData(index, str(exc)) from exc


def _walk_candidates(data) -> Iterator[dict]:
    if isinstance(data, list):
        for item in data:
            yield from _walk_candidates(item)
    elif isinstance(data, dict):
        yield data
        graph = data.get("@graph")
        if isinstance(graph, (list, dict)):
            yield from _walk_candidates(graph)
        main_entity = data.get("mainEntity")
        if isinstance(main_entity, dict):
            yield from _walk_candidates(main_entity)


def iter_json_ld_recipes(soup: BeautifulSoup) -> Iterator[dict]:
    """Yield every schema.org Recipe object found in the page's JSON-LD blocks.

    Blocks that fail to decode are logged and skipped.
    """
    scripts = soup.find_all("script", attrs={"type": re.compile(r"ld\+json", re.I)})
    logger.debug("Found %d JSON-LD script blocks", len(scripts))
    for idx, script in enumerate(scripts):
        try:
            data = _load_block(idx, script)
        except MalformedStructuredData as exc:
            logger.warning("Skipping JSON-LD block: %s", exc)
            continue
        for candidate in _walk_candidates(data):
            if _is_recipe_type(candidate):
                yield candidate


def extract_page_title(soup: BeautifulSoup) -> str:
    """Title from a recipe h1, any h1, og:title, then <title>."""
    heading = soup.select_one('h1[class*="recipe"]') or soup.find("h1")
    if heading:
        title = clean_text(heading.get_text(" ", strip=True))
        if title:
            return title
    og_title = soup.find("meta", attrs={"property": "og:title"})
    if og_title and og_title.get("content"):
        return clean_text(og_title["content"])
    if soup.title:
        return clean_text(soup.title.get_text())
    return ""


def extract_meta_description(soup: BeautifulSoup) -> Optional[str]:
    for attrs in ({"name": "description"}, {"property": "og:description"}):
        meta = soup.find("meta", attrs=attrs)
        if meta and meta.get("content"):
            return clean_text(meta["content"]) or None
    paragraph = soup.select_one('p[class*="description"]')
    if paragraph:
        return clean_text(paragraph.get_text(" ", strip=True)) or None
    return None


def extract_og_image(soup: BeautifulSoup) -> Optional[str]:
    meta = soup.find("meta", attrs={"property": "og:image"})
    if meta and meta.get("content"):
        return meta["content"].strip() or None
    img = soup.select_one('img[class*="recipe"]')
    return image_source(img)


def image_source(img) -> Optional[str]:
    """Image URL from an <img>, including lazy-loading attributes."""
    if img is None:
        return None
    for attr in ("src", "data-src", "data-lazy-src"):
        value = img.get(attr)
        if value and not value.startswith("data:"):
            return value.strip()
    return None


def extract_metadata_from_html(soup: BeautifulSoup) -> dict:
    """Scan common metadata blocks for servings and prep/cook times."""
    result = {"servings": None, "prep_time": None, "cook_time": None}
    for selector in METADATA_SELECTORS:
        for elem in soup.select(selector):
            text = elem.get_text(" ", strip=True)
            if result["servings"] is None:
                result["servings"] = parse_servings_from_text(text)
            if result["prep_time"] is None and re.search(r"prep", text, re.I):
                result["prep_time"] = parse_duration_from_text(text)
            if result["cook_time"] is None and re.search(r"cook", text, re.I):
                result["cook_time"] = parse_duration_from_text(text)

    if result["servings"] is None:
        yield_meta = soup.select_one('meta[name*="yield"], meta[property*="yield"]')
        if yield_meta and yield_meta.get("content"):
            result["servings"] = parse_servings_from_text(yield_meta["content"])
    return result


def supplement_from_json_ld(draft: RecipeDraft, soup: BeautifulSoup) -> RecipeDraft:
    """Fill missing servings and times from the first JSON-LD Recipe block."""
    if draft.servings is not None and draft.prep_time is not None and draft.cook_time is not None:
        return draft
    for obj in iter_json_ld_recipes(soup):
        if draft.servings is None:
            draft.servings = parse_yield_count(obj.get("recipeYield"))
        if draft.prep_time is None:
            draft.prep_time = parse_minutes(obj.get("prepTime"))
        if draft.cook_time is None:
            draft.cook_time = parse_minutes(obj.get("cookTime"))
        break
    return draft


def supplement_from_page(draft: RecipeDraft, soup: BeautifulSoup) -> RecipeDraft:
    """Fill missing servings and times from metadata blocks, then JSON-LD."""
    metadata = extract_metadata_from_html(soup)
    for field, value in metadata.items():
        if getattr(draft, field) is None and value is not None:
            setattr(draft, field, value)
    return supplement_from_json_ld(draft, soup)


INSTRUCTION_ITEM_SELECTORS = (
    'li[class*="instruction"], li[class*="direction"], li[class*="step"], '
    '.instruction, [itemprop="recipeInstructions"] li, ol[class*="instruction"] li, '
    'ol[class*="direction"] li, ol[class*="step"] li'
)
INSTRUCTION_FALLBACK_SELECTORS = (
    ".mntl-sc-block-group--OL li.mntl-sc-block-group--LI p.mntl-sc-block-html",
    '[class*="instruction"] p, [class*="direction"] p, [class*="step"] p',
)


def _unique_texts(elements) -> List[str]:
    seen = set()
    texts: List[str] = []
    for elem in elements:
        text = clean_list_item_text(elem.get_text(" ", strip=True))
        if text and text not in seen:
            seen.add(text)
            texts.append(text)
    return texts


def find_instruction_items(soup: BeautifulSoup) -> List[str]:
    """Instruction steps from class-name conventions, in document order."""
    steps = _unique_texts(soup.select(INSTRUCTION_ITEM_SELECTORS))
    for selector in INSTRUCTION_FALLBACK_SELECTORS:
        if steps:
            break
        steps = _unique_texts(soup.select(selector))
    return steps
