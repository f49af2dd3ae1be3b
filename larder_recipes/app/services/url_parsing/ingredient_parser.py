"""Deterministic ingredient-line parsing and ingredient list extraction."""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from larder_recipes.app.services.url_parsing.constants import (
    CONTAINER_WORDS,
    FRACTION_CHARS,
    FRACTION_MAP,
    IRREGULAR_SINGULARS,
    LEADING_CONNECTOR_WORDS,
    UNCOUNTABLE_NOUNS,
)
from larder_recipes.app.services.url_parsing.models import Ingredient
from larder_recipes.app.services.url_parsing.parsing_utils import (
    clean_list_item_text,
    clean_text,
)
from larder_recipes.app.services.url_parsing.units import (
    COUNT_UNITS,
    CanonicalUnit,
    resolve_unit_alias,
)

logger = logging.getLogger(__name__)

_NUMBER = r"(?:\d+\s+\d+/\d+|\d+-\d+/\d+|\d+/\d+|\d*\.\d+|\d+)"
_RANGE_SEP = r"(?:\s*-\s*|\s+(?:to|or)\s+)"
_AMOUNT_RE = re.compile(rf"^(?P<amount>{_NUMBER})(?:{_RANGE_SEP}(?P<max>{_NUMBER}))?", re.I)
_CONTAINER_RE = re.compile(
    rf"^\(\s*(?P<size>{_NUMBER})\s*-?\s*(?P<unit>[A-Za-z][A-Za-z\. ]*?)\s*\)\s*(?P<rest>.*)$"
)
_PAREN_RE = re.compile(r"\([^)]*\)")
_OPTIONAL_RE = re.compile(r"\(\s*optional\s*\)|,\s*optional\b", re.I)
_TO_TASTE_RE = re.compile(r"[,\s]*\bto taste\b[\s\.]*$", re.I)
_ARTICLES = {"a", "an"}

# Units accepted without a leading amount ("pinch of salt")
_AMOUNTLESS_UNITS = {
    CanonicalUnit.PINCH,
    CanonicalUnit.DASH,
    CanonicalUnit.HANDFUL,
    CanonicalUnit.BUNCH,
    CanonicalUnit.SPRIG,
}


@dataclass
class ParsedLine:
    amount: Optional[float] = None
    amount_max: Optional[float] = None
    unit: Optional[CanonicalUnit] = None
    name: str = ""
    confidence: float = 0.0
    optional: bool = False


def _normalize_fractions(text: str) -> str:
    """Rewrite unicode fractions as ASCII ("1½" -> "1 1/2") and dashes as hyphens."""
    text = re.sub(rf"(\d)([{FRACTION_CHARS}])", r"\1 \2", text)
    for char, ascii_value in FRACTION_MAP.items():
        text = text.replace(char, ascii_value)
    return text.replace("⁄", "/").replace("–", "-").replace("—", "-")


def parse_amount(text) -> Optional[float]:
    """Parse a single quantity ("2", "1.5", "1/2", "1 1/2", "1-1/2", "½") into a float."""
    if isinstance(text, bool):
        return None
    if isinstance(text, (int, float)):
        return float(text)
    if not isinstance(text, str):
        return None
    value = _normalize_fractions(text.strip())
    if not value:
        return None
    mixed = re.fullmatch(r"(\d+)(?:\s+|-)(\d+)/(\d+)", value)
    if mixed:
        whole, num, den = (int(g) for g in mixed.groups())
        return whole + num / den if den else None
    frac = re.fullmatch(r"(\d+)/(\d+)", value)
    if frac:
        num, den = int(frac.group(1)), int(frac.group(2))
        return num / den if den else None
    try:
        return float(value)
    except ValueError:
        return None


def parse_amount_range(text) -> Tuple[Optional[float], Optional[float]]:
    """Parse "1-2", "1 to 2" or a single amount into (amount, amount_max)."""
    if not isinstance(text, str):
        return parse_amount(text), None
    value = _normalize_fractions(clean_text(text))
    match = _AMOUNT_RE.match(value)
    if not match or match.end() != len(value):
        return parse_amount(value), None
    amount = parse_amount(match.group("amount"))
    amount_max = parse_amount(match.group("max")) if match.group("max") else None
    if amount is None or amount_max is None or amount_max <= amount:
        amount_max = None
    return amount, amount_max


def singularize(word: str) -> str:
    """Singularize an English noun with an irregular table and suffix rules."""
    lowered = word.lower()
    if lowered in UNCOUNTABLE_NOUNS:
        return word
    if lowered in IRREGULAR_SINGULARS:
        singular = IRREGULAR_SINGULARS[lowered]
        return singular.capitalize() if word[:1].isupper() else singular
    if len(lowered) <= 3 or lowered.endswith(("ss", "us", "is")):
        return word
    if lowered.endswith("ies"):
        return word[:-3] + "y"
    if lowered.endswith(("ches", "shes", "xes", "zes", "sses")):
        return word[:-2]
    if lowered.endswith("s"):
        return word[:-1]
    return word


def _singularize_head_noun(name: str) -> str:
    head, comma, tail = name.partition(",")
    words = head.split()
    if not words:
        return name
    words[-1] = singularize(words[-1])
    return " ".join(words) + (comma + tail if comma else "")


def _match_unit(rest: str) -> Tuple[Optional[CanonicalUnit], str]:
    """Match a unit at the start of ``rest``; two-word aliases are tried first."""
    words = rest.split()
    if len(words) >= 2:
        unit = resolve_unit_alias(" ".join(words[:2]))
        if unit is not None:
            return unit, " ".join(words[2:])
    if words:
        unit = resolve_unit_alias(words[0])
        if unit is not None:
            return unit, " ".join(words[1:])
    return None, rest


def _clean_name(text: str) -> str:
    cleaned = _PAREN_RE.sub(" ", text)
    cleaned = cleaned.replace("(", " ").replace(")", " ")
    cleaned = clean_text(cleaned).strip(" ,;")
    words = cleaned.split()
    while words and words[0].lower() in LEADING_CONNECTOR_WORDS:
        words.pop(0)
    return " ".join(words)


def _confidence(amount, unit, recognized: str, name: str) -> float:
    recognized_len = len(recognized.strip())
    name_len = len(name)
    ratio = recognized_len / (recognized_len + name_len) if recognized_len + name_len else 0.0
    score = (0.5 if amount is not None else 0.0) + (0.3 if unit is not None else 0.0) + 0.2 * ratio
    return round(min(max(score, 0.0), 1.0), 3)


def parse_ingredient_line(text) -> ParsedLine:
    """Split one free-text ingredient line into amount, unit and name.

    Never raises: anything not recognized ends up in ``name`` and the
    amount/unit stay None.
    """
    raw = clean_list_item_text(text) if isinstance(text, str) else ""
    if not raw:
        return ParsedLine()

    optional = bool(_OPTIONAL_RE.search(raw))
    working = _OPTIONAL_RE.sub("", raw).strip()
    working = _normalize_fractions(working)

    amount: Optional[float] = None
    amount_max: Optional[float] = None
    unit: Optional[CanonicalUnit] = None
    unit_word: Optional[str] = None

    match = _AMOUNT_RE.match(working)
    if match:
        amount = parse_amount(match.group("amount"))
        if match.group("max"):
            amount_max = parse_amount(match.group("max"))
        rest = working[match.end():].strip()
    else:
        rest = working

    container = _CONTAINER_RE.match(rest) if amount is not None else None
    container_unit = resolve_unit_alias(container.group("unit")) if container else None
    if container and container_unit is not None:
        size = parse_amount(container.group("size")) or 0.0
        amount = amount * size
        amount_max = amount_max * size if amount_max is not None else None
        unit = container_unit
        rest = container.group("rest")
        first, _, remainder = rest.partition(" ")
        if first.lower().rstrip(".") in CONTAINER_WORDS:
            rest = remainder
    elif amount is not None:
        words = rest.split()
        unit, rest = _match_unit(rest)
        if unit is not None and not rest:
            unit_word = " ".join(words)
    else:
        words = rest.split()
        if words and words[0].lower() in _ARTICLES:
            words = words[1:]
        candidate, remainder = _match_unit(" ".join(words))
        next_word = remainder.split()[0].lower() if remainder.split() else ""
        if candidate is not None and (candidate in _AMOUNTLESS_UNITS or next_word == "of"):
            unit, rest = candidate, remainder

    if _TO_TASTE_RE.search(rest):
        rest = _TO_TASTE_RE.sub("", rest)
        if unit is None:
            unit = CanonicalUnit.TO_TASTE

    if amount is None and unit is None:
        # Nothing recognized: the whole line is the name
        return ParsedLine(name=raw, confidence=0.0, optional=optional)

    name = _clean_name(rest)
    if not name and unit_word:
        # "4 cloves": the unit word was the ingredient itself
        unit, name = None, _clean_name(unit_word)
    if amount is not None and (unit is None or unit in COUNT_UNITS):
        name = _singularize_head_noun(name)

    if amount_max is not None and (amount is None or amount_max <= amount):
        amount_max = None

    recognized = working[: len(working) - len(rest)] if rest and working.endswith(rest) else working
    return ParsedLine(
        amount=amount,
        amount_max=amount_max,
        unit=unit,
        name=name,
        confidence=_confidence(amount, unit, recognized, name),
        optional=optional,
    )


def build_ingredient(text: str, section: Optional[str] = None) -> Ingredient:
    """Parse a raw line into an Ingredient, keeping the source text."""
    original = clean_text(text)
    parsed = parse_ingredient_line(original)
    return Ingredient(
        original_text=original,
        amount=parsed.amount,
        amount_max=parsed.amount_max,
        unit=parsed.unit,
        name=parsed.name,
        section=section,
        optional=parsed.optional,
        parse_confidence=parsed.confidence,
    )


def _ingredient_from_property_value(raw: dict, section: Optional[str]) -> Optional[Ingredient]:
    """Build an ingredient from a schema.org PropertyValue or a {text|name, amount, unit} dict."""
    text_val = clean_text(raw.get("text") or "")
    name_val = clean_text(raw.get("name") or "")
    quantity = raw.get("value", raw.get("amount", raw.get("quantity")))
    unit_token = raw.get("unitCode") or raw.get("unitText") or raw.get("unit")

    if quantity in (None, "") and not unit_token:
        line = text_val or name_val
        return build_ingredient(line, section) if line else None

    amount, amount_max = parse_amount_range(quantity)
    unit = resolve_unit_alias(unit_token) if isinstance(unit_token, str) else None
    name = name_val or text_val
    if unit is None and isinstance(unit_token, str) and unit_token.strip():
        name = clean_text(f"{unit_token} {name}")
    pieces = [str(quantity) if quantity not in (None, "") else "", unit_token or "", name]
    original = text_val or clean_text(" ".join(p for p in pieces if p))
    if not original:
        return None
    return Ingredient(
        original_text=original,
        amount=amount,
        amount_max=amount_max,
        unit=unit,
        name=_clean_name(name),
        section=section,
        parse_confidence=1.0 if amount is not None and unit is not None else None,
    )


def extract_ingredients(raw, section: Optional[str] = None) -> List[Ingredient]:
    """Extract ingredients from a recipeIngredient value (list of strings/dicts, or string)."""
    parsed: List[Ingredient] = []
    if isinstance(raw, str):
        raw = re.split(r"[\r\n]+", raw)
    if isinstance(raw, dict):
        raw = [raw]
    if not isinstance(raw, list):
        if raw is not None:
            logger.warning("Ingredients input is not a list or string: %s", type(raw).__name__)
        return parsed

    for idx, item in enumerate(raw):
        if isinstance(item, str):
            cleaned = clean_text(item)
            if not cleaned:
                logger.debug("Ingredient %d: string was empty after cleaning", idx)
                continue
            ingredient = build_ingredient(cleaned, section)
        elif isinstance(item, dict):
            ingredient = _ingredient_from_property_value(item, section)
            if ingredient is None:
                logger.debug("Ingredient %d: dict had no usable text", idx)
                continue
        else:
            logger.debug("Ingredient %d: unexpected type %s", idx, type(item).__name__)
            continue
        logger.debug(
            "Ingredient %d: '%s' -> amount=%s unit=%s name='%s'",
            idx,
            ingredient.original_text[:50],
            ingredient.amount,
            ingredient.unit,
            ingredient.name[:30],
        )
        parsed.append(ingredient)

    logger.info("Extracted %d ingredients from input", len(parsed))
    return parsed


def clean_parsed_ingredients(items: List[Ingredient]) -> List[Ingredient]:
    """Drop empty lines and parse any ingredient a strategy did not already split."""
    out: List[Ingredient] = []
    for ing in items:
        original = clean_text(ing.original_text)
        if not original:
            continue
        already_split = (
            ing.amount is not None or ing.unit is not None or ing.parse_confidence is not None
        )
        if already_split:
            out.append(ing)
            continue
        parsed = parse_ingredient_line(original)
        out.append(
            ing.model_copy(
                update={
                    "original_text": original,
                    "amount": parsed.amount,
                    "amount_max": parsed.amount_max,
                    "unit": parsed.unit,
                    "name": parsed.name,
                    "optional": ing.optional or parsed.optional,
                    "parse_confidence": parsed.confidence,
                }
            )
        )
    return out
