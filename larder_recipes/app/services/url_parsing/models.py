"""Pydantic models for URL recipe parsing."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from larder_recipes.app.services.url_parsing.units import CanonicalUnit


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire and in stored records."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExtractionMethod(str, Enum):
    JSON_LD = "JSON_LD"
    WPRM = "WPRM"
    DATA_ATTRIBUTES = "DATA_ATTRIBUTES"
    HTML = "HTML"


class AiParsingStatus(str, Enum):
    DONE = "done"
    REQUIRED = "required"


class IngredientTriple(CamelModel):
    """An amount/unit/name triple: one normalizer result, or an ingredient's effective values."""

    amount: Optional[float] = None
    unit: Optional[CanonicalUnit] = None
    name: Optional[str] = None


class Ingredient(CamelModel):
    """One recipe line item with heuristic fields and optional normalized shadow fields."""

    original_text: str
    amount: Optional[float] = None
    amount_max: Optional[float] = None
    unit: Optional[CanonicalUnit] = None
    name: str = ""
    section: Optional[str] = None
    optional: bool = False
    parse_confidence: Optional[float] = None
    ai_amount: Optional[float] = None
    ai_unit: Optional[CanonicalUnit] = None
    ai_name: Optional[str] = None

    @model_validator(mode="after")
    def _drop_meaningless_max(self) -> "Ingredient":
        if self.amount_max is not None and (self.amount is None or self.amount_max <= self.amount):
            self.amount_max = None
        return self


def has_ai_fields(ingredient: Ingredient) -> bool:
    ai_name = (ingredient.ai_name or "").strip() or None
    return ingredient.ai_amount is not None or ingredient.ai_unit is not None or ai_name is not None


def effective_values(ingredient: Ingredient) -> IngredientTriple:
    """Pick the AI triple or the heuristic triple as a whole; never mix fields."""
    if has_ai_fields(ingredient):
        return IngredientTriple(
            amount=ingredient.ai_amount,
            unit=ingredient.ai_unit,
            name=(ingredient.ai_name or "").strip() or None,
        )
    return IngredientTriple(amount=ingredient.amount, unit=ingredient.unit, name=ingredient.name)


class RecipeDraft(CamelModel):
    """A recipe as produced by one extraction strategy."""

    title: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    ingredients: List[Ingredient] = Field(default_factory=list)
    instructions: List[str] = Field(default_factory=list)
    servings: Optional[int] = None
    prep_time: Optional[int] = None
    cook_time: Optional[int] = None
    category: List[str] = Field(default_factory=list)
    cuisine: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    source_url: Optional[str] = None


class Recipe(RecipeDraft):
    """A scraped recipe plus the bookkeeping the persistence layer stores with it."""

    id: Optional[str] = None
    extraction_method: Optional[ExtractionMethod] = None
    last_ai_parsing_version: Optional[int] = None
    ai_parsing_status: Optional[AiParsingStatus] = None


def is_valid_recipe(draft: Optional[RecipeDraft]) -> bool:
    if draft is None:
        return False
    return bool(draft.title.strip()) and len(draft.ingredients) >= 1 and len(draft.instructions) >= 1


class ParseResult(BaseModel):
    """Result of a fetch-and-scrape attempt."""

    success: bool
    recipe: Optional[Recipe] = None
    parser_strategy: Optional[ExtractionMethod] = None
    warnings: List[str] = Field(default_factory=list)
    error_code: Optional[str] = None
    error_message: Optional[str] = None


class FetchedPage(BaseModel):
    html: str
    final_url: str
