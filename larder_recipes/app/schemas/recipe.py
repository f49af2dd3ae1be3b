from typing import List, Optional

from pydantic import AnyHttpUrl, BaseModel, Field

from larder_recipes.app.services.url_parsing.models import (
    AiParsingStatus,
    CamelModel,
    ExtractionMethod,
    Ingredient,
    IngredientTriple,
    Recipe,
)

EXTRACTION_FAILED_MESSAGE = "could not extract a recipe from this page"
NORMALIZATION_UNAVAILABLE_MESSAGE = "ingredient normalization is temporarily unavailable"


class ScrapeRequest(BaseModel):
    url: AnyHttpUrl
    html: Optional[str] = None
    save: bool = True


class ScrapeResponse(BaseModel):
    success: bool
    recipe: Optional[Recipe] = None
    parser_strategy: Optional[ExtractionMethod] = None
    warnings: List[str] = Field(default_factory=list)
    error_code: Optional[str] = None
    error_message: Optional[str] = None


class AiParseResponse(BaseModel):
    updated: bool
    last_ai_parsing_version: Optional[int] = None
    ai_parsing_status: Optional[AiParsingStatus] = None
    ingredients: List[Ingredient] = Field(default_factory=list)
    error: Optional[str] = None


class ParseIngredientsRequest(CamelModel):
    ingredient_texts: List[str] = Field(default_factory=list)


class ParseIngredientsResponse(BaseModel):
    status: str
    ingredients: List[IngredientTriple] = Field(default_factory=list)


class LocalParseRequest(BaseModel):
    lines: List[str]


class LocalParseResponse(BaseModel):
    ingredients: List[Ingredient] = Field(default_factory=list)
