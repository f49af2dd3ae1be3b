"""Recipe extractors for the different markup conventions."""

from larder_recipes.app.services.url_parsing.extractors.data_attributes import (
    extract_recipe_from_data_attributes,
)
from larder_recipes.app.services.url_parsing.extractors.heuristic import (
    extract_recipe_heuristic,
)
from larder_recipes.app.services.url_parsing.extractors.json_ld import (
    extract_recipe_from_json_ld,
)
from larder_recipes.app.services.url_parsing.extractors.wprm import extract_recipe_from_wprm

__all__ = [
    "extract_recipe_from_data_attributes",
    "extract_recipe_from_json_ld",
    "extract_recipe_from_wprm",
    "extract_recipe_heuristic",
]
