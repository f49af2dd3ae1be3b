"""Versioned reconciliation of heuristic ingredients with normalizer results.

A recipe is up to date when its ``last_ai_parsing_version`` is at least the
current version and every ingredient carries AI fields. A stale version
re-normalizes every ingredient; otherwise only ingredients without AI fields
are sent. One batched normalizer call per reconcile; any failure discards the
whole batch.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

import httpx
from pydantic import BaseModel, Field

from larder_recipes.app.core.config import get_settings
from larder_recipes.app.core.errors import NormalizationFailed, RecipeNotFound
from larder_recipes.app.services.llm_client import (
    IngredientNormalizer,
    coerce_triple,
    get_ingredient_system_instruction,
)
from larder_recipes.app.services.storage.base import RecipeStore
from larder_recipes.app.services.url_parsing import (
    AI_PARSING_VERSION,
    AiParsingStatus,
    Ingredient,
    IngredientTriple,
    Recipe,
    has_ai_fields,
)

logger = logging.getLogger(__name__)


class AiParsingPlan(BaseModel):
    indices_to_parse: List[int] = Field(default_factory=list)
    should_reparse_all: bool = False
    ai_parsing_status: AiParsingStatus = AiParsingStatus.DONE


class ReconcileResult(BaseModel):
    ingredients: List[Ingredient]
    updated: bool = False
    last_ai_parsing_version: Optional[int] = None
    ai_parsing_status: Optional[AiParsingStatus] = None
    error: Optional[str] = None


class BatchTarget(BaseModel):
    recipe_index: int
    recipe_id: Optional[str] = None
    ingredient_index: int
    text: str


def resolve_parsing_version(current_version: Optional[int] = None) -> int:
    if current_version is not None:
        return current_version
    return get_settings().ai_parsing_version or AI_PARSING_VERSION


def get_ingredient_text(ingredient: Ingredient) -> str:
    return (ingredient.original_text or "").strip() or (ingredient.name or "").strip()


def has_missing_ai_fields(ingredient: Ingredient) -> bool:
    return not has_ai_fields(ingredient)


def compute_ai_parsing_status(ingredients: Iterable[Ingredient]) -> AiParsingStatus:
    if any(has_missing_ai_fields(ing) for ing in ingredients):
        return AiParsingStatus.REQUIRED
    return AiParsingStatus.DONE


def _is_stale(last_version: Optional[int], current_version: int) -> bool:
    return last_version is None or last_version < current_version


def analyze_recipe(recipe: Recipe, current_version: Optional[int] = None) -> AiParsingPlan:
    """Decide which ingredient indices need normalization."""
    version = resolve_parsing_version(current_version)
    reparse_all = _is_stale(recipe.last_ai_parsing_version, version)
    if reparse_all:
        indices = list(range(len(recipe.ingredients)))
    else:
        indices = [i for i, ing in enumerate(recipe.ingredients) if has_missing_ai_fields(ing)]
    return AiParsingPlan(
        indices_to_parse=indices,
        should_reparse_all=reparse_all,
        ai_parsing_status=AiParsingStatus.REQUIRED if indices else AiParsingStatus.DONE,
    )


def _unchanged(recipe: Recipe, plan: AiParsingPlan, error: Optional[str] = None) -> ReconcileResult:
    return ReconcileResult(
        ingredients=list(recipe.ingredients),
        updated=False,
        last_ai_parsing_version=recipe.last_ai_parsing_version,
        ai_parsing_status=recipe.ai_parsing_status or plan.ai_parsing_status,
        error=error,
    )


def merge_normalized(
    ingredients: Sequence[Ingredient], results: Dict[int, IngredientTriple]
) -> List[Ingredient]:
    """Overwrite only the ai_* fields of the given indices."""
    merged = list(ingredients)
    for index, triple in results.items():
        merged[index] = merged[index].model_copy(
            update={"ai_amount": triple.amount, "ai_unit": triple.unit, "ai_name": triple.name}
        )
    return merged


def _finish(
    recipe: Recipe,
    plan: AiParsingPlan,
    results: Dict[int, IngredientTriple],
    version: int,
) -> ReconcileResult:
    if not results and not plan.should_reparse_all:
        # Only blank lines were pending; nothing to send and nothing to stamp
        return _unchanged(recipe, plan)
    merged = merge_normalized(recipe.ingredients, results)
    return ReconcileResult(
        ingredients=merged,
        updated=True,
        last_ai_parsing_version=version,
        ai_parsing_status=compute_ai_parsing_status(merged),
    )


async def _normalize_batch(normalizer: IngredientNormalizer, lines: List[str]) -> List[IngredientTriple]:
    results = await normalizer.normalize(lines, get_ingredient_system_instruction())
    if not isinstance(results, list):
        raise NormalizationFailed(f"expected a list of {len(lines)} results, got {type(results).__name__}")
    if len(results) != len(lines):
        raise NormalizationFailed(f"expected {len(lines)} results, got {len(results)}")
    return [coerce_triple(result) for result in results]


async def reconcile_ingredients(
    recipe: Recipe,
    normalizer: IngredientNormalizer,
    current_version: Optional[int] = None,
) -> ReconcileResult:
    """Bring one recipe's AI fields up to date with a single batched call."""
    version = resolve_parsing_version(current_version)
    plan = analyze_recipe(recipe, version)
    if not plan.indices_to_parse:
        return _unchanged(recipe, plan)

    indices: List[int] = []
    lines: List[str] = []
    for index in plan.indices_to_parse:
        text = get_ingredient_text(recipe.ingredients[index])
        if text:
            indices.append(index)
            lines.append(text)

    results: Dict[int, IngredientTriple] = {}
    if lines:
        try:
            triples = await _normalize_batch(normalizer, lines)
        except (NormalizationFailed, httpx.HTTPError) as exc:
            logger.warning("Ingredient normalization failed for recipe %s: %s", recipe.id, exc)
            return _unchanged(recipe, plan, error=str(exc))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Ingredient normalizer crashed for recipe %s", recipe.id)
            return _unchanged(recipe, plan, error=str(exc) or type(exc).__name__)
        results = dict(zip(indices, triples))

    logger.info(
        "Reconciled recipe %s: %d of %d ingredients normalized (full=%s)",
        recipe.id,
        len(results),
        len(recipe.ingredients),
        plan.should_reparse_all,
    )
    return _finish(recipe, plan, results, version)


def build_recipe_update(result: ReconcileResult) -> dict:
    """Partial update for the store, in the camelCase wire shape."""
    return {
        "ingredients": [ing.model_dump(by_alias=True, mode="json") for ing in result.ingredients],
        "lastAiParsingVersion": result.last_ai_parsing_version,
        "aiParsingStatus": result.ai_parsing_status.value if result.ai_parsing_status else None,
    }


def collect_batch_parsing_targets(
    recipes: Iterable[Recipe], current_version: Optional[int] = None
) -> List[BatchTarget]:
    """Every (recipe position, ingredient index, text) needing normalization, blank lines skipped."""
    version = resolve_parsing_version(current_version)
    targets: List[BatchTarget] = []
    for position, recipe in enumerate(recipes):
        plan = analyze_recipe(recipe, version)
        for index in plan.indices_to_parse:
            text = get_ingredient_text(recipe.ingredients[index])
            if text:
                targets.append(
                    BatchTarget(recipe_index=position, recipe_id=recipe.id, ingredient_index=index, text=text)
                )
    return targets


async def reconcile_recipes(
    recipes: Sequence[Recipe],
    normalizer: IngredientNormalizer,
    current_version: Optional[int] = None,
) -> List[ReconcileResult]:
    """Reconcile many recipes with one batched normalizer call.

    Results line up with ``recipes`` by position, so recipes without an id or
    sharing one never receive each other's triples. A failure discards the
    batch for every recipe.
    """
    version = resolve_parsing_version(current_version)
    targets = collect_batch_parsing_targets(recipes, version)

    triples: List[IngredientTriple] = []
    if targets:
        error: Optional[str] = None
        try:
            triples = await _normalize_batch(normalizer, [t.text for t in targets])
        except (NormalizationFailed, httpx.HTTPError) as exc:
            logger.warning("Batch normalization of %d lines failed: %s", len(targets), exc)
            error = str(exc)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Ingredient normalizer crashed on a batch of %d lines", len(targets))
            error = str(exc) or type(exc).__name__
        if error is not None:
            return [_unchanged(recipe, analyze_recipe(recipe, version), error=error) for recipe in recipes]

    per_recipe: Dict[int, Dict[int, IngredientTriple]] = {}
    for target, triple in zip(targets, triples):
        per_recipe.setdefault(target.recipe_index, {})[target.ingredient_index] = triple

    out: List[ReconcileResult] = []
    for position, recipe in enumerate(recipes):
        plan = analyze_recipe(recipe, version)
        if not plan.indices_to_parse:
            out.append(_unchanged(recipe, plan))
            continue
        out.append(_finish(recipe, plan, per_recipe.get(position, {}), version))
    return out


async def reconcile_and_persist(
    store: RecipeStore,
    recipe_id: str,
    normalizer: IngredientNormalizer,
    current_version: Optional[int] = None,
) -> ReconcileResult:
    """Read, reconcile and write back only when something changed."""
    recipe = store.get_recipe(recipe_id)
    if recipe is None:
        raise RecipeNotFound(recipe_id)
    result = await reconcile_ingredients(recipe, normalizer, current_version)
    if result.updated:
        store.update_recipe(recipe_id, build_recipe_update(result))
    return result
