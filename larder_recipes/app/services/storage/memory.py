import logging
import threading
from typing import Callable, Dict, List, Optional, Tuple
from uuid import uuid4

from larder_recipes.app.core.errors import RecipeNotFound
from larder_recipes.app.services.storage.base import RecipeListener, RecipePredicate, RecipeStore
from larder_recipes.app.services.url_parsing import Recipe

logger = logging.getLogger(__name__)

# Partial updates may use either the wire (camelCase) or the Python field names
_FIELD_BY_KEY: Dict[str, str] = {}
for _name, _field in Recipe.model_fields.items():
    _FIELD_BY_KEY[_name] = _name
    if _field.alias:
        _FIELD_BY_KEY[_field.alias] = _name


class InMemoryRecipeStore(RecipeStore):
    """Dict-backed store with last-write-wins updates."""

    def __init__(self):
        self._recipes: Dict[str, Recipe] = {}
        self._subscribers: Dict[int, Tuple[RecipePredicate, RecipeListener]] = {}
        self._next_token = 0
        self._lock = threading.Lock()

    def _notify(self, event: str, recipe: Recipe) -> None:
        with self._lock:
            subscribers: List[Tuple[RecipePredicate, RecipeListener]] = list(self._subscribers.values())
        for predicate, callback in subscribers:
            if predicate(recipe):
                callback(event, recipe)

    def create_recipe(self, recipe: Recipe) -> Recipe:
        stored = recipe.model_copy(update={"id": recipe.id or uuid4().hex}, deep=True)
        with self._lock:
            self._recipes[stored.id] = stored
        logger.info("Created recipe %s (%s)", stored.id, stored.title[:50])
        self._notify("created", stored)
        return stored.model_copy(deep=True)

    def get_recipe(self, recipe_id: str) -> Optional[Recipe]:
        with self._lock:
            recipe = self._recipes.get(recipe_id)
        return recipe.model_copy(deep=True) if recipe else None

    def list_recipes(self) -> List[Recipe]:
        with self._lock:
            return [recipe.model_copy(deep=True) for recipe in self._recipes.values()]

    def update_recipe(self, recipe_id: str, partial: dict) -> Recipe:
        updates = {}
        for key, value in partial.items():
            field = _FIELD_BY_KEY.get(key)
            if field is None or field == "id":
                logger.debug("Ignoring unknown or immutable field %s in update", key)
                continue
            updates[field] = value
        with self._lock:
            current = self._recipes.get(recipe_id)
            if current is None:
                raise RecipeNotFound(recipe_id)
            updated = Recipe.model_validate({**current.model_dump(), **updates})
            self._recipes[recipe_id] = updated
        self._notify("updated", updated)
        return updated.model_copy(deep=True)

    def delete_recipe(self, recipe_id: str) -> None:
        with self._lock:
            recipe = self._recipes.pop(recipe_id, None)
        if recipe is None:
            raise RecipeNotFound(recipe_id)
        self._notify("deleted", recipe)

    def subscribe(self, predicate: RecipePredicate, callback: RecipeListener) -> Callable[[], None]:
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._subscribers[token] = (predicate, callback)

        def unsubscribe() -> None:
            with self._lock:
                self._subscribers.pop(token, None)

        return unsubscribe
