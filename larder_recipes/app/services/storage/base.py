from abc import ABC, abstractmethod
from typing import Callable, Optional

from larder_recipes.app.services.url_parsing import Recipe

RecipePredicate = Callable[[Recipe], bool]
RecipeListener = Callable[[str, Recipe], None]


class RecipeStore(ABC):
    @abstractmethod
    def create_recipe(self, recipe: Recipe) -> Recipe:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def get_recipe(self, recipe_id: str) -> Optional[Recipe]:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def update_recipe(self, recipe_id: str, partial: dict) -> Recipe:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def delete_recipe(self, recipe_id: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def subscribe(
        self, predicate: RecipePredicate, callback: RecipeListener
    ) -> Callable[[], None]:  # pragma: no cover - interface
        """Call ``callback(event, recipe)`` for matching recipes; returns an unsubscribe function."""
        raise NotImplementedError
