from typing import List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient

from larder_recipes.app.api.deps import get_normalizer, get_page_fetcher, get_recipe_store
from larder_recipes.app.core.errors import NormalizationFailed
from larder_recipes.app.main import create_app
from larder_recipes.app.services.storage.memory import InMemoryRecipeStore
from larder_recipes.app.services.url_parsing import IngredientTriple


class FakeNormalizer:
    """Records every batch; answers from ``responses`` or fails."""

    def __init__(self, responses: Optional[List[List[IngredientTriple]]] = None, fail: bool = False):
        self.responses = list(responses or [])
        self.fail = fail
        self.calls: List[List[str]] = []

    async def normalize(self, lines: Sequence[str], system_instruction: str) -> List[IngredientTriple]:
        self.calls.append(list(lines))
        if self.fail:
            raise NormalizationFailed("proxy unavailable")
        if self.responses:
            return self.responses.pop(0)
        return [IngredientTriple(amount=1.0, unit="EACH", name=f"ai {line}") for line in lines]


@pytest.fixture
def store():
    return InMemoryRecipeStore()


@pytest.fixture
def make_normalizer():
    return FakeNormalizer


@pytest.fixture
def normalizer():
    return FakeNormalizer()


@pytest.fixture
def app(store, normalizer):
    app = create_app()

    async def fake_fetcher(url: str):
        raise AssertionError(f"unexpected fetch of {url}")

    app.dependency_overrides[get_recipe_store] = lambda: store
    app.dependency_overrides[get_normalizer] = lambda: normalizer
    app.dependency_overrides[get_page_fetcher] = lambda: fake_fetcher
    return app


@pytest.fixture
def client(app):
    return TestClient(app)
