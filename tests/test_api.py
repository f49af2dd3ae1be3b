from larder_recipes.app.api.deps import get_normalizer, get_page_fetcher
from larder_recipes.app.core.errors import FetchError
from larder_recipes.app.schemas.recipe import (
    EXTRACTION_FAILED_MESSAGE,
    NORMALIZATION_UNAVAILABLE_MESSAGE,
)
from larder_recipes.app.services.url_parsing import FetchedPage, Recipe, build_ingredient

RECIPE_HTML = """
<html><head>
<script type="application/ld+json">
{
  "@context": "https://schema.org",
  "@type": "Recipe",
  "name": "Tomato Pasta",
  "recipeIngredient": ["8 oz spaghetti", "2 cups marinara sauce"],
  "recipeInstructions": [{"@type": "HowToStep", "text": "Boil pasta."}, {"@type": "HowToStep", "text": "Add sauce."}],
  "recipeYield": "4 servings",
  "totalTime": "PT25M"
}
</script>
</head><body></body></html>
"""


def _stored_recipe(store, last_version=None):
    return store.create_recipe(
        Recipe(
            title="Rice Bowl",
            ingredients=[build_ingredient("1 cup rice"), build_ingredient("2 eggs")],
            instructions=["Cook rice."],
            last_ai_parsing_version=last_version,
        )
    )


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_ai_health(client):
    assert client.get("/ai-health").json() == {"status": "ok"}


def test_ai_health_reports_failure(app, client, make_normalizer):
    app.dependency_overrides[get_normalizer] = lambda: make_normalizer(fail=True)
    response = client.get("/ai-health")
    assert response.status_code == 503
    assert response.json()["status"] == "error"


def test_scrape_with_html_saves_recipe(client, store):
    response = client.post(
        "/recipes/scrape",
        json={"url": "https://example.com/pasta", "html": RECIPE_HTML},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["parser_strategy"] == "JSON_LD"
    recipe = body["recipe"]
    assert recipe["title"] == "Tomato Pasta"
    assert recipe["extractionMethod"] == "JSON_LD"
    assert recipe["servings"] == 4
    assert recipe["ingredients"][0]["unit"] == "WEIGHT_OUNCE"
    assert store.get_recipe(recipe["id"]) is not None


def test_scrape_preview_does_not_save(client, store):
    response = client.post(
        "/recipes/scrape",
        json={"url": "https://example.com/pasta", "html": RECIPE_HTML, "save": False},
    )
    body = response.json()
    assert body["success"] is True
    assert body["recipe"]["id"] is None
    assert store.list_recipes() == []


def test_scrape_reports_extraction_failure(client):
    response = client.post(
        "/recipes/scrape",
        json={"url": "https://example.com/blog", "html": "<html><body><p>Just a story.</p></body></html>"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["error_code"] == "parse_failed"
    assert body["error_message"] == EXTRACTION_FAILED_MESSAGE


def test_scrape_fetches_when_no_html(app, client):
    async def fake_fetch(url: str) -> FetchedPage:
        return FetchedPage(html=RECIPE_HTML, final_url="https://example.com/pasta-final")

    app.dependency_overrides[get_page_fetcher] = lambda: fake_fetch
    body = client.post("/recipes/scrape", json={"url": "https://example.com/pasta"}).json()
    assert body["success"] is True
    assert body["recipe"]["sourceUrl"] == "https://example.com/pasta-final"


def test_scrape_reports_blocked_fetch(app, client):
    async def fake_fetch(url: str) -> FetchedPage:
        raise FetchError(url, "Site returned status 403.", status_code=403)

    app.dependency_overrides[get_page_fetcher] = lambda: fake_fetch
    body = client.post("/recipes/scrape", json={"url": "https://example.com/pasta"}).json()
    assert body["success"] is False
    assert body["error_code"] == "fetch_failed"
    assert body["warnings"] == ["blocked_by_site"]


def test_scrape_rejects_invalid_payload(client):
    response = client.post("/recipes/scrape", json={"url": "not a url"})
    assert response.status_code == 422
    body = response.json()
    assert body["error_code"] == "validation_error"
    assert any(detail["field"] == "body.url" for detail in body["details"])


def test_get_recipe(client, store):
    saved = _stored_recipe(store)
    response = client.get(f"/recipes/{saved.id}")
    assert response.status_code == 200
    assert response.json()["title"] == "Rice Bowl"
    assert client.get("/recipes/missing").status_code == 404


def test_ai_parse_updates_recipe(client, store, normalizer):
    saved = _stored_recipe(store)
    response = client.post(f"/recipes/{saved.id}/ai-parse")
    assert response.status_code == 200
    body = response.json()
    assert body["updated"] is True
    assert body["ai_parsing_status"] == "done"
    assert body["error"] is None
    assert body["ingredients"][1]["aiName"] == "ai 2 eggs"
    assert normalizer.calls == [["1 cup rice", "2 eggs"]]
    assert store.get_recipe(saved.id).last_ai_parsing_version is not None


def test_ai_parse_failure_keeps_recipe(app, client, store, make_normalizer):
    app.dependency_overrides[get_normalizer] = lambda: make_normalizer(fail=True)
    saved = _stored_recipe(store)
    response = client.post(f"/recipes/{saved.id}/ai-parse")
    assert response.status_code == 200
    body = response.json()
    assert body["updated"] is False
    assert body["error"] == NORMALIZATION_UNAVAILABLE_MESSAGE
    assert store.get_recipe(saved.id).ingredients[0].ai_name is None


def test_ai_parse_unknown_recipe(client):
    assert client.post("/recipes/missing/ai-parse").status_code == 404


def test_parse_ingredients(client):
    response = client.post("/ingredients/parse", json={"ingredientTexts": ["1 cup rice", "2 eggs"]})
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["ingredients"][0] == {"amount": 1.0, "unit": "EACH", "name": "ai 1 cup rice"}


def test_parse_ingredients_unavailable(app, client, make_normalizer):
    app.dependency_overrides[get_normalizer] = lambda: make_normalizer(fail=True)
    response = client.post("/ingredients/parse", json={"ingredientTexts": ["1 cup rice"]})
    assert response.status_code == 503
    assert response.json() == {"status": "error", "error": NORMALIZATION_UNAVAILABLE_MESSAGE}


def test_parse_ingredients_locally(client):
    response = client.post("/ingredients/parse-local", json={"lines": ["2 cups flour", "", "a pinch of salt"]})
    assert response.status_code == 200
    ingredients = response.json()["ingredients"]
    assert [i["name"] for i in ingredients] == ["flour", "salt"]
    assert ingredients[1]["unit"] == "PINCH"
    assert ingredients[0]["originalText"] == "2 cups flour"
