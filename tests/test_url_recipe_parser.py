import pytest

from larder_recipes.app.core.errors import ExtractionFailed, FetchError
from larder_recipes.app.services import url_recipe_parser
from larder_recipes.app.services.url_parsing import CanonicalUnit, ExtractionMethod, FetchedPage
from larder_recipes.app.services.url_parsing.extractors import extract_recipe_heuristic

JSON_LD_BLOCK = """
<script type="application/ld+json">
{
  "@context": "https://schema.org",
  "@type": "Recipe",
  "name": "Structured Oats",
  "recipeIngredient": ["1 cup oats", "2 cups milk"],
  "recipeInstructions": ["Simmer", "Serve"],
  "recipeYield": "2"
}
</script>
"""

WPRM_BLOCK = """
<div class="wprm-recipe">
  <h2 class="wprm-recipe-name">Plugin Oats</h2>
  <ul>
    <li class="wprm-recipe-ingredient">
      <span class="wprm-recipe-ingredient-amount">1</span>
      <span class="wprm-recipe-ingredient-unit">cup</span>
      <span class="wprm-recipe-ingredient-name">oats</span>
    </li>
  </ul>
  <div class="wprm-recipe-instruction-text">Simmer gently.</div>
</div>
"""

HEURISTIC_PAGE = """
<html><body>
  <h1>Plain Rice</h1>
  <h2>Ingredients</h2>
  <ul><li>1 cup rice</li><li>2 cups water</li></ul>
  <h2>Instructions</h2>
  <ol><li>Boil the water.</li><li>Add rice and cover.</li></ol>
</body></html>
"""


def test_json_ld_wins_over_wprm():
    html = f"<html><head>{JSON_LD_BLOCK}</head><body>{WPRM_BLOCK}</body></html>"
    recipe = url_recipe_parser.scrape_recipe(html, "https://example.com/oats")
    assert recipe.extraction_method == ExtractionMethod.JSON_LD
    assert recipe.title == "Structured Oats"
    assert recipe.source_url == "https://example.com/oats"


def test_wprm_used_when_json_ld_is_incomplete():
    json_ld = """
    <script type="application/ld+json">
    {"@type": "Recipe", "name": "Plugin Oats", "cookTime": "PT20M"}
    </script>
    """
    html = f"<html><head>{json_ld}</head><body>{WPRM_BLOCK}</body></html>"
    recipe = url_recipe_parser.scrape_recipe(html, "https://example.com/oats")
    assert recipe.extraction_method == ExtractionMethod.WPRM
    assert recipe.cook_time == 20
    assert recipe.ingredients[0].name == "oats"


def test_data_attributes_win_over_heuristic():
    html = """
    <html><body>
      <h1>Attr Soup</h1>
      <h2>Ingredients</h2>
      <ul>
        <li>
          <span data-ingredient-quantity="true">2</span>
          <span data-ingredient-unit="true">cups</span>
          <span data-ingredient-name="true">broth</span>
        </li>
        <li><span data-ingredient-name="true">3 cloves garlic</span></li>
      </ul>
      <h2>Instructions</h2>
      <ol class="instructions"><li class="instruction">Simmer the broth.</li></ol>
    </body></html>
    """
    recipe = url_recipe_parser.scrape_recipe(html, "https://example.com/soup")
    assert recipe.extraction_method == ExtractionMethod.DATA_ATTRIBUTES
    broth, garlic = recipe.ingredients
    assert broth.amount == 2.0
    assert broth.unit == CanonicalUnit.CUP
    assert (garlic.amount, garlic.unit, garlic.name) == (3.0, CanonicalUnit.CLOVE, "garlic")


def test_unsplit_wprm_lines_are_parsed():
    html = """
    <html><body>
    <div class="wprm-recipe">
      <h2 class="wprm-recipe-name">Plain Dough</h2>
      <ul>
        <li class="wprm-recipe-ingredient">
          <span class="wprm-recipe-ingredient-name">2 cups flour</span>
        </li>
      </ul>
      <div class="wprm-recipe-instruction-text">Knead.</div>
    </div>
    </body></html>
    """
    recipe = url_recipe_parser.scrape_recipe(html, "https://example.com/dough")
    assert recipe.extraction_method == ExtractionMethod.WPRM
    flour = recipe.ingredients[0]
    assert flour.original_text == "2 cups flour"
    assert (flour.amount, flour.unit, flour.name) == (2.0, CanonicalUnit.CUP, "flour")


def test_heuristic_is_last_resort():
    recipe = url_recipe_parser.scrape_recipe(HEURISTIC_PAGE, "https://example.com/rice")
    assert recipe.extraction_method == ExtractionMethod.HTML
    assert recipe.instructions == ["Boil the water.", "Add rice and cover."]
    assert [i.name for i in recipe.ingredients] == ["rice", "water"]


def test_scrape_recipe_raises_when_nothing_matches():
    with pytest.raises(ExtractionFailed):
        url_recipe_parser.scrape_recipe("<html><body><p>Nothing here</p></body></html>", "https://example.com")


def test_crashing_strategy_is_skipped(monkeypatch):
    def boom(html, source_url):
        raise RuntimeError("bad markup")

    monkeypatch.setattr(
        url_recipe_parser,
        "STRATEGIES",
        ((ExtractionMethod.JSON_LD, boom), (ExtractionMethod.HTML, extract_recipe_heuristic)),
    )
    recipe = url_recipe_parser.scrape_recipe(HEURISTIC_PAGE, "https://example.com/rice")
    assert recipe.extraction_method == ExtractionMethod.HTML


@pytest.mark.asyncio
async def test_parse_recipe_from_url_uses_final_url():
    async def fake_fetch(url: str) -> FetchedPage:
        return FetchedPage(html=HEURISTIC_PAGE, final_url="https://example.com/rice-final")

    result = await url_recipe_parser.parse_recipe_from_url("https://example.com/rice", fetcher=fake_fetch)
    assert result.success is True
    assert result.parser_strategy == ExtractionMethod.HTML
    assert result.recipe.source_url == "https://example.com/rice-final"


@pytest.mark.asyncio
async def test_parse_recipe_from_url_reports_blocked_fetch():
    async def fake_fetch(url: str) -> FetchedPage:
        raise FetchError(url, "Site returned status 403.", status_code=403)

    result = await url_recipe_parser.parse_recipe_from_url("https://example.com/rice", fetcher=fake_fetch)
    assert result.success is False
    assert result.error_code == "fetch_failed"
    assert result.warnings == ["blocked_by_site"]


@pytest.mark.asyncio
async def test_parse_recipe_from_url_reports_parse_failure():
    async def fake_fetch(url: str) -> FetchedPage:
        return FetchedPage(html="<html><body>empty</body></html>", final_url=url)

    result = await url_recipe_parser.parse_recipe_from_url("https://example.com/empty", fetcher=fake_fetch)
    assert result.success is False
    assert result.error_code == "parse_failed"
    assert result.recipe is None
