from larder_recipes.app.services.url_parsing import CanonicalUnit
from larder_recipes.app.services.url_parsing.extractors import (
    extract_recipe_from_data_attributes,
    extract_recipe_from_json_ld,
    extract_recipe_from_wprm,
    extract_recipe_heuristic,
)
from larder_recipes.app.services.url_parsing.extractors.json_ld import extract_instruction_text


def test_extract_recipe_from_json_ld_graph_with_sections():
    html = """
    <html>
      <head>
        <script type="application/ld+json">{ not valid json</script>
        <script type="application/ld+json">
        {
          "@context": "https://schema.org",
          "@graph": [
            {"@type": "WebPage", "name": "Page wrapper"},
            {
              "@type": ["Recipe"],
              "name": "Graph Chili",
              "image": [{"url": "https://example.com/chili.jpg"}],
              "recipeIngredient": ["1 lb ground beef", "2 (15 oz) cans kidney beans"],
              "recipeInstructions": [
                {
                  "@type": "HowToSection",
                  "name": "Cook",
                  "itemListElement": [
                    {"@type": "HowToStep", "text": "Brown the beef."},
                    {"@type": "HowToStep", "text": "Add beans."}
                  ]
                }
              ],
              "recipeYield": ["6", "6 bowls"],
              "prepTime": "PT10M",
              "cookTime": "PT1H",
              "recipeCuisine": "Tex-Mex",
              "keywords": "chili, beans"
            }
          ]
        }
        </script>
      </head>
    </html>
    """
    draft = extract_recipe_from_json_ld(html, "https://example.com/chili")
    assert draft is not None
    assert draft.title == "Graph Chili"
    assert draft.image_url == "https://example.com/chili.jpg"
    assert draft.instructions == ["Brown the beef.", "Add beans."]
    assert draft.servings == 6
    assert draft.prep_time == 10
    assert draft.cook_time == 60
    assert draft.cuisine == ["Tex-Mex"]
    assert draft.keywords == ["chili", "beans"]
    beef, beans = draft.ingredients
    assert beef.unit == CanonicalUnit.POUND
    assert beef.name == "ground beef"
    assert beans.amount == 30.0
    assert beans.unit == CanonicalUnit.WEIGHT_OUNCE
    assert beans.name == "kidney beans"


def test_extract_recipe_from_json_ld_without_recipe():
    html = '<script type="application/ld+json">{"@type": "Article", "name": "News"}</script>'
    assert extract_recipe_from_json_ld(html, "https://example.com/news") is None


def test_extract_instruction_text_splits_strings():
    assert extract_instruction_text("Mix.<br>Bake.\nServe.") == ["Mix.", "Bake.", "Serve."]
    assert extract_instruction_text([{"name": "Rest"}, "1. Slice"]) == ["Rest", "Slice"]
    assert extract_instruction_text(None) == []


def test_extract_recipe_from_wprm_groups():
    html = """
    <html><body>
    <div class="wprm-recipe-container"><div class="wprm-recipe">
      <h2 class="wprm-recipe-name">WPRM Pancakes</h2>
      <div class="wprm-recipe-ingredient-group">
        <h3 class="wprm-recipe-ingredient-group-name">Batter</h3>
        <ul>
          <li class="wprm-recipe-ingredient">
            <span class="wprm-recipe-ingredient-amount">1 ½</span>
            <span class="wprm-recipe-ingredient-unit">cups</span>
            <span class="wprm-recipe-ingredient-name">flour</span>
          </li>
          <li class="wprm-recipe-ingredient">
            <span class="wprm-recipe-ingredient-amount">2</span>
            <span class="wprm-recipe-ingredient-unit">large</span>
            <span class="wprm-recipe-ingredient-name">eggs</span>
          </li>
        </ul>
      </div>
      <div class="wprm-recipe-ingredient-group">
        <h3 class="wprm-recipe-ingredient-group-name">Topping</h3>
        <ul>
          <li class="wprm-recipe-ingredient">
            <span class="wprm-recipe-ingredient-name">maple syrup</span>
            <span class="wprm-recipe-ingredient-notes">optional</span>
          </li>
        </ul>
      </div>
      <ul>
        <li><div class="wprm-recipe-instruction-text">Whisk everything.</div></li>
        <li><div class="wprm-recipe-instruction-text">Cook on a griddle.</div></li>
      </ul>
      <span class="wprm-recipe-servings">4</span>
      <span class="wprm-recipe-prep_time-minutes">10</span>
    </div></div>
    </body></html>
    """
    draft = extract_recipe_from_wprm(html, "https://example.com/pancakes")
    assert draft is not None
    assert draft.title == "WPRM Pancakes"
    assert draft.instructions == ["Whisk everything.", "Cook on a griddle."]
    assert draft.servings == 4
    assert draft.prep_time == 10

    flour, eggs, syrup = draft.ingredients
    assert flour.amount == 1.5
    assert flour.unit == CanonicalUnit.CUP
    assert flour.section == "Batter"
    assert eggs.unit is None
    assert eggs.name == "large eggs"
    assert syrup.section == "Topping"
    assert syrup.optional is True
    assert syrup.amount is None


def test_extract_recipe_from_wprm_requires_container():
    assert extract_recipe_from_wprm("<html><body><p>hi</p></body></html>", "https://example.com") is None


def test_extract_recipe_from_microdata():
    html = """
    <html><body>
    <div itemscope itemtype="https://schema.org/Recipe">
      <h1 itemprop="name">Micro Bread</h1>
      <meta itemprop="prepTime" content="PT15M">
      <span itemprop="recipeYield">1 loaf</span>
      <ul>
        <li itemprop="recipeIngredient">3 cups flour</li>
        <li itemprop="recipeIngredient">1 tsp yeast</li>
      </ul>
      <div itemprop="recipeInstructions">
        <ol><li>Mix dough.</li><li>Bake 30 minutes.</li></ol>
      </div>
    </div>
    </body></html>
    """
    draft = extract_recipe_from_data_attributes(html, "https://example.com/bread")
    assert draft is not None
    assert draft.title == "Micro Bread"
    assert draft.prep_time == 15
    assert draft.servings == 1
    assert [i.name for i in draft.ingredients] == ["flour", "yeast"]
    assert draft.instructions == ["Mix dough.", "Bake 30 minutes."]


def test_microdata_steps_wrapped_in_paragraphs_are_not_duplicated():
    html = """
    <html><body>
    <div itemscope itemtype="https://schema.org/Recipe">
      <h1 itemprop="name">Paragraph Bread</h1>
      <ul>
        <li itemprop="recipeIngredient">3 cups flour</li>
        <li itemprop="recipeIngredient">1 tsp yeast</li>
      </ul>
      <ol itemprop="recipeInstructions"><li><p>Mix dough.</p></li><li><p>Bake.</p></li></ol>
    </div>
    </body></html>
    """
    draft = extract_recipe_from_data_attributes(html, "https://example.com/bread")
    assert draft is not None
    assert draft.instructions == ["Mix dough.", "Bake."]


def test_extract_recipe_from_data_attributes_with_sections():
    html = """
    <html><body>
      <h1>Attr Salad</h1>
      <h3>Dressing</h3>
      <ul>
        <li>
          <span data-ingredient-quantity="true">2</span>
          <span data-ingredient-unit="true">tbsp</span>
          <span data-ingredient-name="true">olive oil</span>
        </li>
        <li>
          <span data-ingredient-quantity="true">1</span>
          <span data-ingredient-name="true">lemon</span>
        </li>
      </ul>
      <ol class="instructions"><li class="instruction">Whisk the dressing.</li></ol>
    </body></html>
    """
    draft = extract_recipe_from_data_attributes(html, "https://example.com/salad")
    assert draft is not None
    assert draft.title == "Attr Salad"
    oil, lemon = draft.ingredients
    assert oil.amount == 2.0
    assert oil.unit == CanonicalUnit.TABLESPOON
    assert oil.name == "olive oil"
    assert oil.section == "Dressing"
    assert lemon.unit is None
    assert lemon.section == "Dressing"
    assert draft.instructions == ["Whisk the dressing."]


def test_extract_recipe_heuristic():
    html = """
    <html>
      <body>
        <h1>Heuristic Soup</h1>
        <article>
          <p>Serves 2</p>
          <ul>
            <li>1 cup broth</li>
            <li>2 tsp salt</li>
          </ul>
          <h2>Directions</h2>
          <ol>
            <li>Heat the broth.</li>
            <li>Add salt.</li>
          </ol>
        </article>
      </body>
    </html>
    """
    draft = extract_recipe_heuristic(html, "https://example.com/soup")
    assert draft is not None
    assert draft.title == "Heuristic Soup"
    assert len(draft.ingredients) == 2
    assert draft.ingredients[0].unit == CanonicalUnit.CUP
    assert draft.instructions[0].startswith("Heat")
    assert draft.servings == 2


def test_extract_recipe_heuristic_unheaded_steps():
    html = """
    <html><body>
      <h1>Quick Toast</h1>
      <h2>Ingredients</h2>
      <ul><li>2 slices bread</li><li>1 tbsp butter</li></ul>
      <ol><li>Toast the bread.</li><li>Spread butter.</li></ol>
    </body></html>
    """
    draft = extract_recipe_heuristic(html, "https://example.com/toast")
    assert draft is not None
    assert draft.instructions == ["Toast the bread.", "Spread butter."]


def test_extract_recipe_heuristic_needs_two_ingredients():
    html = """
    <html><body>
      <h1>Water</h1>
      <h2>Ingredients</h2><ul><li>1 cup water</li></ul>
      <h2>Instructions</h2><ol><li>Drink.</li></ol>
    </body></html>
    """
    assert extract_recipe_heuristic(html, "https://example.com/water") is None
