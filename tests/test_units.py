import pytest

from larder_recipes.app.services.url_parsing import CanonicalUnit, resolve_unit_alias, unit_values


@pytest.mark.parametrize(
    "token,expected",
    [
        ("cup", CanonicalUnit.CUP),
        ("Cups", CanonicalUnit.CUP),
        ("Tbsp.", CanonicalUnit.TABLESPOON),
        ("tablespoons", CanonicalUnit.TABLESPOON),
        ("TABLESPOON", CanonicalUnit.TABLESPOON),
        ("tsp", CanonicalUnit.TEASPOON),
        ("fl. oz.", CanonicalUnit.FLUID_OUNCE),
        ("oz", CanonicalUnit.WEIGHT_OUNCE),
        ("lbs", CanonicalUnit.POUND),
        ("g", CanonicalUnit.GRAM),
        ("cloves", CanonicalUnit.CLOVE),
        ("WEIGHT_OUNCE", CanonicalUnit.WEIGHT_OUNCE),
        ("to taste", CanonicalUnit.TO_TASTE),
    ],
)
def test_resolve_unit_alias(token, expected):
    assert resolve_unit_alias(token) == expected


@pytest.mark.parametrize("token", ["furlong", "", "   ", None, 3])
def test_resolve_unit_alias_unknown(token):
    assert resolve_unit_alias(token) is None


def test_unit_values_are_canonical_names():
    values = unit_values()
    assert values[0] == "CUP"
    assert "WEIGHT_OUNCE" in values and "FLUID_OUNCE" in values
    assert len(values) == len(set(values))
