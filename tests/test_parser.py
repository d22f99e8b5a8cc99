from fractions import Fraction
import pytest
from recipe_box.parser import parse_ingredient, parse_ingredients, parse_number


@pytest.mark.parametrize("text,quantity,unit,name", [
    ("2 cups all-purpose flour", 2, "cup", "all-purpose flour"),
    ("1 1/2 tsp salt", 1.5, "tsp", "salt"),
    ("½ cup sugar", 0.5, "cup", "sugar"),
    ("1½ cups milk", 1.5, "cup", "milk"),
    ("3 large eggs", 3, "whole", "large eggs"),
    ("1/3 cup oil", 0.33, "cup", "oil"),
    ("2-3 cloves garlic", 3, "clove", "garlic"),
    ("1.5 kg potatoes", 1.5, "kg", "potatoes"),
    ("200 grams of butter", 200, "g", "butter"),
])
def test_parse_measured_ingredient(text, quantity, unit, name):
    parsed = parse_ingredient(text)
    assert parsed.quantity == quantity
    assert parsed.unit == unit
    assert parsed.ingredient_name == name
    assert parsed.quantity_display is None


def test_parse_splits_preparation_note():
    parsed = parse_ingredient("2 garlic cloves, minced")
    assert parsed.ingredient_name == "garlic cloves"
    assert parsed.notes == "minced"
    assert parsed.unit == "whole"


def test_parse_to_taste():
    parsed = parse_ingredient("salt to taste")
    assert parsed.ingredient_name == "salt"
    assert parsed.quantity is None
    assert parsed.quantity_display == "to taste"
    assert parsed.unit == "to taste"


def test_parse_pinch():
    parsed = parse_ingredient("a pinch of nutmeg")
    assert parsed.ingredient_name == "nutmeg"
    assert parsed.quantity_display == "a pinch"
    assert parsed.unit == "pinch"


def test_line_without_number_is_as_needed():
    parsed = parse_ingredient("Freshly ground pepper")
    assert parsed.ingredient_name == "Freshly ground pepper"
    assert parsed.quantity is None
    assert parsed.quantity_display == "as needed"


def test_zero_quantity_is_treated_as_text():
    parsed = parse_ingredient("0 cups water")
    assert parsed.quantity is None
    assert parsed.quantity_display == "as needed"


def test_parse_number_mixed_fraction():
    assert parse_number("2 3/4") == Fraction(11, 4)
    assert parse_number("0.25") == Fraction(1, 4)


def test_parse_ingredients_skips_blank_lines_and_keeps_order():
    parsed = parse_ingredients(["1 cup rice", "", "2 cups water"])
    assert [p.ingredient_name for p in parsed] == ["rice", "water"]
    assert parsed[0].order_index < parsed[1].order_index
