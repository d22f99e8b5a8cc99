from datetime import datetime, timezone
from recipe_box.models import (
    Ingredient, Recipe, RecipeIngredientLine, ShoppingList, ShoppingListItem, normalize_name, to_title_case
)


def test_normalize_name():
    assert normalize_name("  Fresh BASIL ") == "fresh basil"


def test_title_case():
    assert to_title_case("fresh basil") == "Fresh Basil"
    assert to_title_case("ALL-PURPOSE flour") == "All-purpose Flour"


def test_ingredient_from_name():
    ing = Ingredient.from_name("  Fresh Basil ", category="Produce")
    assert ing.name == "fresh basil"
    assert ing.display_name == "Fresh Basil"
    assert ing.category == "Produce"


def test_text_quantity_flag():
    base = dict(ingredient=Ingredient.from_name("salt"), unit="pinch")
    assert RecipeIngredientLine(**base, quantity_display="a pinch").has_text_quantity
    assert not RecipeIngredientLine(**base, quantity_display="  ", quantity=1).has_text_quantity
    assert not RecipeIngredientLine(**base, quantity=1).has_text_quantity


def test_recipe_json_roundtrip(tmp_path):
    now = datetime(2026, 3, 1, tzinfo=timezone.utc)
    recipe = Recipe(
        id="r1", user_id="alice", title="Soup", instructions="Simmer.", servings=4,
        created_at=now, updated_at=now,
        ingredients=[RecipeIngredientLine(ingredient=Ingredient.from_name("leek"), quantity=2, unit="whole")],
    )
    path = tmp_path / "recipe.json"
    path.write_text(recipe.model_dump_json())
    loaded = Recipe.model_validate_json(path.read_text())
    assert loaded == recipe
    assert loaded.is_public is False
    assert loaded.published_at is None


def test_shopping_list_item_defaults():
    item = ShoppingListItem(id="i1", name="milk", quantity=1, unit="l", created_at=datetime.now(tz=timezone.utc))
    assert item.is_checked is False
    assert item.category is None
    assert item.source_recipe_id is None


def test_shopping_list_loads_without_items_field():
    raw = {
        "id": "list-1",
        "user_id": "alice",
        "created_at": "2026-03-01T00:00:00Z",
        "updated_at": "2026-03-01T00:00:00Z",
    }
    shopping_list = ShoppingList.model_validate(raw)
    assert shopping_list.items == []
    assert shopping_list.version == 1
