import json
import pytest
from pathlib import Path
from unittest.mock import patch
from click.testing import CliRunner
from recipe_box.cli import cli
from recipe_box.fetcher import FetchError
from recipe_box.store import RecipeStore, ShoppingListStore


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("RECIPE_BOX_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("RECIPE_BOX_USER_ID", "alice")
    monkeypatch.delenv("RECIPE_BOX_LOG_LEVEL", raising=False)
    return tmp_path


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def recipe_file(tmp_path):
    path = tmp_path / "pancakes.json"
    path.write_text(json.dumps({
        "title": "Pancakes",
        "instructions": "Mix and fry.",
        "servings": 4,
        "ingredients": [
            {"ingredient_name": "Flour", "quantity": 2, "unit": "cup", "order_index": 0},
            {"ingredient_name": "Salt", "quantity_display": "a pinch", "unit": "pinch", "order_index": 1},
        ],
    }))
    return path


def _add(runner, recipe_file) -> str:
    result = runner.invoke(cli, ["recipe", "add", str(recipe_file)])
    assert result.exit_code == 0, result.output
    return RecipeStore(base_dir=recipe_file.parent).list()[0].id


def test_module_invocation_works():
    """python -m recipe_box must work (requires __main__.py)."""
    import subprocess, sys
    result = subprocess.run(
        [sys.executable, "-m", "recipe_box", "--help"],
        capture_output=True, text=True,
        env={**__import__("os").environ, "PYTHONPATH": str(__import__("pathlib").Path(__file__).parents[1] / "src")},
    )
    assert result.returncode == 0
    assert "Usage" in result.stdout


def test_recipe_add_is_subcommand_of_recipe_group(runner):
    result = runner.invoke(cli, ["recipe", "--help"])
    assert result.exit_code == 0
    assert "add" in result.output
    assert "scale" in result.output


def test_recipe_add_then_list(runner, data_dir, recipe_file):
    result = runner.invoke(cli, ["recipe", "add", str(recipe_file)])
    assert result.exit_code == 0
    assert "Pancakes" in result.output

    result = runner.invoke(cli, ["recipe", "list"])
    assert result.exit_code == 0
    assert "Pancakes" in result.output
    assert "Private" in result.output


def test_recipe_add_rejects_invalid_recipe(runner, data_dir, tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"title": "Empty", "instructions": "x", "servings": 2, "ingredients": []}))
    result = runner.invoke(cli, ["recipe", "add", str(path)])
    assert result.exit_code == 1
    assert "ingredients" in result.output


def test_recipe_scale(runner, data_dir, recipe_file):
    recipe_id = _add(runner, recipe_file)
    result = runner.invoke(cli, ["recipe", "scale", recipe_id[:8], "8"])
    assert result.exit_code == 0, result.output
    assert "4 cup" in result.output
    assert "a pinch" in result.output
    assert "Not scaled" in result.output


def test_recipe_scale_rejects_zero_servings(runner, data_dir, recipe_file):
    recipe_id = _add(runner, recipe_file)
    result = runner.invoke(cli, ["recipe", "scale", recipe_id, "0"])
    assert result.exit_code == 1
    assert "desired_servings" in result.output


def test_recipe_scale_unknown_recipe(runner, data_dir):
    result = runner.invoke(cli, ["recipe", "scale", "nope", "2"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_publish_shows_recipe_in_feed(runner, data_dir, recipe_file):
    recipe_id = _add(runner, recipe_file)
    result = runner.invoke(cli, ["feed"])
    assert "No public recipes" in result.output

    result = runner.invoke(cli, ["recipe", "publish", recipe_id])
    assert result.exit_code == 0
    result = runner.invoke(cli, ["feed"])
    assert "Pancakes" in result.output


def test_shop_generate_list_and_check(runner, data_dir, recipe_file):
    recipe_id = _add(runner, recipe_file)
    result = runner.invoke(cli, ["shop", "generate", recipe_id, recipe_id])
    assert result.exit_code == 0, result.output
    assert "2" in result.output

    result = runner.invoke(cli, ["shop", "list"])
    assert "flour" in result.output
    assert "2 cup" in result.output

    item = ShoppingListStore(base_dir=data_dir).get_or_create("alice").items[0]
    result = runner.invoke(cli, ["shop", "check", item.id[:8]])
    assert result.exit_code == 0
    assert "[x]" in result.output

    result = runner.invoke(cli, ["shop", "clear-checked"])
    assert "Deleted 1 checked item." in result.output
    assert len(ShoppingListStore(base_dir=data_dir).get_or_create("alice").items) == 1


def test_shop_print_writes_checklist(runner, data_dir, tmp_path):
    runner.invoke(cli, ["shop", "add", "apples", "3", "whole", "--category", "Produce"])
    output_path = tmp_path / "list.txt"
    result = runner.invoke(cli, ["shop", "print", "--output", str(output_path)])
    assert result.exit_code == 0
    assert "[ ] 3 apples" in result.output
    assert "[ ] 3 apples" in output_path.read_text()


def test_shop_add_rejects_non_positive_quantity(runner, data_dir):
    result = runner.invoke(cli, ["shop", "add", "apples", "0", "whole"])
    assert result.exit_code == 1
    assert "quantity" in result.output


def test_shop_check_unknown_item(runner, data_dir):
    result = runner.invoke(cli, ["shop", "check", "missing"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_shop_generate_from_someone_elses_recipe(runner, data_dir, recipe_file, monkeypatch):
    recipe_id = _add(runner, recipe_file)
    monkeypatch.setenv("RECIPE_BOX_USER_ID", "bob")
    result = runner.invoke(cli, ["shop", "generate", recipe_id])
    assert result.exit_code == 1
    assert "your own recipes" in result.output


def test_invalid_config_exits_nonzero(runner, data_dir, monkeypatch):
    monkeypatch.setenv("RECIPE_BOX_LOG_LEVEL", "chatty")
    result = runner.invoke(cli, ["recipe", "list"])
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


PANCAKES_HTML = (Path(__file__).parent / "fixtures" / "pancakes.html").read_text()


@patch("recipe_box.cli.fetch")
def test_recipe_import_from_url(mock_fetch, runner, data_dir):
    mock_fetch.return_value = PANCAKES_HTML
    result = runner.invoke(cli, ["recipe", "import", "https://www.example-kitchen.com/pancakes"])
    assert result.exit_code == 0, result.output
    assert "Weekend Pancakes" in result.output
    assert "serves 4" in result.output

    recipe = RecipeStore(base_dir=data_dir).list()[0]
    assert recipe.source_url == "https://www.example-kitchen.com/pancakes"
    assert [line.ingredient.name for line in recipe.ingredients] == ["all-purpose flour", "milk", "large eggs", "salt"]


@patch("recipe_box.cli.fetch")
def test_recipe_import_from_saved_html_skips_fetch(mock_fetch, runner, data_dir):
    html_path = data_dir / "saved.html"
    html_path.write_text(PANCAKES_HTML)
    result = runner.invoke(cli, ["recipe", "import", "https://paywalled.example.com/x", "--html", str(html_path)])
    assert result.exit_code == 0, result.output
    mock_fetch.assert_not_called()


@patch("recipe_box.cli.fetch")
def test_recipe_import_reports_fetch_error(mock_fetch, runner, data_dir):
    mock_fetch.side_effect = FetchError("Page not found (404): https://example.com/gone")
    result = runner.invoke(cli, ["recipe", "import", "https://example.com/gone"])
    assert result.exit_code == 1
    assert "404" in result.output


def test_recipe_scale_shows_display_override_unchanged(runner, data_dir, tmp_path):
    path = tmp_path / "heaping.json"
    path.write_text(json.dumps({
        "title": "Scones",
        "instructions": "Bake.",
        "servings": 4,
        "ingredients": [
            {"ingredient_name": "Flour", "quantity": 2, "quantity_display": "2 heaping cups", "unit": "cup"},
        ],
    }))
    recipe_id = _add(runner, path)
    result = runner.invoke(cli, ["recipe", "scale", recipe_id, "8"])
    assert result.exit_code == 0, result.output
    assert "2 heaping cups" in result.output
    assert "4 cup" not in result.output


def test_recipe_edit_replaces_ingredients(runner, data_dir, recipe_file, tmp_path):
    recipe_id = _add(runner, recipe_file)
    path = tmp_path / "edited.json"
    path.write_text(json.dumps({
        "title": "Better Pancakes",
        "instructions": "Rest the batter, then fry.",
        "servings": 2,
        "ingredients": [{"ingredient_name": "Oat flour", "quantity": 1, "unit": "cup"}],
    }))
    result = runner.invoke(cli, ["recipe", "edit", recipe_id[:8], str(path)])
    assert result.exit_code == 0, result.output
    assert "Better Pancakes" in result.output

    recipe = RecipeStore(base_dir=data_dir).load(recipe_id)
    assert recipe.servings == 2
    assert [line.ingredient.name for line in recipe.ingredients] == ["oat flour"]


def test_recipe_edit_by_someone_else_is_refused(runner, data_dir, recipe_file, monkeypatch):
    recipe_id = _add(runner, recipe_file)
    monkeypatch.setenv("RECIPE_BOX_USER_ID", "bob")
    result = runner.invoke(cli, ["recipe", "edit", recipe_id, str(recipe_file)])
    assert result.exit_code == 1
    assert "permission" in result.output


def test_recipe_list_search(runner, data_dir, recipe_file):
    _add(runner, recipe_file)
    result = runner.invoke(cli, ["recipe", "list", "--search", "PANCAKE"])
    assert "Pancakes" in result.output
    result = runner.invoke(cli, ["recipe", "list", "--search", "waffle"])
    assert "No recipes match." in result.output
    result = runner.invoke(cli, ["recipe", "list", "--public"])
    assert "No recipes match." in result.output


def test_feed_search_and_author(runner, data_dir, recipe_file):
    recipe_id = _add(runner, recipe_file)
    runner.invoke(cli, ["recipe", "publish", recipe_id])
    result = runner.invoke(cli, ["feed", "--author", "alice", "--search", "cake"])
    assert "Pancakes" in result.output
    result = runner.invoke(cli, ["feed", "--author", "bob"])
    assert "No public recipes" in result.output
