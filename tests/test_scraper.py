from pathlib import Path
import pytest
from recipe_box.models import ScrapedRecipe
from recipe_box.scraper import parse_servings, scrape, to_command, ScrapeError

FIXTURE_DIR = Path(__file__).parent / "fixtures"
URL = "https://www.example-kitchen.com/pancakes"


@pytest.fixture
def html():
    return (FIXTURE_DIR / "pancakes.html").read_text()


def test_scrape_extracts_title_and_ingredients(html):
    recipe = scrape(html, url=URL)
    assert recipe.title == "Weekend Pancakes"
    assert len(recipe.raw_ingredients) == 4
    assert "2 cups all-purpose flour" in recipe.raw_ingredients


def test_scrape_reads_servings_and_instructions(html):
    recipe = scrape(html, url=URL)
    assert recipe.servings == 4
    assert "Whisk everything together." in recipe.instructions
    assert recipe.url == URL


def test_scrape_invalid_html_raises():
    with pytest.raises(ScrapeError):
        scrape("<html><body>no recipe here</body></html>", url="https://example.com")


@pytest.mark.parametrize("yields,expected", [
    ("4 servings", 4),
    ("6-8 servings", 6),
    ("Makes 12", 12),
    ("", 1),
    (None, 1),
    ("0 servings", 1),
])
def test_parse_servings(yields, expected):
    assert parse_servings(yields) == expected


def test_to_command_parses_ingredients(html):
    command = to_command(scrape(html, url=URL))
    assert command.title == "Weekend Pancakes"
    assert command.servings == 4
    assert command.source_url == URL
    flour, milk, eggs, salt = command.ingredients
    assert (flour.quantity, flour.unit, flour.ingredient_name) == (2, "cup", "all-purpose flour")
    assert milk.quantity == 1.5
    assert eggs.unit == "whole"
    assert salt.quantity_display == "a pinch"
    assert [i.order_index for i in command.ingredients] == [0, 1, 2, 3]


def test_to_command_without_instructions_points_at_source():
    scraped = ScrapedRecipe(title="T" * 250, url=URL, raw_ingredients=["1 cup rice"])
    command = to_command(scraped)
    assert command.instructions == f"See {URL}"
    assert len(command.title) == 200
