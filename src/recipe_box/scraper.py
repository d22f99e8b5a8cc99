from __future__ import annotations
import logging
import re
from recipe_scrapers import scrape_html
from recipe_scrapers._exceptions import WebsiteNotImplementedError, NoSchemaFoundInWildMode
from recipe_box.models import CreateRecipeCommand, ScrapedRecipe
from recipe_box.parser import parse_ingredients

logger = logging.getLogger(__name__)


class ScrapeError(Exception):
    pass


def parse_servings(yields: str | None) -> int:
    """'4 servings' -> 4, '6-8 servings' -> 6; anything unreadable -> 1."""
    match = re.search(r"\d+", yields or "")
    if not match or int(match.group(0)) <= 0:
        return 1
    return int(match.group(0))


def _optional(scraper, method: str) -> str:
    try:
        return getattr(scraper, method)() or ""
    except Exception:
        logger.debug("Page has no %s", method)
        return ""


def scrape(html: str, url: str) -> ScrapedRecipe:
    try:
        scraper = scrape_html(html, org_url=url, supported_only=False)
        ingredients = scraper.ingredients()
        if not ingredients:
            raise ScrapeError(f"No ingredients found at {url}. The page may not contain a recipe.")
        title = scraper.title() or url
        return ScrapedRecipe(
            title=title,
            url=url,
            servings=parse_servings(_optional(scraper, "yields")),
            raw_ingredients=ingredients,
            instructions=_optional(scraper, "instructions"),
        )
    except (WebsiteNotImplementedError, NoSchemaFoundInWildMode):
        raise ScrapeError(
            f"Could not parse recipe from {url}. "
            "Try saving the page HTML and using: recipes recipe import URL --html path/to/saved.html"
        )
    except ScrapeError:
        raise
    except Exception as e:
        raise ScrapeError(f"Unexpected error scraping {url}: {e}") from e


def to_command(scraped: ScrapedRecipe) -> CreateRecipeCommand:
    return CreateRecipeCommand(
        title=scraped.title[:200],
        instructions=scraped.instructions or f"See {scraped.url}",
        servings=scraped.servings,
        source_url=scraped.url,
        ingredients=parse_ingredients(scraped.raw_ingredients),
    )
