from __future__ import annotations
import logging
from pathlib import Path
import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from recipe_box import service
from recipe_box.config import Config
from recipe_box.errors import InputValidationError, MalformedRecipeError, RecipeBoxError
from recipe_box.fetcher import fetch, FetchError
from recipe_box.formatter import format_quantity, format_shopping_list, scaled_amounts
from recipe_box.models import CreateRecipeCommand
from recipe_box.scraper import scrape, to_command, ScrapeError
from recipe_box.store import RecipeStore, ShoppingListStore

console = Console()
err_console = Console(stderr=True)

SHORT_ID = 8


def _fail(message: str) -> None:
    err_console.print(f"[red]Error:[/red] {message}")
    raise SystemExit(1)


def _report(error: RecipeBoxError) -> None:
    if isinstance(error, InputValidationError):
        _fail(f"{error.field}: {escape(error.message)}")
    if isinstance(error, MalformedRecipeError):
        _fail("Failed to process recipe.")
    _fail(escape(str(error)))


def _short(identifier: str) -> str:
    return identifier[:SHORT_ID]


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool):
    """Recipe Box — scale recipes and build shopping lists."""
    try:
        config = Config()
    except ValidationError as e:
        _fail(f"Invalid configuration: {e.errors()[0]['msg']}")
    logging.basicConfig(
        level=logging.DEBUG if verbose else config.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )
    ctx.obj = config


def _recipes(config: Config) -> RecipeStore:
    return RecipeStore(base_dir=config.data_dir)


def _lists(config: Config) -> ShoppingListStore:
    return ShoppingListStore(base_dir=config.data_dir)


# --- recipes ---

@cli.group("recipe")
def recipe():
    """Manage your recipes."""
    pass


def _read_command(path: Path) -> CreateRecipeCommand:
    try:
        return CreateRecipeCommand.model_validate_json(path.read_text())
    except ValidationError as e:
        _fail(f"{path.name} is not a valid recipe: {escape(str(e))}")


@recipe.command("add")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_obj
def recipe_add(config: Config, path: Path):
    """Add a recipe from a JSON file."""
    command = _read_command(path)
    try:
        created = service.create_recipe(_recipes(config), config.user_id, command)
    except RecipeBoxError as e:
        _report(e)
    console.print(
        f"[green]✓[/green] Added [bold]{escape(created.title)}[/bold] "
        f"({len(created.ingredients)} ingredients) [dim]{_short(created.id)}[/dim]"
    )


@recipe.command("import")
@click.argument("url")
@click.option("--html", "html_path", default=None, type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="Saved HTML for the page (for paywalled recipes)")
@click.pass_obj
def recipe_import(config: Config, url: str, html_path: Path | None):
    """Import a recipe from a web page."""
    try:
        if html_path is not None:
            html = html_path.read_text()
        else:
            console.print("  Fetching...", end="\r")
            html = fetch(url, timeout=config.http_timeout)
        scraped = scrape(html, url)
    except (FetchError, ScrapeError) as e:
        _fail(escape(str(e)))

    try:
        created = service.create_recipe(_recipes(config), config.user_id, to_command(scraped))
    except RecipeBoxError as e:
        _report(e)
    console.print(
        f"[green]✓[/green] Imported [bold]{escape(created.title)}[/bold] "
        f"({len(created.ingredients)} ingredients, serves {created.servings}) [dim]{_short(created.id)}[/dim]"
    )


@recipe.command("edit")
@click.argument("recipe_id")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_obj
def recipe_edit(config: Config, recipe_id: str, path: Path):
    """Replace a recipe with the contents of a JSON file."""
    command = _read_command(path)
    store = _recipes(config)
    try:
        updated = service.update_recipe(store, store.resolve(recipe_id), config.user_id, command)
    except RecipeBoxError as e:
        _report(e)
    console.print(
        f"[green]✓[/green] Updated [bold]{escape(updated.title)}[/bold] "
        f"({len(updated.ingredients)} ingredients) [dim]{_short(updated.id)}[/dim]"
    )


@recipe.command("list")
@click.option("--search", default=None, help="Only recipes whose title contains this text")
@click.option("--public/--private", "is_public", default=None, help="Only public or only private recipes")
@click.pass_obj
def recipe_list(config: Config, search: str | None, is_public: bool | None):
    """Show your recipes."""
    recipes = service.list_recipes(_recipes(config), config.user_id, search=search, is_public=is_public)
    if not recipes:
        if search or is_public is not None:
            console.print("No recipes match.")
        else:
            console.print("No recipes yet. Run [bold]recipes recipe add[/bold] to add one.")
        return

    table = Table(title="My Recipes")
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Serves", justify="right")
    table.add_column("Visibility")
    for r in recipes:
        visibility = "[green]Public[/green]" if r.is_public else "[dim]Private[/dim]"
        table.add_row(_short(r.id), escape(r.title), str(r.servings), visibility)
    console.print(table)


@recipe.command("show")
@click.argument("recipe_id")
@click.pass_obj
def recipe_show(config: Config, recipe_id: str):
    """Show a recipe's ingredients and instructions."""
    store = _recipes(config)
    try:
        r = service.get_recipe(store, store.resolve(recipe_id), config.user_id)
    except RecipeBoxError as e:
        _report(e)

    console.print(f"\n[bold]{escape(r.title)}[/bold] (serves {r.servings})\n")
    for line in r.ingredients:
        quantity = format_quantity(line.quantity, line.quantity_display, line.unit)
        note = f" [dim]({escape(line.notes)})[/dim]" if line.notes else ""
        console.print(f"  • {escape(quantity)} {escape(line.ingredient.display_name)}{note}")
    console.print(f"\n{escape(r.instructions)}\n")


@recipe.command("scale")
@click.argument("recipe_id")
@click.argument("servings", type=float)
@click.pass_obj
def recipe_scale(config: Config, recipe_id: str, servings: float):
    """Scale a recipe to a different number of servings."""
    store = _recipes(config)
    try:
        result = service.scale_recipe(
            store, store.resolve(recipe_id), servings, config.user_id,
            max_desired_servings=config.max_desired_servings,
        )
    except RecipeBoxError as e:
        _report(e)

    table = Table(
        title=f"Scaled from {result.original_servings} to {servings:g} servings (×{result.scaling_factor:g})"
    )
    table.add_column("Ingredient")
    table.add_column("Original", justify="right")
    table.add_column("Scaled", justify="right")
    table.add_column("Notes", style="yellow")
    for ing in result.scaled_ingredients:
        original, scaled = scaled_amounts(ing)
        table.add_row(escape(ing.ingredient.display_name), escape(original), escape(scaled), escape(ing.notes or ""))
    console.print(table)


def _set_visibility(config: Config, recipe_id: str, is_public: bool) -> None:
    store = _recipes(config)
    try:
        r = service.set_visibility(store, store.resolve(recipe_id), is_public, config.user_id)
    except RecipeBoxError as e:
        _report(e)
    state = "public" if is_public else "private"
    console.print(f"[green]✓[/green] [bold]{escape(r.title)}[/bold] is now {state}.")


@recipe.command("publish")
@click.argument("recipe_id")
@click.pass_obj
def recipe_publish(config: Config, recipe_id: str):
    """Publish a recipe to the public feed."""
    _set_visibility(config, recipe_id, True)


@recipe.command("unpublish")
@click.argument("recipe_id")
@click.pass_obj
def recipe_unpublish(config: Config, recipe_id: str):
    """Make a recipe private again."""
    _set_visibility(config, recipe_id, False)


@recipe.command("remove")
@click.argument("recipe_id")
@click.pass_obj
def recipe_remove(config: Config, recipe_id: str):
    """Delete one of your recipes."""
    store = _recipes(config)
    try:
        full_id = store.resolve(recipe_id)
        service.delete_recipe(store, full_id, config.user_id)
    except RecipeBoxError as e:
        _report(e)
    console.print(f"[green]✓[/green] Removed recipe {_short(full_id)}")


@cli.command("feed")
@click.option("--limit", default=20, show_default=True, type=int)
@click.option("--offset", default=0, show_default=True, type=int)
@click.option("--search", default=None, help="Only recipes whose title contains this text")
@click.option("--author", default=None, help="Only recipes published by this user")
@click.pass_obj
def feed(config: Config, limit: int, offset: int, search: str | None, author: str | None):
    """Show recently published recipes."""
    try:
        recipes = service.public_feed(
            _recipes(config), limit=limit, offset=offset, search=search, author=author
        )
    except RecipeBoxError as e:
        _report(e)
    if not recipes:
        console.print("No public recipes yet.")
        return

    table = Table(title="Public Recipes")
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Author")
    table.add_column("Serves", justify="right")
    for r in recipes:
        table.add_row(_short(r.id), escape(r.title), escape(r.user_id), str(r.servings))
    console.print(table)


# --- shopping list ---

@cli.group("shop")
def shop():
    """Manage your shopping list."""
    pass


@shop.command("generate")
@click.argument("recipe_ids", nargs=-1, required=True)
@click.option("--replace", is_flag=True, help="Clear the current list first")
@click.pass_obj
def shop_generate(config: Config, recipe_ids: tuple[str, ...], replace: bool):
    """Build shopping list items from one or more recipes."""
    store = _recipes(config)
    try:
        full_ids = [store.resolve(recipe_id) for recipe_id in recipe_ids]
        result = service.generate_shopping_list(
            store, _lists(config), full_ids, replace, config.user_id,
            max_recipes=config.max_recipes_per_list,
        )
    except RecipeBoxError as e:
        _report(e)
    console.print(f"[green]✓[/green] Added [bold]{result.items_added}[/bold] items to your shopping list.")


@shop.command("list")
@click.pass_obj
def shop_list(config: Config):
    """Show the items on your shopping list."""
    shopping_list = _lists(config).get_or_create(config.user_id)
    if not shopping_list.items:
        console.print("Your shopping list is empty. Run [bold]recipes shop generate[/bold] to fill it.")
        return

    table = Table(title="Shopping List")
    table.add_column("ID", style="cyan")
    table.add_column("")
    table.add_column("Item")
    table.add_column("Quantity", justify="right")
    table.add_column("Category")
    for category, items in service.grouped_by_category(shopping_list).items():
        for item in items:
            table.add_row(
                _short(item.id),
                "✓" if item.is_checked else "",
                escape(item.name),
                escape(format_quantity(item.quantity, item.quantity_display, item.unit)),
                escape(category),
            )
    console.print(table)


@shop.command("print")
@click.option("--output", "output_path", default=None, type=click.Path(dir_okay=False, path_type=Path),
              help="Also write the list to this file")
@click.pass_obj
def shop_print(config: Config, output_path: Path | None):
    """Print the shopping list as a plain-text checklist."""
    output = format_shopping_list(_lists(config).get_or_create(config.user_id))
    console.print(output, markup=False, highlight=False)
    if output_path is not None:
        output_path.write_text(output)
        console.print(f"\n[dim]Saved to {escape(str(output_path))}[/dim]")


@shop.command("add")
@click.argument("name")
@click.argument("quantity", type=float)
@click.argument("unit")
@click.option("--category", default=None, help="Aisle or category for grouping")
@click.pass_obj
def shop_add(config: Config, name: str, quantity: float, unit: str, category: str | None):
    """Add an item to your shopping list by hand."""
    try:
        item = service.add_item(_lists(config), config.user_id, name, quantity, unit, category)
    except RecipeBoxError as e:
        _report(e)
    label = format_quantity(item.quantity, item.quantity_display, item.unit)
    console.print(f"[green]✓[/green] Added: {escape(label)} {escape(item.name)} [dim]{_short(item.id)}[/dim]")


def _update(config: Config, item_id: str, **changes) -> None:
    try:
        item = service.update_item(_lists(config), config.user_id, item_id, **changes)
    except RecipeBoxError as e:
        _report(e)
    label = format_quantity(item.quantity, item.quantity_display, item.unit)
    mark = "[x]" if item.is_checked else "[ ]"
    console.print(f"{escape(mark)} {escape(label)} {escape(item.name)}")


@shop.command("check")
@click.argument("item_id")
@click.pass_obj
def shop_check(config: Config, item_id: str):
    """Mark an item as bought."""
    _update(config, item_id, is_checked=True)


@shop.command("uncheck")
@click.argument("item_id")
@click.pass_obj
def shop_uncheck(config: Config, item_id: str):
    """Mark an item as not bought yet."""
    _update(config, item_id, is_checked=False)


@shop.command("set-quantity")
@click.argument("item_id")
@click.argument("quantity", type=float)
@click.pass_obj
def shop_set_quantity(config: Config, item_id: str, quantity: float):
    """Change how much of an item to buy."""
    _update(config, item_id, quantity=quantity)


@shop.command("remove")
@click.argument("item_id")
@click.pass_obj
def shop_remove(config: Config, item_id: str):
    """Remove an item from your shopping list."""
    try:
        service.delete_item(_lists(config), config.user_id, item_id)
    except RecipeBoxError as e:
        _report(e)
    console.print(f"[green]✓[/green] Removed item {escape(item_id)}")


@shop.command("clear-checked")
@click.pass_obj
def shop_clear_checked(config: Config):
    """Delete every checked item."""
    deleted = service.clear_checked(_lists(config), config.user_id)
    if deleted == 0:
        console.print("No checked items to delete.")
        return
    console.print(f"[green]✓[/green] Deleted {deleted} checked item{'s' if deleted != 1 else ''}.")
