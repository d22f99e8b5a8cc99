"""Request-level operations over the recipe and shopping-list stores.

Each function validates its input the way a request handler would, checks
ownership, and delegates the arithmetic to ``scaler`` and ``aggregator``.
"""
from __future__ import annotations
import logging
import math
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from recipe_box.aggregator import aggregate, to_shopping_items
from recipe_box.errors import AuthorizationError, InputValidationError, MalformedRecipeError, NotFoundError
from recipe_box.models import (
    CreateRecipeCommand,
    GenerateResult,
    Ingredient,
    Recipe,
    RecipeIngredientInput,
    RecipeIngredientLine,
    ScaledRecipeResult,
    ShoppingList,
    ShoppingListItem,
)
from recipe_box.quantities import round2
from recipe_box.scaler import MAX_DESIRED_SERVINGS, scale
from recipe_box.store import RecipeStore, ShoppingListStore

logger = logging.getLogger(__name__)

MAX_RECIPES_PER_LIST = 50
MAX_ITEM_QUANTITY = 999999
UNCATEGORIZED = "Uncategorized"


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


# --- recipes ---

def _validate_ingredient(index: int, ing: RecipeIngredientInput) -> None:
    if not ing.ingredient_name.strip():
        raise InputValidationError(f"ingredients[{index}].ingredient_name", "ingredient_name is required")
    if not ing.unit.strip():
        raise InputValidationError(f"ingredients[{index}].unit", "unit is required")
    if ing.order_index < 0:
        raise InputValidationError(f"ingredients[{index}].order_index", "order_index must be >= 0")
    has_display = bool(ing.quantity_display and ing.quantity_display.strip())
    if ing.quantity is not None and not math.isfinite(ing.quantity):
        raise InputValidationError(f"ingredients[{index}].quantity", "quantity must be a finite number")
    if not has_display and (ing.quantity is None or ing.quantity <= 0):
        raise InputValidationError(
            f"ingredients[{index}].quantity",
            "quantity must be greater than 0 when quantity_display is not provided",
        )


def _validate_recipe(command: CreateRecipeCommand) -> None:
    title = command.title.strip()
    if not title:
        raise InputValidationError("title", "title is required")
    if len(title) > 200:
        raise InputValidationError("title", "title must not exceed 200 characters")
    if command.description is not None and len(command.description) > 5000:
        raise InputValidationError("description", "description must not exceed 5000 characters")
    if not command.instructions.strip():
        raise InputValidationError("instructions", "instructions are required")
    if command.servings <= 0:
        raise InputValidationError("servings", "servings must be greater than 0")
    for field in ("prep_time", "cook_time"):
        value = getattr(command, field)
        if value is not None and value < 0:
            raise InputValidationError(field, f"{field} must be >= 0")
    if not command.ingredients:
        raise InputValidationError("ingredients", "at least one ingredient is required")

    seen: set[int] = set()
    for index, ing in enumerate(command.ingredients):
        _validate_ingredient(index, ing)
        if ing.order_index in seen:
            raise InputValidationError(
                f"ingredients[{index}].order_index", f"order_index {ing.order_index} is used more than once"
            )
        seen.add(ing.order_index)


def _build_line(ing: RecipeIngredientInput) -> RecipeIngredientLine:
    display = ing.quantity_display.strip() if ing.quantity_display and ing.quantity_display.strip() else None
    quantity = float(round2(ing.quantity)) if ing.quantity is not None and ing.quantity > 0 else None
    return RecipeIngredientLine(
        ingredient=Ingredient.from_name(ing.ingredient_name, category=ing.category),
        quantity=quantity,
        quantity_display=display,
        unit=ing.unit.strip(),
        order_index=ing.order_index,
        notes=ing.notes,
    )


def create_recipe(store: RecipeStore, user_id: str, command: CreateRecipeCommand) -> Recipe:
    _validate_recipe(command)
    now = _now()
    recipe = Recipe(
        id=str(uuid.uuid4()),
        user_id=user_id,
        title=command.title.strip(),
        description=command.description,
        instructions=command.instructions,
        servings=command.servings,
        prep_time=command.prep_time,
        cook_time=command.cook_time,
        image_url=command.image_url,
        source_url=command.source_url,
        created_at=now,
        updated_at=now,
        ingredients=sorted((_build_line(i) for i in command.ingredients), key=lambda ln: ln.order_index),
    )
    store.save(recipe)
    logger.info("Created recipe %s (%s) for user %s", recipe.id, recipe.title, user_id)
    return recipe


def update_recipe(store: RecipeStore, recipe_id: str, user_id: str, command: CreateRecipeCommand) -> Recipe:
    """Replace a recipe's fields and ingredient lines; id, owner and visibility are kept."""
    recipe = store.load(recipe_id)
    if recipe.user_id != user_id:
        raise AuthorizationError("You do not have permission to update this recipe")
    _validate_recipe(command)

    recipe.title = command.title.strip()
    recipe.description = command.description
    recipe.instructions = command.instructions
    recipe.servings = command.servings
    recipe.prep_time = command.prep_time
    recipe.cook_time = command.cook_time
    recipe.image_url = command.image_url
    recipe.source_url = command.source_url
    recipe.ingredients = sorted((_build_line(i) for i in command.ingredients), key=lambda ln: ln.order_index)
    store.save(recipe)
    logger.info("Updated recipe %s (%s)", recipe.id, recipe.title)
    return recipe


def _matches(recipe: Recipe, search: str | None) -> bool:
    return not search or search.strip().lower() in recipe.title.lower()


def list_recipes(
    store: RecipeStore, user_id: str, search: str | None = None, is_public: bool | None = None
) -> list[Recipe]:
    """The user's recipes, newest first, optionally filtered by title and visibility."""
    return [
        r for r in store.list(user_id=user_id)
        if _matches(r, search) and (is_public is None or r.is_public == is_public)
    ]


def get_recipe(store: RecipeStore, recipe_id: str, user_id: str | None) -> Recipe:
    recipe = store.load(recipe_id)
    if not recipe.is_public and recipe.user_id != user_id:
        raise AuthorizationError("You do not have permission to view this recipe")
    return recipe


def scale_recipe(
    store: RecipeStore,
    recipe_id: str,
    desired_servings: float,
    user_id: str | None,
    max_desired_servings: int = MAX_DESIRED_SERVINGS,
) -> ScaledRecipeResult:
    if not recipe_id or not recipe_id.strip():
        raise InputValidationError("id", "Recipe ID parameter is required")
    recipe = store.load(recipe_id)
    if not recipe.is_public and recipe.user_id != user_id:
        raise AuthorizationError("You do not have permission to scale this recipe")
    try:
        return scale(recipe, desired_servings, max_desired_servings=max_desired_servings)
    except MalformedRecipeError as e:
        logger.error("Recipe %s has malformed data: %s", recipe_id, e)
        raise


def set_visibility(store: RecipeStore, recipe_id: str, is_public: bool, user_id: str) -> Recipe:
    recipe = store.load(recipe_id)
    if recipe.user_id != user_id:
        raise AuthorizationError("You do not have permission to change this recipe's visibility")
    if recipe.is_public == is_public:
        return recipe
    now = _now()
    recipe.is_public = is_public
    if is_public:
        if recipe.published_at is None:
            recipe.published_at = now
    else:
        recipe.unpublished_at = now
    store.save(recipe)
    logger.info("Recipe %s is now %s", recipe.id, "public" if is_public else "private")
    return recipe


def delete_recipe(store: RecipeStore, recipe_id: str, user_id: str) -> None:
    recipe = store.load(recipe_id)
    if recipe.user_id != user_id:
        raise AuthorizationError("You do not have permission to delete this recipe")
    store.delete(recipe_id)
    logger.info("Deleted recipe %s", recipe_id)


def public_feed(
    store: RecipeStore,
    limit: int = 20,
    offset: int = 0,
    search: str | None = None,
    author: str | None = None,
) -> list[Recipe]:
    if limit < 1 or limit > 100:
        raise InputValidationError("limit", "limit must be between 1 and 100")
    if offset < 0:
        raise InputValidationError("offset", "offset must be >= 0")
    author = author.strip() if author else None
    recipes = [r for r in store.list_public() if _matches(r, search) and (not author or r.user_id == author)]
    return recipes[offset:offset + limit]


# --- shopping list ---

def generate_shopping_list(
    recipes: RecipeStore,
    lists: ShoppingListStore,
    recipe_ids: list[str],
    replace_existing: bool,
    user_id: str,
    max_recipes: int = MAX_RECIPES_PER_LIST,
) -> GenerateResult:
    if not recipe_ids:
        raise InputValidationError("recipe_ids", "recipe_ids must be a non-empty list")
    unique_ids = list(dict.fromkeys(recipe_ids))
    if len(unique_ids) > max_recipes:
        raise InputValidationError(
            "recipe_ids", f"Cannot generate shopping list from more than {max_recipes} recipes at once"
        )

    selected = [recipes.load(recipe_id) for recipe_id in unique_ids]
    if any(r.user_id != user_id for r in selected):
        raise AuthorizationError("You can only generate shopping lists from your own recipes")

    items = to_shopping_items(aggregate(recipes.lines_for(selected)))

    shopping_list = lists.get_or_create(user_id)
    if replace_existing:
        logger.info("Clearing %d existing items from shopping list %s", len(shopping_list.items), shopping_list.id)
        shopping_list.items = []
    shopping_list.items.extend(items)
    lists.save(shopping_list)

    logger.info(
        "Generated %d shopping list items from %d recipes for user %s", len(items), len(selected), user_id
    )
    return GenerateResult(id=shopping_list.id, items_added=len(items), items_updated=0, items=items)


def _validate_item_quantity(quantity: float) -> float:
    if isinstance(quantity, bool) or not math.isfinite(quantity) or quantity <= 0:
        raise InputValidationError("quantity", "quantity must be a number greater than 0")
    if quantity > MAX_ITEM_QUANTITY:
        raise InputValidationError("quantity", f"quantity must not exceed {MAX_ITEM_QUANTITY}")
    return float(round2(quantity))


def add_item(
    lists: ShoppingListStore,
    user_id: str,
    name: str,
    quantity: float,
    unit: str,
    category: str | None = None,
) -> ShoppingListItem:
    if not name or not name.strip():
        raise InputValidationError("name", "name is required and cannot be empty")
    if len(name) > 200:
        raise InputValidationError("name", "name must not exceed 200 characters")
    rounded = _validate_item_quantity(quantity)
    if not unit or not unit.strip():
        raise InputValidationError("unit", "unit is required and cannot be empty")
    if len(unit) > 50:
        raise InputValidationError("unit", "unit must not exceed 50 characters")
    if category is not None and len(category) > 100:
        raise InputValidationError("category", "category must not exceed 100 characters")

    shopping_list = lists.get_or_create(user_id)
    item = ShoppingListItem(
        id=str(uuid.uuid4()),
        name=name.strip(),
        quantity=rounded,
        unit=unit.strip(),
        category=category.strip() if category and category.strip() else None,
        created_at=_now(),
    )
    shopping_list.items.append(item)
    lists.save(shopping_list)
    return item


def _find_item(shopping_list: ShoppingList, item_id: str) -> ShoppingListItem:
    for item in shopping_list.items:
        if item.id == item_id:
            return item
    # listings show shortened ids; accept a unique prefix
    matches = [item for item in shopping_list.items if item_id and item.id.startswith(item_id)]
    if len(matches) == 1:
        return matches[0]
    raise NotFoundError(f"Shopping list item '{item_id}' not found.")


def update_item(
    lists: ShoppingListStore,
    user_id: str,
    item_id: str,
    quantity: float | None = None,
    is_checked: bool | None = None,
) -> ShoppingListItem:
    if quantity is None and is_checked is None:
        raise InputValidationError("item", "At least one field (quantity or is_checked) must be provided")
    rounded = _validate_item_quantity(quantity) if quantity is not None else None

    if not lists.exists(user_id):
        raise NotFoundError(f"Shopping list item '{item_id}' not found.")
    shopping_list = lists.get_or_create(user_id)
    item = _find_item(shopping_list, item_id)
    if rounded is not None:
        item.quantity = rounded
        item.quantity_display = None
    if is_checked is not None:
        item.is_checked = is_checked
    lists.save(shopping_list)
    return item


def delete_item(lists: ShoppingListStore, user_id: str, item_id: str) -> None:
    if not lists.exists(user_id):
        raise NotFoundError(f"Shopping list item '{item_id}' not found.")
    shopping_list = lists.get_or_create(user_id)
    shopping_list.items.remove(_find_item(shopping_list, item_id))
    lists.save(shopping_list)


def clear_checked(lists: ShoppingListStore, user_id: str) -> int:
    if not lists.exists(user_id):
        return 0
    shopping_list = lists.get_or_create(user_id)
    remaining = [item for item in shopping_list.items if not item.is_checked]
    deleted = len(shopping_list.items) - len(remaining)
    if deleted:
        shopping_list.items = remaining
        lists.save(shopping_list)
        logger.info("Cleared %d checked items from shopping list %s", deleted, shopping_list.id)
    return deleted


def grouped_by_category(shopping_list: ShoppingList) -> dict[str, list[ShoppingListItem]]:
    groups: dict[str, list[ShoppingListItem]] = defaultdict(list)
    for item in shopping_list.items:
        groups[item.category or UNCATEGORIZED].append(item)
    return dict(groups)
