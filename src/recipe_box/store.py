from __future__ import annotations
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from pydantic import ValidationError
from recipe_box.errors import MalformedRecipeError, NotFoundError
from recipe_box.models import Recipe, RecipeLine, ShoppingList

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def _default_dir() -> Path:
    return Path.home() / ".recipe_box"


def _oldest() -> datetime:
    return datetime.min.replace(tzinfo=timezone.utc)


class RecipeStore:
    def __init__(self, base_dir: Path | None = None):
        self.base_dir = (base_dir or _default_dir()) / "recipes"
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _recipe_path(self, recipe_id: str) -> Path:
        # ids are file stems; anything that could leave base_dir is unknown
        if not recipe_id or Path(recipe_id).name != recipe_id or recipe_id in (".", ".."):
            raise NotFoundError(f"Recipe '{recipe_id}' not found.")
        return self.base_dir / f"{recipe_id}.json"

    def save(self, recipe: Recipe) -> None:
        recipe.updated_at = _now()
        self._recipe_path(recipe.id).write_text(recipe.model_dump_json(indent=2))

    def resolve(self, prefix: str) -> str:
        """Expand a unique id prefix (as shown in listings) to the full recipe id."""
        if self._recipe_path(prefix).exists():
            return prefix
        matches = [p.stem for p in self.base_dir.glob("*.json") if p.stem.startswith(prefix)]
        if len(matches) != 1:
            raise NotFoundError(f"Recipe '{prefix}' not found.")
        return matches[0]

    def load(self, recipe_id: str) -> Recipe:
        path = self._recipe_path(recipe_id)
        if not path.exists():
            raise NotFoundError(f"Recipe '{recipe_id}' not found.")
        try:
            return Recipe.model_validate_json(path.read_text())
        except ValidationError as e:
            raise MalformedRecipeError(f"Recipe file {path.name} is corrupt") from e

    def delete(self, recipe_id: str) -> None:
        path = self._recipe_path(recipe_id)
        if not path.exists():
            raise NotFoundError(f"Recipe '{recipe_id}' not found.")
        path.unlink()

    def _all(self) -> list[Recipe]:
        recipes = []
        for path in sorted(self.base_dir.glob("*.json")):
            try:
                recipes.append(Recipe.model_validate_json(path.read_text()))
            except Exception:
                logger.warning("Could not read recipe file %s", path.name)
        return recipes

    def list(self, user_id: str | None = None) -> list[Recipe]:
        recipes = [r for r in self._all() if user_id is None or r.user_id == user_id]
        return sorted(recipes, key=lambda r: r.created_at, reverse=True)

    def list_public(self) -> list[Recipe]:
        recipes = [r for r in self._all() if r.is_public]
        return sorted(recipes, key=lambda r: r.published_at or _oldest(), reverse=True)

    def lines_for(self, recipes: list[Recipe]) -> list[RecipeLine]:
        """Flatten the ingredient lines of ``recipes`` for aggregation.

        Lines with a text quantity are handed over without their number, so a
        "pinch" of salt is never summed with a weighed amount.
        """
        return [
            RecipeLine(
                recipe_id=recipe.id,
                ingredient_name=line.ingredient.name,
                quantity=None if line.has_text_quantity else line.quantity,
                quantity_display=line.quantity_display if line.has_text_quantity else None,
                unit=line.unit,
                category=line.ingredient.category,
            )
            for recipe in recipes
            for line in sorted(recipe.ingredients, key=lambda ln: ln.order_index)
        ]


class ShoppingListStore:
    def __init__(self, base_dir: Path | None = None):
        self.base_dir = (base_dir or _default_dir()) / "shopping_lists"
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _list_path(self, user_id: str) -> Path:
        return self.base_dir / f"{user_id}.json"

    def get_or_create(self, user_id: str) -> ShoppingList:
        path = self._list_path(user_id)
        if path.exists():
            return ShoppingList.model_validate_json(path.read_text())
        now = _now()
        shopping_list = ShoppingList(id=str(uuid.uuid4()), user_id=user_id, created_at=now, updated_at=now)
        logger.info("Created shopping list %s for user %s", shopping_list.id, user_id)
        self.save(shopping_list)
        return shopping_list

    def exists(self, user_id: str) -> bool:
        return self._list_path(user_id).exists()

    def save(self, shopping_list: ShoppingList) -> None:
        shopping_list.updated_at = _now()
        self._list_path(shopping_list.user_id).write_text(shopping_list.model_dump_json(indent=2))
