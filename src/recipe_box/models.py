from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


def normalize_name(name: str) -> str:
    return name.lower().strip()


def to_title_case(text: str) -> str:
    """'fresh basil' -> 'Fresh Basil'."""
    return " ".join(word[:1].upper() + word[1:] for word in text.lower().split(" "))


class Ingredient(BaseModel):
    name: str
    display_name: str
    category: Optional[str] = None

    @classmethod
    def from_name(cls, raw_name: str, category: Optional[str] = None) -> Ingredient:
        name = normalize_name(raw_name)
        return cls(name=name, display_name=to_title_case(name), category=category)


class RecipeIngredientLine(BaseModel):
    ingredient: Ingredient
    quantity: Optional[float] = None
    quantity_display: Optional[str] = None
    unit: str
    order_index: int = Field(default=0, ge=0)
    notes: Optional[str] = None

    @property
    def has_text_quantity(self) -> bool:
        return bool(self.quantity_display and self.quantity_display.strip())


class Recipe(BaseModel):
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    instructions: str
    servings: int
    prep_time: Optional[int] = None
    cook_time: Optional[int] = None
    image_url: Optional[str] = None
    source_url: Optional[str] = None
    is_public: bool = False
    published_at: Optional[datetime] = None
    unpublished_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    ingredients: list[RecipeIngredientLine] = Field(default_factory=list)


class ScaledIngredientResult(BaseModel):
    ingredient: Ingredient
    original_quantity: Optional[float]
    scaled_quantity: Optional[float]
    quantity_display: str
    unit: str
    notes: Optional[str] = None


class ScaledRecipeResult(BaseModel):
    original_servings: int
    desired_servings: float
    scaling_factor: float
    scaled_ingredients: list[ScaledIngredientResult]


class RecipeLine(BaseModel):
    """One ingredient line of a recipe, flattened for shopping-list aggregation."""

    recipe_id: str
    ingredient_name: str
    quantity: Optional[float] = None
    quantity_display: Optional[str] = None
    unit: str
    category: Optional[str] = None


class AggregatedItem(BaseModel):
    key: str
    name: str
    quantity: Optional[float] = None
    quantity_display: Optional[str] = None
    unit: str
    category: Optional[str] = None
    recipe_ids: list[str] = Field(default_factory=list)


class ShoppingListItem(BaseModel):
    id: str
    name: str
    quantity: Optional[float] = None
    quantity_display: Optional[str] = None
    unit: str
    category: Optional[str] = None
    is_checked: bool = False
    source_recipe_id: Optional[str] = None
    created_at: datetime


class ShoppingList(BaseModel):
    version: int = 1
    id: str
    user_id: str
    created_at: datetime
    updated_at: datetime
    items: list[ShoppingListItem] = Field(default_factory=list)


class GenerateResult(BaseModel):
    id: str
    items_added: int
    items_updated: int = 0
    items: list[ShoppingListItem] = Field(default_factory=list)


class RecipeIngredientInput(BaseModel):
    ingredient_name: str
    quantity: Optional[float] = None
    quantity_display: Optional[str] = None
    unit: str
    order_index: int = 0
    notes: Optional[str] = None
    category: Optional[str] = None


class CreateRecipeCommand(BaseModel):
    title: str
    description: Optional[str] = None
    instructions: str
    servings: int
    prep_time: Optional[int] = None
    cook_time: Optional[int] = None
    image_url: Optional[str] = None
    source_url: Optional[str] = None
    ingredients: list[RecipeIngredientInput] = Field(default_factory=list)


class ScrapedRecipe(BaseModel):
    title: str
    url: str
    servings: int = 1
    raw_ingredients: list[str]
    instructions: str = ""
