from __future__ import annotations
import logging
import math
from decimal import Decimal
from recipe_box.errors import InputValidationError, MalformedIngredientError, MalformedRecipeError
from recipe_box.models import Recipe, RecipeIngredientLine, ScaledIngredientResult, ScaledRecipeResult
from recipe_box.quantities import format_decimal, round2, to_decimal

logger = logging.getLogger(__name__)

MAX_DESIRED_SERVINGS = 1000
NOT_SCALED_NOTE = "*Not scaled - adjust to taste"
_TASTE_WORDS = ("taste", "pinch")


def validate_desired_servings(desired_servings: object, maximum: int = MAX_DESIRED_SERVINGS) -> float:
    if isinstance(desired_servings, bool) or not isinstance(desired_servings, (int, float)):
        raise InputValidationError("desired_servings", "desired_servings is required and must be a number")
    if not math.isfinite(desired_servings):
        raise InputValidationError("desired_servings", "desired_servings must be a finite number")
    if desired_servings <= 0:
        raise InputValidationError("desired_servings", "desired_servings must be greater than 0")
    if desired_servings > maximum:
        raise InputValidationError("desired_servings", f"desired_servings must not exceed {maximum}")
    return desired_servings


def _is_taste_text(text: str) -> bool:
    lowered = text.lower()
    return any(word in lowered for word in _TASTE_WORDS)


def _scale_line(line: RecipeIngredientLine, factor: Decimal) -> ScaledIngredientResult:
    if line.quantity is not None and not math.isfinite(line.quantity):
        raise MalformedIngredientError(
            f"Ingredient '{line.ingredient.name}' at position {line.order_index} has a non-finite quantity"
        )
    has_quantity = line.quantity is not None and line.quantity > 0
    if not has_quantity and not line.has_text_quantity:
        raise MalformedIngredientError(
            f"Ingredient '{line.ingredient.name}' at position {line.order_index} "
            "has neither a quantity nor a quantity display"
        )

    scaled: Decimal | None = round2(to_decimal(line.quantity) * factor) if has_quantity else None

    if line.has_text_quantity:
        display = line.quantity_display
        notes = NOT_SCALED_NOTE if _is_taste_text(display) else None
    else:
        display = format_decimal(scaled)
        notes = None

    return ScaledIngredientResult(
        ingredient=line.ingredient,
        original_quantity=line.quantity if has_quantity else None,
        scaled_quantity=float(scaled) if scaled is not None else None,
        quantity_display=display,
        unit=line.unit,
        notes=notes,
    )


def scale(
    recipe: Recipe,
    desired_servings: float,
    max_desired_servings: int = MAX_DESIRED_SERVINGS,
) -> ScaledRecipeResult:
    """Scale every ingredient of ``recipe`` from its servings to ``desired_servings``.

    The reported factor is rounded to 2 decimals; each quantity is multiplied by
    the unrounded factor and then rounded, so rounding never compounds.
    Text quantities ("a pinch", "to taste") are passed through unchanged.
    Either every line scales or the call raises; nothing partial is returned.
    """
    validate_desired_servings(desired_servings, max_desired_servings)
    if recipe.servings <= 0:
        raise MalformedRecipeError(f"Recipe '{recipe.id}' has invalid servings: {recipe.servings}")

    factor = to_decimal(desired_servings) / Decimal(recipe.servings)
    ordered = sorted(recipe.ingredients, key=lambda line: line.order_index)
    scaled = [_scale_line(line, factor) for line in ordered]

    logger.debug(
        "Scaled recipe %s from %s to %s servings (%d ingredients)",
        recipe.id, recipe.servings, desired_servings, len(scaled),
    )
    return ScaledRecipeResult(
        original_servings=recipe.servings,
        desired_servings=desired_servings,
        scaling_factor=float(round2(factor)),
        scaled_ingredients=scaled,
    )
