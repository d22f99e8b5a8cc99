from __future__ import annotations
from recipe_box.models import ScaledIngredientResult, ShoppingList
from recipe_box.parser import DEFAULT_UNIT
from recipe_box.quantities import format_decimal, round2
from recipe_box.service import UNCATEGORIZED, grouped_by_category


def format_quantity(quantity: float | None, quantity_display: str | None, unit: str) -> str:
    # text quantities already read as a whole phrase ("a pinch", "to taste")
    if quantity_display:
        return quantity_display
    if quantity is None:
        return unit
    amount = format_decimal(round2(quantity))
    if not unit or unit == DEFAULT_UNIT:
        return amount
    return f"{amount} {unit}"


def scaled_amounts(ing: ScaledIngredientResult) -> tuple[str, str]:
    """(original, scaled) labels for one line of a scaled recipe.

    A display override is shown as written in both columns; only a plain
    number gets the unit appended.
    """
    numeric = ing.scaled_quantity is not None and ing.quantity_display == format_decimal(round2(ing.scaled_quantity))
    if not numeric:
        return ing.quantity_display, ing.quantity_display
    return (
        format_quantity(ing.original_quantity, None, ing.unit),
        format_quantity(ing.scaled_quantity, None, ing.unit),
    )


def format_shopping_list(shopping_list: ShoppingList) -> str:
    groups = grouped_by_category(shopping_list)
    sections = sorted(c for c in groups if c != UNCATEGORIZED)
    if UNCATEGORIZED in groups:
        sections.append(UNCATEGORIZED)

    lines: list[str] = []
    for section in sections:
        lines.append(f"\n{section}")
        lines.append("-" * len(section))
        for item in groups[section]:
            box = "[x]" if item.is_checked else "[ ]"
            lines.append(f"{box} {format_quantity(item.quantity, item.quantity_display, item.unit)} {item.name}")

    return "\n".join(lines).strip()
