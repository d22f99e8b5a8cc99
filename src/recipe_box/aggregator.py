from __future__ import annotations
import logging
import math
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from recipe_box.errors import InputValidationError
from recipe_box.models import AggregatedItem, RecipeLine, ShoppingListItem, normalize_name
from recipe_box.quantities import round2, to_decimal

logger = logging.getLogger(__name__)


def grouping_key(ingredient_name: str, unit: str) -> str:
    return f"{normalize_name(ingredient_name)}::{normalize_name(unit)}"


def _validate(line: RecipeLine, position: int) -> None:
    if not line.ingredient_name or not line.ingredient_name.strip():
        raise InputValidationError("ingredient_name", f"Line {position} is missing an ingredient name")
    if not line.unit or not line.unit.strip():
        raise InputValidationError("unit", f"Line {position} ('{line.ingredient_name}') is missing a unit")
    if line.quantity is None and not (line.quantity_display and line.quantity_display.strip()):
        raise InputValidationError(
            "quantity", f"Line {position} ('{line.ingredient_name}') has neither a quantity nor a quantity display"
        )
    if line.quantity is not None and not math.isfinite(line.quantity):
        raise InputValidationError("quantity", f"Line {position} ('{line.ingredient_name}') has a non-finite quantity")
    if line.quantity is not None and line.quantity <= 0:
        raise InputValidationError("quantity", f"Line {position} ('{line.ingredient_name}') has a non-positive quantity")


def aggregate(lines: list[RecipeLine]) -> list[AggregatedItem]:
    """Merge ingredient lines from several recipes into shopping-list items.

    Lines sharing a (name, unit) key are summed; different units stay separate
    since there is no unit conversion. Text-only quantities ("a pinch") are kept
    as their own items and never summed. Items come out in first-seen order.
    """
    for position, line in enumerate(lines):
        _validate(line, position)

    # slots holds either a grouping key (numeric) or a finished text-only item
    slots: list[str | AggregatedItem] = []
    totals: dict[str, Decimal] = {}
    firsts: dict[str, RecipeLine] = {}
    categories: dict[str, str | None] = {}
    recipe_ids: dict[str, list[str]] = {}

    for line in lines:
        key = grouping_key(line.ingredient_name, line.unit)
        if line.quantity is None:
            slots.append(
                AggregatedItem(
                    key=key,
                    name=line.ingredient_name.strip(),
                    quantity_display=line.quantity_display,
                    unit=line.unit.strip(),
                    category=line.category,
                    recipe_ids=[line.recipe_id],
                )
            )
            continue

        if key not in totals:
            slots.append(key)
            totals[key] = Decimal(0)
            firsts[key] = line
            categories[key] = line.category
            recipe_ids[key] = []
        totals[key] += to_decimal(line.quantity)
        if categories[key] is None:
            categories[key] = line.category
        if line.recipe_id not in recipe_ids[key]:
            recipe_ids[key].append(line.recipe_id)

    items: list[AggregatedItem] = []
    for slot in slots:
        if isinstance(slot, AggregatedItem):
            items.append(slot)
            continue
        first = firsts[slot]
        items.append(
            AggregatedItem(
                key=slot,
                name=first.ingredient_name.strip(),
                quantity=float(round2(totals[slot])),
                unit=first.unit.strip(),
                category=categories[slot],
                recipe_ids=recipe_ids[slot],
            )
        )

    logger.debug("Aggregated %d lines into %d items", len(lines), len(items))
    return items


def to_shopping_items(items: list[AggregatedItem]) -> list[ShoppingListItem]:
    now = datetime.now(tz=timezone.utc)
    return [
        ShoppingListItem(
            id=str(uuid.uuid4()),
            name=item.name,
            quantity=item.quantity,
            quantity_display=item.quantity_display,
            unit=item.unit,
            category=item.category,
            source_recipe_id=item.recipe_ids[0] if len(item.recipe_ids) == 1 else None,
            created_at=now,
        )
        for item in items
    ]
