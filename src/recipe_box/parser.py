from __future__ import annotations
import re
from fractions import Fraction
from recipe_box.models import RecipeIngredientInput
from recipe_box.quantities import round2

DEFAULT_UNIT = "whole"

UNICODE_FRACTIONS = {
    "½": "1/2", "¼": "1/4", "¾": "3/4", "⅓": "1/3", "⅔": "2/3",
    "⅛": "1/8", "⅜": "3/8", "⅝": "5/8", "⅞": "7/8",
}

UNIT_ALIASES = {
    "cup": "cup", "cups": "cup", "c": "cup",
    "tablespoon": "tbsp", "tablespoons": "tbsp", "tbsp": "tbsp", "tbs": "tbsp", "tbsps": "tbsp",
    "teaspoon": "tsp", "teaspoons": "tsp", "tsp": "tsp", "tsps": "tsp",
    "gram": "g", "grams": "g", "g": "g",
    "kilogram": "kg", "kilograms": "kg", "kg": "kg",
    "milliliter": "ml", "milliliters": "ml", "millilitre": "ml", "millilitres": "ml", "ml": "ml",
    "liter": "l", "liters": "l", "litre": "l", "litres": "l", "l": "l",
    "ounce": "oz", "ounces": "oz", "oz": "oz",
    "pound": "lb", "pounds": "lb", "lb": "lb", "lbs": "lb",
    "clove": "clove", "cloves": "clove",
    "can": "can", "cans": "can",
    "slice": "slice", "slices": "slice",
    "stick": "stick", "sticks": "stick",
    "sprig": "sprig", "sprigs": "sprig",
    "bunch": "bunch", "bunches": "bunch",
    "pinch": "pinch", "pinches": "pinch",
    "dash": "dash", "dashes": "dash",
}

# phrase -> unit for quantities that cannot be measured or scaled
_TEXT_QUANTITIES = [
    (re.compile(r"\b(?P<q>(?:(?:a|one|\d+)\s+)?pinch(?:es)?)(?:\s+of)?\b", re.IGNORECASE), "pinch"),
    (re.compile(r"\b(?P<q>(?:(?:a|one|\d+)\s+)?dash(?:es)?)(?:\s+of)?\b", re.IGNORECASE), "dash"),
    (re.compile(r",?\s*\b(?P<q>to taste)\b", re.IGNORECASE), "to taste"),
    (re.compile(r",?\s*\b(?P<q>as needed)\b", re.IGNORECASE), "as needed"),
]

_NUMBER = r"\d+\s+\d+/\d+|\d+/\d+|\d+(?:\.\d+)?"
_QUANTITY_RE = re.compile(
    rf"^(?P<qty>{_NUMBER})(?:\s*(?:-|–|to)\s*(?P<qty2>{_NUMBER}))?\s*(?P<rest>.*)$"
)


def _clean(text: str) -> str:
    for symbol, ascii_frac in UNICODE_FRACTIONS.items():
        # "1½" -> "1 1/2"
        text = re.sub(rf"(\d){symbol}", rf"\1 {ascii_frac}", text)
        text = text.replace(symbol, ascii_frac)
    return " ".join(text.split())


def parse_number(token: str) -> Fraction:
    parts = token.split()
    if len(parts) == 2:
        return Fraction(parts[0]) + Fraction(parts[1])
    return Fraction(token)


def _split_name(rest: str) -> tuple[str, str | None]:
    rest = re.sub(r"^of\s+", "", rest.strip(), flags=re.IGNORECASE)
    name, _, note = rest.partition(",")
    return name.strip(), (note.strip() or None)


def _text_quantity(text: str, order_index: int) -> RecipeIngredientInput | None:
    for pattern, unit in _TEXT_QUANTITIES:
        match = pattern.search(text)
        if not match:
            continue
        display = match.group("q")
        name, note = _split_name(pattern.sub(" ", text, count=1))
        return RecipeIngredientInput(
            ingredient_name=name or text,
            quantity_display=display,
            unit=unit,
            order_index=order_index,
            notes=note,
        )
    return None


def parse_ingredient(text: str, order_index: int = 0) -> RecipeIngredientInput:
    """Parse a free-text ingredient such as '1 1/2 cups flour, sifted'.

    Quantities that cannot be measured ('a pinch of salt', 'pepper to taste')
    and lines without any leading number come back as text quantities.
    Ranges ('2-3 cloves') use the upper bound.
    """
    cleaned = _clean(text)

    text_line = _text_quantity(cleaned, order_index)
    if text_line is not None:
        return text_line

    match = _QUANTITY_RE.match(cleaned)
    quantity = None
    if match:
        try:
            quantity = parse_number(match.group("qty2") or match.group("qty"))
        except ZeroDivisionError:
            quantity = None
    if quantity is None or quantity <= 0:
        name, note = _split_name(cleaned)
        return RecipeIngredientInput(
            ingredient_name=name or cleaned,
            quantity_display="as needed",
            unit="as needed",
            order_index=order_index,
            notes=note,
        )

    rest = match.group("rest")
    unit = DEFAULT_UNIT
    tokens = rest.split(" ", 1)
    candidate = tokens[0].lower().strip(".,") if tokens else ""
    if candidate in UNIT_ALIASES:
        unit = UNIT_ALIASES[candidate]
        rest = tokens[1] if len(tokens) > 1 else ""

    name, note = _split_name(rest)
    return RecipeIngredientInput(
        ingredient_name=name or cleaned,
        quantity=float(round2(quantity.numerator / quantity.denominator)),
        unit=unit,
        order_index=order_index,
        notes=note,
    )


def parse_ingredients(lines: list[str]) -> list[RecipeIngredientInput]:
    return [parse_ingredient(line, order_index=i) for i, line in enumerate(lines) if line.strip()]
