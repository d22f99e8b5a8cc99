from __future__ import annotations


class RecipeBoxError(Exception):
    pass


class InputValidationError(RecipeBoxError):
    """Bad or out-of-range input; ``field`` names the offending field."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class MalformedRecipeError(RecipeBoxError):
    pass


class MalformedIngredientError(MalformedRecipeError):
    pass


class NotFoundError(RecipeBoxError):
    pass


class AuthorizationError(RecipeBoxError):
    pass
