class RecipeError(Exception):
    """Base class for recipe related failures."""


class DuplicateRecipeName(RecipeError):
    """Raised by a storage backend when another recipe already uses a name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"A recipe named '{name}' already exists.")
        self.name = name


class IncompleteRecipe(RecipeError):
    """Raised when committing a form that is missing a field or ingredients."""


__all__ = ["RecipeError", "DuplicateRecipeName", "IncompleteRecipe"]
