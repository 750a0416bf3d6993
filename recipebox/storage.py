from __future__ import annotations

from typing import Iterable, Protocol, Sequence

from .models import Recipe


class RecipeRepository(Protocol):
    """Protocol describing the behaviour required by the web layer."""

    def list_recipes(self) -> Iterable[Recipe]:
        """Return an iterable of stored recipes ordered by name."""

    def get_recipe(self, recipe_id: str) -> Recipe:
        """Return a single recipe or raise :class:`KeyError` if missing."""

    def add_recipe(
        self,
        *,
        name: str,
        about: str,
        ingredients: Sequence[str],
        instruction: str,
    ) -> Recipe:
        """Persist a new recipe and return the stored instance.

        Raises :class:`~recipebox.errors.DuplicateRecipeName` when the name is
        already taken.
        """

    def update_recipe(
        self,
        recipe_id: str,
        *,
        name: str,
        about: str,
        ingredients: Sequence[str],
        instruction: str,
    ) -> Recipe:
        """Rewrite every field of an existing recipe and return the new representation."""

    def delete_recipe(self, recipe_id: str) -> None:
        """Remove a recipe or raise :class:`KeyError` if missing."""


__all__ = ["RecipeRepository"]
