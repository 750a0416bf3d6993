from __future__ import annotations

from pathlib import Path
import sys
import uuid

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from recipebox import create_app
from recipebox.errors import DuplicateRecipeName
from recipebox.models import Recipe


class InMemoryRecipeStorage:
    """Simple storage backend used for tests."""

    def __init__(self) -> None:
        self._recipes: dict[str, Recipe] = {}

    def list_recipes(self):
        return sorted(self._recipes.values(), key=lambda recipe: recipe.name)

    def get_recipe(self, recipe_id: str) -> Recipe:
        return self._recipes[recipe_id]

    def add_recipe(self, *, name, about, ingredients, instruction) -> Recipe:
        self._check_name(name, exclude_id=None)
        recipe = Recipe(
            id=uuid.uuid4().hex,
            name=name,
            about=about,
            ingredients=tuple(ingredients),
            instruction=instruction,
        )
        self._recipes[recipe.id] = recipe
        return recipe

    def update_recipe(self, recipe_id: str, *, name, about, ingredients, instruction) -> Recipe:
        self.get_recipe(recipe_id)
        self._check_name(name, exclude_id=recipe_id)
        recipe = Recipe(
            id=recipe_id,
            name=name,
            about=about,
            ingredients=tuple(ingredients),
            instruction=instruction,
        )
        self._recipes[recipe_id] = recipe
        return recipe

    def delete_recipe(self, recipe_id: str) -> None:
        del self._recipes[recipe_id]

    def _check_name(self, name: str, *, exclude_id) -> None:
        for recipe in self._recipes.values():
            if recipe.name == name and recipe.id != exclude_id:
                raise DuplicateRecipeName(name)


@pytest.fixture
def storage() -> InMemoryRecipeStorage:
    return InMemoryRecipeStorage()


@pytest.fixture
def client(storage):
    app = create_app(storage=storage)
    app.config.update(TESTING=True)
    return app.test_client()
