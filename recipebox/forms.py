from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from werkzeug.datastructures import MultiDict

from .errors import IncompleteRecipe
from .models import Recipe
from .storage import RecipeRepository

logger = logging.getLogger(__name__)


@dataclass
class RecipeForm:
    """Editable, not yet saved copy of a recipe's fields.

    The page posts the whole staged state back on every action, so a form is
    rebuilt with :meth:`from_form` for each request and discarded after
    :meth:`commit`.
    """

    name: str = ""
    about: str = ""
    instruction: str = ""
    ingredients: List[str] = field(default_factory=list)
    pending_ingredient: str = ""

    @classmethod
    def initialize(cls, existing: Optional[Recipe] = None) -> "RecipeForm":
        if existing is None:
            return cls()
        return cls(
            name=existing.name,
            about=existing.about,
            instruction=existing.instruction,
            ingredients=list(existing.ingredients),
        )

    @classmethod
    def from_form(cls, data: MultiDict) -> "RecipeForm":
        """Rebuild the staged state from submitted form data.

        Ingredients arrive as repeated ``ingredients`` fields in display order.
        """

        ingredients = data.getlist("ingredients")
        return cls(
            name=data.get("name", "").strip(),
            about=data.get("about", "").strip(),
            instruction=data.get("instruction", "").strip(),
            ingredients=[item for item in ingredients if item],
            pending_ingredient=data.get("pending_ingredient", "").strip(),
        )

    def add_pending_ingredient(self) -> None:
        if not self.pending_ingredient:
            return
        self.ingredients.append(self.pending_ingredient)
        self.pending_ingredient = ""

    def remove_ingredient(self, value: str) -> None:
        # Duplicates are allowed, only the first match goes.
        if value in self.ingredients:
            self.ingredients.remove(value)

    def is_valid(self) -> bool:
        return bool(self.name and self.about and self.instruction and self.ingredients)

    def commit(self, storage: RecipeRepository, existing: Optional[Recipe] = None) -> Recipe:
        """Write the staged fields through ``storage``.

        Updates ``existing`` in full when given, otherwise inserts a new
        recipe. Storage errors such as a duplicate name propagate unchanged.
        """

        if not self.is_valid():
            raise IncompleteRecipe("Recipe is missing a field or has no ingredients.")

        fields = dict(
            name=self.name,
            about=self.about,
            ingredients=list(self.ingredients),
            instruction=self.instruction,
        )

        if existing is not None:
            logger.debug("Committing edits to recipe %s", existing.id)
            return storage.update_recipe(existing.id, **fields)

        logger.debug("Committing new recipe %r", self.name)
        return storage.add_recipe(**fields)


__all__ = ["RecipeForm"]
