from __future__ import annotations

import logging
import os
from typing import Iterable, Optional, Sequence

from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from .errors import DuplicateRecipeName
from .models import Recipe
from .storage import RecipeRepository

logger = logging.getLogger(__name__)


class FirestoreRecipeStorage(RecipeRepository):
    """GCP backed recipe storage using Firestore.

    Firestore has no unique indexes, so every write runs in a transaction
    that first looks for another document with the same name.
    """

    def __init__(
        self,
        *,
        project: Optional[str] = None,
        collection_name: str = "recipes",
        client: Optional[firestore.Client] = None,
    ) -> None:
        self._firestore_client = client if client is not None else firestore.Client(project=project)
        self._collection = self._firestore_client.collection(collection_name)

    @classmethod
    def from_env(cls) -> "FirestoreRecipeStorage":
        """Build a storage instance from environment variables."""

        project = os.environ.get("GCP_PROJECT")
        collection_name = os.environ.get("RECIPES_COLLECTION", "recipes")
        return cls(project=project, collection_name=collection_name)

    def list_recipes(self) -> Iterable[Recipe]:
        query = self._collection.order_by("name", direction=firestore.Query.ASCENDING)
        for doc in query.stream():
            data = doc.to_dict() or {}
            yield self._doc_to_recipe(doc.id, data)

    def get_recipe(self, recipe_id: str) -> Recipe:
        snapshot = self._collection.document(recipe_id).get()

        if not snapshot.exists:
            raise KeyError(f"Recipe '{recipe_id}' does not exist.")

        return self._doc_to_recipe(snapshot.id, snapshot.to_dict() or {})

    def add_recipe(
        self,
        *,
        name: str,
        about: str,
        ingredients: Sequence[str],
        instruction: str,
    ) -> Recipe:
        doc = {
            "name": name,
            "about": about,
            "ingredients": list(ingredients),
            "instruction": instruction,
        }
        doc_ref = self._collection.document()

        @firestore.transactional
        def write(transaction: firestore.Transaction) -> None:
            self._ensure_name_free(transaction, name, exclude_id=None)
            transaction.create(doc_ref, doc)

        write(self._firestore_client.transaction())
        logger.info("Added recipe %s (%r)", doc_ref.id, name)
        return self.get_recipe(doc_ref.id)

    def update_recipe(
        self,
        recipe_id: str,
        *,
        name: str,
        about: str,
        ingredients: Sequence[str],
        instruction: str,
    ) -> Recipe:
        doc_ref = self._collection.document(recipe_id)
        update_doc = {
            "name": name,
            "about": about,
            "ingredients": list(ingredients),
            "instruction": instruction,
        }

        @firestore.transactional
        def write(transaction: firestore.Transaction) -> None:
            snapshot = doc_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise KeyError(f"Recipe '{recipe_id}' does not exist.")
            self._ensure_name_free(transaction, name, exclude_id=recipe_id)
            transaction.update(doc_ref, update_doc)

        write(self._firestore_client.transaction())
        logger.info("Updated recipe %s (%r)", recipe_id, name)
        return self.get_recipe(recipe_id)

    def delete_recipe(self, recipe_id: str) -> None:
        doc_ref = self._collection.document(recipe_id)
        snapshot = doc_ref.get()

        if not snapshot.exists:
            raise KeyError(f"Recipe '{recipe_id}' does not exist.")

        doc_ref.delete()
        logger.info("Deleted recipe %s", recipe_id)

    def _ensure_name_free(
        self,
        transaction: firestore.Transaction,
        name: str,
        *,
        exclude_id: Optional[str],
    ) -> None:
        query = self._collection.where(filter=FieldFilter("name", "==", name)).limit(2)
        for doc in query.get(transaction=transaction):
            if doc.id != exclude_id:
                logger.warning("Rejected duplicate recipe name %r", name)
                raise DuplicateRecipeName(name)

    def _doc_to_recipe(self, doc_id: str, data: dict) -> Recipe:
        ingredients = data.get("ingredients")
        if isinstance(ingredients, list):
            parsed_ingredients = tuple(str(item) for item in ingredients)
        else:
            parsed_ingredients = ()

        return Recipe(
            id=doc_id,
            name=data.get("name", ""),
            about=data.get("about", ""),
            ingredients=parsed_ingredients,
            instruction=data.get("instruction", ""),
        )


__all__ = ["FirestoreRecipeStorage"]
