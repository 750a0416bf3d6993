import logging
import os
from typing import Optional

import click
from flask import Flask, flash, redirect, render_template, request, url_for

from .errors import DuplicateRecipeName, IncompleteRecipe
from .forms import RecipeForm
from .models import Recipe
from .sql_storage import SQLAlchemyRecipeStorage
from .storage import RecipeRepository

try:
    from .gcp_storage import FirestoreRecipeStorage
except ImportError:  # pragma: no cover - allows running tests without optional deps
    FirestoreRecipeStorage = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

INCOMPLETE_MESSAGE = "Please fill in every field and add at least one ingredient."


def storage_from_env() -> RecipeRepository:
    """Pick the storage backend named by ``RECIPES_BACKEND``."""

    backend = os.environ.get("RECIPES_BACKEND", "sqlite").lower()

    if backend == "sqlite":
        return SQLAlchemyRecipeStorage.from_env()

    if backend == "firestore":
        if FirestoreRecipeStorage is None:
            raise RuntimeError(
                "google-cloud-firestore is not installed. Install the firestore extra "
                "or use the sqlite backend."
            )
        return FirestoreRecipeStorage.from_env()

    raise RuntimeError(f"Unknown RECIPES_BACKEND '{backend}'. Use 'sqlite' or 'firestore'.")


def create_app(storage: Optional[RecipeRepository] = None) -> Flask:
    """Create and configure the Flask application.

    Parameters
    ----------
    storage:
        Optional recipe repository. When ``None`` the backend is chosen from
        environment variables, see :func:`storage_from_env`.
    """

    app = Flask(__name__)
    app.secret_key = os.environ.get("FLASK_SECRET_KEY", "development-secret-change-me")

    if storage is None:
        storage = storage_from_env()
    app.config["RECIPE_STORAGE"] = storage
    logger.info("Using recipe storage %s", type(storage).__name__)

    def render_form(form: RecipeForm, recipe: Optional[Recipe] = None) -> str:
        return render_template(
            "edit_recipe.html",
            form=form,
            recipe=recipe,
            title="Edit Recipe" if recipe else "New Recipe",
        )

    def handle_form_post(form: RecipeForm, recipe: Optional[Recipe] = None):
        storage_backend: RecipeRepository = app.config["RECIPE_STORAGE"]
        action = request.form.get("action", "save")
        remove_value = request.form.get("remove_ingredient")

        if remove_value is not None:
            form.remove_ingredient(remove_value)
            return render_form(form, recipe)

        if action == "add_ingredient":
            form.add_pending_ingredient()
            return render_form(form, recipe)

        try:
            saved = form.commit(storage_backend, recipe)
        except IncompleteRecipe:
            flash(INCOMPLETE_MESSAGE, "error")
            return render_form(form, recipe)
        except DuplicateRecipeName as exc:
            flash(str(exc), "error")
            return render_form(form, recipe)

        verb = "updated" if recipe else "saved"
        flash(f"Recipe '{saved.name}' {verb}.", "success")
        return redirect(url_for("index", selected=saved.id))

    @app.get("/")
    def index() -> str:
        recipes = list(app.config["RECIPE_STORAGE"].list_recipes())
        selected_id = request.args.get("selected")
        selected_recipe: Recipe | None = None

        if recipes:
            selected_recipe = next((recipe for recipe in recipes if recipe.id == selected_id), None)
            if selected_recipe is None:
                selected_recipe = recipes[0]
            selected_id = selected_recipe.id

        return render_template(
            "index.html",
            recipes=recipes,
            selected_recipe=selected_recipe,
            selected_id=selected_id,
            title="Recipes",
        )

    @app.get("/recipes/new")
    def new_recipe() -> str:
        return render_form(RecipeForm.initialize())

    @app.post("/recipes")
    def create_recipe():
        return handle_form_post(RecipeForm.from_form(request.form))

    @app.get("/recipes/<recipe_id>/edit")
    def edit_recipe(recipe_id: str):
        storage_backend: RecipeRepository = app.config["RECIPE_STORAGE"]

        try:
            recipe = storage_backend.get_recipe(recipe_id)
        except KeyError:
            flash("Recipe not found.", "error")
            return redirect(url_for("index"))

        return render_form(RecipeForm.initialize(recipe), recipe)

    @app.post("/recipes/<recipe_id>")
    def update_recipe(recipe_id: str):
        storage_backend: RecipeRepository = app.config["RECIPE_STORAGE"]

        try:
            recipe = storage_backend.get_recipe(recipe_id)
            return handle_form_post(RecipeForm.from_form(request.form), recipe)
        except KeyError:
            flash("Recipe not found.", "error")
            return redirect(url_for("index"))

    @app.post("/recipes/<recipe_id>/delete")
    def delete_recipe(recipe_id: str):
        storage_backend: RecipeRepository = app.config["RECIPE_STORAGE"]
        try:
            storage_backend.delete_recipe(recipe_id)
        except KeyError:
            flash("Recipe not found.", "error")
        else:
            flash("Recipe deleted.", "success")
        return redirect(url_for("index"))

    @app.cli.command("init-db")
    def init_db() -> None:
        """Create the recipe tables for the configured SQL database."""
        storage_backend = app.config["RECIPE_STORAGE"]
        create_tables = getattr(storage_backend, "create_tables", None)
        if create_tables is None:
            click.echo(f"{type(storage_backend).__name__} needs no table setup.")
            return
        create_tables()
        click.echo("Recipe tables created.")

    return app


__all__ = ["create_app", "storage_from_env", "Recipe"]
