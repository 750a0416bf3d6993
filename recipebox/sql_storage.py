from __future__ import annotations

import logging
import os
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import JSON, Integer, String, Text, create_engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from .errors import DuplicateRecipeName
from .models import Recipe
from .storage import RecipeRepository

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///recipes.db"


class Base(DeclarativeBase):
    pass


class RecipeRow(Base):
    __tablename__ = "recipes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), unique=True, index=True, nullable=False)
    about: Mapped[str] = mapped_column(Text, nullable=False)
    ingredients: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    instruction: Mapped[str] = mapped_column(Text, nullable=False)


def _row_to_recipe(row: RecipeRow) -> Recipe:
    return Recipe(
        id=str(row.id),
        name=row.name,
        about=row.about,
        ingredients=tuple(row.ingredients or ()),
        instruction=row.instruction,
    )


def _parse_id(recipe_id: str) -> int:
    try:
        return int(recipe_id)
    except (TypeError, ValueError):
        raise KeyError(f"Recipe '{recipe_id}' does not exist.") from None


class SQLAlchemyRecipeStorage(RecipeRepository):
    """Local recipe storage backed by SQLAlchemy, SQLite by default."""

    def __init__(self, *, database_url: str = DEFAULT_DATABASE_URL, echo: bool = False) -> None:
        self._engine = create_engine(database_url, echo=echo)
        self._sessions = sessionmaker(bind=self._engine, expire_on_commit=False)
        self.create_tables()

    @classmethod
    def from_env(cls) -> "SQLAlchemyRecipeStorage":
        """Build a storage instance from environment variables."""

        database_url = os.environ.get("RECIPES_DATABASE_URL", DEFAULT_DATABASE_URL)
        return cls(database_url=database_url)

    def create_tables(self) -> None:
        Base.metadata.create_all(self._engine)

    def list_recipes(self) -> Iterable[Recipe]:
        with self._sessions() as session:
            rows = session.scalars(select(RecipeRow).order_by(RecipeRow.name)).all()
            recipes = [_row_to_recipe(row) for row in rows]
        yield from recipes

    def get_recipe(self, recipe_id: str) -> Recipe:
        with self._sessions() as session:
            row = self._get_row(session, recipe_id)
            return _row_to_recipe(row)

    def add_recipe(
        self,
        *,
        name: str,
        about: str,
        ingredients: Sequence[str],
        instruction: str,
    ) -> Recipe:
        row = RecipeRow(
            name=name,
            about=about,
            ingredients=list(ingredients),
            instruction=instruction,
        )
        with self._sessions() as session:
            session.add(row)
            self._commit(session, name)
            logger.info("Added recipe %s (%r)", row.id, name)
            return _row_to_recipe(row)

    def update_recipe(
        self,
        recipe_id: str,
        *,
        name: str,
        about: str,
        ingredients: Sequence[str],
        instruction: str,
    ) -> Recipe:
        with self._sessions() as session:
            row = self._get_row(session, recipe_id)
            row.name = name
            row.about = about
            row.ingredients = list(ingredients)
            row.instruction = instruction
            self._commit(session, name)
            logger.info("Updated recipe %s (%r)", row.id, name)
            return _row_to_recipe(row)

    def delete_recipe(self, recipe_id: str) -> None:
        with self._sessions() as session:
            row = self._get_row(session, recipe_id)
            session.delete(row)
            session.commit()
        logger.info("Deleted recipe %s", recipe_id)

    def _get_row(self, session: Session, recipe_id: str) -> RecipeRow:
        row: Optional[RecipeRow] = session.get(RecipeRow, _parse_id(recipe_id))
        if row is None:
            raise KeyError(f"Recipe '{recipe_id}' does not exist.")
        return row

    def _commit(self, session: Session, name: str) -> None:
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            if "UNIQUE" not in str(exc.orig).upper():
                raise
            logger.warning("Rejected duplicate recipe name %r", name)
            raise DuplicateRecipeName(name) from exc


__all__ = ["SQLAlchemyRecipeStorage", "RecipeRow", "DEFAULT_DATABASE_URL"]
