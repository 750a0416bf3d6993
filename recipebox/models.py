from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class Recipe:
    """Immutable snapshot of a stored recipe."""

    id: str
    name: str
    about: str
    ingredients: Tuple[str, ...] = field(default_factory=tuple)
    instruction: str = ""


__all__ = ["Recipe"]
