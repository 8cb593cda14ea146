"""
Database models package.

This package contains all SQLAlchemy ORM models for the application.
"""

from .base import Base, BaseModel
from .ingredient import Ingredient
from .ingredient_alias import IngredientAlias
from .labor_record import LaborRecord
from .recipe import Recipe, RecipeIngredient, RecipeLaborInput

__all__ = [
    "Base",
    "BaseModel",
    "Ingredient",
    "IngredientAlias",
    "LaborRecord",
    "Recipe",
    "RecipeIngredient",
    "RecipeLaborInput",
]
