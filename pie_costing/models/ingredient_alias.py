"""
IngredientAlias model for alternate ingredient names.

Spreadsheets name ingredients inconsistently ("Deeg" for "Master Puff",
"Garlic Flakes" for "Garlic"). Aliases map those names onto the canonical
ingredient so bulk imports resolve them through one validated table.
"""

from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship

from .base import BaseModel


class IngredientAlias(BaseModel):
    """
    IngredientAlias model for storing alternative names for ingredients.

    Attributes:
        ingredient_id: Foreign key to Ingredient
        alias: Normalized alternative name (unique across all ingredients)
    """

    __tablename__ = "ingredient_aliases"

    ingredient_id = Column(
        Integer, ForeignKey("ingredients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    alias = Column(String(200), nullable=False, unique=True, index=True)

    ingredient = relationship("Ingredient", back_populates="aliases")

    def __repr__(self) -> str:
        """String representation of alias."""
        return f"IngredientAlias(id={self.id}, alias='{self.alias}', ingredient_id={self.ingredient_id})"
