"""
Ingredient model for the ingredient cost catalog.

An ingredient records what one unit of a raw material costs, e.g.
"Cake Flour" at R15.50 per kg. Recipes reference ingredients by ID and
never own them.
"""

from sqlalchemy import Column, String, Text, Numeric, Index, CheckConstraint
from sqlalchemy.orm import relationship

from .base import BaseModel
from pie_costing.utils.constants import DEFAULT_INGREDIENT_CATEGORY


class Ingredient(BaseModel):
    """
    Ingredient model representing catalog cost records.

    Attributes:
        name: Display name (e.g., "Cake Flour")
        slug: Normalized name; unique, so names are unique case-insensitively
        unit_of_measure: Unit the cost applies to (e.g., "kg", "l", "each")
        cost_per_unit: Cost of one unit of measure (>= 0)
        supplier: Optional supplier name
        category: Catalog category (e.g., "Pantry", "Meat")
        notes: Additional notes
    """

    __tablename__ = "ingredients"

    name = Column(String(200), nullable=False)
    slug = Column(String(200), nullable=False, unique=True, index=True)
    unit_of_measure = Column(String(50), nullable=False)
    cost_per_unit = Column(Numeric(10, 4), nullable=False, default=0)
    supplier = Column(String(200), nullable=True)
    category = Column(String(100), nullable=False, default=DEFAULT_INGREDIENT_CATEGORY)
    notes = Column(Text, nullable=True)

    # Relationships
    recipe_ingredients = relationship(
        "RecipeIngredient", back_populates="ingredient", lazy="select", passive_deletes=True
    )
    aliases = relationship(
        "IngredientAlias",
        back_populates="ingredient",
        cascade="all, delete-orphan",
        lazy="select",
    )

    __table_args__ = (
        CheckConstraint("cost_per_unit >= 0", name="ck_ingredient_cost_non_negative"),
        Index("idx_ingredient_category", "category"),
    )

    def __repr__(self) -> str:
        """String representation of ingredient."""
        return (
            f"Ingredient(id={self.id}, name='{self.name}', "
            f"cost_per_unit={self.cost_per_unit}/{self.unit_of_measure})"
        )
