"""
Recipe models for pie costing.

This module contains:
- Recipe: Aggregate root holding batch size, labor rate, markup and the
  calculated cost/price fields
- RecipeIngredient: Ingredient line (ingredient reference, quantity, unit)
- RecipeLaborInput: Itemized labor line (workers x hours per worker)

The calculated fields are written only through apply_breakdown(); the
recipe service runs the cost calculator and applies its result before
every flush.
"""

from sqlalchemy import (
    Column,
    String,
    Integer,
    Numeric,
    Text,
    DateTime,
    ForeignKey,
    Index,
    CheckConstraint,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .base import BaseModel
from pie_costing.utils.constants import DEFAULT_VARIANT
from pie_costing.utils.datetime_utils import utc_now


class Recipe(BaseModel):
    """
    Recipe model representing one costed pie variant.

    Attributes:
        pie_name: Product name (e.g., "Chicken Mayonnaise")
        variant: Named version of the product (e.g., "Standard", "Mini")
        batch_size: Number of pies one batch yields
        labor_hourly_rate: Rate applied to every labor input line
        markup_percentage: Premium over cost per pie (10 means 10%)
        notes: Additional notes
        total_ingredient_cost: Calculated, 2 dp
        total_labor_cost: Calculated, 2 dp
        total_batch_cost: Calculated, 2 dp
        cost_per_pie: Calculated, 2 dp
        selling_price: Calculated, 2 dp
        last_calculated: When the calculated fields were last refreshed
    """

    __tablename__ = "recipes"

    # Identity
    pie_name = Column(String(200), nullable=False, index=True)
    variant = Column(String(100), nullable=False, default=DEFAULT_VARIANT)

    # Inputs
    batch_size = Column(Integer, nullable=False)
    labor_hourly_rate = Column(Numeric(10, 4), nullable=False, default=0)
    markup_percentage = Column(Numeric(10, 4), nullable=False, default=0)
    notes = Column(Text, nullable=True)

    # Calculated fields
    total_ingredient_cost = Column(Numeric(12, 2), nullable=False, default=0)
    total_labor_cost = Column(Numeric(12, 2), nullable=False, default=0)
    total_batch_cost = Column(Numeric(12, 2), nullable=False, default=0)
    cost_per_pie = Column(Numeric(12, 2), nullable=False, default=0)
    selling_price = Column(Numeric(12, 2), nullable=False, default=0)
    last_calculated = Column(DateTime, nullable=True)

    # Relationships
    recipe_ingredients = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.position",
        lazy="selectin",
    )
    labor_inputs = relationship(
        "RecipeLaborInput",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeLaborInput.position",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("pie_name", "variant", name="uq_recipe_pie_name_variant"),
        CheckConstraint("batch_size > 0", name="ck_recipe_batch_size_positive"),
        CheckConstraint("labor_hourly_rate >= 0", name="ck_recipe_labor_rate_non_negative"),
        CheckConstraint("markup_percentage >= 0", name="ck_recipe_markup_non_negative"),
        Index("idx_recipe_pie_name", "pie_name"),
    )

    def __repr__(self) -> str:
        """String representation of recipe."""
        return (
            f"Recipe(id={self.id}, pie_name='{self.pie_name}', variant='{self.variant}', "
            f"selling_price={self.selling_price})"
        )

    @property
    def display_name(self) -> str:
        """Pie name with variant, e.g. 'Venison - Mini'."""
        return f"{self.pie_name} - {self.variant}"

    @property
    def calculated_costs(self) -> dict:
        """The four stored cost figures as a dictionary."""
        return {
            "total_ingredient_cost": self.total_ingredient_cost,
            "total_labor_cost": self.total_labor_cost,
            "total_batch_cost": self.total_batch_cost,
            "cost_per_pie": self.cost_per_pie,
        }

    def apply_breakdown(self, breakdown) -> None:
        """
        Store a calculated cost breakdown on this recipe.

        Args:
            breakdown: CostBreakdown returned by calculate_recipe_costs()
        """
        self.total_ingredient_cost = breakdown.total_ingredient_cost
        self.total_labor_cost = breakdown.total_labor_cost
        self.total_batch_cost = breakdown.total_batch_cost
        self.cost_per_pie = breakdown.cost_per_pie
        self.selling_price = breakdown.selling_price
        self.last_calculated = utc_now()

    def to_input_dict(self) -> dict:
        """
        Return the recipe's current inputs in the service's dictionary format.

        Used to merge partial updates onto the stored recipe before the
        merged set is validated and recalculated.
        """
        return {
            "pie_name": self.pie_name,
            "variant": self.variant,
            "batch_size": self.batch_size,
            "labor_hourly_rate": self.labor_hourly_rate,
            "markup_percentage": self.markup_percentage,
            "notes": self.notes,
            "ingredients": [
                {
                    "ingredient_id": line.ingredient_id,
                    "quantity": line.quantity,
                    "unit": line.unit,
                }
                for line in self.recipe_ingredients
            ],
            "labor_inputs": [
                {
                    "workers": labor_input.workers,
                    "hours_per_worker": labor_input.hours_per_worker,
                }
                for labor_input in self.labor_inputs
            ],
        }

    def to_dict(self, include_relationships: bool = False) -> dict:
        """
        Convert recipe to dictionary.

        Args:
            include_relationships: If True, include ingredient and labor lines

        Returns:
            Dictionary representation with a nested calculated_costs block
        """
        result = super().to_dict(include_relationships)
        result["calculated_costs"] = {
            key: str(value) if value is not None else None
            for key, value in self.calculated_costs.items()
        }
        return result


class RecipeIngredient(BaseModel):
    """
    Ingredient line of a recipe.

    Attributes:
        recipe_id: Foreign key to Recipe
        ingredient_id: Foreign key to Ingredient
        quantity: Amount used per batch, in the ingredient's unit
        unit: Unit of the quantity (must match the ingredient's unit)
        position: Display order within the recipe
    """

    __tablename__ = "recipe_ingredients"

    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    ingredient_id = Column(
        Integer, ForeignKey("ingredients.id", ondelete="RESTRICT"), nullable=False
    )

    quantity = Column(Numeric(10, 4), nullable=False)
    unit = Column(String(50), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    recipe = relationship("Recipe", back_populates="recipe_ingredients")
    ingredient = relationship("Ingredient", back_populates="recipe_ingredients", lazy="joined")

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_recipe_ingredient_quantity_non_negative"),
        Index("idx_recipe_ingredient_recipe", "recipe_id"),
        Index("idx_recipe_ingredient_ingredient", "ingredient_id"),
    )

    def __repr__(self) -> str:
        """String representation of recipe ingredient."""
        return (
            f"RecipeIngredient(recipe_id={self.recipe_id}, "
            f"ingredient_id={self.ingredient_id}, "
            f"quantity={self.quantity}, unit='{self.unit}')"
        )


class RecipeLaborInput(BaseModel):
    """
    Itemized labor line of a recipe.

    Attributes:
        recipe_id: Foreign key to Recipe
        workers: Number of workers (>= 1)
        hours_per_worker: Hours each worker spends on the batch (>= 0)
        position: Display order within the recipe
    """

    __tablename__ = "recipe_labor_inputs"

    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    workers = Column(Integer, nullable=False)
    hours_per_worker = Column(Numeric(10, 4), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    recipe = relationship("Recipe", back_populates="labor_inputs")

    __table_args__ = (
        CheckConstraint("workers >= 1", name="ck_recipe_labor_workers_positive"),
        CheckConstraint("hours_per_worker >= 0", name="ck_recipe_labor_hours_non_negative"),
        Index("idx_recipe_labor_input_recipe", "recipe_id"),
    )

    def __repr__(self) -> str:
        """String representation of labor input."""
        return (
            f"RecipeLaborInput(recipe_id={self.recipe_id}, workers={self.workers}, "
            f"hours_per_worker={self.hours_per_worker})"
        )
