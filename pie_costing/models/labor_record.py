"""
LaborRecord model for per-product labor rates.

One record per pie type: an hourly labor rate and the minutes it takes to
make one pie. The derived labor_cost_per_pie is refreshed by the labor
service whenever either input changes.
"""

from sqlalchemy import Column, String, Numeric

from .base import BaseModel


class LaborRecord(BaseModel):
    """
    Per-product labor costing record.

    Attributes:
        pie_name: Pie type this rate applies to (unique)
        cost_per_hour: Hourly labor rate
        minutes_per_pie: Labor minutes needed for one pie
        labor_cost_per_pie: cost_per_hour * minutes_per_pie / 60 (derived)
    """

    __tablename__ = "labor_records"

    pie_name = Column(String(200), nullable=False, unique=True, index=True)
    cost_per_hour = Column(Numeric(10, 4), nullable=False)
    minutes_per_pie = Column(Numeric(10, 4), nullable=False)
    labor_cost_per_pie = Column(Numeric(10, 4), nullable=False, default=0)

    def recalculate(self) -> None:
        """Refresh labor_cost_per_pie from the current rate and minutes."""
        from pie_costing.services.cost_calculator import calculate_labor_cost_per_pie

        self.labor_cost_per_pie = calculate_labor_cost_per_pie(
            self.cost_per_hour, self.minutes_per_pie
        )

    def __repr__(self) -> str:
        """String representation of labor record."""
        return (
            f"LaborRecord(id={self.id}, pie_name='{self.pie_name}', "
            f"labor_cost_per_pie={self.labor_cost_per_pie})"
        )
