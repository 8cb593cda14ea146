"""Pie Costing - recipe cost and selling price calculation."""

__version__ = "0.1.0"
