"""Utility modules for the Pie Costing application."""
