"""
Constants for the Pie Costing application.

This module defines all system-wide constants including:
- Application metadata
- Units of measure and ingredient categories
- Validation limits and money precision
- Bulk import column headers
- Error messages
"""

from decimal import Decimal
from typing import Dict, List

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "Pie Costing"
APP_VERSION = "0.1.0"

# ============================================================================
# Units of Measure
# ============================================================================

WEIGHT_UNITS: List[str] = [
    "g",  # Gram
    "kg",  # Kilogram
]

VOLUME_UNITS: List[str] = [
    "ml",  # Milliliter
    "l",  # Liter
]

COUNT_UNITS: List[str] = [
    "each",
    "dozen",
    "pack",
]

ALL_UNITS: List[str] = WEIGHT_UNITS + VOLUME_UNITS + COUNT_UNITS

# ============================================================================
# Ingredient Categories
# ============================================================================

INGREDIENT_CATEGORIES: List[str] = [
    "Produce",
    "Meat",
    "Dairy",
    "Pantry",
    "Spices",
    "Other",
]

DEFAULT_INGREDIENT_CATEGORY = "Other"

# ============================================================================
# Recipe Defaults
# ============================================================================

DEFAULT_VARIANT = "Standard"

# ============================================================================
# Validation Constants
# ============================================================================

# String length limits
MAX_NAME_LENGTH = 200
MAX_UNIT_LENGTH = 50
MAX_SUPPLIER_LENGTH = 200
MAX_VARIANT_LENGTH = 100
MAX_NOTES_LENGTH = 2000

# Numeric limits
MAX_QUANTITY = 999999.99
MAX_COST = 999999.99
MAX_BATCH_SIZE = 1000000
MAX_RECORD_ID = 2**63 - 1
MAX_WORKERS = 1000
MAX_HOURS = 10000
MAX_MINUTES = 100000
MAX_MARKUP = 10000

# Decimal places kept by the Numeric(10, 4) input columns
MAX_INPUT_DECIMAL_PLACES = 4

# Money precision for Decimal.quantize()
CURRENCY_QUANTUM = Decimal("0.01")

MINUTES_PER_HOUR = Decimal("60")

# ============================================================================
# Database Constants
# ============================================================================

DATABASE_FILENAME = "pie_costing.db"

# ============================================================================
# Bulk Import Column Headers
# ============================================================================

IMPORT_INGREDIENT_NAME = "Ingredient Name"
IMPORT_INGREDIENT_UNIT = "Unit"
IMPORT_INGREDIENT_COST = "Cost per Unit (R)"
IMPORT_INGREDIENT_SUPPLIER = "Supplier"
IMPORT_INGREDIENT_CATEGORY = "Category"

IMPORT_LABOR_PIE_NAME = "Pie Name"
IMPORT_LABOR_COST_PER_HOUR = "Cost per Hour"
IMPORT_LABOR_MINUTES_PER_PIE = "Minutes per Pie"

# Labor sheets name pies in Afrikaans; recipe sheets use the English names
DEFAULT_PIE_NAME_MAP: Dict[str, str] = {
    "Kaas Grillers": "Cheese griller",
    "Spinasie en Feta": "Spinach and Feta Pies",
    "Beefstuk en Niertjies": "Steak and Kidney Pies",
    "Cornish": "Cornish Pies",
    "Hoender en Mayo": "Chicken Mayonnaise",
    "Kerrie Lam": "Lamb Curry Pies",
    "Pepper Steak": "Pepper Steak Pies",
    "Wild Pastei": "Venison Pies",
    "Snoepies": "Basic Mince Pies",
}

# Recipe sheet ingredient name -> ingredient catalog name
DEFAULT_INGREDIENT_ALIASES: Dict[str, str] = {
    "Garlic Flakes": "Garlic",
    "Deeg": "Master Puff",
}

MINI_VARIANT = "Mini"
MINI_SUFFIX_SEPARATOR = " - "

# ============================================================================
# Error Messages
# ============================================================================

ERROR_REQUIRED_FIELD = "This field is required"
ERROR_INVALID_NUMBER = "Please enter a valid number"
ERROR_INVALID_INTEGER = "Please enter a whole number"
ERROR_INVALID_POSITIVE = "Must be greater than zero"
ERROR_INVALID_NON_NEGATIVE = "Must be zero or greater"
ERROR_TOO_MANY_DECIMALS = "Must have at most {places} decimal places"
ERROR_INVALID_UNIT = "Invalid unit type"
ERROR_INVALID_CATEGORY = "Invalid category"
ERROR_EMPTY_LIST = "At least one entry is required"
