"""Services package - Business logic layer for Pie Costing.

This package contains all service modules that provide business logic
and database operations for the application.

Architecture:
- Services: Stateless functions organized by domain (ingredient, labor, recipe)
- Transactions: Managed via session_scope() context manager
- Exceptions: Consistent error handling via ServiceError hierarchy
- Validation: Input validation before database operations

Service Modules:
- cost_calculator: Pure recipe cost calculation (no database access)
- ingredient_service: Ingredient catalog CRUD and cost lookup
- labor_service: Per-product labor rate records
- recipe_service: Recipe management and cost recalculation
- alias_service: Validated ingredient name lookup for imports
- import_service: Bulk import of ingredients, labor rates and recipes

Infrastructure:
- exceptions: Custom exception classes for service layer errors
- database: Session management and database utilities
- logging_utils: Structured operation logging
"""

from . import (
    exceptions,
    database,
    cost_calculator,
    ingredient_service,
    labor_service,
    recipe_service,
    alias_service,
    import_service,
)

__all__ = [
    "exceptions",
    "database",
    "cost_calculator",
    "ingredient_service",
    "labor_service",
    "recipe_service",
    "alias_service",
    "import_service",
]
