"""Service layer exception classes for Pie Costing.

This module defines all custom exceptions used by the service layer to provide
consistent error handling across the application. Every exception carries an
``http_status_code`` so a web layer can translate it without knowing the
exception types.

Exception Hierarchy:
    ServiceError (base, 500)
    ├── ValidationError (400)
    ├── IngredientReferenceError (400)
    ├── IngredientNotFound (404)
    ├── RecipeNotFound (404)
    ├── LaborRecordNotFound (404)
    ├── DuplicateIngredient (409)
    ├── DuplicateRecipe (409)
    ├── DuplicateLaborRecord (409)
    ├── IngredientInUse (409)
    ├── AliasConflict (409)
    └── DatabaseError (500)
"""

from typing import Any, Dict, Optional


class ServiceError(Exception):
    """Base exception for all service layer errors.

    All service-specific exceptions should inherit from this class.

    Args:
        message: Human-readable error message
        correlation_id: Optional ID tying the error to a request or import run
        **context: Additional structured context (entity IDs, names, etc.)
    """

    http_status_code = 500

    def __init__(self, message: str = "", correlation_id: Optional[str] = None, **context: Any):
        super().__init__(message)
        self.message = message
        self.correlation_id = correlation_id
        self.context: Dict[str, Any] = context

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error for logging or an API response."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "correlation_id": self.correlation_id,
            "http_status_code": self.http_status_code,
            "context": self.context,
        }


class ValidationError(ServiceError):
    """Raised when data validation fails.

    Each message names the field or line that failed, e.g.
    ``"Batch Size: Must be greater than zero"``.

    HTTP Status: 400 Bad Request
    """

    http_status_code = 400

    def __init__(self, errors: list, correlation_id: Optional[str] = None):
        self.errors = list(errors)
        error_msg = "; ".join(self.errors)
        super().__init__(f"Validation failed: {error_msg}", correlation_id=correlation_id)


class IngredientReferenceError(ServiceError):
    """Raised when a recipe line references an ingredient that does not resolve.

    This is a data-integrity error raised during cost calculation, not a
    lookup miss, so it maps to a client error rather than 404.

    HTTP Status: 400 Bad Request
    """

    http_status_code = 400

    def __init__(self, ingredient_id, reason: str = "not found"):
        self.ingredient_id = ingredient_id
        self.reason = reason
        super().__init__(
            f"Ingredient reference {ingredient_id!r} is invalid: {reason}",
            ingredient_id=ingredient_id,
        )


class IngredientNotFound(ServiceError):
    """Raised when an ingredient cannot be found by ID or name.

    HTTP Status: 404 Not Found
    """

    http_status_code = 404

    def __init__(self, identifier):
        self.identifier = identifier
        if isinstance(identifier, int):
            message = f"Ingredient with ID {identifier} not found"
        else:
            message = f"Ingredient '{identifier}' not found"
        super().__init__(message, identifier=identifier)


class RecipeNotFound(ServiceError):
    """Raised when a recipe cannot be found by ID.

    HTTP Status: 404 Not Found
    """

    http_status_code = 404

    def __init__(self, recipe_id: int):
        self.recipe_id = recipe_id
        super().__init__(f"Recipe with ID {recipe_id} not found", recipe_id=recipe_id)


class LaborRecordNotFound(ServiceError):
    """Raised when a labor record cannot be found by ID or pie name.

    HTTP Status: 404 Not Found
    """

    http_status_code = 404

    def __init__(self, identifier):
        self.identifier = identifier
        if isinstance(identifier, int):
            message = f"Labor record with ID {identifier} not found"
        else:
            message = f"Labor record for '{identifier}' not found"
        super().__init__(message, identifier=identifier)


class DuplicateIngredient(ServiceError):
    """Raised when an ingredient name already exists (case-insensitive).

    HTTP Status: 409 Conflict
    """

    http_status_code = 409

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Ingredient '{name}' already exists", name=name)


class DuplicateRecipe(ServiceError):
    """Raised when a recipe with the same pie name and variant already exists.

    HTTP Status: 409 Conflict
    """

    http_status_code = 409

    def __init__(self, pie_name: str, variant: str):
        self.pie_name = pie_name
        self.variant = variant
        super().__init__(
            f"Recipe '{pie_name}' ({variant}) already exists",
            pie_name=pie_name,
            variant=variant,
        )


class DuplicateLaborRecord(ServiceError):
    """Raised when a labor record for the pie name already exists.

    HTTP Status: 409 Conflict
    """

    http_status_code = 409

    def __init__(self, pie_name: str):
        self.pie_name = pie_name
        super().__init__(f"Labor record for '{pie_name}' already exists", pie_name=pie_name)


class IngredientInUse(ServiceError):
    """Raised when attempting to delete an ingredient that recipes reference.

    Args:
        identifier: Ingredient ID or name
        recipe_count: Number of recipes using the ingredient

    HTTP Status: 409 Conflict
    """

    http_status_code = 409

    def __init__(self, identifier, recipe_count: int):
        self.identifier = identifier
        self.recipe_count = recipe_count
        super().__init__(
            f"Cannot delete ingredient '{identifier}': used in {recipe_count} recipe(s)",
            identifier=identifier,
            recipe_count=recipe_count,
        )


class AliasConflict(ServiceError):
    """Raised when one alias would map to two different ingredients.

    HTTP Status: 409 Conflict
    """

    http_status_code = 409

    def __init__(self, alias: str, existing_id, new_id):
        self.alias = alias
        self.existing_id = existing_id
        self.new_id = new_id
        super().__init__(
            f"Alias '{alias}' already maps to ingredient {existing_id}, cannot map to {new_id}",
            alias=alias,
        )


class DatabaseError(ServiceError):
    """Raised when a database operation fails.

    HTTP Status: 500 Server Error
    """

    http_status_code = 500

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")
