"""Tests for structured service logging."""

import logging

import pytest

from pie_costing.services import recipe_service
from pie_costing.services.exceptions import IngredientReferenceError
from pie_costing.services.logging_utils import get_service_logger, log_operation


def test_service_logger_name():
    assert get_service_logger("pie_costing.services.recipe_service").name == (
        "pie_costing.services.recipe_service"
    )
    assert get_service_logger("import_service").name == "pie_costing.services.import_service"


def test_log_operation_attaches_context(caplog):
    logger = get_service_logger("test_service")

    with caplog.at_level(logging.INFO, logger="pie_costing.services"):
        log_operation(logger, operation="create_recipe", outcome="success", recipe_id=7)

    record = caplog.records[-1]
    assert record.getMessage() == "create_recipe: success"
    assert record.operation == "create_recipe"
    assert record.outcome == "success"
    assert record.recipe_id == 7


def test_log_operation_level(caplog):
    logger = get_service_logger("test_service")

    with caplog.at_level(logging.DEBUG, logger="pie_costing.services"):
        log_operation(logger, operation="load", outcome="success", level=logging.DEBUG)

    assert caplog.records[-1].levelno == logging.DEBUG


def test_recipe_create_is_logged(caplog, recipe_data):
    with caplog.at_level(logging.INFO, logger="pie_costing.services"):
        recipe = recipe_service.create_recipe(recipe_data)

    created = [r for r in caplog.records if getattr(r, "operation", None) == "create_recipe"]
    assert len(created) == 1
    assert created[0].recipe_id == recipe.id
    assert created[0].selling_price == "7.21"


def test_unresolved_reference_is_logged_as_warning(caplog, recipe_data):
    recipe_data["ingredients"][0]["ingredient_id"] = 404

    with caplog.at_level(logging.WARNING, logger="pie_costing.services"):
        with pytest.raises(IngredientReferenceError):
            recipe_service.create_recipe(recipe_data)

    warnings = [r for r in caplog.records if getattr(r, "outcome", None) == "unresolved_reference"]
    assert [r.ingredient_id for r in warnings] == [404]
