"""Pytest configuration and fixtures for service layer tests."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session

from pie_costing.models.base import Base
from pie_costing.services.database import _register_models


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database
    2. Creates all tables
    3. Provides the database to the test
    4. Drops all tables after the test completes
    """
    # Create in-memory SQLite database for testing
    engine = create_engine("sqlite:///:memory:", echo=False)

    # Create all tables
    _register_models()
    Base.metadata.create_all(engine)

    # Create session factory
    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    Session = scoped_session(session_factory)

    # Monkey-patch the global session factory for tests
    import pie_costing.services.database as db_module

    original_get_session_factory = db_module.get_session_factory
    db_module.get_session_factory = lambda: Session

    # Provide database to test
    yield Session

    # Cleanup
    Session.remove()
    Base.metadata.drop_all(engine)
    engine.dispose()

    # Restore original session factory
    db_module.get_session_factory = original_get_session_factory


@pytest.fixture(scope="function")
def sample_flour(test_db):
    """Cake flour at R1.50 per kg."""
    from pie_costing.services import ingredient_service

    return ingredient_service.create_ingredient(
        {
            "name": "Cake Flour",
            "unit_of_measure": "kg",
            "cost_per_unit": "1.50",
            "category": "Pantry",
            "supplier": "Makro",
        }
    )


@pytest.fixture(scope="function")
def sample_mince(test_db):
    """Beef mince at R89.99 per kg."""
    from pie_costing.services import ingredient_service

    return ingredient_service.create_ingredient(
        {
            "name": "Beef Mince",
            "unit_of_measure": "kg",
            "cost_per_unit": "89.99",
            "category": "Meat",
        }
    )


@pytest.fixture(scope="function")
def recipe_data(sample_flour):
    """Inputs of a 10-pie batch: 2kg flour, 1 worker for 2.5h at R25/h, 10% markup."""
    return {
        "pie_name": "Basic Mince Pies",
        "batch_size": 10,
        "labor_hourly_rate": 25,
        "markup_percentage": 10,
        "ingredients": [{"ingredient_id": sample_flour.id, "quantity": 2, "unit": "kg"}],
        "labor_inputs": [{"workers": 1, "hours_per_worker": 2.5}],
    }


@pytest.fixture(scope="function")
def sample_recipe(recipe_data):
    """Persisted recipe built from recipe_data."""
    from pie_costing.services import recipe_service

    return recipe_service.create_recipe(recipe_data)
