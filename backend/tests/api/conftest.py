"""Fixtures for API tests."""

import pytest
from fastapi.testclient import TestClient

from orderdesk.core.database import get_session_factory
from orderdesk.main import app


@pytest.fixture
def client(session_factory):
    """Create a test client whose order services use the test database."""
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    client = TestClient(app)

    yield client

    # Clean up
    app.dependency_overrides = {}


@pytest.fixture
async def seeded(create_material):
    """A small material collection covering every order list row type."""
    return {
        "needed": await create_material(
            material_id="PV-MOD-400", description="Solar module 400W",
            manufacturer="Meyer Burger", stock=-2, reorder_threshold=5, order_quantity=10,
        ),
        "low": await create_material(
            material_id="CAB-6MM", description="DC cable 6mm²",
            stock=3, reorder_threshold=5, order_quantity=25,
        ),
        "ok": await create_material(
            material_id="INV-10K", description="Inverter 10kW", manufacturer="Fronius",
            stock=8, reorder_threshold=2, order_quantity=1,
        ),
        "excluded": await create_material(
            material_id="BAT-5K", description="Battery 5kWh",
            stock=1, reorder_threshold=2, exclude_from_auto_order=True,
        ),
    }
