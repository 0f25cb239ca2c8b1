"""Shared fixtures for API tests."""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from catalogue.api import categories, products
from catalogue.catalog.service import CatalogService
from catalogue.main import app


@pytest.fixture
def client(service: CatalogService) -> Iterator[TestClient]:
    """Create test client backed by the in-memory content service."""
    app.dependency_overrides[products.get_service] = lambda: service
    app.dependency_overrides[categories.get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()
