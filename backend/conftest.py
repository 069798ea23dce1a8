"""
Root conftest.py for all backend tests.

This file makes fixtures available to all test files across all apps.
"""
import pytest

from stores.managers import set_current_store


# ============================================================================
# AUTO-USE FIXTURES (Run automatically for every test)
# ============================================================================

@pytest.fixture(autouse=True)
def reset_store_context():
    """
    Reset store context after each test.

    CRITICAL: This prevents store context from leaking between tests.
    If store context leaks, tests may pass when they should fail.
    """
    yield

    # After test: ALWAYS reset to None
    set_current_store(None)


# ============================================================================
# API CLIENT FIXTURES
# ============================================================================

@pytest.fixture
def api_client():
    """
    Provide DRF API client for API tests.

    Usage:
        def test_my_api(api_client):
            response = api_client.get('/api/costing/ingredients/')
            assert response.status_code == 200
    """
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def store_client(api_client, store):
    """
    API client that selects the test store on every request.

    Usage:
        def test_store_endpoint(store_client):
            response = store_client.get('/api/inventory/valuation/')
    """
    api_client.credentials(HTTP_X_STORE_ID=str(store.id))
    return api_client


# ============================================================================
# IMPORT ALL FIXTURES FROM core_backend/tests/fixtures.py
# ============================================================================
from core_backend.tests.fixtures import *
