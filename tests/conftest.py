"""
Shared fixtures.

Test strategy:
1. Unit tests for individual components (models, pagination, validators)
2. Integration tests for use cases and actions on the in-memory store
3. No real API calls in tests (Google Sheets is replaced by a fake worksheet)
"""

import pytest

from factories import TEST_SECRET, make_token
from personal_finance.audit import AuditLogger
from personal_finance.config import AuthSettings
from personal_finance.orchestrator import create_app_components
from personal_finance.services.auth import JWTAuthProvider
from personal_finance.services.storage import InMemoryDocumentStore
from personal_finance.validation import EntityValidator


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def validator():
    return EntityValidator(future_date_tolerance_days=7)


@pytest.fixture
def auth_provider():
    return JWTAuthProvider(AuthSettings(jwt_secret=TEST_SECRET))


@pytest.fixture
def components(store, auth_provider):
    app = create_app_components(
        store=store,
        auth_provider=auth_provider,
        audit_logger=AuditLogger(),
    )
    yield app
    app.close()


@pytest.fixture
def token():
    return make_token()
