import os

# Pas de Redis pendant les tests: le lifespan désactive le rate limiting
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import pytest
from typing import Any, Dict, Generator
from fastapi.testclient import TestClient

from storefront import config as store_config
from storefront.app import app as fastapi_app
from storefront.dependencies import get_service_client
from storefront.utils.security import require_user
from tests.fake_supabase import FakeClient
from tests.helpers import TEST_PASSPHRASE, TEST_USER_ID, seed_tables

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def fake_db() -> FakeClient:
    return FakeClient(seed_tables())


@pytest.fixture
def payfast_settings(monkeypatch):
    monkeypatch.setattr(store_config, "PAYFAST_PASSPHRASE", TEST_PASSPHRASE)
    monkeypatch.setattr(store_config, "PAYFAST_VALIDATE_WITH_SERVER", False)
    return store_config


@pytest.fixture(scope="session")
def app():
    return fastapi_app


@pytest.fixture()
def client(app, fake_db) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_service_client] = lambda: fake_db
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.pop(get_service_client, None)


# Simuler un utilisateur authentifié pour les endpoints protégés
@pytest.fixture(autouse=True)
def _override_require_user(app):
    fake_user: Dict[str, Any] = {
        "id": TEST_USER_ID,
        "email": "test@example.com",
        "metadata": {"full_name": "Test User"},
        "token": "fake-token",
    }
    app.dependency_overrides[require_user] = lambda: fake_user
    try:
        yield
    finally:
        app.dependency_overrides.pop(require_user, None)
