"""
Pytest configuration for the learning service tests

Every test that touches storage gets its own SQLite file under tmp_path, so
the correction log and tag counters start empty.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from newsroom.api.app import create_app
from newsroom.api.routes import learning as learning_routes
from newsroom.infrastructure.database import init_database, reset_pool
from newsroom.learning.policy import LearningPolicy
from newsroom.learning.service import LearningService
from newsroom.observability.telemetry import reset_telemetry


@pytest.fixture(autouse=True)
def _clean_telemetry():
    reset_telemetry()
    yield
    reset_telemetry()


@pytest.fixture
def learning_db(tmp_path, monkeypatch):
    """Fresh database file with the learning schema applied."""
    db_path = tmp_path / "newsroom.db"
    monkeypatch.setenv("NEWSROOM_DB_PATH", str(db_path))
    reset_pool()
    init_database()
    yield db_path
    reset_pool()


@pytest.fixture
def policy():
    return LearningPolicy(
        reliability_threshold=0.3, min_observations=5, contextual_tags_enabled=False
    )


@pytest.fixture
def service(learning_db, policy):
    return LearningService(policy=policy)


@pytest.fixture
def client(service):
    app = create_app(service=service, rate_limit=False)
    with TestClient(app) as test_client:
        yield test_client
    learning_routes.set_learning_service(None)
