"""Test configuration and fixtures for the FollowDesk package.

This module provides common fixtures used across all test modules:
- An in-memory Supabase client and services built on it
- A test client for the application with service providers overridden
- Test data directory handling
"""

from pathlib import Path

import pytest
from fakes import FakeSupabaseClient
from fastapi.testclient import TestClient

from followdesk.core import dependencies
from followdesk.main import app
from followdesk.services.dashboard import DashboardService
from followdesk.services.follows import FollowService
from followdesk.services.storage import ProfileImageStorage
from followdesk.services.users import UserService

TEST_DATA_DIR = Path(__file__).parent / "data"
TEST_DATA_DIR.mkdir(exist_ok=True)


@pytest.fixture
def fake_client() -> FakeSupabaseClient:
    """Fixture for an empty in-memory database."""
    return FakeSupabaseClient()


@pytest.fixture
def follow_service(fake_client):
    return FollowService(fake_client)


@pytest.fixture
def user_service(fake_client, follow_service):
    return UserService(fake_client, follows=follow_service)


@pytest.fixture
def dashboard_service(fake_client):
    return DashboardService(fake_client)


@pytest.fixture
def storage_service():
    """Storage service without an S3 client; tests attach a stubbed one."""
    return ProfileImageStorage(
        client=None, bucket="user-uploads", public_base_url="https://cdn.test/public"
    )


@pytest.fixture
def test_client(user_service, follow_service, dashboard_service, storage_service):
    """Fixture for the application client with services backed by the fake."""
    app.dependency_overrides[dependencies.get_user_service] = lambda: user_service
    app.dependency_overrides[dependencies.get_follow_service] = lambda: follow_service
    app.dependency_overrides[dependencies.get_dashboard_service] = (
        lambda: dashboard_service
    )
    app.dependency_overrides[dependencies.get_storage_service] = lambda: storage_service
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def test_data_dir():
    """Fixture for test data directory."""
    return TEST_DATA_DIR


@pytest.fixture
def cleanup_test_files():
    """Fixture to clean up test files after tests."""
    yield
    for file in TEST_DATA_DIR.glob("*"):
        if file.is_file():
            file.unlink()
