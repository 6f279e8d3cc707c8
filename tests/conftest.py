"""
Global test configuration and fixtures for the blog

This module provides shared test fixtures and configuration that can be used
across all test modules. Every test gets its own SQLite file, fixed signing
keys and cheap Argon2 parameters.
"""

import os
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from tests.utils.factories import (
    ALICE_NAME,
    ALICE_PASSWORD,
    ALICE_USERNAME,
    TEST_SECRET_KEY,
    TEST_SESSION_KEY,
)

# blog.main builds a module-level app on import; keep it out of ./data
_import_dir = tempfile.mkdtemp(prefix="blog-tests-")
os.environ.setdefault("SECRET_KEY", TEST_SECRET_KEY)
os.environ.setdefault("DATA_DIR", _import_dir)
os.environ.setdefault("DATABASE_URL", f"sqlite:///{Path(_import_dir) / 'import.db'}")
os.environ.setdefault("PASSWORD_HASH_TIME_COST", "1")
os.environ.setdefault("PASSWORD_HASH_MEMORY_COST", "8192")
os.environ.setdefault("SESSION_KDF_ITERATIONS", "100000")
os.environ.setdefault("LOG_JSON", "false")

# Import application components
from blog.core.config import Settings  # noqa: E402
from blog.core.credentials import CredentialStore  # noqa: E402
from blog.db.models import User  # noqa: E402
from blog.db.repository import Repository  # noqa: E402
from blog.db.session import init_database  # noqa: E402
from blog.main import create_app  # noqa: E402


# ============================================================================
# Test Environment Setup
# ============================================================================

@pytest.fixture(scope="function")
def test_settings(tmp_path):
    """Settings isolated to a temporary directory"""
    return Settings(
        _env_file=None,
        ENVIRONMENT="test",
        DATABASE_URL=f"sqlite:///{tmp_path / 'blog.db'}",
        DATA_DIR=str(tmp_path),
        SECRET_KEY=TEST_SECRET_KEY,
        SESSION_SECRET_KEY=TEST_SESSION_KEY,
        SESSION_KDF_ITERATIONS=100_000,
        PASSWORD_HASH_TIME_COST=1,
        PASSWORD_HASH_MEMORY_COST=8192,
        LOG_JSON=False,
    )


# ============================================================================
# Application Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def app(test_settings):
    """Application wired to the per-test database"""
    application = create_app(test_settings)
    init_database(application.state.engine)
    yield application
    application.state.engine.dispose()


@pytest.fixture(scope="function")
def client(app):
    """Create FastAPI test client"""
    with TestClient(app) as test_client:
        yield test_client


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def db_session(app):
    """Session on the same engine the app uses"""
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def repository(db_session):
    return Repository(db_session)


# ============================================================================
# Security Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def credential_store(app, repository):
    return CredentialStore(repository, app.state.password_hasher)


@pytest.fixture(scope="function")
def token_service(app):
    return app.state.token_service


@pytest.fixture(scope="function")
def session_manager(app):
    return app.state.session_manager


@pytest.fixture(scope="function")
def alice(credential_store):
    """A registered user with a known password"""
    return credential_store.upsert(
        User(username=ALICE_USERNAME, display_name=ALICE_NAME), ALICE_PASSWORD
    )


@pytest.fixture(scope="function")
def alice_token(token_service, alice):
    return token_service.issue_for_user(alice.username)


@pytest.fixture(scope="function")
def temp_directory():
    """Provide temporary directory for test file operations"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


# ============================================================================
# Test Markers and Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers and settings"""
    # Register custom markers
    config.addinivalue_line(
        "markers", "critical: mark test as critical path functionality"
    )
    config.addinivalue_line(
        "markers", "security: mark test as security-related"
    )
    config.addinivalue_line(
        "markers", "auth: mark test as authentication or authorization related"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on file location"""
    for item in items:
        # Add markers based on file path
        if "security" in str(item.fspath):
            item.add_marker(pytest.mark.security)
        if "critical" in str(item.fspath):
            item.add_marker(pytest.mark.critical)
