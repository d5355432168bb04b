# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

Database fixtures run against SQLite files (aiosqlite) in a per-test
temporary directory: one file per database name, so the global database
and every site database are physically separate, as on PostgreSQL.
"""

import uuid
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio

from src.core.config.settings import DatabaseSettings
from src.infrastructure.database.connection import ConnectionRegistry
from src.infrastructure.database.model_factory import GlobalModels, ModelFactory


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (requires services)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def db_settings(tmp_path: Path) -> DatabaseSettings:
    """Provide settings storing every database as a SQLite file in tmp_path."""
    return DatabaseSettings(
        driver="sqlite+aiosqlite",
        sqlite_directory=tmp_path,
        name_prefix="nextcms_",
        connect_timeout=30.0,
    )


@pytest_asyncio.fixture
async def registry(db_settings: DatabaseSettings) -> AsyncGenerator[ConnectionRegistry, None]:
    """Provide a connection registry, released after the test."""
    registry = ConnectionRegistry(db_settings)
    yield registry
    await registry.release_all()


@pytest.fixture
def factory(registry: ConnectionRegistry) -> ModelFactory:
    """Provide a model factory over the test registry."""
    return ModelFactory(registry)


@pytest.fixture
def global_models(factory: ModelFactory) -> GlobalModels:
    """Provide global model accessors."""
    return GlobalModels(factory)


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def author_id() -> uuid.UUID:
    """Provide a sample author ID for testing."""
    return uuid.UUID("550e8400-e29b-41d4-a716-446655440001")
