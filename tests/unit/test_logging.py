# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for logging configuration."""

import json
import logging
from collections.abc import Iterator

import pytest
import structlog

from src.core.config.settings import DatabaseSettings, SeedSettings, Settings
from src.utils.logging import (
    bind_context,
    clear_context,
    get_logger,
    setup_logging,
    site_context,
)


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    """Restore root handlers and structlog defaults after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.NOTSET)
    structlog.reset_defaults()
    clear_context()


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_sets_levels(self) -> None:
        """Test package and driver loggers get their levels."""
        setup_logging(Settings(log_level="WARNING"))

        assert logging.getLogger("src").level == logging.WARNING
        assert logging.getLogger("sqlalchemy").level == logging.WARNING
        assert logging.getLogger("aiosqlite").level == logging.WARNING

    def test_echo_enables_sql_logging(self) -> None:
        """Test SQL echo raises the engine logger to INFO."""
        setup_logging(Settings(database=DatabaseSettings(echo=True)))

        assert logging.getLogger("sqlalchemy.engine").level == logging.INFO

    def test_stdlib_records_rendered_as_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test module loggers go through structlog with bound site context."""
        settings = Settings(
            environment="staging",
            debug=False,
            log_level="INFO",
            database=DatabaseSettings(password="db-secret"),  # type: ignore[arg-type]
            seed=SeedSettings(admin_password="admin-secret"),  # type: ignore[arg-type]
        )
        setup_logging(settings)

        with site_context(7):
            logging.getLogger("src.infrastructure.database.seeds.tenant").info("Seeded %d settings", 5)

        record = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert record["event"] == "Seeded 5 settings"
        assert record["site_id"] == 7
        assert record["level"] == "info"


class TestContext:
    """Tests for context binding."""

    def test_bind_and_clear(self) -> None:
        """Test bound context variables are visible until cleared."""
        bind_context(request="seed")

        assert structlog.contextvars.get_contextvars() == {"request": "seed"}

        clear_context()

        assert structlog.contextvars.get_contextvars() == {}

    def test_site_context_restores_previous(self) -> None:
        """Test site_context unbinds on exit."""
        with site_context(3):
            assert structlog.contextvars.get_contextvars() == {"site_id": 3}

        assert "site_id" not in structlog.contextvars.get_contextvars()

    def test_get_logger(self) -> None:
        """Test get_logger returns a usable logger."""
        assert hasattr(get_logger("src.tests"), "info")
