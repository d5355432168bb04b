# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cross-cutting helpers: structured logging and UTC timestamps."""

from src.utils.datetime import ensure_utc, utc_now
from src.utils.logging import (
    bind_context,
    clear_context,
    get_logger,
    setup_logging,
    site_context,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "site_context",
    # Datetime
    "utc_now",
    "ensure_utc",
]
