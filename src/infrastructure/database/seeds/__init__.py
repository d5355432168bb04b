# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database seed package.

This package contains seed data for initializing databases:
- Central seeds: Roles, default site, super admin
- Tenant seeds: Baseline content of a new site (bootstrap)
"""

from src.infrastructure.database.seeds.central import CentralSeedError, seed_central_database
from src.infrastructure.database.seeds.tenant import (
    BOOTSTRAP_STEPS,
    BootstrapResult,
    TenantBootstrapError,
    seed_tenant_database,
)

__all__ = [
    "BOOTSTRAP_STEPS",
    "BootstrapResult",
    "CentralSeedError",
    "TenantBootstrapError",
    "seed_central_database",
    "seed_tenant_database",
]
