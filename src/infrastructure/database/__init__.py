# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure for the global and per-site databases.

This package provides SQLAlchemy async access to:
- Global database ({prefix}global): accounts, roles, site directory
- Site databases ({prefix}site{n}): content of one site each

Example:
    from src.infrastructure.database import (
        ConnectionRegistry,
        ModelFactory,
        SiteModels,
        seed_tenant_database,
    )

    registry = ConnectionRegistry(settings.database)
    factory = ModelFactory(registry)

    posts = await SiteModels(factory, 7).post()
    published = await posts.find(status="published", order_by="-published_at")

    await registry.release_all()
"""

from src.infrastructure.database.connection import (
    ConnectionRegistry,
    create_database_engine,
    ensure_postgres_database,
)
from src.infrastructure.database.model_factory import (
    ConfigurationError,
    EntityAccessor,
    GlobalModels,
    ModelFactory,
    SiteModels,
    UnknownEntityError,
    get_global_models,
    get_site_models,
)
from src.infrastructure.database.naming import GLOBAL_TENANT, database_name
from src.infrastructure.database.seeds import (
    BOOTSTRAP_STEPS,
    BootstrapResult,
    CentralSeedError,
    TenantBootstrapError,
    seed_central_database,
    seed_tenant_database,
)

__all__ = [
    # Naming
    "GLOBAL_TENANT",
    "database_name",
    # Connections
    "ConnectionRegistry",
    "create_database_engine",
    "ensure_postgres_database",
    # Model factory
    "ConfigurationError",
    "EntityAccessor",
    "GlobalModels",
    "ModelFactory",
    "SiteModels",
    "UnknownEntityError",
    "get_global_models",
    "get_site_models",
    # Seeds
    "BOOTSTRAP_STEPS",
    "BootstrapResult",
    "CentralSeedError",
    "TenantBootstrapError",
    "seed_central_database",
    "seed_tenant_database",
]
