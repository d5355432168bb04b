# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Global database seed data.

This module provides seed data for the global database:
- Roles: Default roles with their permission maps
- Sites: The default site directory entry
- Users: Initial super admin, assigned to the default site

The default site's own database is bootstrapped with the structural
entities every site starts with (settings, post types, taxonomies).
"""

import asyncio
import logging
from typing import Any

import bcrypt

from src.infrastructure.database.model_factory import GlobalModels
from src.infrastructure.database.models.central import Role, Site, SiteUser, User
from src.infrastructure.database.seeds.tenant import seed_tenant_database

logger = logging.getLogger(__name__)

DEFAULT_SITE_ID = 1


class CentralSeedError(Exception):
    """Raised when the global database cannot be seeded."""


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a bcrypt hash."""
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


async def seed_roles(models: GlobalModels) -> list[Role]:
    """Seed default roles.

    Args:
        models: Global model accessors.

    Returns:
        List of created roles.
    """
    roles_data = [
        {
            "name": "super_admin",
            "label": "Super Administrator",
            "permissions": {
                "manage_sites": True,
                "manage_users": True,
                "manage_roles": True,
                "manage_settings": True,
                "manage_all": True,
            },
        },
        {
            "name": "admin",
            "label": "Administrator",
            "permissions": {
                "manage_posts_all": True,
                "manage_pages_all": True,
                "manage_media": True,
                "manage_taxonomies": True,
                "manage_menus": True,
                "manage_settings": True,
                "manage_users": True,
            },
        },
        {
            "name": "editor",
            "label": "Editor",
            "permissions": {
                "manage_posts_all": True,
                "manage_pages_all": True,
                "manage_media": True,
                "manage_taxonomies": True,
            },
        },
        {
            "name": "author",
            "label": "Author",
            "permissions": {
                "manage_posts_own": True,
                "manage_pages_own": True,
                "manage_media_own": True,
            },
        },
        {
            "name": "contributor",
            "label": "Contributor",
            "permissions": {"create_posts": True, "edit_posts_own": True},
        },
        {"name": "subscriber", "label": "Subscriber", "permissions": {"read": True}},
        {"name": "guest", "label": "Guest", "permissions": {"read_own": True}},
    ]

    roles = await (await models.role()).create_many(roles_data)
    logger.info("Seeded %d roles", len(roles))
    return roles


async def seed_default_site(models: GlobalModels) -> Site:
    """Seed the default site directory entry."""
    site = await (await models.site()).create(
        id=DEFAULT_SITE_ID,
        name="default",
        display_name="Default Site",
        description="The default site for Next CMS",
        is_active=True,
    )
    logger.info("Seeded default site %s", site.id)
    return site


async def seed_super_admin(
    models: GlobalModels,
    role: Role,
    site: Site,
    username: str,
    email: str,
    password: str,
) -> tuple[User, SiteUser]:
    """Seed the super admin user and assign it to the default site.

    Args:
        models: Global model accessors.
        role: The super_admin role.
        site: The default site.
        username: Admin username.
        email: Admin email.
        password: Admin password in clear text; stored hashed.

    Returns:
        The created user and its site assignment.
    """
    user = await (await models.user()).create(
        username=username,
        email=email.lower(),
        password=hash_password(password),
        first_name="Super",
        last_name="Admin",
        role_id=role.id,
        is_super_admin=True,
        status="active",
    )
    assignment = await (await models.site_user()).create(
        site_id=site.id,
        user_id=user.id,
        role_id=role.id,
    )
    logger.info("Seeded super admin %s", username)
    return user, assignment


async def seed_central_database(
    models: GlobalModels,
    admin_email: str = "admin@example.com",
    admin_password: str = "SuperAdmin123!",
    admin_username: str = "superadmin",
) -> dict[str, Any]:
    """Seed the global database with initial data.

    Args:
        models: Global model accessors.
        admin_email: Super admin email.
        admin_password: Super admin password.
        admin_username: Super admin username.

    Returns:
        Dictionary with seeded entities; "default_site" holds the
        BootstrapResult of the default site database.

    Raises:
        CentralSeedError: If the global database already holds roles.
        TenantBootstrapError: If the default site database bootstrap fails.
    """
    if await (await models.role()).count():
        raise CentralSeedError("Global database already initialized")

    logger.info("Seeding global database...")

    roles = await seed_roles(models)
    site = await seed_default_site(models)
    super_admin_role = next(role for role in roles if role.name == "super_admin")
    user, assignment = await seed_super_admin(
        models,
        super_admin_role,
        site,
        username=admin_username,
        email=admin_email,
        password=admin_password,
    )
    bootstrap = await seed_tenant_database(models.factory, site.id)

    logger.info("Global database seeding complete")

    return {
        "roles": roles,
        "sites": [site],
        "users": [user],
        "site_users": [assignment],
        "default_site": bootstrap,
    }


if __name__ == "__main__":
    from src.core.config import get_settings
    from src.infrastructure.database.connection import ConnectionRegistry
    from src.infrastructure.database.model_factory import ModelFactory
    from src.utils.logging import setup_logging

    async def main() -> None:
        settings = get_settings()
        setup_logging(settings)
        registry = ConnectionRegistry(settings.database)
        try:
            await seed_central_database(
                GlobalModels(ModelFactory(registry)),
                admin_email=settings.seed.admin_email,
                admin_password=settings.seed.admin_password.get_secret_value(),
                admin_username=settings.seed.admin_username,
            )
        finally:
            await registry.release_all()

    asyncio.run(main())
