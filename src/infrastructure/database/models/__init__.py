# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Entity definitions for the global and site databases.

CENTRAL_ENTITIES and TENANT_ENTITIES map the logical entity name used by
the model factory to its canonical definition.
"""

from src.infrastructure.database.models import central, tenant
from src.infrastructure.database.models.base import (
    CentralBase,
    TenantBase,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)

CENTRAL_ENTITIES: dict[str, type[CentralBase]] = {
    "User": central.User,
    "Site": central.Site,
    "Role": central.Role,
    "SiteUser": central.SiteUser,
    "GlobalSetting": central.GlobalSetting,
    "UserMeta": central.UserMeta,
    "ActivityLog": central.ActivityLog,
}

TENANT_ENTITIES: dict[str, type[TenantBase]] = {
    "Setting": tenant.Setting,
    "PostType": tenant.PostType,
    "Post": tenant.Post,
    "PostMeta": tenant.PostMeta,
    "PostRevision": tenant.PostRevision,
    "Taxonomy": tenant.Taxonomy,
    "Term": tenant.Term,
    "PostTerm": tenant.PostTerm,
    "Menu": tenant.Menu,
    "MenuItem": tenant.MenuItem,
    "MenuItemMeta": tenant.MenuItemMeta,
    "MenuLocation": tenant.MenuLocation,
    "Media": tenant.Media,
    "MediaFolder": tenant.MediaFolder,
    "ActivityLog": tenant.ActivityLog,
}

__all__ = [
    "CENTRAL_ENTITIES",
    "TENANT_ENTITIES",
    "CentralBase",
    "TenantBase",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "central",
    "tenant",
]
