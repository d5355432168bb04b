# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Global database models.

These entities live in the single global database ({prefix}global):
accounts, roles, the site directory, site assignments, global settings,
per-site user preferences and the platform activity log.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import (
    ActivityLogMixin,
    CentralBase,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from src.utils.datetime import utc_now


class User(UUIDPrimaryKeyMixin, TimestampMixin, CentralBase):
    """Platform account. Accounts are shared by every site."""

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), default="")
    last_name: Mapped[str] = mapped_column(String(100), default="")
    bio: Mapped[str] = mapped_column(Text, default="")
    avatar: Mapped[str] = mapped_column(String(500), default="")
    role_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    is_super_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    # active, inactive, pending
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False, index=True)
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    @property
    def full_name(self) -> str:
        """First and last name joined, without surrounding blanks."""
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


class Site(TimestampMixin, CentralBase):
    """Site directory entry.

    The numeric id is the tenant id; it names the site database
    ({prefix}site{id}).
    """

    __tablename__ = "sites"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    domain: Mapped[str] = mapped_column(String(255), default="")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)


class Role(UUIDPrimaryKeyMixin, TimestampMixin, CentralBase):
    """Named permission set, e.g. admin or editor."""

    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    permissions: Mapped[dict[str, bool]] = mapped_column(JSON, default=dict)


class SiteUser(UUIDPrimaryKeyMixin, CentralBase):
    """Assignment of a user to a site with a role."""

    __tablename__ = "site_users"
    __table_args__ = (UniqueConstraint("site_id", "user_id", name="uq_site_users_site_user"),)

    site_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    role_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )


class GlobalSetting(UUIDPrimaryKeyMixin, TimestampMixin, CentralBase):
    """Platform-wide setting."""

    __tablename__ = "global_settings"

    key: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=False)
    # string, number, boolean, json, text
    type: Mapped[str] = mapped_column(String(20), default="string", nullable=False)
    description: Mapped[str | None] = mapped_column(Text)


class UserMeta(UUIDPrimaryKeyMixin, TimestampMixin, CentralBase):
    """Per-site user preference."""

    __tablename__ = "user_meta"
    __table_args__ = (
        UniqueConstraint("user_id", "site_id", "meta_key", name="uq_user_meta_user_site_key"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    site_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    meta_key: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    meta_value: Mapped[str] = mapped_column(Text, default="")


class ActivityLog(ActivityLogMixin, CentralBase):
    """Platform activity log (site creation, user management)."""


__all__ = [
    "ActivityLog",
    "GlobalSetting",
    "Role",
    "Site",
    "SiteUser",
    "User",
    "UserMeta",
]
