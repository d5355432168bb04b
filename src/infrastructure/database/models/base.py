# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Declarative bases and shared column mixins.

Global and site entities use separate declarative bases so each scope has
its own MetaData. A table definition is written once and bound to any
number of databases of its scope.

SQLite drops the UTC offset of stored timestamps; instances loaded from
any database get their DateTime attributes back as aware UTC values.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Index, String, Text, Uuid, event, inspect
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column
from sqlalchemy.orm.attributes import set_committed_value

from src.utils.datetime import ensure_utc, utc_now


class CentralBase(DeclarativeBase):
    """Base class for entities stored in the global database."""


class TenantBase(DeclarativeBase):
    """Base class for entities stored in every site database."""


def _normalize_timestamps(target: Any, *_: Any) -> None:
    state = target.__dict__
    for attr in inspect(target).mapper.column_attrs:
        if attr.key in state and isinstance(attr.columns[0].type, DateTime):
            set_committed_value(target, attr.key, ensure_utc(state[attr.key]))


for _base in (CentralBase, TenantBase):
    event.listen(_base, "load", _normalize_timestamps, propagate=True)
    event.listen(_base, "refresh", _normalize_timestamps, propagate=True)


class UUIDPrimaryKeyMixin:
    """UUID primary key generated client-side."""

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)


class TimestampMixin:
    """created_at / updated_at maintained on insert and update."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )


class ActivityLogMixin(UUIDPrimaryKeyMixin):
    """Columns of the activity log, present in both scopes."""

    __tablename__ = "activity_logs"

    # Either a user UUID or a free-form actor such as "system"
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    action: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    entity_id: Mapped[str | None] = mapped_column(String(64))
    entity_name: Mapped[str | None] = mapped_column(String(255))
    details: Mapped[str | None] = mapped_column(Text)
    changes_before: Mapped[str | None] = mapped_column(Text)
    changes_after: Mapped[str | None] = mapped_column(Text)
    ip_address: Mapped[str | None] = mapped_column(String(45))
    user_agent: Mapped[str | None] = mapped_column(Text)
    site_id: Mapped[int | None] = mapped_column()
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False, index=True
    )

    @declared_attr.directive
    def __table_args__(cls) -> Any:
        return (
            Index("ix_activity_logs_user_created", "user_id", "created_at"),
            Index("ix_activity_logs_site_created", "site_id", "created_at"),
            Index("ix_activity_logs_entity", "entity_type", "entity_id"),
        )
