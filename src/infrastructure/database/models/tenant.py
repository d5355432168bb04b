# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Site database models.

Every site database ({prefix}site{n}) holds the same set of tables. The
database itself is the tenant boundary, so rows carry no site column.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import (
    ActivityLogMixin,
    TenantBase,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from src.utils.datetime import utc_now


class Setting(UUIDPrimaryKeyMixin, TimestampMixin, TenantBase):
    """Site setting row, grouped for the settings screens."""

    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=False)
    # string, number, boolean, json, text
    type: Mapped[str] = mapped_column(String(20), default="string", nullable=False)
    # general, authentication, media, menus, ...
    group: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    label: Mapped[str | None] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class PostType(UUIDPrimaryKeyMixin, TimestampMixin, TenantBase):
    """Content type definition such as post or page."""

    __tablename__ = "post_types"

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    labels: Mapped[dict[str, str]] = mapped_column(JSON, default=dict)
    description: Mapped[str | None] = mapped_column(Text)
    is_hierarchical: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_public: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    supports: Mapped[list[str]] = mapped_column(JSON, default=list)
    menu_icon: Mapped[str | None] = mapped_column(String(50))
    menu_position: Mapped[int | None] = mapped_column(Integer)
    show_in_dashboard: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    has_archive: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    rewrite_slug: Mapped[str | None] = mapped_column(String(100))
    taxonomies: Mapped[list[str]] = mapped_column(JSON, default=list)


class Post(UUIDPrimaryKeyMixin, TimestampMixin, TenantBase):
    """Content item of any post type."""

    __tablename__ = "posts"
    __table_args__ = (
        Index("ix_posts_type_status", "post_type", "status"),
        Index("ix_posts_type_published", "post_type", "published_at"),
    )

    post_type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    content: Mapped[str | None] = mapped_column(Text)
    excerpt: Mapped[str | None] = mapped_column(Text)
    # draft, published, pending, trash
    status: Mapped[str] = mapped_column(String(20), default="draft", nullable=False)
    # public, private, password_protected
    visibility: Mapped[str] = mapped_column(String(20), default="public", nullable=False)
    password: Mapped[str | None] = mapped_column(String(255))
    author_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    parent_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, index=True)
    featured_image_id: Mapped[uuid.UUID | None] = mapped_column(Uuid)
    custom_fields: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    # open, closed
    comment_status: Mapped[str] = mapped_column(String(10), default="open", nullable=False)
    comment_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    view_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), index=True)
    scheduled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


@event.listens_for(Post, "before_insert")
@event.listens_for(Post, "before_update")
def _stamp_published_at(mapper: Any, connection: Any, target: Post) -> None:
    if target.status == "published" and target.published_at is None:
        target.published_at = utc_now()


class PostMeta(UUIDPrimaryKeyMixin, TimestampMixin, TenantBase):
    """Custom field of a post."""

    __tablename__ = "post_meta"
    __table_args__ = (UniqueConstraint("post_id", "meta_key", name="uq_post_meta_post_key"),)

    post_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    meta_key: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    meta_value: Mapped[str] = mapped_column(Text, default="")


class PostRevision(UUIDPrimaryKeyMixin, TenantBase):
    """Saved snapshot of a post's title and body."""

    __tablename__ = "post_revisions"
    __table_args__ = (Index("ix_post_revisions_post_created", "post_id", "created_at"),)

    post_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, default="")
    excerpt: Mapped[str] = mapped_column(Text, default="")
    author_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )


class Taxonomy(UUIDPrimaryKeyMixin, TimestampMixin, TenantBase):
    """Taxonomy definition such as category or tag."""

    __tablename__ = "taxonomies"

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    labels: Mapped[dict[str, str]] = mapped_column(JSON, default=dict)
    description: Mapped[str | None] = mapped_column(Text)
    is_hierarchical: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_public: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    show_in_dashboard: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    show_in_menu: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    menu_position: Mapped[int] = mapped_column(Integer, default=10, nullable=False)
    post_types: Mapped[list[str]] = mapped_column(JSON, default=list)
    rewrite_slug: Mapped[str | None] = mapped_column(String(100))


class Term(UUIDPrimaryKeyMixin, TimestampMixin, TenantBase):
    """Term of a taxonomy, e.g. one category."""

    __tablename__ = "terms"
    __table_args__ = (
        UniqueConstraint("taxonomy", "slug", name="uq_terms_taxonomy_slug"),
        Index("ix_terms_taxonomy_parent", "taxonomy", "parent_id"),
    )

    taxonomy: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    parent_id: Mapped[uuid.UUID | None] = mapped_column(Uuid)
    count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    meta: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)


class PostTerm(UUIDPrimaryKeyMixin, TenantBase):
    """Assignment of a term to a post."""

    __tablename__ = "post_terms"
    __table_args__ = (UniqueConstraint("post_id", "term_id", name="uq_post_terms_post_term"),)

    post_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    term_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    # Denormalized from the term
    taxonomy: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )


class Menu(UUIDPrimaryKeyMixin, TimestampMixin, TenantBase):
    """Navigation menu attached to one location."""

    __tablename__ = "menus"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    location: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)


class MenuItem(UUIDPrimaryKeyMixin, TimestampMixin, TenantBase):
    """Entry of a menu, linking a post, term, archive or custom URL."""

    __tablename__ = "menu_items"

    menu_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    parent_id: Mapped[uuid.UUID | None] = mapped_column(Uuid)
    # custom, post_type, taxonomy, post, term
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    object_id: Mapped[uuid.UUID | None] = mapped_column(Uuid)
    custom_url: Mapped[str] = mapped_column(String(2048), default="")
    custom_label: Mapped[str] = mapped_column(String(255), default="")
    menu_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False, index=True)
    target: Mapped[str] = mapped_column(String(20), default="_self", nullable=False)
    title_attr: Mapped[str] = mapped_column(String(255), default="")
    css_classes: Mapped[str] = mapped_column(String(255), default="")
    xfn: Mapped[str] = mapped_column(String(255), default="")
    description: Mapped[str] = mapped_column(Text, default="")


class MenuItemMeta(UUIDPrimaryKeyMixin, TimestampMixin, TenantBase):
    """Custom field of a menu item."""

    __tablename__ = "menu_item_meta"
    __table_args__ = (
        UniqueConstraint("menu_item_id", "meta_key", name="uq_menu_item_meta_item_key"),
    )

    menu_item_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    meta_key: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    meta_value: Mapped[str] = mapped_column(Text, default="")


class MenuLocation(UUIDPrimaryKeyMixin, TimestampMixin, TenantBase):
    """Theme slot a menu can be assigned to."""

    __tablename__ = "menu_locations"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")


class Media(UUIDPrimaryKeyMixin, TimestampMixin, TenantBase):
    """Uploaded file."""

    __tablename__ = "media"
    __table_args__ = (Index("ix_media_folder_status", "folder_id", "status"),)

    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    original_filename: Mapped[str] = mapped_column(String(255), nullable=False)
    filepath: Mapped[str] = mapped_column(String(1024), nullable=False)
    mimetype: Mapped[str] = mapped_column(String(100), nullable=False)
    filesize: Mapped[int] = mapped_column(Integer, nullable=False)
    width: Mapped[int | None] = mapped_column(Integer)
    height: Mapped[int | None] = mapped_column(Integer)
    alt_text: Mapped[str] = mapped_column(String(500), default="")
    caption: Mapped[str] = mapped_column(Text, default="")
    uploaded_by: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    folder_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, index=True)
    # active, trash
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False, index=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


class MediaFolder(UUIDPrimaryKeyMixin, TimestampMixin, TenantBase):
    """Folder of the media library; top-level when parent_id is None."""

    __tablename__ = "media_folders"

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    parent_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, index=True)


class ActivityLog(ActivityLogMixin, TenantBase):
    """Site activity log (content edits, media uploads)."""


__all__ = [
    "ActivityLog",
    "Media",
    "MediaFolder",
    "Menu",
    "MenuItem",
    "MenuItemMeta",
    "MenuLocation",
    "Post",
    "PostMeta",
    "PostRevision",
    "PostTerm",
    "PostType",
    "Setting",
    "Taxonomy",
    "Term",
]
