# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for database models.

Tests model definitions, scope separation, and helper methods.
"""

import uuid
from datetime import timezone

import pytest

from src.infrastructure.database.model_factory import GlobalModels, ModelFactory, SiteModels
from src.infrastructure.database.models import CENTRAL_ENTITIES, TENANT_ENTITIES
from src.infrastructure.database.models.base import CentralBase, TenantBase, TimestampMixin
from src.infrastructure.database.models.central import ActivityLog as GlobalActivityLog
from src.infrastructure.database.models.central import Site, User
from src.infrastructure.database.models.tenant import ActivityLog as SiteActivityLog
from src.infrastructure.database.models.tenant import Menu, Post


class TestBase:
    """Test base model functionality."""

    def test_scopes_have_separate_metadata(self) -> None:
        """Verify each scope owns its MetaData."""
        assert CentralBase.metadata is not TenantBase.metadata

    def test_timestamp_mixin_has_fields(self) -> None:
        """Verify TimestampMixin has created_at and updated_at."""
        assert hasattr(TimestampMixin, "created_at")
        assert hasattr(TimestampMixin, "updated_at")


class TestEntityCatalogs:
    """Test the entity name catalogs."""

    def test_global_entities(self) -> None:
        """Verify the global entity names."""
        assert set(CENTRAL_ENTITIES) == {
            "User",
            "Site",
            "Role",
            "SiteUser",
            "GlobalSetting",
            "UserMeta",
            "ActivityLog",
        }

    def test_site_entities(self) -> None:
        """Verify the site entity names."""
        assert set(TENANT_ENTITIES) == {
            "Setting",
            "PostType",
            "Post",
            "PostMeta",
            "PostRevision",
            "Taxonomy",
            "Term",
            "PostTerm",
            "Menu",
            "MenuItem",
            "MenuItemMeta",
            "MenuLocation",
            "Media",
            "MediaFolder",
            "ActivityLog",
        }

    @pytest.mark.parametrize("name", sorted(CENTRAL_ENTITIES))
    def test_global_entity_uses_central_base(self, name: str) -> None:
        """Verify global entities are registered on the global metadata."""
        model = CENTRAL_ENTITIES[name]
        assert issubclass(model, CentralBase)
        assert model.__table__.metadata is CentralBase.metadata

    @pytest.mark.parametrize("name", sorted(TENANT_ENTITIES))
    def test_site_entity_uses_tenant_base(self, name: str) -> None:
        """Verify site entities are registered on the site metadata."""
        model = TENANT_ENTITIES[name]
        assert issubclass(model, TenantBase)
        assert model.__table__.metadata is TenantBase.metadata


class TestCentralModels:
    """Test global database models."""

    def test_site_id_is_plain_integer(self) -> None:
        """Verify the site id is assigned explicitly, not generated."""
        id_column = Site.__table__.c.id
        assert id_column.primary_key
        assert id_column.autoincrement is False

    def test_user_unique_fields(self) -> None:
        """Verify username and email are unique."""
        columns = User.__table__.c
        assert columns.username.unique
        assert columns.email.unique

    def test_user_full_name(self) -> None:
        """Verify full_name joins first and last name."""
        assert User(first_name="Ada", last_name="Lovelace").full_name == "Ada Lovelace"
        assert User(first_name="Ada", last_name="").full_name == "Ada"


class TestTenantModels:
    """Test site database models."""

    def test_content_rows_carry_no_site_id(self) -> None:
        """Verify the database, not a column, is the tenant boundary."""
        assert "site_id" not in Post.__table__.c
        assert "site_id" not in Menu.__table__.c

    def test_post_indexes(self) -> None:
        """Verify the post listing indexes."""
        names = {index.name for index in Post.__table__.indexes}
        assert {"ix_posts_type_status", "ix_posts_type_published"} <= names

    def test_activity_log_in_both_scopes(self) -> None:
        """Verify the activity log shares its layout across scopes."""
        assert GlobalActivityLog.__tablename__ == SiteActivityLog.__tablename__ == "activity_logs"
        assert set(GlobalActivityLog.__table__.c.keys()) == set(SiteActivityLog.__table__.c.keys())
        assert GlobalActivityLog.__table__ is not SiteActivityLog.__table__


class TestLoadedTimestamps:
    """Test timestamps read back from the database."""

    @pytest.mark.asyncio
    async def test_site_timestamps_are_utc(self, factory: ModelFactory, author_id: uuid.UUID) -> None:
        """Verify a loaded post carries aware UTC timestamps."""
        posts = await SiteModels(factory, 1).post()
        created = await posts.create(
            post_type="post", title="Hello", slug="hello", status="published", author_id=author_id
        )

        loaded = await posts.get(created.id)

        assert loaded is not None
        assert loaded.published_at.tzinfo is timezone.utc
        assert loaded.created_at.tzinfo is timezone.utc
        assert loaded.published_at == created.published_at

    @pytest.mark.asyncio
    async def test_global_timestamps_are_utc(self, global_models: GlobalModels) -> None:
        """Verify instances returned by find carry aware UTC timestamps."""
        sites = await global_models.site()
        await sites.create(id=1, name="default", display_name="Default Site")

        (site,) = await sites.find(name="default")

        assert site.created_at.tzinfo is timezone.utc
        assert site.updated_at.tzinfo is timezone.utc
