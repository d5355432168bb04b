# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the site provisioning service."""

import asyncio
import json
import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from src.domains.provisioning import service as service_module
from src.domains.provisioning.activity import log_activity
from src.domains.provisioning.service import (
    SiteConflictError,
    SiteInitializationError,
    SiteProvisioningError,
    SiteProvisioningService,
)
from src.infrastructure.database.model_factory import GlobalModels, ModelFactory, SiteModels
from src.infrastructure.database.seeds.central import seed_central_database
from src.infrastructure.database.seeds.tenant import TenantBootstrapError


@pytest.fixture
def service(factory: ModelFactory) -> SiteProvisioningService:
    """Provide a provisioning service over the test factory."""
    return SiteProvisioningService(factory)


class TestCreateSite:
    """Tests for SiteProvisioningService.create_site."""

    @pytest.mark.asyncio
    async def test_first_site_gets_id_one(self, service: SiteProvisioningService) -> None:
        """Test ids start at 1 on an empty directory."""
        provisioned = await service.create_site("blog", "Blog")

        assert provisioned.site.id == 1
        assert provisioned.bootstrap.site_id == 1

    @pytest.mark.asyncio
    async def test_next_id_after_default_site(
        self,
        service: SiteProvisioningService,
        global_models: GlobalModels,
        factory: ModelFactory,
        author_id: uuid.UUID,
    ) -> None:
        """Test the new site gets the next id and a bootstrapped database."""
        await seed_central_database(global_models)

        provisioned = await service.create_site(
            "shop",
            "Shop",
            domain="shop.example.com",
            description="Online shop",
            created_by=author_id,
        )

        assert provisioned.site.id == 2
        assert provisioned.site.domain == "shop.example.com"
        posts = await SiteModels(factory, 2).post()
        assert await posts.count(post_type="page") == 3
        assert len(provisioned.bootstrap.menu_items) == 6

    @pytest.mark.asyncio
    async def test_without_sample_content(
        self, service: SiteProvisioningService, factory: ModelFactory, author_id: uuid.UUID
    ) -> None:
        """Test sample content can be turned off."""
        provisioned = await service.create_site(
            "docs", "Docs", created_by=author_id, with_sample_content=False
        )

        assert provisioned.bootstrap.skipped_steps == ["sample_content"]
        posts = await SiteModels(factory, provisioned.site.id).post()
        assert await posts.count() == 0

    @pytest.mark.asyncio
    async def test_records_activity(
        self, service: SiteProvisioningService, global_models: GlobalModels, author_id: uuid.UUID
    ) -> None:
        """Test site creation is logged in the global activity log."""
        provisioned = await service.create_site("news", "News", created_by=author_id)

        activity = await (await global_models.activity_log()).find_one(action="site_created")

        assert activity is not None
        assert activity.user_id == str(author_id)
        assert activity.entity_type == "site"
        assert activity.entity_id == str(provisioned.site.id)
        assert json.loads(activity.details) == {"site_name": "news"}
        assert activity.site_id == provisioned.site.id

    @pytest.mark.parametrize("name", ["My Site", "shop-2", "UPPER", ""])
    @pytest.mark.asyncio
    async def test_invalid_name(self, service: SiteProvisioningService, name: str) -> None:
        """Test names outside [a-z0-9_] are rejected."""
        with pytest.raises(ValueError, match="Invalid site name"):
            await service.create_site(name, "Display")

    @pytest.mark.asyncio
    async def test_duplicate_name(self, service: SiteProvisioningService) -> None:
        """Test a taken name raises SiteConflictError."""
        await service.create_site("blog", "Blog")

        with pytest.raises(SiteConflictError) as exc_info:
            await service.create_site("blog", "Another Blog")

        assert exc_info.value.field == "name"
        assert isinstance(exc_info.value, SiteProvisioningError)

    @pytest.mark.asyncio
    async def test_duplicate_domain(self, service: SiteProvisioningService) -> None:
        """Test a taken domain raises SiteConflictError."""
        await service.create_site("blog", "Blog", domain="example.com")

        with pytest.raises(SiteConflictError) as exc_info:
            await service.create_site("blog2", "Blog 2", domain="example.com")

        assert exc_info.value.field == "domain"

    @pytest.mark.asyncio
    async def test_concurrent_creations_get_distinct_ids(self, service: SiteProvisioningService) -> None:
        """Test two different names created at once both succeed."""
        alpha, beta = await asyncio.gather(
            service.create_site("alpha", "Alpha"),
            service.create_site("beta", "Beta"),
        )

        assert {alpha.site.id, beta.site.id} == {1, 2}
        assert alpha.bootstrap.site_id == alpha.site.id
        assert beta.bootstrap.site_id == beta.site.id

    @pytest.mark.asyncio
    async def test_id_collision_is_not_a_name_conflict(
        self,
        service: SiteProvisioningService,
        global_models: GlobalModels,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test an id taken between allocation and insert is allocated again."""
        await service.create_site("first", "First", with_sample_content=False)
        monkeypatch.setattr(service, "_next_site_id", AsyncMock(side_effect=[1, 2]))

        provisioned = await service.create_site("second", "Second", with_sample_content=False)

        assert provisioned.site.id == 2
        assert await (await global_models.site()).count() == 2

    @pytest.mark.asyncio
    async def test_id_kept_taken_raises_id_conflict(
        self, service: SiteProvisioningService, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test repeated id collisions are reported on the id, not the name."""
        await service.create_site("first", "First", with_sample_content=False)
        monkeypatch.setattr(service, "_next_site_id", AsyncMock(return_value=1))

        with pytest.raises(SiteConflictError) as exc_info:
            await service.create_site("second", "Second", with_sample_content=False)

        assert exc_info.value.field == "id"
        assert exc_info.value.value == "1"

    @pytest.mark.asyncio
    async def test_bootstrap_failure(
        self,
        service: SiteProvisioningService,
        global_models: GlobalModels,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test a failed bootstrap leaves the site listed and is reported."""
        bootstrap_error = TenantBootstrapError(1, "settings", ["post_types", "taxonomies"], RuntimeError("boom"))
        monkeypatch.setattr(
            service_module,
            "seed_tenant_database",
            AsyncMock(side_effect=bootstrap_error),
        )

        with pytest.raises(SiteInitializationError) as exc_info:
            await service.create_site("broken", "Broken")

        assert exc_info.value.site.name == "broken"
        assert exc_info.value.bootstrap_error is bootstrap_error
        assert await (await global_models.site()).count(name="broken") == 1
        assert await (await global_models.activity_log()).count() == 0


class TestListSites:
    """Tests for SiteProvisioningService.list_sites."""

    @pytest.fixture
    def fast_service(self, service: SiteProvisioningService, monkeypatch: pytest.MonkeyPatch) -> SiteProvisioningService:
        """Provide a service whose bootstrap is a no-op."""
        monkeypatch.setattr(service_module, "seed_tenant_database", AsyncMock())
        return service

    @pytest.mark.asyncio
    async def test_pagination(self, fast_service: SiteProvisioningService) -> None:
        """Test pages are ordered by id."""
        for name in ("alpha", "beta", "gamma"):
            await fast_service.create_site(name, name.title())

        first_page, total = await fast_service.list_sites(per_page=2)
        second_page, _ = await fast_service.list_sites(page=2, per_page=2)

        assert total == 3
        assert [site.name for site in first_page] == ["alpha", "beta"]
        assert [site.name for site in second_page] == ["gamma"]

    @pytest.mark.asyncio
    async def test_search_and_active_filter(self, fast_service: SiteProvisioningService) -> None:
        """Test search matches name, display name or domain."""
        await fast_service.create_site("alpha", "First", domain="alpha.example.com")
        await fast_service.create_site("beta", "Second Blog")
        await fast_service.create_site("gamma", "Third", is_active=False)

        by_display_name, total = await fast_service.list_sites(search="blog")
        by_domain, _ = await fast_service.list_sites(search="example")
        inactive, _ = await fast_service.list_sites(is_active=False)

        assert total == 1
        assert [site.name for site in by_display_name] == ["beta"]
        assert [site.name for site in by_domain] == ["alpha"]
        assert [site.name for site in inactive] == ["gamma"]

    @pytest.mark.asyncio
    async def test_invalid_paging(self, service: SiteProvisioningService) -> None:
        """Test out-of-range paging arguments are rejected."""
        with pytest.raises(ValueError):
            await service.list_sites(page=0)
        with pytest.raises(ValueError):
            await service.list_sites(per_page=101)

    @pytest.mark.asyncio
    async def test_get_site(self, fast_service: SiteProvisioningService) -> None:
        """Test get_site by id."""
        provisioned = await fast_service.create_site("alpha", "Alpha")

        assert (await fast_service.get_site(provisioned.site.id)).name == "alpha"
        assert await fast_service.get_site(404) is None


class TestLogActivity:
    """Tests for log_activity."""

    @pytest.mark.asyncio
    async def test_serializes_snapshots(self, factory: ModelFactory, author_id: uuid.UUID) -> None:
        """Test dict payloads are stored as JSON text."""
        entry = await log_activity(
            SiteModels(factory, 1),
            user_id=author_id,
            action="post_updated",
            entity_type="post",
            entity_id=uuid.UUID(int=5),
            details="Changed title",
            changes_before={"title": "Old"},
            changes_after={"title": "New"},
            site_id=1,
        )

        assert entry is not None
        assert entry.details == "Changed title"
        assert json.loads(entry.changes_before) == {"title": "Old"}
        assert json.loads(entry.changes_after) == {"title": "New"}
        assert entry.entity_id == str(uuid.UUID(int=5))
        assert entry.site_id == 1

    @pytest.mark.asyncio
    async def test_database_failure_is_not_raised(self) -> None:
        """Test a failing activity write returns None instead of raising."""
        models = MagicMock()
        models.activity_log = AsyncMock(
            side_effect=OperationalError("INSERT", {}, Exception("database is locked"))
        )

        entry = await log_activity(models, user_id="system", action="login", entity_type="auth")

        assert entry is None
