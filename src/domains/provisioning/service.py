# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Site provisioning service.

This module provides site lifecycle operations on the site directory:
- Site creation: directory record, site database bootstrap, audit entry
- Site listing with search, active filter and pagination

Site creation is not atomic. The directory record commits first, then
the site database is bootstrapped. A bootstrap failure leaves the site
listed but not fully initialized, reported as SiteInitializationError.

Example:
    >>> service = SiteProvisioningService(factory)
    >>> provisioned = await service.create_site("blog", "Blog", created_by=admin.id)
    >>> sites, total = await service.list_sites(search="blog")
"""

import logging
import re
import uuid
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from src.domains.provisioning.activity import log_activity
from src.infrastructure.database.model_factory import EntityAccessor, GlobalModels, ModelFactory
from src.infrastructure.database.models.central import Site
from src.infrastructure.database.seeds.tenant import (
    BootstrapResult,
    TenantBootstrapError,
    seed_tenant_database,
)

logger = logging.getLogger(__name__)

SITE_NAME_PATTERN = re.compile(r"^[a-z0-9_]+$")

MAX_PER_PAGE = 100

# Id allocation attempts when concurrent creations race for max(id) + 1
MAX_ID_ATTEMPTS = 3


class SiteProvisioningError(Exception):
    """Raised when a site could not be created."""

    pass


class SiteConflictError(SiteProvisioningError):
    """Raised when a site name or domain is already taken.

    Attributes:
        field: The conflicting field: "name", "domain", or "id" when
            concurrent creations kept taking the allocated id.
        value: The conflicting value.
    """

    def __init__(self, field: str, value: str) -> None:
        super().__init__(f"A site with this {field} already exists: {value}")
        self.field = field
        self.value = value


class SiteInitializationError(SiteProvisioningError):
    """Raised when the site record exists but its database bootstrap failed.

    Attributes:
        site: The created directory record.
        bootstrap_error: The bootstrap failure, with the completed steps.
    """

    def __init__(self, site: Site, bootstrap_error: TenantBootstrapError) -> None:
        super().__init__(f"Site {site.id} ({site.name}) was created but not fully initialized")
        self.site = site
        self.bootstrap_error = bootstrap_error


@dataclass
class ProvisionedSite:
    """A created site and what its bootstrap produced."""

    site: Site
    bootstrap: BootstrapResult


class SiteProvisioningService:
    """Creates and lists sites of the platform.

    Attributes:
        _factory: Model factory for both scopes.
        _models: Global model accessors.

    Example:
        >>> service = SiteProvisioningService(factory)
        >>> provisioned = await service.create_site("shop", "Shop")
        >>> provisioned.site.id
        2
    """

    def __init__(self, factory: ModelFactory) -> None:
        """Initialize the provisioning service.

        Args:
            factory: Model factory shared with the rest of the process.
        """
        self._factory = factory
        self._models = GlobalModels(factory)

    async def create_site(
        self,
        name: str,
        display_name: str,
        domain: Optional[str] = None,
        description: Optional[str] = None,
        is_active: bool = True,
        created_by: Optional[uuid.UUID] = None,
        with_sample_content: bool = True,
    ) -> ProvisionedSite:
        """Create a site and bootstrap its database.

        This method:
        1. Validates the name and checks name/domain uniqueness
        2. Allocates the next site id and writes the directory record
        3. Bootstraps the site database
        4. Records a "site_created" activity in the global database

        Args:
            name: URL-safe identifier (lowercase letters, digits, underscores).
            display_name: Human-readable name.
            domain: Optional domain, unique across sites.
            description: Optional description.
            is_active: Whether the site starts active.
            created_by: Acting user; also credited with the sample content.
            with_sample_content: Seed starter pages, post and menus. Needs
                created_by.

        Returns:
            ProvisionedSite with the directory record and bootstrap result.

        Raises:
            ValueError: If the name is invalid.
            SiteConflictError: If the name or domain is already taken.
            SiteProvisioningError: If the directory record could not be written.
            SiteInitializationError: If the bootstrap failed after the record
                was written.
        """
        if not SITE_NAME_PATTERN.match(name or ""):
            raise ValueError(
                f"Invalid site name: {name!r}. Must contain only lowercase "
                "letters, numbers, and underscores."
            )

        sites = await self._models.site()

        if await sites.find_one(name=name):
            raise SiteConflictError("name", name)
        if domain and await sites.find_one(domain=domain):
            raise SiteConflictError("domain", domain)

        site = await self._insert_site(
            sites,
            name=name,
            display_name=display_name,
            domain=domain or "",
            description=description or "",
            is_active=is_active,
        )

        logger.info("Created site record: %s (%s)", name, site.id)

        author_id = created_by if with_sample_content else None
        try:
            bootstrap = await seed_tenant_database(self._factory, site.id, author_id)
        except TenantBootstrapError as e:
            logger.error(
                "Site %s created but bootstrap failed at %s: %s",
                site.id,
                e.step,
                e.original_error,
            )
            raise SiteInitializationError(site, e) from e

        await log_activity(
            self._models,
            user_id=created_by or "system",
            action="site_created",
            entity_type="site",
            entity_id=site.id,
            entity_name=name,
            details={"site_name": name},
            site_id=site.id,
        )

        logger.info("Site %s provisioned successfully", name)
        return ProvisionedSite(site=site, bootstrap=bootstrap)

    async def _insert_site(self, sites: EntityAccessor[Site], **values: Any) -> Site:
        """Write the directory record under the next free site id.

        A primary key collision means another creation took the id first;
        the id is then allocated again. A collision on name or domain is
        reported as a conflict on that field.
        """
        name = values["name"]
        domain = values["domain"]
        collision: Optional[IntegrityError] = None
        for _ in range(MAX_ID_ATTEMPTS):
            try:
                site_id = await self._next_site_id()
                return await sites.create(id=site_id, **values)
            except IntegrityError as e:
                if await sites.find_one(name=name):
                    raise SiteConflictError("name", name) from e
                if domain and await sites.find_one(domain=domain):
                    raise SiteConflictError("domain", domain) from e
                logger.debug("Site id %s taken concurrently, retrying", site_id)
                collision = e
            except SQLAlchemyError as e:
                raise SiteProvisioningError(f"Failed to create site '{name}': {e}") from e
        raise SiteConflictError("id", str(site_id)) from collision

    async def _next_site_id(self) -> int:
        sites = await self._models.site()
        async with sites.session() as session:
            current = (await session.execute(select(func.max(Site.id)))).scalar_one()
        return (current or 0) + 1

    async def get_site(self, site_id: int) -> Optional[Site]:
        """Get a site by id.

        Returns:
            Site if found, None otherwise.
        """
        sites = await self._models.site()
        return await sites.get(site_id)

    async def list_sites(
        self,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        page: int = 1,
        per_page: int = 10,
    ) -> tuple[list[Site], int]:
        """List sites with optional filters, ordered by id.

        Args:
            search: Substring matched against name, display name and domain.
            is_active: Filter by active status.
            page: Page number, starting at 1.
            per_page: Page size, at most MAX_PER_PAGE.

        Returns:
            Tuple of (sites on the page, total count).

        Raises:
            ValueError: If page or per_page is out of range.
        """
        if page < 1:
            raise ValueError("page must be at least 1")
        if not 1 <= per_page <= MAX_PER_PAGE:
            raise ValueError(f"per_page must be between 1 and {MAX_PER_PAGE}")

        base_stmt = select(Site)
        if search:
            pattern = f"%{search}%"
            base_stmt = base_stmt.where(
                or_(
                    Site.name.ilike(pattern),
                    Site.display_name.ilike(pattern),
                    Site.domain.ilike(pattern),
                )
            )
        if is_active is not None:
            base_stmt = base_stmt.where(Site.is_active == is_active)

        sites = await self._models.site()
        async with sites.session() as session:
            count_stmt = select(func.count()).select_from(base_stmt.subquery())
            total = (await session.execute(count_stmt)).scalar_one()

            list_stmt = base_stmt.order_by(Site.id).limit(per_page).offset((page - 1) * per_page)
            result = await session.execute(list_stmt)
            page_sites = list(result.scalars().all())

        return page_sites, total
