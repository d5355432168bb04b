# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Site database bootstrap.

Populates a new site database with the baseline entities every content
feature expects:
- Post types (post, page) and taxonomies (category, tag)
- Default settings
- The "Uncategorized" category
- Menu locations (header, footer) and a top-level media folder
- Every remaining table, created empty
- Sample pages, post and menus, when an author is given

Steps run strictly in BOOTSTRAP_STEPS order and each one commits on its
own. The sequence is not transactional: when a step fails, the earlier
steps stay committed and TenantBootstrapError reports how far it got.
No step checks for existing rows, so running the bootstrap twice on the
same site duplicates or conflicts with the first run.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from src.infrastructure.database.model_factory import ModelFactory, SiteModels
from src.infrastructure.database.models.tenant import (
    MediaFolder,
    Menu,
    MenuItem,
    MenuLocation,
    Post,
    PostType,
    Setting,
    Taxonomy,
    Term,
)
from src.utils.logging import site_context

logger = logging.getLogger(__name__)


DEFAULT_SETTINGS: tuple[dict[str, Any], ...] = (
    {"key": "site_title", "value": "Next CMS", "type": "string", "group": "general", "label": "Site Title"},
    {"key": "site_tagline", "value": "A modern content management system", "type": "string", "group": "general", "label": "Site Tagline"},
    {"key": "session_timeout", "value": 30, "type": "number", "group": "authentication", "label": "Session Timeout (minutes)"},
    {"key": "max_upload_size", "value": 10, "type": "number", "group": "media", "label": "Max Upload Size (MB)"},
    {
        "key": "allowed_file_types",
        "value": ["image/jpeg", "image/png", "image/gif", "image/webp", "application/pdf"],
        "type": "json",
        "group": "media",
        "label": "Allowed File Types",
    },
)

DEFAULT_TERM = {"taxonomy": "category", "name": "Uncategorized", "slug": "uncategorized"}

DEFAULT_MEDIA_FOLDER = "Uploads"


class TenantBootstrapError(Exception):
    """Raised when a bootstrap step fails after earlier steps committed.

    Attributes:
        site_id: The site being bootstrapped.
        step: Name of the failed step.
        completed_steps: Steps that committed before the failure.
        original_error: The underlying exception.
    """

    def __init__(
        self,
        site_id: int,
        step: str,
        completed_steps: list[str],
        original_error: Exception,
    ) -> None:
        """Initialize the error.

        Args:
            site_id: The site being bootstrapped.
            step: Name of the failed step.
            completed_steps: Steps that committed before the failure.
            original_error: The underlying exception.
        """
        super().__init__(
            f"Bootstrap of site {site_id} failed at step '{step}' "
            f"after {len(completed_steps)} completed step(s): {original_error}"
        )
        self.site_id = site_id
        self.step = step
        self.completed_steps = completed_steps
        self.original_error = original_error

    @property
    def is_partial(self) -> bool:
        """True if some steps committed before the failure."""
        return bool(self.completed_steps)


@dataclass
class BootstrapResult:
    """Entities created by a bootstrap run.

    Attributes:
        site_id: The bootstrapped site.
        author_id: Author of the sample content, if any.
        completed_steps: Names of the steps that committed, in order.
        skipped_steps: Names of the steps that did not apply.
    """

    site_id: int
    author_id: Optional[uuid.UUID] = None
    post_types: list[PostType] = field(default_factory=list)
    taxonomies: list[Taxonomy] = field(default_factory=list)
    settings: list[Setting] = field(default_factory=list)
    terms: list[Term] = field(default_factory=list)
    menu_locations: list[MenuLocation] = field(default_factory=list)
    media_folders: list[MediaFolder] = field(default_factory=list)
    collections: list[str] = field(default_factory=list)
    pages: list[Post] = field(default_factory=list)
    posts: list[Post] = field(default_factory=list)
    menus: list[Menu] = field(default_factory=list)
    menu_items: list[MenuItem] = field(default_factory=list)
    completed_steps: list[str] = field(default_factory=list)
    skipped_steps: list[str] = field(default_factory=list)


async def seed_post_types(models: SiteModels, result: BootstrapResult) -> None:
    """Create the "post" and "page" content types."""
    post_types = await models.post_type()
    result.post_types = await post_types.create_many([
        {
            "name": "post",
            "slug": "posts",
            "labels": {
                "singular_name": "Post",
                "plural_name": "Posts",
                "add_new": "Add New Post",
                "edit_item": "Edit Post",
                "view_item": "View Post",
                "all_items": "All Posts",
            },
            "description": "Standard blog posts",
            "is_hierarchical": False,
            "is_public": True,
            "supports": ["title", "editor", "thumbnail", "excerpt", "comments", "custom_fields", "author"],
            "menu_icon": "📝",
            "menu_position": 5,
            "show_in_dashboard": True,
            "has_archive": True,
            "rewrite_slug": "blog",
            "taxonomies": ["category", "tag"],
        },
        {
            "name": "page",
            "slug": "pages",
            "labels": {
                "singular_name": "Page",
                "plural_name": "Pages",
                "add_new": "Add New Page",
                "edit_item": "Edit Page",
                "view_item": "View Page",
                "all_items": "All Pages",
            },
            "description": "Static pages",
            "is_hierarchical": True,
            "is_public": True,
            "supports": ["title", "editor", "thumbnail", "excerpt", "custom_fields", "author"],
            "menu_icon": "📄",
            "menu_position": 20,
            "show_in_dashboard": True,
            "has_archive": False,
            "taxonomies": [],
        },
    ])
    logger.info("Seeded %d post types", len(result.post_types))


async def seed_taxonomies(models: SiteModels, result: BootstrapResult) -> None:
    """Create the "category" and "tag" taxonomies for posts."""
    taxonomies = await models.taxonomy()
    result.taxonomies = await taxonomies.create_many([
        {
            "name": "category",
            "slug": "category",
            "labels": {
                "singular_name": "Category",
                "plural_name": "Categories",
                "all_items": "All Categories",
                "edit_item": "Edit Category",
                "add_new_item": "Add New Category",
            },
            "description": "Post categories",
            "is_hierarchical": True,
            "is_public": True,
            "show_in_dashboard": True,
            "post_types": ["post"],
            "rewrite_slug": "category",
        },
        {
            "name": "tag",
            "slug": "tag",
            "labels": {
                "singular_name": "Tag",
                "plural_name": "Tags",
                "all_items": "All Tags",
                "edit_item": "Edit Tag",
                "add_new_item": "Add New Tag",
            },
            "description": "Post tags",
            "is_hierarchical": False,
            "is_public": True,
            "show_in_dashboard": True,
            "post_types": ["post"],
            "rewrite_slug": "tag",
        },
    ])
    logger.info("Seeded %d taxonomies", len(result.taxonomies))


async def seed_settings(models: SiteModels, result: BootstrapResult) -> None:
    """Create the default settings rows."""
    settings = await models.setting()
    result.settings = await settings.create_many(dict(row) for row in DEFAULT_SETTINGS)
    logger.info("Seeded %d settings", len(result.settings))


async def seed_default_term(models: SiteModels, result: BootstrapResult) -> None:
    """Create the "Uncategorized" category."""
    terms = await models.term()
    result.terms = [await terms.create(**DEFAULT_TERM)]
    logger.info("Seeded default term %s", DEFAULT_TERM["slug"])


async def seed_menu_locations(models: SiteModels, result: BootstrapResult) -> None:
    """Create the header and footer menu locations."""
    locations = await models.menu_location()
    result.menu_locations = await locations.create_many([
        {"name": "header", "display_name": "Header", "description": "Main navigation in the site header"},
        {"name": "footer", "display_name": "Footer", "description": "Links in the site footer"},
    ])
    logger.info("Seeded %d menu locations", len(result.menu_locations))


async def seed_media_folder(models: SiteModels, result: BootstrapResult) -> None:
    """Create the top-level media folder."""
    folders = await models.media_folder()
    result.media_folders = [await folders.create(name=DEFAULT_MEDIA_FOLDER, parent_id=None)]
    logger.info("Seeded media folder %s", DEFAULT_MEDIA_FOLDER)


async def ensure_collections(models: SiteModels, result: BootstrapResult) -> None:
    """Create every table the previous steps did not touch.

    Administrative tooling lists tables per site; an empty table and a
    missing one must not look different to it.
    """
    factory = models.factory
    for entity_name in factory.entity_names(models.site_id):
        if factory.is_registered(models.site_id, entity_name):
            continue
        await models.get(entity_name)
        result.collections.append(entity_name)
    logger.info("Created %d empty tables", len(result.collections))


async def seed_sample_content(models: SiteModels, result: BootstrapResult) -> None:
    """Create starter pages, a post and header/footer menus.

    The header menu links the three pages and the blog archive; the
    footer menu holds two placeholder links.
    """
    author_id = result.author_id
    posts = await models.post()

    result.pages = await posts.create_many([
        {
            "post_type": "page",
            "title": "Home",
            "slug": "home",
            "content": "<p>Welcome to your new site.</p>",
            "status": "published",
            "author_id": author_id,
            "order": 0,
        },
        {
            "post_type": "page",
            "title": "About",
            "slug": "about",
            "content": "<p>Tell your visitors about yourself.</p>",
            "status": "published",
            "author_id": author_id,
            "order": 1,
        },
        {
            "post_type": "page",
            "title": "Contact",
            "slug": "contact",
            "content": "<p>Let visitors know how to reach you.</p>",
            "status": "published",
            "author_id": author_id,
            "order": 2,
        },
    ])

    hello = await posts.create(
        post_type="post",
        title="Hello World",
        slug="hello-world",
        content="<p>This is your first post. Edit or delete it, then start writing!</p>",
        excerpt="This is your first post.",
        status="published",
        author_id=author_id,
    )
    result.posts = [hello]

    if result.terms:
        category = result.terms[0]
        post_terms = await models.post_term()
        await post_terms.create(post_id=hello.id, term_id=category.id, taxonomy=category.taxonomy)
        terms = await models.term()
        await terms.update(category.id, count=category.count + 1)

    menus = await models.menu()
    header, footer = await menus.create_many([
        {"name": "main-menu", "display_name": "Main Menu", "location": "header"},
        {"name": "footer-menu", "display_name": "Footer Menu", "location": "footer"},
    ])
    result.menus = [header, footer]

    home, about, contact = result.pages
    menu_items = await models.menu_item()
    result.menu_items = await menu_items.create_many([
        {"menu_id": header.id, "type": "post", "object_id": home.id, "custom_label": home.title, "menu_order": 0},
        {"menu_id": header.id, "type": "post", "object_id": about.id, "custom_label": about.title, "menu_order": 1},
        {"menu_id": header.id, "type": "post", "object_id": contact.id, "custom_label": contact.title, "menu_order": 2},
        {"menu_id": header.id, "type": "custom", "custom_url": "/blog", "custom_label": "Blog", "menu_order": 3},
        {"menu_id": footer.id, "type": "custom", "custom_url": "#", "custom_label": "Privacy Policy", "menu_order": 0},
        {"menu_id": footer.id, "type": "custom", "custom_url": "#", "custom_label": "Terms of Service", "menu_order": 1},
    ])
    logger.info(
        "Seeded %d pages, %d post, %d menus, %d menu items",
        len(result.pages),
        len(result.posts),
        len(result.menus),
        len(result.menu_items),
    )


BootstrapStep = Callable[[SiteModels, BootstrapResult], Awaitable[None]]

# Later steps read ids produced by earlier ones; keep this order
BOOTSTRAP_STEPS: tuple[tuple[str, BootstrapStep], ...] = (
    ("post_types", seed_post_types),
    ("taxonomies", seed_taxonomies),
    ("settings", seed_settings),
    ("default_term", seed_default_term),
    ("menu_locations", seed_menu_locations),
    ("media_folder", seed_media_folder),
    ("collections", ensure_collections),
    ("sample_content", seed_sample_content),
)

AUTHOR_STEPS = frozenset({"sample_content"})


async def seed_tenant_database(
    factory: ModelFactory,
    site_id: int,
    author_id: Optional[uuid.UUID] = None,
) -> BootstrapResult:
    """Bootstrap a new site database.

    Meant to run once, right after the site record is created. Without an
    author the site ends up structurally complete but without content.

    Args:
        factory: Model factory used for every write.
        site_id: The new site's numeric id.
        author_id: Optional user id credited with the sample content.

    Returns:
        BootstrapResult with every created entity.

    Raises:
        ValueError: If the site id is invalid.
        TenantBootstrapError: If a step fails. Earlier steps are not
            rolled back.
    """
    models = SiteModels(factory, site_id)
    result = BootstrapResult(site_id=site_id, author_id=author_id)

    with site_context(site_id):
        logger.info("Bootstrapping site %s database...", site_id)

        for step_name, step in BOOTSTRAP_STEPS:
            if step_name in AUTHOR_STEPS and author_id is None:
                result.skipped_steps.append(step_name)
                continue

            try:
                await step(models, result)
            except Exception as e:
                logger.error(
                    "Bootstrap of site %s failed at step %s (completed: %s): %s",
                    site_id,
                    step_name,
                    ", ".join(result.completed_steps) or "none",
                    e,
                )
                raise TenantBootstrapError(site_id, step_name, list(result.completed_steps), e) from e

            result.completed_steps.append(step_name)

        logger.info("Site %s bootstrap complete", site_id)
    return result


if __name__ == "__main__":
    import argparse

    from src.core.config import get_settings
    from src.infrastructure.database.connection import ConnectionRegistry
    from src.utils.logging import setup_logging

    async def main() -> None:
        parser = argparse.ArgumentParser(description="Bootstrap a site database")
        parser.add_argument("site_id", type=int)
        parser.add_argument("--author", type=uuid.UUID, default=None)
        args = parser.parse_args()

        settings = get_settings()
        setup_logging(settings)
        registry = ConnectionRegistry(settings.database)
        try:
            await seed_tenant_database(ModelFactory(registry), args.site_id, args.author)
        finally:
            await registry.release_all()

    asyncio.run(main())
