# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Model factory for the multi-database layout.

Callers ask for an accessor by scope and entity name:
- Global scope (GLOBAL_TENANT): users, roles, sites, ... ({prefix}global)
- Site scope (numeric site id): posts, media, settings, ... ({prefix}site{n})

The factory resolves the database through the ConnectionRegistry, then
binds the entity's table definition to that engine exactly once. Binding
issues CREATE TABLE / CREATE INDEX with checkfirst, so a database is
usable as soon as its first accessor is returned.

Example:
    registry = ConnectionRegistry(settings.database)
    factory = ModelFactory(registry)

    posts = await factory.get_accessor(7, "Post")
    post = await posts.create(post_type="post", title="Hi", slug="hi", author_id=uid)

    users = await GlobalModels(factory).user()
    admin = await users.find_one(username="superadmin")
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Generic, Iterable, TypeVar

from sqlalchemy import Table, delete, func, select
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from src.infrastructure.database.connection import ConnectionRegistry
from src.infrastructure.database.models import CENTRAL_ENTITIES, TENANT_ENTITIES
from src.infrastructure.database.naming import GLOBAL_TENANT, TenantScope, database_name

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=DeclarativeBase)


class ConfigurationError(Exception):
    """Raised for programming mistakes in data-access configuration."""


class UnknownEntityError(ConfigurationError):
    """Raised when an entity name has no definition in the requested scope.

    Attributes:
        entity_name: The requested entity name.
        scope: GLOBAL_TENANT or the site id.
    """

    def __init__(self, entity_name: str, scope: TenantScope) -> None:
        """Initialize the error.

        Args:
            entity_name: The requested entity name.
            scope: GLOBAL_TENANT or the site id.
        """
        kind = "global" if scope == GLOBAL_TENANT else "site"
        super().__init__(f"Unknown {kind} entity: {entity_name}")
        self.entity_name = entity_name
        self.scope = scope


class EntityAccessor(Generic[ModelT]):
    """CRUD access to one entity table on one database.

    Every operation runs in its own session that commits on success and
    rolls back on error. Returned instances are detached from the session
    with their attributes loaded.

    Attributes:
        model: The entity definition.
        engine: Engine of the database the entity is bound to.
        database_name: Name of that database.
    """

    def __init__(self, model: type[ModelT], engine: AsyncEngine, database_name: str) -> None:
        self.model = model
        self.engine = engine
        self.database_name = database_name
        self._sessionmaker = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    def __repr__(self) -> str:
        return f"<EntityAccessor {self.entity_name} on {self.database_name}>"

    @property
    def entity_name(self) -> str:
        """Logical entity name, e.g. "Post"."""
        return self.model.__name__

    @property
    def table(self) -> Table:
        """Table definition of the entity."""
        return self.model.__table__  # type: ignore[return-value]

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Get an async session on the entity's database.

        The session is automatically committed on success and rolled back
        on exception.

        Yields:
            AsyncSession for database operations.
        """
        async with self._sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    def _check_fields(self, names: Iterable[str]) -> None:
        columns = self.model.__mapper__.columns
        unknown = [name for name in names if name not in columns]
        if unknown:
            raise ValueError(f"{self.entity_name} has no field(s): {', '.join(unknown)}")

    def _criteria(self, filters: dict[str, Any]) -> list[Any]:
        self._check_fields(filters)
        criteria = []
        for name, value in filters.items():
            column = getattr(self.model, name)
            criteria.append(column.is_(None) if value is None else column == value)
        return criteria

    def _create_schema(self, connection: Connection) -> None:
        self.table.create(connection, checkfirst=True)
        # Indexes added to the definition after the table was created
        for index in self.table.indexes:
            index.create(connection, checkfirst=True)

    async def ensure_indexes(self) -> None:
        """Create the table and its indexes if they do not exist yet."""
        async with self.engine.begin() as conn:
            await conn.run_sync(self._create_schema)

    async def create(self, **values: Any) -> ModelT:
        """Insert one row.

        Args:
            **values: Field values.

        Returns:
            The created instance, with defaults applied.

        Raises:
            ValueError: If a field name is unknown.
        """
        self._check_fields(values)
        instance = self.model(**values)
        async with self.session() as session:
            session.add(instance)
        return instance

    async def create_many(self, rows: Iterable[dict[str, Any]]) -> list[ModelT]:
        """Insert several rows in one transaction.

        Args:
            rows: Field values of each row.

        Returns:
            The created instances, in input order.
        """
        instances = []
        for values in rows:
            self._check_fields(values)
            instances.append(self.model(**values))

        async with self.session() as session:
            session.add_all(instances)
        return instances

    async def get(self, id: Any) -> ModelT | None:
        """Get a row by primary key."""
        async with self.session() as session:
            return await session.get(self.model, id)

    async def find(
        self,
        order_by: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
        **filters: Any,
    ) -> list[ModelT]:
        """List rows matching equality filters.

        Args:
            order_by: Field name; prefix with "-" for descending order.
            limit: Maximum number of rows.
            offset: Number of rows to skip.
            **filters: Field equality filters. None matches NULL.

        Returns:
            Matching instances.
        """
        query = select(self.model).where(*self._criteria(filters))

        if order_by:
            field = order_by.lstrip("-")
            self._check_fields([field])
            column = getattr(self.model, field)
            query = query.order_by(column.desc() if order_by.startswith("-") else column)
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        async with self.session() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def find_one(self, **filters: Any) -> ModelT | None:
        """Get the first row matching equality filters, or None."""
        rows = await self.find(limit=1, **filters)
        return rows[0] if rows else None

    async def count(self, **filters: Any) -> int:
        """Count rows matching equality filters."""
        query = select(func.count()).select_from(self.model).where(*self._criteria(filters))
        async with self.session() as session:
            return (await session.execute(query)).scalar_one()

    async def update(self, id: Any, **values: Any) -> ModelT | None:
        """Update a row by primary key.

        Args:
            id: Primary key.
            **values: Field values to set.

        Returns:
            The updated instance, or None if no row has that key.
        """
        self._check_fields(values)
        async with self.session() as session:
            instance = await session.get(self.model, id)
            if instance is None:
                return None
            for name, value in values.items():
                setattr(instance, name, value)
        return instance

    async def delete(self, id: Any) -> bool:
        """Delete a row by primary key.

        Returns:
            True if a row was deleted.
        """
        async with self.session() as session:
            instance = await session.get(self.model, id)
            if instance is None:
                return False
            await session.delete(instance)
        return True

    async def delete_many(self, **filters: Any) -> int:
        """Delete every row matching equality filters.

        Returns:
            Number of deleted rows.
        """
        statement = delete(self.model).where(*self._criteria(filters))
        async with self.session() as session:
            result = await session.execute(statement)
            return result.rowcount


class ModelFactory:
    """Resolves (scope, entity name) pairs to bound accessors.

    The registration table is keyed by (database name, entity name) and
    remembers the engine each accessor was bound to. When the registry
    hands out a new engine for a database (after a release), bindings
    made on the old engine are replaced.

    The factory does not consult the site directory: any positive site id
    resolves to a database, which is created on first use.

    Attributes:
        registry: The connection registry engines are acquired from.
    """

    def __init__(self, registry: ConnectionRegistry) -> None:
        """Initialize the factory.

        Args:
            registry: The connection registry engines are acquired from.
        """
        self.registry = registry
        self._bindings: dict[tuple[str, str], EntityAccessor[Any]] = {}
        self._pending: dict[tuple[str, str], asyncio.Task[EntityAccessor[Any]]] = {}

    def database_for(self, scope: TenantScope) -> str:
        """Get the database name of a scope."""
        return database_name(scope, self.registry.prefix)

    @staticmethod
    def definition(scope: TenantScope, entity_name: str) -> type[DeclarativeBase]:
        """Get the canonical definition of an entity in a scope.

        Raises:
            UnknownEntityError: If the scope has no such entity.
        """
        entities: dict[str, Any] = CENTRAL_ENTITIES if scope == GLOBAL_TENANT else TENANT_ENTITIES
        try:
            return entities[entity_name]
        except KeyError:
            raise UnknownEntityError(entity_name, scope) from None

    @staticmethod
    def entity_names(scope: TenantScope) -> list[str]:
        """List the entity names defined for a scope."""
        return list(CENTRAL_ENTITIES if scope == GLOBAL_TENANT else TENANT_ENTITIES)

    def is_registered(self, scope: TenantScope, entity_name: str) -> bool:
        """Check if an entity is already bound on the scope's database."""
        return (self.database_for(scope), entity_name) in self._bindings

    async def get_accessor(self, scope: TenantScope, entity_name: str) -> EntityAccessor[Any]:
        """Get the accessor of an entity in a scope.

        Args:
            scope: GLOBAL_TENANT or a site id.
            entity_name: Logical entity name, e.g. "Post".

        Returns:
            The accessor bound to the scope's database. Repeated calls
            return the same accessor.

        Raises:
            UnknownEntityError: If the scope has no such entity.
            ValueError: If the site id is invalid.
            SQLAlchemyError: If connecting or creating the table fails.
        """
        model = self.definition(scope, entity_name)
        name = self.database_for(scope)
        engine = await self.registry.acquire(name)

        key = (name, entity_name)
        accessor = self._bindings.get(key)
        if accessor is not None and accessor.engine is engine:
            return accessor

        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(self._register(key, model, engine))
            self._pending[key] = task

        return await asyncio.shield(task)

    async def _register(
        self,
        key: tuple[str, str],
        model: type[DeclarativeBase],
        engine: AsyncEngine,
    ) -> EntityAccessor[Any]:
        name, entity_name = key
        accessor: EntityAccessor[Any] = EntityAccessor(model, engine, name)
        try:
            await accessor.ensure_indexes()
        finally:
            self._pending.pop(key, None)

        self._bindings[key] = accessor
        logger.debug("Registered %s on %s", entity_name, name)
        return accessor

    async def release(self, scope: TenantScope) -> None:
        """Forget a scope's bindings and close its connection."""
        name = self.database_for(scope)
        for key in [key for key in self._bindings if key[0] == name]:
            del self._bindings[key]
        await self.registry.release(name)


class GlobalModels:
    """Accessors of the global database.

    Example:
        models = GlobalModels(factory)
        sites = await models.site()
    """

    def __init__(self, factory: ModelFactory) -> None:
        self.factory = factory

    async def get(self, entity_name: str) -> EntityAccessor[Any]:
        """Get a global accessor by entity name."""
        return await self.factory.get_accessor(GLOBAL_TENANT, entity_name)

    async def user(self) -> EntityAccessor[Any]:
        return await self.get("User")

    async def site(self) -> EntityAccessor[Any]:
        return await self.get("Site")

    async def role(self) -> EntityAccessor[Any]:
        return await self.get("Role")

    async def site_user(self) -> EntityAccessor[Any]:
        return await self.get("SiteUser")

    async def global_setting(self) -> EntityAccessor[Any]:
        return await self.get("GlobalSetting")

    async def user_meta(self) -> EntityAccessor[Any]:
        return await self.get("UserMeta")

    async def activity_log(self) -> EntityAccessor[Any]:
        return await self.get("ActivityLog")


class SiteModels:
    """Accessors of one site database.

    Example:
        models = SiteModels(factory, 7)
        posts = await models.post()
    """

    def __init__(self, factory: ModelFactory, site_id: int) -> None:
        # Validates the id up front
        factory.database_for(site_id)
        self.factory = factory
        self.site_id = site_id

    async def get(self, entity_name: str) -> EntityAccessor[Any]:
        """Get a site accessor by entity name."""
        return await self.factory.get_accessor(self.site_id, entity_name)

    async def setting(self) -> EntityAccessor[Any]:
        return await self.get("Setting")

    async def post_type(self) -> EntityAccessor[Any]:
        return await self.get("PostType")

    async def post(self) -> EntityAccessor[Any]:
        return await self.get("Post")

    async def post_meta(self) -> EntityAccessor[Any]:
        return await self.get("PostMeta")

    async def post_revision(self) -> EntityAccessor[Any]:
        return await self.get("PostRevision")

    async def taxonomy(self) -> EntityAccessor[Any]:
        return await self.get("Taxonomy")

    async def term(self) -> EntityAccessor[Any]:
        return await self.get("Term")

    async def post_term(self) -> EntityAccessor[Any]:
        return await self.get("PostTerm")

    async def menu(self) -> EntityAccessor[Any]:
        return await self.get("Menu")

    async def menu_item(self) -> EntityAccessor[Any]:
        return await self.get("MenuItem")

    async def menu_item_meta(self) -> EntityAccessor[Any]:
        return await self.get("MenuItemMeta")

    async def menu_location(self) -> EntityAccessor[Any]:
        return await self.get("MenuLocation")

    async def media(self) -> EntityAccessor[Any]:
        return await self.get("Media")

    async def media_folder(self) -> EntityAccessor[Any]:
        return await self.get("MediaFolder")

    async def activity_log(self) -> EntityAccessor[Any]:
        return await self.get("ActivityLog")


async def _all_accessors(factory: ModelFactory, scope: TenantScope) -> dict[str, EntityAccessor[Any]]:
    names = factory.entity_names(scope)
    accessors = await asyncio.gather(*(factory.get_accessor(scope, name) for name in names))
    return dict(zip(names, accessors))


async def get_global_models(factory: ModelFactory) -> dict[str, EntityAccessor[Any]]:
    """Get every global accessor, keyed by entity name."""
    return await _all_accessors(factory, GLOBAL_TENANT)


async def get_site_models(factory: ModelFactory, site_id: int) -> dict[str, EntityAccessor[Any]]:
    """Get every accessor of one site, keyed by entity name."""
    return await _all_accessors(factory, site_id)
