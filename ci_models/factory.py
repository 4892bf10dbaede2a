"""Generic factory and factory registry.

A factory fetches, lists and persists the records of one entity kind. A
registry holds at most one factory per kind for its lifetime: the first
request for a kind must carry every mandatory collaborator, later
requests reuse the cached instance and ignore their config.

Factories keep a reference to the registry that created them and look up
sibling factories through it at call time, so factories that depend on
each other never need to import each other's instances.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, ClassVar, TypeVar

from ci_models.errors import ConfigurationError
from ci_models.records import BaseRecord
from ci_models.schema import ModelSchema, generate_id, get_schema

logger = logging.getLogger(__name__)

FactoryT = TypeVar("FactoryT", bound="BaseFactory")


class FactoryRegistry:
    """Cache of factory instances, one per entity kind."""

    def __init__(self) -> None:
        self._instances: dict[str, BaseFactory] = {}

    def get_instance(
        self,
        factory_cls: type[FactoryT],
        config: Mapping[str, Any] | None = None,
    ) -> FactoryT:
        """Return the factory for factory_cls.kind, creating it on first use.

        Args:
            factory_cls: Concrete factory class.
            config: Constructor arguments. Required only on first use.

        Returns:
            The cached factory instance.

        Raises:
            ConfigurationError: If this is the first use and config lacks a
                collaborator listed in factory_cls.required_config.
        """
        existing = self._instances.get(factory_cls.kind)
        if existing is not None:
            return existing  # type: ignore[return-value]

        config = config or {}
        for key in factory_cls.required_config:
            if not config.get(key):
                raise ConfigurationError(
                    f"No {key} provided to {factory_cls.__name__}"
                )

        accepted = {
            key: value
            for key, value in config.items()
            if key in factory_cls.config_keys
        }
        instance = factory_cls(registry=self, **accepted)
        self._instances[factory_cls.kind] = instance
        logger.debug("Initialised %s", factory_cls.__name__)
        return instance

    def get(self, kind: str) -> BaseFactory:
        """Return the initialised factory for an entity kind.

        Raises:
            ConfigurationError: If no factory has been created for the kind.
        """
        try:
            return self._instances[kind]
        except KeyError:
            raise ConfigurationError(
                f"No {kind} factory has been initialised"
            ) from None

    def __contains__(self, kind: object) -> bool:
        return kind in self._instances

    def clear(self) -> None:
        """Forget all factory instances."""
        self._instances.clear()


default_registry = FactoryRegistry()


class BaseFactory:
    """Fetches, lists and persists the records of one entity kind.

    Subclasses set ``kind`` and ``record_class`` and may extend
    ``required_config``/``config_keys`` and override create_class() to
    inject extra construction-time collaborators into records.
    """

    kind: ClassVar[str]
    record_class: ClassVar[type[BaseRecord]]
    required_config: ClassVar[tuple[str, ...]] = ("datastore",)
    config_keys: ClassVar[tuple[str, ...]] = ("datastore", "scm_plugin")

    def __init__(
        self,
        datastore: Any,
        scm_plugin: Any | None = None,
        registry: FactoryRegistry | None = None,
    ) -> None:
        self.datastore = datastore
        self.scm_plugin = scm_plugin
        self.registry = registry if registry is not None else default_registry

    @property
    def schema(self) -> ModelSchema:
        """Schema of this factory's entity kind."""
        return get_schema(self.kind)

    @property
    def table(self) -> str:
        """Datastore table of this factory's entity kind."""
        return self.schema.table_name

    def create_class(self, config: Mapping[str, Any]) -> BaseRecord:
        """Instantiate a record from raw field values.

        Args:
            config: Field values of the record.

        Returns:
            Record bound to this factory's datastore and scm plugin.
        """
        return self.record_class(
            {**config, "datastore": self.datastore, "scm": self.scm_plugin}
        )

    def _resolve_id(self, id_or_filter: str | Mapping[str, Any]) -> str:
        if isinstance(id_or_filter, str):
            return id_or_filter
        if id_or_filter.get("id"):
            return str(id_or_filter["id"])
        return generate_id(self.schema, id_or_filter)

    async def get(self, id_or_filter: str | Mapping[str, Any]) -> BaseRecord | None:
        """Fetch one record.

        Args:
            id_or_filter: Record id, or a mapping with either an ``id`` or
                every unique key of the kind.

        Returns:
            The record, or None if it does not exist.
        """
        record_id = self._resolve_id(id_or_filter)
        row = await self.datastore.get(
            {"table": self.table, "params": {"id": record_id}}
        )
        if row is None:
            return None
        return self.create_class(row)

    async def list(
        self,
        params: Mapping[str, Any] | None = None,
        paginate: Mapping[str, Any] | None = None,
    ) -> list[BaseRecord]:
        """List records matching equality filters.

        Args:
            params: Field filters.
            paginate: Optional ``{"count": ..., "page": ...}``.

        Returns:
            Records in datastore order.
        """
        query: dict[str, Any] = {"table": self.table, "params": dict(params or {})}
        if paginate is not None:
            query["paginate"] = dict(paginate)
        rows = await self.datastore.scan(query)
        return [self.create_class(row) for row in rows]

    async def create(self, config: Mapping[str, Any]) -> BaseRecord:
        """Construct and persist a new record.

        An id is derived from the kind's unique keys when config has none.

        Args:
            config: Field values of the new record.

        Returns:
            The persisted record.
        """
        values = dict(config)
        if not values.get("id"):
            values["id"] = generate_id(self.schema, values)

        record = self.create_class(values)
        await self.datastore.create({"table": self.table, "params": record.to_json()})
        logger.info("Created %s %s", self.kind, record.id)
        return record

    @classmethod
    def get_instance(
        cls: type[FactoryT], config: Mapping[str, Any] | None = None
    ) -> FactoryT:
        """Return the process-wide factory for this kind.

        See FactoryRegistry.get_instance().
        """
        return default_registry.get_instance(cls, config)


__all__ = ["BaseFactory", "FactoryRegistry", "default_registry"]
