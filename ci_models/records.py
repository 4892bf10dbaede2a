"""Change-tracked entity records.

A record is the in-memory form of one persisted datastore row. Its only
visible attributes are the fields declared by the kind's schema, in
declared order. Assigning a field records the new value in a change set;
update() persists exactly that change set and nothing else.

Datastore and source-control handles are private capabilities: they are
kept in slots, so they never appear in vars(), to_json() or str().
"""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from ci_models.errors import RecordValidationError
from ci_models.schema import ModelSchema, get_schema

if TYPE_CHECKING:
    from ci_models.types import ScmPlugin

logger = logging.getLogger(__name__)


class BaseRecord:
    """Base class for all entity records.

    Args:
        kind: Entity kind with a registered schema.
        config: Field values plus the ``datastore`` and ``scm`` (or
            ``scm_plugin``) capabilities. Keys that are neither declared
            fields nor capabilities are ignored.

    Raises:
        RecordValidationError: If the id or a required field is missing,
            or a value does not match the schema.
    """

    __slots__ = (
        "__dict__",
        "_schema",
        "_datastore",
        "_scm",
        "_snapshot",
        "_changes",
    )

    def __init__(self, kind: str, config: Mapping[str, Any]) -> None:
        schema = get_schema(kind)
        present = {key: config[key] for key in schema.all_keys if key in config}
        try:
            validated = schema.model.model_validate(present)
        except ValidationError as e:
            raise RecordValidationError(
                f"Invalid {kind} config: {e.error_count()} validation error(s)",
                details=[dict(err) for err in e.errors(include_url=False)],
            ) from e

        values = {key: getattr(validated, key) for key in schema.all_keys}

        object.__setattr__(self, "_schema", schema)
        object.__setattr__(self, "_datastore", config.get("datastore"))
        object.__setattr__(self, "_scm", config.get("scm", config.get("scm_plugin")))
        object.__setattr__(self, "_snapshot", copy.deepcopy(values))
        object.__setattr__(self, "_changes", {})
        self.__dict__.update(values)

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_"):
            object.__setattr__(self, name, value)
            return
        if name not in self._schema.all_keys:
            raise AttributeError(f"{self._schema.kind} has no field '{name}'")

        self.__dict__[name] = value
        if value == self._snapshot[name]:
            self._changes.pop(name, None)
        else:
            self._changes[name] = value

    @property
    def schema(self) -> ModelSchema:
        """Schema of this record's entity kind."""
        return self._schema

    @property
    def scm(self) -> ScmPlugin | None:
        """Source-control capability injected at construction."""
        return self._scm

    def is_dirty(self, key: str | None = None) -> bool:
        """Check for unsaved changes.

        Args:
            key: Optional field name. When given, only that field is checked.

        Returns:
            True if the record (or the given field) differs from the last
            persisted state.
        """
        if key is None:
            return bool(self._changes)
        return key in self._changes

    async def update(self) -> BaseRecord:
        """Persist changed fields.

        A record without changes resolves immediately without touching the
        datastore. Datastore errors propagate unchanged and leave the
        change set intact.

        Returns:
            This record.
        """
        if not self._changes:
            logger.debug(
                "%s %s has no changes, skipping update", self._schema.kind, self.id
            )
            return self

        changes = dict(self._changes)
        logger.debug(
            "Updating %s %s fields: %s",
            self._schema.kind,
            self.id,
            ", ".join(changes),
        )
        await self._datastore.update(
            {
                "table": self._schema.table_name,
                "params": {"id": self.id, "data": changes},
            }
        )

        for key, value in changes.items():
            self._snapshot[key] = copy.deepcopy(value)
            current = self.__dict__[key]
            if current == value:
                self._changes.pop(key, None)
            else:
                # Reassigned while the write was in flight
                self._changes[key] = current
        return self

    def to_json(self) -> dict[str, Any]:
        """Return the declared fields and their current values in order."""
        return {key: self.__dict__[key] for key in self._schema.all_keys}

    def __str__(self) -> str:
        return json.dumps(self.to_json(), separators=(",", ":"))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BaseRecord):
            return NotImplemented
        return (
            self._schema.kind == other._schema.kind
            and self.to_json() == other.to_json()
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        """Return string representation of the record."""
        return f"<{type(self).__name__}(kind='{self._schema.kind}', id='{self.id}')>"


__all__ = ["BaseRecord"]
