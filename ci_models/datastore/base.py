"""Datastore protocol.

All operations are asynchronous and take a query mapping:

- get: ``{"table": ..., "params": {"id": ...}}``
- scan: ``{"table": ..., "params": {<field>: <value>}, "paginate": {"count", "page"}}``
- create: ``{"table": ..., "params": {<field>: <value>}}``
- update: ``{"table": ..., "params": {"id": ..., "data": {<field>: <value>}}}``

Rows are plain dicts keyed by field name. Backend errors are raised as-is.
"""

from collections.abc import Mapping
from typing import Any, Protocol

Row = dict[str, Any]


class Datastore(Protocol):
    """Asynchronous table-oriented storage."""

    async def get(self, query: Mapping[str, Any]) -> Row | None: ...

    async def scan(self, query: Mapping[str, Any]) -> list[Row]: ...

    async def create(self, query: Mapping[str, Any]) -> Row: ...

    async def update(self, query: Mapping[str, Any]) -> Row | None: ...


__all__ = ["Datastore", "Row"]
