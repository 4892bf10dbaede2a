"""Build record."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from ci_models.records import BaseRecord

if TYPE_CHECKING:
    from ci_models.types import Executor, TokenGenerator

logger = logging.getLogger(__name__)


class Build(BaseRecord):
    """One execution of a job permutation.

    Besides its fields, a Build carries the collaborators it needs to start:
    the executor, the API URI and token generator handed to the executor,
    and the UI URI used to link to the build.
    """

    __slots__ = ("_executor", "_api_uri", "_token_gen", "_ui_uri")

    id: str
    job_id: str
    number: int
    create_time: str | None
    cause: str | None
    sha: str | None
    container: str | None
    status: str
    steps: list[dict[str, Any]]

    def __init__(self, config: Mapping[str, Any]) -> None:
        super().__init__("build", config)
        self._executor: Executor | None = config.get("executor")
        self._api_uri: str | None = config.get("api_uri")
        self._token_gen: TokenGenerator | None = config.get("token_gen")
        self._ui_uri: str | None = config.get("ui_uri")

    @property
    def url(self) -> str | None:
        """Link to this build in the UI."""
        if not self._ui_uri:
            return None
        return f"{self._ui_uri.rstrip('/')}/builds/{self.id}"

    async def start(self) -> Build:
        """Hand this build to the executor.

        Returns:
            This build.
        """
        token = self._token_gen(self.id) if self._token_gen else None
        await self._executor.start(
            build_id=self.id,
            container=self.container,
            api_uri=self._api_uri,
            token=token,
        )
        logger.info("Started build %s (%s)", self.id, self.url or "no ui link")
        return self


__all__ = ["Build"]
