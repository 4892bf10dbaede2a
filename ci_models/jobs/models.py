"""Job record.

A job belongs to a pipeline and describes one or more permutations
(image plus ordered command list) that its builds run.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from ci_models.factory import default_registry
from ci_models.records import BaseRecord

if TYPE_CHECKING:
    from ci_models.builds.models import Build
    from ci_models.pipelines.models import Pipeline

logger = logging.getLogger(__name__)


class Job(BaseRecord):
    """A named unit of work within a pipeline."""

    __slots__ = ("_registry", "_pipeline")

    id: str
    pipeline_id: str
    name: str
    state: str
    permutations: list[dict[str, Any]]

    def __init__(self, config: Mapping[str, Any]) -> None:
        super().__init__("job", config)
        self._registry = config.get("registry") or default_registry
        self._pipeline: Pipeline | None = None

    async def get_pipeline(self) -> Pipeline | None:
        """Fetch the pipeline this job belongs to.

        The pipeline is fetched once per record and cached.

        Returns:
            The pipeline, or None if it does not exist.
        """
        if self._pipeline is None:
            pipeline_factory = self._registry.get("pipeline")
            self._pipeline = await pipeline_factory.get(self.pipeline_id)
            if self._pipeline is None:
                logger.debug(
                    "Pipeline %s of job %s not found", self.pipeline_id, self.id
                )
        return self._pipeline

    async def get_builds(self) -> list[Build]:
        """List this job's builds ordered by number."""
        build_factory = self._registry.get("build")
        return await build_factory.get_builds_for_job_id(self.id)


__all__ = ["Job"]
