"""Pipeline record."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from ci_models.factory import default_registry
from ci_models.records import BaseRecord

if TYPE_CHECKING:
    from ci_models.jobs.models import Job


class Pipeline(BaseRecord):
    """A source repository's pipeline, owning a set of jobs."""

    __slots__ = ("_registry",)

    id: str
    scm_url: str
    config_url: str | None
    create_time: str | None
    admins: dict[str, bool]

    def __init__(self, config: Mapping[str, Any]) -> None:
        super().__init__("pipeline", config)
        self._registry = config.get("registry") or default_registry

    async def get_jobs(self) -> list[Job]:
        """List the jobs of this pipeline."""
        job_factory = self._registry.get("job")
        return await job_factory.list(params={"pipeline_id": self.id})


__all__ = ["Pipeline"]
