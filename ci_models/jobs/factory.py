"""Job factory."""

from collections.abc import Mapping
from typing import Any

from ci_models.factory import BaseFactory
from ci_models.jobs.models import Job


class JobFactory(BaseFactory):
    """Fetches and persists jobs."""

    kind = "job"
    record_class = Job

    def create_class(self, config: Mapping[str, Any]) -> Job:
        """Instantiate a Job able to resolve its pipeline and builds."""
        return Job(
            {
                **config,
                "datastore": self.datastore,
                "scm": self.scm_plugin,
                "registry": self.registry,
            }
        )


__all__ = ["JobFactory"]
