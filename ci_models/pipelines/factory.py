"""Pipeline factory."""

from collections.abc import Mapping
from typing import Any

from ci_models.factory import BaseFactory
from ci_models.pipelines.models import Pipeline


class PipelineFactory(BaseFactory):
    """Fetches and persists pipelines."""

    kind = "pipeline"
    record_class = Pipeline

    def create_class(self, config: Mapping[str, Any]) -> Pipeline:
        """Instantiate a Pipeline able to resolve its jobs."""
        return Pipeline(
            {
                **config,
                "datastore": self.datastore,
                "scm": self.scm_plugin,
                "registry": self.registry,
            }
        )


__all__ = ["PipelineFactory"]
