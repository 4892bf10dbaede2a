"""Pipeline records and factory."""

from ci_models.pipelines.factory import PipelineFactory
from ci_models.pipelines.models import Pipeline

__all__ = ["Pipeline", "PipelineFactory"]
