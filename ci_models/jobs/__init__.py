"""Job records and factory."""

from ci_models.jobs.factory import JobFactory
from ci_models.jobs.models import Job

__all__ = ["Job", "JobFactory"]
