"""Build records and the build factory.

This module handles:
- Build records and their start() hand-off to an executor
- Build creation: job, user, pipeline and commit resolution
- Step list assembly from a job permutation
- Listing a job's builds in number order
"""

from ci_models.builds.factory import BuildFactory
from ci_models.builds.models import Build

__all__ = ["Build", "BuildFactory"]
