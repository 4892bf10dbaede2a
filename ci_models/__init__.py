"""CI models - change-tracked records and factories for a CI pipeline service.

This package provides the persistence/domain layer for pipelines, jobs,
users and builds: records that diff against their last-persisted state,
factories that fetch and persist them, and the build orchestrator.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
