"""Factory lifecycle.

Services owns one FactoryRegistry and the collaborators the factories
need. Call init() once at process start, before serving requests, and
pass the Services object (or its factories) to whatever needs them. Call
shutdown() on exit.
"""

from __future__ import annotations

import logging
from typing import Any, cast

from ci_models.builds.factory import BuildFactory
from ci_models.config import Settings, get_settings
from ci_models.factory import FactoryRegistry
from ci_models.jobs.factory import JobFactory
from ci_models.pipelines.factory import PipelineFactory
from ci_models.types import Executor, ScmPlugin, TokenGenerator, TokenSealer
from ci_models.users.factory import UserFactory

logger = logging.getLogger(__name__)


class Services:
    """Caller-owned set of factories sharing one registry.

    Args:
        datastore: Datastore shared by every factory.
        executor: Runs started builds.
        scm_plugin: Source-control capability.
        sealer: Decrypts user tokens.
        settings: Application settings; loaded from the environment if omitted.
        token_gen: Optional build token generator.
        registry: Registry to populate; a fresh one by default.
    """

    def __init__(
        self,
        datastore: Any,
        executor: Executor,
        scm_plugin: ScmPlugin,
        sealer: TokenSealer,
        settings: Settings | None = None,
        token_gen: TokenGenerator | None = None,
        registry: FactoryRegistry | None = None,
    ) -> None:
        self.settings = settings if settings is not None else get_settings()
        self.datastore = datastore
        self.registry = registry if registry is not None else FactoryRegistry()
        self._config: dict[str, Any] = {
            "datastore": datastore,
            "executor": executor,
            "scm_plugin": scm_plugin,
            "sealer": sealer,
            "ui_uri": self.settings.ui_uri,
            "api_uri": self.settings.api_uri,
            "token_gen": token_gen,
        }

    def init(self) -> FactoryRegistry:
        """Create every factory.

        Calling init() again returns the already-created factories.

        Returns:
            The populated registry.

        Raises:
            ConfigurationError: If a mandatory collaborator is missing.
        """
        for factory_cls in (PipelineFactory, JobFactory, UserFactory, BuildFactory):
            self.registry.get_instance(factory_cls, self._config)
        logger.info("Initialised factories for pipelines, jobs, users and builds")
        return self.registry

    async def shutdown(self) -> None:
        """Drop the factories and release the datastore."""
        self.registry.clear()
        dispose = getattr(self.datastore, "dispose", None)
        if callable(dispose):
            dispose()
        logger.info("Factories shut down")

    @property
    def pipelines(self) -> PipelineFactory:
        """Pipeline factory."""
        return cast(PipelineFactory, self.registry.get("pipeline"))

    @property
    def jobs(self) -> JobFactory:
        """Job factory."""
        return cast(JobFactory, self.registry.get("job"))

    @property
    def users(self) -> UserFactory:
        """User factory."""
        return cast(UserFactory, self.registry.get("user"))

    @property
    def builds(self) -> BuildFactory:
        """Build factory."""
        return cast(BuildFactory, self.registry.get("build"))


__all__ = ["Services"]
