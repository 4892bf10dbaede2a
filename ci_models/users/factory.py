"""User factory."""

from collections.abc import Mapping
from typing import Any

from ci_models.factory import BaseFactory, FactoryRegistry
from ci_models.types import TokenSealer
from ci_models.users.models import User


class UserFactory(BaseFactory):
    """Fetches and persists users.

    Args:
        datastore: Datastore holding the users table.
        sealer: Decrypts the users' stored tokens.
        scm_plugin: Optional source-control capability.
        registry: Registry this factory belongs to.
    """

    kind = "user"
    record_class = User
    required_config = ("datastore", "sealer")
    config_keys = ("datastore", "scm_plugin", "sealer")

    def __init__(
        self,
        datastore: Any,
        sealer: TokenSealer,
        scm_plugin: Any | None = None,
        registry: FactoryRegistry | None = None,
    ) -> None:
        super().__init__(datastore, scm_plugin=scm_plugin, registry=registry)
        self.sealer = sealer

    def create_class(self, config: Mapping[str, Any]) -> User:
        """Instantiate a User able to unseal its token."""
        return User(
            {
                **config,
                "datastore": self.datastore,
                "scm": self.scm_plugin,
                "sealer": self.sealer,
            }
        )


__all__ = ["UserFactory"]
