"""User records and factory."""

from ci_models.users.factory import UserFactory
from ci_models.users.models import User

__all__ = ["User", "UserFactory"]
