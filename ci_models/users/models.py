"""User record."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from ci_models.errors import ModelError
from ci_models.records import BaseRecord

if TYPE_CHECKING:
    from ci_models.types import TokenSealer


class User(BaseRecord):
    """A source-control user with a sealed access token."""

    __slots__ = ("_sealer",)

    id: str
    username: str
    token: str | None

    def __init__(self, config: Mapping[str, Any]) -> None:
        super().__init__("user", config)
        self._sealer: TokenSealer | None = config.get("sealer")

    async def unseal_token(self) -> str:
        """Decrypt the stored access token.

        Returns:
            Plaintext access token.

        Raises:
            ModelError: If the user has no stored token or no sealer.
        """
        if not self.token:
            raise ModelError(
                f"User {self.username} has no stored token", code="missing_token"
            )
        if self._sealer is None:
            raise ModelError("No sealer available to unseal tokens", code="no_sealer")
        return await self._sealer.unseal(self.token)


__all__ = ["User"]
