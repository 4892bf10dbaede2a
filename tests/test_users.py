"""Tests for users/ module."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from ci_models.errors import ConfigurationError, ModelError
from ci_models.factory import FactoryRegistry
from ci_models.users import User, UserFactory


@pytest.fixture
def sealer():
    """Create a token sealer mock."""
    mock = MagicMock()
    mock.unseal = AsyncMock(return_value="plain-token")
    return mock


@pytest.fixture
def factory(sealer):
    """Create a user factory."""
    return FactoryRegistry().get_instance(
        UserFactory, {"datastore": MagicMock(), "sealer": sealer}
    )


class TestUnsealToken:
    """Tests for User.unseal_token()."""

    def test_unseals_stored_token(self, factory, sealer):
        """Should hand the sealed token to the sealer."""
        user = factory.create_class({"id": "u1", "username": "batman", "token": "x"})

        assert asyncio.run(user.unseal_token()) == "plain-token"
        sealer.unseal.assert_awaited_once_with("x")

    def test_no_token(self, factory, sealer):
        """A user without a token cannot be unsealed."""
        user = factory.create_class({"id": "u1", "username": "batman"})

        with pytest.raises(ModelError) as exc_info:
            asyncio.run(user.unseal_token())
        assert exc_info.value.code == "missing_token"
        sealer.unseal.assert_not_called()

    def test_no_sealer(self):
        """A user built without a sealer cannot be unsealed."""
        user = User({"id": "u1", "username": "batman", "token": "x"})

        with pytest.raises(ModelError) as exc_info:
            asyncio.run(user.unseal_token())
        assert exc_info.value.code == "no_sealer"

    def test_sealer_error_propagates(self, factory, sealer):
        """Sealer failures should propagate unchanged."""
        error = ValueError("bad seal")
        sealer.unseal.side_effect = error
        user = factory.create_class({"id": "u1", "username": "batman", "token": "x"})

        with pytest.raises(ValueError) as exc_info:
            asyncio.run(user.unseal_token())
        assert exc_info.value is error


class TestUserFactory:
    """Tests for UserFactory configuration."""

    def test_requires_sealer(self):
        """First use without a sealer should fail."""
        with pytest.raises(ConfigurationError, match="No sealer provided"):
            FactoryRegistry().get_instance(UserFactory, {"datastore": MagicMock()})

    def test_token_is_a_field(self, factory):
        """The sealed token is stored like any other field."""
        user = factory.create_class({"id": "u1", "username": "batman", "token": "x"})
        assert user.to_json() == {"id": "u1", "username": "batman", "token": "x"}
