"""Shared type definitions for ci_models.

This module contains enums, TypedDicts and the protocols of the external
collaborators (source control, executor, token sealer) shared across
subpackages to avoid circular imports.
"""

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Protocol, TypedDict


class BuildStatus(str, Enum):
    """Status of a build."""

    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    ABORTED = "ABORTED"


class JobState(str, Enum):
    """Whether a job accepts new builds."""

    ENABLED = "ENABLED"
    DISABLED = "DISABLED"


class Command(TypedDict, total=False):
    """A single named command of a job permutation."""

    name: str
    command: str


class Permutation(TypedDict, total=False):
    """One concrete image/command-list combination a job can run."""

    image: str
    commands: list[Command]
    environment: dict[str, str]


class Step(TypedDict):
    """One named unit of a build's execution pipeline."""

    name: str


class ScmPlugin(Protocol):
    """Source-control capability used to resolve commit identifiers."""

    def get_commit_sha(self, *, scm_url: str, token: str) -> Awaitable[str]: ...


class Executor(Protocol):
    """Compute capability that runs a build."""

    def start(
        self,
        *,
        build_id: str,
        container: str | None,
        api_uri: str | None,
        token: str | None,
    ) -> Awaitable[Any]: ...


class TokenSealer(Protocol):
    """Decrypts stored user credentials."""

    def unseal(self, sealed: str) -> Awaitable[str]: ...


TokenGenerator = Callable[[str], str]


__all__ = [
    "BuildStatus",
    "Command",
    "Executor",
    "JobState",
    "Permutation",
    "ScmPlugin",
    "Step",
    "TokenGenerator",
    "TokenSealer",
]
