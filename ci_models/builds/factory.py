"""Build factory.

This module provides the build creation API:
- create(): resolve the job, resolve the commit sha, assemble the step
  list, persist the build and start it
- get_builds_for_job_id(): list a job's builds in number order

Sibling factories (job, user) are looked up through the registry when a
build is created, not when this module is imported.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, cast

from pydantic import BaseModel, ValidationError

from ci_models.builds.models import Build
from ci_models.errors import ModelError, NotFoundError, RecordValidationError
from ci_models.factory import BaseFactory, FactoryRegistry
from ci_models.types import (
    BuildStatus,
    Executor,
    Permutation,
    ScmPlugin,
    Step,
    TokenGenerator,
)

if TYPE_CHECKING:
    from ci_models.jobs.models import Job
    from ci_models.users.models import User

logger = logging.getLogger(__name__)

# Largest matrix a job may expand to; one page of builds covers it
MATRIX_PAGE_SIZE = 25

SETUP_STEP = "sd-setup"
TEARDOWN_STEP = "sd-teardown"


class BuildRequest(BaseModel):
    """Parameters accepted by BuildFactory.create()."""

    job_id: str
    username: str
    sha: str | None = None


def _iso_timestamp(number: int) -> str:
    """Format a millisecond timestamp as ISO-8601 UTC with a Z suffix."""
    moment = datetime.fromtimestamp(number / 1000, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _permutation_index(number: int | float) -> int:
    """Pick the permutation to run from the fractional part of the build number.

    Build numbers are whole milliseconds, so this always selects the first
    permutation.
    """
    # TODO: select among all permutations once matrix jobs are supported
    fraction = str(number).partition(".")[2]
    return int(fraction) if fraction else 0


def build_steps(permutation: Permutation) -> list[Step]:
    """Assemble the ordered step list for a permutation.

    Args:
        permutation: Job permutation with an ordered ``commands`` list.

    Returns:
        One step per command, bracketed by the setup and teardown steps.
    """
    steps: list[Step] = [{"name": SETUP_STEP}]
    commands = permutation.get("commands", [])
    steps.extend({"name": command["name"]} for command in commands)
    steps.append({"name": TEARDOWN_STEP})
    return steps


async def get_commit_sha(
    *,
    job: Job,
    scm_plugin: ScmPlugin,
    registry: FactoryRegistry,
    username: str,
    sha: str | None = None,
) -> str:
    """Resolve the commit a build runs against.

    A sha supplied by the caller is used as-is. Otherwise the user and the
    job's pipeline are fetched concurrently, the user's token is unsealed
    and the scm plugin is asked for the head commit of the pipeline's
    repository.

    Args:
        job: Job being built.
        scm_plugin: Source-control capability.
        registry: Registry providing the user factory.
        username: User starting the build.
        sha: Optional commit supplied by the caller.

    Returns:
        Commit sha.

    Raises:
        NotFoundError: If the user or the pipeline does not exist.
    """
    if sha:
        return sha

    user_factory = registry.get("user")
    user, pipeline = await asyncio.gather(
        user_factory.get({"username": username}),
        job.get_pipeline(),
    )
    if user is None:
        raise NotFoundError("user")
    if pipeline is None:
        raise NotFoundError("pipeline")

    token = await cast("User", user).unseal_token()
    commit = await scm_plugin.get_commit_sha(scm_url=pipeline.scm_url, token=token)
    logger.debug("Resolved %s to commit %s", pipeline.scm_url, commit)
    return commit


class BuildFactory(BaseFactory):
    """Creates, persists and starts builds.

    Args:
        datastore: Datastore holding the builds table.
        executor: Runs started builds.
        ui_uri: Base URI of the UI, used to link to builds.
        scm_plugin: Source-control capability used to resolve commits.
        api_uri: Base URI executors call back into.
        token_gen: Generates the token a build uses to call the API.
        registry: Registry providing the job and user factories.
    """

    kind = "build"
    record_class = Build
    required_config = ("executor", "ui_uri", "scm_plugin", "datastore")
    config_keys = (
        "datastore",
        "executor",
        "ui_uri",
        "scm_plugin",
        "api_uri",
        "token_gen",
    )

    def __init__(
        self,
        datastore: Any,
        executor: Executor,
        ui_uri: str,
        scm_plugin: ScmPlugin,
        api_uri: str | None = None,
        token_gen: TokenGenerator | None = None,
        registry: FactoryRegistry | None = None,
    ) -> None:
        super().__init__(datastore, scm_plugin=scm_plugin, registry=registry)
        self.executor = executor
        self.ui_uri = ui_uri
        self.api_uri = api_uri
        self.token_gen = token_gen

    def create_class(self, config: Mapping[str, Any]) -> Build:
        """Instantiate a Build wired to this factory's executor."""
        return Build(
            {
                **config,
                "datastore": self.datastore,
                "scm": self.scm_plugin,
                "executor": self.executor,
                "api_uri": self.api_uri,
                "token_gen": self.token_gen,
                "ui_uri": self.ui_uri,
            }
        )

    async def create(self, config: Mapping[str, Any]) -> Build:
        """Create a new build for a job and start it.

        Args:
            config: ``job_id`` and ``username``, plus an optional ``sha``.

        Returns:
            The started build.

        Raises:
            RecordValidationError: If job_id or username is missing.
            NotFoundError: If the job, user or pipeline does not exist.
            ModelError: If the job has no permutation to run.
        """
        try:
            request = BuildRequest.model_validate(dict(config))
        except ValidationError as e:
            raise RecordValidationError(
                "Invalid build request",
                details=[dict(err) for err in e.errors(include_url=False)],
            ) from e

        number = int(time.time() * 1000)
        logger.info(
            "Creating build of job %s for user %s", request.job_id, request.username
        )

        job = await self.registry.get("job").get(request.job_id)
        if job is None:
            raise NotFoundError("job")
        job = cast("Job", job)

        sha = await get_commit_sha(
            job=job,
            scm_plugin=self.scm_plugin,
            registry=self.registry,
            username=request.username,
            sha=request.sha,
        )

        index = _permutation_index(number)
        try:
            permutation = job.permutations[index]
        except IndexError:
            raise ModelError(
                f"Job {job.id} has no permutation {index}",
                code="invalid_permutation",
            ) from None

        model_config = {
            "job_id": request.job_id,
            "number": number,
            "create_time": _iso_timestamp(number),
            "cause": f"Started by user {request.username}",
            "sha": sha,
            "container": permutation.get("image"),
            "status": BuildStatus.QUEUED.value,
            "steps": build_steps(permutation),
        }
        build = cast(Build, await super().create(model_config))
        return await build.start()

    async def get_builds_for_job_id(self, job_id: str) -> list[Build]:
        """List the builds of a job.

        Only the first page of MATRIX_PAGE_SIZE builds is fetched.

        Args:
            job_id: Job to list builds for.

        Returns:
            Builds ordered by ascending number.
        """
        builds = await self.list(
            params={"job_id": job_id},
            paginate={"count": MATRIX_PAGE_SIZE, "page": 1},
        )
        return sorted(cast("list[Build]", builds), key=lambda build: build.number)


__all__ = [
    "MATRIX_PAGE_SIZE",
    "SETUP_STEP",
    "TEARDOWN_STEP",
    "BuildFactory",
    "BuildRequest",
    "build_steps",
    "get_commit_sha",
]
