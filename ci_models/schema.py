"""Pydantic schemas describing the fields of each entity kind.

Each entity kind (pipeline, job, user, build) declares its permitted
fields as a Pydantic model. The model's field order is the order in which
records expose and serialize their fields. The registry maps a kind to
its table name and the unique keys used to derive record ids.
"""

import hashlib
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ci_models.errors import RecordValidationError, UnknownModelError
from ci_models.types import BuildStatus, JobState


class PipelineSchema(BaseModel):
    """Schema for a pipeline.

    Attributes:
        id: Unique identifier (derived from scm_url).
        scm_url: Source-control URL of the repository, including branch.
        config_url: Source-control URL of the pipeline configuration.
        create_time: ISO-8601 creation timestamp.
        admins: Usernames allowed to administer the pipeline.
    """

    model_config = ConfigDict(extra="forbid")

    id: str
    scm_url: str
    config_url: str | None = None
    create_time: str | None = None
    admins: dict[str, bool] = Field(default_factory=dict)


class JobSchema(BaseModel):
    """Schema for a job.

    Attributes:
        id: Unique identifier (derived from pipeline_id and name).
        pipeline_id: Pipeline the job belongs to.
        name: Job name, unique within its pipeline.
        state: Whether the job accepts new builds.
        permutations: Image/command-list combinations the job can run.
    """

    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    id: str
    pipeline_id: str
    name: str
    state: JobState = JobState.ENABLED
    permutations: list[dict[str, Any]] = Field(default_factory=list)


class UserSchema(BaseModel):
    """Schema for a user.

    Attributes:
        id: Unique identifier (derived from username).
        username: Source-control username.
        token: Sealed source-control access token.
    """

    model_config = ConfigDict(extra="forbid")

    id: str
    username: str
    token: str | None = None


class BuildSchema(BaseModel):
    """Schema for a build.

    Attributes:
        id: Unique identifier (derived from job_id and number).
        job_id: Job the build runs.
        number: Creation timestamp in milliseconds, used for ordering.
        create_time: ISO-8601 creation timestamp.
        cause: Human-readable reason the build was started.
        sha: Commit the build runs against.
        container: Image the build runs in.
        status: Build status.
        steps: Ordered execution steps.
    """

    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    id: str
    job_id: str
    number: int
    create_time: str | None = None
    cause: str | None = None
    sha: str | None = None
    container: str | None = None
    status: BuildStatus = BuildStatus.QUEUED
    steps: list[dict[str, Any]] = Field(default_factory=list)


@dataclass(frozen=True)
class ModelSchema:
    """Registry entry describing one entity kind.

    Attributes:
        kind: Entity kind name (e.g. 'build').
        table_name: Datastore table holding the kind's rows.
        model: Pydantic model declaring the permitted fields.
        keys: Fields whose values uniquely identify a row.
    """

    kind: str
    table_name: str
    model: type[BaseModel]
    keys: tuple[str, ...]

    @property
    def all_keys(self) -> tuple[str, ...]:
        """Return the declared field names in order."""
        return tuple(self.model.model_fields)

    @property
    def required_keys(self) -> tuple[str, ...]:
        """Return the declared fields that have no default."""
        return tuple(
            name
            for name, info in self.model.model_fields.items()
            if info.is_required()
        )


_SCHEMAS: dict[str, ModelSchema] = {}


def register_schema(schema: ModelSchema) -> ModelSchema:
    """Register (or replace) the schema for an entity kind.

    Args:
        schema: Schema to register.

    Returns:
        The registered schema.
    """
    _SCHEMAS[schema.kind] = schema
    return schema


def get_schema(kind: str) -> ModelSchema:
    """Look up the schema for an entity kind.

    Raises:
        UnknownModelError: If no schema is registered for the kind.
    """
    try:
        return _SCHEMAS[kind]
    except KeyError:
        raise UnknownModelError(kind) from None


def generate_id(schema: ModelSchema, values: Mapping[str, Any]) -> str:
    """Derive a record id from the schema's unique keys.

    The id is the SHA-1 hex digest of the unique-key values concatenated
    in key order, so the same entity always maps to the same id.

    Args:
        schema: Schema of the entity kind.
        values: Mapping carrying every unique key.

    Returns:
        40-character hex id.

    Raises:
        RecordValidationError: If a unique key is missing.
    """
    parts = []
    for key in schema.keys:
        if values.get(key) is None:
            raise RecordValidationError(
                f"Missing unique key '{key}' for {schema.kind}"
            )
        parts.append(str(values[key]))
    return hashlib.sha1("".join(parts).encode("utf-8")).hexdigest()


register_schema(
    ModelSchema(
        kind="pipeline",
        table_name="pipelines",
        model=PipelineSchema,
        keys=("scm_url",),
    )
)
register_schema(
    ModelSchema(
        kind="job",
        table_name="jobs",
        model=JobSchema,
        keys=("pipeline_id", "name"),
    )
)
register_schema(
    ModelSchema(
        kind="user",
        table_name="users",
        model=UserSchema,
        keys=("username",),
    )
)
register_schema(
    ModelSchema(
        kind="build",
        table_name="builds",
        model=BuildSchema,
        keys=("job_id", "number"),
    )
)


__all__ = [
    "BuildSchema",
    "JobSchema",
    "ModelSchema",
    "PipelineSchema",
    "UserSchema",
    "generate_id",
    "get_schema",
    "register_schema",
]
