"""SQLAlchemy tables backing the datastore.

One table per entity kind. Column names match the schema field names in
ci_models.schema, and ids are the string ids derived from each kind's
unique keys.
"""

from typing import Any

from sqlalchemy import JSON, BigInteger, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ci_models.db import Base
from ci_models.types import BuildStatus, JobState


class PipelineRow(Base):
    """Stored pipeline."""

    __tablename__ = "pipelines"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    scm_url: Mapped[str] = mapped_column(
        String(500), nullable=False, unique=True, index=True
    )
    config_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    create_time: Mapped[str | None] = mapped_column(String(32), nullable=True)
    admins: Mapped[dict[str, bool] | None] = mapped_column(
        JSON, nullable=True, default=dict
    )

    def __repr__(self) -> str:
        """Return string representation of PipelineRow."""
        return f"<PipelineRow(id='{self.id}', scm_url='{self.scm_url}')>"


class JobRow(Base):
    """Stored job."""

    __tablename__ = "jobs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    pipeline_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    state: Mapped[str] = mapped_column(
        String(20), nullable=False, default=JobState.ENABLED.value
    )
    permutations: Mapped[list[dict[str, Any]] | None] = mapped_column(
        JSON, nullable=True, default=list
    )

    __table_args__ = (Index("ix_jobs_pipeline_name", "pipeline_id", "name"),)

    def __repr__(self) -> str:
        """Return string representation of JobRow."""
        return f"<JobRow(id='{self.id}', name='{self.name}')>"


class UserRow(Base):
    """Stored user."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    username: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True, index=True
    )
    token: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        """Return string representation of UserRow."""
        return f"<UserRow(id='{self.id}', username='{self.username}')>"


class BuildRow(Base):
    """Stored build."""

    __tablename__ = "builds"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    job_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    create_time: Mapped[str | None] = mapped_column(String(32), nullable=True)
    cause: Mapped[str | None] = mapped_column(Text, nullable=True)
    sha: Mapped[str | None] = mapped_column(String(64), nullable=True)
    container: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BuildStatus.QUEUED.value, index=True
    )
    steps: Mapped[list[dict[str, Any]] | None] = mapped_column(
        JSON, nullable=True, default=list
    )

    __table_args__ = (Index("ix_builds_job_number", "job_id", "number"),)

    def __repr__(self) -> str:
        """Return string representation of BuildRow."""
        return (
            f"<BuildRow(id='{self.id}', job_id='{self.job_id}', "
            f"number={self.number}, status='{self.status}')>"
        )


TABLES: dict[str, type[Base]] = {
    table.__tablename__: table for table in (PipelineRow, JobRow, UserRow, BuildRow)
}


__all__ = ["TABLES", "BuildRow", "JobRow", "PipelineRow", "UserRow"]
