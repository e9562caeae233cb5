from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Column, Enum as SAEnum, Text, UniqueConstraint
from sqlmodel import Field

from vibe.models.base import BaseUUIDModel


class JobStatus(str, Enum):
    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class JobRun(BaseUUIDModel, table=True):
    __tablename__ = "job_runs"

    function_id: str = Field(max_length=100, index=True)
    event_name: str = Field(max_length=100)
    payload: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    status: JobStatus = Field(default=JobStatus.QUEUED, sa_type=SAEnum(JobStatus, name="job_status"), index=True)
    attempt: int = Field(default=0)
    max_attempts: int = Field(default=1)
    concurrency_key: str | None = Field(default=None, max_length=255, index=True)
    output: Any | None = Field(default=None, sa_column=Column(JSON, nullable=True))
    error: str | None = Field(default=None, sa_column=Column(Text, nullable=True))


class JobStep(BaseUUIDModel, table=True):
    """Memoized output of one named step of a run."""

    __tablename__ = "job_steps"
    __table_args__ = (
        UniqueConstraint("run_id", "step_id", name="uq_job_step_run_step"),
    )

    run_id: UUID = Field(foreign_key="job_runs.id", index=True)
    step_id: str = Field(max_length=255)
    output: Any | None = Field(default=None, sa_column=Column(JSON, nullable=True))
