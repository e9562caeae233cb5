import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from vibe.models.job import JobStatus


class JobRunRead(BaseModel):
    id: UUID
    function_id: str
    event_name: str
    status: JobStatus
    attempt: int
    max_attempts: int
    output: Any | None = None
    error: str | None = None
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = {"from_attributes": True}
