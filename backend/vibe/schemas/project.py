import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class ProjectCreate(BaseModel):
    value: str = Field(min_length=1, max_length=10000)


class ProjectRead(BaseModel):
    id: UUID
    name: str
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = {"from_attributes": True}
