import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from vibe.models.message import MessageRole, MessageType


class MessageCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    value: str = Field(min_length=1, max_length=10000)
    project_id: UUID = Field(alias="projectId")


class FragmentRead(BaseModel):
    id: UUID
    message_id: UUID
    sandbox_url: str
    title: str
    files: dict[str, str]
    created_at: datetime.datetime

    model_config = {"from_attributes": True}


class MessageRead(BaseModel):
    id: UUID
    project_id: UUID
    content: str
    role: MessageRole
    type: MessageType
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = {"from_attributes": True}


class MessageWithFragmentRead(MessageRead):
    fragment: FragmentRead | None = None
