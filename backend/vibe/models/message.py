from enum import Enum
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from sqlalchemy import JSON, Column, Enum as SAEnum, Text
from sqlmodel import Field, Relationship

from vibe.models.base import BaseUUIDModel

if TYPE_CHECKING:
    from vibe.models.project import Project


class MessageRole(str, Enum):
    USER = "USER"
    ASSISTANT = "ASSISTANT"


class MessageType(str, Enum):
    RESULT = "RESULT"
    ERROR = "ERROR"


class Message(BaseUUIDModel, table=True):
    __tablename__ = "messages"

    project_id: UUID = Field(foreign_key="projects.id", index=True)
    content: str = Field(sa_column=Column(Text, nullable=False))
    role: MessageRole = Field(sa_type=SAEnum(MessageRole, name="message_role"))
    type: MessageType = Field(sa_type=SAEnum(MessageType, name="message_type"))

    # Relationships
    project: "Project" = Relationship(back_populates="messages")
    fragment: Optional["Fragment"] = Relationship(
        back_populates="message",
        sa_relationship_kwargs={
            "uselist": False,
            "cascade": "all, delete-orphan",
            "lazy": "selectin",
        },
    )


class Fragment(BaseUUIDModel, table=True):
    __tablename__ = "fragments"

    message_id: UUID = Field(foreign_key="messages.id", unique=True, index=True)
    sandbox_url: str = Field(sa_column=Column(Text, nullable=False))
    title: str = Field(max_length=255)
    # Relative path -> full file content
    files: dict[str, str] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    # Relationships
    message: Message = Relationship(back_populates="fragment")
