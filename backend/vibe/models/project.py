from typing import TYPE_CHECKING

from sqlmodel import Field, Relationship

from vibe.models.base import BaseUUIDModel

if TYPE_CHECKING:
    from vibe.models.message import Message


class Project(BaseUUIDModel, table=True):
    __tablename__ = "projects"

    # Subject claim of the identity provider's token
    user_id: str = Field(max_length=255, index=True)
    name: str = Field(max_length=255)

    # Relationships
    messages: list["Message"] = Relationship(
        back_populates="project",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "Message.created_at"},
    )
