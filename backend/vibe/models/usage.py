from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


class Usage(SQLModel, table=True):
    """Credit ledger row: points consumed inside the current rolling window."""

    __tablename__ = "usage"

    key: str = Field(primary_key=True, max_length=255)
    points: int = Field(default=0)
    expire: datetime | None = Field(default=None, sa_type=DateTime(timezone=True))
