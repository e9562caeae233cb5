# Import all models so SQLModel.metadata registers them for Alembic autogenerate.
from vibe.models.base import BaseUUIDModel  # noqa: F401
from vibe.models.project import Project  # noqa: F401
from vibe.models.message import Fragment, Message, MessageRole, MessageType  # noqa: F401
from vibe.models.usage import Usage  # noqa: F401
from vibe.models.job import JobRun, JobStatus, JobStep  # noqa: F401
