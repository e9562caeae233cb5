from typing import Literal

from pydantic import BaseModel


class AuthUser(BaseModel):
    """Caller identity decoded from the identity provider's JWT."""

    id: str
    plan: Literal["free", "pro"] = "free"

    @property
    def is_pro(self) -> bool:
        return self.plan == "pro"
