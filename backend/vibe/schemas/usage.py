from pydantic import BaseModel


class UsageStatus(BaseModel):
    remaining_points: int
    consumed_points: int
    ms_before_next: int
