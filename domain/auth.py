"""Domain Entities - Front desk staff"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from typing import Optional


class StaffUser(BaseModel):
    """Front desk staff member allowed to operate the dashboard"""
    user_id: UUID = Field(default_factory=uuid4)
    username: str
    full_name: Optional[str] = None
    disabled: bool = False

    class Config:
        from_attributes = True


class StaffUserInDB(StaffUser):
    """Staff user with hashed password for storage"""
    hashed_password: str
