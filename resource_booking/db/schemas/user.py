from datetime import datetime
from pydantic import BaseModel


class User(BaseModel):
    id: int
    email: str
    full_name: str | None = None
    employee_id: str | None = None
    role: str
    is_active: bool
    created_at: datetime | None = None

    class Config:
        from_attributes = True
