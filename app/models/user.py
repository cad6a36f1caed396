from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from app.constants.order_status import UserRole


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True)
    name: Optional[str] = None
    role: str = Field(default=UserRole.customer.value)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
