from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime


class CurrentUserResponse(BaseModel):
    id: str
    email: Optional[EmailStr] = None  # phone-only accounts have none
    user_metadata: dict = {}
    created_at: Optional[datetime] = None
