from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class PatientResponse(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
