# quizly/schemas/whitelist.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class WhitelistEntryCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    section: str = Field(..., min_length=1, max_length=100)


class WhitelistEntryResponse(BaseModel):
    id: int
    name: str
    section: str
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
