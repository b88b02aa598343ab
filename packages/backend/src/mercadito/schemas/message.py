"""Chat message schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class MessageCreate(BaseModel):
    sender: str = Field(..., min_length=1, max_length=200)
    body: str = Field(..., min_length=1, max_length=2000)

    # "   " counts as empty
    model_config = ConfigDict(str_strip_whitespace=True)


class MessageRead(BaseModel):
    id: str
    sender: str
    body: str
    created_at: datetime
