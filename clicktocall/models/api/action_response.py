from typing import Any

from pydantic import BaseModel, Field


class ActionResponse(BaseModel):
    """Uniform {success, result | error} reply for every action."""

    success: bool
    result: Any | None = None
    error: str | None = None
    error_code: str | None = None
    origin: str | None = None


class CallHistoryExport(BaseModel):
    filename: str
    content_type: str = "text/csv;charset=utf-8"
    content: str


class LinkifyResponse(BaseModel):
    """Response for POST /page/linkify"""

    enabled: bool
    html: str
    numbers: list[str] = Field(default_factory=list, description="Dialable numbers found")
