from datetime import datetime, timezone
from typing import Any, Optional
from pydantic import BaseModel, Field


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StandardResponse(BaseModel):
    success: bool = Field(description="Whether the request succeeded")
    data: Optional[Any] = Field(default=None, description="Result payload")
    message: str = Field(default="", description="Human readable error or note")
    timestamp: datetime = Field(default_factory=_utc_now, description="When the response was produced")

    @classmethod
    def ok(cls, data: Any) -> "StandardResponse":
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, message: str) -> "StandardResponse":
        return cls(success=False, data=None, message=message)
