from typing import Any
from pydantic import BaseModel, Field


class BatchBalanceRequest(BaseModel):
    # Shape is checked by the service so a bad payload gets the standard 400 envelope
    addresses: Any = Field(default=None, description="Addresses to look up (max 20 per request)")
