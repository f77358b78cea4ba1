from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ListingResponse(BaseModel):
    id: str
    seller_id: str
    name: Optional[str] = None
    visibility_status: str
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
