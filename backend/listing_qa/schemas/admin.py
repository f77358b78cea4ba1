from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from listing_qa.models.seller_tier import TierLevel


class SellerTierUpdate(BaseModel):
    tier_level: TierLevel
    bypasses_assessment: bool = False


class SellerTierResponse(BaseModel):
    seller_id: str
    tier_level: TierLevel
    bypasses_assessment: bool
    bypass_eligible: bool = False
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OrphanListResponse(BaseModel):
    count: int
    listing_ids: List[str]


class ReconcileResponse(BaseModel):
    checked: int
    created: int
    bypassed: int
    already_assessed: int
    listing_ids: List[str] = []
