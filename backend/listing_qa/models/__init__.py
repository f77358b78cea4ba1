from listing_qa.models.listing import Listing, VisibilityStatus
from listing_qa.models.seller_tier import SellerTier, TierLevel
from listing_qa.models.assessment import Assessment, AssessmentStatus
from listing_qa.models.audit import (
    ApprovalRecord,
    LogisticsRecord,
    RejectionRecord,
    ReviewStage,
    RevisionRecord,
)

__all__ = [
    "Listing",
    "VisibilityStatus",
    "SellerTier",
    "TierLevel",
    "Assessment",
    "AssessmentStatus",
    "ApprovalRecord",
    "LogisticsRecord",
    "RejectionRecord",
    "ReviewStage",
    "RevisionRecord",
]
