"""Buyer-facing visibility derived from assessment status.

This module is the only writer of ``Listing.visibility_status``.
"""
import logging

from sqlalchemy.orm import Session

from listing_qa.models.assessment import Assessment, AssessmentStatus
from listing_qa.models.listing import Listing, VisibilityStatus
from listing_qa.services.errors import NotFoundError

logger = logging.getLogger(__name__)

_VISIBILITY_BY_STATUS: dict[AssessmentStatus, str] = {
    AssessmentStatus.PENDING_DIGITAL_REVIEW: VisibilityStatus.PENDING,
    AssessmentStatus.WAITING_FOR_SAMPLE: VisibilityStatus.PENDING,
    AssessmentStatus.PENDING_PHYSICAL_REVIEW: VisibilityStatus.PENDING,
    AssessmentStatus.FOR_REVISION: VisibilityStatus.PENDING,
    AssessmentStatus.REJECTED: VisibilityStatus.REJECTED,
    AssessmentStatus.VERIFIED: VisibilityStatus.APPROVED,
}


def visibility_for(status: AssessmentStatus) -> str:
    return _VISIBILITY_BY_STATUS[AssessmentStatus(status)]


def sync_visibility(db: Session, assessment: Assessment) -> str:
    """Write the listing's visibility inside the caller's transaction (no commit)."""
    listing = db.get(Listing, assessment.listing_id)
    if listing is None:
        raise NotFoundError("Listing", listing_id=assessment.listing_id)
    visibility = visibility_for(assessment.status)
    if listing.visibility_status != visibility:
        logger.info(
            "visibility: listing_id=%s %s -> %s (assessment status=%s)",
            listing.id,
            listing.visibility_status,
            visibility,
            AssessmentStatus(assessment.status).value,
        )
        listing.visibility_status = visibility
    db.flush()
    return visibility


def buyer_visible_listings(db: Session) -> list[Listing]:
    """Listings a buyer may see: approved by QA and active in the catalog."""
    return (
        db.query(Listing)
        .filter(Listing.visibility_status == VisibilityStatus.APPROVED, Listing.is_active.is_(True))
        .order_by(Listing.created_at.desc())
        .all()
    )
