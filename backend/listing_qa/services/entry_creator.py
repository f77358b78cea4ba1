import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from listing_qa.models.assessment import Assessment, AssessmentStatus
from listing_qa.models.base import utcnow
from listing_qa.models.listing import Listing
from listing_qa.services import audit_trail
from listing_qa.services.errors import ConstraintViolation, NotFoundError, ValidationError
from listing_qa.services.tier_resolver import is_bypass_eligible
from listing_qa.services.visibility import sync_visibility

logger = logging.getLogger(__name__)

BYPASS_DESCRIPTION = "bypassed"


def create_assessment(db: Session, *, listing_id: str, seller_id: str) -> tuple[Assessment, bool]:
    """Create the single assessment for a listing.

    Returns (assessment, created). When another caller already created the
    assessment, the insert trips the unique listing_id constraint; that is
    treated as "already exists" and the existing row is returned with
    created=False. Bypass-tier sellers land directly in ``verified``.
    ``seller_id`` must be the listing's own seller.

    The assessment row, the bypass approval record and the listing's
    visibility are committed together.
    """
    listing = db.get(Listing, listing_id)
    if listing is None:
        raise NotFoundError("Listing", listing_id=listing_id)
    if seller_id != listing.seller_id:
        raise ValidationError(f"Listing {listing_id} does not belong to seller {seller_id}")

    # tier of the listing's owner, never of the caller
    bypass = is_bypass_eligible(db, listing.seller_id)
    now = utcnow()
    assessment = Assessment(
        listing_id=listing_id,
        status=AssessmentStatus.VERIFIED if bypass else AssessmentStatus.PENDING_DIGITAL_REVIEW,
        submitted_at=now,
        verified_at=now if bypass else None,
        created_by=seller_id,
    )
    db.add(assessment)
    try:
        db.flush()
    except IntegrityError as e:
        db.rollback()
        existing = _find_for_listing(db, listing_id)
        if existing is None:
            if not _listing_exists(db, listing_id):
                # deleted between the read above and the insert
                raise NotFoundError("Listing", listing_id=listing_id) from e
            logger.exception("create_assessment: listing_id=%s insert rejected by the database", listing_id)
            raise ConstraintViolation(f"Assessment insert rejected for listing {listing_id}") from e
        logger.warning(
            "create_assessment: listing_id=%s already assessed (assessment_id=%s), duplicate suppressed",
            listing_id,
            existing.id,
        )
        return existing, False

    if bypass:
        audit_trail.append_approval(db, assessment.id, BYPASS_DESCRIPTION, actor=seller_id)
    try:
        sync_visibility(db, assessment)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.exception("create_assessment: listing_id=%s commit rejected by the database", listing_id)
        raise ConstraintViolation(str(e.orig)) from e
    db.refresh(assessment)
    logger.info(
        "create_assessment: listing_id=%s assessment_id=%s status=%s bypass=%s",
        listing_id,
        assessment.id,
        assessment.status.value,
        bypass,
    )
    return assessment, True


def _find_for_listing(db: Session, listing_id: str) -> Assessment | None:
    return db.query(Assessment).filter(Assessment.listing_id == listing_id).first()


def _listing_exists(db: Session, listing_id: str) -> bool:
    return db.query(Listing.id).filter(Listing.id == listing_id).first() is not None
