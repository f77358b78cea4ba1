import logging
from dataclasses import dataclass, field

from sqlalchemy import exists
from sqlalchemy.orm import Session

from listing_qa.models.assessment import Assessment, AssessmentStatus
from listing_qa.models.listing import Listing
from listing_qa.services.entry_creator import create_assessment

logger = logging.getLogger(__name__)


@dataclass
class ReconcileReport:
    checked: int = 0
    created: int = 0
    bypassed: int = 0
    already_assessed: int = 0
    listing_ids: list[str] = field(default_factory=list)  # listings that got a new assessment


def find_orphans(db: Session) -> list[str]:
    """Ids of listings with no assessment, oldest listing first. Read only."""
    has_assessment = exists().where(Assessment.listing_id == Listing.id)
    rows = (
        db.query(Listing.id)
        .filter(~has_assessment)
        .order_by(Listing.created_at.asc(), Listing.id.asc())
        .all()
    )
    return [row[0] for row in rows]


def reconcile(db: Session) -> ReconcileReport:
    """Create assessments for every orphan listing.

    Safe to run alongside sellers submitting: a listing assessed in the
    meantime comes back from create_assessment with created=False.
    """
    report = ReconcileReport()
    for listing_id in find_orphans(db):
        report.checked += 1
        seller_id = db.query(Listing.seller_id).filter(Listing.id == listing_id).scalar()
        if seller_id is None:
            # listing deleted since the scan
            continue
        assessment, created = create_assessment(db, listing_id=listing_id, seller_id=seller_id)
        if not created:
            report.already_assessed += 1
            continue
        report.created += 1
        report.listing_ids.append(listing_id)
        if assessment.status == AssessmentStatus.VERIFIED:
            report.bypassed += 1
    logger.info(
        "reconcile: checked=%s created=%s bypassed=%s already_assessed=%s",
        report.checked,
        report.created,
        report.bypassed,
        report.already_assessed,
    )
    return report
