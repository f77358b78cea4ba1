"""Assessment transitions and reads.

Every transition is a compare-and-swap on ``status``: the UPDATE only matches
while the row is still in the transition's source status. If another actor
got there first, nothing is written and ConflictError is raised; the engine
never retries on the caller's behalf. The status write, the audit record and
the listing visibility commit as one transaction.
"""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from listing_qa.models.assessment import Assessment, AssessmentStatus
from listing_qa.models.audit import ReviewStage
from listing_qa.models.base import utcnow
from listing_qa.models.listing import Listing
from listing_qa.services import audit_trail
from listing_qa.services.errors import ConflictError, ConstraintViolation, NotFoundError, ValidationError
from listing_qa.services.state_machine import (
    AuditKind,
    Transition,
    Trigger,
    check_input,
    parse_status,
    resolve,
    transitions_from,
)
from listing_qa.services.visibility import sync_visibility

logger = logging.getLogger(__name__)

_APPROVAL_DESCRIPTIONS = {
    Trigger.APPROVE_DIGITAL: "digital review passed",
    Trigger.APPROVE_PHYSICAL: "physical review passed",
}


def get_assessment(db: Session, *, assessment_id: str) -> Assessment:
    assessment = db.get(Assessment, assessment_id)
    if assessment is None:
        raise NotFoundError("Assessment", assessment_id=assessment_id)
    return assessment


def get_assessment_for_listing(db: Session, *, listing_id: str) -> Assessment:
    assessment = db.query(Assessment).filter(Assessment.listing_id == listing_id).first()
    if assessment is None:
        raise NotFoundError("Assessment", listing_id=listing_id)
    return assessment


def list_assessments(db: Session, status: AssessmentStatus | str | None = None) -> list[Assessment]:
    """All assessments, newest first, optionally filtered by status (admin queue)."""
    q = db.query(Assessment)
    if status is not None:
        q = q.filter(Assessment.status == parse_status(status))
    return q.order_by(Assessment.created_at.desc()).all()


def list_assessments_for_seller(db: Session, seller_id: str) -> list[Assessment]:
    """A seller's assessments, matched through the listing's seller_id."""
    return (
        db.query(Assessment)
        .join(Listing, Listing.id == Assessment.listing_id)
        .filter(Listing.seller_id == seller_id)
        .order_by(Assessment.created_at.desc())
        .all()
    )


def apply_transition(
    db: Session,
    trigger: Trigger,
    *,
    assessment_id: str,
    stage: ReviewStage | None = None,
    value: str | None = None,
    actor: str | None = None,
    expected_status: AssessmentStatus | str | None = None,
    vendor_submitted_category: str | None = None,
    admin_reclassified_category: str | None = None,
) -> Assessment:
    """Run one transition from the table against the stored assessment.

    ``value`` carries the transition's required input (feedback, reason or
    logistics). ``expected_status``, when given, must name the transition's
    source status.
    """
    transition = resolve(trigger, stage)
    cleaned = check_input(transition, value)
    if expected_status is not None and parse_status(expected_status) != transition.source:
        raise ValidationError(
            f"'{transition.trigger.value}' moves from '{transition.source.value}', "
            f"not '{parse_status(expected_status).value}'"
        )

    current = db.get(Assessment, assessment_id)
    if current is None:
        raise NotFoundError("Assessment", assessment_id=assessment_id)

    now = utcnow()
    values = {Assessment.status: transition.target, Assessment.updated_at: now}
    for column in transition.stamps:
        # set once: keep the first timestamp if the assessment re-enters this transition
        if getattr(current, column) is None:
            values[getattr(Assessment, column)] = now
    for column in transition.refreshes:
        values[getattr(Assessment, column)] = now
    if transition.trigger == Trigger.SUBMIT_SAMPLE:
        values[Assessment.logistics] = cleaned

    try:
        matched = (
            db.query(Assessment)
            .filter(Assessment.id == assessment_id, Assessment.status == transition.source)
            .update(values, synchronize_session=False)
        )
        if matched != 1:
            db.rollback()
            actual = _current_status(db, assessment_id)
            logger.warning(
                "transition conflict: assessment_id=%s trigger=%s expected=%s actual=%s",
                assessment_id,
                transition.trigger.value,
                transition.source.value,
                actual.value,
            )
            raise ConflictError(
                assessment_id, transition.source, actual, stage_mismatch=_other_stage_applies(transition, actual)
            )

        db.expire(current)
        _append_audit(db, transition, assessment_id, cleaned, actor,
                      vendor_submitted_category, admin_reclassified_category)
        sync_visibility(db, current)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.exception("transition rejected by the database: assessment_id=%s", assessment_id)
        raise ConstraintViolation(str(e.orig)) from e

    db.refresh(current)
    logger.info(
        "transition: assessment_id=%s listing_id=%s %s -> %s (%s) actor=%s",
        assessment_id,
        current.listing_id,
        transition.source.value,
        transition.target.value,
        transition.trigger.value,
        actor,
    )
    return current


def _current_status(db: Session, assessment_id: str) -> AssessmentStatus:
    status = db.query(Assessment.status).filter(Assessment.id == assessment_id).scalar()
    if status is None:
        raise NotFoundError("Assessment", assessment_id=assessment_id)
    return AssessmentStatus(status)


def _other_stage_applies(transition: Transition, actual: AssessmentStatus) -> bool:
    if transition.stage is None:
        return False
    return any(
        t.trigger == transition.trigger and t.stage != transition.stage
        for t in transitions_from(actual)
    )


def _append_audit(
    db: Session,
    transition: Transition,
    assessment_id: str,
    value: str | None,
    actor: str | None,
    vendor_submitted_category: str | None,
    admin_reclassified_category: str | None,
) -> None:
    if transition.audit == AuditKind.APPROVAL:
        audit_trail.append_approval(db, assessment_id, _APPROVAL_DESCRIPTIONS[transition.trigger], actor=actor)
    elif transition.audit == AuditKind.REJECTION:
        audit_trail.append_rejection(
            db,
            assessment_id,
            transition.stage,
            value,
            actor=actor,
            vendor_submitted_category=vendor_submitted_category,
            admin_reclassified_category=admin_reclassified_category,
        )
    elif transition.audit == AuditKind.REVISION:
        audit_trail.append_revision(db, assessment_id, transition.stage, value, actor=actor)
    elif transition.audit == AuditKind.LOGISTICS:
        audit_trail.append_logistics(db, assessment_id, value, actor=actor)


def approve_digital(db: Session, *, assessment_id: str, actor: str | None = None) -> Assessment:
    return apply_transition(db, Trigger.APPROVE_DIGITAL, assessment_id=assessment_id, actor=actor)


def approve_physical(db: Session, *, assessment_id: str, actor: str | None = None) -> Assessment:
    return apply_transition(db, Trigger.APPROVE_PHYSICAL, assessment_id=assessment_id, actor=actor)


verify = approve_physical


def reject(
    db: Session,
    *,
    assessment_id: str,
    reason: str,
    stage: ReviewStage,
    actor: str | None = None,
    vendor_submitted_category: str | None = None,
    admin_reclassified_category: str | None = None,
) -> Assessment:
    return apply_transition(
        db,
        Trigger.REJECT,
        assessment_id=assessment_id,
        stage=stage,
        value=reason,
        actor=actor,
        vendor_submitted_category=vendor_submitted_category,
        admin_reclassified_category=admin_reclassified_category,
    )


def request_revision(
    db: Session,
    *,
    assessment_id: str,
    feedback: str,
    stage: ReviewStage,
    actor: str | None = None,
) -> Assessment:
    return apply_transition(
        db, Trigger.REQUEST_REVISION, assessment_id=assessment_id, stage=stage, value=feedback, actor=actor
    )


def submit_sample(db: Session, *, listing_id: str, logistics: str, actor: str | None = None) -> Assessment:
    """Seller hands over a physical sample; addressed by listing, as seller clients know it."""
    assessment = get_assessment_for_listing(db, listing_id=listing_id)
    return apply_transition(
        db, Trigger.SUBMIT_SAMPLE, assessment_id=assessment.id, value=logistics, actor=actor
    )


def resubmit(db: Session, *, listing_id: str, actor: str | None = None) -> Assessment:
    assessment = get_assessment_for_listing(db, listing_id=listing_id)
    return apply_transition(db, Trigger.RESUBMIT, assessment_id=assessment.id, actor=actor)
