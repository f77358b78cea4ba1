"""Append-only audit records: insert and read, nothing else."""
from sqlalchemy.orm import Session

from listing_qa.models.audit import (
    ApprovalRecord,
    LogisticsRecord,
    RejectionRecord,
    ReviewStage,
    RevisionRecord,
)

AUDIT_MODELS = (ApprovalRecord, RejectionRecord, RevisionRecord, LogisticsRecord)


def append_approval(db: Session, assessment_id: str, description: str, actor: str | None = None) -> ApprovalRecord:
    record = ApprovalRecord(assessment_id=assessment_id, description=description, created_by=actor)
    db.add(record)
    return record


def append_rejection(
    db: Session,
    assessment_id: str,
    stage: ReviewStage,
    reason: str,
    actor: str | None = None,
    vendor_submitted_category: str | None = None,
    admin_reclassified_category: str | None = None,
) -> RejectionRecord:
    record = RejectionRecord(
        assessment_id=assessment_id,
        stage=ReviewStage(stage),
        reason=reason,
        vendor_submitted_category=vendor_submitted_category,
        admin_reclassified_category=admin_reclassified_category,
        created_by=actor,
    )
    db.add(record)
    return record


def append_revision(
    db: Session,
    assessment_id: str,
    stage: ReviewStage,
    feedback: str,
    actor: str | None = None,
) -> RevisionRecord:
    record = RevisionRecord(assessment_id=assessment_id, stage=ReviewStage(stage), feedback=feedback, created_by=actor)
    db.add(record)
    return record


def append_logistics(db: Session, assessment_id: str, details: str, actor: str | None = None) -> LogisticsRecord:
    record = LogisticsRecord(assessment_id=assessment_id, details=details, created_by=actor)
    db.add(record)
    return record


def records_for(db: Session, model, assessment_id: str) -> list:
    """Records of one kind for an assessment, newest first."""
    if model not in AUDIT_MODELS:
        raise TypeError(f"{model!r} is not an audit record model")
    return (
        db.query(model)
        .filter(model.assessment_id == assessment_id)
        .order_by(model.created_at.desc(), model.id.desc())
        .all()
    )


def latest_record(db: Session, model, assessment_id: str):
    if model not in AUDIT_MODELS:
        raise TypeError(f"{model!r} is not an audit record model")
    return (
        db.query(model)
        .filter(model.assessment_id == assessment_id)
        .order_by(model.created_at.desc(), model.id.desc())
        .first()
    )


def audit_trail(db: Session, assessment_id: str) -> dict[str, list]:
    return {
        "approvals": records_for(db, ApprovalRecord, assessment_id),
        "rejections": records_for(db, RejectionRecord, assessment_id),
        "revisions": records_for(db, RevisionRecord, assessment_id),
        "logistics_records": records_for(db, LogisticsRecord, assessment_id),
    }
