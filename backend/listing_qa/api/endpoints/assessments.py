from fastapi import APIRouter, Body, Depends, Header, Query
from sqlalchemy.orm import Session

from listing_qa.database import get_db
from listing_qa.models.assessment import AssessmentStatus
from listing_qa.schemas.assessment import (
    ApprovalRecordResponse,
    ApproveBody,
    AssessmentDetailResponse,
    AssessmentResponse,
    LogisticsRecordResponse,
    RejectBody,
    RejectionRecordResponse,
    RevisionBody,
    RevisionRecordResponse,
)
from listing_qa.services import workflow
from listing_qa.services.audit_trail import audit_trail
from listing_qa.services.state_machine import Trigger

router = APIRouter(tags=["assessments"])


@router.get("/assessments", response_model=list[AssessmentResponse])
def list_assessments(
    status: AssessmentStatus | None = Query(None),
    db: Session = Depends(get_db),
):
    """Admin review queue, newest first."""
    return workflow.list_assessments(db, status=status)


@router.get("/sellers/{seller_id}/assessments", response_model=list[AssessmentResponse])
def list_seller_assessments(seller_id: str, db: Session = Depends(get_db)):
    return workflow.list_assessments_for_seller(db, seller_id)


@router.get("/assessments/{assessment_id}", response_model=AssessmentDetailResponse)
def get_assessment(assessment_id: str, db: Session = Depends(get_db)):
    """Assessment with its audit trail, each list newest first."""
    assessment = workflow.get_assessment(db, assessment_id=assessment_id)
    trail = audit_trail(db, assessment.id)
    return AssessmentDetailResponse(
        **AssessmentResponse.model_validate(assessment).model_dump(),
        approvals=[ApprovalRecordResponse.model_validate(r) for r in trail["approvals"]],
        rejections=[RejectionRecordResponse.model_validate(r) for r in trail["rejections"]],
        revisions=[RevisionRecordResponse.model_validate(r) for r in trail["revisions"]],
        logistics_records=[LogisticsRecordResponse.model_validate(r) for r in trail["logistics_records"]],
    )


@router.post("/assessments/{assessment_id}/approve-digital", response_model=AssessmentResponse)
def approve_digital(
    assessment_id: str,
    body: ApproveBody | None = Body(None),
    x_actor: str | None = Header(None, alias="X-Actor"),
    db: Session = Depends(get_db),
):
    """Digital review passed: seller is asked for a physical sample."""
    return workflow.apply_transition(
        db,
        Trigger.APPROVE_DIGITAL,
        assessment_id=assessment_id,
        actor=x_actor or "Admin",
        expected_status=body.expected_status if body else None,
    )


@router.post("/assessments/{assessment_id}/verify", response_model=AssessmentResponse)
def verify(
    assessment_id: str,
    body: ApproveBody | None = Body(None),
    x_actor: str | None = Header(None, alias="X-Actor"),
    db: Session = Depends(get_db),
):
    """Physical review passed: the listing goes live."""
    return workflow.apply_transition(
        db,
        Trigger.APPROVE_PHYSICAL,
        assessment_id=assessment_id,
        actor=x_actor or "Admin",
        expected_status=body.expected_status if body else None,
    )


@router.post("/assessments/{assessment_id}/reject", response_model=AssessmentResponse)
def reject(
    assessment_id: str,
    body: RejectBody,
    x_actor: str | None = Header(None, alias="X-Actor"),
    db: Session = Depends(get_db),
):
    return workflow.apply_transition(
        db,
        Trigger.REJECT,
        assessment_id=assessment_id,
        stage=body.stage,
        value=body.reason,
        actor=x_actor or "Admin",
        expected_status=body.expected_status,
        vendor_submitted_category=body.vendor_submitted_category,
        admin_reclassified_category=body.admin_reclassified_category,
    )


@router.post("/assessments/{assessment_id}/request-revision", response_model=AssessmentResponse)
def request_revision(
    assessment_id: str,
    body: RevisionBody,
    x_actor: str | None = Header(None, alias="X-Actor"),
    db: Session = Depends(get_db),
):
    return workflow.apply_transition(
        db,
        Trigger.REQUEST_REVISION,
        assessment_id=assessment_id,
        stage=body.stage,
        value=body.feedback,
        actor=x_actor or "Admin",
        expected_status=body.expected_status,
    )
