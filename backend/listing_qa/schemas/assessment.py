from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from listing_qa.models.assessment import AssessmentStatus
from listing_qa.models.audit import ReviewStage


class AssessmentCreate(BaseModel):
    seller_id: str


class SampleSubmission(BaseModel):
    logistics: str  # e.g. "J&T Express", "drop-off at hub"


class RejectBody(BaseModel):
    reason: str
    stage: ReviewStage
    expected_status: Optional[AssessmentStatus] = None
    vendor_submitted_category: Optional[str] = None
    admin_reclassified_category: Optional[str] = None


class RevisionBody(BaseModel):
    feedback: str
    stage: ReviewStage
    expected_status: Optional[AssessmentStatus] = None


class ApproveBody(BaseModel):
    expected_status: Optional[AssessmentStatus] = None


class AssessmentResponse(BaseModel):
    id: str
    listing_id: str
    status: AssessmentStatus
    submitted_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    verified_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    revision_requested_at: Optional[datetime] = None
    logistics: Optional[str] = None
    created_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    visibility_status: Optional[str] = None

    class Config:
        from_attributes = True


class AssessmentCreateResponse(AssessmentResponse):
    created: bool


class ApprovalRecordResponse(BaseModel):
    id: int
    assessment_id: str
    description: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RejectionRecordResponse(BaseModel):
    id: int
    assessment_id: str
    stage: ReviewStage
    reason: str
    vendor_submitted_category: Optional[str] = None
    admin_reclassified_category: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RevisionRecordResponse(BaseModel):
    id: int
    assessment_id: str
    stage: ReviewStage
    feedback: str
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LogisticsRecordResponse(BaseModel):
    id: int
    assessment_id: str
    details: str
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AssessmentDetailResponse(AssessmentResponse):
    approvals: List[ApprovalRecordResponse] = []
    rejections: List[RejectionRecordResponse] = []
    revisions: List[RevisionRecordResponse] = []
    logistics_records: List[LogisticsRecordResponse] = []
