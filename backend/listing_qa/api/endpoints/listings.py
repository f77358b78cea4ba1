"""Seller-facing routes, addressed by listing id as the seller clients know it."""
from fastapi import APIRouter, Depends, Header, Response
from sqlalchemy.orm import Session

from listing_qa.database import get_db
from listing_qa.schemas.assessment import (
    AssessmentCreate,
    AssessmentCreateResponse,
    AssessmentResponse,
    SampleSubmission,
)
from listing_qa.schemas.listing import ListingResponse
from listing_qa.services import workflow
from listing_qa.services.entry_creator import create_assessment
from listing_qa.services.visibility import buyer_visible_listings

router = APIRouter(prefix="/listings", tags=["listings"])


@router.get("/visible", response_model=list[ListingResponse])
def list_visible_listings(db: Session = Depends(get_db)):
    """Listings buyers may see: QA-approved and active."""
    return buyer_visible_listings(db)


@router.post("/{listing_id}/assessment", response_model=AssessmentCreateResponse, status_code=201)
def submit_listing(
    listing_id: str,
    payload: AssessmentCreate,
    response: Response,
    db: Session = Depends(get_db),
):
    """Create the listing's assessment. Repeat submissions return the existing one with 200."""
    assessment, created = create_assessment(db, listing_id=listing_id, seller_id=payload.seller_id)
    if not created:
        response.status_code = 200
    return AssessmentCreateResponse(
        **AssessmentResponse.model_validate(assessment).model_dump(),
        created=created,
    )


@router.get("/{listing_id}/assessment", response_model=AssessmentResponse)
def get_listing_assessment(listing_id: str, db: Session = Depends(get_db)):
    return workflow.get_assessment_for_listing(db, listing_id=listing_id)


@router.post("/{listing_id}/assessment/sample", response_model=AssessmentResponse)
def submit_sample(
    listing_id: str,
    payload: SampleSubmission,
    x_actor: str | None = Header(None, alias="X-Actor"),
    db: Session = Depends(get_db),
):
    """Seller reports how the physical sample reaches review (waiting_for_sample only)."""
    return workflow.submit_sample(db, listing_id=listing_id, logistics=payload.logistics, actor=x_actor or "Seller")


@router.post("/{listing_id}/assessment/resubmit", response_model=AssessmentResponse)
def resubmit(
    listing_id: str,
    x_actor: str | None = Header(None, alias="X-Actor"),
    db: Session = Depends(get_db),
):
    """Send a listing back to digital review after a revision request."""
    return workflow.resubmit(db, listing_id=listing_id, actor=x_actor or "Seller")
