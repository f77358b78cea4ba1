"""Admin console endpoints: orphan reconciliation and seller tiers."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from listing_qa.database import get_db
from listing_qa.schemas.admin import (
    OrphanListResponse,
    ReconcileResponse,
    SellerTierResponse,
    SellerTierUpdate,
)
from listing_qa.services import tier_resolver
from listing_qa.services.errors import NotFoundError
from listing_qa.services.reconciler import find_orphans, reconcile

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/orphans", response_model=OrphanListResponse)
def list_orphans(db: Session = Depends(get_db)):
    """Listings that have no assessment yet."""
    listing_ids = find_orphans(db)
    return OrphanListResponse(count=len(listing_ids), listing_ids=listing_ids)


@router.post("/reconcile", response_model=ReconcileResponse)
def run_reconcile(db: Session = Depends(get_db)):
    """Create assessments for all orphan listings."""
    report = reconcile(db)
    return ReconcileResponse(
        checked=report.checked,
        created=report.created,
        bypassed=report.bypassed,
        already_assessed=report.already_assessed,
        listing_ids=report.listing_ids,
    )


def _tier_response(db: Session, tier) -> SellerTierResponse:
    return SellerTierResponse(
        seller_id=tier.seller_id,
        tier_level=tier.tier_level,
        bypasses_assessment=tier.bypasses_assessment,
        bypass_eligible=tier_resolver.is_bypass_eligible(db, tier.seller_id),
        updated_at=tier.updated_at,
    )


@router.get("/seller-tiers/{seller_id}", response_model=SellerTierResponse)
def get_seller_tier(seller_id: str, db: Session = Depends(get_db)):
    tier = tier_resolver.get_seller_tier(db, seller_id)
    if tier is None:
        raise NotFoundError("SellerTier", seller_id=seller_id)
    return _tier_response(db, tier)


@router.put("/seller-tiers/{seller_id}", response_model=SellerTierResponse)
def set_seller_tier(seller_id: str, payload: SellerTierUpdate, db: Session = Depends(get_db)):
    """Upsert a seller's tier. Applies to assessments created from now on only."""
    tier = tier_resolver.set_seller_tier(db, seller_id, payload.tier_level, payload.bypasses_assessment)
    return _tier_response(db, tier)


@router.delete("/seller-tiers/{seller_id}", response_model=SellerTierResponse)
def reset_seller_tier(seller_id: str, db: Session = Depends(get_db)):
    """Back to standard with no bypass."""
    tier = tier_resolver.reset_seller_tier(db, seller_id)
    return _tier_response(db, tier)
