import logging

from sqlalchemy.orm import Session

from listing_qa.models.base import utcnow
from listing_qa.models.seller_tier import BYPASS_TIERS, SellerTier, TierLevel
from listing_qa.services.errors import ValidationError

logger = logging.getLogger(__name__)


def get_seller_tier(db: Session, seller_id: str) -> SellerTier | None:
    return db.query(SellerTier).filter(SellerTier.seller_id == seller_id).first()


def is_bypass_eligible(db: Session, seller_id: str) -> bool:
    """True iff the seller has a bypass tier AND the bypass flag set. Missing row is False."""
    tier = get_seller_tier(db, seller_id)
    if tier is None:
        return False
    return tier.tier_level in BYPASS_TIERS and bool(tier.bypasses_assessment)


def set_seller_tier(
    db: Session,
    seller_id: str,
    tier_level: TierLevel,
    bypasses_assessment: bool,
) -> SellerTier:
    """Upsert the seller's tier row. Existing assessments are not touched."""
    try:
        tier_level = TierLevel(tier_level)
    except ValueError:
        raise ValidationError(f"Unknown tier level '{tier_level}'") from None
    tier = get_seller_tier(db, seller_id)
    if tier is None:
        tier = SellerTier(seller_id=seller_id)
        db.add(tier)
    tier.tier_level = tier_level
    tier.bypasses_assessment = bypasses_assessment
    tier.updated_at = utcnow()
    db.commit()
    db.refresh(tier)
    logger.info(
        "seller tier set: seller_id=%s tier=%s bypass=%s",
        seller_id,
        tier.tier_level.value,
        tier.bypasses_assessment,
    )
    return tier


def reset_seller_tier(db: Session, seller_id: str) -> SellerTier:
    return set_seller_tier(db, seller_id, TierLevel.STANDARD, False)
