import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, Integer, String

from listing_qa.models.base import Base, utcnow


class TierLevel(str, enum.Enum):
    STANDARD = "standard"
    PREMIUM_OUTLET = "premium_outlet"
    TRUSTED_BRAND = "trusted_brand"


# Only these tiers can bypass, and only when the row's flag is also set.
BYPASS_TIERS = (TierLevel.PREMIUM_OUTLET, TierLevel.TRUSTED_BRAND)


class SellerTier(Base):
    __tablename__ = "seller_tiers"

    id = Column(Integer, primary_key=True, index=True)
    seller_id = Column(String(64), nullable=False, unique=True)
    tier_level = Column(
        Enum(
            TierLevel,
            name="tier_level",
            native_enum=False,
            create_constraint=True,
            values_callable=lambda e: [m.value for m in e],
            length=32,
        ),
        default=TierLevel.STANDARD,
        nullable=False,
    )
    bypasses_assessment = Column(Boolean, default=False, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
