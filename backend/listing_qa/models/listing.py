from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, String
from sqlalchemy.orm import relationship

from listing_qa.models.base import Base, new_id, utcnow


class VisibilityStatus:
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    ALL = (PENDING, APPROVED, REJECTED)


class Listing(Base):
    """Catalog-owned listing. The QA engine writes only visibility_status."""
    __tablename__ = "listings"
    __table_args__ = (
        CheckConstraint(
            "visibility_status IN ('pending', 'approved', 'rejected')",
            name="ck_listings_visibility_status",
        ),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    seller_id = Column(String(64), nullable=False, index=True)
    name = Column(String(255), nullable=True)
    visibility_status = Column(String(16), default=VisibilityStatus.PENDING, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)  # owned by catalog
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    assessment = relationship(
        "Assessment",
        back_populates="listing",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
