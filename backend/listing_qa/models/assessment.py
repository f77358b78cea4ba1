import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from listing_qa.models.base import Base, new_id, utcnow


class AssessmentStatus(str, enum.Enum):
    PENDING_DIGITAL_REVIEW = "pending_digital_review"
    WAITING_FOR_SAMPLE = "waiting_for_sample"
    PENDING_PHYSICAL_REVIEW = "pending_physical_review"
    FOR_REVISION = "for_revision"
    REJECTED = "rejected"
    VERIFIED = "verified"


class Assessment(Base):
    """QA workflow record; one per listing, enforced by the unique listing_id."""
    __tablename__ = "assessments"

    id = Column(String(36), primary_key=True, default=new_id)
    listing_id = Column(
        String(36),
        ForeignKey("listings.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    status = Column(
        Enum(
            AssessmentStatus,
            name="assessment_status",
            native_enum=False,
            create_constraint=True,
            values_callable=lambda e: [m.value for m in e],
            length=32,
        ),
        default=AssessmentStatus.PENDING_DIGITAL_REVIEW,
        nullable=False,
        index=True,
    )
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    revision_requested_at = Column(DateTime(timezone=True), nullable=True)
    logistics = Column(Text, nullable=True)  # how the physical sample reaches review
    created_by = Column(String(64), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    listing = relationship("Listing", back_populates="assessment")
    approvals = relationship(
        "ApprovalRecord",
        back_populates="assessment",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    rejections = relationship(
        "RejectionRecord",
        back_populates="assessment",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    revisions = relationship(
        "RevisionRecord",
        back_populates="assessment",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    logistics_records = relationship(
        "LogisticsRecord",
        back_populates="assessment",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def visibility_status(self) -> str | None:
        return self.listing.visibility_status if self.listing is not None else None
