"""Append-only audit trail attached to an assessment.

Rows are inserted by workflow transitions and removed only when the owning
assessment is deleted (ON DELETE CASCADE).
"""
import enum

from sqlalchemy import CheckConstraint, Column, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from listing_qa.models.base import Base, utcnow


class ReviewStage(str, enum.Enum):
    DIGITAL = "digital"
    PHYSICAL = "physical"


def _stage_column():
    return Column(
        Enum(
            ReviewStage,
            name="review_stage",
            native_enum=False,
            create_constraint=True,
            values_callable=lambda e: [m.value for m in e],
            length=16,
        ),
        nullable=False,
    )


class ApprovalRecord(Base):
    __tablename__ = "approvals"

    id = Column(Integer, primary_key=True, index=True)
    assessment_id = Column(String(36), ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(Text, nullable=True)  # "bypassed", "digital review passed", ...
    created_by = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    assessment = relationship("Assessment", back_populates="approvals")


class RejectionRecord(Base):
    __tablename__ = "rejections"
    __table_args__ = (
        CheckConstraint("length(trim(reason)) > 0", name="ck_rejections_reason_not_blank"),
    )

    id = Column(Integer, primary_key=True, index=True)
    assessment_id = Column(String(36), ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False, index=True)
    stage = _stage_column()
    reason = Column(Text, nullable=False)
    vendor_submitted_category = Column(String(255), nullable=True)
    admin_reclassified_category = Column(String(255), nullable=True)
    created_by = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    assessment = relationship("Assessment", back_populates="rejections")


class RevisionRecord(Base):
    __tablename__ = "revisions"

    id = Column(Integer, primary_key=True, index=True)
    assessment_id = Column(String(36), ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False, index=True)
    stage = _stage_column()
    feedback = Column(Text, nullable=False)
    created_by = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    assessment = relationship("Assessment", back_populates="revisions")


class LogisticsRecord(Base):
    __tablename__ = "logistics_records"

    id = Column(Integer, primary_key=True, index=True)
    assessment_id = Column(String(36), ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False, index=True)
    details = Column(Text, nullable=False)
    created_by = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    assessment = relationship("Assessment", back_populates="logistics_records")
