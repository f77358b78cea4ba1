import pytest

from listing_qa.models import (
    ApprovalRecord,
    AssessmentStatus,
    Listing,
    LogisticsRecord,
    RejectionRecord,
    ReviewStage,
    RevisionRecord,
)
from listing_qa.services import audit_trail, workflow
from listing_qa.services.entry_creator import create_assessment
from listing_qa.services.errors import ConflictError, ConstraintViolation, NotFoundError, ValidationError
from listing_qa.services.state_machine import Trigger
from listing_qa.services.visibility import visibility_for

SELLER = "seller-standard"


@pytest.fixture
def pending(db, make_listing):
    listing_id = make_listing(seller_id=SELLER)
    assessment, _ = create_assessment(db, listing_id=listing_id, seller_id=SELLER)
    return assessment


def _listing_visibility(db, assessment):
    db.expire_all()
    return db.get(Listing, assessment.listing_id).visibility_status


def _to_physical_review(db, assessment):
    workflow.approve_digital(db, assessment_id=assessment.id, actor="admin-1")
    return workflow.submit_sample(db, listing_id=assessment.listing_id, logistics="J&T Express", actor=SELLER)


def test_approve_digital(db, pending):
    a = workflow.approve_digital(db, assessment_id=pending.id, actor="admin-1")

    assert a.status == AssessmentStatus.WAITING_FOR_SAMPLE
    assert a.approved_at is not None
    assert _listing_visibility(db, a) == "pending"
    record = audit_trail.latest_record(db, ApprovalRecord, a.id)
    assert record.description == "digital review passed"
    assert record.created_by == "admin-1"


def test_submit_sample_persists_logistics(db, pending):
    a = _to_physical_review(db, pending)

    assert a.status == AssessmentStatus.PENDING_PHYSICAL_REVIEW
    assert a.logistics == "J&T Express"
    assert audit_trail.latest_record(db, LogisticsRecord, a.id).details == "J&T Express"


def test_submit_sample_requires_logistics(db, pending):
    workflow.approve_digital(db, assessment_id=pending.id)

    with pytest.raises(ValidationError):
        workflow.submit_sample(db, listing_id=pending.listing_id, logistics="   ")

    a = workflow.get_assessment(db, assessment_id=pending.id)
    assert a.status == AssessmentStatus.WAITING_FOR_SAMPLE
    assert db.query(LogisticsRecord).count() == 0


def test_verify(db, pending):
    _to_physical_review(db, pending)
    a = workflow.verify(db, assessment_id=pending.id, actor="admin-2")

    assert a.status == AssessmentStatus.VERIFIED
    assert a.verified_at is not None
    assert _listing_visibility(db, a) == "approved"
    assert audit_trail.latest_record(db, ApprovalRecord, a.id).description == "physical review passed"


def test_reject_digital(db, pending):
    a = workflow.reject(db, assessment_id=pending.id, reason="blurry images", stage=ReviewStage.DIGITAL)

    assert a.status == AssessmentStatus.REJECTED
    assert a.rejected_at is not None
    assert _listing_visibility(db, a) == "rejected"
    record = audit_trail.latest_record(db, RejectionRecord, a.id)
    assert record.stage == ReviewStage.DIGITAL
    assert record.reason == "blurry images"


def test_reject_physical_records_categories(db, pending):
    _to_physical_review(db, pending)
    a = workflow.reject(
        db,
        assessment_id=pending.id,
        reason="sample does not match photos",
        stage="physical",
        vendor_submitted_category="Electronics",
        admin_reclassified_category="Accessories",
    )

    assert a.status == AssessmentStatus.REJECTED
    assert a.rejected_at is not None
    record = audit_trail.latest_record(db, RejectionRecord, a.id)
    assert record.stage == ReviewStage.PHYSICAL
    assert record.vendor_submitted_category == "Electronics"
    assert record.admin_reclassified_category == "Accessories"


def test_reject_requires_reason(db, pending):
    with pytest.raises(ValidationError):
        workflow.reject(db, assessment_id=pending.id, reason="", stage=ReviewStage.DIGITAL)
    assert workflow.get_assessment(db, assessment_id=pending.id).status == AssessmentStatus.PENDING_DIGITAL_REVIEW
    assert db.query(RejectionRecord).count() == 0


def test_reject_with_wrong_stage_is_a_conflict(db, pending):
    with pytest.raises(ConflictError) as exc_info:
        workflow.reject(db, assessment_id=pending.id, reason="bad sample", stage=ReviewStage.PHYSICAL)

    assert exc_info.value.expected == AssessmentStatus.PENDING_PHYSICAL_REVIEW
    assert exc_info.value.actual == AssessmentStatus.PENDING_DIGITAL_REVIEW
    assert exc_info.value.stage_mismatch is True


def test_revision_and_resubmit_cycle(db, pending):
    first_submitted = pending.submitted_at
    a = workflow.request_revision(
        db, assessment_id=pending.id, feedback="add a size chart", stage=ReviewStage.DIGITAL
    )
    assert a.status == AssessmentStatus.FOR_REVISION
    assert a.revision_requested_at is not None
    assert _listing_visibility(db, a) == "pending"
    assert audit_trail.latest_record(db, RevisionRecord, a.id).feedback == "add a size chart"

    a = workflow.resubmit(db, listing_id=pending.listing_id)
    assert a.status == AssessmentStatus.PENDING_DIGITAL_REVIEW
    assert a.submitted_at >= first_submitted


def test_physical_revision(db, pending):
    _to_physical_review(db, pending)
    a = workflow.request_revision(db, assessment_id=pending.id, feedback="stitching loose", stage="physical")

    assert a.status == AssessmentStatus.FOR_REVISION
    assert audit_trail.latest_record(db, RevisionRecord, a.id).stage == ReviewStage.PHYSICAL


def test_timestamps_are_set_once(db, pending):
    a = workflow.approve_digital(db, assessment_id=pending.id)
    approved_at = a.approved_at
    workflow.submit_sample(db, listing_id=a.listing_id, logistics="courier")
    workflow.request_revision(db, assessment_id=a.id, feedback="retake photos", stage="physical")
    workflow.resubmit(db, listing_id=a.listing_id)
    a = workflow.approve_digital(db, assessment_id=a.id)

    assert a.approved_at == approved_at
    assert len(audit_trail.records_for(db, ApprovalRecord, a.id)) == 2


def test_stale_transition_is_a_conflict_and_writes_nothing(db, pending):
    workflow.reject(db, assessment_id=pending.id, reason="counterfeit", stage="digital")

    with pytest.raises(ConflictError) as exc_info:
        workflow.approve_digital(db, assessment_id=pending.id)

    assert exc_info.value.actual == AssessmentStatus.REJECTED
    assert exc_info.value.stage_mismatch is False
    a = workflow.get_assessment(db, assessment_id=pending.id)
    assert a.status == AssessmentStatus.REJECTED
    assert a.approved_at is None
    assert db.query(ApprovalRecord).count() == 0
    assert _listing_visibility(db, a) == "rejected"


def _approval_without_assessment(db, assessment_id, description, actor=None):
    record = ApprovalRecord(assessment_id=None, description=description, created_by=actor)
    db.add(record)
    return record


def test_rejected_write_rolls_back_status_and_visibility(db, pending, monkeypatch):
    in_review = _to_physical_review(db, pending)
    monkeypatch.setattr(audit_trail, "append_approval", _approval_without_assessment)

    with pytest.raises(ConstraintViolation):
        workflow.approve_physical(db, assessment_id=in_review.id, actor="admin-1")

    db.expire_all()
    a = workflow.get_assessment(db, assessment_id=in_review.id)
    assert a.status == AssessmentStatus.PENDING_PHYSICAL_REVIEW
    assert a.verified_at is None
    assert _listing_visibility(db, a) == "pending"
    assert [r.description for r in audit_trail.records_for(db, ApprovalRecord, a.id)] == ["digital review passed"]


def test_concurrent_admins_one_wins(session_factory, pending):
    admin_a = session_factory()
    admin_b = session_factory()
    try:
        # both consoles loaded the assessment while it was pending
        workflow.get_assessment(db=admin_a, assessment_id=pending.id)
        workflow.get_assessment(db=admin_b, assessment_id=pending.id)

        workflow.approve_digital(admin_a, assessment_id=pending.id, actor="admin-a")
        with pytest.raises(ConflictError):
            workflow.reject(admin_b, assessment_id=pending.id, reason="late decision", stage="digital")
    finally:
        admin_a.close()
        admin_b.close()


@pytest.mark.parametrize("status", [AssessmentStatus.VERIFIED, AssessmentStatus.REJECTED])
def test_terminal_states_accept_no_trigger(db, pending, status):
    if status == AssessmentStatus.VERIFIED:
        _to_physical_review(db, pending)
        workflow.verify(db, assessment_id=pending.id)
    else:
        workflow.reject(db, assessment_id=pending.id, reason="prohibited item", stage="digital")

    for trigger, stage, value in [
        (Trigger.APPROVE_DIGITAL, None, None),
        (Trigger.APPROVE_PHYSICAL, None, None),
        (Trigger.REJECT, "digital", "x"),
        (Trigger.REJECT, "physical", "x"),
        (Trigger.REQUEST_REVISION, "digital", "x"),
        (Trigger.SUBMIT_SAMPLE, None, "courier"),
        (Trigger.RESUBMIT, None, None),
    ]:
        with pytest.raises(ConflictError):
            workflow.apply_transition(db, trigger, assessment_id=pending.id, stage=stage, value=value)
    assert workflow.get_assessment(db, assessment_id=pending.id).status == status


def test_expected_status_must_match_trigger(db, pending):
    with pytest.raises(ValidationError):
        workflow.apply_transition(
            db,
            Trigger.APPROVE_DIGITAL,
            assessment_id=pending.id,
            expected_status=AssessmentStatus.PENDING_PHYSICAL_REVIEW,
        )
    a = workflow.apply_transition(
        db,
        Trigger.APPROVE_DIGITAL,
        assessment_id=pending.id,
        expected_status="pending_digital_review",
    )
    assert a.status == AssessmentStatus.WAITING_FOR_SAMPLE


def test_unknown_assessment_is_not_found(db):
    with pytest.raises(NotFoundError):
        workflow.approve_digital(db, assessment_id="missing")
    with pytest.raises(NotFoundError):
        workflow.submit_sample(db, listing_id="missing", logistics="courier")


def test_visibility_matches_mapping_on_every_reachable_status(db, pending):
    seen = set()

    def check(a):
        seen.add(a.status)
        assert _listing_visibility(db, a) == visibility_for(a.status)

    check(pending)
    a = workflow.request_revision(db, assessment_id=pending.id, feedback="more photos", stage="digital")
    check(a)
    a = workflow.resubmit(db, listing_id=a.listing_id)
    check(a)
    a = workflow.approve_digital(db, assessment_id=a.id)
    check(a)
    a = workflow.submit_sample(db, listing_id=a.listing_id, logistics="courier")
    check(a)
    a = workflow.verify(db, assessment_id=a.id)
    check(a)

    assert seen == set(AssessmentStatus) - {AssessmentStatus.REJECTED}


def test_list_queries(db, make_listing):
    mine = make_listing(seller_id="seller-a")
    theirs = make_listing(seller_id="seller-b")
    a, _ = create_assessment(db, listing_id=mine, seller_id="seller-a")
    b, _ = create_assessment(db, listing_id=theirs, seller_id="seller-b")
    workflow.approve_digital(db, assessment_id=b.id)

    assert [x.id for x in workflow.list_assessments_for_seller(db, "seller-a")] == [a.id]
    assert {x.id for x in workflow.list_assessments(db)} == {a.id, b.id}
    assert [x.id for x in workflow.list_assessments(db, status="waiting_for_sample")] == [b.id]
    with pytest.raises(ValidationError):
        workflow.list_assessments(db, status="WAITING_FOR_SAMPLE")
