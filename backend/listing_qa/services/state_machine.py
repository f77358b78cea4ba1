"""Assessment state machine: the transition table and its pure checks.

    pending_digital_review --approve_digital--> waiting_for_sample
    pending_digital_review --request_revision/digital--> for_revision
    pending_digital_review --reject/digital--> rejected
    waiting_for_sample --submit_sample--> pending_physical_review
    pending_physical_review --approve_physical--> verified
    pending_physical_review --reject/physical--> rejected
    pending_physical_review --request_revision/physical--> for_revision
    for_revision --resubmit--> pending_digital_review

rejected and verified are terminal. Persistence, audit records and
visibility are applied by ``workflow``; nothing here touches the database.
"""
import enum
from dataclasses import dataclass

from listing_qa.models.assessment import AssessmentStatus
from listing_qa.models.audit import ReviewStage
from listing_qa.services.errors import ValidationError


class Trigger(str, enum.Enum):
    APPROVE_DIGITAL = "approve_digital"
    REQUEST_REVISION = "request_revision"
    REJECT = "reject"
    SUBMIT_SAMPLE = "submit_sample"
    APPROVE_PHYSICAL = "approve_physical"
    RESUBMIT = "resubmit"


class AuditKind(str, enum.Enum):
    APPROVAL = "approval"
    REJECTION = "rejection"
    REVISION = "revision"
    LOGISTICS = "logistics"


@dataclass(frozen=True)
class Transition:
    trigger: Trigger
    source: AssessmentStatus
    target: AssessmentStatus
    stage: ReviewStage | None = None
    required_input: str | None = None  # "feedback", "reason" or "logistics"
    audit: AuditKind | None = None
    stamps: tuple[str, ...] = ()  # timestamp columns set once, on first entry
    refreshes: tuple[str, ...] = ()  # timestamp columns overwritten every time


_S = AssessmentStatus
_TRANSITIONS: tuple[Transition, ...] = (
    Transition(Trigger.APPROVE_DIGITAL, _S.PENDING_DIGITAL_REVIEW, _S.WAITING_FOR_SAMPLE,
               audit=AuditKind.APPROVAL, stamps=("approved_at",)),
    Transition(Trigger.REQUEST_REVISION, _S.PENDING_DIGITAL_REVIEW, _S.FOR_REVISION,
               stage=ReviewStage.DIGITAL, required_input="feedback",
               audit=AuditKind.REVISION, stamps=("revision_requested_at",)),
    Transition(Trigger.REJECT, _S.PENDING_DIGITAL_REVIEW, _S.REJECTED,
               stage=ReviewStage.DIGITAL, required_input="reason",
               audit=AuditKind.REJECTION, stamps=("rejected_at",)),
    Transition(Trigger.SUBMIT_SAMPLE, _S.WAITING_FOR_SAMPLE, _S.PENDING_PHYSICAL_REVIEW,
               required_input="logistics", audit=AuditKind.LOGISTICS),
    Transition(Trigger.APPROVE_PHYSICAL, _S.PENDING_PHYSICAL_REVIEW, _S.VERIFIED,
               audit=AuditKind.APPROVAL, stamps=("verified_at",)),
    Transition(Trigger.REJECT, _S.PENDING_PHYSICAL_REVIEW, _S.REJECTED,
               stage=ReviewStage.PHYSICAL, required_input="reason",
               audit=AuditKind.REJECTION, stamps=("rejected_at",)),
    Transition(Trigger.REQUEST_REVISION, _S.PENDING_PHYSICAL_REVIEW, _S.FOR_REVISION,
               stage=ReviewStage.PHYSICAL, required_input="feedback",
               audit=AuditKind.REVISION, stamps=("revision_requested_at",)),
    Transition(Trigger.RESUBMIT, _S.FOR_REVISION, _S.PENDING_DIGITAL_REVIEW,
               refreshes=("submitted_at",)),
)

_BY_KEY: dict[tuple[Trigger, ReviewStage | None], Transition] = {
    (t.trigger, t.stage): t for t in _TRANSITIONS
}

TERMINAL_STATUSES = frozenset({AssessmentStatus.REJECTED, AssessmentStatus.VERIFIED})
STAGED_TRIGGERS = frozenset({Trigger.REJECT, Trigger.REQUEST_REVISION})


def parse_status(value) -> AssessmentStatus:
    """Coerce a caller-supplied status; unknown values are rejected."""
    try:
        return AssessmentStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in AssessmentStatus)
        raise ValidationError(f"Unknown assessment status '{value}'. Allowed: [{allowed}]") from None


def resolve(trigger: Trigger, stage: ReviewStage | None = None) -> Transition:
    """Look up the single transition for a trigger (and stage, where the trigger needs one)."""
    try:
        trigger = Trigger(trigger)
    except ValueError:
        raise ValidationError(f"Unknown trigger '{trigger}'") from None
    if trigger in STAGED_TRIGGERS:
        if stage is None:
            raise ValidationError(f"'{trigger.value}' requires a stage (digital or physical)")
        try:
            stage = ReviewStage(stage)
        except ValueError:
            raise ValidationError(f"Unknown review stage '{stage}'") from None
    else:
        stage = None
    return _BY_KEY[(trigger, stage)]


def check_input(transition: Transition, value: str | None) -> str | None:
    """Return the stripped required input, or raise ValidationError if it is blank."""
    if transition.required_input is None:
        return None
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"'{transition.trigger.value}' requires non-empty {transition.required_input}")
    return cleaned


def is_terminal(status: AssessmentStatus) -> bool:
    return parse_status(status) in TERMINAL_STATUSES


def transitions_from(status: AssessmentStatus) -> list[Transition]:
    status = parse_status(status)
    return [t for t in _TRANSITIONS if t.source == status]


def allowed_triggers(status: AssessmentStatus) -> set[Trigger]:
    return {t.trigger for t in transitions_from(status)}


def all_transitions() -> tuple[Transition, ...]:
    return _TRANSITIONS
