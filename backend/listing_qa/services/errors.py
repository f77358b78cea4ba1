"""Errors raised by the assessment workflow.

ValidationError and ConflictError are recoverable by the caller (fix the
input, or re-fetch and decide again). NotFoundError and ConstraintViolation
are surfaced as-is. A duplicate create is not an error at all: see
``entry_creator.create_assessment``.
"""


class AssessmentError(Exception):
    """Base class for workflow errors."""


class ValidationError(AssessmentError):
    """Required transition input is missing or malformed; nothing was written."""


class NotFoundError(AssessmentError):
    def __init__(self, kind: str, **key):
        self.kind = kind
        self.key = key
        ident = ", ".join(f"{k}={v}" for k, v in key.items())
        super().__init__(f"{kind} not found ({ident})")


class ConflictError(AssessmentError):
    """The assessment is no longer in the status the transition expected."""

    def __init__(self, assessment_id: str, expected, actual, stage_mismatch: bool = False):
        self.assessment_id = assessment_id
        self.expected = expected
        self.actual = actual
        # the trigger applies to the current status, but at the other review stage
        self.stage_mismatch = stage_mismatch
        super().__init__(
            f"Assessment {assessment_id} is '{_value(actual)}', expected '{_value(expected)}'"
        )


class ConstraintViolation(AssessmentError):
    """The database rejected a write; indicates a data or programming error."""


def _value(status) -> str:
    return getattr(status, "value", status)
