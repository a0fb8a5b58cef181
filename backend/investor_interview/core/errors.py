from typing import List, Optional


class InterviewError(Exception):
    """Base class for every error an interview turn can surface"""

    kind = "interview_error"
    retryable = False

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or []

    def __str__(self):
        if self.errors:
            return f"{super().__str__()}: {'; '.join(self.errors)}"
        return super().__str__()


class InvalidInputError(InterviewError):
    """Caller sent a structurally invalid turn (empty utterance, unknown question)"""

    kind = "invalid_input"


class InterpreterFailure(InterviewError):
    """Interpreter call failed, timed out, or returned malformed output twice.

    The turn is not committed; re-submitting the same utterance is safe.
    """

    kind = "interpreter_failure"
    retryable = True


class ProtocolError(InterviewError):
    """Interpreter output was well-formed but broke the turn rules"""

    kind = "protocol_error"


class ValidationError(InterviewError):
    """Portfolio stage received an answer set that skipped the completion gate"""

    kind = "validation_error"
