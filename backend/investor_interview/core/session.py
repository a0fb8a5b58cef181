import logging
from pathlib import Path
from typing import Optional, Union
from pydantic import ValidationError as PydanticValidationError

from .models import InterviewRequest, InterviewSession
from .questions import parse_question_id
from .errors import InvalidInputError

logger = logging.getLogger(__name__)

def encode_envelope(session: InterviewSession) -> str:
    """Serialize a session into the envelope JSON the front end stores"""
    return session.model_dump_json(by_alias=True, exclude_none=True)

def decode_envelope(data: Union[str, bytes, dict]) -> InterviewSession:
    """
    Rebuild a session from a stored envelope

    Previously stored answers are trusted as given; only the envelope's
    shape is checked.

    Raises:
        InvalidInputError: the snapshot is not a valid envelope
    """
    try:
        if isinstance(data, dict):
            return InterviewSession.model_validate(data)
        return InterviewSession.model_validate_json(data)
    except PydanticValidationError as e:
        raise InvalidInputError(
            "Invalid session envelope",
            [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        )

def session_from_request(request: InterviewRequest) -> InterviewSession:
    """Build the turn's session snapshot from an inbound API request"""
    question_id = parse_question_id(request.current_question_id)
    if question_id is None:
        raise InvalidInputError(
            "Unknown question id", [f"currentQuestionId={request.current_question_id!r}"]
        )
    return InterviewSession(
        session_id=request.session_id,
        current_question_id=question_id,
        answers=dict(request.answers),
    )

class SessionStore:
    """Single well-known slot holding the one in-flight session"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def save(self, session: InterviewSession) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(encode_envelope(session), encoding="utf-8")
        tmp_path.replace(self.path)
        logger.debug(f"Saved session {session.session_id} to {self.path}")

    def load(self) -> Optional[InterviewSession]:
        """Load the stored session; an empty or unreadable slot means no session"""
        if not self.path.exists():
            return None
        try:
            return decode_envelope(self.path.read_text(encoding="utf-8"))
        except (OSError, InvalidInputError) as e:
            logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
            return None

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
            logger.info(f"Cleared stored session at {self.path}")
