import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from .models import (
    InterviewSession, NextQuestionResponse, ClarificationResponse, FinalResult
)
from .questions import (
    Question, get_question, next_question_id, parse_question_id,
    FIRST_QUESTION, LAST_QUESTION, WELCOME_PREFIX
)
from .answers import AnswerSetBuilder, carry_forward_errors
from .portfolio import select_portfolio, build_speak_text
from .errors import InvalidInputError, InterpreterFailure, ProtocolError
from ..interpreter.adapter import (
    AnswerInterpreter, AdvanceOutcome, ClarifyOutcome, CompleteOutcome
)

logger = logging.getLogger(__name__)

TurnResponse = Union[NextQuestionResponse, ClarificationResponse, FinalResult]

@dataclass(frozen=True)
class TurnResult:
    """Next observable interview state: the updated session and what to show the user"""
    session: InterviewSession
    response: TurnResponse

def _unexpected_fields(previous: Dict[str, Any], updated: Dict[str, Any],
                       allowed_field: Optional[str]) -> List[str]:
    return [
        f"Field '{key}' was answered before its question"
        for key in updated
        if key not in previous and key != allowed_field
    ]

class InterviewEngine:
    """
    Turn-by-turn state machine for the fixed investor interview

    The engine holds no session state of its own: every call takes a session
    snapshot and returns a new one, leaving the input untouched.
    """

    def __init__(self, interpreter: AnswerInterpreter, turn_timeout: Optional[float] = None):
        self.interpreter = interpreter
        self.turn_timeout = turn_timeout

    def start_session(self) -> TurnResult:
        """Start a new interview attempt at the first question"""
        session = InterviewSession()
        logger.info(f"Started interview session {session.session_id}")
        return TurnResult(session=session, response=self.current_prompt(session))

    def current_prompt(self, session: InterviewSession) -> TurnResponse:
        """Prompt to show when (re)entering a session"""
        if session.is_complete and session.final_result is not None:
            return session.final_result

        question = get_question(session.current_question_id)
        speak_text = question.text
        if question.id == FIRST_QUESTION and not session.answers:
            speak_text = f"{WELCOME_PREFIX} {question.text}"

        return NextQuestionResponse(
            question_id=question.id,
            question_text=question.text,
            speak_text=speak_text,
            validation_hint=question.validation_hint,
            updated_answers=dict(session.answers),
        )

    def reopen_for_review(self, session: InterviewSession,
                          answers: Dict[str, Any]) -> InterviewSession:
        """
        Put a finished session back at the last question with edited answers

        The caller resubmits the confirmed risk answer through ``advance`` to
        get a fresh result; the completion gate runs again on the edits.
        """
        if not session.is_complete:
            raise InvalidInputError("Only a completed interview can be reviewed")
        return session.model_copy(update={
            "current_question_id": LAST_QUESTION,
            "answers": dict(answers),
            "is_complete": False,
            "final_result": None,
        })

    async def advance(self, session: InterviewSession, utterance: str,
                      timeout: Optional[float] = None) -> TurnResult:
        """
        Process one user utterance for the session's current question

        Args:
            session: Snapshot of interview progress (not modified)
            utterance: Raw user answer
            timeout: Deadline in seconds for the interpreter, retry included

        Returns:
            TurnResult with the updated session and the response to surface

        Raises:
            InvalidInputError: empty utterance, unknown question, finished session
            InterpreterFailure: interpreter unavailable, too slow, or malformed twice
            ProtocolError: interpreter output broke the turn rules
        """
        question_id = parse_question_id(session.current_question_id)
        if question_id is None:
            raise InvalidInputError(
                "Unknown question id", [f"currentQuestionId={session.current_question_id!r}"]
            )
        if session.is_complete:
            raise InvalidInputError("Interview is already complete; start over to begin again")

        utterance = (utterance or "").strip()
        if not utterance:
            raise InvalidInputError("Answer must not be empty")

        question = get_question(question_id)
        outcome = await self._interpret(session, question, utterance, timeout)

        try:
            if isinstance(outcome, AdvanceOutcome):
                result = self._apply_advance(session, question, outcome)
            elif isinstance(outcome, ClarifyOutcome):
                result = self._apply_clarify(session, question, outcome)
            elif isinstance(outcome, CompleteOutcome):
                result = self._apply_complete(session, question, outcome)
            else:
                raise ProtocolError(
                    "Interpreter returned an unknown outcome", [type(outcome).__name__]
                )
        except ProtocolError as e:
            logger.error(
                f"Protocol violation in session {session.session_id} at {question.id.value}: {e}"
            )
            raise

        logger.info(
            f"Processed turn for session {session.session_id}: "
            f"{question.id.value} -> {result.response.type}"
        )
        return result

    async def _interpret(self, session: InterviewSession, question: Question,
                         utterance: str, timeout: Optional[float]):
        deadline = timeout if timeout is not None else self.turn_timeout
        try:
            return await asyncio.wait_for(
                self.interpreter.interpret(dict(session.answers), question.id, utterance),
                timeout=deadline,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Interpreter timed out after {deadline}s for session {session.session_id}"
            )
            raise InterpreterFailure(f"Answer interpreter did not respond within {deadline}s")
        except InterpreterFailure as e:
            logger.warning(f"Interpreter failure for session {session.session_id}: {e}")
            raise

    def _apply_advance(self, session: InterviewSession, question: Question,
                       outcome: AdvanceOutcome) -> TurnResult:
        target = parse_question_id(outcome.question_id)
        expected = next_question_id(question.id)

        if target == question.id:
            # Repeat request: same question, same answers
            errors = (
                carry_forward_errors(session.answers, outcome.answers)
                + _unexpected_fields(session.answers, outcome.answers, None)
            )
            if errors:
                raise ProtocolError("Repeat request changed the answer set", errors)
            answers = dict(session.answers)
        elif target is not None and target == expected:
            answers = self._accept_answer(session.answers, outcome.answers, question)
        else:
            raise ProtocolError(
                f"Interpreter moved from {question.id.value} to an out-of-order question",
                [f"questionId={outcome.question_id!r}, expected {expected.value if expected else 'complete'}"]
            )

        next_question = get_question(target)
        updated = session.model_copy(update={"current_question_id": target, "answers": answers})
        response = NextQuestionResponse(
            question_id=target,
            question_text=next_question.text,
            speak_text=outcome.speak_text or next_question.text,
            validation_hint=outcome.validation_hint or next_question.validation_hint,
            updated_answers=dict(answers),
        )
        return TurnResult(session=updated, response=response)

    def _accept_answer(self, previous: Dict[str, Any], updated: Dict[str, Any],
                       question: Question) -> Dict[str, Any]:
        """Merge the newly resolved field, enforcing carry-forward of everything else"""
        errors = carry_forward_errors(previous, updated, editable_field=question.field)
        errors += _unexpected_fields(previous, updated, question.field)
        if question.field not in updated:
            errors.append(f"Answer for '{question.field}' is missing")
        if errors:
            raise ProtocolError("Interpreter broke the carry-forward rule", errors)

        builder = AnswerSetBuilder(previous)
        builder.set(question.field, updated[question.field])
        return builder.answers

    def _apply_clarify(self, session: InterviewSession, question: Question,
                       outcome: ClarifyOutcome) -> TurnResult:
        if outcome.question_id is not None and parse_question_id(outcome.question_id) != question.id:
            raise ProtocolError(
                "Clarification must stay on the current question",
                [f"questionId={outcome.question_id!r}, current {question.id.value}"]
            )

        field = question.field
        if field in outcome.answers and outcome.answers[field] != session.answers.get(field):
            raise ProtocolError(
                "Clarification must not resolve the current question",
                [f"'{field}' set to {outcome.answers[field]!r}"]
            )

        response = ClarificationResponse(
            question_id=question.id,
            question_text=question.text,
            speak_text=outcome.speak_text or question.text,
            reason=outcome.reason or "The answer could not be understood",
            updated_answers=dict(session.answers),
        )
        return TurnResult(session=session, response=response)

    def _apply_complete(self, session: InterviewSession, question: Question,
                        outcome: CompleteOutcome) -> TurnResult:
        if question.id != LAST_QUESTION:
            raise ProtocolError(
                f"Interview cannot complete at {question.id.value}",
                [f"Completion is only allowed at {LAST_QUESTION.value}"]
            )

        errors = carry_forward_errors(session.answers, outcome.answers, editable_field=question.field)
        if errors:
            raise ProtocolError("Interpreter broke the carry-forward rule", errors)

        answer_set = AnswerSetBuilder(outcome.answers).build()

        selection = select_portfolio(answer_set)

        final_result = FinalResult(
            summary=answer_set,
            selected_portfolio_id=selection.portfolio_id,
            rationale=selection.rationale,
            portfolio=selection.portfolio,
            speak_text=build_speak_text(selection),
        )
        updated = session.model_copy(update={
            "current_question_id": LAST_QUESTION,
            "answers": answer_set.model_dump(by_alias=True),
            "is_complete": True,
            "final_result": final_result,
        })
        logger.info(
            f"Interview {session.session_id} complete: portfolio {selection.portfolio_id}"
        )
        return TurnResult(session=updated, response=final_result)
