"""Terminal front end for the investor interview."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Any, Callable, Dict, Optional, Tuple

from .config import settings
from .core.errors import InterpreterFailure, InvalidInputError, ProtocolError, ValidationError
from .core.answers import normalize_field, validate_field
from .core.interview import InterviewEngine, TurnResponse, TurnResult
from .core.models import FinalResult, InterviewSession
from .core.questions import LAST_QUESTION, QUESTIONS, QUESTIONS_BY_ID, Question
from .core.session import SessionStore
from .interpreter.adapter import LLMAnswerInterpreter

logger = logging.getLogger(__name__)

DISCLAIMER = "Prototype only. Not financial advice."
QUIT_COMMANDS = {"quit", "exit", ":q"}
RESTART_COMMANDS = {"start over", "restart"}
LAST_QUESTION_FIELD = QUESTIONS_BY_ID[LAST_QUESTION].field
COMPLETED_HINT = "Run again with --review to edit your answers, or with --new to start over."
SERVICE_ERROR = "Something went wrong with the interview service. Run again with --new to start over."


def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="investor-interview",
        description="Run the investor profile interview in the terminal",
    )
    parser.add_argument(
        "--new",
        action="store_true",
        help="Discard any saved session and start over.",
    )
    parser.add_argument(
        "--review",
        action="store_true",
        help="Edit the answers of a completed interview and get a new result.",
    )
    parser.add_argument(
        "--session-file",
        default=settings.SESSION_FILE,
        help=f"Where the in-flight session is kept (default: {settings.SESSION_FILE})",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=settings.TURN_TIMEOUT_SECONDS,
        help="Seconds to wait for each answer to be interpreted.",
    )
    return parser.parse_args(argv)


def format_final_result(result: FinalResult) -> str:
    """Render the final result as plain text"""
    summary = result.summary.model_dump(by_alias=True)
    lines = [
        "",
        f"Selected: {result.portfolio.title} ({result.selected_portfolio_id})",
        result.rationale,
        "",
        "Your answers:",
    ]
    for question in QUESTIONS_BY_ID.values():
        lines.append(f"  {question.label:<24} {summary[question.field]}")

    lines.extend(["", "Asset allocation:"])
    for row in result.portfolio.asset_allocation:
        lines.append(f"  {row.asset_class:<26} {row.target_pct:>5.0f}%  ({row.range})")
    lines.extend([
        "",
        f"Strategic split: {result.portfolio.strategic_split}",
        f"Rebalancing: {result.portfolio.rebalancing}",
        "",
        DISCLAIMER,
    ])
    return "\n".join(lines)


def _show(response: TurnResponse, output: Callable[[str], None]) -> None:
    if isinstance(response, FinalResult):
        output(response.speak_text)
        output(format_final_result(response))
        return
    if response.type == "clarification":
        output(f"({response.reason})")
    output(response.speak_text)
    output(f"  [{response.question_id.value}] {response.validation_hint}")


def _print_answers(answers: Dict[str, Any], output: Callable[[str], None]) -> None:
    for question in QUESTIONS:
        value = answers.get(question.field)
        output(f"  {question.number:>2}. {question.label:<24} {'-' if value is None else value}")


def _parse_edit(question: Question, text: str) -> Tuple[Optional[Any], Optional[str]]:
    """Turn typed text into a field value; returns (value, error)"""
    value: Any = text.strip()
    if question.field == "age":
        try:
            value = int(value)
        except ValueError:
            return None, "Please enter a valid age."
    ok, error = validate_field(question.field, value)
    if not ok:
        return None, f"{error}. Expected: {question.validation_hint}"
    return normalize_field(question.field, value), None


async def review_answers(
    engine: InterviewEngine,
    session: InterviewSession,
    *,
    timeout: Optional[float] = None,
    read_line: Callable[[str], str] = input,
    output: Callable[[str], None] = print,
) -> Optional[TurnResult]:
    """
    List a finished session's answers, let the user edit them, and resubmit

    Returns the new turn result, or None when the user leaves without
    resubmitting or the interpreter could not be reached.
    """
    edited = dict(session.answers)
    output("Review your answers:")
    _print_answers(edited, output)

    while True:
        try:
            choice = read_line("Number to edit, or Enter to get your result: ").strip()
        except EOFError:
            return None
        if choice.lower() in QUIT_COMMANDS:
            return None
        if not choice:
            break
        if not choice.isdigit() or not 1 <= int(choice) <= len(QUESTIONS):
            output(f"Enter a number from 1 to {len(QUESTIONS)}.")
            continue

        question = QUESTIONS[int(choice) - 1]
        try:
            text = read_line(f"{question.label}: ")
        except EOFError:
            return None
        value, error = _parse_edit(question, text)
        if error:
            output(error)
            continue
        edited[question.field] = value
        output(f"Updated {question.label}.")

    reopened = engine.reopen_for_review(session, edited)
    utterance = str(edited.get(LAST_QUESTION_FIELD) or "medium")
    try:
        return await engine.advance(reopened, utterance, timeout=timeout)
    except InterpreterFailure as e:
        output(f"Sorry, I couldn't get your result right now ({e}). Your earlier result is kept.")
        return None


def _show_completed(session: InterviewSession, engine: InterviewEngine,
                    output: Callable[[str], None]) -> None:
    _show(engine.current_prompt(session), output)
    output(COMPLETED_HINT)


async def run_interview(
    engine: InterviewEngine,
    store: SessionStore,
    *,
    start_over: bool = False,
    review: bool = False,
    timeout: Optional[float] = None,
    read_line: Callable[[str], str] = input,
    output: Callable[[str], None] = print,
) -> int:
    """
    Drive one interview to completion, saving progress after every accepted turn

    A completed session stays in the store until the user starts over; running
    again shows its result, or opens the review when ``review`` is set.
    """
    session: Optional[InterviewSession] = None if start_over else store.load()
    if session is None:
        store.clear()
        session = engine.start_session().session
        store.save(session)
    elif session.is_complete:
        if not review:
            _show_completed(session, engine, output)
            return 0
        try:
            result = await review_answers(
                engine, session, timeout=timeout, read_line=read_line, output=output
            )
        except (ProtocolError, ValidationError) as e:
            logger.error(f"Review aborted: {e}")
            output(SERVICE_ERROR)
            return 1
        if result is not None:
            session = result.session
            store.save(session)
        _show_completed(session, engine, output)
        return 0
    else:
        if review:
            output("There is nothing to review until the interview is complete.")
        output(f"Resuming your interview at question {session.current_question_id.value}.")

    _show(engine.current_prompt(session), output)

    while not session.is_complete:
        try:
            utterance = read_line("> ")
        except EOFError:
            output("Progress saved. Run again to resume.")
            return 0

        command = utterance.strip().lower()
        if command in QUIT_COMMANDS:
            output("Progress saved. Run again to resume.")
            return 0
        if command in RESTART_COMMANDS:
            store.clear()
            session = engine.start_session().session
            store.save(session)
            _show(engine.current_prompt(session), output)
            continue

        try:
            result = await engine.advance(session, utterance, timeout=timeout)
        except InvalidInputError as e:
            output(f"{e} Please try again.")
            continue
        except InterpreterFailure as e:
            output(f"Sorry, I couldn't process that right now ({e}). Please say it again.")
            continue
        except (ProtocolError, ValidationError) as e:
            logger.error(f"Interview aborted: {e}")
            output(SERVICE_ERROR)
            return 1

        session = result.session
        store.save(session)
        _show(result.response, output)

    output(COMPLETED_HINT)
    return 0


def run_cli(argv: Optional[list[str]] = None) -> None:
    """Entry-point for the ``investor-interview`` command."""

    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    try:
        interpreter = LLMAnswerInterpreter.from_settings(settings)
    except RuntimeError as e:
        print(str(e), file=sys.stderr)
        sys.exit(2)

    engine = InterviewEngine(interpreter)
    store = SessionStore(args.session_file)
    print(DISCLAIMER)
    sys.exit(asyncio.run(
        run_interview(
            engine, store, start_over=args.new, review=args.review, timeout=args.timeout
        )
    ))


if __name__ == "__main__":
    run_cli()
