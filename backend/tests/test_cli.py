"""
Tests for the terminal front end, driven with scripted input.
"""

import pytest

from investor_interview.cli import COMPLETED_HINT, format_final_result, run_interview
from investor_interview.core.errors import InterpreterFailure
from investor_interview.core.interview import InterviewEngine
from investor_interview.core.models import QuestionId
from investor_interview.core.session import SessionStore
from investor_interview.interpreter.adapter import AdvanceOutcome, CompleteOutcome

from conftest import ScriptedInterpreter, answers_before, full_answers, run, session_at


def scripted_input(*lines):
    pending = list(lines)

    def read_line(prompt):
        if not pending:
            raise EOFError
        return pending.pop(0)

    return read_line


def drive(engine, store, *lines, **kwargs):
    output = []
    code = run(run_interview(
        engine, store, read_line=scripted_input(*lines), output=output.append, **kwargs
    ))
    return code, output


class TestRunInterview:
    def test_progress_is_saved_after_each_turn(self, tmp_path):
        store = SessionStore(tmp_path / "session.json")
        engine = InterviewEngine(ScriptedInterpreter(
            AdvanceOutcome(question_id="Q2", answers={"name": "Alex"}),
        ))

        code, output = drive(engine, store, "Alex", "quit")

        assert code == 0
        assert output[0].startswith("Welcome!")
        saved = store.load()
        assert saved.current_question_id == QuestionId.Q2
        assert saved.answers == {"name": "Alex"}

    def test_resumes_saved_session(self, tmp_path):
        store = SessionStore(tmp_path / "session.json")
        store.save(session_at(4))
        engine = InterviewEngine(ScriptedInterpreter())

        code, output = drive(engine, store)

        assert code == 0
        assert output[0] == "Resuming your interview at question Q4."
        assert store.load().answers == answers_before(4)

    def test_start_over_discards_saved_session(self, tmp_path):
        store = SessionStore(tmp_path / "session.json")
        store.save(session_at(4))
        engine = InterviewEngine(ScriptedInterpreter())

        drive(engine, store, start_over=True)

        saved = store.load()
        assert saved.current_question_id == QuestionId.Q1
        assert saved.session_id != "session-123"

    def test_interpreter_failure_keeps_turn_open(self, tmp_path):
        store = SessionStore(tmp_path / "session.json")
        store.save(session_at(2))
        engine = InterviewEngine(ScriptedInterpreter(
            InterpreterFailure("timeout"),
            AdvanceOutcome(question_id="Q3", answers=answers_before(3)),
        ))

        code, output = drive(engine, store, "35", "35")

        assert code == 0
        assert any("couldn't process" in line for line in output)
        assert store.load().current_question_id == QuestionId.Q3

    def test_protocol_error_stops(self, tmp_path):
        store = SessionStore(tmp_path / "session.json")
        store.save(session_at(2))
        engine = InterviewEngine(ScriptedInterpreter(
            AdvanceOutcome(question_id="Q7", answers=answers_before(3)),
        ))

        code, _ = drive(engine, store, "35")

        assert code == 1
        assert store.load().current_question_id == QuestionId.Q2

    def test_completes_and_prints_result(self, tmp_path):
        store = SessionStore(tmp_path / "session.json")
        store.save(session_at(11))
        engine = InterviewEngine(ScriptedInterpreter(CompleteOutcome(answers=full_answers())))

        code, output = drive(engine, store, "high")

        assert code == 0
        assert store.load().is_complete
        assert "Selected: Moderate Growth Portfolio (P1)" in output[-2]
        assert output[-1] == COMPLETED_HINT

    def test_completed_session_survives_next_run(self, tmp_path):
        store = SessionStore(tmp_path / "session.json")
        store.save(session_at(11))
        engine = InterviewEngine(ScriptedInterpreter(CompleteOutcome(answers=full_answers())))
        drive(engine, store, "high")
        done = store.load()

        code, output = drive(engine, store, "quit")

        after = store.load()
        assert code == 0
        assert after.session_id == done.session_id == "session-123"
        assert after.is_complete
        assert after.final_result == done.final_result
        assert any("Selected: Moderate Growth Portfolio (P1)" in line for line in output)

    def test_new_flag_discards_completed_session(self, tmp_path):
        store = SessionStore(tmp_path / "session.json")
        store.save(completed_session())
        engine = InterviewEngine(ScriptedInterpreter())

        drive(engine, store, start_over=True)

        saved = store.load()
        assert not saved.is_complete
        assert saved.answers == {}


def completed_session(**overrides):
    engine = InterviewEngine(ScriptedInterpreter(
        CompleteOutcome(answers=full_answers(**overrides))
    ))
    return run(engine.advance(session_at(11), "high")).session


class TestReview:
    def test_edited_age_changes_result(self, tmp_path):
        store = SessionStore(tmp_path / "session.json")
        store.save(completed_session())
        interpreter = ScriptedInterpreter(CompleteOutcome(answers=full_answers(age=65)))
        engine = InterviewEngine(interpreter)

        code, output = drive(engine, store, "2", "65", "", review=True)

        assert code == 0
        answers, question_id, utterance = interpreter.calls[0]
        assert question_id == QuestionId.Q11
        assert answers == full_answers(age=65)
        assert utterance == "high"
        saved = store.load()
        assert saved.is_complete
        assert saved.session_id == "session-123"
        assert saved.final_result.selected_portfolio_id == "P2"
        assert "Updated Age." in output
        assert any(line.startswith("   2. Age") and line.endswith("35") for line in output)

    @pytest.mark.parametrize("bad_age", ["forty", "200", "-1"])
    def test_invalid_age_is_rejected(self, tmp_path, bad_age):
        store = SessionStore(tmp_path / "session.json")
        store.save(completed_session())
        interpreter = ScriptedInterpreter(CompleteOutcome(answers=full_answers(age=61)))

        drive(InterviewEngine(interpreter), store, "2", bad_age, "2", "61", "", review=True)

        assert interpreter.calls[0][0]["age"] == 61
        assert store.load().final_result.selected_portfolio_id == "P2"

    def test_out_of_domain_edit_is_rejected(self, tmp_path):
        store = SessionStore(tmp_path / "session.json")
        store.save(completed_session())
        interpreter = ScriptedInterpreter(
            CompleteOutcome(answers=full_answers(riskToleranceConfirm="low"))
        )

        code, output = drive(
            InterviewEngine(interpreter), store, "11", "very high", "11", "low", "", review=True
        )

        assert code == 0
        assert any("low, medium or high" in line for line in output)
        assert interpreter.calls[0][2] == "low"

    def test_leaving_review_keeps_result(self, tmp_path):
        store = SessionStore(tmp_path / "session.json")
        done = completed_session()
        store.save(done)
        interpreter = ScriptedInterpreter()

        code, _ = drive(InterviewEngine(interpreter), store, "2", "70", "quit", review=True)

        assert code == 0
        assert interpreter.calls == []
        assert store.load() == done

    def test_interpreter_failure_keeps_earlier_result(self, tmp_path):
        store = SessionStore(tmp_path / "session.json")
        done = completed_session()
        store.save(done)
        engine = InterviewEngine(ScriptedInterpreter(InterpreterFailure("down")))

        code, output = drive(engine, store, "", review=True)

        assert code == 0
        assert store.load() == done
        assert any("Your earlier result is kept" in line for line in output)

    def test_unfinished_session_resumes_instead(self, tmp_path):
        store = SessionStore(tmp_path / "session.json")
        store.save(session_at(4))
        engine = InterviewEngine(ScriptedInterpreter())

        code, output = drive(engine, store, review=True)

        assert code == 0
        assert output[0] == "There is nothing to review until the interview is complete."
        assert output[1] == "Resuming your interview at question Q4."


def test_format_final_result_lists_answers_and_allocation(engine_factory):
    engine, _ = engine_factory(CompleteOutcome(answers=full_answers()))
    final = run(engine.advance(session_at(11), "high")).response

    text = format_final_result(final)

    assert "Risk Tolerance Confirm" in text
    assert "Domestic Equities" in text
    assert text.endswith("Prototype only. Not financial advice.")
