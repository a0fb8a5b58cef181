"""Shared fixtures: scripted interpreters and answer sets, no network."""

import asyncio
from typing import Any, Dict, List

import pytest
from langchain_core.messages import AIMessage

from investor_interview.core.interview import InterviewEngine
from investor_interview.core.models import InterviewSession, QuestionId
from investor_interview.interpreter.adapter import AnswerInterpreter


def full_answers(**overrides) -> Dict[str, Any]:
    answers = {
        "name": "Alex",
        "age": 35,
        "familySituation": "Married, two kids",
        "wealthSource": "Salary",
        "coreValues": "Technology and clean energy",
        "investmentGoal": "Retirement savings",
        "riskForReturn": "high",
        "investmentAmount": "500 a month, 10000 up front",
        "foreseeableNeeds": "No",
        "investmentHorizon": "15+ years",
        "riskToleranceConfirm": "high",
    }
    answers.update(overrides)
    return answers


def answers_before(question_number: int) -> Dict[str, Any]:
    """Answers a session holds when it is waiting on Q<question_number>"""
    return dict(list(full_answers().items())[:question_number - 1])


class ScriptedInterpreter(AnswerInterpreter):
    """Replays prepared outcomes (or raises prepared exceptions) in order"""

    def __init__(self, *steps, healthy: bool = True):
        self.steps: List[Any] = list(steps)
        self.calls: List[tuple] = []
        self.healthy = healthy

    async def interpret(self, answers, question_id, utterance):
        self.calls.append((dict(answers), question_id, utterance))
        step = self.steps.pop(0)
        if isinstance(step, BaseException):
            raise step
        return step

    async def check_health(self) -> bool:
        return self.healthy


class SlowInterpreter(AnswerInterpreter):
    def __init__(self, delay: float):
        self.delay = delay

    async def interpret(self, answers, question_id, utterance):
        await asyncio.sleep(self.delay)
        raise AssertionError("should have timed out")


class RecordingChatModel:
    """Stand-in for a LangChain chat model returning canned replies"""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    async def ainvoke(self, messages):
        self.calls.append(list(messages))
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return AIMessage(content=reply)


def session_at(question_number: int, **kwargs) -> InterviewSession:
    return InterviewSession(
        session_id="session-123",
        current_question_id=QuestionId(f"Q{question_number}"),
        answers=kwargs.pop("answers", answers_before(question_number)),
        **kwargs
    )


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def engine_factory():
    def _make(*steps, **kwargs):
        interpreter = ScriptedInterpreter(*steps)
        return InterviewEngine(interpreter, **kwargs), interpreter
    return _make
