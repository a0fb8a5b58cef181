import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from ..core.errors import InterpreterFailure
from ..core.models import QuestionId
from ..core.questions import QUESTIONS, ANSWER_FIELDS, LAST_QUESTION
from .prompts import SYSTEM_PROMPT, TURN_PROMPT, REPAIR_PROMPT, FIELD_DOMAINS

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)

class AdvanceOutcome(BaseModel):
    """Interpreter accepted the answer (or was asked to repeat the question)"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["advance"] = "advance"
    question_id: Any = None
    question_text: Optional[str] = None
    speak_text: Optional[str] = None
    validation_hint: Optional[str] = None
    answers: Dict[str, Any] = Field(default_factory=dict)

class ClarifyOutcome(BaseModel):
    """Interpreter needs the user to rephrase the current answer"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["clarify"] = "clarify"
    question_id: Any = None
    question_text: Optional[str] = None
    speak_text: Optional[str] = None
    reason: str = ""
    answers: Dict[str, Any] = Field(default_factory=dict)

class CompleteOutcome(BaseModel):
    """Interpreter considers the final question answered"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["complete"] = "complete"
    answers: Dict[str, Any] = Field(default_factory=dict)

InterpreterOutcome = Union[AdvanceOutcome, ClarifyOutcome, CompleteOutcome]

class MalformedReply(ValueError):
    """Interpreter reply failed structural validation"""

class AnswerInterpreter(ABC):
    """Capability that turns one free-form utterance into a tagged outcome"""

    @abstractmethod
    async def interpret(self, answers: Dict[str, Any], question_id: QuestionId,
                        utterance: str) -> InterpreterOutcome:
        """
        Interpret the user's answer to the current question

        Raises:
            InterpreterFailure: transport error or malformed output after retry
        """

    async def check_health(self) -> bool:
        """Liveness of this process only; the model endpoint is not called"""
        return True

def _optional_text(parsed: Dict[str, Any], key: str) -> Optional[str]:
    value = parsed.get(key)
    return value if isinstance(value, str) else None

def parse_interpreter_reply(text: str) -> InterpreterOutcome:
    """
    Strictly parse the raw interpreter reply into an outcome

    Args:
        text: Raw model output

    Returns:
        One of AdvanceOutcome, ClarifyOutcome, CompleteOutcome

    Raises:
        MalformedReply: not a JSON object, unknown type, or missing answer map
    """
    cleaned = (text or "").strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_RE.sub("", cleaned).strip()

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise MalformedReply(f"reply is not valid JSON ({e.msg})")

    if not isinstance(parsed, dict):
        raise MalformedReply("reply is not a JSON object")

    reply_type = parsed.get("type")
    answers = parsed.get("updatedAnswers")
    if not reply_type:
        raise MalformedReply("reply has no type")
    if not isinstance(answers, dict):
        raise MalformedReply("reply has no updatedAnswers object")

    if reply_type == "next_question":
        return AdvanceOutcome(
            question_id=parsed.get("questionId"),
            question_text=_optional_text(parsed, "questionText"),
            speak_text=_optional_text(parsed, "speakText"),
            validation_hint=_optional_text(parsed, "validationHint"),
            answers=answers,
        )
    if reply_type == "clarification":
        return ClarifyOutcome(
            question_id=parsed.get("questionId"),
            question_text=_optional_text(parsed, "questionText"),
            speak_text=_optional_text(parsed, "speakText"),
            reason=_optional_text(parsed, "reason") or "",
            answers=answers,
        )
    if reply_type == "complete":
        return CompleteOutcome(answers=answers)

    raise MalformedReply(f"unknown reply type {reply_type!r}")

def build_system_prompt() -> str:
    """System instructions: question catalog, field mapping and reply formats"""
    catalog = "\n".join(f'{q.id.value} ({q.field}): "{q.text}"' for q in QUESTIONS)
    mapping = "\n".join(
        f'{q.id.value} -> "{q.field}" ({FIELD_DOMAINS.get(q.field, "string")})'
        for q in QUESTIONS
    )
    return SYSTEM_PROMPT.format(
        question_catalog=catalog,
        field_mapping=mapping,
        field_list=", ".join(ANSWER_FIELDS),
    )

def build_turn_prompt(answers: Dict[str, Any], question_id: QuestionId, utterance: str) -> str:
    return TURN_PROMPT.format(
        question_id=question_id.value,
        answers_json=json.dumps(answers, ensure_ascii=False),
        utterance=utterance,
        last_question_id=LAST_QUESTION.value,
    )

def _message_text(message: BaseMessage) -> str:
    """Flatten chat model content, which may be a list of content blocks"""
    content = message.content
    if isinstance(content, str):
        return content
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and isinstance(block.get("text"), str):
            parts.append(block["text"])
    return "".join(parts)

class LLMAnswerInterpreter(AnswerInterpreter):
    """
    Answer interpreter backed by a LangChain chat model

    Malformed replies are repaired once by replaying the conversation with the
    bad output and a correction instruction.
    """

    def __init__(self, llm: BaseChatModel):
        self.llm = llm
        self.system_prompt = build_system_prompt()

    @classmethod
    def from_settings(cls, settings) -> "LLMAnswerInterpreter":
        """Build the OpenAI-backed interpreter from application settings"""
        if not settings.OPENAI_API_KEY:
            raise RuntimeError(
                "OPENAI_API_KEY is not set in environment variables. Check backend/.env"
            )

        from langchain_openai import ChatOpenAI

        llm = ChatOpenAI(
            model=settings.INTERPRETER_MODEL,
            temperature=settings.INTERPRETER_TEMPERATURE,
            max_tokens=settings.INTERPRETER_MAX_TOKENS,
            api_key=settings.OPENAI_API_KEY,
            base_url=settings.INTERPRETER_BASE_URL,
        )
        logger.info(f"Answer interpreter initialized with model {settings.INTERPRETER_MODEL}")
        return cls(llm)

    async def _call(self, messages: List[BaseMessage]) -> str:
        try:
            reply = await self.llm.ainvoke(messages)
        except Exception as e:
            logger.warning(f"Interpreter call failed: {e}")
            raise InterpreterFailure("Answer interpreter is unavailable", [str(e)])
        return _message_text(reply)

    async def interpret(self, answers: Dict[str, Any], question_id: QuestionId,
                        utterance: str) -> InterpreterOutcome:
        messages: List[BaseMessage] = [
            SystemMessage(content=self.system_prompt),
            HumanMessage(content=build_turn_prompt(answers, question_id, utterance)),
        ]

        text = await self._call(messages)
        try:
            return parse_interpreter_reply(text)
        except MalformedReply as first_error:
            logger.warning(f"Malformed interpreter reply for {question_id.value}, retrying: {first_error}")
            first_problem = str(first_error)

        retry_messages = messages + [
            AIMessage(content=text),
            HumanMessage(content=REPAIR_PROMPT.format(problem=first_problem)),
        ]
        retry_text = await self._call(retry_messages)
        try:
            return parse_interpreter_reply(retry_text)
        except MalformedReply as second_error:
            logger.warning(f"Interpreter reply still malformed after retry: {second_error}")
            raise InterpreterFailure(
                "Answer interpreter returned malformed output twice",
                [first_problem, str(second_error)]
            )
