from typing import Any, Dict, List, Literal, Optional, Union
from typing import Annotated
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel
import uuid

class QuestionId(str, Enum):
    """Fixed interview questions, in asking order"""
    Q1 = "Q1"
    Q2 = "Q2"
    Q3 = "Q3"
    Q4 = "Q4"
    Q5 = "Q5"
    Q6 = "Q6"
    Q7 = "Q7"
    Q8 = "Q8"
    Q9 = "Q9"
    Q10 = "Q10"
    Q11 = "Q11"

# Answer field domains
NonEmptyText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Age = Annotated[int, Field(ge=0, le=150)]
RiskLevel = Literal["low", "medium", "high"]
InvestmentHorizon = Literal["under 5 years", "5-15 years", "15+ years"]
PortfolioId = Literal["P1", "P2"]

class CamelModel(BaseModel):
    """Base model that speaks camelCase on the wire"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class AnswerSet(CamelModel):
    """Complete, fully typed investor profile"""
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True, extra="forbid"
    )

    name: NonEmptyText
    age: Age
    family_situation: str
    wealth_source: str
    core_values: str
    investment_goal: str
    risk_for_return: RiskLevel
    investment_amount: str
    foreseeable_needs: str
    investment_horizon: InvestmentHorizon
    risk_tolerance_confirm: RiskLevel

class AssetAllocation(CamelModel):
    """One row of a portfolio's allocation table"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    asset_class: str
    target_pct: float = Field(..., ge=0, le=100)
    range: str

class Portfolio(CamelModel):
    """Static model portfolio definition"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    title: str
    client_profile: str
    investment_objectives: List[str]
    risk_tolerance: str
    asset_allocation: List[AssetAllocation]
    strategic_split: str
    rebalancing: str

    def total_allocation(self) -> float:
        """Sum of target percentages across all asset classes"""
        return sum(row.target_pct for row in self.asset_allocation)

class PortfolioSelection(CamelModel):
    """Output of the portfolio selection rules"""
    portfolio_id: PortfolioId
    rationale: str
    portfolio: Portfolio
    reasons: List[str] = []

# API Response Models

class NextQuestionResponse(CamelModel):
    type: Literal["next_question"] = "next_question"
    question_id: QuestionId
    question_text: str
    speak_text: str
    validation_hint: str
    updated_answers: Dict[str, Any] = Field(default_factory=dict)

class ClarificationResponse(CamelModel):
    type: Literal["clarification"] = "clarification"
    question_id: QuestionId
    question_text: str
    speak_text: str
    reason: str
    updated_answers: Dict[str, Any] = Field(default_factory=dict)

class FinalResult(CamelModel):
    """Result of a completed interview, produced once per session"""
    type: Literal["final_result"] = "final_result"
    summary: AnswerSet
    selected_portfolio_id: PortfolioId
    rationale: str
    portfolio: Portfolio
    speak_text: str

InterviewResponse = Annotated[
    Union[NextQuestionResponse, ClarificationResponse, FinalResult],
    Field(discriminator="type"),
]

class InterviewSession(CamelModel):
    """Snapshot of one interview attempt.

    Serialized as-is this is the session envelope the front end persists:
    ``{sessionId, currentQuestionId, answers, isComplete, finalResult?}``.
    """
    session_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    current_question_id: QuestionId = QuestionId.Q1
    answers: Dict[str, Any] = Field(default_factory=dict)
    is_complete: bool = False
    final_result: Optional[FinalResult] = None

# API Request Models

class InterviewRequest(CamelModel):
    """One turn submitted by the front end"""
    session_id: str = Field(..., min_length=1)
    answers: Dict[str, Any] = Field(default_factory=dict)
    current_question_id: str
    last_user_utterance: str
