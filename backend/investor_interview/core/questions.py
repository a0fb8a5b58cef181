from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict

from .models import QuestionId

class Question(BaseModel):
    """Fixed interview question"""
    model_config = ConfigDict(frozen=True)

    id: QuestionId
    field: str
    label: str
    text: str
    validation_hint: str

    @property
    def number(self) -> int:
        return int(self.id.value[1:])

QUESTIONS: List[Question] = [
    Question(
        id=QuestionId.Q1, field="name", label="Name",
        text="Can you tell me your name please?",
        validation_hint="Your name",
    ),
    Question(
        id=QuestionId.Q2, field="age", label="Age",
        text="What is your age?",
        validation_hint="Your age in years, e.g. 42",
    ),
    Question(
        id=QuestionId.Q3, field="familySituation", label="Family Details",
        text="What is your family situation?",
        validation_hint="Marital status, dependents, anything relevant",
    ),
    Question(
        id=QuestionId.Q4, field="wealthSource", label="Wealth Source",
        text="What is your salary income, business earnings or anything relevant?",
        validation_hint="Main sources of income or wealth",
    ),
    Question(
        id=QuestionId.Q5, field="coreValues", label="Core Values",
        text="Any preferred areas of investments?",
        validation_hint="Sectors, themes or values you care about",
    ),
    Question(
        id=QuestionId.Q6, field="investmentGoal", label="Key Goals",
        text="What is your investment goal?",
        validation_hint="What you want this money to achieve",
    ),
    Question(
        id=QuestionId.Q7, field="riskForReturn", label="Risk for Return",
        text="How much risk are you willing to take to make this return? (low/medium/high)",
        validation_hint="low, medium or high",
    ),
    Question(
        id=QuestionId.Q8, field="investmentAmount", label="Investment Amount",
        text=(
            "How regularly and how much do you want to deposit? "
            "And do you want to put a lump sum up front?"
        ),
        validation_hint="Deposit amount, frequency and any lump sum",
    ),
    Question(
        id=QuestionId.Q9, field="foreseeableNeeds", label="Foreseeable Needs",
        text="Do you have any foreseeable cash needs in the next few years?",
        validation_hint="Any large expenses coming up, or no",
    ),
    Question(
        id=QuestionId.Q10, field="investmentHorizon", label="Investment Horizon",
        text="What is your investment horizon? (under 5 years / 5–15 years / 15+ years)",
        validation_hint="under 5 years, 5-15 years or 15+ years",
    ),
    Question(
        id=QuestionId.Q11, field="riskToleranceConfirm", label="Risk Tolerance Confirm",
        text="To confirm, is your risk tolerance low, medium, or high?",
        validation_hint="low, medium or high",
    ),
]

QUESTIONS_BY_ID: Dict[QuestionId, Question] = {q.id: q for q in QUESTIONS}
ANSWER_FIELDS: List[str] = [q.field for q in QUESTIONS]
FIRST_QUESTION = QUESTIONS[0].id
LAST_QUESTION = QUESTIONS[-1].id

WELCOME_PREFIX = "Welcome! Let's get started with your investment questionnaire."

def parse_question_id(raw) -> Optional[QuestionId]:
    """Map a raw identifier such as ``"Q3"`` to a QuestionId, or None"""
    if isinstance(raw, QuestionId):
        return raw
    if not isinstance(raw, str):
        return None
    try:
        return QuestionId(raw.strip().upper())
    except ValueError:
        return None

def get_question(question_id: QuestionId) -> Question:
    return QUESTIONS_BY_ID[question_id]

def next_question_id(question_id: QuestionId) -> Optional[QuestionId]:
    """Question that follows ``question_id``; None after the last one"""
    index = QUESTIONS.index(QUESTIONS_BY_ID[question_id])
    if index + 1 < len(QUESTIONS):
        return QUESTIONS[index + 1].id
    return None
