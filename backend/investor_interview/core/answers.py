import logging
from typing import Any, Dict, List, Optional, Tuple
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .models import AnswerSet, Age, InvestmentHorizon, NonEmptyText, RiskLevel
from .questions import ANSWER_FIELDS
from .errors import ProtocolError

logger = logging.getLogger(__name__)

FIELD_TYPES: Dict[str, Any] = {
    "name": NonEmptyText,
    "age": Age,
    "familySituation": str,
    "wealthSource": str,
    "coreValues": str,
    "investmentGoal": str,
    "riskForReturn": RiskLevel,
    "investmentAmount": str,
    "foreseeableNeeds": str,
    "investmentHorizon": InvestmentHorizon,
    "riskToleranceConfirm": RiskLevel,
}

_FIELD_ADAPTERS = {key: TypeAdapter(field_type) for key, field_type in FIELD_TYPES.items()}

def validate_field(key: str, value: Any) -> Tuple[bool, Optional[str]]:
    """
    Check one answer value against its field domain

    Args:
        key: Answer field key, e.g. ``"riskForReturn"``
        value: Value produced by the interpreter

    Returns:
        (is_valid, error_message)
    """
    adapter = _FIELD_ADAPTERS.get(key)
    if adapter is None:
        return False, f"Unknown answer field '{key}'"
    try:
        adapter.validate_python(value, strict=True)
    except PydanticValidationError as e:
        reason = e.errors()[0]["msg"] if e.errors() else "invalid value"
        return False, f"Field '{key}' has invalid value {value!r}: {reason}"
    return True, None

def normalize_field(key: str, value: Any) -> Any:
    """Return the validated form of a value already known to be valid"""
    return _FIELD_ADAPTERS[key].validate_python(value, strict=True)

def carry_forward_errors(previous: Dict[str, Any], updated: Dict[str, Any],
                         editable_field: Optional[str] = None) -> List[str]:
    """List every previously stored field that was dropped or altered"""
    errors = []
    for key, value in previous.items():
        if key == editable_field:
            continue
        if key not in updated:
            errors.append(f"Previously answered field '{key}' was dropped")
        elif updated[key] != value:
            errors.append(
                f"Previously answered field '{key}' changed from {value!r} to {updated[key]!r}"
            )
    return errors

class AnswerSetBuilder:
    """Accumulates a partial answer set field by field.

    The only way to obtain a typed :class:`AnswerSet` is :meth:`build`, which
    is the interview's completion gate.
    """

    def __init__(self, answers: Optional[Dict[str, Any]] = None):
        self._answers: Dict[str, Any] = dict(answers or {})

    @property
    def answers(self) -> Dict[str, Any]:
        return dict(self._answers)

    def has(self, key: str) -> bool:
        return key in self._answers

    def set(self, key: str, value: Any) -> "AnswerSetBuilder":
        is_valid, error = validate_field(key, value)
        if not is_valid:
            raise ProtocolError("Interpreter produced an out-of-domain answer", [error])
        self._answers[key] = normalize_field(key, value)
        return self

    def missing_fields(self) -> List[str]:
        return [key for key in ANSWER_FIELDS if key not in self._answers]

    def is_complete(self) -> bool:
        return not self.missing_fields()

    def build(self) -> AnswerSet:
        """Convert the partial map into a complete AnswerSet or raise ProtocolError"""
        errors = [f"Missing answer for '{key}'" for key in self.missing_fields()]
        for key, value in self._answers.items():
            is_valid, error = validate_field(key, value)
            if not is_valid:
                errors.append(error)

        if errors:
            logger.error(f"Completion gate rejected answer set: {errors}")
            raise ProtocolError("Answer set is not complete", errors)

        try:
            return AnswerSet.model_validate(self._answers, strict=True)
        except PydanticValidationError as e:
            raise ProtocolError(
                "Answer set is not complete",
                [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
            )
