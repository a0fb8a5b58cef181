"""
Tests for answer field domains and the completion gate.
"""

import pytest

from investor_interview.core.answers import (
    AnswerSetBuilder, carry_forward_errors, validate_field,
)
from investor_interview.core.errors import ProtocolError
from investor_interview.core.models import AnswerSet

from conftest import full_answers


class TestValidateField:
    @pytest.mark.parametrize("key,value", [
        ("name", "Alex"),
        ("age", 0),
        ("age", 150),
        ("riskForReturn", "medium"),
        ("investmentHorizon", "5-15 years"),
        ("riskToleranceConfirm", "low"),
        ("foreseeableNeeds", ""),
    ])
    def test_in_domain(self, key, value):
        assert validate_field(key, value) == (True, None)

    @pytest.mark.parametrize("key,value", [
        ("name", "   "),
        ("name", 42),
        ("age", 151),
        ("age", -1),
        ("age", "35"),
        ("age", True),
        ("riskForReturn", "moderate"),
        ("investmentHorizon", "10 years"),
        ("riskToleranceConfirm", None),
        ("familySituation", ["married"]),
        ("favouriteColour", "blue"),
    ])
    def test_out_of_domain(self, key, value):
        is_valid, error = validate_field(key, value)
        assert not is_valid
        assert key in error


class TestCarryForward:
    def test_unchanged_answers_pass(self):
        previous = {"name": "Alex", "age": 35}
        assert carry_forward_errors(previous, dict(previous, familySituation="Single")) == []

    def test_dropped_and_changed_fields_reported(self):
        errors = carry_forward_errors({"name": "Alex", "age": 35}, {"age": 36})
        assert len(errors) == 2

    def test_editable_field_may_change(self):
        assert carry_forward_errors({"age": 35}, {"age": 36}, editable_field="age") == []


class TestAnswerSetBuilder:
    def test_build_complete(self):
        answer_set = AnswerSetBuilder(full_answers()).build()

        assert isinstance(answer_set, AnswerSet)
        assert answer_set.age == 35
        assert answer_set.model_dump(by_alias=True) == full_answers()

    def test_build_reports_missing_fields(self):
        answers = full_answers()
        del answers["investmentHorizon"]
        del answers["age"]

        with pytest.raises(ProtocolError) as exc_info:
            AnswerSetBuilder(answers).build()

        assert "Missing answer for 'age'" in exc_info.value.errors
        assert "Missing answer for 'investmentHorizon'" in exc_info.value.errors

    def test_build_rejects_out_of_domain(self):
        with pytest.raises(ProtocolError):
            AnswerSetBuilder(full_answers(riskForReturn="aggressive")).build()

    def test_build_rejects_unknown_fields(self):
        with pytest.raises(ProtocolError):
            AnswerSetBuilder(dict(full_answers(), extra="value")).build()

    def test_set_validates_and_does_not_touch_others(self):
        builder = AnswerSetBuilder({"name": "Alex"})
        builder.set("age", 35)

        assert builder.answers == {"name": "Alex", "age": 35}
        assert builder.missing_fields()[0] == "familySituation"
        assert not builder.is_complete()

        with pytest.raises(ProtocolError):
            builder.set("age", 200)
        assert builder.answers["age"] == 35
