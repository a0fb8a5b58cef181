"""
Tests for the deterministic portfolio selection rules.
"""

import pytest

from investor_interview.core.errors import ValidationError
from investor_interview.core.models import AnswerSet
from investor_interview.core.portfolio import (
    PORTFOLIOS, MODERATE_GROWTH_RATIONALE, build_speak_text,
    has_near_term_needs, select_portfolio,
)

from conftest import full_answers


def answer_set(**overrides) -> AnswerSet:
    return AnswerSet.model_validate(full_answers(**overrides))


class TestNearTermNeeds:
    @pytest.mark.parametrize("text", [
        "No",
        "  none ",
        "Nope",
        "not really",
        "No, nothing like that",
        "no plans at all",
        "I don't have any major expenses planned",
        "We do not have any big purchases coming",
        "There are no foreseeable needs",
        "Nothing planned right now",
    ])
    def test_negations_mean_no_need(self, text):
        assert has_near_term_needs(text) is False

    @pytest.mark.parametrize("text", [
        "Yes, planning to buy a house next year",
        "Tuition for my daughter",
        "We want to renovate, renovation starts soon",
        "Saving for a wedding",
        "Maybe a medical procedure within 2 years",
        "Down payment in the next two years",
    ])
    def test_indicators_mean_need(self, text):
        assert has_near_term_needs(text) is True

    def test_unmatched_text_defaults_to_no_need(self):
        assert has_near_term_needs("I like sailing") is False

    def test_negation_wins_over_indicator(self):
        assert has_near_term_needs("No, we already bought a house") is False


class TestSelectPortfolio:
    def test_conservative_triggers_collected_in_order(self):
        selection = select_portfolio(answer_set(
            age=65, riskToleranceConfirm="low", investmentHorizon="15+ years", foreseeableNeeds="No"
        ))

        assert selection.portfolio_id == "P2"
        assert selection.reasons == ["Confirmed risk tolerance is low", "Age is 65 (60 or above)"]
        assert selection.rationale == (
            "Selected Conservative Income Portfolio because: "
            "Confirmed risk tolerance is low; Age is 65 (60 or above)."
        )
        assert selection.portfolio == PORTFOLIOS["P2"]

    def test_no_triggers_selects_moderate_growth(self):
        selection = select_portfolio(answer_set(
            age=35, riskToleranceConfirm="high", investmentHorizon="15+ years", foreseeableNeeds="No"
        ))

        assert selection.portfolio_id == "P1"
        assert selection.rationale == MODERATE_GROWTH_RATIONALE
        assert selection.reasons == []
        assert selection.portfolio.title == "Moderate Growth Portfolio"

    def test_all_four_triggers(self):
        selection = select_portfolio(answer_set(
            age=70, riskToleranceConfirm="low", investmentHorizon="under 5 years",
            foreseeableNeeds="Yes, a car soon"
        ))

        assert selection.reasons == [
            "Confirmed risk tolerance is low",
            "Investment horizon is under 5 years",
            "Age is 70 (60 or above)",
            "Has foreseeable near-term cash needs",
        ]

    def test_age_boundary(self):
        assert select_portfolio(answer_set(age=59)).portfolio_id == "P1"
        assert select_portfolio(answer_set(age=60)).reasons == ["Age is 60 (60 or above)"]

    def test_medium_tolerance_is_not_a_trigger(self):
        selection = select_portfolio(answer_set(riskToleranceConfirm="medium", investmentHorizon="5-15 years"))
        assert selection.portfolio_id == "P1"

    def test_key_order_does_not_change_result(self):
        answers = full_answers(age=62, foreseeableNeeds="Buying a home")
        reversed_answers = dict(reversed(list(answers.items())))

        first = select_portfolio(AnswerSet.model_validate(answers))
        second = select_portfolio(AnswerSet.model_validate(reversed_answers))

        assert first == second

    def test_rejects_partial_answers(self):
        with pytest.raises(ValidationError):
            select_portfolio({"age": 70})


class TestPortfolioCatalog:
    @pytest.mark.parametrize("portfolio_id", ["P1", "P2"])
    def test_allocations_sum_to_100(self, portfolio_id):
        assert PORTFOLIOS[portfolio_id].total_allocation() == 100

    def test_speak_text_names_portfolio(self):
        selection = select_portfolio(answer_set(age=65))
        assert build_speak_text(selection) == (
            "Based on your profile, I've selected the Conservative Income Portfolio for you. "
            + selection.rationale
        )
