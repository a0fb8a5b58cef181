import logging
from typing import Dict, List

from .models import AnswerSet, AssetAllocation, Portfolio, PortfolioSelection
from .errors import ValidationError

logger = logging.getLogger(__name__)

MODERATE_GROWTH = Portfolio(
    title="Moderate Growth Portfolio",
    client_profile="Mid-career professional, age 40, 20-year investment horizon",
    investment_objectives=[
        "Target return: 7-8% annually",
        "Primary goal: Long-term capital appreciation with moderate income",
        "Time horizon: 20 years until retirement",
    ],
    risk_tolerance="Moderate - willing to accept moderate volatility for higher returns",
    asset_allocation=[
        AssetAllocation(asset_class="Domestic Equities", target_pct=35, range="30-40%"),
        AssetAllocation(asset_class="International Equities", target_pct=25, range="20-30%"),
        AssetAllocation(asset_class="Investment Grade Bonds", target_pct=30, range="25-35%"),
        AssetAllocation(asset_class="Real Estate (REITs)", target_pct=5, range="3-7%"),
        AssetAllocation(asset_class="Cash/Money Market", target_pct=5, range="3-7%"),
    ],
    strategic_split="60% growth assets / 40% income & defensive assets",
    rebalancing="Quarterly review, rebalance when allocation drifts beyond ±5% from target",
)

CONSERVATIVE_INCOME = Portfolio(
    title="Conservative Income Portfolio",
    client_profile="Retiree, age 65, 15-year investment horizon",
    investment_objectives=[
        "Target return: 4-5% annually",
        "Primary goal: Capital preservation with steady income generation",
        "Liquidity requirement: 2 years of living expenses readily accessible",
    ],
    risk_tolerance="Low - prioritizes capital preservation over growth",
    asset_allocation=[
        AssetAllocation(asset_class="Domestic Equities", target_pct=20, range="15-25%"),
        AssetAllocation(asset_class="International Equities", target_pct=10, range="8-12%"),
        AssetAllocation(asset_class="Investment Grade Bonds", target_pct=45, range="40-50%"),
        AssetAllocation(asset_class="Short-Term Bonds", target_pct=15, range="12-18%"),
        AssetAllocation(asset_class="Cash/Money Market", target_pct=10, range="8-12%"),
    ],
    strategic_split="30% growth assets / 70% income & defensive assets",
    rebalancing=(
        "Semi-annual review, rebalance when allocation drifts beyond ±5% from target, "
        "prioritize withdrawals from overweight assets"
    ),
)

PORTFOLIOS: Dict[str, Portfolio] = {
    "P1": MODERATE_GROWTH,
    "P2": CONSERVATIVE_INCOME,
}

MODERATE_GROWTH_RATIONALE = (
    "Selected Moderate Growth Portfolio: no conservative triggers identified. "
    "Risk tolerance is not low, investment horizon is 5+ years, age is under 60, "
    "and no major near-term cash needs."
)

NO_NEED_ANSWERS = ("no", "none", "nope", "not really")
NO_NEED_PREFIXES = ("no,", "no ")
NO_NEED_PHRASES = ("no foreseeable", "don't have any", "do not have any", "nothing planned")
NEED_INDICATORS = (
    "yes", "need", "buy", "purchase", "house", "home", "car",
    "wedding", "tuition", "college", "university", "medical",
    "surgery", "renovation", "down payment", "emergency",
    "within", "next year", "next 2", "next 3", "next two", "next three",
    "soon", "upcoming", "planning to", "saving for",
)

def has_near_term_needs(answer: str) -> bool:
    """
    Keyword heuristic for a near-term cash need in a free-text answer

    Negations win over indicators, and text matching neither is treated as
    no need. Matching is by substring, so "scar" matches "car".
    """
    lower = answer.lower().strip()

    if (
        lower in NO_NEED_ANSWERS
        or lower.startswith(NO_NEED_PREFIXES)
        or any(phrase in lower for phrase in NO_NEED_PHRASES)
    ):
        return False

    return any(indicator in lower for indicator in NEED_INDICATORS)

def conservative_reasons(answers: AnswerSet) -> List[str]:
    """Collect every rule that points to the conservative portfolio, in rule order"""
    reasons = []

    if answers.risk_tolerance_confirm == "low":
        reasons.append("Confirmed risk tolerance is low")

    if answers.investment_horizon == "under 5 years":
        reasons.append("Investment horizon is under 5 years")

    if answers.age >= 60:
        reasons.append(f"Age is {answers.age} (60 or above)")

    if has_near_term_needs(answers.foreseeable_needs):
        reasons.append("Has foreseeable near-term cash needs")

    return reasons

def select_portfolio(answers: AnswerSet) -> PortfolioSelection:
    """Deterministically map a complete answer set to a model portfolio"""
    if not isinstance(answers, AnswerSet):
        raise ValidationError(
            "Portfolio selection requires a complete answer set",
            [f"Got {type(answers).__name__}"]
        )

    reasons = conservative_reasons(answers)

    if reasons:
        selection = PortfolioSelection(
            portfolio_id="P2",
            rationale=f"Selected Conservative Income Portfolio because: {'; '.join(reasons)}.",
            portfolio=CONSERVATIVE_INCOME,
            reasons=reasons,
        )
    else:
        selection = PortfolioSelection(
            portfolio_id="P1",
            rationale=MODERATE_GROWTH_RATIONALE,
            portfolio=MODERATE_GROWTH,
        )

    logger.info(f"Selected portfolio {selection.portfolio_id} ({len(reasons)} conservative triggers)")
    return selection

def build_speak_text(selection: PortfolioSelection) -> str:
    """Spoken summary announcing the selected portfolio"""
    return (
        f"Based on your profile, I've selected the {selection.portfolio.title} for you. "
        f"{selection.rationale}"
    )
