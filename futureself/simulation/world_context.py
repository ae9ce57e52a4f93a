from __future__ import annotations

"""
World context builder for the Future Self simulator.

Holds a static knowledge base describing the present economic climate,
industry trends, technology disruptions and social trends, and personalizes
a fresh copy of it for each (profile, decision) pair. The baseline is never
mutated, so concurrent simulations can share it freely.
"""

import logging
from typing import List, Tuple

from futureself.models.domain import (
    BigFiveScores,
    Decision,
    DecisionCategory,
    DisruptionOnset,
    EconomicClimate,
    IndustryTrend,
    LifecycleStage,
    SocialTrend,
    TechDisruption,
    TimingWindow,
    TrendDirection,
    UserProfile,
    WorldState,
)

logger = logging.getLogger(__name__)

DEFAULT_INDUSTRY = "technology"
EARLY_ADOPTER = "Early adopter advantage"

_WORK_KEYWORDS = ("job", "career", "work")
_INDUSTRY_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("technology", ("tech", "software", "ai")),
    ("healthcare", ("health", "medical")),
    ("finance", ("finance", "bank")),
    ("education", ("education", "teaching")),
)

BASELINE_WORLD = WorldState(
    economic_climate=EconomicClimate.VOLATILE,
    industry=DEFAULT_INDUSTRY,
    industry_trends={
        "technology": IndustryTrend(
            direction=TrendDirection.RISING,
            confidence=85,
            timeframe="3-5years",
            key_drivers=["AI adoption", "Remote work normalization", "Automation"],
            threat_level=40,
            opportunity_score=90,
        ),
        "healthcare": IndustryTrend(
            direction=TrendDirection.RISING,
            confidence=95,
            timeframe="5-10years",
            key_drivers=["Aging population", "Mental health focus", "Preventive care"],
            threat_level=10,
            opportunity_score=85,
        ),
        "finance": IndustryTrend(
            direction=TrendDirection.DISRUPTED,
            confidence=70,
            timeframe="1-2years",
            key_drivers=["Fintech", "Crypto regulation", "AI trading"],
            threat_level=60,
            opportunity_score=75,
        ),
        "retail": IndustryTrend(
            direction=TrendDirection.DECLINING,
            confidence=80,
            timeframe="1-2years",
            key_drivers=["E-commerce dominance", "Supply chain issues"],
            threat_level=75,
            opportunity_score=30,
        ),
        "education": IndustryTrend(
            direction=TrendDirection.MATURE,
            confidence=60,
            timeframe="5-10years",
            key_drivers=["Online learning", "Skill-based hiring", "Credentials disruption"],
            threat_level=45,
            opportunity_score=65,
        ),
    },
    technology_disruptions=[
        TechDisruption(
            technology="AI/LLMs",
            industries_affected=["content", "customer service", "coding", "analysis"],
            onset=DisruptionOnset.IMMEDIATE,
            severity=85,
            new_opportunities=["AI prompt engineering", "Human-AI collaboration", "AI ethics"],
        ),
        TechDisruption(
            technology="Remote collaboration tools",
            industries_affected=["all knowledge work"],
            onset=DisruptionOnset.IMMEDIATE,
            severity=70,
            new_opportunities=["Distributed team management", "Async workflows"],
        ),
        TechDisruption(
            technology="Autonomous vehicles",
            industries_affected=["transportation", "logistics", "urban planning"],
            onset=DisruptionOnset.FIVE_TO_SEVEN_YEARS,
            severity=90,
            new_opportunities=["Fleet management", "Mobility services"],
        ),
    ],
    social_trends=[
        SocialTrend(
            name="Remote work normalization",
            relevance=90,
            impact_direction="positive",
            affected_demographics=["knowledge workers", "young professionals"],
        ),
        SocialTrend(
            name="Mental health prioritization",
            relevance=75,
            impact_direction="positive",
            affected_demographics=["all ages", "high-stress careers"],
        ),
        SocialTrend(
            name="Climate change concerns",
            relevance=60,
            impact_direction="mixed",
            affected_demographics=["young adults", "families"],
        ),
    ],
    timing=TimingWindow(optimal_timing=65, deadline_pressure=50, market_cycle_position="recovery"),
    lifecycle_stage=LifecycleStage.ESTABLISHING,
)


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def infer_industry(decision: Decision) -> str:
    """Guess the decision's industry from work-related keywords in its text.

    Industry keywords only count when the text is about work at all; anything
    unmatched falls back to the default industry.
    """
    text = decision.text
    if any(word in text for word in _WORK_KEYWORDS):
        for industry, keywords in _INDUSTRY_KEYWORDS:
            if any(word in text for word in keywords):
                return industry
    return DEFAULT_INDUSTRY


def timing_for_trend(trend: IndustryTrend) -> float:
    """Score how favorable it is to act now given an industry's trend.

    Starts from a neutral 50 and moves with direction (rising and disrupted
    markets reward movers, declining ones punish them), then nudges for
    high-confidence trends, heavy job-security threat, and strong growth
    potential. The result is clamped to 0-100.
    """
    timing = 50.0
    if trend.direction == TrendDirection.RISING:
        timing += 20
    elif trend.direction == TrendDirection.DECLINING:
        timing -= 25
    elif trend.direction == TrendDirection.DISRUPTED:
        timing += 30
    if trend.confidence > 80:
        timing += 10
    if trend.threat_level > 70:
        timing -= 15
    if trend.opportunity_score > 80:
        timing += 15
    return _clamp(timing)


def _lifecycle_for_age(age: int) -> LifecycleStage:
    if age < 25:
        return LifecycleStage.EXPLORING
    if age > 40:
        return LifecycleStage.ADVANCING
    return LifecycleStage.ESTABLISHING


def build_world_state(profile: UserProfile, decision: Decision) -> WorldState:
    """Personalize the baseline world snapshot to one profile and decision.

    A deep copy of the baseline is adjusted for the person's life stage, the
    industry inferred from the decision text, the decision category, and two
    personality traits (openness widens disruption opportunities,
    conscientiousness improves timing through better planning). Every
    adjusted 0-100 field is clamped, and the function never fails: unknown
    industries resolve to the default trend.
    """
    state = BASELINE_WORLD.model_copy(deep=True)
    timing = state.timing
    traits: BigFiveScores = profile.big_five

    state.lifecycle_stage = _lifecycle_for_age(profile.age)
    if profile.age < 25:
        timing.optimal_timing += 20
    elif profile.age > 40:
        timing.deadline_pressure += 15

    state.industry = infer_industry(decision)
    trend = state.industry_trends.get(state.industry)
    if trend is not None:
        timing.optimal_timing = timing_for_trend(trend)

    if decision.category == DecisionCategory.CAREER:
        timing.deadline_pressure += 10
    elif decision.category == DecisionCategory.RELATIONSHIPS:
        for social in state.social_trends:
            name = social.name.lower()
            if "mental health" in name or "work-life" in name:
                social.relevance = _clamp(social.relevance + 20)

    if traits.openness > 70:
        for disruption in state.technology_disruptions:
            if EARLY_ADOPTER not in disruption.new_opportunities:
                disruption.new_opportunities.append(EARLY_ADOPTER)
    if traits.conscientiousness > 70:
        timing.optimal_timing += 10

    timing.optimal_timing = _clamp(timing.optimal_timing)
    timing.deadline_pressure = _clamp(timing.deadline_pressure)
    logger.debug(
        "World state for %r: industry=%s stage=%s timing=%.0f",
        decision.title,
        state.industry,
        state.lifecycle_stage.value,
        timing.optimal_timing,
    )
    return state


def critical_factors(profile: UserProfile, decision: Decision, limit: int = 6) -> List[str]:
    """List the world factors most likely to sway this decision, most important first."""
    state = build_world_state(profile, decision)
    factors: List[str] = [
        f"Economic climate is {state.economic_climate.value} - affecting job security and opportunities"
    ]

    trend = state.industry_trend
    if trend is not None:
        factors.append(
            f"{state.industry} industry is {trend.direction.value} with {trend.confidence:.0f}% confidence"
        )
        if trend.threat_level > 50:
            factors.append(f"High disruption risk ({trend.threat_level:.0f}%) in your industry")

    if state.timing.optimal_timing > 70:
        factors.append("Timing is favorable - market conditions support this decision")
    elif state.timing.optimal_timing < 40:
        factors.append("Timing is challenging - consider waiting or additional preparation")

    factors.append(f"Your life stage ({state.lifecycle_stage.value}) influences success probability")

    near_term = [d.technology for d in state.technology_disruptions if d.near_term]
    if near_term:
        factors.append(f"Technology disruption coming: {', '.join(near_term)}")

    return factors[:limit]
