from __future__ import annotations

"""
Side-by-side comparison and per-scenario insights for finished scenarios.

Comparisons read the year10 snapshot of each scenario: it is far enough out
for the decision's effects to have played through, and every scenario carries
it. All functions are pure and never mutate the scenarios they are given.
"""

from typing import Dict, List, Optional, Sequence

from futureself.models.domain import (
    Archetype,
    DecisionStyle,
    Horizon,
    METRICS,
    MetricName,
    MetricTradeoff,
    RiskAssessment,
    RiskLevel,
    Scenario,
    ScenarioComparison,
    ScenarioInsights,
    TimelineHighlight,
    UserProfile,
)

COMPARISON_HORIZON = Horizon.YEAR_10
DEFAULT_PERSONAL_FIT = 75.0

_STRENGTH_LABELS: Dict[MetricName, str] = {
    MetricName.FINANCIAL: "Strong financial position",
    MetricName.HAPPINESS: "High life satisfaction",
    MetricName.CAREER: "Excellent career growth",
    MetricName.RELATIONSHIPS: "Thriving relationships",
    MetricName.HEALTH: "Optimal health outcomes",
}

_HIGHLIGHT_FALLBACKS = (
    (5, "Initial progress milestone"),
    (10, "Major achievement reached"),
    (15, "Long-term success established"),
)


def _metric_at(scenario: Scenario, metric: MetricName, horizon: Horizon = COMPARISON_HORIZON) -> float:
    return scenario.timeline[horizon].get(metric)


def overall_score(scenario: Scenario) -> float:
    """Mean of the five metrics at the comparison horizon."""
    return scenario.timeline[COMPARISON_HORIZON].total() / len(METRICS)


def risk_level(scenario: Scenario) -> RiskLevel:
    if scenario.probability > 50:
        return RiskLevel.LOW
    if scenario.probability > 30:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def _risk_reasoning(scenario: Scenario) -> str:
    if scenario.probability > 50 and len(scenario.risks) < 3:
        return "High probability with manageable risks"
    if scenario.probability > 30:
        return "Moderate probability with some challenges"
    return "Lower probability but high potential rewards"


def _tradeoff(scenarios: Sequence[Scenario], metric: MetricName) -> MetricTradeoff:
    ranked = sorted(scenarios, key=lambda s: -_metric_at(s, metric))
    best, worst = ranked[0], ranked[-1]
    return MetricTradeoff(
        metric=metric,
        best_scenario=best.title,
        worst_scenario=worst.title,
        difference=_metric_at(best, metric) - _metric_at(worst, metric),
    )


def _first_max(scenarios: Sequence[Scenario], key) -> Scenario:
    best = scenarios[0]
    for scenario in scenarios[1:]:
        if key(scenario) > key(best):
            best = scenario
    return best


def compare_scenarios(scenarios: Sequence[Scenario]) -> ScenarioComparison:
    """Compare scenarios on their year10 outcomes and likelihood.

    Picks the best scenario per metric (the first one wins ties), assesses
    risk from each scenario's probability, measures the best-to-worst spread
    per metric, and recommends either one scenario that is both most likely
    and best overall, or the pair that splits those roles.
    """
    if not scenarios:
        raise ValueError("at least one scenario is required for a comparison")

    best_overall = _first_max(scenarios, overall_score)
    best_for = {
        metric: _first_max(scenarios, lambda s, m=metric: _metric_at(s, m)).title for metric in METRICS
    }
    risk_analysis = [
        RiskAssessment(scenario=s.title, risk_level=risk_level(s), reasoning=_risk_reasoning(s))
        for s in scenarios
    ]
    tradeoffs = [_tradeoff(scenarios, metric) for metric in METRICS]

    most_likely = sorted(scenarios, key=lambda s: -s.probability)[0]
    best_outcome = sorted(scenarios, key=lambda s: -overall_score(s))[0]
    if most_likely is best_outcome:
        recommendation = f"{most_likely.title} offers the best balance of likelihood and outcomes."
    else:
        recommendation = (
            f"Consider {most_likely.title} for reliability or {best_outcome.title} for maximum potential."
        )

    return ScenarioComparison(
        summary=(
            f"{best_overall.title} shows the highest overall potential with "
            f"{best_overall.probability:.0f}% likelihood."
        ),
        best_for=best_for,
        risk_analysis=risk_analysis,
        tradeoffs=tradeoffs,
        recommendation=recommendation,
    )


def personal_fit(scenario: Scenario, profile: Optional[UserProfile] = None) -> float:
    """Score 0-100 how well a scenario suits the person; 75 when no profile is known."""
    if profile is None:
        return DEFAULT_PERSONAL_FIT
    fit = 50.0
    if profile.decision_style == DecisionStyle.ANALYTICAL and scenario.archetype == Archetype.REALISTIC:
        fit += 20
    if profile.decision_style == DecisionStyle.INTUITIVE and scenario.archetype == Archetype.OPTIMISTIC:
        fit += 15
    if "Financial Security" in profile.values and _metric_at(scenario, MetricName.FINANCIAL) > 70:
        fit += 15
    if "Work-Life Balance" in profile.values and _metric_at(scenario, MetricName.HAPPINESS) > 75:
        fit += 10
    return min(100.0, fit)


def _action_items(scenario: Scenario) -> List[str]:
    actions: List[str] = []
    if len(scenario.risks) > 2:
        actions.append("Develop risk mitigation strategies")
    if _metric_at(scenario, MetricName.CAREER, Horizon.YEAR_5) < _metric_at(scenario, MetricName.CAREER):
        actions.append("Focus on skill development in early years")
    if len(scenario.opportunities) > 2:
        actions.append("Identify and pursue key opportunities")
    return actions[:3]


def scenario_insights(scenario: Scenario, profile: Optional[UserProfile] = None) -> ScenarioInsights:
    """Summarize one scenario's strengths, concerns, highlights and fit."""
    strengths = [
        _STRENGTH_LABELS[metric] for metric in METRICS if _metric_at(scenario, metric) > 80
    ][:3]
    highlights = [
        TimelineHighlight(
            year=year,
            milestone=scenario.key_milestones[i + 1] if len(scenario.key_milestones) > i + 1 else fallback,
        )
        for i, (year, fallback) in enumerate(_HIGHLIGHT_FALLBACKS)
    ]
    return ScenarioInsights(
        key_strengths=strengths,
        main_concerns=list(scenario.risks[:2]),
        timeline_highlights=highlights,
        personal_fit=personal_fit(scenario, profile),
        action_items=_action_items(scenario),
    )
