import pytest

from futureself.models.domain import (
    Archetype,
    DecisionStyle,
    HORIZONS,
    Horizon,
    LifeMetrics,
    MetricImpact,
    MetricName,
    RiskLevel,
    Scenario,
    UserProfile,
)
from futureself.simulation.comparison import (
    DEFAULT_PERSONAL_FIT,
    compare_scenarios,
    overall_score,
    personal_fit,
    risk_level,
    scenario_insights,
)


def _scenario(title, archetype, probability, year10, year5=None, risks=None, opportunities=None, milestones=None):
    base = LifeMetrics.uniform(50)
    timeline = {h: base for h in HORIZONS}
    timeline[Horizon.YEAR_10] = LifeMetrics(**year10)
    if year5 is not None:
        timeline[Horizon.YEAR_5] = LifeMetrics(**year5)
    return Scenario(
        id=f"s-{archetype.value}",
        decision_id="d",
        title=title,
        description="",
        archetype=archetype,
        timeline=timeline,
        impact={m: MetricImpact(change=0, reasoning="", confidence=80) for m in MetricName},
        key_milestones=milestones if milestones is not None else ["m0", "m1", "m2", "m3"],
        risks=risks if risks is not None else ["r1", "r2", "r3"],
        opportunities=opportunities if opportunities is not None else ["o1", "o2", "o3"],
        probability=probability,
    )


def _metrics(financial=50, happiness=50, career=50, relationships=50, health=50):
    return dict(financial=financial, happiness=happiness, career=career, relationships=relationships, health=health)


@pytest.mark.parametrize("probability,level", [(55, RiskLevel.LOW), (50, RiskLevel.MEDIUM), (31, RiskLevel.MEDIUM), (30, RiskLevel.HIGH)])
def test_risk_level_thresholds(probability, level):
    scenario = _scenario("A", Archetype.REALISTIC, probability, _metrics())
    assert risk_level(scenario) == level


def test_compare_picks_best_per_metric_and_recommends():
    rich = _scenario("Rich", Archetype.REALISTIC, 45, _metrics(financial=90, career=85))
    happy = _scenario("Happy", Archetype.OPTIMISTIC, 25, _metrics(happiness=95, health=70))
    comparison = compare_scenarios([rich, happy])
    assert comparison.best_for[MetricName.FINANCIAL] == "Rich"
    assert comparison.best_for[MetricName.HAPPINESS] == "Happy"
    # tie on relationships goes to the first scenario
    assert comparison.best_for[MetricName.RELATIONSHIPS] == "Rich"
    assert comparison.summary == "Rich shows the highest overall potential with 45% likelihood."
    assert comparison.recommendation == "Rich offers the best balance of likelihood and outcomes."
    financial = next(t for t in comparison.tradeoffs if t.metric == MetricName.FINANCIAL)
    assert financial.best_scenario == "Rich"
    assert financial.worst_scenario == "Happy"
    assert financial.difference == pytest.approx(40.0)
    assert [r.risk_level for r in comparison.risk_analysis] == [RiskLevel.MEDIUM, RiskLevel.HIGH]


def test_compare_splits_reliability_and_potential():
    likely = _scenario("Likely", Archetype.REALISTIC, 60, _metrics())
    bold = _scenario("Bold", Archetype.ADVENTUROUS, 15, _metrics(career=95, financial=90))
    comparison = compare_scenarios([likely, bold])
    assert comparison.recommendation == "Consider Likely for reliability or Bold for maximum potential."
    assert comparison.risk_analysis[0].reasoning == "Moderate probability with some challenges"


def test_compare_does_not_reorder_input():
    a = _scenario("A", Archetype.REALISTIC, 20, _metrics())
    b = _scenario("B", Archetype.CAUTIOUS, 60, _metrics(health=90))
    scenarios = [a, b]
    compare_scenarios(scenarios)
    assert scenarios == [a, b]


def test_compare_requires_scenarios():
    with pytest.raises(ValueError):
        compare_scenarios([])


def test_overall_score_is_year10_mean():
    scenario = _scenario("A", Archetype.REALISTIC, 20, _metrics(financial=100, health=0))
    assert overall_score(scenario) == pytest.approx(50.0)


def test_insights_strengths_highlights_and_actions():
    scenario = _scenario(
        "A",
        Archetype.REALISTIC,
        45,
        _metrics(financial=85, happiness=90, career=95, relationships=99),
        year5=_metrics(career=60),
    )
    insights = scenario_insights(scenario)
    assert insights.key_strengths == [
        "Strong financial position",
        "High life satisfaction",
        "Excellent career growth",
    ]
    assert insights.main_concerns == ["r1", "r2"]
    assert [(h.year, h.milestone) for h in insights.timeline_highlights] == [(5, "m1"), (10, "m2"), (15, "m3")]
    assert insights.personal_fit == pytest.approx(DEFAULT_PERSONAL_FIT)
    assert insights.action_items == [
        "Develop risk mitigation strategies",
        "Focus on skill development in early years",
        "Identify and pursue key opportunities",
    ]


def test_insights_fall_back_for_missing_milestones():
    scenario = _scenario("A", Archetype.REALISTIC, 45, _metrics(), milestones=["only"], risks=[], opportunities=[])
    insights = scenario_insights(scenario)
    assert [h.milestone for h in insights.timeline_highlights] == [
        "Initial progress milestone",
        "Major achievement reached",
        "Long-term success established",
    ]
    assert insights.action_items == []


def test_personal_fit_rewards_alignment():
    profile = UserProfile(
        age=35,
        decision_style=DecisionStyle.ANALYTICAL,
        values=["Financial Security", "Work-Life Balance"],
    )
    scenario = _scenario("A", Archetype.REALISTIC, 45, _metrics(financial=80, happiness=80))
    assert personal_fit(scenario, profile) == pytest.approx(95.0)
    intuitive = UserProfile(age=35, decision_style=DecisionStyle.INTUITIVE)
    assert personal_fit(scenario, intuitive) == pytest.approx(50.0)
    optimistic = _scenario("B", Archetype.OPTIMISTIC, 25, _metrics())
    assert personal_fit(optimistic, intuitive) == pytest.approx(65.0)


def test_scenario_requires_every_horizon():
    scenario = _scenario("A", Archetype.REALISTIC, 45, _metrics())
    timeline = {h: m for h, m in scenario.timeline.items() if h != Horizon.YEAR_10}
    with pytest.raises(ValueError):
        Scenario(**{**scenario.model_dump(), "timeline": timeline})
