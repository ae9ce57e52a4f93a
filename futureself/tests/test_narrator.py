import pytest

from futureself.models.domain import (
    ARCHETYPES,
    Archetype,
    BigFiveScores,
    Decision,
    HORIZONS,
    Horizon,
    LifeMetrics,
    LifeTrajectory,
    MetricName,
    PatternKind,
    SimulationRun,
    TurningPoint,
    TurningPointKind,
    UserProfile,
)
from futureself.simulation.narrator import (
    archetype_probability,
    convert_to_archetypes,
    flat_trajectory,
    impact_confidence,
    matches_signature,
    select_representative,
)
from futureself.simulation.patterns import confidence_score, detect_dominant_patterns


def _decision(**overrides):
    data = {
        "id": "dec-1",
        "title": "Move to remote work",
        "description": "Negotiate a fully remote role",
        "category": "career",
        "urgency": "high",
        "constraints": ["Mortgage payments"],
        "alternatives": ["Stay in the office"],
    }
    data.update(overrides)
    return Decision(**data)


def _profile(**traits):
    return UserProfile(age=32, big_five=BigFiveScores(**traits), goals=["Lead a team"])


def _trajectory(totals, index=0, turning_points=None):
    timeline = {h: LifeMetrics.uniform(t / 5.0) for h, t in zip(HORIZONS, totals)}
    return LifeTrajectory(
        timeline=timeline,
        turning_points=turning_points or [],
        path_probability=0.6,
        sample_index=index,
    )


def _run(archetype, trajectories):
    patterns = detect_dominant_patterns(trajectories, archetype)
    return SimulationRun(
        archetype=archetype,
        trajectories=trajectories,
        dominant_patterns=patterns,
        outliers=[],
        confidence_score=confidence_score(trajectories, patterns),
    )


@pytest.mark.parametrize(
    "archetype,traits,expected",
    [
        (Archetype.OPTIMISTIC, {"openness": 80}, 35.0),
        (Archetype.OPTIMISTIC, {"openness": 70}, 25.0),
        (Archetype.REALISTIC, {"conscientiousness": 75}, 50.0),
        (Archetype.CAUTIOUS, {"neuroticism": 65}, 35.0),
        (Archetype.ADVENTUROUS, {}, 15.0),
        (Archetype.ADVENTUROUS, {"openness": 76}, 25.0),
    ],
)
def test_archetype_probability(archetype, traits, expected):
    assert archetype_probability(archetype, _profile(**traits)) == pytest.approx(expected)


@pytest.mark.parametrize("change,expected", [(0, 80.0), (50, 85.0), (-300, 100.0)])
def test_impact_confidence(change, expected):
    assert impact_confidence(change) == pytest.approx(expected)


def test_signature_matching():
    assert matches_signature(_trajectory([200, 210, 215, 225]), PatternKind.STEADY_GROWTH)
    assert matches_signature(_trajectory([250, 240, 245, 255]), PatternKind.DECLINE_RECOVERY)
    tp = TurningPoint(year=5, kind=TurningPointKind.HEALTH_CRISIS, description="Health challenge", magnitude=20)
    assert matches_signature(_trajectory([250, 240, 235, 230], turning_points=[tp]), PatternKind.BREAKTHROUGH_MOMENT)
    assert not matches_signature(_trajectory([250, 240, 235, 230]), PatternKind.BREAKTHROUGH_MOMENT)


def test_representative_prefers_typical_member_and_earliest_tie():
    typical = [200, 215, 225, 235]
    stretched = [200, 212, 222, 240]
    trajectories = [
        _trajectory([250, 252, 251, 253], index=0),
        _trajectory(stretched, index=1),
        _trajectory(typical, index=2),
        _trajectory(typical, index=3),
        _trajectory(typical, index=4),
    ]
    run = _run(Archetype.REALISTIC, trajectories)
    assert run.dominant_patterns[0].kind == PatternKind.STEADY_GROWTH
    chosen = select_representative(run)
    assert chosen.sample_index == 2


def test_representative_falls_back_to_flat():
    empty = SimulationRun(archetype=Archetype.CAUTIOUS, trajectories=[], confidence_score=0)
    chosen = select_representative(empty)
    assert chosen.at(Horizon.YEAR_15) == LifeMetrics.uniform(50)
    assert chosen.growth() == 0
    assert flat_trajectory().path_probability == pytest.approx(0.5)


def test_convert_to_archetypes_fills_every_field():
    decision, profile = _decision(), _profile(openness=80)
    runs = [_run(a, [_trajectory([200 + i, 215, 225, 235 + i], index=i) for i in range(4)]) for a in ARCHETYPES]
    results = convert_to_archetypes(runs, decision, profile)

    assert sorted(r.scenario.archetype for r in results) == sorted(ARCHETYPES)
    for result in results:
        scenario = result.scenario
        assert 15 <= scenario.probability <= 70
        assert set(scenario.impact) == set(MetricName)
        assert set(scenario.timeline) == set(HORIZONS)
        assert len(scenario.key_milestones) >= 3
        assert len(scenario.risks) == 4
        assert len(scenario.opportunities) == 4
        assert scenario.id == f"dec-1-{scenario.archetype.value}"
        assert "career" in scenario.title
        assert result.narrative.storyline
        assert result.dominant_pattern == PatternKind.STEADY_GROWTH
        assert result.supporting_evidence[0].endswith("steady growth pattern")

    optimistic = next(r for r in results if r.scenario.archetype == Archetype.OPTIMISTIC)
    assert optimistic.scenario.probability == pytest.approx(35.0)
    assert optimistic.scenario.risks[0] == "Over-optimism might lead to insufficient preparation"
    assert "Constraint may limit options: Mortgage payments" in optimistic.scenario.risks
    assert optimistic.scenario.opportunities[1] == "Progress toward your goal: Lead a team"


def test_turning_points_become_framed_milestones():
    tp = TurningPoint(
        year=5,
        kind=TurningPointKind.CAREER_BREAKTHROUGH,
        description="Unexpected career opportunity",
        magnitude=35,
        affected_metrics=[MetricName.CAREER, MetricName.FINANCIAL],
    )
    trajectories = [_trajectory([250, 240, 235, 230], index=i, turning_points=[tp]) for i in range(3)]
    run = _run(Archetype.ADVENTUROUS, trajectories)
    result = convert_to_archetypes([run], _decision(), _profile())[0]
    milestones = result.scenario.key_milestones
    assert milestones[0] == (
        "Year 5: Unexpected career opportunity - embraced the change and turned it into an adventure"
    )
    assert len(milestones) == 3
    assert "unexpected career opportunity" in result.scenario.impact[MetricName.CAREER].reasoning


def test_results_ranked_by_confidence_stably():
    decision, profile = _decision(), _profile()
    consistent = [_trajectory([250, 252, 251, 253], index=i) for i in range(4)]
    scattered = [_trajectory([200, 200, 200, 200]), _trajectory([300, 300, 300, 300])]
    runs = [
        _run(Archetype.OPTIMISTIC, scattered),
        _run(Archetype.REALISTIC, consistent),
        _run(Archetype.CAUTIOUS, consistent),
        _run(Archetype.ADVENTUROUS, scattered),
    ]
    order = [r.scenario.archetype for r in convert_to_archetypes(runs, decision, profile)]
    assert order == [Archetype.REALISTIC, Archetype.CAUTIOUS, Archetype.OPTIMISTIC, Archetype.ADVENTUROUS]
