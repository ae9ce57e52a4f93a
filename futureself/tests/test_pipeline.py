import pytest

from futureself.exceptions import FutureSelfError, InvalidInputError, SimulationIncomplete
from futureself.models.domain import (
    ARCHETYPES,
    Archetype,
    BigFiveScores,
    Decision,
    HORIZONS,
    Horizon,
    MetricName,
    SimulationSettings,
    UserProfile,
)
from futureself.simulation import pipeline
from futureself.simulation.pipeline import explain_rules, simulate


def _career_decision():
    return {
        "id": "startup",
        "title": "Leave my job for a startup",
        "description": "An early-stage software company offered me a product role",
        "category": "career",
        "urgency": "high",
    }


def _career_profile():
    return {
        "age": 28,
        "big_five": {"extraversion": 80, "conscientiousness": 60},
    }


def test_simulate_returns_four_complete_archetypes():
    settings = SimulationSettings(samples_per_archetype=60, random_seed=2024)
    results = simulate(_career_decision(), _career_profile(), settings=settings)
    assert len(results) == 4
    assert sorted(r.scenario.archetype for r in results) == sorted(ARCHETYPES)
    for result in results:
        assert 15 <= result.scenario.probability <= 70
        assert set(result.scenario.impact) == set(MetricName)
        assert set(result.scenario.timeline) == set(HORIZONS)
        assert 0 <= result.pattern_confidence <= 100
    confidences = [r.pattern_confidence for r in results]
    assert confidences == sorted(confidences, reverse=True)


def test_adventurous_career_move_does_not_lose_ground():
    settings = SimulationSettings(samples_per_archetype=100, random_seed=7)
    results = simulate(_career_decision(), _career_profile(), settings=settings)
    adventurous = next(r for r in results if r.scenario.archetype == Archetype.ADVENTUROUS)
    timeline = adventurous.scenario.timeline
    assert timeline[Horizon.YEAR_15].career - timeline[Horizon.YEAR_1].career >= 0
    assert adventurous.scenario.impact[MetricName.CAREER].change >= 0
    assert 15 <= adventurous.scenario.probability <= 70


def test_simulate_is_deterministic_with_seed():
    settings = {"samples_per_archetype": 25, "random_seed": 99}
    first = simulate(_career_decision(), _career_profile(), settings=settings)
    second = simulate(_career_decision(), _career_profile(), settings=settings)
    assert [r.model_dump() for r in first] == [r.model_dump() for r in second]


def test_simulate_accepts_models():
    decision = Decision(**_career_decision())
    profile = UserProfile(age=45, big_five=BigFiveScores(neuroticism=75))
    results = simulate(decision, profile, settings=SimulationSettings(samples_per_archetype=10, random_seed=1))
    cautious = next(r for r in results if r.scenario.archetype == Archetype.CAUTIOUS)
    assert cautious.scenario.probability == pytest.approx(35.0)


@pytest.mark.parametrize(
    "decision,profile",
    [
        ({"title": "", "description": "x"}, {"age": 30}),
        ({"description": "missing title"}, {"age": 30}),
        (_career_decision(), {"age": -3}),
        (_career_decision(), {"age": 30, "big_five": {"openness": 140}}),
        (_career_decision(), "not a profile"),
    ],
)
def test_simulate_rejects_invalid_input(decision, profile):
    with pytest.raises(InvalidInputError):
        simulate(decision, profile)


@pytest.mark.parametrize(
    "settings",
    [{"samples_per_archetype": 0}, {"pattern_threshold": 1.5}, {"outlier_threshold": 0}],
)
def test_simulate_rejects_invalid_settings(settings):
    with pytest.raises(InvalidInputError):
        simulate(_career_decision(), _career_profile(), settings=settings)


def test_invalid_input_is_a_value_error():
    with pytest.raises(ValueError):
        explain_rules({"title": "x"}, {"age": 30})


def test_explain_rules_for_career_move():
    lines = explain_rules(_career_decision(), _career_profile(), archetype=Archetype.ADVENTUROUS)
    assert "Career Transition Skill Growth applies strongly (80% confidence)" in lines
    assert "Extraverted Network Recovery applies strongly (75% confidence)" in lines
    assert "Urgent Career Move Pressure applies moderately (70% confidence)" in lines


def test_explain_rules_defaults_to_realistic():
    lines = explain_rules(_career_decision(), _career_profile())
    assert "Career Transition Skill Growth applies moderately (80% confidence)" in lines


def test_missing_archetype_raises_package_error(monkeypatch):
    real_convert = pipeline.convert_to_archetypes

    def drop_last(*args, **kwargs):
        return real_convert(*args, **kwargs)[:-1]

    monkeypatch.setattr(pipeline, "convert_to_archetypes", drop_last)
    settings = SimulationSettings(samples_per_archetype=5, random_seed=1)
    with pytest.raises(SimulationIncomplete) as excinfo:
        simulate(_career_decision(), _career_profile(), settings=settings)
    assert isinstance(excinfo.value, FutureSelfError)
