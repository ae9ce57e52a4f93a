import numpy as np
import pytest

from futureself.models.domain import (
    ARCHETYPES,
    Archetype,
    BigFiveScores,
    Decision,
    EconomicClimate,
    EventKind,
    HORIZONS,
    Horizon,
    LifeTrajectory,
    MetricName,
    SimulationSettings,
    TurningPointKind,
    UserProfile,
)
from futureself.models.archetypes import VolatilityProfile
from futureself.simulation.engine import (
    _apply_event_impacts,
    _choose_executor,
    _chunk,
    _noise,
    _resolve_max_workers,
    _simulate_single_trajectory,
    baseline_metrics,
    candidate_events,
    path_plausibility,
    run_archetype_simulation,
    run_full_simulation,
)
from futureself.simulation.rules import CausalRuleEngine
from futureself.simulation.world_context import build_world_state


def _decision(**overrides):
    data = {
        "id": "d1",
        "title": "Leave my job for a startup",
        "description": "An early-stage software company offered me a role",
        "category": "career",
        "urgency": "high",
    }
    data.update(overrides)
    return Decision(**data)


def _profile(age=28, **traits):
    return UserProfile(age=age, big_five=BigFiveScores(**traits))


def test_baseline_applies_traits_multipliers_and_age():
    profile = _profile(age=35, conscientiousness=80, extraversion=80, neuroticism=80)
    realistic = baseline_metrics(profile, Archetype.REALISTIC)
    # financial, happiness, career, relationships, health
    assert realistic.tolist() == pytest.approx([58.0, 48.0, 60.0, 62.0, 42.0])
    young = baseline_metrics(_profile(age=25), Archetype.REALISTIC)
    assert young.tolist() == pytest.approx([40.0] * 5)
    older = baseline_metrics(_profile(age=50), Archetype.OPTIMISTIC)
    # 50 * 1.2 + 10 = 70 for happiness, 50 * 1.1 + 10 = 65 elsewhere
    assert older.tolist() == pytest.approx([65.0, 70.0, 65.0, 65.0, 65.0])


def test_baseline_is_clamped():
    profile = _profile(age=50, conscientiousness=90, extraversion=90)
    values = baseline_metrics(profile, Archetype.OPTIMISTIC)
    assert values.max() <= 80.0
    low = baseline_metrics(_profile(age=20, neuroticism=95), Archetype.CAUTIOUS)
    assert low.min() >= 20.0


def test_noise_is_bounded_and_keyed_by_indices():
    profile = VolatilityProfile(base=12.0, bias=2.0)
    draws = [_noise(7, 3, s, m, h, profile) for s in range(20) for m in range(5) for h in range(4)]
    assert all(-10.0 <= d <= 14.0 for d in draws)
    assert _noise(7, 3, 1, 2, 3, profile) == _noise(7, 3, 1, 2, 3, profile)
    assert _noise(7, 3, 1, 2, 3, profile) != _noise(7, 3, 2, 2, 3, profile)


def test_candidate_events_respect_age_window_and_climate():
    decision = _decision()
    world = build_world_state(_profile(age=28), decision)
    young_kinds = {e.kind for e in candidate_events(world, _profile(age=28), 1)}
    assert EventKind.PARTNERSHIP not in young_kinds
    window_kinds = {e.kind for e in candidate_events(world, _profile(age=28), 5)}
    assert {EventKind.PARTNERSHIP, EventKind.FIRST_CHILD} <= window_kinds

    calm = world.model_copy(update={"economic_climate": EconomicClimate.GROWTH})
    calm_kinds = [e.kind for e in candidate_events(calm, _profile(age=28), 1)]
    assert EventKind.ECONOMIC_RECESSION not in calm_kinds

    disruptions = [e for e in candidate_events(world, _profile(age=28), 1) if e.kind == EventKind.TECHNOLOGY_DISRUPTION]
    # autonomous vehicles are not near term
    assert [e.label for e in disruptions] == [
        "AI/LLMs disrupts industry",
        "Remote collaboration tools disrupts industry",
    ]
    assert disruptions[0].probability == pytest.approx(0.34)


def test_stacked_events_clamp_one_at_a_time():
    decision = _decision()
    world = build_world_state(_profile(age=28), decision)
    by_kind = {e.kind: e for e in candidate_events(world, _profile(age=28), 1)}
    values = np.array([50.0, 50.0, 5.0, 50.0, 50.0])
    # career 5 - 15 floors at 0 before the +20 opportunity lands
    values = _apply_event_impacts(values, by_kind[EventKind.ECONOMIC_RECESSION].impacts)
    values = _apply_event_impacts(values, by_kind[EventKind.CAREER_OPPORTUNITY].impacts)
    assert values[2] == pytest.approx(20.0)
    assert values[0] == pytest.approx(55.0)

    high = _apply_event_impacts(np.full(5, 95.0), by_kind[EventKind.CAREER_OPPORTUNITY].impacts)
    assert high[2] == pytest.approx(100.0)
    assert high[4] == pytest.approx(95.0)


def test_event_impacts_leave_input_untouched():
    values = np.full(5, 50.0)
    _apply_event_impacts(values, {MetricName.HEALTH: -20.0})
    assert values.tolist() == [50.0] * 5


@pytest.mark.parametrize(
    "totals,expected",
    [
        ([250, 260, 270, 275], 1.0),  # growth 25, volatility ~9.6
        ([250, 250, 250, 250], 0.25),  # growth 0 is a full width below, volatility 0 half a width below
    ],
)
def test_path_plausibility_optimistic(totals, expected):
    assert path_plausibility(totals, Archetype.OPTIMISTIC) == pytest.approx(expected, abs=1e-6)


def test_path_plausibility_partial_fit():
    # growth 42 is 2 above the 20-40 range (width 20) -> 0.9
    totals = [200, 221, 221, 242]
    vol = float(np.std(totals))
    assert 5 <= vol <= 15
    assert path_plausibility(totals, Archetype.OPTIMISTIC) == pytest.approx(0.95)


def test_single_trajectory_is_complete_and_bounded():
    decision, profile = _decision(), _profile(extraversion=80, conscientiousness=60)
    world = build_world_state(profile, decision)
    for sample in range(20):
        traj = _simulate_single_trajectory(decision, profile, world, Archetype.ADVENTUROUS, 3, sample, root=11)
        assert set(traj.timeline) == set(HORIZONS)
        for metrics in traj.timeline.values():
            assert all(0.0 <= v <= 100.0 for v in metrics.as_array())
        assert 0.0 <= traj.path_probability <= 1.0
        for tp in traj.turning_points:
            assert tp.magnitude > 15
        for event in traj.external_events:
            assert event.year in (1, 5, 10, 15)


def test_turning_points_only_for_rare_high_impact_events():
    decision, profile = _decision(), _profile(extraversion=80)
    world = build_world_state(profile, decision)
    seen_kinds = set()
    for sample in range(200):
        traj = _simulate_single_trajectory(decision, profile, world, Archetype.REALISTIC, 1, sample, root=5)
        rare = [e for e in traj.external_events if e.probability < 0.3 and e.total_impact > 15]
        assert len(rare) == len(traj.turning_points)
        seen_kinds.update(tp.kind for tp in traj.turning_points)
    assert TurningPointKind.CAREER_BREAKTHROUGH in seen_kinds


def test_custom_engine_is_used():
    decision, profile = _decision(), _profile()
    world = build_world_state(profile, decision)
    empty = CausalRuleEngine(rules=[])
    traj = _simulate_single_trajectory(decision, profile, world, Archetype.CAUTIOUS, 2, 0, root=1, engine=empty)
    assert isinstance(traj, LifeTrajectory)


def test_resolve_max_workers_bounds():
    assert _resolve_max_workers(None, 1) == 1
    assert _resolve_max_workers(8, 3) == 3
    assert _resolve_max_workers(2, 100) == 2
    assert _resolve_max_workers(0, 100) == 1


def test_chunk_preserves_order():
    assert _chunk(list(range(7)), 3) == [[0, 1, 2], [3, 4, 5], [6]]


@pytest.mark.parametrize(
    "parallel,executor,expected",
    [(False, "thread", "none"), (True, "thread", "thread"), (True, "bogus", "process"), (True, "none", "none")],
)
def test_choose_executor(parallel, executor, expected):
    assert _choose_executor(parallel, executor) == expected


def test_full_simulation_deterministic_with_seed():
    decision, profile = _decision(), _profile()
    settings = SimulationSettings(samples_per_archetype=30, random_seed=42)
    first = run_full_simulation(decision, profile, settings=settings, parallel=False)
    second = run_full_simulation(decision, profile, settings=settings, parallel=False)
    assert [r.archetype for r in first] == list(ARCHETYPES)
    assert [r.model_dump() for r in first] == [r.model_dump() for r in second]
    for run in first:
        assert len(run.trajectories) == 30
        assert 0 <= run.confidence_score <= 100


def test_different_seeds_differ():
    decision, profile = _decision(), _profile()
    a = run_archetype_simulation(decision, profile, Archetype.REALISTIC, 10, SimulationSettings(random_seed=1))
    b = run_archetype_simulation(decision, profile, Archetype.REALISTIC, 10, SimulationSettings(random_seed=2))
    assert a.trajectories[0].timeline != b.trajectories[0].timeline


def test_thread_pool_matches_serial():
    decision, profile = _decision(), _profile(extraversion=80)
    settings = SimulationSettings(samples_per_archetype=24, random_seed=9)
    serial = run_full_simulation(decision, profile, settings=settings, parallel=False)
    threaded = run_full_simulation(
        decision, profile, settings=settings, parallel=True, executor="thread", max_workers=3
    )
    assert [r.model_dump() for r in serial] == [r.model_dump() for r in threaded]


def test_archetype_run_matches_full_run_prefix():
    decision, profile = _decision(), _profile()
    settings = SimulationSettings(samples_per_archetype=12, random_seed=3)
    full = run_full_simulation(decision, profile, settings=settings, parallel=False)
    partial = run_archetype_simulation(decision, profile, Archetype.CAUTIOUS, 5, settings)
    cautious = next(r for r in full if r.archetype == Archetype.CAUTIOUS)
    assert [t.model_dump() for t in partial.trajectories] == [t.model_dump() for t in cautious.trajectories[:5]]


def test_archetype_run_rejects_empty_sample_count():
    with pytest.raises(ValueError):
        run_archetype_simulation(_decision(), _profile(), Archetype.REALISTIC, 0)


def test_unseeded_runs_still_complete():
    run = run_archetype_simulation(_decision(), _profile(), Archetype.OPTIMISTIC, 5)
    assert len(run.trajectories) == 5
    assert all(t.at(Horizon.YEAR_15) is not None for t in run.trajectories)
