from __future__ import annotations

"""
Monte Carlo trajectory sampler for the Future Self simulator.

Each archetype is simulated by sampling many independent life paths. A path
starts from a trait- and age-derived baseline, then walks the four horizons:
the causal rule engine advances the metrics, bounded archetype-specific noise
is added, and a small catalog of external events may fire. Every random draw
comes from a generator keyed by (root, archetype, sample, ...) indices, so
results are reproducible with a seed and independent of how samples are
batched across process or thread pools.
"""

import logging
import math
import os
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np

from futureself.models.archetypes import VolatilityProfile, profile_for
from futureself.models.domain import (
    ARCHETYPES,
    Archetype,
    Decision,
    EconomicClimate,
    EventKind,
    ExternalEvent,
    HORIZONS,
    Horizon,
    LifeMetrics,
    LifeTrajectory,
    METRIC_MAX,
    METRIC_MIN,
    METRICS,
    MetricName,
    SimulationRun,
    SimulationSettings,
    TurningPoint,
    TurningPointKind,
    UserProfile,
    WorldState,
)
from futureself.simulation.patterns import confidence_score, detect_dominant_patterns, identify_outliers
from futureself.simulation.rules import METRIC_INDEX, CausalRuleEngine
from futureself.simulation.world_context import build_world_state

logger = logging.getLogger(__name__)

BASELINE_FLOOR = 20.0
BASELINE_CEILING = 80.0
TURNING_POINT_MAX_PROBABILITY = 0.3
TURNING_POINT_MIN_IMPACT = 15.0

_DEFAULT_ENGINE = CausalRuleEngine()

_TURNING_POINT_KINDS: Dict[EventKind, TurningPointKind] = {
    EventKind.ECONOMIC_RECESSION: TurningPointKind.EXTERNAL_SHOCK,
    EventKind.TECHNOLOGY_DISRUPTION: TurningPointKind.EXTERNAL_SHOCK,
    EventKind.PARTNERSHIP: TurningPointKind.RELATIONSHIP_CHANGE,
    EventKind.FIRST_CHILD: TurningPointKind.RELATIONSHIP_CHANGE,
    EventKind.CAREER_OPPORTUNITY: TurningPointKind.CAREER_BREAKTHROUGH,
    EventKind.HEALTH_CHALLENGE: TurningPointKind.HEALTH_CRISIS,
}


@dataclass(frozen=True)
class _EventTemplate:
    """An event that may fire at one horizon, before its draw."""
    kind: EventKind
    label: str
    probability: float
    impacts: Dict[MetricName, float]


def baseline_metrics(profile: UserProfile, archetype: Archetype) -> np.ndarray:
    """Starting metrics for one sample, in canonical metric order.

    Every metric starts at 50 and is nudged by strong traits (high
    conscientiousness lifts career and finances, high extraversion lifts
    relationships and happiness, high neuroticism drags happiness and
    health). The result is scaled by the archetype's multipliers, shifted by
    the age adjustment, and clamped to [20, 80].
    """
    values = np.full(len(METRICS), 50.0)
    traits = profile.big_five
    if traits.conscientiousness > 70:
        values[METRIC_INDEX[MetricName.CAREER]] += 10
        values[METRIC_INDEX[MetricName.FINANCIAL]] += 8
    if traits.extraversion > 70:
        values[METRIC_INDEX[MetricName.RELATIONSHIPS]] += 12
        values[METRIC_INDEX[MetricName.HAPPINESS]] += 8
    if traits.neuroticism > 70:
        values[METRIC_INDEX[MetricName.HAPPINESS]] -= 10
        values[METRIC_INDEX[MetricName.HEALTH]] -= 8

    multipliers = profile_for(archetype).baseline_multipliers
    values *= np.array([multipliers[m] for m in METRICS])

    if profile.age < 30:
        values -= 10
    elif profile.age > 40:
        values += 10
    return np.clip(values, BASELINE_FLOOR, BASELINE_CEILING)


def _noise(
    root: int,
    archetype_index: int,
    sample_index: int,
    metric_index: int,
    horizon_index: int,
    volatility: VolatilityProfile,
) -> float:
    """Uniform noise in [-base, +base] plus the archetype's bias.

    The draw has its own generator keyed by every index it depends on, so it
    is identical wherever the sample runs.
    """
    seq = np.random.SeedSequence([root, archetype_index, sample_index, metric_index, horizon_index])
    u = np.random.default_rng(seq).random()
    return (2.0 * u - 1.0) * volatility.base + volatility.bias


def _format_impacts(impacts: Dict[MetricName, float]) -> str:
    return ", ".join(f"{metric.value} {delta:+.0f}" for metric, delta in impacts.items())


def _apply_event_impacts(values: np.ndarray, impacts: Dict[MetricName, float]) -> np.ndarray:
    """Shift `values` by one event's impacts and clamp before the next event lands."""
    shifted = values.copy()
    for metric, delta in impacts.items():
        shifted[METRIC_INDEX[metric]] += delta
    return np.clip(shifted, METRIC_MIN, METRIC_MAX)


def candidate_events(world_state: WorldState, profile: UserProfile, year: int) -> List[_EventTemplate]:
    """External events that may fire at a horizon `year` years out.

    Economic shocks depend on the climate, technology disruptions on the
    near-term disruptions in the world snapshot, and partnership and
    parenthood only apply while the person is between 30 and 35.
    """
    events: List[_EventTemplate] = []
    if world_state.economic_climate in (EconomicClimate.VOLATILE, EconomicClimate.RECESSION):
        events.append(
            _EventTemplate(
                kind=EventKind.ECONOMIC_RECESSION,
                label="Economic recession",
                probability=0.3,
                impacts={MetricName.CAREER: -15.0, MetricName.FINANCIAL: -10.0},
            )
        )
    for disruption in world_state.technology_disruptions:
        if disruption.near_term:
            events.append(
                _EventTemplate(
                    kind=EventKind.TECHNOLOGY_DISRUPTION,
                    label=f"{disruption.technology} disrupts industry",
                    probability=disruption.severity / 100.0 * 0.4,
                    impacts={MetricName.CAREER: -20.0},
                )
            )
    if 30 <= profile.age + year <= 35:
        events.append(
            _EventTemplate(
                kind=EventKind.PARTNERSHIP,
                label="Marriage or long-term partnership",
                probability=0.4,
                impacts={
                    MetricName.RELATIONSHIPS: 20.0,
                    MetricName.HAPPINESS: 15.0,
                    MetricName.FINANCIAL: 5.0,
                },
            )
        )
        events.append(
            _EventTemplate(
                kind=EventKind.FIRST_CHILD,
                label="First child",
                probability=0.25,
                impacts={
                    MetricName.RELATIONSHIPS: 25.0,
                    MetricName.FINANCIAL: -15.0,
                    MetricName.CAREER: -10.0,
                    MetricName.HAPPINESS: 20.0,
                },
            )
        )
    events.append(
        _EventTemplate(
            kind=EventKind.CAREER_OPPORTUNITY,
            label="Unexpected career opportunity",
            probability=0.15,
            impacts={MetricName.CAREER: 20.0, MetricName.FINANCIAL: 15.0},
        )
    )
    events.append(
        _EventTemplate(
            kind=EventKind.HEALTH_CHALLENGE,
            label="Health challenge",
            probability=0.10,
            impacts={MetricName.HEALTH: -20.0},
        )
    )
    return events


def _range_fitness(value: float, low: float, high: float) -> float:
    if low <= value <= high:
        return 1.0
    distance = low - value if value < low else value - high
    return max(0.0, 1.0 - distance / (high - low))


def path_plausibility(totals: Sequence[float], archetype: Archetype) -> float:
    """Score how well a path's growth and volatility fit the archetype's expected ranges.

    `totals` are the metric sums at each horizon in order. Each of growth and
    volatility scores 1.0 inside its expected range and falls off linearly
    with distance, measured in range widths, down to 0.
    """
    profile = profile_for(archetype)
    arr = np.asarray(totals, dtype=float)
    growth = float(arr[-1] - arr[0])
    volatility = float(np.std(arr))
    growth_fit = _range_fitness(growth, *profile.expected_growth)
    volatility_fit = _range_fitness(volatility, *profile.expected_volatility)
    return (growth_fit + volatility_fit) / 2.0


def _simulate_single_trajectory(
    decision: Decision,
    profile: UserProfile,
    world_state: WorldState,
    archetype: Archetype,
    archetype_index: int,
    sample_index: int,
    root: int,
    engine: CausalRuleEngine | None = None,
) -> LifeTrajectory:
    """Sample one life path across all four horizons.

    At each horizon the rule engine advances the metrics, per-metric noise is
    added and clamped, and each candidate external event is drawn from the
    sample's event generator. Each realized event shifts the metrics and is
    clamped before the next one lands; rare, high-impact ones are also
    recorded as turning points.
    """
    engine = engine or _DEFAULT_ENGINE
    volatility = profile_for(archetype).volatility
    event_rng = np.random.default_rng(np.random.SeedSequence([root, archetype_index, sample_index]))

    values = baseline_metrics(profile, archetype)
    timeline: Dict[Horizon, LifeMetrics] = {}
    events: List[ExternalEvent] = []
    turning_points: List[TurningPoint] = []

    for horizon_index, horizon in enumerate(HORIZONS):
        values = engine.apply_array(decision, profile, world_state, archetype, values, horizon)
        for metric_index in range(len(METRICS)):
            values[metric_index] += _noise(
                root, archetype_index, sample_index, metric_index, horizon_index, volatility
            )
        values = np.clip(values, METRIC_MIN, METRIC_MAX)

        for template in candidate_events(world_state, profile, horizon.years):
            if event_rng.random() >= template.probability:
                continue
            values = _apply_event_impacts(values, template.impacts)
            event = ExternalEvent(
                year=horizon.years,
                kind=template.kind,
                label=template.label,
                probability=template.probability,
                impacts=template.impacts,
                impact_summary=_format_impacts(template.impacts),
            )
            events.append(event)
            if (
                template.probability < TURNING_POINT_MAX_PROBABILITY
                and event.total_impact > TURNING_POINT_MIN_IMPACT
            ):
                turning_points.append(
                    TurningPoint(
                        year=horizon.years,
                        kind=_TURNING_POINT_KINDS[template.kind],
                        description=template.label,
                        magnitude=event.total_impact,
                        affected_metrics=list(template.impacts),
                    )
                )
        timeline[horizon] = LifeMetrics.from_array(values)

    totals = [timeline[h].total() for h in HORIZONS]
    return LifeTrajectory(
        timeline=timeline,
        turning_points=turning_points,
        external_events=events,
        path_probability=path_plausibility(totals, archetype),
        sample_index=sample_index,
    )


def _resolve_max_workers(max_workers: int | None, runs: int) -> int:
    """Bound pool size by requested max, sample count, and CPU availability."""
    if runs <= 1:
        return 1
    if max_workers is None:
        return max(1, min(runs, os.cpu_count() or 1))
    return max(1, min(max_workers, runs))


def _chunk(items: List[Any], size: int) -> List[List[Any]]:
    """Split a list into fixed-size batches to feed worker pools.

    Batches keep sample order, though ordering does not affect the draws
    since every seed is keyed by its sample index.
    """
    return [items[i : i + size] for i in range(0, len(items), size)]


def _choose_executor(parallel: bool, executor: str) -> str:
    """Pick executor mode from the parallel flag and the requested type.

    Unknown executor hints default to process pools, which suit the
    CPU-bound sampling loop better than threads.
    """
    if not parallel:
        return "none"
    if executor not in ("process", "thread", "none"):
        return "process"
    return executor


def _run_batch(
    decision: Decision,
    profile: UserProfile,
    world_state: WorldState,
    archetype: Archetype,
    archetype_index: int,
    root: int,
    sample_batch: List[int],
) -> List[LifeTrajectory]:
    """Simulate a batch of samples by index; the signature stays picklable for pools."""
    return [
        _simulate_single_trajectory(
            decision=decision,
            profile=profile,
            world_state=world_state,
            archetype=archetype,
            archetype_index=archetype_index,
            sample_index=sample_index,
            root=root,
        )
        for sample_index in sample_batch
    ]


def _run_batch_process(args: Tuple[Any, ...]) -> List[LifeTrajectory]:
    """ProcessPool adapter that delegates to `_run_batch`."""
    return _run_batch(*args)


def _run_batch_thread(args: Tuple[Any, ...]) -> List[LifeTrajectory]:
    """ThreadPool adapter that delegates to `_run_batch`."""
    return _run_batch(*args)


def _sample_trajectories(
    decision: Decision,
    profile: UserProfile,
    world_state: WorldState,
    archetype: Archetype,
    sample_count: int,
    root: int,
    parallel: bool = False,
    max_workers: int | None = None,
    executor: str = "process",
) -> List[LifeTrajectory]:
    """Run `sample_count` paths for one archetype, serially or on a pool.

    Samples are fanned out in index batches of roughly a quarter of the
    per-worker share, and results come back in sample order either way.
    """
    archetype_index = ARCHETYPES.index(archetype)
    mode = _choose_executor(parallel, executor)
    indices = list(range(sample_count))

    if mode == "none":
        return _run_batch(decision, profile, world_state, archetype, archetype_index, root, indices)

    worker_count = _resolve_max_workers(max_workers, sample_count)
    target_tasks = max(1, worker_count * 4)
    batch_size = max(1, math.ceil(sample_count / target_tasks))
    batches = _chunk(indices, batch_size)

    worker_func = _run_batch_process if mode == "process" else _run_batch_thread
    ExecutorCls = ProcessPoolExecutor if mode == "process" else ThreadPoolExecutor

    trajectories: List[LifeTrajectory] = []
    with ExecutorCls(max_workers=worker_count) as pool:
        for batch_results in pool.map(
            worker_func,
            [
                (decision, profile, world_state, archetype, archetype_index, root, batch)
                for batch in batches
            ],
        ):
            trajectories.extend(batch_results)
    return trajectories


def _root_entropy(settings: SimulationSettings) -> int:
    """
    Root of every seed in one simulation call.

    A configured `random_seed` is used as-is; otherwise fresh OS entropy is
    drawn once so all archetypes of the call share the same root.
    """
    if settings.random_seed is not None:
        return settings.random_seed
    return int(np.random.SeedSequence().entropy)


def _summarize(
    archetype: Archetype,
    trajectories: List[LifeTrajectory],
    settings: SimulationSettings,
) -> SimulationRun:
    """Attach dominant patterns, outliers and confidence to one archetype's samples."""
    patterns = detect_dominant_patterns(trajectories, archetype, settings.pattern_threshold)
    outliers = identify_outliers(trajectories, settings.outlier_threshold)
    return SimulationRun(
        archetype=archetype,
        trajectories=trajectories,
        dominant_patterns=patterns,
        outliers=outliers,
        confidence_score=confidence_score(trajectories, patterns),
    )


def run_archetype_simulation(
    decision: Decision,
    profile: UserProfile,
    archetype: Archetype,
    sample_count: int = 100,
    settings: SimulationSettings | None = None,
    world_state: WorldState | None = None,
    parallel: bool = False,
    max_workers: int | None = None,
    executor: str = "process",
) -> SimulationRun:
    """Run a lighter simulation for a single archetype.

    Uses the same seeding scheme as the full run, so with a fixed seed the
    first `sample_count` trajectories match the full run's trajectories for
    this archetype.
    """
    if sample_count <= 0:
        raise ValueError("sample_count must be positive")
    settings = settings or SimulationSettings()
    world_state = world_state or build_world_state(profile, decision)
    root = _root_entropy(settings)
    trajectories = _sample_trajectories(
        decision, profile, world_state, archetype, sample_count, root, parallel, max_workers, executor
    )
    return _summarize(archetype, trajectories, settings)


def run_full_simulation(
    decision: Decision,
    profile: UserProfile,
    settings: SimulationSettings | None = None,
    parallel: bool = True,
    max_workers: int | None = None,
    executor: str = "process",
    world_state: WorldState | None = None,
) -> List[SimulationRun]:
    """Simulate every archetype and return one run per archetype in canonical order.

    The world snapshot is built once and shared read-only by all samples.
    When no seed is configured, fresh root entropy is drawn once for the whole
    call so the four archetypes still share one reproducible stream family;
    the entropy is logged at DEBUG so a run can be replayed.
    """
    settings = settings or SimulationSettings()
    world_state = world_state or build_world_state(profile, decision)
    root = _root_entropy(settings)
    logger.debug("Simulation root entropy: %d", root)

    runs: List[SimulationRun] = []
    for archetype in ARCHETYPES:
        trajectories = _sample_trajectories(
            decision,
            profile,
            world_state,
            archetype,
            settings.samples_per_archetype,
            root,
            parallel,
            max_workers,
            executor,
        )
        run = _summarize(archetype, trajectories, settings)
        logger.info(
            "%s: %d samples, %d dominant patterns, %d outliers, confidence %d",
            archetype.value,
            len(trajectories),
            len(run.dominant_patterns),
            len(run.outliers),
            run.confidence_score,
        )
        runs.append(run)
    return runs
