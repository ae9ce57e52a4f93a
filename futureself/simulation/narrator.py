from __future__ import annotations

"""
Turns per-archetype simulation runs into externally visible scenario archetypes.

For each run the narrator picks the sampled trajectory that best represents
the top dominant pattern, derives the scenario fields (milestones, risks,
opportunities, per-metric impact, probability) and fills the archetype's
narrative templates with the computed numbers.
"""

import logging
import math
from typing import Dict, List, Optional, Sequence

import numpy as np

from futureself.models.archetypes import ArchetypeProfile, NarrativeTemplates, profile_for
from futureself.models.domain import (
    Archetype,
    ArchetypeNarrative,
    Decision,
    HORIZONS,
    Horizon,
    LifeMetrics,
    LifeTrajectory,
    METRICS,
    MetricImpact,
    MetricName,
    PatternKind,
    Scenario,
    ScenarioArchetype,
    SimulationRun,
    Urgency,
    UserProfile,
    WorldState,
)
from futureself.simulation.patterns import classify_trajectory, trajectory_shape
from futureself.simulation.world_context import critical_factors

logger = logging.getLogger(__name__)

PROBABILITY_FLOOR = 15.0
PROBABILITY_CEILING = 70.0
MAX_MILESTONES = 4
MIN_MILESTONES = 3
LIST_LENGTH = 4

_GENERIC_RISKS = (
    "Unexpected economic downturn could slow progress",
    "Sustained effort may lead to burnout without deliberate rest",
    "Changing personal priorities may shift what success looks like",
)
_GENERIC_OPPORTUNITIES = (
    "Skills gained will transfer to future roles and decisions",
    "New relationships formed along the way can open doors",
    "Greater clarity about long-term priorities",
)


def flat_trajectory() -> LifeTrajectory:
    """Neutral stand-in used when a run has no samples or no dominant pattern."""
    flat = LifeMetrics.uniform(50.0)
    return LifeTrajectory(timeline={h: flat for h in HORIZONS}, path_probability=0.5)


def matches_signature(trajectory: LifeTrajectory, kind: PatternKind) -> bool:
    """Looser version of the classifier used to rank candidate representatives."""
    growth, volatility, early, late = trajectory_shape(trajectory)
    if kind == PatternKind.STEADY_GROWTH:
        return growth > 20 and volatility < 15
    if kind == PatternKind.VOLATILE_HIGH_REWARD:
        return growth > 15 and volatility > 20
    if kind == PatternKind.STABLE_PLATEAU:
        return abs(growth) < 15 and volatility < 10
    if kind == PatternKind.DECLINE_RECOVERY:
        return early < 0 and late > 0
    return bool(trajectory.turning_points)


def select_representative(run: SimulationRun) -> LifeTrajectory:
    """Pick the sampled trajectory that best stands for the run's top pattern.

    A trajectory scores 0.8 when it matches the pattern's signature, plus up
    to 0.2 for how close its growth and volatility sit to the pattern's
    typical values (the means over trajectories classified into it). The
    highest score wins and ties go to the earliest sample.
    """
    if not run.trajectories or not run.dominant_patterns:
        logger.debug("%s: no dominant pattern, using flat trajectory", run.archetype.value)
        return flat_trajectory()
    kind = run.dominant_patterns[0].kind
    members = [t for t in run.trajectories if classify_trajectory(t) == kind] or run.trajectories
    typical_growth = float(np.mean([t.growth() for t in members]))
    typical_volatility = float(np.mean([t.volatility() for t in members]))

    best = run.trajectories[0]
    best_score = -math.inf
    for trajectory in run.trajectories:
        distance = math.hypot(trajectory.growth() - typical_growth, trajectory.volatility() - typical_volatility)
        score = 0.2 / (1.0 + distance / 10.0)
        if matches_signature(trajectory, kind):
            score += 0.8
        if score > best_score:
            best, best_score = trajectory, score
    return best


def archetype_probability(archetype: Archetype, profile: UserProfile) -> float:
    """Base rate for the archetype plus its trait-alignment bonus, clamped to [15, 70]."""
    table = profile_for(archetype)
    probability = table.base_probability
    alignment = table.alignment
    if getattr(profile.big_five, alignment.trait) > alignment.threshold:
        probability += alignment.bonus
    return max(PROBABILITY_FLOOR, min(PROBABILITY_CEILING, probability))


def _milestones(trajectory: LifeTrajectory, templates: NarrativeTemplates) -> List[str]:
    milestones = [
        templates.milestone_framing.format(year=tp.year, description=tp.description)
        for tp in trajectory.turning_points[:MAX_MILESTONES]
    ]
    for generic in templates.generic_milestones:
        if len(milestones) >= MIN_MILESTONES:
            break
        milestones.append(generic)
    return milestones


def _risks(table: ArchetypeProfile, decision: Decision, run: SimulationRun) -> List[str]:
    risks = [table.templates.risk]
    risks.extend(f"Constraint may limit options: {c}" for c in decision.constraints)
    if decision.urgency == Urgency.HIGH:
        risks.append("Time pressure may force commitments before all information is available")
    if decision.alternatives:
        risks.append(f"Lingering doubts about the road not taken: {decision.alternatives[0]}")
    risks.extend(f"Rare but possible: {o.label}" for o in run.outliers[:1])
    risks.extend(_GENERIC_RISKS)
    return risks[:LIST_LENGTH]


def _opportunities(table: ArchetypeProfile, decision: Decision, profile: UserProfile) -> List[str]:
    opportunities = [table.templates.opportunity]
    opportunities.extend(f"Progress toward your goal: {g}" for g in profile.goals[:2])
    if decision.alternatives:
        opportunities.append(f"Keeps {decision.alternatives[0]} open as a fallback")
    opportunities.extend(_GENERIC_OPPORTUNITIES)
    return opportunities[:LIST_LENGTH]


def impact_confidence(change: float) -> float:
    return min(100.0, max(60.0, 80.0 + abs(change) / 10.0))


def _impacts(trajectory: LifeTrajectory, archetype: Archetype) -> Dict[MetricName, MetricImpact]:
    start = trajectory.at(Horizon.YEAR_1)
    end = trajectory.at(Horizon.YEAR_15)
    impacts: Dict[MetricName, MetricImpact] = {}
    for metric in METRICS:
        change = end.get(metric) - start.get(metric)
        if change > 0:
            movement = f"improves by {change:.0f} points"
        elif change < 0:
            movement = f"declines by {abs(change):.0f} points"
        else:
            movement = "holds steady"
        drivers = [tp.description for tp in trajectory.turning_points if metric in tp.affected_metrics]
        reasoning = f"{metric.value.capitalize()} {movement} between year 1 and year 15 on the {archetype.value} path"
        if drivers:
            reasoning += f", shaped by {drivers[0].lower()}"
        impacts[metric] = MetricImpact(change=change, reasoning=reasoning, confidence=impact_confidence(change))
    return impacts


def _growth_desc(growth: float) -> str:
    if growth > 40:
        return "exceptional"
    if growth > 15:
        return "solid"
    if growth > 0:
        return "modest"
    return "hard-won"


def _confidence_level(confidence: int) -> str:
    if confidence >= 70:
        return "high"
    if confidence >= 40:
        return "moderate"
    return "modest"


def _narrative(
    archetype: Archetype,
    templates: NarrativeTemplates,
    milestones: List[str],
    fields: Dict[str, object],
) -> ArchetypeNarrative:
    return ArchetypeNarrative(
        archetype=archetype,
        storyline=templates.storyline.format(**fields),
        key_milestones=list(milestones),
        challenges_overcome=list(templates.challenges),
        opportunities_seized=list(templates.opportunities),
        life_philosophy=templates.philosophy,
        advice_themes=list(templates.advice),
        regrets_and_learnings=list(templates.regrets),
        probability_explanation=templates.probability_explanation.format(**fields),
    )


def _evidence(run: SimulationRun, representative: LifeTrajectory, factors: Sequence[str]) -> List[str]:
    evidence: List[str] = []
    if run.dominant_patterns:
        top = run.dominant_patterns[0]
        evidence.append(
            f"{top.probability:.0%} of simulated paths follow a {top.kind.value.replace('_', ' ')} pattern"
        )
    evidence.append(f"Pattern confidence {run.confidence_score}% across {len(run.trajectories)} simulated lives")
    evidence.append(f"Representative path plausibility {representative.path_probability:.2f}")
    evidence.append(f"{len(run.outliers)} rare events identified as outliers")
    evidence.extend(factors[:2])
    return evidence


def _convert_run(
    run: SimulationRun,
    decision: Decision,
    profile: UserProfile,
    factors: Sequence[str],
) -> ScenarioArchetype:
    table = profile_for(run.archetype)
    templates = table.templates
    representative = select_representative(run)
    dominant: Optional[PatternKind] = run.dominant_patterns[0].kind if run.dominant_patterns else None

    growth = representative.growth()
    fields: Dict[str, object] = {
        "category": decision.category.value,
        "growth": growth,
        "growth_desc": _growth_desc(growth),
        "confidence": run.confidence_score,
        "confidence_level": _confidence_level(run.confidence_score),
        "pattern": dominant.value.replace("_", " ") if dominant else "mixed",
    }
    milestones = _milestones(representative, templates)
    decision_id = decision.id or "decision"

    scenario = Scenario(
        id=f"{decision_id}-{run.archetype.value}",
        decision_id=decision_id,
        title=templates.title.format(**fields),
        description=templates.description.format(**fields),
        archetype=run.archetype,
        timeline=dict(representative.timeline),
        impact=_impacts(representative, run.archetype),
        key_milestones=milestones,
        risks=_risks(table, decision, run),
        opportunities=_opportunities(table, decision, profile),
        probability=archetype_probability(run.archetype, profile),
    )
    return ScenarioArchetype(
        scenario=scenario,
        narrative=_narrative(run.archetype, templates, milestones, fields),
        supporting_evidence=_evidence(run, representative, factors),
        pattern_confidence=run.confidence_score,
        dominant_pattern=dominant,
    )


def convert_to_archetypes(
    simulation_runs: Sequence[SimulationRun],
    decision: Decision,
    profile: UserProfile,
    world_state: WorldState | None = None,
) -> List[ScenarioArchetype]:
    """Build one scenario archetype per simulation run, ranked by pattern confidence.

    The ranking is stable, so archetypes with equal confidence keep the order
    of the runs they came from. When a world snapshot is supplied its
    economic climate leads the evidence list.
    """
    factors = critical_factors(profile, decision)
    if world_state is not None:
        factors = [f"Economic climate is {world_state.economic_climate.value}"] + factors[1:]
    results = [_convert_run(run, decision, profile, factors) for run in simulation_runs]
    results.sort(key=lambda a: -a.pattern_confidence)
    return results
