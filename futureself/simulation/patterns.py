from __future__ import annotations

"""
Pattern detection over an archetype's sampled trajectories.

Every trajectory is classified into exactly one shape by its total growth,
volatility and the split between early and late growth. Shapes covering at
least the dominance threshold of samples become dominant patterns; external
events realized in fewer than the outlier threshold of samples are reported
as outliers with mitigation advice. A blended confidence score summarizes how
concentrated and consistent the samples are.
"""

import logging
from collections import Counter
from typing import Dict, List, Sequence, Tuple

import numpy as np

from futureself.models.archetypes import profile_for
from futureself.models.domain import (
    Archetype,
    EventKind,
    ExternalEvent,
    Horizon,
    LifeTrajectory,
    METRICS,
    MetricName,
    OutlierEvent,
    PatternKind,
    PatternSignature,
)

logger = logging.getLogger(__name__)

DOMINANCE_THRESHOLD = 0.15
OUTLIER_THRESHOLD = 0.10
_EPSILON = 1e-9

_TYPICAL_TIMELINES: Dict[PatternKind, str] = {
    PatternKind.STEADY_GROWTH: "Gradual improvement across all fifteen years",
    PatternKind.VOLATILE_HIGH_REWARD: "Sharp swings with the biggest gains between years 5 and 10",
    PatternKind.STABLE_PLATEAU: "Little movement after the first year",
    PatternKind.DECLINE_RECOVERY: "A dip by year 5 followed by recovery through year 15",
    PatternKind.BREAKTHROUGH_MOMENT: "One pivotal stretch that redirects the path",
}

_GENERIC_MITIGATION: Tuple[str, ...] = (
    "Keep an emergency fund covering six months of expenses",
    "Maintain a professional network you can lean on",
)

_KIND_MITIGATION: Dict[EventKind, Tuple[str, ...]] = {
    EventKind.ECONOMIC_RECESSION: ("Diversify income sources", "Keep skills current for a tighter job market"),
    EventKind.TECHNOLOGY_DISRUPTION: ("Invest in continuous learning", "Build skills that complement automation"),
    EventKind.PARTNERSHIP: ("Discuss shared goals and finances early",),
    EventKind.FIRST_CHILD: ("Plan for childcare costs and parental leave",),
    EventKind.CAREER_OPPORTUNITY: ("Keep your portfolio and references ready to move quickly",),
    EventKind.HEALTH_CHALLENGE: ("Maintain health insurance and regular checkups", "Build sustainable exercise habits"),
}


def trajectory_shape(trajectory: LifeTrajectory) -> Tuple[float, float, float, float]:
    """Return (growth, volatility, early growth, late growth) on metric totals.

    Early growth spans year1 to year5 and late growth year5 to year15.
    """
    growth = trajectory.growth()
    volatility = trajectory.volatility()
    early = trajectory.growth(Horizon.YEAR_1, Horizon.YEAR_5)
    late = trajectory.growth(Horizon.YEAR_5, Horizon.YEAR_15)
    return growth, volatility, early, late


def classify_trajectory(trajectory: LifeTrajectory) -> PatternKind:
    """Assign a trajectory to exactly one pattern.

    Checks run in order and the first match wins; anything that matches none
    of the specific shapes is counted as a breakthrough moment.
    """
    growth, volatility, early, late = trajectory_shape(trajectory)
    if growth > 30 and volatility < 15:
        return PatternKind.STEADY_GROWTH
    if growth > 20 and volatility > 25:
        return PatternKind.VOLATILE_HIGH_REWARD
    if abs(growth) < 10 and volatility < 10:
        return PatternKind.STABLE_PLATEAU
    if early < -10 and late > 0:
        return PatternKind.DECLINE_RECOVERY
    return PatternKind.BREAKTHROUGH_MOMENT


def _affected_metrics(members: Sequence[LifeTrajectory]) -> List[MetricName]:
    changes = np.array(
        [t.at(Horizon.YEAR_15).as_array() - t.at(Horizon.YEAR_1).as_array() for t in members]
    )
    mean_abs = np.abs(changes).mean(axis=0)
    order = np.argsort(-mean_abs, kind="stable")
    affected = [METRICS[i] for i in order if mean_abs[i] > 5.0]
    return affected or [METRICS[int(order[0])]]


def detect_dominant_patterns(
    trajectories: Sequence[LifeTrajectory],
    archetype: Archetype,
    threshold: float = DOMINANCE_THRESHOLD,
) -> List[PatternSignature]:
    """Find the trajectory shapes that cover at least `threshold` of the samples.

    A shape is dominant when its count divided by the sample count reaches the
    threshold (150 of 1000 qualifies, 149 does not). Signatures are sorted by
    probability, highest first, with ties kept in pattern declaration order.
    Descriptions come from the archetype's narrative table.
    """
    if not trajectories:
        return []
    n = len(trajectories)
    grouped: Dict[PatternKind, List[LifeTrajectory]] = {}
    for trajectory in trajectories:
        grouped.setdefault(classify_trajectory(trajectory), []).append(trajectory)

    descriptions = profile_for(archetype).templates.pattern_descriptions
    signatures: List[PatternSignature] = []
    for kind in PatternKind:
        members = grouped.get(kind, [])
        share = len(members) / n
        if not members or share + _EPSILON < threshold:
            continue
        signatures.append(
            PatternSignature(
                kind=kind,
                affected_metrics=_affected_metrics(members),
                probability=share,
                description=descriptions.get(kind, kind.value.replace("_", " ")),
                typical_timeline=_TYPICAL_TIMELINES[kind],
            )
        )
    signatures.sort(key=lambda s: -s.probability)
    logger.debug(
        "%s: %d dominant patterns from %d samples", archetype.value, len(signatures), n
    )
    return signatures


def _mitigation_for(kind: EventKind) -> List[str]:
    return list(_GENERIC_MITIGATION) + list(_KIND_MITIGATION.get(kind, ()))


def identify_outliers(
    trajectories: Sequence[LifeTrajectory],
    threshold: float = OUTLIER_THRESHOLD,
) -> List[OutlierEvent]:
    """Report external events realized in fewer than `threshold` of samples.

    An event counts once per trajectory no matter how many horizons it
    recurred at. Outliers are listed rarest first.
    """
    if not trajectories:
        return []
    n = len(trajectories)
    counts: Counter = Counter()
    first_seen: Dict[str, ExternalEvent] = {}
    for trajectory in trajectories:
        for event in trajectory.external_events:
            first_seen.setdefault(event.label, event)
        counts.update({event.label for event in trajectory.external_events})

    outliers: List[OutlierEvent] = []
    for label, event in first_seen.items():
        frequency = counts[label] / n
        if frequency >= threshold:
            continue
        outliers.append(
            OutlierEvent(
                label=label,
                kind=event.kind,
                probability=frequency,
                potential_impact=event.impact_summary,
                risk_mitigation=_mitigation_for(event.kind),
            )
        )
    outliers.sort(key=lambda o: o.probability)
    return outliers


def confidence_score(
    trajectories: Sequence[LifeTrajectory],
    patterns: Sequence[PatternSignature],
) -> int:
    """Blend pattern concentration and end-state consistency into a 0-100 score.

    Concentration is the mean probability of the dominant patterns (zero when
    there are none) and carries 60% of the weight. Consistency is one minus the
    mean absolute deviation of the year15 metrics from their cross-sample
    means over 50, floored at zero, and is 1.0 when fewer than two samples
    exist. Deviations are taken per metric, so opposite moves in different
    metrics do not cancel.
    """
    concentration = float(np.mean([p.probability for p in patterns])) if patterns else 0.0
    if len(trajectories) < 2:
        consistency = 1.0
    else:
        finals = np.array([t.at(Horizon.YEAR_15).as_array() for t in trajectories])
        deviation = float(np.mean(np.abs(finals - finals.mean(axis=0)).mean(axis=1)))
        consistency = max(0.0, 1.0 - deviation / 50.0)
    score = round(100 * (0.6 * concentration + 0.4 * consistency))
    return int(min(100, max(0, score)))
