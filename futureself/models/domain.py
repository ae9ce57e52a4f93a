from __future__ import annotations

"""Pydantic models for the Future Self simulator.

Defines the simulation inputs (user profile, decision), the world snapshot and
causal rule schema consumed by the engine, the per-sample trajectory records,
and the scenario archetypes emitted to hosts. Closed sets (metrics, horizons,
archetypes, categories, event kinds) are string enums so payloads serialize
to plain JSON while the engine works with typed tags.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class MetricName(str, Enum):
    """The five tracked life metrics, in canonical order."""

    FINANCIAL = "financial"
    HAPPINESS = "happiness"
    CAREER = "career"
    RELATIONSHIPS = "relationships"
    HEALTH = "health"


METRICS: Tuple[MetricName, ...] = tuple(MetricName)
METRIC_MIN = 0.0
METRIC_MAX = 100.0


class Horizon(str, Enum):
    """Future checkpoints at which a trajectory records its metrics."""

    YEAR_1 = "year1"
    YEAR_5 = "year5"
    YEAR_10 = "year10"
    YEAR_15 = "year15"

    @property
    def years(self) -> int:
        return _HORIZON_YEARS[self]

    @property
    def rule_order(self) -> int:
        """Position on the rule timeframe scale; year10 and year15 share the last slot."""
        return _HORIZON_RULE_ORDER[self]


HORIZONS: Tuple[Horizon, ...] = tuple(Horizon)
_HORIZON_YEARS = {Horizon.YEAR_1: 1, Horizon.YEAR_5: 5, Horizon.YEAR_10: 10, Horizon.YEAR_15: 15}
_HORIZON_RULE_ORDER = {Horizon.YEAR_1: 1, Horizon.YEAR_5: 3, Horizon.YEAR_10: 4, Horizon.YEAR_15: 4}


class Archetype(str, Enum):
    """Personality lens through which a decision's outcome is simulated."""

    OPTIMISTIC = "optimistic"
    REALISTIC = "realistic"
    CAUTIOUS = "cautious"
    ADVENTUROUS = "adventurous"


ARCHETYPES: Tuple[Archetype, ...] = tuple(Archetype)


class DecisionCategory(str, Enum):
    CAREER = "career"
    FINANCIAL = "financial"
    RELATIONSHIPS = "relationships"
    LIFESTYLE = "lifestyle"
    HEALTH = "health"


class Urgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DecisionStyle(str, Enum):
    ANALYTICAL = "analytical"
    INTUITIVE = "intuitive"
    BALANCED = "balanced"
    SPONTANEOUS = "spontaneous"


class LifeMetrics(BaseModel):
    """Five bounded life metrics, each in [0, 100].

    Construction validates the range and rejects out-of-bounds input instead of
    clamping it, so upstream bugs surface immediately. Engine arithmetic runs
    on numpy vectors in canonical metric order and comes back through
    `from_array`, which is the single place derived values are clamped.
    """

    model_config = ConfigDict(frozen=True)

    financial: float = Field(ge=METRIC_MIN, le=METRIC_MAX)
    happiness: float = Field(ge=METRIC_MIN, le=METRIC_MAX)
    career: float = Field(ge=METRIC_MIN, le=METRIC_MAX)
    relationships: float = Field(ge=METRIC_MIN, le=METRIC_MAX)
    health: float = Field(ge=METRIC_MIN, le=METRIC_MAX)

    @classmethod
    def uniform(cls, value: float = 50.0) -> "LifeMetrics":
        return cls(**{m.value: value for m in METRICS})

    @classmethod
    def from_array(cls, values: np.ndarray) -> "LifeMetrics":
        """Build metrics from a canonical-order vector, clamping to [0, 100]."""
        clipped = np.clip(np.asarray(values, dtype=float), METRIC_MIN, METRIC_MAX)
        return cls(**{m.value: float(v) for m, v in zip(METRICS, clipped)})

    def as_array(self) -> np.ndarray:
        return np.array([getattr(self, m.value) for m in METRICS], dtype=float)

    def get(self, metric: MetricName) -> float:
        return getattr(self, metric.value)

    def total(self) -> float:
        return float(sum(getattr(self, m.value) for m in METRICS))


class BigFiveScores(BaseModel):
    """Big Five personality traits on a 0-100 scale.

    Every trait defaults to the neutral midpoint so partially completed
    assessments still produce a usable profile.
    """

    model_config = ConfigDict(frozen=True)

    openness: float = Field(50.0, ge=0, le=100)
    conscientiousness: float = Field(50.0, ge=0, le=100)
    extraversion: float = Field(50.0, ge=0, le=100)
    agreeableness: float = Field(50.0, ge=0, le=100)
    neuroticism: float = Field(50.0, ge=0, le=100)


class UserProfile(BaseModel):
    """Psychological profile of the person making the decision.

    The profile is an immutable input to a simulation run: the engine reads
    age and traits to shape baselines, rule conditions, world personalization
    and archetype probabilities, but never writes back to it.
    """

    model_config = ConfigDict(frozen=True)

    age: int = Field(gt=0, le=120)
    occupation: str = ""
    big_five: BigFiveScores = BigFiveScores()
    values: List[str] = Field(default_factory=list)
    goals: List[str] = Field(default_factory=list)
    fears: List[str] = Field(default_factory=list)
    decision_style: DecisionStyle = DecisionStyle.BALANCED


class Decision(BaseModel):
    """The pending life decision being simulated.

    Category is a closed enum; unknown category strings are folded into
    `lifestyle` rather than rejected, which routes them to the generic rule set.
    Title and description are required because industry inference and text
    conditions read them.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    title: str = Field(min_length=1)
    description: str
    category: DecisionCategory = DecisionCategory.LIFESTYLE
    urgency: Urgency = Urgency.MEDIUM
    timeline: str = ""
    constraints: List[str] = Field(default_factory=list)
    alternatives: List[str] = Field(default_factory=list)

    @field_validator("category", mode="before")
    @classmethod
    def fallback_category(cls, v: Any) -> Any:
        """Map unrecognized category strings onto the lifestyle category."""
        if isinstance(v, DecisionCategory):
            return v
        if v is None:
            return DecisionCategory.LIFESTYLE
        try:
            return DecisionCategory(str(v).strip().lower())
        except ValueError:
            return DecisionCategory.LIFESTYLE

    @property
    def text(self) -> str:
        return f"{self.title} {self.description}".lower()


class EconomicClimate(str, Enum):
    RECESSION = "recession"
    GROWTH = "growth"
    STABLE = "stable"
    VOLATILE = "volatile"


class TrendDirection(str, Enum):
    RISING = "rising"
    DECLINING = "declining"
    MATURE = "mature"
    DISRUPTED = "disrupted"


class LifecycleStage(str, Enum):
    EXPLORING = "exploring"
    ESTABLISHING = "establishing"
    ADVANCING = "advancing"
    TRANSITIONING = "transitioning"
    OPTIMIZING = "optimizing"


class DisruptionOnset(str, Enum):
    IMMEDIATE = "immediate"
    TWO_TO_THREE_YEARS = "2-3years"
    FIVE_TO_SEVEN_YEARS = "5-7years"
    TEN_PLUS_YEARS = "10+years"


class IndustryTrend(BaseModel):
    """Direction and outlook for one industry in the world snapshot."""

    direction: TrendDirection
    confidence: float = Field(ge=0, le=100)
    timeframe: str
    key_drivers: List[str] = Field(default_factory=list)
    threat_level: float = Field(ge=0, le=100)
    opportunity_score: float = Field(ge=0, le=100)


class TechDisruption(BaseModel):
    """A technology shift with its severity, reach, and onset window."""

    technology: str
    industries_affected: List[str] = Field(default_factory=list)
    onset: DisruptionOnset
    severity: float = Field(ge=0, le=100)
    new_opportunities: List[str] = Field(default_factory=list)

    @property
    def near_term(self) -> bool:
        return self.onset in (DisruptionOnset.IMMEDIATE, DisruptionOnset.TWO_TO_THREE_YEARS)


class SocialTrend(BaseModel):
    name: str
    relevance: float = Field(ge=0, le=100)
    impact_direction: str
    affected_demographics: List[str] = Field(default_factory=list)


class TimingWindow(BaseModel):
    """How favorable the present moment is for acting on the decision."""

    optimal_timing: float = Field(ge=0, le=100)
    deadline_pressure: float = Field(ge=0, le=100)
    market_cycle_position: str = "recovery"


class WorldState(BaseModel):
    """Point-in-time world snapshot personalized to a (profile, decision) pair.

    Built fresh by the world context builder for each simulation and never
    persisted. `industry` records which entry of `industry_trends` the decision
    was matched to so rule conditions can read that trend directly.
    """

    economic_climate: EconomicClimate
    industry: str
    industry_trends: Dict[str, IndustryTrend]
    technology_disruptions: List[TechDisruption] = Field(default_factory=list)
    social_trends: List[SocialTrend] = Field(default_factory=list)
    timing: TimingWindow
    lifecycle_stage: LifecycleStage = LifecycleStage.ESTABLISHING

    @property
    def industry_trend(self) -> Optional[IndustryTrend]:
        return self.industry_trends.get(self.industry)

    @property
    def max_disruption_severity(self) -> float:
        return max((d.severity for d in self.technology_disruptions), default=0.0)


class ConditionField(str, Enum):
    """Closed set of fields a rule condition may read.

    The prefix names the source: the profile, the decision, the world state,
    or the metrics as they stand while a horizon's rules are being applied.
    """

    AGE = "profile.age"
    OPENNESS = "profile.openness"
    CONSCIENTIOUSNESS = "profile.conscientiousness"
    EXTRAVERSION = "profile.extraversion"
    AGREEABLENESS = "profile.agreeableness"
    NEUROTICISM = "profile.neuroticism"
    DECISION_STYLE = "profile.decision_style"
    PROFILE_VALUES = "profile.values"
    CATEGORY = "decision.category"
    URGENCY = "decision.urgency"
    DECISION_TEXT = "decision.text"
    ECONOMIC_CLIMATE = "world.economic_climate"
    LIFECYCLE_STAGE = "world.lifecycle_stage"
    OPTIMAL_TIMING = "world.optimal_timing"
    MAX_DISRUPTION_SEVERITY = "world.max_disruption_severity"
    INDUSTRY_DIRECTION = "world.industry_direction"
    INDUSTRY_THREAT = "world.industry_threat"
    FINANCIAL = "metrics.financial"
    HAPPINESS = "metrics.happiness"
    CAREER = "metrics.career"
    RELATIONSHIPS = "metrics.relationships"
    HEALTH = "metrics.health"


class Operator(str, Enum):
    EQUALS = "equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    CONTAINS = "contains"
    IN_RANGE = "in_range"


class EffectKind(str, Enum):
    ADDITIVE = "additive"
    MULTIPLICATIVE = "multiplicative"
    REPLACEMENT = "replacement"


class EffectDuration(str, Enum):
    TEMPORARY = "temporary"
    PERMANENT = "permanent"
    DECAYING = "decaying"


class RuleTimeframe(str, Enum):
    IMMEDIATE = "immediate"
    SHORT_TERM = "short_term"
    MEDIUM_TERM = "medium_term"
    LONG_TERM = "long_term"

    @property
    def order(self) -> int:
        return _TIMEFRAME_ORDER[self]


_TIMEFRAME_ORDER = {
    RuleTimeframe.IMMEDIATE: 1,
    RuleTimeframe.SHORT_TERM: 2,
    RuleTimeframe.MEDIUM_TERM: 3,
    RuleTimeframe.LONG_TERM: 4,
}


class RuleCondition(BaseModel):
    """Single weighted test against one field of the rule context.

    Weights are relative: a rule fires on the share of total weight its
    satisfied conditions carry, so any positive scale works.
    """

    model_config = ConfigDict(frozen=True)

    field: ConditionField
    operator: Operator
    value: Any
    weight: float = Field(gt=0)

    @model_validator(mode="after")
    def check_range_value(self) -> "RuleCondition":
        if self.operator == Operator.IN_RANGE:
            if not isinstance(self.value, (list, tuple)) or len(self.value) != 2:
                raise ValueError("in_range conditions require a [min, max] pair")
        return self


class RuleEffect(BaseModel):
    model_config = ConfigDict(frozen=True)

    target: MetricName
    kind: EffectKind = EffectKind.ADDITIVE
    magnitude: float
    duration: EffectDuration = EffectDuration.PERMANENT


class CausalRule(BaseModel):
    """Weighted condition set mapped to metric effects.

    Rules are static configuration: the library is built once at import and
    read concurrently by every sample. Archetype multipliers scale effect
    strength per lens and default to 1.0 for archetypes not listed.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    conditions: List[RuleCondition] = Field(min_length=1)
    effects: List[RuleEffect] = Field(min_length=1)
    timeframe: RuleTimeframe
    confidence: float = Field(ge=0, le=100)
    archetype_multipliers: Dict[Archetype, float] = Field(default_factory=dict)

    def multiplier(self, archetype: Archetype) -> float:
        return self.archetype_multipliers.get(archetype, 1.0)


class TurningPointKind(str, Enum):
    CAREER_BREAKTHROUGH = "career_breakthrough"
    RELATIONSHIP_CHANGE = "relationship_change"
    HEALTH_CRISIS = "health_crisis"
    FINANCIAL_WINDFALL = "financial_windfall"
    EXTERNAL_SHOCK = "external_shock"


class EventKind(str, Enum):
    ECONOMIC_RECESSION = "economic_recession"
    TECHNOLOGY_DISRUPTION = "technology_disruption"
    PARTNERSHIP = "partnership"
    FIRST_CHILD = "first_child"
    CAREER_OPPORTUNITY = "career_opportunity"
    HEALTH_CHALLENGE = "health_challenge"


class ExternalEvent(BaseModel):
    """An external event realized during one sampled trajectory.

    `probability` is the trigger probability the event was drawn against, and
    `impacts` holds the typed per-metric deltas; `impact_summary` renders the
    same deltas as text for display.
    """

    model_config = ConfigDict(frozen=True)

    year: int
    kind: EventKind
    label: str
    probability: float = Field(ge=0, le=1)
    impacts: Dict[MetricName, float] = Field(default_factory=dict)
    impact_summary: str = ""

    @property
    def total_impact(self) -> float:
        return float(sum(abs(v) for v in self.impacts.values()))


class TurningPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    year: int
    kind: TurningPointKind
    description: str
    magnitude: float
    affected_metrics: List[MetricName] = Field(default_factory=list)


def _require_horizons(timeline: Dict[Horizon, LifeMetrics]) -> Dict[Horizon, LifeMetrics]:
    missing = [h.value for h in HORIZONS if h not in timeline]
    if missing:
        raise ValueError(f"timeline is missing horizons: {missing}")
    return timeline


class LifeTrajectory(BaseModel):
    """One sampled life path across all four horizons.

    Created once per Monte Carlo sample and never modified. Growth and
    volatility are computed on the sum of the five metrics at each horizon,
    which is the shared basis for plausibility scoring, pattern
    classification, and representative selection.
    """

    model_config = ConfigDict(frozen=True)

    timeline: Dict[Horizon, LifeMetrics]
    turning_points: List[TurningPoint] = Field(default_factory=list)
    external_events: List[ExternalEvent] = Field(default_factory=list)
    path_probability: float = Field(ge=0, le=1)
    sample_index: int = 0

    @field_validator("timeline")
    @classmethod
    def check_horizons(cls, v: Dict[Horizon, LifeMetrics]) -> Dict[Horizon, LifeMetrics]:
        return _require_horizons(v)

    def at(self, horizon: Horizon) -> LifeMetrics:
        return self.timeline[horizon]

    def growth(self, start: Horizon = Horizon.YEAR_1, end: Horizon = Horizon.YEAR_15) -> float:
        return self.timeline[end].total() - self.timeline[start].total()

    def volatility(self) -> float:
        """Population standard deviation of the per-horizon metric totals."""
        totals = np.array([self.timeline[h].total() for h in HORIZONS])
        return float(np.std(totals))


class PatternKind(str, Enum):
    STEADY_GROWTH = "steady_growth"
    VOLATILE_HIGH_REWARD = "volatile_high_reward"
    STABLE_PLATEAU = "stable_plateau"
    DECLINE_RECOVERY = "decline_recovery"
    BREAKTHROUGH_MOMENT = "breakthrough_moment"


class PatternSignature(BaseModel):
    """A trajectory shape observed across an archetype's samples."""

    kind: PatternKind
    affected_metrics: List[MetricName]
    probability: float = Field(ge=0, le=1)
    description: str
    typical_timeline: str


class OutlierEvent(BaseModel):
    """A rare external event seen in fewer than the outlier threshold of samples."""

    label: str
    kind: EventKind
    probability: float
    potential_impact: str
    risk_mitigation: List[str] = Field(default_factory=list)


class SimulationRun(BaseModel):
    """Aggregate of all samples for one archetype.

    Carries the raw trajectories alongside the dominant patterns, outliers,
    and the blended confidence score so the narrator can both pick a
    representative path and cite the evidence behind it.
    """

    archetype: Archetype
    trajectories: List[LifeTrajectory]
    dominant_patterns: List[PatternSignature] = Field(default_factory=list)
    outliers: List[OutlierEvent] = Field(default_factory=list)
    confidence_score: int = Field(ge=0, le=100)


class MetricImpact(BaseModel):
    change: float
    reasoning: str
    confidence: float = Field(ge=0, le=100)


class Scenario(BaseModel):
    """Externally visible outcome of one archetype.

    `timeline` keeps all four horizons of the representative trajectory;
    `impact` holds one entry per metric describing the year1 to year15 change.
    """

    id: str
    decision_id: str
    title: str
    description: str
    archetype: Archetype
    timeline: Dict[Horizon, LifeMetrics]
    impact: Dict[MetricName, MetricImpact]
    key_milestones: List[str]
    risks: List[str]
    opportunities: List[str]
    probability: float = Field(ge=0, le=100)

    @field_validator("timeline")
    @classmethod
    def check_horizons(cls, v: Dict[Horizon, LifeMetrics]) -> Dict[Horizon, LifeMetrics]:
        return _require_horizons(v)


class ArchetypeNarrative(BaseModel):
    archetype: Archetype
    storyline: str
    key_milestones: List[str]
    challenges_overcome: List[str]
    opportunities_seized: List[str]
    life_philosophy: str
    advice_themes: List[str]
    regrets_and_learnings: List[str]
    probability_explanation: str


class ScenarioArchetype(BaseModel):
    """Scenario plus narrative and the evidence that produced it."""

    scenario: Scenario
    narrative: ArchetypeNarrative
    supporting_evidence: List[str]
    pattern_confidence: int = Field(ge=0, le=100)
    dominant_pattern: Optional[PatternKind] = None


class SimulationSettings(BaseModel):
    """Knobs that shape a simulation call (sample counts, seed, thresholds).

    Settings can be overridden per request to trade accuracy for speed
    without touching process configuration.
    """

    samples_per_archetype: int = 250
    random_seed: Optional[int] = Field(None, ge=0)
    pattern_threshold: float = 0.15
    outlier_threshold: float = 0.10

    @field_validator("samples_per_archetype")
    @classmethod
    def check_samples(cls, v: int) -> int:
        """Reject empty runs; an archetype with no samples has no patterns to report."""
        if v <= 0:
            raise ValueError("samples_per_archetype must be positive")
        return v

    @field_validator("pattern_threshold", "outlier_threshold")
    @classmethod
    def check_fraction(cls, v: float) -> float:
        if not 0 < v <= 1:
            raise ValueError("thresholds must be within (0, 1]")
        return v


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RiskAssessment(BaseModel):
    scenario: str
    risk_level: RiskLevel
    reasoning: str


class MetricTradeoff(BaseModel):
    metric: MetricName
    best_scenario: str
    worst_scenario: str
    difference: float


class ScenarioComparison(BaseModel):
    """Side-by-side summary of several scenarios for the same decision."""

    summary: str
    best_for: Dict[MetricName, str]
    risk_analysis: List[RiskAssessment]
    tradeoffs: List[MetricTradeoff]
    recommendation: str


class TimelineHighlight(BaseModel):
    year: int
    milestone: str


class ScenarioInsights(BaseModel):
    key_strengths: List[str]
    main_concerns: List[str]
    timeline_highlights: List[TimelineHighlight]
    personal_fit: float = Field(ge=0, le=100)
    action_items: List[str]


class SimulationRequest(BaseModel):
    """Body of the simulate endpoint."""

    decision: Decision
    profile: UserProfile
    settings: Optional[SimulationSettings] = None


class ExplainRequest(BaseModel):
    decision: Decision
    profile: UserProfile
    archetype: Archetype = Archetype.REALISTIC


class FactorsRequest(BaseModel):
    decision: Decision
    profile: UserProfile


class CompareRequest(BaseModel):
    scenarios: List[Scenario] = Field(min_length=1)
    profile: Optional[UserProfile] = None
