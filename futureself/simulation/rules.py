from __future__ import annotations

"""
Causal rule engine for the Future Self simulator.

Rules map weighted conditions over the profile, decision, world state and
current metrics onto metric effects. A rule fires on partial credit: the
satisfied conditions must carry at least 70% of the rule's resolvable
condition weight. Fired effects are scaled by the rule's confidence and the
archetype multiplier, their contribution fades with the effect's duration
class, and metrics are clamped to [0, 100] once all rules for a horizon have
run. The library is static and shared read-only by every sample.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from futureself.models.domain import (
    Archetype,
    CausalRule,
    ConditionField,
    Decision,
    DecisionCategory,
    EconomicClimate,
    EffectDuration,
    EffectKind,
    Horizon,
    LifecycleStage,
    LifeMetrics,
    METRIC_MAX,
    METRIC_MIN,
    METRICS,
    MetricName,
    Operator,
    RuleCondition,
    RuleEffect,
    RuleTimeframe,
    TrendDirection,
    Urgency,
    UserProfile,
    WorldState,
)

logger = logging.getLogger(__name__)

FIRING_THRESHOLD = 0.7
_EPSILON = 1e-9

METRIC_INDEX: Dict[MetricName, int] = {m: i for i, m in enumerate(METRICS)}

TEMPORAL_DECAY: Dict[EffectDuration, Dict[Horizon, float]] = {
    EffectDuration.PERMANENT: {
        Horizon.YEAR_1: 1.0,
        Horizon.YEAR_5: 1.0,
        Horizon.YEAR_10: 1.0,
        Horizon.YEAR_15: 1.0,
    },
    EffectDuration.TEMPORARY: {
        Horizon.YEAR_1: 1.0,
        Horizon.YEAR_5: 0.3,
        Horizon.YEAR_10: 0.1,
        Horizon.YEAR_15: 0.0,
    },
    EffectDuration.DECAYING: {
        Horizon.YEAR_1: 1.0,
        Horizon.YEAR_5: 0.7,
        Horizon.YEAR_10: 0.4,
        Horizon.YEAR_15: 0.2,
    },
}


@dataclass(frozen=True)
class RuleContext:
    """Everything a condition can read.

    `world` and `metrics` are optional: explanation requests may come without
    a metric snapshot, and conditions over absent sources are unresolvable
    rather than false. `metrics` is the live canonical-order vector while a
    horizon is being applied, so later rules see earlier rules' effects.
    """

    decision: Decision
    profile: UserProfile
    world: Optional[WorldState] = None
    metrics: Optional[np.ndarray] = None


def _from_world(read: Callable[[WorldState], Any]) -> Callable[[RuleContext], Any]:
    return lambda ctx: None if ctx.world is None else read(ctx.world)


def _from_metrics(metric: MetricName) -> Callable[[RuleContext], Any]:
    index = METRIC_INDEX[metric]
    return lambda ctx: None if ctx.metrics is None else float(ctx.metrics[index])


def _industry_field(name: str) -> Callable[[RuleContext], Any]:
    def read(world: WorldState) -> Any:
        trend = world.industry_trend
        return None if trend is None else getattr(trend, name)

    return _from_world(read)


_ACCESSORS: Dict[ConditionField, Callable[[RuleContext], Any]] = {
    ConditionField.AGE: lambda ctx: ctx.profile.age,
    ConditionField.OPENNESS: lambda ctx: ctx.profile.big_five.openness,
    ConditionField.CONSCIENTIOUSNESS: lambda ctx: ctx.profile.big_five.conscientiousness,
    ConditionField.EXTRAVERSION: lambda ctx: ctx.profile.big_five.extraversion,
    ConditionField.AGREEABLENESS: lambda ctx: ctx.profile.big_five.agreeableness,
    ConditionField.NEUROTICISM: lambda ctx: ctx.profile.big_five.neuroticism,
    ConditionField.DECISION_STYLE: lambda ctx: ctx.profile.decision_style,
    ConditionField.PROFILE_VALUES: lambda ctx: ctx.profile.values,
    ConditionField.CATEGORY: lambda ctx: ctx.decision.category,
    ConditionField.URGENCY: lambda ctx: ctx.decision.urgency,
    ConditionField.DECISION_TEXT: lambda ctx: ctx.decision.text,
    ConditionField.ECONOMIC_CLIMATE: _from_world(lambda w: w.economic_climate),
    ConditionField.LIFECYCLE_STAGE: _from_world(lambda w: w.lifecycle_stage),
    ConditionField.OPTIMAL_TIMING: _from_world(lambda w: w.timing.optimal_timing),
    ConditionField.MAX_DISRUPTION_SEVERITY: _from_world(lambda w: w.max_disruption_severity),
    ConditionField.INDUSTRY_DIRECTION: _industry_field("direction"),
    ConditionField.INDUSTRY_THREAT: _industry_field("threat_level"),
    ConditionField.FINANCIAL: _from_metrics(MetricName.FINANCIAL),
    ConditionField.HAPPINESS: _from_metrics(MetricName.HAPPINESS),
    ConditionField.CAREER: _from_metrics(MetricName.CAREER),
    ConditionField.RELATIONSHIPS: _from_metrics(MetricName.RELATIONSHIPS),
    ConditionField.HEALTH: _from_metrics(MetricName.HEALTH),
}


def resolve_field(field: ConditionField, ctx: RuleContext) -> Any:
    """Read a condition field from the context; None when its source is absent."""
    return _ACCESSORS[field](ctx)


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def evaluate_condition(condition: RuleCondition, ctx: RuleContext) -> Optional[bool]:
    """Test one condition; returns None when the field cannot be resolved.

    Numeric operators are false for non-numeric values. `contains` is a
    case-insensitive substring test on text and an any-item test on lists.
    """
    actual = resolve_field(condition.field, ctx)
    if actual is None:
        return None
    expected = condition.value
    op = condition.operator
    if op == Operator.EQUALS:
        return _plain(actual) == _plain(expected)
    if op == Operator.GREATER_THAN:
        return _is_number(actual) and actual > float(expected)
    if op == Operator.LESS_THAN:
        return _is_number(actual) and actual < float(expected)
    if op == Operator.CONTAINS:
        needle = str(_plain(expected)).lower()
        if isinstance(actual, (list, tuple)):
            return any(needle in str(_plain(item)).lower() for item in actual)
        return needle in str(_plain(actual)).lower()
    if op == Operator.IN_RANGE:
        low, high = expected
        return _is_number(actual) and float(low) <= actual <= float(high)
    return False


def match_ratio(rule: CausalRule, ctx: RuleContext) -> Optional[float]:
    """Share of resolvable condition weight that is satisfied.

    Conditions whose field cannot be resolved are left out of both the
    numerator and the denominator. Returns None when no condition resolves.
    """
    total = 0.0
    matched = 0.0
    for condition in rule.conditions:
        outcome = evaluate_condition(condition, ctx)
        if outcome is None:
            continue
        total += condition.weight
        if outcome:
            matched += condition.weight
    if total <= 0:
        return None
    return matched / total


def rule_fires(rule: CausalRule, ctx: RuleContext, threshold: float = FIRING_THRESHOLD) -> bool:
    """True when the matched weight reaches `threshold` of the resolvable weight."""
    ratio = match_ratio(rule, ctx)
    return ratio is not None and ratio + _EPSILON >= threshold


def applies_at(rule: CausalRule, horizon: Horizon) -> bool:
    """A rule acts only once its timeframe has been reached at `horizon`."""
    return rule.timeframe.order <= horizon.rule_order


def effect_factor(rule: CausalRule, effect: RuleEffect, archetype: Archetype) -> float:
    return effect.magnitude * rule.multiplier(archetype) * (rule.confidence / 100.0)


def effect_contribution(
    effect: RuleEffect,
    factor: float,
    current_value: float,
    horizon: Horizon,
) -> float:
    """Change an effect makes to a metric at a horizon, after temporal decay.

    Additive effects contribute the factor itself, multiplicative effects the
    difference from scaling the current value, and replacement effects the
    difference from overwriting it. The raw change is then scaled by the
    duration's decay weight for the horizon, so temporary effects contribute
    nothing at year15 while permanent effects never fade.
    """
    if effect.kind == EffectKind.ADDITIVE:
        raw = factor
    elif effect.kind == EffectKind.MULTIPLICATIVE:
        raw = current_value * factor - current_value
    else:
        raw = factor - current_value
    return raw * TEMPORAL_DECAY[effect.duration][horizon]


def _strength_label(multiplier: float) -> str:
    """Word used by `explain` for how hard an archetype leans on a rule."""
    if multiplier > 1.0:
        return "strongly"
    if multiplier < 0.8:
        return "weakly"
    return "moderately"


class CausalRuleEngine:
    """Evaluates the rule library against one simulation context.

    The engine holds only its read-only rule list, so a single instance can be
    shared across threads or pickled into worker processes.
    """

    def __init__(self, rules: Sequence[CausalRule] | None = None, threshold: float = FIRING_THRESHOLD) -> None:
        self.rules: Tuple[CausalRule, ...] = tuple(RULE_LIBRARY if rules is None else rules)
        self.threshold = threshold

    def fired_rules(self, ctx: RuleContext) -> List[CausalRule]:
        return [rule for rule in self.rules if rule_fires(rule, ctx, self.threshold)]

    def apply_array(
        self,
        decision: Decision,
        profile: UserProfile,
        world_state: WorldState,
        archetype: Archetype,
        values: np.ndarray,
        horizon: Horizon,
    ) -> np.ndarray:
        """Vector form of `apply` used by the sampler's inner loop."""
        current = np.array(values, dtype=float)
        ctx = RuleContext(decision=decision, profile=profile, world=world_state, metrics=current)
        for rule in self.rules:
            if not applies_at(rule, horizon) or not rule_fires(rule, ctx, self.threshold):
                continue
            for effect in rule.effects:
                index = METRIC_INDEX[effect.target]
                factor = effect_factor(rule, effect, archetype)
                current[index] += effect_contribution(effect, factor, current[index], horizon)
        return np.clip(current, METRIC_MIN, METRIC_MAX)

    def apply(
        self,
        decision: Decision,
        profile: UserProfile,
        world_state: WorldState,
        archetype: Archetype,
        current_metrics: LifeMetrics,
        horizon: Horizon,
    ) -> LifeMetrics:
        """Advance metrics through every rule that fires and applies at the horizon.

        Rules run in library order against the running metrics, so a rule
        conditioned on a metric sees the effects of rules before it. Each
        effect's strength is its magnitude times the archetype multiplier
        times the rule confidence, faded by its duration class; every metric
        is clamped to [0, 100] once all rules have run.
        """
        updated = self.apply_array(
            decision, profile, world_state, archetype, current_metrics.as_array(), horizon
        )
        return LifeMetrics.from_array(updated)

    def explain(
        self,
        decision: Decision,
        profile: UserProfile,
        world_state: WorldState | None,
        archetype: Archetype,
        current_metrics: LifeMetrics | None = None,
    ) -> List[str]:
        """Describe which rules fire for this context and how strongly."""
        ctx = RuleContext(
            decision=decision,
            profile=profile,
            world=world_state,
            metrics=None if current_metrics is None else current_metrics.as_array(),
        )
        explanations: List[str] = []
        for rule in self.fired_rules(ctx):
            strength = _strength_label(rule.multiplier(archetype))
            explanations.append(f"{rule.name} applies {strength} ({rule.confidence:.0f}% confidence)")
        logger.debug("%d of %d rules fire for %s", len(explanations), len(self.rules), archetype.value)
        return explanations


def _cond(field: ConditionField, operator: Operator, value: Any, weight: float) -> RuleCondition:
    return RuleCondition(field=field, operator=operator, value=value, weight=weight)


def _effect(
    target: MetricName,
    magnitude: float,
    duration: EffectDuration = EffectDuration.PERMANENT,
    kind: EffectKind = EffectKind.ADDITIVE,
) -> RuleEffect:
    return RuleEffect(target=target, kind=kind, magnitude=magnitude, duration=duration)


def _mods(optimistic: float, realistic: float, cautious: float, adventurous: float) -> Dict[Archetype, float]:
    return {
        Archetype.OPTIMISTIC: optimistic,
        Archetype.REALISTIC: realistic,
        Archetype.CAUTIOUS: cautious,
        Archetype.ADVENTUROUS: adventurous,
    }


F = ConditionField
Op = Operator
M = MetricName
TEMP = EffectDuration.TEMPORARY
DECAY = EffectDuration.DECAYING

RULE_LIBRARY: Tuple[CausalRule, ...] = (
    # career
    CausalRule(
        id="job_change_network_reset",
        name="Job Change Network Disruption",
        conditions=[
            _cond(F.CATEGORY, Op.EQUALS, DecisionCategory.CAREER, 1.0),
            _cond(F.DECISION_TEXT, Op.CONTAINS, "new company", 0.8),
        ],
        effects=[_effect(M.CAREER, -15, TEMP)],
        timeframe=RuleTimeframe.IMMEDIATE,
        confidence=85,
        archetype_multipliers=_mods(0.7, 1.0, 1.3, 0.8),
    ),
    CausalRule(
        id="network_recovery_extravert",
        name="Extraverted Network Recovery",
        conditions=[
            _cond(F.EXTRAVERSION, Op.GREATER_THAN, 60, 1.0),
            _cond(F.CATEGORY, Op.EQUALS, DecisionCategory.CAREER, 0.6),
        ],
        effects=[_effect(M.CAREER, 25), _effect(M.HAPPINESS, 10)],
        timeframe=RuleTimeframe.SHORT_TERM,
        confidence=75,
        archetype_multipliers=_mods(1.2, 1.0, 0.9, 1.1),
    ),
    CausalRule(
        id="career_transition_growth",
        name="Career Transition Skill Growth",
        conditions=[_cond(F.CATEGORY, Op.EQUALS, DecisionCategory.CAREER, 1.0)],
        effects=[
            _effect(M.CAREER, 12),
            _effect(M.FINANCIAL, 6),
            _effect(M.HEALTH, -6, TEMP),
            _effect(M.RELATIONSHIPS, -3, TEMP),
        ],
        timeframe=RuleTimeframe.SHORT_TERM,
        confidence=80,
        archetype_multipliers=_mods(1.2, 1.0, 0.8, 1.3),
    ),
    CausalRule(
        id="urgent_career_pressure",
        name="Urgent Career Move Pressure",
        conditions=[
            _cond(F.CATEGORY, Op.EQUALS, DecisionCategory.CAREER, 0.8),
            _cond(F.URGENCY, Op.EQUALS, Urgency.HIGH, 1.0),
        ],
        effects=[_effect(M.HEALTH, -8, TEMP), _effect(M.CAREER, 8, DECAY)],
        timeframe=RuleTimeframe.IMMEDIATE,
        confidence=70,
        archetype_multipliers=_mods(0.8, 1.0, 1.3, 0.9),
    ),
    CausalRule(
        id="declining_industry_squeeze",
        name="Declining Industry Squeeze",
        conditions=[
            _cond(F.INDUSTRY_DIRECTION, Op.EQUALS, TrendDirection.DECLINING, 1.0),
            _cond(F.CATEGORY, Op.EQUALS, DecisionCategory.CAREER, 0.5),
        ],
        effects=[_effect(M.CAREER, -12, DECAY), _effect(M.FINANCIAL, -6, DECAY)],
        timeframe=RuleTimeframe.MEDIUM_TERM,
        confidence=70,
        archetype_multipliers=_mods(0.7, 1.0, 1.3, 0.8),
    ),
    CausalRule(
        id="relocation_family_stress",
        name="Relocation Family Impact",
        conditions=[
            _cond(F.DECISION_TEXT, Op.CONTAINS, "move", 0.9),
            _cond(F.AGE, Op.GREATER_THAN, 30, 0.7),
            _cond(F.LIFECYCLE_STAGE, Op.EQUALS, LifecycleStage.ESTABLISHING, 0.8),
        ],
        effects=[_effect(M.RELATIONSHIPS, -20, TEMP), _effect(M.HEALTH, -10, TEMP)],
        timeframe=RuleTimeframe.IMMEDIATE,
        confidence=80,
        archetype_multipliers=_mods(0.6, 1.0, 1.4, 0.8),
    ),
    # financial
    CausalRule(
        id="high_risk_investment_stress",
        name="High Risk Investment Psychological Impact",
        conditions=[
            _cond(F.CATEGORY, Op.EQUALS, DecisionCategory.FINANCIAL, 1.0),
            _cond(F.DECISION_TEXT, Op.CONTAINS, "invest", 0.8),
            _cond(F.NEUROTICISM, Op.GREATER_THAN, 60, 0.9),
        ],
        effects=[_effect(M.HEALTH, -15, DECAY), _effect(M.HAPPINESS, -10, TEMP)],
        timeframe=RuleTimeframe.IMMEDIATE,
        confidence=70,
        archetype_multipliers=_mods(0.5, 1.0, 1.5, 0.7),
    ),
    CausalRule(
        id="financial_discipline_dividend",
        name="Financial Discipline Dividend",
        conditions=[
            _cond(F.CATEGORY, Op.EQUALS, DecisionCategory.FINANCIAL, 1.0),
            _cond(F.CONSCIENTIOUSNESS, Op.GREATER_THAN, 60, 0.7),
        ],
        effects=[_effect(M.FINANCIAL, 15), _effect(M.HAPPINESS, 5)],
        timeframe=RuleTimeframe.SHORT_TERM,
        confidence=75,
        archetype_multipliers=_mods(1.2, 1.0, 1.2, 0.9),
    ),
    CausalRule(
        id="recession_anxiety",
        name="Volatile Economy Anxiety",
        conditions=[
            _cond(F.ECONOMIC_CLIMATE, Op.EQUALS, EconomicClimate.VOLATILE, 1.0),
            _cond(F.NEUROTICISM, Op.GREATER_THAN, 55, 0.6),
            _cond(F.CATEGORY, Op.EQUALS, DecisionCategory.FINANCIAL, 0.6),
        ],
        effects=[_effect(M.FINANCIAL, -8, DECAY), _effect(M.HAPPINESS, -5, TEMP)],
        timeframe=RuleTimeframe.IMMEDIATE,
        confidence=65,
        archetype_multipliers=_mods(0.6, 1.0, 1.4, 0.8),
    ),
    # lifestyle
    CausalRule(
        id="remote_work_productivity",
        name="Remote Work Productivity Impact",
        conditions=[
            _cond(F.DECISION_TEXT, Op.CONTAINS, "remote", 0.9),
            _cond(F.CONSCIENTIOUSNESS, Op.GREATER_THAN, 70, 0.8),
        ],
        effects=[_effect(M.CAREER, 15), _effect(M.HAPPINESS, 12)],
        timeframe=RuleTimeframe.SHORT_TERM,
        confidence=75,
        archetype_multipliers=_mods(1.1, 1.0, 1.2, 0.9),
    ),
    CausalRule(
        id="lifestyle_rebalance",
        name="Lifestyle Rebalance",
        conditions=[_cond(F.CATEGORY, Op.EQUALS, DecisionCategory.LIFESTYLE, 1.0)],
        effects=[
            _effect(M.HAPPINESS, 12, DECAY),
            _effect(M.HEALTH, 10),
            _effect(M.FINANCIAL, -8, TEMP),
        ],
        timeframe=RuleTimeframe.IMMEDIATE,
        confidence=70,
        archetype_multipliers=_mods(1.2, 1.0, 0.9, 1.2),
    ),
    # relationships
    CausalRule(
        id="marriage_stability_boost",
        name="Marriage Psychological Stability",
        conditions=[
            _cond(F.DECISION_TEXT, Op.CONTAINS, "marry", 1.0),
            _cond(F.AGE, Op.GREATER_THAN, 25, 0.6),
        ],
        effects=[_effect(M.HAPPINESS, 20), _effect(M.HEALTH, 15), _effect(M.FINANCIAL, 10)],
        timeframe=RuleTimeframe.SHORT_TERM,
        confidence=85,
        archetype_multipliers=_mods(1.3, 1.0, 1.1, 0.8),
    ),
    CausalRule(
        id="relationship_investment",
        name="Relationship Investment",
        conditions=[
            _cond(F.CATEGORY, Op.EQUALS, DecisionCategory.RELATIONSHIPS, 1.0),
            _cond(F.AGREEABLENESS, Op.GREATER_THAN, 55, 0.6),
        ],
        effects=[
            _effect(M.RELATIONSHIPS, 18),
            _effect(M.HAPPINESS, 10, DECAY),
            _effect(M.CAREER, -5, TEMP),
        ],
        timeframe=RuleTimeframe.SHORT_TERM,
        confidence=80,
        archetype_multipliers=_mods(1.2, 1.0, 1.0, 0.9),
    ),
    # health
    CausalRule(
        id="health_commitment",
        name="Health Commitment Payoff",
        conditions=[
            _cond(F.CATEGORY, Op.EQUALS, DecisionCategory.HEALTH, 1.0),
            _cond(F.CONSCIENTIOUSNESS, Op.GREATER_THAN, 50, 0.5),
        ],
        effects=[_effect(M.HEALTH, 20), _effect(M.HAPPINESS, 10), _effect(M.FINANCIAL, -4, TEMP)],
        timeframe=RuleTimeframe.SHORT_TERM,
        confidence=80,
        archetype_multipliers=_mods(1.2, 1.0, 1.1, 1.0),
    ),
    CausalRule(
        id="late_career_health_drag",
        name="Late Career Health Drag",
        conditions=[_cond(F.AGE, Op.GREATER_THAN, 50, 1.0)],
        effects=[_effect(M.HEALTH, -6)],
        timeframe=RuleTimeframe.LONG_TERM,
        confidence=75,
        archetype_multipliers=_mods(0.7, 1.0, 1.2, 0.9),
    ),
    # world context interactions
    CausalRule(
        id="tech_disruption_career_threat",
        name="Technology Disruption Career Risk",
        conditions=[
            _cond(F.MAX_DISRUPTION_SEVERITY, Op.GREATER_THAN, 70, 1.0),
            _cond(F.AGE, Op.GREATER_THAN, 40, 0.7),
            _cond(F.OPENNESS, Op.LESS_THAN, 50, 0.8),
        ],
        effects=[_effect(M.CAREER, -25)],
        timeframe=RuleTimeframe.MEDIUM_TERM,
        confidence=70,
        archetype_multipliers=_mods(0.6, 1.0, 1.4, 0.7),
    ),
    CausalRule(
        id="favorable_timing_tailwind",
        name="Favorable Timing Tailwind",
        conditions=[_cond(F.OPTIMAL_TIMING, Op.GREATER_THAN, 70, 1.0)],
        effects=[_effect(M.CAREER, 6, DECAY), _effect(M.FINANCIAL, 6, DECAY)],
        timeframe=RuleTimeframe.IMMEDIATE,
        confidence=65,
        archetype_multipliers=_mods(1.2, 1.0, 0.9, 1.1),
    ),
    CausalRule(
        id="open_mind_adaptation",
        name="Open-Minded Adaptation to Disruption",
        conditions=[
            _cond(F.OPENNESS, Op.GREATER_THAN, 70, 1.0),
            _cond(F.MAX_DISRUPTION_SEVERITY, Op.GREATER_THAN, 70, 0.6),
        ],
        effects=[_effect(M.CAREER, 10), _effect(M.FINANCIAL, 5)],
        timeframe=RuleTimeframe.LONG_TERM,
        confidence=65,
        archetype_multipliers=_mods(1.2, 1.0, 0.8, 1.3),
    ),
    # compound
    CausalRule(
        id="career_success_compound",
        name="Career Success Compound Effects",
        conditions=[_cond(F.CAREER, Op.GREATER_THAN, 80, 1.0)],
        effects=[
            _effect(M.FINANCIAL, 1.3, kind=EffectKind.MULTIPLICATIVE),
            _effect(M.HAPPINESS, 10),
        ],
        timeframe=RuleTimeframe.SHORT_TERM,
        confidence=85,
        archetype_multipliers=_mods(1.2, 1.0, 1.1, 1.0),
    ),
)
