from __future__ import annotations

"""
Public entry points: run the whole simulator or explain its rules.

Both accept either model instances or plain mappings; mappings are validated
and a failed validation surfaces as `InvalidInputError`.
"""

import logging
from typing import Any, List, Mapping, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from futureself.exceptions import InvalidInputError, SimulationIncomplete
from futureself.models.domain import (
    ARCHETYPES,
    Archetype,
    Decision,
    ScenarioArchetype,
    SimulationSettings,
    UserProfile,
    WorldState,
)
from futureself.simulation.engine import run_full_simulation
from futureself.simulation.narrator import convert_to_archetypes
from futureself.simulation.rules import CausalRuleEngine
from futureself.simulation.world_context import build_world_state

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _coerce(model: Type[ModelT], value: Any, name: str) -> ModelT:
    if isinstance(value, model):
        return value
    if not isinstance(value, Mapping):
        raise InvalidInputError(f"{name} must be a {model.__name__} or a mapping, got {type(value).__name__}")
    try:
        return model.model_validate(dict(value))
    except ValidationError as exc:
        raise InvalidInputError(f"invalid {name}: {exc}") from exc


def _coerce_inputs(decision: Any, profile: Any) -> Tuple[Decision, UserProfile]:
    return _coerce(Decision, decision, "decision"), _coerce(UserProfile, profile, "profile")


def simulate(
    decision: Decision | Mapping[str, Any],
    profile: UserProfile | Mapping[str, Any],
    settings: SimulationSettings | Mapping[str, Any] | None = None,
    parallel: bool = False,
    max_workers: int | None = None,
    executor: str = "process",
) -> List[ScenarioArchetype]:
    """Simulate a decision for a profile and return four scenario archetypes.

    Builds the personalized world snapshot once, samples every archetype
    through the trajectory sampler, and narrates the runs. The result holds
    exactly one entry per archetype, ranked by pattern confidence; on any
    failure the call raises instead of returning a partial list.
    """
    decision, profile = _coerce_inputs(decision, profile)
    if settings is not None:
        settings = _coerce(SimulationSettings, settings, "settings")
    settings = settings or SimulationSettings()

    world_state = build_world_state(profile, decision)
    runs = run_full_simulation(
        decision,
        profile,
        settings=settings,
        parallel=parallel,
        max_workers=max_workers,
        executor=executor,
        world_state=world_state,
    )
    archetypes = convert_to_archetypes(runs, decision, profile, world_state)
    if sorted(a.scenario.archetype for a in archetypes) != sorted(ARCHETYPES):
        raise SimulationIncomplete("simulation did not produce one scenario per archetype")
    logger.info(
        "Simulated %r for %d archetypes (%d samples each)",
        decision.title,
        len(archetypes),
        settings.samples_per_archetype,
    )
    return archetypes


def explain_rules(
    decision: Decision | Mapping[str, Any],
    profile: UserProfile | Mapping[str, Any],
    world_state: WorldState | None = None,
    archetype: Archetype = Archetype.REALISTIC,
) -> List[str]:
    """List the causal rules that fire for a decision and how strongly.

    Rules conditioned on life metrics are judged without them, since no
    metric snapshot exists before a simulation runs.
    """
    decision, profile = _coerce_inputs(decision, profile)
    world_state = world_state or build_world_state(profile, decision)
    return CausalRuleEngine().explain(decision, profile, world_state, archetype)
