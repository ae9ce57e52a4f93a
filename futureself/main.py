from __future__ import annotations

"""FastAPI surface for the Future Self simulator."""

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any, Callable, List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from futureself.config import FutureSelfConfig, configure_logging
from futureself.exceptions import InvalidInputError, SimulationUnavailable
from futureself.models.domain import (
    CompareRequest,
    ExplainRequest,
    FactorsRequest,
    ScenarioArchetype,
    ScenarioComparison,
    ScenarioInsights,
    SimulationRequest,
)
from futureself.simulation.comparison import compare_scenarios, scenario_insights
from futureself.simulation.pipeline import explain_rules, simulate
from futureself.simulation.world_context import critical_factors

config = FutureSelfConfig.from_env()
configure_logging(config.log_level)
logger = logging.getLogger(__name__)

_runner = ThreadPoolExecutor(max_workers=4, thread_name_prefix="simulate")

app = FastAPI(title="Future Self", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.api.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _run_with_timeout(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Run `func` on the worker pool and wait at most the configured timeout.

    Expiry raises `SimulationUnavailable`; the abandoned call finishes in the
    background and its result is discarded.
    """
    future = _runner.submit(func, *args, **kwargs)
    try:
        return future.result(timeout=config.execution.timeout_seconds)
    except FutureTimeout as exc:
        future.cancel()
        raise SimulationUnavailable(
            f"simulation did not finish within {config.execution.timeout_seconds:.1f}s"
        ) from exc


@app.get("/health")
def health() -> dict:
    """Lightweight liveness probe that touches no simulation state."""
    return {"status": "ok"}


@app.post("/simulate")
def run_simulation(request: SimulationRequest) -> List[ScenarioArchetype]:
    """Simulate a decision and return the four ranked scenario archetypes.

    Request settings override the process defaults. The whole run is bounded
    by the configured timeout; a run that overshoots returns 503 and never a
    partial result.
    """
    settings = request.settings or config.simulation.to_settings()
    try:
        return _run_with_timeout(
            simulate,
            request.decision,
            request.profile,
            settings=settings,
            parallel=config.execution.parallel,
            max_workers=config.execution.max_workers,
            executor=config.execution.executor,
        )
    except InvalidInputError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except SimulationUnavailable as exc:
        logger.warning("Simulation for %r timed out: %s", request.decision.title, exc)
        raise HTTPException(status_code=503, detail="simulation unavailable") from exc


@app.post("/explain")
def explain(request: ExplainRequest) -> dict:
    """Return the causal rules that fire for a decision under one archetype."""
    try:
        rules = explain_rules(request.decision, request.profile, archetype=request.archetype)
    except InvalidInputError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return {"archetype": request.archetype.value, "rules": rules}


@app.post("/factors")
def factors(request: FactorsRequest) -> dict:
    """Return the world factors most likely to sway the decision."""
    return {"factors": critical_factors(request.profile, request.decision)}


@app.post("/compare")
def compare(request: CompareRequest) -> dict:
    """Compare supplied scenarios and add per-scenario insights."""
    comparison: ScenarioComparison = compare_scenarios(request.scenarios)
    insights: List[ScenarioInsights] = [scenario_insights(s, request.profile) for s in request.scenarios]
    return {
        "comparison": comparison.model_dump(mode="json"),
        "insights": {s.id: i.model_dump(mode="json") for s, i in zip(request.scenarios, insights)},
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "futureself.main:app",
        host=config.api.host,
        port=config.api.port,
        log_level=config.log_level.lower(),
    )
