from __future__ import annotations

import os
from typing import Any, Dict

from dotenv import load_dotenv
from fastapi import Body, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from surprise_engine.keys import build_idea_date_cache_key, build_idea_date_plan_id
from surprise_engine.orchestrator import enforce_surprise_contract, resolve_namespace
from surprise_engine.policies import get_anchor_policy, get_crew_policy
from surprise_engine.schemas import SurpriseRequest
from surprise_engine.tools.plan_container import set_vertical_meta

# Load .env file if present
load_dotenv()

app = FastAPI(title="Plan Surprise Contract API")

# Local UIs and notebooks call straight into the API; operators can narrow the
# allowed origins via SURPRISE_ENGINE_ALLOWED_ORIGINS.
raw_origins = os.getenv("SURPRISE_ENGINE_ALLOWED_ORIGINS") or "*"
allowed_origins = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]
if not allowed_origins:
    allowed_origins = ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _surprise_from_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Validate the incoming payload, resolve policies and run the enforcer."""
    try:
        req = SurpriseRequest.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors(include_url=False)) from exc

    crew_policy = req.crew_policy
    if crew_policy is None:
        if req.crew is None:
            raise HTTPException(status_code=422, detail="Either crew or crewPolicy is required")
        crew_policy = get_crew_policy(req.crew)
    anchor_policy = req.anchor_policy
    if anchor_policy is None and req.anchor is not None:
        anchor_policy = get_anchor_policy(req.anchor)

    plan = req.plan
    namespace = resolve_namespace(req.namespace)
    if req.magic_refinement is not None:
        plan = set_vertical_meta(
            plan,
            namespace,
            {"magicRefinement": req.magic_refinement.value},
        )

    result = enforce_surprise_contract(plan, crew_policy, anchor_policy, namespace=namespace)
    body: Dict[str, Any] = {"plan": result.plan, "report": result.report.to_meta()}
    if req.crew is not None and req.anchor is not None:
        body["planId"] = build_idea_date_plan_id(req.crew, req.anchor, req.magic_refinement)
        body["cacheKey"] = build_idea_date_cache_key(req.crew, req.anchor, req.magic_refinement)
    return body


@app.post("/api/surprise")
def api_surprise(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    """Apply the surprise contract to a generated plan."""
    return _surprise_from_payload(payload)


@app.get("/api/policies/crew/{crew}")
def crew_policy(crew: str) -> Dict[str, Any]:
    try:
        return get_crew_policy(crew).model_dump(by_alias=True)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown crew '{crew}'") from exc


@app.get("/api/policies/anchor/{anchor}")
def anchor_policy(anchor: str) -> Dict[str, Any]:
    try:
        return get_anchor_policy(anchor).model_dump(by_alias=True)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown anchor '{anchor}'") from exc
