"""Routing routes: condition evaluation, agent scoring and lead routing."""

import logging
from typing import Any, Callable

from fastapi import APIRouter, HTTPException, Request

from ...errors import SchemaValidationError
from ...routing import evaluate_conditions, route_lead, score_agent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/routing", tags=["routing"])


async def _read_body(request: Request) -> dict:
    try:
        body = await request.json()
    except Exception:
        raise HTTPException(
            status_code=400,
            detail={"success": False, "error": "validation_error", "detail": "Invalid JSON body"},
        )
    if not isinstance(body, dict):
        raise HTTPException(
            status_code=400,
            detail={"success": False, "error": "validation_error", "detail": "Body must be a JSON object"},
        )
    return body


def _run(operation: Callable[[], Any]) -> Any:
    """Call into the engine, mapping schema failures to 422."""
    try:
        return operation()
    except SchemaValidationError as e:
        raise HTTPException(
            status_code=422,
            detail={
                "success": False,
                "error": "validation_error",
                "message": str(e),
                "detail": e.errors,
            },
        )
    except Exception:
        logger.exception("Routing error")
        raise HTTPException(
            status_code=500,
            detail={"success": False, "error": "server_error", "detail": "Internal routing error"},
        )


@router.post("/evaluate")
async def evaluate(request: Request):
    """Evaluate ``{"conditions": ..., "context": ...}``."""
    body = await _read_body(request)
    result = _run(lambda: evaluate_conditions(body.get("conditions"), body.get("context") or {}))
    return result.to_dict()


@router.post("/score")
async def score(request: Request):
    """Score ``{"agent": ..., "config": ...}``; ineligible agents score null."""
    body = await _read_body(request)
    result = _run(lambda: score_agent(body.get("agent"), body.get("config")))
    return {"eligible": result is not None, "score": result.to_dict() if result else None}


@router.post("/route")
async def route(request: Request):
    """Route a lead given a RoutingInput document."""
    body = await _read_body(request)
    result = _run(lambda: route_lead(body))
    return result.to_dict()
