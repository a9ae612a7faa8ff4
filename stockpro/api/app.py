# PURPOSE: FastAPI backend for StockPro. Exposes the three flows plus the
#          valuation history over HTTP for the web front end.
# CONTEXT: Thin transport: every flow call goes through invoke_flow(), so the
#          response body is always the uniform {"success": ...} shape.
# CREDITS: Original work — no external code reuse.

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI, HTTPException
from pydantic import BaseModel

from stockpro import __version__
from stockpro.flows import FLOWS
from stockpro.history import build_history_store
from stockpro.logging_setup import configure_logging
from stockpro.observability import init_observability
from stockpro.request_handler import invoke_flow

APP_VERSION = __version__
_app_start = time.time()

log = configure_logging()
init_observability()

app = FastAPI(title="StockPro Analytics API", version=APP_VERSION)
app.state.history = build_history_store()


class FlowResponse(BaseModel):
    success: bool
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    fieldErrors: Optional[Dict[str, List[str]]] = None


class HistoryItemOut(BaseModel):
    id: str
    timestamp: str
    input: Dict[str, Any]
    output: Dict[str, Any]


@app.get("/health")
def health():
    """Readiness probe: status, version and uptime."""
    return {
        "status": "ok",
        "version": APP_VERSION,
        "uptime_s": int(time.time() - _app_start),
        "history_enabled": app.state.history is not None,
    }


@app.get("/flows")
def list_flows() -> List[str]:
    return sorted(FLOWS)


@app.post("/flows/{flow_name}", response_model=FlowResponse, response_model_exclude_none=True)
def run_flow(flow_name: str, payload: Any = Body(...)) -> FlowResponse:
    """
    Run one flow with the posted form values.

    raises:
    - HTTPException(404) – unknown flow name.
    """
    if flow_name not in FLOWS:
        raise HTTPException(status_code=404, detail=f"Unknown flow '{flow_name}'")
    t0 = time.time()
    result = invoke_flow(flow_name, payload, history=app.state.history)
    log.info("response.sent", flow=flow_name, success=result["success"],
             latency_ms=round((time.time() - t0) * 1000, 1))
    return FlowResponse(**result)


@app.get("/history", response_model=List[HistoryItemOut])
def get_history():
    store = app.state.history
    if store is None:
        return []
    return [item.to_dict() for item in store.list()]


@app.delete("/history", status_code=204)
def clear_history():
    store = app.state.history
    if store is not None:
        store.clear()
