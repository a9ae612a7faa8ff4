"""
AWS Lambda handler: normalises the API Gateway event, runs one flow through
the request handler and returns the uniform response body.
Adds structured, CloudWatch-friendly logs with correlation IDs.

PURPOSE:
- Entry point for AWS Lambda behind API Gateway (route: POST /flows/{flow}).

CONTEXT:
- The flow name comes from pathParameters.flow or the body's "flow" key.
- The form input is the body's "input" object, or the whole body when there
  is no "input" key.
- Always answers HTTP 200 with {"success": ...}; failures are in the body,
  which keeps API Gateway from retrying.
"""

from __future__ import annotations
import json
import time
import uuid
from typing import Any, Dict

from stockpro.history import build_history_store
from stockpro.logging_setup import configure_logging
from stockpro.observability import init_observability
from stockpro.request_handler import invoke_flow

log = configure_logging()
init_observability()
_history = build_history_store()


def _response(body: Dict[str, Any], status_code: int = 200) -> Dict[str, Any]:
    """Wrap a dict into an API Gateway compatible response."""
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }


def parse_event(event: Dict[str, Any]):
    """
    Split an API Gateway (or direct-invoke) event into (flow_name, raw_input).

    raises:
    - ValueError – if the body is a string that is not valid JSON.
    """
    body: Any = event
    if isinstance(event, dict) and "body" in event:
        raw = event["body"]
        body = json.loads(raw) if isinstance(raw, str) else (raw or {})
    if not isinstance(body, dict):
        body = {}
    path_params = (event.get("pathParameters") or {}) if isinstance(event, dict) else {}
    flow_name = path_params.get("flow") or body.get("flow") or ""
    if not isinstance(flow_name, str):
        flow_name = ""
    raw_input = body["input"] if "input" in body else {k: v for k, v in body.items() if k != "flow"}
    return flow_name, raw_input


def handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """
    Lambda entry point.

    flow:
    1) Bind request/correlation IDs for traceability.
    2) Parse the event into flow name and input.
    3) Call invoke_flow(); it never raises.
    4) Log the outcome with latency and return the body.
    """
    t0 = time.time()
    request_id = getattr(context, "aws_request_id", None) or str(uuid.uuid4())
    correlation_id = (event.get("headers", {}) or {}).get("x-correlation-id") or str(uuid.uuid4())
    rlog = log.bind(request_id=request_id, correlation_id=correlation_id)

    try:
        flow_name, raw_input = parse_event(event)
    except ValueError:
        rlog.warning("request.body_parse_failed")
        return _response({"success": False, "error": "Request body is not valid JSON."})

    rlog.info("request.received", flow=flow_name)
    result = invoke_flow(flow_name, raw_input, history=_history)

    latency_ms = round((time.time() - t0) * 1000, 1)
    if result["success"]:
        rlog.info("response.success", flow=flow_name, latency_ms=latency_ms)
    else:
        rlog.warning("response.failure", flow=flow_name, error=result["error"], latency_ms=latency_ms)
    return _response(result, 200)
