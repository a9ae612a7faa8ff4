"""
Request handler: the only entry point transports call.

PURPOSE: Re-validate raw transport input on the server, run the matching flow
         and map every outcome to one uniform, user-safe shape:
         {"success": True, "data": ...} or
         {"success": False, "error": str, "fieldErrors"?: {...}}.
CONTEXT: Used by the Lambda handler, the FastAPI app and the CLI. Nothing
         raised below this layer reaches a caller.
"""

from __future__ import annotations
import traceback
from typing import Any, Dict, Optional

import structlog

from stockpro.errors import FailureKind
from stockpro.flow_io import load_schema, validate_input
from stockpro.flows import FLOWS, FlowResult
from stockpro.history import HistoryStore
from stockpro.model_interface.generative_model import GenerativeModel
from stockpro.model_interface.loader import load_model

INVALID_INPUT_MESSAGE = "Invalid input. Please check the fields."

REQUEST_SCHEMAS = {
    "stock_valuation": "valuation_request",
    "market_insights": "insights_request",
    "portfolio_suggestion": "portfolio_request",
}

ERROR_PREFIXES = {
    "stock_valuation": "Failed to get stock valuation: ",
    "market_insights": "Failed to get market insights: ",
    "portfolio_suggestion": "Failed to generate portfolio suggestion. ",
}

MODEL_UNAVAILABLE_MESSAGE = "The AI service is unavailable right now. Please try again in a moment."
FORMAT_ISSUE_MESSAGE = (
    "The AI's response could not be processed due to a formatting issue. This can sometimes happen "
    "with complex requests. Please try simplifying your inputs, or try again in a moment."
)
UNEXPECTED_MESSAGE = "An unknown error occurred. Please check your inputs and try again."

# Flows whose model-error messages include a short, capped detail snippet.
DETAIL_SNIPPET_FLOWS = {"portfolio_suggestion"}
DETAIL_SNIPPET_CHARS = 150


def failure_message(flow_name: str, result: FlowResult) -> str:
    """
    Build the user-facing message for a failed run.

    policy:
    - schema mismatch → formatting-issue hint (retry or simplify);
    - model unavailable → generic retry message, plus a capped detail
      snippet for the portfolio flow;
    - empty response and every post-check failure → the flow's own message,
      which names the offending values.
    """
    prefix = ERROR_PREFIXES.get(flow_name, "Request failed: ")
    kind = result.failure
    if kind is FailureKind.SCHEMA_MISMATCH:
        return prefix + FORMAT_ISSUE_MESSAGE
    if kind is FailureKind.MODEL_ERROR:
        msg = prefix + MODEL_UNAVAILABLE_MESSAGE
        if flow_name in DETAIL_SNIPPET_FLOWS and result.message:
            msg += f" (Details: {result.message[:DETAIL_SNIPPET_CHARS]})"
        return msg
    if flow_name == "portfolio_suggestion":
        return result.message
    return prefix + result.message


def _fail(error: str, field_errors: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "error": error}
    if field_errors:
        body["fieldErrors"] = field_errors
    return body


def invoke_flow(flow_name: str, raw_input: Any, model: Optional[GenerativeModel] = None,
                history: Optional[HistoryStore] = None) -> Dict[str, Any]:
    """
    Validate, run and format one flow invocation.

    parameters:
    - flow_name: str – key of FLOWS.
    - raw_input: Any – transport payload (strings or numbers).
    - model: GenerativeModel|None – defaults to load_model().
    - history: HistoryStore|None – when given, successful valuations are recorded.

    returns:
    - dict – the uniform response shape; never raises.
    """
    log = structlog.get_logger(__name__).bind(flow=flow_name)
    flow_cls = FLOWS.get(flow_name) if isinstance(flow_name, str) else None
    if flow_cls is None:
        log.warning("request.unknown_flow")
        return _fail(f"Unknown flow '{flow_name}'. Expected one of: {', '.join(sorted(FLOWS))}.")

    try:
        checked = validate_input(raw_input, load_schema(REQUEST_SCHEMAS[flow_name]), coerce=True)
        if not checked.ok:
            log.info("request.invalid_input", fields=sorted(checked.field_errors))
            return _fail(INVALID_INPUT_MESSAGE, checked.field_errors)

        flow = flow_cls(model or load_model())
        result = flow.run(checked.data)
    except Exception as e:
        log.error("request.unexpected_error", error=f"{type(e).__name__}: {e}", traceback=traceback.format_exc(limit=2))
        return _fail(ERROR_PREFIXES[flow_name] + UNEXPECTED_MESSAGE)

    if not result.ok:
        if result.failure is FailureKind.INVALID_INPUT:
            return _fail(INVALID_INPUT_MESSAGE, result.field_errors)
        return _fail(failure_message(flow_name, result))

    if history is not None and flow_name == "stock_valuation":
        try:
            history.add(checked.data, result.data)
        except Exception as e:
            log.warning("history.write_failed", error=str(e))

    return {"success": True, "data": result.data}
