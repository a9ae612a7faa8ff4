"""
Flow orchestrator shared by every use case.

PURPOSE: Run one request through VALIDATING → INVOKING → POST_CHECKING and
         end in SUCCEEDED or FAILED(kind).
CONTEXT: Subclasses name their schemas, render their prompt and add semantic
         post-checks. The model is injected so tests can pass a stub.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import structlog
from jsonschema import ValidationError

from stockpro.errors import EmptyResponseError, FailureKind, FlowError, InvalidInputError, SchemaMismatchError
from stockpro.flow_io import error_to_string, load_schema, repair_output, validate_input, validate_with_schema
from stockpro.model_interface.generative_model import GenerativeModel
from stockpro.observability import xray_segment


class FlowState(str, Enum):
    VALIDATING = "validating"
    INVOKING = "invoking"
    POST_CHECKING = "post_checking"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class FlowResult:
    """
    Terminal outcome of Flow.run().

    attributes:
    - state: FlowState – SUCCEEDED or FAILED.
    - data: dict|None – validated output; only set on success.
    - failure: FailureKind|None – why the run failed.
    - message: str – failure description (may contain offending values).
    - field_errors: dict – per-field messages for INVALID_INPUT.
    """
    state: FlowState
    data: Optional[Dict[str, Any]] = None
    failure: Optional[FailureKind] = None
    message: str = ""
    field_errors: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.state is FlowState.SUCCEEDED


class Flow:
    """Base orchestrator. Subclasses set `name`, `input_schema_name`, `output_schema_name`."""

    name: str = ""
    input_schema_name: str = ""
    output_schema_name: str = ""

    def __init__(self, model: GenerativeModel):
        self.model = model

    @property
    def input_schema(self) -> Dict[str, Any]:
        return load_schema(self.input_schema_name)

    @property
    def output_schema(self) -> Dict[str, Any]:
        return load_schema(self.output_schema_name)

    def render(self, data: Dict[str, Any]) -> str:
        raise NotImplementedError

    def post_check(self, output: Dict[str, Any], log) -> None:
        """Flow-specific semantic checks; raise a PostCheckError to fail the run."""

    def run(self, raw_input: Any) -> FlowResult:
        """
        Execute the pipeline once.

        returns:
        - FlowResult – never raises for taxonomy errors (stockpro.errors);
          anything else is a bug and propagates to the request handler.
        """
        log = structlog.get_logger(__name__).bind(flow=self.name)
        state = FlowState.VALIDATING
        try:
            log.info("flow.state", state=state.value)
            checked = validate_input(raw_input, self.input_schema)
            if not checked.ok:
                raise InvalidInputError(checked.message, checked.field_errors)

            state = FlowState.INVOKING
            log.info("flow.state", state=state.value)
            prompt = self.render(checked.data)
            with xray_segment(f"flow.{self.name}.generate"):
                reply = self.model.generate(prompt, self.output_schema)

            state = FlowState.POST_CHECKING
            log.info("flow.state", state=state.value)
            output = self._validate_output(reply, log)
            self.post_check(output, log)
        except FlowError as e:
            log.warning("flow.failed", state=state.value, failure=e.kind.value, error=str(e))
            return FlowResult(
                state=FlowState.FAILED,
                failure=e.kind,
                message=str(e),
                field_errors=getattr(e, "field_errors", {}) or {},
            )

        log.info("flow.state", state=FlowState.SUCCEEDED.value)
        return FlowResult(state=FlowState.SUCCEEDED, data=output)

    def _validate_output(self, reply: Any, log) -> Dict[str, Any]:
        # The reply is untyped input whatever the client promised.
        if reply is None:
            raise EmptyResponseError("The AI model did not return a response. Please try again.")
        if not isinstance(reply, dict):
            raise SchemaMismatchError(f"Model reply is a {type(reply).__name__}, expected a JSON object")
        output, repaired = repair_output(reply, self.output_schema)
        if repaired:
            log.info("flow.output_repaired")
        try:
            validate_with_schema(output, self.output_schema)
        except ValidationError as e:
            raise SchemaMismatchError(f"Schema validation failed: {error_to_string(e)}") from e
        return output
