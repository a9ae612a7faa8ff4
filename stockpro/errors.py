"""
Failure taxonomy shared by the flows and the request handler.

PURPOSE: Give every way a flow can fail a stable kind, so the request handler
         can pick a user-safe message without parsing exception text.
CONTEXT: Flows raise these internally; Flow.run converts them to a FlowResult.
"""

from __future__ import annotations
from enum import Enum
from typing import Dict, List, Optional


class FailureKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    MODEL_ERROR = "model_error"
    SCHEMA_MISMATCH = "schema_mismatch"
    EMPTY_RESPONSE = "empty_response"
    EMPTY_ALLOCATION = "empty_allocation"
    MISSING_DISCLAIMER = "missing_disclaimer"
    INCONSISTENT_RANGE = "inconsistent_range"


class FlowError(Exception):
    """Base class; subclasses pin `kind`."""

    kind: FailureKind = FailureKind.MODEL_ERROR


class InvalidInputError(FlowError):
    kind = FailureKind.INVALID_INPUT

    def __init__(self, message: str, field_errors: Optional[Dict[str, List[str]]] = None):
        super().__init__(message)
        self.field_errors = field_errors or {}


# -------------------- Model invocation client -------------------- #

class ModelError(FlowError):
    kind = FailureKind.MODEL_ERROR


class ModelInvocationError(ModelError):
    """Transport, timeout, throttling or availability failure."""

    kind = FailureKind.MODEL_ERROR


class SchemaMismatchError(ModelError):
    """The model reply could not be parsed into the output schema."""

    kind = FailureKind.SCHEMA_MISMATCH


class EmptyResponseError(ModelError):
    """The model returned no structured payload at all."""

    kind = FailureKind.EMPTY_RESPONSE


# -------------------- Post-checks -------------------- #

class PostCheckError(FlowError):
    pass


class EmptyAllocationError(PostCheckError):
    kind = FailureKind.EMPTY_ALLOCATION


class MissingDisclaimerError(PostCheckError):
    kind = FailureKind.MISSING_DISCLAIMER


class InconsistentRangeError(PostCheckError):
    kind = FailureKind.INCONSISTENT_RANGE

    def __init__(self, message: str, low: float, high: float):
        super().__init__(message)
        self.low = low
        self.high = high


__all__ = [
    "FailureKind",
    "FlowError",
    "InvalidInputError",
    "ModelError",
    "ModelInvocationError",
    "SchemaMismatchError",
    "EmptyResponseError",
    "PostCheckError",
    "EmptyAllocationError",
    "MissingDisclaimerError",
    "InconsistentRangeError",
]
