"""
I/O helpers for schemas, validation and coercion.

PURPOSE: Central place for JSON schema loading and validation used by the
         flows (input/output contracts) and by the request handler
         (server-side re-validation of raw form input).
CONTEXT: Schemas live in stockpro/schemas/ as Draft 7 documents. Request
         schemas carry an "x-messages" map per property with user-facing
         messages keyed by JSON Schema keyword.
"""

from __future__ import annotations

import copy
import json
import math
import pathlib
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft7Validator, FormatChecker, ValidationError

SCHEMA_DIR = pathlib.Path(__file__).resolve().parent / "schemas"

FORM_ERRORS_KEY = "_errors"


# -------------------- Schema loading utilities -------------------- #

@lru_cache(maxsize=64)
def _load_schema_cached(abs_path: str) -> Dict[str, Any]:
    """
    Read and parse a JSON schema file, caching it to avoid repeated disk I/O.

    parameters:
    - abs_path: str – full absolute path to the schema file.

    returns:
    - dict – parsed JSON schema content.
    """
    p = pathlib.Path(abs_path)
    text = p.read_text(encoding="utf-8")
    return json.loads(text)


def load_schema(name: str) -> Dict[str, Any]:
    """
    Load a bundled schema by short name (e.g. "portfolio_output") or by path.

    returns:
    - dict – schema as a Python dictionary. Callers must not mutate it; it is
      shared through the cache.

    raises:
    - FileNotFoundError – if neither the bundled name nor the path exists.
    - json.JSONDecodeError – if the file is not valid JSON.
    """
    bundled = SCHEMA_DIR / f"{name}.schema.json"
    if bundled.exists():
        return _load_schema_cached(str(bundled))
    p = pathlib.Path(name)
    if not p.exists():
        raise FileNotFoundError(f"Schema not found: {name}")
    return _load_schema_cached(str(p.resolve()))


def schema_descriptions(schema: Dict[str, Any], prefix: str = "") -> List[Tuple[str, str]]:
    """
    Flatten property descriptions into (dotted name, description) pairs.

    Array items are reported as "field[].child". Used by the prompt renderer
    to embed output field hints.
    """
    out: List[Tuple[str, str]] = []
    for name, prop in (schema.get("properties") or {}).items():
        key = f"{prefix}{name}"
        if prop.get("description"):
            out.append((key, prop["description"]))
        if prop.get("type") == "object":
            out.extend(schema_descriptions(prop, prefix=f"{key}."))
        elif prop.get("type") == "array" and isinstance(prop.get("items"), dict):
            out.extend(schema_descriptions(prop["items"], prefix=f"{key}[]."))
    return out


# -------------------- Validation helpers -------------------- #

def _validator(schema: Dict[str, Any]) -> Draft7Validator:
    return Draft7Validator(schema, format_checker=FormatChecker())


def validate_with_schema(instance: Any, schema: Dict[str, Any]) -> None:
    """
    Validate a given instance against a provided schema.

    raises:
    - ValidationError – the first (best-matching) failure.
    """
    _validator(schema).validate(instance)


@dataclass
class ValidationResult:
    """
    Outcome of validating one record: Ok(data) or Failed(field_errors, message).

    attributes:
    - ok: bool – True when the record conforms.
    - data: dict|None – the validated (and, if requested, coerced) copy.
    - field_errors: dict – field name -> list of messages; "_errors" holds
      form-level messages.
    - message: str – summary for the failure case.
    """
    ok: bool
    data: Optional[Dict[str, Any]] = None
    field_errors: Dict[str, List[str]] = field(default_factory=dict)
    message: str = ""

    @classmethod
    def success(cls, data: Dict[str, Any]) -> "ValidationResult":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, field_errors: Dict[str, List[str]], message: str) -> "ValidationResult":
        return cls(ok=False, field_errors=field_errors, message=message)


def _field_message(schema: Dict[str, Any], field_name: str, keyword: str) -> Optional[str]:
    prop = (schema.get("properties") or {}).get(field_name) or {}
    return (prop.get("x-messages") or {}).get(keyword)


def collect_field_errors(instance: Dict[str, Any], schema: Dict[str, Any]) -> Dict[str, List[str]]:
    """
    Run every schema check and group the failures by field.

    notes:
    - Nested failures are keyed by a dotted path, e.g. "projectedReturnRange.low".
    - "required" failures carry no path in jsonschema; the missing property
      names are recovered from the validator value.
    - Messages come from the property's "x-messages" when present.
    """
    errors: Dict[str, List[str]] = {}

    def add(key: str, msg: str) -> None:
        bucket = errors.setdefault(key, [])
        if msg not in bucket:
            bucket.append(msg)

    for err in _validator(schema).iter_errors(instance):
        base = ".".join(str(p) for p in err.path)
        if err.validator == "required" and isinstance(err.instance, dict):
            for missing in err.validator_value:
                if missing in err.instance:
                    continue
                key = f"{base}.{missing}" if base else missing
                msg = (_field_message(schema, missing, "required") if not base else None) or f"{missing} is required."
                add(key, msg)
            continue
        if not base:
            add(FORM_ERRORS_KEY, err.message)
            continue
        top = str(err.path[0])
        msg = (_field_message(schema, top, err.validator) if len(err.path) == 1 else None) or err.message
        add(base, msg)
    return errors


def project(instance: Dict[str, Any], schema: Dict[str, Any]) -> Dict[str, Any]:
    """Return a deep copy of `instance` restricted to the schema's declared top-level properties."""
    declared = schema.get("properties") or {}
    return {k: copy.deepcopy(v) for k, v in instance.items() if k in declared}


def _to_number(value: Any) -> Any:
    if isinstance(value, str):
        text = value.strip()
        try:
            number = float(text)
        except ValueError:
            return value
        # "nan" and "inf" parse but are never valid amounts.
        return number if math.isfinite(number) else value
    return value


def coerce_input(raw: Dict[str, Any], schema: Dict[str, Any]) -> Dict[str, Any]:
    """
    Coerce raw transport values into the schema's types (never in place).

    rules:
    - Unknown top-level keys are dropped.
    - Optional properties that are None or blank strings are treated as absent.
    - Strings for "number" properties are converted with float(); strings
      that do not parse are kept so the type check reports them.
    - Strings for "string" properties are stripped.
    """
    required = set(schema.get("required") or [])
    out: Dict[str, Any] = {}
    for name, prop in (schema.get("properties") or {}).items():
        if name not in raw:
            continue
        value = copy.deepcopy(raw[name])
        if name not in required and (value is None or (isinstance(value, str) and not value.strip())):
            continue
        kind = prop.get("type")
        if kind == "number":
            value = _to_number(value)
        elif kind == "string" and isinstance(value, str):
            value = value.strip()
        out[name] = value
    return out


def validate_input(raw: Any, schema: Dict[str, Any], coerce: bool = False) -> ValidationResult:
    """
    Validate a caller-supplied record.

    parameters:
    - raw: Any – the record; anything other than a dict fails at form level.
    - schema: dict – the contract.
    - coerce: bool – apply coerce_input() first (request boundary only).

    returns:
    - ValidationResult – data is always a fresh copy; `raw` is never modified.
    """
    if not isinstance(raw, dict):
        return ValidationResult.failure({FORM_ERRORS_KEY: ["Expected a JSON object."]}, "Invalid input. Please check the fields.")
    data = coerce_input(raw, schema) if coerce else project(raw, schema)
    field_errors = collect_field_errors(data, schema)
    if field_errors:
        return ValidationResult.failure(field_errors, "Invalid input. Please check the fields.")
    return ValidationResult.success(data)


# -------------------- Output repair -------------------- #

def _repair_numbers(value: Any, schema: Dict[str, Any]) -> Any:
    kind = schema.get("type")
    if kind == "number":
        return _to_number(value)
    if kind == "object" and isinstance(value, dict):
        props = schema.get("properties") or {}
        return {k: (_repair_numbers(v, props[k]) if k in props else v) for k, v in value.items()}
    if kind == "array" and isinstance(value, list) and isinstance(schema.get("items"), dict):
        return [_repair_numbers(v, schema["items"]) for v in value]
    return value


def repair_output(reply: Dict[str, Any], schema: Dict[str, Any]) -> Tuple[Dict[str, Any], bool]:
    """
    Apply the cheap, lossless repairs tolerated on model output.

    repairs:
    - numeric strings ("152.30") become numbers wherever the schema expects one;
    - undeclared top-level keys are dropped.

    returns:
    - (repaired copy, changed flag)
    """
    repaired = _repair_numbers(project(reply, schema), schema)
    return repaired, repaired != reply


def error_to_string(err: Exception) -> str:
    """
    Convert exceptions into readable strings for logs and error payloads.

    notes:
    - ValidationError messages include a pointer path showing where validation failed.
    """
    if isinstance(err, ValidationError):
        path = "$" + "".join(f"[{repr(p)}]" if isinstance(p, int) else f".{p}" for p in err.path)
        return f"{err.message} at {path}"
    return f"{type(err).__name__}: {err}"


__all__ = [
    "SCHEMA_DIR",
    "FORM_ERRORS_KEY",
    "load_schema",
    "schema_descriptions",
    "validate_with_schema",
    "ValidationResult",
    "collect_field_errors",
    "project",
    "coerce_input",
    "validate_input",
    "repair_output",
    "error_to_string",
]
