# PURPOSE: Runtime settings for StockPro, read from environment variables.
# CONTEXT: Shared by the model loader, Bedrock adapter, history store and the
#          transport surfaces (Lambda, FastAPI, CLI).
# CREDITS: Original work — no external code reuse.

from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Optional

HISTORY_BACKENDS = {"memory", "file", "dynamodb", "none"}


@dataclass
class Settings:
    """
    Environment-driven configuration.

    attributes:
    - aws_region: str – region for Bedrock Runtime and DynamoDB
    - model_id: str – Bedrock model identifier
    - model_max_tokens: int – inference token cap per call
    - model_temperature: float – sampling temperature
    - model_timeout_s: float – read timeout for a single model call
    - model_max_attempts: int – botocore retry attempts (transport level only)
    - use_bedrock: bool – False selects the deterministic stub model
    - model_module: str|None – "pkg.module:factory" override for the model
    - history_backend: str – one of HISTORY_BACKENDS
    - history_path: str – JSON file used by the "file" backend
    - ddb_history_table: str – table used by the "dynamodb" backend
    - tz_name: str – timezone for history timestamps
    """
    aws_region: str = "eu-west-2"
    model_id: str = "anthropic.claude-3-5-sonnet-20240620-v1:0"
    model_max_tokens: int = 2048
    model_temperature: float = 0.2
    model_timeout_s: float = 60.0
    model_max_attempts: int = 3
    use_bedrock: bool = True
    model_module: Optional[str] = None
    history_backend: str = "memory"
    history_path: str = "runs/history.json"
    ddb_history_table: str = "stockpro_history"
    tz_name: str = "Europe/London"

    def __post_init__(self):
        if self.model_max_tokens < 1:
            raise ValueError("model_max_tokens must be at least 1")
        if self.model_timeout_s <= 0:
            raise ValueError("model_timeout_s must be positive")
        if self.model_max_attempts < 1:
            raise ValueError("model_max_attempts must be at least 1")
        if self.history_backend not in HISTORY_BACKENDS:
            raise ValueError(
                f"Unknown history backend '{self.history_backend}'. Must be one of: {sorted(HISTORY_BACKENDS)}"
            )


def load_settings() -> Settings:
    """
    Build Settings from the current environment.

    Read at call time rather than import time so tests and long-lived
    processes pick up changes made through the environment.
    """
    return Settings(
        aws_region=os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION") or "eu-west-2",
        model_id=os.getenv("MODEL_ID", "anthropic.claude-3-5-sonnet-20240620-v1:0"),
        model_max_tokens=int(os.getenv("MODEL_MAX_TOKENS", "2048")),
        model_temperature=float(os.getenv("MODEL_TEMPERATURE", "0.2")),
        model_timeout_s=float(os.getenv("MODEL_TIMEOUT_S", "60")),
        model_max_attempts=int(os.getenv("MODEL_MAX_ATTEMPTS", "3")),
        use_bedrock=os.getenv("USE_BEDROCK", "1") != "0",
        model_module=os.getenv("MODEL_MODULE") or None,
        history_backend=os.getenv("HISTORY_BACKEND", "memory").lower(),
        history_path=os.getenv("HISTORY_PATH", "runs/history.json"),
        ddb_history_table=os.getenv("DDB_HISTORY_TABLE", "stockpro_history"),
        tz_name=os.getenv("TZ_NAME", "Europe/London"),
    )
