# PURPOSE: Amazon Bedrock implementation of the GenerativeModel contract.
# CONTEXT: Sends the rendered flow prompt through the Converse API, asks for a
#          single JSON object conforming to the flow's output schema, and
#          turns every failure into one of the three client error types.
# CREDITS: Original work — no external code reuse.

from __future__ import annotations
import json
import re
import time
from typing import Any, Dict, Optional

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from jsonschema import ValidationError

from stockpro.config import Settings, load_settings
from stockpro.errors import EmptyResponseError, ModelInvocationError, SchemaMismatchError
from stockpro.flow_io import error_to_string, repair_output, validate_with_schema
from stockpro.model_interface.generative_model import GenerativeModel
from stockpro.observability import xray_segment
from stockpro.prompts.templates import SYSTEM_PROMPT

# Matches ```json ... ``` fences that some models wrap around JSON replies.
_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL)


def _strip_fences(text: str) -> str:
    m = _FENCE_RE.match(text)
    return m.group(1) if m else text.strip()


def extract_payload(resp: Dict[str, Any]) -> Any:
    """
    Pull the structured payload out of a Converse response.

    shape: resp["output"]["message"]["content"] is a list of blocks. A toolUse
    block already carries parsed JSON in "input"; a text block carries JSON
    as a string.

    returns:
    - dict/list/etc. – the decoded payload, or None when no block has content.

    raises:
    - SchemaMismatchError – if the text is not valid JSON.
    """
    blocks = (((resp or {}).get("output") or {}).get("message") or {}).get("content") or []
    for blk in blocks:
        if "toolUse" in blk and blk["toolUse"].get("input") is not None:
            return blk["toolUse"]["input"]
    text = "".join(blk.get("text", "") for blk in blocks)
    if not text.strip():
        return None
    try:
        return json.loads(_strip_fences(text))
    except json.JSONDecodeError as e:
        raise SchemaMismatchError(f"Model reply is not valid JSON: {e.msg} at position {e.pos}") from e


class BedrockModel(GenerativeModel):
    """
    Bedrock Converse client.

    notes:
    - The boto3 client is created lazily so importing this module never
      touches AWS configuration.
    - Retries happen only at the transport level (botocore "standard" mode,
      MODEL_MAX_ATTEMPTS); a failed call surfaces straight to the flow.
    """

    def __init__(self, settings: Optional[Settings] = None, client: Any = None):
        self.settings = settings or load_settings()
        self._client = client

    @property
    def client(self):
        if self._client is None:
            s = self.settings
            self._client = boto3.client(
                "bedrock-runtime",
                region_name=s.aws_region,
                config=Config(
                    connect_timeout=10,
                    read_timeout=s.model_timeout_s,
                    retries={"max_attempts": s.model_max_attempts, "mode": "standard"},
                ),
            )
        return self._client

    def _system_text(self, output_schema: Dict[str, Any]) -> str:
        return (
            f"{SYSTEM_PROMPT}\n\nJSON schema for your reply:\n"
            f"{json.dumps(output_schema, indent=2)}"
        )

    def generate(self, prompt: str, output_schema: Dict[str, Any]) -> Dict[str, Any]:
        """
        Send one prompt and return the schema-valid reply.

        raises:
        - ModelInvocationError – AWS/botocore failures (throttling, timeouts, access).
        - EmptyResponseError – no content blocks or blank text.
        - SchemaMismatchError – reply is not JSON or violates output_schema.
        """
        log = structlog.get_logger(__name__).bind(model_id=self.settings.model_id, schema=output_schema.get("title"))
        t0 = time.time()
        try:
            with xray_segment("bedrock.converse"):
                resp = self.client.converse(
                    modelId=self.settings.model_id,
                    system=[{"text": self._system_text(output_schema)}],
                    messages=[{"role": "user", "content": [{"text": prompt}]}],
                    inferenceConfig={
                        "maxTokens": self.settings.model_max_tokens,
                        "temperature": self.settings.model_temperature,
                    },
                )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "ClientError")
            log.error("model.invoke_failed", error_code=code, error=str(e))
            raise ModelInvocationError(f"Bedrock request failed ({code})") from e
        except BotoCoreError as e:
            log.error("model.invoke_failed", error=str(e))
            raise ModelInvocationError(f"Bedrock request failed: {type(e).__name__}") from e

        latency_ms = round((time.time() - t0) * 1000, 1)
        log.info("model.invoke", latency_ms=latency_ms, stop_reason=resp.get("stopReason"), usage=resp.get("usage"))

        payload = extract_payload(resp)
        if payload is None:
            raise EmptyResponseError("The AI model did not return a response. Please try again.")
        if not isinstance(payload, dict):
            raise SchemaMismatchError(f"Model reply is a {type(payload).__name__}, expected a JSON object")
        payload, repaired = repair_output(payload, output_schema)
        if repaired:
            log.info("model.reply_repaired")
        try:
            validate_with_schema(payload, output_schema)
        except ValidationError as e:
            raise SchemaMismatchError(f"Schema validation failed: {error_to_string(e)}") from e
        return payload
