"""
Observability bootstrap.

PURPOSE:
- Optionally enables AWS X-Ray tracing when USE_XRAY=1.
- Wraps each model call in a named subsegment so Bedrock latency is visible
  per flow in the trace map.
- Degrades to a no-op when X-Ray is disabled or the SDK cannot start.

CONTEXT:
- init_observability() is called by the Lambda and FastAPI entrypoints.
- Logging is configured separately in logging_setup.py.
"""
from __future__ import annotations
import os

import structlog


def _enabled() -> bool:
    return os.getenv("USE_XRAY", "0") == "1"


def init_observability():
    """
    Optionally initialise AWS X-Ray instrumentation.

    returns:
    - xray_recorder object if configured, None if disabled or unavailable.

    notes:
    - patch_all() instruments botocore, so Bedrock calls appear as subsegments.
    """
    if not _enabled():
        return None
    try:
        from aws_xray_sdk.core import xray_recorder, patch_all
        xray_recorder.configure(service=os.getenv("XRAY_SERVICE_NAME", "StockPro"))
        patch_all()
        return xray_recorder
    except Exception as e:
        # Tracing must never block a request.
        structlog.get_logger(__name__).warning("xray.init_failed", error=str(e))
        return None


class xray_segment:
    """
    Context manager for a manual subsegment.

    usage example:
    >>> with xray_segment("model.generate"):
    >>>     reply = model.generate(prompt, schema)

    behaviour:
    - Only touches the SDK when USE_XRAY=1.
    - Exceptions raised inside the block always propagate unchanged.
    """

    def __init__(self, name: str):
        self.name = name
        self.sub = None

    def __enter__(self):
        if not _enabled():
            return self
        try:
            from aws_xray_sdk.core import xray_recorder
            self.sub = xray_recorder.begin_subsegment(self.name)
        except Exception:
            self.sub = None
        return self

    def __exit__(self, exc_type, exc, tb):
        if self.sub is None:
            return False
        try:
            from aws_xray_sdk.core import xray_recorder
            if exc is not None:
                self.sub.add_exception(exc, [])
            xray_recorder.end_subsegment()
        except Exception:
            pass
        return False
