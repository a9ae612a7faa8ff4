"""
Structured logging setup for Lambda, the FastAPI app and local runs.

PURPOSE:
- Configure consistent JSON-formatted logs for every StockPro entrypoint.
- Logs are structured so they can be queried in CloudWatch Insights.

CONTEXT:
- Called once by each entrypoint (lambda_handler, api.app, scripts/flow_cli).
- Library modules (flows, model adapters) only call structlog.get_logger().
"""

from __future__ import annotations
import logging
import os
import sys
import structlog


def configure_logging():
    """
    Configure structured JSON logging for the current environment.

    returns:
    - structlog.BoundLogger – logger bound with service and env metadata.

    behaviour:
    - Reads log level from LOG_LEVEL (default = INFO).
    - Writes to stdout so AWS Lambda captures it.

    example log entry:
    {
      "event": "flow.state",
      "flow": "portfolio_suggestion",
      "state": "post_checking",
      "level": "info",
      "timestamp": "2025-10-21T13:00:00Z",
      "service": "StockPro",
      "env": "dev"
    }
    """
    level = os.getenv("LOG_LEVEL", "INFO").upper()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level, logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger().bind(service="StockPro", env=os.getenv("ENV", "dev"))
