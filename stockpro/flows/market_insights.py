from typing import Any, Dict

from stockpro.prompts.templates import render_insights_prompt
from .base import Flow

INSIGHTS_DISCLAIMER = (
    "Disclaimer: These insights are AI-generated, for informational purposes only, "
    "and do not constitute financial advice."
)


class MarketInsightsFlow(Flow):
    name = "market_insights"
    input_schema_name = "insights_input"
    output_schema_name = "insights_output"

    def render(self, data: Dict[str, Any]) -> str:
        return render_insights_prompt(data, self.output_schema, INSIGHTS_DISCLAIMER)

    def post_check(self, output: Dict[str, Any], log) -> None:
        # Soft check; the run still succeeds.
        if "not constitute financial advice" not in output["risks"]:
            log.warning("insights.disclaimer_missing")
