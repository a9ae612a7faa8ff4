from typing import Any, Dict

from stockpro.prompts.templates import render_valuation_prompt
from .base import Flow


class StockValuationFlow(Flow):
    """Option inputs in, estimated future stock valuation plus narrative out. No post-checks beyond the schema."""

    name = "stock_valuation"
    input_schema_name = "valuation_input"
    output_schema_name = "valuation_output"

    def render(self, data: Dict[str, Any]) -> str:
        return render_valuation_prompt(data, self.output_schema)
