import copy
from typing import Any, Dict, Optional

from stockpro.errors import EmptyResponseError, SchemaMismatchError
from stockpro.flows.market_insights import INSIGHTS_DISCLAIMER
from stockpro.flows.portfolio_suggestion import PORTFOLIO_DISCLAIMER
from stockpro.model_interface.generative_model import GenerativeModel

CANNED_REPLIES: Dict[str, Dict[str, Any]] = {
    "StockValuationOutput": {
        "predictedPrice": 100.0,
        "analysis": "Stub valuation derived from the supplied inputs. "
                    "This is an AI-generated estimation and not financial advice.",
    },
    "MarketInsightsOutput": {
        "summary": "Stub summary: mixed signals across the supplied indicators.",
        "factors": "1. Interest rates. 2. Inflation. 3. Earnings momentum.",
        "risks": f"Macroeconomic: rate volatility. {INSIGHTS_DISCLAIMER}",
    },
    "PortfolioSuggestionOutput": {
        "portfolioAllocation": [
            {"assetClass": "US Large Cap Stocks", "percentage": 40, "rationale": "Core growth exposure."},
            {"assetClass": "US Investment Grade Bonds", "percentage": 35, "rationale": "Income and ballast."},
            {"assetClass": "International Developed Stocks", "percentage": 15, "rationale": "Diversification."},
            {"assetClass": "Cash / Money Market Funds", "percentage": 10, "rationale": "Liquidity."},
        ],
        "projectedReturnRange": {"low": 4.0, "high": 7.5},
        "riskAnalysis": "Moderate risk with equity drawdowns partly offset by bonds.",
        "strategyCommentary": "Balanced mix assuming a medium to long-term horizon.",
        "importantDisclaimer": PORTFOLIO_DISCLAIMER,
    },
}


class StubModel(GenerativeModel):
    """
    Deterministic stand-in for the external model.

    Replies are looked up by the output schema's "title". Pass `replies` to
    override any of them; a reply of None simulates an empty response and an
    Exception instance is raised as-is. Every call is recorded in `calls`.
    """

    def __init__(self, replies: Optional[Dict[str, Any]] = None):
        self.replies = {**CANNED_REPLIES, **(replies or {})}
        self.calls = []

    def generate(self, prompt: str, output_schema: Dict[str, Any]) -> Dict[str, Any]:
        title = output_schema.get("title", "")
        self.calls.append({"prompt": prompt, "schema": title})
        if title not in self.replies:
            raise SchemaMismatchError(f"stub has no reply for schema '{title}'")
        reply = self.replies[title]
        if isinstance(reply, Exception):
            raise reply
        if reply is None:
            raise EmptyResponseError("The AI model did not return a response. Please try again.")
        return copy.deepcopy(reply)
