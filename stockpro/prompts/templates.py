"""Prompt templates for the StockPro flows."""

import os
from typing import Any, Callable, Dict

from stockpro.flow_io import schema_descriptions
from stockpro.model_interface.types import MarketInsightsInput, PortfolioSuggestionInput, StockValuationInput

# Loaded once at import time; shared by every model adapter.
PROMPT_PATH = os.path.join(os.path.dirname(__file__), "system_prompt.md")
with open(PROMPT_PATH, "r", encoding="utf-8") as f:
    SYSTEM_PROMPT = f.read().strip()


def _fmt_number(value: Any) -> str:
    """Render 150.0 as "150" and 145.5 as "145.5"."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def output_fields_section(output_schema: Dict[str, Any]) -> str:
    """List every output property with its schema description."""
    lines = ["Output fields (JSON):"]
    for name, description in schema_descriptions(output_schema):
        lines.append(f"- {name}: {description}")
    return "\n".join(lines)


def render_valuation_prompt(data: StockValuationInput, output_schema: Dict[str, Any]) -> str:
    return f"""You are a financial analyst specializing in stock option valuation.
Given the following information, estimate the future stock valuation:

Ticker Symbol: {data["tickerSymbol"]}
Option Type: {data["optionType"]}
Strike Price: {_fmt_number(data["strikePrice"])}
Expiry Date: {data["expiryDate"]}
Current Price: {_fmt_number(data["currentPrice"])}
Volatility: {_fmt_number(data["volatility"])}
Risk-Free Rate: {_fmt_number(data["riskFreeRate"])}
Time to Expiry: {_fmt_number(data["timeToExpiry"])} years

Provide an estimated future stock valuation in 'predictedPrice'.

For the 'analysis' field, explain how the valuation was reached by considering:
- Time-Series Analysis: patterns and trends implied by the context.
- Volatility Modeling: how the provided volatility widens or narrows plausible price swings.
- Option Pricing Factors: how strike price, time to expiry and the risk-free rate influence option value and the implied future stock valuation.
- Market Context: the current price and what the ticker represents.
Conclude the analysis by stating that this is an AI-generated estimation and not financial advice.

{output_fields_section(output_schema)}
"""


def render_insights_prompt(data: MarketInsightsInput, output_schema: Dict[str, Any], disclaimer: str) -> str:
    return f"""You are an expert financial analyst. Provide comprehensive market insights based on the following information.

Market Indicators:
{data["marketIndicators"]}

Past Stock Data/Trends:
{data["pastStockData"]}

Provide the following:
1. 'summary': A balanced overview of the current market sentiment, integrating both positive and negative signals from the data.
2. 'factors': 3-5 key driving factors (e.g., economic, political, technological, sector-specific) influencing stock prices and options, each with a brief explanation of its impact.
3. 'risks': Potential risks and uncertainties, categorized where possible (e.g., macroeconomic, geopolitical, industry-specific), with their potential impact and any visible negative trends or warning signs. End the 'risks' text with exactly: "{disclaimer}"

Keep the analysis objective and drawn directly from the indicators and stock data above.

{output_fields_section(output_schema)}
"""


_RISK_GUIDANCE = {
    "Low": "Higher allocation to bonds and cash/money market. Lower allocation to equities, especially emerging markets or high-yield bonds.",
    "Medium": "Balanced allocation between equities and fixed income. Moderate exposure to growth assets.",
    "High": "Higher allocation to equities, including emerging markets or thematic investments. Lower allocation to traditional bonds. A small, clearly justified allocation to more volatile assets is acceptable only with a strong rationale.",
}


def render_portfolio_prompt(data: PortfolioSuggestionInput, output_schema: Dict[str, Any], disclaimer: str) -> str:
    target = data.get("targetAnnualReturn")
    if target is not None:
        target_line = f"Target Annual Return: {_fmt_number(target)}%\n"
        target_instruction = (
            f"    * The investor is aiming for about {_fmt_number(target)}% per year. Say plainly in 'strategyCommentary' "
            f"whether that target is realistic for a {data['riskTolerance']} risk tolerance; never stretch the "
            "allocation or the projected range just to meet it.\n"
        )
    else:
        target_line = ""
        target_instruction = "    * No target return was given; propose what suits the risk tolerance.\n"

    return f"""You are an expert AI financial planning assistant. Generate a diversified investment portfolio suggestion based on the investor's inputs.

Investment Amount: ${_fmt_number(data["investmentAmount"])}
Risk Tolerance: {data["riskTolerance"]}
{target_line}
Instructions:
1. Portfolio Allocation:
    * Suggest a diversified portfolio across 3-7 broad asset classes.
    * The sum of allocation percentages MUST be 100.
    * Give each asset class a percentage and a brief rationale tied to the risk tolerance.
    * Risk guidance ({data["riskTolerance"]}): {_RISK_GUIDANCE[data["riskTolerance"]]}
{target_instruction}2. Projected Return Range:
    * Give a realistic annual return range in percent with 'low' less than or equal to 'high'. It is an estimate, not a guarantee.
3. Risk Analysis:
    * Describe the overall risk profile, potential downsides and volatility.
4. Strategy Commentary:
    * Explain how the strategy aligns with the inputs and which general market conditions shaped it.
    * Assume a medium to long-term horizon (5+ years).
5. Disclaimer:
    * Set 'importantDisclaimer' to exactly: "{disclaimer}"

{output_fields_section(output_schema)}
"""


PROMPTS: Dict[str, Callable[..., str]] = {
    "stock_valuation": render_valuation_prompt,
    "market_insights": render_insights_prompt,
    "portfolio_suggestion": render_portfolio_prompt,
}


def render_prompt(name: str, data: Dict[str, Any], output_schema: Dict[str, Any], **kwargs: Any) -> str:
    """Render the named flow's prompt. Raises KeyError for unknown names."""
    return PROMPTS[name](data, output_schema, **kwargs)
