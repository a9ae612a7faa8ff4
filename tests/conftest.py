"""Shared fixtures for the StockPro tests."""

import copy

import pytest

from stockpro.flows.portfolio_suggestion import PORTFOLIO_DISCLAIMER
from stockpro.model_impl.stub_model import StubModel


@pytest.fixture
def valuation_input():
    """The AAPL call option used throughout the end-to-end scenarios."""
    return {
        "tickerSymbol": "AAPL",
        "optionType": "call",
        "strikePrice": 150,
        "expiryDate": "2025-06-20",
        "currentPrice": 145.50,
        "volatility": 0.3,
        "riskFreeRate": 0.02,
        "timeToExpiry": 0.25,
    }


@pytest.fixture
def insights_input():
    return {
        "marketIndicators": "Fed funds rate 5.25%, CPI 3.1% YoY, unemployment 3.9%.",
        "pastStockData": "S&P 500 up 12% over six months; tech leading, utilities lagging.",
    }


@pytest.fixture
def portfolio_input():
    return {"investmentAmount": 10000, "riskTolerance": "Medium"}


@pytest.fixture
def portfolio_reply():
    """Factory for a schema-valid portfolio reply with overridable parts."""
    base = {
        "portfolioAllocation": [
            {"assetClass": "US Large Cap Stocks", "percentage": 45, "rationale": "Growth."},
            {"assetClass": "US Investment Grade Bonds", "percentage": 35, "rationale": "Stability."},
            {"assetClass": "Cash / Money Market Funds", "percentage": 20, "rationale": "Liquidity."},
        ],
        "projectedReturnRange": {"low": 4.5, "high": 7.0},
        "riskAnalysis": "Moderate volatility.",
        "strategyCommentary": "Balanced, long-term.",
        "importantDisclaimer": PORTFOLIO_DISCLAIMER,
    }

    def make(percentages=None, **overrides):
        reply = copy.deepcopy(base)
        if percentages is not None:
            reply["portfolioAllocation"] = [
                {"assetClass": f"Asset {i}", "percentage": p, "rationale": "r"}
                for i, p in enumerate(percentages)
            ]
        reply.update(overrides)
        return reply

    return make


@pytest.fixture
def stub_with():
    """Build a StubModel whose reply for one schema title is replaced."""
    def make(title, reply):
        return StubModel(replies={title: reply})
    return make
