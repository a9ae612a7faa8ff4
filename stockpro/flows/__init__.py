from typing import Dict, Type

from .base import Flow, FlowResult, FlowState
from .market_insights import MarketInsightsFlow
from .portfolio_suggestion import PortfolioSuggestionFlow
from .stock_valuation import StockValuationFlow

FLOWS: Dict[str, Type[Flow]] = {
    StockValuationFlow.name: StockValuationFlow,
    MarketInsightsFlow.name: MarketInsightsFlow,
    PortfolioSuggestionFlow.name: PortfolioSuggestionFlow,
}

__all__ = [
    "FLOWS",
    "Flow",
    "FlowResult",
    "FlowState",
    "MarketInsightsFlow",
    "PortfolioSuggestionFlow",
    "StockValuationFlow",
]
