"""StockPro Analytics: LLM-backed valuation, insights and portfolio flows."""

__version__ = "0.1.0"
