from typing import TypedDict, Literal, List

OptionType = Literal["call", "put"]
RiskTolerance = Literal["Low", "Medium", "High"]


class StockValuationInput(TypedDict):
    tickerSymbol: str
    optionType: OptionType
    strikePrice: float
    expiryDate: str
    currentPrice: float
    volatility: float
    riskFreeRate: float
    timeToExpiry: float


class StockValuationOutput(TypedDict):
    predictedPrice: float
    analysis: str


class MarketInsightsInput(TypedDict):
    marketIndicators: str
    pastStockData: str


class MarketInsightsOutput(TypedDict):
    summary: str
    factors: str
    risks: str


class _PortfolioSuggestionInputBase(TypedDict):
    investmentAmount: float
    riskTolerance: RiskTolerance


class PortfolioSuggestionInput(_PortfolioSuggestionInputBase, total=False):
    targetAnnualReturn: float


class AssetAllocation(TypedDict):
    assetClass: str
    percentage: float
    rationale: str


class ReturnRange(TypedDict):
    low: float
    high: float


class PortfolioSuggestionOutput(TypedDict):
    portfolioAllocation: List[AssetAllocation]
    projectedReturnRange: ReturnRange
    riskAnalysis: str
    strategyCommentary: str
    importantDisclaimer: str
