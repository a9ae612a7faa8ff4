import pytest

from stockpro import request_handler
from stockpro.errors import ModelInvocationError, SchemaMismatchError
from stockpro.history import HistoryStore
from stockpro.model_impl.stub_model import StubModel
from stockpro.request_handler import (
    FORMAT_ISSUE_MESSAGE,
    INVALID_INPUT_MESSAGE,
    MODEL_UNAVAILABLE_MESSAGE,
    UNEXPECTED_MESSAGE,
    invoke_flow,
)
from stockpro.tools.local_storage import MemoryStorage


def test_valuation_success_shape(valuation_input, stub_with):
    model = stub_with("StockValuationOutput", {"predictedPrice": 152.30, "analysis": "..."})
    out = invoke_flow("stock_valuation", valuation_input, model=model)
    assert out == {"success": True, "data": {"predictedPrice": 152.30, "analysis": "..."}}


def test_form_strings_are_coerced(valuation_input):
    model = StubModel()
    form = {k: str(v) for k, v in valuation_input.items()}
    out = invoke_flow("stock_valuation", form, model=model)
    assert out["success"] is True
    assert "Strike Price: 150" in model.calls[0]["prompt"]


def test_invalid_input_returns_field_errors_without_model_call(valuation_input):
    model = StubModel()
    valuation_input["volatility"] = 5
    out = invoke_flow("stock_valuation", valuation_input, model=model)
    assert out == {
        "success": False,
        "error": INVALID_INPUT_MESSAGE,
        "fieldErrors": {"volatility": ["Volatility seems too high (e.g., 0.3 for 30%)."]},
    }
    assert model.calls == []


def test_short_insights_text_is_rejected(insights_input):
    insights_input["pastStockData"] = "short"
    out = invoke_flow("market_insights", insights_input, model=StubModel())
    assert out["fieldErrors"] == {
        "pastStockData": ["Past stock data is required and should be descriptive enough for analysis."]
    }


def test_blank_optional_target_is_dropped(portfolio_input):
    model = StubModel()
    portfolio_input["targetAnnualReturn"] = ""
    out = invoke_flow("portfolio_suggestion", portfolio_input, model=model)
    assert out["success"] is True
    assert "No target return was given" in model.calls[0]["prompt"]


def test_unknown_flow():
    out = invoke_flow("crystal_ball", {}, model=StubModel())
    assert out["success"] is False
    assert out["error"].startswith("Unknown flow 'crystal_ball'")


@pytest.mark.parametrize("flow,title,prefix", [
    ("stock_valuation", "StockValuationOutput", "Failed to get stock valuation: "),
    ("market_insights", "MarketInsightsOutput", "Failed to get market insights: "),
    ("portfolio_suggestion", "PortfolioSuggestionOutput", "Failed to generate portfolio suggestion. "),
])
def test_schema_mismatch_message_per_flow(flow, title, prefix, request, stub_with):
    fixture = {"stock_valuation": "valuation_input", "market_insights": "insights_input",
               "portfolio_suggestion": "portfolio_input"}[flow]
    data = request.getfixturevalue(fixture)
    out = invoke_flow(flow, data, model=stub_with(title, SchemaMismatchError("Schema validation failed")))
    assert out == {"success": False, "error": prefix + FORMAT_ISSUE_MESSAGE}


def test_model_error_hides_details_for_valuation(valuation_input, stub_with):
    model = stub_with("StockValuationOutput", ModelInvocationError("Bedrock request failed (ThrottlingException)"))
    out = invoke_flow("stock_valuation", valuation_input, model=model)
    assert out["error"] == "Failed to get stock valuation: " + MODEL_UNAVAILABLE_MESSAGE
    assert "Throttling" not in out["error"]


def test_model_error_detail_snippet_for_portfolio_is_capped(portfolio_input, stub_with):
    detail = "x" * 400
    model = stub_with("PortfolioSuggestionOutput", ModelInvocationError(detail))
    out = invoke_flow("portfolio_suggestion", portfolio_input, model=model)
    assert out["error"].startswith("Failed to generate portfolio suggestion. " + MODEL_UNAVAILABLE_MESSAGE)
    assert f"(Details: {'x' * 150})" in out["error"]
    assert "x" * 151 not in out["error"]


def test_empty_response_message(valuation_input, stub_with):
    out = invoke_flow("stock_valuation", valuation_input, model=stub_with("StockValuationOutput", None))
    assert out["error"] == "Failed to get stock valuation: The AI model did not return a response. Please try again."


def test_missing_disclaimer_message(portfolio_input, portfolio_reply, stub_with):
    reply = portfolio_reply(importantDisclaimer="Past performance is no guarantee.")
    out = invoke_flow("portfolio_suggestion", portfolio_input, model=stub_with("PortfolioSuggestionOutput", reply))
    assert out == {"success": False, "error": "AI response is missing the critical financial advice disclaimer."}


def test_inverted_range_message_names_values(portfolio_input, portfolio_reply, stub_with):
    reply = portfolio_reply(projectedReturnRange={"low": 12, "high": 8})
    out = invoke_flow("portfolio_suggestion", portfolio_input, model=stub_with("PortfolioSuggestionOutput", reply))
    assert out["success"] is False
    assert "12" in out["error"] and "8" in out["error"]


def test_unexpected_exception_is_contained(valuation_input):
    class Broken(StubModel):
        def generate(self, prompt, output_schema):
            raise RuntimeError("kaboom")

    out = invoke_flow("stock_valuation", valuation_input, model=Broken())
    assert out == {"success": False, "error": "Failed to get stock valuation: " + UNEXPECTED_MESSAGE}


def test_default_model_comes_from_loader(monkeypatch, valuation_input):
    model = StubModel()
    monkeypatch.setattr(request_handler, "load_model", lambda: model)
    assert invoke_flow("stock_valuation", valuation_input)["success"] is True
    assert len(model.calls) == 1


def test_successful_valuation_is_recorded(valuation_input):
    history = HistoryStore(MemoryStorage())
    invoke_flow("stock_valuation", valuation_input, model=StubModel(), history=history)
    items = history.list()
    assert len(items) == 1
    assert items[0].input["tickerSymbol"] == "AAPL"
    assert items[0].output["predictedPrice"] == 100.0


def test_failures_and_other_flows_are_not_recorded(valuation_input, portfolio_input, stub_with):
    history = HistoryStore(MemoryStorage())
    invoke_flow("stock_valuation", valuation_input, model=stub_with("StockValuationOutput", None), history=history)
    invoke_flow("portfolio_suggestion", portfolio_input, model=StubModel(), history=history)
    assert history.list() == []


def test_history_write_failure_does_not_fail_request(valuation_input):
    class BrokenStorage(MemoryStorage):
        def put(self, key, value):
            raise RuntimeError("DDB put_item failed: denied")

    out = invoke_flow("stock_valuation", valuation_input, model=StubModel(),
                      history=HistoryStore(BrokenStorage()))
    assert out["success"] is True


@pytest.mark.parametrize("flow_name", [["stock_valuation"], {"x": 1}, None, 3])
def test_non_string_flow_name_is_an_unknown_flow(flow_name):
    out = invoke_flow(flow_name, {}, model=StubModel())
    assert out["success"] is False
    assert out["error"].startswith("Unknown flow")
