import io
import json

import pytest

from scripts.flow_cli import main


@pytest.fixture(autouse=True)
def stub_backend(monkeypatch):
    monkeypatch.setenv("USE_BEDROCK", "0")
    monkeypatch.delenv("MODEL_MODULE", raising=False)


def _stdout_json(capsys):
    out = capsys.readouterr().out
    return json.loads(out[out.index("{\n"):])


def test_cli_success(capsys, portfolio_input):
    assert main(["portfolio_suggestion", json.dumps(portfolio_input)]) == 0
    assert _stdout_json(capsys)["success"] is True


def test_cli_reads_stdin(monkeypatch, capsys, insights_input):
    monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps(insights_input)))
    assert main(["market_insights"]) == 0


def test_cli_flow_failure_exit_code(capsys):
    assert main(["stock_valuation", "{}"]) == 1
    assert "fieldErrors" in _stdout_json(capsys)


def test_cli_bad_json(capsys):
    assert main(["stock_valuation", "{oops"]) == 2
    assert "Invalid JSON payload" in capsys.readouterr().err
