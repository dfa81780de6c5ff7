"""
Tests for CLI commands with the broker client replaced by a fake.
"""

from datetime import date

import pandas as pd
import pytest

from option_calculator.data.models import OrderReceipt, Position
from option_calculator.run import cli

from fakes import FakeBroker, equity_quote, make_entry

EXP = date(2025, 6, 20)


class FakeClient(FakeBroker):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.modified = []

    def modify_order(self, order_id, params):
        self.modified.append((order_id, params))
        return OrderReceipt(order_id=order_id, status="ok")


@pytest.fixture
def client(monkeypatch):
    chain = [make_entry(k, t, iv=0.30) for k in (95, 100, 105) for t in ("call", "put")]
    fake = FakeClient(quotes={"SPY": equity_quote("SPY", 101.0)}, chains={EXP: chain})
    monkeypatch.setattr(cli, "build_client", lambda config: fake)
    monkeypatch.setattr(cli, "setup_logging", lambda level: None)
    return fake


def test_quote_command(client, capsys):
    assert cli.main(["quote", "SPY"]) == 0
    assert "SPY" in capsys.readouterr().out


def test_expirations_command(client, capsys):
    assert cli.main(["expirations", "SPY"]) == 0
    assert "2025-06-20" in capsys.readouterr().out
    assert client.expiration_calls == [("SPY", True)]


def test_chain_command_exports_window(client, tmp_path, capsys):
    path = tmp_path / "chain.csv"

    assert cli.main(["chain", "SPY", "2025-06-20", "--strikes", "1", "--calls-only", "--export", str(path)]) == 0

    df = pd.read_csv(path)
    assert list(df["strike"]) == [100.0, 105.0]
    assert set(df["option_type"]) == {"call"}
    assert "Exported" in capsys.readouterr().out


def test_expected_move_command(client, capsys):
    assert cli.main(["expected-move", "SPY"]) == 0
    out = capsys.readouterr().out
    assert "EXPECTED MOVE FOR SPY IN 1 Day" in out


def test_chain_command_prints_table(client, capsys):
    assert cli.main(["chain", "SPY", "2025-06-20", "--strikes", "1"]) == 0
    out = capsys.readouterr().out
    assert "SPY 2025-06-20" in out
    assert "Call Bid" in out and "Put Bid" in out


def test_positions_command(client, capsys):
    client.positions = [Position("SPY", 10, 1000.0)]

    assert cli.main(["positions"]) == 0

    out = capsys.readouterr().out
    assert "ACCOUNT POSITIONS" in out
    assert "$1,010.00" in out
    assert "Account balance: $10,000.00" in out


def test_trade_modify_command(client, capsys):
    assert cli.main(["trade", "modify", "42", "--price", "1.25", "--duration", "gtc"]) == 0
    assert client.modified == [("42", {"duration": "gtc", "price": 1.25})]


def test_domain_errors_exit_nonzero(client, capsys):
    assert cli.main(["quote", "NOPE"]) == 1
    assert "ERROR: No quote found for NOPE" in capsys.readouterr().err

    assert cli.main(["trade", "modify", "42"]) == 1
    assert cli.main(["expected-move", "SPY", "--expiration", "2030-01-01"]) == 1


def test_missing_command(client, capsys):
    assert cli.main([]) == 1


def test_missing_token(monkeypatch, capsys):
    monkeypatch.delenv("TRADIER_TOKEN", raising=False)
    monkeypatch.setattr(cli, "setup_logging", lambda level: None)
    assert cli.main(["quote", "SPY"]) == 1
    assert "token" in capsys.readouterr().err


def test_bad_config_override(capsys):
    assert cli.main(["--set", "chain.strikes=0", "quote", "SPY"]) == 1
    assert "ERROR" in capsys.readouterr().err
