"""
Tests for the command line interface.
"""

import json

import pytest

from mtf_confluence.cli.main import load_snapshots, main, parse_arguments


def _candle_dicts(candles):
    return [
        {"open": c.open, "high": c.high, "low": c.low, "close": c.close,
         "volume": c.volume, "timestamp": c.timestamp}
        for c in candles
    ]


@pytest.fixture
def snapshot_file(tmp_path, rising_candles):
    path = tmp_path / "snapshot.json"
    payload = {
        "symbol": "XAUUSD",
        "periods": {
            "4h": {"candles": _candle_dicts(rising_candles)},
            "H1": {"candles": _candle_dicts(rising_candles)},
        },
    }
    path.write_text(json.dumps(payload))
    return path


@pytest.mark.unit
def test_parse_arguments_defaults():
    args = parse_arguments(["snapshot.json"])

    assert args.snapshot == "snapshot.json"
    assert args.format == "table"
    assert args.verbose is None
    assert not args.no_regime
    assert not args.corroborate


@pytest.mark.unit
def test_load_snapshots(snapshot_file):
    symbol, snapshots = load_snapshots(str(snapshot_file))

    assert symbol == "XAUUSD"
    assert set(snapshots) == {"4h", "H1"}
    assert len(snapshots["4h"].candles) == 80
    assert snapshots["4h"].price == snapshots["4h"].candles[-1].close


@pytest.mark.unit
def test_load_snapshots_flat_map(tmp_path):
    path = tmp_path / "flat.json"
    path.write_text(json.dumps({"1h": {"price": 12.5, "candles": []}}))

    symbol, snapshots = load_snapshots(str(path))

    assert symbol is None
    assert snapshots["1h"].price == 12.5


@pytest.mark.unit
def test_load_snapshots_rejects_lists(tmp_path):
    path = tmp_path / "list.json"
    path.write_text("[1, 2, 3]")

    with pytest.raises(ValueError):
        load_snapshots(str(path))


@pytest.mark.unit
def test_main_json_output(snapshot_file, tmp_path):
    output = tmp_path / "decision.json"

    exit_code = main([str(snapshot_file), "--format", "json", "--output", str(output), "--verbose", "0"])

    assert exit_code == 0
    result = json.loads(output.read_text())
    assert result["symbol"] == "XAUUSD"
    assert result["decision"]["final_signal"] == "BUY"
    assert 10.0 <= result["decision"]["probability"] <= 90.0
    assert result["regime"]["state"] == "EXHAUSTION"


@pytest.mark.unit
def test_main_table_without_regime(snapshot_file, tmp_path):
    output = tmp_path / "decision.json"

    exit_code = main([str(snapshot_file), "--no-regime", "--output", str(output), "--verbose", "0"])

    assert exit_code == 0
    assert json.loads(output.read_text())["regime"] is None


@pytest.mark.unit
def test_main_missing_file(tmp_path):
    assert main([str(tmp_path / "missing.json"), "--verbose", "0"]) == 1


@pytest.mark.unit
def test_main_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")

    assert main([str(path), "--verbose", "0"]) == 1


@pytest.mark.unit
def test_main_empty_snapshot_is_error(tmp_path):
    path = tmp_path / "empty.json"
    path.write_text("{}")

    assert main([str(path), "--verbose", "0"]) == 1


@pytest.mark.unit
def test_main_accepts_numeric_strings(tmp_path, rising_candles):
    path = tmp_path / "strings.json"
    candles = [
        {key: (None if value is None else str(value)) for key, value in candle.items()}
        for candle in _candle_dicts(rising_candles)
    ]
    price = str(rising_candles[-1].close)
    path.write_text(json.dumps({
        "4h": {"price": price, "candles": candles},
        "1h": {"price": price, "candles": candles},
    }))
    output = tmp_path / "decision.json"

    _, snapshots = load_snapshots(str(path))
    exit_code = main([str(path), "--no-regime", "--format", "json", "--output", str(output), "--verbose", "0"])

    assert snapshots["4h"].candles[0].close == rising_candles[0].close
    assert exit_code == 0
    assert json.loads(output.read_text())["decision"]["final_signal"] == "BUY"


@pytest.mark.unit
def test_main_corroborate(snapshot_file, tmp_path):
    output = tmp_path / "decision.json"

    exit_code = main([str(snapshot_file), "--corroborate", "--no-regime", "--output", str(output), "--verbose", "0"])

    assert exit_code == 0
    corroboration = json.loads(output.read_text())["corroboration"]
    assert corroboration["combined_signal"] == "BUY"
    assert corroboration["sensitivity"] == 1.3
