import pytest

from backtest_viz.core.errors import RunLoadError
from backtest_viz.data.loader import (
    list_runs,
    load_backtest_run,
    load_timeline_rows,
    load_trades,
)
from backtest_viz.processing.processor import process_timeline
from conftest import bar_row, make_row

CSV_TEXT = """timestamp,ticker,underlying,open,high,low,close,volume,signal_intention,signal_price,signal_confidence,signal_reason,order_id
2024-01-01T00:00:00,AAPL,AAPL,99,102,98,100,1000,BUY,100,,golden cross,
2024-01-01T00:00:00,SMA(20),AAPL,,,,99.5,,,,,,
2024-01-01T00:00:00,EQUITY,PORTFOLIO,,,,10000,,,,,,
2024-01-02T00:00:00,AAPL,AAPL,,,,,,,,,,o-17
"""


def test_load_json_run(write_run):
    rows = [bar_row("AAPL", 1), make_row("EQUITY", 1, close=1000.0, underlying="PORTFOLIO")]
    run_path = write_run(rows=rows, drawdowns=[{"drawdown_id": 1, "depth_pct": "3.0", "recovered": True}])

    run = load_backtest_run(run_path.parent, run_path.name)

    assert run.run_id == run_path.name
    assert run.manifest["status"] == "success"
    assert run.metadata["metadata_version"] == "1.0"
    assert len(run.rows) == 2
    assert run.rows[0].ticker == "AAPL"
    assert run.rows[0].extra == {"strategy_id": "sma_cross"}
    assert run.drawdown_periods[0]["drawdown_id"] == 1
    # trades.json이 없으면 performance의 trades 사용
    assert run.trades[0]["trade_id"] == "t1"


def test_load_csv_timeline(write_run):
    run_path = write_run(csv_text=CSV_TEXT)

    rows = load_timeline_rows(run_path)
    result = process_timeline(rows)

    assert len(rows) == 4
    assert rows[1].open is None
    assert rows[0].signal_confidence is None
    assert [b.close for b in result.ohlcv] == [100.0]
    assert result.signals[0].confidence == 1.0
    assert result.signals[0].reason == "golden cross"
    assert list(result.indicators) == ["SMA(20)"]
    assert [p.equity for p in result.equity] == [10000.0]
    assert result.stats.dropped == 1


def test_trades_file_takes_precedence(write_run, performance_record):
    run_path = write_run(trades=[{"trade_id": "from-file"}])
    assert load_trades(run_path, performance_record) == [{"trade_id": "from-file"}]


def test_trades_default_to_empty(tmp_path):
    assert load_trades(tmp_path) == []


def test_missing_chart_data_raises(write_run):
    run_path = write_run(rows=[])
    (run_path / "timeseries" / "chart_data.json").unlink()

    with pytest.raises(RunLoadError):
        load_timeline_rows(run_path)


def test_invalid_json_raises(write_run):
    run_path = write_run()
    (run_path / "manifest.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(RunLoadError):
        load_backtest_run(run_path.parent, run_path.name)


def test_chart_data_must_be_a_list(write_run):
    run_path = write_run()
    (run_path / "timeseries" / "chart_data.json").write_text('{"rows": []}', encoding="utf-8")
    with pytest.raises(RunLoadError):
        load_timeline_rows(run_path)


def test_unknown_run_raises(tmp_path):
    with pytest.raises(RunLoadError):
        load_backtest_run(tmp_path, "nope")


def test_list_runs_only_returns_run_directories(write_run, tmp_path):
    write_run("20240102_000000")
    write_run("20240101_000000")
    (tmp_path / "runs" / "scratch").mkdir()

    assert list_runs(tmp_path / "runs") == ["20240101_000000", "20240102_000000"]


def test_list_runs_missing_dir(tmp_path):
    with pytest.raises(RunLoadError):
        list_runs(tmp_path / "missing")
