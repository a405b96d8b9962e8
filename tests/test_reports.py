import math
from datetime import datetime

import pytest

from backtest_viz.core.errors import PerformanceFormatError
from backtest_viz.core.timeline import Signal, SignalIntention
from backtest_viz.processing.reports import (
    TradeSummary,
    monthly_returns_table,
    signal_marker,
    top_drawdowns,
    trade_summary,
)


def test_monthly_returns_table(performance_record):
    table = monthly_returns_table(performance_record)

    assert list(table.index) == [2023, 2024]
    assert list(table.columns) == list(range(1, 13))
    assert table.loc[2024, 1] == pytest.approx(0.02)
    assert table.loc[2023, 12] == pytest.approx(-0.015)
    assert math.isnan(table.loc[2024, 3])


def test_monthly_returns_table_empty():
    table = monthly_returns_table({})
    assert table.empty
    assert list(table.columns) == list(range(1, 13))


def test_monthly_returns_bad_period():
    with pytest.raises(PerformanceFormatError):
        monthly_returns_table({"monthly_returns": [{"period": "2024", "return_pct": "1.0"}]})


def test_top_drawdowns_filters_and_sorts():
    periods = [
        {"drawdown_id": 1, "depth_pct": "5.0", "recovered": True},
        {"drawdown_id": 2, "depth_pct": "20.0", "recovered": False},
        {"drawdown_id": 3, "depth_pct": "12.5", "recovered": True},
        {"drawdown_id": 4, "depth_pct": "8.0", "recovered": True},
    ]

    top = top_drawdowns(periods, n=2)

    assert [p["drawdown_id"] for p in top] == [3, 4]


def test_top_drawdowns_rejects_bad_depth():
    with pytest.raises(PerformanceFormatError):
        top_drawdowns([{"depth_pct": "deep", "recovered": True}])


@pytest.mark.parametrize(
    "intention, position, shape, text",
    [
        ("BUY", "belowBar", "arrowUp", "BUY"),
        ("OPEN_LONG", "belowBar", "arrowUp", "OPEN LONG"),
        ("CLOSE_SHORT", "belowBar", "arrowUp", "CLOSE SHORT"),
        ("SELL", "aboveBar", "arrowDown", "SELL"),
        ("OPEN_SHORT", "aboveBar", "arrowDown", "OPEN SHORT"),
    ],
)
def test_signal_marker(intention, position, shape, text):
    marker = signal_marker(Signal(datetime(2024, 1, 1), SignalIntention(intention), 10.0))
    assert (marker.position, marker.shape, marker.text) == (position, shape, text)


def test_trade_summary_counts_by_is_winner():
    trades = [
        {"trade_id": "t1", "is_winner": True, "realized_pnl": "-5.0", "duration_days": 4},
        {"trade_id": "t2", "is_winner": False, "duration_days": 2},
        {"trade_id": "t3", "is_winner": True, "duration_days": None},
    ]

    summary = trade_summary(trades)

    assert summary == TradeSummary(total_trades=3, winners=2, losers=1, avg_duration_days=2.0)


def test_trade_summary_falls_back_to_realized_pnl(performance_record):
    trades = performance_record["trades"] + [{"trade_id": "t2", "realized_pnl": "-40.0"}]

    summary = trade_summary(trades)

    assert (summary.total_trades, summary.winners, summary.losers) == (2, 1, 1)
    assert summary.avg_duration_days == 0.0


def test_trade_summary_empty():
    assert trade_summary([]) == TradeSummary()


def test_trade_summary_rejects_bad_duration():
    with pytest.raises(PerformanceFormatError) as exc_info:
        trade_summary([{"is_winner": True, "duration_days": "a week"}])
    assert exc_info.value.field_name == "duration_days"
