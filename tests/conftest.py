# tests/conftest.py
import json
from pathlib import Path
from typing import Any

import pytest


def make_row(ticker: str, day: int = 1, **fields: Any) -> dict[str, Any]:
    """chart_data 행 하나. underlying은 기본으로 ticker와 같다."""
    row = {
        "timestamp": f"2024-01-{day:02d}T00:00:00",
        "strategy_id": "sma_cross",
        "ticker": ticker,
        "underlying": ticker,
    }
    row.update(fields)
    return row


def bar_row(ticker: str = "AAPL", day: int = 1, close: float = 100.0, **fields: Any) -> dict[str, Any]:
    return make_row(
        ticker,
        day,
        open=close - 1,
        high=close + 2,
        low=close - 2,
        close=close,
        volume=1000,
        **fields,
    )


@pytest.fixture
def performance_record() -> dict[str, Any]:
    return {
        "backtest_id": "bt-001",
        "total_return_pct": "25.50",
        "cagr": "11.2",
        "sharpe_ratio": "1.35",
        "sortino_ratio": "1.90",
        "calmar_ratio": "0.85",
        "max_drawdown_pct": "13.2",
        "volatility_annual_pct": "15.1",
        "win_rate": "55.0",
        "profit_factor": "1.7",
        "total_trades": 40,
        "winning_trades": 22,
        "losing_trades": 18,
        "avg_win": "520.10",
        "avg_loss": "-310.40",
        "largest_win": "2100.00",
        "largest_loss": "-1500.00",
        "expectancy": "146.3",
        "max_consecutive_wins": 5,
        "max_consecutive_losses": 3,
        "avg_trade_duration_days": "6.5",
        "monthly_returns": [
            {"period": "2023-12", "return_pct": "-1.50"},
            {"period": "2024-01", "return_pct": "2.00"},
            {"period": "2024-02", "return_pct": "0.50"},
        ],
        "trades": [
            {"trade_id": "t1", "symbol": "AAPL", "side": "long", "realized_pnl": "120.0"},
        ],
    }


@pytest.fixture
def write_run(tmp_path: Path, performance_record):
    """tmp_path 아래에 실행 디렉토리를 만드는 팩토리."""

    def _write(
        run_id: str = "20240101_000000",
        rows: list[dict[str, Any]] | None = None,
        csv_text: str | None = None,
        trades: list[dict[str, Any]] | None = None,
        drawdowns: list[dict[str, Any]] | None = None,
    ) -> Path:
        run_path = tmp_path / "runs" / run_id
        (run_path / "timeseries").mkdir(parents=True)
        (run_path / "manifest.json").write_text(
            json.dumps({"run_id": run_id, "status": "success"}), encoding="utf-8"
        )
        (run_path / "metadata.json").write_text(
            json.dumps({"metadata_version": "1.0"}), encoding="utf-8"
        )
        (run_path / "performance.json").write_text(json.dumps(performance_record), encoding="utf-8")
        if csv_text is not None:
            (run_path / "timeseries" / "chart_data.csv").write_text(csv_text, encoding="utf-8")
        else:
            (run_path / "timeseries" / "chart_data.json").write_text(
                json.dumps(rows or []), encoding="utf-8"
            )
        if trades is not None:
            (run_path / "timeseries" / "trades.json").write_text(json.dumps(trades), encoding="utf-8")
        if drawdowns is not None:
            (run_path / "timeseries" / "drawdowns.json").write_text(json.dumps(drawdowns), encoding="utf-8")
        return run_path

    return _write
