"""
리포트용 보조 테이블 모듈.

[ 역할 ]
    화면 탭에서 쓰는 표 데이터를 만든다. 렌더링은 하지 않는다.

[ 주요 함수 ]
    monthly_returns_table() - performance.monthly_returns → 연도 x 월 수익률 표
    top_drawdowns()         - drawdowns.json의 회복된 낙폭 구간 중 깊은 순 상위 N개
    signal_marker()         - 시그널 → 차트 마커 위치/모양/텍스트
    trade_summary()         - 거래 수 / 수익·손실 거래 수 / 평균 보유 기간

[ 호출하는 곳 ]
    - run_viewer.py::print_view()
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Sequence

import pandas as pd

from backtest_viz.core.errors import PerformanceFormatError
from backtest_viz.core.timeline import Signal, SignalIntention

MONTHS = list(range(1, 13))

# 차트 아래쪽 위 화살표로 표시하는 시그널 (롱 진입 / 숏 청산)
_BELOW_BAR = {SignalIntention.BUY, SignalIntention.OPEN_LONG, SignalIntention.CLOSE_SHORT}


def monthly_returns_table(performance: Mapping[str, Any]) -> pd.DataFrame:
    """월별 수익률 표. index=연도(오름차순), columns=1~12월, 값은 소수(0.0123 = 1.23%).

    없는 달은 NaN.
    """
    records = []
    for item in performance.get("monthly_returns") or []:
        period = str(item.get("period", ""))
        year_str, _, month_str = period.partition("-")
        try:
            year, month = int(year_str), int(month_str)
            value = float(item.get("return_pct")) / 100
        except (ValueError, TypeError) as exc:
            raise PerformanceFormatError("monthly_returns", item) from exc
        records.append({"year": year, "month": month, "return": value})

    if not records:
        return pd.DataFrame(columns=MONTHS, dtype=float)

    df = pd.DataFrame(records)
    table = df.pivot_table(index="year", columns="month", values="return", aggfunc="last")
    table = table.reindex(columns=MONTHS).sort_index()
    table.columns.name = None
    return table


def top_drawdowns(periods: Sequence[Mapping[str, Any]], n: int = 10) -> list[Mapping[str, Any]]:
    """회복된 낙폭 구간만 depth_pct 내림차순으로 최대 n개."""
    recovered = [p for p in periods if p.get("recovered")]

    def depth(period: Mapping[str, Any]) -> float:
        try:
            return float(period.get("depth_pct"))
        except (ValueError, TypeError) as exc:
            raise PerformanceFormatError("depth_pct", period.get("depth_pct")) from exc

    return sorted(recovered, key=depth, reverse=True)[:n]


@dataclass(frozen=True)
class SignalMarker:
    timestamp: datetime
    position: str   # "belowBar" / "aboveBar"
    shape: str      # "arrowUp" / "arrowDown"
    text: str


def signal_marker(signal: Signal) -> SignalMarker:
    below = signal.intention in _BELOW_BAR
    return SignalMarker(
        timestamp=signal.timestamp,
        position="belowBar" if below else "aboveBar",
        shape="arrowUp" if below else "arrowDown",
        text=signal.intention.value.replace("_", " ", 1),
    )


@dataclass(frozen=True)
class TradeSummary:
    """거래 탭 상단 요약."""
    total_trades: int = 0
    winners: int = 0
    losers: int = 0
    avg_duration_days: float = 0.0


def trade_summary(trades: Sequence[Mapping[str, Any]]) -> TradeSummary:
    """거래 목록 요약. is_winner가 참이면 수익 거래, 아니면 손실 거래.

    is_winner 필드가 없는 거래는 realized_pnl > 0으로 판단한다.
    """
    if not trades:
        return TradeSummary()

    df = pd.DataFrame(list(trades))
    if "is_winner" in df:
        winners = df["is_winner"].fillna(False).astype(bool)
    elif "realized_pnl" in df:
        try:
            winners = pd.to_numeric(df["realized_pnl"]) > 0
        except (ValueError, TypeError) as exc:
            raise PerformanceFormatError("realized_pnl", list(df["realized_pnl"])) from exc
    else:
        winners = pd.Series(False, index=df.index)

    avg_duration = 0.0
    if "duration_days" in df:
        try:
            durations = pd.to_numeric(df["duration_days"])
        except (ValueError, TypeError) as exc:
            raise PerformanceFormatError("duration_days", list(df["duration_days"])) from exc
        # 기간 없는 거래도 분모에 포함 (0일로 취급)
        avg_duration = float(durations.fillna(0).sum() / len(df))

    return TradeSummary(
        total_trades=len(df),
        winners=int(winners.sum()),
        losers=int((~winners).sum()),
        avg_duration_days=avg_duration,
    )
