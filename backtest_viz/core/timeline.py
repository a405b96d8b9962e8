"""
타임라인 데이터 타입 정의.

[ 역할 ]
    백테스트 실행 결과의 행 단위 시계열(chart_data)과, 이를 분류/가공한
    차트용 시리즈 타입을 정의.

[ 입력 ]
    RawTimelineRow - chart_data.json / chart_data.csv의 한 행.
                     ticker가 종목일 수도, 포트폴리오 지표(EQUITY 등)일 수도,
                     파생 지표(SMA(20) 등)일 수도 있다.

[ 출력 ]
    OHLCVBar / Signal / EquityPoint / IndicatorPoint / MetricPoint / DrawdownPoint
    ProcessedBacktestData - 위 시리즈 전체 묶음 (processor.process_timeline()의 반환값)

[ 호출하는 곳 ]
    - data/loader.py에서 RawTimelineRow.from_dict()로 행 생성
    - processing/classifier.py, builders.py, drawdown.py에서 출력 타입 생성
    - run_viewer.py에서 ProcessedBacktestData.to_frames()로 CSV 내보내기
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

import pandas as pd

# 포트폴리오 수준 지표 이름. classifier와 metric builder가 함께 사용.
PORTFOLIO_METRIC_NAMES: frozenset[str] = frozenset({
    "EQUITY",
    "CASH",
    "POSITIONS_VALUE",
    "SHARPE",
    "SORTINO",
    "CURRENT_DRAWDOWN",
    "CAGR",
    "CALMAR",
    "EXPECTANCY",
    "PROFIT_FACTOR",
})

EQUITY_TICKER = "EQUITY"

# underlying이 이 값이면 특정 종목이 아닌 포트폴리오 전체에서 계산된 값
PORTFOLIO_SENTINEL = "PORTFOLIO"

# RawTimelineRow의 명시 필드. 나머지(order_*/fill_*/trade_* 등)는 extra로 보관.
_ROW_FIELDS = (
    "timestamp",
    "ticker",
    "underlying",
    "open",
    "high",
    "low",
    "close",
    "volume",
    "signal_intention",
    "signal_price",
    "signal_confidence",
    "signal_reason",
)


def _is_missing(value: Any) -> bool:
    """None / 빈 문자열 / NaN(pandas CSV 로드 시)을 결측으로 본다."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, float):
        return pd.isna(value)
    return False


@dataclass(frozen=True)
class RawTimelineRow:
    """chart_data의 한 행. 값은 파싱 전 원본 그대로 보관 (결측만 None으로 정규화)."""
    timestamp: Any
    ticker: str
    underlying: Optional[str] = None
    open: Any = None
    high: Any = None
    low: Any = None
    close: Any = None
    volume: Any = None
    signal_intention: Optional[str] = None
    signal_price: Any = None
    signal_confidence: Any = None
    signal_reason: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RawTimelineRow":
        """피드 레코드(dict)에서 생성. 알 수 없는 키는 extra로."""
        values = {k: (None if _is_missing(data.get(k)) else data.get(k)) for k in _ROW_FIELDS}
        values["ticker"] = "" if values["ticker"] is None else str(values["ticker"])
        extra = {k: v for k, v in data.items() if k not in _ROW_FIELDS}
        return cls(**values, extra=extra)


@dataclass(frozen=True)
class OHLCVBar:
    """단일 봉(캔들) 데이터."""
    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


class SignalIntention(Enum):
    """전략이 낸 시그널 의도."""
    BUY = "BUY"
    SELL = "SELL"
    OPEN_LONG = "OPEN_LONG"
    CLOSE_LONG = "CLOSE_LONG"
    OPEN_SHORT = "OPEN_SHORT"
    CLOSE_SHORT = "CLOSE_SHORT"


@dataclass(frozen=True)
class Signal:
    """매매 시그널. 가격 차트 위 마커로 표시됨."""
    timestamp: datetime
    intention: SignalIntention
    price: float
    confidence: float = 1.0    # 피드에 없으면 1.0
    reason: Optional[str] = None


@dataclass(frozen=True)
class EquityPoint:
    timestamp: datetime
    equity: float


@dataclass(frozen=True)
class IndicatorPoint:
    timestamp: datetime
    value: float


@dataclass(frozen=True)
class MetricPoint:
    timestamp: datetime
    value: float


@dataclass(frozen=True)
class DrawdownPoint:
    """고점 대비 낙폭 (%). 항상 0 이하."""
    timestamp: datetime
    drawdown: float


@dataclass(frozen=True)
class Indicator:
    name: str
    data: tuple[IndicatorPoint, ...] = ()


@dataclass(frozen=True)
class ClassificationStats:
    """분류 결과 집계. bars + indicators + metrics + dropped == rows."""
    rows: int = 0
    bars: int = 0
    indicators: int = 0
    metrics: int = 0
    dropped: int = 0
    signals: int = 0          # 중복 제거 전
    signals_kept: int = 0     # 중복 제거 후


@dataclass(frozen=True)
class ProcessedBacktestData:
    """한 백테스트 실행의 차트용 시리즈 묶음.

    ohlcv는 입력 순서 그대로(중복 제거 전)이며, 차트에 넣을 때는
    chart_bars()로 같은 초(second)의 봉을 마지막 값 기준으로 정리한다.
    """
    ohlcv: tuple[OHLCVBar, ...] = ()
    signals: tuple[Signal, ...] = ()
    equity: tuple[EquityPoint, ...] = ()
    indicators: dict[str, tuple[IndicatorPoint, ...]] = field(default_factory=dict)
    metrics: dict[str, tuple[MetricPoint, ...]] = field(default_factory=dict)
    drawdown: tuple[DrawdownPoint, ...] = ()
    trades: tuple[dict[str, Any], ...] = ()
    stats: ClassificationStats = field(default_factory=ClassificationStats)

    def indicator_list(self) -> list[Indicator]:
        """{이름: 포인트} 매핑을 Indicator 리스트로 (삽입 순서 유지)."""
        return [Indicator(name=name, data=points) for name, points in self.indicators.items()]

    def chart_bars(self) -> list[OHLCVBar]:
        """같은 초의 봉은 마지막 것만 남기고 시간순 정렬."""
        from backtest_viz.processing.builders import dedupe_last_wins
        return dedupe_last_wins(self.ohlcv)

    def chart_equity(self) -> list[EquityPoint]:
        """equity도 같은 규칙(last-wins + 정렬) 적용."""
        from backtest_viz.processing.builders import dedupe_last_wins
        return dedupe_last_wins(self.equity)

    def to_frames(self) -> dict[str, pd.DataFrame]:
        """시리즈별 DataFrame. run_viewer.py --export에서 CSV로 저장."""
        ohlcv = pd.DataFrame(
            [vars(b) for b in self.ohlcv],
            columns=["timestamp", "open", "high", "low", "close", "volume"],
        )
        signals = pd.DataFrame(
            [
                {
                    "timestamp": s.timestamp,
                    "intention": s.intention.value,
                    "price": s.price,
                    "confidence": s.confidence,
                    "reason": s.reason,
                }
                for s in self.signals
            ],
            columns=["timestamp", "intention", "price", "confidence", "reason"],
        )
        equity = pd.DataFrame([vars(p) for p in self.equity], columns=["timestamp", "equity"])
        drawdown = pd.DataFrame([vars(p) for p in self.drawdown], columns=["timestamp", "drawdown"])
        indicators = pd.DataFrame(
            [
                {"name": name, "timestamp": p.timestamp, "value": p.value}
                for name, points in self.indicators.items()
                for p in points
            ],
            columns=["name", "timestamp", "value"],
        )
        metrics = pd.DataFrame(
            [
                {"name": name, "timestamp": p.timestamp, "value": p.value}
                for name, points in self.metrics.items()
                for p in points
            ],
            columns=["name", "timestamp", "value"],
        )
        trades = pd.DataFrame(list(self.trades))
        return {
            "ohlcv": ohlcv,
            "signals": signals,
            "equity": equity,
            "drawdown": drawdown,
            "indicators": indicators,
            "metrics": metrics,
            "trades": trades,
        }
