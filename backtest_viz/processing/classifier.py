"""
타임라인 행 분류 모듈.

[ 역할 ]
    chart_data의 한 행(RawTimelineRow)이 어떤 시리즈에 기여하는지 판단.
    하나의 switch가 아니라 독립적인 (판별 + 추출) 함수 쌍을 같은 행에 모두
    적용하여 facet을 모은다. 한 행이 봉이면서 동시에 시그널일 수 있다.

[ 분류 규칙 ]
    1. bar       : ticker가 포트폴리오 지표 이름이 아님 + open/high/low/close 모두 존재
    2. signal    : signal_intention + signal_price 존재 (1과 무관)
    3. equity    : ticker == "EQUITY" + close 존재
    4. indicator : ticker가 포트폴리오 지표 이름이 아님 + close 존재 + 1에 해당하지 않음
                   + (이름에 괄호 파라미터 / "_IND"로 끝남 / underlying이 다른 종목)
    5. metric    : ticker가 포트폴리오 지표 이름 + close 존재

    포트폴리오 지표 이름은 정확히 일치(exact match)로 판단한다.
    bar / indicator / metric은 상호배타. 둘 이상이면 AmbiguousClassificationError.

[ 호출하는 곳 ]
    - processing/processor.py::process_timeline()에서 행마다 classify_row() 호출
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

import pandas as pd

from backtest_viz.core.errors import AmbiguousClassificationError, MalformedRowError
from backtest_viz.core.timeline import (
    EQUITY_TICKER,
    PORTFOLIO_METRIC_NAMES,
    PORTFOLIO_SENTINEL,
    EquityPoint,
    IndicatorPoint,
    MetricPoint,
    OHLCVBar,
    RawTimelineRow,
    Signal,
    SignalIntention,
)

# SMA(20), BB(20,2) 처럼 이름 끝의 괄호 파라미터 목록
_PARAM_LIST = re.compile(r"\(.*\)$")
# 2024-01-02 로 시작하는 ISO-8601 문자열만 허용 ("now", "today" 등 거부)
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}")
_INDICATOR_SUFFIX = "_IND"

_NUMERIC_FIELDS = ("open", "high", "low", "close", "volume", "signal_price", "signal_confidence")


@dataclass(frozen=True)
class ParsedRow:
    """숫자/시간 필드를 파싱한 행. 파싱은 분류 전에 모든 필드에 대해 한 번 수행."""
    timestamp: datetime
    ticker: str
    underlying: Optional[str]
    open: Optional[float]
    high: Optional[float]
    low: Optional[float]
    close: Optional[float]
    volume: Optional[float]
    signal_intention: Optional[SignalIntention]
    signal_price: Optional[float]
    signal_confidence: Optional[float]
    signal_reason: Optional[str]


@dataclass(frozen=True)
class RowFacets:
    """한 행에서 추출한 facet들. 해당 없는 facet은 None."""
    bar: Optional[OHLCVBar] = None
    signal: Optional[Signal] = None
    equity: Optional[EquityPoint] = None
    indicator: Optional[IndicatorPoint] = None
    metric: Optional[MetricPoint] = None
    ticker: str = ""
    timestamp: Optional[datetime] = None

    @property
    def category(self) -> str:
        """상호배타 카테고리: "bar" / "indicator" / "metric" / "dropped"."""
        if self.bar is not None:
            return "bar"
        if self.indicator is not None:
            return "indicator"
        if self.metric is not None:
            return "metric"
        return "dropped"

    def validate(self, row_index: int | None = None) -> "RowFacets":
        exclusive = [
            name for name in ("bar", "indicator", "metric")
            if getattr(self, name) is not None
        ]
        if len(exclusive) > 1:
            where = f"row {row_index}: " if row_index is not None else ""
            raise AmbiguousClassificationError(
                f"{where}ticker '{self.ticker}' matches {', '.join(exclusive)}"
            )
        return self


# ─── 파싱 ─────────────────────────────────────────────────────────────────

def parse_timestamp(value: Any, row_index: int | None = None) -> datetime:
    """ISO-8601 문자열 → datetime. 실패하면 MalformedRowError.

    문자열이 아니거나(epoch 정수 등) 날짜로 시작하지 않으면 거부한다.
    """
    if value is None:
        raise MalformedRowError("missing timestamp", row_index)
    if not isinstance(value, str) or not _ISO_DATE.match(value.strip()):
        raise MalformedRowError(f"timestamp is not ISO-8601: {value!r}", row_index)
    try:
        ts = pd.to_datetime(value.strip(), format="ISO8601")
    except (ValueError, OverflowError) as exc:
        raise MalformedRowError(f"invalid timestamp {value!r}", row_index) from exc
    if pd.isna(ts):
        raise MalformedRowError(f"invalid timestamp {value!r}", row_index)
    return ts.to_pydatetime()


def parse_number(value: Any, field_name: str, row_index: int | None = None) -> Optional[float]:
    """숫자 필드 파싱. 결측은 None, 숫자가 아니면 MalformedRowError."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise MalformedRowError(f"{field_name} is not numeric: {value!r}", row_index)
    try:
        number = float(value)
    except (ValueError, TypeError) as exc:
        raise MalformedRowError(f"{field_name} is not numeric: {value!r}", row_index) from exc
    if pd.isna(number):
        return None
    return number


def parse_intention(value: Any, row_index: int | None = None) -> Optional[SignalIntention]:
    if value is None:
        return None
    try:
        return SignalIntention(str(value).strip().upper())
    except ValueError as exc:
        raise MalformedRowError(f"unknown signal intention {value!r}", row_index) from exc


def parse_row(row: RawTimelineRow, row_index: int | None = None) -> ParsedRow:
    """모든 필드를 먼저 파싱. 분류에 쓰이지 않는 필드라도 깨져 있으면 실패."""
    numbers = {name: parse_number(getattr(row, name), name, row_index) for name in _NUMERIC_FIELDS}
    return ParsedRow(
        timestamp=parse_timestamp(row.timestamp, row_index),
        ticker=row.ticker,
        underlying=row.underlying,
        signal_intention=parse_intention(row.signal_intention, row_index),
        signal_reason=row.signal_reason,
        **numbers,
    )


# ─── 판별 함수 ────────────────────────────────────────────────────────────

def is_portfolio_metric(ticker: str) -> bool:
    """포트폴리오 지표 이름 여부 (정확히 일치)."""
    return ticker in PORTFOLIO_METRIC_NAMES


def is_derived_name(ticker: str) -> bool:
    """이름만으로 파생 지표인지 판단: 괄호 파라미터 또는 _IND 접미사."""
    return bool(_PARAM_LIST.search(ticker)) or ticker.endswith(_INDICATOR_SUFFIX)


def is_derived_from_other(ticker: str, underlying: Optional[str]) -> bool:
    """underlying이 다른 종목을 가리키면 파생 값. 비어 있거나 포트폴리오 전체면 아님."""
    if not underlying or underlying == PORTFOLIO_SENTINEL:
        return False
    return ticker != underlying


def is_price_bar(row: ParsedRow) -> bool:
    if is_portfolio_metric(row.ticker):
        return False
    return None not in (row.open, row.high, row.low, row.close)


def has_signal(row: ParsedRow) -> bool:
    return row.signal_intention is not None and row.signal_price is not None


def is_equity(row: ParsedRow) -> bool:
    return row.ticker == EQUITY_TICKER and row.close is not None


def is_indicator(row: ParsedRow) -> bool:
    # 진짜 가격 봉은 지표로 보고하지 않는다 (bar 규칙 우선)
    if is_portfolio_metric(row.ticker) or row.close is None or is_price_bar(row):
        return False
    return is_derived_name(row.ticker) or is_derived_from_other(row.ticker, row.underlying)


def is_metric(row: ParsedRow) -> bool:
    return is_portfolio_metric(row.ticker) and row.close is not None


# ─── 추출 함수 ────────────────────────────────────────────────────────────

def extract_bar(row: ParsedRow) -> OHLCVBar:
    return OHLCVBar(
        timestamp=row.timestamp,
        open=row.open,
        high=row.high,
        low=row.low,
        close=row.close,
        volume=row.volume if row.volume is not None else 0.0,
    )


def extract_signal(row: ParsedRow) -> Signal:
    return Signal(
        timestamp=row.timestamp,
        intention=row.signal_intention,
        price=row.signal_price,
        confidence=row.signal_confidence if row.signal_confidence is not None else 1.0,
        reason=row.signal_reason,
    )


def extract_equity(row: ParsedRow) -> EquityPoint:
    return EquityPoint(timestamp=row.timestamp, equity=row.close)


def extract_indicator(row: ParsedRow) -> IndicatorPoint:
    return IndicatorPoint(timestamp=row.timestamp, value=row.close)


def extract_metric(row: ParsedRow) -> MetricPoint:
    return MetricPoint(timestamp=row.timestamp, value=row.close)


# facet 이름 → (판별, 추출). 모든 쌍을 같은 행에 독립적으로 적용.
FACET_RULES: tuple[tuple[str, Callable[[ParsedRow], bool], Callable[[ParsedRow], Any]], ...] = (
    ("bar", is_price_bar, extract_bar),
    ("signal", has_signal, extract_signal),
    ("equity", is_equity, extract_equity),
    ("indicator", is_indicator, extract_indicator),
    ("metric", is_metric, extract_metric),
)


def classify_row(row: RawTimelineRow, row_index: int | None = None) -> RowFacets:
    """행 하나를 분류하여 RowFacets 반환.

    Args:
        row: chart_data의 원본 행
        row_index: 오류 메시지용 행 번호

    Raises:
        MalformedRowError: 타임스탬프/숫자/시그널 의도 파싱 실패
        AmbiguousClassificationError: bar/indicator/metric 중 둘 이상 해당
    """
    parsed = parse_row(row, row_index)
    facets = {
        name: extract(parsed)
        for name, matches, extract in FACET_RULES
        if matches(parsed)
    }
    return RowFacets(ticker=parsed.ticker, timestamp=parsed.timestamp, **facets).validate(row_index)
