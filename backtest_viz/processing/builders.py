"""
시리즈 누적기(builder) 모듈.

[ 역할 ]
    classifier가 만든 facet을 시리즈별로 누적하고, 마지막에 finalize()로
    확정된 시리즈를 돌려준다. 4개의 builder는 서로 독립적.

[ 주요 클래스 ]
    OHLCVBuilder           - 입력 순서대로 봉 누적 (재정렬 없음)
    SignalBuilder          - 시그널 누적 후 연속 중복 제거
    IndicatorBuilder       - 지표 이름별 그룹 (삽입 순서 유지)
    PortfolioMetricBuilder - EQUITY/CASH/SHARPE 등 포트폴리오 지표별 그룹

[ 중복 타임스탬프 규칙 ]
    같은 초(second)로 내림한 타임스탬프가 겹치면 "마지막 값 우선" 후 오름차순 정렬.
    builder 자체는 중복 제거 전 시퀀스를 유지하고, 차트 쪽에서
    dedupe_last_wins()를 호출하여 같은 규칙을 적용한다.

[ 호출하는 곳 ]
    - processing/processor.py::process_timeline()
    - core/timeline.py::ProcessedBacktestData.chart_bars()
"""

from datetime import datetime
from typing import Iterable, Sequence, TypeVar

from backtest_viz.core.timeline import (
    PORTFOLIO_METRIC_NAMES,
    IndicatorPoint,
    MetricPoint,
    OHLCVBar,
    Signal,
)

T = TypeVar("T")


def _second_key(timestamp: datetime) -> datetime:
    return timestamp.replace(microsecond=0)


def dedupe_last_wins(points: Iterable[T]) -> list[T]:
    """초 단위로 같은 타임스탬프는 마지막 값만 남기고 시간순 정렬.

    points의 원소는 timestamp 속성을 가져야 한다.
    """
    latest: dict[datetime, T] = {}
    for point in points:
        latest[_second_key(point.timestamp)] = point
    return [latest[k] for k in sorted(latest)]


def dedupe_signals(signals: Sequence[Signal]) -> list[Signal]:
    """직전에 '남긴' 시그널과 intention이 같으면 버린다.

    BUY, BUY, BUY, SELL → BUY, SELL. 이미 정리된 시퀀스에 다시 적용해도 동일.
    """
    kept: list[Signal] = []
    for signal in signals:
        if kept and kept[-1].intention == signal.intention:
            continue
        kept.append(signal)
    return kept


class OHLCVBuilder:
    """봉 누적기. 입력 순서 유지."""

    def __init__(self):
        self._bars: list[OHLCVBar] = []

    def add(self, bar: OHLCVBar) -> None:
        self._bars.append(bar)

    def finalize(self) -> tuple[OHLCVBar, ...]:
        return tuple(self._bars)


class SignalBuilder:
    """시그널 누적기. finalize() 시 연속 중복 제거 1회."""

    def __init__(self):
        self._signals: list[Signal] = []

    def add(self, signal: Signal) -> None:
        self._signals.append(signal)

    @property
    def raw_count(self) -> int:
        return len(self._signals)

    def finalize(self) -> tuple[Signal, ...]:
        return tuple(dedupe_signals(self._signals))


class IndicatorBuilder:
    """지표 누적기. 이름(ticker)별로 행 순서대로 포인트를 모은다.

    dedupe=True면 이름별로 dedupe_last_wins() 적용 (기본은 적용 안 함).
    """

    def __init__(self, dedupe: bool = False):
        self.dedupe = dedupe
        self._groups: dict[str, list[IndicatorPoint]] = {}

    def add(self, name: str, point: IndicatorPoint) -> None:
        self._groups.setdefault(name, []).append(point)

    def finalize(self) -> dict[str, tuple[IndicatorPoint, ...]]:
        if self.dedupe:
            return {name: tuple(dedupe_last_wins(points)) for name, points in self._groups.items()}
        return {name: tuple(points) for name, points in self._groups.items()}


class PortfolioMetricBuilder:
    """포트폴리오 지표 누적기. PORTFOLIO_METRIC_NAMES에 없는 이름은 거부."""

    def __init__(self):
        self._groups: dict[str, list[MetricPoint]] = {}

    def add(self, name: str, point: MetricPoint) -> None:
        if name not in PORTFOLIO_METRIC_NAMES:
            raise ValueError(f"not a portfolio metric: '{name}'")
        self._groups.setdefault(name, []).append(point)

    def series(self, name: str) -> tuple[MetricPoint, ...]:
        return tuple(self._groups.get(name, ()))

    def finalize(self) -> dict[str, tuple[MetricPoint, ...]]:
        return {name: tuple(points) for name, points in self._groups.items()}
