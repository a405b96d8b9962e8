"""
타임라인 가공 진입점.

[ 역할 ]
    chart_data 행 시퀀스를 한 번 순회하며 분류하고, 4개 builder에 누적한 뒤
    equity 시리즈로 낙폭을 계산하여 ProcessedBacktestData로 반환.

[ 실행 흐름 ]
    process_timeline() 호출 시:
        1. 각 행을 classify_row()로 분류 (파일 순서 유지, 재정렬 없음)
        2. facet별로 OHLCV / Signal / Indicator / PortfolioMetric builder에 추가
        3. builder 확정 (시그널 중복 제거, 지표 그룹 확정)
        4. 확정된 equity 시리즈로 calculate_drawdowns() 1회
        5. trades는 그대로 통과

[ 오류 ]
    파싱 불가 행은 MalformedRowError로 전체 실패. 부분 타임라인은 반환하지 않는다.
    타임존이 있는 타임스탬프와 없는 타임스탬프가 섞여도 MalformedRowError
    (시간순 정렬이 불가능하므로).
    행이 0개면 모든 시리즈가 빈 결과 (오류 아님).

[ 호출하는 곳 ]
    - run_viewer.py::build_view()
"""

import logging
from typing import Any, Iterable, Mapping, Sequence

from backtest_viz.core.errors import MalformedRowError
from backtest_viz.core.timeline import (
    ClassificationStats,
    EquityPoint,
    ProcessedBacktestData,
    RawTimelineRow,
)
from backtest_viz.processing.builders import (
    IndicatorBuilder,
    OHLCVBuilder,
    PortfolioMetricBuilder,
    SignalBuilder,
)
from backtest_viz.processing.classifier import classify_row
from backtest_viz.processing.drawdown import calculate_drawdowns

logger = logging.getLogger("backtest_viz.processing")


def _as_row(row: RawTimelineRow | Mapping[str, Any]) -> RawTimelineRow:
    if isinstance(row, RawTimelineRow):
        return row
    return RawTimelineRow.from_dict(dict(row))


def process_timeline(
    rows: Iterable[RawTimelineRow | Mapping[str, Any]],
    trades: Sequence[dict[str, Any]] | None = None,
    dedupe_indicators: bool = False,
) -> ProcessedBacktestData:
    """타임라인 분류/변환.

    Args:
        rows: chart_data 행 (RawTimelineRow 또는 피드의 dict 그대로)
        trades: 성과 요약의 거래 목록. 가공 없이 통과
        dedupe_indicators: True면 지표별로 같은 초의 포인트를 마지막 값으로 정리

    Returns:
        ProcessedBacktestData

    Raises:
        MalformedRowError, AmbiguousClassificationError
    """
    ohlcv = OHLCVBuilder()
    signals = SignalBuilder()
    indicators = IndicatorBuilder(dedupe=dedupe_indicators)
    metrics = PortfolioMetricBuilder()
    equity: list[EquityPoint] = []
    counts = {"bar": 0, "indicator": 0, "metric": 0, "dropped": 0}

    total = 0
    tz_aware: bool | None = None
    for index, raw in enumerate(rows):
        total += 1
        facets = classify_row(_as_row(raw), row_index=index)
        counts[facets.category] += 1

        # 실행 전체가 첫 행의 타임존 유무를 따라야 한다
        row_aware = facets.timestamp.tzinfo is not None
        if tz_aware is None:
            tz_aware = row_aware
        elif row_aware != tz_aware:
            raise MalformedRowError(
                f"timestamp {'with' if row_aware else 'without'} timezone in a run "
                f"whose first row is {'aware' if tz_aware else 'naive'}",
                index,
            )

        if facets.bar is not None:
            ohlcv.add(facets.bar)
        if facets.signal is not None:
            signals.add(facets.signal)
        if facets.indicator is not None:
            indicators.add(facets.ticker, facets.indicator)
        if facets.metric is not None:
            metrics.add(facets.ticker, facets.metric)
        if facets.equity is not None:
            equity.append(facets.equity)

    kept_signals = signals.finalize()
    stats = ClassificationStats(
        rows=total,
        bars=counts["bar"],
        indicators=counts["indicator"],
        metrics=counts["metric"],
        dropped=counts["dropped"],
        signals=signals.raw_count,
        signals_kept=len(kept_signals),
    )

    # equity가 모두 모인 뒤에만 낙폭 계산
    drawdown = calculate_drawdowns(equity)

    logger.info(
        f"타임라인 가공 완료: {stats.rows}행 → 봉 {stats.bars}, 지표 {stats.indicators}, "
        f"포트폴리오 지표 {stats.metrics}, 제외 {stats.dropped}, "
        f"시그널 {stats.signals_kept}/{stats.signals}"
    )

    result = ProcessedBacktestData(
        ohlcv=ohlcv.finalize(),
        signals=kept_signals,
        equity=tuple(equity),
        indicators=indicators.finalize(),
        metrics=metrics.finalize(),
        drawdown=tuple(drawdown),
        trades=tuple(trades or ()),
        stats=stats,
    )
    logger.debug(f"지표 시리즈: {list(result.indicators)}, 포트폴리오 지표: {list(result.metrics)}")
    return result
