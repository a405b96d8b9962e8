"""
낙폭(drawdown) 계산 모듈.

[ 역할 ]
    완성된 equity 시리즈에서 고점 대비 낙폭(%) 시리즈를 계산.
    drawdown = (equity - peak) / peak * 100   (peak > 0일 때, 아니면 0)

[ 주의 ]
    i번째 낙폭은 [0, i] 구간 전체의 최고점에 의존한다.
    구간을 나눠 다시 계산할 때는 이전 구간의 최종 peak를 넘겨줘야 한다.
    → drawdown_fold()가 (시리즈, 최종 peak)를 반환하는 이유.

[ 호출하는 곳 ]
    - processing/processor.py::process_timeline()에서 equity 확정 후 1회
    - run_viewer.py에서 max_drawdown() 출력
"""

from typing import Sequence

import numpy as np

from backtest_viz.core.timeline import DrawdownPoint, EquityPoint


def drawdown_fold(
    equity: Sequence[EquityPoint],
    peak: float = 0.0,
) -> tuple[list[DrawdownPoint], float]:
    """왼쪽에서 오른쪽으로 한 번 훑으며 낙폭 계산.

    Args:
        equity: 시간순 equity 시리즈
        peak: 시작 고점 (앞 구간에서 이어받을 때 사용)

    Returns:
        (낙폭 시리즈, 마지막 시점의 고점)
    """
    points: list[DrawdownPoint] = []
    for point in equity:
        peak = max(peak, point.equity)
        drawdown = (point.equity - peak) / peak * 100 if peak > 0 else 0.0
        points.append(DrawdownPoint(timestamp=point.timestamp, drawdown=drawdown))
    return points, peak


def calculate_drawdowns(equity: Sequence[EquityPoint], peak: float = 0.0) -> list[DrawdownPoint]:
    """낙폭 시리즈만 반환."""
    points, _ = drawdown_fold(equity, peak)
    return points


def max_drawdown(drawdowns: Sequence[DrawdownPoint]) -> float:
    """최대 낙폭 (가장 작은 값, %). 비어 있으면 0."""
    if not drawdowns:
        return 0.0
    return float(np.min([p.drawdown for p in drawdowns]))


def average_drawdown(drawdowns: Sequence[DrawdownPoint]) -> float:
    """고점 아래에 있던 시점들의 평균 낙폭 (%). 해당 시점이 없으면 0."""
    underwater = np.array([p.drawdown for p in drawdowns if p.drawdown < 0])
    if underwater.size == 0:
        return 0.0
    return float(np.mean(underwater))
