from datetime import datetime, timedelta

import pytest

from backtest_viz.core.timeline import DrawdownPoint, EquityPoint
from backtest_viz.processing.drawdown import (
    average_drawdown,
    calculate_drawdowns,
    drawdown_fold,
    max_drawdown,
)

T0 = datetime(2024, 1, 1)


def curve(*values: float) -> list[EquityPoint]:
    return [EquityPoint(timestamp=T0 + timedelta(days=i), equity=v) for i, v in enumerate(values)]


def test_peak_relative_drawdown():
    result = calculate_drawdowns(curve(100, 90, 95))
    assert [p.drawdown for p in result] == pytest.approx([0.0, -10.0, -5.0])
    assert [p.timestamp for p in result] == [T0, T0 + timedelta(days=1), T0 + timedelta(days=2)]


def test_empty_equity_gives_empty_drawdown():
    assert calculate_drawdowns([]) == []
    assert drawdown_fold([]) == ([], 0.0)


def test_drawdown_is_non_positive_and_zero_at_new_highs():
    values = [100, 120, 110, 130, 90, 130, 140, 70]
    result = calculate_drawdowns(curve(*values))

    running_max = 0.0
    for value, point in zip(values, result):
        assert point.drawdown <= 0
        if value >= running_max:
            assert point.drawdown == 0
        running_max = max(running_max, value)


def test_non_positive_equity_floors_at_zero():
    result = calculate_drawdowns(curve(0, -5, 0))
    assert [p.drawdown for p in result] == [0.0, 0.0, 0.0]


def test_carrying_peak_matches_full_pass():
    """구간을 나눠 계산해도 이전 구간의 peak를 넘기면 결과가 같다."""
    equity = curve(100, 150, 120, 90, 160, 100)
    whole = calculate_drawdowns(equity)

    head, peak = drawdown_fold(equity[:3])
    tail, final_peak = drawdown_fold(equity[3:], peak=peak)

    assert head + tail == whole
    assert peak == 150
    assert final_peak == 160


def test_windowed_recompute_without_peak_differs():
    equity = curve(100, 150, 120)
    assert calculate_drawdowns(equity[2:])[0].drawdown == 0.0
    assert calculate_drawdowns(equity[2:], peak=150)[0].drawdown == pytest.approx(-20.0)


def test_max_and_average_drawdown():
    points = [DrawdownPoint(T0, 0.0), DrawdownPoint(T0, -10.0), DrawdownPoint(T0, -5.0)]
    assert max_drawdown(points) == -10.0
    assert average_drawdown(points) == pytest.approx(-7.5)


def test_summaries_of_empty_or_flat_series():
    assert max_drawdown([]) == 0.0
    assert average_drawdown([]) == 0.0
    assert average_drawdown([DrawdownPoint(T0, 0.0)]) == 0.0
