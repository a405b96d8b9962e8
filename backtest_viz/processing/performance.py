"""
성과 요약 수치 변환 모듈.

[ 역할 ]
    performance.json의 문자열 숫자 필드("12.34")를 표시용 수치로 변환.
    format_performance_metrics() 함수가 핵심.

[ 변환하는 지표 ]
    - 총 수익률 / CAGR / 변동성
    - 샤프 / 소르티노 / 칼마 비율
    - MDD (최대 낙폭)
    - 승률, 수익 팩터, 기대값
    - 평균/최대 수익·손실, 연속 승/패, 평균 보유 기간

[ 오류 ]
    필드 하나라도 없거나 숫자가 아니면 PerformanceFormatError (부분 결과 없음).

[ 호출하는 곳 ]
    - run_viewer.py에서 summary()로 리포트 출력
"""

from dataclasses import dataclass
from typing import Any, Mapping

from backtest_viz.core.errors import PerformanceFormatError


@dataclass(frozen=True)
class PerformanceMetrics:
    """표시용 성과 지표. summary()로 포맷된 리포트 출력 가능."""
    total_return: float              # 총 수익률 (%)
    cagr: float                      # 연환산 수익률 (%)
    sharpe_ratio: float
    sortino_ratio: float
    calmar_ratio: float
    max_drawdown: float              # 최대 낙폭 (%, 양수로 기록됨)
    volatility: float                # 연환산 변동성 (%)
    win_rate: float                  # 승률 (%)
    profit_factor: float
    total_trades: int
    winning_trades: int
    losing_trades: int
    avg_win: float
    avg_loss: float
    largest_win: float
    largest_loss: float
    expectancy: float
    max_consecutive_wins: int
    max_consecutive_losses: int
    avg_trade_duration: float        # 평균 보유 기간 (일)

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리 변환."""
        from dataclasses import asdict
        return asdict(self)

    def summary(self) -> str:
        """성과 요약 문자열."""
        lines = [
            "=" * 50,
            "백테스트 성과 리포트",
            "=" * 50,
            f"총 수익률:       {self.total_return:>10.2f}%",
            f"연환산 수익률:    {self.cagr:>10.2f}%",
            f"변동성(연):      {self.volatility:>10.2f}%",
            f"샤프 비율:       {self.sharpe_ratio:>10.2f}",
            f"소르티노 비율:    {self.sortino_ratio:>10.2f}",
            f"칼마 비율:       {self.calmar_ratio:>10.2f}",
            f"최대 낙폭(MDD):  {-self.max_drawdown:>10.2f}%",
            "-" * 50,
            f"총 거래 횟수:    {self.total_trades:>10d}",
            f"승률:            {self.win_rate:>10.2f}%",
            f"수익 거래:       {self.winning_trades:>10d}",
            f"손실 거래:       {self.losing_trades:>10d}",
            f"평균 수익:       {self.avg_win:>10,.2f}",
            f"평균 손실:       {self.avg_loss:>10,.2f}",
            f"최대 수익:       {self.largest_win:>10,.2f}",
            f"최대 손실:       {self.largest_loss:>10,.2f}",
            f"수익 팩터:       {self.profit_factor:>10.2f}",
            f"기대값:          {self.expectancy:>10,.2f}",
            "-" * 50,
            f"최대 연속 수익:  {self.max_consecutive_wins:>10d}",
            f"최대 연속 손실:  {self.max_consecutive_losses:>10d}",
            f"평균 보유 기간:  {self.avg_trade_duration:>10.1f}일",
            "=" * 50,
        ]
        return "\n".join(lines)


# PerformanceMetrics 필드 → (performance.json 키, 변환 타입)
FIELD_MAP: dict[str, tuple[str, type]] = {
    "total_return": ("total_return_pct", float),
    "cagr": ("cagr", float),
    "sharpe_ratio": ("sharpe_ratio", float),
    "sortino_ratio": ("sortino_ratio", float),
    "calmar_ratio": ("calmar_ratio", float),
    "max_drawdown": ("max_drawdown_pct", float),
    "volatility": ("volatility_annual_pct", float),
    "win_rate": ("win_rate", float),
    "profit_factor": ("profit_factor", float),
    "total_trades": ("total_trades", int),
    "winning_trades": ("winning_trades", int),
    "losing_trades": ("losing_trades", int),
    "avg_win": ("avg_win", float),
    "avg_loss": ("avg_loss", float),
    "largest_win": ("largest_win", float),
    "largest_loss": ("largest_loss", float),
    "expectancy": ("expectancy", float),
    "max_consecutive_wins": ("max_consecutive_wins", int),
    "max_consecutive_losses": ("max_consecutive_losses", int),
    "avg_trade_duration": ("avg_trade_duration_days", float),
}


def _coerce(key: str, value: Any, kind: type) -> float | int:
    if value is None or isinstance(value, bool):
        raise PerformanceFormatError(key, value)
    try:
        if kind is int:
            number = float(value)
            if not number.is_integer():
                raise PerformanceFormatError(key, value)
            return int(number)
        return float(value)
    except (ValueError, TypeError, OverflowError) as exc:
        raise PerformanceFormatError(key, value) from exc


def format_performance_metrics(performance: Mapping[str, Any]) -> PerformanceMetrics:
    """performance.json 레코드를 PerformanceMetrics로 변환.

    Args:
        performance: performance.json을 파싱한 dict

    Raises:
        PerformanceFormatError: 필드 누락 또는 숫자 변환 실패
    """
    values = {
        attr: _coerce(key, performance.get(key), kind)
        for attr, (key, kind) in FIELD_MAP.items()
    }
    return PerformanceMetrics(**values)
