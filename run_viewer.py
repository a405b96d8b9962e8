"""
백테스트 결과 조회 스크립트 (시스템 진입점).

[ 사용법 ]
    # 기본 실행 (config.yaml의 runs_dir에서 가장 최근 실행)
    python run_viewer.py

    # 실행 지정
    python run_viewer.py --run 20251224_162255
    python run_viewer.py --runs-dir data/runs --run 20251224_162255

    # 가공된 시리즈를 CSV로 내보내기
    python run_viewer.py --run 20251224_162255 --export out/

    # 실행 목록 확인
    python run_viewer.py --list
"""

import argparse
import sys
from pathlib import Path
from typing import Any

from backtest_viz.core.errors import BacktestDataError
from backtest_viz.core.timeline import ProcessedBacktestData
from backtest_viz.data.loader import BacktestRun, list_runs, load_backtest_run
from backtest_viz.processing.drawdown import average_drawdown, max_drawdown
from backtest_viz.processing.performance import PerformanceMetrics, format_performance_metrics
from backtest_viz.processing.processor import process_timeline
from backtest_viz.processing.reports import monthly_returns_table, top_drawdowns, trade_summary
from backtest_viz.utils.config import Config
from backtest_viz.utils.logger import add_run_handler, setup_logger


def build_view(run: BacktestRun, config: Config) -> tuple[ProcessedBacktestData, PerformanceMetrics]:
    """로드한 실행을 차트용 시리즈 + 성과 지표로 가공."""
    processed = process_timeline(
        run.rows,
        trades=run.trades,
        dedupe_indicators=config.viewer.dedupe_indicators,
    )
    metrics = format_performance_metrics(run.performance)
    return processed, metrics


def build_reports(run: BacktestRun, config: Config) -> dict[str, Any]:
    """출력용 보조 표. 형식 오류는 출력 전에 여기서 발생한다."""
    return {
        "drawdown_periods": top_drawdowns(run.drawdown_periods, n=config.viewer.top_drawdowns),
        "monthly_returns": monthly_returns_table(run.performance),
        "trades": trade_summary(run.trades),
    }


def print_view(
    run: BacktestRun,
    processed: ProcessedBacktestData,
    metrics: PerformanceMetrics,
    reports: dict[str, Any],
    config: Config,
):
    """가공 결과 출력."""
    manifest = run.manifest
    print(f"\n[실행: {run.run_id}]  상태: {manifest.get('status', '-')}")
    print(metrics.summary())

    stats = processed.stats
    print(f"\n시계열 {stats.rows}행")
    print(f"  봉:             {len(processed.ohlcv)}개 (차트용 {len(processed.chart_bars())}개)")
    print(f"  시그널:         {stats.signals_kept}개 (중복 제거 전 {stats.signals}개)")
    print(f"  equity:         {len(processed.equity)}개")
    print(f"  지표:           {', '.join(processed.indicators) or '-'}")
    print(f"  포트폴리오 지표: {', '.join(processed.metrics) or '-'}")
    print(f"  제외된 행:      {stats.dropped}개")

    if processed.drawdown:
        print(f"\n최대 낙폭: {max_drawdown(processed.drawdown):.2f}%")
        print(f"평균 낙폭: {average_drawdown(processed.drawdown):.2f}%")

    trades = reports["trades"]
    print(
        f"\n거래 {trades.total_trades}건  수익 {trades.winners} / 손실 {trades.losers}"
        f"  평균 보유 {trades.avg_duration_days:.0f}일"
    )

    periods = reports["drawdown_periods"]
    if periods:
        print(f"\n상위 낙폭 구간 (최대 {config.viewer.top_drawdowns}건):")
        for p in periods:
            print(
                f"  {p.get('start_timestamp', '-')} ~ {p.get('end_timestamp') or '-'}"
                f"  -{float(p['depth_pct']):.2f}%  {p.get('duration_days', '-')}일"
            )

    table = reports["monthly_returns"]
    if not table.empty:
        print("\n월별 수익률 (%):")
        print((table * 100).round(2).to_string(na_rep="-"))


def export_frames(processed: ProcessedBacktestData, out_dir: Path) -> None:
    """시리즈별 CSV 저장."""
    out_dir.mkdir(parents=True, exist_ok=True)
    for name, df in processed.to_frames().items():
        df.to_csv(out_dir / f"{name}.csv", index=False)
        print(f"  {name}.csv: {len(df)}행")


def main():
    parser = argparse.ArgumentParser(description="백테스트 결과 조회")
    parser.add_argument("--config", type=str, default="config.yaml", help="설정 파일 경로")
    parser.add_argument("--runs-dir", type=str, default=None, help="실행 디렉토리들의 상위 경로")
    parser.add_argument("--run", type=str, default=None, help="실행 ID (디렉토리 이름)")
    parser.add_argument("--export", type=str, default=None, metavar="DIR", help="가공된 시리즈를 CSV로 저장")
    parser.add_argument("--list", action="store_true", help="실행 목록 출력")
    args = parser.parse_args()

    # 설정 로드
    config_path = Path(args.config)
    if config_path.exists():
        config = Config.from_yaml(config_path)
    else:
        print(f"설정 파일 없음: {config_path}, 기본값 사용")
        config = Config()

    logger = setup_logger(level=config.log_level, log_dir=config.log_dir)
    runs_dir = args.runs_dir or config.viewer.runs_dir

    try:
        runs = list_runs(runs_dir)

        # 실행 목록 출력
        if args.list:
            print(f"실행 목록 ({runs_dir}):")
            for name in runs:
                print(f"  - {name}")
            return 0

        run_id = args.run or config.viewer.run_id or (runs[-1] if runs else "")
        if not run_id:
            print(f"오류: {runs_dir}에 실행이 없습니다.")
            return 1

        add_run_handler(logger, run_id, log_dir=config.log_dir)
        run = load_backtest_run(runs_dir, run_id)
        processed, metrics = build_view(run, config)
        reports = build_reports(run, config)

        print_view(run, processed, metrics, reports, config)
        if args.export:
            print(f"\nCSV 내보내기: {args.export}")
            export_frames(processed, Path(args.export))
    except BacktestDataError as exc:
        logger.error(f"가공 실패: {exc}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
