"""
백테스트 실행(run) 디렉토리 로더.

[ 역할 ]
    백테스트 엔진이 남긴 실행 결과 파일을 읽어 dict / RawTimelineRow로 변환.
    가공(분류/계산)은 하지 않는다 → processing/processor.py 담당.

[ 디렉토리 구조 ]
    {runs_dir}/{run_id}/
        manifest.json
        metadata.json
        performance.json
        timeseries/
            chart_data.json  (또는 chart_data.csv)
            trades.json      (선택)
            drawdowns.json   (선택)

[ 오류 ]
    파일이 없거나 JSON/CSV를 해석할 수 없으면 RunLoadError.

[ 호출하는 곳 ]
    - run_viewer.py에서 list_runs(), load_backtest_run() 호출
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd

from backtest_viz.core.errors import RunLoadError
from backtest_viz.core.timeline import RawTimelineRow

logger = logging.getLogger("backtest_viz.data")

MANIFEST_FILE = "manifest.json"
METADATA_FILE = "metadata.json"
PERFORMANCE_FILE = "performance.json"
TIMESERIES_DIR = "timeseries"
CHART_DATA_STEM = "chart_data"
TRADES_FILE = "trades.json"
DRAWDOWNS_FILE = "drawdowns.json"


@dataclass
class BacktestRun:
    """load_backtest_run()의 반환값. 파일 내용을 가공 없이 보관."""
    run_id: str
    manifest: dict[str, Any]
    metadata: dict[str, Any]
    performance: dict[str, Any]
    rows: list[RawTimelineRow] = field(default_factory=list)
    trades: list[dict[str, Any]] = field(default_factory=list)
    drawdown_periods: list[dict[str, Any]] = field(default_factory=list)


def _read_json(path: Path) -> Any:
    if not path.exists():
        raise RunLoadError(f"파일 없음: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise RunLoadError(f"JSON 로드 실패: {path} ({exc})") from exc
    logger.debug(f"로드: {path}")
    return data


def _read_json_object(path: Path) -> dict[str, Any]:
    data = _read_json(path)
    if not isinstance(data, dict):
        raise RunLoadError(f"JSON 객체가 아님: {path}")
    return data


def _read_json_list(path: Path) -> list[Any]:
    data = _read_json(path)
    if not isinstance(data, list):
        raise RunLoadError(f"JSON 배열이 아님: {path}")
    return data


def list_runs(runs_dir: str | Path) -> list[str]:
    """manifest.json이 있는 하위 디렉토리 이름 목록 (정렬)."""
    runs_dir = Path(runs_dir)
    if not runs_dir.is_dir():
        raise RunLoadError(f"실행 디렉토리 없음: {runs_dir}")
    return sorted(
        p.name for p in runs_dir.iterdir()
        if p.is_dir() and (p / MANIFEST_FILE).exists()
    )


def load_manifest(run_path: str | Path) -> dict[str, Any]:
    return _read_json_object(Path(run_path) / MANIFEST_FILE)


def load_metadata(run_path: str | Path) -> dict[str, Any]:
    return _read_json_object(Path(run_path) / METADATA_FILE)


def load_performance(run_path: str | Path) -> dict[str, Any]:
    return _read_json_object(Path(run_path) / PERFORMANCE_FILE)


def load_timeline_rows(run_path: str | Path) -> list[RawTimelineRow]:
    """chart_data.json 또는 chart_data.csv를 읽어 RawTimelineRow 리스트로.

    JSON이 있으면 JSON 우선. CSV의 빈 칸(NaN)은 결측으로 처리된다.
    """
    timeseries = Path(run_path) / TIMESERIES_DIR
    json_path = timeseries / f"{CHART_DATA_STEM}.json"
    csv_path = timeseries / f"{CHART_DATA_STEM}.csv"

    if json_path.exists():
        records = _read_json_list(json_path)
    elif csv_path.exists():
        try:
            # 타임스탬프/티커는 문자열 그대로 두고 파싱은 classifier에서
            df = pd.read_csv(csv_path, dtype={"timestamp": str, "ticker": str, "underlying": str})
        except (OSError, ValueError) as exc:
            raise RunLoadError(f"CSV 로드 실패: {csv_path} ({exc})") from exc
        logger.debug(f"로드: {csv_path}")
        records = df.to_dict(orient="records")
    else:
        raise RunLoadError(f"chart_data 파일 없음: {timeseries}")

    rows = []
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise RunLoadError(f"chart_data {index}번째 항목이 객체가 아님")
        rows.append(RawTimelineRow.from_dict(record))
    return rows


def load_trades(run_path: str | Path, performance: dict[str, Any] | None = None) -> list[dict[str, Any]]:
    """trades.json → 없으면 performance["trades"] → 없으면 빈 리스트."""
    path = Path(run_path) / TIMESERIES_DIR / TRADES_FILE
    if path.exists():
        return _read_json_list(path)
    if performance is not None:
        return list(performance.get("trades") or [])
    return []


def load_drawdown_periods(run_path: str | Path) -> list[dict[str, Any]]:
    """drawdowns.json (낙폭 구간 목록). 없으면 빈 리스트."""
    path = Path(run_path) / TIMESERIES_DIR / DRAWDOWNS_FILE
    if not path.exists():
        return []
    return _read_json_list(path)


def load_backtest_run(runs_dir: str | Path, run_id: str) -> BacktestRun:
    """실행 하나의 파일 전체 로드.

    Args:
        runs_dir: 실행 디렉토리들의 상위 경로
        run_id: 실행 디렉토리 이름 (예: "20251224_162255")

    Raises:
        RunLoadError: 필수 파일 누락 또는 형식 오류
    """
    run_path = Path(runs_dir) / run_id
    if not run_path.is_dir():
        raise RunLoadError(f"실행 없음: {run_path}")

    performance = load_performance(run_path)
    run = BacktestRun(
        run_id=run_id,
        manifest=load_manifest(run_path),
        metadata=load_metadata(run_path),
        performance=performance,
        rows=load_timeline_rows(run_path),
        trades=load_trades(run_path, performance),
        drawdown_periods=load_drawdown_periods(run_path),
    )
    logger.info(f"실행 로드 완료: {run_id} ({len(run.rows)}행, 거래 {len(run.trades)}건)")
    return run
