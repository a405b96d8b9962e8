"""
로깅 모듈.

[ 역할 ]
    파일 + 콘솔 로거를 설정. 로드한 파일, 분류 결과 요약, 오류 등을 기록.

[ 로그 파일 위치 ]
    {log_dir}/{name}_{YYYYMMDD}.log          일별 전체 로그 (예: logs/backtest_viz_20251224.log)
    {log_dir}/runs/{name}_{run_id}.log      조회한 실행별 로그 (예: logs/runs/backtest_viz_20251224_162255.log)

[ 호출하는 곳 ]
    - run_viewer.py에서 setup_logger(), 실행 ID가 정해진 뒤 add_run_handler() 호출
    - processing/processor.py에서 logging.getLogger("backtest_viz.processing") 사용
    - data/loader.py에서 logging.getLogger("backtest_viz.data") 사용
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
# 실행별 핸들러 이름 접두사
_RUN_HANDLER_PREFIX = "run:"


def setup_logger(
    name: str = "backtest_viz",
    level: str = "INFO",
    log_dir: str = "logs",
    console: bool = True,
) -> logging.Logger:
    """로거 설정. 파일 핸들러(일별) + 콘솔 핸들러 등록."""
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    if logger.handlers:
        return logger

    formatter = logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    # 파일 핸들러
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    today = datetime.now().strftime("%Y%m%d")
    file_handler = logging.FileHandler(
        log_path / f"{name}_{today}.log",
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    # 콘솔은 stderr (stdout은 리포트 출력용)
    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


def add_run_handler(
    logger: logging.Logger,
    run_id: str,
    log_dir: str = "logs",
) -> logging.FileHandler:
    """실행별 로그 파일 핸들러 등록.

    이전 실행의 핸들러는 닫고 제거한다. 같은 파일을 가리키는 핸들러가 이미 있으면 그대로 반환.
    """
    log_file = os.path.abspath(Path(log_dir) / "runs" / f"{logger.name}_{run_id}.log")
    for handler in list(logger.handlers):
        if not (handler.get_name() or "").startswith(_RUN_HANDLER_PREFIX):
            continue
        if handler.baseFilename == log_file:
            return handler
        logger.removeHandler(handler)
        handler.close()

    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.set_name(f"{_RUN_HANDLER_PREFIX}{run_id}")
    file_handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(file_handler)
    return file_handler
