import logging

from backtest_viz.utils.logger import add_run_handler


def test_run_handler_writes_per_run_file(tmp_path):
    logger = logging.getLogger("backtest_viz_run_log_test")
    logger.setLevel(logging.INFO)

    first = add_run_handler(logger, "20240101_000000", log_dir=str(tmp_path))
    assert add_run_handler(logger, "20240101_000000", log_dir=str(tmp_path)) is first

    second = add_run_handler(logger, "20240102_000000", log_dir=str(tmp_path))
    logger.info("second run")
    second.flush()

    assert first not in logger.handlers
    assert second in logger.handlers
    log_file = tmp_path / "runs" / "backtest_viz_run_log_test_20240102_000000.log"
    assert "second run" in log_file.read_text(encoding="utf-8")

    logger.removeHandler(second)
    second.close()
