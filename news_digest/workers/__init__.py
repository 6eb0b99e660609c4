from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from time import perf_counter
from typing import Iterator, Optional

PACKAGE_LOGGER = "news_digest"
CONSOLE_FORMAT = "%(levelname)s %(message)s"
FILE_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
CONSOLE_HANDLER_NAME = "news_digest.console"


def configure_logging(level: str = "INFO") -> logging.Handler:
    """
    Install the console handler on the root logger at ``level``.

    The level sits on the handler, so a run log that lowers the package logger
    to INFO for its file does not make the console chattier.
    """
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"unknown log level: {level}")
    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == CONSOLE_HANDLER_NAME:
            root.removeHandler(existing)
    handler = logging.StreamHandler()
    handler.set_name(CONSOLE_HANDLER_NAME)
    handler.setLevel(numeric)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    root.addHandler(handler)
    root.setLevel(numeric)
    return handler


def run_log_path(log_dir: Path, day: Optional[date] = None) -> Path:
    day = day or date.today()
    return Path(log_dir) / f"news-fetch-{day:%Y-%m-%d}.log"


class RunLog:
    """Logging collaborator handed to each step of a single pipeline run."""

    def __init__(self, worker: str, *, log_path: Optional[Path] = None, logger: Optional[logging.Logger] = None) -> None:
        self.worker = worker
        self.log_path = log_path
        self._logger = logger or logging.getLogger(f"{PACKAGE_LOGGER}.workers.{worker}")

    def debug(self, message: str, *args: object) -> None:
        self._logger.debug(f"[{self.worker}] {message}", *args)

    def info(self, message: str, *args: object) -> None:
        self._logger.info(f"[{self.worker}] {message}", *args)

    def warning(self, message: str, *args: object) -> None:
        self._logger.warning(f"[{self.worker}] {message}", *args)

    def error(self, message: str, *args: object) -> None:
        self._logger.error(f"[{self.worker}] {message}", *args)

    def summary(self, *, ok: int, failed: int, skipped: Optional[int] = None) -> None:
        parts = [f"ok={ok}", f"failed={failed}"]
        if skipped is not None:
            parts.append(f"skipped={skipped}")
        self.info("result: %s", " ".join(parts))

    @contextmanager
    def session(self, *, limit: Optional[int] = None) -> Iterator["RunLog"]:
        start = perf_counter()
        limit_note = f" (limit={limit})" if limit is not None else ""
        self.info(f"start{limit_note}")
        try:
            yield self
        finally:
            elapsed = perf_counter() - start
            self.info(f"finished in {elapsed:.2f}s")


@contextmanager
def open_run_log(worker: str, log_dir: Optional[Path] = None, *, day: Optional[date] = None) -> Iterator[RunLog]:
    """
    Yield a RunLog for one run, mirroring package log records into a dated file.

    Without ``log_dir`` nothing is written to disk. The file handler is removed
    and closed when the block exits, even if the run failed.
    """
    if log_dir is None:
        yield RunLog(worker)
        return

    path = run_log_path(log_dir, day)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    previous_level = package_logger.level
    package_logger.addHandler(handler)
    if package_logger.getEffectiveLevel() > logging.INFO:
        package_logger.setLevel(logging.INFO)
    run_log = RunLog(worker, log_path=path)
    try:
        yield run_log
    finally:
        run_log.info("log saved to %s", path)
        package_logger.removeHandler(handler)
        package_logger.setLevel(previous_level)
        handler.close()


__all__ = ["CONSOLE_HANDLER_NAME", "RunLog", "configure_logging", "open_run_log", "run_log_path"]
