from __future__ import annotations

import logging
import threading
import time
from collections import Counter
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TextIO


@dataclass
class _Timer:
    start: float
    end: float | None = None

    @property
    def elapsed(self) -> float:
        return (self.end or time.perf_counter()) - self.start


class PipelineLogger:
    """Run logger for extraction batches.

    Lines go to up to three sinks at once:

    - console   : INFO+ unless ``min_level`` says otherwise
    - log_file  : INFO+, the readable run log
    - trace_file: everything, including TRACE and DEBUG

    Article outcomes reported through :meth:`article` are tallied and
    printed by :meth:`summary`. One instance is shared by all workers.
    """

    LEVELS: dict[str, int] = {
        "TRACE": -1,
        "DEBUG": 0,
        "INFO": 1,
        "PROG": 1,
        "METRIC": 1,
        "ARTICLE": 1,
        "WARN": 2,
        "ERROR": 3,
    }

    def __init__(
        self,
        log_file: str | Path | None = None,
        trace_file: str | Path | None = None,
        console: bool = True,
        min_level: str = "INFO",
    ) -> None:
        self.console = console
        self.min_level = self.LEVELS.get(min_level.upper(), 1)
        self.log_path = Path(log_file) if log_file else None
        self.trace_path = Path(trace_file) if trace_file else None
        self._info_file: TextIO | None = None
        self._trace_file: TextIO | None = None
        self._timers: dict[str, _Timer] = {}
        self._outcomes: Counter[str] = Counter()
        self._warnings = 0
        self._lock = threading.RLock()
        self._start = time.perf_counter()

        if self.log_path:
            self._info_file = self._open(self.log_path, "shoespec run log")
        if self.trace_path:
            self._trace_file = self._open(self.trace_path, "shoespec trace log")

    @staticmethod
    def _open(path: Path, title: str) -> TextIO:
        path.parent.mkdir(parents=True, exist_ok=True)
        handle = open(path, "w", encoding="utf-8", buffering=1)
        rule = "=" * 80
        handle.write(f"{rule}\n{title} ({time.strftime('%Y-%m-%d %H:%M:%S')})\n{rule}\n\n")
        return handle

    def _write(self, line: str, level_int: int) -> None:
        if self.console and level_int >= self.min_level:
            print(line, flush=True)
        if level_int >= 1 and self._info_file:
            self._info_file.write(line + "\n")
        if self._trace_file:
            self._trace_file.write(line + "\n")

    def _emit(self, level: str, msg: str) -> None:
        elapsed = time.perf_counter() - self._start
        line = f"[{time.strftime('%H:%M:%S')}] [{elapsed:7.2f}s] {level:7} | {msg}"
        with self._lock:
            if level == "WARN":
                self._warnings += 1
            self._write(line, self.LEVELS.get(level, 1))

    def trace(self, msg: str) -> None:
        self._emit("TRACE", msg)

    def debug(self, msg: str) -> None:
        self._emit("DEBUG", msg)

    def info(self, msg: str) -> None:
        self._emit("INFO", msg)

    def warn(self, msg: str) -> None:
        self._emit("WARN", msg)

    def error(self, msg: str) -> None:
        self._emit("ERROR", msg)

    def section(self, title: str, char: str = "=") -> None:
        rule = char * (80 if char == "=" else 60)
        with self._lock:
            for line in ("", rule, f"  {title}", rule):
                self._write(line, 1)

    def progress(self, current: int, total: int, label: str = "") -> None:
        done = int(20 * current / total) if total else 0
        pct = 100.0 * current / total if total else 0.0
        msg = f"[{current:>4}/{total}] {'#' * done}{'.' * (20 - done)} {pct:5.1f}%"
        self._emit("PROG", f"{msg}  {label}" if label else msg)

    def article(self, article_id: str, state: str, method: str, records: int, reason: str | None = None) -> None:
        """One line per article outcome; tallied for the run summary."""
        with self._lock:
            self._outcomes[f"{state}/{method}"] += 1
        msg = f"{article_id:<12} {state:<9} method={method:<6} records={records}"
        self._emit("ARTICLE", f"{msg}  ({reason})" if reason else msg)

    def metric(self, name: str, value: Any, unit: str = "") -> None:
        text = f"{value:.3f}" if isinstance(value, float) else str(value)
        self._emit("METRIC", f"{name} = {text} {unit}".rstrip())

    @contextmanager
    def timer(self, name: str):
        with self._lock:
            entry = self._timers[name] = _Timer(start=time.perf_counter())
        try:
            yield entry
        finally:
            entry.end = time.perf_counter()
            self._emit("METRIC", f"timer:{name} = {entry.elapsed:.3f}s")

    def summary(self) -> None:
        self.section("RUN SUMMARY")
        self.info(f"Total wall time: {time.perf_counter() - self._start:.2f}s")
        self.info(f"Warnings logged: {self._warnings}")

        if self._outcomes:
            self.section("Articles by outcome", char="-")
            for key, count in sorted(self._outcomes.items()):
                self.info(f"  {key:<24} {count:>6}")

        finished = {n: t.elapsed for n, t in self._timers.items() if t.end}
        if finished:
            self.section("Timers", char="-")
            for name, elapsed in sorted(finished.items(), key=lambda x: -x[1]):
                self.info(f"  {name:<40} {elapsed:>8.3f}s")

        for label, path in (("Info log ", self.log_path), ("Trace log", self.trace_path)):
            if path:
                self.info(f"{label}: {path}")

    def install_stdlib_bridge(self, root_logger: str = "", level: int = logging.INFO) -> None:
        """Forward stdlib ``logging`` records under *root_logger* into this logger.

        Replaces any bridge a previous run left on the same logger.
        """
        target = logging.getLogger(root_logger)
        target.setLevel(min(target.level or logging.DEBUG, level))
        for old in [h for h in target.handlers if isinstance(h, _BridgeHandler)]:
            target.removeHandler(old)
        handler = _BridgeHandler(self)
        handler.setLevel(level)
        target.addHandler(handler)

    def close(self) -> None:
        with self._lock:
            for handle in (self._info_file, self._trace_file):
                if handle:
                    handle.close()
            self._info_file = self._trace_file = None

    def __enter__(self) -> "PipelineLogger":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


class _BridgeHandler(logging.Handler):
    _METHODS = {
        logging.DEBUG: "debug",
        logging.INFO: "info",
        logging.WARNING: "warn",
        logging.ERROR: "error",
        logging.CRITICAL: "error",
    }

    def __init__(self, target: PipelineLogger) -> None:
        super().__init__()
        self._target = target

    def emit(self, record: logging.LogRecord) -> None:
        # A record reaching a parent bridge was already forwarded by a child one
        if getattr(record, "_bridged", False):
            return
        record._bridged = True
        try:
            method = getattr(self._target, self._METHODS.get(record.levelno, "info"))
            method(f"[{record.name}] {self.format(record)}")
        except Exception:
            self.handleError(record)
