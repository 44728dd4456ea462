"""Result recording: JSON result log and per-step timing report."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

from .config import LoggingSettings
from .models import TestResult
from .timestamp import get_formatted_timestamp


class ResultRecorder:
    """Accumulates case results and forwards them to the log file and logger."""

    def __init__(self, settings: Optional[LoggingSettings] = None) -> None:
        self.settings = settings or LoggingSettings()
        self.results: List[TestResult] = []
        self.logger = logging.getLogger("keyword_runner.recorder")
        self.last_log_path: Optional[Path] = None

    def record(self, result: TestResult) -> None:
        self.results.append(result)
        if self.settings.enabled:
            self.save_logs()
        self.report_timing(result)

    def save_logs(self, timestamp: Optional[str] = None) -> Path:
        """Write every result recorded so far to ``logs-<timestamp>.json``."""
        log_path = Path(self.settings.output_path) / f"logs-{timestamp or get_formatted_timestamp()}.json"
        log_path.parent.mkdir(parents=True, exist_ok=True)
        with log_path.open("w", encoding="utf-8") as handle:
            json.dump([result.to_dict() for result in self.results], handle, ensure_ascii=False, indent=2)
        self.logger.info("Test logs saved to %s", log_path)
        self.last_log_path = log_path
        return log_path

    def report_timing(self, result: TestResult) -> None:
        self.logger.info("Scenario duration: %d ms", result.duration_ms)
        for step in result.steps:
            self.logger.info(
                "  step %3d | %-8s | %6d ms | %s",
                step.step_number,
                step.status,
                step.duration_ms,
                step.action,
            )
