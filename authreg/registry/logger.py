"""JSONL event logger - append-only audit trail of registry activity"""

from __future__ import annotations

import json
import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..config_schema import LoggingConfig

logger = logging.getLogger(__name__)

DEFAULT_RECENT = 50


class EventLogger:
    """Append-only JSONL event log with per-run directory support.

    Supports two modes:
    1. Per-run mode (run_id + logs_dir): Creates timestamped directories
       - logs/{run_id}/events.jsonl
       - logs/latest -> {run_id} (symlink)
    2. Single-file mode (output_file only): One file, cleared on start

    Every event carries a monotonic ``sequence`` so consumers can order
    events without trusting wall-clock timestamps.
    """

    output_path: Path
    default_recent: int
    _logs_dir: Path | None
    _run_id: str | None
    _sequence: int

    def __init__(
        self,
        output_file: str | None = None,
        logs_dir: str | None = None,
        run_id: str | None = None,
        default_recent: int = DEFAULT_RECENT,
    ) -> None:
        """Initialize the event logger.

        Args:
            output_file: Single-file mode - file path (default: registry.jsonl)
            logs_dir: Per-run mode - base directory for run logs
            run_id: Per-run mode - unique run identifier (e.g., run_20260115_120000)
            default_recent: How many events read_recent() returns by default
        """
        self._logs_dir = Path(logs_dir) if logs_dir else None
        self._run_id = run_id
        self._sequence = 0
        self.default_recent = default_recent

        if logs_dir and run_id:
            self._setup_per_run_logging()
        else:
            self._setup_single_file_logging(output_file)

    @classmethod
    def from_config(cls, config: LoggingConfig, run_id: str | None = None) -> "EventLogger":
        """Create an EventLogger from the logging section of the config.

        With a run_id the logger writes under logs_dir, otherwise to output_file.
        """
        if run_id:
            return cls(
                logs_dir=config.logs_dir,
                run_id=run_id,
                default_recent=config.default_recent,
            )
        return cls(output_file=config.output_file, default_recent=config.default_recent)

    def _setup_per_run_logging(self) -> None:
        """Set up per-run directory logging."""
        if self._logs_dir is None or self._run_id is None:
            raise ValueError("Both logs_dir and run_id required for per-run mode")

        run_dir = self._logs_dir / self._run_id
        run_dir.mkdir(parents=True, exist_ok=True)

        self.output_path = run_dir / "events.jsonl"
        self.output_path.write_text("")

        latest_link = self._logs_dir / "latest"
        if latest_link.is_symlink():
            latest_link.unlink()
        elif latest_link.exists():
            if latest_link.is_dir():
                shutil.rmtree(latest_link)
            else:
                latest_link.unlink()

        # Relative target so the logs directory can be moved
        latest_link.symlink_to(self._run_id)

    def _setup_single_file_logging(self, output_file: str | None) -> None:
        """Set up single-file logging."""
        self.output_path = Path(output_file or "registry.jsonl")
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.output_path.write_text("")

    def log(self, event_type: str, data: dict[str, Any]) -> None:
        """Log an event to the JSONL file.

        A failed write is reported on the module logger and dropped; the
        registry change it describes has already happened.
        """
        self._sequence += 1
        event: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "sequence": self._sequence,
            "event_type": event_type,
            **data,
        }
        try:
            with open(self.output_path, "a") as f:
                f.write(json.dumps(event, default=str) + "\n")
        except OSError:
            logger.exception("Could not write %s event to %s", event_type, self.output_path)

    # ========== Registry Event Helpers ==========

    def log_token_event(
        self,
        event_type: str,
        token_id: int,
        caller: str,
        **data: Any,
    ) -> None:
        """Log a change to one token (minted, transferred, locked, ...)."""
        self.log(event_type, {"token_id": token_id, "caller": caller, **data})

    def log_config_change(self, caller: str, setting: str, value: Any) -> None:
        """Log an administrative change to registry configuration."""
        self.log("config_changed", {"caller": caller, "setting": setting, "value": value})

    def log_failure(
        self,
        operation: str,
        caller: str | None,
        error: dict[str, object],
    ) -> None:
        """Log a rejected operation with its error response."""
        self.log("operation_failed", {
            "operation": operation,
            "caller": caller,
            "code": error.get("code"),
            "wire_code": error.get("wire_code"),
            "error": error.get("error"),
        })

    def read_recent(self, n: int | None = None) -> list[dict[str, Any]]:
        """Read the last N events from the log (default_recent if N is None)."""
        if n is None:
            n = self.default_recent
        if not self.output_path.exists():
            return []
        lines = self.output_path.read_text().strip().split("\n")
        lines = [line for line in lines if line]
        recent = lines[-n:] if len(lines) > n else lines
        return [json.loads(line) for line in recent]

    @property
    def sequence(self) -> int:
        """Sequence number of the last event written."""
        return self._sequence

    @property
    def run_id(self) -> str | None:
        """Return the run ID if in per-run mode."""
        return self._run_id

    @property
    def logs_dir(self) -> Path | None:
        """Return the logs directory if in per-run mode."""
        return self._logs_dir
