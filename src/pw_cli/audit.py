"""Audit Logger - Append-only record of password store operations.

One line per operation with daily rotation and retention management.
Entry names are logged; usernames and secrets never are.
"""

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional


class AuditLogger:
    """Append-only audit logger with rotation and retention."""

    def __init__(self, log_path: Path, retention_days: int = 30):
        """Initialize audit logger.

        Args:
            log_path: Path to the log file (e.g., ~/.pw/access.log)
            retention_days: Number of days to keep rotated logs

        """
        self.log_path = Path(log_path)
        self.retention_days = retention_days
        self._last_rotation_check: Optional[datetime] = None

        # Only a directory created here is restricted to the owner
        if not self.log_path.parent.exists():
            self.log_path.parent.mkdir(parents=True)
            self.log_path.parent.chmod(0o700)

        self._ensure_log_file()

    def _ensure_log_file(self) -> None:
        """Create the log file with owner-only permissions if missing."""
        if not self.log_path.exists():
            fd = os.open(
                str(self.log_path),
                os.O_CREAT | os.O_APPEND | os.O_WRONLY,
                0o600
            )
            os.close(fd)

    @property
    def rotated_prefix(self) -> str:
        return f"{self.log_path.name}."

    def log_operation(
        self,
        result: str,
        action: str,
        store: str,
        name: Optional[str] = None,
        reason: Optional[str] = None
    ) -> None:
        """Log one store operation.

        Format: ISO8601Z [PID] RESULT ACTION store name [reason]

        Args:
            result: OK | ERROR
            action: INIT | GET | LIST | ADD | UPDATE | REMOVE
            store: Path of the store file
            name: Entry name, or None for whole-store operations ("-")
            reason: Error class name for ERROR results

        """
        self._check_rotation()

        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")

        parts = [
            timestamp,
            f"[{os.getpid()}]",
            result,
            action,
            store,
            name if name is not None else "-"
        ]

        if reason:
            parts.append(reason)

        log_line = " ".join(parts) + "\n"

        with open(self.log_path, "a") as f:
            f.write(log_line)

    def _check_rotation(self) -> None:
        """Rotate if the log was last written before today (UTC)."""
        now = datetime.now(timezone.utc)

        # At most once per hour per logger
        if self._last_rotation_check:
            if (now - self._last_rotation_check).total_seconds() < 3600:
                return

        self._last_rotation_check = now

        if not self.log_path.exists():
            return

        try:
            mtime = datetime.fromtimestamp(
                self.log_path.stat().st_mtime,
                tz=timezone.utc
            )
        except OSError:
            return

        today_midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
        if mtime < today_midnight:
            self._rotate(mtime)
            self._cleanup_old_logs()
            self._ensure_log_file()

    def _rotate(self, written: Optional[datetime] = None) -> None:
        """Move the current log aside, named after the day it was written."""
        if not self.log_path.exists():
            return

        day = written or datetime.now(timezone.utc) - timedelta(days=1)
        rotated_path = self.log_path.with_name(f"{self.rotated_prefix}{day.strftime('%Y%m%d')}")

        # Never clobber an earlier rotation
        if not rotated_path.exists():
            try:
                self.log_path.rename(rotated_path)
            except OSError:
                pass

    def _cleanup_old_logs(self) -> None:
        """Remove rotated logs older than the retention period."""
        cutoff = datetime.now(timezone.utc) - timedelta(days=self.retention_days)

        for log_file in self._rotated_logs():
            try:
                date_str = log_file.name[len(self.rotated_prefix):]
                log_date = datetime.strptime(date_str, "%Y%m%d").replace(tzinfo=timezone.utc)
                if log_date < cutoff:
                    log_file.unlink()
            except (ValueError, OSError):
                # Foreign file name or already gone
                pass

    def _rotated_logs(self) -> List[Path]:
        try:
            return list(self.log_path.parent.glob(f"{self.rotated_prefix}*"))
        except OSError:
            return []

    def read_recent(self, lines: int = 100) -> List[str]:
        """Read recent log entries, most recent last."""
        if not self.log_path.exists():
            return []

        try:
            with open(self.log_path) as f:
                return f.readlines()[-lines:]
        except OSError:
            return []
