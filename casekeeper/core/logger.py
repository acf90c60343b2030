"""
Casekeeper - Logger Module
==========================

Tree-style logging to console and dated log files, with optional error
alerts to a Discord webhook.

DESIGN:
    The database keeps the authoritative audit trail. This log is the
    operator's view of what the process did: one block per event, with the
    event's facts (case ID, actor, status change) nested beneath it.

    Key features:
    - Tree-style detail rendering (├─ └─)
    - Timestamps in a configurable zone (CASES_LOG_TIMEZONE)
    - One folder per day, plus an errors-only file
    - Old day folders removed after CASES_LOG_RETENTION_DAYS
    - Run ID stamped on every session and webhook alert
"""

import asyncio
import os
import shutil
import uuid
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import List, Optional, Tuple

import aiohttp
from zoneinfo import ZoneInfo


# =============================================================================
# Constants
# =============================================================================

LOGS_DIR = Path(os.getenv("CASES_LOG_DIR", "logs"))

LOG_TIMEZONE = ZoneInfo(os.getenv("CASES_LOG_TIMEZONE", "America/New_York"))

LOG_RETENTION_DAYS = int(os.getenv("CASES_LOG_RETENTION_DAYS", "7"))

WEBHOOK_TIMEOUT = 10

# Embed colour per alerting level
ALERT_COLORS = {
    "error": 0xE74C3C,
    "critical": 0x8B0000,
}

Details = Optional[List[Tuple[str, str]]]


def _render_tree(details: List[Tuple[str, str]]) -> List[str]:
    """Indent (key, value) pairs under the preceding line."""
    last = len(details) - 1
    return [
        f"  {'└─' if i == last else '├─'} {key}: {value}"
        for i, (key, value) in enumerate(details)
    ]


# =============================================================================
# Tree Logger
# =============================================================================

class TreeLogger:
    """
    Console and file logger rendering event details as a tree.

    Attributes:
        run_id: Short random ID for this process.
        log_file: Day log file, or None when file output is disabled.
        error_file: Errors-only companion file, or None.
    """

    def __init__(self, name: str = "Cases", to_file: Optional[bool] = None) -> None:
        """
        Args:
            name: File name prefix.
            to_file: Write log files. When None, CASES_LOG_TO_FILE decides
                (on unless set to "0").
        """
        self.name = name
        self.run_id = uuid.uuid4().hex[:8]
        self._webhook_url: Optional[str] = None
        self.log_file: Optional[Path] = None
        self.error_file: Optional[Path] = None

        if to_file is None:
            to_file = os.getenv("CASES_LOG_TO_FILE", "1") != "0"
        if to_file:
            self._open_day_files()

    def _open_day_files(self) -> None:
        today = datetime.now(LOG_TIMEZONE).date().isoformat()
        day_dir = LOGS_DIR / today
        day_dir.mkdir(parents=True, exist_ok=True)
        self.log_file = day_dir / f"{self.name}-{today}.log"
        self.error_file = day_dir / f"{self.name}-Errors-{today}.log"

        self._prune_old_days()
        rule = "=" * 60
        self._append(self.log_file, [
            "", rule,
            f"SESSION {self.run_id} STARTED {self._stamp()}",
            rule,
        ])

    def _prune_old_days(self) -> None:
        """Delete YYYY-MM-DD folders past the retention window."""
        cutoff = date.today() - timedelta(days=LOG_RETENTION_DAYS)
        removed = 0
        for folder in LOGS_DIR.iterdir():
            if not folder.is_dir():
                continue
            try:
                day = date.fromisoformat(folder.name)
            except ValueError:
                continue
            if day < cutoff:
                shutil.rmtree(folder, ignore_errors=True)
                removed += 1
        if removed:
            print(f"[LOG CLEANUP] Removed {removed} old log folders")

    def set_webhook(self, url: Optional[str]) -> None:
        """Send error and critical events with details to this webhook."""
        self._webhook_url = url

    # =========================================================================
    # Output
    # =========================================================================

    @staticmethod
    def _append(path: Optional[Path], lines: List[str]) -> None:
        if path is None:
            return
        with open(path, "a", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")

    @staticmethod
    def _stamp() -> str:
        return datetime.now(LOG_TIMEZONE).strftime("[%I:%M:%S %p %Z]")

    def _emit(self, emoji: str, msg: str, details: Details, is_error: bool = False) -> None:
        head = f"{self._stamp()} {emoji} {msg}" if emoji else f"{self._stamp()} {msg}"
        lines = [head] + _render_tree(details or [])
        print("\n".join(lines))
        self._append(self.log_file, lines)
        if is_error:
            self._append(self.error_file, lines)

    def tree(self, title: str, items: List[Tuple[str, str]], emoji: str = "📦") -> None:
        """
        Log one event block.

        Example output:
            [02:30:45 PM EST] 📋 Case Created
              ├─ Case ID: CASE-0007
              ├─ Scope: 1234
              └─ Status: new → active
        """
        self._emit(emoji, title, items)

    # =========================================================================
    # Levels
    # =========================================================================

    def debug(self, msg: str, details: Details = None) -> None:
        """Only emitted when DEBUG is set."""
        if os.getenv("DEBUG"):
            self._emit("🔍", msg, details)

    def info(self, msg: str, details: Details = None) -> None:
        self._emit("ℹ️", msg, details)

    def success(self, msg: str, details: Details = None) -> None:
        self._emit("✅", msg, details)

    def warning(self, msg: str, details: Details = None) -> None:
        self._emit("⚠️", msg, details)

    def error(self, msg: str, details: Details = None) -> None:
        """Also written to the errors file and, with details, the webhook."""
        self._emit("❌", msg, details, is_error=True)
        self._alert("error", msg, details)

    def critical(self, msg: str, details: Details = None) -> None:
        self._emit("🚨", msg, details, is_error=True)
        self._alert("critical", msg, details)

    # =========================================================================
    # Webhook Alerts
    # =========================================================================

    def _alert(self, level: str, title: str, details: Details) -> None:
        if not (details and self._webhook_url):
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return  # sync caller, no loop to schedule on
        loop.create_task(self._post_alert(level, title, details))

    async def _post_alert(self, level: str, title: str, details: List[Tuple[str, str]]) -> None:
        """Post one embed; delivery problems are printed, never raised."""
        embed = {
            "title": f"{level.upper()}: {title}"[:256],
            "color": ALERT_COLORS.get(level, 0xE74C3C),
            "fields": [
                {"name": str(key)[:256], "value": str(value)[:1024] or "-", "inline": True}
                for key, value in details[:25]
            ],
            "footer": {"text": f"Run {self.run_id}"},
            "timestamp": datetime.now(LOG_TIMEZONE).isoformat(),
        }
        timeout = aiohttp.ClientTimeout(total=WEBHOOK_TIMEOUT)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self._webhook_url, json={"embeds": [embed]}) as resp:
                    if resp.status >= 400:
                        print(f"[WEBHOOK] Alert rejected with HTTP {resp.status}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            print(f"[WEBHOOK] Alert not delivered: {e}")


# =============================================================================
# Global Instance
# =============================================================================

logger = TreeLogger()


__all__ = ["logger", "TreeLogger", "LOG_TIMEZONE"]
