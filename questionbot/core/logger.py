"""
QuestionBot - Logger
====================

Tree-style logging to the console and to daily log files.

Features:
- Unique run ID per bot session
- Timestamps in the configured timezone (TIMEZONE, default America/New_York)
- Tree-style formatting for structured data
- Daily log folders with a separate error file
- Automatic cleanup of old log folders

Log Structure:
    logs/
    ├── 2026-10-18/
    │   ├── QuestionBot-2026-10-18.log
    │   └── QuestionBot-Errors-2026-10-18.log
    └── ...

The base folder can be moved with the LOG_DIR environment variable.
"""

import os
import shutil
import traceback
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


# =============================================================================
# Constants
# =============================================================================

LOG_RETENTION_DAYS = 7

DEFAULT_LOG_DIR: Path = Path(__file__).parent.parent.parent / "logs"
DEFAULT_TIMEZONE: str = "America/New_York"
LOG_NAME: str = "QuestionBot"


# =============================================================================
# Tree Symbols
# =============================================================================

class TreeSymbols:
    """Box-drawing characters for tree formatting."""
    BRANCH = "├─"
    LAST = "└─"
    PIPE = "│ "
    SPACE = "  "


def _load_timezone() -> ZoneInfo:
    try:
        return ZoneInfo(os.getenv("TIMEZONE", DEFAULT_TIMEZONE))
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo(DEFAULT_TIMEZONE)


# =============================================================================
# MiniTreeLogger
# =============================================================================

class MiniTreeLogger:
    """Logger with tree-style formatting and daily log rotation."""

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        """
        Initialize the logger.

        Args:
            base_dir: Folder holding the daily log folders (default: LOG_DIR or ./logs)
        """
        self.run_id: str = str(uuid.uuid4())[:8]
        self._timezone = _load_timezone()

        self.logs_base_dir: Path = Path(base_dir or os.getenv("LOG_DIR") or DEFAULT_LOG_DIR)
        self.logs_base_dir.mkdir(parents=True, exist_ok=True)

        self.current_date: str = ""
        self._rotate_if_needed(banner="NEW SESSION")
        self._cleanup_old_logs()

    # =========================================================================
    # Files
    # =========================================================================

    def _today(self) -> str:
        return datetime.now(self._timezone).strftime("%Y-%m-%d")

    def _rotate_if_needed(self, banner: str = "LOG ROTATION") -> None:
        """Point the log files at today's folder, writing a header on change."""
        today = self._today()
        if today == self.current_date:
            return

        self.current_date = today
        self.log_dir: Path = self.logs_base_dir / today
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.log_file: Path = self.log_dir / f"{LOG_NAME}-{today}.log"
        self.error_file: Path = self.log_dir / f"{LOG_NAME}-Errors-{today}.log"

        header = (
            f"\n{'=' * 60}\n"
            f"{banner} - RUN ID: {self.run_id}\n"
            f"{self._get_timestamp()}\n"
            f"{'=' * 60}\n"
        )
        self._append(header, to_error=True, echo=False)

    def _cleanup_old_logs(self) -> None:
        """Delete date folders older than the retention period."""
        now = datetime.now(self._timezone)
        for folder in self.logs_base_dir.iterdir():
            if not folder.is_dir():
                continue
            try:
                folder_date = datetime.strptime(folder.name, "%Y-%m-%d").replace(tzinfo=self._timezone)
            except ValueError:
                continue
            if (now - folder_date).days > LOG_RETENTION_DAYS:
                shutil.rmtree(folder, ignore_errors=True)

    def _append(self, text: str, to_error: bool = False, echo: bool = True) -> None:
        """Write text to the console and the log file(s)."""
        if echo:
            print(text)
        targets = [self.log_file, self.error_file] if to_error else [self.log_file]
        for target in targets:
            try:
                with open(target, "a", encoding="utf-8") as f:
                    f.write(f"{text}\n")
            except OSError:
                pass

    # =========================================================================
    # Formatting
    # =========================================================================

    def _get_timestamp(self) -> str:
        current_time = datetime.now(self._timezone)
        return current_time.strftime(f"[%I:%M:%S %p {current_time.strftime('%Z')}]")

    def _render(
        self,
        title: str,
        items: Optional[List[Tuple[str, Any]]],
        emoji: str,
        status: str,
    ) -> List[str]:
        lines = [f"{self._get_timestamp()} {emoji} {title}"]
        items = items or [("Status", status)]
        for i, (key, value) in enumerate(items):
            prefix = TreeSymbols.LAST if i == len(items) - 1 else TreeSymbols.BRANCH
            lines.append(f"  {prefix} {key}: {value}")
        lines.append("")
        return lines

    def _log(
        self,
        title: str,
        items: Optional[List[Tuple[str, Any]]],
        emoji: str,
        status: str = "OK",
        to_error: bool = False,
    ) -> None:
        self._rotate_if_needed()
        self._append("\n".join(self._render(title, items, emoji, status)), to_error=to_error)

    # =========================================================================
    # Log Levels
    # =========================================================================

    def info(self, msg: str, details: Optional[List[Tuple[str, Any]]] = None) -> None:
        """Log an informational message."""
        self._log(msg, details, "ℹ️")

    def success(self, msg: str, details: Optional[List[Tuple[str, Any]]] = None) -> None:
        """Log a success message."""
        self._log(msg, details, "✅", status="Complete")

    def warning(self, msg: str, details: Optional[List[Tuple[str, Any]]] = None) -> None:
        """Log a warning (also written to the error file)."""
        self._log(msg, details, "⚠️", status="Warning", to_error=True)

    def error(self, msg: str, details: Optional[List[Tuple[str, Any]]] = None) -> None:
        """Log an error (also written to the error file)."""
        self._log(msg, details, "❌", status="Failed", to_error=True)

    def critical(self, msg: str, details: Optional[List[Tuple[str, Any]]] = None) -> None:
        """Log a fatal error (also written to the error file)."""
        self._log(msg, details, "🚨", status="Critical", to_error=True)

    def debug(self, msg: str, details: Optional[List[Tuple[str, Any]]] = None) -> None:
        """Log a debug message (only if the DEBUG env var is set)."""
        if os.getenv("DEBUG", "").lower() in ("1", "true", "yes"):
            self._log(msg, details, "🔍", status="Debug")

    def exception(self, msg: str, details: Optional[List[Tuple[str, Any]]] = None) -> None:
        """Log an error followed by the current traceback."""
        self._log(msg, details, "💥", status="Exception", to_error=True)
        self._append(traceback.format_exc(), to_error=True, echo=False)

    # =========================================================================
    # Tree Formatting
    # =========================================================================

    def tree(self, title: str, items: List[Tuple[str, Any]], emoji: str = "📦") -> None:
        """
        Log structured data in tree format.

        Example output:
            [12:00:00 PM EST] 📦 Bot Ready
              ├─ Bot ID: 123456789
              ├─ Guilds: 5
              └─ Latency: 50ms
        """
        self._log(title, items, emoji)

    def tree_section(
        self,
        title: str,
        sections: Dict[str, List[Tuple[str, Any]]],
        emoji: str = "📊",
    ) -> None:
        """Log several named groups of key/value pairs under one title."""
        self._rotate_if_needed()
        lines = [f"{self._get_timestamp()} {emoji} {title}"]
        names = list(sections)
        for si, name in enumerate(names):
            section_last = si == len(names) - 1
            lines.append(f"  {TreeSymbols.LAST if section_last else TreeSymbols.BRANCH} {name}")
            continuation = TreeSymbols.SPACE if section_last else TreeSymbols.PIPE
            items = sections[name]
            for ii, (key, value) in enumerate(items):
                prefix = TreeSymbols.LAST if ii == len(items) - 1 else TreeSymbols.BRANCH
                lines.append(f"  {continuation} {prefix} {key}: {value}")
        lines.append("")
        self._append("\n".join(lines))

    def error_tree(
        self,
        title: str,
        error: BaseException,
        context: Optional[List[Tuple[str, Any]]] = None,
    ) -> None:
        """Log an exception's type and message plus optional context."""
        items: List[Tuple[str, Any]] = [
            ("Type", type(error).__name__),
            ("Message", str(error)),
        ]
        if context:
            items.extend(context)
        self._log(title, items, "❌", to_error=True)


# =============================================================================
# Module Export
# =============================================================================

logger = MiniTreeLogger()

__all__ = ["logger", "MiniTreeLogger", "TreeSymbols"]
