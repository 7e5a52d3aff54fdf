"""
Capture manager for playtest sessions.

Handles session directories, screenshot naming and console-log persistence.
Capture is best-effort: failures become issues, never exceptions.
"""

import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Any

from game_qa.core.models import Issue, IssueType

logger = logging.getLogger(__name__)


class CaptureManager:
    """
    Capture capability for one session directory.

    Layout::

        <session_dir>/screenshots/<label>_<ms>.png
        <session_dir>/logs/console.log
    """

    def __init__(self, session_dir: Path, page: Any = None):
        self.session_dir = Path(session_dir)
        self.page = page
        self.screenshots: list[str] = []
        self.issues: list[Issue] = []
        (self.session_dir / "screenshots").mkdir(parents=True, exist_ok=True)
        (self.session_dir / "logs").mkdir(parents=True, exist_ok=True)

    @staticmethod
    def create_session_dir(base_dir: str | Path) -> Path:
        """Create ``<base_dir>/session_<timestamp>``."""
        session_dir = Path(base_dir) / f"session_{datetime.now().strftime('%Y%m%d-%H%M%S')}"
        session_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"📁 Created session directory: {session_dir}")
        return session_dir

    def screenshot_path(self, label: str) -> Path:
        safe = "".join(c if c.isalnum() or c in "-_" else "_" for c in label) or "screenshot"
        return self.session_dir / "screenshots" / f"{safe}_{int(time.time() * 1000)}.png"

    def log_path(self, name: str = "console") -> Path:
        return self.session_dir / "logs" / f"{name}.log"

    async def capture_diagnostic(self, label: str, index: int | None = None) -> str | None:
        """Take a screenshot. Returns its path, or None when capture failed."""
        if self.page is None:
            self._record(IssueType.SCREENSHOT_FAILED, f"Screenshot {label} failed: no page", index)
            return None
        path = self.screenshot_path(label)
        try:
            await self.page.screenshot(path=str(path), type="png")
        except Exception as e:
            self._record(IssueType.SCREENSHOT_FAILED, f"Screenshot {label} failed: {e}", index)
            return None
        self.screenshots.append(str(path))
        logger.info(f"📸 {label}: {path.name}")
        return str(path)

    def save_console_logs(self, lines: list[str]) -> str | None:
        path = self.log_path()
        try:
            path.write_text("\n".join(lines) + ("\n" if lines else ""), encoding="utf-8")
        except OSError as e:
            self._record(IssueType.LOG_FAILED, f"Failed to save console log: {e}")
            return None
        logger.info(f"📝 Saved {len(lines)} console lines to {path}")
        return str(path)

    def _record(self, issue_type: IssueType, description: str, index: int | None = None) -> None:
        logger.warning(description)
        self.issues.append(Issue(type=issue_type, description=description, action_index=index))
