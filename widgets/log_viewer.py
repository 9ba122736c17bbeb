# widgets/log_viewer.py
from __future__ import annotations
from typing import Sequence

from textual.widgets import Log


class InstallLogViewer(Log):
    """Scrollable view over the install log sink; follows the newest line."""

    can_focus = False

    DEFAULT_CSS = """
    InstallLogViewer {
        height: 14;
        border: round #F97317;
        padding: 0 1;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(highlight=False, auto_scroll=True, **kwargs)
        self._shown: tuple = ()

    def show(self, lines: Sequence[str]) -> None:
        """Replace the content with `lines` when it changed."""
        lines = tuple(lines)
        if lines == self._shown:
            return
        if self._shown and lines[: len(self._shown)] == self._shown:
            self.write_lines(lines[len(self._shown):])
        else:
            self.clear()
            self.write_lines(lines)
        self._shown = lines

    def scroll_by_lines(self, direction: int) -> None:
        if direction < 0:
            self.scroll_up(animate=False)
        else:
            self.scroll_down(animate=False)
