"""
Logging handler that feeds the panel's output view.
"""

import logging
from collections import deque
from typing import List

from kde_panel.config import LOG_FORMAT


class OutputQueueHandler(logging.Handler):
    """
    Buffers formatted log records until the UI drains them.
    Records can come from worker threads; the UI drains on its own timer.
    """

    def __init__(self, maxlen: int = 5000, level=logging.INFO):
        super().__init__(level)
        self.records = deque(maxlen=maxlen)
        self.setFormatter(logging.Formatter('%(message)s'))

    def emit(self, record: logging.LogRecord):
        try:
            self.records.append(self.format(record))
        except Exception:
            self.handleError(record)

    def drain(self) -> List[str]:
        lines = []
        while self.records:
            lines.append(self.records.popleft())
        return lines


def configure_file_logging(log_file, level="INFO"):
    """Send the panel log to a file while the terminal is owned by the UI."""
    root = logging.getLogger()
    root.setLevel(level)
    if log_file:
        handler = logging.FileHandler(log_file)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
