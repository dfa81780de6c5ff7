"""
Run module: CLI, console prompts, interactive trade session and CSV export.
"""

from .cli import main, setup_logging
from .prompts import ConsolePrompter
from .session import TradeSession
from .export import export_window, window_frame

__all__ = ["main", "setup_logging", "ConsolePrompter", "TradeSession", "export_window", "window_frame"]
