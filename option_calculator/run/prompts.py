"""
Console prompter: numbered menus and free-text questions on stdin/stdout.

Sentinel keystrokes are translated here into Back/Refresh outcomes.
"""

import logging
import sys
from typing import Any, Callable, Optional, Sequence, TextIO, Tuple, TypeVar, Union

from rich.console import Console

from ..errors import InvalidInput
from ..execution.contracts import Back, Refresh, Resolved
from .display import renderable

logger = logging.getLogger(__name__)

T = TypeVar("T")

BACK_KEYS = frozenset({"<", "go back"})
REFRESH_KEYS = frozenset({"r"})


class ConsolePrompter:
    def __init__(
        self,
        input_fn: Callable[[str], str] = input,
        out: Optional[TextIO] = None,
        err: Optional[TextIO] = None,
    ) -> None:
        self.input_fn = input_fn
        self.out = out or sys.stdout
        self.err = err or sys.stderr
        self.console = Console(file=self.out, highlight=False)

    def _print(self, text: str = "") -> None:
        print(text, file=self.out)

    def _read(self, prompt: str) -> str:
        return self.input_fn(prompt).strip()

    def select(
        self,
        question: str,
        options: Sequence[Tuple[str, T]],
        *,
        back: bool = False,
        default: Optional[str] = None,
    ) -> Union[Resolved[T], Back]:
        """Pick by number or by label."""
        if not options and not back:
            raise InvalidInput(f"Nothing to choose for: {question}")
        labels = [label for label, _ in options]
        while True:
            self._print(question)
            for i, label in enumerate(labels):
                self._print(f"  [{i}] {label}")
            if back:
                self._print(f"  [{len(labels)}] go back")
            suffix = f" [{default}]" if default is not None else ""
            raw = self._read(f"> {suffix}".rstrip() + " ")
            if not raw and default is not None:
                raw = default
            if back and (raw.lower() in BACK_KEYS or raw == str(len(labels))):
                return Back()
            if raw.isdigit() and int(raw) < len(labels):
                return Resolved(options[int(raw)][1])
            for label, value in options:
                if raw.lower() == label.lower():
                    return Resolved(value)
            self.warn(f"Value \"{raw}\" is invalid")

    def ask(
        self,
        question: str,
        parse: Callable[[str], T],
        *,
        back: bool = False,
        refresh: bool = False,
    ) -> Union[Resolved[T], Back, Refresh]:
        """Free-text question; re-asks while `parse` raises InvalidInput."""
        hints = []
        if refresh:
            hints.append('"r" to refresh')
        if back:
            hints.append('"<" to go back')
        prompt = f"{question} ({', '.join(hints)}): " if hints else f"{question}: "
        while True:
            raw = self._read(prompt)
            if back and raw.lower() in BACK_KEYS:
                return Back()
            if refresh and raw.lower() in REFRESH_KEYS:
                return Refresh()
            try:
                return Resolved(parse(raw))
            except InvalidInput as e:
                logger.debug(f"rejected input {raw!r}: {e}")
                self.warn(str(e))

    def confirm(self, question: str, default: bool = False) -> bool:
        hint = "Y/n" if default else "y/N"
        while True:
            raw = self._read(f"{question} ({hint}) ").lower()
            if not raw:
                return default
            if raw in ("y", "yes"):
                return True
            if raw in ("n", "no"):
                return False
            self.warn("Please answer yes or no.")

    def present(self, item: Any) -> None:
        shown = renderable(item)
        if isinstance(shown, str):
            self._print(shown)
        else:
            self.console.print(shown)

    def warn(self, message: str) -> None:
        print(f"[WARNING] {message}", file=self.err)
