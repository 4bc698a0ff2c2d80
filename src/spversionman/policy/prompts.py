"""Interactive prompting used when resolving version settings."""

from abc import ABC, abstractmethod
from typing import Dict, Optional

import typer
from rich.console import Console

from ..errors import MissingSourceError

CANCEL_WORDS = {"q", "quit", "cancel"}


class Prompter(ABC):
    """Asks the operator for settings values."""

    @abstractmethod
    def ask_int(self, message: str, allow_blank: bool = False) -> Optional[int]:
        """Ask for a whole number.

        Returns None only when ``allow_blank`` is set and the answer was empty.

        Raises:
            MissingSourceError: If the operator abandons the entry
        """

    @abstractmethod
    def choose(self, message: str, choices: Dict[str, str]) -> str:
        """Ask the operator to pick one key from ``choices``.

        Raises:
            MissingSourceError: If the operator abandons the choice
        """

    @abstractmethod
    def warn(self, message: str) -> None:
        """Tell the operator an answer was rejected."""


class ConsolePrompter(Prompter):
    """Prompter backed by typer prompts and a rich console."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def _prompt(self, message: str) -> str:
        try:
            answer = typer.prompt(message, default="", show_default=False)
        except typer.Abort:
            raise MissingSourceError("Settings entry was cancelled") from None
        answer = answer.strip()
        if answer.lower() in CANCEL_WORDS:
            raise MissingSourceError("Settings entry was cancelled")
        return answer

    def ask_int(self, message: str, allow_blank: bool = False) -> Optional[int]:
        hint = " (blank for none, q to cancel)" if allow_blank else " (q to cancel)"
        while True:
            answer = self._prompt(message + hint)
            if not answer:
                if allow_blank:
                    return None
                self.warn("A value is required.")
                continue
            try:
                return int(answer)
            except ValueError:
                self.warn(f"'{answer}' is not a whole number.")

    def choose(self, message: str, choices: Dict[str, str]) -> str:
        self.console.print(f"[bold]{message}[/bold]")
        keys = list(choices)
        for index, key in enumerate(keys, start=1):
            self.console.print(f"  {index}. {choices[key]}")
        while True:
            answer = self._prompt("Select an option")
            if answer.isdigit() and 1 <= int(answer) <= len(keys):
                return keys[int(answer) - 1]
            if answer in choices:
                return answer
            self.warn(f"Choose a number between 1 and {len(keys)}.")

    def warn(self, message: str) -> None:
        self.console.print(f"[yellow]{message}[/yellow]")
