"""
Rich-based notice output and confirmations
"""
from typing import Optional
from rich.console import Console
from rich.prompt import Confirm

from ...core.logging import get_stdout_console
from ...domain.session.models import Notice


class RichNoticePrinter:
    """Prints tab notices and command results; usable as a tab listener"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or get_stdout_console()
        self.errors = 0

    def __call__(self, notice: Notice) -> None:
        handler = {
            "warning": self.warning,
            "error": self.error,
        }.get(notice.level, self.info)
        handler(notice.message)

    def confirm(self, message: str, default: bool = False) -> bool:
        """Prompt user for confirmation"""
        return Confirm.ask(message, default=default, console=self.console)

    def info(self, message: str) -> None:
        self.console.print(f"[cyan]ℹ[/cyan] {message}")

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def error(self, message: str) -> None:
        self.errors += 1
        self.console.print(f"[red]✗[/red] {message}")
