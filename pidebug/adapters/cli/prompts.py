"""
Rich-based user prompts and status lines
"""
from typing import Optional
from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from ...core.logging import get_stdout_console


class RichPromptProvider:
    """Interactive input and one-line status messages for CLI commands"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or get_stdout_console()

    def ask_password(self, message: str) -> Optional[str]:
        """Read a secret without echo; an empty answer means none"""
        answer = Prompt.ask(message, password=True, default="", show_default=False, console=self.console)
        return answer or None

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {escape(message)}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠[/yellow] {escape(message)}")
