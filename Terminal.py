from enum import Enum
from typing import Optional

from rich.console import Console
from rich.style import Style


class Color(Enum):
    BLACK = "black"
    RED = "red"
    GREEN = "green"
    YELLOW = "yellow"
    BLUE = "blue"
    MAGENTA = "magenta"
    CYAN = "cyan"
    WHITE = "white"
    # leave the terminal's current colour alone
    INHERIT = None


class Terminal:
    """Coloured output for the browser.

    Every styled write is reset right after the text, so no colour leaks
    into the next line.
    """

    def __init__(self, console: Optional[Console] = None):
        if console is None:
            console = Console(markup=False, emoji=False, highlight=False)
        self.console = console

    def clear(self) -> None:
        self.console.clear()

    def write(self, text: str) -> None:
        self.console.print(text, end="", soft_wrap=True, markup=False, emoji=False, highlight=False)

    def print(self, text: str, fg: Color = Color.INHERIT, bg: Color = Color.INHERIT) -> None:
        style = Style(color=fg.value, bgcolor=bg.value)
        self.console.print(
            text, style=style, end="", soft_wrap=True, markup=False, emoji=False, highlight=False
        )

    def info(self, message: str) -> None:
        self.print(f"[info] {message}\n", fg=Color.CYAN)

    def err(self, message: str) -> None:
        self.print(f"[err] {message}\n", fg=Color.RED)
