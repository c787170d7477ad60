"""Terminal rendering for the chat session (rich)."""

from __future__ import annotations

import random
from typing import Callable, Optional, Sequence, Tuple

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.table import Table

from chat_core.providers.registry import ModelConfig

ACCENT = "#ff8c00"
MUTED = "#646464"

FAREWELLS = (
    "Catch you on the flip side!",
    "Keep it 100!",
    "Stay classy!",
    "Later, alligator!",
    "See ya!",
    "Cheers!",
    "Bye!",
    "Until next time!",
)

THINKING_WORDS = (
    "Simmering",
    "Sparkling",
    "Zesting",
    "Julienning",
    "Marinating",
    "Cerebrating",
    "Cogitating",
    "Ruminating",
    "Pondering",
    "Razzmatazzing",
)

THINKING_COLORS = (
    "#f2cdcd",
    "#bb9af7",
    "#7aa2f7",
    "#fab387",
    "#9ccfd8",
    "#eb6f91",
    "#a6e3a1",
    "#d27e99",
    "#7e9cd8",
    "#a7c080",
    "#e69875",
    "#c678dd",
    "#56b6c2",
    "#dca561",
)


class ConsoleUI:
    """Everything the session prints or reads goes through here.

    `input_fn` replaces `Console.input` so tests can script the user.
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        input_fn: Optional[Callable[[str], str]] = None,
    ):
        self.console = console or Console()
        self._input = input_fn
        self._streaming = False

    def read_line(self, prompt: str = "❯ ") -> str:
        if self._input is not None:
            return self._input(prompt)
        return self.console.input(f"[bold {ACCENT}]{escape(prompt)}[/]")

    # ---- banners ----

    def welcome(self, model: str, version: str) -> None:
        self.console.print(
            f"\nLaunching [bold {ACCENT}]chat-core[/] {escape(version)} with [bold]{escape(model)}[/]...\n"
        )

    def instructions(self) -> None:
        self.console.print("Type your message and press Enter.")
        self.console.print(f"[{MUTED}]Commands: /exit, /stream, /clear, /model, /help[/]\n")

    def show_help(self, rows: Sequence[Tuple[str, str]]) -> None:
        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column("command", style=ACCENT)
        table.add_column("description")
        for cmd, desc in rows:
            table.add_row(cmd, desc)
        self.console.print(table)
        self.console.print()

    def show_models(self, models: Sequence[ModelConfig], current: str) -> None:
        self.console.print(f"\n[bold {ACCENT}]Available models:[/]")
        for i, m in enumerate(models, start=1):
            marker = " (active)" if m.model_id == current else ""
            self.console.print(
                f"  [{ACCENT}][{i}][/] {escape(m.model_id)} [{MUTED}]{escape(m.label)}{marker}[/]"
            )
        self.console.print()

    def active_model(self, model: str) -> None:
        self.console.print(f"\n[bold {ACCENT}]Active Model:[/] {escape(model)}\n")

    # ---- status lines ----

    def info(self, message: str) -> None:
        self.console.print(f"  ⎿  {escape(message)}\n")

    def notice(self, message: str) -> None:
        self.console.print(f"  [{MUTED}]⎿  {escape(message)}[/]")

    def error(self, message: str) -> None:
        self.console.print(f"  [bold red]⎿  Error:[/] {escape(message)}\n")

    def thinking(self) -> None:
        word = random.choice(THINKING_WORDS)
        color = random.choice(THINKING_COLORS)
        self.console.print(f"\n[{color}]* {word}...[/]")

    def farewell(self) -> None:
        self.info(random.choice(FAREWELLS))

    # ---- assistant output ----

    def begin_stream(self) -> None:
        self._streaming = True
        self.console.print(f"[bold {ACCENT}]●[/] ", end="")

    def stream_fragment(self, text: str) -> None:
        self.console.print(text, end="", markup=False, highlight=False, soft_wrap=True)

    def end_stream(self) -> None:
        if self._streaming:
            self._streaming = False
            self.console.print("\n")

    def reply(self, text: str) -> None:
        self.console.print(f"[bold {ACCENT}]●[/]")
        self.console.print(Markdown(text or ""))
        self.console.print()
