"""REPL command parsing and dispatch.

A line is either a slash command handled locally or conversational content
for the session loop. Dispatch keeps no state between lines; everything it
changes lives in ConversationState.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Sequence

from chat_core.cli.ui import ConsoleUI
from chat_core.domain.conversation import ConversationState
from chat_core.domain.exceptions import InputError
from chat_core.infrastructure.logging.logger import logger
from chat_core.providers.registry import GROQ_CONFIG, ModelConfig

COMMAND_PREFIX = "/"


class Command(str, Enum):
    QUIT = "quit"
    STREAM = "stream"
    CLEAR = "clear"
    MODEL = "model"
    HELP = "help"
    UNKNOWN = "unknown"
    MESSAGE = "message"
    EMPTY = "empty"


COMMAND_TABLE: Dict[str, Command] = {
    "/quit": Command.QUIT,
    "/exit": Command.QUIT,
    "/stream": Command.STREAM,
    "/clear": Command.CLEAR,
    "/model": Command.MODEL,
    "/help": Command.HELP,
    COMMAND_PREFIX: Command.HELP,
}

HELP_ROWS = (
    ("/exit, /quit", "Exit the REPL"),
    ("/model", "Change the AI model"),
    ("/clear", "Clear conversation history and free up context"),
    ("/stream", "Toggle streaming mode"),
    ("/help", "Show this help message"),
)


@dataclass(frozen=True)
class ParsedCommand:
    command: Command
    text: str = ""


def parse_command(line: str) -> ParsedCommand:
    """Classify one raw input line. Matching is exact and case-sensitive."""

    text = line.strip()
    if not text:
        return ParsedCommand(Command.EMPTY)
    if text.startswith(COMMAND_PREFIX):
        return ParsedCommand(COMMAND_TABLE.get(text, Command.UNKNOWN), text)
    return ParsedCommand(Command.MESSAGE, text)


def select_model(raw: str, models: Sequence[ModelConfig]) -> ModelConfig:
    """Map a 1-based selection typed by the user to a model.

    Raises InputError for non-numeric or out-of-range input.
    """

    choice = raw.strip()
    if not (choice.isascii() and choice.isdigit()):
        raise InputError(code="INVALID_INPUT", message=f"Invalid choice {choice!r}: enter a number")
    index = int(choice)
    if not 1 <= index <= len(models):
        raise InputError(
            code="INVALID_INPUT",
            message=f"Invalid choice {index}: pick 1-{len(models)}",
        )
    return models[index - 1]


class Action(str, Enum):
    CONTINUE = "continue"
    QUIT = "quit"
    TURN = "turn"


@dataclass(frozen=True)
class Dispatch:
    action: Action
    content: str = ""


class CommandDispatcher:
    def __init__(
        self,
        state: ConversationState,
        ui: ConsoleUI,
        models: Sequence[ModelConfig] = GROQ_CONFIG.models,
    ):
        self._state = state
        self._ui = ui
        self._models = tuple(models)

    @property
    def models(self) -> Sequence[ModelConfig]:
        return self._models

    def dispatch(self, line: str) -> Dispatch:
        parsed = parse_command(line)
        cmd = parsed.command
        if cmd is Command.EMPTY:
            return Dispatch(Action.CONTINUE)
        if cmd is Command.MESSAGE:
            return Dispatch(Action.TURN, parsed.text)
        if cmd is Command.QUIT:
            self._ui.farewell()
            return Dispatch(Action.QUIT)
        if cmd is Command.STREAM:
            enabled = self._state.toggle_streaming()
            self._ui.info(f"Streaming mode: {'ON' if enabled else 'OFF'}")
            return Dispatch(Action.CONTINUE)
        if cmd is Command.CLEAR:
            self._state.clear()
            self._ui.info("Conversation cleared (no content)")
            return Dispatch(Action.CONTINUE)
        if cmd is Command.MODEL:
            return self._change_model()
        if cmd is Command.HELP:
            self._ui.show_help(HELP_ROWS)
            return Dispatch(Action.CONTINUE)
        self._ui.error(f"Unknown command: {parsed.text}. Type /help for the list.")
        return Dispatch(Action.CONTINUE)

    def _change_model(self) -> Dispatch:
        self._ui.show_models(self._models, self._state.model)
        raw = self._ui.read_line(f"Select a model (1-{len(self._models)}): ").strip()
        if COMMAND_TABLE.get(raw) is Command.QUIT:
            self._ui.farewell()
            return Dispatch(Action.QUIT)
        try:
            chosen = select_model(raw, self._models)
        except InputError as e:
            logger.info("Rejected model selection", extra={"extra": {"input": raw, "code": e.code}})
            self._ui.error(e.message)
            return Dispatch(Action.CONTINUE)
        self._state.set_model(chosen.model_id)
        logger.info("Model changed", extra={"extra": {"model": chosen.model_id}})
        self._ui.active_model(chosen.model_id)
        return Dispatch(Action.CONTINUE)
