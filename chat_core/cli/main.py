"""Command line entry point: `chat-core` / `python -m chat_core`."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

from chat_core import __version__
from chat_core.cli.commands import COMMAND_TABLE, Command, CommandDispatcher, select_model
from chat_core.cli.session import SessionLoop
from chat_core.cli.ui import ConsoleUI
from chat_core.config.credentials import ensure_api_key
from chat_core.config.settings import settings
from chat_core.domain.conversation import ConversationState
from chat_core.domain.exceptions import BusinessError, InputError
from chat_core.infrastructure.logging.logger import logger
from chat_core.providers import create_transport
from chat_core.providers.registry import GROQ_CONFIG


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chat-core",
        description="Interactive terminal chat with a hosted language model.",
    )
    parser.add_argument("--model", help="model id to start with (default from settings)")
    parser.add_argument(
        "--stream",
        action="store_true",
        default=None,
        help="start with streaming output enabled",
    )
    parser.add_argument(
        "--pick-model",
        action="store_true",
        help="choose the model from a list before the session starts",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def pick_startup_model(ui: ConsoleUI, default: str) -> Optional[str]:
    """Startup picker: Enter keeps the default, /quit aborts (returns None)."""

    models = GROQ_CONFIG.models
    ui.show_models(models, default)
    raw = ui.read_line(f"Select a model (1-{len(models)}) or press Enter for default: ").strip()
    if COMMAND_TABLE.get(raw) is Command.QUIT:
        ui.farewell()
        return None
    if not raw:
        return default
    try:
        return select_model(raw, models).model_id
    except InputError as e:
        ui.error(f"{e.message}. Using default model.")
        return default


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    ui = ConsoleUI()

    try:
        api_key = ensure_api_key(settings, prompt_fn=ui.read_line)
    except BusinessError as e:
        logger.error("Missing credential", extra={"extra": {"code": e.code}})
        ui.error(e.message)
        return 1

    model = args.model or settings.default_model
    stream = settings.stream_by_default if args.stream is None else args.stream
    ui.welcome(model, __version__)
    if args.pick_model:
        try:
            picked = pick_startup_model(ui, model)
        except (EOFError, KeyboardInterrupt):
            picked = None
        if picked is None:
            return 0
        model = picked

    state = ConversationState(model=model, streaming_enabled=stream)
    ui.active_model(state.model)
    ui.instructions()
    logger.info("Session started", extra={"extra": {"model": model, "stream": stream}})

    loop = SessionLoop(
        state=state,
        transport=create_transport("groq", api_key=api_key),
        ui=ui,
        dispatcher=CommandDispatcher(state, ui),
    )
    loop.run()
    logger.info("Session ended", extra={"extra": {"messages": len(state)}})
    return 0
