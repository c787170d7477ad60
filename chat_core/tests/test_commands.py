import io

import pytest
from rich.console import Console

from chat_core.cli.commands import (
    Action,
    Command,
    CommandDispatcher,
    parse_command,
    select_model,
)
from chat_core.cli.ui import ConsoleUI
from chat_core.domain.conversation import ConversationState
from chat_core.domain.exceptions import InputError
from chat_core.providers.registry import GROQ_CONFIG


def make_ui(answers=()):
    out = io.StringIO()
    queue = list(answers)
    ui = ConsoleUI(
        console=Console(file=out, width=200, color_system=None),
        input_fn=lambda prompt: queue.pop(0),
    )
    return ui, out


@pytest.mark.parametrize(
    "line,expected",
    [
        ("/quit", Command.QUIT),
        ("/exit", Command.QUIT),
        ("  /stream  ", Command.STREAM),
        ("/clear", Command.CLEAR),
        ("/model", Command.MODEL),
        ("/help", Command.HELP),
        ("/", Command.HELP),
        ("/QUIT", Command.UNKNOWN),
        ("/model 2", Command.UNKNOWN),
        ("/foo", Command.UNKNOWN),
        ("hello /quit", Command.MESSAGE),
        ("   ", Command.EMPTY),
        ("", Command.EMPTY),
    ],
)
def test_parse_command(line, expected):
    assert parse_command(line).command is expected


def test_message_is_trimmed():
    parsed = parse_command("  what is rust?  \n")
    assert parsed.command is Command.MESSAGE
    assert parsed.text == "what is rust?"


def test_select_model_bounds():
    models = GROQ_CONFIG.models
    assert select_model("2", models) is models[1]
    for bad in ("4", "0", "abc", "", "-1", "1.5"):
        with pytest.raises(InputError):
            select_model(bad, models)


def test_model_out_of_range_leaves_state():
    state = ConversationState(model=GROQ_CONFIG.models[0].model_id)
    ui, out = make_ui(["4"])
    result = CommandDispatcher(state, ui).dispatch("/model")
    assert result.action is Action.CONTINUE
    assert state.model == GROQ_CONFIG.models[0].model_id
    assert "Error" in out.getvalue()


def test_model_non_numeric_leaves_state():
    state = ConversationState(model=GROQ_CONFIG.models[0].model_id)
    ui, out = make_ui(["abc"])
    CommandDispatcher(state, ui).dispatch("/model")
    assert state.model == GROQ_CONFIG.models[0].model_id
    assert "enter a number" in out.getvalue()


def test_model_valid_choice_keeps_history():
    state = ConversationState(model=GROQ_CONFIG.models[0].model_id)
    state.append("user", "hi")
    state.append("assistant", "hello")
    before = state.snapshot()
    ui, out = make_ui(["2"])
    CommandDispatcher(state, ui).dispatch("/model")
    assert state.model == GROQ_CONFIG.models[1].model_id
    assert state.snapshot() == before
    assert GROQ_CONFIG.models[1].model_id in out.getvalue()


def test_quit_at_model_prompt():
    state = ConversationState(model="m")
    ui, _ = make_ui(["/exit"])
    assert CommandDispatcher(state, ui).dispatch("/model").action is Action.QUIT
    assert state.model == "m"


def test_stream_toggle_reports_state():
    state = ConversationState(model="m")
    ui, out = make_ui()
    dispatcher = CommandDispatcher(state, ui)
    dispatcher.dispatch("/stream")
    assert state.streaming_enabled
    assert "Streaming mode: ON" in out.getvalue()
    dispatcher.dispatch("/stream")
    assert not state.streaming_enabled
    assert "Streaming mode: OFF" in out.getvalue()


def test_clear_twice():
    state = ConversationState(model="m")
    state.append("user", "x")
    ui, _ = make_ui()
    dispatcher = CommandDispatcher(state, ui)
    dispatcher.dispatch("/clear")
    dispatcher.dispatch("/clear")
    assert len(state) == 0


def test_unknown_command_changes_nothing():
    state = ConversationState(model="m")
    ui, out = make_ui()
    result = CommandDispatcher(state, ui).dispatch("/frobnicate")
    assert result.action is Action.CONTINUE
    assert len(state) == 0
    assert not state.streaming_enabled
    assert "Unknown command: /frobnicate" in out.getvalue()


def test_help_lists_commands():
    ui, out = make_ui()
    CommandDispatcher(ConversationState(model="m"), ui).dispatch("/help")
    text = out.getvalue()
    for cmd in ("/model", "/clear", "/stream", "/help"):
        assert cmd in text


def test_message_and_empty_lines():
    state = ConversationState(model="m")
    ui, _ = make_ui()
    dispatcher = CommandDispatcher(state, ui)
    turn = dispatcher.dispatch("  hi there ")
    assert turn.action is Action.TURN
    assert turn.content == "hi there"
    assert dispatcher.dispatch("   ").action is Action.CONTINUE
    assert len(state) == 0
