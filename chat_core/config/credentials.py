"""API Key resolution for the chat session.

The key is looked up in settings (environment, .env, config.yaml) and in the
configured .env file. If it is still missing the user is asked once and the
answer is written back to the .env file so the next start finds it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from dotenv import dotenv_values, set_key

from chat_core.config.settings import settings
from chat_core.domain.exceptions import ValidationError


API_KEY_NAME = "GROQ_API_KEY"
API_KEY_LABEL = "GroqCloud API key"


def load_api_key(cfg=settings) -> Optional[str]:
    """Return the configured key, or None when nothing is set."""

    key = getattr(cfg, "groq_api_key", None)
    if key:
        return key
    env_file = Path(getattr(cfg, "env_file", ".env"))
    if env_file.exists():
        value = dotenv_values(env_file).get(API_KEY_NAME)
        if value and value.strip():
            return value.strip()
    return None


def save_api_key(value: str, env_file: str | Path) -> None:
    """Persist the key to the .env file, replacing an existing entry."""

    path = Path(env_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.touch(exist_ok=True)
    set_key(str(path), API_KEY_NAME, value.strip())


def ensure_api_key(cfg=settings, prompt_fn: Callable[[str], str] = input) -> str:
    """Resolve the bearer credential before the first turn.

    Raises ValidationError(MISSING_API_KEY) when the key is neither configured
    nor entered at the prompt.
    """

    key = load_api_key(cfg)
    if key:
        return key
    try:
        entered = prompt_fn(f"{API_KEY_LABEL} not found. Enter your {API_KEY_LABEL}: ")
    except EOFError:
        entered = ""
    entered = (entered or "").strip()
    if not entered:
        raise ValidationError(code="MISSING_API_KEY", message=f"{API_KEY_NAME} not set")
    save_api_key(entered, getattr(cfg, "env_file", ".env"))
    return entered
