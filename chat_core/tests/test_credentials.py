import pytest
from dotenv import dotenv_values

from chat_core.config.credentials import API_KEY_NAME, ensure_api_key, load_api_key
from chat_core.domain.exceptions import ValidationError


class SettingsStub:
    groq_api_key = None

    def __init__(self, env_file):
        self.env_file = str(env_file)


def test_configured_key_wins(tmp_path):
    cfg = SettingsStub(tmp_path / ".env")
    cfg.groq_api_key = "gsk_from_settings"

    def prompt(_):
        raise AssertionError("should not prompt")

    assert ensure_api_key(cfg, prompt_fn=prompt) == "gsk_from_settings"


def test_key_read_from_env_file(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(f"OTHER=1\n{API_KEY_NAME}=gsk_from_file\n", encoding="utf-8")
    assert load_api_key(SettingsStub(env_file)) == "gsk_from_file"


def test_prompted_key_is_saved(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("OTHER=1\n", encoding="utf-8")
    key = ensure_api_key(SettingsStub(env_file), prompt_fn=lambda _: "  gsk_entered_key  ")
    assert key == "gsk_entered_key"
    values = dotenv_values(env_file)
    assert values[API_KEY_NAME] == "gsk_entered_key"
    assert values["OTHER"] == "1"


def test_missing_key_is_fatal(tmp_path):
    cfg = SettingsStub(tmp_path / ".env")
    with pytest.raises(ValidationError) as exc:
        ensure_api_key(cfg, prompt_fn=lambda _: "")
    assert exc.value.code == "MISSING_API_KEY"
    assert not (tmp_path / ".env").exists()


def test_eof_at_prompt_is_fatal(tmp_path):
    def prompt(_):
        raise EOFError

    with pytest.raises(ValidationError):
        ensure_api_key(SettingsStub(tmp_path / ".env"), prompt_fn=prompt)
