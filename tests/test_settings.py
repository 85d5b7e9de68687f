from __future__ import annotations

from pathlib import Path

import pytest

from vanceai_client.errors import ConfigError
from vanceai_client.settings import DEFAULT_ENDPOINT, ClientSettings, resolve_api_token
from vanceai_client.utils import load_dotenv

_ENV_KEYS = (
    "VANCEAI_ENDPOINT",
    "VANCEAI_CONNECT_TIMEOUT",
    "VANCEAI_REQUEST_TIMEOUT",
    "VANCEAI_FOLLOW_REDIRECTS",
    "VANCEAI_POLL_INTERVAL",
    "VANCEAI_MAX_EXECUTION",
    "VANCEAI_WEBHOOK_URL",
    "VANCEAI_TEMPLATES_DIR",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults_match_service_contract() -> None:
    settings = ClientSettings.from_env()
    assert settings.endpoint == DEFAULT_ENDPOINT
    assert settings.connect_timeout == 3.0
    assert settings.request_timeout == 5.0
    assert settings.follow_redirects is True
    assert settings.poll_interval_s == 1.0
    assert settings.max_execution_s == 30.0
    assert settings.enlarge_scales == (2, 4, 6, 8)
    assert settings.webhook_url == ""
    assert (settings.templates_dir / "image-enlarger.json").is_file()


def test_from_env_overrides(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("VANCEAI_ENDPOINT", "https://staging.test/api")
    monkeypatch.setenv("VANCEAI_CONNECT_TIMEOUT", "1.5")
    monkeypatch.setenv("VANCEAI_FOLLOW_REDIRECTS", "off")
    monkeypatch.setenv("VANCEAI_MAX_EXECUTION", "12")
    monkeypatch.setenv("VANCEAI_WEBHOOK_URL", "https://hooks.test/noop")
    monkeypatch.setenv("VANCEAI_TEMPLATES_DIR", str(tmp_path))

    settings = ClientSettings.from_env()

    assert settings.endpoint == "https://staging.test/api/"
    assert settings.connect_timeout == 1.5
    assert settings.follow_redirects is False
    assert settings.max_execution_s == 12.0
    assert settings.webhook_url == "https://hooks.test/noop"
    assert settings.templates_dir == tmp_path


def test_invalid_number_in_env_is_a_config_error(monkeypatch) -> None:
    monkeypatch.setenv("VANCEAI_REQUEST_TIMEOUT", "soon")
    with pytest.raises(ConfigError, match="VANCEAI_REQUEST_TIMEOUT"):
        ClientSettings.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"connect_timeout": 0},
        {"request_timeout": -1.0},
        {"poll_interval_s": float("nan")},
        {"endpoint": " "},
        {"enlarge_scales": ()},
        {"enlarge_scales": (2, 0)},
    ],
)
def test_invalid_settings_are_rejected(kwargs) -> None:
    with pytest.raises(ConfigError):
        ClientSettings(**kwargs)


def test_settings_are_frozen_and_scales_sorted() -> None:
    settings = ClientSettings(enlarge_scales=(8, 2, 4, 2))
    assert settings.enlarge_scales == (2, 4, 8)
    with pytest.raises(AttributeError):
        settings.endpoint = "https://elsewhere.test/"  # type: ignore[misc]


def test_resolve_api_token(monkeypatch) -> None:
    monkeypatch.setenv("VANCEAI_API_TOKEN", " from-env ")
    assert resolve_api_token() == "from-env"
    assert resolve_api_token("explicit") == "explicit"
    monkeypatch.delenv("VANCEAI_API_TOKEN")
    with pytest.raises(ConfigError):
        resolve_api_token()


def test_load_dotenv_does_not_override_existing(monkeypatch, tmp_path: Path) -> None:
    env_path = tmp_path / ".env"
    env_path.write_text(
        "# local settings\nexport VANCEAI_API_TOKEN='dotenv-token'\nVANCEAI_ENDPOINT=https://dotenv.test/\n",
        encoding="utf-8",
    )
    # setenv first so teardown restores whatever load_dotenv writes
    monkeypatch.setenv("VANCEAI_API_TOKEN", "placeholder")
    monkeypatch.delenv("VANCEAI_API_TOKEN")
    monkeypatch.setenv("VANCEAI_ENDPOINT", "https://already.test/")

    assert load_dotenv(env_path) is True
    assert resolve_api_token() == "dotenv-token"
    assert ClientSettings.from_env().endpoint == "https://already.test/"


def test_load_dotenv_missing_file(tmp_path: Path) -> None:
    assert load_dotenv(tmp_path / "absent.env") is False
