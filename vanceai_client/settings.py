"""Client settings resolved once per client instance."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigError
from .utils import getenv_flag

DEFAULT_ENDPOINT = "https://api-service.vanceai.com/web_api/v1/"
DEFAULT_ENLARGE_SCALES: tuple[int, ...] = (2, 4, 6, 8)
DEFAULT_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


@dataclass(frozen=True)
class ClientSettings:
    endpoint: str = DEFAULT_ENDPOINT
    connect_timeout: float = 3.0
    request_timeout: float = 5.0
    follow_redirects: bool = True
    poll_interval_s: float = 1.0
    max_execution_s: float = 30.0
    webhook_url: str = ""
    enlarge_scales: tuple[int, ...] = DEFAULT_ENLARGE_SCALES
    templates_dir: Path = DEFAULT_TEMPLATES_DIR

    def __post_init__(self) -> None:
        if not str(self.endpoint or "").strip():
            raise ConfigError("Endpoint must not be empty.")
        for name in ("connect_timeout", "request_timeout", "poll_interval_s", "max_execution_s"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
                raise ConfigError(f"{name} must be a positive number, got {value!r}.")
        scales = tuple(self.enlarge_scales)
        if not scales or any(not isinstance(scale, int) or scale < 1 for scale in scales):
            raise ConfigError(f"enlarge_scales must be positive integers, got {scales!r}.")
        # sorted so scale selection always walks smallest first
        object.__setattr__(self, "enlarge_scales", tuple(sorted(set(scales))))
        object.__setattr__(self, "templates_dir", Path(self.templates_dir))
        if not self.endpoint.endswith("/"):
            object.__setattr__(self, "endpoint", f"{self.endpoint}/")

    @classmethod
    def from_env(cls) -> "ClientSettings":
        defaults = cls()
        return cls(
            endpoint=os.getenv("VANCEAI_ENDPOINT") or defaults.endpoint,
            connect_timeout=_env_float("VANCEAI_CONNECT_TIMEOUT", defaults.connect_timeout),
            request_timeout=_env_float("VANCEAI_REQUEST_TIMEOUT", defaults.request_timeout),
            follow_redirects=getenv_flag("VANCEAI_FOLLOW_REDIRECTS", defaults.follow_redirects),
            poll_interval_s=_env_float("VANCEAI_POLL_INTERVAL", defaults.poll_interval_s),
            max_execution_s=_env_float("VANCEAI_MAX_EXECUTION", defaults.max_execution_s),
            webhook_url=os.getenv("VANCEAI_WEBHOOK_URL", defaults.webhook_url),
            templates_dir=Path(os.getenv("VANCEAI_TEMPLATES_DIR") or defaults.templates_dir),
        )


def resolve_api_token(explicit: str | None = None) -> str:
    token = (explicit or os.getenv("VANCEAI_API_TOKEN") or "").strip()
    if not token:
        raise ConfigError("VANCEAI_API_TOKEN must be set for the VanceAI client.")
    return token


def _env_float(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be a number, got {raw!r}.") from exc
