"""Job configuration templates and the builder that fills them in."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from .errors import ConfigError, ValidationError
from .settings import DEFAULT_ENLARGE_SCALES, DEFAULT_TEMPLATES_DIR
from .utils import strip_bom

ENLARGER_TEMPLATE = "image-enlarger"
DENOISER_TEMPLATE = "image-denoiser"
SHARPENER_TEMPLATE = "image-sharpener"

_LEVEL_PARAMS = {"suppress_noise", "remove_blur", "remove_noise", "sharpness"}
_LEVEL_MIN = 0
_LEVEL_MAX = 100


@dataclass(frozen=True)
class JobConfig:
    """Encoded job document; accessors decode a fresh copy on every call."""

    template: str
    encoded: str

    def encode(self) -> str:
        return self.encoded

    @property
    def document(self) -> dict[str, Any]:
        return json.loads(self.encoded)

    @property
    def module(self) -> str | None:
        return self.document["config"].get("module")

    @property
    def module_params(self) -> dict[str, Any]:
        return dict(self.document["config"]["module_params"])

    def param(self, name: str, default: Any = None) -> Any:
        return self.module_params.get(name, default)

    @property
    def scale(self) -> int | None:
        raw = self.param("scale")
        if raw is None:
            return None
        return int(str(raw).rstrip("xX"))


class TemplateStore:
    def __init__(self, directory: Path | str = DEFAULT_TEMPLATES_DIR) -> None:
        self.directory = Path(directory)

    def path_for(self, name: str) -> Path:
        filename = name if name.endswith(".json") else f"{name}.json"
        return self.directory / filename

    def names(self) -> list[str]:
        if not self.directory.is_dir():
            return []
        return sorted(path.stem for path in self.directory.glob("*.json"))

    def load(self, name: str) -> dict[str, Any]:
        path = self.path_for(name)
        if not path.is_file():
            raise ConfigError(f"Job template '{name}' not found in {self.directory}", path=str(path))
        try:
            document = json.loads(strip_bom(path.read_text(encoding="utf-8")))
        except (OSError, ValueError) as exc:
            raise ConfigError(f"Job template '{name}' could not be parsed: {exc}", path=str(path)) from exc
        config = document.get("config") if isinstance(document, dict) else None
        if not isinstance(config, dict) or not isinstance(config.get("module_params"), dict):
            raise ConfigError(f"Job template '{name}' has no config.module_params", path=str(path))
        return document


def build(
    template_name: str,
    overrides: Mapping[str, Any] | None = None,
    *,
    store: TemplateStore | None = None,
    scales: tuple[int, ...] = DEFAULT_ENLARGE_SCALES,
) -> JobConfig:
    document = (store or TemplateStore()).load(template_name)
    params = document["config"]["module_params"]
    for key, value in (overrides or {}).items():
        if key not in params:
            raise ConfigError(
                f"Job template '{template_name}' has no parameter '{key}'",
                template=template_name,
            )
        params[key] = _coerce_param(key, value, scales)
    return JobConfig(template=template_name, encoded=encode_config(document))


def encode_config(document: Mapping[str, Any]) -> str:
    return strip_bom(json.dumps(document, separators=(",", ":")))


def normalize_scale(value: Any, scales: tuple[int, ...] = DEFAULT_ENLARGE_SCALES) -> int:
    text = str(value).strip().lower()
    if text.endswith("x"):
        text = text[:-1]
    try:
        scale = int(text)
    except ValueError:
        scale = None
    if isinstance(value, bool) or scale is None or scale not in scales:
        available = ", ".join(str(item) for item in scales)
        raise ValidationError(f"Scale {value} not available. Use {available}", scale=str(value))
    return scale


def _coerce_param(key: str, value: Any, scales: tuple[int, ...]) -> Any:
    if key == "scale":
        return f"{normalize_scale(value, scales)}x"
    if key in _LEVEL_PARAMS:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"{key} must be an integer, got {value!r}", param=key)
        if not _LEVEL_MIN <= value <= _LEVEL_MAX:
            raise ValidationError(
                f"{key} must be between {_LEVEL_MIN} and {_LEVEL_MAX}, got {value}",
                param=key,
            )
    return value
