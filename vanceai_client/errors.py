"""Error taxonomy for the VanceAI client."""

from __future__ import annotations

from pathlib import Path
from typing import Any


class VanceError(RuntimeError):
    """Base class for every error raised by the client."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = {key: value for key, value in context.items() if value is not None}


class FileError(VanceError):
    def __init__(self, message: str, path: str | Path | None = None, **context: Any) -> None:
        super().__init__(message, path=str(path) if path is not None else None, **context)
        self.path = str(path) if path is not None else None


class EmptyDownloadError(FileError):
    """Download produced no bytes on disk; the job may still be finalizing."""


class ConfigError(VanceError):
    pass


class ValidationError(ConfigError):
    pass


class RemoteError(VanceError):
    def __init__(
        self,
        message: str,
        code: int | None = None,
        http_status: int | None = None,
        endpoint: str | None = None,
    ) -> None:
        super().__init__(message, code=code, http_status=http_status, endpoint=endpoint)
        self.code = code
        self.http_status = http_status
        self.endpoint = endpoint

    def __str__(self) -> str:
        label = self.code if self.code is not None else self.http_status
        if label is None:
            return self.message
        return f"{self.message} ({label})"


class TransformError(VanceError):
    def __init__(self, message: str, trans_id: str | None = None, status: str | None = None) -> None:
        super().__init__(message, trans_id=trans_id, status=status)
        self.trans_id = trans_id
        self.status = status


class PollTimeoutError(VanceError):
    def __init__(self, trans_id: str, attempts: int = 0) -> None:
        super().__init__(f"Timeout exceeded for transform id {trans_id}", trans_id=trans_id, attempts=attempts)
        self.trans_id = trans_id
        self.attempts = attempts


class ImageError(VanceError):
    def __init__(self, message: str, path: str | Path | None = None) -> None:
        super().__init__(message, path=str(path) if path is not None else None)
        self.path = str(path) if path is not None else None
