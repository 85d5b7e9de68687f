"""Client for the VanceAI image transformation API."""

from __future__ import annotations

from .client import MAX_UPLOAD_BYTES, VanceClient, default_destination
from .errors import (
    ConfigError,
    EmptyDownloadError,
    FileError,
    ImageError,
    PollTimeoutError,
    RemoteError,
    TransformError,
    ValidationError,
    VanceError,
)
from .jobconfig import JobConfig, TemplateStore, build
from .poller import JobPoller, PollPolicy
from .resolver import resolve
from .results import DownloadedFile, ProgressResult, Status, TransformResult, UploadResult
from .settings import ClientSettings

__all__ = [
    "MAX_UPLOAD_BYTES",
    "ClientSettings",
    "ConfigError",
    "DownloadedFile",
    "EmptyDownloadError",
    "FileError",
    "ImageError",
    "JobConfig",
    "JobPoller",
    "PollPolicy",
    "PollTimeoutError",
    "ProgressResult",
    "RemoteError",
    "Status",
    "TemplateStore",
    "TransformError",
    "TransformResult",
    "UploadResult",
    "ValidationError",
    "VanceClient",
    "VanceError",
    "build",
    "default_destination",
    "resolve",
]
