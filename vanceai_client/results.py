"""Typed results decoded from VanceAI responses."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping


class Status(str, Enum):
    PENDING = "pending"
    FINISHED = "finish"
    FATAL = "fatal"

    @classmethod
    def from_value(cls, value: Any) -> "Status":
        text = str(value or "").strip().lower()
        if text == cls.FINISHED.value:
            return cls.FINISHED
        if text == cls.FATAL.value:
            return cls.FATAL
        return cls.PENDING


@dataclass(frozen=True)
class UploadResult:
    uid: str


@dataclass(frozen=True)
class TransformResult:
    trans_id: str
    status: Status
    raw_status: str = ""

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> "TransformResult":
        raw_status = str(data.get("status") or "")
        return cls(
            trans_id=str(data.get("trans_id") or ""),
            status=Status.from_value(raw_status),
            raw_status=raw_status,
        )


@dataclass(frozen=True)
class ProgressResult:
    status: Status
    raw_status: str = ""

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> "ProgressResult":
        raw_status = str(data.get("status") or "")
        return cls(status=Status.from_value(raw_status), raw_status=raw_status)


@dataclass(frozen=True)
class DownloadedFile:
    path: Path
    size: int
