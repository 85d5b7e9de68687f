"""Drive a submitted transform job to a downloaded file."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable

from .errors import ConfigError, EmptyDownloadError, PollTimeoutError, TransformError
from .results import DownloadedFile, Status, TransformResult
from .settings import ClientSettings

if TYPE_CHECKING:
    from .client import VanceClient


@dataclass(frozen=True)
class PollPolicy:
    interval_s: float = 1.0
    max_duration_s: float = 30.0

    def __post_init__(self) -> None:
        for value in (self.interval_s, self.max_duration_s):
            if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
                raise ConfigError(
                    f"Poll interval and duration must be positive, got {self.interval_s} and {self.max_duration_s}."
                )

    @property
    def max_retries(self) -> int:
        # tolerance keeps 3.0 / 0.1 at 30 rather than 29
        return int(math.floor(self.max_duration_s / self.interval_s + 1e-9))

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> "PollPolicy":
        return cls(interval_s=settings.poll_interval_s, max_duration_s=settings.max_execution_s)


class JobPoller:
    """Blocks until the job downloads, fails, or the retry budget runs out.

    Each round checks status, downloads if the job reports finished, then
    sleeps. A finished job whose download comes back empty keeps polling.
    Transport errors are never retried.
    """

    def __init__(
        self,
        client: "VanceClient",
        policy: PollPolicy | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.policy = policy or PollPolicy()
        self._sleep = sleep

    def run(self, result: TransformResult, dest_path: Path | str) -> DownloadedFile:
        dest = Path(dest_path)
        trans_id = result.trans_id
        if result.status is Status.FATAL:
            self._emit("job_failed", trans_id=trans_id, status=result.raw_status, attempts=0)
            raise TransformError(
                f"Transform {trans_id or '<unknown>'} failed",
                trans_id=trans_id or None,
                status=result.raw_status,
            )
        if not trans_id:
            raise TransformError("Transform response is missing trans_id", status=result.raw_status)

        if result.status is Status.FINISHED:
            downloaded = self._try_download(trans_id, dest, attempt=0)
            if downloaded is not None:
                self._emit("job_finished", trans_id=trans_id, path=str(downloaded.path), attempts=0)
                return downloaded

        max_retries = self.policy.max_retries
        for attempt in range(1, max_retries + 1):
            progress = self.client.progress(trans_id)
            self._emit("progress_checked", trans_id=trans_id, attempt=attempt, status=progress.raw_status)
            if progress.status is Status.FATAL:
                self._emit("job_failed", trans_id=trans_id, status=progress.raw_status, attempts=attempt)
                raise TransformError(
                    f"Transform {trans_id} failed",
                    trans_id=trans_id,
                    status=progress.raw_status,
                )
            if progress.status is Status.FINISHED:
                downloaded = self._try_download(trans_id, dest, attempt=attempt)
                if downloaded is not None:
                    self._emit("job_finished", trans_id=trans_id, path=str(downloaded.path), attempts=attempt)
                    return downloaded
            if attempt < max_retries:
                self._sleep(self.policy.interval_s)

        self._emit("job_timed_out", trans_id=trans_id, attempts=max_retries)
        raise PollTimeoutError(trans_id, attempts=max_retries)

    def _try_download(self, trans_id: str, dest: Path, *, attempt: int) -> DownloadedFile | None:
        try:
            return self.client.download(trans_id, dest)
        except EmptyDownloadError as exc:
            self._emit("download_incomplete", trans_id=trans_id, attempt=attempt, reason=exc.message)
            return None

    def _emit(self, event_type: str, **payload: Any) -> None:
        self.client.emit(event_type, **payload)
