"""VanceAI API client: upload, transform, progress and download."""

from __future__ import annotations

import mimetypes
import os
import tempfile
import time
import uuid
from pathlib import Path
from typing import Any, Callable, Mapping

from .errors import EmptyDownloadError, FileError, RemoteError, TransformError, ValidationError
from .events import EventWriter
from .jobconfig import ENLARGER_TEMPLATE, JobConfig, TemplateStore, build, normalize_scale
from .poller import JobPoller, PollPolicy
from .resolver import resolve
from .results import DownloadedFile, ProgressResult, TransformResult, UploadResult
from .settings import ClientSettings, resolve_api_token
from .transport import Transport, decode_envelope
from .utils import load_dotenv

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
DEFAULT_SUPPRESS_NOISE = 26
DEFAULT_REMOVE_BLUR = 26


class VanceClient:
    def __init__(
        self,
        api_token: str | None = None,
        settings: ClientSettings | None = None,
        *,
        transport: Transport | None = None,
        templates: TemplateStore | None = None,
        events_path: Path | None = None,
        run_id: str | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._api_token = resolve_api_token(api_token)
        self.settings = settings or ClientSettings.from_env()
        self.transport = transport or Transport(self.settings)
        self.templates = templates or TemplateStore(self.settings.templates_dir)
        self.events = EventWriter(events_path, run_id or str(uuid.uuid4())) if events_path else None
        self._sleep = sleep

    @classmethod
    def from_env(cls, *, dotenv_path: Path | None = None, **kwargs: Any) -> "VanceClient":
        """Entry-point constructor for scripts.

        Loads `.env` into the process environment (existing variables win),
        then reads the token and settings from `VANCEAI_*` variables. The plain
        constructor never touches `.env`.
        """
        load_dotenv(dotenv_path)
        return cls(settings=ClientSettings.from_env(), **kwargs)

    @property
    def api_token(self) -> str:
        return self._api_token

    def emit(self, event_type: str, **payload: Any) -> None:
        if self.events is not None:
            self.events.emit(event_type, **payload)

    def build_config(self, template_name: str, overrides: Mapping[str, Any] | None = None) -> JobConfig:
        return build(template_name, overrides, store=self.templates, scales=self.settings.enlarge_scales)

    # Primitive remote calls

    def upload(self, file_path: Path | str) -> UploadResult:
        path = Path(file_path)
        if not path.is_file() or not os.access(path, os.R_OK):
            raise FileError(f"Could not read file {path}", path=path)
        size = path.stat().st_size
        if size > MAX_UPLOAD_BYTES:
            raise ValidationError(
                f"{path} is {size} bytes; the upload limit is {MAX_UPLOAD_BYTES} bytes",
                path=str(path),
                size=size,
            )
        try:
            blob = path.read_bytes()
        except OSError as exc:
            raise FileError(f"Could not read file {path}", path=path) from exc

        mime_type, _ = mimetypes.guess_type(path.name)
        raw = self.transport.execute(
            "POST",
            "upload",
            fields=[("api_token", self._api_token)],
            files=[("file", path.name, blob, mime_type)],
        )
        data = decode_envelope(raw, "upload")
        uid = data.get("uid")
        if not uid:
            raise RemoteError("VanceAI upload response is missing uid", endpoint="upload")
        self.emit("upload_finished", path=str(path), size=size, uid=str(uid))
        return UploadResult(uid=str(uid))

    def transform(
        self,
        uid: str,
        job_config: JobConfig | str,
        webhook_url: str | None = None,
    ) -> TransformResult:
        jconfig = job_config.encode() if isinstance(job_config, JobConfig) else str(job_config)
        fields: list[tuple[str, Any]] = [
            ("api_token", self._api_token),
            ("uid", uid),
            ("jconfig", jconfig),
        ]
        if webhook_url is not None:
            fields.append(("webhook", webhook_url))
        raw = self.transport.execute("POST", "transform", fields=fields, encoding="form")
        try:
            data = decode_envelope(raw, "transform")
        except RemoteError as exc:
            raise TransformError(f"Could not transform {uid}: {exc.message}") from exc
        if not data.get("trans_id") and not data.get("status"):
            raise TransformError(f"Could not transform {uid}")
        result = TransformResult.from_data(data)
        self.emit(
            "transform_submitted",
            uid=uid,
            trans_id=result.trans_id,
            status=result.raw_status,
        )
        return result

    def progress(self, trans_id: str) -> ProgressResult:
        raw = self.transport.execute(
            "POST",
            "progress",
            fields=[("api_token", self._api_token), ("trans_id", trans_id)],
        )
        return ProgressResult.from_data(decode_envelope(raw, "progress"))

    def download(self, trans_id: str, dest_path: Path | str) -> DownloadedFile:
        dest = Path(dest_path)
        directory = dest.parent
        if not directory.is_dir() or not os.access(directory, os.W_OK):
            raise FileError(f"Could not write file {dest}", path=dest, trans_id=trans_id)

        raw = self.transport.execute(
            "POST",
            "download",
            fields=[("api_token", self._api_token), ("trans_id", trans_id)],
        )
        if not raw:
            raise EmptyDownloadError(
                f"Download for {trans_id} returned an empty body",
                path=dest,
                trans_id=trans_id,
            )
        try:
            dest.write_bytes(raw)
        except OSError as exc:
            raise FileError(f"Could not write file {dest}", path=dest, trans_id=trans_id) from exc

        # stat again rather than trusting the write count
        try:
            size = os.stat(dest).st_size
        except FileNotFoundError:
            size = 0
        if size <= 0:
            raise EmptyDownloadError(f"Downloaded file {dest} is empty", path=dest, trans_id=trans_id)
        self.emit("download_finished", trans_id=trans_id, path=str(dest), size=size)
        return DownloadedFile(path=dest, size=size)

    # Blocking flows

    def transform_and_download(
        self,
        file_path: Path | str,
        job_config: JobConfig | str,
        dest_path: Path | str | None = None,
    ) -> DownloadedFile:
        uploaded = self.upload(file_path)
        result = self.transform(uploaded.uid, job_config, webhook_url=self.settings.webhook_url)
        dest = Path(dest_path) if dest_path else default_destination(file_path)
        poller = JobPoller(self, PollPolicy.from_settings(self.settings), sleep=self._sleep)
        return poller.run(result, dest)

    def enlarge_by_scale(
        self,
        file_path: Path | str,
        scale: int | str = 2,
        suppress_noise: int = DEFAULT_SUPPRESS_NOISE,
        remove_blur: int = DEFAULT_REMOVE_BLUR,
        dest_path: Path | str | None = None,
    ) -> DownloadedFile:
        resolved_scale = normalize_scale(scale, self.settings.enlarge_scales)
        config = self.build_config(
            ENLARGER_TEMPLATE,
            {
                "scale": resolved_scale,
                "suppress_noise": suppress_noise,
                "remove_blur": remove_blur,
            },
        )
        return self.transform_and_download(file_path, config, dest_path)

    def enlarge_by_dimensions(
        self,
        file_path: Path | str,
        min_width: int,
        min_height: int,
        suppress_noise: int = DEFAULT_SUPPRESS_NOISE,
        remove_blur: int = DEFAULT_REMOVE_BLUR,
        dest_path: Path | str | None = None,
    ) -> DownloadedFile:
        scale = resolve(file_path, min_width, min_height, self.settings.enlarge_scales)
        return self.enlarge_by_scale(file_path, scale, suppress_noise, remove_blur, dest_path)


def default_destination(file_path: Path | str) -> Path:
    return Path(tempfile.gettempdir()) / Path(file_path).name
