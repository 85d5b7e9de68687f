"""HTTP transport for the VanceAI web API."""

from __future__ import annotations

import http.client
import json
import uuid
from functools import partial
from types import MappingProxyType
from typing import Any, Mapping, Sequence
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode, urljoin
from urllib.request import HTTPHandler, HTTPRedirectHandler, HTTPSHandler, Request, build_opener

from .errors import RemoteError
from .settings import ClientSettings

ERROR_CODES: Mapping[int, str] = MappingProxyType(
    {
        10001: "Illegal parameter",
        10010: "Internal error",
        10011: "File does not exist",
        10012: "Job exceeds limitation",
        10013: "jparam parse error",
        10014: "Job failed and existed for unknown reason",
        30001: "Invalid api token",
        30004: "Limit exceeded",
    }
)
UNKNOWN_ERROR = "Unknown error"

FileField = tuple[str, str, bytes, str | None]


def describe_code(code: int | None) -> str:
    if code is None:
        return UNKNOWN_ERROR
    return ERROR_CODES.get(code, UNKNOWN_ERROR)


class Transport:
    """Executes single requests; retry policy belongs to the caller."""

    def __init__(self, settings: ClientSettings) -> None:
        self.settings = settings
        handlers: list[Any] = [
            _TimedHTTPHandler(settings.request_timeout),
            _TimedHTTPSHandler(settings.request_timeout),
        ]
        if not settings.follow_redirects:
            handlers.append(_NoRedirectHandler())
        self._opener = build_opener(*handlers)

    def url_for(self, endpoint: str) -> str:
        return urljoin(self.settings.endpoint, endpoint.lstrip("/"))

    def execute(
        self,
        method: str,
        endpoint: str,
        fields: Sequence[tuple[str, Any]] = (),
        files: Sequence[FileField] = (),
        *,
        encoding: str = "multipart",
    ) -> bytes:
        url = self.url_for(endpoint)
        if encoding == "form" and not files:
            body = urlencode([(key, str(value)) for key, value in fields if value is not None]).encode("utf-8")
            content_type = "application/x-www-form-urlencoded"
        else:
            boundary = f"----VanceBoundary{uuid.uuid4().hex}"
            body = _build_multipart_body(boundary, fields, files)
            content_type = f"multipart/form-data; boundary={boundary}"
        req = Request(
            url,
            data=body,
            headers={"Accept": "application/json", "Content-Type": content_type},
            method=method.upper(),
        )
        try:
            with self._opener.open(req, timeout=self.settings.connect_timeout) as response:
                status_code = int(getattr(response, "status", 200))
                raw = response.read()
        except HTTPError as exc:
            raw = exc.read() if exc.fp else b""
            raise remote_error_from_response(exc.code, raw, endpoint) from exc
        except URLError as exc:
            raise RemoteError(f"VanceAI request failed: {exc.reason}", endpoint=endpoint) from exc
        except OSError as exc:
            raise RemoteError(f"VanceAI request failed: {exc}", endpoint=endpoint) from exc
        except http.client.HTTPException as exc:
            # truncated bodies and malformed status lines
            raise RemoteError(f"VanceAI request failed: {exc!r}", endpoint=endpoint) from exc
        if not 200 <= status_code < 300:
            raise remote_error_from_response(status_code, raw, endpoint)
        return raw


def remote_error_from_response(http_status: int, raw: bytes, endpoint: str | None = None) -> RemoteError:
    code = http_status
    body_code = _envelope_code(raw)
    if body_code is not None and body_code in ERROR_CODES:
        code = body_code
    return RemoteError(describe_code(code), code=code, http_status=http_status, endpoint=endpoint)


def decode_envelope(raw: bytes, endpoint: str | None = None) -> Mapping[str, Any]:
    try:
        payload = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise RemoteError("VanceAI returned a non-JSON response", endpoint=endpoint) from exc
    if not isinstance(payload, Mapping):
        raise RemoteError("VanceAI returned an unexpected response shape", endpoint=endpoint)
    data = payload.get("data")
    if not isinstance(data, Mapping):
        raise RemoteError("VanceAI response is missing its data object", endpoint=endpoint)
    return data


def _envelope_code(raw: bytes) -> int | None:
    try:
        payload = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return None
    if not isinstance(payload, Mapping):
        return None
    code = payload.get("code")
    if isinstance(code, bool):
        return None
    if isinstance(code, int):
        return code
    if isinstance(code, str) and code.strip().isdigit():
        return int(code.strip())
    return None


def _build_multipart_body(
    boundary: str,
    fields: Sequence[tuple[str, Any]],
    files: Sequence[FileField],
) -> bytes:
    boundary_bytes = boundary.encode("utf-8")
    payload = bytearray()
    for key, value in fields:
        if value is None:
            continue
        payload.extend(b"--")
        payload.extend(boundary_bytes)
        payload.extend(b"\r\n")
        disposition = f'Content-Disposition: form-data; name="{_multipart_quote(key)}"\r\n\r\n'
        payload.extend(disposition.encode("utf-8"))
        payload.extend(str(value).encode("utf-8"))
        payload.extend(b"\r\n")
    for field_name, filename, blob, mime_type in files:
        payload.extend(b"--")
        payload.extend(boundary_bytes)
        payload.extend(b"\r\n")
        disposition = (
            "Content-Disposition: form-data; "
            f'name="{_multipart_quote(field_name)}"; filename="{_multipart_quote(filename)}"\r\n'
        )
        payload.extend(disposition.encode("utf-8"))
        payload.extend(f"Content-Type: {mime_type or 'application/octet-stream'}\r\n".encode("utf-8"))
        payload.extend(b"\r\n")
        payload.extend(blob)
        payload.extend(b"\r\n")
    payload.extend(b"--")
    payload.extend(boundary_bytes)
    payload.extend(b"--\r\n")
    return bytes(payload)


def _multipart_quote(value: str) -> str:
    return str(value).replace("\\", "\\\\").replace('"', '\\"')


# The opener timeout covers connect; reads switch to the request timeout.
class _TimedHTTPConnection(http.client.HTTPConnection):
    def __init__(self, *args: Any, read_timeout: float | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._read_timeout = read_timeout

    def connect(self) -> None:
        super().connect()
        if self.sock is not None and self._read_timeout:
            self.sock.settimeout(self._read_timeout)


class _TimedHTTPSConnection(http.client.HTTPSConnection):
    def __init__(self, *args: Any, read_timeout: float | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._read_timeout = read_timeout

    def connect(self) -> None:
        super().connect()
        if self.sock is not None and self._read_timeout:
            self.sock.settimeout(self._read_timeout)


class _TimedHTTPHandler(HTTPHandler):
    def __init__(self, read_timeout: float) -> None:
        super().__init__()
        self._read_timeout = read_timeout

    def http_open(self, req: Request) -> http.client.HTTPResponse:
        return self.do_open(partial(_TimedHTTPConnection, read_timeout=self._read_timeout), req)


class _TimedHTTPSHandler(HTTPSHandler):
    def __init__(self, read_timeout: float) -> None:
        super().__init__()
        self._read_timeout = read_timeout

    def https_open(self, req: Request) -> http.client.HTTPResponse:
        return self.do_open(
            partial(_TimedHTTPSConnection, read_timeout=self._read_timeout),
            req,
            context=self._context,
        )


class _NoRedirectHandler(HTTPRedirectHandler):
    def redirect_request(self, req, fp, code, msg, headers, newurl):  # type: ignore[override]
        return None
