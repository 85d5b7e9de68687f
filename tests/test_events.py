from __future__ import annotations

import json
from pathlib import Path

from vanceai_client.events import EventWriter


def test_event_writer(tmp_path: Path) -> None:
    path = tmp_path / "events.jsonl"
    writer = EventWriter(path, "run-123")
    writer.emit("upload_finished", path="/tmp/source.png", size=42)
    lines = path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 1
    payload = json.loads(lines[0])
    assert payload["type"] == "upload_finished"
    assert payload["run_id"] == "run-123"
    assert "ts" in payload
    assert payload["size"] == 42


def test_event_writer_redacts_credentials(tmp_path: Path) -> None:
    writer = EventWriter(tmp_path / "nested" / "events.jsonl", "run-1")
    event = writer.emit("transform_submitted", api_token="secret", fields={"api_token": "secret", "uid": "u1"})

    assert event["api_token"] == "<omitted>"
    assert event["fields"] == {"api_token": "<omitted>", "uid": "u1"}
    assert "secret" not in writer.path.read_text(encoding="utf-8")


def test_event_writer_read_round_trip(tmp_path: Path) -> None:
    writer = EventWriter(tmp_path / "events.jsonl", "run-2")
    assert writer.read() == []
    writer.emit("progress_checked", trans_id="t1", attempt=1, status="wait")
    writer.emit("job_finished", trans_id="t1", attempts=1)
    assert [event["type"] for event in writer.read()] == ["progress_checked", "job_finished"]
