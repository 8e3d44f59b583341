from __future__ import annotations

import json

from reelsmith import telemetry


def test_events_are_recorded_and_filtered():
    telemetry.emit_event("job.progress", {"job_id": "j", "progress": 10})
    telemetry.emit_event("job.completed", {"job_id": "j"})

    assert [e["name"] for e in telemetry.get_events()] == ["job.progress", "job.completed"]
    assert telemetry.get_events("job.completed") == [{"name": "job.completed", "payload": {"job_id": "j"}}]

    telemetry.clear_events()
    assert telemetry.get_events() == []


def test_jsonl_sink(monkeypatch, tmp_path):
    sink = tmp_path / "events.jsonl"
    monkeypatch.setenv("REELSMITH_TELEMETRY_LOG", str(sink))

    telemetry.emit_event("stage.degraded", {"stage": "clip"})

    lines = sink.read_text(encoding="utf-8").splitlines()
    assert json.loads(lines[0]) == {"name": "stage.degraded", "payload": {"stage": "clip"}}


def test_unwritable_sink_is_ignored(monkeypatch, tmp_path):
    monkeypatch.setenv("REELSMITH_TELEMETRY_LOG", str(tmp_path / "missing-dir" / "events.jsonl"))
    telemetry.emit_event("job.failed", {})
    assert telemetry.get_events("job.failed")


def test_buffer_keeps_only_the_newest_events():
    for i in range(telemetry.MAX_EVENTS + 5):
        telemetry.emit_event("job.progress", {"seq": i})

    events = telemetry.get_events()
    assert len(events) == telemetry.MAX_EVENTS
    assert events[0]["payload"]["seq"] == 5
