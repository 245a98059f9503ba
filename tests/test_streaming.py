import json
import threading

import pytest

from content_pipeline.agents.brand import BRAND_ANALYZER_SYSTEM
from content_pipeline.agents.writer import WRITER_SYSTEM
from content_pipeline.models import PipelineProgressEvent
from content_pipeline.streaming import (
    QueueTransport,
    StreamingAdapter,
    collect,
    stream_pipeline,
    to_ndjson,
    to_sse,
)


class RecordingTransport:
    def __init__(self):
        self.chunks: list[str] = []
        self.closed = 0

    def write(self, chunk: str) -> None:
        assert not self.closed, "write after close"
        self.chunks.append(chunk)

    def close(self) -> None:
        self.closed += 1


def test_event_serialization() -> None:
    event = PipelineProgressEvent(type="progress", stage="writer", status="running", message="Writing", progress=25)

    line = to_ndjson(event)
    assert line.endswith("\n") and line.count("\n") == 1
    assert json.loads(line)["stage"] == "writer"

    frame = to_sse(event)
    assert frame.startswith("data: ") and frame.endswith("\n\n")
    assert json.loads(frame[len("data: "):])["progress"] == 25


def test_serve_streams_every_event_in_order(pipeline, pipeline_input) -> None:
    transport = RecordingTransport()
    result = StreamingAdapter(pipeline, transport).serve(pipeline_input)

    payloads = [json.loads(chunk) for chunk in transport.chunks]
    assert [p["type"] for p in payloads] == [e.type for e in result.events]
    assert [p["progress"] for p in payloads] == [e.progress for e in result.events]
    assert payloads[-1]["type"] == "complete"
    assert transport.closed == 1


def test_serve_sse_format(pipeline, pipeline_input) -> None:
    transport = RecordingTransport()
    StreamingAdapter(pipeline, transport, fmt="sse").serve(pipeline_input)
    assert all(chunk.startswith("data: ") for chunk in transport.chunks)
    assert transport.closed == 1


def test_serve_closes_once_after_stage_failure(pipeline, pipeline_input, replies) -> None:
    replies[WRITER_SYSTEM] = RuntimeError("down")
    transport = RecordingTransport()

    result = StreamingAdapter(pipeline, transport).serve(pipeline_input)

    assert not result.success
    assert json.loads(transport.chunks[-1])["type"] == "error"
    assert transport.closed == 1


def test_serve_turns_invalid_input_into_error_event(pipeline) -> None:
    transport = RecordingTransport()

    result = StreamingAdapter(pipeline, transport).serve({"topic": "Coffee"})

    assert result is None
    (chunk,) = transport.chunks
    payload = json.loads(chunk)
    assert payload["type"] == "error"
    assert payload["status"] == "failed"
    assert payload["message"].startswith("Pipeline failed: Invalid pipeline input")
    assert transport.closed == 1


def test_unknown_format_is_rejected(pipeline) -> None:
    with pytest.raises(ValueError):
        StreamingAdapter(pipeline, RecordingTransport(), fmt="xml")


def test_start_runs_on_background_thread(pipeline, pipeline_input) -> None:
    transport = QueueTransport()
    adapter = StreamingAdapter(pipeline, transport)

    thread = adapter.start(pipeline_input)
    chunks = list(transport)
    thread.join(timeout=5)

    assert thread.daemon
    assert json.loads(chunks[-1])["type"] == "complete"
    assert len(chunks) == len(adapter.result.events)


def test_stream_pipeline_yields_until_done(pipeline, pipeline_input) -> None:
    frames = list(stream_pipeline(pipeline_input, pipeline=pipeline, fmt="sse"))
    assert len(frames) == 13
    assert json.loads(frames[-1][len("data: "):])["progress"] == 100


def test_collect_buffers_events(pipeline, pipeline_input) -> None:
    events, result = collect(pipeline_input, pipeline=pipeline)
    assert events == result.events
    assert result.success


def test_closing_stream_cancels_remaining_stages(pipeline, pipeline_input, replies, blocking, fake_anthropic) -> None:
    replies[BRAND_ANALYZER_SYSTEM] = blocking

    stream = stream_pipeline(pipeline_input, pipeline=pipeline)
    first = json.loads(next(stream))
    stream.close()
    for thread in threading.enumerate():
        if thread.name == "pipeline-stream":
            thread.join(timeout=5)

    assert first["stage"] == "brand-analyzer"
    assert all(c["system"] == BRAND_ANALYZER_SYSTEM for c in fake_anthropic.messages.calls)
