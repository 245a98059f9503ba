"""Streaming adapter — forwards pipeline progress events to a live transport.

Events are written in emission order as they happen, then the transport is
closed exactly once. Two wire formats: newline-delimited JSON and
server-sent events. ``QueueTransport`` makes the stream iterable so any
framework that streams a generator can serve it.
"""

from __future__ import annotations

import json
import logging
import threading
from queue import Queue
from typing import Any, Iterator, Optional, Protocol

from content_pipeline.models import PipelineInput, PipelineProgressEvent, PipelineResult
from content_pipeline.pipeline import ContentPipeline

logger = logging.getLogger(__name__)

FORMATS = ("ndjson", "sse")


def to_ndjson(event: PipelineProgressEvent) -> str:
    return json.dumps(event.to_wire(), ensure_ascii=False) + "\n"


def to_sse(event: PipelineProgressEvent) -> str:
    return f"data: {json.dumps(event.to_wire(), ensure_ascii=False)}\n\n"


class Transport(Protocol):
    def write(self, chunk: str) -> None: ...

    def close(self) -> None: ...


class QueueTransport:
    """Thread-safe transport; iterate it to receive chunks until it is closed."""

    _CLOSED = object()

    def __init__(self):
        self.queue: Queue[Any] = Queue()

    def write(self, chunk: str) -> None:
        self.queue.put(chunk)

    def close(self) -> None:
        self.queue.put(self._CLOSED)

    def __iter__(self) -> Iterator[str]:
        while True:
            chunk = self.queue.get()
            if chunk is self._CLOSED:
                return
            yield chunk


class StreamingAdapter:
    def __init__(self, pipeline: ContentPipeline, transport: Transport, fmt: str = "ndjson"):
        if fmt not in FORMATS:
            raise ValueError(f"Unknown stream format {fmt!r}; expected one of {', '.join(FORMATS)}")
        self.pipeline = pipeline
        self.transport = transport
        self.fmt = fmt
        self.result: Optional[PipelineResult] = None
        self._closed = False
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None

    def _serialize(self, event: PipelineProgressEvent) -> str:
        return to_sse(event) if self.fmt == "sse" else to_ndjson(event)

    def _send(self, event: PipelineProgressEvent) -> None:
        with self._lock:
            if self._closed:
                return
            self.transport.write(self._serialize(event))

    def _close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self.transport.close()

    def serve(
        self,
        pipeline_input: PipelineInput | dict[str, Any],
        cancel: Optional[threading.Event] = None,
    ) -> Optional[PipelineResult]:
        """Run the pipeline, streaming every event, then close the transport.

        Anything escaping the run (invalid input included) becomes one final
        ``error`` event instead of an exception.
        """
        try:
            self.result = self.pipeline.run(pipeline_input, on_progress=self._send, cancel=cancel)
        except Exception as e:
            logger.error("Streaming run failed: %s", e)
            self._send(
                PipelineProgressEvent(
                    type="error",
                    status="failed",
                    message=f"Pipeline failed: {e}",
                    progress=0,
                )
            )
        finally:
            self._close()
        return self.result

    def start(
        self,
        pipeline_input: PipelineInput | dict[str, Any],
        cancel: Optional[threading.Event] = None,
    ) -> threading.Thread:
        """``serve()`` on a daemon thread."""
        self._thread = threading.Thread(
            target=self.serve, args=(pipeline_input, cancel), name="pipeline-stream", daemon=True
        )
        self._thread.start()
        return self._thread


def stream_pipeline(
    pipeline_input: PipelineInput | dict[str, Any],
    pipeline: Optional[ContentPipeline] = None,
    fmt: str = "ndjson",
    cancel: Optional[threading.Event] = None,
) -> Iterator[str]:
    """Yield serialized events while the pipeline runs in the background.

    Closing the generator early (a disconnected client) cancels the run, so no
    further stage calls the model.
    """
    cancel = cancel or threading.Event()
    transport = QueueTransport()
    adapter = StreamingAdapter(pipeline or ContentPipeline(), transport, fmt=fmt)
    adapter.start(pipeline_input, cancel=cancel)
    try:
        yield from transport
    except GeneratorExit:
        cancel.set()
        raise


def collect(
    pipeline_input: PipelineInput | dict[str, Any],
    pipeline: Optional[ContentPipeline] = None,
    cancel: Optional[threading.Event] = None,
) -> tuple[list[PipelineProgressEvent], PipelineResult]:
    """Buffered mode: run to completion and return every event with the result."""
    events: list[PipelineProgressEvent] = []
    result = (pipeline or ContentPipeline()).run(pipeline_input, on_progress=events.append, cancel=cancel)
    return events, result
