"""Bridges blocking file operations that write into a sink to streaming responses"""

import queue
import threading
from typing import Any, Callable, Dict, Iterator, Optional

from fastapi.responses import StreamingResponse

from src.core.files.file_types import MIME_OCTET_STREAM, ResponseSink
from src.infrastructure.logging import get_logger

logger = get_logger(__name__)

CHUNK_SIZE = 64 * 1024
MAX_QUEUED_CHUNKS = 16
PUT_TIMEOUT_SECONDS = 0.5

_EOF = object()


class ResponsePipe:
    """
    Sink written by a producer thread and drained by the response iterator

    Headers may only be set before the first body byte. Once the consumer
    stops reading, further writes raise ``BrokenPipeError`` so the producer
    does not block forever.
    """

    def __init__(self, chunk_size: int = CHUNK_SIZE, max_chunks: int = MAX_QUEUED_CHUNKS):
        self.headers: Dict[str, str] = {}
        self.error: Optional[BaseException] = None
        self.body_started = False
        self.chunk_size = chunk_size
        self._buffer = bytearray()
        self._queue: "queue.Queue[Any]" = queue.Queue(maxsize=max_chunks)
        self._ready = threading.Event()
        self._abandoned = threading.Event()

    def set_header(self, name: str, value: str) -> None:
        if self.body_started:
            raise RuntimeError("headers already sent")
        self.headers[name] = value

    def write(self, data: bytes) -> int:
        if not data:
            return 0
        self.body_started = True
        self._ready.set()
        self._buffer += data
        if len(self._buffer) >= self.chunk_size:
            self.flush()
        return len(data)

    def flush(self) -> None:
        if self._buffer:
            chunk = bytes(self._buffer)
            self._buffer.clear()
            self._put(chunk)

    def fail(self, error: BaseException) -> None:
        self.error = error

    def close(self) -> None:
        try:
            self.flush()
            self._put(_EOF)
        except BrokenPipeError:
            pass
        finally:
            self._ready.set()

    def wait_ready(self) -> None:
        """Block until the body starts or the producer finishes."""
        self._ready.wait()

    def iter_chunks(self) -> Iterator[bytes]:
        try:
            while True:
                item = self._queue.get()
                if item is _EOF:
                    break
                yield item
        finally:
            self._abandoned.set()

    def _put(self, item: Any) -> None:
        while not self._abandoned.is_set():
            try:
                self._queue.put(item, timeout=PUT_TIMEOUT_SECONDS)
                return
            except queue.Full:
                continue
        raise BrokenPipeError("response consumer went away")


def stream_from_sink(
    operation: Callable[[ResponseSink], Any],
    name: str = "download",
) -> StreamingResponse:
    """
    Run ``operation`` in a producer thread and stream what it writes

    Errors raised before the first body byte propagate to the caller so the
    regular exception handlers can answer. Later errors can only truncate the
    body and are logged.
    """
    pipe = ResponsePipe()

    def produce() -> None:
        try:
            operation(pipe)
        except Exception as e:
            pipe.fail(e)
            if pipe.body_started:
                logger.error(
                    "stream_aborted",
                    stream=name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
        finally:
            pipe.close()

    thread = threading.Thread(target=produce, name=f"{name}-stream", daemon=True)
    thread.start()
    pipe.wait_ready()

    if pipe.error is not None and not pipe.body_started:
        raise pipe.error

    headers = dict(pipe.headers)
    media_type = headers.pop("Content-Type", MIME_OCTET_STREAM)
    return StreamingResponse(pipe.iter_chunks(), media_type=media_type, headers=headers)
