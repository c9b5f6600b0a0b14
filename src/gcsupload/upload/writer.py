"""Retrying write-through to the storage backend."""

import asyncio
import logging
import threading
from typing import Awaitable, Callable, Optional, Sequence

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_chain,
    wait_fixed,
)

from gcsupload.storage.base import Sink
from gcsupload.upload.exceptions import BackendWriteError, ClientError, SizeLimitExceededError
from gcsupload.upload.streams import CHUNK_SIZE, ReplayableSource

logger = logging.getLogger(__name__)

# Delay before each retry; one initial attempt plus one retry per entry
DEFAULT_BACKOFF: tuple[float, ...] = (0.1, 0.5, 1.0)


class _AttemptCancelled(Exception):
    """Raised inside the copy thread once the awaiting task was cancelled."""


class RetryingWriter:
    """Copy an upload into a storage sink, retrying transient failures.

    Every attempt opens a fresh sink and reads the source from its first byte,
    so a failed partial write is never continued or reused. Client faults
    (the streaming size limit) are not retried.
    """

    def __init__(
        self,
        backoff: Sequence[float] = DEFAULT_BACKOFF,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        chunk_size: int = CHUNK_SIZE,
    ):
        self.backoff = tuple(backoff)
        self.max_attempts = len(self.backoff) + 1
        self.chunk_size = chunk_size
        self._sleep = sleep

    def _log_retry(self, retry_state: RetryCallState) -> None:
        logger.warning(
            f"Storage write failed (attempt {retry_state.attempt_number}/{self.max_attempts}), retrying",
            extra={
                "attempt": retry_state.attempt_number,
                "max_attempts": self.max_attempts,
                "delay_seconds": retry_state.next_action.sleep if retry_state.next_action else None,
                "error": str(retry_state.outcome.exception()) if retry_state.outcome else None,
            },
        )

    def _copy(
        self,
        open_sink: Callable[[], Sink],
        source: ReplayableSource,
        max_bytes: Optional[int],
        cancelled: threading.Event,
    ) -> int:
        sink = open_sink()
        written = 0
        try:
            stream = source.open()
            while chunk := stream.read(self.chunk_size):
                if cancelled.is_set():
                    raise _AttemptCancelled()
                written += len(chunk)
                if max_bytes is not None and written > max_bytes:
                    raise SizeLimitExceededError(max_bytes)
                sink.write(chunk)
            # Last point an abandoned attempt can back out; a commit in progress runs to completion
            if cancelled.is_set():
                raise _AttemptCancelled()
            sink.close()
        except BaseException:
            try:
                sink.abort()
            except Exception as abort_error:
                logger.warning("Failed to abort storage sink", extra={"error": str(abort_error)})
            raise
        return written

    async def _attempt(
        self,
        open_sink: Callable[[], Sink],
        source: ReplayableSource,
        max_bytes: Optional[int],
    ) -> int:
        cancelled = threading.Event()
        try:
            return await asyncio.to_thread(self._copy, open_sink, source, max_bytes, cancelled)
        except asyncio.CancelledError:
            # The copy thread stops at its next chunk and aborts its sink
            cancelled.set()
            raise

    async def write(
        self,
        open_sink: Callable[[], Sink],
        source: ReplayableSource,
        max_bytes: Optional[int] = None,
    ) -> int:
        """Write the whole source to a new sink, retrying on failure.

        Args:
            open_sink: Factory returning a new sink for each attempt
            source: Upload body, rewound before every attempt
            max_bytes: Abort once more than this many bytes were streamed

        Returns:
            Number of bytes written by the successful attempt

        Raises:
            SizeLimitExceededError: If the body grows past max_bytes
            BackendWriteError: If every attempt failed
            asyncio.CancelledError: If the calling task was cancelled
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_chain(*[wait_fixed(delay) for delay in self.backoff]),
            retry=retry_if_exception_type(Exception) & retry_if_not_exception_type(ClientError),
            before_sleep=self._log_retry,
            sleep=self._sleep,
            reraise=True,
        )

        attempts = 0
        written = 0
        try:
            async for attempt in retrying:
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    written = await self._attempt(open_sink, source, max_bytes)
        except ClientError:
            raise
        except Exception as e:
            logger.error(
                f"Storage write failed after {attempts} attempts",
                extra={"total_attempts": attempts, "final_error": str(e)},
            )
            raise BackendWriteError(
                f"Upload failed after {attempts} attempts", attempts=attempts
            ) from e

        return written
