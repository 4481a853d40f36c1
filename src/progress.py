"""
Progress buffering.

A ProgressBuffer sits between a running measurement and its transport.
Partial results pushed in quick succession are coalesced and sent at
most once per interval:
- append mode: fragments are concatenated, each send carries only text
  that arrived since the previous send
- diff mode: every push carries the full formatted state, each send
  carries only the text past what was already forwarded

push_result() flushes what is left and sends the terminal result once.
"""

import asyncio
from typing import Any, Optional

from .logger import scoped_logger
from .models import ProgressMode
from .transports import Transport


DEFAULT_INTERVAL = 0.5

logger = scoped_logger("progress-buffer")


class ProgressBuffer:
    """Per-measurement progress buffer."""

    def __init__(
        self,
        transport: Transport,
        test_id: str,
        measurement_id: str,
        mode: ProgressMode,
        interval: float = DEFAULT_INTERVAL,
    ):
        """
        Args:
            transport: Where progress and results are sent
            test_id: Test the measurement belongs to
            measurement_id: Measurement identifier
            mode: APPEND or DIFF
            interval: Seconds to coalesce partial results before sending
        """
        self.transport = transport
        self.test_id = test_id
        self.measurement_id = measurement_id
        self.mode = mode
        self.interval = interval

        self._pending: dict[str, Any] = {}
        self._forwarded_offsets: dict[str, int] = {}
        self._timer: Optional[asyncio.TimerHandle] = None
        self._last_send: Optional[asyncio.Future] = None
        self._result_sent = False

    def push_progress(self, progress: dict[str, Any]) -> None:
        """Queue a partial result. Must be called from within the event loop."""
        if self._result_sent:
            return

        if self.mode == ProgressMode.APPEND:
            for key, value in progress.items():
                self._pending[key] = self._pending.get(key, "") + value
        else:
            self._pending.update(progress)

        if self._timer is None:
            loop = asyncio.get_running_loop()
            self._timer = loop.call_later(self.interval, self._flush)

    def _take_pending(self) -> dict[str, Any]:
        pending, self._pending = self._pending, {}

        if self.mode == ProgressMode.APPEND:
            return pending

        delta: dict[str, Any] = {}
        for key, value in pending.items():
            if not isinstance(value, str):
                delta[key] = value
                continue

            offset = self._forwarded_offsets.get(key, 0)
            if len(value) > offset:
                delta[key] = value[offset:]
                self._forwarded_offsets[key] = len(value)

        return delta

    def _flush(self) -> None:
        self._timer = None
        payload = self._take_pending()
        if not payload:
            return

        previous = self._last_send
        self._last_send = asyncio.ensure_future(self._send_progress(payload, previous))

    async def _send_progress(self, result: dict[str, Any], previous: Optional[asyncio.Future]) -> None:
        if previous is not None:
            await previous

        try:
            await self.transport.push_progress(self._message(result))
        except Exception:
            logger.warning(
                "Failed to push measurement progress.",
                exc_info=True,
                extra={"fields": {"measurementId": self.measurement_id}},
            )

    def _message(self, result: dict[str, Any]) -> dict[str, Any]:
        return {
            "testId": self.test_id,
            "measurementId": self.measurement_id,
            "result": result,
        }

    async def push_result(self, result: dict[str, Any]) -> None:
        """
        Send the terminal result.

        Remaining progress is flushed first. Only the first call sends.
        """
        if self._result_sent:
            return
        self._result_sent = True

        if self._timer is not None:
            self._timer.cancel()
        self._flush()

        if self._last_send is not None:
            await self._last_send

        await self.transport.push_result(self._message(result))
