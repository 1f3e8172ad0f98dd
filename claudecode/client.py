"""Interactive sessions with the Claude Code command-line tool.

A ``Client`` keeps one tool process running in streaming mode. Messages are
sent with ``send_message`` and read back with ``next_message``,
``stream_messages``, ``receive_response`` or ``wait_for_result``. One-shot
questions are better served by ``claudecode.query.query``.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Iterator
from typing import Any

from .errors import ClaudeSDKError
from .transport import Transport
from .types import ClaudeCodeOptions, Message, ResultMessage, UserMessage

_POLL_INTERVAL = 0.05

# How a read reacts to an error reported by the transport.
_RAISE = "raise"
_STOP = "stop"
_IGNORE = "ignore"


def _deadline(timeout: float | None) -> float | None:
    return None if timeout is None else time.monotonic() + timeout


class Client:
    """A streaming session with the command-line tool."""

    def __init__(self, options: ClaudeCodeOptions | None = None) -> None:
        self.options = options or ClaudeCodeOptions()
        self._transport: Transport | None = None
        self._history: list[Message] = []
        self._lock = threading.Lock()
        self._closed = False
        self._connected = False

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def connect(self, prompt: str = "") -> None:
        """Start the tool; a non-empty prompt is sent as the first message."""
        with self._lock:
            if self._connected:
                raise ClaudeSDKError("client is already connected")
            if self._closed:
                raise ClaudeSDKError("client is closed")
            self._transport = Transport(self.options, streaming=True)
            self._connected = True
            transport = self._transport
        if prompt:
            transport.send_message(UserMessage(content=prompt), "", self.options.session_id)

    def _active_transport(self) -> Transport:
        with self._lock:
            if self._closed:
                raise ClaudeSDKError("client is closed")
            if not self._connected or self._transport is None:
                raise ClaudeSDKError("client is not connected, call connect() first")
            return self._transport

    def _stream_transport(self) -> Transport | None:
        with self._lock:
            if not self._connected or self._transport is None:
                return None
            return self._transport

    def send_message(self, prompt: str) -> None:
        """Send one user message to the running tool."""
        transport = self._active_transport()
        transport.send_message(UserMessage(content=prompt), "", self.options.session_id)

    def send_interrupt(self) -> None:
        """Ask the tool to stop its current response and wait for the reply."""
        self._active_transport().send_interrupt()

    def _pull(self, transport: Transport, deadline: float | None, errors: str) -> Message | None:
        """Fetch and record the next message; None means the output ended or an error stopped it.

        Raises TimeoutError when the deadline passes first.
        """
        while True:
            if errors != _IGNORE:
                error = transport.get_error(0)
                if error is not None:
                    if errors == _RAISE:
                        raise error
                    return None
            if deadline is None:
                wait = _POLL_INTERVAL
            else:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise TimeoutError("no message received before the timeout")
                wait = min(_POLL_INTERVAL, remaining)
            try:
                message = transport.get_message(wait)
            except TimeoutError:
                continue
            if message is None:
                if errors == _RAISE:
                    error = transport.get_error(0)
                    if error is not None:
                        raise error
                return None
            with self._lock:
                self._history.append(message)
            return message

    def next_message(self, timeout: float | None = None) -> Message:
        """Return the next message, raising any error the tool reported.

        Raises TimeoutError if nothing arrives in time and ClaudeSDKError once
        the output has ended.
        """
        transport = self._active_transport()
        message = self._pull(transport, _deadline(timeout), _RAISE)
        if message is None:
            raise ClaudeSDKError("message channel closed")
        return message

    def get_messages(self) -> list[Message]:
        """Return a copy of every message read so far."""
        with self._lock:
            return list(self._history)

    def stream_messages(self, timeout: float | None = None) -> Iterator[Message]:
        """Yield messages until the output ends or the timeout runs out."""
        transport = self._stream_transport()
        if transport is None:
            return
        deadline = _deadline(timeout)
        while True:
            try:
                message = self._pull(transport, deadline, _IGNORE)
            except TimeoutError:
                return
            if message is None:
                return
            yield message

    def wait_for_result(self, timeout: float | None = None) -> ResultMessage:
        """Read messages until the result message arrives and return it."""
        with self._lock:
            if not self._connected or self._transport is None:
                raise ClaudeSDKError("client is not connected, call connect() first")
            transport = self._transport
        deadline = _deadline(timeout)
        while True:
            message = self._pull(transport, deadline, _RAISE)
            if message is None:
                raise ClaudeSDKError("message channel closed")
            if isinstance(message, ResultMessage):
                return message

    def receive_response(self, timeout: float | None = None) -> Iterator[Message]:
        """Yield messages up to and including the next result message.

        The stream also ends on a reported error, when the output ends, or when
        the timeout runs out.
        """
        transport = self._stream_transport()
        if transport is None:
            return
        deadline = _deadline(timeout)
        while True:
            try:
                message = self._pull(transport, deadline, _STOP)
            except TimeoutError:
                return
            if message is None:
                return
            yield message
            if isinstance(message, ResultMessage):
                return

    def receive_messages(self, timeout: float | None = None) -> Iterator[Message]:
        """Yield every message from the tool; the same as ``stream_messages``."""
        return self.stream_messages(timeout)

    def close(self) -> None:
        """Stop the tool process; calling it again does nothing."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._connected = False
            transport = self._transport
        if transport is not None:
            transport.close()