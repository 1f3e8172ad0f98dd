"""One-shot questions to the Claude Code command-line tool."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

from .transport import Transport
from .types import AssistantMessage, ClaudeCodeOptions, Message, ResultMessage, TextBlock

QUERY_TIMEOUT = 30 * 60.0
_POLL_INTERVAL = 0.05


@dataclass
class QueryResult:
    """Everything a one-shot question produced."""

    messages: list[Message] = field(default_factory=list)
    result: ResultMessage | None = None
    stdout: str = ""
    stderr: str = ""


def _remaining(deadline: float, timeout: float) -> float:
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise TimeoutError(f"query timeout after {timeout:g} seconds")
    return remaining


def _drain(transport: Transport, deadline: float, timeout: float) -> Iterator[Message]:
    while True:
        error = transport.get_error(0)
        if error is not None:
            raise error
        wait = min(_POLL_INTERVAL, _remaining(deadline, timeout))
        try:
            message = transport.get_message(wait)
        except TimeoutError:
            continue
        if message is None:
            error = transport.get_error(0)
            if error is not None:
                raise error
            return
        yield message


def _wait_for_exit(transport: Transport, deadline: float, timeout: float) -> None:
    failure: list[BaseException] = []

    def run() -> None:
        try:
            transport.wait()
        except BaseException as exc:  # handed over to the caller below
            failure.append(exc)

    waiter = threading.Thread(target=run, daemon=True)
    waiter.start()
    waiter.join(_remaining(deadline, timeout))
    if waiter.is_alive():
        raise TimeoutError(f"query timeout after {timeout:g} seconds")
    if failure:
        raise failure[0]


def query(
    prompt: str,
    options: ClaudeCodeOptions | None = None,
    timeout: float = QUERY_TIMEOUT,
) -> QueryResult:
    """Ask one question and collect the reply.

    Raises the tool's reported errors, ProcessError on a failure exit and
    TimeoutError when the whole exchange takes longer than ``timeout`` seconds.
    """
    options = options or ClaudeCodeOptions()
    deadline = time.monotonic() + timeout
    result = QueryResult()
    with Transport(options, streaming=False, prompt=prompt) as transport:
        transport.close_stdin()
        for message in _drain(transport, deadline, timeout):
            result.messages.append(message)
            if isinstance(message, ResultMessage):
                result.result = message
        _wait_for_exit(transport, deadline, timeout)
        result.stderr = transport.collect_stderr(1.0)

    text_parts = [
        block.text
        for message in result.messages
        if isinstance(message, AssistantMessage)
        for block in message.content
        if isinstance(block, TextBlock)
    ]
    result.stdout = "\n".join(text_parts)
    return result


def simple_query(prompt: str) -> str:
    """Ask one question with default options and return the reply text."""
    return query(prompt).stdout


def query_with_options(
    prompt: str,
    options_fn: Callable[[ClaudeCodeOptions], None] | None = None,
) -> QueryResult:
    """Ask one question with options set up by ``options_fn``."""
    options = ClaudeCodeOptions()
    if options_fn is not None:
        options_fn(options)
    return query(prompt, options)