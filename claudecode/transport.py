"""Subprocess transport that speaks the stream-json protocol of the Claude Code tool."""

from __future__ import annotations

import itertools
import json
import os
import queue
import shutil
import signal
import subprocess
import threading
import time
from collections import deque
from typing import Any

from .errors import (
    ClaudeSDKError,
    CLIConnectionError,
    CLINotFoundError,
    ProcessError,
)
from .parser import (
    is_control_response,
    parse_control_response,
    parse_message,
    parse_stream_message,
)
from .types import ClaudeCodeOptions, ControlRequest, ControlResponse, InputMessage, Message

MAX_BUFFER_SIZE = 1024 * 1024
MAX_STDERR_SIZE = 10 * 1024 * 1024
STDERR_TIMEOUT = 10.0

_ENTRYPOINT_STREAMING = "sdk-py"
_ENTRYPOINT_QUERY = "sdk-py-query"
_POSIX = os.name == "posix"


def find_cli() -> str:
    """Locate the command-line tool on PATH or in the usual install places."""
    for name in ("claude", "claude-code"):
        found = shutil.which(name)
        if found:
            return found

    home = os.environ.get("HOME", "")
    search_paths = [
        os.path.join(home, ".npm-global", "bin", "claude"),
        os.path.join(home, ".npm", "bin", "claude"),
        "/usr/local/bin/claude",
        "/opt/homebrew/bin/claude",
        os.path.join(home, ".npm-global", "bin", "claude-code"),
        os.path.join(home, ".npm", "bin", "claude-code"),
        "/usr/local/bin/claude-code",
        "/opt/homebrew/bin/claude-code",
    ]
    for path in search_paths:
        if os.path.exists(path):
            return path
    raise CLINotFoundError(search_paths)


def build_args(
    options: ClaudeCodeOptions | None = None,
    streaming: bool = True,
    prompt: str | None = None,
) -> list[str]:
    """Build the command-line flags; a prompt selects one-shot print mode."""
    options = options or ClaudeCodeOptions()
    args = ["--output-format", "stream-json", "--verbose"]
    if prompt is not None:
        args += ["--print", prompt]
    if options.model:
        args += ["--model", options.model]
    if options.max_tokens > 0:
        args += ["--max-tokens", str(options.max_tokens)]
    if options.max_thinking_tokens > 0:
        args += ["--max-thinking-tokens", str(options.max_thinking_tokens)]
    if options.system_prompt:
        args += ["--system-prompt", options.system_prompt]
    if options.append_system_prompt:
        args += ["--append-system-prompt", options.append_system_prompt]
    if options.allowed_tools:
        args += ["--allowed-tools", ",".join(options.allowed_tools)]
    if options.disallowed_tools:
        args += ["--disallowed-tools", ",".join(options.disallowed_tools)]
    if options.permission_mode:
        args += ["--permission-mode", str(options.permission_mode)]
    if options.continue_conversation:
        args.append("--continue-conversation")
    if options.resume:
        args += ["--resume", options.resume]
    if options.max_turns > 0:
        args += ["--max-turns", str(options.max_turns)]
    if streaming and prompt is None:
        args += ["--input-format", "stream-json"]
    return args


def _strip_line_end(line: bytes) -> bytes:
    if line.endswith(b"\n"):
        line = line[:-1]
    if line.endswith(b"\r"):
        line = line[:-1]
    return line


class Transport:
    """A running command-line tool process with background readers for its output."""

    def __init__(
        self,
        options: ClaudeCodeOptions | None = None,
        streaming: bool = True,
        prompt: str | None = None,
    ) -> None:
        self.options = options or ClaudeCodeOptions()
        self.streaming = streaming and prompt is None
        cli_path = find_cli()
        args = build_args(self.options, self.streaming, prompt)

        env = dict(os.environ)
        env["CLAUDE_CODE_ENTRYPOINT"] = (
            _ENTRYPOINT_STREAMING if prompt is None else _ENTRYPOINT_QUERY
        )

        self._write_lock = threading.Lock()
        self._cond = threading.Condition()
        self._messages: deque[Message] = deque()
        self._errors: deque[BaseException] = deque()
        self._ended = False
        self._done = threading.Event()
        self._close_lock = threading.Lock()
        self._closed = False
        self._stderr_lock = threading.Lock()
        self._stderr_buf = bytearray()
        self._pending: dict[str, queue.Queue[ControlResponse]] = {}
        self._pending_lock = threading.Lock()
        self._request_counter = itertools.count(1)

        try:
            self._proc = subprocess.Popen(
                [cli_path, *args],
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=self.options.cwd or None,
                env=env,
                start_new_session=_POSIX,
            )
        except (OSError, ValueError) as exc:
            raise CLIConnectionError("Failed to start Claude Code CLI", exc) from exc

        self._stderr_thread = threading.Thread(target=self._read_stderr, daemon=True)
        self._stdout_thread = threading.Thread(target=self._read_messages, daemon=True)
        self._stderr_thread.start()
        self._stdout_thread.start()

    def __enter__(self) -> Transport:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # --- writing -----------------------------------------------------------

    def _write_line(self, payload: dict[str, Any], what: str) -> None:
        data = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
        with self._write_lock:
            stdin = self._proc.stdin
            try:
                if stdin is None or stdin.closed:
                    raise BrokenPipeError("stdin is closed")
                stdin.write(data + b"\n")
                stdin.flush()
            except (OSError, ValueError) as exc:
                raise CLIConnectionError(what, exc) from exc

    def send_message(
        self,
        message: Message,
        parent_tool_use_id: str = "",
        session_id: str = "",
    ) -> None:
        """Write one user message line to the tool's standard input."""
        envelope = InputMessage(
            message=message,
            parent_tool_use_id=parent_tool_use_id,
            session_id=session_id,
        )
        self._write_line(envelope.to_dict(), "Failed to send message")

    def send_interrupt(self, timeout: float = 5.0) -> None:
        """Ask the tool to interrupt and wait for its acknowledgement."""
        request_id = f"req_{next(self._request_counter)}_{time.time_ns()}"
        replies: queue.Queue[ControlResponse] = queue.Queue(maxsize=1)
        with self._pending_lock:
            self._pending[request_id] = replies
        try:
            self._write_line(ControlRequest(request_id=request_id).to_dict(), "Failed to send interrupt")
            try:
                response = replies.get(timeout=timeout)
            except queue.Empty:
                raise TimeoutError("interrupt request timeout") from None
            if not response.success:
                raise ClaudeSDKError(f"interrupt failed: {response.error}")
        finally:
            with self._pending_lock:
                self._pending.pop(request_id, None)

    def close_stdin(self) -> None:
        """Close the tool's standard input so it sees end of file."""
        with self._write_lock:
            stdin = self._proc.stdin
            if stdin is None or stdin.closed:
                return
            try:
                stdin.close()
            except OSError as exc:
                raise CLIConnectionError("Failed to close stdin", exc) from exc

    # --- lifetime ----------------------------------------------------------

    def _kill(self) -> None:
        if _POSIX:
            try:
                os.killpg(self._proc.pid, signal.SIGKILL)
                return
            except OSError:
                pass
        try:
            self._proc.kill()
        except OSError:
            pass

    def close(self) -> None:
        """Stop the process and the readers; safe to call more than once."""
        with self._close_lock:
            if self._closed:
                return
            self._closed = True

        self._done.set()
        with self._write_lock:
            stdin = self._proc.stdin
            if stdin is not None:
                try:
                    stdin.close()
                except OSError:
                    pass
        self._kill()
        self._proc.wait()

        for thread, stream in (
            (self._stdout_thread, self._proc.stdout),
            (self._stderr_thread, self._proc.stderr),
        ):
            thread.join(timeout=1.0)
            if stream is not None and not thread.is_alive():
                try:
                    stream.close()
                except OSError:
                    pass

        with self._cond:
            self._ended = True
            self._cond.notify_all()

    def wait(self) -> None:
        """Wait for the process to exit; raise ProcessError on a failure status."""
        try:
            returncode = self._proc.wait()
        except OSError as exc:
            raise CLIConnectionError("Process failed", exc) from exc
        self._stderr_thread.join(timeout=0.1)
        if returncode != 0:
            exit_code = returncode if returncode > 0 else -1
            raise ProcessError(exit_code, "", self._stderr_text())

    def _stderr_text(self) -> str:
        with self._stderr_lock:
            return self._stderr_buf.decode("utf-8", errors="replace")

    def collect_stderr(self, timeout: float = 1.0) -> str:
        """Return standard error once it stops growing, or when the timeout runs out."""
        deadline = time.monotonic() + timeout
        last_size = 0
        stable = 0
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return self._stderr_text()
            time.sleep(min(0.1, remaining))
            if time.monotonic() >= deadline:
                return self._stderr_text()
            with self._stderr_lock:
                size = len(self._stderr_buf)
            if size == last_size:
                stable += 1
                if stable >= 3:
                    return self._stderr_text()
            else:
                stable = 0
                last_size = size

    # --- reading -----------------------------------------------------------

    def get_message(self, timeout: float | None = None) -> Message | None:
        """Return the next message, or None once the output has ended.

        Raises TimeoutError when nothing arrives within ``timeout`` seconds.
        """
        with self._cond:
            if not self._cond.wait_for(lambda: self._messages or self._ended, timeout):
                raise TimeoutError("no message received before the timeout")
            if self._messages:
                return self._messages.popleft()
            return None

    def get_error(self, timeout: float | None = 0.0) -> BaseException | None:
        """Return the next reported error, or None if there is none in time."""
        with self._cond:
            self._cond.wait_for(lambda: self._errors or self._ended, timeout)
            if self._errors:
                return self._errors.popleft()
            return None

    def _push_error(self, error: BaseException) -> None:
        if self._done.is_set():
            return
        with self._cond:
            self._errors.append(error)
            self._cond.notify_all()

    def _push_message(self, message: Message) -> None:
        if self._done.is_set():
            return
        with self._cond:
            self._messages.append(message)
            self._cond.notify_all()

    def _deliver_control(self, line: bytes) -> None:
        try:
            response = parse_control_response(line)
        except ClaudeSDKError as exc:
            self._push_error(exc)
            return
        with self._pending_lock:
            replies = self._pending.get(response.request_id)
        if replies is not None:
            try:
                replies.put_nowait(response)
            except queue.Full:
                pass

    def _handle_line(self, line: bytes) -> None:
        if is_control_response(line):
            self._deliver_control(line)
            return
        try:
            stream = parse_stream_message(line)
            message = parse_message(stream.type, stream.message)
        except ClaudeSDKError as exc:
            self._push_error(exc)
            return
        if message is not None:
            self._push_message(message)

    def _read_messages(self) -> None:
        stdout = self._proc.stdout
        try:
            while not self._done.is_set():
                try:
                    line = stdout.readline(MAX_BUFFER_SIZE + 1)
                except (OSError, ValueError) as exc:
                    self._push_error(CLIConnectionError("Error reading stdout", exc))
                    return
                if not line:
                    return
                if len(line) > MAX_BUFFER_SIZE and not line.endswith(b"\n"):
                    self._push_error(
                        CLIConnectionError("Error reading stdout", ValueError("token too long"))
                    )
                    return
                line = _strip_line_end(line)
                if line:
                    self._handle_line(line)
        finally:
            with self._cond:
                self._ended = True
                self._cond.notify_all()

    def _read_stderr(self) -> None:
        stderr = self._proc.stderr
        while not self._done.is_set():
            try:
                chunk = stderr.read1(4096)
            except (OSError, ValueError) as exc:
                self._push_error(CLIConnectionError("Error reading stderr", exc))
                return
            if not chunk:
                return
            with self._stderr_lock:
                if len(self._stderr_buf) + len(chunk) <= MAX_STDERR_SIZE:
                    self._stderr_buf.extend(chunk)