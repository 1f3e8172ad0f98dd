"""Exceptions raised when talking to the Claude Code command-line tool."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

_NOT_FOUND_MESSAGE = """Claude Code CLI not found. Please install it first:

Option 1: Install via npm (requires Node.js 18+):
  npm install -g @anthropic-ai/claude-code

Option 2: Download a release build and place it on your PATH.

After installation, make sure 'claude-code' is in your PATH."""


class ClaudeSDKError(Exception):
    """Base class for every error raised by this package."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class CLIConnectionError(ClaudeSDKError):
    """The command-line tool could not be started or talked to."""


class CLINotFoundError(ClaudeSDKError):
    """The command-line tool is not installed where it was looked for."""

    def __init__(self, search_paths: Sequence[str] = ()) -> None:
        super().__init__(_NOT_FOUND_MESSAGE)
        self.search_paths = list(search_paths)


class ProcessError(ClaudeSDKError):
    """The command-line tool exited with a failure status."""

    def __init__(self, exit_code: int, stdout: str = "", stderr: str = "") -> None:
        message = f"Claude Code CLI exited with code {exit_code}"
        if stderr:
            message = f"{message}\nstderr: {stderr}"
        super().__init__(message)
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr


class CLIJSONDecodeError(ClaudeSDKError):
    """A line of output from the command-line tool was not valid JSON."""

    def __init__(self, raw_data: str, cause: BaseException | None = None) -> None:
        super().__init__(f"Failed to decode JSON from CLI output: {raw_data}", cause)
        self.raw_data = raw_data


class MessageParseError(ClaudeSDKError):
    """A decoded message did not have the expected shape."""

    def __init__(
        self,
        message_type: str,
        raw_message: Any,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(f"Failed to parse message of type '{message_type}'", cause)
        self.message_type = message_type
        self.raw_message = raw_message