# claudecode

A small library for talking to the Claude Code command-line tool from Python.
It starts the `claude` executable (or `claude-code`) as a subprocess, exchanges
newline-delimited JSON with it, and turns the output into typed messages.

`claudecode.transport.find_cli()` looks for the executable on `PATH` first. It
then tries a few usual install locations: `~/.npm-global/bin`, `~/.npm/bin`,
`/usr/local/bin` and `/opt/homebrew/bin`. If the executable is in none of them,
it raises `CLINotFoundError`, whose `search_paths` lists the places it tried.

## Installing

```
pip install .
```

## One-shot queries

```python
from claudecode.query import query, simple_query, query_with_options
from claudecode.types import ClaudeCodeOptions

print(simple_query("What is the capital of France?"))

result = query(
    "Tell me about Paris",
    ClaudeCodeOptions(
        model="claude-3-opus-20240229",
        system_prompt="You are a helpful geography assistant.",
    ),
)
print(result.stdout)
if result.result is not None:
    print(f"Cost: ${result.result.data.cost.total_cost:.4f}")

def configure(opts):
    opts.model = "claude-3-opus-20240229"
    opts.max_tokens = 100

haiku = query_with_options("Write a haiku about programming", configure)
print(haiku.stdout)
```

`query` passes the prompt with `--print` and closes the tool's standard input
straight away. It then reads output until the process exits. It returns a
`QueryResult` with these fields:

- `messages`: every parsed message.
- `result`: the last `ResultMessage`, or `None` if none arrived.
- `stdout`: the text of all assistant text blocks, joined with newlines.
- `stderr`: whatever the tool wrote to standard error.

The function raises in these cases:

- If the tool reports an error while its output is being read, that error is raised.
- A non-zero exit raises `ProcessError`, which carries `exit_code` and the captured `stderr`.
- If the exchange takes longer than `timeout` seconds, it raises `TimeoutError`. The default is 30 minutes.

## Interactive sessions

```python
from claudecode.client import Client
from claudecode.types import AssistantMessage, ClaudeCodeOptions, PermissionMode, TextBlock

options = ClaudeCodeOptions(
    model="claude-3-opus-20240229",
    permission_mode=PermissionMode.ACCEPT_EDITS,
)

with Client(options) as client:
    client.connect("Hello! I'm ready to help with coding tasks.")
    client.send_message("Write a function that computes fibonacci numbers")

    for message in client.receive_response(timeout=120):
        if isinstance(message, AssistantMessage):
            for block in message.content:
                if isinstance(block, TextBlock):
                    print(block.text)
```

`connect(prompt)` starts the tool in streaming mode. If `prompt` is not empty,
it is sent as the first message. `send_message` writes further user messages,
tagged with `options.session_id` when that is set.

There are several ways to read messages back:

- `next_message(timeout)` returns the next message. It raises any error the reader reported, `TimeoutError` if nothing arrives in time, and `ClaudeSDKError` once the output has ended.
- `stream_messages(timeout)` and `receive_messages(timeout)` yield messages until the output ends or the timeout runs out.
- `receive_response(timeout)` yields messages up to and including the next `ResultMessage`. It also stops early on a reported error, at the end of output, or at the timeout.
- `wait_for_result(timeout)` reads messages until a `ResultMessage` arrives and returns it.
- `get_messages()` returns a copy of every message read so far by any of the above.

`send_interrupt()` sends an interrupt control request and waits up to five
seconds for the acknowledgement. If none comes, it raises `TimeoutError`. If
the tool refuses, it raises `ClaudeSDKError`.

Some calls raise `ClaudeSDKError` when the client is not connected or is
already closed: `send_message`, `send_interrupt`, `next_message` and
`wait_for_result`. `connect` raises it if the client is already connected or
closed. `stream_messages`, `receive_messages` and `receive_response` yield
nothing on a client that is not connected. `close()` can be called any number
of times.

## Lower-level pieces

- `claudecode.transport.Transport` runs one tool process with background readers for its standard output and standard error.
- `claudecode.transport.build_args(options, streaming, prompt)` builds the command-line flags.
- `claudecode.parser` decodes single output lines: `parse_stream_message`, `parse_control_response`, `parse_message` and `is_control_response`.
- `claudecode.types` holds the message, content block, option and result data classes, each with `to_dict` / `from_dict` where it applies.

## What is passed to the tool

Only some `ClaudeCodeOptions` fields become command-line flags:

| Field | Flag |
| --- | --- |
| `model` | `--model` |
| `max_tokens` | `--max-tokens` |
| `max_thinking_tokens` | `--max-thinking-tokens` |
| `system_prompt` | `--system-prompt` |
| `append_system_prompt` | `--append-system-prompt` |
| `allowed_tools` | `--allowed-tools` |
| `disallowed_tools` | `--disallowed-tools` |
| `permission_mode` | `--permission-mode` |
| `continue_conversation` | `--continue-conversation` |
| `resume` | `--resume` |
| `max_turns` | `--max-turns` |

Two more fields are used, but not as flags. `cwd` sets the working directory
of the process. `session_id` is added to messages sent by the client.

The remaining fields are kept on the options object but are not sent to the
tool. These include `mcp_servers`, `temperature`, `max_cost_usd` and
`only_tools`. The package has no command-line program of its own; it is a
library only.

## Errors

All errors derive from `claudecode.errors.ClaudeSDKError`:

- `CLINotFoundError`: the executable could not be located.
- `CLIConnectionError`: starting or talking to the process failed.
- `ProcessError`: the process exited with a non-zero status.
- `CLIJSONDecodeError`: a line of output was not valid JSON.
- `MessageParseError`: a message could not be turned into a known type.

Timeouts are reported with the built-in `TimeoutError`.

## Running the tests

```
pip install ".[test]"
pytest
```