"""Client library for the Claude Code command-line tool: one-shot queries and streaming sessions."""

__version__ = "0.1.0"

__all__ = ["client", "errors", "parser", "query", "transport", "types"]