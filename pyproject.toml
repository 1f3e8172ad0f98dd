[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "claudecode"
version = "0.1.0"
description = "Client library for driving the Claude Code command-line tool over its JSON stream protocol"
requires-python = ">=3.10"
dependencies = []
keywords = ["claude", "claude-code", "cli", "sdk", "stream-json", "subprocess"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["claudecode"]

[tool.pytest.ini_options]
addopts = "-ra"
