"""repocache CLI — Typer-based command-line interface.

Provides the ``repocache`` command with subcommands for populating the
cache, rebuilding an offline repository, and inspecting the index.

All output uses Rich for formatted terminal display.
"""
