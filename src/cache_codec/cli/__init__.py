"""Command-line interface for cache-codec.

This package provides the CLI implementation split into logical modules:

- main: Core CLI entry point
- payload: Payload commands (inspect, convert)
"""

from __future__ import annotations

from cache_codec.cli.main import cli, main

__all__ = ["cli", "main"]
