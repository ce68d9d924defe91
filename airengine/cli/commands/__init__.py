"""Subcommand implementations for the ``airengine`` CLI."""

from .build import add_build_command, cmd_build
from .parse import add_parse_command, cmd_parse

__all__ = ["add_build_command", "cmd_build", "add_parse_command", "cmd_parse"]
