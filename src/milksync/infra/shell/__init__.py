"""External process execution for the database tools."""

from .runner import CommandResult, CommandRunner

__all__ = ["CommandResult", "CommandRunner"]
