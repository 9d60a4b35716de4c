"""Sync orchestration: options, state machine and error kinds."""
