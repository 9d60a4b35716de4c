"""Sync a remote PostgreSQL database into a local development database."""

__version__ = "0.1.0"
