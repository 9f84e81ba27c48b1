"""CLI commands for localsite."""
