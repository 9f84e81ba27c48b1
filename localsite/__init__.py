"""localsite - Local development environments for PHP sites in Docker."""

__version__ = "0.1.0"

# Export main CLI for convenience
from .cli.main import cli

__all__ = ['cli']
