"""CLI module for localsite."""

from .main import cli

__all__ = ['cli']
