"""Core project lifecycle functionality for localsite."""
