"""CLI module for wabot."""
